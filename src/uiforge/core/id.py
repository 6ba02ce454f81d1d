"""ID Generation.

Prefixed ULIDs for requests and committed versions.

- K-sortable: version ids sort in commit order within a process
- Prefixed: req_* / ver_* make logs readable
"""

from datetime import datetime
from typing import NewType
from ulid import ULID

RequestID = NewType("RequestID", str)
"""Pipeline request identifier"""

VersionID = NewType("VersionID", str)
"""Committed version identifier"""


class Prefix:
    """ID prefix constants."""

    REQUEST = "req"
    VERSION = "ver"


def generate_raw() -> str:
    """Generate ULID without prefix."""
    return str(ULID())


def generate_with_prefix(prefix: str) -> str:
    """Generate ULID with type prefix."""
    return f"{prefix}_{generate_raw()}"


def new_request_id() -> RequestID:
    """Generate new request ID."""
    return RequestID(generate_with_prefix(Prefix.REQUEST))


def new_version_id() -> VersionID:
    """Generate new version ID."""
    return VersionID(generate_with_prefix(Prefix.VERSION))


def is_valid(id_str: str) -> bool:
    """Check if string is a (optionally prefixed) ULID."""
    ulid_part = id_str.split("_", 1)[1] if "_" in id_str else id_str
    if len(ulid_part) != 26:
        return False
    try:
        ULID.from_str(ulid_part)
    except ValueError:
        return False
    return True


def extract_timestamp(id_str: str) -> datetime | None:
    """Extract creation time from a (prefixed) ULID."""
    if not is_valid(id_str):
        return None
    ulid_part = id_str.split("_", 1)[1] if "_" in id_str else id_str
    return ULID.from_str(ulid_part).datetime
