"""
Version Store
Append-only history of committed versions plus a current-index pointer.

All mutations go through a single asyncio.Lock so concurrent commits never
interleave their index updates.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

from ..core.id import VersionID, extract_timestamp, new_version_id
from ..core.logging_config import get_logger
from ..monitoring import metrics_collector
from ..plan.models import Plan

logger = get_logger(__name__)


@dataclass(frozen=True)
class Version:
    """A committed plan with its markup and explanation."""

    id: VersionID
    plan: Plan
    markup: str
    explanation: str = ""
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    def summary(self, index: int) -> dict[str, Any]:
        return {"id": self.id, "index": index, "timestamp": self.timestamp}

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "plan": self.plan.to_wire(),
            "code": self.markup,
            "explanation": self.explanation,
            "timestamp": self.timestamp,
        }


class VersionStore:
    """Process-wide version history. Instantiate one per application (or per test)."""

    def __init__(self) -> None:
        self._versions: list[Version] = []
        self._current = -1
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._versions)

    @property
    def current_index(self) -> int:
        return self._current

    def current(self) -> Version | None:
        if 0 <= self._current < len(self._versions):
            return self._versions[self._current]
        return None

    def history(self) -> list[Version]:
        return list(self._versions)

    def get(self, index: int) -> Version | None:
        if 0 <= index < len(self._versions):
            return self._versions[index]
        return None

    async def commit(self, plan: Plan, markup: str, explanation: str = "") -> tuple[Version, int]:
        """
        Append a version and make it current.

        Returns:
            The new version and its index
        """
        async with self._lock:
            version_id = new_version_id()
            created = extract_timestamp(version_id)
            version = Version(
                id=version_id,
                plan=plan,
                markup=markup,
                explanation=explanation,
                timestamp=round(created.timestamp() * 1000),
            )
            self._versions.append(version)
            self._current = len(self._versions) - 1
            index = self._current
            metrics_collector.set_version_count(len(self._versions))

        logger.info("version_committed", version_id=version.id, index=index)
        return version, index

    async def rollback(self) -> Version | None:
        """Move the pointer back one version. No-op at index 0."""
        async with self._lock:
            if self._current > 0:
                self._current -= 1
                logger.info("version_rolled_back", index=self._current)
            return self.current()

    async def select_version(self, index: int) -> Version:
        """
        Jump to an existing version.

        Raises:
            IndexError: No version at index
        """
        async with self._lock:
            if not 0 <= index < len(self._versions):
                raise IndexError(f"No version at index {index}")
            self._current = index
            return self._versions[index]
