"""Version history."""

from .store import Version, VersionStore

__all__ = ["Version", "VersionStore"]
