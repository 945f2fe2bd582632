"""Where movies keep their local shared objects."""
from __future__ import annotations

from ..config import _Choice


class StorageBackend(_Choice):
    """Disk storage survives restarts, memory storage is discarded on exit."""

    DISK = "disk"
    MEMORY = "memory"

    @classmethod
    def default(cls) -> "StorageBackend":
        return cls.DISK


__all__ = ["StorageBackend"]
