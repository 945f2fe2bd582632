"""The preferences persisted in ``preferences.toml``."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..config import GraphicsBackend, PowerPreference
from ..language import LanguageIdentifier, default_language
from ..log import FilenamePattern
from .storage import StorageBackend


@dataclass(slots=True)
class LogPreferences:
    filename_pattern: FilenamePattern = field(default_factory=FilenamePattern.default)


@dataclass(slots=True)
class StoragePreferences:
    backend: StorageBackend = field(default_factory=StorageBackend.default)


@dataclass(slots=True)
class SavedGlobalPreferences:
    """Application settings as stored on disk.

    Every field always holds a usable value.  ``output_device`` is ``None``
    when the system default device should be used.
    """

    graphics_backend: GraphicsBackend = field(default_factory=GraphicsBackend.default)
    graphics_power_preference: PowerPreference = field(default_factory=PowerPreference.default)
    language: LanguageIdentifier = field(default_factory=lambda: default_language())
    output_device: Optional[str] = None
    mute: bool = False
    volume: float = 1.0
    log: LogPreferences = field(default_factory=LogPreferences)
    storage: StoragePreferences = field(default_factory=StoragePreferences)


__all__ = ["LogPreferences", "SavedGlobalPreferences", "StoragePreferences"]
