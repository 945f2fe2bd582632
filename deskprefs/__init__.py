"""Layered preferences for the desktop player."""

from .bookmarks import Bookmark, read_bookmarks
from .config import GraphicsBackend, PowerPreference
from .language import LanguageIdentifier
from .log import FilenamePattern
from .parse import DocumentHolder, DocumentSyntaxError, ParseResult, ParseWarning
from .preferences import (
    GlobalPreferences,
    PreferencesError,
    SavedGlobalPreferences,
    StorageBackend,
    read_preferences,
)
from .shared import ReentrancyError

__all__ = [
    "Bookmark",
    "DocumentHolder",
    "DocumentSyntaxError",
    "FilenamePattern",
    "GlobalPreferences",
    "GraphicsBackend",
    "LanguageIdentifier",
    "ParseResult",
    "ParseWarning",
    "PowerPreference",
    "PreferencesError",
    "ReentrancyError",
    "SavedGlobalPreferences",
    "StorageBackend",
    "read_bookmarks",
    "read_preferences",
]
