"""Reader for ``preferences.toml``."""
from __future__ import annotations

from ..config import GraphicsBackend, PowerPreference
from ..language import LanguageIdentifier
from ..log import FilenamePattern
from ..parse import DocumentHolder, ParseContext, ParseResult, parse_document
from .saved import SavedGlobalPreferences
from .storage import StorageBackend


def read_preferences(text: str) -> ParseResult[SavedGlobalPreferences]:
    """Read every known field, keeping the default for any that is unusable.

    Each rejected field produces exactly one warning.  Unknown keys are left
    in the document untouched.  Raises
    :class:`~deskprefs.parse.DocumentSyntaxError` only if ``text`` is not TOML.
    """

    document = parse_document(text)
    cx = ParseContext()
    result = SavedGlobalPreferences()

    backend = cx.parse_from_str(document, "graphics_backend", GraphicsBackend)
    if backend is not None:
        result.graphics_backend = backend

    power = cx.parse_from_str(document, "graphics_power_preference", PowerPreference)
    if power is not None:
        result.graphics_power_preference = power

    language = cx.parse_from_str(document, "language", LanguageIdentifier.parse)
    if language is not None:
        result.language = language

    device = cx.get_str(document, "output_device")
    if device is not None:
        result.output_device = device

    mute = cx.get_bool(document, "mute")
    if mute is not None:
        result.mute = mute

    volume = cx.get_float(document, "volume")
    if volume is not None:
        if 0.0 <= volume <= 1.0:
            result.volume = volume
        else:
            cx.unsupported_value("volume", volume, "out of range (0.0 to 1.0):")

    log = cx.get_table(document, "log")
    if log is not None:
        with cx.nested("log"):
            pattern = cx.parse_from_str(log, "filename_pattern", FilenamePattern)
            if pattern is not None:
                result.log.filename_pattern = pattern

    storage = cx.get_table(document, "storage")
    if storage is not None:
        with cx.nested("storage"):
            storage_backend = cx.parse_from_str(storage, "backend", StorageBackend)
            if storage_backend is not None:
                result.storage.backend = storage_backend

    return ParseResult(DocumentHolder(result, document), cx.warnings)


__all__ = ["read_preferences"]
