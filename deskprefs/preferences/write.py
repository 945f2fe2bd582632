"""Scoped writers that keep values and TOML documents in lockstep."""
from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Callable, Optional, Union

import tomlkit
from tomlkit import TOMLDocument
from tomlkit.items import AoT

from ..bookmarks import Bookmark, Bookmarks, parse_url
from ..config import GraphicsBackend, PowerPreference
from ..language import LanguageIdentifier
from ..log import FilenamePattern
from ..parse import DocumentHolder
from .saved import SavedGlobalPreferences
from .storage import StorageBackend


def _table_mut(document: TOMLDocument, key: str) -> Any:
    """Return the table at ``key``, creating it or replacing a non-table value."""

    existing = document.get(key)
    if isinstance(existing, Mapping):
        return existing
    if key in document:
        # re-added at the end so it cannot swallow the keys that follow it
        del document[key]
    document[key] = tomlkit.table()
    return document[key]


class _Writer:
    def __init__(self, holder: DocumentHolder[Any]) -> None:
        self._holder = holder
        self._modified = False

    @property
    def modified(self) -> bool:
        """Whether anything was changed, i.e. the document needs saving."""

        return self._modified

    def _apply(self, fun: Callable[[Any, TOMLDocument], None]) -> None:
        self._holder.edit(fun)
        self._modified = True


class PreferencesWriter(_Writer):
    """Typed setters for :class:`SavedGlobalPreferences`."""

    def __init__(self, holder: DocumentHolder[SavedGlobalPreferences]) -> None:
        super().__init__(holder)

    def _set(self, attribute: str, key: str, value: Any, serialized: Any) -> None:
        def apply(values: SavedGlobalPreferences, document: TOMLDocument) -> None:
            document[key] = serialized
            setattr(values, attribute, value)

        self._apply(apply)

    def set_graphics_backend(self, backend: Union[GraphicsBackend, str]) -> None:
        backend = GraphicsBackend(backend)
        self._set("graphics_backend", "graphics_backend", backend, backend.value)

    def set_graphics_power_preference(self, preference: Union[PowerPreference, str]) -> None:
        preference = PowerPreference(preference)
        self._set("graphics_power_preference", "graphics_power_preference", preference, preference.value)

    def set_language(self, language: Union[LanguageIdentifier, str]) -> None:
        if not isinstance(language, LanguageIdentifier):
            language = LanguageIdentifier.parse(language)
        self._set("language", "language", language, str(language))

    def set_output_device(self, name: Optional[str]) -> None:
        """Select an output device by name, ``None`` means the system default."""

        def apply(values: SavedGlobalPreferences, document: TOMLDocument) -> None:
            if name is None:
                if "output_device" in document:
                    del document["output_device"]
            else:
                document["output_device"] = name
            values.output_device = name

        self._apply(apply)

    def set_mute(self, mute: bool) -> None:
        self._set("mute", "mute", bool(mute), bool(mute))

    def set_volume(self, volume: float) -> None:
        volume = float(volume)
        if not math.isfinite(volume) or not 0.0 <= volume <= 1.0:
            raise ValueError(f"Volume must be between 0.0 and 1.0, got {volume}")
        self._set("volume", "volume", volume, volume)

    def set_log_filename_pattern(self, pattern: Union[FilenamePattern, str]) -> None:
        pattern = FilenamePattern(pattern)

        def apply(values: SavedGlobalPreferences, document: TOMLDocument) -> None:
            _table_mut(document, "log")["filename_pattern"] = pattern.value
            values.log.filename_pattern = pattern

        self._apply(apply)

    def set_storage_backend(self, backend: Union[StorageBackend, str]) -> None:
        backend = StorageBackend(backend)

        def apply(values: SavedGlobalPreferences, document: TOMLDocument) -> None:
            _table_mut(document, "storage")["backend"] = backend.value
            values.storage.backend = backend

        self._apply(apply)


class BookmarksWriter(_Writer):
    """Edits the ``[[bookmark]]`` array; indices match the bookmarks list."""

    def __init__(self, holder: DocumentHolder[Bookmarks]) -> None:
        super().__init__(holder)

    def _with_array(self, fun: Callable[[Bookmarks, AoT], None]) -> None:
        def apply(bookmarks: Bookmarks, document: TOMLDocument) -> None:
            array = document.get("bookmark")
            if not isinstance(array, AoT):
                if "bookmark" in document:
                    del document["bookmark"]
                document["bookmark"] = tomlkit.aot()
                array = document["bookmark"]
            fun(bookmarks, array)

        self._apply(apply)

    def add(self, bookmark: Bookmark) -> None:
        """Append ``bookmark``; raises ``ValueError`` if its URL is not absolute."""

        url = parse_url(bookmark.url)

        def apply(bookmarks: Bookmarks, array: AoT) -> None:
            table = tomlkit.table()
            table["url"] = url
            table["name"] = bookmark.name
            array.append(table)
            bookmarks.append(Bookmark(url=url, name=bookmark.name))

        self._with_array(apply)

    def set_url(self, index: int, url: str) -> None:
        url = parse_url(url)

        def apply(bookmarks: Bookmarks, array: AoT) -> None:
            bookmark = bookmarks[index]
            table = array[index]
            table["url"] = url
            if "name" not in table:
                # the name was derived from the old URL
                table["name"] = bookmark.name
            bookmark.url = url

        self._with_array(apply)

    def set_name(self, index: int, name: str) -> None:
        def apply(bookmarks: Bookmarks, array: AoT) -> None:
            bookmark = bookmarks[index]
            array[index]["name"] = name
            bookmark.name = name

        self._with_array(apply)

    def remove(self, index: int) -> None:
        def apply(bookmarks: Bookmarks, array: AoT) -> None:
            if not -len(bookmarks) <= index < len(bookmarks):
                raise IndexError(f"No bookmark at index {index}")
            del array[index]
            del bookmarks[index]

        self._with_array(apply)

    def clear(self) -> None:
        def apply(bookmarks: Bookmarks, document: TOMLDocument) -> None:
            if "bookmark" in document:
                del document["bookmark"]
            bookmarks.clear()

        self._apply(apply)


__all__ = ["BookmarksWriter", "PreferencesWriter"]
