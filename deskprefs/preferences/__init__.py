"""Application preferences: command line, persisted file and defaults merged.

Priority, highest first:

- command line options (only for settings that make sense per launch)
- ``preferences.toml`` in the configuration directory
- built-in defaults

:class:`GlobalPreferences` is cheap to copy.  Every copy shares the same two
lock-guarded documents, so a write made through one copy is seen by all.
"""
from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional, TypeVar, Union

from ..bookmarks import Bookmarks, read_bookmarks
from ..config import GraphicsBackend, PowerPreference
from ..language import LanguageIdentifier
from ..log import FilenamePattern
from ..parse import DocumentHolder, DocumentSyntaxError, ParseResult
from ..shared import ReentrancyError, SharedDocument
from .read import read_preferences
from .saved import LogPreferences, SavedGlobalPreferences, StoragePreferences
from .storage import StorageBackend
from .write import BookmarksWriter, PreferencesWriter

if TYPE_CHECKING:
    from ..cli import Opt

PREFERENCES_FILENAME = "preferences.toml"
BOOKMARKS_FILENAME = "bookmarks.toml"

V = TypeVar("V")
R = TypeVar("R")

_log = logging.getLogger(__name__)


class PreferencesError(RuntimeError):
    """Raised when preferences cannot be loaded or saved."""


def resolve(cli_value: Optional[V], persisted_value: V) -> V:
    """The command line value if one was given, else the persisted one."""

    return persisted_value if cli_value is None else cli_value


def _load_document(
    path: Path,
    what: str,
    reader: Callable[[str], ParseResult],
    default: Callable[[], object],
) -> DocumentHolder:
    if not path.exists():
        return DocumentHolder(default())
    try:
        contents = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise PreferencesError(f"Failed to read saved {what} from {path}") from exc
    try:
        parsed = reader(contents)
    except DocumentSyntaxError as exc:
        _log.warning("Ignoring saved %s in %s: %s", what, path, exc)
        return DocumentHolder(default())
    for warning in parsed.warnings:
        _log.warning("%s: %s", path.name, warning)
    return parsed.result


def _write_file(path: Path, text: str, what: str) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            tmp.unlink(missing_ok=True)
        raise PreferencesError(f"Could not write {what} to {path}") from exc


class GlobalPreferences:
    """Read surface over command line options and the persisted documents."""

    def __init__(
        self,
        cli: "Opt",
        preferences: SharedDocument[SavedGlobalPreferences],
        bookmarks: SharedDocument[Bookmarks],
    ) -> None:
        # Options of this launch; read-only, so no lock needed.
        self.cli = cli
        self._preferences = preferences
        self._bookmarks = bookmarks

    @classmethod
    def load(cls, cli: "Opt") -> "GlobalPreferences":
        """Create the configuration directory and read both documents.

        Missing files mean defaults.  Unusable fields are logged and replaced
        by their defaults.  A file that exists but cannot be read raises
        :class:`PreferencesError`.
        """

        try:
            cli.config.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PreferencesError(f"Failed to create configuration directory {cli.config}") from exc

        preferences = _load_document(
            cli.config / PREFERENCES_FILENAME, "preferences", read_preferences, SavedGlobalPreferences
        )
        bookmarks = _load_document(cli.config / BOOKMARKS_FILENAME, "bookmarks", read_bookmarks, list)
        return cls(
            cli,
            SharedDocument("Preferences", preferences),
            SharedDocument("Bookmarks", bookmarks),
        )

    def __copy__(self) -> "GlobalPreferences":
        return GlobalPreferences(self.cli, self._preferences, self._bookmarks)

    @property
    def config_dir(self) -> Path:
        return self.cli.config

    def _saved(self, fun: Callable[[SavedGlobalPreferences], V]) -> V:
        return self._preferences.read(fun)

    def graphics_backends(self) -> GraphicsBackend:
        return resolve(self.cli.graphics, self._saved(lambda p: p.graphics_backend))

    def graphics_power_preference(self) -> PowerPreference:
        return resolve(self.cli.power, self._saved(lambda p: p.graphics_power_preference))

    def language(self) -> LanguageIdentifier:
        return self._saved(lambda p: p.language)

    def output_device_name(self) -> Optional[str]:
        return self._saved(lambda p: p.output_device)

    def mute(self) -> bool:
        return self._saved(lambda p: p.mute)

    def preferred_volume(self) -> float:
        return resolve(self.cli.volume, self._saved(lambda p: p.volume))

    def log_filename_pattern(self) -> FilenamePattern:
        return self._saved(lambda p: p.log.filename_pattern)

    def storage_backend(self) -> StorageBackend:
        return resolve(self.cli.storage, self._saved(lambda p: p.storage.backend))

    def bookmarks(self, fun: Callable[[Bookmarks], R]) -> R:
        """Call ``fun`` with the bookmarks while holding their lock.

        ``fun`` must not keep the list or call back into the bookmarks.
        """

        return self._bookmarks.read(fun)

    def have_bookmarks(self) -> bool:
        """True if there is at least one bookmark that is not invalid."""

        return self._bookmarks.read(lambda items: any(not b.is_invalid() for b in items))

    def write_preferences(self, fun: Callable[[PreferencesWriter], None]) -> None:
        """Apply ``fun``'s edits and save ``preferences.toml``.

        If ``fun`` raises, none of its edits are kept.  Raises
        :class:`PreferencesError` if saving fails; the edits stay in effect in
        memory in that case.
        """

        self._write(self._preferences, PreferencesWriter, fun, PREFERENCES_FILENAME, "preferences")

    def write_bookmarks(self, fun: Callable[[BookmarksWriter], None]) -> None:
        """Apply ``fun``'s edits and save ``bookmarks.toml``."""

        self._write(self._bookmarks, BookmarksWriter, fun, BOOKMARKS_FILENAME, "bookmarks")

    def _write(
        self,
        shared: SharedDocument,
        writer_cls: Callable[[DocumentHolder], Union[PreferencesWriter, BookmarksWriter]],
        fun: Callable,
        filename: str,
        what: str,
    ) -> None:
        def edit(holder: DocumentHolder) -> Optional[str]:
            with holder.rollback_on_error():
                writer = writer_cls(holder)
                fun(writer)
            if not writer.modified:
                return None
            try:
                return holder.serialize()
            except Exception as exc:
                raise PreferencesError(f"Could not serialize {what}") from exc

        serialized, generation = shared.edit(edit)
        if serialized is None:
            return
        path = self.cli.config / filename
        if shared.save(generation, lambda: _write_file(path, serialized, what)):
            _log.debug("Saved %s to %s", what, path)


__all__ = [
    "BOOKMARKS_FILENAME",
    "BookmarksWriter",
    "GlobalPreferences",
    "LogPreferences",
    "PREFERENCES_FILENAME",
    "PreferencesError",
    "PreferencesWriter",
    "ReentrancyError",
    "SavedGlobalPreferences",
    "StorageBackend",
    "StoragePreferences",
    "read_preferences",
    "resolve",
]
