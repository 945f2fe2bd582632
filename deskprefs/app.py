"""Startpunkt: Einstellungen laden und bearbeiten."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import platformdirs
from PySide6 import QtWidgets

from .bookmarks import Bookmarks
from .cli import APP_NAME, parse_args
from .log import init_logging
from .preferences import GlobalPreferences, PreferencesError
from .ui import PreferencesDialog

_log = logging.getLogger(__name__)


def default_log_dir() -> Path:
    return Path(platformdirs.user_log_dir(APP_NAME, appauthor=False))


def print_bookmarks(bookmarks: Bookmarks) -> None:
    if not bookmarks:
        print("No bookmarks.")
        return
    for index, bookmark in enumerate(bookmarks):
        marker = " (invalid)" if bookmark.is_invalid() else ""
        print(f"{index:>3}  {bookmark.name}\t{bookmark.url}{marker}")


def main(argv: Optional[list[str]] = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    cli = parse_args(argv)

    try:
        preferences = GlobalPreferences.load(cli)
    except PreferencesError as exc:
        print(f"{APP_NAME}: {exc}: {exc.__cause__}", file=sys.stderr)
        return 1

    init_logging(default_log_dir(), preferences.log_filename_pattern())
    _log.info(
        "Using %s graphics (%s power), %s storage",
        preferences.graphics_backends(),
        preferences.graphics_power_preference(),
        preferences.storage_backend(),
    )

    if cli.list_bookmarks:
        preferences.bookmarks(print_bookmarks)
        return 0

    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication(sys.argv[:1])
    app.setApplicationName(APP_NAME)
    dialog = PreferencesDialog(preferences)
    if not dialog.exec():
        return 0
    try:
        preferences.write_preferences(dialog.apply)
    except PreferencesError as exc:
        _log.error("%s", exc, exc_info=exc)
        QtWidgets.QMessageBox.critical(None, "Preferences", f"{exc}\n\n{exc.__cause__}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
