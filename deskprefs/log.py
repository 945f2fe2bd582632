"""Log file naming and process-wide logging setup."""
from __future__ import annotations

import datetime as dt
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import _Choice

LOG_BASENAME = "deskprefs"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class FilenamePattern(_Choice):
    """How log files in the log directory are named."""

    SINGLE_FILE = "single_file"
    WITH_TIMESTAMP = "with_timestamp"

    @classmethod
    def default(cls) -> "FilenamePattern":
        return cls.SINGLE_FILE

    def create_path(self, directory: Path, started: Optional[dt.datetime] = None) -> Path:
        """Return the log file path for a session started at ``started``."""

        if self is FilenamePattern.WITH_TIMESTAMP:
            started = started or dt.datetime.now()
            stamp = started.strftime("%Y-%m-%d_%H-%M-%S")
            return directory / f"{LOG_BASENAME}_{stamp}.log"
        return directory / f"{LOG_BASENAME}.log"


def init_logging(directory: Path, pattern: FilenamePattern, level: int = logging.INFO) -> Optional[Path]:
    """Log to stderr and to a file in ``directory``.

    Returns the log file path, or ``None`` if the file could not be opened.
    Logging problems never stop the application.
    """

    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)

    path = pattern.create_path(directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    except OSError as exc:
        root.warning("Log file %s unavailable: %s", path, exc)
        return None
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
    return path


__all__ = ["FilenamePattern", "init_logging", "LOG_BASENAME"]
