"""Command line options."""
from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

import platformdirs

from .config import GraphicsBackend, PowerPreference, _expand
from .preferences.storage import StorageBackend

APP_NAME = "deskprefs"


def default_config_dir() -> Path:
    return Path(platformdirs.user_config_dir(APP_NAME, appauthor=False))


def _volume(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid volume: {raw!r}") from None
    if not 0.0 <= value <= 1.0:
        raise argparse.ArgumentTypeError(f"volume must be between 0 and 1, got {raw}")
    return value


@dataclass(frozen=True, slots=True)
class Opt:
    """Options given for this launch only; never written back to disk."""

    config: Path = field(default_factory=default_config_dir)
    graphics: Optional[GraphicsBackend] = None
    power: Optional[PowerPreference] = None
    volume: Optional[float] = None
    storage: Optional[StorageBackend] = None
    list_bookmarks: bool = False


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=APP_NAME, description="Desktop player preferences")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Directory holding preferences.toml and bookmarks.toml",
    )
    parser.add_argument(
        "--graphics",
        choices=GraphicsBackend.choices(),
        default=None,
        help="Graphics backend for this launch",
    )
    parser.add_argument(
        "--power",
        choices=PowerPreference.choices(),
        default=None,
        help="GPU power preference for this launch",
    )
    parser.add_argument("--volume", type=_volume, default=None, help="Initial volume between 0 and 1")
    parser.add_argument(
        "--storage",
        choices=StorageBackend.choices(),
        default=None,
        help="Local storage backend for this launch",
    )
    parser.add_argument("--list-bookmarks", action="store_true", help="Print bookmarks and exit")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> Opt:
    args = build_arg_parser().parse_args(argv)
    return Opt(
        config=_expand(args.config) or default_config_dir(),
        graphics=GraphicsBackend(args.graphics) if args.graphics else None,
        power=PowerPreference(args.power) if args.power else None,
        volume=args.volume,
        storage=StorageBackend(args.storage) if args.storage else None,
        list_bookmarks=args.list_bookmarks,
    )


__all__ = ["APP_NAME", "Opt", "build_arg_parser", "default_config_dir", "parse_args"]
