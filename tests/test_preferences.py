"""Tests for the preference store."""
from __future__ import annotations

import copy
import logging
import threading
from dataclasses import replace
from pathlib import Path

import pytest

from deskprefs.bookmarks import INVALID_URL, Bookmark
from deskprefs.cli import Opt
from deskprefs.config import GraphicsBackend, PowerPreference
from deskprefs.language import LanguageIdentifier
from deskprefs.log import FilenamePattern
from deskprefs.preferences import (
    BOOKMARKS_FILENAME,
    PREFERENCES_FILENAME,
    GlobalPreferences,
    PreferencesError,
    ReentrancyError,
    resolve,
)
from deskprefs.preferences.storage import StorageBackend

PERSISTED = """\
graphics_backend = "gl"
graphics_power_preference = "low"
volume = 0.4

[storage]
backend = "memory"
"""


def _write(config_dir: Path, name: str, text: str) -> None:
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / name).write_text(text, encoding="utf-8")


def test_resolve_prefers_cli_value() -> None:
    assert resolve(None, 3) == 3
    assert resolve(5, 3) == 5
    assert resolve(0.0, 1.0) == 0.0
    assert resolve(False, True) is False


def test_load_without_files_uses_defaults(cli: Opt, config_dir: Path) -> None:
    prefs = GlobalPreferences.load(cli)
    assert config_dir.is_dir()
    assert prefs.config_dir == config_dir
    assert prefs.graphics_backends() is GraphicsBackend.DEFAULT
    assert prefs.graphics_power_preference() is PowerPreference.HIGH
    assert prefs.preferred_volume() == 1.0
    assert prefs.storage_backend() is StorageBackend.DISK
    assert prefs.language() == LanguageIdentifier("de", region="DE")
    assert prefs.output_device_name() is None
    assert prefs.mute() is False
    assert prefs.log_filename_pattern() is FilenamePattern.SINGLE_FILE
    assert prefs.have_bookmarks() is False
    assert not (config_dir / PREFERENCES_FILENAME).exists()


def test_persisted_values_are_used_without_cli(cli: Opt, config_dir: Path) -> None:
    _write(config_dir, PREFERENCES_FILENAME, PERSISTED)
    prefs = GlobalPreferences.load(cli)
    assert prefs.graphics_backends() is GraphicsBackend.GL
    assert prefs.graphics_power_preference() is PowerPreference.LOW
    assert prefs.preferred_volume() == pytest.approx(0.4)
    assert prefs.storage_backend() is StorageBackend.MEMORY


def test_cli_overrides_persisted_values(config_dir: Path) -> None:
    _write(config_dir, PREFERENCES_FILENAME, PERSISTED)
    cli = Opt(
        config=config_dir,
        graphics=GraphicsBackend.VULKAN,
        power=PowerPreference.HIGH,
        volume=0.0,
        storage=StorageBackend.DISK,
    )
    prefs = GlobalPreferences.load(cli)
    assert prefs.graphics_backends() is GraphicsBackend.VULKAN
    assert prefs.graphics_power_preference() is PowerPreference.HIGH
    assert prefs.preferred_volume() == 0.0
    assert prefs.storage_backend() is StorageBackend.DISK


def test_cli_override_survives_writes(config_dir: Path) -> None:
    prefs = GlobalPreferences.load(Opt(config=config_dir, volume=0.2))
    prefs.write_preferences(lambda writer: writer.set_volume(0.9))
    assert prefs.preferred_volume() == 0.2

    reloaded = GlobalPreferences.load(Opt(config=config_dir))
    assert reloaded.preferred_volume() == 0.9


def test_out_of_range_volume_logs_one_warning(cli: Opt, config_dir: Path, caplog) -> None:
    _write(config_dir, PREFERENCES_FILENAME, "volume = -1.0\nmute = true\n")
    with caplog.at_level(logging.WARNING, logger="deskprefs.preferences"):
        prefs = GlobalPreferences.load(cli)
    assert prefs.preferred_volume() == 1.0
    assert prefs.mute() is True
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "volume" in warnings[0].getMessage()


def test_not_toml_falls_back_to_defaults(cli: Opt, config_dir: Path, caplog) -> None:
    _write(config_dir, PREFERENCES_FILENAME, "volume = = 0.5\n")
    with caplog.at_level(logging.WARNING, logger="deskprefs.preferences"):
        prefs = GlobalPreferences.load(cli)
    assert prefs.preferred_volume() == 1.0
    assert any("Invalid TOML" in r.getMessage() for r in caplog.records)


def test_unreadable_file_is_fatal(cli: Opt, config_dir: Path) -> None:
    config_dir.mkdir(parents=True)
    (config_dir / PREFERENCES_FILENAME).write_bytes(b"\xff\xfe\x00mute")
    with pytest.raises(PreferencesError, match="preferences"):
        GlobalPreferences.load(cli)


def test_bookmarks_path_that_is_a_directory_is_fatal(cli: Opt, config_dir: Path) -> None:
    (config_dir / BOOKMARKS_FILENAME).mkdir(parents=True)
    with pytest.raises(PreferencesError, match="bookmarks") as info:
        GlobalPreferences.load(cli)
    assert isinstance(info.value.__cause__, OSError)


def test_config_directory_creation_failure_is_fatal(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(PreferencesError, match="configuration directory"):
        GlobalPreferences.load(Opt(config=blocker / "config"))


def test_write_mute_persists(cli: Opt, config_dir: Path) -> None:
    prefs = GlobalPreferences.load(cli)
    prefs.write_preferences(lambda writer: writer.set_mute(True))
    assert prefs.mute() is True
    assert "mute = true" in (config_dir / PREFERENCES_FILENAME).read_text(encoding="utf-8")

    assert GlobalPreferences.load(cli).mute() is True


def test_write_keeps_hand_edits(cli: Opt, config_dir: Path) -> None:
    _write(config_dir, PREFERENCES_FILENAME, "# mine\nvolume = 0.4\nshiny_new_option = 3\n")
    prefs = GlobalPreferences.load(cli)
    prefs.write_preferences(lambda writer: writer.set_output_device("Headphones"))
    text = (config_dir / PREFERENCES_FILENAME).read_text(encoding="utf-8")
    assert text.startswith("# mine\n")
    assert "shiny_new_option = 3" in text
    assert 'output_device = "Headphones"' in text


def test_write_without_changes_does_not_touch_disk(cli: Opt, config_dir: Path) -> None:
    prefs = GlobalPreferences.load(cli)
    prefs.write_preferences(lambda writer: None)
    assert not (config_dir / PREFERENCES_FILENAME).exists()


def test_sequential_writes_do_not_lose_updates(cli: Opt) -> None:
    prefs = GlobalPreferences.load(cli)
    prefs.write_preferences(lambda writer: writer.set_mute(True))
    prefs.write_preferences(lambda writer: writer.set_graphics_backend("dx12"))

    reloaded = GlobalPreferences.load(cli)
    assert reloaded.mute() is True
    assert reloaded.graphics_backends() is GraphicsBackend.DX12


def test_failed_save_keeps_memory_state(cli: Opt, config_dir: Path) -> None:
    prefs = GlobalPreferences.load(cli)
    (config_dir / (PREFERENCES_FILENAME + ".tmp")).mkdir()
    with pytest.raises(PreferencesError, match="Could not write preferences"):
        prefs.write_preferences(lambda writer: writer.set_mute(True))
    assert prefs.mute() is True
    assert not (config_dir / PREFERENCES_FILENAME).exists()


def test_callback_errors_propagate(cli: Opt) -> None:
    prefs = GlobalPreferences.load(cli)
    with pytest.raises(ValueError):
        prefs.write_preferences(lambda writer: writer.set_volume(2.0))
    assert prefs.preferred_volume() == 1.0


def test_failing_callback_discards_earlier_edits(cli: Opt, config_dir: Path) -> None:
    prefs = GlobalPreferences.load(cli)
    prefs.write_preferences(lambda writer: writer.set_output_device("HDMI"))

    def edit(writer) -> None:
        writer.set_mute(True)
        writer.set_output_device(None)
        writer.set_volume(2.0)

    with pytest.raises(ValueError):
        prefs.write_preferences(edit)
    assert prefs.mute() is False
    assert prefs.output_device_name() == "HDMI"

    # the document was restored too, so the next save carries no trace of it
    prefs.write_preferences(lambda writer: writer.set_volume(0.5))
    text = (config_dir / PREFERENCES_FILENAME).read_text(encoding="utf-8")
    assert "mute" not in text
    assert 'output_device = "HDMI"' in text
    reloaded = GlobalPreferences.load(cli)
    assert reloaded.mute() is False
    assert reloaded.preferred_volume() == 0.5


def test_failing_bookmark_callback_discards_earlier_edits(cli: Opt, config_dir: Path) -> None:
    prefs = GlobalPreferences.load(cli)

    def edit(writer) -> None:
        writer.add(Bookmark("https://example.org/a.swf", "a"))
        writer.remove(3)

    with pytest.raises(IndexError):
        prefs.write_bookmarks(edit)
    assert prefs.have_bookmarks() is False
    assert prefs.bookmarks(len) == 0
    assert not (config_dir / BOOKMARKS_FILENAME).exists()


def test_failed_replace_removes_temporary_file(cli: Opt, config_dir: Path) -> None:
    prefs = GlobalPreferences.load(cli)
    (config_dir / PREFERENCES_FILENAME).mkdir()
    (config_dir / PREFERENCES_FILENAME / "blocker").write_text("", encoding="utf-8")
    with pytest.raises(PreferencesError, match="Could not write preferences"):
        prefs.write_preferences(lambda writer: writer.set_mute(True))
    assert not (config_dir / (PREFERENCES_FILENAME + ".tmp")).exists()


def test_relative_bookmark_url_is_rejected(cli: Opt) -> None:
    prefs = GlobalPreferences.load(cli)
    prefs.write_bookmarks(lambda writer: writer.add(Bookmark("https://example.org/a.swf", "a")))
    with pytest.raises(ValueError, match="absolute"):
        prefs.write_bookmarks(lambda writer: writer.set_url(0, "a.swf"))
    assert prefs.have_bookmarks() is True
    assert GlobalPreferences.load(cli).have_bookmarks() is True


def test_reentrant_write_is_rejected(cli: Opt) -> None:
    prefs = GlobalPreferences.load(cli)

    def nested(writer) -> None:
        writer.set_mute(True)
        prefs.mute()

    with pytest.raises(ReentrancyError, match="Preferences is not reentrant"):
        prefs.write_preferences(nested)
    # the guard is released again and the partial edit undone
    assert prefs.mute() is False


def test_reentrant_bookmark_read_is_rejected(cli: Opt) -> None:
    prefs = GlobalPreferences.load(cli)
    with pytest.raises(ReentrancyError, match="Bookmarks"):
        prefs.bookmarks(lambda _items: prefs.have_bookmarks())


def test_copies_share_state(cli: Opt) -> None:
    prefs = GlobalPreferences.load(cli)
    other = copy.copy(prefs)
    other.write_preferences(lambda writer: writer.set_language("it-IT"))
    assert str(prefs.language()) == "it-IT"
    assert other.cli is prefs.cli


def test_have_bookmarks(cli: Opt) -> None:
    prefs = GlobalPreferences.load(cli)
    assert prefs.have_bookmarks() is False

    prefs.write_bookmarks(lambda writer: writer.add(Bookmark(INVALID_URL, "broken")))
    assert prefs.have_bookmarks() is False

    prefs.write_bookmarks(lambda writer: writer.add(Bookmark("https://example.org/a.swf", "a")))
    assert prefs.have_bookmarks() is True


def test_bookmarks_round_trip_through_disk(cli: Opt, config_dir: Path) -> None:
    _write(
        config_dir,
        BOOKMARKS_FILENAME,
        '[[bookmark]]\nurl = "https://example.org/one.swf"\nname = "One"\n',
    )
    prefs = GlobalPreferences.load(cli)
    assert prefs.have_bookmarks() is True

    def edit(writer) -> None:
        writer.add(Bookmark("https://example.org/two.swf", "Two"))
        writer.set_name(0, "First")

    prefs.write_bookmarks(edit)

    names = GlobalPreferences.load(cli).bookmarks(lambda items: [b.name for b in items])
    assert names == ["First", "Two"]


def test_concurrent_writers_and_readers(cli: Opt) -> None:
    prefs = GlobalPreferences.load(cli)
    volumes = [round(i / 40, 3) for i in range(41)]
    seen: list[tuple[bool, float]] = []
    errors: list[BaseException] = []

    def writer_thread(values: list[float]) -> None:
        try:
            for value in values:
                def edit(writer, value=value) -> None:
                    writer.set_volume(value)
                    writer.set_mute(value > 0.5)

                prefs.write_preferences(edit)
        except BaseException as exc:  # pragma: no cover - reported below
            errors.append(exc)

    def reader_thread() -> None:
        for _ in range(200):
            seen.append(prefs._preferences.read(lambda p: (p.mute, p.volume)))

    threads = [
        threading.Thread(target=writer_thread, args=(volumes[::2],)),
        threading.Thread(target=writer_thread, args=(volumes[1::2],)),
        threading.Thread(target=reader_thread),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert errors == []
    # mute and volume are always changed together, so no reader sees a mix
    for mute, volume in seen:
        assert mute == (volume > 0.5) or (mute is False and volume == 1.0)

    final_volume = prefs.preferred_volume()
    reloaded = GlobalPreferences.load(cli)
    assert reloaded.preferred_volume() == final_volume
    assert reloaded.mute() == (final_volume > 0.5)


def test_cli_is_not_written_to_disk(config_dir: Path) -> None:
    cli = replace(Opt(config=config_dir), graphics=GraphicsBackend.METAL)
    prefs = GlobalPreferences.load(cli)
    prefs.write_preferences(lambda writer: writer.set_mute(True))
    text = (config_dir / PREFERENCES_FILENAME).read_text(encoding="utf-8")
    assert "graphics_backend" not in text
