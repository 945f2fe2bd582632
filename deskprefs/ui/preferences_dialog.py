"""Qt dialog for editing the persisted preferences."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from PySide6 import QtCore, QtWidgets

from ..config import GraphicsBackend, PowerPreference, _Choice
from ..language import LanguageIdentifier
from ..log import FilenamePattern
from ..preferences import GlobalPreferences, PreferencesWriter
from ..preferences.storage import StorageBackend

OVERRIDDEN_TOOLTIP = "Set on the command line for this launch"


@dataclass(slots=True)
class PreferenceEdits:
    """Values changed in the dialog; ``None`` means "leave as is"."""

    graphics_backend: Optional[GraphicsBackend] = None
    graphics_power_preference: Optional[PowerPreference] = None
    language: Optional[LanguageIdentifier] = None
    # ``output_device`` may itself be None (system default), so it has its own flag
    output_device_changed: bool = False
    output_device: Optional[str] = None
    mute: Optional[bool] = None
    volume: Optional[float] = None
    log_filename_pattern: Optional[FilenamePattern] = None
    storage_backend: Optional[StorageBackend] = None

    def apply(self, writer: PreferencesWriter) -> None:
        if self.graphics_backend is not None:
            writer.set_graphics_backend(self.graphics_backend)
        if self.graphics_power_preference is not None:
            writer.set_graphics_power_preference(self.graphics_power_preference)
        if self.language is not None:
            writer.set_language(self.language)
        if self.output_device_changed:
            writer.set_output_device(self.output_device)
        if self.mute is not None:
            writer.set_mute(self.mute)
        if self.volume is not None:
            writer.set_volume(self.volume)
        if self.log_filename_pattern is not None:
            writer.set_log_filename_pattern(self.log_filename_pattern)
        if self.storage_backend is not None:
            writer.set_storage_backend(self.storage_backend)


class PreferencesDialog(QtWidgets.QDialog):
    """Edit preferences; settings fixed by the command line are shown read-only."""

    def __init__(self, preferences: GlobalPreferences, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Preferences")
        self.setModal(True)
        self._preferences = preferences
        self._result: Optional[PreferenceEdits] = None
        cli = preferences.cli

        main_layout = QtWidgets.QVBoxLayout(self)
        main_layout.setContentsMargins(16, 16, 16, 16)
        main_layout.setSpacing(12)

        self._graphics = self._choice_combo(GraphicsBackend, preferences.graphics_backends(), cli.graphics)
        self._power = self._choice_combo(
            PowerPreference, preferences.graphics_power_preference(), cli.power
        )
        self._build_group(
            main_layout,
            "Graphics",
            [("Backend", self._graphics), ("Power preference", self._power)],
        )

        self._output_device = QtWidgets.QLineEdit(preferences.output_device_name() or "")
        self._output_device.setPlaceholderText("System default")
        self._mute = QtWidgets.QCheckBox("Mute")
        self._mute.setChecked(preferences.mute())
        self._volume = QtWidgets.QSlider(QtCore.Qt.Orientation.Horizontal)
        self._volume.setRange(0, 100)
        self._volume.setValue(round(preferences.preferred_volume() * 100))
        if cli.volume is not None:
            self._volume.setEnabled(False)
            self._volume.setToolTip(OVERRIDDEN_TOOLTIP)
        self._build_group(
            main_layout,
            "Audio",
            [("Output device", self._output_device), ("", self._mute), ("Volume", self._volume)],
        )

        self._language = QtWidgets.QLineEdit(str(preferences.language()))
        self._language.setPlaceholderText("en-US")
        self._log_pattern = self._choice_combo(FilenamePattern, preferences.log_filename_pattern(), None)
        self._storage = self._choice_combo(StorageBackend, preferences.storage_backend(), cli.storage)
        self._build_group(
            main_layout,
            "General",
            [("Language", self._language), ("Log files", self._log_pattern), ("Storage", self._storage)],
        )

        button_box = QtWidgets.QDialogButtonBox(
            QtWidgets.QDialogButtonBox.StandardButton.Cancel |
            QtWidgets.QDialogButtonBox.StandardButton.Ok
        )
        button_box.accepted.connect(self.accept)
        button_box.rejected.connect(self.reject)
        main_layout.addWidget(button_box)

        self._initial = self._widget_values()
        self.resize(420, 0)

    def result_edits(self) -> Optional[PreferenceEdits]:
        return self._result

    def apply(self, writer: PreferencesWriter) -> None:
        """Write callback for :meth:`GlobalPreferences.write_preferences`."""

        if self._result is not None:
            self._result.apply(writer)

    def accept(self) -> None:
        try:
            self._result = self._build_edits()
        except ValueError as exc:
            QtWidgets.QMessageBox.warning(self, "Invalid input", str(exc))
            return
        super().accept()

    @staticmethod
    def _choice_combo(
        choice: type[_Choice], current: _Choice, overridden: Optional[_Choice]
    ) -> QtWidgets.QComboBox:
        combo = QtWidgets.QComboBox()
        for member in choice:
            combo.addItem(member.value.replace("_", " ").title(), member.value)
        combo.setCurrentIndex(max(0, combo.findData(current.value)))
        if overridden is not None:
            combo.setEnabled(False)
            combo.setToolTip(OVERRIDDEN_TOOLTIP)
        return combo

    @staticmethod
    def _build_group(
        layout: QtWidgets.QVBoxLayout, title: str, rows: list[tuple[str, QtWidgets.QWidget]]
    ) -> None:
        group = QtWidgets.QGroupBox(title)
        form = QtWidgets.QFormLayout(group)
        form.setSpacing(6)
        for label, widget in rows:
            form.addRow(label, widget)
        layout.addWidget(group)

    @staticmethod
    def _selected(combo: QtWidgets.QComboBox, choice: type[_Choice]) -> Optional[_Choice]:
        if not combo.isEnabled():
            return None
        return choice(combo.currentData())

    def _widget_values(self) -> dict[str, Any]:
        language_text = self._language.text().strip()
        if not language_text:
            raise ValueError("Please provide a language, for example en-US.")
        return {
            "graphics_backend": self._selected(self._graphics, GraphicsBackend),
            "graphics_power_preference": self._selected(self._power, PowerPreference),
            "language": LanguageIdentifier.parse(language_text),
            "output_device": self._output_device.text().strip() or None,
            "mute": self._mute.isChecked(),
            "volume": self._volume.value() / 100 if self._volume.isEnabled() else None,
            "log_filename_pattern": FilenamePattern(self._log_pattern.currentData()),
            "storage_backend": self._selected(self._storage, StorageBackend),
        }

    def _build_edits(self) -> PreferenceEdits:
        """Only the values the user changed, so defaults stay out of the file."""

        changed = {
            name: value
            for name, value in self._widget_values().items()
            if value != self._initial[name]
        }
        edits = PreferenceEdits(**changed)
        edits.output_device_changed = "output_device" in changed
        return edits


__all__ = ["PreferenceEdits", "PreferencesDialog"]
