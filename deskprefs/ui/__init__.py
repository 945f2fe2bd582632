"""Qt user interface."""

from .preferences_dialog import PreferenceEdits, PreferencesDialog

__all__ = ["PreferenceEdits", "PreferencesDialog"]
