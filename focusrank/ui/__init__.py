"""UI package."""

from .timer_widget import TimerWidget
from .settings_dialog import SettingsDialog
from .presentation import PresentationModeController, PresentationOptions

__all__ = [
    "TimerWidget",
    "SettingsDialog",
    "PresentationModeController",
    "PresentationOptions",
]
