"""The effects port: every platform side effect the timer can trigger.

The engine only ever talks to an :class:`EffectsPort`.  The base class
does nothing, which is what a headless run wants.  :class:`DesktopEffects`
forwards to the concrete Qt adapters (tray notifications, the sound
manager, the presentation-mode controller).

All effects are best-effort: a missing tray, a missing audio device or an
adapter that raises is logged and otherwise ignored.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class EffectsPort:
    """No-op effects.  Subclass and override what the platform supports."""

    def notify(self, title: str, body: str) -> None:
        pass

    def play_sound(self, name: str) -> None:
        pass

    def play_ambient(self, name: str) -> None:
        pass

    def stop_sound(self) -> None:
        pass

    def set_volume(self, level: int) -> None:
        pass

    def enter_presentation_mode(self) -> None:
        pass

    def exit_presentation_mode(self) -> None:
        pass


class DesktopEffects(EffectsPort):
    """Effects for the desktop app; any adapter may be ``None``."""

    def __init__(self, *, notifier=None, sounds=None, presentation=None) -> None:
        self._notifier = notifier
        self._sounds = sounds
        self._presentation = presentation

    def notify(self, title: str, body: str) -> None:
        if self._notifier is None:
            return
        if self._presentation is not None and self._presentation.notifications_suppressed:
            logger.debug("Notification %r muted by deep focus", title)
            return
        if not self._notifier.is_permitted():
            logger.debug("Notification %r skipped: permission not granted", title)
            return
        self._guard("notify", self._notifier.show, title, body)

    def play_sound(self, name: str) -> None:
        if self._sounds is not None:
            self._guard("play_sound", self._sounds.play, name)

    def play_ambient(self, name: str) -> None:
        if self._sounds is not None:
            self._guard("play_ambient", self._sounds.play_ambient, name)

    def stop_sound(self) -> None:
        if self._sounds is not None:
            self._guard("stop_sound", self._sounds.stop)

    def set_volume(self, level: int) -> None:
        if self._sounds is not None:
            self._guard("set_volume", self._sounds.set_volume, level)

    def enter_presentation_mode(self) -> None:
        if self._presentation is not None:
            self._guard("enter_presentation_mode", self._presentation.enter)

    def exit_presentation_mode(self) -> None:
        if self._presentation is not None:
            self._guard("exit_presentation_mode", self._presentation.exit)

    @staticmethod
    def _guard(label: str, fn, *args) -> None:
        try:
            fn(*args)
        except Exception:
            logger.warning("Effect %s unavailable", label, exc_info=True)
