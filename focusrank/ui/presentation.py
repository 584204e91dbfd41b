"""Deep-focus presentation mode for the main window.

Entering the mode applies a set of reversible changes to the window:
hide chrome, dim surrounding widgets, go full screen, mute
notifications.  Each applied change pushes its own undo onto a stack, and
leaving the mode pops the stack, so the window ends up exactly as it was
even if the options changed in between.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from PyQt6.QtCore import QObject, pyqtSignal
from PyQt6.QtWidgets import QApplication, QGraphicsOpacityEffect, QMainWindow, QWidget

logger = logging.getLogger(__name__)

DIM_OPACITY = 0.35


@dataclass(frozen=True)
class PresentationOptions:
    dim_interface: bool = True
    mute_notifications: bool = True
    hide_elements: bool = True
    fullscreen: bool = False

    @classmethod
    def from_configuration(cls, config) -> "PresentationOptions":
        return cls(
            dim_interface=config.dim_interface,
            mute_notifications=config.mute_notifications,
            hide_elements=config.hide_elements,
            fullscreen=config.fullscreen,
        )


class PresentationModeController(QObject):
    """Applies and reverts presentation mode on *window*.

    Signals
    -------
    entered()
    exited()
    """

    entered = pyqtSignal()
    exited = pyqtSignal()

    def __init__(
        self,
        window: QWidget,
        parent: QObject | None = None,
        *,
        enabled: bool = True,
        options: PresentationOptions | None = None,
    ) -> None:
        super().__init__(parent)
        self._window = window
        self._enabled = enabled
        self._options = options or PresentationOptions()
        self._chrome: list[QWidget] = []
        self._surrounding: list[QWidget] = []
        self._undo: list[tuple[str, callable]] = []
        self._active = False
        self._muted = False

        app = QApplication.instance()
        if app is not None:
            app.aboutToQuit.connect(self.close)

    # ── registration ──────────────────────────────────────────────────

    def register_chrome(self, *widgets: QWidget) -> None:
        """Widgets hidden while the mode is active (toolbars, pickers...)."""
        self._chrome.extend(widgets)

    def register_surrounding(self, *widgets: QWidget) -> None:
        """Widgets dimmed while the mode is active."""
        self._surrounding.extend(widgets)

    # ── state ─────────────────────────────────────────────────────────

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value
        if not value:
            self.exit()

    @property
    def options(self) -> PresentationOptions:
        return self._options

    def set_options(self, options: PresentationOptions) -> None:
        """Takes effect the next time the mode is entered."""
        self._options = options

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def notifications_suppressed(self) -> bool:
        return self._muted

    # ══════════════════════════════════════════════════════════════════
    #  ENTER / EXIT
    # ══════════════════════════════════════════════════════════════════

    def enter(self) -> None:
        if self._active:
            return
        if not self._enabled:
            logger.info("Presentation mode is disabled on this platform")
            return

        opts = self._options
        if opts.hide_elements:
            self._hide_chrome()
        if opts.dim_interface:
            self._dim_surrounding()
        if opts.fullscreen:
            self._go_fullscreen()
        if opts.mute_notifications:
            self._muted = True
            self._undo.append(("mute", self._unmute))

        self._active = True
        logger.info("Presentation mode on (%d change(s))", len(self._undo))
        self.entered.emit()

    def exit(self) -> None:
        if not self._active:
            return
        while self._undo:
            label, undo = self._undo.pop()
            try:
                undo()
            except RuntimeError:
                # the widget was already deleted by Qt
                logger.debug("Undo %s skipped", label, exc_info=True)
        self._active = False
        logger.info("Presentation mode off")
        self.exited.emit()

    def close(self) -> None:
        """Leave the mode before teardown."""
        self.exit()

    # ── individual changes ────────────────────────────────────────────

    def _hide_chrome(self) -> None:
        targets = list(self._chrome)
        if isinstance(self._window, QMainWindow):
            targets.append(self._window.menuBar())
            targets.append(self._window.statusBar())
        for widget in targets:
            if widget is None or not widget.isVisibleTo(self._window):
                continue
            widget.hide()
            self._undo.append(("show", widget.show))

    def _dim_surrounding(self) -> None:
        for widget in self._surrounding:
            # setGraphicsEffect would destroy an existing effect
            if widget.graphicsEffect() is not None:
                continue
            effect = QGraphicsOpacityEffect(widget)
            effect.setOpacity(DIM_OPACITY)
            widget.setGraphicsEffect(effect)
            self._undo.append(("undim", lambda w=widget: w.setGraphicsEffect(None)))

    def _go_fullscreen(self) -> None:
        if self._window.isFullScreen():
            return
        was_maximized = self._window.isMaximized()
        self._window.showFullScreen()
        restore = self._window.showMaximized if was_maximized else self._window.showNormal
        self._undo.append(("fullscreen", restore))

    def _unmute(self) -> None:
        self._muted = False
