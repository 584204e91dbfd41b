"""Main application window for FocusRank.

Builds the object graph once:

    PersistenceService ─┐
    FocusTimeGate ──────┴─> Outbox ─> ConfigurationStore
                                  ├─> SessionRecorder ─┐
                                  └─> TaskLinkage ─────┴─> TimerEngine <─ DesktopEffects

and lays the timer widget, task picker and deep-focus toggle over it.
"""

from __future__ import annotations

import logging

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QIcon, QImage, QPainter, QPen, QColor, QPixmap, QKeySequence
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QComboBox, QPushButton, QMessageBox, QSystemTrayIcon, QMenu,
    QInputDialog, QApplication,
)

from .anticheat import FocusTimeGate
from .audio.sounds import SoundManager
from .database.service import PersistenceService
from .effects import DesktopEffects
from .notifications import TrayNotifier
from .sessions import SessionRecorder
from .settings import ConfigurationStore
from .sync.outbox import Outbox
from .tasks import TaskLinkage, TaskRef
from .timer.engine import TimerEngine, TimerSnapshot, TimerState, Phase
from .ui.presentation import PresentationModeController, PresentationOptions
from .ui.timer_widget import TimerWidget, format_clock

logger = logging.getLogger(__name__)

TOAST_MS = 5000


# ── tray‑icon image generation ────────────────────────────────────────────


def _make_tray_icon(state: TimerState, phase: Phase) -> QIcon:
    """Generate a 32×32 monochrome template icon for the menu bar.

    - IDLE:            thin circle outline
    - RUNNING (work):  filled circle
    - RUNNING (break): circle outline with a centre dot
    - PAUSED:          two vertical pause bars
    """
    size = 64  # drawn at 2× for Retina
    img = QImage(size, size, QImage.Format.Format_ARGB32_Premultiplied)
    img.fill(Qt.GlobalColor.transparent)
    p = QPainter(img)
    p.setRenderHint(QPainter.RenderHint.Antialiasing)
    colour = QColor(0, 0, 0, 220)
    cx, cy, r = size // 2, size // 2, size // 2 - 4

    if state == TimerState.PAUSED:
        p.setPen(Qt.PenStyle.NoPen)
        p.setBrush(colour)
        bar_w, bar_h, gap = 8, 28, 6
        y = cy - bar_h // 2
        p.drawRoundedRect(cx - gap - bar_w, y, bar_w, bar_h, 3, 3)
        p.drawRoundedRect(cx + gap, y, bar_w, bar_h, 3, 3)
    elif state == TimerState.RUNNING and phase == Phase.WORK:
        p.setPen(Qt.PenStyle.NoPen)
        p.setBrush(colour)
        p.drawEllipse(cx - r, cy - r, r * 2, r * 2)
    else:
        p.setPen(QPen(colour, 4))
        p.setBrush(Qt.BrushStyle.NoBrush)
        p.drawEllipse(cx - r, cy - r, r * 2, r * 2)
        if state == TimerState.RUNNING:
            p.setPen(Qt.PenStyle.NoPen)
            p.setBrush(colour)
            p.drawEllipse(cx - 6, cy - 6, 12, 12)

    p.end()
    img.setDevicePixelRatio(2.0)
    return QIcon(QPixmap.fromImage(img))


class FocusRankApp(QMainWindow):
    """Main application window."""

    def __init__(self, service: PersistenceService | None = None) -> None:
        super().__init__()
        self.setWindowTitle("FocusRank")
        self.setMinimumSize(460, 560)

        # ── backend ───────────────────────────────────────────────────
        self._service = service or PersistenceService()
        self._gate = FocusTimeGate()
        self._outbox = Outbox.for_backend(self._service, self._gate, parent=self)

        self._config_store = ConfigurationStore(
            self, service=self._service, outbox=self._outbox,
        )
        self._config_store.load()
        self._recorder = SessionRecorder(self._outbox, parent=self)
        self._tasks = TaskLinkage(self._outbox, parent=self)

        # ── system tray + notifications ───────────────────────────────
        self._tray_icon = QSystemTrayIcon(self)
        self._tray_icon.setIcon(_make_tray_icon(TimerState.IDLE, Phase.WORK))
        self._tray_icon.setToolTip("FocusRank — Ready")
        self._tray_icon.activated.connect(self._on_tray_activated)
        self._tray_icon.show()
        self._notifier = TrayNotifier(self._tray_icon)
        self._notifier.request_permission()

        # ── sound + presentation ──────────────────────────────────────
        self._sound_manager = SoundManager(parent=self)
        self._sound_manager.set_volume(self._config_store.config.sound_volume)
        self._presentation = PresentationModeController(
            self, parent=self,
            options=PresentationOptions.from_configuration(self._config_store.config),
        )
        effects = DesktopEffects(
            notifier=self._notifier,
            sounds=self._sound_manager,
            presentation=self._presentation,
        )

        # ── engine ────────────────────────────────────────────────────
        self._engine = TimerEngine(
            self._config_store, self,
            recorder=self._recorder, tasks=self._tasks, effects=effects,
        )
        self._engine.set_premium(self._load_premium())

        # ── central widget ────────────────────────────────────────────
        central = QWidget()
        self.setCentralWidget(central)
        root = QVBoxLayout(central)
        root.setContentsMargins(16, 12, 16, 12)
        root.setSpacing(8)

        self._task_bar = QWidget(central)
        task_row = QHBoxLayout(self._task_bar)
        task_row.setContentsMargins(0, 0, 0, 0)
        self._task_combo = QComboBox(self._task_bar)
        self._task_combo.currentIndexChanged.connect(self._on_task_selected)
        new_task_btn = QPushButton("New task", self._task_bar)
        new_task_btn.setObjectName("secondaryButton")
        new_task_btn.clicked.connect(self._new_task)
        task_row.addWidget(self._task_combo, 1)
        task_row.addWidget(new_task_btn)
        root.addWidget(self._task_bar)

        self._timer_widget = TimerWidget(self._engine, central)
        root.addWidget(self._timer_widget, 1)

        self._deep_focus_btn = QPushButton("Deep focus", central)
        self._deep_focus_btn.setCheckable(True)
        self._deep_focus_btn.setObjectName("secondaryButton")
        self._deep_focus_btn.toggled.connect(self._on_deep_focus_toggled)
        root.addWidget(self._deep_focus_btn, alignment=Qt.AlignmentFlag.AlignCenter)

        self._presentation.register_chrome(self._task_bar, self._timer_widget.phase_row)
        self._presentation.register_surrounding(self._deep_focus_btn)

        self._status_bar = self.statusBar()
        self._build_tray_menu()
        self._build_menu_bar()

        self._connect_signals()
        self._refresh_tasks()

    # ══════════════════════════════════════════════════════════════════
    #  WIRING
    # ══════════════════════════════════════════════════════════════════

    def _connect_signals(self) -> None:
        self._engine.state_changed.connect(self._on_state_changed)
        self._engine.ticked.connect(self._on_tick)
        self._engine.transition_rejected.connect(self._toast)

        self._recorder.persistence_failed.connect(self._toast)
        self._recorder.focus_time_rejected.connect(
            lambda reason: self._toast(f"Focus time not credited: {reason}")
        )
        self._tasks.tasks_changed.connect(lambda _task: self._refresh_tasks())
        self._tasks.task_update_failed.connect(self._toast)
        self._config_store.update_failed.connect(self._toast)
        self._config_store.changed.connect(self._on_configuration_changed)

    def _load_premium(self) -> bool:
        try:
            return self._service.is_premium()
        except Exception:
            logger.exception("Could not read premium status")
            return False

    def _toast(self, message: str) -> None:
        self._status_bar.showMessage(message, TOAST_MS)

    # ══════════════════════════════════════════════════════════════════
    #  TASKS
    # ══════════════════════════════════════════════════════════════════

    def _refresh_tasks(self) -> None:
        current = self._engine.current_task
        try:
            rows = self._service.list_tasks(include_completed=False)
        except Exception:
            logger.exception("Could not load tasks")
            self._toast("Could not load tasks")
            return

        self._task_combo.blockSignals(True)
        self._task_combo.clear()
        self._task_combo.addItem("No task", None)
        for row in rows:
            ref = TaskRef.from_row(row)
            self._task_combo.addItem(
                f"{ref.title} ({ref.completed_intervals}/{ref.estimated_intervals})", ref,
            )
            if current is not None and ref.id == current.id:
                self._task_combo.setCurrentIndex(self._task_combo.count() - 1)
        self._task_combo.blockSignals(False)

    def _on_task_selected(self, index: int) -> None:
        self._engine.set_current_task(self._task_combo.itemData(index))

    def _new_task(self) -> None:
        title, ok = QInputDialog.getText(self, "New task", "What are you working on?")
        if not ok or not title.strip():
            return
        estimate, ok = QInputDialog.getInt(
            self, "New task", "Estimated intervals:", 1, 1, 50,
        )
        if not ok:
            return
        row = self._service.create_task(title.strip(), estimated_intervals=estimate)
        self._engine.set_current_task(TaskRef.from_row(row))
        self._refresh_tasks()

    # ══════════════════════════════════════════════════════════════════
    #  SYSTEM TRAY
    # ══════════════════════════════════════════════════════════════════

    def _build_tray_menu(self) -> None:
        menu = QMenu(self)
        self._tray_start_action = menu.addAction("Start")
        self._tray_start_action.triggered.connect(self._toggle_start)
        skip_action = menu.addAction("Skip")
        skip_action.triggered.connect(self._engine.skip)
        menu.addSeparator()
        show_action = menu.addAction("Show FocusRank")
        show_action.triggered.connect(self._show_window)
        menu.addSeparator()
        quit_action = menu.addAction("Quit")
        quit_action.triggered.connect(self._quit_with_confirm)
        self._tray_icon.setContextMenu(menu)

    def _on_tray_activated(self, reason: QSystemTrayIcon.ActivationReason) -> None:
        if reason == QSystemTrayIcon.ActivationReason.Trigger:
            self._show_window()

    def _show_window(self) -> None:
        self.show()
        self.raise_()
        self.activateWindow()

    # ══════════════════════════════════════════════════════════════════
    #  NATIVE MENU BAR
    # ══════════════════════════════════════════════════════════════════

    def _build_menu_bar(self) -> None:
        menu_bar = self.menuBar()

        prefs_action = QAction("Preferences…", self)
        prefs_action.setMenuRole(QAction.MenuRole.PreferencesRole)
        prefs_action.setShortcut(QKeySequence("Ctrl+,"))
        prefs_action.triggered.connect(self._open_settings)

        quit_action = QAction("Quit FocusRank", self)
        quit_action.setMenuRole(QAction.MenuRole.QuitRole)
        quit_action.triggered.connect(self._quit_with_confirm)

        app_menu = menu_bar.addMenu("FocusRank")
        app_menu.addAction(prefs_action)
        app_menu.addAction(quit_action)

        timer_menu = menu_bar.addMenu("Timer")
        for phase, text in (
            (Phase.WORK, "Focus"),
            (Phase.SHORT_BREAK, "Short Break"),
            (Phase.LONG_BREAK, "Long Break"),
        ):
            action = QAction(text, self)
            action.triggered.connect(lambda _checked=False, p=phase: self._engine.change_timer_type(p))
            timer_menu.addAction(action)
        timer_menu.addSeparator()
        reset_action = QAction("Reset", self)
        reset_action.triggered.connect(self._engine.reset)
        timer_menu.addAction(reset_action)

    # ══════════════════════════════════════════════════════════════════
    #  ENGINE CALLBACKS
    # ══════════════════════════════════════════════════════════════════

    def _on_state_changed(self, snap: TimerSnapshot) -> None:
        self._tray_icon.setIcon(_make_tray_icon(snap.timer_state, snap.phase))
        if snap.timer_state == TimerState.RUNNING:
            self._tray_start_action.setText("Pause")
        elif snap.timer_state == TimerState.PAUSED:
            self._tray_start_action.setText("Resume")
        else:
            self._tray_start_action.setText("Start")
            self._tray_icon.setToolTip("FocusRank — Ready")

        self._deep_focus_btn.setVisible(snap.is_premium)
        self._deep_focus_btn.blockSignals(True)
        self._deep_focus_btn.setChecked(snap.deep_focus_mode)
        self._deep_focus_btn.blockSignals(False)

    def _on_tick(self, remaining: int) -> None:
        self._tray_icon.setToolTip(f"FocusRank — {format_clock(remaining)}")

    def _on_deep_focus_toggled(self, checked: bool) -> None:
        if not self._engine.set_deep_focus_mode(checked):
            self._deep_focus_btn.blockSignals(True)
            self._deep_focus_btn.setChecked(self._engine.deep_focus_mode)
            self._deep_focus_btn.blockSignals(False)

    def _on_configuration_changed(self, config) -> None:
        self._presentation.set_options(PresentationOptions.from_configuration(config))

    # ══════════════════════════════════════════════════════════════════
    #  SETTINGS
    # ══════════════════════════════════════════════════════════════════

    def _open_settings(self) -> None:
        from .ui.settings_dialog import SettingsDialog

        def _preview_click():
            self._sound_manager.set_volume(self._config_store.config.sound_volume)
            self._sound_manager.play("click")

        dlg = SettingsDialog(
            self._config_store,
            parent=self,
            premium=self._engine.is_premium,
            sound_preview_callback=_preview_click,
        )
        dlg.message.connect(self._toast)
        dlg.exec()

    # ══════════════════════════════════════════════════════════════════
    #  KEYBOARD + WINDOW EVENTS
    # ══════════════════════════════════════════════════════════════════

    def _toggle_start(self) -> None:
        state = self._engine.timer_state
        if state == TimerState.RUNNING:
            self._engine.pause()
        elif state == TimerState.PAUSED:
            self._engine.resume()
        else:
            self._engine.start()

    def _quit_with_confirm(self) -> None:
        """Quit, but ask first if a timer is running."""
        if self._engine.timer_state in (TimerState.RUNNING, TimerState.PAUSED):
            reply = QMessageBox.question(
                self,
                "Quit FocusRank?",
                "A timer is still running. Quit anyway?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
                QMessageBox.StandardButton.No,
            )
            if reply != QMessageBox.StandardButton.Yes:
                return
        self.close()
        QApplication.instance().quit()

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._engine.shutdown()
        self._outbox.drain()
        self._tray_icon.hide()
        event.accept()

    def keyPressEvent(self, event) -> None:  # type: ignore[override]
        """Space starts/pauses, Escape resets."""
        key = event.key()
        if key == Qt.Key.Key_Space and not event.modifiers():
            self._toggle_start()
            event.accept()
            return
        if key == Qt.Key.Key_Escape:
            if self._engine.deep_focus_mode:
                self._engine.set_deep_focus_mode(False)
            else:
                self._engine.reset()
            event.accept()
            return
        super().keyPressEvent(event)
