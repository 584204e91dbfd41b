"""Settings dialog for FocusRank.

A modal dialog over the :class:`~focusrank.settings.ConfigurationStore`.
Every change is pushed through ``store.update`` at once; a value the
store refuses is reported on :attr:`SettingsDialog.message` and the
controls snap back to the stored configuration.
"""

from __future__ import annotations

import logging

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QFormLayout,
    QLabel, QSpinBox, QSlider, QCheckBox, QPushButton,
    QFrame, QWidget, QComboBox,
)

from ..audio.sounds import AMBIENT_NAMES
from ..errors import InvalidConfiguration
from ..settings import Configuration, ConfigurationStore

logger = logging.getLogger(__name__)

AMBIENT_LABELS = {
    "whitenoise": "White noise",
    "rain": "Rain",
    "waves": "Waves",
}


class SettingsDialog(QDialog):
    """Modal dialog for all user preferences.

    Signals
    -------
    message(text: str)
        A change was refused; *text* says why.
    """

    message = pyqtSignal(str)

    def __init__(
        self,
        store: ConfigurationStore,
        parent: QWidget | None = None,
        *,
        premium: bool = False,
        sound_preview_callback: callable | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setMinimumWidth(420)
        self.setModal(True)

        self._store = store
        self._premium = premium
        self._sound_preview = sound_preview_callback
        self._populating = False

        self._build_ui()
        self._populate(store.config)

    # ══════════════════════════════════════════════════════════════════
    #  BUILD UI
    # ══════════════════════════════════════════════════════════════════

    def _build_ui(self) -> None:
        root = QVBoxLayout(self)
        root.setContentsMargins(24, 20, 24, 20)
        root.setSpacing(16)

        # ── Timer section ────────────────────────────────────────────
        root.addWidget(self._section_label("Timer"))
        timer_form = self._form()

        self._work_spin = self._minutes_spin(1, 120)
        timer_form.addRow("Work duration:", self._work_spin)
        self._short_spin = self._minutes_spin(1, 60)
        timer_form.addRow("Short break:", self._short_spin)
        self._long_spin = self._minutes_spin(1, 120)
        timer_form.addRow("Long break:", self._long_spin)

        self._interval_spin = QSpinBox()
        self._interval_spin.setRange(2, 12)
        timer_form.addRow("Long break every:", self._interval_spin)

        self._auto_breaks_cb = QCheckBox("Auto-start breaks")
        timer_form.addRow("", self._auto_breaks_cb)
        self._auto_work_cb = QCheckBox("Auto-start work intervals")
        timer_form.addRow("", self._auto_work_cb)
        self._notif_cb = QCheckBox("Desktop notifications")
        timer_form.addRow("", self._notif_cb)

        root.addLayout(timer_form)
        root.addWidget(self._separator())

        # ── Premium section ──────────────────────────────────────────
        root.addWidget(self._section_label("Premium"))
        premium_form = self._form()

        self._sound_cb = QCheckBox("Sounds")
        premium_form.addRow("", self._sound_cb)

        self._ambient_combo = QComboBox()
        self._ambient_combo.addItem("None", None)
        for name in AMBIENT_NAMES:
            self._ambient_combo.addItem(AMBIENT_LABELS.get(name, name), name)
        premium_form.addRow("Ambient sound:", self._ambient_combo)

        vol_row = QHBoxLayout()
        vol_row.setSpacing(10)
        self._vol_slider = QSlider(Qt.Orientation.Horizontal)
        self._vol_slider.setRange(0, 100)
        self._vol_slider.setTickInterval(10)
        self._vol_label = QLabel("70%")
        self._vol_label.setMinimumWidth(36)
        vol_row.addWidget(self._vol_slider)
        vol_row.addWidget(self._vol_label)
        vol_wrapper = QWidget()
        vol_wrapper.setLayout(vol_row)
        premium_form.addRow("Volume:", vol_wrapper)

        self._dim_cb = QCheckBox("Dim the interface in deep focus")
        premium_form.addRow("", self._dim_cb)
        self._mute_cb = QCheckBox("Mute notifications in deep focus")
        premium_form.addRow("", self._mute_cb)
        self._hide_cb = QCheckBox("Hide other elements in deep focus")
        premium_form.addRow("", self._hide_cb)
        self._fullscreen_cb = QCheckBox("Go full screen in deep focus")
        premium_form.addRow("", self._fullscreen_cb)

        root.addLayout(premium_form)

        self._premium_widgets = (
            self._sound_cb, self._ambient_combo, self._vol_slider,
            self._dim_cb, self._mute_cb, self._hide_cb, self._fullscreen_cb,
        )
        for widget in self._premium_widgets:
            widget.setEnabled(self._premium)
        if not self._premium:
            hint = QLabel("Upgrade to premium to unlock sounds and deep focus.")
            hint.setStyleSheet("font-size: 12px;")
            root.addWidget(hint)

        # ── close button ─────────────────────────────────────────────
        root.addStretch()
        btn_row = QHBoxLayout()
        btn_row.addStretch()
        close_btn = QPushButton("Close")
        close_btn.setObjectName("secondaryButton")
        close_btn.clicked.connect(self.accept)
        btn_row.addWidget(close_btn)
        root.addLayout(btn_row)

        self._connect_controls()

    def _connect_controls(self) -> None:
        self._work_spin.valueChanged.connect(lambda v: self._apply(work_minutes=v))
        self._short_spin.valueChanged.connect(lambda v: self._apply(short_break_minutes=v))
        self._long_spin.valueChanged.connect(lambda v: self._apply(long_break_minutes=v))
        self._interval_spin.valueChanged.connect(lambda v: self._apply(long_break_interval=v))
        self._auto_breaks_cb.toggled.connect(lambda v: self._apply(auto_start_breaks=v))
        self._auto_work_cb.toggled.connect(lambda v: self._apply(auto_start_work=v))
        self._notif_cb.toggled.connect(lambda v: self._apply(notifications_enabled=v))
        self._sound_cb.toggled.connect(lambda v: self._apply(sound_enabled=v))
        self._ambient_combo.currentIndexChanged.connect(
            lambda i: self._apply(current_sound=self._ambient_combo.itemData(i))
        )
        self._vol_slider.valueChanged.connect(self._on_volume_changed)
        self._vol_slider.sliderReleased.connect(self._on_volume_released)
        self._dim_cb.toggled.connect(lambda v: self._apply(dim_interface=v))
        self._mute_cb.toggled.connect(lambda v: self._apply(mute_notifications=v))
        self._hide_cb.toggled.connect(lambda v: self._apply(hide_elements=v))
        self._fullscreen_cb.toggled.connect(lambda v: self._apply(fullscreen=v))

    # ── helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _form() -> QFormLayout:
        form = QFormLayout()
        form.setContentsMargins(0, 0, 0, 0)
        form.setHorizontalSpacing(20)
        form.setVerticalSpacing(10)
        return form

    @staticmethod
    def _minutes_spin(low: int, high: int) -> QSpinBox:
        spin = QSpinBox()
        spin.setRange(low, high)
        spin.setSuffix(" min")
        return spin

    @staticmethod
    def _section_label(text: str) -> QLabel:
        lbl = QLabel(text)
        lbl.setStyleSheet("font-size: 15px; font-weight: 700; margin-top: 4px;")
        return lbl

    @staticmethod
    def _separator() -> QFrame:
        line = QFrame()
        line.setFrameShape(QFrame.Shape.HLine)
        line.setFixedHeight(1)
        line.setStyleSheet("background-color: rgba(255,255,255,0.08);")
        return line

    # ══════════════════════════════════════════════════════════════════
    #  POPULATE FROM CONFIGURATION
    # ══════════════════════════════════════════════════════════════════

    def _populate(self, c: Configuration) -> None:
        self._populating = True
        try:
            self._work_spin.setValue(c.work_minutes)
            self._short_spin.setValue(c.short_break_minutes)
            self._long_spin.setValue(c.long_break_minutes)
            self._interval_spin.setValue(c.long_break_interval)
            self._auto_breaks_cb.setChecked(c.auto_start_breaks)
            self._auto_work_cb.setChecked(c.auto_start_work)
            self._notif_cb.setChecked(c.notifications_enabled)
            self._sound_cb.setChecked(c.sound_enabled)
            index = self._ambient_combo.findData(c.current_sound)
            self._ambient_combo.setCurrentIndex(max(index, 0))
            self._vol_slider.setValue(c.sound_volume)
            self._vol_label.setText(f"{c.sound_volume}%")
            self._dim_cb.setChecked(c.dim_interface)
            self._mute_cb.setChecked(c.mute_notifications)
            self._hide_cb.setChecked(c.hide_elements)
            self._fullscreen_cb.setChecked(c.fullscreen)
        finally:
            self._populating = False

    # ══════════════════════════════════════════════════════════════════
    #  CHANGE HANDLERS — applied immediately
    # ══════════════════════════════════════════════════════════════════

    def _apply(self, **changes) -> None:
        if self._populating:
            return
        try:
            self._store.update(**changes)
        except InvalidConfiguration as exc:
            logger.info("Settings change refused: %s", exc)
            self.message.emit(str(exc))
            self._populate(self._store.config)

    def _on_volume_changed(self, value: int) -> None:
        self._vol_label.setText(f"{value}%")
        self._apply(sound_volume=value)

    def _on_volume_released(self) -> None:
        """Play a click when the user releases the volume slider."""
        if self._sound_preview:
            self._sound_preview()

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC
    # ══════════════════════════════════════════════════════════════════

    @property
    def configuration(self) -> Configuration:
        return self._store.config
