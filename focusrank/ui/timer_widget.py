"""Main timer display widget.

Layout (top → bottom):
    - Phase selector (Focus / Short Break / Long Break)
    - State label and MM:SS readout
    - Progress bar
    - Main action button row
    - Cycle dots (one per work interval before the long break)
    - Current task line
"""

from __future__ import annotations

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QPushButton, QFrame, QProgressBar, QButtonGroup,
)

from ..timer.engine import TimerEngine, TimerSnapshot, TimerState, Phase


PHASE_LABELS: dict[Phase, str] = {
    Phase.WORK:        "FOCUS TIME",
    Phase.SHORT_BREAK: "SHORT BREAK",
    Phase.LONG_BREAK:  "LONG BREAK",
}

PHASE_BUTTON_TEXT: dict[Phase, str] = {
    Phase.WORK:        "Focus",
    Phase.SHORT_BREAK: "Short Break",
    Phase.LONG_BREAK:  "Long Break",
}


def format_clock(seconds: int) -> str:
    minutes, seconds = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{seconds:02d}"


class TimerWidget(QWidget):
    """The timer card: readout plus controls, driven by the engine's signals."""

    def __init__(self, engine: TimerEngine, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._engine = engine
        self._dots: list[QLabel] = []
        self._build_ui()
        self._connect_signals()
        self._on_state_changed(engine.snapshot())

    # ── build ─────────────────────────────────────────────────────────────

    def _build_ui(self) -> None:
        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)

        card = QFrame(self)
        card.setObjectName("card")
        root.addWidget(card)

        layout = QVBoxLayout(card)
        layout.setContentsMargins(32, 24, 32, 28)
        layout.setSpacing(10)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)

        # ── phase selector ───────────────────────────────────────────
        self.phase_row = QWidget(card)
        phase_layout = QHBoxLayout(self.phase_row)
        phase_layout.setContentsMargins(0, 0, 0, 0)
        self._phase_group = QButtonGroup(self)
        self._phase_buttons: dict[Phase, QPushButton] = {}
        for phase in Phase:
            btn = QPushButton(PHASE_BUTTON_TEXT[phase], self.phase_row)
            btn.setCheckable(True)
            btn.setObjectName("phaseButton")
            self._phase_group.addButton(btn)
            self._phase_buttons[phase] = btn
            phase_layout.addWidget(btn)
        layout.addWidget(self.phase_row)

        # ── readout ──────────────────────────────────────────────────
        self._state_label = QLabel("FOCUS TIME", card)
        self._state_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._state_label.setStyleSheet("font-size: 13px; font-weight: 700; letter-spacing: 2px;")
        layout.addWidget(self._state_label)

        self._time_label = QLabel("25:00", card)
        self._time_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._time_label.setStyleSheet("font-size: 72px; font-weight: 700;")
        layout.addWidget(self._time_label)

        self._progress = QProgressBar(card)
        self._progress.setRange(0, 1000)
        self._progress.setTextVisible(False)
        layout.addWidget(self._progress)

        # ── main controls ────────────────────────────────────────────
        btn_row = QHBoxLayout()
        btn_row.setSpacing(12)
        btn_row.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self._reset_btn = QPushButton("Reset", card)
        self._reset_btn.setObjectName("dangerButton")
        self._start_pause_btn = QPushButton("Start", card)
        self._start_pause_btn.setObjectName("primaryButton")
        self._skip_btn = QPushButton("Skip", card)
        self._skip_btn.setObjectName("secondaryButton")

        btn_row.addWidget(self._reset_btn)
        btn_row.addWidget(self._start_pause_btn)
        btn_row.addWidget(self._skip_btn)
        layout.addLayout(btn_row)

        # ── cycle dots ───────────────────────────────────────────────
        self._dot_row = QHBoxLayout()
        self._dot_row.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._dot_row.setSpacing(10)
        layout.addLayout(self._dot_row)

        self._task_label = QLabel("", card)
        self._task_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._task_label.setStyleSheet("font-size: 13px;")
        layout.addWidget(self._task_label)

    # ── signals ───────────────────────────────────────────────────────────

    def _connect_signals(self) -> None:
        self._start_pause_btn.clicked.connect(self._on_start_pause)
        self._reset_btn.clicked.connect(self._engine.reset)
        self._skip_btn.clicked.connect(self._engine.skip)
        for phase, btn in self._phase_buttons.items():
            btn.clicked.connect(lambda _checked=False, p=phase: self._engine.change_timer_type(p))

        self._engine.ticked.connect(self._refresh_display)
        self._engine.state_changed.connect(self._on_state_changed)

    # ── slots ─────────────────────────────────────────────────────────────

    def _on_start_pause(self) -> None:
        state = self._engine.timer_state
        if state == TimerState.RUNNING:
            self._engine.pause()
        elif state == TimerState.PAUSED:
            self._engine.resume()
        else:
            self._engine.start()

    def _on_state_changed(self, snap: TimerSnapshot) -> None:
        state = snap.timer_state
        if state == TimerState.RUNNING:
            self._start_pause_btn.setText("Pause")
        elif state == TimerState.PAUSED:
            self._start_pause_btn.setText("Resume")
        else:
            self._start_pause_btn.setText("Start")

        label = PHASE_LABELS[snap.phase]
        if state == TimerState.PAUSED:
            label = "PAUSED"
        self._state_label.setText(label)

        # phase buttons mirror the engine; they are locked while counting
        locked = state in (TimerState.RUNNING, TimerState.PAUSED)
        for phase, btn in self._phase_buttons.items():
            btn.setChecked(phase == snap.phase)
            btn.setEnabled(not locked)
        self._reset_btn.setEnabled(state != TimerState.IDLE
                                   or snap.remaining_seconds != snap.total_seconds)

        self._update_dots(snap.cycle_position, snap.long_break_interval)

        task = snap.current_task
        if task is None:
            self._task_label.setText("")
        else:
            self._task_label.setText(
                f"{task.title}  ·  {task.completed_intervals}/{task.estimated_intervals}"
            )
        self._refresh_display(snap.remaining_seconds)

    def _update_dots(self, position: int, interval: int) -> None:
        while len(self._dots) < interval:
            dot = QLabel("○", self)
            dot.setStyleSheet("font-size: 18px;")
            self._dots.append(dot)
            self._dot_row.addWidget(dot)
        while len(self._dots) > interval:
            dot = self._dots.pop()
            dot.setParent(None)
            dot.deleteLater()
        for i, dot in enumerate(self._dots):
            dot.setText("●" if i < position else "○")

    def _refresh_display(self, remaining: int) -> None:
        self._time_label.setText(format_clock(remaining))
        done = self._engine.snapshot().percent_complete
        self._progress.setValue(int(done * 1000))

    # ── read-only accessors (used by tests) ───────────────────────────────

    @property
    def time_text(self) -> str:
        return self._time_label.text()

    @property
    def start_button_text(self) -> str:
        return self._start_pause_btn.text()

    @property
    def filled_dots(self) -> int:
        return sum(1 for dot in self._dots if dot.text() == "●")

    @property
    def progress_value(self) -> int:
        """Progress bar position, 0-1000."""
        return self._progress.value()
