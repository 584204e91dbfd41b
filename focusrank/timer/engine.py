"""Timer state machine for FocusRank.

Phase and timer state are orthogonal:

Phase          WORK | SHORT_BREAK | LONG_BREAK — what is being timed.
TimerState     IDLE | RUNNING | PAUSED | FINISHED — whether it is counting.

Transitions
-----------
IDLE → RUNNING                 (start)
RUNNING → PAUSED               (pause)
PAUSED → RUNNING               (resume)
any → IDLE                     (reset / skip)
IDLE → IDLE, new phase         (change_timer_type; refused while RUNNING/PAUSED)
RUNNING → FINISHED → IDLE      (countdown reaches 0; next phase selected)

Cycle
-----
``cycle_position`` counts completed work intervals since the last long
break.  A work completion moves it to ``position + 1`` and picks a long
break when that reaches ``long_break_interval``; the position drops back
to 0 only once the long break itself completes.  The decision is made
purely on the count, so shrinking the interval mid-cycle makes the very
next work completion a long break.

Side effects
------------
The engine never waits on the backend.  Session records, task credits and
focus-time reports go out as intents through the collaborators
(:class:`~focusrank.sessions.SessionRecorder`,
:class:`~focusrank.tasks.TaskLinkage`), and notifications, sounds and
presentation mode go through an :class:`~focusrank.effects.EffectsPort`.
Failures come back on the collaborators' own signals; in-memory state is
never rolled back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from PyQt6.QtCore import QObject, pyqtSignal

from ..effects import EffectsPort
from ..settings import Configuration, ConfigurationStore
from ..tasks import TaskRef
from .scheduler import QtScheduler

logger = logging.getLogger(__name__)


# ── enums ─────────────────────────────────────────────────────────────────


class Phase(Enum):
    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"


class TimerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


# ── constants ─────────────────────────────────────────────────────────────

AUTO_START_DELAY_MS = 1500  # lets completion side effects settle first

COMPLETION_MESSAGES: dict[Phase, tuple[str, str]] = {
    Phase.WORK: ("Work session completed!", "Time for a break!"),
    Phase.SHORT_BREAK: ("Break completed!", "Ready to get back to work?"),
    Phase.LONG_BREAK: ("Break completed!", "Ready to get back to work?"),
}

COMPLETION_SOUNDS: dict[Phase, str] = {
    Phase.WORK: "work_complete",
    Phase.SHORT_BREAK: "break_complete",
    Phase.LONG_BREAK: "break_complete",
}


@dataclass(frozen=True)
class TimerSnapshot:
    """Everything the UI needs to render the timer, frozen at one instant."""

    phase: Phase
    timer_state: TimerState
    remaining_seconds: int
    total_seconds: int
    cycle_position: int
    long_break_interval: int
    completed_work_intervals: int
    current_task: TaskRef | None
    is_premium: bool = False
    deep_focus_mode: bool = False

    @property
    def percent_complete(self) -> float:
        if self.total_seconds <= 0:
            return 0.0
        elapsed = self.total_seconds - self.remaining_seconds
        return max(0.0, min(1.0, elapsed / self.total_seconds))


# ── engine ────────────────────────────────────────────────────────────────


class TimerEngine(QObject):
    """Pomodoro state machine with session recording and task credit.

    Signals
    -------
    ticked(remaining_seconds: int)
        Emitted after every countdown step.
    state_changed(snapshot: TimerSnapshot)
        Emitted whenever any part of the exposed state changes.
    phase_completed(data: dict)
        Emitted once per natural phase expiry.  Keys: ``phase``,
        ``duration_seconds``, ``session_id``, ``next_phase``,
        ``cycle_position``, ``completed_work_intervals``, ``task``.
    transition_rejected(message: str)
        Emitted when an operation is refused; nothing was changed.
    """

    ticked = pyqtSignal(int)
    state_changed = pyqtSignal(object)
    phase_completed = pyqtSignal(object)
    transition_rejected = pyqtSignal(str)

    def __init__(
        self,
        config_store: ConfigurationStore | None = None,
        parent: QObject | None = None,
        *,
        recorder=None,
        tasks=None,
        effects: EffectsPort | None = None,
        scheduler=None,
    ) -> None:
        super().__init__(parent)

        # ── collaborators ─────────────────────────────────────────────
        self._config_store = config_store or ConfigurationStore(cache_enabled=False)
        self._recorder = recorder
        self._tasks = tasks
        self._effects = effects or EffectsPort()
        self._scheduler = scheduler or QtScheduler(self)

        # ── phase / cycle state ───────────────────────────────────────
        self._phase: Phase = Phase.WORK
        self._timer_state: TimerState = TimerState.IDLE
        self._cycle_position: int = 0
        self._completed_work_intervals: int = 0
        self._current_task: TaskRef | None = None

        # ── countdown state ───────────────────────────────────────────
        self._phase_duration: int = self.configuration.duration_seconds(Phase.WORK)
        self._remaining: int = self._phase_duration
        self._session_id: str | None = None

        # ── scheduling ────────────────────────────────────────────────
        self._tick_token = None
        self._auto_start_token = None

        # ── premium ───────────────────────────────────────────────────
        self._is_premium: bool = False
        self._deep_focus_mode: bool = False
        self._ambient_sound: str | None = None

        self._config_store.changed.connect(self._on_configuration_changed)

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def configuration(self) -> Configuration:
        return self._config_store.config

    @property
    def phase(self) -> Phase:
        """The phase being timed (or next up, when IDLE)."""
        return self._phase

    @property
    def timer_state(self) -> TimerState:
        return self._timer_state

    @property
    def remaining(self) -> int:
        """Seconds left on the clock."""
        return self._remaining

    @property
    def total_duration(self) -> int:
        """Full length of the current phase in seconds."""
        return self._phase_duration

    @property
    def cycle_position(self) -> int:
        return self._cycle_position

    @property
    def completed_work_intervals(self) -> int:
        return self._completed_work_intervals

    @property
    def current_task(self) -> TaskRef | None:
        return self._current_task

    @property
    def session_id(self) -> str | None:
        """Id of the open session record, if a phase has been started."""
        return self._session_id

    @property
    def is_running(self) -> bool:
        return self._timer_state == TimerState.RUNNING

    @property
    def is_premium(self) -> bool:
        return self._is_premium

    @property
    def deep_focus_mode(self) -> bool:
        return self._deep_focus_mode

    @property
    def auto_start_pending(self) -> bool:
        return self._auto_start_token is not None and not self._auto_start_token.cancelled

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            phase=self._phase,
            timer_state=self._timer_state,
            remaining_seconds=self._remaining,
            total_seconds=self._phase_duration,
            cycle_position=self._cycle_position,
            long_break_interval=self.configuration.long_break_interval,
            completed_work_intervals=self._completed_work_intervals,
            current_task=self._current_task,
            is_premium=self._is_premium,
            deep_focus_mode=self._deep_focus_mode,
        )

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def start(self) -> bool:
        """Open a session record and begin counting down.

        A no-op while already RUNNING; refused while PAUSED (use
        :meth:`resume`).
        """
        if self._timer_state == TimerState.RUNNING:
            return False
        if self._timer_state == TimerState.PAUSED:
            return self._reject("Timer is paused; resume or reset it first")

        self._cancel_auto_start()
        if self._recorder is not None:
            task_id = self._current_task.id if self._current_task is not None else None
            self._session_id = self._recorder.open(self._phase, self._phase_duration, task_id)

        self._timer_state = TimerState.RUNNING
        self._tick_token = self._scheduler.start_ticking(self._on_tick)
        self._emit_state()
        return True

    def pause(self) -> bool:
        """Stop the countdown.  The open session record stays open."""
        if self._timer_state != TimerState.RUNNING:
            return self._reject("Only a running timer can be paused")
        self._cancel_tick()
        self._timer_state = TimerState.PAUSED
        self._emit_state()
        return True

    def resume(self) -> bool:
        """Continue from exactly where :meth:`pause` stopped."""
        if self._timer_state != TimerState.PAUSED:
            return self._reject("Only a paused timer can be resumed")
        self._timer_state = TimerState.RUNNING
        self._tick_token = self._scheduler.start_ticking(self._on_tick)
        self._emit_state()
        return True

    def reset(self) -> None:
        """Back to IDLE with a full clock for the current phase.

        An open session record is abandoned: left unfinalized, not deleted.
        """
        self._cancel_tick()
        self._cancel_auto_start()
        if self._session_id is not None:
            if self._recorder is not None:
                self._recorder.abandon(self._session_id)
            self._session_id = None
        self._reset_countdown()
        self._timer_state = TimerState.IDLE
        self._emit_state()

    def change_timer_type(self, phase: Phase | str) -> bool:
        """Switch phase.  Refused while RUNNING or PAUSED.

        Leaving a long break that was earned but not taken starts a fresh
        cycle, the same as skipping it.
        """
        if self._timer_state in (TimerState.RUNNING, TimerState.PAUSED):
            return self._reject(
                "Cannot change the timer type while a countdown is active; "
                "reset the timer first"
            )
        try:
            target = Phase(phase)
        except ValueError:
            return self._reject(f"Unknown timer type {phase!r}")
        self._cancel_auto_start()
        if (self._phase == Phase.LONG_BREAK and target != Phase.LONG_BREAK
                and self._cycle_position >= self.configuration.long_break_interval):
            self._cycle_position = 0
        self._phase = target
        self._reset_countdown()
        self._timer_state = TimerState.IDLE
        self._emit_state()
        return True

    def skip(self) -> None:
        """Move on to the next phase without crediting the current one.

        Work is followed by a short break, any break by work; skipping a
        long break still starts a fresh cycle.  An open record is
        finalized, matching what a completed phase would leave behind.
        """
        self._cancel_tick()
        self._cancel_auto_start()
        if self._session_id is not None:
            if self._recorder is not None:
                self._recorder.finalize(self._session_id)
            self._session_id = None

        if self._phase == Phase.WORK:
            self._phase = Phase.SHORT_BREAK
        else:
            if self._phase == Phase.LONG_BREAK:
                self._cycle_position = 0
            self._phase = Phase.WORK
        self._reset_countdown()
        self._timer_state = TimerState.IDLE
        self._emit_state()

    def set_current_task(self, task: TaskRef | None) -> None:
        """Link (or unlink) the task credited on work completion.

        Allowed at any time, including mid-countdown.
        """
        self._current_task = task
        self._emit_state()

    def tick(self) -> None:
        """Advance the countdown by one second."""
        if self._timer_state != TimerState.RUNNING:
            return
        self._remaining = max(0, self._remaining - 1)
        self.ticked.emit(self._remaining)
        if self._remaining <= 0:
            self._complete_phase()

    def shutdown(self) -> None:
        """Cancel every pending tick and auto-start; undo deep focus."""
        self._cancel_tick()
        self._cancel_auto_start()
        if self._deep_focus_mode:
            self._deep_focus_mode = False
            self._best_effort(self._effects.exit_presentation_mode)
        if self._ambient_sound is not None:
            self._ambient_sound = None
            self._best_effort(self._effects.stop_sound)

    # ══════════════════════════════════════════════════════════════════
    #  PREMIUM
    # ══════════════════════════════════════════════════════════════════

    def set_premium(self, premium: bool) -> None:
        self._is_premium = premium
        if not premium and self._deep_focus_mode:
            self.set_deep_focus_mode(False)
        self._sync_ambient_sound()
        self._emit_state()

    def set_deep_focus_mode(self, enabled: bool) -> bool:
        if enabled and not self._is_premium:
            return self._reject("Deep focus mode requires premium")
        if enabled == self._deep_focus_mode:
            return True
        self._deep_focus_mode = enabled
        if enabled:
            self._best_effort(self._effects.enter_presentation_mode)
        else:
            self._best_effort(self._effects.exit_presentation_mode)
        self._emit_state()
        return True

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — timer mechanics
    # ══════════════════════════════════════════════════════════════════

    def _on_tick(self, token) -> None:
        if token is not self._tick_token or token.cancelled:
            return
        self.tick()

    def _complete_phase(self) -> None:
        self._cancel_tick()
        completed = self._phase
        duration = self._phase_duration
        config = self.configuration

        self._timer_state = TimerState.FINISHED
        self._emit_state()

        # ── close the session record ──────────────────────────────────
        session_id = self._session_id
        self._session_id = None
        if session_id is not None and self._recorder is not None:
            self._recorder.finalize(session_id)

        # ── pick the next phase ───────────────────────────────────────
        if completed == Phase.WORK:
            task = self._current_task
            if task is not None:
                if self._tasks is not None:
                    self._current_task = self._tasks.increment_completed_interval(task)
                else:
                    self._current_task = task.incremented()
            self._completed_work_intervals += 1
            if self._recorder is not None:
                self._recorder.report_focus_time(duration)

            next_position = self._cycle_position + 1
            if next_position >= config.long_break_interval:
                next_phase = Phase.LONG_BREAK
            else:
                next_phase = Phase.SHORT_BREAK
            self._cycle_position = next_position
            auto_start = config.auto_start_breaks
        else:
            if completed == Phase.LONG_BREAK:
                self._cycle_position = 0
            next_phase = Phase.WORK
            auto_start = config.auto_start_work

        self._phase = next_phase
        self._reset_countdown()

        self.phase_completed.emit({
            "phase": completed,
            "duration_seconds": duration,
            "session_id": session_id,
            "next_phase": next_phase,
            "cycle_position": self._cycle_position,
            "completed_work_intervals": self._completed_work_intervals,
            "task": self._current_task,
        })
        self._announce(completed)

        # ── wait for the user, or start again after a beat ────────────
        self._timer_state = TimerState.IDLE
        self._emit_state()
        if auto_start:
            self._auto_start_token = self._scheduler.call_later(
                AUTO_START_DELAY_MS, self._auto_start,
            )

    def _auto_start(self) -> None:
        self._auto_start_token = None
        if self._timer_state == TimerState.IDLE:
            self.start()

    def _announce(self, completed: Phase) -> None:
        config = self.configuration
        if config.notifications_enabled:
            title, body = COMPLETION_MESSAGES[completed]
            self._best_effort(self._effects.notify, title, body)
        if self._is_premium and config.sound_enabled:
            self._best_effort(self._effects.play_sound, COMPLETION_SOUNDS[completed])

    def _reset_countdown(self) -> None:
        self._phase_duration = self.configuration.duration_seconds(self._phase)
        self._remaining = self._phase_duration

    def _cancel_tick(self) -> None:
        self._scheduler.stop_ticking()
        if self._tick_token is not None:
            self._tick_token.cancel()
            self._tick_token = None

    def _cancel_auto_start(self) -> None:
        if self._auto_start_token is not None:
            self._auto_start_token.cancel()
            self._auto_start_token = None

    def _reject(self, message: str) -> bool:
        logger.warning("Rejected: %s (phase=%s, state=%s)",
                       message, self._phase.value, self._timer_state.value)
        self.transition_rejected.emit(message)
        return False

    def _emit_state(self) -> None:
        self.state_changed.emit(self.snapshot())

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — configuration & effects
    # ══════════════════════════════════════════════════════════════════

    def _on_configuration_changed(self, config: Configuration) -> None:
        # Only an idle clock is resized; a live countdown keeps its length.
        if self._timer_state in (TimerState.IDLE, TimerState.FINISHED):
            self._reset_countdown()
        self._sync_ambient_sound()
        self._emit_state()

    def _sync_ambient_sound(self) -> None:
        config = self.configuration
        wanted = None
        if self._is_premium and config.sound_enabled:
            wanted = config.current_sound

        if wanted is not None:
            self._best_effort(self._effects.set_volume, config.sound_volume)
        if wanted == self._ambient_sound:
            return
        self._ambient_sound = wanted
        if wanted is None:
            self._best_effort(self._effects.stop_sound)
        else:
            self._best_effort(self._effects.play_ambient, wanted)

    @staticmethod
    def _best_effort(fn, *args) -> None:
        try:
            fn(*args)
        except Exception:
            logger.warning("Side effect %s failed", getattr(fn, "__name__", fn), exc_info=True)
