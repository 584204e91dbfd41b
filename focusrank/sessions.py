"""Session recording and focus-time reporting for the timer engine.

Session ids are generated here, so :meth:`SessionRecorder.open` returns
at once and the backend write happens later through the outbox.  Because
the outbox is FIFO, a finalize is always executed after its open.
"""

from __future__ import annotations

import logging
import uuid

from PyQt6.QtCore import QObject, pyqtSignal

from .sync.intents import OpenSession, FinalizeSession, ReportFocusTime

logger = logging.getLogger(__name__)


class SessionRecorder(QObject):
    """Opens and finalizes session records; submits focus-time reports.

    Signals
    -------
    persistence_failed(message: str)
        A session create/finalize (or a report delivery) failed.
    focus_time_recorded(total_seconds: int)
        The anti-cheat gate accepted a report.
    focus_time_rejected(reason: str)
        The anti-cheat gate rejected a report.
    """

    persistence_failed = pyqtSignal(str)
    focus_time_recorded = pyqtSignal(int)
    focus_time_rejected = pyqtSignal(str)

    def __init__(self, outbox, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._outbox = outbox
        self._open_id: str | None = None
        outbox.delivered.connect(self._on_delivered)
        outbox.failed.connect(self._on_failed)

    @property
    def open_session_id(self) -> str | None:
        return self._open_id

    def open(self, phase, duration_seconds: int, task_id: str | None = None) -> str:
        if self._open_id is not None:
            logger.warning("Session %s was still open; abandoning it", self._open_id)
            self.abandon(self._open_id)

        session_id = uuid.uuid4().hex
        self._open_id = session_id
        self._outbox.submit(OpenSession(
            session_id=session_id,
            phase=getattr(phase, "value", phase),
            duration_seconds=duration_seconds,
            task_id=task_id,
        ))
        return session_id

    def finalize(self, session_id: str) -> None:
        if session_id != self._open_id:
            logger.warning("Ignoring finalize for session %s, which is not open", session_id)
            return
        self._open_id = None
        self._outbox.submit(FinalizeSession(session_id=session_id))

    def abandon(self, session_id: str) -> None:
        """Forget *session_id*; its stored record stays unfinalized."""
        if session_id == self._open_id:
            self._open_id = None
        logger.info("Session %s abandoned; record left unfinalized", session_id)

    def report_focus_time(self, seconds: int) -> None:
        self._outbox.submit(ReportFocusTime(seconds=seconds))

    # ── outbox callbacks ──────────────────────────────────────────────

    def _on_delivered(self, intent, result) -> None:
        if not isinstance(intent, ReportFocusTime):
            return
        if isinstance(result, dict) and "error" in result:
            logger.info("Focus time of %ss not credited: %s", intent.seconds, result["error"])
            self.focus_time_rejected.emit(str(result["error"]))
        else:
            self.focus_time_recorded.emit(int((result or {}).get("total_time", 0)))

    def _on_failed(self, intent, message: str) -> None:
        if isinstance(intent, OpenSession):
            self.persistence_failed.emit(f"Failed to create session: {message}")
        elif isinstance(intent, FinalizeSession):
            self.persistence_failed.emit(f"Failed to complete session: {message}")
        elif isinstance(intent, ReportFocusTime):
            self.persistence_failed.emit(f"Failed to record focus time: {message}")
