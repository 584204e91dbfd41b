"""FIFO outbox that runs persistence intents off the timer's critical path.

The timer engine and its collaborators never call the backend directly.
They :meth:`Outbox.submit` an intent and carry on; the outbox executes
queued intents on a later event-loop turn and reports the outcome on its
signals.

Signals
-------
delivered(intent, result)
    The handler for *intent* returned *result*.
failed(intent, message)
    The handler raised.  The error is logged; nothing is retried.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from .intents import (
    OpenSession, FinalizeSession, IncrementTask, ReportFocusTime,
    UpdateSettings, describe,
)

logger = logging.getLogger(__name__)


class Outbox(QObject):
    """Queue of intents plus the handlers that execute them."""

    delivered = pyqtSignal(object, object)
    failed = pyqtSignal(object, str)

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        auto_drain: bool = True,
    ) -> None:
        super().__init__(parent)
        self._queue: deque = deque()
        self._handlers: dict[type, Callable[[Any], Any]] = {}
        self._auto_drain = auto_drain
        self._drain_scheduled = False
        self._draining = False

    @classmethod
    def for_backend(
        cls,
        service,
        gate,
        parent: QObject | None = None,
        *,
        auto_drain: bool = True,
    ) -> "Outbox":
        """An outbox wired to a persistence service and anti-cheat gate."""
        outbox = cls(parent, auto_drain=auto_drain)
        outbox.register(OpenSession, lambda i: service.create_session(
            session_id=i.session_id,
            phase=i.phase,
            duration_seconds=i.duration_seconds,
            task_id=i.task_id,
        ))
        outbox.register(FinalizeSession, lambda i: service.complete_session(i.session_id))
        outbox.register(IncrementTask, lambda i: service.update_task(
            i.task_id, completed_intervals=i.completed_intervals,
        ))
        outbox.register(ReportFocusTime, lambda i: gate.record_focus_time(
            i.seconds, service.user_id,
        ))
        outbox.register(UpdateSettings, lambda i: service.update_settings(i.values))
        return outbox

    # ── public API ────────────────────────────────────────────────────

    def register(self, intent_type: type, handler: Callable[[Any], Any]) -> None:
        self._handlers[intent_type] = handler

    def submit(self, intent) -> None:
        """Queue *intent*.  Never blocks and never raises."""
        self._queue.append(intent)
        logger.debug("Queued: %s", describe(intent))
        if self._auto_drain and not self._drain_scheduled:
            self._drain_scheduled = True
            QTimer.singleShot(0, self.drain)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def pending_intents(self) -> list:
        return list(self._queue)

    def drain(self) -> int:
        """Execute every queued intent in order.  Returns how many succeeded."""
        self._drain_scheduled = False
        if self._draining:
            return 0
        self._draining = True
        delivered = 0
        try:
            while self._queue:
                intent = self._queue.popleft()
                handler = self._handlers.get(type(intent))
                if handler is None:
                    message = f"no handler registered for {type(intent).__name__}"
                    logger.error("Dropped %s: %s", describe(intent), message)
                    self.failed.emit(intent, message)
                    continue
                try:
                    result = handler(intent)
                except Exception as exc:
                    logger.warning("Failed to %s: %s", describe(intent), exc, exc_info=True)
                    self.failed.emit(intent, str(exc) or type(exc).__name__)
                    continue
                delivered += 1
                self.delivered.emit(intent, result)
        finally:
            self._draining = False
        return delivered
