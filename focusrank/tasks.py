"""The task the timer credits work intervals to."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from PyQt6.QtCore import QObject, pyqtSignal

from .sync.intents import IncrementTask

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskRef:
    id: str
    title: str
    completed_intervals: int = 0
    estimated_intervals: int = 1

    @property
    def is_estimate_reached(self) -> bool:
        return self.completed_intervals >= self.estimated_intervals

    def incremented(self) -> "TaskRef":
        return replace(self, completed_intervals=self.completed_intervals + 1)

    @classmethod
    def from_row(cls, row) -> "TaskRef":
        """Build from a ``Task`` ORM row (or anything with the same fields)."""
        return cls(
            id=row.id,
            title=row.title,
            completed_intervals=row.completed_intervals,
            estimated_intervals=row.estimated_intervals,
        )


class TaskLinkage(QObject):
    """Credits completed work intervals to tasks.

    Signals
    -------
    tasks_changed(task: TaskRef | None)
        A task write reached the backend; task lists should refresh.
    task_update_failed(message: str)
        A task write failed.  The engine keeps its local count; the
        stored count catches up on the next fetch.
    """

    tasks_changed = pyqtSignal(object)
    task_update_failed = pyqtSignal(str)

    def __init__(self, outbox, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._outbox = outbox
        outbox.delivered.connect(self._on_delivered)
        outbox.failed.connect(self._on_failed)

    def increment_completed_interval(self, task: TaskRef) -> TaskRef:
        """Return *task* with one more completed interval and queue the write."""
        updated = task.incremented()
        self._outbox.submit(IncrementTask(
            task_id=task.id,
            completed_intervals=updated.completed_intervals,
        ))
        return updated

    def _on_delivered(self, intent, result) -> None:
        if isinstance(intent, IncrementTask):
            self.tasks_changed.emit(TaskRef.from_row(result) if result is not None else None)

    def _on_failed(self, intent, message: str) -> None:
        if isinstance(intent, IncrementTask):
            logger.warning("Task %s not updated: %s", intent.task_id, message)
            self.task_update_failed.emit(f"Failed to update task: {message}")
