"""Request/response persistence service, scoped to one user.

This is the only place that knows how sessions, tasks and settings are
stored.  Every call opens its own short transaction through
:func:`get_session` and hands back detached rows (the session factory
uses ``expire_on_commit=False``), so callers may read attributes freely
after the call returns.

Missing rows raise :class:`~focusrank.errors.RecordNotFound`; any
SQLAlchemy error propagates unchanged.  The outbox dispatcher is the
layer that turns both into logged, non-fatal failure signals.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from ..errors import RecordNotFound
from .db import get_session
from .models import (
    DEFAULT_USER_ID, SessionRecord, Task, UserSettings, UserProgress,
)

logger = logging.getLogger(__name__)

TASK_FIELDS = frozenset({
    "title",
    "description",
    "estimated_intervals",
    "completed_intervals",
    "is_completed",
})


class PersistenceService:
    """Sessions, tasks and settings for a single user."""

    def __init__(
        self,
        user_id: str = DEFAULT_USER_ID,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.user_id = user_id
        self._clock = clock

    # ══════════════════════════════════════════════════════════════════
    #  SESSIONS
    # ══════════════════════════════════════════════════════════════════

    def create_session(
        self,
        *,
        phase: str,
        duration_seconds: int,
        task_id: str | None = None,
        session_id: str | None = None,
    ) -> SessionRecord:
        with get_session() as db:
            record = SessionRecord(
                user_id=self.user_id,
                task_id=task_id,
                phase=phase,
                duration_seconds=duration_seconds,
                started_at=self._clock(),
                completed=False,
            )
            if session_id is not None:
                record.id = session_id
            db.add(record)
            db.flush()
        logger.debug("Created session %s (%s, %ss)", record.id, phase, duration_seconds)
        return record

    def complete_session(self, session_id: str) -> SessionRecord:
        with get_session() as db:
            record = self._owned(db, SessionRecord, session_id)
            record.ended_at = self._clock()
            record.completed = True
        logger.debug("Completed session %s", session_id)
        return record

    def get_session_record(self, session_id: str) -> SessionRecord:
        with get_session() as db:
            return self._owned(db, SessionRecord, session_id)

    def unfinalized_sessions(self) -> list[SessionRecord]:
        """Records that were opened but never completed (reset runs)."""
        with get_session() as db:
            return (
                db.query(SessionRecord)
                .filter_by(user_id=self.user_id, completed=False)
                .order_by(SessionRecord.started_at)
                .all()
            )

    # ══════════════════════════════════════════════════════════════════
    #  TASKS
    # ══════════════════════════════════════════════════════════════════

    def create_task(
        self,
        title: str,
        *,
        estimated_intervals: int = 1,
        description: str | None = None,
    ) -> Task:
        with get_session() as db:
            task = Task(
                user_id=self.user_id,
                title=title,
                description=description,
                estimated_intervals=estimated_intervals,
                completed_intervals=0,
                is_completed=False,
            )
            db.add(task)
            db.flush()
        return task

    def get_task(self, task_id: str) -> Task:
        with get_session() as db:
            return self._owned(db, Task, task_id)

    def list_tasks(self, *, include_completed: bool = True) -> list[Task]:
        with get_session() as db:
            query = db.query(Task).filter_by(user_id=self.user_id)
            if not include_completed:
                query = query.filter_by(is_completed=False)
            return query.order_by(Task.created_at.desc()).all()

    def update_task(self, task_id: str, **changes) -> Task:
        unknown = set(changes) - TASK_FIELDS
        if unknown:
            raise TypeError(f"unknown task field(s): {', '.join(sorted(unknown))}")
        with get_session() as db:
            task = self._owned(db, Task, task_id)
            for name, value in changes.items():
                setattr(task, name, value)
            if "is_completed" in changes:
                task.completed_at = self._clock() if changes["is_completed"] else None
        logger.debug("Updated task %s: %s", task_id, changes)
        return task

    # ══════════════════════════════════════════════════════════════════
    #  SETTINGS & ENTITLEMENT
    # ══════════════════════════════════════════════════════════════════

    def get_settings(self) -> dict:
        """The stored settings dict; empty when the user never saved any."""
        with get_session() as db:
            row = db.get(UserSettings, self.user_id)
            return dict(row.settings or {}) if row is not None else {}

    def update_settings(self, values: dict) -> dict:
        """Merge *values* into the stored settings and return the result."""
        with get_session() as db:
            row = db.get(UserSettings, self.user_id)
            if row is None:
                row = UserSettings(user_id=self.user_id, settings={})
                db.add(row)
            merged = {**(row.settings or {}), **values}
            row.settings = merged
        return dict(merged)

    def is_premium(self) -> bool:
        with get_session() as db:
            progress = db.get(UserProgress, self.user_id)
            return bool(progress is not None and progress.is_premium)

    def set_premium(self, premium: bool) -> None:
        with get_session() as db:
            progress = db.get(UserProgress, self.user_id)
            if progress is None:
                progress = UserProgress(user_id=self.user_id, total_focus_seconds=0)
                db.add(progress)
            progress.is_premium = premium

    # ── helpers ──────────────────────────────────────────────────────

    def _owned(self, db, model, key: str):
        row = db.get(model, key)
        if row is None or row.user_id != self.user_id:
            raise RecordNotFound(f"{model.__name__} {key!r} not found")
        return row
