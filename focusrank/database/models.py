"""SQLAlchemy ORM models for FocusRank."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, JSON
)
from sqlalchemy.orm import DeclarativeBase

DEFAULT_USER_ID = "local"


def _new_id() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    pass


class SessionRecord(Base):
    """One started (and possibly completed) timer phase.

    A record whose run was reset keeps ``completed=False`` and
    ``ended_at=None`` forever; nothing deletes or closes it.
    """

    __tablename__ = "sessions"

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, default=DEFAULT_USER_ID, index=True)
    task_id = Column(String(32), nullable=True)
    phase = Column(String(20), nullable=False, default="work")  # work | short_break | long_break
    duration_seconds = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime, nullable=False, default=datetime.now)
    ended_at = Column(DateTime, nullable=True)
    completed = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return (
            f"<SessionRecord id={self.id} phase={self.phase} "
            f"completed={self.completed}>"
        )


class Task(Base):
    """A user task that work intervals are credited to."""

    __tablename__ = "tasks"

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, default=DEFAULT_USER_ID, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    estimated_intervals = Column(Integer, nullable=False, default=1)
    completed_intervals = Column(Integer, nullable=False, default=0)
    is_completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)
    completed_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Task id={self.id} title={self.title!r} "
            f"{self.completed_intervals}/{self.estimated_intervals}>"
        )


class UserSettings(Base):
    """Timer configuration per user, stored as the camelCase wire dict."""

    __tablename__ = "user_settings"

    user_id = Column(String(64), primary_key=True)
    settings = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    def __repr__(self) -> str:
        return f"<UserSettings user={self.user_id} keys={sorted(self.settings or {})}>"


class UserProgress(Base):
    """Server-validated focus time and entitlement, one row per user."""

    __tablename__ = "user_progress"

    user_id = Column(String(64), primary_key=True)
    total_focus_seconds = Column(Integer, nullable=False, default=0)
    last_focus_report_at = Column(DateTime, nullable=True)
    is_premium = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return (
            f"<UserProgress user={self.user_id} "
            f"focus={self.total_focus_seconds}s premium={self.is_premium}>"
        )
