"""Persistence intents emitted by the timer and executed by the outbox.

Each intent is an immutable description of one backend call.  Producers
build them synchronously; the :class:`~focusrank.sync.outbox.Outbox`
executes them later, in submission order.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class OpenSession:
    session_id: str
    phase: str
    duration_seconds: int
    task_id: str | None = None


@dataclass(frozen=True)
class FinalizeSession:
    session_id: str


@dataclass(frozen=True)
class IncrementTask:
    """Write an absolute interval count, so a replay is harmless."""

    task_id: str
    completed_intervals: int


@dataclass(frozen=True)
class ReportFocusTime:
    seconds: int


@dataclass(frozen=True)
class UpdateSettings:
    values: dict = field(default_factory=dict)


def describe(intent) -> str:
    """Short human-readable label used in log lines and error messages."""
    if isinstance(intent, OpenSession):
        return f"open {intent.phase} session {intent.session_id}"
    if isinstance(intent, FinalizeSession):
        return f"finalize session {intent.session_id}"
    if isinstance(intent, IncrementTask):
        return f"set task {intent.task_id} to {intent.completed_intervals} intervals"
    if isinstance(intent, ReportFocusTime):
        return f"report {intent.seconds}s of focus time"
    if isinstance(intent, UpdateSettings):
        return f"update settings {sorted(intent.values)}"
    return type(intent).__name__
