"""Outbox package — asynchronous delivery of persistence intents."""

from .intents import (
    OpenSession,
    FinalizeSession,
    IncrementTask,
    ReportFocusTime,
    UpdateSettings,
    describe,
)
from .outbox import Outbox

__all__ = [
    "Outbox",
    "OpenSession",
    "FinalizeSession",
    "IncrementTask",
    "ReportFocusTime",
    "UpdateSettings",
    "describe",
]
