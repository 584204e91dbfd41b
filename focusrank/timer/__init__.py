"""Timer package."""

from .engine import (
    TimerEngine,
    TimerState,
    TimerSnapshot,
    Phase,
    AUTO_START_DELAY_MS,
    COMPLETION_MESSAGES,
)
from .scheduler import (
    CancellationToken,
    ManualScheduler,
    QtScheduler,
    TICK_INTERVAL_MS,
)

__all__ = [
    "TimerEngine",
    "TimerState",
    "TimerSnapshot",
    "Phase",
    "AUTO_START_DELAY_MS",
    "COMPLETION_MESSAGES",
    "CancellationToken",
    "ManualScheduler",
    "QtScheduler",
    "TICK_INTERVAL_MS",
]
