"""Server-side validation of reported focus time.

Focus time feeds the rank and leaderboard totals, so the client's claim
is never trusted as-is.  Every report is checked independently of the
client's own state:

- ``seconds`` must be a positive integer no larger than
  :data:`MAX_FOCUS_SECONDS` (a 25-minute work interval plus a one-minute
  buffer, i.e. 1560 s).
- Two accepted reports for the same user must be at least
  :data:`MIN_REPORT_SPACING` apart.  Rejected reports do not move that
  window.

The gate answers the way the remote endpoint does: ``{"total_time": n}``
on acceptance, ``{"error": message}`` on rejection.  It never raises for
a rejected claim; database errors propagate to the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from .database.db import get_session
from .database.models import DEFAULT_USER_ID, UserProgress

logger = logging.getLogger(__name__)

MAX_WORK_SECONDS = 25 * 60
FOCUS_TIME_BUFFER = 60
MAX_FOCUS_SECONDS = MAX_WORK_SECONDS + FOCUS_TIME_BUFFER
MIN_REPORT_SPACING = timedelta(seconds=30)


class FocusTimeGate:
    """Accepts or rejects focus-time reports and keeps per-user totals."""

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] = datetime.now,
        max_seconds: int = MAX_FOCUS_SECONDS,
        min_spacing: timedelta = MIN_REPORT_SPACING,
    ) -> None:
        self._clock = clock
        self._max_seconds = max_seconds
        self._min_spacing = min_spacing

    @property
    def max_seconds(self) -> int:
        return self._max_seconds

    def validate(self, seconds) -> str | None:
        """Magnitude check only.  Returns an error message or ``None``."""
        if isinstance(seconds, bool) or not isinstance(seconds, int):
            return f"Invalid focus time: {seconds!r}"
        if seconds <= 0:
            return "Focus time must be positive"
        if seconds > self._max_seconds:
            return (
                f"Focus time of {seconds}s exceeds the "
                f"{self._max_seconds}s maximum"
            )
        return None

    def record_focus_time(self, seconds: int, user_id: str = DEFAULT_USER_ID) -> dict:
        error = self.validate(seconds)
        if error is not None:
            logger.warning("Rejected focus time for %s: %s", user_id, error)
            return {"error": error}

        now = self._clock()
        with get_session() as db:
            progress = db.get(UserProgress, user_id)
            if progress is None:
                progress = UserProgress(user_id=user_id, total_focus_seconds=0)
                db.add(progress)

            last = progress.last_focus_report_at
            if last is not None and now - last < self._min_spacing:
                wait = self._min_spacing - (now - last)
                error = (
                    "Focus time reported too frequently; try again in "
                    f"{max(1, round(wait.total_seconds()))}s"
                )
            else:
                progress.total_focus_seconds += seconds
                progress.last_focus_report_at = now
                total = progress.total_focus_seconds

        if error is not None:
            logger.warning("Rejected focus time for %s: %s", user_id, error)
            return {"error": error}

        logger.info("Recorded %ss of focus time for %s (total %ss)", seconds, user_id, total)
        return {"total_time": total}

    def total_focus_seconds(self, user_id: str = DEFAULT_USER_ID) -> int:
        with get_session() as db:
            progress = db.get(UserProgress, user_id)
            return progress.total_focus_seconds if progress is not None else 0
