"""Tick sources and delayed calls, each guarded by a cancellation token.

A scheduler has at most one active tick source.  ``start_ticking``
cancels whatever was ticking before and returns a fresh token; the tick
callback receives that token and must ignore the call if the token is no
longer the current one.  ``stop_ticking`` cancels synchronously, so no
tick is delivered after it returns.

Two implementations share the same duck-typed interface:

- :class:`QtScheduler` — the real one, backed by ``QTimer``.
- :class:`ManualScheduler` — deterministic, driven by :meth:`advance`;
  used for headless runs and the test suite.
"""

from __future__ import annotations

import heapq
from typing import Callable

from PyQt6.QtCore import QObject, QTimer

TICK_INTERVAL_MS = 1000


class CancellationToken:
    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class QtScheduler(QObject):
    """One-second ticks and single-shot delays on the Qt event loop."""

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        interval_ms: int = TICK_INTERVAL_MS,
    ) -> None:
        super().__init__(parent)
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._on_timeout)
        self._tick_token: CancellationToken | None = None
        self._tick_callback: Callable[[CancellationToken], None] | None = None
        self._delayed: dict[CancellationToken, QTimer] = {}

    @property
    def is_ticking(self) -> bool:
        return self._timer.isActive()

    def start_ticking(self, callback: Callable[[CancellationToken], None]) -> CancellationToken:
        self.stop_ticking()
        token = CancellationToken()
        self._tick_token = token
        self._tick_callback = callback
        self._timer.start()
        return token

    def stop_ticking(self) -> None:
        self._timer.stop()
        if self._tick_token is not None:
            self._tick_token.cancel()
        self._tick_token = None
        self._tick_callback = None

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> CancellationToken:
        token = CancellationToken()
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.timeout.connect(lambda: self._on_delayed(token, callback))
        self._delayed[token] = timer
        timer.start(delay_ms)
        return token

    def cancel_all(self) -> None:
        self.stop_ticking()
        for token, timer in self._delayed.items():
            token.cancel()
            timer.stop()
            timer.deleteLater()
        self._delayed.clear()

    def _on_timeout(self) -> None:
        token, callback = self._tick_token, self._tick_callback
        if token is None or token.cancelled or callback is None:
            self._timer.stop()
            return
        callback(token)

    def _on_delayed(self, token: CancellationToken, callback: Callable[[], None]) -> None:
        timer = self._delayed.pop(token, None)
        if timer is not None:
            timer.deleteLater()
        if not token.cancelled:
            callback()


class ManualScheduler:
    """Scheduler whose clock only moves when :meth:`advance` is called.

    Delayed calls due at the same instant as a tick run before the tick.
    """

    def __init__(self, *, interval_ms: int = TICK_INTERVAL_MS) -> None:
        self._interval = interval_ms
        self._now = 0
        self._tick: list | None = None   # [token, callback, next_due_ms]
        self._delayed: list = []         # heap of (due_ms, seq, token, callback)
        self._seq = 0

    @property
    def now_ms(self) -> int:
        return self._now

    @property
    def is_ticking(self) -> bool:
        return self._tick is not None and not self._tick[0].cancelled

    @property
    def pending_calls(self) -> int:
        return sum(1 for entry in self._delayed if not entry[2].cancelled)

    def start_ticking(self, callback: Callable[[CancellationToken], None]) -> CancellationToken:
        self.stop_ticking()
        token = CancellationToken()
        self._tick = [token, callback, self._now + self._interval]
        return token

    def stop_ticking(self) -> None:
        if self._tick is not None:
            self._tick[0].cancel()
        self._tick = None

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> CancellationToken:
        token = CancellationToken()
        self._seq += 1
        heapq.heappush(self._delayed, (self._now + delay_ms, self._seq, token, callback))
        return token

    def cancel_all(self) -> None:
        self.stop_ticking()
        for _, _, token, _ in self._delayed:
            token.cancel()
        self._delayed.clear()

    def advance(self, seconds: float = 1.0) -> None:
        """Move the clock forward, firing every tick and call that falls due."""
        target = self._now + round(seconds * 1000)
        while True:
            tick_due = self._tick[2] if self.is_ticking else None
            delayed_due = self._delayed[0][0] if self._delayed else None
            due_times = [d for d in (tick_due, delayed_due) if d is not None and d <= target]
            if not due_times:
                break
            self._now = min(due_times)

            if delayed_due == self._now:
                _, _, token, callback = heapq.heappop(self._delayed)
                if not token.cancelled:
                    callback()
            else:
                token, callback, _ = self._tick
                self._tick[2] = self._now + self._interval
                callback(token)
        self._now = target
