"""Tests for the tick schedulers and cancellation tokens."""

from __future__ import annotations

from focusrank.timer.scheduler import CancellationToken, ManualScheduler, QtScheduler


class TestCancellationToken:
    def test_starts_live(self):
        assert CancellationToken().cancelled is False

    def test_cancel(self):
        token = CancellationToken()
        token.cancel()
        token.cancel()
        assert token.cancelled is True


class TestManualScheduler:
    def test_ticks_once_per_interval(self):
        s = ManualScheduler()
        seen = []
        s.start_ticking(seen.append)
        s.advance(3.5)
        assert len(seen) == 3
        assert s.now_ms == 3500

    def test_callback_receives_current_token(self):
        s = ManualScheduler()
        seen = []
        token = s.start_ticking(seen.append)
        s.advance(1)
        assert seen == [token]

    def test_restart_cancels_previous_source(self):
        s = ManualScheduler()
        first = s.start_ticking(lambda t: None)
        second = s.start_ticking(lambda t: None)
        assert first.cancelled
        assert not second.cancelled

    def test_stop_is_synchronous(self):
        s = ManualScheduler()
        seen = []
        s.start_ticking(seen.append)
        s.advance(2)
        s.stop_ticking()
        s.advance(5)
        assert len(seen) == 2
        assert not s.is_ticking

    def test_stop_from_inside_callback(self):
        s = ManualScheduler()
        seen = []

        def cb(token):
            seen.append(token)
            s.stop_ticking()

        s.start_ticking(cb)
        s.advance(5)
        assert len(seen) == 1

    def test_call_later(self):
        s = ManualScheduler()
        fired = []
        s.call_later(1500, lambda: fired.append(s.now_ms))
        s.advance(1.4)
        assert fired == []
        s.advance(0.1)
        assert fired == [1500]

    def test_cancelled_call_never_fires(self):
        s = ManualScheduler()
        fired = []
        token = s.call_later(100, lambda: fired.append(1))
        token.cancel()
        s.advance(1)
        assert fired == []
        assert s.pending_calls == 0

    def test_delayed_call_runs_before_simultaneous_tick(self):
        s = ManualScheduler()
        order = []
        s.start_ticking(lambda t: order.append("tick"))
        s.call_later(1000, lambda: order.append("call"))
        s.advance(1)
        assert order == ["call", "tick"]

    def test_cancel_all(self):
        s = ManualScheduler()
        fired = []
        s.start_ticking(lambda t: fired.append("tick"))
        s.call_later(500, lambda: fired.append("call"))
        s.cancel_all()
        s.advance(3)
        assert fired == []


class TestQtScheduler:
    def test_start_and_stop(self, qapp):
        s = QtScheduler()
        first = s.start_ticking(lambda t: None)
        assert s.is_ticking
        s.start_ticking(lambda t: None)
        assert first.cancelled
        s.stop_ticking()
        assert not s.is_ticking

    def test_cancelled_delay_is_dropped(self, qapp):
        s = QtScheduler()
        fired = []
        token = s.call_later(0, lambda: fired.append(1))
        token.cancel()
        qapp.processEvents()
        assert fired == []
        s.cancel_all()
