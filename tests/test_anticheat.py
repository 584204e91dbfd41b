"""Tests for the focus-time anti-cheat gate."""

from __future__ import annotations

import pytest

from focusrank.anticheat import FocusTimeGate, MAX_FOCUS_SECONDS, MIN_REPORT_SPACING
from focusrank.database.db import get_session
from focusrank.database.models import UserProgress


class TestMagnitude:
    def test_limit_is_work_interval_plus_buffer(self):
        assert MAX_FOCUS_SECONDS == 1560

    def test_exact_limit_is_accepted(self, gate):
        assert gate.record_focus_time(1560) == {"total_time": 1560}

    @pytest.mark.parametrize("seconds", [1561, 0, -25, 10 ** 6])
    def test_out_of_range_is_rejected(self, gate, seconds):
        result = gate.record_focus_time(seconds)
        assert "error" in result
        assert gate.total_focus_seconds() == 0

    @pytest.mark.parametrize("seconds", [12.5, "1500", None, True])
    def test_non_integers_are_rejected(self, gate, seconds):
        assert "error" in gate.record_focus_time(seconds)

    def test_validate_alone(self, gate):
        assert gate.validate(1) is None
        assert gate.validate(1560) is None
        assert gate.validate(1561) is not None


class TestSpacing:
    def test_second_report_within_window_is_rejected(self, gate, clock):
        gate.record_focus_time(1500)
        clock.advance(29)
        result = gate.record_focus_time(1500)
        assert "too frequently" in result["error"]
        assert gate.total_focus_seconds() == 1500

    def test_report_after_window_is_accepted(self, gate, clock):
        gate.record_focus_time(1500)
        clock.advance(MIN_REPORT_SPACING.total_seconds())
        assert gate.record_focus_time(300) == {"total_time": 1800}

    def test_rejected_report_does_not_move_window(self, gate, clock):
        gate.record_focus_time(1500)
        clock.advance(20)
        gate.record_focus_time(1500)   # rejected
        clock.advance(10)
        assert gate.record_focus_time(1500) == {"total_time": 3000}

    def test_magnitude_rejection_does_not_open_window(self, gate, clock):
        gate.record_focus_time(9999)
        assert gate.record_focus_time(1500) == {"total_time": 1500}

    def test_users_are_independent(self, gate):
        gate.record_focus_time(1500, "alice")
        assert gate.record_focus_time(1500, "bob") == {"total_time": 1500}
        assert gate.total_focus_seconds("alice") == 1500

    def test_last_report_is_stored(self, gate, clock):
        gate.record_focus_time(600)
        with get_session() as db:
            assert db.get(UserProgress, "local").last_focus_report_at == clock.now


class TestConfiguredGate:
    def test_custom_limits(self, clock):
        gate = FocusTimeGate(clock=clock, max_seconds=60)
        assert "error" in gate.record_focus_time(61)
        assert gate.record_focus_time(60) == {"total_time": 60}
