"""Tests for the settings dialog and the timer widget."""

from __future__ import annotations

import pytest

from focusrank.settings import ConfigurationStore
from focusrank.tasks import TaskRef
from focusrank.timer.engine import Phase, TimerState
from focusrank.ui.settings_dialog import SettingsDialog
from focusrank.ui.timer_widget import TimerWidget, format_clock

from helpers import SignalCollector, complete_phase


# ═══════════════════════════════════════════════════════════════════════
#  SETTINGS DIALOG
# ═══════════════════════════════════════════════════════════════════════


class TestSettingsDialog:
    def test_create(self, config_store):
        dlg = SettingsDialog(config_store)
        assert dlg.windowTitle() == "Settings"

    def test_reflects_configuration(self, config_store):
        config_store.update(work_minutes=30, sound_volume=50, long_break_interval=3)
        dlg = SettingsDialog(config_store)
        assert dlg._work_spin.value() == 30
        assert dlg._vol_slider.value() == 50
        assert dlg._interval_spin.value() == 3

    def test_opening_does_not_write(self, config_store, outbox):
        SettingsDialog(config_store)
        assert outbox.pending == 0

    def test_changes_go_through_the_store(self, config_store, outbox):
        dlg = SettingsDialog(config_store)
        dlg._work_spin.setValue(45)
        assert config_store.config.work_minutes == 45
        assert outbox.pending == 1

    def test_checkbox_toggles(self, config_store):
        dlg = SettingsDialog(config_store)
        dlg._auto_breaks_cb.setChecked(True)
        assert config_store.config.auto_start_breaks is True

    def test_volume_slider_updates_label(self, config_store):
        dlg = SettingsDialog(config_store, premium=True)
        dlg._vol_slider.setValue(85)
        assert dlg._vol_label.text() == "85%"
        assert config_store.config.sound_volume == 85

    def test_ambient_choice(self, config_store):
        dlg = SettingsDialog(config_store, premium=True)
        dlg._ambient_combo.setCurrentIndex(dlg._ambient_combo.findData("waves"))
        assert config_store.config.current_sound == "waves"

    def test_premium_controls_locked_without_premium(self, config_store):
        dlg = SettingsDialog(config_store)
        assert not dlg._sound_cb.isEnabled()
        assert not dlg._dim_cb.isEnabled()
        assert dlg._work_spin.isEnabled()

    def test_refused_change_reports_and_reverts(self, config_store):
        dlg = SettingsDialog(config_store)
        messages = SignalCollector()
        dlg.message.connect(messages)
        dlg._apply(long_break_interval=1)
        assert len(messages) == 1
        assert dlg._interval_spin.value() == 4

    def test_sound_preview_callback(self, config_store):
        calls: list[bool] = []
        dlg = SettingsDialog(config_store, sound_preview_callback=lambda: calls.append(True))
        dlg._on_volume_released()
        assert len(calls) == 1


# ═══════════════════════════════════════════════════════════════════════
#  TIMER WIDGET
# ═══════════════════════════════════════════════════════════════════════


class TestTimerWidget:
    def test_format_clock(self):
        assert format_clock(1500) == "25:00"
        assert format_clock(61) == "01:01"
        assert format_clock(-3) == "00:00"

    def test_initial_readout(self, engine):
        w = TimerWidget(engine)
        assert w.time_text == "25:00"
        assert w.start_button_text == "Start"

    def test_follows_ticks(self, engine, scheduler):
        w = TimerWidget(engine)
        engine.start()
        scheduler.advance(2)
        assert w.time_text == "24:58"
        assert w.start_button_text == "Pause"

    def test_progress_follows_elapsed_time(self, engine, scheduler):
        w = TimerWidget(engine)
        assert w.progress_value == 0
        engine.start()
        scheduler.advance(750)
        assert engine.snapshot().percent_complete == 0.5
        assert w.progress_value == 500

    def test_start_pause_button_cycles(self, engine):
        w = TimerWidget(engine)
        w._start_pause_btn.click()
        assert engine.timer_state == TimerState.RUNNING
        w._start_pause_btn.click()
        assert engine.timer_state == TimerState.PAUSED
        assert w.start_button_text == "Resume"
        w._start_pause_btn.click()
        assert engine.timer_state == TimerState.RUNNING

    def test_phase_buttons_locked_while_counting(self, engine):
        w = TimerWidget(engine)
        engine.start()
        assert not w._phase_buttons[Phase.SHORT_BREAK].isEnabled()
        engine.reset()
        w._phase_buttons[Phase.LONG_BREAK].click()
        assert engine.phase == Phase.LONG_BREAK
        assert w.time_text == "15:00"

    def test_cycle_dots(self, engine):
        w = TimerWidget(engine)
        complete_phase(engine)
        assert w.filled_dots == 1
        assert len(w._dots) == 4

    def test_shows_current_task(self, engine):
        w = TimerWidget(engine)
        engine.set_current_task(TaskRef(id="t", title="Essay", completed_intervals=1,
                                        estimated_intervals=3))
        assert "Essay" in w._task_label.text()
        assert "1/3" in w._task_label.text()
