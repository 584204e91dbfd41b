"""Shared test helpers for FocusRank."""

from datetime import datetime, timedelta

from focusrank.effects import EffectsPort
from focusrank.timer.engine import TimerEngine


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = datetime(2026, 3, 2, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingEffects(EffectsPort):
    """Effects port that records every call as ``(name, *args)``."""

    def __init__(self):
        self.calls: list[tuple] = []

    def notify(self, title, body):
        self.calls.append(("notify", title, body))

    def play_sound(self, name):
        self.calls.append(("play_sound", name))

    def play_ambient(self, name):
        self.calls.append(("play_ambient", name))

    def stop_sound(self):
        self.calls.append(("stop_sound",))

    def set_volume(self, level):
        self.calls.append(("set_volume", level))

    def enter_presentation_mode(self):
        self.calls.append(("enter_presentation_mode",))

    def exit_presentation_mode(self):
        self.calls.append(("exit_presentation_mode",))

    def named(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]


class RaisingEffects(EffectsPort):
    """Every effect blows up, like a platform with nothing available."""

    def _fail(self, *args):
        raise RuntimeError("no platform support")

    notify = play_sound = play_ambient = stop_sound = set_volume = _fail
    enter_presentation_mode = exit_presentation_mode = _fail


def complete_phase(engine: TimerEngine) -> None:
    """Fast-complete the current phase by jumping to the last tick."""
    if not engine.is_running:
        engine.start()
    engine._remaining = 1
    engine.tick()
