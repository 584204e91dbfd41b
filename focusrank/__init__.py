"""FocusRank — a Pomodoro timer that records sessions and focus time."""

__version__ = "0.1.0"
