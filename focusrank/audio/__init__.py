"""Sound synthesis and playback."""

from .sounds import SoundManager, SOUND_NAMES, ALERT_NAMES, AMBIENT_NAMES

__all__ = ["SoundManager", "SOUND_NAMES", "ALERT_NAMES", "AMBIENT_NAMES"]
