"""Timer configuration: the data, its validation, and the store that syncs it.

The authoritative copy lives in the persistence service.  The last known
configuration is also cached as JSON at:
    <app support dir>/settings.json

so the timer still starts with the user's durations when the backend is
unreachable.

Usage::

    store = ConfigurationStore(service=service, outbox=outbox)
    store.load()
    store.update(work_minutes=50, long_break_interval=3)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict, fields, replace

from PyQt6.QtCore import QObject, pyqtSignal

from . import paths
from .errors import InvalidConfiguration
from .sync.intents import UpdateSettings

logger = logging.getLogger(__name__)

# snake_case field -> camelCase key used by the persistence service
WIRE_KEYS: dict[str, str] = {
    "work_minutes": "workDuration",
    "short_break_minutes": "shortBreakDuration",
    "long_break_minutes": "longBreakDuration",
    "long_break_interval": "longBreakInterval",
    "auto_start_breaks": "autoStartBreaks",
    "auto_start_work": "autoStartPomodoros",
    "notifications_enabled": "notifications",
    "sound_enabled": "soundEnabled",
    "current_sound": "currentSound",
    "sound_volume": "soundVolume",
    "dim_interface": "dimInterface",
    "mute_notifications": "muteNotifications",
    "hide_elements": "hideElements",
    "fullscreen": "fullscreen",
}
_FIELDS_BY_WIRE_KEY = {v: k for k, v in WIRE_KEYS.items()}

_DURATION_FIELDS = ("work_minutes", "short_break_minutes", "long_break_minutes")
_PHASE_FIELDS = {
    "work": "work_minutes",
    "short_break": "short_break_minutes",
    "long_break": "long_break_minutes",
}


@dataclass(frozen=True)
class Configuration:
    """All user-configurable timer preferences."""

    # ── timer ─────────────────────────────────────────────────────────
    work_minutes: int = 25
    short_break_minutes: int = 5
    long_break_minutes: int = 15
    long_break_interval: int = 4
    auto_start_breaks: bool = False
    auto_start_work: bool = False

    # ── notifications ─────────────────────────────────────────────────
    notifications_enabled: bool = True

    # ── premium audio ─────────────────────────────────────────────────
    sound_enabled: bool = False
    current_sound: str | None = None
    sound_volume: int = 70                 # 0-100

    # ── deep focus ────────────────────────────────────────────────────
    dim_interface: bool = True
    mute_notifications: bool = True
    hide_elements: bool = True
    fullscreen: bool = False

    def validate(self) -> None:
        """Raise :class:`InvalidConfiguration` if any rule is broken."""
        for name in _DURATION_FIELDS:
            value = getattr(self, name)
            if not _is_int(value) or value <= 0:
                raise InvalidConfiguration(
                    f"{name} must be a positive integer, got {value!r}"
                )
        if not _is_int(self.long_break_interval) or self.long_break_interval < 2:
            raise InvalidConfiguration(
                "long_break_interval must be an integer of at least 2, "
                f"got {self.long_break_interval!r}"
            )
        if not _is_int(self.sound_volume) or not 0 <= self.sound_volume <= 100:
            raise InvalidConfiguration(
                f"sound_volume must be between 0 and 100, got {self.sound_volume!r}"
            )

    def duration_seconds(self, phase) -> int:
        """Length of *phase* (a Phase member or its string value) in seconds."""
        name = _PHASE_FIELDS[getattr(phase, "value", phase)]
        return getattr(self, name) * 60

    # ── serialisation ─────────────────────────────────────────────────

    def to_dict(self, only=None) -> dict:
        """The camelCase dict the persistence service stores.

        Pass *only* (an iterable of field names) to build a partial update.
        """
        values = asdict(self)
        names = WIRE_KEYS if only is None else [n for n in WIRE_KEYS if n in set(only)]
        return {WIRE_KEYS[name]: values[name] for name in names}

    @classmethod
    def from_dict(cls, data: dict) -> "Configuration":
        """Build from a stored dict.  Accepts camelCase or snake_case keys;
        unknown keys are ignored and missing keys keep their defaults."""
        valid = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in (data or {}).items():
            name = _FIELDS_BY_WIRE_KEY.get(key, key)
            if name in valid:
                kwargs[name] = value
        return cls(**kwargs)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ══════════════════════════════════════════════════════════════════════════
#  LOCAL JSON CACHE
# ══════════════════════════════════════════════════════════════════════════


def load_settings() -> Configuration | None:
    """Load the cached configuration, or ``None`` if there is no usable one."""
    try:
        if paths.SETTINGS_PATH.exists():
            data = json.loads(paths.SETTINGS_PATH.read_text(encoding="utf-8"))
            config = Configuration.from_dict(data)
            config.validate()
            return config
    except (OSError, ValueError, TypeError) as exc:
        logger.warning("Ignoring unreadable settings cache %s: %s", paths.SETTINGS_PATH, exc)
    return None


def save_settings(config: Configuration) -> None:
    """Write the configuration cache to disk as JSON."""
    paths.SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    paths.SETTINGS_PATH.write_text(
        json.dumps(config.to_dict(), indent=2) + "\n",
        encoding="utf-8",
    )


# ══════════════════════════════════════════════════════════════════════════
#  STORE
# ══════════════════════════════════════════════════════════════════════════


class ConfigurationStore(QObject):
    """Holds the active :class:`Configuration` and keeps it in sync.

    Signals
    -------
    changed(config: Configuration)
        Emitted whenever the in-memory configuration is replaced.
    update_failed(message: str)
        Emitted when the backend rejects or cannot store an update.  The
        in-memory value is kept regardless.
    """

    changed = pyqtSignal(object)
    update_failed = pyqtSignal(str)

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        service=None,
        outbox=None,
        cache_enabled: bool = True,
        initial: Configuration | None = None,
    ) -> None:
        super().__init__(parent)
        self._service = service
        self._outbox = outbox
        self._cache_enabled = cache_enabled
        self._config = initial if initial is not None else Configuration()
        self._config.validate()

        if outbox is not None:
            outbox.failed.connect(self._on_outbox_failed)

    @property
    def config(self) -> Configuration:
        return self._config

    def load(self) -> Configuration:
        """Refresh from the persistence service.

        Falls back to the JSON cache, then to defaults, and never raises.
        """
        config = None
        if self._service is not None:
            try:
                config = Configuration.from_dict(self._service.get_settings())
                config.validate()
            except InvalidConfiguration as exc:
                logger.warning("Stored settings rejected, using fallback: %s", exc)
                config = None
            except Exception:
                logger.exception("Failed to load settings from the persistence service")
                config = None

        if config is None and self._cache_enabled:
            config = load_settings()
        if config is None:
            config = Configuration()

        self._apply(config)
        return config

    def update(self, **changes) -> Configuration:
        """Apply a partial update.

        Raises :class:`InvalidConfiguration` (and changes nothing) when a
        key is unknown or the merged configuration is invalid.
        """
        unknown = set(changes) - {f.name for f in fields(Configuration)}
        if unknown:
            raise InvalidConfiguration(f"unknown setting(s): {', '.join(sorted(unknown))}")

        updated = replace(self._config, **changes)
        updated.validate()
        self._apply(updated)

        if self._outbox is not None:
            self._outbox.submit(UpdateSettings(values=updated.to_dict(only=changes)))
        return updated

    # ── internal ──────────────────────────────────────────────────────

    def _apply(self, config: Configuration) -> None:
        self._config = config
        if self._cache_enabled:
            try:
                save_settings(config)
            except OSError as exc:
                logger.warning("Could not write settings cache: %s", exc)
        self.changed.emit(config)

    def _on_outbox_failed(self, intent, message: str) -> None:
        if isinstance(intent, UpdateSettings):
            self.update_failed.emit(f"Failed to save settings: {message}")
