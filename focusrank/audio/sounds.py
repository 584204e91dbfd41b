"""Sound synthesis and playback using numpy + QSoundEffect.

Every sound is generated as a WAV file (sine tones with ADSR envelopes
for alerts, filtered noise for ambient loops) and cached on disk, so
later launches only load files.

Alert sounds
------------
- ``work_complete``  — bright arpeggio when a work interval ends
- ``break_complete`` — soft bell when a break ends
- ``click``          — subtle button click

Ambient loops (premium)
-----------------------
- ``whitenoise`` — flat broadband noise
- ``rain``       — low-passed noise with random droplets
- ``waves``      — brown noise swelling on a slow cycle
"""

from __future__ import annotations

import io
import logging
import wave
from pathlib import Path

import numpy as np

from PyQt6.QtCore import QObject, QUrl
from PyQt6.QtMultimedia import QSoundEffect

from .. import paths

logger = logging.getLogger(__name__)

ALERT_NAMES = ("work_complete", "break_complete", "click")
AMBIENT_NAMES = ("whitenoise", "rain", "waves")
SOUND_NAMES = ALERT_NAMES + AMBIENT_NAMES

SAMPLE_RATE = 44100
AMBIENT_SECONDS = 8.0
_NOISE_SEED = 1729  # fixed so cached loops are identical between runs


# ═══════════════════════════════════════════════════════════════════════════
#  WAV SYNTHESIS HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def _make_envelope(
    length: int,
    attack: int = 200,
    decay: int = 400,
    sustain_level: float = 0.7,
    release: int = 800,
) -> np.ndarray:
    """ADSR envelope (all durations in samples)."""
    env = np.ones(length, dtype=np.float64)
    a = min(attack, length)
    if a > 0:
        env[:a] = np.linspace(0.0, 1.0, a)
    d_end = min(a + decay, length)
    if decay > 0 and d_end > a:
        env[a:d_end] = np.linspace(1.0, sustain_level, d_end - a)
    s_end = max(length - release, d_end)
    if s_end > d_end:
        env[d_end:s_end] = sustain_level
    if release > 0 and s_end < length:
        env[s_end:] = np.linspace(sustain_level, 0.0, length - s_end)
    return env


def _sine(freq: float, duration_s: float) -> np.ndarray:
    """Pure sine wave at *freq* Hz for *duration_s* seconds."""
    t = np.linspace(0, duration_s, int(SAMPLE_RATE * duration_s), endpoint=False)
    return np.sin(2 * np.pi * freq * t)


def _to_wav_bytes(samples: np.ndarray) -> bytes:
    """Convert a float64 numpy array (-1..1) to 16-bit PCM WAV bytes."""
    samples = np.clip(samples, -1.0, 1.0)
    int_samples = (samples * 32767).astype(np.int16)

    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(int_samples.tobytes())
    return buf.getvalue()


def _normalise(samples: np.ndarray, peak: float) -> np.ndarray:
    top = np.max(np.abs(samples))
    if top == 0:
        return samples
    return samples / top * peak


def _smooth(samples: np.ndarray, width: int) -> np.ndarray:
    """Moving-average low-pass filter (running sum, so wide windows stay cheap)."""
    padded = np.pad(samples, (width // 2, width - 1 - width // 2), mode="edge")
    sums = np.cumsum(np.insert(padded, 0, 0.0))
    return (sums[width:] - sums[:-width]) / width


def _loop_fade(samples: np.ndarray, fade: int = 2000) -> np.ndarray:
    """Short fade at both ends so the loop point doesn't click."""
    out = samples.copy()
    ramp = np.linspace(0.0, 1.0, fade)
    out[:fade] *= ramp
    out[-fade:] *= ramp[::-1]
    return out


# ═══════════════════════════════════════════════════════════════════════════
#  ALERT GENERATORS
# ═══════════════════════════════════════════════════════════════════════════


def _generate_work_complete() -> bytes:
    """Work complete — bright arpeggio (C5→E5→G5→C6), last note held."""
    notes = [523.25, 659.25, 783.99, 1046.50]
    gap = 0.02
    parts: list[np.ndarray] = []
    for i, freq in enumerate(notes):
        if i == len(notes) - 1:
            tone = _sine(freq, 0.35) * 0.5
            env = _make_envelope(len(tone), attack=80, decay=300, sustain_level=0.5, release=600)
        else:
            tone = _sine(freq, 0.10) * 0.5
            env = _make_envelope(len(tone), attack=60, decay=150, sustain_level=0.3, release=200)
        parts.append(tone * env)
        if i < len(notes) - 1:
            parts.append(np.zeros(int(SAMPLE_RATE * gap)))
    return _to_wav_bytes(np.concatenate(parts))


def _generate_break_complete() -> bytes:
    """Break complete — soft bell (A4 with an octave overtone), long decay."""
    duration = 1.0
    combined = _sine(440.0, duration) * 0.35 + _sine(880.0, duration) * 0.08
    env = _make_envelope(
        len(combined),
        attack=int(SAMPLE_RATE * 0.08),
        decay=int(SAMPLE_RATE * 0.3),
        sustain_level=0.25,
        release=int(SAMPLE_RATE * 0.55),
    )
    return _to_wav_bytes(combined * env)


def _generate_click() -> bytes:
    """Button click — very short high tick."""
    duration = 0.015
    n_samples = int(SAMPLE_RATE * duration)
    tick = _sine(1200.0, duration) * 0.2
    env = _make_envelope(n_samples, attack=20, decay=50, sustain_level=0.0, release=n_samples - 70)
    # trailing silence so QSoundEffect doesn't clip the tail
    padded = np.concatenate([tick * env, np.zeros(int(SAMPLE_RATE * 0.03))])
    return _to_wav_bytes(padded)


# ═══════════════════════════════════════════════════════════════════════════
#  AMBIENT GENERATORS
# ═══════════════════════════════════════════════════════════════════════════


def _generate_whitenoise() -> bytes:
    rng = np.random.default_rng(_NOISE_SEED)
    noise = rng.uniform(-1.0, 1.0, int(SAMPLE_RATE * AMBIENT_SECONDS))
    return _to_wav_bytes(_loop_fade(noise * 0.25))


def _generate_rain() -> bytes:
    """Rain — muffled noise bed with sparse bright droplets."""
    rng = np.random.default_rng(_NOISE_SEED + 1)
    n = int(SAMPLE_RATE * AMBIENT_SECONDS)
    bed = _smooth(rng.normal(0.0, 1.0, n), 6)

    drops = np.zeros(n)
    drop_len = int(SAMPLE_RATE * 0.01)
    drop_env = _make_envelope(drop_len, attack=5, decay=40, sustain_level=0.2, release=drop_len - 45)
    for start in rng.integers(0, n - drop_len, size=int(AMBIENT_SECONDS * 40)):
        drops[start:start + drop_len] += rng.normal(0.0, 1.0, drop_len) * drop_env
    mixed = _normalise(bed, 0.22) + _normalise(drops, 0.12)
    return _to_wav_bytes(_loop_fade(mixed))


def _generate_waves() -> bytes:
    """Waves — brown noise whose level swells and ebbs every few seconds."""
    rng = np.random.default_rng(_NOISE_SEED + 2)
    n = int(SAMPLE_RATE * AMBIENT_SECONDS)
    brown = np.cumsum(rng.normal(0.0, 1.0, n))
    brown -= _smooth(brown, 4096)  # remove drift
    t = np.linspace(0, AMBIENT_SECONDS, n, endpoint=False)
    # two full swells per loop, so the loop point lands on a trough
    swell = 0.35 + 0.65 * (0.5 - 0.5 * np.cos(2 * np.pi * t * 2 / AMBIENT_SECONDS))
    return _to_wav_bytes(_loop_fade(_normalise(brown, 0.4) * swell))


_GENERATORS: dict[str, callable] = {
    "work_complete": _generate_work_complete,
    "break_complete": _generate_break_complete,
    "click": _generate_click,
    "whitenoise": _generate_whitenoise,
    "rain": _generate_rain,
    "waves": _generate_waves,
}


# ═══════════════════════════════════════════════════════════════════════════
#  SOUND MANAGER
# ═══════════════════════════════════════════════════════════════════════════


class SoundManager(QObject):
    """Manages sound synthesis, caching, and playback.

    At most one ambient loop plays at a time; alerts play over it.

    Usage::

        mgr = SoundManager(parent=self)
        mgr.set_volume(70)
        mgr.play("work_complete")
        mgr.play_ambient("rain")
    """

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        sounds_dir: Path | None = None,
    ) -> None:
        super().__init__(parent)
        self._enabled = True
        self._volume = 0.7  # 0.0–1.0
        self._sounds_dir = sounds_dir or paths.SOUNDS_DIR
        self._effects: dict[str, QSoundEffect] = {}
        self._ambient: str | None = None

        self._ensure_wav_files()
        self._load_effects()

    # ── public API ────────────────────────────────────────────────────

    def set_volume(self, level: int) -> None:
        """Set volume (0-100).  Updates all loaded effects."""
        self._volume = max(0, min(level, 100)) / 100.0
        for effect in self._effects.values():
            effect.setVolume(self._volume)

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        if not enabled:
            self.stop()

    def play(self, name: str) -> None:
        """Play an alert by name.  No-op if disabled or name unknown."""
        if not self._enabled:
            return
        effect = self._effects.get(name)
        if effect is None:
            logger.debug("Unknown sound %r", name)
            return
        effect.play()

    def play_ambient(self, name: str) -> None:
        """Loop an ambient sound, replacing whichever one was playing."""
        if not self._enabled:
            return
        if name not in AMBIENT_NAMES or name not in self._effects:
            logger.warning("Unknown ambient sound %r", name)
            return
        if self._ambient == name and self._effects[name].isPlaying():
            return
        self.stop()
        effect = self._effects[name]
        effect.setLoopCount(QSoundEffect.Loop.Infinite.value)
        effect.play()
        self._ambient = name

    def stop(self) -> None:
        """Stop the ambient loop, if any."""
        if self._ambient is not None:
            effect = self._effects.get(self._ambient)
            if effect is not None:
                effect.stop()
            self._ambient = None

    @property
    def volume(self) -> int:
        """Current volume as 0-100 integer."""
        return round(self._volume * 100)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def ambient(self) -> str | None:
        """Name of the ambient loop currently playing."""
        return self._ambient

    # ── internal ──────────────────────────────────────────────────────

    def _ensure_wav_files(self) -> None:
        """Generate any missing WAV files to the cache directory."""
        self._sounds_dir.mkdir(parents=True, exist_ok=True)
        for name, gen_fn in _GENERATORS.items():
            path = self._sounds_dir / f"{name}.wav"
            if not path.exists():
                path.write_bytes(gen_fn())

    def _load_effects(self) -> None:
        """Create QSoundEffect instances from cached WAV files."""
        for name in SOUND_NAMES:
            path = self._sounds_dir / f"{name}.wav"
            if path.exists():
                effect = QSoundEffect(self)
                effect.setSource(QUrl.fromLocalFile(str(path)))
                effect.setVolume(self._volume)
                self._effects[name] = effect
