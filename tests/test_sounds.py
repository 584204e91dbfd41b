"""Tests for sound synthesis and the SoundManager."""

from __future__ import annotations

import io
import wave

import numpy as np
import pytest

from focusrank.audio.sounds import (
    SoundManager,
    SOUND_NAMES,
    AMBIENT_NAMES,
    AMBIENT_SECONDS,
    SAMPLE_RATE,
    _generate_work_complete,
    _generate_break_complete,
    _generate_click,
    _generate_whitenoise,
    _generate_rain,
    _generate_waves,
    _make_envelope,
    _smooth,
)

GENERATORS = [
    _generate_work_complete,
    _generate_break_complete,
    _generate_click,
    _generate_whitenoise,
    _generate_rain,
    _generate_waves,
]


# ═══════════════════════════════════════════════════════════════════════
#  SYNTHESIS
# ═══════════════════════════════════════════════════════════════════════


class TestSoundGeneration:
    """Each generator produces valid WAV bytes."""

    @pytest.mark.parametrize("gen_fn", GENERATORS)
    def test_generator_produces_wav(self, gen_fn):
        data = gen_fn()
        assert isinstance(data, bytes)
        assert len(data) > 100
        assert data[:4] == b"RIFF"

    @pytest.mark.parametrize("gen_fn", GENERATORS)
    def test_wav_is_parseable(self, gen_fn):
        with wave.open(io.BytesIO(gen_fn()), "rb") as wf:
            assert wf.getnchannels() == 1
            assert wf.getsampwidth() == 2
            assert wf.getframerate() == SAMPLE_RATE
            assert wf.getnframes() > 0

    @pytest.mark.parametrize("gen_fn", [_generate_whitenoise, _generate_rain, _generate_waves])
    def test_ambient_loops_are_full_length(self, gen_fn):
        with wave.open(io.BytesIO(gen_fn()), "rb") as wf:
            assert wf.getnframes() == int(SAMPLE_RATE * AMBIENT_SECONDS)

    def test_ambient_is_deterministic(self):
        assert _generate_rain() == _generate_rain()

    def test_envelope_shape(self):
        env = _make_envelope(1000, attack=100, decay=100, sustain_level=0.5, release=100)
        assert env[0] == 0.0
        assert env[99] == pytest.approx(1.0)
        assert env[500] == pytest.approx(0.5)
        assert env[-1] == pytest.approx(0.0)

    def test_smooth_keeps_length_and_mean(self):
        samples = np.ones(500)
        out = _smooth(samples, 64)
        assert out.shape == samples.shape
        assert np.allclose(out, 1.0)


# ═══════════════════════════════════════════════════════════════════════
#  MANAGER
# ═══════════════════════════════════════════════════════════════════════


@pytest.mark.usefixtures("qapp")
class TestSoundManager:
    def test_wav_files_generated(self, tmp_path):
        SoundManager(sounds_dir=tmp_path)
        for name in SOUND_NAMES:
            assert (tmp_path / f"{name}.wav").exists()

    def test_all_sounds_loaded(self, tmp_path):
        mgr = SoundManager(sounds_dir=tmp_path)
        assert set(mgr._effects) == set(SOUND_NAMES)

    def test_existing_files_are_reused(self, tmp_path):
        SoundManager(sounds_dir=tmp_path)
        path = tmp_path / "click.wav"
        before = path.stat().st_mtime_ns
        SoundManager(sounds_dir=tmp_path)
        assert path.stat().st_mtime_ns == before

    def test_set_volume(self, tmp_path):
        mgr = SoundManager(sounds_dir=tmp_path)
        mgr.set_volume(40)
        assert mgr.volume == 40

    @pytest.mark.parametrize("level, expected", [(150, 100), (-10, 0)])
    def test_set_volume_clamps(self, tmp_path, level, expected):
        mgr = SoundManager(sounds_dir=tmp_path)
        mgr.set_volume(level)
        assert mgr.volume == expected

    def test_play_invalid_name_no_crash(self, tmp_path):
        SoundManager(sounds_dir=tmp_path).play("airhorn")

    def test_ambient_play_and_stop(self, tmp_path):
        mgr = SoundManager(sounds_dir=tmp_path)
        mgr.play_ambient("rain")
        assert mgr.ambient == "rain"
        mgr.play_ambient("waves")
        assert mgr.ambient == "waves"
        mgr.stop()
        assert mgr.ambient is None

    def test_alert_is_not_ambient(self, tmp_path):
        mgr = SoundManager(sounds_dir=tmp_path)
        mgr.play_ambient("click")
        assert mgr.ambient is None

    def test_disabling_stops_ambient(self, tmp_path):
        mgr = SoundManager(sounds_dir=tmp_path)
        mgr.play_ambient(AMBIENT_NAMES[0])
        mgr.set_enabled(False)
        assert mgr.enabled is False
        assert mgr.ambient is None
        mgr.play_ambient(AMBIENT_NAMES[0])
        assert mgr.ambient is None
