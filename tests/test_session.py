"""
MatchSession lifecycle and the analyze + anneal pipeline.
Run from project root: python -m pytest tests/test_session.py -v
"""
import sys
import os
import math
import random

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest
import torch

from patchmatch.core.errors import SilentAudioError
from patchmatch.core.types import FeatureDescriptor, PCMBuffer
from patchmatch.dsp.oscillators import Oscillator
from patchmatch.params.schema import PARAM_SPACE
from patchmatch.search.session import MatchSession, match_sample

SR = 44100


def _descriptor(is_wide: bool = True) -> FeatureDescriptor:
    return FeatureDescriptor(
        pitch_hz=330.0,
        detected_octave=4,
        detected_release=1.2,
        amplitude=0.5,
        duration=1.0,
        sample_rate=SR,
        is_fm=False,
        is_organic=False,
        is_wide=is_wide,
    )


class TestMatchSession:
    def test_annealing_before_configure_soft_fails(self):
        session = MatchSession()
        before = dict(session.params)
        assert session.run_annealing(steps=10) is None
        assert session.params == before
        assert session.last_result is None

    def test_configure_applies_bridge_delta(self):
        session = MatchSession({"chorus_wet": 0.1})
        session.configure(_descriptor(is_wide=True))
        assert session.configured
        assert session.params["release"] == 1.2
        assert session.params["chorus_wet"] == 0.5
        assert session.locked_frequency == 330.0

    def test_configure_narrow_keeps_chorus(self):
        session = MatchSession({"chorus_wet": 0.1})
        session.configure(_descriptor(is_wide=False))
        assert session.params["chorus_wet"] == 0.1

    def test_descriptor_without_snapshots_runs_neutral(self):
        """No target spectrum -> constant energy, params unchanged."""
        session = MatchSession()
        session.configure(_descriptor())
        before = dict(session.params)
        result = session.run_annealing(steps=20, rng=random.Random(0))
        assert result.energy == 1.0
        assert session.params == before

    def test_vibe_overlay_does_not_touch_stored_params(self):
        session = MatchSession({"distortion_amount": 0.25})
        effective = session.set_vibe("modern")
        assert effective["distortion_amount"] == 0.3
        assert session.params["distortion_amount"] == 0.25
        assert session.set_vibe("off")["distortion_amount"] == 0.25

    def test_apply_params_clamps(self):
        session = MatchSession()
        session.apply_params({"filter_freq": 1e5})
        assert session.params["filter_freq"] == 8000.0


def test_match_sample_end_to_end():
    wave = Oscillator.saw(220.0, 1.0, SR, amplitude=0.5)
    seen = []
    descriptor, result = match_sample(
        PCMBuffer.from_array(wave, SR), steps=40, observer=seen.append, rng=random.Random(7),
    )
    assert abs(descriptor.pitch_hz - 220.0) < 3.0
    assert result.steps_run == 40
    assert len(seen) == 40
    assert result.energy <= result.initial_energy
    assert result.params["locked_frequency"] == pytest.approx(descriptor.pitch_hz)
    for key, (lo, hi) in PARAM_SPACE.items():
        assert lo <= result.params[key] <= hi


def test_match_sample_propagates_analysis_errors():
    with pytest.raises(SilentAudioError):
        match_sample([0.0] * SR, sample_rate=SR, steps=5)


def test_match_sample_hit_without_early_content_uses_default_fundamental():
    """Pitch falls back to 0 Hz; the model then estimates around 440 Hz."""
    t = torch.arange(SR, dtype=torch.float64) / SR
    hit = torch.sin(2 * math.pi * 200.0 * t) * torch.exp(-t / 0.02)
    hit[int(0.12 * SR):] = 0.0
    descriptor, result = match_sample(hit.float(), sample_rate=SR, steps=10, rng=random.Random(4))
    assert descriptor.pitch_hz == 0.0
    assert result.steps_run == 10
    assert math.isfinite(result.energy)
