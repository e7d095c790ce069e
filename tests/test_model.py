"""
Tests for patchmatch/search/model: closed-form spectrum laws and the energy.
Run from project root: python -m pytest tests/test_model.py -v
"""
import sys
import os
import math

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest
import torch

from patchmatch.core.types import Spectrum
from patchmatch.params.resolve import resolve_params
from patchmatch.search.model import (
    bin_width,
    calculate_energy,
    estimate_spectrum,
    resolve_fundamental,
)

# Harmonics of 440 Hz land in bins floor(440 * h / 172.27): h1 -> 2, h2 -> 5, h3 -> 7
F0 = 440.0


def _params(**overrides):
    base = {
        "oscillator_type": "sawtooth",
        "filter_freq": 8000.0,
        "filter_q": 1.0,
        "distortion_amount": 0.0,
    }
    base.update(overrides)
    return resolve_params(base)


# -----------------------------------------------------------------------------
# Spectrum estimate
# -----------------------------------------------------------------------------

def test_shape_and_bin_width():
    spec = estimate_spectrum(_params(), F0)
    assert spec.shape == (128,)
    assert spec.dtype == torch.float64
    assert bin_width() == pytest.approx(44100 / 2 / 128)
    assert bool(torch.all(spec >= 0))


def test_sawtooth_law():
    spec = estimate_spectrum(_params(), F0)
    assert spec[2].item() == pytest.approx(1.0)
    assert spec[5].item() == pytest.approx(0.5)
    assert spec[7].item() == pytest.approx(1.0 / 3)


def test_square_has_no_even_harmonics():
    spec = estimate_spectrum(_params(oscillator_type="square"), F0)
    assert spec[2].item() == pytest.approx(1.0)
    assert spec[5].item() == 0.0
    assert spec[7].item() == pytest.approx(1.0 / 3)


def test_triangle_law():
    spec = estimate_spectrum(_params(oscillator_type="triangle"), F0)
    assert spec[7].item() == pytest.approx(1.0 / 9)


def test_other_waveform_is_fundamental_only():
    spec = estimate_spectrum(_params(oscillator_type="sine"), F0)
    assert spec[2].item() == pytest.approx(1.0)
    assert spec.sum().item() == pytest.approx(1.0)


def test_lowpass_rolloff_above_cutoff():
    spec = estimate_spectrum(_params(filter_freq=200.0), F0)
    assert spec[2].item() == pytest.approx((200.0 / 440.0) ** 2)


def test_resonance_near_cutoff():
    # 440 is within +/-10% of 450 and below it, so only the resonance applies
    spec = estimate_spectrum(_params(filter_freq=450.0, filter_q=2.0), F0)
    assert spec[2].item() == pytest.approx(2.0)
    assert spec[5].item() == pytest.approx(0.5 * (450.0 / 880.0) ** 2)


def test_distortion_boost():
    clean = estimate_spectrum(_params(), F0)
    driven = estimate_spectrum(_params(distortion_amount=0.5), F0)
    assert torch.allclose(driven, clean * 1.15)


def test_harmonics_above_last_bin_are_dropped():
    # 2 kHz fundamental: harmonics 1..11 fit below 22050 Hz, 12+ do not
    spec = estimate_spectrum(_params(), 2000.0)
    assert int((spec > 0).sum()) == 11
    assert spec[127].item() > 0


def test_fundamental_resolution():
    assert resolve_fundamental({}, None) == 440.0
    assert resolve_fundamental({"locked_frequency": None}) == 440.0
    assert resolve_fundamental({"locked_frequency": 0.0}) == 440.0
    assert resolve_fundamental({"locked_frequency": 220.0}) == 220.0
    assert resolve_fundamental({"locked_frequency": 220.0}, 330.0) == 330.0


def test_locked_frequency_drives_estimate():
    locked = estimate_spectrum(_params(locked_frequency=880.0))
    explicit = estimate_spectrum(_params(), 880.0)
    assert torch.equal(locked, explicit)


# -----------------------------------------------------------------------------
# Energy
# -----------------------------------------------------------------------------

def test_energy_zero_for_own_estimate():
    params = _params(filter_freq=3000.0, filter_q=4.0, distortion_amount=0.3)
    target = estimate_spectrum(params, F0)
    assert calculate_energy(params, target, F0) == pytest.approx(0.0, abs=1e-12)


def test_energy_non_negative_and_grows_with_mismatch():
    target = estimate_spectrum(_params(), F0)
    near = calculate_energy(_params(filter_freq=7000.0), target, F0)
    far = calculate_energy(_params(filter_freq=200.0), target, F0)
    assert 0.0 <= near < far


def test_energy_missing_target_is_neutral():
    assert calculate_energy(_params(), None) == 1.0
    assert calculate_energy(_params(), torch.zeros(0)) == 1.0


def test_energy_uses_shortest_length():
    params = _params()
    est = estimate_spectrum(params, F0)
    target = torch.zeros(10, dtype=torch.float64)
    expected = float(torch.mean(torch.log(est[:10] + 1.0) ** 2))
    assert calculate_energy(params, target, F0) == pytest.approx(expected)


def test_energy_accepts_spectrum_object():
    params = _params()
    mags = estimate_spectrum(params, F0).float()
    target = Spectrum(
        magnitudes=mags,
        frequencies=torch.arange(128, dtype=torch.float32) * bin_width(),
        sample_rate=44100,
        fft_size=256,
    )
    assert calculate_energy(params, target, F0) == pytest.approx(0.0, abs=1e-10)
    assert math.isfinite(calculate_energy(params, target))
