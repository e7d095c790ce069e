"""
Unit tests for patchmatch/dsp/envelopes: level helpers, release and loudness.
Run from project root: python -m pytest tests/test_envelopes.py -v
"""
import sys
import os
import math

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import torch
from patchmatch.dsp.envelopes import (
    db_to_lin,
    lin_to_db,
    measure_release,
    percentile_amplitude,
    rms,
    window_rms,
)

SR = 44100


def _decaying_sine(freq: float = 220.0, tau: float = 0.1, duration: float = 2.0) -> torch.Tensor:
    t = torch.arange(int(duration * SR), dtype=torch.float64) / SR
    return (torch.sin(2 * math.pi * freq * t) * torch.exp(-t / tau)).float()


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def test_db_to_lin():
    assert db_to_lin(0.0) == 1.0
    assert abs(db_to_lin(-6.0) - 0.5) < 0.01
    assert abs(db_to_lin(-60.0) - 0.001) < 1e-9


def test_lin_to_db_floor():
    assert lin_to_db(1.0) == 0.0
    assert lin_to_db(0.0) == -200.0


def test_rms_constant():
    assert abs(rms(torch.full((100,), 0.5)) - 0.5) < 1e-9
    assert rms(torch.zeros(0)) == 0.0


def test_window_rms_skips_window_ending_at_buffer_end():
    # 4 windows fit exactly, but starts must satisfy i < n - window
    levels = window_rms(torch.ones(400), 100)
    assert levels.numel() == 3
    assert window_rms(torch.ones(401), 100).numel() == 4
    assert window_rms(torch.ones(50), 100).numel() == 0


# -----------------------------------------------------------------------------
# Release
# -----------------------------------------------------------------------------

def test_release_of_exponential_decay():
    """-6 dB -> -60 dB of an exp(-t/0.1) envelope spans 0.1 * ln(500) ~= 0.62 s."""
    release = measure_release(_decaying_sine(tau=0.1), SR)
    assert abs(release - 0.1 * math.log(500.0)) < 0.05


def test_longer_decay_gives_longer_release():
    short = measure_release(_decaying_sine(tau=0.05), SR)
    long = measure_release(_decaying_sine(tau=0.2, duration=3.0), SR)
    assert long > short


def test_release_fallback_for_sustained_tone():
    t = torch.arange(SR, dtype=torch.float64) / SR
    tone = torch.sin(2 * math.pi * 440 * t).float()
    assert measure_release(tone, SR) == 0.5


def test_release_clamped_to_minimum():
    """Hard cut: both crossings land in the same window -> 0 s -> clamped to 10 ms."""
    x = torch.zeros(SR)
    x[:1000] = 1.0
    assert measure_release(x, SR) == 0.01


def test_release_empty_input():
    assert measure_release(torch.zeros(0), SR) == 0.5


# -----------------------------------------------------------------------------
# Percentile amplitude
# -----------------------------------------------------------------------------

def test_percentile_amplitude_constant():
    assert abs(percentile_amplitude(torch.full((5120,), 0.25)) - 0.25) < 1e-6


def test_percentile_amplitude_picks_loud_windows():
    x = torch.zeros(512 * 11)
    x[: 512 * 2] = 0.8  # 2 loud windows out of 10
    assert abs(percentile_amplitude(x) - 0.8) < 1e-6


def test_percentile_amplitude_fallback_short_input():
    assert percentile_amplitude(torch.ones(100)) == 0.5
