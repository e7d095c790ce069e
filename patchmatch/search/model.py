"""
Closed-form estimate of the synth's output spectrum and the matching energy.
No audio is rendered: 16 harmonics are shaped by the oscillator law, a lowpass
rolloff and a resonance bump, then dropped into linearly spaced bins.
"""
import math
from typing import Optional, Union

import torch

from patchmatch.core.params import get_float, get_param
from patchmatch.core.types import Spectrum
from patchmatch.dsp.oscillators import OscillatorType

SAMPLE_RATE = 44100
NUM_BINS = 128
NUM_HARMONICS = 16
DEFAULT_FUNDAMENTAL_HZ = 440.0
COMPARE_BINS = 64
NEUTRAL_ENERGY = 1.0


def bin_width(sample_rate: int = SAMPLE_RATE, num_bins: int = NUM_BINS) -> float:
    """~172 Hz at 44.1 kHz / 128 bins."""
    return sample_rate / 2.0 / num_bins


def resolve_fundamental(params: dict, fundamental_hz: Optional[float] = None) -> float:
    """Explicit fundamental, else params["locked_frequency"], else 440 Hz."""
    if fundamental_hz is not None and math.isfinite(fundamental_hz) and fundamental_hz > 0:
        return float(fundamental_hz)
    locked = get_float(params, "locked_frequency", 0.0)
    if locked > 0:
        return locked
    return DEFAULT_FUNDAMENTAL_HZ


def estimate_spectrum(
    params: dict,
    fundamental_hz: Optional[float] = None,
    sample_rate: int = SAMPLE_RATE,
    num_bins: int = NUM_BINS,
) -> torch.Tensor:
    """
    Predict the magnitude spectrum (num_bins, float64) that params would produce.
    """
    spectrum = torch.zeros(num_bins, dtype=torch.float64)
    f0 = resolve_fundamental(params, fundamental_hz)
    width = bin_width(sample_rate, num_bins)

    osc = OscillatorType.parse(get_param(params, "oscillator_type", OscillatorType.SAWTOOTH))
    cutoff = get_float(params, "filter_freq", 2000.0)
    q = get_float(params, "filter_q", 1.0)
    drive = get_float(params, "distortion_amount", 0.0)

    for h in range(1, NUM_HARMONICS + 1):
        freq = f0 * h
        idx = int(math.floor(freq / width))
        if idx < 0 or idx >= num_bins:
            continue

        amplitude = osc.harmonic_amplitude(h)

        # One-pole-ish lowpass: flat passband, (fc/f)^2 above cutoff
        rolloff = (cutoff / freq) ** 2 if freq > cutoff else 1.0

        # Resonance bump within +/-10% of cutoff
        if cutoff * 0.9 < freq < cutoff * 1.1:
            amplitude *= 1.0 + q * 0.5

        spectrum[idx] += amplitude * rolloff

    if drive > 0:
        spectrum = spectrum + spectrum * drive * 0.3

    return spectrum


def _magnitudes(target: Union[Spectrum, torch.Tensor, None]) -> Optional[torch.Tensor]:
    if target is None:
        return None
    if isinstance(target, Spectrum):
        return target.magnitudes.to(torch.float64)
    return torch.as_tensor(target, dtype=torch.float64).reshape(-1)


def calculate_energy(
    params: dict,
    target: Union[Spectrum, torch.Tensor, None],
    fundamental_hz: Optional[float] = None,
    sample_rate: int = SAMPLE_RATE,
    num_bins: int = NUM_BINS,
) -> float:
    """
    Mean squared error of log(mag + 1) over the first min(64, len(est), len(target)) bins.
    Missing or empty target -> NEUTRAL_ENERGY.
    """
    target_mags = _magnitudes(target)
    if target_mags is None or target_mags.numel() == 0:
        return NEUTRAL_ENERGY

    estimated = estimate_spectrum(params, fundamental_hz, sample_rate, num_bins)
    n = min(COMPARE_BINS, estimated.numel(), target_mags.numel())
    diff = torch.log(estimated[:n] + 1.0) - torch.log(torch.clamp(target_mags[:n], min=0.0) + 1.0)
    energy = float(torch.mean(diff ** 2))
    return energy if math.isfinite(energy) else NEUTRAL_ENERGY
