"""
Spectral shape metrics computed on a single magnitude spectrum.
All divisions and logs are guarded with EPSILON, so an all-zero spectrum yields
finite values (flatness 1.0, centroid/spread 0.0) rather than NaN.
"""
from typing import Iterable

import torch

from patchmatch.core.types import Spectrum
from patchmatch.dsp.envelopes import EPSILON


def _mags(spectrum: Spectrum) -> torch.Tensor:
    return spectrum.magnitudes.to(torch.float64)


def _freqs(spectrum: Spectrum) -> torch.Tensor:
    return spectrum.frequencies.to(torch.float64)


def spectral_centroid(spectrum: Spectrum) -> float:
    """Magnitude-weighted mean frequency (Hz)."""
    mags = _mags(spectrum)
    total = float(torch.sum(mags))
    if total <= 0:
        return 0.0
    return float(torch.sum(_freqs(spectrum) * mags)) / total


def spectral_spread(spectrum: Spectrum) -> float:
    """Magnitude-weighted standard deviation of frequency around the centroid (Hz)."""
    mags = _mags(spectrum)
    total = float(torch.sum(mags))
    if total <= 0:
        return 0.0
    centroid = spectral_centroid(spectrum)
    variance = float(torch.sum(mags * (_freqs(spectrum) - centroid) ** 2)) / total
    return variance ** 0.5


def spectral_flatness(spectrum: Spectrum) -> float:
    """
    Wiener entropy: geometric mean / arithmetic mean.
    Near 1 for noise-like spectra, near 0 for tonal ones.
    """
    mags = _mags(spectrum)
    if mags.numel() == 0:
        return 0.0
    geom_mean = torch.exp(torch.mean(torch.log(mags + EPSILON)))
    arith_mean = torch.mean(mags)
    return float(geom_mean / (arith_mean + EPSILON))


def harmonic_present(
    spectrum: Spectrum,
    target_hz: float,
    tolerance_hz: float,
    min_magnitude: float,
) -> bool:
    """True if some bin within tolerance_hz of target_hz reaches min_magnitude."""
    near = torch.abs(_freqs(spectrum) - target_hz) < tolerance_hz
    loud = _mags(spectrum) >= min_magnitude
    return bool(torch.any(near & loud))


def count_harmonics(
    spectrum: Spectrum,
    fundamental_hz: float,
    harmonics: Iterable[int] = range(2, 9),
    tolerance_hz: float = 20.0,
    relative_threshold: float = 0.1,
) -> int:
    """
    Count integer harmonics of fundamental_hz present in the spectrum.
    "Present" means a bin within tolerance_hz at >= relative_threshold * max magnitude.
    """
    if fundamental_hz <= 0 or len(spectrum) == 0:
        return 0
    peak = float(torch.max(_mags(spectrum)))
    if peak <= 0:
        return 0
    min_magnitude = peak * relative_threshold
    return sum(
        1 for h in harmonics
        if harmonic_present(spectrum, fundamental_hz * h, tolerance_hz, min_magnitude)
    )
