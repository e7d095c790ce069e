"""
Feature extraction for a recorded sample.
Validates and normalizes the buffer, takes early/late spectral snapshots, and
derives pitch, octave, release time, loudness and the gatekeeper tags.
"""
import logging
import math
from typing import Dict, Optional, Union

import torch

from patchmatch.analysis.thresholds import (
    ANALYSIS_THRESHOLDS,
    GATEKEEPER_THRESHOLDS,
    MAX_INPUT_BYTES,
)
from patchmatch.core.errors import InvalidInputError, SilentAudioError
from patchmatch.core.types import (
    ArrayLike,
    DualSnapshot,
    FeatureDescriptor,
    PCMBuffer,
    Spectrum,
    SpectrumPair,
)
from patchmatch.dsp.envelopes import (
    EPSILON,
    db_to_lin,
    lin_to_db,
    measure_release,
    percentile_amplitude,
    rms,
)
from patchmatch.dsp.fft import compute_spectrum, zero_pad
from patchmatch.dsp.spectral import count_harmonics, spectral_flatness, spectral_spread

logger = logging.getLogger("patchmatch")


# -----------------------------------------------------------------------------
# Input validation / conditioning
# -----------------------------------------------------------------------------

def as_buffer(buffer: Union[PCMBuffer, ArrayLike], sample_rate: Optional[int] = None) -> PCMBuffer:
    """Accept a PCMBuffer or raw samples plus a sample rate."""
    if isinstance(buffer, PCMBuffer):
        return buffer
    if sample_rate is None:
        raise InvalidInputError("sample_rate is required for raw sample input")
    try:
        return PCMBuffer.from_array(buffer, sample_rate)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Samples cannot be read as PCM: {exc}") from exc


def validate_buffer(buffer: PCMBuffer, max_bytes: int = MAX_INPUT_BYTES) -> None:
    if buffer.sample_rate <= 0:
        raise InvalidInputError(f"Invalid sample rate: {buffer.sample_rate}")
    if buffer.num_channels == 0 or buffer.length == 0:
        raise InvalidInputError("Audio buffer is empty")
    if buffer.nbytes > max_bytes:
        raise InvalidInputError(
            f"Audio too large: {buffer.nbytes} bytes > {max_bytes} bytes"
        )
    if not bool(torch.isfinite(buffer.samples).all()):
        raise InvalidInputError("Audio buffer contains NaN or infinite samples")


def check_silence(buffer: PCMBuffer, threshold_db: float = -60.0) -> float:
    """Return the RMS level (dBFS) of channel 0; raise SilentAudioError below threshold."""
    level_db = lin_to_db(rms(buffer.channel(0)))
    if level_db < threshold_db:
        raise SilentAudioError(
            f"Audio is too quiet ({level_db:.1f} dBFS < {threshold_db:.1f} dBFS)"
        )
    return level_db


def normalize_buffer(buffer: PCMBuffer, target_db: float = -3.0) -> PCMBuffer:
    """Scale all channels so the loudest sample lands at target_db. Returns a new buffer."""
    peak = float(torch.max(torch.abs(buffer.samples))) if buffer.samples.numel() else 0.0
    if peak <= 0:
        raise SilentAudioError("Audio appears to be silent (peak is zero)")
    gain = db_to_lin(target_db) / peak
    return PCMBuffer(samples=buffer.samples * gain, sample_rate=buffer.sample_rate)


# -----------------------------------------------------------------------------
# Snapshots
# -----------------------------------------------------------------------------

def spectrum_at(samples: torch.Tensor, position: int, size: int, sample_rate: int) -> Spectrum:
    """Spectrum of a size-sample window centred on position, zero-padded past the end."""
    start = max(0, position - size // 2)
    end = min(samples.shape[-1], start + size)
    return compute_spectrum(zero_pad(samples[start:end], size), sample_rate)


def dual_snapshot(
    buffer: PCMBuffer,
    pitch_size: int = 4096,
    texture_size: int = 1024,
    early_position: float = 0.2,
    late_position: float = 0.8,
) -> DualSnapshot:
    channel = buffer.channel(0)
    n = channel.shape[-1]
    sr = buffer.sample_rate
    pos_early = int(math.floor(n * early_position))
    pos_late = int(math.floor(n * late_position))

    return DualSnapshot(
        early=SpectrumPair(
            pitch=spectrum_at(channel, pos_early, pitch_size, sr),
            texture=spectrum_at(channel, pos_early, texture_size, sr),
        ),
        late=SpectrumPair(
            pitch=spectrum_at(channel, pos_late, pitch_size, sr),
            texture=spectrum_at(channel, pos_late, texture_size, sr),
        ),
    )


# -----------------------------------------------------------------------------
# Pitch
# -----------------------------------------------------------------------------

def detect_pitch(spectrum: Spectrum, min_hz: float = 50.0, max_hz: float = 2000.0) -> float:
    """
    Peak bin within (min_hz, max_hz), refined by 3-point parabolic interpolation.
    Falls back to the first bin's frequency when the band holds no energy.
    """
    n = len(spectrum)
    if n == 0:
        return 0.0
    mags = spectrum.magnitudes.to(torch.float64)
    freqs = spectrum.frequencies.to(torch.float64)

    idx = torch.arange(n)
    band = (idx >= 1) & (idx <= n - 2) & (freqs > min_hz) & (freqs < max_hz)
    if not bool(torch.any(band)):
        return float(freqs[0])
    masked = torch.where(band, mags, torch.full_like(mags, -1.0))
    peak_idx = int(torch.argmax(masked))
    if float(mags[peak_idx]) <= 0:
        return float(freqs[0])

    raw = float(freqs[peak_idx])
    if peak_idx <= 0 or peak_idx >= n - 1:
        return raw

    y0 = float(mags[peak_idx - 1])
    y1 = float(mags[peak_idx])
    y2 = float(mags[peak_idx + 1])
    denom = 2.0 * (y0 - 2.0 * y1 + y2)
    if abs(denom) < EPSILON:
        return raw
    offset = (y0 - y2) / denom
    refined = raw + offset * spectrum.bin_width
    return refined if math.isfinite(refined) else raw


def frequency_to_octave(frequency: float, fallback: int = 2) -> int:
    """MIDI-style octave number (A4 = 440 Hz -> 4)."""
    if not math.isfinite(frequency) or frequency <= 0:
        return fallback
    note = 12.0 * math.log2(frequency / 440.0) + 69.0
    return int(math.floor(note / 12.0)) - 1


# -----------------------------------------------------------------------------
# Gatekeepers
# -----------------------------------------------------------------------------

def compute_gatekeepers(
    snapshots: DualSnapshot,
    fundamental_hz: float,
    thresholds: Optional[Dict] = None,
) -> Dict:
    """
    Heuristic timbre tags from the early snapshot.
    Returns the three flags plus the metrics they were derived from.
    """
    t = {**GATEKEEPER_THRESHOLDS, **(thresholds or {})}

    harmonic_count = count_harmonics(
        snapshots.early.pitch,
        fundamental_hz,
        harmonics=range(2, 9),
        tolerance_hz=t["fm_harmonic_tolerance_hz"],
        relative_threshold=t["fm_relative_magnitude"],
    )
    flatness = spectral_flatness(snapshots.early.texture)
    spread = spectral_spread(snapshots.early.texture)

    return {
        "is_fm": harmonic_count >= t["fm_min_harmonics"],
        "is_organic": flatness > t["organic_flatness_min"],
        "is_wide": spread > t["wide_spread_min_hz"],
        "harmonic_count": harmonic_count,
        "flatness": flatness,
        "spread": spread,
    }


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------

def analyze(
    buffer: Union[PCMBuffer, ArrayLike],
    sample_rate: Optional[int] = None,
    thresholds: Optional[Dict] = None,
) -> FeatureDescriptor:
    """
    Analyze a decoded sample.

    Args:
        buffer: PCMBuffer, or raw mono / channel-major samples in [-1, 1]
        sample_rate: Sample rate in Hz (required for raw samples)
        thresholds: Overrides for ANALYSIS_THRESHOLDS / GATEKEEPER_THRESHOLDS keys

    Raises:
        InvalidInputError, SilentAudioError
    """
    cfg = {**ANALYSIS_THRESHOLDS, **GATEKEEPER_THRESHOLDS, **(thresholds or {})}

    pcm = as_buffer(buffer, sample_rate)
    validate_buffer(pcm, cfg.get("max_input_bytes", MAX_INPUT_BYTES))

    # Silence is judged on the raw level; normalization would hide it.
    level_db = check_silence(pcm, cfg["silence_db"])
    pcm = normalize_buffer(pcm, cfg["normalize_target_db"])

    snapshots = dual_snapshot(
        pcm,
        pitch_size=cfg["pitch_fft_size"],
        texture_size=cfg["texture_fft_size"],
        early_position=cfg["early_position"],
        late_position=cfg["late_position"],
    )
    if snapshots.early.pitch.is_silent():
        # pitch falls back to bin 0, octave to the fallback
        logger.warning("[Analyzer] Early snapshot has no spectral content (input level %.1f dBFS)", level_db)

    pitch_hz = detect_pitch(snapshots.early.pitch, cfg["pitch_min_hz"], cfg["pitch_max_hz"])
    octave = frequency_to_octave(pitch_hz, cfg["fallback_octave"])
    release = measure_release(
        pcm.channel(0),
        pcm.sample_rate,
        window_s=cfg["release_window_s"],
        start_db=cfg["release_start_db"],
        end_db=cfg["release_end_db"],
        min_s=cfg["release_min_s"],
        max_s=cfg["release_max_s"],
        fallback_s=cfg["release_fallback_s"],
    )
    amplitude = percentile_amplitude(
        pcm.channel(0),
        window=cfg["amplitude_window"],
        percentile=cfg["amplitude_percentile"],
        fallback=cfg["amplitude_fallback"],
    )
    tags = compute_gatekeepers(snapshots, pitch_hz, cfg)

    descriptor = FeatureDescriptor(
        pitch_hz=pitch_hz,
        detected_octave=octave,
        detected_release=release,
        amplitude=amplitude,
        duration=pcm.duration,
        sample_rate=pcm.sample_rate,
        is_fm=tags["is_fm"],
        is_organic=tags["is_organic"],
        is_wide=tags["is_wide"],
        snapshots=snapshots,
    )

    logger.info(
        "[Analyzer] Results: pitch=%.2f Hz octave=%d release=%.3f s fm=%s organic=%s wide=%s",
        pitch_hz, octave, release, descriptor.is_fm, descriptor.is_organic, descriptor.is_wide,
    )
    logger.debug(
        "[Analyzer] Gatekeeper metrics: harmonics=%d flatness=%.4f spread=%.1f Hz",
        tags["harmonic_count"], tags["flatness"], tags["spread"],
    )
    return descriptor
