import math

import torch

EPSILON = 1e-10


# -----------------------------------------------------------------------------
# Level helpers
# -----------------------------------------------------------------------------

def db_to_lin(db: float) -> float:
    """Convert decibels to linear gain. 0 dB -> 1.0."""
    return 10.0 ** (db / 20.0)


def lin_to_db(x: float) -> float:
    """Convert linear amplitude to dB, floored at EPSILON (-200 dB)."""
    return 20.0 * math.log10(max(abs(float(x)), EPSILON))


def rms(samples: torch.Tensor) -> float:
    x = samples.reshape(-1).to(torch.float64)
    if x.numel() == 0:
        return 0.0
    return float(torch.sqrt(torch.mean(x ** 2)))


def window_rms(samples: torch.Tensor, window: int, start: int = 0) -> torch.Tensor:
    """
    RMS of consecutive non-overlapping windows beginning at start.
    Window starts i satisfy i < len - window (a window ending exactly at the
    buffer end is not taken).
    """
    x = samples.reshape(-1).to(torch.float64)
    n = x.shape[0]
    span = n - window - start
    if window <= 0 or span <= 0:
        return torch.zeros(0, dtype=torch.float64)
    count = -(-span // window)
    frames = x[start:start + count * window].view(count, window)
    return torch.sqrt(torch.mean(frames ** 2, dim=1))


# -----------------------------------------------------------------------------
# Envelope measurements
# -----------------------------------------------------------------------------

def measure_release(
    samples: torch.Tensor,
    sample_rate: int,
    window_s: float = 0.01,
    start_db: float = -6.0,
    end_db: float = -60.0,
    min_s: float = 0.01,
    max_s: float = 5.0,
    fallback_s: float = 0.5,
) -> float:
    """
    Release time from the peak onwards: time between the envelope first falling
    below start_db of peak and then below end_db of peak, in window_s RMS steps.
    Clamped to [min_s, max_s]; fallback_s when either crossing never happens.
    """
    x = samples.reshape(-1).to(torch.float64)
    if x.numel() == 0 or sample_rate <= 0:
        return fallback_s

    magnitude = torch.abs(x)
    peak_idx = int(torch.argmax(magnitude))
    peak = float(magnitude[peak_idx])
    window = int(math.floor(sample_rate * window_s))

    levels = window_rms(x, window, start=peak_idx)
    if levels.numel() == 0 or peak <= 0:
        return fallback_s

    below_start = torch.nonzero(levels < peak * db_to_lin(start_db)).reshape(-1)
    if below_start.numel() == 0:
        return fallback_s
    first = int(below_start[0])

    below_end = torch.nonzero(levels[first:] < peak * db_to_lin(end_db)).reshape(-1)
    if below_end.numel() == 0:
        return fallback_s
    last = first + int(below_end[0])

    release = (last - first) * window / float(sample_rate)
    return max(min_s, min(max_s, release))


def percentile_amplitude(
    samples: torch.Tensor,
    window: int = 512,
    percentile: float = 0.9,
    fallback: float = 0.5,
) -> float:
    """Windowed RMS value at the given percentile index (ascending sort)."""
    levels = window_rms(samples, window)
    if levels.numel() == 0:
        return fallback
    ordered, _ = torch.sort(levels)
    idx = min(int(math.floor(ordered.numel() * percentile)), ordered.numel() - 1)
    return float(ordered[idx])
