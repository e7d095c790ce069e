"""
Default analysis constants and gatekeeper thresholds.
Gatekeeper values are empirical tuning knobs, overridable per analyze() call.
"""
from patchmatch.core.io import MAX_INPUT_BYTES  # re-exported for analyze()

ANALYSIS_THRESHOLDS = {
    "silence_db": -60.0,  # RMS of channel 0, before normalization
    "normalize_target_db": -3.0,
    "pitch_fft_size": 4096,
    "texture_fft_size": 1024,
    "early_position": 0.2,
    "late_position": 0.8,
    "pitch_min_hz": 50.0,  # exclusive
    "pitch_max_hz": 2000.0,  # exclusive
    "release_window_s": 0.01,
    "release_start_db": -6.0,
    "release_end_db": -60.0,
    "release_min_s": 0.01,
    "release_max_s": 5.0,
    "release_fallback_s": 0.5,
    "amplitude_window": 512,
    "amplitude_percentile": 0.9,
    "amplitude_fallback": 0.5,
    "fallback_octave": 2,
}

GATEKEEPER_THRESHOLDS = {
    "fm_min_harmonics": 4,  # of harmonics 2..8
    "fm_harmonic_tolerance_hz": 20.0,
    "fm_relative_magnitude": 0.1,
    "organic_flatness_min": 0.1,  # exclusive
    "wide_spread_min_hz": 500.0,  # exclusive
}
