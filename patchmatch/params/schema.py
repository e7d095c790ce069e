"""
Synth parameter schema: type, default, bounds, group and description per key.
Defaults mirror the playback engine's initial patch.
PARAM_SPACE holds only the keys the annealer is allowed to mutate.
"""
from typing import Any, Dict, Literal, Tuple

# Type definitions
ParamType = Literal["float", "choice"]
ParamGroup = Literal["search", "voice", "bridge", "vibe"]

ParamSchemaEntry = Dict[str, Any]


def _make_param(
    param_type: ParamType,
    default: Any,
    min_val: Any,
    max_val: Any,
    group: ParamGroup,
    description: str,
) -> ParamSchemaEntry:
    """Helper to create a schema entry."""
    return {
        "type": param_type,
        "default": default,
        "min": min_val,
        "max": max_val,
        "group": group,
        "description": description,
    }


# -----------------------------------------------------------------------------
# PARAM_SCHEMA
# -----------------------------------------------------------------------------

PARAM_SCHEMA: Dict[str, ParamSchemaEntry] = {
    # Search params (mutated by the annealer)
    "filter_freq": _make_param(
        "float", 2000.0, 200.0, 8000.0, "search", "Lowpass cutoff (Hz)"
    ),
    "filter_q": _make_param(
        "float", 1.0, 0.5, 10.0, "search", "Filter resonance"
    ),
    "distortion_amount": _make_param(
        "float", 0.0, 0.0, 0.8, "search", "Waveshaper drive (0 = bypass)"
    ),
    "attack": _make_param(
        "float", 0.01, 0.001, 0.5, "search", "Amp envelope attack (s)"
    ),
    "decay": _make_param(
        "float", 0.2, 0.01, 1.0, "search", "Amp envelope decay (s)"
    ),
    "sustain": _make_param(
        "float", 0.5, 0.1, 1.0, "search", "Amp envelope sustain level"
    ),
    # Voice
    "oscillator_type": _make_param(
        "choice", "sawtooth", None, None, "voice", "Oscillator waveform"
    ),
    # Set by the descriptor bridge
    "release": _make_param(
        "float", 0.5, 0.01, 5.0, "bridge", "Amp envelope release (s)"
    ),
    "chorus_wet": _make_param(
        "float", 0.0, 0.0, 1.0, "bridge", "Chorus mix"
    ),
    "locked_frequency": _make_param(
        "float", None, 0.0, 22050.0, "bridge", "Fundamental used for spectral estimation (Hz)"
    ),
    # Vibe overlay (LFO)
    "vibe_depth": _make_param(
        "float", 0.0, 0.0, 1.0, "vibe", "Pitch LFO depth"
    ),
    "vibe_rate": _make_param(
        "float", 5.0, 0.1, 20.0, "vibe", "Pitch LFO rate (Hz)"
    ),
}

DEFAULT_PARAMS: Dict[str, Any] = {
    name: entry["default"] for name, entry in PARAM_SCHEMA.items()
}

# Order matters: the annealer draws uniformly by index.
MUTABLE_PARAMS: Tuple[str, ...] = (
    "filter_freq",
    "filter_q",
    "distortion_amount",
    "attack",
    "decay",
    "sustain",
)

PARAM_SPACE: Dict[str, Tuple[float, float]] = {
    name: (PARAM_SCHEMA[name]["min"], PARAM_SCHEMA[name]["max"]) for name in MUTABLE_PARAMS
}
