"""
Parameter clamping: keeps every bounded key inside its schema range.
"""
from typing import Any, Dict

from patchmatch.core.params import clamp_if_bounds, get_float
from patchmatch.dsp.oscillators import OscillatorType
from patchmatch.params.schema import PARAM_SCHEMA


def clamp_params(params: dict) -> dict:
    """
    Clamp params to their schema bounds.
    Returns a new dict (does not mutate input).

    - float keys: coerced to float and clamped; junk values fall back to the default
    - oscillator_type: unknown names become "sine" (fundamental-only)
    - locked_frequency: None stays None (not yet configured)
    - keys outside the schema pass through untouched
    """
    result: Dict[str, Any] = params.copy()

    for name, entry in PARAM_SCHEMA.items():
        if name not in result:
            continue
        if entry["type"] == "choice":
            result[name] = OscillatorType.parse(result[name]).value
            continue
        if result[name] is None and entry["default"] is None:
            continue
        default = entry["default"] if entry["default"] is not None else entry["min"]
        value = get_float(result, name, default)
        result[name] = clamp_if_bounds(value, entry["min"], entry["max"])

    return result
