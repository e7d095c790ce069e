"""
Param lookup utilities shared by the spectral model, bridge and clamping.
Parameter sets are plain dicts; lookups never raise on missing or junk values.
"""
from typing import Any, Optional


def get_param(params: Optional[dict], name: str, default: Any = None) -> Any:
    """Read a value from params, returning default when params or the key is missing."""
    if not params or not name:
        return default
    return params.get(name, default)


def get_float(params: Optional[dict], name: str, default: float = 0.0) -> float:
    """
    Read a param as float. Non-numeric or non-finite values fall back to default.
    """
    raw = get_param(params, name, default)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return float(default)
    if value != value or value in (float("inf"), float("-inf")):
        return float(default)
    return value


def clamp_if_bounds(
    value: float,
    min: Optional[float] = None,
    max: Optional[float] = None,
) -> float:
    """
    Clamp value to [min, max] when bounds are not None.
    If both are None, returns value unchanged.
    """
    try:
        v = float(value)
    except (TypeError, ValueError):
        return value
    if min is not None and v < min:
        return min
    if max is not None and v > max:
        return max
    return v
