"""
Parameter resolution: merge incoming params onto DEFAULT_PARAMS, then clamp.
Incoming params override defaults; the result is always a complete, in-range set.
"""
from typing import Any, Dict, Optional

from patchmatch.params.clamp import clamp_params
from patchmatch.params.schema import DEFAULT_PARAMS


def merge_params(base: Dict[str, Any], override: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Shallow merge: override values take precedence, None in override is ignored.
    Returns a new dict (does not mutate inputs).
    """
    result = base.copy()
    for key, value in (override or {}).items():
        if value is None:
            continue
        result[key] = value
    return result


def resolve_params(params: Optional[dict] = None) -> dict:
    """
    Resolve a (possibly partial) parameter set:
    1. Start from DEFAULT_PARAMS
    2. Merge incoming params onto it
    3. Clamp every bounded key to its schema range
    """
    return clamp_params(merge_params(DEFAULT_PARAMS, params))
