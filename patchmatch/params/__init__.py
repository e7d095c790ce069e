"""
Parameter schema, defaults, clamping, vibes and the descriptor bridge.
Default values: single source is schema.DEFAULT_PARAMS; use resolve_params({}) for a full set.
"""
from patchmatch.params.schema import PARAM_SCHEMA, PARAM_SPACE, MUTABLE_PARAMS, DEFAULT_PARAMS
from patchmatch.params.resolve import resolve_params
from patchmatch.params.clamp import clamp_params
from patchmatch.params.vibes import apply_vibe
from patchmatch.params.bridge import configure

__all__ = [
    "PARAM_SCHEMA",
    "PARAM_SPACE",
    "MUTABLE_PARAMS",
    "DEFAULT_PARAMS",
    "resolve_params",
    "clamp_params",
    "apply_vibe",
    "configure",
]
