"""
Vibe overlays: named LFO settings plus a small distortion or chorus push.
A vibe is applied on top of the stored params and never changes them, so
switching back to "off" restores the stored distortion and chorus.
"""
from typing import Dict

VIBES = ("off", "modern", "vintage")


def apply_vibe(params: dict, vibe: str) -> dict:
    """
    Return the effective params for a vibe. Does not mutate input.
    Unknown vibe names behave like "off".
    """
    result = params.copy()
    name = (vibe or "off").lower()

    if name == "modern":
        result["vibe_depth"] = 0.3
        result["vibe_rate"] = 6.0
        result["distortion_amount"] = min(0.3, float(params.get("distortion_amount", 0.0)) + 0.1)
    elif name == "vintage":
        result["vibe_depth"] = 0.5
        result["vibe_rate"] = 4.0
        result["chorus_wet"] = min(0.7, float(params.get("chorus_wet", 0.0)) + 0.2)
    else:
        result["vibe_depth"] = 0.0

    return result


def vibe_delta(params: dict, vibe: str) -> Dict[str, float]:
    """Only the keys a vibe changes relative to params."""
    effective = apply_vibe(params, vibe)
    return {k: v for k, v in effective.items() if params.get(k) != v}
