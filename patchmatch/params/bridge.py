"""
Descriptor -> engine configuration bridge.
Seeds starting params from an analysis before the annealer refines them.
"""
import logging

from patchmatch.core.types import EngineConfigDelta, FeatureDescriptor

logger = logging.getLogger("patchmatch")

WIDE_CHORUS_WET = 0.5


def configure(descriptor: FeatureDescriptor) -> EngineConfigDelta:
    """
    Map descriptor fields onto engine params:
    - detected_release -> release
    - is_wide -> chorus_wet boost (otherwise chorus is left alone)
    - pitch_hz -> locked_frequency (fundamental for spectral estimation)
    """
    delta: EngineConfigDelta = {
        "release": float(descriptor.detected_release),
        "locked_frequency": float(descriptor.pitch_hz),
    }
    if descriptor.is_wide:
        delta["chorus_wet"] = WIDE_CHORUS_WET

    logger.info(
        "[Bridge] Configured: release=%.3f chorus_wet=%s locked_freq=%.2f",
        delta["release"], delta.get("chorus_wet", "unchanged"), delta["locked_frequency"],
    )
    return delta
