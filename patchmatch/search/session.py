"""
Match session: holds the patch being shaped for one analyzed sample.
Plain data only; whatever plays the patch reads session.effective_params().
"""
import logging
import random
from typing import Any, Callable, Optional, Tuple, Union

import torch

from patchmatch.analysis.analyzer import analyze
from patchmatch.core.types import (
    AnnealResult,
    ArrayLike,
    FeatureDescriptor,
    PCMBuffer,
    Spectrum,
    SynthParams,
)
from patchmatch.params.bridge import configure
from patchmatch.params.resolve import merge_params, resolve_params
from patchmatch.params.vibes import apply_vibe
from patchmatch.search.annealer import DEFAULT_STEPS, Annealer, ProgressObserver

logger = logging.getLogger("patchmatch")


class MatchSession:
    def __init__(self, params: Optional[SynthParams] = None):
        self.params: SynthParams = resolve_params(params)
        self.descriptor: Optional[FeatureDescriptor] = None
        self.vibe = "off"
        self.last_result: Optional[AnnealResult] = None

    @property
    def configured(self) -> bool:
        return self.descriptor is not None

    @property
    def locked_frequency(self) -> Optional[float]:
        return self.params.get("locked_frequency")

    def configure(self, descriptor: FeatureDescriptor) -> SynthParams:
        """Seed params from an analysis. Returns the applied delta."""
        delta = configure(descriptor)
        self.apply_params(delta)
        self.descriptor = descriptor
        return delta

    def apply_params(self, params: SynthParams) -> SynthParams:
        """Merge params onto the stored set (clamped). Returns the new stored set."""
        self.params = resolve_params(merge_params(self.params, params))
        return self.params

    def set_vibe(self, vibe: str) -> SynthParams:
        self.vibe = vibe or "off"
        logger.info("[Session] Vibe set: %s", self.vibe)
        return self.effective_params()

    def effective_params(self) -> SynthParams:
        """Stored params with the current vibe overlaid."""
        return apply_vibe(self.params, self.vibe)

    def run_annealing(
        self,
        target: Union[Spectrum, torch.Tensor, None] = None,
        steps: int = DEFAULT_STEPS,
        observer: Union[ProgressObserver, Callable, None] = None,
        cancel: Any = None,
        rng: Optional[random.Random] = None,
    ) -> Optional[AnnealResult]:
        """
        Refine the stored params against target (default: the descriptor's early
        pitch spectrum). Returns None if the session has not been configured yet.
        """
        if not self.configured:
            logger.warning("[Session] Not configured yet; annealing skipped")
            return None

        if target is None:
            target = self.descriptor.target_spectrum()

        annealer = Annealer(
            target,
            fundamental_hz=self.locked_frequency,
            steps=steps,
            observer=observer,
            cancel=cancel,
            rng=rng,
        )
        result = annealer.run(self.params)
        self.apply_params(result.params)
        self.last_result = result
        return result


def match_sample(
    buffer: Union[PCMBuffer, ArrayLike],
    sample_rate: Optional[int] = None,
    steps: int = DEFAULT_STEPS,
    params: Optional[SynthParams] = None,
    observer: Union[ProgressObserver, Callable, None] = None,
    cancel: Any = None,
    rng: Optional[random.Random] = None,
) -> Tuple[FeatureDescriptor, AnnealResult]:
    """Analyze a sample, seed a session from it and anneal. Analysis errors propagate."""
    descriptor = analyze(buffer, sample_rate)
    session = MatchSession(params)
    session.configure(descriptor)
    result = session.run_annealing(steps=steps, observer=observer, cancel=cancel, rng=rng)
    return descriptor, result
