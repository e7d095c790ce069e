"""
Simulated-annealing search over the synth parameter space.
Energy comes from the closed-form spectral model, so each trial costs O(harmonics).
"""
import logging
import math
import random
from typing import Any, Callable, Dict, Optional, Union

import torch

from patchmatch.core.types import AnnealResult, AnnealTrial, Spectrum, SynthParams
from patchmatch.params.resolve import resolve_params
from patchmatch.params.schema import MUTABLE_PARAMS, PARAM_SPACE
from patchmatch.search.model import SAMPLE_RATE, calculate_energy

logger = logging.getLogger("patchmatch")

DEFAULT_STEPS = 50
T_START = 1.0
T_END = 0.01
MUTATION_SCALE = 0.2


# -----------------------------------------------------------------------------
# Progress observers
# -----------------------------------------------------------------------------

class ProgressObserver:
    """Receives the best-so-far state after every step. Base class is a no-op."""

    def on_step(self, step: int, total_steps: int, energy: float, params: SynthParams) -> None:
        pass


class CallbackObserver(ProgressObserver):
    """Adapts a plain callable taking {"step", "total_steps", "energy", "params"}."""

    def __init__(self, callback: Callable[[Dict[str, Any]], None]):
        self.callback = callback

    def on_step(self, step: int, total_steps: int, energy: float, params: SynthParams) -> None:
        self.callback({
            "step": step,
            "total_steps": total_steps,
            "energy": energy,
            "params": params,
        })


def _as_observer(observer: Union[ProgressObserver, Callable, None]) -> ProgressObserver:
    if observer is None:
        return ProgressObserver()
    if isinstance(observer, ProgressObserver):
        return observer
    return CallbackObserver(observer)


# -----------------------------------------------------------------------------
# Schedule / moves
# -----------------------------------------------------------------------------

def temperature(step: int, steps: int, t_start: float = T_START, t_end: float = T_END) -> float:
    """Exponential cooling from t_start (step 0) towards t_end (step == steps)."""
    if steps <= 0:
        return t_end
    return t_start * (t_end / t_start) ** (step / steps)


def mutate(params: SynthParams, temp: float, rng: random.Random) -> SynthParams:
    """
    Perturb one mutable param by (u - 0.5) * range * 0.2 * temp, clamped to its bounds.
    Returns a new dict.
    """
    new_params = params.copy()
    key = MUTABLE_PARAMS[int(rng.random() * len(MUTABLE_PARAMS))]
    min_val, max_val = PARAM_SPACE[key]
    delta = (rng.random() - 0.5) * (max_val - min_val) * MUTATION_SCALE * temp
    new_params[key] = max(min_val, min(max_val, float(params[key]) + delta))
    return new_params


def accept(delta: float, temp: float, rng: random.Random) -> bool:
    """Metropolis criterion."""
    if delta < 0:
        return True
    if temp <= 0:
        return False
    return rng.random() < math.exp(-delta / temp)


# -----------------------------------------------------------------------------
# Annealer
# -----------------------------------------------------------------------------

class Annealer:
    """
    One annealing run owns its trial state and RNG; do not share an instance
    between threads while run() is in progress.
    """

    def __init__(
        self,
        target: Union[Spectrum, torch.Tensor, None],
        fundamental_hz: Optional[float] = None,
        steps: int = DEFAULT_STEPS,
        observer: Union[ProgressObserver, Callable, None] = None,
        cancel: Any = None,
        rng: Optional[random.Random] = None,
        sample_rate: int = SAMPLE_RATE,
    ):
        self.target = target
        self.fundamental_hz = fundamental_hz
        self.steps = max(0, int(steps))
        self.observer = _as_observer(observer)
        self.cancel = cancel
        self.rng = rng if rng is not None else random.Random()
        self.sample_rate = sample_rate

    def energy(self, params: SynthParams) -> float:
        return calculate_energy(params, self.target, self.fundamental_hz, self.sample_rate)

    def _cancelled(self) -> bool:
        return self.cancel is not None and bool(self.cancel.is_set())

    def run(self, initial_params: Optional[SynthParams] = None) -> AnnealResult:
        current = resolve_params(initial_params)
        current_energy = self.energy(current)
        best = current.copy()
        best_energy = current_energy
        initial_energy = current_energy

        steps_run = 0
        cancelled = False

        for step in range(self.steps):
            if self._cancelled():
                cancelled = True
                logger.info("[Annealer] Cancelled at step %d/%d", step, self.steps)
                break

            temp = temperature(step, self.steps)
            trial = AnnealTrial(params=mutate(current, temp, self.rng), energy=0.0, temperature=temp, step=step)
            trial.energy = self.energy(trial.params)
            delta = trial.energy - current_energy

            if accept(delta, temp, self.rng):
                current = trial.params
                current_energy = trial.energy
                if current_energy < best_energy:
                    best = current.copy()
                    best_energy = current_energy

            steps_run = step + 1
            logger.debug(
                "[Annealer] step=%d temp=%.4f trial=%.6f best=%.6f",
                step, temp, trial.energy, best_energy,
            )
            self.observer.on_step(step, self.steps, best_energy, best.copy())

        logger.info(
            "[Annealer] Complete: energy=%.4f (from %.4f) filter_freq=%.0f filter_q=%.2f distortion=%.3f",
            best_energy, initial_energy,
            best["filter_freq"], best["filter_q"], best["distortion_amount"],
        )
        return AnnealResult(
            params=best,
            energy=best_energy,
            initial_energy=initial_energy,
            steps_run=steps_run,
            total_steps=self.steps,
            cancelled=cancelled,
        )


def anneal(
    initial_params: Optional[SynthParams],
    target_spectrum: Union[Spectrum, torch.Tensor, None],
    steps: int = DEFAULT_STEPS,
    on_progress: Union[ProgressObserver, Callable, None] = None,
    fundamental_hz: Optional[float] = None,
    cancel: Any = None,
    rng: Optional[random.Random] = None,
) -> SynthParams:
    """Run a full annealing pass and return the best-seen parameter set."""
    annealer = Annealer(
        target_spectrum,
        fundamental_hz=fundamental_hz,
        steps=steps,
        observer=on_progress,
        cancel=cancel,
        rng=rng,
    )
    return annealer.run(initial_params).params
