"""
Spectral model, annealing optimizer and match session.
"""
from patchmatch.search.model import estimate_spectrum, calculate_energy
from patchmatch.search.annealer import Annealer, CallbackObserver, ProgressObserver, anneal, temperature
from patchmatch.search.session import MatchSession, match_sample

__all__ = [
    "estimate_spectrum",
    "calculate_energy",
    "Annealer",
    "CallbackObserver",
    "ProgressObserver",
    "anneal",
    "temperature",
    "MatchSession",
    "match_sample",
]
