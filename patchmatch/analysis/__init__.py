"""
Feature extraction for recorded samples.
"""
from patchmatch.analysis.analyzer import analyze, normalize_buffer
from patchmatch.analysis.thresholds import ANALYSIS_THRESHOLDS, GATEKEEPER_THRESHOLDS

__all__ = ["analyze", "normalize_buffer", "ANALYSIS_THRESHOLDS", "GATEKEEPER_THRESHOLDS"]
