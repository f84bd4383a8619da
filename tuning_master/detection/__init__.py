"""Pitch detection pipeline: signal gate, fundamental estimator and target matcher."""

from .signal_gate import is_silent, rms
from .pitch_estimator import FundamentalEstimator, validate_block
from .target_matcher import TargetMatcher

__all__ = [
    "is_silent",
    "rms",
    "FundamentalEstimator",
    "validate_block",
    "TargetMatcher",
]
