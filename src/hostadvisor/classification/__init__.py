"""
Workload classification for the hostadvisor package.

This module provides the WorkloadClassifier, the built-in signature table and
the ConfidenceModel shared with the recommendation scorer.
"""

from .classifier import WorkloadClassifier, compile_keywords
from .confidence import (
    DEFAULT_CONFIDENCE_MODEL,
    NEUTRAL_HARDWARE_COMPLETENESS,
    ConfidenceModel,
    confidence_model,
    dominance_margin,
)
from .signatures import DEFAULT_SIGNATURES

__all__ = [
    "WorkloadClassifier",
    "compile_keywords",
    "ConfidenceModel",
    "DEFAULT_CONFIDENCE_MODEL",
    "NEUTRAL_HARDWARE_COMPLETENESS",
    "confidence_model",
    "dominance_margin",
    "DEFAULT_SIGNATURES",
]
