"""
Recommendation scoring for the hostadvisor package.
"""

from .scorer import (
    RecommendationScorer,
    action_for_weight,
    apply_bottlenecks,
    risk_for_mean,
)
from .weights import (
    BOTTLENECK_ADJUSTMENTS,
    BOTTLENECK_GAIN_BONUS,
    DEFAULT_EXPECTED_GAINS,
    DEFAULT_WEIGHT_TABLE,
    freeze_weight_table,
)

__all__ = [
    "RecommendationScorer",
    "action_for_weight",
    "apply_bottlenecks",
    "risk_for_mean",
    "BOTTLENECK_ADJUSTMENTS",
    "BOTTLENECK_GAIN_BONUS",
    "DEFAULT_EXPECTED_GAINS",
    "DEFAULT_WEIGHT_TABLE",
    "freeze_weight_table",
]
