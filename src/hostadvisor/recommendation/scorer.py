"""
Recommendation scoring.

The RecommendationScorer turns a workload classification and a hardware
snapshot into per-setting action recommendations. It is a pure computation
over read-only tables and never raises on incomplete input: missing hardware
fields lower the confidence, unknown categories fall back to the General
weight vector.
"""

import logging
from typing import Dict, FrozenSet, List, Mapping, Optional

from ..classification.confidence import (
    DEFAULT_CONFIDENCE_MODEL,
    ConfidenceModel,
    dominance_margin,
)
from ..models.recommendation import (
    ActionLabel,
    Bottleneck,
    HardwareFacts,
    RecommendationResult,
    RiskLevel,
    SettingRecommendation,
    TunableSetting,
    clamp_unit,
)
from ..models.workload import WorkloadCategory, WorkloadClassification
from .weights import (
    BOTTLENECK_ADJUSTMENTS,
    BOTTLENECK_GAIN_BONUS,
    DEFAULT_EXPECTED_GAINS,
    DEFAULT_WEIGHT_TABLE,
    freeze_weight_table,
)

logger = logging.getLogger(__name__)

# Neutral weight for a setting the table does not mention.
NEUTRAL_WEIGHT = 0.5


def action_for_weight(weight: float) -> ActionLabel:
    """Map a final weight to its action label.

    Examples:
        >>> action_for_weight(0.95).value
        'Maximize'
        >>> action_for_weight(0.9).value
        'Enable'
        >>> action_for_weight(0.3).value
        'Minimize/Disable'
    """
    if weight > 0.9:
        return ActionLabel.MAXIMIZE
    if weight > 0.7:
        return ActionLabel.ENABLE
    if weight > 0.5:
        return ActionLabel.MODERATE
    if weight > 0.3:
        return ActionLabel.CONSERVATIVE
    return ActionLabel.MINIMIZE


def risk_for_mean(mean_weight: float) -> RiskLevel:
    """Map the mean of the final weights to a risk level."""
    if mean_weight > 0.9:
        return RiskLevel.MEDIUM_HIGH
    if mean_weight > 0.8:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def apply_bottlenecks(
    weights: Mapping[TunableSetting, float],
    bottlenecks: FrozenSet[Bottleneck],
) -> Dict[TunableSetting, float]:
    """
    Apply the multiplicative bottleneck adjustments and clamp to [0, 1].

    Bottlenecks are applied in enum declaration order so the result does not
    depend on set iteration order.
    """
    adjusted = {setting: clamp_unit(weight) for setting, weight in weights.items()}
    for bottleneck in Bottleneck:
        if bottleneck not in bottlenecks:
            continue
        for setting, factor in BOTTLENECK_ADJUSTMENTS[bottleneck].items():
            if setting in adjusted:
                adjusted[setting] = clamp_unit(adjusted[setting] * factor)
    return adjusted


class RecommendationScorer:
    """
    Scores tunable settings for a classified workload.

    Args:
        weights: Base weight vector per category. Categories missing from the
            table use the General vector; settings missing from a vector use
            a neutral 0.5.
        expected_gains: Expected gain in percent per category.
        confidence_model: Model combining classification dominance, match
            presence and hardware completeness.
    """

    def __init__(
        self,
        weights: Mapping[WorkloadCategory, Mapping[TunableSetting, float]] = DEFAULT_WEIGHT_TABLE,
        expected_gains: Mapping[WorkloadCategory, float] = DEFAULT_EXPECTED_GAINS,
        confidence_model: Optional[ConfidenceModel] = None,
    ):
        self.weights = freeze_weight_table(weights)
        self.expected_gains = dict(expected_gains)
        self.confidence_model = confidence_model or DEFAULT_CONFIDENCE_MODEL

    def base_weights(self, category: WorkloadCategory) -> Dict[TunableSetting, float]:
        vector = self.weights.get(category)
        if vector is None:
            logger.debug(f"No weight vector for {category}; using General")
            vector = self.weights.get(
                WorkloadCategory.GENERAL, DEFAULT_WEIGHT_TABLE[WorkloadCategory.GENERAL]
            )
        return {setting: vector.get(setting, NEUTRAL_WEIGHT) for setting in TunableSetting}

    def score(self, facts: Optional[HardwareFacts],
              classification: Optional[WorkloadClassification]) -> RecommendationResult:
        """Produce a RecommendationResult. Never raises on incomplete input."""
        if facts is None:
            facts = HardwareFacts()
        category = classification.category if classification else WorkloadCategory.GENERAL
        missing = facts.missing_fields()
        if missing:
            logger.debug(f"Hardware facts incomplete, using neutral defaults for: {', '.join(missing)}")

        final = apply_bottlenecks(self.base_weights(category), facts.bottlenecks)
        per_setting = {
            setting.value: SettingRecommendation(
                action=action_for_weight(weight),
                score=weight,
                confidence_percent=round(weight * 100, 1),
            )
            for setting, weight in final.items()
        }

        mean_weight = sum(final.values()) / len(final)
        risk = risk_for_mean(mean_weight)
        gain = self._expected_gain(category, facts.bottlenecks)
        confidence = self._confidence(facts, classification)

        result = RecommendationResult(
            workload_category=category,
            confidence=confidence,
            expected_gain_percent=gain,
            risk_level=risk,
            per_setting=per_setting,
            reasoning=self._reasoning(category, gain, confidence, facts, risk, mean_weight),
        )
        logger.info(
            f"Recommendation for {category.value}: gain {gain:.1f}%, "
            f"confidence {confidence:.2f}, risk {risk.value}"
        )
        return result

    def _expected_gain(self, category: WorkloadCategory,
                       bottlenecks: FrozenSet[Bottleneck]) -> float:
        base = self.expected_gains.get(
            category, self.expected_gains.get(WorkloadCategory.GENERAL, 0.0)
        )
        return float(base) + BOTTLENECK_GAIN_BONUS * len(bottlenecks)

    def _confidence(self, facts: HardwareFacts,
                    classification: Optional[WorkloadClassification]) -> float:
        if classification is None:
            return self.confidence_model.score(
                hardware_completeness=facts.completeness(), has_match=False
            )
        scores = classification.scores
        # A hand-built classification without scores is taken at face value.
        if scores:
            margin = dominance_margin(scores)
            has_match = classification.has_match
        else:
            margin = 1.0
            has_match = classification.category is not WorkloadCategory.GENERAL
        return self.confidence_model.score(
            hardware_completeness=facts.completeness(),
            dominance_margin=margin,
            has_match=has_match,
        )

    def _reasoning(self, category: WorkloadCategory, gain: float, confidence: float,
                   facts: HardwareFacts, risk: RiskLevel,
                   mean_weight: float) -> List[str]:
        if facts.bottlenecks:
            names = ", ".join(b.value for b in Bottleneck if b in facts.bottlenecks)
            utilization = f"Detected bottlenecks: {names}; weights adjusted accordingly."
        else:
            utilization = "No hardware bottlenecks detected."
        if facts.cpu_cores is not None:
            threads = facts.cpu_threads if facts.cpu_threads is not None else "unknown"
            utilization += f" CPU: {facts.cpu_cores} cores / {threads} threads."
        return [
            f"Workload classified as {category.value}.",
            f"Expected performance gain: {gain:.1f}%.",
            f"Recommendation confidence: {confidence * 100:.0f}%.",
            utilization,
            f"Risk level: {risk.value} (mean setting weight {mean_weight:.2f}).",
        ]
