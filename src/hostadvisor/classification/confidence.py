"""
Classification confidence.

One model is shared by the classifier and the recommendation scorer. The
classifier has no hardware information and passes the neutral completeness;
the scorer recomputes confidence with the real completeness of the hardware
facts it was given.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from ..models.recommendation import clamp_unit

NEUTRAL_HARDWARE_COMPLETENESS = 0.5


def dominance_margin(scores: Mapping[object, float]) -> float:
    """Relative gap between the top score and the runner-up, in [0, 1].

    Examples:
        >>> dominance_margin({"a": 20.0, "b": 10.0})
        0.5
        >>> dominance_margin({"a": 10.0})
        1.0
        >>> dominance_margin({"a": 0.0, "b": 0.0})
        0.0
    """
    ordered = sorted((float(s) for s in scores.values()), reverse=True)
    if not ordered or ordered[0] <= 0:
        return 0.0
    runner_up = ordered[1] if len(ordered) > 1 else 0.0
    return clamp_unit((ordered[0] - runner_up) / ordered[0])


@dataclass(frozen=True)
class ConfidenceModel:
    """
    Additive confidence model, clamped to [0, 1].

    confidence = base_score
                 + dominance_bonus        if dominance_margin >= dominance_threshold
                 + match_bonus            if any indicator matched
                 - no_match_penalty       if none did
                 + hardware_weight * hardware_completeness

    With the defaults, a clear single-category match and neutral hardware
    information gives 0.925, a tie gives 0.725 and no match gives 0.375.
    """

    base_score: float = 0.5
    dominance_threshold: float = 0.6
    dominance_bonus: float = 0.2
    match_bonus: float = 0.15
    no_match_penalty: float = 0.2
    hardware_weight: float = 0.15

    def score(self, hardware_completeness: float = NEUTRAL_HARDWARE_COMPLETENESS,
              dominance_margin: float = 0.0, has_match: bool = True,
              base_score: Optional[float] = None) -> float:
        confidence = self.base_score if base_score is None else base_score
        if has_match:
            confidence += self.match_bonus
            if dominance_margin >= self.dominance_threshold:
                confidence += self.dominance_bonus
        else:
            confidence -= self.no_match_penalty
        confidence += self.hardware_weight * clamp_unit(hardware_completeness)
        return clamp_unit(confidence)


DEFAULT_CONFIDENCE_MODEL = ConfidenceModel()


def confidence_model(base_score: float = DEFAULT_CONFIDENCE_MODEL.base_score,
                     hardware_completeness: float = NEUTRAL_HARDWARE_COMPLETENESS,
                     dominance_margin: float = 0.0,
                     has_match: bool = True) -> float:
    """Evaluate the default ConfidenceModel."""
    return DEFAULT_CONFIDENCE_MODEL.score(
        hardware_completeness=hardware_completeness,
        dominance_margin=dominance_margin,
        has_match=has_match,
        base_score=base_score,
    )
