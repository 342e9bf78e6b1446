"""
Workload classification data models.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class WorkloadCategory(Enum):
    """
    Workload categories a host can be classified into.

    Declaration order is significant: it breaks ties between categories
    with equal accumulated scores.
    """
    GAMING = "Gaming"
    RENDERING = "Rendering"
    DEVELOPMENT = "Development"
    SCIENTIFIC = "Scientific"
    GENERAL = "General"

    @classmethod
    def parse(cls, name: str) -> Optional["WorkloadCategory"]:
        """Case-insensitive lookup by value or member name; None if unknown."""
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        for member in cls:
            if key in (member.value.lower(), member.name.lower()):
                return member
        return None


class MatchPolicy(Enum):
    """How indicator matches are turned into a single category."""
    ACCUMULATE = "accumulate"
    FIRST_MATCH = "first_match"


@dataclass(frozen=True)
class WorkloadSignature:
    """A named keyword set. Keywords are matched case-insensitively as regexes."""

    category: WorkloadCategory
    keywords: Tuple[str, ...]


@dataclass(frozen=True)
class WorkloadClassification:
    """
    Result of classifying a set of indicator names.

    Attributes:
        category: The selected workload category.
        scores: Accumulated, non-negative score per category.
        matched_indicators: Indicator names that matched any signature,
            in the order they were examined.
        confidence: Classification confidence in [0, 1], or None when the
            classification was built by hand and the consumer should derive it.
        policy: The match policy that produced the result.
    """

    category: WorkloadCategory
    scores: Dict[WorkloadCategory, float] = field(default_factory=dict)
    matched_indicators: List[str] = field(default_factory=list)
    confidence: Optional[float] = None
    policy: MatchPolicy = MatchPolicy.ACCUMULATE

    @property
    def has_match(self) -> bool:
        return bool(self.matched_indicators)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "scores": {cat.value: score for cat, score in self.scores.items()},
            "matched_indicators": list(self.matched_indicators),
            "confidence": self.confidence,
            "policy": self.policy.value,
        }
