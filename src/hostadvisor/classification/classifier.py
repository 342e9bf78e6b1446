"""
Workload classification from observed indicator names.

This module maps running process names and installed-software names to a
WorkloadCategory by matching them against an ordered tuple of signatures.
The signature table is injected at construction and never mutated, so one
classifier may be shared between threads.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from ..models.workload import (
    MatchPolicy,
    WorkloadCategory,
    WorkloadClassification,
    WorkloadSignature,
)
from ..validation import ValidationError, validate_positive_float
from .confidence import DEFAULT_CONFIDENCE_MODEL, ConfidenceModel, dominance_margin
from .signatures import DEFAULT_SIGNATURES

logger = logging.getLogger(__name__)


def compile_keywords(signature: WorkloadSignature) -> Tuple[Pattern, ...]:
    """Compile a signature's keywords as case-insensitive regular expressions.

    Raises:
        ValidationError: If a keyword is not a valid regular expression.
    """
    patterns = []
    for keyword in signature.keywords:
        try:
            patterns.append(re.compile(keyword, re.IGNORECASE))
        except re.error as e:
            raise ValidationError(
                f"Invalid keyword pattern '{keyword}' for {signature.category.value}: {e}",
                field_name="keywords",
                value=keyword,
            )
    return tuple(patterns)


class WorkloadClassifier:
    """
    Classifies a set of indicator names into a workload category.

    Args:
        signatures: Ordered signature table.
        policy: ACCUMULATE adds ``match_points`` to a category for every
            (indicator, signature) match and picks the highest total, ties
            going to the category declared first. FIRST_MATCH returns the
            category of the first signature matched by the first matching
            indicator.
        match_points: Points per match.
        confidence_model: Model used to derive the classification confidence.
    """

    def __init__(
        self,
        signatures: Sequence[WorkloadSignature] = DEFAULT_SIGNATURES,
        policy: MatchPolicy = MatchPolicy.ACCUMULATE,
        match_points: float = 10.0,
        confidence_model: Optional[ConfidenceModel] = None,
    ):
        self.signatures: Tuple[WorkloadSignature, ...] = tuple(signatures)
        self.policy = policy
        self.match_points = validate_positive_float(
            match_points, min_value=0.0, field_name="match_points"
        )
        self.confidence_model = confidence_model or DEFAULT_CONFIDENCE_MODEL
        self._compiled = tuple(
            (signature, compile_keywords(signature)) for signature in self.signatures
        )

    def matching_signatures(self, name: str) -> List[WorkloadSignature]:
        """Signatures with at least one keyword found in ``name``, in table order."""
        return [
            signature for signature, patterns in self._compiled
            if any(pattern.search(name) for pattern in patterns)
        ]

    def classify(self, indicator_names: Iterable[str]) -> WorkloadClassification:
        """
        Classify indicator names.

        Duplicate names are examined once, in the order first seen. When no
        indicator matches, the result is GENERAL with reduced confidence.
        """
        names = list(dict.fromkeys(n for n in indicator_names if n))
        if self.policy is MatchPolicy.FIRST_MATCH:
            category, scores, matched = self._first_match(names)
        else:
            category, scores, matched = self._accumulate(names)

        has_match = bool(matched)
        if not has_match:
            category = WorkloadCategory.GENERAL
            logger.info(
                f"No workload signature matched {len(names)} indicator(s); "
                f"defaulting to {category.value}"
            )

        confidence = self.confidence_model.score(
            dominance_margin=dominance_margin(scores),
            has_match=has_match,
        )
        logger.debug(
            f"Classified as {category.value} (policy={self.policy.value}, "
            f"matched={len(matched)}, confidence={confidence:.2f})"
        )
        return WorkloadClassification(
            category=category,
            scores=scores,
            matched_indicators=matched,
            confidence=confidence,
            policy=self.policy,
        )

    def _empty_scores(self) -> Dict[WorkloadCategory, float]:
        return {category: 0.0 for category in WorkloadCategory}

    def _accumulate(self, names: List[str]):
        scores = self._empty_scores()
        matched: List[str] = []
        for name in names:
            hits = self.matching_signatures(name)
            if not hits:
                continue
            matched.append(name)
            for signature in hits:
                scores[signature.category] += self.match_points

        best = WorkloadCategory.GENERAL
        best_score = 0.0
        # Strict comparison in declaration order keeps the first of tied categories.
        for category in WorkloadCategory:
            if scores[category] > best_score:
                best, best_score = category, scores[category]
        return best, scores, matched

    def _first_match(self, names: List[str]):
        scores = self._empty_scores()
        for name in names:
            hits = self.matching_signatures(name)
            if hits:
                category = hits[0].category
                scores[category] = self.match_points
                return category, scores, [name]
        return WorkloadCategory.GENERAL, scores, []
