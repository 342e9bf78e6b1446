"""
Before/after comparison of two finalized sessions.

Used to check whether a tuning change helped: each metric present in both
sessions gets its average delta, and metrics whose average grew by more than
``regression_threshold_percent`` are reported as regressions.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..models.session import Session
from ..validation import SessionStateError, validate_positive_float

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricDelta:
    before_average: float
    after_average: float

    @property
    def delta(self) -> float:
        return self.after_average - self.before_average

    @property
    def percent_change(self) -> Optional[float]:
        """Relative change in percent; None when the before average is 0."""
        if self.before_average == 0:
            return None
        return self.delta / abs(self.before_average) * 100.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "before_average": self.before_average,
            "after_average": self.after_average,
            "delta": self.delta,
            "percent_change": self.percent_change,
        }


@dataclass(frozen=True)
class SessionComparison:
    before_id: str
    after_id: str
    metrics: Dict[str, MetricDelta] = field(default_factory=dict)
    regressions: List[str] = field(default_factory=list)
    only_before: List[str] = field(default_factory=list)
    only_after: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "before_id": self.before_id,
            "after_id": self.after_id,
            "metrics": {name: d.to_dict() for name, d in self.metrics.items()},
            "regressions": list(self.regressions),
            "only_before": list(self.only_before),
            "only_after": list(self.only_after),
        }


def compare_sessions(before: Session, after: Session,
                     regression_threshold_percent: float = 50.0) -> SessionComparison:
    """Compare the summaries of two finalized sessions.

    Args:
        before: Session captured before a change.
        after: Session captured after it.
        regression_threshold_percent: Growth of a metric's average, in
            percent, above which the metric is listed as a regression.

    Raises:
        SessionStateError: If either session has not been finalized.
    """
    for session in (before, after):
        if session.summary is None:
            raise SessionStateError(session.id, "compare an unfinalized session")
    threshold = validate_positive_float(
        regression_threshold_percent, min_value=0.0,
        field_name="regression_threshold_percent",
    )

    before_names = list(before.summary)
    after_names = list(after.summary)
    metrics: Dict[str, MetricDelta] = {}
    regressions: List[str] = []

    for name in before_names:
        if name not in after.summary:
            continue
        delta = MetricDelta(before.summary[name].average, after.summary[name].average)
        metrics[name] = delta
        change = delta.percent_change
        if change is not None and change > threshold:
            regressions.append(name)
            logger.warning(
                f"Regression in {name}: {delta.before_average:.2f} -> "
                f"{delta.after_average:.2f} (+{change:.1f}%)"
            )

    return SessionComparison(
        before_id=before.id,
        after_id=after.id,
        metrics=metrics,
        regressions=regressions,
        only_before=[n for n in before_names if n not in after.summary],
        only_after=[n for n in after_names if n not in before.summary],
    )
