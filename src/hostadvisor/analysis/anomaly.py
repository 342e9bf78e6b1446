"""
Sigma-rule anomaly detection against frozen baselines.
"""

import logging
from typing import Optional

from ..models.session import AnomalyEvent
from ..validation import validate_positive_float
from .baseline import BaselineEngine, BaselineEntry

logger = logging.getLogger(__name__)


def exceeds_sigma_band(value: float, mean: float, stddev: float,
                       sigma_multiplier: float = 3.0) -> bool:
    """True when ``|value - mean| > sigma_multiplier * stddev``.

    Examples:
        >>> exceeds_sigma_band(98.5, 35.0, 5.0)
        True
        >>> exceeds_sigma_band(40.0, 35.0, 5.0)
        False
    """
    return abs(value - mean) > sigma_multiplier * stddev


class AnomalyDetector:
    """
    Flags post-baseline samples that fall outside the sigma band.

    Only metrics whose baseline is frozen and holds at least two samples are
    evaluated. A baseline of identical values has stddev 0, so later identical
    values never fire while any different value does.
    """

    def __init__(self, baseline: BaselineEngine, sigma_multiplier: float = 3.0):
        self.baseline = baseline
        self.sigma_multiplier = validate_positive_float(
            sigma_multiplier, min_value=0.0, field_name="sigma_multiplier"
        )

    def evaluate(self, metric_name: str, value: float,
                 timestamp: float) -> Optional[AnomalyEvent]:
        """Evaluate one sample. Returns None while the window is still open."""
        if not self.baseline.window_closed:
            return None
        entry = self.baseline.get(metric_name)
        if entry is None:
            return None
        return self.check(entry, value, timestamp)

    def check(self, entry: BaselineEntry, value: float,
              timestamp: float) -> Optional[AnomalyEvent]:
        """Apply the sigma rule to ``value`` using an explicit baseline entry."""
        if not entry.evaluable:
            return None
        if not exceeds_sigma_band(value, entry.mean, entry.stddev, self.sigma_multiplier):
            return None
        event = AnomalyEvent(
            metric_name=entry.metric_name,
            observed_value=float(value),
            baseline_mean=entry.mean,
            baseline_stddev=entry.stddev,
            timestamp=timestamp,
            sigma_multiplier=self.sigma_multiplier,
        )
        logger.debug(f"Anomaly: {event.message}")
        return event
