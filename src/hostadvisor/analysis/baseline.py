"""
Per-metric baselines built from the leading window of a session.

The window covers the first ``baseline_fraction * total_iterations``
iterations. Values seen inside the window are accumulated per metric; when
the window closes every entry computes its mean and population standard
deviation exactly once and is frozen for the rest of the session.
"""

import logging
import math
import statistics
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..validation import ValidationError, validate_fraction, validate_positive_integer

logger = logging.getLogger(__name__)

MIN_BASELINE_SAMPLES = 2


def baseline_window_size(total_iterations: int, baseline_fraction: float) -> int:
    """Number of leading iterations that form the baseline window.

    Always at least one iteration and never more than ``total_iterations``.

    Examples:
        >>> baseline_window_size(10, 0.2)
        2
        >>> baseline_window_size(5, 0.1)
        1
    """
    # Guard against 0.1 * 30 == 3.0000000000000004 style float noise.
    window = math.floor(total_iterations * baseline_fraction + 1e-9)
    return max(1, min(total_iterations, window))


@dataclass
class BaselineEntry:
    """Baseline statistics for one metric."""

    metric_name: str
    values: List[float] = field(default_factory=list)
    mean: Optional[float] = None
    stddev: Optional[float] = None
    frozen: bool = False

    def add(self, value: float) -> None:
        if self.frozen:
            raise ValueError(f"Baseline for {self.metric_name} is frozen")
        self.values.append(float(value))

    def freeze(self) -> None:
        """Compute mean and population stddev once and stop accepting values."""
        if self.frozen:
            return
        if self.values:
            self.mean = statistics.fmean(self.values)
            self.stddev = (
                statistics.pstdev(self.values, mu=self.mean)
                if len(self.values) >= MIN_BASELINE_SAMPLES else 0.0
            )
        self.frozen = True

    @property
    def sample_count(self) -> int:
        return len(self.values)

    @property
    def evaluable(self) -> bool:
        """Anomaly evaluation needs a frozen baseline with at least two samples."""
        return self.frozen and self.sample_count >= MIN_BASELINE_SAMPLES


class BaselineEngine:
    """
    Accumulates baseline values while the window is open and freezes them
    when it closes.

    Iterations are numbered from 1. The sampler calls ``observe`` for every
    sample and ``end_iteration`` after each iteration; the window closes at
    the end of iteration ``window_iterations`` (or earlier through
    ``close_window`` when a session is cut short).
    """

    def __init__(self, total_iterations: int, baseline_fraction: float = 0.1):
        self.total_iterations = validate_positive_integer(
            total_iterations, min_value=1, field_name="total_iterations"
        )
        self.baseline_fraction = validate_fraction(
            baseline_fraction, field_name="baseline_fraction"
        )
        self.window_iterations = baseline_window_size(
            self.total_iterations, self.baseline_fraction
        )
        self._entries: Dict[str, BaselineEntry] = {}
        self._window_closed = False
        logger.debug(
            f"BaselineEngine: window of {self.window_iterations} of "
            f"{self.total_iterations} iterations (fraction {self.baseline_fraction})"
        )

    @property
    def window_closed(self) -> bool:
        return self._window_closed

    def in_window(self, iteration: int) -> bool:
        return not self._window_closed and iteration <= self.window_iterations

    def observe(self, metric_name: str, value: float, iteration: int) -> bool:
        """
        Record a value if ``iteration`` lies inside the baseline window.

        Returns:
            True if the value became part of the baseline.
        """
        if iteration < 1:
            raise ValidationError(
                f"iteration must be >= 1, got {iteration}",
                field_name="iteration", value=iteration,
            )
        if not self.in_window(iteration):
            return False
        entry = self._entries.get(metric_name)
        if entry is None:
            entry = self._entries[metric_name] = BaselineEntry(metric_name)
        entry.add(value)
        return True

    def end_iteration(self, iteration: int) -> None:
        if not self._window_closed and iteration >= self.window_iterations:
            self.close_window()

    def close_window(self) -> None:
        """Freeze every baseline. Idempotent."""
        if self._window_closed:
            return
        self._window_closed = True
        for entry in self._entries.values():
            entry.freeze()
            if entry.evaluable:
                logger.debug(
                    f"Baseline {entry.metric_name}: mean={entry.mean:.3f} "
                    f"stddev={entry.stddev:.3f} (n={entry.sample_count})"
                )
            else:
                logger.debug(
                    f"Baseline {entry.metric_name} has {entry.sample_count} sample(s); "
                    f"anomaly evaluation disabled for this metric"
                )

    def get(self, metric_name: str) -> Optional[BaselineEntry]:
        return self._entries.get(metric_name)

    def entries(self) -> Dict[str, BaselineEntry]:
        return dict(self._entries)
