"""
Metric sampling loop.

This module provides the MetricSampler, which polls a snapshot provider at a
fixed interval and records every returned sub-metric as a DataPoint in a
Session. Baseline accumulation and anomaly detection run inline, inside the
same iteration as the sample that feeds them.

The loop is single-threaded and cooperative: one poll, then sleep for what is
left of the interval. Cancellation is checked at iteration boundaries only;
a cancelled session is finalized with whatever was collected.
"""

import logging
import math
import threading
from typing import Callable, Dict, Iterable, List, Optional, Union

from ..analysis.anomaly import AnomalyDetector
from ..analysis.baseline import BaselineEngine
from ..analysis.summary import summarize_data_points
from ..models.session import DataPoint, MetricCategory, MetricReading, Session
from ..system.clock import Clock, SystemClock
from ..system.provider import SnapshotProvider
from ..validation import (
    ValidationError,
    validate_category_list,
    validate_fraction,
    validate_positive_float,
)

logger = logging.getLogger(__name__)

CategoryLike = Union[MetricCategory, str]


class _QueryThread(threading.Thread):
    """Daemon thread running one category query."""

    def __init__(self, call: Callable[[MetricCategory], List[MetricReading]],
                 category: MetricCategory):
        super().__init__(name=f"query-{category.value}", daemon=True)
        self._target_call = call
        self.category = category
        self.readings: List[MetricReading] = []
        self.finished = threading.Event()

    def run(self) -> None:
        try:
            self.readings = self._target_call(self.category)
        finally:
            self.finished.set()


class _CategoryQueryRunner:
    """
    Runs provider queries, optionally under a per-category time ceiling.

    Without a ceiling queries run inline. With one, each query runs on a
    daemon thread; a query that overruns the ceiling is abandoned for that
    iteration and the category is skipped until it finishes. A hung sensor
    never stalls the loop more than once and never keeps the process alive.
    """

    def __init__(self, provider: SnapshotProvider, timeout: Optional[float]):
        self.provider = provider
        self.timeout = timeout
        self._pending: Dict[MetricCategory, _QueryThread] = {}

    def query(self, category: MetricCategory) -> List[MetricReading]:
        if self.timeout is None:
            return self._call(category)

        pending = self._pending.get(category)
        if pending is not None:
            if not pending.finished.is_set():
                logger.debug(f"Query for {category.value} still running; skipping")
                return []
            # The late result belongs to an earlier iteration; drop it.
            del self._pending[category]

        worker = _QueryThread(self._call, category)
        worker.start()
        if worker.finished.wait(self.timeout):
            return worker.readings
        self._pending[category] = worker
        logger.warning(
            f"Query for {category.value} exceeded {self.timeout}s; "
            f"skipping it until it completes"
        )
        return []

    def _call(self, category: MetricCategory) -> List[MetricReading]:
        try:
            readings = self.provider.query_category(category)
        except Exception as e:
            logger.warning(f"Query for {category.value} failed: {e}", exc_info=False)
            return []
        return list(readings or [])

    def shutdown(self) -> None:
        if self._pending:
            logger.debug(
                f"Abandoning {len(self._pending)} unfinished query thread(s): "
                f"{[c.value for c in self._pending]}"
            )
        self._pending.clear()


class MetricSampler:
    """
    Polls a snapshot provider and builds a finalized Session.

    Attributes:
        provider: Source of metric readings.
        baseline_fraction: Leading fraction of iterations used as baseline.
        sigma_multiplier: Width of the anomaly band in standard deviations.
        query_timeout: Ceiling in seconds for one category query, or None.
    """

    CHUNK_SLEEP_SECONDS = 0.05
    """Sleeps are split into chunks of at most this length to notice cancellation."""

    def __init__(
        self,
        provider: SnapshotProvider,
        clock: Optional[Clock] = None,
        baseline_fraction: float = 0.1,
        sigma_multiplier: float = 3.0,
        query_timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.provider = provider
        self.baseline_fraction = validate_fraction(
            baseline_fraction, field_name="baseline_fraction"
        )
        self.sigma_multiplier = validate_positive_float(
            sigma_multiplier, min_value=0.0, field_name="sigma_multiplier"
        )
        self.query_timeout = (
            validate_positive_float(query_timeout, min_value=0.001,
                                    field_name="query_timeout")
            if query_timeout else None
        )
        self._clock = clock or SystemClock()
        self._cancel_event = cancel_event or threading.Event()

    def cancel(self) -> None:
        """Request the running collection to stop at the next iteration boundary."""
        logger.info("Sampler cancellation requested")
        self._cancel_event.set()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    def collect(self, duration: float, interval: float,
                categories: Iterable[CategoryLike]) -> Session:
        """
        Run ``ceil(duration / interval)`` iterations and return the finalized session.

        Args:
            duration: Total duration in seconds.
            interval: Seconds between iteration starts (>= 1).
            categories: Metric categories to poll, as enum members or names.

        Returns:
            The finalized Session (partial if cancelled).

        Raises:
            ValidationError: If duration, interval or categories are invalid.
        """
        duration = validate_positive_float(duration, min_value=0.0, field_name="duration")
        if duration == 0:
            raise ValidationError("duration must be > 0, got 0.0",
                                  field_name="duration", value=duration)
        interval = validate_positive_float(interval, min_value=1.0, field_name="interval")
        enabled = self._normalize_categories(categories)

        total_iterations = max(1, math.ceil(duration / interval))
        baseline = BaselineEngine(total_iterations, self.baseline_fraction)
        detector = AnomalyDetector(baseline, self.sigma_multiplier)
        session = Session.begin(self._clock.now())
        runner = _CategoryQueryRunner(self.provider, self.query_timeout)

        logger.info(
            f"Starting session {session.id}: {total_iterations} iterations every "
            f"{interval}s, categories={[c.value for c in enabled]}, "
            f"baseline window={baseline.window_iterations} iteration(s)"
        )

        iterations_run = 0
        last_timestamp = session.start_time
        try:
            for iteration in range(1, total_iterations + 1):
                if self._cancel_event.is_set():
                    logger.info(f"Cancellation observed before iteration {iteration}")
                    break
                iteration_start = self._clock.monotonic()

                for category in enabled:
                    readings = runner.query(category)
                    if not readings:
                        logger.debug(f"Iteration {iteration}: no data for {category.value}")
                        continue
                    timestamp = max(self._clock.now(), last_timestamp)
                    last_timestamp = timestamp
                    for reading in readings:
                        self._record(session, baseline, detector, category,
                                     reading, iteration, timestamp)

                baseline.end_iteration(iteration)
                iterations_run = iteration

                if iteration < total_iterations:
                    self._sleep_remaining(interval, iteration_start)
        finally:
            runner.shutdown()

        baseline.close_window()
        cancelled = iterations_run < total_iterations
        session.finalize(
            max(self._clock.now(), last_timestamp),
            summarize_data_points(session.data_points),
            cancelled=cancelled,
        )
        logger.info(
            f"Session {session.id} finished after {iterations_run}/{total_iterations} "
            f"iterations: {len(session.data_points)} data points, "
            f"{len(session.summary)} metrics, {len(session.anomalies)} anomalies"
            + (" (cancelled)" if cancelled else "")
        )
        return session

    def _record(self, session: Session, baseline: BaselineEngine,
                detector: AnomalyDetector, category: MetricCategory,
                reading: MetricReading, iteration: int, timestamp: float) -> None:
        try:
            value = float(reading.value)
        except (TypeError, ValueError):
            logger.debug(f"Skipping non-numeric value for {reading.name}: {reading.value!r}")
            return
        if math.isnan(value) or math.isinf(value):
            logger.debug(f"Skipping non-finite value for {reading.name}")
            return

        session.add_data_point(DataPoint(
            timestamp=timestamp,
            metric_name=reading.name,
            value=value,
            unit=reading.unit,
            metadata={"category": category.value, "iteration": str(iteration)},
        ))

        if baseline.observe(reading.name, value, iteration):
            return
        event = detector.evaluate(reading.name, value, timestamp)
        if event is not None and session.record_anomaly(event):
            logger.warning(f"Anomaly detected: {event.message}")

    def _sleep_remaining(self, interval: float, iteration_start: float) -> None:
        elapsed = self._clock.monotonic() - iteration_start
        remaining = interval - elapsed
        if remaining <= 0:
            logger.warning(
                f"Sampling iteration took {elapsed:.2f}s, longer than interval of {interval}s."
            )
            return
        sleep_end = self._clock.monotonic() + remaining
        while not self._cancel_event.is_set():
            left = sleep_end - self._clock.monotonic()
            if left <= 0:
                break
            self._clock.sleep(min(self.CHUNK_SLEEP_SECONDS, left))

    @staticmethod
    def _normalize_categories(categories: Iterable[CategoryLike]) -> List[MetricCategory]:
        names = [c.value if isinstance(c, MetricCategory) else c for c in categories]
        validated = validate_category_list(
            names, valid_choices=MetricCategory.names(), field_name="categories"
        )
        return [MetricCategory(name) for name in validated]
