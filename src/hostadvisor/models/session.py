"""
Telemetry session data models.

This module defines the records produced by the metric sampling loop:

- DataPoint: one timestamped observation of a single metric
- MetricSummary: per-metric statistics computed once when a session ends
- AnomalyEvent: a post-baseline sample that broke the sigma rule
- Session: the ordered, append-only collection of all of the above

A Session is exclusively owned by the sampler while collecting. ``finalize``
freezes it: data points and anomalies become tuples, the summary becomes a
read-only mapping, and every mutating method raises ``SessionStateError``.
After that it can be shared with any number of readers.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..validation.exceptions import SessionStateError


class MetricCategory(Enum):
    """Metric categories the sampler can poll."""
    CPU = "cpu"
    MEMORY = "memory"
    DISK = "disk"
    NETWORK = "network"
    THERMAL = "thermal"
    POWER = "power"

    @classmethod
    def names(cls) -> List[str]:
        return [member.value for member in cls]


@dataclass(frozen=True)
class MetricReading:
    """
    One sub-metric value returned by a snapshot provider query.

    Attributes:
        name: Fully qualified metric key, e.g. "CPU.Load".
        value: Observed value.
        unit: Unit label, e.g. "%", "MHz", "C".
    """

    name: str
    value: float
    unit: str = ""


@dataclass(frozen=True)
class DataPoint:
    """A single timestamped observation. Immutable once created."""

    # Wall-clock epoch seconds at which the iteration sampled this value.
    timestamp: float
    # Metric key, e.g. "CPU.%ProcessorTime" or "Memory.AvailablePercent".
    metric_name: str
    value: float
    unit: str = ""
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata or {})))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "metric_name": self.metric_name,
            "value": self.value,
            "unit": self.unit,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DataPoint":
        return cls(
            timestamp=float(data["timestamp"]),
            metric_name=str(data["metric_name"]),
            value=float(data["value"]),
            unit=str(data.get("unit", "")),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class MetricSummary:
    """Statistics for one metric over a whole session (population stddev)."""

    count: int
    average: float
    min: float
    max: float
    stddev: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "average": self.average,
            "min": self.min,
            "max": self.max,
            "stddev": self.stddev,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MetricSummary":
        return cls(
            count=int(data["count"]),
            average=float(data["average"]),
            min=float(data["min"]),
            max=float(data["max"]),
            stddev=float(data["stddev"]),
        )


@dataclass(frozen=True)
class AnomalyEvent:
    """
    A sample that deviated from its metric's baseline by more than
    ``sigma_multiplier`` standard deviations.

    Two events are considered the same anomaly when their rendered
    ``message`` is identical; the timestamp is not part of it.
    """

    metric_name: str
    observed_value: float
    baseline_mean: float
    baseline_stddev: float
    timestamp: float
    sigma_multiplier: float = 3.0

    @property
    def deviation(self) -> float:
        return abs(self.observed_value - self.baseline_mean)

    @property
    def message(self) -> str:
        return (
            f"{self.metric_name}: value {self.observed_value:.2f} deviates from "
            f"baseline mean {self.baseline_mean:.2f} "
            f"(stddev {self.baseline_stddev:.2f}, "
            f"{self.sigma_multiplier:g}-sigma band "
            f"{self.sigma_multiplier * self.baseline_stddev:.2f})"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric_name": self.metric_name,
            "observed_value": self.observed_value,
            "baseline_mean": self.baseline_mean,
            "baseline_stddev": self.baseline_stddev,
            "timestamp": self.timestamp,
            "sigma_multiplier": self.sigma_multiplier,
            "message": self.message,
        }


def _iso(epoch: Optional[float]) -> Optional[str]:
    if epoch is None:
        return None
    return datetime.fromtimestamp(epoch, tz=timezone.utc).isoformat()


@dataclass
class Session:
    """
    A telemetry collection session.

    ``data_points`` keeps collection order. ``anomalies`` holds each distinct
    anomaly message once, in the order first seen; ``anomaly_events`` holds
    the structured event that produced each message.
    """

    id: str
    start_time: float
    end_time: Optional[float] = None
    data_points: Sequence[DataPoint] = field(default_factory=list)
    anomalies: Sequence[str] = field(default_factory=list)
    anomaly_events: Sequence[AnomalyEvent] = field(default_factory=list)
    summary: Optional[Mapping[str, MetricSummary]] = None
    cancelled: bool = False

    @classmethod
    def begin(cls, start_time: float, session_id: Optional[str] = None) -> "Session":
        """Create an empty, collecting session."""
        return cls(id=session_id or uuid.uuid4().hex, start_time=start_time)

    @property
    def is_finalized(self) -> bool:
        return self.end_time is not None

    def add_data_point(self, point: DataPoint) -> None:
        if self.is_finalized:
            raise SessionStateError(self.id, "append data points to a finalized session")
        self.data_points.append(point)

    def record_anomaly(self, event: AnomalyEvent) -> bool:
        """
        Record an anomaly unless an identical message is already present.

        Returns:
            True if the anomaly was new and has been recorded.
        """
        if self.is_finalized:
            raise SessionStateError(self.id, "record anomalies on a finalized session")
        message = event.message
        if message in self.anomalies:
            return False
        self.anomalies.append(message)
        self.anomaly_events.append(event)
        return True

    def finalize(self, end_time: float, summary: Mapping[str, MetricSummary],
                 cancelled: bool = False) -> None:
        """Set ``end_time``, attach the summary and freeze the session."""
        if self.is_finalized:
            raise SessionStateError(self.id, "finalize a session twice")
        self.end_time = end_time
        self.cancelled = cancelled
        self.data_points = tuple(self.data_points)
        self.anomalies = tuple(self.anomalies)
        self.anomaly_events = tuple(self.anomaly_events)
        self.summary = MappingProxyType(dict(summary))

    def metric_names(self) -> List[str]:
        """Distinct metric names in order of first appearance."""
        return list(dict.fromkeys(point.metric_name for point in self.data_points))

    def values_for(self, metric_name: str) -> List[float]:
        return [p.value for p in self.data_points if p.metric_name == metric_name]

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return self.end_time - self.start_time

    def to_dict(self, include_data_points: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "start_time_iso": _iso(self.start_time),
            "end_time_iso": _iso(self.end_time),
            "cancelled": self.cancelled,
            "summary": (
                {name: s.to_dict() for name, s in self.summary.items()}
                if self.summary is not None else None
            ),
            "anomalies": list(self.anomalies),
            "anomaly_events": [event.to_dict() for event in self.anomaly_events],
        }
        if include_data_points:
            data["data_points"] = [point.to_dict() for point in self.data_points]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any],
                  data_points: Optional[Sequence[DataPoint]] = None) -> "Session":
        """
        Rebuild a session from ``to_dict`` output.

        ``data_points`` overrides the embedded list, which lets storage keep
        the points in a separate columnar file. A session with an end time
        comes back finalized.
        """
        if data_points is None:
            data_points = [DataPoint.from_dict(p) for p in data.get("data_points", [])]
        events: List[AnomalyEvent] = []
        for raw in data.get("anomaly_events", []):
            events.append(AnomalyEvent(
                metric_name=raw["metric_name"],
                observed_value=float(raw["observed_value"]),
                baseline_mean=float(raw["baseline_mean"]),
                baseline_stddev=float(raw["baseline_stddev"]),
                timestamp=float(raw["timestamp"]),
                sigma_multiplier=float(raw.get("sigma_multiplier", 3.0)),
            ))

        session = cls(
            id=str(data["id"]),
            start_time=float(data["start_time"]),
            data_points=list(data_points),
            anomalies=list(data.get("anomalies", [])),
            anomaly_events=events,
        )
        end_time = data.get("end_time")
        if end_time is not None:
            summary = {
                name: MetricSummary.from_dict(raw)
                for name, raw in (data.get("summary") or {}).items()
            }
            session.finalize(float(end_time), summary,
                             cancelled=bool(data.get("cancelled", False)))
        return session

