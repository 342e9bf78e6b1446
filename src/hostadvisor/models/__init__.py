"""
Data models and structures for the telemetry and recommendation engine.

Configuration Models:
- Collection, threshold, classification and storage settings
- Static workload tables (signatures, weights, expected gains)

Session Models:
- Timestamped data points and per-metric summaries
- Anomaly events and the collecting/finalized Session

Workload Models:
- Workload categories, signatures and classification results

Recommendation Models:
- Hardware facts, bottlenecks, per-setting scores and the final result

All models use type hints and dataclasses; the ones shared between readers
are frozen.
"""

from .config import (
    AppConfig,
    BottleneckThresholds,
    ClassificationConfig,
    CollectionConfig,
    GeneralConfig,
    StorageConfig,
    WorkloadTables,
)
from .recommendation import (
    ActionLabel,
    Bottleneck,
    HardwareFacts,
    RecommendationResult,
    RiskLevel,
    SettingRecommendation,
    SettingScore,
    TunableSetting,
    clamp_unit,
)
from .session import (
    AnomalyEvent,
    DataPoint,
    MetricCategory,
    MetricReading,
    MetricSummary,
    Session,
)
from .workload import (
    MatchPolicy,
    WorkloadCategory,
    WorkloadClassification,
    WorkloadSignature,
)

__all__ = [
    # Configuration
    "AppConfig",
    "BottleneckThresholds",
    "ClassificationConfig",
    "CollectionConfig",
    "GeneralConfig",
    "StorageConfig",
    "WorkloadTables",
    # Recommendation
    "ActionLabel",
    "Bottleneck",
    "HardwareFacts",
    "RecommendationResult",
    "RiskLevel",
    "SettingRecommendation",
    "SettingScore",
    "TunableSetting",
    "clamp_unit",
    # Session
    "AnomalyEvent",
    "DataPoint",
    "MetricCategory",
    "MetricReading",
    "MetricSummary",
    "Session",
    # Workload
    "MatchPolicy",
    "WorkloadCategory",
    "WorkloadClassification",
    "WorkloadSignature",
]
