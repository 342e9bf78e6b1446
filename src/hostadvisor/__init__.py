"""
hostadvisor: host telemetry, workload classification and tuning recommendations.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Data structures and type definitions
- validation: Input validation and error handling
- system: Snapshot provider, bottleneck detection and clock
- collectors: Metric sampling loop
- analysis: Baselines, anomaly detection, summaries and comparison
- classification: Workload classification and confidence
- recommendation: Per-setting recommendation scoring
- storage: Session and recommendation persistence
- cli: Command-line interface

Usage:
    From command line:
        hostadvisor collect --duration 60 --categories cpu,memory,thermal

    Programmatically:
        from hostadvisor import MetricSampler, PsutilSnapshotProvider
        session = MetricSampler(PsutilSnapshotProvider()).collect(60, 1, ["cpu"])
"""

# Main interfaces
from .config import clear_config_cache, get_config, set_config_path
from .cli import main_cli
from .collectors import MetricSampler
from .analysis import AnomalyDetector, BaselineEngine, compare_sessions
from .classification import ConfidenceModel, WorkloadClassifier
from .recommendation import RecommendationScorer
from .storage import SessionStore, create_storage

# Model classes for external use
from .models import (
    AppConfig,
    DataPoint,
    HardwareFacts,
    MetricCategory,
    RecommendationResult,
    Session,
    WorkloadCategory,
    WorkloadClassification,
)

# Validation utilities
from .validation import SessionStateError, ValidationError

# System utilities
from .system import PsutilSnapshotProvider, SnapshotProvider, SystemClock

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "main_cli",
    "MetricSampler",
    "AnomalyDetector",
    "BaselineEngine",
    "compare_sessions",
    "ConfidenceModel",
    "WorkloadClassifier",
    "RecommendationScorer",
    "SessionStore",
    "create_storage",
    # Models
    "AppConfig",
    "DataPoint",
    "HardwareFacts",
    "MetricCategory",
    "RecommendationResult",
    "Session",
    "WorkloadCategory",
    "WorkloadClassification",
    # Validation
    "SessionStateError",
    "ValidationError",
    # System
    "PsutilSnapshotProvider",
    "SnapshotProvider",
    "SystemClock",
]
