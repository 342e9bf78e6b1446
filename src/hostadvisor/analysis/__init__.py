"""
Statistical analysis of telemetry sessions.

This module provides baseline construction, sigma-rule anomaly detection,
session summaries and before/after session comparison.
"""

from .anomaly import AnomalyDetector, exceeds_sigma_band
from .baseline import BaselineEngine, BaselineEntry, baseline_window_size
from .comparison import MetricDelta, SessionComparison, compare_sessions
from .summary import data_points_frame, data_points_from_frame, summarize_data_points

__all__ = [
    "AnomalyDetector",
    "exceeds_sigma_band",
    "BaselineEngine",
    "BaselineEntry",
    "baseline_window_size",
    "MetricDelta",
    "SessionComparison",
    "compare_sessions",
    "data_points_frame",
    "data_points_from_frame",
    "summarize_data_points",
]
