"""
System interaction for the hostadvisor package.

This module provides the snapshot provider interface and its psutil
implementation, bottleneck detection and the clock used by the sampler.
"""

from .bottlenecks import bottlenecks_from_summary, detect_bottlenecks
from .clock import Clock, SystemClock
from .provider import PsutilSnapshotProvider, SnapshotProvider, detect_dedicated_gpu

__all__ = [
    "Clock",
    "SystemClock",
    "SnapshotProvider",
    "PsutilSnapshotProvider",
    "detect_dedicated_gpu",
    "detect_bottlenecks",
    "bottlenecks_from_summary",
]
