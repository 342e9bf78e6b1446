"""
Bottleneck detection.

A resource is a bottleneck when its utilization crosses the configured
threshold (see ``BottleneckThresholds``). Detection works either from live
readings or from a finalized session's summary.
"""

import logging
from typing import FrozenSet, Mapping, Optional

from ..models.config import BottleneckThresholds
from ..models.recommendation import Bottleneck
from ..models.session import MetricSummary

logger = logging.getLogger(__name__)

CPU_LOAD_METRIC = "CPU.Load"
MEMORY_AVAILABLE_METRIC = "Memory.AvailablePercent"
THERMAL_PEAK_METRIC = "Thermal.PeakCelsius"


def detect_bottlenecks(
    cpu_percent: Optional[float],
    memory_available_percent: Optional[float],
    peak_celsius: Optional[float],
    thresholds: BottleneckThresholds,
) -> FrozenSet[Bottleneck]:
    """Classify utilization readings against thresholds.

    A reading of None means the value could not be measured; it never
    produces a bottleneck.

    Args:
        cpu_percent: Sustained CPU utilization in percent.
        memory_available_percent: Available memory as a percentage of total.
        peak_celsius: Hottest sensor temperature.
        thresholds: Configured limits.

    Returns:
        The set of resources over their limits.

    Examples:
        >>> sorted(b.value for b in detect_bottlenecks(92.0, 50.0, None, BottleneckThresholds()))
        ['CPU']
    """
    found = set()
    if cpu_percent is not None and cpu_percent > thresholds.cpu_percent:
        found.add(Bottleneck.CPU)
    if (
        memory_available_percent is not None
        and memory_available_percent < thresholds.memory_available_percent
    ):
        found.add(Bottleneck.MEMORY)
    if peak_celsius is not None and peak_celsius > thresholds.thermal_celsius:
        found.add(Bottleneck.THERMAL)

    if found:
        logger.info(
            f"Bottlenecks detected: {sorted(b.value for b in found)} "
            f"(cpu={cpu_percent}, mem_available={memory_available_percent}, "
            f"peak_temp={peak_celsius})"
        )
    return frozenset(found)


def bottlenecks_from_summary(
    summary: Mapping[str, MetricSummary],
    thresholds: BottleneckThresholds,
) -> FrozenSet[Bottleneck]:
    """Derive bottlenecks from a finalized session summary.

    CPU uses the session's average load (sustained utilization), memory the
    lowest available percentage seen and thermal the highest peak reading.
    """
    cpu = summary.get(CPU_LOAD_METRIC)
    memory = summary.get(MEMORY_AVAILABLE_METRIC)
    thermal = summary.get(THERMAL_PEAK_METRIC)
    return detect_bottlenecks(
        cpu.average if cpu else None,
        memory.min if memory else None,
        thermal.max if thermal else None,
        thresholds,
    )
