"""
Metric collection for the hostadvisor package.

This module provides the MetricSampler, the polling loop that turns provider
readings into a finalized telemetry Session.
"""

from .sampler import MetricSampler

__all__ = ["MetricSampler"]
