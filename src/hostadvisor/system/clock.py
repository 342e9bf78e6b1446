"""
Clock abstraction for the sampling loop.

The sampler never calls ``time`` directly; it asks a Clock. Production code
uses SystemClock, tests substitute a clock whose ``sleep`` advances time
instantly so that N iterations run without real waiting.
"""

import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Source of wall-clock time, monotonic time and sleeping."""

    @abstractmethod
    def now(self) -> float:
        """Wall-clock time as epoch seconds (used for timestamps)."""

    @abstractmethod
    def monotonic(self) -> float:
        """Monotonic seconds (used for measuring elapsed time)."""

    @abstractmethod
    def sleep(self, seconds: float) -> None:
        """Block for ``seconds``."""


class SystemClock(Clock):
    """Clock backed by the ``time`` module."""

    def now(self) -> float:
        return time.time()

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)
