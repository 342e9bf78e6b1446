"""
Recommendation data models.

Hardware facts go in, a RecommendationResult comes out. Every score in these
models lives in [0, 1]; ``clamp_unit`` is the single place that enforces it.
"""

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from .workload import WorkloadCategory


def clamp_unit(value: float) -> float:
    """Clamp a value into [0, 1]. NaN clamps to 0."""
    if value is None or math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, float(value)))


class Bottleneck(Enum):
    """Hardware resources whose live utilization crossed a threshold."""
    CPU = "CPU"
    MEMORY = "Memory"
    THERMAL = "Thermal"


class TunableSetting(Enum):
    """Settings the scorer produces recommendations for."""
    BOOST = "boost"
    IDLE_STATE_DEPTH = "idle_state_depth"
    HYPERTHREADING = "hyperthreading"
    MEMORY_PROFILE = "memory_profile"
    POWER_LIMIT = "power_limit"
    COOLING_CURVE = "cooling_curve"


class ActionLabel(Enum):
    MAXIMIZE = "Maximize"
    ENABLE = "Enable"
    MODERATE = "Moderate"
    CONSERVATIVE = "Conservative"
    MINIMIZE = "Minimize/Disable"


class RiskLevel(Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    MEDIUM_HIGH = "Medium-High"
    # Reserved for callers that grade risk themselves; the scorer's
    # mean-weight rule tops out at MEDIUM_HIGH.
    HIGH = "High"


@dataclass(frozen=True)
class HardwareFacts:
    """
    Read-only hardware snapshot for one recommendation run.

    Every field except ``bottlenecks`` is optional; a provider that cannot
    determine a value leaves it as None. ``bottlenecks`` accepts members or
    their string values; None means none were detected.
    """

    cpu_cores: Optional[int] = None
    cpu_threads: Optional[int] = None
    cpu_max_clock_mhz: Optional[float] = None
    has_dedicated_gpu: Optional[bool] = None
    total_ram_gb: Optional[float] = None
    bottlenecks: FrozenSet[Bottleneck] = frozenset()

    def __post_init__(self):
        bottlenecks = frozenset(
            b if isinstance(b, Bottleneck) else Bottleneck(b)
            for b in (self.bottlenecks or ())
        )
        object.__setattr__(self, "bottlenecks", bottlenecks)

    def missing_fields(self) -> List[str]:
        return [
            f.name for f in fields(self)
            if f.name != "bottlenecks" and getattr(self, f.name) is None
        ]

    def completeness(self) -> float:
        """Fraction of optional fields that are known, in [0, 1]."""
        optional = [f.name for f in fields(self) if f.name != "bottlenecks"]
        return (len(optional) - len(self.missing_fields())) / len(optional)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cpu_cores": self.cpu_cores,
            "cpu_threads": self.cpu_threads,
            "cpu_max_clock_mhz": self.cpu_max_clock_mhz,
            "has_dedicated_gpu": self.has_dedicated_gpu,
            "total_ram_gb": self.total_ram_gb,
            "bottlenecks": sorted(b.value for b in self.bottlenecks),
        }


@dataclass(frozen=True)
class SettingScore:
    """A setting's final weight, always clamped to [0, 1]."""

    setting: TunableSetting
    normalized_score: float

    def __post_init__(self):
        object.__setattr__(self, "normalized_score", clamp_unit(self.normalized_score))


@dataclass(frozen=True)
class SettingRecommendation:
    """Action proposed for one setting."""

    action: ActionLabel
    score: float
    confidence_percent: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "score": self.score,
            "confidence_percent": self.confidence_percent,
        }


@dataclass(frozen=True)
class RecommendationResult:
    """
    Output of one scoring run. Created fresh per invocation, never mutated.

    ``per_setting`` is keyed by the setting's string value
    (e.g. "cooling_curve") so the result serializes without translation.
    """

    workload_category: WorkloadCategory
    confidence: float
    expected_gain_percent: float
    risk_level: RiskLevel
    per_setting: Mapping[str, SettingRecommendation]
    reasoning: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "confidence", clamp_unit(self.confidence))
        object.__setattr__(self, "per_setting", MappingProxyType(dict(self.per_setting)))
        object.__setattr__(self, "reasoning", tuple(self.reasoning))

    @property
    def setting_scores(self) -> List[SettingScore]:
        return [
            SettingScore(TunableSetting(name), rec.score)
            for name, rec in self.per_setting.items()
        ]

    def action_for(self, setting: TunableSetting) -> Optional[ActionLabel]:
        rec = self.per_setting.get(setting.value)
        return rec.action if rec else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workload_category": self.workload_category.value,
            "confidence": self.confidence,
            "expected_gain_percent": self.expected_gain_percent,
            "risk_level": self.risk_level.value,
            "per_setting": {
                name: rec.to_dict() for name, rec in self.per_setting.items()
            },
            "reasoning": list(self.reasoning),
        }
