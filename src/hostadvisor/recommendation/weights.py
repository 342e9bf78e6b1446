"""
Built-in recommendation tables.

Base weights say how strongly each setting should be pushed for a workload
category; bottleneck adjustments are multiplicative factors applied on top.
All tables are read-only mappings built once at import.
"""

from types import MappingProxyType
from typing import Dict, Mapping

from ..models.recommendation import Bottleneck, TunableSetting
from ..models.workload import WorkloadCategory


def _weights(boost: float, idle_state_depth: float, hyperthreading: float,
             memory_profile: float, power_limit: float,
             cooling_curve: float) -> Mapping[TunableSetting, float]:
    return MappingProxyType({
        TunableSetting.BOOST: boost,
        TunableSetting.IDLE_STATE_DEPTH: idle_state_depth,
        TunableSetting.HYPERTHREADING: hyperthreading,
        TunableSetting.MEMORY_PROFILE: memory_profile,
        TunableSetting.POWER_LIMIT: power_limit,
        TunableSetting.COOLING_CURVE: cooling_curve,
    })


DEFAULT_WEIGHT_TABLE: Mapping[WorkloadCategory, Mapping[TunableSetting, float]] = MappingProxyType({
    WorkloadCategory.GAMING: _weights(0.95, 0.3, 0.6, 0.9, 0.92, 0.7),
    WorkloadCategory.RENDERING: _weights(0.9, 0.2, 0.95, 0.85, 0.95, 0.85),
    WorkloadCategory.DEVELOPMENT: _weights(0.8, 0.5, 0.9, 0.7, 0.7, 0.6),
    WorkloadCategory.SCIENTIFIC: _weights(0.85, 0.2, 0.7, 0.95, 0.95, 0.9),
    WorkloadCategory.GENERAL: _weights(0.6, 0.6, 0.7, 0.5, 0.5, 0.5),
})

# Expected performance gain in percent, before bottleneck nudges.
DEFAULT_EXPECTED_GAINS: Mapping[WorkloadCategory, float] = MappingProxyType({
    WorkloadCategory.GAMING: 15.0,
    WorkloadCategory.RENDERING: 25.0,
    WorkloadCategory.DEVELOPMENT: 12.0,
    WorkloadCategory.SCIENTIFIC: 22.0,
    WorkloadCategory.GENERAL: 8.0,
})

BOTTLENECK_ADJUSTMENTS: Mapping[Bottleneck, Mapping[TunableSetting, float]] = MappingProxyType({
    Bottleneck.CPU: MappingProxyType({
        TunableSetting.BOOST: 1.15,
        TunableSetting.POWER_LIMIT: 1.10,
    }),
    Bottleneck.MEMORY: MappingProxyType({
        TunableSetting.MEMORY_PROFILE: 1.20,
    }),
    Bottleneck.THERMAL: MappingProxyType({
        TunableSetting.COOLING_CURVE: 1.25,
        TunableSetting.POWER_LIMIT: 0.85,
    }),
})

# Added to the expected gain for every bottleneck present.
BOTTLENECK_GAIN_BONUS = 2.5


def freeze_weight_table(
    table: Mapping[WorkloadCategory, Mapping[TunableSetting, float]]
) -> Mapping[WorkloadCategory, Mapping[TunableSetting, float]]:
    """Return a read-only deep copy of a weight table."""
    frozen: Dict[WorkloadCategory, Mapping[TunableSetting, float]] = {
        category: MappingProxyType(dict(weights)) for category, weights in table.items()
    }
    return MappingProxyType(frozen)
