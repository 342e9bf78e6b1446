"""
Unit tests for recommendation and workload data models.
"""

import math

import pytest

from hostadvisor.models import (
    ActionLabel,
    Bottleneck,
    HardwareFacts,
    RecommendationResult,
    RiskLevel,
    SettingRecommendation,
    SettingScore,
    TunableSetting,
    WorkloadCategory,
    clamp_unit,
)


@pytest.mark.unit
class TestClamping:
    """Scores are always clamped to [0, 1]."""

    @pytest.mark.parametrize(
        "value,expected", [(-0.5, 0.0), (0.25, 0.25), (1.7, 1.0), (math.nan, 0.0)]
    )
    def test_clamp_unit(self, value, expected):
        assert clamp_unit(value) == expected

    def test_setting_score_clamped(self):
        assert SettingScore(TunableSetting.BOOST, 1.4).normalized_score == 1.0
        assert SettingScore(TunableSetting.BOOST, -1.0).normalized_score == 0.0

    def test_result_confidence_clamped(self):
        result = RecommendationResult(
            workload_category=WorkloadCategory.GENERAL,
            confidence=1.5,
            expected_gain_percent=8.0,
            risk_level=RiskLevel.LOW,
            per_setting={"boost": SettingRecommendation(ActionLabel.MODERATE, 0.6, 60.0)},
        )
        assert result.confidence == 1.0
        assert result.action_for(TunableSetting.BOOST) is ActionLabel.MODERATE
        assert result.action_for(TunableSetting.COOLING_CURVE) is None


@pytest.mark.unit
class TestHardwareFacts:
    """Test cases for HardwareFacts completeness."""

    def test_empty_facts(self):
        facts = HardwareFacts()
        assert facts.completeness() == 0.0
        assert len(facts.missing_fields()) == 5

    def test_partial_facts(self):
        facts = HardwareFacts(cpu_cores=8, cpu_threads=16)
        assert facts.completeness() == pytest.approx(0.4)
        assert "cpu_cores" not in facts.missing_fields()

    def test_bottlenecks_normalized(self):
        assert HardwareFacts(bottlenecks=None).bottlenecks == frozenset()
        facts = HardwareFacts(bottlenecks=["Thermal", Bottleneck.CPU])
        assert facts.bottlenecks == frozenset({Bottleneck.THERMAL, Bottleneck.CPU})

    def test_unknown_bottleneck_rejected(self):
        with pytest.raises(ValueError):
            HardwareFacts(bottlenecks={"Disk"})


@pytest.mark.unit
class TestWorkloadCategory:
    """Test cases for WorkloadCategory.parse."""

    @pytest.mark.parametrize("name", ["Gaming", "gaming", "GAMING", " gaming "])
    def test_parse(self, name):
        assert WorkloadCategory.parse(name) is WorkloadCategory.GAMING

    def test_parse_unknown(self):
        assert WorkloadCategory.parse("Mining") is None
