"""
Unit tests for the baseline engine.

Covers window sizing, freezing semantics and the two-sample evaluability rule.
"""

import pytest

from hostadvisor.analysis.baseline import (
    BaselineEngine,
    BaselineEntry,
    baseline_window_size,
)
from hostadvisor.validation import ValidationError


@pytest.mark.unit
class TestBaselineWindowSize:
    """Test cases for baseline window sizing."""

    @pytest.mark.parametrize(
        "total,fraction,expected",
        [
            (10, 0.2, 2),
            (10, 0.1, 1),
            (30, 0.1, 3),
            (5, 0.1, 1),
            (4, 1.0, 4),
            (7, 0.5, 3),
        ],
    )
    def test_window_size(self, total, fraction, expected):
        assert baseline_window_size(total, fraction) == expected

    def test_invalid_fraction_rejected(self):
        with pytest.raises(ValidationError):
            BaselineEngine(10, 0.0)
        with pytest.raises(ValidationError):
            BaselineEngine(10, 1.5)

    def test_invalid_total_rejected(self):
        with pytest.raises(ValidationError):
            BaselineEngine(0, 0.1)


@pytest.mark.unit
class TestBaselineEntry:
    """Test cases for a single metric's baseline."""

    def test_freeze_computes_population_stddev(self):
        entry = BaselineEntry("CPU.Load")
        for value in (30.0, 40.0):
            entry.add(value)
        entry.freeze()

        assert entry.mean == pytest.approx(35.0)
        assert entry.stddev == pytest.approx(5.0)
        assert entry.evaluable

    def test_identical_values_have_zero_stddev(self):
        entry = BaselineEntry("CPU.Load")
        for _ in range(3):
            entry.add(35.0)
        entry.freeze()

        assert entry.stddev == 0.0
        assert entry.evaluable

    def test_single_sample_not_evaluable(self):
        entry = BaselineEntry("CPU.Load")
        entry.add(42.0)
        entry.freeze()

        assert entry.mean == 42.0
        assert entry.stddev == 0.0
        assert not entry.evaluable

    def test_frozen_entry_rejects_values(self):
        entry = BaselineEntry("CPU.Load", values=[1.0, 2.0])
        entry.freeze()
        with pytest.raises(ValueError):
            entry.add(3.0)

    def test_freeze_is_computed_once(self):
        entry = BaselineEntry("CPU.Load", values=[10.0, 20.0])
        entry.freeze()
        entry.values.append(1000.0)
        entry.freeze()
        assert entry.mean == pytest.approx(15.0)


@pytest.mark.unit
class TestBaselineEngine:
    """Test cases for the engine driving per-metric baselines."""

    def test_values_inside_window_are_accumulated(self):
        engine = BaselineEngine(total_iterations=10, baseline_fraction=0.2)
        assert engine.window_iterations == 2

        assert engine.observe("CPU.Load", 35.0, iteration=1)
        engine.end_iteration(1)
        assert not engine.window_closed

        assert engine.observe("CPU.Load", 35.0, iteration=2)
        engine.end_iteration(2)
        assert engine.window_closed

        assert not engine.observe("CPU.Load", 98.0, iteration=3)
        entry = engine.get("CPU.Load")
        assert entry.values == [35.0, 35.0]
        assert entry.frozen

    def test_baseline_not_recomputed_after_close(self):
        engine = BaselineEngine(total_iterations=4, baseline_fraction=0.5)
        engine.observe("Memory.UsedPercent", 50.0, 1)
        engine.observe("Memory.UsedPercent", 60.0, 2)
        engine.end_iteration(2)

        for iteration in range(3, 5):
            engine.observe("Memory.UsedPercent", 99.0, iteration)

        assert engine.get("Memory.UsedPercent").mean == pytest.approx(55.0)

    def test_metric_first_seen_after_window_has_no_baseline(self):
        engine = BaselineEngine(total_iterations=5, baseline_fraction=0.2)
        engine.end_iteration(1)
        assert not engine.observe("Thermal.PeakCelsius", 70.0, 2)
        assert engine.get("Thermal.PeakCelsius") is None

    def test_close_window_is_idempotent(self):
        engine = BaselineEngine(total_iterations=10, baseline_fraction=0.5)
        engine.observe("CPU.Load", 1.0, 1)
        engine.close_window()
        engine.close_window()
        assert engine.window_closed
        assert engine.entries()["CPU.Load"].frozen

    def test_iteration_must_be_positive(self):
        engine = BaselineEngine(total_iterations=10)
        with pytest.raises(ValidationError):
            engine.observe("CPU.Load", 1.0, 0)
