"""
Unit tests for Polars-based session summaries.
"""

import pytest

from hostadvisor.analysis.summary import (
    data_points_frame,
    data_points_from_frame,
    summarize_data_points,
)
from hostadvisor.models import DataPoint


def _points():
    return [
        DataPoint(1.0, "CPU.Load", 10.0, "%", {"category": "cpu", "iteration": "1"}),
        DataPoint(1.0, "Memory.UsedPercent", 50.0, "%"),
        DataPoint(2.0, "CPU.Load", 30.0, "%", {"category": "cpu", "iteration": "2"}),
    ]


@pytest.mark.unit
class TestSummaries:
    """Test cases for summarize_data_points."""

    def test_summary_statistics(self):
        summary = summarize_data_points(_points())

        cpu = summary["CPU.Load"]
        assert cpu.count == 2
        assert cpu.average == pytest.approx(20.0)
        assert cpu.min == 10.0
        assert cpu.max == 30.0
        assert cpu.stddev == pytest.approx(10.0)

    def test_single_value_has_zero_stddev(self):
        summary = summarize_data_points(_points())
        assert summary["Memory.UsedPercent"].stddev == 0.0

    def test_metrics_in_first_seen_order(self):
        assert list(summarize_data_points(_points())) == ["CPU.Load", "Memory.UsedPercent"]

    def test_empty_input(self):
        assert summarize_data_points([]) == {}


@pytest.mark.unit
class TestDataPointFrames:
    """Test cases for the DataFrame representation of data points."""

    def test_frame_has_one_row_per_point(self):
        df = data_points_frame(_points())
        assert len(df) == 3
        assert df.columns == ["timestamp", "metric_name", "value", "unit", "metadata"]

    def test_metadata_survives_frame_conversion(self):
        restored = data_points_from_frame(data_points_frame(_points()))
        assert restored[0].metadata == {"category": "cpu", "iteration": "1"}
        assert restored[1].metadata == {}
        assert [p.metric_name for p in restored] == [p.metric_name for p in _points()]
