"""
Unit tests for the metric sampling loop.

All tests drive the sampler with a manual clock, so no real sleeping happens
except in the query-ceiling tests, which use short real timeouts.
"""

import os
import subprocess
import sys
import textwrap
import threading
import time
from pathlib import Path

import pytest

from hostadvisor.collectors import MetricSampler
from hostadvisor.models import MetricCategory, MetricReading
from hostadvisor.validation import SessionStateError, ValidationError

SRC_DIR = Path(__file__).parents[3] / "src"


@pytest.fixture
def cpu_provider(test_utils):
    """Factory for a provider that replays the given CPU.Load values."""
    def _make(values):
        return test_utils.ScriptedProvider(test_utils.cpu_script(values))
    return _make


@pytest.mark.unit
class TestMetricSamplerLoop:
    """Test cases for iteration count, tagging and finalization."""

    def test_iteration_count_is_ceil_of_duration_over_interval(self, cpu_provider,
                                                                 manual_clock):
        provider = cpu_provider([10.0])
        session = MetricSampler(provider, clock=manual_clock).collect(5.5, 2, ["cpu"])

        assert provider.calls[MetricCategory.CPU] == 3
        assert len(session.data_points) == 3

    def test_data_points_tagged_with_category_and_iteration(self, cpu_provider, manual_clock):
        session = MetricSampler(cpu_provider([1.0, 2.0]), clock=manual_clock).collect(
            2, 1, [MetricCategory.CPU]
        )

        first, second = session.data_points
        assert first.metric_name == "CPU.Load"
        assert first.unit == "%"
        assert first.metadata == {"category": "cpu", "iteration": "1"}
        assert second.metadata["iteration"] == "2"

    def test_timestamps_non_decreasing(self, cpu_provider, manual_clock):
        session = MetricSampler(cpu_provider([1.0]), clock=manual_clock).collect(5, 1, ["cpu"])
        stamps = [p.timestamp for p in session.data_points]
        assert stamps == sorted(stamps)
        assert stamps[1] - stamps[0] == pytest.approx(1.0)

    def test_wall_clock_going_backwards_does_not_reorder(self, test_utils, cpu_provider):
        class BackwardsClock(test_utils.ManualClock):
            def sleep(self, seconds):
                super().sleep(seconds)
                self.wall -= 10 * seconds

        session = MetricSampler(cpu_provider([1.0]), clock=BackwardsClock()).collect(
            4, 1, ["cpu"]
        )
        stamps = [p.timestamp for p in session.data_points]
        assert stamps == sorted(stamps)

    def test_session_finalized_with_summary(self, cpu_provider, manual_clock):
        session = MetricSampler(cpu_provider([10.0, 20.0, 30.0]), clock=manual_clock).collect(
            3, 1, ["cpu"]
        )

        assert session.is_finalized
        assert not session.cancelled
        assert session.summary["CPU.Load"].max == 30.0
        assert session.summary["CPU.Load"].count == 3
        assert session.end_time >= session.start_time
        with pytest.raises(SessionStateError):
            session.add_data_point(session.data_points[0])

    def test_sleeps_remaining_interval_in_chunks(self, cpu_provider, manual_clock):
        MetricSampler(cpu_provider([1.0]), clock=manual_clock).collect(3, 1, ["cpu"])

        assert manual_clock.sleeps
        assert max(manual_clock.sleeps) <= MetricSampler.CHUNK_SLEEP_SECONDS + 1e-9
        # Two inter-iteration sleeps of one second each, none after the last.
        assert sum(manual_clock.sleeps) == pytest.approx(2.0)

    def test_slow_iteration_skips_sleep(self, test_utils):
        class SlowProvider(test_utils.ScriptedProvider):
            def __init__(self, clock):
                super().__init__(test_utils.cpu_script([1.0]))
                self.clock = clock

            def query_category(self, category):
                self.clock.advance(3.0)
                return super().query_category(category)

        clock = test_utils.ManualClock()
        MetricSampler(SlowProvider(clock), clock=clock).collect(2, 1, ["cpu"])
        assert clock.sleeps == []


@pytest.mark.unit
class TestMetricSamplerUnavailableData:
    """Unavailable metrics are skipped without failing the session."""

    def test_empty_category_skipped(self, cpu_provider, manual_clock):
        provider = cpu_provider([5.0])
        session = MetricSampler(provider, clock=manual_clock).collect(3, 1, ["cpu", "thermal"])

        assert provider.calls[MetricCategory.THERMAL] == 3
        assert session.metric_names() == ["CPU.Load"]

    def test_provider_exception_skipped(self, test_utils, manual_clock):
        class FlakyProvider(test_utils.ScriptedProvider):
            def query_category(self, category):
                if category is MetricCategory.MEMORY:
                    raise OSError("sensor gone")
                return super().query_category(category)

        session = MetricSampler(FlakyProvider(test_utils.cpu_script([5.0])),
                                clock=manual_clock).collect(2, 1, ["cpu", "memory"])
        assert len(session.data_points) == 2

    def test_non_finite_values_skipped(self, test_utils, manual_clock):
        provider = test_utils.ScriptedProvider({
            MetricCategory.CPU: [[
                MetricReading("CPU.Load", float("nan"), "%"),
                MetricReading("CPU.FrequencyMHz", 3200.0, "MHz"),
            ]]
        })
        session = MetricSampler(provider, clock=manual_clock).collect(1, 1, ["cpu"])
        assert session.metric_names() == ["CPU.FrequencyMHz"]


@pytest.mark.unit
class TestMetricSamplerAnomalies:
    """Baseline and anomaly detection run inline."""

    def test_spike_after_baseline_recorded_once(self, cpu_provider, manual_clock):
        values = [35.0, 35.0] + [98.0] * 8
        session = MetricSampler(cpu_provider(values), clock=manual_clock,
                                baseline_fraction=0.2).collect(10, 1, ["cpu"])

        assert len(session.anomalies) == 1
        assert "CPU.Load" in session.anomalies[0]
        assert session.anomaly_events[0].baseline_mean == pytest.approx(35.0)

    def test_spike_inside_baseline_window_not_flagged(self, cpu_provider, manual_clock):
        values = [35.0, 98.0, 35.0, 35.0]
        session = MetricSampler(cpu_provider(values), clock=manual_clock,
                                baseline_fraction=0.5).collect(4, 1, ["cpu"])
        # Baseline 35/98 has mean 66.5 and stddev 31.5; 35 is within 3 sigma.
        assert session.anomalies == ()

    def test_single_sample_baseline_disables_evaluation(self, cpu_provider, manual_clock):
        values = [35.0, 500.0, 900.0]
        session = MetricSampler(cpu_provider(values), clock=manual_clock,
                                baseline_fraction=0.1).collect(3, 1, ["cpu"])
        assert session.anomalies == ()


@pytest.mark.unit
class TestMetricSamplerCancellation:
    """Cooperative cancellation at iteration boundaries."""

    def test_cancel_during_sleep_finalizes_partial_session(self, test_utils, cpu_provider):
        cancel_event = threading.Event()

        class CancellingClock(test_utils.ManualClock):
            def sleep(self, seconds):
                super().sleep(seconds)
                if self.mono >= 2.5:
                    cancel_event.set()

        session = MetricSampler(cpu_provider([1.0]), clock=CancellingClock(),
                                cancel_event=cancel_event).collect(10, 1, ["cpu"])

        assert session.cancelled
        assert session.is_finalized
        assert len(session.data_points) == 3
        assert session.summary["CPU.Load"].count == 3

    def test_cancel_before_start_yields_empty_session(self, cpu_provider, manual_clock):
        sampler = MetricSampler(cpu_provider([1.0]), clock=manual_clock)
        sampler.cancel()
        session = sampler.collect(5, 1, ["cpu"])

        assert sampler.cancel_requested
        assert session.cancelled
        assert session.data_points == ()
        assert dict(session.summary) == {}


@pytest.mark.unit
class TestMetricSamplerQueryCeiling:
    """A hung category query is abandoned and skipped until it returns."""

    def test_hung_category_skipped(self, test_utils, manual_clock):
        release = threading.Event()

        class HangingProvider(test_utils.ScriptedProvider):
            def query_category(self, category):
                if category is MetricCategory.THERMAL:
                    self.calls[category] = self.calls.get(category, 0) + 1
                    release.wait(5.0)
                    return [MetricReading("Thermal.PeakCelsius", 60.0, "C")]
                return super().query_category(category)

        provider = HangingProvider(test_utils.cpu_script([1.0]))
        try:
            session = MetricSampler(provider, clock=manual_clock, query_timeout=0.05).collect(
                4, 1, ["cpu", "thermal"]
            )
        finally:
            release.set()

        assert session.metric_names() == ["CPU.Load"]
        assert len(session.data_points) == 4
        # Only the first thermal query was started; later iterations skipped it.
        assert provider.calls[MetricCategory.THERMAL] == 1

    def test_query_threads_are_daemons(self, test_utils, manual_clock):
        release = threading.Event()
        seen = []

        class RecordingProvider(test_utils.ScriptedProvider):
            def query_category(self, category):
                seen.append(threading.current_thread())
                release.wait(5.0)
                return []

        try:
            MetricSampler(RecordingProvider(), clock=manual_clock, query_timeout=0.05).collect(
                1, 1, ["cpu"]
            )
        finally:
            release.set()

        assert len(seen) == 1
        assert seen[0].daemon
        assert seen[0] is not threading.main_thread()

    @pytest.mark.slow
    def test_hung_query_does_not_delay_process_exit(self):
        script = textwrap.dedent("""
            import time
            from hostadvisor.collectors import MetricSampler
            from hostadvisor.models import HardwareFacts
            from hostadvisor.system import SnapshotProvider

            class HungProvider(SnapshotProvider):
                def query_category(self, category):
                    time.sleep(120)
                    return []

                def list_running_process_names(self):
                    return []

                def list_installed_software_names(self):
                    return []

                def get_hardware_facts(self):
                    return HardwareFacts()

                def get_bottlenecks(self):
                    return frozenset()

            session = MetricSampler(HungProvider(), query_timeout=0.1).collect(1, 1, ["cpu"])
            print(len(session.data_points))
        """)
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(
            p for p in (str(SRC_DIR), os.environ.get("PYTHONPATH")) if p
        )

        start = time.monotonic()
        result = subprocess.run(
            [sys.executable, "-c", script],
            env=env, capture_output=True, text=True, timeout=60,
        )
        elapsed = time.monotonic() - start

        assert result.returncode == 0, result.stderr
        assert result.stdout.strip() == "0"
        assert elapsed < 30


@pytest.mark.unit
class TestMetricSamplerValidation:
    """Invalid arguments raise ValidationError."""

    def test_interval_below_one_second_rejected(self, test_utils, manual_clock):
        with pytest.raises(ValidationError):
            MetricSampler(test_utils.ScriptedProvider(), clock=manual_clock).collect(
                10, 0.5, ["cpu"]
            )

    def test_zero_duration_rejected(self, test_utils, manual_clock):
        with pytest.raises(ValidationError):
            MetricSampler(test_utils.ScriptedProvider(), clock=manual_clock).collect(0, 1, ["cpu"])

    def test_unknown_category_rejected(self, test_utils, manual_clock):
        with pytest.raises(ValidationError):
            MetricSampler(test_utils.ScriptedProvider(), clock=manual_clock).collect(1, 1, ["gpu"])

    def test_invalid_baseline_fraction_rejected(self, test_utils):
        with pytest.raises(ValidationError):
            MetricSampler(test_utils.ScriptedProvider(), baseline_fraction=0)
