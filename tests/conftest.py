"""
Pytest configuration and shared fixtures for the hostadvisor test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules in the hostadvisor project.
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hostadvisor.models import (  # noqa: E402
    Bottleneck,
    HardwareFacts,
    MetricCategory,
    MetricReading,
)
from hostadvisor.system import Clock, SnapshotProvider  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Test Doubles
# ============================================================================


class ManualClock(Clock):
    """Clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.wall = start
        self.mono = 0.0
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.wall

    def monotonic(self) -> float:
        return self.mono

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)

    def advance(self, seconds: float) -> None:
        self.wall += seconds
        self.mono += seconds


class ScriptedProvider(SnapshotProvider):
    """
    Snapshot provider that replays scripted readings.

    ``script`` maps a category to a list of per-call reading lists; once the
    list is exhausted the last entry repeats. Categories absent from the
    script return nothing.
    """

    def __init__(
        self,
        script: Optional[Dict[MetricCategory, List[Sequence[MetricReading]]]] = None,
        processes: Optional[List[str]] = None,
        software: Optional[List[str]] = None,
        facts: Optional[HardwareFacts] = None,
        bottlenecks: frozenset = frozenset(),
    ):
        self.script = script or {}
        self.calls: Dict[MetricCategory, int] = {}
        self.processes = processes or []
        self.software = software or []
        self.facts = facts or HardwareFacts()
        self.bottlenecks = bottlenecks

    def query_category(self, category: MetricCategory) -> List[MetricReading]:
        index = self.calls.get(category, 0)
        self.calls[category] = index + 1
        steps = self.script.get(category)
        if not steps:
            return []
        return list(steps[min(index, len(steps) - 1)])

    def list_running_process_names(self) -> List[str]:
        return list(self.processes)

    def list_installed_software_names(self) -> List[str]:
        return list(self.software)

    def get_hardware_facts(self) -> HardwareFacts:
        return self.facts

    def get_bottlenecks(self) -> frozenset:
        return self.bottlenecks


def cpu_script(values: Sequence[float]) -> Dict[MetricCategory, List[List[MetricReading]]]:
    """Script a single CPU.Load reading per iteration."""
    return {
        MetricCategory.CPU: [[MetricReading("CPU.Load", v, "%")] for v in values]
    }


class TestUtils:
    """Test doubles and helpers shared across test modules."""

    ManualClock = ManualClock
    ScriptedProvider = ScriptedProvider
    cpu_script = staticmethod(cpu_script)


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def manual_clock():
    return ManualClock()


@pytest.fixture
def test_utils():
    """Provide test doubles and helpers."""
    return TestUtils


@pytest.fixture
def gaming_thermal_facts():
    return HardwareFacts(cpu_cores=8, bottlenecks=frozenset({Bottleneck.THERMAL}))


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def sample_config_data():
    """Sample main configuration data for testing."""
    return {
        "general": {"log_level": "DEBUG", "output_dir": "reports"},
        "collection": {
            "duration_seconds": 10,
            "interval_seconds": 1,
            "categories": ["cpu", "memory"],
            "baseline_fraction": 0.2,
            "query_timeout_seconds": 2.0,
            "sigma_multiplier": 3.0,
        },
        "thresholds": {
            "cpu_percent": 90.0,
            "memory_available_percent": 15.0,
            "thermal_celsius": 80.0,
            "cpu_sample_seconds": 0.5,
        },
        "classification": {"policy": "first_match", "match_points": 5},
        "storage": {"format": "json", "compression": "zstd"},
    }


@pytest.fixture
def sample_workloads_data():
    """Sample workloads file data for testing."""
    return {
        "signatures": [
            {"category": "Gaming", "keywords": ["steam"]},
            {"category": "Development", "keywords": ["code"]},
        ],
        "weights": {"Gaming": {"cooling_curve": 0.4}},
        "gains": {"General": 5.0},
    }


@pytest.fixture
def config_files(temp_dir, sample_config_data, sample_workloads_data):
    """Create temporary configuration files for testing."""
    import toml

    config_file = temp_dir / "config.toml"
    config_data = dict(sample_config_data)
    config_data["paths"] = {"workloads_config": "workloads.toml"}
    with open(config_file, "w") as f:
        toml.dump(config_data, f)

    workloads_file = temp_dir / "workloads.toml"
    with open(workloads_file, "w") as f:
        toml.dump(sample_workloads_data, f)

    return {"config": config_file, "workloads": workloads_file, "dir": temp_dir}


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    original_config_path = Path(__file__).parent.parent / "conf" / "config.toml"

    yield

    from hostadvisor.config import clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(original_config_path)
