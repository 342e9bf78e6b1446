"""
Snapshot providers.

A snapshot provider supplies point-in-time facts about the host: metric
readings per category, running process names, installed software names,
hardware facts and current bottlenecks. The sampler, classifier and scorer
only depend on the abstract ``SnapshotProvider``; ``PsutilSnapshotProvider``
is the implementation used on real machines.
"""

import logging
import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import psutil

from ..models.config import BottleneckThresholds
from ..models.recommendation import Bottleneck, HardwareFacts
from ..models.session import MetricCategory, MetricReading
from .bottlenecks import detect_bottlenecks
from .clock import Clock, SystemClock

logger = logging.getLogger(__name__)

DEFAULT_APPLICATION_DIRS: Tuple[Path, ...] = (
    Path("/usr/share/applications"),
    Path("/usr/local/share/applications"),
    Path.home() / ".local" / "share" / "applications",
)

_DISCRETE_GPU_DRIVERS = {"amdgpu", "radeon", "nvidia", "nouveau"}


class SnapshotProvider(ABC):
    """
    Boundary interface between the engine and the host.

    Implementations must not raise for a metric that simply is not available;
    they return an empty list (or None fields) instead.
    """

    @abstractmethod
    def query_category(self, category: MetricCategory) -> List[MetricReading]:
        """Read every sub-metric of ``category``. Empty when unavailable."""

    @abstractmethod
    def list_running_process_names(self) -> List[str]:
        """Names of currently running processes."""

    @abstractmethod
    def list_installed_software_names(self) -> List[str]:
        """Display names of installed software."""

    @abstractmethod
    def get_hardware_facts(self) -> HardwareFacts:
        """Hardware snapshot without bottlenecks."""

    @abstractmethod
    def get_bottlenecks(self) -> FrozenSet[Bottleneck]:
        """Resources currently over their configured thresholds."""

    def list_indicator_names(self) -> List[str]:
        """Process names followed by installed software names."""
        return self.list_running_process_names() + self.list_installed_software_names()


class PsutilSnapshotProvider(SnapshotProvider):
    """
    Snapshot provider built on psutil.

    Disk and network values are reported as per-second rates computed from
    the difference between two consecutive counter reads; the first query of
    those categories only primes the counters and returns nothing.
    """

    def __init__(
        self,
        thresholds: Optional[BottleneckThresholds] = None,
        application_dirs: Optional[Sequence[Path]] = None,
        disk_usage_path: Optional[str] = None,
        clock: Optional[Clock] = None,
    ):
        self.thresholds = thresholds or BottleneckThresholds()
        self.application_dirs = list(application_dirs or DEFAULT_APPLICATION_DIRS)
        self.disk_usage_path = disk_usage_path or os.path.abspath(os.sep)
        self._clock = clock or SystemClock()
        self._previous_counters: Dict[str, Tuple[float, Tuple[int, int]]] = {}

        # The first cpu_percent(interval=None) call always returns 0.0.
        psutil.cpu_percent(interval=None)
        logger.debug(
            f"PsutilSnapshotProvider initialized (disk path: {self.disk_usage_path}, "
            f"application dirs: {[str(d) for d in self.application_dirs]})"
        )

    # --- Metric categories -------------------------------------------------

    def query_category(self, category: MetricCategory) -> List[MetricReading]:
        readers = {
            MetricCategory.CPU: self._read_cpu,
            MetricCategory.MEMORY: self._read_memory,
            MetricCategory.DISK: self._read_disk,
            MetricCategory.NETWORK: self._read_network,
            MetricCategory.THERMAL: self._read_thermal,
            MetricCategory.POWER: self._read_power,
        }
        reader = readers.get(category)
        if reader is None:
            return []
        try:
            return reader()
        except (psutil.Error, OSError, AttributeError) as e:
            logger.debug(f"Category {category.value} unavailable: {e}")
            return []

    def _read_cpu(self) -> List[MetricReading]:
        readings = [MetricReading("CPU.Load", float(psutil.cpu_percent(interval=None)), "%")]
        freq = self._safe_cpu_freq()
        if freq is not None and freq.current:
            readings.append(MetricReading("CPU.FrequencyMHz", float(freq.current), "MHz"))
        if hasattr(psutil, "getloadavg"):
            readings.append(MetricReading("CPU.LoadAverage1m", float(psutil.getloadavg()[0]), ""))
        return readings

    def _read_memory(self) -> List[MetricReading]:
        mem = psutil.virtual_memory()
        readings = [
            MetricReading("Memory.UsedPercent", float(mem.percent), "%"),
            MetricReading("Memory.AvailablePercent", _percent(mem.available, mem.total), "%"),
            MetricReading("Memory.AvailableMB", mem.available / (1024 ** 2), "MB"),
        ]
        swap = psutil.swap_memory()
        if swap.total:
            readings.append(MetricReading("Memory.SwapUsedPercent", float(swap.percent), "%"))
        return readings

    def _read_disk(self) -> List[MetricReading]:
        readings = [
            MetricReading("Disk.UsagePercent",
                          float(psutil.disk_usage(self.disk_usage_path).percent), "%")
        ]
        counters = psutil.disk_io_counters()
        if counters is not None:
            rates = self._rates("disk", (counters.read_bytes, counters.write_bytes))
            if rates is not None:
                readings.append(MetricReading("Disk.ReadBytesPerSec", rates[0], "B/s"))
                readings.append(MetricReading("Disk.WriteBytesPerSec", rates[1], "B/s"))
        return readings

    def _read_network(self) -> List[MetricReading]:
        counters = psutil.net_io_counters()
        if counters is None:
            return []
        rates = self._rates("network", (counters.bytes_sent, counters.bytes_recv))
        if rates is None:
            return []
        return [
            MetricReading("Network.SentBytesPerSec", rates[0], "B/s"),
            MetricReading("Network.RecvBytesPerSec", rates[1], "B/s"),
        ]

    def _read_thermal(self) -> List[MetricReading]:
        temperatures = self._sensor_temperatures()
        if not temperatures:
            return []
        return [
            MetricReading("Thermal.PeakCelsius", max(temperatures), "C"),
            MetricReading("Thermal.AverageCelsius", sum(temperatures) / len(temperatures), "C"),
        ]

    def _read_power(self) -> List[MetricReading]:
        if not hasattr(psutil, "sensors_battery"):
            return []
        battery = psutil.sensors_battery()
        if battery is None:
            return []
        readings = [MetricReading("Power.BatteryPercent", float(battery.percent), "%")]
        if battery.power_plugged is not None:
            readings.append(MetricReading("Power.PluggedIn", 1.0 if battery.power_plugged else 0.0, ""))
        return readings

    def _rates(self, key: str, counters: Tuple[int, int]) -> Optional[Tuple[float, float]]:
        now = self._clock.monotonic()
        previous = self._previous_counters.get(key)
        self._previous_counters[key] = (now, counters)
        if previous is None:
            return None
        elapsed = now - previous[0]
        if elapsed <= 0:
            return None
        return tuple(
            max(0.0, (current - before) / elapsed)
            for current, before in zip(counters, previous[1])
        )

    # --- Indicators --------------------------------------------------------

    def list_running_process_names(self) -> List[str]:
        names = []
        for proc in psutil.process_iter(["name"]):
            try:
                name = proc.info.get("name")
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
            if name:
                names.append(name)
        return names

    def list_installed_software_names(self) -> List[str]:
        names: List[str] = []
        for directory in self.application_dirs:
            if not directory.is_dir():
                continue
            for entry in sorted(directory.glob("*.desktop")):
                name = _desktop_entry_name(entry)
                if name and name not in names:
                    names.append(name)
        return names

    # --- Hardware ----------------------------------------------------------

    def get_hardware_facts(self) -> HardwareFacts:
        freq = self._safe_cpu_freq()
        max_clock = None
        if freq is not None:
            max_clock = float(freq.max) if freq.max else (float(freq.current) if freq.current else None)
        try:
            total_ram_gb = round(psutil.virtual_memory().total / (1024 ** 3), 1)
        except (psutil.Error, OSError):
            total_ram_gb = None

        return HardwareFacts(
            cpu_cores=psutil.cpu_count(logical=False),
            cpu_threads=psutil.cpu_count(logical=True),
            cpu_max_clock_mhz=max_clock,
            has_dedicated_gpu=detect_dedicated_gpu(),
            total_ram_gb=total_ram_gb,
        )

    def get_bottlenecks(self) -> FrozenSet[Bottleneck]:
        cpu_percent = None
        available_percent = None
        try:
            cpu_percent = float(psutil.cpu_percent(interval=self.thresholds.cpu_sample_seconds))
        except (psutil.Error, OSError) as e:
            logger.debug(f"CPU utilization unavailable: {e}")
        try:
            mem = psutil.virtual_memory()
            available_percent = _percent(mem.available, mem.total)
        except (psutil.Error, OSError) as e:
            logger.debug(f"Memory utilization unavailable: {e}")
        temperatures = self._sensor_temperatures()
        peak = max(temperatures) if temperatures else None
        return detect_bottlenecks(cpu_percent, available_percent, peak, self.thresholds)

    def _safe_cpu_freq(self):
        try:
            return psutil.cpu_freq()
        except (psutil.Error, OSError, NotImplementedError):
            return None

    def _sensor_temperatures(self) -> List[float]:
        if not hasattr(psutil, "sensors_temperatures"):
            return []
        try:
            sensors = psutil.sensors_temperatures()
        except (psutil.Error, OSError):
            return []
        return [
            float(reading.current)
            for readings in (sensors or {}).values()
            for reading in readings
            if reading.current is not None and reading.current > 0
        ]


def _percent(part: float, total: float) -> float:
    return (part / total) * 100.0 if total else 0.0


def _desktop_entry_name(path: Path) -> Optional[str]:
    """Return the ``Name=`` of a freedesktop entry's [Desktop Entry] group."""
    try:
        lines: Iterable[str] = path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return None
    in_main_group = False
    for line in lines:
        line = line.strip()
        if line.startswith("["):
            in_main_group = line == "[Desktop Entry]"
        elif in_main_group and line.startswith("Name="):
            return line[len("Name="):].strip() or None
    return None


def detect_dedicated_gpu() -> Optional[bool]:
    """
    Best-effort dedicated GPU detection.

    Returns True when an NVIDIA driver or a discrete DRM driver is present,
    False when DRM cards exist but none is discrete, None when the platform
    gives no way to tell.
    """
    if Path("/proc/driver/nvidia").exists() or shutil.which("nvidia-smi"):
        return True
    drm = Path("/sys/class/drm")
    if not drm.is_dir():
        return None
    for driver_link in drm.glob("card*/device/driver"):
        try:
            if driver_link.resolve().name in _DISCRETE_GPU_DRIVERS:
                return True
        except OSError:
            continue
    return False
