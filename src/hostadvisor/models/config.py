"""
Configuration data models.

This module contains all configuration-related data structures, loaded from
``config.toml`` and the optional workloads file. Instances are built once by
the configuration manager and passed by reference; nothing mutates them after
construction.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from .recommendation import TunableSetting
from .session import MetricCategory
from .workload import MatchPolicy, WorkloadCategory, WorkloadSignature


@dataclass(frozen=True)
class GeneralConfig:
    """[general] section."""

    log_level: str = "INFO"
    # Directory where collected sessions and recommendations are written.
    output_dir: Path = Path("reports")


@dataclass(frozen=True)
class CollectionConfig:
    """[collection] section: sampler defaults."""

    duration_seconds: float = 60.0
    interval_seconds: float = 1.0
    categories: Tuple[str, ...] = tuple(MetricCategory.names())
    # Leading fraction of iterations used to build each metric's baseline.
    baseline_fraction: float = 0.1
    # Ceiling for a single category query; None disables it.
    query_timeout_seconds: Optional[float] = 5.0
    sigma_multiplier: float = 3.0


@dataclass(frozen=True)
class BottleneckThresholds:
    """
    [thresholds] section: utilization limits that mark a resource as a
    bottleneck.
    """

    # CPU bottleneck when sustained utilization exceeds this percentage.
    cpu_percent: float = 85.0
    # Memory bottleneck when available memory falls below this percentage.
    memory_available_percent: float = 20.0
    # Thermal bottleneck when the hottest sensor exceeds this temperature.
    thermal_celsius: float = 85.0
    # Window over which live CPU utilization is averaged.
    cpu_sample_seconds: float = 1.0


@dataclass(frozen=True)
class ClassificationConfig:
    """[classification] section."""

    policy: MatchPolicy = MatchPolicy.ACCUMULATE
    # Points added to a category for every matching indicator.
    match_points: float = 10.0


@dataclass(frozen=True)
class StorageConfig:
    """
    [storage] section.

    Attributes:
        format: 'parquet' stores data points in a compressed columnar file,
            'json' keeps everything human-readable.
        compression: Parquet compression codec; ignored for 'json'.
    """

    format: Literal["parquet", "json"] = "parquet"
    compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy"

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "StorageConfig":
        """
        Create a StorageConfig from a raw dictionary.

        Raises:
            ValueError: If an unsupported format or codec is given
        """
        format_type = config_dict.get("format", "parquet")
        compression = config_dict.get("compression", "snappy")

        if format_type not in ("parquet", "json"):
            raise ValueError(f"Unsupported storage format: {format_type}")
        if compression not in ("snappy", "gzip", "brotli", "lz4", "zstd"):
            raise ValueError(f"Unsupported compression algorithm: {compression}")

        return cls(format=format_type, compression=compression)

    def to_dict(self) -> Dict[str, Any]:
        return {"format": self.format, "compression": self.compression}


@dataclass(frozen=True)
class WorkloadTables:
    """
    Static classification and scoring tables.

    ``signatures`` is ordered; ``weights`` maps each category to a base weight
    per setting; ``expected_gains`` maps each category to its gain estimate in
    percent.
    """

    signatures: Tuple[WorkloadSignature, ...]
    weights: Mapping[WorkloadCategory, Mapping[TunableSetting, float]]
    expected_gains: Mapping[WorkloadCategory, float]


@dataclass(frozen=True)
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    general: GeneralConfig
    collection: CollectionConfig
    thresholds: BottleneckThresholds
    classification: ClassificationConfig
    storage: StorageConfig
    workloads: WorkloadTables
    # Directories scanned for installed software (.desktop entries).
    application_dirs: List[Path] = field(default_factory=list)
