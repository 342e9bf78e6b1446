"""
Configuration validation utilities.

This module turns raw TOML sections into validated configuration models.
Every failure raises ValidationError with the dotted name of the offending
field, e.g. ``collection.interval_seconds must be >= 1.0, got 0.5``.
"""

import logging
import re
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping

from ..classification.signatures import DEFAULT_SIGNATURES
from ..models.config import (
    BottleneckThresholds,
    ClassificationConfig,
    CollectionConfig,
    GeneralConfig,
    StorageConfig,
    WorkloadTables,
)
from ..models.recommendation import TunableSetting
from ..models.session import MetricCategory
from ..models.workload import MatchPolicy, WorkloadCategory, WorkloadSignature
from ..recommendation.weights import (
    DEFAULT_EXPECTED_GAINS,
    DEFAULT_WEIGHT_TABLE,
    freeze_weight_table,
)
from ..validation import (
    ValidationError,
    validate_category_list,
    validate_enum_choice,
    validate_fraction,
    validate_positive_float,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def get_section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    """Return a top-level table, or an empty one when absent."""
    section = data.get(name, {})
    if not isinstance(section, Mapping):
        raise ValidationError(f"[{name}] must be a table", field_name=name, value=section)
    return section


def validate_general_config(general_data: Mapping[str, Any]) -> GeneralConfig:
    """Validate the [general] section."""
    log_level = validate_enum_choice(
        general_data.get("log_level", "INFO"),
        valid_choices=LOG_LEVELS,
        field_name="general.log_level",
        case_sensitive=False,
    )
    output_dir = general_data.get("output_dir", "reports")
    if not isinstance(output_dir, str) or not output_dir.strip():
        raise ValidationError(
            f"general.output_dir must be a non-empty string, got {output_dir}",
            field_name="general.output_dir",
            value=output_dir,
        )
    return GeneralConfig(log_level=log_level, output_dir=Path(output_dir))


def validate_collection_config(collection_data: Mapping[str, Any]) -> CollectionConfig:
    """Validate the [collection] section."""
    duration = validate_positive_float(
        collection_data.get("duration_seconds", 60),
        min_value=1.0,
        field_name="collection.duration_seconds",
    )
    interval = validate_positive_float(
        collection_data.get("interval_seconds", 1),
        min_value=1.0,
        max_value=3600.0,
        field_name="collection.interval_seconds",
    )
    categories = validate_category_list(
        collection_data.get("categories", MetricCategory.names()),
        valid_choices=MetricCategory.names(),
        field_name="collection.categories",
    )
    baseline_fraction = validate_fraction(
        collection_data.get("baseline_fraction", 0.1),
        field_name="collection.baseline_fraction",
    )
    query_timeout = validate_positive_float(
        collection_data.get("query_timeout_seconds", 5.0),
        min_value=0.0,
        max_value=300.0,
        field_name="collection.query_timeout_seconds",
    )
    sigma_multiplier = validate_positive_float(
        collection_data.get("sigma_multiplier", 3.0),
        min_value=0.1,
        max_value=10.0,
        field_name="collection.sigma_multiplier",
    )
    return CollectionConfig(
        duration_seconds=duration,
        interval_seconds=interval,
        categories=tuple(categories),
        baseline_fraction=baseline_fraction,
        query_timeout_seconds=query_timeout or None,
        sigma_multiplier=sigma_multiplier,
    )


def validate_thresholds_config(thresholds_data: Mapping[str, Any]) -> BottleneckThresholds:
    """Validate the [thresholds] section."""
    return BottleneckThresholds(
        cpu_percent=validate_positive_float(
            thresholds_data.get("cpu_percent", 85.0),
            min_value=0.0, max_value=100.0,
            field_name="thresholds.cpu_percent",
        ),
        memory_available_percent=validate_positive_float(
            thresholds_data.get("memory_available_percent", 20.0),
            min_value=0.0, max_value=100.0,
            field_name="thresholds.memory_available_percent",
        ),
        thermal_celsius=validate_positive_float(
            thresholds_data.get("thermal_celsius", 85.0),
            min_value=0.0, max_value=150.0,
            field_name="thresholds.thermal_celsius",
        ),
        cpu_sample_seconds=validate_positive_float(
            thresholds_data.get("cpu_sample_seconds", 1.0),
            min_value=0.0, max_value=60.0,
            field_name="thresholds.cpu_sample_seconds",
        ),
    )


def validate_classification_config(classification_data: Mapping[str, Any]) -> ClassificationConfig:
    """Validate the [classification] section."""
    policy = validate_enum_choice(
        classification_data.get("policy", MatchPolicy.ACCUMULATE.value),
        valid_choices=[p.value for p in MatchPolicy],
        field_name="classification.policy",
        case_sensitive=False,
    )
    match_points = validate_positive_float(
        classification_data.get("match_points", 10.0),
        min_value=0.0,
        field_name="classification.match_points",
    )
    if match_points == 0:
        raise ValidationError(
            "classification.match_points must be > 0, got 0.0",
            field_name="classification.match_points",
            value=match_points,
        )
    return ClassificationConfig(policy=MatchPolicy(policy), match_points=match_points)


def validate_storage_config(storage_data: Mapping[str, Any]) -> StorageConfig:
    """Validate the [storage] section."""
    try:
        return StorageConfig.from_dict(dict(storage_data))
    except ValueError as e:
        raise ValidationError(f"storage: {e}", field_name="storage", value=dict(storage_data))


def validate_application_dirs(paths_data: Mapping[str, Any], config_dir: Path) -> List[Path]:
    """Validate [paths].application_dirs; relative entries resolve against the config dir."""
    raw = paths_data.get("application_dirs", [])
    if not isinstance(raw, list) or not all(isinstance(p, str) for p in raw):
        raise ValidationError(
            "paths.application_dirs must be a list of strings",
            field_name="paths.application_dirs",
            value=raw,
        )
    return [Path(p) if Path(p).is_absolute() else config_dir / p for p in raw]


def _parse_category(name: Any, field_name: str) -> WorkloadCategory:
    category = WorkloadCategory.parse(name) if isinstance(name, str) else None
    if category is None:
        raise ValidationError(
            f"{field_name} must be one of {[c.value for c in WorkloadCategory]}, got {name}",
            field_name=field_name,
            value=name,
        )
    return category


def _validate_signatures(raw_signatures: Any) -> tuple:
    if not isinstance(raw_signatures, list) or not raw_signatures:
        raise ValidationError(
            "workloads.signatures must be a non-empty array of tables",
            field_name="workloads.signatures",
            value=raw_signatures,
        )
    signatures = []
    for i, raw in enumerate(raw_signatures):
        field_prefix = f"workloads.signatures[{i}]"
        if not isinstance(raw, Mapping):
            raise ValidationError(f"{field_prefix} must be a table", field_name=field_prefix, value=raw)
        category = _parse_category(raw.get("category"), f"{field_prefix}.category")
        keywords = raw.get("keywords")
        if (not isinstance(keywords, list) or not keywords
                or not all(isinstance(k, str) and k for k in keywords)):
            raise ValidationError(
                f"{field_prefix}.keywords must be a non-empty list of strings",
                field_name=f"{field_prefix}.keywords",
                value=keywords,
            )
        for keyword in keywords:
            try:
                re.compile(keyword)
            except re.error as e:
                raise ValidationError(
                    f"{field_prefix}.keywords has invalid pattern '{keyword}': {e}",
                    field_name=f"{field_prefix}.keywords",
                    value=keyword,
                )
        signatures.append(WorkloadSignature(category=category, keywords=tuple(keywords)))
    return tuple(signatures)


def _validate_weights(raw_weights: Any) -> Mapping:
    if not isinstance(raw_weights, Mapping):
        raise ValidationError("workloads.weights must be a table",
                              field_name="workloads.weights", value=raw_weights)
    table: Dict[WorkloadCategory, Dict[TunableSetting, float]] = {
        category: dict(weights) for category, weights in DEFAULT_WEIGHT_TABLE.items()
    }
    setting_names = [s.value for s in TunableSetting]
    for category_name, raw_vector in raw_weights.items():
        category = _parse_category(category_name, f"workloads.weights.{category_name}")
        if not isinstance(raw_vector, Mapping):
            raise ValidationError(
                f"workloads.weights.{category_name} must be a table",
                field_name=f"workloads.weights.{category_name}",
                value=raw_vector,
            )
        for setting_name, weight in raw_vector.items():
            field_name = f"workloads.weights.{category_name}.{setting_name}"
            setting = TunableSetting(validate_enum_choice(
                setting_name, valid_choices=setting_names, field_name=field_name,
            ))
            table[category][setting] = validate_positive_float(
                weight, min_value=0.0, max_value=1.0, field_name=field_name,
            )
    return freeze_weight_table(table)


def _validate_gains(raw_gains: Any) -> Mapping:
    if not isinstance(raw_gains, Mapping):
        raise ValidationError("workloads.gains must be a table",
                              field_name="workloads.gains", value=raw_gains)
    gains = dict(DEFAULT_EXPECTED_GAINS)
    for category_name, value in raw_gains.items():
        field_name = f"workloads.gains.{category_name}"
        category = _parse_category(category_name, field_name)
        gains[category] = validate_positive_float(
            value, min_value=0.0, max_value=100.0, field_name=field_name
        )
    return MappingProxyType(gains)


def default_workload_tables() -> WorkloadTables:
    """The built-in signature, weight and gain tables."""
    return WorkloadTables(
        signatures=DEFAULT_SIGNATURES,
        weights=DEFAULT_WEIGHT_TABLE,
        expected_gains=DEFAULT_EXPECTED_GAINS,
    )


def validate_workloads_config(workloads_data: Mapping[str, Any]) -> WorkloadTables:
    """
    Validate a workloads file into immutable tables.

    Signatures replace the built-in list when present. Weight vectors and
    gains are merged over the built-in values, so a file may override a
    single category or setting.
    """
    defaults = default_workload_tables()
    signatures = (
        _validate_signatures(workloads_data["signatures"])
        if "signatures" in workloads_data else defaults.signatures
    )
    weights = (
        _validate_weights(workloads_data["weights"])
        if "weights" in workloads_data else defaults.weights
    )
    gains = (
        _validate_gains(workloads_data["gains"])
        if "gains" in workloads_data else defaults.expected_gains
    )
    logger.debug(f"Validated workload tables with {len(signatures)} signatures")
    return WorkloadTables(signatures=signatures, weights=weights, expected_gains=gains)
