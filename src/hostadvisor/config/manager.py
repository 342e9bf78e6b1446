"""
Configuration management and singleton pattern.

This module provides the main configuration loading and management interface,
implementing a singleton pattern to ensure configuration is loaded only once.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import AppConfig
from ..validation import ErrorSeverity, handle_config_error
from .loader import get_config_paths, load_main_config, load_workloads_config
from .validators import (
    get_section,
    default_workload_tables,
    validate_application_dirs,
    validate_classification_config,
    validate_collection_config,
    validate_general_config,
    validate_storage_config,
    validate_thresholds_config,
    validate_workloads_config,
)

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[AppConfig] = None

# Default path to the main configuration file, relative to this file's location.
# Overridden by the CLI --config option and by tests.
_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path and drop any cached configuration.

    Args:
        config_path: Path to the main config.toml file
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """Clear the cached configuration, forcing a reload on next access."""
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def _load_config(config_path: Path) -> AppConfig:
    """
    Load the complete application configuration from TOML files.

    Args:
        config_path: Path to the main config.toml file

    Returns:
        Fully validated AppConfig instance

    Raises:
        FileNotFoundError: If configuration files are missing
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If TOML files are malformed
    """
    try:
        main_config_data = load_main_config(config_path)
        config_dir = config_path.parent
        config_paths = get_config_paths(main_config_data, config_dir)

        workloads_path = config_paths["workloads"]
        if workloads_path is None:
            workloads = default_workload_tables()
        else:
            workloads = validate_workloads_config(load_workloads_config(workloads_path))

        app_config = AppConfig(
            general=validate_general_config(get_section(main_config_data, "general")),
            collection=validate_collection_config(get_section(main_config_data, "collection")),
            thresholds=validate_thresholds_config(get_section(main_config_data, "thresholds")),
            classification=validate_classification_config(
                get_section(main_config_data, "classification")
            ),
            storage=validate_storage_config(get_section(main_config_data, "storage")),
            workloads=workloads,
            application_dirs=validate_application_dirs(
                get_section(main_config_data, "paths"), config_dir
            ),
        )

        logger.info(
            f"Successfully loaded configuration with {len(workloads.signatures)} "
            f"workload signatures"
        )
        return app_config

    except FileNotFoundError as e:
        handle_config_error(
            error=e,
            context="loading configuration file",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise
    except Exception as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def get_config() -> AppConfig:
    """
    Get the global application configuration, loading it if necessary.

    Returns:
        The singleton AppConfig instance

    Raises:
        FileNotFoundError: If configuration files are missing
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If TOML files are malformed
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    """Check if configuration has been loaded and cached."""
    return _CONFIG is not None


def get_config_info() -> dict:
    """
    Get information about the current configuration state.

    Returns:
        Dictionary with configuration metadata
    """
    return {
        "config_loaded": is_config_loaded(),
        "config_path": str(_CONFIG_FILE_PATH),
        "signatures_count": len(_CONFIG.workloads.signatures) if _CONFIG else 0,
        "categories": list(_CONFIG.collection.categories) if _CONFIG else [],
    }
