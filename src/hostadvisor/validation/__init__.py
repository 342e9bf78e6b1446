"""
Validation and error handling for the hostadvisor package.

This module provides input validation and error handling with consistent
error reporting across the application.
"""

from .exceptions import (
    ErrorSeverity,
    SessionStateError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
    handle_file_error,
)
from .validators import (
    validate_category_list,
    validate_enum_choice,
    validate_fraction,
    validate_positive_float,
    validate_positive_integer,
)

__all__ = [
    "ErrorSeverity",
    "SessionStateError",
    "ValidationError",
    "handle_error",
    "handle_config_error",
    "handle_file_error",
    "handle_cli_error",
    "validate_category_list",
    "validate_enum_choice",
    "validate_fraction",
    "validate_positive_float",
    "validate_positive_integer",
]
