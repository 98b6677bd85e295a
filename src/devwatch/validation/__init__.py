"""
Validation and error handling for the devwatch package.

This module provides input validation and error handling
with consistent error reporting across the application.
"""

from .exceptions import (
    BuildError,
    ErrorSeverity,
    SetupError,
    ValidationError,
    handle_build_error,
    handle_cli_error,
    handle_config_error,
    handle_error,
)

from .validators import (
    validate_boolean,
    validate_command_template,
    validate_glob_pattern,
    validate_package_name,
    validate_path_exists,
    validate_positive_float,
    validate_positive_integer,
)

__all__ = [
    # Errors
    "BuildError",
    "ErrorSeverity",
    "SetupError",
    "ValidationError",
    "handle_build_error",
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    # Validators
    "validate_boolean",
    "validate_command_template",
    "validate_glob_pattern",
    "validate_package_name",
    "validate_path_exists",
    "validate_positive_float",
    "validate_positive_integer",
]
