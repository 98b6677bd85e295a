"""
Validation functions for configuration values.

This module provides the small set of validators used when turning raw TOML
data and command-line arguments into typed configuration objects.
"""

import re
from pathlib import Path
from typing import Any, List, Optional, Union

from .exceptions import ValidationError

_PACKAGE_NAME_RE = re.compile(r"^[A-Za-z0-9_@][A-Za-z0-9._@-]*$")


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within a range.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a number within a range.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_boolean(value: Any, field_name: str = "value") -> bool:
    """Validate that a value is a real boolean (TOML true/false)."""
    if not isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a boolean, got {value!r}",
            field_name=field_name,
            value=value
        )
    return value


def validate_path_exists(path: Union[str, Path], field_name: str = "path") -> Path:
    """
    Validate that a directory exists.

    Args:
        path: Path to validate
        field_name: Name of the field being validated

    Returns:
        The path as a Path object

    Raises:
        ValidationError: If the path does not exist or is not a directory
    """
    path_obj = Path(path)
    if not path_obj.is_dir():
        raise ValidationError(
            f"{field_name} is not an existing directory: {path_obj}",
            field_name=field_name,
            value=str(path_obj)
        )
    return path_obj


def validate_package_name(
    name: Any,
    existing_names: Optional[List[str]] = None,
    field_name: str = "package_name"
) -> str:
    """
    Validate a package identifier.

    Package names are directory names directly under the packages root, so
    they may not contain path separators or start with a dot.

    Args:
        name: Package name to validate
        existing_names: Names already registered (for uniqueness check)
        field_name: Name of the field being validated

    Returns:
        Validated package name

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=name
        )
    name = name.strip()
    if not _PACKAGE_NAME_RE.match(name):
        raise ValidationError(
            f"{field_name} '{name}' is not a valid package directory name",
            field_name=field_name,
            value=name
        )
    if existing_names is not None and name in existing_names:
        raise ValidationError(
            f"{field_name} '{name}' is declared more than once",
            field_name=field_name,
            value=name
        )
    return name


def validate_glob_pattern(pattern: Any, field_name: str = "source_glob") -> str:
    """
    Validate a relative source glob such as ``src/**/*``.

    Raises:
        ValidationError: If the pattern is empty, absolute or escapes the package
    """
    if not isinstance(pattern, str) or not pattern.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=pattern
        )
    pattern = pattern.strip().replace("\\", "/")
    if pattern.startswith("/") or ".." in pattern.split("/"):
        raise ValidationError(
            f"{field_name} must be relative to the package directory, got '{pattern}'",
            field_name=field_name,
            value=pattern
        )
    return pattern


def validate_command_template(
    template: Any,
    allow_empty: bool = False,
    field_name: str = "command"
) -> str:
    """
    Validate a build command template.

    Templates may use the ``{name}`` and ``{dir}`` placeholders; any other
    placeholder is rejected so formatting cannot fail at build time.
    """
    if template is None:
        template = ""
    if not isinstance(template, str):
        raise ValidationError(
            f"{field_name} must be a string",
            field_name=field_name,
            value=template
        )
    if not template.strip():
        if allow_empty:
            return ""
        raise ValidationError(
            f"{field_name} cannot be empty",
            field_name=field_name,
            value=template
        )
    try:
        template.format(name="pkg", dir="/tmp/pkg")
    except (KeyError, IndexError, ValueError) as e:
        raise ValidationError(
            f"{field_name} has an invalid placeholder: {e}",
            field_name=field_name,
            value=template
        )
    return template.strip()
