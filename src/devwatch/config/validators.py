"""
Configuration validation utilities.

This module turns the raw TOML tables into validated configuration
dataclasses for the watch loop, build commands, history and packages.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List

from ..models.config import (
    DEFAULT_QUIET_WINDOW_MS,
    DEFAULT_SOURCE_GLOB,
    BuildConfig,
    HistoryConfig,
    PackageConfig,
    WatchConfig,
)
from ..validation import (
    ValidationError,
    validate_boolean,
    validate_command_template,
    validate_glob_pattern,
    validate_package_name,
    validate_positive_float,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

_VALID_COMPRESSIONS = ["snappy", "gzip", "brotli", "lz4", "zstd"]


def _resolve(path_value: Any, base_dir: Path, field_name: str) -> Path:
    if not isinstance(path_value, str) or not path_value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty path string",
            field_name=field_name,
            value=path_value,
        )
    path = Path(path_value).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path.resolve()


def validate_watch_config(watch_data: Dict[str, Any], config_dir: Path) -> WatchConfig:
    """
    Validate and create a WatchConfig from the `[watch]` table.

    Args:
        watch_data: Raw watch table from TOML
        config_dir: Directory of the config file, for relative paths

    Returns:
        Validated WatchConfig instance

    Raises:
        ValidationError: If validation fails
    """
    packages_dir = _resolve(
        watch_data.get("packages_dir", "packages"), config_dir, "watch.packages_dir"
    )

    quiet_window_ms = validate_positive_integer(
        watch_data.get("quiet_window_ms", DEFAULT_QUIET_WINDOW_MS),
        min_value=0,
        max_value=60_000,
        field_name="watch.quiet_window_ms",
    )

    ignore_hidden = validate_boolean(
        watch_data.get("ignore_hidden", True), field_name="watch.ignore_hidden"
    )
    sequential_initial_build = validate_boolean(
        watch_data.get("sequential_initial_build", False),
        field_name="watch.sequential_initial_build",
    )
    skip_initial_build = validate_boolean(
        watch_data.get("skip_initial_build", False),
        field_name="watch.skip_initial_build",
    )

    package_marker = watch_data.get("package_marker", "")
    if not isinstance(package_marker, str) or "/" in package_marker:
        raise ValidationError(
            "watch.package_marker must be a plain file name",
            field_name="watch.package_marker",
            value=package_marker,
        )

    return WatchConfig(
        packages_dir=packages_dir,
        quiet_window_ms=quiet_window_ms,
        ignore_hidden=ignore_hidden,
        sequential_initial_build=sequential_initial_build,
        skip_initial_build=skip_initial_build,
        package_marker=package_marker.strip(),
    )


def validate_build_config(build_data: Dict[str, Any]) -> BuildConfig:
    """
    Validate and create a BuildConfig from the `[build]` table.

    Raises:
        ValidationError: If validation fails
    """
    command = validate_command_template(
        build_data.get("command"), field_name="build.command"
    )
    post_command = validate_command_template(
        build_data.get("post_command", ""), allow_empty=True, field_name="build.post_command"
    )
    timeout_seconds = validate_positive_float(
        build_data.get("timeout_seconds", 0),
        min_value=0.0,
        max_value=86_400.0,
        field_name="build.timeout_seconds",
    )
    shell = build_data.get("shell", "")
    if not isinstance(shell, str):
        raise ValidationError("build.shell must be a string", field_name="build.shell", value=shell)

    return BuildConfig(
        command=command,
        post_command=post_command,
        timeout_seconds=timeout_seconds,
        shell=shell.strip(),
    )


def validate_history_config(history_data: Dict[str, Any], config_dir: Path) -> HistoryConfig:
    """
    Validate and create a HistoryConfig from the `[history]` table.

    Raises:
        ValidationError: If validation fails
    """
    defaults = HistoryConfig()
    enabled = validate_boolean(history_data.get("enabled", defaults.enabled), field_name="history.enabled")
    path = _resolve(history_data.get("path", str(defaults.path)), config_dir, "history.path")

    compression = history_data.get("compression", defaults.compression)
    if compression not in _VALID_COMPRESSIONS:
        raise ValidationError(
            f"history.compression must be one of {_VALID_COMPRESSIONS}, got '{compression}'",
            field_name="history.compression",
            value=compression,
        )

    return HistoryConfig(enabled=enabled, path=path, compression=compression)


def validate_packages_config(packages_data: List[Dict[str, Any]]) -> List[PackageConfig]:
    """
    Validate the `[[packages]]` entries.

    Args:
        packages_data: Raw list of package tables

    Returns:
        List of validated PackageConfig instances, in declaration order

    Raises:
        ValidationError: If any package entry is invalid
    """
    packages: List[PackageConfig] = []
    seen: List[str] = []

    for index, entry in enumerate(packages_data):
        prefix = f"packages[{index}]"
        if not isinstance(entry, dict):
            raise ValidationError(f"{prefix} must be a table", field_name=prefix, value=entry)

        name = validate_package_name(entry.get("name"), existing_names=seen, field_name=f"{prefix}.name")
        source_glob = validate_glob_pattern(
            entry.get("source_glob", DEFAULT_SOURCE_GLOB), field_name=f"{prefix}.source_glob"
        )

        command = entry.get("command")
        if command is not None:
            command = validate_command_template(command, field_name=f"{prefix}.command")
        post_command = entry.get("post_command")
        if post_command is not None:
            post_command = validate_command_template(
                post_command, allow_empty=True, field_name=f"{prefix}.post_command"
            )

        packages.append(
            PackageConfig(
                name=name,
                source_glob=source_glob,
                command=command,
                post_command=post_command,
            )
        )
        seen.append(name)

    logger.debug(f"Validated {len(packages)} package entries")
    return packages
