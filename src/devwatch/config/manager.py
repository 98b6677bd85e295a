"""
Configuration management and singleton pattern.

This module provides the main configuration loading interface, implementing
a singleton so the configuration file is read only once per process.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import AppConfig
from ..validation import ErrorSeverity, handle_config_error
from .loader import DEFAULT_CONFIG_FILENAME, get_packages_data, load_main_config
from .validators import (
    validate_build_config,
    validate_history_config,
    validate_packages_config,
    validate_watch_config,
)

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[AppConfig] = None

# Overridden by the CLI's --config option and by tests.
_CONFIG_FILE_PATH = Path.cwd() / DEFAULT_CONFIG_FILENAME


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path.

    Clears any cached configuration so the next get_config() reloads.

    Args:
        config_path: Path to the devwatch.toml file
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


def load_config(config_path: Path) -> AppConfig:
    """
    Load the complete application configuration from a TOML file.

    Args:
        config_path: Path to the devwatch.toml file

    Returns:
        Fully validated AppConfig instance

    Raises:
        FileNotFoundError: If the configuration file is missing
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the TOML file is malformed
        KeyError: If a table has the wrong shape
    """
    config_path = Path(config_path).resolve()
    try:
        data = load_main_config(config_path)
        config_dir = config_path.parent

        watch_config = validate_watch_config(data.get("watch", {}), config_dir)
        build_config = validate_build_config(data.get("build", {}))
        history_config = validate_history_config(data.get("history", {}), config_dir)
        packages_config = validate_packages_config(get_packages_data(data))

        app_config = AppConfig(
            watch=watch_config,
            build=build_config,
            history=history_config,
            packages=packages_config,
        )

        if packages_config:
            logger.info(f"Successfully loaded configuration with {len(packages_config)} packages")
        else:
            logger.info(f"Successfully loaded configuration; packages will be discovered in {watch_config.packages_dir}")
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
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger
        )
        raise


def get_config() -> AppConfig:
    """
    Get the global application configuration, loading it if necessary.

    Returns:
        The singleton AppConfig instance
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config(_CONFIG_FILE_PATH)
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
        "packages_count": len(_CONFIG.packages) if _CONFIG else 0,
    }
