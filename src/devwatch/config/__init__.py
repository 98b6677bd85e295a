"""
Configuration management for the devwatch package.

This module provides a clean interface for loading, validating, and accessing
configuration data from a TOML file with singleton pattern management.
"""

from .manager import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    load_config,
    set_config_path,
)

from .loader import (
    DEFAULT_CONFIG_FILENAME,
    get_packages_data,
    load_main_config,
    load_toml_file,
)
from .validators import (
    validate_build_config,
    validate_history_config,
    validate_packages_config,
    validate_watch_config,
)

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    "load_config",
    # Advanced interface
    "DEFAULT_CONFIG_FILENAME",
    "load_toml_file",
    "load_main_config",
    "get_packages_data",
    "validate_watch_config",
    "validate_build_config",
    "validate_history_config",
    "validate_packages_config",
]
