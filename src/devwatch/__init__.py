"""
devwatch: development build orchestrator for multi-package workspaces.

devwatch builds every package of a workspace once, then watches their
sources and rebuilds a package shortly after its files stop changing.
At most one build runs per package at any time; changes made during a
build collapse into a single follow-up build.

The package is organized into specialized modules:
- config: Configuration loading and validation
- models: Configuration and runtime data structures
- validation: Input validation and error handling
- workspace: Package registry and path resolution
- orchestration: Debouncing and build scheduling
- executor: Build command execution
- watcher: Filesystem watching
- storage: Build history
- cli: Command-line interface and session runner

Usage:
    From command line:
        devwatch [-c devwatch.toml] [-p PACKAGE] [--once]

    Programmatically:
        from devwatch import WatchRunner, get_config
        runner = WatchRunner(get_config())
        runner.run()
"""

__version__ = "0.1.0"

# Main interfaces
from .config import clear_config_cache, get_config, set_config_path
from .cli import WatchRunner, main_cli

# Core components
from .orchestration import BuildScheduler, Debouncer
from .executor import BuildExecutor, CommandBuildExecutor
from .workspace import PackageRegistry, PathResolver

# Model classes for external use
from .models import (
    AppConfig,
    BuildConfig,
    BuildRecord,
    HistoryConfig,
    PackageConfig,
    WatchConfig,
    WatchEvent,
    WatchEventKind,
)

# Errors
from .validation import BuildError, SetupError, ValidationError

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "WatchRunner",
    "main_cli",
    # Core components
    "BuildScheduler",
    "Debouncer",
    "BuildExecutor",
    "CommandBuildExecutor",
    "PackageRegistry",
    "PathResolver",
    # Models
    "AppConfig",
    "BuildConfig",
    "BuildRecord",
    "HistoryConfig",
    "PackageConfig",
    "WatchConfig",
    "WatchEvent",
    "WatchEventKind",
    # Errors
    "BuildError",
    "SetupError",
    "ValidationError",
]
