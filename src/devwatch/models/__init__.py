"""
Data models for devwatch.

Configuration Models:
- Watch loop, build command and build history settings
- Per-package configuration

Runtime Models:
- Filesystem watch events
- Build trigger labels and completed build records
"""

from .config import (
    DEFAULT_QUIET_WINDOW_MS,
    DEFAULT_SOURCE_GLOB,
    AppConfig,
    BuildConfig,
    HistoryConfig,
    PackageConfig,
    WatchConfig,
)
from .runtime import BuildRecord, BuildTrigger, WatchEvent, WatchEventKind

__all__ = [
    # Configuration
    "DEFAULT_QUIET_WINDOW_MS",
    "DEFAULT_SOURCE_GLOB",
    "AppConfig",
    "BuildConfig",
    "HistoryConfig",
    "PackageConfig",
    "WatchConfig",
    # Runtime
    "BuildRecord",
    "BuildTrigger",
    "WatchEvent",
    "WatchEventKind",
]
