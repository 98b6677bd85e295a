"""
Configuration data models.

This module contains the configuration structures for watching, building,
build history and the individual packages, loaded from `devwatch.toml`.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


DEFAULT_SOURCE_GLOB = "src/**/*"
DEFAULT_QUIET_WINDOW_MS = 300


@dataclass
class WatchConfig:
    """
    Settings for the watch loop, loaded from the `[watch]` table.
    """

    # Directory whose immediate subdirectories are the packages.
    packages_dir: Path
    # Quiet window shared by all packages before a rebuild fires.
    quiet_window_ms: int = DEFAULT_QUIET_WINDOW_MS
    # Drop events for paths with a component starting with '.'.
    ignore_hidden: bool = True
    # Await each package's initial build before requesting the next one.
    sequential_initial_build: bool = False
    # Skip the initial build pass entirely.
    skip_initial_build: bool = False
    # During discovery, only directories containing this file are packages.
    package_marker: str = ""

    @property
    def quiet_window_seconds(self) -> float:
        return self.quiet_window_ms / 1000.0


@dataclass
class BuildConfig:
    """
    Default build settings, loaded from the `[build]` table.
    """

    # Shell command run in the package directory. Supports {name} and {dir}.
    command: str
    # Optional command run after a successful build; failures only warn.
    post_command: str = ""
    # 0 disables the timeout.
    timeout_seconds: float = 0.0
    # Shell executable, empty for the system default.
    shell: str = ""


@dataclass
class HistoryConfig:
    """
    Build history settings, loaded from the `[history]` table.
    """

    enabled: bool = True
    path: Path = Path(".devwatch") / "build_history.parquet"
    compression: str = "snappy"


@dataclass
class PackageConfig:
    """
    A single package, from a `[[packages]]` entry or directory discovery.
    """

    # Unique identifier; also the directory name under packages_dir.
    name: str
    # Source glob relative to the package directory.
    source_glob: str = DEFAULT_SOURCE_GLOB
    # Per-package overrides of the [build] commands.
    command: Optional[str] = None
    post_command: Optional[str] = None


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    watch: WatchConfig
    build: BuildConfig
    history: HistoryConfig = field(default_factory=HistoryConfig)
    # Explicitly configured packages; empty means discover from packages_dir.
    packages: List[PackageConfig] = field(default_factory=list)
