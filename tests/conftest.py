"""
Pytest configuration and shared fixtures for the devwatch test suite.

This module provides common fixtures, a scripted build executor and
configuration helpers for all test modules.
"""

import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from devwatch.models.config import AppConfig, BuildConfig, HistoryConfig, PackageConfig, WatchConfig  # noqa: E402
from devwatch.validation import BuildError  # noqa: E402
from devwatch.workspace.registry import PackageRegistry  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Fake Build Executor
# ============================================================================


class FakeExecutor:
    """
    Scripted BuildExecutor.

    Records every build call and the peak number of concurrent builds per
    package. A package with a gate blocks until the gate is set; a package
    listed in ``failures`` raises BuildError with the given message.
    """

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls: List[str] = []
        self.finished: List[str] = []
        self.active: Dict[str, int] = {}
        self.max_active: Dict[str, int] = {}
        self.failures: Dict[str, str] = {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.started: Dict[str, asyncio.Event] = {}

    def gate(self, package: str) -> asyncio.Event:
        """Make builds of ``package`` block until the returned event is set."""
        self.gates[package] = asyncio.Event()
        return self.gates[package]

    def started_event(self, package: str) -> asyncio.Event:
        return self.started.setdefault(package, asyncio.Event())

    async def build(self, package: str) -> None:
        self.calls.append(package)
        self.active[package] = self.active.get(package, 0) + 1
        self.max_active[package] = max(self.max_active.get(package, 0), self.active[package])
        self.started_event(package).set()
        try:
            gate = self.gates.get(package)
            if gate is not None:
                await gate.wait()
            elif self.delay:
                await asyncio.sleep(self.delay)
            message = self.failures.get(package)
            if message is not None:
                raise BuildError(package, message)
        finally:
            self.active[package] -= 1
            self.finished.append(package)

    def count(self, package: str) -> int:
        return self.calls.count(package)


# ============================================================================
# Fake Watchdog Observer
# ============================================================================


class FakeObserver:
    """Stands in for watchdog's Observer thread."""

    def __init__(self, fail_on_start: bool = False):
        self.fail_on_start = fail_on_start
        self.scheduled = []
        self.started = False
        self.stopped = False
        self.join_timeout = None
        self.daemon = False

    def schedule(self, handler, path, recursive=False):
        self.scheduled.append((path, recursive))

    def start(self):
        if self.fail_on_start:
            raise OSError("inotify watch limit reached")
        self.started = True

    def stop(self):
        self.stopped = True

    def join(self, timeout=None):
        self.join_timeout = timeout


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def fake_observer():
    return FakeObserver()


@pytest.fixture
def packages_root(tmp_path):
    """A workspace with packages pkg-a and pkg-b, each with src/index.ts."""
    root = tmp_path / "packages"
    for name in ("pkg-a", "pkg-b"):
        src = root / name / "src"
        src.mkdir(parents=True)
        (src / "index.ts").write_text("export {};\n")
        (root / name / "package.json").write_text("{}\n")
    return root


@pytest.fixture
def registry(packages_root):
    return PackageRegistry(packages_root, [PackageConfig(name="pkg-a"), PackageConfig(name="pkg-b")])


def make_app_config(
    packages_root: Path,
    command: str = "true",
    quiet_window_ms: int = 300,
    history_path: Optional[Path] = None,
    packages: Optional[List[PackageConfig]] = None,
    **watch_options,
) -> AppConfig:
    """Build an AppConfig for tests without going through a TOML file."""
    return AppConfig(
        watch=WatchConfig(packages_dir=packages_root, quiet_window_ms=quiet_window_ms, **watch_options),
        build=BuildConfig(command=command),
        history=HistoryConfig(enabled=history_path is not None, path=history_path or Path("unused.parquet")),
        packages=packages or [],
    )


@pytest.fixture
def config_factory(packages_root):
    """Build AppConfigs for the packages_root workspace."""

    def _make(**kwargs) -> AppConfig:
        return make_app_config(packages_root, **kwargs)

    return _make


@pytest.fixture
def write_config(tmp_path):
    """Write a devwatch.toml into tmp_path and return its path."""

    def _write(content: str) -> Path:
        path = tmp_path / "devwatch.toml"
        path.write_text(content)
        return path

    return _write


@pytest.fixture(autouse=True)
def reset_config_singleton():
    """Ensure every test starts with an empty configuration cache."""
    from devwatch.config import manager

    original_path = manager._CONFIG_FILE_PATH
    manager.clear_config_cache()
    yield
    manager.clear_config_cache()
    manager._CONFIG_FILE_PATH = original_path
