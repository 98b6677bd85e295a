"""
Unit tests for the WatchRunner session lifecycle.
"""

import asyncio
import logging

import pytest

from devwatch.cli import WatchRunner
from devwatch.models.runtime import WatchEvent, WatchEventKind


async def wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.mark.unit
class TestOnceMode:
    """Test cases for a single initial build pass."""

    @pytest.mark.asyncio
    async def test_builds_every_package_once(self, config_factory, registry, fake_executor, caplog):
        caplog.set_level(logging.INFO, logger="devwatch")
        runner = WatchRunner(config_factory(), registry=registry, executor=fake_executor, once=True)

        assert await runner.run_async() == 0

        assert sorted(fake_executor.calls) == ["pkg-a", "pkg-b"]
        assert runner.observer is None
        assert "Building all packages initially..." in caplog.text

    @pytest.mark.asyncio
    async def test_failure_sets_exit_code(self, config_factory, registry, fake_executor):
        fake_executor.failures["pkg-b"] = "syntax error"
        runner = WatchRunner(config_factory(), registry=registry, executor=fake_executor, once=True)

        assert await runner.run_async() == 1
        assert runner.scheduler.stats.failed == 1
        assert runner.scheduler.stats.succeeded == 1

    @pytest.mark.asyncio
    async def test_sequential_initial_build(self, config_factory, registry, fake_executor):
        gate = fake_executor.gate("pkg-a")
        config = config_factory(sequential_initial_build=True)
        runner = WatchRunner(config, registry=registry, executor=fake_executor, once=True)

        task = asyncio.create_task(runner.run_async())
        await fake_executor.started_event("pkg-a").wait()
        await asyncio.sleep(0.05)
        assert fake_executor.calls == ["pkg-a"]

        gate.set()
        assert await task == 0
        assert fake_executor.calls == ["pkg-a", "pkg-b"]

    @pytest.mark.asyncio
    async def test_concurrent_initial_build(self, config_factory, registry, fake_executor):
        gate = fake_executor.gate("pkg-a")
        runner = WatchRunner(config_factory(), registry=registry, executor=fake_executor, once=True)

        task = asyncio.create_task(runner.run_async())
        await wait_until(lambda: "pkg-b" in fake_executor.finished)
        assert not task.done()

        gate.set()
        assert await task == 0

    @pytest.mark.asyncio
    async def test_history_saved_on_exit(self, config_factory, registry, fake_executor, tmp_path):
        history_path = tmp_path / "state" / "history.parquet"
        runner = WatchRunner(
            config_factory(history_path=history_path), registry=registry, executor=fake_executor, once=True
        )

        assert await runner.run_async() == 0
        assert history_path.exists()
        assert len(runner.history) == 2

    def test_run_sync_wrapper(self, config_factory, registry, fake_executor):
        runner = WatchRunner(config_factory(), registry=registry, executor=fake_executor, once=True)
        assert runner.run() == 0
        assert len(fake_executor.calls) == 2


@pytest.mark.unit
class TestWatchMode:
    """Test cases for the long-running watch session."""

    @pytest.mark.asyncio
    async def test_watch_then_shutdown(self, config_factory, registry, fake_executor, fake_observer, packages_root, caplog):
        caplog.set_level(logging.INFO, logger="devwatch")
        runner = WatchRunner(
            config_factory(quiet_window_ms=20),
            registry=registry,
            executor=fake_executor,
            observer_factory=lambda: fake_observer,
        )

        task = asyncio.create_task(runner.run_async())
        await wait_until(lambda: "All packages built. Watching for changes..." in caplog.text)
        assert fake_observer.started
        assert len(fake_executor.calls) == 2

        runner.adapter.handle_event(WatchEvent(WatchEventKind.CHANGED, packages_root / "pkg-a" / "src" / "index.ts"))
        await wait_until(lambda: fake_executor.count("pkg-a") == 2)

        runner.request_shutdown()
        assert await asyncio.wait_for(task, timeout=2) == 0
        assert fake_observer.stopped

    @pytest.mark.asyncio
    async def test_skip_initial_build(self, config_factory, registry, fake_executor, fake_observer, caplog):
        caplog.set_level(logging.INFO, logger="devwatch")
        runner = WatchRunner(
            config_factory(skip_initial_build=True),
            registry=registry,
            executor=fake_executor,
            observer_factory=lambda: fake_observer,
        )

        task = asyncio.create_task(runner.run_async())
        await wait_until(lambda: "Initial build skipped" in caplog.text)
        runner.request_shutdown()

        assert await asyncio.wait_for(task, timeout=2) == 0
        assert fake_executor.calls == []

    @pytest.mark.asyncio
    async def test_shutdown_during_initial_build(self, config_factory, registry, fake_executor, fake_observer):
        fake_executor.gate("pkg-a")
        runner = WatchRunner(
            config_factory(), registry=registry, executor=fake_executor, observer_factory=lambda: fake_observer
        )

        task = asyncio.create_task(runner.run_async())
        await fake_executor.started_event("pkg-a").wait()
        runner.request_shutdown()

        assert await asyncio.wait_for(task, timeout=2) == 0
        assert runner.scheduler.stats.cancelled == 1
        assert runner.scheduler.in_flight == frozenset()

    @pytest.mark.asyncio
    async def test_shutdown_requested_before_start(self, config_factory, registry, fake_executor, fake_observer):
        runner = WatchRunner(
            config_factory(), registry=registry, executor=fake_executor, observer_factory=lambda: fake_observer
        )
        runner.request_shutdown()

        assert await asyncio.wait_for(runner.run_async(), timeout=2) == 0
        assert fake_executor.calls == []

    @pytest.mark.asyncio
    async def test_pending_debounce_timers_cancelled_on_shutdown(
        self, config_factory, registry, fake_executor, fake_observer, packages_root
    ):
        runner = WatchRunner(
            config_factory(quiet_window_ms=5000, skip_initial_build=True),
            registry=registry,
            executor=fake_executor,
            observer_factory=lambda: fake_observer,
        )

        task = asyncio.create_task(runner.run_async())
        await wait_until(lambda: runner.adapter is not None and fake_observer.started)
        runner.adapter.handle_event(WatchEvent(WatchEventKind.CHANGED, packages_root / "pkg-b" / "src" / "index.ts"))
        assert runner.debouncer.is_pending("pkg-b")

        runner.request_shutdown()
        await asyncio.wait_for(task, timeout=2)
        assert len(runner.debouncer) == 0
        assert fake_executor.calls == []


@pytest.mark.unit
class TestSetupFailures:
    """Test cases for failures before the watch loop starts."""

    @pytest.mark.asyncio
    async def test_missing_packages_dir(self, config_factory, tmp_path, fake_executor):
        config = config_factory()
        config.watch.packages_dir = tmp_path / "missing"
        runner = WatchRunner(config, executor=fake_executor, once=True)

        assert await runner.run_async() == 1
        assert fake_executor.calls == []

    @pytest.mark.asyncio
    async def test_observer_start_failure(self, config_factory, registry, fake_executor, fake_observer):
        fake_observer.fail_on_start = True
        runner = WatchRunner(
            config_factory(), registry=registry, executor=fake_executor, observer_factory=lambda: fake_observer
        )

        assert await runner.run_async() == 1
        assert fake_executor.calls == []

    @pytest.mark.asyncio
    async def test_registry_built_from_config(self, config_factory, fake_executor):
        runner = WatchRunner(config_factory(), executor=fake_executor, once=True)

        assert await runner.run_async() == 0
        assert runner.registry.ids == ["pkg-a", "pkg-b"]
