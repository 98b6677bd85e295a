"""
Integration tests for complete watch sessions.

The first group drives a WatchRunner with a scripted executor and injects
watch events directly; the last test uses the real watchdog observer and
real shell build commands.
"""

import asyncio
import logging

import pytest
import pytest_asyncio

from devwatch.cli import WatchRunner
from devwatch.models.runtime import BuildTrigger, WatchEvent, WatchEventKind


async def wait_until(predicate, timeout: float = 3.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest_asyncio.fixture
async def session(config_factory, registry, fake_executor, fake_observer, tmp_path):
    """A running watch session with a 300ms quiet window and build history."""
    runner = WatchRunner(
        config_factory(quiet_window_ms=300, history_path=tmp_path / "history.parquet"),
        registry=registry,
        executor=fake_executor,
        observer_factory=lambda: fake_observer,
    )
    task = asyncio.create_task(runner.run_async())
    await wait_until(lambda: runner.scheduler is not None and len(fake_executor.finished) == 2)
    await runner.scheduler.wait_idle()
    yield runner
    runner.request_shutdown()
    await asyncio.wait_for(task, timeout=5)


def changed(packages_root, package, name="index.ts"):
    return WatchEvent(WatchEventKind.CHANGED, packages_root / package / "src" / name)


@pytest.mark.integration
class TestWatchScenarios:
    """End-to-end scheduling scenarios with a scripted executor."""

    @pytest.mark.asyncio
    async def test_initial_pass_builds_each_package_once(self, session, fake_executor):
        assert sorted(fake_executor.calls) == ["pkg-a", "pkg-b"]
        assert {r.trigger for r in session.history.records} == {BuildTrigger.INITIAL}

    @pytest.mark.asyncio
    async def test_changes_during_build_cause_exactly_one_rebuild(self, session, fake_executor, packages_root):
        gate = fake_executor.gate("pkg-a")
        session.scheduler.request_build("pkg-a")
        await wait_until(lambda: fake_executor.count("pkg-a") == 2)

        # Three changes within 50ms while pkg-a is building.
        for name in ("a.ts", "b.ts", "c.ts"):
            session.adapter.handle_event(changed(packages_root, "pkg-a", name))
            await asyncio.sleep(0.015)

        # The debounced request lands while the build is still running.
        await asyncio.sleep(0.5)
        assert fake_executor.count("pkg-a") == 2
        assert session.scheduler.is_pending("pkg-a")

        gate.set()
        await wait_until(lambda: fake_executor.count("pkg-a") == 3)
        await session.scheduler.wait_idle()
        await asyncio.sleep(0.4)

        assert fake_executor.count("pkg-a") == 3
        assert fake_executor.max_active["pkg-a"] == 1
        assert session.history.records[-1].trigger == BuildTrigger.RERUN

    @pytest.mark.asyncio
    async def test_change_outside_packages_builds_nothing(self, session, fake_executor, tmp_path):
        assert session.adapter.handle_event(WatchEvent(WatchEventKind.CHANGED, tmp_path / "README.md")) is None

        await asyncio.sleep(0.5)
        assert len(fake_executor.calls) == 2

    @pytest.mark.asyncio
    async def test_failed_build_recovers_on_next_change(self, session, fake_executor, packages_root, caplog):
        caplog.set_level(logging.INFO, logger="devwatch")
        fake_executor.failures["pkg-a"] = "x"

        session.adapter.handle_event(changed(packages_root, "pkg-a"))
        await wait_until(lambda: fake_executor.count("pkg-a") == 2)
        await session.scheduler.wait_idle()

        assert "[✗] Error building pkg-a: x" in caplog.text
        assert not session.scheduler.is_building("pkg-a")

        del fake_executor.failures["pkg-a"]
        session.adapter.handle_event(changed(packages_root, "pkg-a"))
        await wait_until(lambda: fake_executor.count("pkg-a") == 3)
        await session.scheduler.wait_idle()

        assert [r.success for r in session.history.records if r.package == "pkg-a"] == [True, False, True]
        assert fake_executor.count("pkg-b") == 1


@pytest.mark.integration
@pytest.mark.slow
class TestRealFilesystem:
    """Watch session with watchdog and shell commands on a real directory tree."""

    @pytest.mark.asyncio
    async def test_file_change_triggers_real_build(self, config_factory, packages_root):
        config = config_factory(command="echo built >> builds.log", quiet_window_ms=100)
        runner = WatchRunner(config)
        log_a = packages_root / "pkg-a" / "builds.log"
        log_b = packages_root / "pkg-b" / "builds.log"

        task = asyncio.create_task(runner.run_async())
        try:
            await wait_until(lambda: log_a.exists() and log_b.exists(), timeout=10)
            await runner.scheduler.wait_idle()

            (packages_root / "pkg-a" / "src" / "index.ts").write_text("export const x = 1;\n")
            await wait_until(lambda: len(log_a.read_text().split()) >= 2, timeout=10)
            await runner.scheduler.wait_idle()

            assert len(log_b.read_text().split()) == 1
        finally:
            runner.request_shutdown()
            assert await asyncio.wait_for(task, timeout=10) == 0
