"""
Build scheduler.

The scheduler is the single owner of the per-package coordination state. For
every package it runs a small state machine:

    Idle --request--> Building --request--> Building + rerun pending
      ^                  |                          |
      +---- finished ----+<------- finished, rebuild +

At most one executor call is outstanding per package. Requests that arrive
while a package is building collapse into a single pending rerun, which
starts as soon as the current build finishes, without passing through Idle.
"""

import asyncio
import logging
import time
from typing import Dict, FrozenSet, Optional, Set

from ..executor.base import BuildExecutor
from ..models.runtime import BuildRecord, BuildTrigger
from ..storage.history import BuildHistory
from ..validation import BuildError, ErrorSeverity, handle_build_error, handle_error
from .shared_state import SchedulerStats

logger = logging.getLogger(__name__)


class BuildScheduler:
    """
    Drives a BuildExecutor while guaranteeing one build per package at a time.

    All methods must be called from the event loop thread; builds run as
    independent asyncio tasks.
    """

    def __init__(self, executor: BuildExecutor, history: Optional[BuildHistory] = None):
        """
        Args:
            executor: Performs the actual package builds
            history: Optional recorder for completed build attempts
        """
        self.executor = executor
        self.history = history
        self.stats = SchedulerStats()

        self._in_flight: Set[str] = set()
        self._pending: Set[str] = set()
        self._tasks: Dict[str, asyncio.Task] = {}
        self._idle = asyncio.Event()
        self._idle.set()
        self._accepting = True

    def request_build(self, package: str, trigger: str = BuildTrigger.REQUEST) -> None:
        """
        Request a build of ``package``. Returns immediately and never raises.

        Args:
            package: Package identifier
            trigger: Why the build was requested, recorded in the history
        """
        try:
            if not self._accepting:
                logger.debug(f"Ignoring build request for {package}: scheduler is shutting down")
                return

            self.stats.requested += 1

            if package in self._in_flight:
                if package in self._pending:
                    self.stats.coalesced += 1
                    logger.debug(f"Rebuild of {package} already queued")
                else:
                    self._pending.add(package)
                    self.stats.queued += 1
                    logger.info(f"[queued] {package} (build in progress)")
                return

            self._in_flight.add(package)
            self._idle.clear()
            task = asyncio.get_running_loop().create_task(
                self._run_package(package, trigger), name=f"build:{package}"
            )
            self._tasks[package] = task
            task.add_done_callback(lambda done, package=package: self._task_done(package, done))

        except Exception as e:
            self._release(package)
            handle_error(
                error=e,
                context=f"requesting build of {package}",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger,
            )

    async def _run_package(self, package: str, trigger: str) -> None:
        # Iterative rather than recursive: a pending rerun loops here.
        try:
            while True:
                await self._build_once(package, trigger)
                if package not in self._pending or not self._accepting:
                    break
                self._pending.discard(package)
                trigger = BuildTrigger.RERUN
        finally:
            self._release(package)

    def _task_done(self, package: str, task: asyncio.Task) -> None:
        # A task cancelled before its first step never reaches the finally in _run_package.
        if self._tasks.get(package) is task:
            self._release(package)

    def _release(self, package: str) -> None:
        self._pending.discard(package)
        self._in_flight.discard(package)
        self._tasks.pop(package, None)
        if not self._in_flight:
            self._idle.set()

    async def _build_once(self, package: str, trigger: str) -> bool:
        logger.info(f"[building] {package}")
        self.stats.started += 1
        started_at = time.time()
        start = time.monotonic()
        error: Optional[str] = None

        try:
            await self.executor.build(package)
        except asyncio.CancelledError:
            self.stats.cancelled += 1
            logger.warning(f"[cancelled] {package}")
            raise
        except BuildError as e:
            error = str(e)
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            handle_build_error(e, package, severity=ErrorSeverity.CRITICAL, logger=logger)

        duration = time.monotonic() - start
        if error is None:
            self.stats.succeeded += 1
            logger.info(f"[✓] {package} built successfully in {duration:.2f}s")
        else:
            self.stats.failed += 1
            logger.error(f"[✗] Error building {package}: {error}")

        if self.history is not None:
            self.history.record(
                BuildRecord(
                    package=package,
                    trigger=trigger,
                    started_at=started_at,
                    duration_s=duration,
                    success=error is None,
                    error=error,
                )
            )
        return error is None

    def is_building(self, package: str) -> bool:
        return package in self._in_flight

    def is_pending(self, package: str) -> bool:
        return package in self._pending

    @property
    def in_flight(self) -> FrozenSet[str]:
        return frozenset(self._in_flight)

    async def wait_for(self, package: str) -> None:
        """Wait until ``package`` has no build in flight, reruns included."""
        task = self._tasks.get(package)
        if task is not None:
            await asyncio.wait({task})

    async def wait_idle(self) -> None:
        """Wait until no package is building."""
        await self._idle.wait()

    async def shutdown(self, cancel_running: bool = True) -> None:
        """
        Stop accepting requests, drop pending reruns and finish in-flight builds.

        Args:
            cancel_running: Cancel in-flight builds instead of waiting for them
        """
        self._accepting = False
        self._pending.clear()
        tasks = list(self._tasks.values())
        if not tasks:
            return

        logger.info(f"Stopping {len(tasks)} in-flight build(s)")
        if cancel_running:
            for task in tasks:
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
