"""
Watch session runner for CLI integration.

This module wires the registry, file watcher, debouncer, scheduler and build
executor together and drives one watch session on a single asyncio loop:
start watching, run the initial build pass, then react to file changes until
shutdown is requested.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..executor.base import BuildExecutor
from ..executor.build_process import CommandBuildExecutor
from ..models.config import AppConfig
from ..models.runtime import BuildTrigger
from ..orchestration.debouncer import Debouncer
from ..orchestration.scheduler import BuildScheduler
from ..storage.history import BuildHistory
from ..storage.parquet_storage import ParquetStorage
from ..validation import ErrorSeverity, SetupError, handle_error
from ..watcher.adapter import WatchAdapter
from ..watcher.observer import WatchdogObserver
from ..workspace.registry import PackageRegistry
from ..workspace.resolver import PathResolver

logger = logging.getLogger(__name__)


class WatchRunner:
    """
    Runs one watch session.

    The runner owns every component of the session and tears them all down
    when the session ends, whether by request_shutdown(), by the end of the
    initial pass in ``once`` mode, or by an error.
    """

    def __init__(
        self,
        config: AppConfig,
        registry: Optional[PackageRegistry] = None,
        executor: Optional[BuildExecutor] = None,
        observer_factory: Optional[Callable[[], object]] = None,
        once: bool = False,
    ):
        """
        Initialize the watch runner.

        Args:
            config: Application configuration
            registry: Packages to watch; built from ``config`` when omitted
            executor: Build executor; a CommandBuildExecutor when omitted
            observer_factory: Creates the watchdog observer (tests pass fakes)
            once: Run the initial build pass only, without watching
        """
        self.config = config
        self.registry = registry
        self.executor = executor
        self.observer_factory = observer_factory
        self.once = once

        # Runtime state
        self.scheduler: Optional[BuildScheduler] = None
        self.debouncer: Optional[Debouncer] = None
        self.adapter: Optional[WatchAdapter] = None
        self.observer: Optional[WatchdogObserver] = None
        self.history: Optional[BuildHistory] = None
        self.shutdown_requested = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._shutdown_event: Optional[asyncio.Event] = None

    async def run_async(self) -> int:
        """
        Run the watch session until shutdown.

        Returns:
            Process exit code: 0 on clean shutdown, 1 on setup failure, and in
            ``once`` mode 1 if any initial build failed
        """
        self._loop = asyncio.get_running_loop()
        self._shutdown_event = asyncio.Event()
        if self.shutdown_requested:
            self._shutdown_event.set()

        try:
            try:
                self._setup()
                if not self.once:
                    self.observer.start()
            except SetupError as e:
                handle_error(e, "watch session setup", severity=ErrorSeverity.ERROR, reraise=False, logger=logger)
                return 1

            if self.once or not self.config.watch.skip_initial_build:
                completed = await self._initial_build()
                if not completed:
                    logger.info("Shutdown requested during initial build")
                    return 0
                if self.once:
                    return 0 if self.scheduler.stats.failed == 0 else 1
                logger.info("✓ All packages built. Watching for changes...")
            else:
                logger.info("Initial build skipped. Watching for changes...")

            await self._shutdown_event.wait()
            logger.info("Watch session stopping")
            return 0

        except asyncio.CancelledError:
            logger.info("Watch session was cancelled")
            raise
        finally:
            await self._teardown()

    def _setup(self) -> None:
        if self.registry is None:
            self.registry = PackageRegistry.from_config(self.config)

        if self.config.history.enabled:
            self.history = BuildHistory(ParquetStorage(self.config.history.compression))
        if self.executor is None:
            self.executor = CommandBuildExecutor(self.registry, self.config.build)

        self.scheduler = BuildScheduler(self.executor, history=self.history)
        self.debouncer = Debouncer(self._loop)
        self.adapter = WatchAdapter(
            resolver=PathResolver(self.registry),
            debouncer=self.debouncer,
            scheduler=self.scheduler,
            quiet_window=self.config.watch.quiet_window_seconds,
            ignore_hidden=self.config.watch.ignore_hidden,
        )
        if not self.once:
            kwargs = {"observer_factory": self.observer_factory} if self.observer_factory else {}
            self.observer = WatchdogObserver(self.registry, self.adapter.handle_event, self._loop, **kwargs)

        logger.info(
            f"Watch session for {len(self.registry)} packages in {self.registry.packages_dir} "
            f"(quiet window {self.config.watch.quiet_window_ms} ms)"
        )

    async def _initial_build(self) -> bool:
        """
        Request a build of every package and wait for the builds to settle.

        Returns:
            False if shutdown was requested before the pass completed
        """
        logger.info("Building all packages initially...")
        for package in self.registry.ids:
            if self._shutdown_event.is_set():
                return False
            self.scheduler.request_build(package, trigger=BuildTrigger.INITIAL)
            if self.config.watch.sequential_initial_build:
                if not await self._until_shutdown(self.scheduler.wait_for(package)):
                    return False
        return await self._until_shutdown(self.scheduler.wait_idle())

    async def _until_shutdown(self, awaitable: Awaitable) -> bool:
        """Await ``awaitable`` unless shutdown comes first; True if it finished."""
        waiter = asyncio.ensure_future(awaitable)
        stopper = asyncio.ensure_future(self._shutdown_event.wait())
        try:
            done, _ = await asyncio.wait({waiter, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (waiter, stopper):
                if not task.done():
                    task.cancel()
        return waiter in done

    def request_shutdown(self) -> None:
        """
        Request shutdown of the watch session.

        Safe to call from a signal handler or another thread.
        """
        self.shutdown_requested = True
        if self._loop is None or self._shutdown_event is None:
            return
        try:
            self._loop.call_soon_threadsafe(self._shutdown_event.set)
        except RuntimeError:
            logger.debug("Event loop already closed, nothing to shut down")

    async def _teardown(self) -> None:
        """Stop every component; failures are logged and do not stop the rest."""
        loop = asyncio.get_running_loop()

        if self.observer is not None:
            try:
                await loop.run_in_executor(None, self.observer.stop)
            except Exception as e:
                handle_error(e, "stopping file watcher", severity=ErrorSeverity.WARNING, reraise=False, logger=logger)

        if self.debouncer is not None:
            self.debouncer.cancel_all()

        if self.scheduler is not None:
            try:
                await self.scheduler.shutdown(cancel_running=True)
            except Exception as e:
                handle_error(e, "stopping scheduler", severity=ErrorSeverity.WARNING, reraise=False, logger=logger)

        terminate_all = getattr(self.executor, "terminate_all", None)
        if terminate_all is not None:
            try:
                await terminate_all()
            except Exception as e:
                handle_error(e, "terminating build processes", severity=ErrorSeverity.WARNING, reraise=False, logger=logger)
        close = getattr(self.executor, "close", None)
        if close is not None:
            close()

        if self.history is not None and len(self.history):
            self.history.log_summary()
            try:
                self.history.save(self.config.history.path)
            except Exception as e:
                handle_error(e, "saving build history", severity=ErrorSeverity.ERROR, reraise=False, logger=logger)

        if self.scheduler is not None:
            logger.debug(f"Scheduler stats: {self.scheduler.stats.as_dict()}")

    def run(self) -> int:
        """
        Run the watch session synchronously.

        Returns:
            Process exit code
        """
        try:
            asyncio.get_running_loop()
            logger.error("Cannot run synchronous WatchRunner from within async context. Use run_async() directly.")
            return 1
        except RuntimeError:
            pass

        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            return loop.run_until_complete(self.run_async())
        finally:
            loop.close()
            asyncio.set_event_loop(None)
