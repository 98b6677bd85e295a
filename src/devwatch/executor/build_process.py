"""
Shell-command build executor.

This module provides CommandBuildExecutor, which builds a package by running
its configured shell command inside the package directory. Processes are
started and waited on in a thread pool so the event loop stays responsive
while builds run.
"""

import asyncio
import logging
import os
import shlex
import subprocess
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Optional, Tuple

from ..models.config import BuildConfig
from ..orchestration.shared_state import TimeoutConstants
from ..validation import BuildError, ErrorSeverity, handle_error
from ..workspace.registry import PackageRegistry
from .process_tree import terminate_process_tree

logger = logging.getLogger(__name__)


def _tail(text: Optional[str], lines: int = TimeoutConstants.ERROR_TAIL_LINES) -> str:
    if not text:
        return ""
    return "\n".join(text.strip().splitlines()[-lines:])


class CommandBuildExecutor:
    """
    Builds packages by running shell commands.

    The command is the package's own ``command`` if set, otherwise the
    ``[build].command`` template. ``{name}`` and ``{dir}`` are substituted
    before running; ``{dir}`` is shell-quoted. The orchestrator's own working
    directory never changes; each process gets the package directory as its cwd.
    """

    def __init__(
        self,
        registry: PackageRegistry,
        build_config: BuildConfig,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        """
        Args:
            registry: Registered packages
            build_config: Default commands, timeout and shell
            executor: Thread pool used to start and wait on processes
        """
        self.registry = registry
        self.build_config = build_config
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(thread_name_prefix="BuildWorker")
        self._processes: Dict[str, subprocess.Popen] = {}

    def command_for(self, package: str) -> str:
        entry = self.registry.get(package)
        template = entry.command or self.build_config.command
        return template.format(name=entry.name, dir=shlex.quote(str(entry.directory)))

    def post_command_for(self, package: str) -> str:
        entry = self.registry.get(package)
        template = entry.post_command if entry.post_command is not None else self.build_config.post_command
        if not template:
            return ""
        return template.format(name=entry.name, dir=shlex.quote(str(entry.directory)))

    async def build(self, package: str) -> None:
        """
        Build one package.

        Raises:
            BuildError: If the package directory is missing, the command exits
                non-zero or the build times out
        """
        entry = self.registry.get(package)
        if not entry.directory.is_dir():
            raise BuildError(package, f"package directory not found: {entry.directory}")

        command = self.command_for(package)
        return_code, stdout, stderr = await self._run(package, command, entry.directory)
        if stdout:
            logger.debug(f"[{package}] stdout:\n{stdout.rstrip()}")
        if return_code != 0:
            details = _tail(stderr) or _tail(stdout)
            message = f"command '{command}' exited with code {return_code}"
            if details:
                message = f"{message}\n{details}"
            raise BuildError(package, message, return_code=return_code)

        post_command = self.post_command_for(package)
        if post_command:
            post_code, _, post_stderr = await self._run(package, post_command, entry.directory)
            if post_code != 0:
                # Post-build steps (type declarations and the like) never fail a build.
                logger.warning(
                    f"Post-build command for {package} exited with code {post_code}, ignoring: "
                    f"{_tail(post_stderr, 5)}"
                )

    async def _run(self, package: str, command: str, cwd: Path) -> Tuple[int, str, str]:
        loop = asyncio.get_running_loop()
        logger.debug(f"Executing command: '{command}' in '{cwd}'")
        start = loop.run_in_executor(self.executor, self._start_process, package, command, cwd)
        try:
            process = await asyncio.shield(start)
        except asyncio.CancelledError:
            # Popen completes in the worker regardless; its tree must not outlive the build.
            await self._terminate_started(package, start)
            raise

        timeout = self.build_config.timeout_seconds or None
        try:
            stdout, stderr = await asyncio.wait_for(
                loop.run_in_executor(self.executor, process.communicate), timeout=timeout
            )
        except asyncio.TimeoutError:
            await loop.run_in_executor(None, terminate_process_tree, process.pid, f"build of {package}")
            raise BuildError(package, f"command '{command}' timed out after {timeout:g}s")
        except asyncio.CancelledError:
            await loop.run_in_executor(None, terminate_process_tree, process.pid, f"build of {package}")
            raise
        finally:
            self._processes.pop(package, None)

        return process.returncode, stdout, stderr

    async def _terminate_started(self, package: str, start: asyncio.Future) -> None:
        try:
            process = await start
        except Exception as e:
            logger.debug(f"Build of {package} failed to start after cancellation: {e}")
            return
        try:
            await asyncio.get_running_loop().run_in_executor(
                None, terminate_process_tree, process.pid, f"build of {package}"
            )
        finally:
            self._processes.pop(package, None)

    def _start_process(self, package: str, command: str, cwd: Path) -> subprocess.Popen:
        env = os.environ.copy()
        env["DEVWATCH_PACKAGE"] = package
        process = subprocess.Popen(
            command,
            shell=True,
            cwd=cwd,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            executable=self.build_config.shell or None,
            # Own session, so the whole tree can be signalled on shutdown.
            start_new_session=True,
        )
        # Registered from the worker thread so terminate_all() sees builds still starting.
        self._processes[package] = process
        return process

    @property
    def running(self) -> Dict[str, int]:
        """Package name to PID of the command currently running for it."""
        return {name: proc.pid for name, proc in self._processes.items()}

    async def terminate_all(self) -> None:
        """Terminate every running build process tree."""
        if not self._processes:
            return
        loop = asyncio.get_running_loop()
        pending = list(self._processes.items())
        await asyncio.gather(
            *(
                loop.run_in_executor(None, terminate_process_tree, proc.pid, f"build of {name}")
                for name, proc in pending
            ),
            return_exceptions=True,
        )

    def close(self) -> None:
        """Shut down the thread pool if this executor created it."""
        if not self._owns_executor:
            return
        try:
            self.executor.shutdown(wait=False, cancel_futures=True)
        except Exception as e:
            handle_error(
                error=e,
                context="shutting down build thread pool",
                severity=ErrorSeverity.WARNING,
                reraise=False,
                logger=logger,
            )
