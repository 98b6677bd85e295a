"""
Process tree termination for build commands.

Build commands usually spawn a tree of processes (shell, package manager,
bundler, compiler). Stopping a build means stopping the whole tree.
"""

import logging
from typing import List

import psutil

from ..orchestration.shared_state import TimeoutConstants

logger = logging.getLogger(__name__)


def _collect_tree(parent: psutil.Process) -> List[psutil.Process]:
    try:
        children = parent.children(recursive=True)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        children = []
    return [parent] + children


def _signal_all(processes: List[psutil.Process], force: bool) -> List[psutil.Process]:
    signalled = []
    for proc in processes:
        try:
            if force:
                proc.kill()
            else:
                proc.terminate()
            signalled.append(proc)
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.warning(f"Access denied when signalling PID {proc.pid}")
    return signalled


def terminate_process_tree(
    pid: int,
    name: str,
    graceful_timeout: float = TimeoutConstants.TERMINATION_GRACEFUL_TIMEOUT,
    force_timeout: float = TimeoutConstants.TERMINATION_FORCE_TIMEOUT,
) -> bool:
    """
    Terminate a process and all of its descendants.

    Sends SIGTERM to the whole tree, waits ``graceful_timeout`` seconds, then
    SIGKILLs whatever is still alive. Blocking; run it in an executor from
    async code.

    Args:
        pid: Root process ID
        name: Human-readable name for log messages
        graceful_timeout: Seconds to wait after SIGTERM
        force_timeout: Seconds to wait after SIGKILL

    Returns:
        True if no process of the tree is left running
    """
    if pid <= 0:
        logger.warning(f"Invalid PID {pid} for {name}, skipping termination")
        return True

    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        logger.debug(f"Process {name} (PID: {pid}) already terminated")
        return True

    processes = _collect_tree(parent)
    logger.info(f"Terminating {name} (PID: {pid}) and {len(processes) - 1} children")

    signalled = _signal_all(processes, force=False)
    _, alive = psutil.wait_procs(signalled, timeout=graceful_timeout)
    if not alive:
        return True

    logger.warning(f"{len(alive)} processes of {name} ignored SIGTERM, killing")
    signalled = _signal_all(alive, force=True)
    _, alive = psutil.wait_procs(signalled, timeout=force_timeout)
    if alive:
        logger.error(f"Failed to kill {len(alive)} processes of {name}: {[p.pid for p in alive]}")
        return False
    return True
