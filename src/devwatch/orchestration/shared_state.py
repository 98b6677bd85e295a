"""
Shared data structures for the orchestration module.

This module defines the counters and timeout constants used across the
scheduler, the build executor and the watch runner.
"""

from dataclasses import asdict, dataclass
from typing import Dict


@dataclass
class SchedulerStats:
    """
    Counters describing what the scheduler has done during a session.
    """
    # Build requests received through request_build.
    requested: int = 0
    # Executor invocations started, reruns included.
    started: int = 0
    succeeded: int = 0
    failed: int = 0
    cancelled: int = 0
    # Requests folded into an already pending rerun.
    coalesced: int = 0
    # Requests that queued a rerun behind an in-flight build.
    queued: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


class TimeoutConstants:
    """
    Centralized timeout configuration, in seconds.
    """
    # Process termination timeouts
    TERMINATION_GRACEFUL_TIMEOUT = 3.0
    TERMINATION_FORCE_TIMEOUT = 2.0

    # Watchdog observer thread join
    OBSERVER_JOIN_TIMEOUT = 5.0

    # Lines of stderr kept in a BuildError message
    ERROR_TAIL_LINES = 20
