"""
Orchestration module for watch-driven builds.

Components:
- BuildScheduler: one build per package at a time, coalesced reruns
- Debouncer: per-key quiet-window timers
- SignalHandler: SIGINT/SIGTERM to graceful shutdown
- SchedulerStats, TimeoutConstants: shared counters and constants
"""

from .debouncer import Debouncer
from .scheduler import BuildScheduler
from .shared_state import SchedulerStats, TimeoutConstants
from .signal_handler import SignalHandler

__all__ = [
    "BuildScheduler",
    "Debouncer",
    "SchedulerStats",
    "SignalHandler",
    "TimeoutConstants",
]
