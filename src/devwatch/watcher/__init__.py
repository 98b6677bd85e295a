"""
File watching for devwatch.

The observer turns watchdog events into WatchEvent objects on the event
loop; the adapter filters them and drives the per-package debounce timers.
"""

from .adapter import WatchAdapter
from .observer import LoopForwardingHandler, WatchdogObserver

__all__ = ["LoopForwardingHandler", "WatchAdapter", "WatchdogObserver"]
