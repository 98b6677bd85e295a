"""
Per-key debouncing on top of the asyncio event loop.
"""

import asyncio
import logging
from typing import Callable, Dict, Hashable, Optional

from ..validation import ErrorSeverity, handle_error

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Delays an action until no new request for the same key arrives within a
    quiet window.

    Each key owns at most one armed ``asyncio.TimerHandle``. Scheduling a key
    that already has a timer cancels that timer and arms a new one, so a burst
    of requests collapses into a single call of the action passed last.
    Must be used from the event loop thread.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._timers: Dict[Hashable, asyncio.TimerHandle] = {}

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, key: Hashable, delay: float, action: Callable[[], None]) -> None:
        """
        Arm (or re-arm) the timer for ``key``.

        Args:
            key: Debounce key, e.g. a package name
            delay: Quiet window in seconds
            action: Zero-argument callable run once the window elapses
        """
        existing = self._timers.pop(key, None)
        if existing is not None:
            existing.cancel()
            logger.debug(f"Debounce timer for {key!r} reset")
        self._timers[key] = self._get_loop().call_later(
            max(0.0, delay), self._fire, key, action
        )

    def _fire(self, key: Hashable, action: Callable[[], None]) -> None:
        self._timers.pop(key, None)
        try:
            action()
        except Exception as e:
            handle_error(
                error=e,
                context=f"debounced action for {key!r}",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger,
            )

    def cancel(self, key: Hashable) -> bool:
        """Cancel the pending timer for ``key``; returns True if one existed."""
        handle = self._timers.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> int:
        """Cancel every pending timer and return how many were cancelled."""
        count = len(self._timers)
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        if count:
            logger.debug(f"Cancelled {count} pending debounce timers")
        return count

    def is_pending(self, key: Hashable) -> bool:
        return key in self._timers

    def __len__(self) -> int:
        return len(self._timers)
