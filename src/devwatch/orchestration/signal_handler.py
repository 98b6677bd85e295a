"""
Signal handling for the watch loop.

SIGINT and SIGTERM request a graceful shutdown of the running session. The
handler only invokes a shutdown callback, which hands the request to the
event loop; all teardown work happens on the loop thread.
"""

import logging
import signal
from typing import Any, Callable

logger = logging.getLogger(__name__)


class SignalHandler:
    """
    Manages signal registration and cleanup for a watch session.
    """

    def __init__(self, on_shutdown: Callable[[], None]):
        """
        Args:
            on_shutdown: Called from the signal handler the first time SIGINT
                or SIGTERM is received; must be safe to call there
        """
        self.on_shutdown = on_shutdown
        self.shutdown_requested = False
        self._original_sigint_handler = None
        self._original_sigterm_handler = None
        self._signal_handlers_set = False

    def setup_signal_handlers(self) -> None:
        """Install handlers for SIGINT and SIGTERM, remembering the originals."""
        try:
            self._original_sigint_handler = signal.signal(signal.SIGINT, self._handle_signal)
            self._original_sigterm_handler = signal.signal(signal.SIGTERM, self._handle_signal)
            self._signal_handlers_set = True
            logger.debug("Signal handlers set up for watch session")
        except Exception as e:
            logger.warning(f"Failed to set up signal handlers: {e}")

    def cleanup_signal_handlers(self) -> None:
        """Restore original signal handlers."""
        if not self._signal_handlers_set:
            return

        try:
            if self._original_sigint_handler is not None:
                signal.signal(signal.SIGINT, self._original_sigint_handler)
            if self._original_sigterm_handler is not None:
                signal.signal(signal.SIGTERM, self._original_sigterm_handler)
            logger.debug("Signal handlers restored")
        except Exception as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._signal_handlers_set = False

    def _handle_signal(self, signum: int, frame: Any) -> None:
        if self.shutdown_requested:
            logger.warning("Shutdown already in progress. Please be patient.")
            return

        logger.info(f"Signal {signal.strsignal(signum)} received. Initiating graceful shutdown...")
        self.shutdown_requested = True

        self.on_shutdown()

    def __enter__(self):
        self.setup_signal_handlers()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup_signal_handlers()
