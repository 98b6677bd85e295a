"""
Translation of filesystem events into debounced build requests.
"""

import logging
from typing import Optional

from ..models.runtime import BuildTrigger, WatchEvent
from ..orchestration.debouncer import Debouncer
from ..orchestration.scheduler import BuildScheduler
from ..workspace.resolver import PathResolver

logger = logging.getLogger(__name__)


class WatchAdapter:
    """
    Filters watch events and feeds the owning package into the debouncer.

    Every accepted event re-arms the package's debounce timer; when the quiet
    window elapses without further events a single build is requested.
    """

    def __init__(
        self,
        resolver: PathResolver,
        debouncer: Debouncer,
        scheduler: BuildScheduler,
        quiet_window: float,
        ignore_hidden: bool = True,
    ):
        """
        Args:
            resolver: Maps paths to package identifiers
            debouncer: Per-package debounce timers
            scheduler: Receives the build requests
            quiet_window: Debounce window in seconds
            ignore_hidden: Drop paths with a component starting with '.'
        """
        self.resolver = resolver
        self.debouncer = debouncer
        self.scheduler = scheduler
        self.quiet_window = quiet_window
        self.ignore_hidden = ignore_hidden

    def handle_event(self, event: WatchEvent) -> Optional[str]:
        """
        Handle one event on the loop thread.

        Returns:
            The package whose timer was (re-)armed, or None if the event was dropped
        """
        if self.ignore_hidden and self.resolver.is_hidden(event.path):
            return None

        package = self.resolver.resolve_package(event.path)
        if package is None:
            logger.debug(f"Ignoring {event.kind.value} event outside any package: {event.path}")
            return None

        if not self.resolver.matches_source(package, event.path):
            logger.debug(f"Ignoring {event.kind.value} event outside {package} sources: {event.path}")
            return None

        logger.info(f"[{event.kind.log_label}] {event.path}")
        self.debouncer.schedule(
            package,
            self.quiet_window,
            lambda: self.scheduler.request_build(package, trigger=BuildTrigger.WATCH),
        )
        return package
