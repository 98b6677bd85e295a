"""
watchdog integration.

The watchdog observer runs its own thread. Events are converted to
WatchEvent objects there and handed to the event loop with
``call_soon_threadsafe``; nothing else crosses the thread boundary.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..models.runtime import WatchEvent, WatchEventKind
from ..orchestration.shared_state import TimeoutConstants
from ..validation import SetupError
from ..workspace.registry import PackageEntry, PackageRegistry

logger = logging.getLogger(__name__)

EventCallback = Callable[[WatchEvent], None]


class LoopForwardingHandler(FileSystemEventHandler):
    """
    Forwards file events to a callback running on an asyncio loop.
    """

    def __init__(self, callback: EventCallback, loop: asyncio.AbstractEventLoop):
        super().__init__()
        self.callback = callback
        self.loop = loop

    def _forward(self, kind: WatchEventKind, raw_path) -> None:
        event = WatchEvent(kind=kind, path=Path(os.fsdecode(raw_path)))
        try:
            self.loop.call_soon_threadsafe(self.callback, event)
        except RuntimeError:
            logger.debug(f"Event loop closed, dropping {kind.value} event for {event.path}")

    def on_created(self, event: FileSystemEvent) -> None:
        self._forward(WatchEventKind.ADDED, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        # Directory mtime changes accompany every file event inside them.
        if not event.is_directory:
            self._forward(WatchEventKind.CHANGED, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._forward(WatchEventKind.REMOVED, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._forward(WatchEventKind.REMOVED, event.src_path)
        if event.dest_path:
            self._forward(WatchEventKind.ADDED, event.dest_path)


class WatchdogObserver:
    """
    Watches the source roots of every registered package.

    Args:
        registry: Packages whose source roots are watched
        callback: Called on the loop thread with each WatchEvent
        loop: Loop to deliver events on; defaults to the running loop at start()
        observer_factory: Creates the underlying watchdog observer
    """

    def __init__(
        self,
        registry: PackageRegistry,
        callback: EventCallback,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        observer_factory: Callable[[], object] = Observer,
    ):
        self.registry = registry
        self.callback = callback
        self.loop = loop
        self.observer_factory = observer_factory
        self._observer = None
        self.watched: List[Path] = []

    def start(self) -> None:
        """
        Schedule every package's watch root and start the observer thread.

        Raises:
            SetupError: If the observer cannot be started
        """
        if self._observer is not None:
            return

        loop = self.loop or asyncio.get_running_loop()
        handler = LoopForwardingHandler(self.callback, loop)
        observer = self.observer_factory()
        watched = []
        try:
            for entry in self.registry:
                root = self.watch_root(entry)
                if root is None:
                    logger.warning(f"Packages directory not found, not watching {entry.name}")
                    continue
                if root != entry.source_root:
                    logger.warning(
                        f"Source directory for {entry.name} not found, watching {root} until it appears"
                    )
                if root in watched:
                    continue
                observer.schedule(handler, str(root), recursive=True)
                watched.append(root)
            observer.daemon = True
            observer.start()
        except Exception as e:
            logger.error(f"[watch error] {e}")
            raise SetupError(f"Failed to start file watcher: {e}") from e

        self._observer = observer
        self.watched = watched
        logger.info(f"Watching {len(watched)} directories")

    def watch_root(self, entry: PackageEntry) -> Optional[Path]:
        """
        The source root, or its nearest existing ancestor within the packages root.

        Watching the ancestor recursively picks up a source directory created
        after startup; events outside the sources are filtered downstream.
        """
        root = entry.source_root
        while not root.is_dir():
            if root == self.registry.packages_dir or root.parent == root:
                return None
            root = root.parent
        return root

    def stop(self) -> None:
        """Stop the observer thread and wait for it to exit."""
        observer, self._observer = self._observer, None
        if observer is None:
            return
        try:
            observer.stop()
            observer.join(timeout=TimeoutConstants.OBSERVER_JOIN_TIMEOUT)
        except Exception as e:
            logger.error(f"[watch error] {e}")
        logger.debug("File watcher stopped")

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
