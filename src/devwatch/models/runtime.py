"""
Runtime data models.

This module contains the small value objects that flow through a watch
session: filesystem events and completed build records.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class WatchEventKind(Enum):
    """Kinds of filesystem events the watch adapter reacts to."""
    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"

    @property
    def log_label(self) -> str:
        # Matches the labels printed by the watch loop.
        return "deleted" if self is WatchEventKind.REMOVED else self.value


@dataclass(frozen=True)
class WatchEvent:
    """A single filesystem event for one path."""

    kind: WatchEventKind
    path: Path


class BuildTrigger:
    """Labels recorded with each build describing why it ran."""
    INITIAL = "initial"
    WATCH = "watch"
    RERUN = "rerun"
    REQUEST = "request"


@dataclass
class BuildRecord:
    """
    Outcome of one completed build attempt for one package.
    """

    package: str
    trigger: str
    started_at: float
    duration_s: float
    success: bool
    error: Optional[str] = None
