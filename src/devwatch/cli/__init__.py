"""
Command-line interface for the devwatch package.

This module provides the main CLI entry point and the watch session runner.
"""

from .main import main_cli
from .orchestrator import WatchRunner

__all__ = [
    "WatchRunner",
    "main_cli",
]
