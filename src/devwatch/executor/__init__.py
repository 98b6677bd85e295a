"""
Build execution for the devwatch package.

This module provides the build executor contract and the shell-command
implementation used by the watch runner.
"""

from .base import BuildExecutor
from .build_process import CommandBuildExecutor
from .process_tree import terminate_process_tree

__all__ = [
    "BuildExecutor",
    "CommandBuildExecutor",
    "terminate_process_tree",
]
