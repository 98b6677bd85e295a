"""
Workspace layout: the package registry and path-to-package resolution.
"""

from .registry import (
    PackageEntry,
    PackageRegistry,
    discover_packages,
    glob_root,
    glob_to_regex,
    normalize_path,
)
from .resolver import PathResolver

__all__ = [
    "PackageEntry",
    "PackageRegistry",
    "PathResolver",
    "discover_packages",
    "glob_root",
    "glob_to_regex",
    "normalize_path",
]
