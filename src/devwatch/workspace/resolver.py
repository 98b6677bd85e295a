"""
Mapping of changed file paths to the package that owns them.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from .registry import PackageRegistry, normalize_path

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class PathResolver:
    """
    Resolves file paths to package identifiers using a PackageRegistry.

    All methods are pure: a path outside every registered package simply
    resolves to ``None``.
    """

    def __init__(self, registry: PackageRegistry):
        self.registry = registry

    def relative_parts(self, path: PathLike) -> Optional[Tuple[str, ...]]:
        """Path components below the packages root, or None if outside it."""
        try:
            relative = normalize_path(path).relative_to(self.registry.packages_dir)
        except ValueError:
            return None
        return relative.parts

    def resolve_package(self, path: PathLike) -> Optional[str]:
        """
        Return the package owning ``path``, or None when no package does.

        The package is the path segment immediately under the packages root.
        """
        parts = self.relative_parts(path)
        if not parts:
            return None
        name = parts[0]
        return name if name in self.registry else None

    def is_hidden(self, path: PathLike) -> bool:
        """True if any component below the packages root starts with '.'."""
        parts = self.relative_parts(path)
        if parts is None:
            parts = normalize_path(path).parts
        return any(part.startswith(".") for part in parts)

    def matches_source(self, package: str, path: PathLike) -> bool:
        """True if ``path`` lies within the package's source glob."""
        parts = self.relative_parts(path)
        if not parts or parts[0] != package or len(parts) < 2:
            return False
        relative = "/".join(parts[1:])
        return bool(self.registry.source_pattern(package).match(relative))
