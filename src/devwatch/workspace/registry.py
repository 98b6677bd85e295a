"""
Package registry.

The registry is the static, ordered list of packages known to a watch
session. It is built once at startup, either from the `[[packages]]` entries
of the configuration or by discovering the subdirectories of the packages
root, and is never mutated afterwards.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Pattern

from ..models.config import DEFAULT_SOURCE_GLOB, AppConfig, PackageConfig
from ..validation import SetupError

logger = logging.getLogger(__name__)

_WILDCARD_CHARS = set("*?[")


def normalize_path(path) -> Path:
    """Return an absolute, normalized path without resolving symlinks."""
    return Path(os.path.normpath(Path(path).absolute()))


def glob_to_regex(pattern: str) -> Pattern:
    """
    Compile a relative glob into a regex over POSIX-style relative paths.

    ``*`` and ``?`` never cross a ``/``; a ``**`` segment matches any number
    of directories, so ``src/**/*`` matches both ``src/index.ts`` and
    ``src/a/b.ts``.
    """
    parts = pattern.strip("/").split("/")
    regex = ""
    for index, part in enumerate(parts):
        last = index == len(parts) - 1
        if part == "**":
            regex += ".*" if last else "(?:[^/]+/)*"
            continue
        for ch in part:
            if ch == "*":
                regex += "[^/]*"
            elif ch == "?":
                regex += "[^/]"
            else:
                regex += re.escape(ch)
        if not last:
            regex += "/"
    return re.compile(f"^{regex}$")


def glob_root(pattern: str) -> str:
    """Literal directory prefix of a glob, e.g. ``src`` for ``src/**/*``."""
    literal = []
    for part in pattern.strip("/").split("/")[:-1]:
        if _WILDCARD_CHARS & set(part):
            break
        literal.append(part)
    return "/".join(literal)


@dataclass(frozen=True)
class PackageEntry:
    """A registered package with its resolved directory."""

    name: str
    directory: Path
    source_glob: str = DEFAULT_SOURCE_GLOB
    command: Optional[str] = None
    post_command: Optional[str] = None

    @property
    def source_root(self) -> Path:
        root = glob_root(self.source_glob)
        return self.directory / root if root else self.directory


def discover_packages(packages_dir: Path, marker: str = "") -> List[PackageConfig]:
    """
    Discover packages as the non-hidden subdirectories of ``packages_dir``.

    Args:
        packages_dir: Root directory of the packages
        marker: When set, only directories containing this file qualify

    Returns:
        Package configs sorted by name
    """
    discovered = []
    for child in sorted(packages_dir.iterdir(), key=lambda p: p.name):
        if not child.is_dir() or child.name.startswith("."):
            continue
        if marker and not (child / marker).exists():
            logger.debug(f"Skipping {child.name}: no {marker}")
            continue
        discovered.append(PackageConfig(name=child.name))
    logger.info(f"Discovered {len(discovered)} packages in {packages_dir}")
    return discovered


class PackageRegistry:
    """
    Ordered, immutable set of packages under a single packages root.
    """

    def __init__(self, packages_dir: Path, packages: Iterable[PackageConfig]):
        self.packages_dir = normalize_path(packages_dir)
        self._entries: Dict[str, PackageEntry] = {}
        for package in packages:
            if package.name in self._entries:
                raise SetupError(f"Package '{package.name}' is registered twice")
            self._entries[package.name] = PackageEntry(
                name=package.name,
                directory=self.packages_dir / package.name,
                source_glob=package.source_glob,
                command=package.command,
                post_command=package.post_command,
            )
        self._patterns = {
            name: glob_to_regex(entry.source_glob) for name, entry in self._entries.items()
        }

    @classmethod
    def from_config(cls, config: AppConfig) -> "PackageRegistry":
        """
        Build the registry for a configuration.

        Raises:
            SetupError: If the packages root is missing or no packages are found
        """
        packages_dir = config.watch.packages_dir
        if not Path(packages_dir).is_dir():
            raise SetupError(f"Packages directory does not exist: {packages_dir}")

        packages = config.packages or discover_packages(packages_dir, config.watch.package_marker)
        if not packages:
            raise SetupError(f"No packages found in {packages_dir}")

        for package in packages:
            if not (Path(packages_dir) / package.name).is_dir():
                logger.warning(f"Package directory for '{package.name}' does not exist yet")

        return cls(packages_dir, packages)

    def restrict(self, names: Iterable[str]) -> "PackageRegistry":
        """
        Return a registry containing only ``names``, keeping registry order.

        Raises:
            SetupError: If a name is not registered
        """
        wanted = list(names)
        unknown = [name for name in wanted if name not in self._entries]
        if unknown:
            raise SetupError(
                f"Unknown package(s): {', '.join(unknown)}. Available: {', '.join(self.ids)}"
            )
        kept = [
            PackageConfig(
                name=entry.name,
                source_glob=entry.source_glob,
                command=entry.command,
                post_command=entry.post_command,
            )
            for entry in self._entries.values()
            if entry.name in wanted
        ]
        return PackageRegistry(self.packages_dir, kept)

    @property
    def ids(self) -> List[str]:
        return list(self._entries)

    def get(self, name: str) -> PackageEntry:
        """
        Raises:
            KeyError: If the package is not registered
        """
        return self._entries[name]

    def source_pattern(self, name: str) -> Pattern:
        return self._patterns[name]

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[PackageEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)
