"""
Build executor contract.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class BuildExecutor(Protocol):
    """
    Performs the build of a single package.

    ``build`` may take seconds and must be safe to run concurrently for
    different packages; the scheduler never runs it twice at once for the
    same package. Failures are reported by raising ``BuildError``.
    """

    async def build(self, package: str) -> None:
        ...
