"""Exception types for rollout-waves.

Loader errors are reported per file so one bad descriptor does not sink the
rest of a manifest directory. Graph errors (cycles) abort planning outright.
"""

from __future__ import annotations

from pathlib import Path


class RolloutWavesError(Exception):
    """Base class for all rollout-waves errors."""


class ConfigError(RolloutWavesError):
    """Raised when rollout-waves settings cannot be read or validated."""


class MalformedManifestError(RolloutWavesError):
    """A package descriptor could not be turned into a PackageDescriptor.

    Attributes:
        path: File the descriptor came from, or None for in-memory input.
        reason: Human-readable explanation.
    """

    def __init__(self, path: Path | None, reason: str) -> None:
        self.path = path
        self.reason = reason
        where = f"{path}: " if path is not None else ""
        super().__init__(f"{where}{reason}")


class ManifestDirectoryError(RolloutWavesError):
    """The manifest directory does not exist or is not a directory."""


class InvalidTreeError(RolloutWavesError, ValueError):
    """A DependencyTree would violate its edge-consistency invariant."""


class CircularDependencyError(RolloutWavesError, RuntimeError):
    """Batching could not schedule every package.

    Attributes:
        unscheduled: Sorted names of packages left over once no more
            packages could be scheduled. Each of them sits on, or behind,
            a dependency cycle.
    """

    def __init__(self, unscheduled: list[str]) -> None:
        self.unscheduled = sorted(unscheduled)
        super().__init__(
            f"Dependency cycle detected: {len(self.unscheduled)} package(s) "
            f"could not be ordered: {', '.join(self.unscheduled)}"
        )

    @property
    def count(self) -> int:
        return len(self.unscheduled)


class PersistenceError(RolloutWavesError):
    """A dependency tree snapshot could not be read or parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")
