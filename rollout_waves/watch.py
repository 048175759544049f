"""Re-plan whenever the manifest directory changes.

The watcher polls the descriptor files, hashes them, and rebuilds the plan
when anything was added, modified or removed. The hash cache and the
"build in progress" flag belong to the watcher that owns them; nothing here
is module-level state.
"""

from __future__ import annotations

import hashlib
import time
from collections.abc import Callable, Iterable
from pathlib import Path

from .config import Settings
from .errors import CircularDependencyError, ManifestDirectoryError
from .manifests import manifest_files
from .pipeline import plan_rollout
from .shell import info, step, warn


class FileHashCache:
    """Remembers the SHA-256 digest of each file seen so far."""

    def __init__(self) -> None:
        self._digests: dict[Path, str] = {}

    def __len__(self) -> int:
        return len(self._digests)

    @staticmethod
    def digest(path: Path) -> str:
        return hashlib.sha256(path.read_bytes()).hexdigest()

    def changed(self, paths: Iterable[Path]) -> list[Path]:
        """Return new, modified and removed paths, and remember the new state.

        A path that disappears between listing and hashing counts as removed.
        """
        current: dict[Path, str] = {}
        for path in paths:
            try:
                current[path] = self.digest(path)
            except FileNotFoundError:
                continue

        changed = [p for p, d in current.items() if self._digests.get(p) != d]
        changed.extend(p for p in self._digests if p not in current)
        self._digests = current
        return sorted(changed)


class RebuildGuard:
    """Non-reentrant "build in progress" flag.

    Two rebuilds must never run over the same tree at once; a trigger that
    arrives mid-build is skipped and picked up by the next poll.
    """

    def __init__(self) -> None:
        self.in_progress = False

    def acquire(self) -> bool:
        if self.in_progress:
            return False
        self.in_progress = True
        return True

    def release(self) -> None:
        self.in_progress = False


def rebuild(
    settings: Settings,
    guard: RebuildGuard,
    on_plan: Callable[[list[list[str]]], None],
    targets: list[str] | None = None,
) -> bool:
    """Rebuild the plan once, unless a rebuild is already running.

    A dependency cycle or a vanished manifest directory is reported and the
    watcher keeps going; fixing the manifests triggers the next rebuild.

    Returns:
        True if a plan was produced and handed to on_plan.
    """
    if not guard.acquire():
        info("A rebuild is already in progress, skipping...")
        return False
    try:
        batches = plan_rollout(settings, targets or [])
    except (CircularDependencyError, ManifestDirectoryError) as exc:
        warn(str(exc))
        return False
    finally:
        guard.release()
    on_plan(batches)
    return True


def watch_manifests(
    settings: Settings,
    on_plan: Callable[[list[list[str]]], None],
    *,
    targets: list[str] | None = None,
    interval: float = 2.0,
    max_cycles: int | None = None,
    cache: FileHashCache | None = None,
    guard: RebuildGuard | None = None,
) -> int:
    """Poll the manifest directory and re-plan after every change.

    Args:
        settings: Resolved settings (manifest_dir, snapshot_name, ...).
        on_plan: Called with the new batches after each successful rebuild.
        targets: Optional packages to filter the tree around.
        interval: Seconds between polls.
        max_cycles: Stop after this many polls (None: run until interrupted).
        cache: File hash cache to use; a fresh one by default.
        guard: Rebuild guard to use; a fresh one by default.

    Returns:
        Number of plans produced.
    """
    if cache is None:
        cache = FileHashCache()
    if guard is None:
        guard = RebuildGuard()
    step(f"Watching {settings.manifest_dir} for changes")

    plans = 0
    cycles = 0
    while max_cycles is None or cycles < max_cycles:
        cycles += 1
        try:
            paths = manifest_files(settings.manifest_dir, settings.snapshot_name)
        except ManifestDirectoryError as exc:
            warn(str(exc))
            paths = []

        changed = cache.changed(paths)
        if changed:
            for path in changed:
                info(f"changed: {path.name}")
            if rebuild(settings, guard, on_plan, targets):
                plans += 1

        if max_cycles is None or cycles < max_cycles:
            time.sleep(interval)

    return plans
