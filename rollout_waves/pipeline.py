"""Planning pipeline: load → build → filter → batch.

This module wires the pieces together for the CLI and the watcher:
1. Load package descriptors from the manifest directory
2. Build the dependency tree
3. Optionally restrict it to a set of target packages
4. Save the tree snapshot for later runs
5. Order the tree into rollout batches

A snapshot from an earlier run can stand in for steps 1-3; if it cannot be
read, the tree is rebuilt from descriptors instead.
"""

from __future__ import annotations

from collections.abc import Sequence

from .config import Settings
from .errors import PersistenceError
from .graph import get_batched_update_order
from .manifests import load_descriptors
from .models import DependencyTree
from .persistence import load_tree, save_tree
from .shell import info, step, warn
from .subgraph import filter_tree
from .tree import build_tree


def discover_tree(settings: Settings, targets: Sequence[str] = ()) -> DependencyTree:
    """Build the (optionally filtered) tree from the manifest directory.

    Descriptor files that fail to load are reported and skipped.
    """
    step(f"Reading package descriptors from {settings.manifest_dir}")

    result = load_descriptors(settings.manifest_dir, settings.snapshot_name)
    for error in result.errors:
        warn(f"Skipping {error}")
    info(f"{len(result.descriptors)} descriptors loaded, {len(result.errors)} skipped")

    tree = build_tree(result.descriptors)
    if targets:
        tree = filter_tree(tree, targets)
        info(f"Filtered to {len(tree)} packages around: {', '.join(targets)}")
    else:
        info("No target packages given - using all packages")

    # Print discovered packages for user feedback
    for name in sorted(tree):
        deps = sorted(tree[name].depends_on)
        suffix = f" → [{', '.join(deps)}]" if deps else ""
        info(f"{name}{suffix}")

    return tree


def refresh_tree(settings: Settings, targets: Sequence[str] = ()) -> DependencyTree:
    """Rebuild the tree from descriptors and overwrite the snapshot."""
    tree = discover_tree(settings, targets)
    save_tree(tree, settings.snapshot_path)
    info(f"Wrote {settings.snapshot_path}")
    return tree


def load_or_refresh_tree(
    settings: Settings, targets: Sequence[str] = (), *, from_snapshot: bool = False
) -> DependencyTree:
    """Use the saved snapshot if asked to, else (or on failure) rebuild."""
    if from_snapshot:
        try:
            tree = load_tree(settings.snapshot_path)
        except PersistenceError as exc:
            warn(f"{exc} - rebuilding from descriptors")
        else:
            return filter_tree(tree, targets)
    return refresh_tree(settings, targets)


def plan_rollout(
    settings: Settings, targets: Sequence[str] = (), *, from_snapshot: bool = False
) -> list[list[str]]:
    """Produce the batched rollout plan.

    Raises:
        CircularDependencyError: If the packages cannot be ordered.
    """
    tree = load_or_refresh_tree(settings, targets, from_snapshot=from_snapshot)
    step("Ordering packages into batches")
    batches = get_batched_update_order(tree)
    info(f"{len(tree)} packages in {len(batches)} batches")
    return batches
