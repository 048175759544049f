"""Dependency graph ordering.

Turns a dependency tree into a rollout plan. Packages must be updated in
dependency order so that when package A depends on package B, B is updated
first. Batching goes further: every package in a batch is independent of
every other package in the same batch, so a whole batch can roll out at once.
"""

from __future__ import annotations

from .errors import CircularDependencyError
from .models import DependencyTree


def get_batched_update_order(tree: DependencyTree) -> list[list[str]]:
    """Group packages into waves that can be rolled out together.

    Uses Kahn's algorithm, one BFS layer at a time: each batch holds the
    packages whose dependencies were all scheduled in earlier batches.
    Packages within a batch are sorted alphabetically for deterministic
    output.

    Args:
        tree: Dependency tree to order. It is only read, never modified.

    Returns:
        List of batches, dependencies first.

    Raises:
        CircularDependencyError: If a dependency cycle keeps some packages
            from ever being scheduled. No partial plan is returned.

    Example:
        B and C depend on A, D depends on B and C:
        get_batched_update_order(tree) → [[A], [B, C], [D]]
    """
    # Count outstanding dependencies for each package
    in_degree = {name: len(node.depends_on) for name, node in tree.items()}

    # Start with packages that have no dependencies (in_degree == 0)
    batch = sorted(name for name, degree in in_degree.items() if degree == 0)
    batches: list[list[str]] = []
    scheduled = 0

    while batch:
        batches.append(batch)
        scheduled += len(batch)
        ready: list[str] = []
        for current in batch:
            # Decrement in_degree for all packages that depend on this one
            for dependent in tree[current].dependent_packages:
                in_degree[dependent] -= 1
                # When a package has all deps satisfied, it joins the next wave
                if in_degree[dependent] == 0:
                    ready.append(dependent)
        batch = sorted(ready)

    # If we didn't schedule all packages, there must be a cycle
    if scheduled != len(tree):
        remaining = [name for name, degree in in_degree.items() if degree > 0]
        raise CircularDependencyError(remaining)

    return batches


def get_flat_update_order(tree: DependencyTree) -> list[str]:
    """Sequential update order: the batched order, flattened.

    Raises:
        CircularDependencyError: If a dependency cycle is detected.
    """
    return [name for batch in get_batched_update_order(tree) for name in batch]
