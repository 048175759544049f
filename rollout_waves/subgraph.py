"""Restrict a dependency tree to the packages around a set of targets.

Scoping a rollout to "these packages and whoever depends on them" keeps the
plan small. Only one hop is followed: the targets and the packages that depend
directly on a target. A package that depends on a dependent of a target (two
hops away) is left out, and so are the packages a target itself depends on.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import DependencyNode, DependencyTree


def relevant_packages(tree: DependencyTree, target_names: Iterable[str]) -> set[str]:
    """Targets present in the tree plus their direct dependents.

    Targets missing from the tree are ignored.
    """
    targets = {name for name in target_names if name in tree}
    relevant = set(targets)
    for name, node in tree.items():
        if node.depends_on & targets:
            relevant.add(name)
    return relevant


def filter_tree(tree: DependencyTree, target_names: Iterable[str]) -> DependencyTree:
    """Build the reduced tree for a targeted rollout.

    Args:
        tree: Full dependency tree.
        target_names: Packages the rollout starts from. An empty list means
            "all packages" and returns the tree unchanged.

    Returns:
        A new tree with edges to packages outside the relevant set dropped.

    Example:
        B and C depend on A, D depends on B and C:
        filter_tree(tree, ["B"]) keeps {B, D}. A is only a dependency of B
        and C does not depend on B, so both are dropped.
    """
    targets = list(target_names)
    if not targets:
        return tree

    relevant = relevant_packages(tree, targets)
    return DependencyTree(
        {
            name: DependencyNode(
                name=name,
                depends_on=tree[name].depends_on & relevant,
                dependent_packages=tree[name].dependent_packages & relevant,
            )
            for name in tree
            if name in relevant
        }
    )
