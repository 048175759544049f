"""Build a DependencyTree from package descriptors.

Nodes are package names; an edge A → B means "A depends on B". Every package
mentioned as a dependency gets a node, even when no descriptor was loaded for
it - such placeholder nodes simply have no dependencies of their own.
"""

from __future__ import annotations

from collections.abc import Iterable

from .errors import MalformedManifestError
from .models import DependencyNode, DependencyTree, PackageDescriptor


class TreeBuilder:
    """Mutable accumulator for dependency edges.

    Edges are always added to both ends at once, so the builder never holds
    a half-updated edge. Call freeze() to get the immutable tree.
    """

    def __init__(self) -> None:
        self._depends_on: dict[str, set[str]] = {}
        self._dependents: dict[str, set[str]] = {}

    def ensure_node(self, name: str) -> None:
        if name not in self._depends_on:
            self._depends_on[name] = set()
            self._dependents[name] = set()

    def add_descriptor(self, descriptor: PackageDescriptor) -> None:
        """Record a descriptor, replacing any earlier one with the same name."""
        name = descriptor.name
        if not name:
            raise MalformedManifestError(None, "descriptor has no package name")

        self.ensure_node(name)
        new_deps = descriptor.all_dependencies()

        # Last descriptor wins: drop reverse edges the new one no longer has
        for dropped in self._depends_on[name] - set(new_deps):
            self._dependents[dropped].discard(name)

        self._depends_on[name] = set(new_deps)
        for dep in new_deps:
            self.ensure_node(dep)
            self._dependents[dep].add(name)

    def freeze(self) -> DependencyTree:
        return DependencyTree(
            {
                name: DependencyNode(
                    name=name,
                    depends_on=frozenset(deps),
                    dependent_packages=frozenset(self._dependents[name]),
                )
                for name, deps in self._depends_on.items()
            }
        )


def build_tree(descriptors: Iterable[PackageDescriptor]) -> DependencyTree:
    """Build the dependency tree for a set of package descriptors.

    Args:
        descriptors: Package descriptors, usually from load_descriptors().

    Returns:
        A tree containing every declared package and every package named
        as a dependency.

    Example:
        B and C depend on A, D depends on B and C:
        build_tree([...])["A"].dependent_packages → {"B", "C"}
    """
    builder = TreeBuilder()
    for descriptor in descriptors:
        builder.add_descriptor(descriptor)
    return builder.freeze()
