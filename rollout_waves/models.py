"""Data models for rollout-waves.

These Pydantic models represent the package descriptors read from disk and
the nodes of the dependency tree built from them. DependencyTree itself is a
read-only mapping: once constructed, nothing in the planning code can add or
rewire an edge.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidTreeError


class PackageDescriptor(BaseModel):
    """Dependency excerpt of a single package manifest.

    Only the dependency *names* matter for planning; version strings are
    carried along untouched.

    Attributes:
        name: Package name, e.g. "@aurodesignsystem/auro-button".
        peer_dependencies: ``peerDependencies`` on the wire.
        dev_dependencies: ``devDependencies`` on the wire.
        dependencies: Runtime dependencies.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    peer_dependencies: dict[str, str] = Field(
        default_factory=dict, alias="peerDependencies"
    )
    dev_dependencies: dict[str, str] = Field(
        default_factory=dict, alias="devDependencies"
    )
    dependencies: dict[str, str] = Field(default_factory=dict)

    def all_dependencies(self) -> list[str]:
        """Union of the three dependency maps' keys, first occurrence wins."""
        names: dict[str, None] = {}
        for group in (self.peer_dependencies, self.dev_dependencies, self.dependencies):
            for dep in group:
                names.setdefault(dep, None)
        return list(names)


class DependencyNode(BaseModel):
    """One package in the dependency tree.

    Attributes:
        name: Package name (same as its key in the tree).
        depends_on: Packages this one declares as dependencies.
        dependent_packages: Packages that declare this one as a dependency.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    depends_on: frozenset[str] = frozenset()
    dependent_packages: frozenset[str] = frozenset()


class DependencyTree(Mapping[str, DependencyNode]):
    """Immutable mapping of package name to DependencyNode.

    The constructor checks that every referenced name is a node of the tree
    and that ``A in B.dependent_packages`` exactly when
    ``B in A.depends_on``.

    Raises:
        InvalidTreeError: If the nodes violate that invariant.
    """

    __slots__ = ("_nodes",)

    def __init__(self, nodes: Mapping[str, DependencyNode] | None = None) -> None:
        self._nodes: dict[str, DependencyNode] = dict(nodes or {})
        self._validate()

    def _validate(self) -> None:
        for key, node in self._nodes.items():
            if key != node.name:
                raise InvalidTreeError(f"node keyed {key!r} is named {node.name!r}")
            for dep in node.depends_on:
                if dep not in self._nodes:
                    raise InvalidTreeError(f"{key} depends on unknown package {dep}")
                if key not in self._nodes[dep].dependent_packages:
                    raise InvalidTreeError(
                        f"{key} depends on {dep}, but {dep} does not list it "
                        "as a dependent"
                    )
            for dependent in node.dependent_packages:
                if dependent not in self._nodes:
                    raise InvalidTreeError(
                        f"{key} lists unknown dependent package {dependent}"
                    )
                if key not in self._nodes[dependent].depends_on:
                    raise InvalidTreeError(
                        f"{key} lists {dependent} as a dependent, but "
                        f"{dependent} does not depend on it"
                    )

    def __getitem__(self, name: str) -> DependencyNode:
        return self._nodes[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"DependencyTree({sorted(self._nodes)})"

    def edge_count(self) -> int:
        return sum(len(node.depends_on) for node in self._nodes.values())
