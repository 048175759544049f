"""Tests for rollout_waves.tree."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from rollout_waves.errors import MalformedManifestError
from rollout_waves.models import DependencyTree, PackageDescriptor
from rollout_waves.tree import TreeBuilder, build_tree

DescriptorFactory = Callable[..., PackageDescriptor]


class TestBuildTree:
    def test_empty(self) -> None:
        assert len(build_tree([])) == 0

    def test_diamond_edges(self, diamond_tree: DependencyTree) -> None:
        assert set(diamond_tree) == {"A", "B", "C", "D"}
        assert diamond_tree["A"].depends_on == frozenset()
        assert diamond_tree["A"].dependent_packages == {"B", "C"}
        assert diamond_tree["D"].depends_on == {"B", "C"}
        assert diamond_tree["D"].dependent_packages == frozenset()

    def test_edges_are_bidirectional(self, diamond_tree: DependencyTree) -> None:
        for name, node in diamond_tree.items():
            for dep in node.depends_on:
                assert name in diamond_tree[dep].dependent_packages
            for dependent in node.dependent_packages:
                assert name in diamond_tree[dependent].depends_on

    def test_placeholder_for_undeclared_dependency(
        self, descriptor: DescriptorFactory
    ) -> None:
        tree = build_tree([descriptor("app", "@ext/lib")])
        assert "@ext/lib" in tree
        assert tree["@ext/lib"].depends_on == frozenset()
        assert tree["@ext/lib"].dependent_packages == {"app"}

    def test_union_of_dependency_kinds(self) -> None:
        tree = build_tree(
            [
                PackageDescriptor(
                    name="app",
                    peer_dependencies={"peer": "1"},
                    dev_dependencies={"dev": "1", "peer": "2"},
                    dependencies={"run": "1"},
                )
            ]
        )
        assert tree["app"].depends_on == {"peer", "dev", "run"}
        assert tree["peer"].dependent_packages == {"app"}

    def test_versions_are_ignored(self, descriptor: DescriptorFactory) -> None:
        first = build_tree([descriptor("app", "lib")])
        second = build_tree(
            [PackageDescriptor(name="app", dependencies={"lib": "workspace:*"})]
        )
        assert first == second

    def test_declared_after_referenced(self, descriptor: DescriptorFactory) -> None:
        """A placeholder is filled in when its descriptor arrives later."""
        tree = build_tree([descriptor("app", "lib"), descriptor("lib", "core")])
        assert tree["lib"].depends_on == {"core"}
        assert tree["lib"].dependent_packages == {"app"}

    def test_last_descriptor_wins(self, descriptor: DescriptorFactory) -> None:
        tree = build_tree([descriptor("app", "old"), descriptor("app", "new")])
        assert tree["app"].depends_on == {"new"}
        assert tree["new"].dependent_packages == {"app"}
        # The replaced edge is gone from both ends
        assert tree["old"].dependent_packages == frozenset()

    def test_duplicate_descriptor_is_idempotent(
        self, descriptor: DescriptorFactory
    ) -> None:
        tree = build_tree([descriptor("app", "lib"), descriptor("app", "lib")])
        assert tree["lib"].dependent_packages == {"app"}

    def test_self_dependency_recorded(self, descriptor: DescriptorFactory) -> None:
        tree = build_tree([descriptor("loop", "loop")])
        assert tree["loop"].depends_on == {"loop"}
        assert tree["loop"].dependent_packages == {"loop"}


class TestTreeBuilder:
    def test_rejects_nameless_descriptor(self) -> None:
        desc = PackageDescriptor.model_construct(
            name="", peer_dependencies={}, dev_dependencies={}, dependencies={}
        )
        with pytest.raises(MalformedManifestError, match="no package name"):
            TreeBuilder().add_descriptor(desc)

    def test_freeze_returns_independent_snapshot(
        self, descriptor: DescriptorFactory
    ) -> None:
        builder = TreeBuilder()
        builder.add_descriptor(descriptor("app", "lib"))
        frozen = builder.freeze()
        builder.add_descriptor(descriptor("other", "lib"))

        assert "other" not in frozen
        assert frozen["lib"].dependent_packages == {"app"}
