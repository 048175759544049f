"""Tests for rollout_waves.persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from rollout_waves.errors import PersistenceError
from rollout_waves.models import DependencyTree
from rollout_waves.persistence import load_tree, save_tree, tree_to_json
from rollout_waves.subgraph import filter_tree
from rollout_waves.tree import build_tree


class TestSaveTree:
    def test_wire_format(self, diamond_tree: DependencyTree, tmp_path: Path) -> None:
        path = tmp_path / "dependencyTree.json"
        save_tree(diamond_tree, path)

        data = json.loads(path.read_text())
        assert list(data) == ["A", "B", "C", "D"]
        assert data["A"] == {"dependentPackages": ["B", "C"], "dependsOn": []}
        assert data["D"] == {"dependentPackages": [], "dependsOn": ["B", "C"]}

    def test_creates_parent_dirs(
        self, diamond_tree: DependencyTree, tmp_path: Path
    ) -> None:
        path = tmp_path / "nested" / "dir" / "tree.json"
        save_tree(diamond_tree, path)
        assert path.exists()

    def test_output_is_deterministic(self, descriptor, tmp_path: Path) -> None:
        forward = build_tree([descriptor("b", "a"), descriptor("c", "a")])
        backward = build_tree([descriptor("c", "a"), descriptor("b", "a")])
        assert tree_to_json(forward) == tree_to_json(backward)

    def test_human_readable(self, diamond_tree: DependencyTree) -> None:
        text = tree_to_json(diamond_tree)
        assert text.startswith('{\n  "A": {')
        assert text.endswith("}\n")


class TestLoadTree:
    def test_round_trip(self, diamond_tree: DependencyTree, tmp_path: Path) -> None:
        path = tmp_path / "tree.json"
        save_tree(diamond_tree, path)
        assert load_tree(path) == diamond_tree

    def test_round_trip_filtered(
        self, diamond_tree: DependencyTree, tmp_path: Path
    ) -> None:
        filtered = filter_tree(diamond_tree, ["B"])
        path = tmp_path / "tree.json"
        save_tree(filtered, path)
        assert load_tree(path) == filtered

    def test_round_trip_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "tree.json"
        save_tree(build_tree([]), path)
        assert len(load_tree(path)) == 0

    def test_array_order_is_irrelevant(self, tmp_path: Path) -> None:
        path = tmp_path / "tree.json"
        path.write_text(
            json.dumps(
                {
                    "a": {"dependsOn": [], "dependentPackages": ["c", "b"]},
                    "b": {"dependsOn": ["a"], "dependentPackages": []},
                    "c": {"dependsOn": ["a"], "dependentPackages": []},
                }
            )
        )
        assert load_tree(path)["a"].dependent_packages == {"b", "c"}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(PersistenceError, match="cannot read snapshot"):
            load_tree(tmp_path / "missing.json")

    def test_corrupt_json(self, tmp_path: Path) -> None:
        path = tmp_path / "tree.json"
        path.write_text("{not json")
        with pytest.raises(PersistenceError) as excinfo:
            load_tree(path)
        assert excinfo.value.path == path

    def test_wrong_shape(self, tmp_path: Path) -> None:
        path = tmp_path / "tree.json"
        path.write_text(json.dumps({"a": {"dependsOn": "b"}}))
        with pytest.raises(PersistenceError, match="not a dependency tree snapshot"):
            load_tree(path)

    def test_top_level_must_be_object(self, tmp_path: Path) -> None:
        path = tmp_path / "tree.json"
        path.write_text("[]")
        with pytest.raises(PersistenceError):
            load_tree(path)

    def test_inconsistent_edges(self, tmp_path: Path) -> None:
        path = tmp_path / "tree.json"
        path.write_text(
            json.dumps(
                {
                    "a": {"dependsOn": [], "dependentPackages": []},
                    "b": {"dependsOn": ["a"], "dependentPackages": []},
                }
            )
        )
        with pytest.raises(PersistenceError, match="inconsistent snapshot"):
            load_tree(path)
