"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from rollout_waves.config import Settings
from rollout_waves.models import DependencyTree, PackageDescriptor
from rollout_waves.tree import build_tree


def make_descriptor(name: str, *deps: str, peer: tuple[str, ...] = ()) -> PackageDescriptor:
    """Descriptor with runtime deps (and optional peer deps) at version ^1.0.0."""
    return PackageDescriptor(
        name=name,
        dependencies={dep: "^1.0.0" for dep in deps},
        peer_dependencies={dep: "^1.0.0" for dep in peer},
    )


@pytest.fixture
def descriptor() -> Callable[..., PackageDescriptor]:
    return make_descriptor


@pytest.fixture
def diamond_tree() -> DependencyTree:
    """B and C depend on A; D depends on B and C."""
    return build_tree(
        [
            make_descriptor("A"),
            make_descriptor("B", "A"),
            make_descriptor("C", "A"),
            make_descriptor("D", "B", "C"),
        ]
    )


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[..., Path]:
    """Write a descriptor JSON file into tmp_path/outputs."""
    out_dir = tmp_path / "outputs"
    out_dir.mkdir(exist_ok=True)

    def _write(filename: str, data: object) -> Path:
        path = out_dir / filename
        path.write_text(json.dumps(data) if not isinstance(data, str) else data)
        return path

    return _write


@pytest.fixture
def manifest_dir(tmp_path: Path, write_manifest: Callable[..., Path]) -> Path:
    """Manifest directory holding the diamond example as descriptor files."""
    write_manifest(
        "a_deps.json",
        {"name": "@scope/a", "peerDependencies": {}, "devDependencies": {}, "dependencies": {}},
    )
    write_manifest(
        "b_deps.json",
        {"name": "@scope/b", "peerDependencies": {"@scope/a": "^1.0.0"}},
    )
    write_manifest(
        "c_deps.json",
        {"name": "@scope/c", "devDependencies": {"@scope/a": "^1.0.0"}},
    )
    write_manifest(
        "d_deps.json",
        {
            "name": "@scope/d",
            "dependencies": {"@scope/b": "^2.0.0", "@scope/c": "^3.0.0"},
        },
    )
    return tmp_path / "outputs"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in tmp_path with an '@scope' ecosystem."""
    return Settings(
        manifest_dir=tmp_path / "outputs",
        config_dir=tmp_path / "config",
        scopes=["@scope"],
        repo_owners={"@scope": "ScopeOrg"},
        repo_overrides={},
    )
