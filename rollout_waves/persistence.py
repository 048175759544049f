"""Dependency tree snapshots.

The snapshot is plain JSON so it can be committed and diffed:

    {
      "@scope/a": {"dependsOn": [], "dependentPackages": ["@scope/b"]},
      "@scope/b": {"dependsOn": ["@scope/a"], "dependentPackages": []}
    }

Keys and arrays are sorted; array order carries no meaning.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import InvalidTreeError, PersistenceError
from .models import DependencyNode, DependencyTree

DEFAULT_SNAPSHOT_NAME = "dependencyTree.json"


class SnapshotEntry(BaseModel):
    """Wire shape of a single node in a snapshot file."""

    model_config = ConfigDict(populate_by_name=True)

    depends_on: list[str] = Field(default_factory=list, alias="dependsOn")
    dependent_packages: list[str] = Field(
        default_factory=list, alias="dependentPackages"
    )


_SNAPSHOT = TypeAdapter(dict[str, SnapshotEntry])


def tree_to_json(tree: DependencyTree) -> str:
    """Serialize a tree deterministically (sorted keys and arrays)."""
    data = {
        name: {
            "dependsOn": sorted(node.depends_on),
            "dependentPackages": sorted(node.dependent_packages),
        }
        for name, node in tree.items()
    }
    return json.dumps(data, indent=2, sort_keys=True) + "\n"


def save_tree(tree: DependencyTree, path: Path) -> None:
    """Write a tree snapshot, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(tree_to_json(tree))


def load_tree(path: Path) -> DependencyTree:
    """Read a tree snapshot written by save_tree().

    Raises:
        PersistenceError: If the file is unreadable, is not valid JSON, does
            not have the snapshot shape, or describes inconsistent edges.
            Callers can fall back to rebuilding from descriptors.
    """
    try:
        raw = path.read_text()
    except (OSError, UnicodeDecodeError) as exc:
        raise PersistenceError(path, f"cannot read snapshot: {exc}") from exc

    try:
        entries = _SNAPSHOT.validate_json(raw)
    except ValidationError as exc:
        raise PersistenceError(path, f"not a dependency tree snapshot: {exc}") from exc

    try:
        return DependencyTree(
            {
                name: DependencyNode(
                    name=name,
                    depends_on=frozenset(entry.depends_on),
                    dependent_packages=frozenset(entry.dependent_packages),
                )
                for name, entry in entries.items()
            }
        )
    except InvalidTreeError as exc:
        raise PersistenceError(path, f"inconsistent snapshot: {exc}") from exc
