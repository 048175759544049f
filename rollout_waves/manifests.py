"""Read package descriptors from a manifest directory.

A manifest directory holds one ``*.json`` descriptor per package (as written
by ``rollout-waves scrape``) and, usually, the tree snapshot written by a
previous run. The snapshot is skipped; every other JSON file must be a
descriptor. Bad files are reported individually and do not stop the rest
from loading.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from .errors import MalformedManifestError, ManifestDirectoryError
from .models import PackageDescriptor
from .persistence import DEFAULT_SNAPSHOT_NAME


@dataclass
class LoadResult:
    """Descriptors that loaded, plus one error per file that did not."""

    descriptors: list[PackageDescriptor] = field(default_factory=list)
    errors: list[MalformedManifestError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def manifest_files(
    directory: Path, snapshot_name: str = DEFAULT_SNAPSHOT_NAME
) -> list[Path]:
    """List descriptor files in sorted order, excluding the snapshot."""
    if not directory.is_dir():
        raise ManifestDirectoryError(f"Manifest directory not found: {directory}")
    return sorted(
        p for p in directory.glob("*.json") if p.is_file() and p.name != snapshot_name
    )


def parse_descriptor(path: Path) -> PackageDescriptor:
    """Parse a single descriptor file.

    Raises:
        MalformedManifestError: If the file cannot be read, is not a JSON
            object, or lacks a package name.
    """
    try:
        data = json.loads(path.read_text())
    except (OSError, UnicodeDecodeError) as exc:
        raise MalformedManifestError(path, f"cannot read file: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise MalformedManifestError(path, f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedManifestError(path, "descriptor must be a JSON object")
    if not data.get("name"):
        raise MalformedManifestError(path, "descriptor is missing 'name'")

    try:
        return PackageDescriptor.model_validate(data)
    except ValidationError as exc:
        raise MalformedManifestError(path, f"invalid descriptor: {exc}") from exc


def load_descriptors(
    directory: Path, snapshot_name: str = DEFAULT_SNAPSHOT_NAME
) -> LoadResult:
    """Load every descriptor in a manifest directory.

    Args:
        directory: Directory of ``*.json`` descriptor files.
        snapshot_name: Filename of the tree snapshot to skip.

    Returns:
        LoadResult with the parsed descriptors (in filename order) and the
        per-file errors.

    Raises:
        ManifestDirectoryError: If the directory does not exist.
    """
    result = LoadResult()
    for path in manifest_files(directory, snapshot_name):
        try:
            result.descriptors.append(parse_descriptor(path))
        except MalformedManifestError as exc:
            result.errors.append(exc)
    return result
