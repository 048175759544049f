"""Scrape a package descriptor out of a package's own manifest.

Run once per repository (typically fanned out with multi-gitter) to produce
the descriptor files a manifest directory is made of. Only dependencies
inside the ecosystem - names containing one of the configured scopes - are
kept, since nothing outside it takes part in a coordinated rollout.

Two manifest kinds are understood:
- package.json: peerDependencies / devDependencies / dependencies
- pyproject.toml: [project].dependencies become dependencies;
  [project].optional-dependencies.* and [dependency-groups].* become
  devDependencies. Names are normalized per PEP 503.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path

import tomlkit
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name
from pydantic import ValidationError
from tomlkit.exceptions import ParseError

from .errors import MalformedManifestError
from .models import PackageDescriptor


def in_scope(name: str, scopes: Iterable[str]) -> bool:
    """True if name contains any scope prefix (or no scopes are configured)."""
    scopes = list(scopes)
    return not scopes or any(scope in name for scope in scopes)


def _filter_scoped(deps: Mapping[str, str] | None, scopes: list[str]) -> dict[str, str]:
    if not deps:
        return {}
    return {
        name: str(version) for name, version in deps.items() if in_scope(name, scopes)
    }


def scrape_package_json(path: Path, scopes: Iterable[str]) -> PackageDescriptor:
    """Build a descriptor from an npm package.json."""
    scopes = list(scopes)
    try:
        data = json.loads(path.read_text())
    except (OSError, ValueError) as exc:
        raise MalformedManifestError(path, f"cannot parse package.json: {exc}") from exc
    if not isinstance(data, dict) or not data.get("name"):
        raise MalformedManifestError(path, "package.json is missing 'name'")

    try:
        return PackageDescriptor(
            name=data["name"],
            peer_dependencies=_filter_scoped(data.get("peerDependencies"), scopes),
            dev_dependencies=_filter_scoped(data.get("devDependencies"), scopes),
            dependencies=_filter_scoped(data.get("dependencies"), scopes),
        )
    except (ValidationError, AttributeError) as exc:
        raise MalformedManifestError(path, f"invalid package.json: {exc}") from exc


def requirement_entry(dep_str: str) -> tuple[str, str]:
    """Split a PEP 508 string into (canonical name, version specifier).

    Examples:
        "requests>=2.0" → ("requests", ">=2.0")
        "My_Package[extra]" → ("my-package", "*")
    """
    req = Requirement(dep_str)
    return canonicalize_name(req.name), str(req.specifier) or "*"


def _requirements_to_map(dep_strs: Iterable[str], scopes: list[str]) -> dict[str, str]:
    deps: dict[str, str] = {}
    for dep_str in dep_strs:
        name, spec = requirement_entry(str(dep_str))
        if in_scope(name, scopes):
            deps.setdefault(name, spec)
    return deps


def scrape_pyproject(path: Path, scopes: Iterable[str]) -> PackageDescriptor:
    """Build a descriptor from a Python pyproject.toml."""
    scopes = list(scopes)
    try:
        doc = tomlkit.parse(path.read_text())
    except (OSError, ParseError) as exc:
        raise MalformedManifestError(
            path, f"cannot parse pyproject.toml: {exc}"
        ) from exc

    project = doc.get("project", {})
    name = project.get("name")
    if not name:
        raise MalformedManifestError(path, "[project].name is missing")

    dev: list[str] = []
    # Collect optional dependency groups (e.g., [project.optional-dependencies.dev])
    for group_deps in project.get("optional-dependencies", {}).values():
        dev.extend(group_deps)
    # Collect PEP 735 dependency groups (e.g., [dependency-groups.test])
    for group_deps in doc.get("dependency-groups", {}).values():
        dev.extend(d for d in group_deps if isinstance(d, str))

    try:
        return PackageDescriptor(
            name=canonicalize_name(str(name)),
            dev_dependencies=_requirements_to_map(dev, scopes),
            dependencies=_requirements_to_map(project.get("dependencies", []), scopes),
        )
    except InvalidRequirement as exc:
        raise MalformedManifestError(path, f"invalid requirement: {exc}") from exc


def scrape_package(package_dir: Path, scopes: Iterable[str]) -> PackageDescriptor:
    """Scrape the descriptor of the package rooted at package_dir.

    package.json is preferred when both manifests exist.

    Raises:
        MalformedManifestError: If no manifest is found or it is unusable.
    """
    package_json = package_dir / "package.json"
    if package_json.exists():
        return scrape_package_json(package_json, scopes)
    pyproject = package_dir / "pyproject.toml"
    if pyproject.exists():
        return scrape_pyproject(pyproject, scopes)
    raise MalformedManifestError(package_dir, "no package.json or pyproject.toml found")


def descriptor_filename(name: str, scopes: Iterable[str]) -> str:
    """Descriptor filename for a package.

    Examples:
        "@aurodesignsystem/auro-button" → "auro-button_deps.json"
        "@other/thing" → "other_thing_deps.json"
    """
    short = name
    for scope in scopes:
        if name.startswith(f"{scope}/"):
            short = name[len(scope) + 1 :]
            break
    short = short.lstrip("@").replace("/", "_")
    return f"{short}_deps.json"


def write_descriptor(
    descriptor: PackageDescriptor, out_dir: Path, scopes: Iterable[str]
) -> Path:
    """Write a descriptor into out_dir using the camelCase wire names."""
    out_dir.mkdir(parents=True, exist_ok=True)
    dest = out_dir / descriptor_filename(descriptor.name, scopes)
    dest.write_text(json.dumps(descriptor.model_dump(by_alias=True), indent=4) + "\n")
    return dest
