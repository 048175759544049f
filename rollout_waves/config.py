"""Settings for rollout-waves.

Settings come from ``rollout-waves.toml`` (top-level keys) or, failing that,
from ``[tool.rollout-waves]`` in ``pyproject.toml``. Both are read with
tomlkit. Every key is optional:

    [tool.rollout-waves]
    manifest-dir = "outputs"
    scopes = ["@aurodesignsystem", "@alaskaairux"]
    repo-owners = { "@aurodesignsystem" = "AlaskaAirlines" }
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from tomlkit.exceptions import ParseError

from .errors import ConfigError
from .persistence import DEFAULT_SNAPSHOT_NAME

CONFIG_FILENAME = "rollout-waves.toml"
HOME_DIR = Path("~/.rollout-waves")


class Settings(BaseModel):
    """Resolved rollout-waves settings.

    Attributes:
        manifest_dir: Where descriptor files and the tree snapshot live.
        config_dir: Where generated multi-gitter configs are written.
        snapshot_name: Filename of the tree snapshot inside manifest_dir.
        scopes: Name prefixes that mark a dependency as part of the
            ecosystem; everything else is dropped when scraping.
        repo_owners: Scope prefix → repository owner, used to turn a
            package name into a repository name.
        repo_overrides: Package name → repository, for packages whose
            repository does not follow the scope convention.
        base_branch: Branch multi-gitter targets.
        concurrent: Repositories multi-gitter processes at once.
        platform: multi-gitter platform ("github", "gitlab", ...).
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    manifest_dir: Path = Field(default=HOME_DIR / "outputs", alias="manifest-dir")
    config_dir: Path = Field(default=HOME_DIR / "config", alias="config-dir")
    snapshot_name: str = Field(default=DEFAULT_SNAPSHOT_NAME, alias="snapshot-name")
    scopes: list[str] = Field(
        default_factory=lambda: ["@aurodesignsystem", "@alaskaairux"]
    )
    repo_owners: dict[str, str] = Field(
        default_factory=lambda: {"@aurodesignsystem": "AlaskaAirlines"},
        alias="repo-owners",
    )
    repo_overrides: dict[str, str] = Field(
        default_factory=lambda: {"@alaskaairux/icons": "AlaskaAirlines/Icons"},
        alias="repo-overrides",
    )
    base_branch: str = Field(default="main", alias="base-branch")
    concurrent: int = Field(default=4, ge=1)
    platform: str = "github"

    @property
    def snapshot_path(self) -> Path:
        return self.manifest_dir / self.snapshot_name

    def resolved(self, root: Path) -> Settings:
        """Expand ``~`` and anchor relative directories at root."""
        return self.model_copy(
            update={
                "manifest_dir": _resolve_dir(self.manifest_dir, root),
                "config_dir": _resolve_dir(self.config_dir, root),
            }
        )


def _resolve_dir(path: Path, root: Path) -> Path:
    path = path.expanduser()
    return path if path.is_absolute() else root / path


def _read_toml(path: Path) -> tomlkit.TOMLDocument:
    try:
        return tomlkit.parse(path.read_text())
    except (OSError, ParseError) as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc


def find_settings_table(root: Path) -> dict[str, Any]:
    """Return the raw settings table for a project root, or {} if none.

    ``rollout-waves.toml`` wins over ``pyproject.toml``.
    """
    config_file = root / CONFIG_FILENAME
    if config_file.exists():
        return _read_toml(config_file).unwrap()

    pyproject = root / "pyproject.toml"
    if pyproject.exists():
        tool = _read_toml(pyproject).get("tool")
        table = tool.get("rollout-waves") if tool is not None else None
        return table.unwrap() if table is not None else {}

    return {}


def load_settings(root: Path | None = None) -> Settings:
    """Load and validate settings for the project at root (default: cwd).

    Raises:
        ConfigError: If a config file is unreadable or has invalid values.
    """
    root = root or Path.cwd()
    table = find_settings_table(root)
    try:
        settings = Settings.model_validate(table)
    except ValidationError as exc:
        raise ConfigError(f"Invalid rollout-waves settings: {exc}") from exc
    return settings.resolved(root)
