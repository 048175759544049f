"""Drive a rollout one batch at a time.

Each batch of the wave plan becomes one multi-gitter run: the batch's
packages are mapped to repositories, a multi-gitter config listing those
repositories is written, and ``multi-gitter run <command>`` is executed.
The next batch only starts once the previous one succeeded.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .config import Settings
from .shell import fatal, info, run, step


def repo_for_package(name: str, settings: Settings) -> str:
    """Map a package name to its "owner/repo" repository.

    Examples (default settings):
        "@aurodesignsystem/auro-button" → "AlaskaAirlines/auro-button"
        "@alaskaairux/icons" → "AlaskaAirlines/Icons"
    """
    if name in settings.repo_overrides:
        return settings.repo_overrides[name]
    for scope, owner in settings.repo_owners.items():
        if name.startswith(f"{scope}/"):
            return f"{owner}/{name[len(scope) + 1 :]}"
    return name


def format_batches(batches: list[list[str]], settings: Settings) -> str:
    """Render the wave plan as text, one repository per line."""
    return "\n\n".join(
        f"Batch {index}\n"
        + "\n".join(f"  - {repo_for_package(pkg, settings)}" for pkg in batch)
        for index, batch in enumerate(batches, start=1)
    )


def multi_gitter_config(
    repos: list[str], settings: Settings, *, dry_run: bool = True
) -> dict[str, Any]:
    """Build a multi-gitter config targeting exactly the given repositories."""
    return {
        "base-branch": settings.base_branch,
        "clone-dir": ".gitter-temp",
        "concurrent": settings.concurrent,
        "conflict-strategy": "replace",
        "draft": False,
        "dry-run": dry_run,
        "fetch-depth": 1,
        "git-type": "go",
        "log-level": "error",
        "platform": settings.platform,
        "repo": repos,
        "skip-pr": False,
    }


def write_multi_gitter_config(
    path: Path, repos: list[str], settings: Settings, *, dry_run: bool = True
) -> Path:
    """Write a multi-gitter YAML config, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    config = multi_gitter_config(repos, settings, dry_run=dry_run)
    path.write_text(yaml.safe_dump(config, sort_keys=False))
    return path


def run_batches(
    batches: list[list[str]],
    command: str,
    config_dir: Path,
    settings: Settings,
    *,
    dry_run: bool = True,
) -> list[Path]:
    """Run command across every batch's repositories, in batch order.

    Stops with a fatal error at the first batch whose multi-gitter run
    fails; later batches depend on it and are not started.

    Returns:
        Paths of the multi-gitter configs that were written.
    """
    written: list[Path] = []
    total = len(batches)
    for index, batch in enumerate(batches, start=1):
        repos = [repo_for_package(pkg, settings) for pkg in batch]
        step(f"Batch {index}/{total}: {len(repos)} repositories")
        for repo in repos:
            info(repo)

        config_path = write_multi_gitter_config(
            config_dir / f"multi-gitter_batch_{index}.yml",
            repos,
            settings,
            dry_run=dry_run,
        )
        written.append(config_path)

        result = run(
            "multi-gitter", "run", command, "--config", str(config_path), check=False
        )
        if result.returncode != 0:
            fatal(f"Batch {index} failed; remaining batches were not started")

    return written
