"""CLI entry point for rollout-waves."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from rollout_waves.config import Settings, load_settings
from rollout_waves.errors import (
    CircularDependencyError,
    ConfigError,
    MalformedManifestError,
    ManifestDirectoryError,
    PersistenceError,
)
from rollout_waves.graph import get_flat_update_order
from rollout_waves.persistence import load_tree
from rollout_waves.pipeline import load_or_refresh_tree, plan_rollout, refresh_tree
from rollout_waves.rollout import format_batches, repo_for_package, run_batches
from rollout_waves.scrape import scrape_package, write_descriptor
from rollout_waves.watch import watch_manifests

target_option = click.option(
    "-t",
    "--target",
    "targets",
    multiple=True,
    help="Limit the plan to this package and its direct dependents (repeatable).",
)


@contextmanager
def planning_errors() -> Iterator[None]:
    """Turn planning failures into a hard stop with a readable message."""
    try:
        yield
    except CircularDependencyError as exc:
        raise click.ClickException(
            f"A circular dependency prevents ordering the rollout.\n{exc}"
        ) from exc
    except ManifestDirectoryError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.version_option(package_name="rollout-waves")
@click.option(
    "--manifest-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory of package descriptors (overrides settings).",
)
@click.pass_context
def cli(ctx: click.Context, manifest_dir: Path | None) -> None:
    """Plan coordinated, wave-by-wave rollouts across interdependent packages."""
    try:
        settings = load_settings(Path.cwd())
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    if manifest_dir is not None:
        settings = settings.model_copy(update={"manifest_dir": manifest_dir})
    ctx.obj = settings


@cli.command()
@click.argument(
    "package_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--out",
    "out_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Where to write the descriptor (default: the manifest directory).",
)
@click.pass_obj
def scrape(settings: Settings, package_dir: Path, out_dir: Path | None) -> None:
    """Write the in-ecosystem dependencies of PACKAGE_DIR as a descriptor."""
    try:
        descriptor = scrape_package(package_dir, settings.scopes)
    except MalformedManifestError as exc:
        raise click.ClickException(str(exc)) from exc

    dest = write_descriptor(
        descriptor, out_dir or settings.manifest_dir, settings.scopes
    )
    deps = descriptor.all_dependencies()
    click.echo(f"{descriptor.name} → [{', '.join(deps)}]")
    click.echo(f"✓ Wrote {dest}")


@cli.command()
@target_option
@click.pass_obj
def tree(settings: Settings, targets: tuple[str, ...]) -> None:
    """Build the dependency tree and save it as a snapshot."""
    try:
        result = refresh_tree(settings, list(targets))
    except ManifestDirectoryError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"\n✓ {len(result)} packages, {result.edge_count()} dependency edges")


@cli.command()
@target_option
@click.option(
    "--from-snapshot",
    is_flag=True,
    help="Reuse the saved tree snapshot instead of re-reading descriptors.",
)
@click.option("--flat", is_flag=True, help="Print one sequential order.")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write the batches as JSON to this file.",
)
@click.pass_obj
def plan(
    settings: Settings,
    targets: tuple[str, ...],
    from_snapshot: bool,
    flat: bool,
    output: Path | None,
) -> None:
    """Print the batched rollout order."""
    if not flat:
        with planning_errors():
            batches = plan_rollout(settings, list(targets), from_snapshot=from_snapshot)
        click.echo()
        click.echo(format_batches(batches, settings))
        result: list[list[str]] | list[str] = batches
    else:
        with planning_errors():
            dep_tree = load_or_refresh_tree(
                settings, list(targets), from_snapshot=from_snapshot
            )
            order = get_flat_update_order(dep_tree)
        click.echo()
        for index, name in enumerate(order, start=1):
            click.echo(f"{index:>3}. {repo_for_package(name, settings)}")
        result = order

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(result, indent=2) + "\n")
        click.echo(f"\n✓ Wrote {output}")


@cli.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--depends-on", is_flag=True, help="Only show dependencies.")
@click.option("--dependents", is_flag=True, help="Only show dependent packages.")
@click.pass_obj
def show(
    settings: Settings, names: tuple[str, ...], depends_on: bool, dependents: bool
) -> None:
    """Show the dependencies and dependents of packages in the snapshot."""
    try:
        snapshot = load_tree(settings.snapshot_path)
    except PersistenceError as exc:
        raise click.ClickException(
            f"{exc}\nRun `rollout-waves tree` to create the snapshot."
        ) from exc

    both = not depends_on and not dependents
    for name in names:
        if name not in snapshot:
            click.echo(f"Package '{name}' not found in dependency tree.", err=True)
            continue
        node = snapshot[name]
        click.echo(f"Package: {name}")
        if depends_on or both:
            click.echo(f"  Dependencies: {', '.join(sorted(node.depends_on)) or '-'}")
        if dependents or both:
            click.echo(
                f"  Dependents: {', '.join(sorted(node.dependent_packages)) or '-'}"
            )
        click.echo()


@cli.command()
@click.argument("command")
@target_option
@click.option(
    "--from-snapshot",
    is_flag=True,
    help="Reuse the saved tree snapshot instead of re-reading descriptors.",
)
@click.option(
    "--dry-run/--no-dry-run",
    default=True,
    show_default=True,
    help="Pass dry-run to multi-gitter (no pull requests are opened).",
)
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Where to write multi-gitter configs (default: from settings).",
)
@click.pass_obj
def rollout(
    settings: Settings,
    command: str,
    targets: tuple[str, ...],
    from_snapshot: bool,
    dry_run: bool,
    config_dir: Path | None,
) -> None:
    """Run COMMAND in every repository with multi-gitter, batch by batch."""
    with planning_errors():
        batches = plan_rollout(settings, list(targets), from_snapshot=from_snapshot)
    run_batches(
        batches,
        command,
        config_dir or settings.config_dir,
        settings,
        dry_run=dry_run,
    )
    click.echo(f"\n{'=' * 60}\nDone!\n{'=' * 60}")


@cli.command()
@target_option
@click.option(
    "--interval",
    type=click.FloatRange(min=0.1),
    default=2.0,
    show_default=True,
    help="Seconds between polls of the manifest directory.",
)
@click.pass_obj
def watch(settings: Settings, targets: tuple[str, ...], interval: float) -> None:
    """Re-plan whenever a descriptor changes (Ctrl-C to stop)."""

    def show_plan(batches: list[list[str]]) -> None:
        click.echo()
        click.echo(format_batches(batches, settings))

    try:
        watch_manifests(settings, show_plan, targets=list(targets), interval=interval)
    except KeyboardInterrupt:
        click.echo("\nStopped watching.")

