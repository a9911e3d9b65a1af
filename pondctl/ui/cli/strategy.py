"""
CLI commands for stack strategies — the detection rule table.

Thin wrappers over ``pondctl.core.config.strategy_loader``.
"""

from __future__ import annotations

import json
import sys

import click

from pondctl.core.config.loader import config_dir as resolve_config_dir
from pondctl.ui.cli.helpers import base_dir


def _split(values: tuple[str, ...]) -> list[str]:
    """Repeated options and comma lists both work: ``-m a.json,b.json -m c``."""
    return [item.strip() for v in values for item in v.split(",") if item.strip()]


@click.group()
def strategy() -> None:
    """Stack strategies — list, inspect, add and remove detection rules."""


@strategy.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """List the active strategies in match order."""
    from pondctl.core.config.strategy_loader import list_strategies

    rows = list_strategies(resolve_config_dir(base_dir(ctx)))

    if as_json:
        click.echo(json.dumps([
            {**s.model_dump(), "source": source} for s, source in rows
        ], indent=2))
        return

    click.secho("🌿 Stack strategies", fg="cyan", bold=True)
    for s, source in rows:
        click.secho(f"   {s.name:<12}", bold=True, nl=False)
        click.echo(f" [{', '.join(s.match_files)}] priority {s.priority}", nl=False)
        if source == "custom":
            click.secho("  (custom)", fg="yellow", nl=False)
        click.echo()


@strategy.command("info")
@click.argument("name")
@click.pass_context
def info(ctx: click.Context, name: str) -> None:
    """Show one strategy's markers, artifacts and tags."""
    from pondctl.core.config.strategy_loader import find_strategy

    s = find_strategy(resolve_config_dir(base_dir(ctx)), name)
    if s is None:
        click.secho(f"❌ Strategy '{name}' not found", fg="red")
        sys.exit(1)

    click.secho(s.name, fg="cyan", bold=True)
    click.echo(f"   Priority:  {s.priority}")
    click.echo(f"   Matches:   {', '.join(s.match_files)}")
    click.echo(f"   Artifacts: {', '.join(s.artifacts) or '-'}")
    click.echo(f"   Tags:      {', '.join(s.tags) or '-'}")


@strategy.command("add")
@click.argument("name")
@click.option("--match", "-m", "match_files", multiple=True, required=True,
              help="Marker file (repeatable or comma-separated).")
@click.option("--artifact", "-a", "artifacts", multiple=True, help="Artifact directory.")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag applied to matching projects.")
@click.option("--priority", "-p", type=int, default=0, show_default=True,
              help="Higher priorities are tried first.")
@click.pass_context
def add(
    ctx: click.Context,
    name: str,
    match_files: tuple[str, ...],
    artifacts: tuple[str, ...],
    tags: tuple[str, ...],
    priority: int,
) -> None:
    """Add or override strategy NAME."""
    from pondctl.core.config.strategy_loader import add_custom_strategy
    from pondctl.core.models.stack import StackStrategy
    from pondctl.core.services.discovery import normalize_tag

    markers = _split(match_files)
    if not markers:
        click.secho("❌ At least one --match file is required", fg="red")
        sys.exit(1)

    new = StackStrategy(
        name=name,
        match_files=markers,
        artifacts=_split(artifacts),
        tags=[normalize_tag(t) for t in _split(tags)],
        priority=priority,
    )
    try:
        path = add_custom_strategy(resolve_config_dir(base_dir(ctx)), new)
    except ValueError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    click.secho(f"✅ Strategy '{name}' saved to {path}", fg="green")
    click.echo("   Run 'pond sync' to re-detect stacks.")


@strategy.command("remove")
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_context
def remove(ctx: click.Context, name: str, yes: bool) -> None:
    """Remove custom strategy NAME (builtins cannot be removed)."""
    from pondctl.core.config.strategy_loader import remove_custom_strategy

    if not yes and not click.confirm(f"Remove strategy '{name}'?", default=False):
        click.echo("Aborted.")
        return

    if remove_custom_strategy(resolve_config_dir(base_dir(ctx)), name) is None:
        click.secho(f"❌ Custom strategy '{name}' not found or is a builtin", fg="red")
        sys.exit(1)

    click.secho(f"✅ Strategy '{name}' removed", fg="green")
