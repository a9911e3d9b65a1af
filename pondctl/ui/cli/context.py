"""
CLI commands for project contexts — named workspace roots.

Thin wrappers over ``pondctl.core.config.loader``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from pondctl.ui.cli.helpers import base_dir, load_settings


@click.group()
def context() -> None:
    """Project contexts — register and switch workspace roots."""


@context.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_contexts(ctx: click.Context, as_json: bool) -> None:
    """List registered contexts."""
    settings = load_settings(ctx)

    if as_json:
        click.echo(json.dumps({
            "active": settings.active_context,
            "contexts": {
                name: c.model_dump(mode="json") for name, c in settings.project_contexts.items()
            },
        }, indent=2))
        return

    if not settings.project_contexts:
        click.secho("No contexts registered. Use 'pond context add NAME PATH'.", fg="yellow")
        return

    for name, c in sorted(settings.project_contexts.items()):
        if name == settings.active_context:
            click.secho(f"  ● {name}", fg="green", bold=True, nl=False)
        else:
            click.echo(f"    {name}", nl=False)
        click.echo(f"  → {c.path}")
        if c.description:
            click.echo(f"      {c.description}")


@context.command("add")
@click.argument("name")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.option("--description", "-d", default=None, help="Free-form description.")
@click.option("--no-activate", is_flag=True, help="Register without switching to it.")
@click.pass_context
def add(ctx: click.Context, name: str, path: str, description: str | None, no_activate: bool) -> None:
    """Register PATH as context NAME."""
    from pondctl.core.config.loader import ConfigError, add_context

    try:
        config = add_context(
            name, Path(path), description=description,
            activate=not no_activate, base_dir=base_dir(ctx),
        )
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    click.secho(f"✅ Context '{name}' → {config.project_contexts[name].path}", fg="green")
    if config.active_context == name:
        click.echo("   (active)")


@context.command("use")
@click.argument("name")
@click.pass_context
def use(ctx: click.Context, name: str) -> None:
    """Switch the active context."""
    from pondctl.core.config.loader import ConfigError, use_context

    try:
        use_context(name, base_dir=base_dir(ctx))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    click.secho(f"✅ Active context: {name}", fg="green")
