"""
Shared plumbing for CLI commands: workspace resolution, target
selection, progress and report rendering.
"""

from __future__ import annotations

import sys
from contextlib import nullcontext
from pathlib import Path

import click

from pondctl.core.config.loader import ConfigError, discover_workspace, load_config
from pondctl.core.engine.progress import NullProgress
from pondctl.core.errors import WorkspaceNotFoundError
from pondctl.core.models.config import GlobalConfig
from pondctl.core.models.project import ProjectDetail
from pondctl.core.models.report import MultiRepoGitReport
from pondctl.core.models.workspace import Workspace
from pondctl.ui.cli.progress import ClickProgress


def base_dir(ctx: click.Context) -> Path | None:
    return ctx.obj.get("config_dir")


def resolve_workspace(ctx: click.Context) -> Workspace:
    """Discover the workspace or exit with an error message."""
    try:
        return discover_workspace(base_dir=base_dir(ctx))
    except (WorkspaceNotFoundError, ConfigError) as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


def load_settings(ctx: click.Context) -> GlobalConfig:
    """Global config, defaults when none is saved."""
    try:
        return load_config(base_dir(ctx)) or GlobalConfig()
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


def select_targets(
    ctx: click.Context,
    query: str | None,
    tag: str | None,
) -> tuple[Workspace, list[ProjectDetail]]:
    """Resolve projects (cache-aware) and apply the name/tag filter."""
    from pondctl.core.services.project_registry import filter_projects, resolve_projects

    workspace = resolve_workspace(ctx)
    projects = resolve_projects(workspace)
    return workspace, filter_projects(projects, query=query, tag=tag)


def progress_for(ctx: click.Context, total: int, label: str = "", as_json: bool = False):
    """Context manager yielding a ProgressReporter (no-op when quiet or JSON)."""
    if as_json or ctx.obj.get("quiet"):
        return nullcontext(NullProgress())
    return ClickProgress(total, label)


def echo_lines(text: str, limit: int) -> None:
    for line in text.strip().splitlines()[:limit]:
        click.echo(f"     │ {line}")


def render_git_report(report: MultiRepoGitReport, verbose: bool = False) -> None:
    """Pretty-print a multi-repo git report."""
    click.secho(f"\n🌿 git {report.operation}", fg="cyan", bold=True)

    if not report.results:
        click.echo("   Nothing to do.")

    for r in report.results:
        if r.success:
            click.secho(f"   ✓ {r.project_name}", fg="green")
            if verbose and r.stdout:
                echo_lines(r.stdout, 10)
        elif r.skipped:
            click.secho(f"   ⊘ {r.project_name} ", fg="yellow", nl=False)
            click.echo(f"({r.stderr})")
        else:
            click.secho(f"   ✗ {r.project_name}", fg="red")
            if r.stderr:
                echo_lines(r.stderr, 5)

    for note in report.notes:
        click.secho(f"   ⚠️  {note}", fg="yellow")

    click.echo()
    color = "green" if report.all_ok else "red"
    click.secho(
        f"   Result: {report.success_count} ok, {report.fail_count} failed, "
        f"{report.skip_count} skipped",
        fg=color,
        bold=True,
    )
    click.echo()
