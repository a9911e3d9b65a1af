"""
CLI commands for multi-repository git operations.

Thin wrappers over ``pondctl.core.engine.git_orchestrator``.
"""

from __future__ import annotations

import json
import sys

import click

from pondctl.core.models.report import MultiRepoGitReport
from pondctl.ui.cli.helpers import (
    load_settings,
    progress_for,
    render_git_report,
    select_targets,
)


def _target_options(fn):
    fn = click.option("--tag", "-t", default=None, help="Only projects with this tag.")(fn)
    fn = click.option("--query", "-q", default=None, help="Only projects whose name contains this.")(fn)
    return fn


def _finish(ctx: click.Context, report: MultiRepoGitReport, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        render_git_report(report, verbose=ctx.obj.get("verbose", False))
    if report.fail_count:
        sys.exit(1)


@click.group()
def ggit() -> None:
    """Git across projects — status, commit, push, pull, sync, align."""


# ── Read-only ───────────────────────────────────────────────────


@ggit.command()
@_target_options
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, query: str | None, tag: str | None, as_json: bool) -> None:
    """Show branch, state and submodule drift of each project."""
    from pondctl.core.engine.git_orchestrator import multi_repo_status

    settings = load_settings(ctx)
    _, targets = select_targets(ctx, query, tag)
    statuses = multi_repo_status(targets, max_workers=settings.max_workers)

    if as_json:
        click.echo(json.dumps([s.model_dump(mode="json") for s in statuses], indent=2))
        return

    colors = {"clean": "green", "dirty": "yellow", "untracked": "yellow", "none": "white"}
    for s in statuses:
        click.secho(f"  {s.name}", bold=True, nl=False)
        if s.branch:
            click.secho(f"  🌿 {s.branch}", fg="cyan", nl=False)
        click.secho(f"  {s.vcs_status.value}", fg=colors.get(s.vcs_status.value, "white"), nl=False)
        if s.ahead or s.behind:
            click.echo(f"  ↑{s.ahead} ↓{s.behind}", nl=False)
        click.echo()
        for sub in s.submodules:
            marker = " (drift)" if sub.drifted else "" if sub.initialized else " (uninitialized)"
            click.echo(f"     ↳ {sub.name}  {sub.vcs_status.value}{marker}")


@ggit.command()
@_target_options
@click.option("--remote", "-r", is_flag=True, help="Include remote-tracking branches.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def branches(
    ctx: click.Context, query: str | None, tag: str | None, remote: bool, as_json: bool,
) -> None:
    """List branches of each project."""
    from pondctl.core.engine.git_orchestrator import list_branches

    settings = load_settings(ctx)
    _, targets = select_targets(ctx, query, tag)
    listings = list_branches(targets, include_remote=remote, max_workers=settings.max_workers)

    if as_json:
        click.echo(json.dumps([b.model_dump(mode="json") for b in listings], indent=2))
        return

    for b in listings:
        click.secho(f"\n  {b.name}", bold=True)
        for branch in b.local:
            marker = "*" if branch == b.current else " "
            click.echo(f"   {marker} {branch}")
        for branch in b.remote:
            click.secho(f"     {branch}", fg="blue")
        for sub, branch in b.submodule_branches.items():
            click.echo(f"     ↳ {sub}: {branch or '(detached)'}")
    click.echo()


# ── Mutating ────────────────────────────────────────────────────


@ggit.command()
@click.argument("message")
@_target_options
@click.option("--cascade", "-c", is_flag=True, help="Also commit the projects directory (hub root).")
@click.option("--fail-fast", "-f", is_flag=True, help="Stop at the first failure.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def commit(
    ctx: click.Context,
    message: str,
    query: str | None,
    tag: str | None,
    cascade: bool,
    fail_fast: bool,
    as_json: bool,
) -> None:
    """Commit dirty submodules, then projects, with MESSAGE."""
    from pondctl.core.engine.git_orchestrator import commit_all

    workspace, targets = select_targets(ctx, query, tag)
    with progress_for(ctx, len(targets), "Committing", as_json) as progress:
        report = commit_all(
            targets, message,
            cascade=cascade, hub_dir=workspace.projects_dir,
            fail_fast=fail_fast, progress=progress,
        )
    _finish(ctx, report, as_json)


@ggit.command()
@_target_options
@click.option("--fail-fast", "-f", is_flag=True, help="Stop at the first failure.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def push(ctx: click.Context, query: str | None, tag: str | None, fail_fast: bool, as_json: bool) -> None:
    """Push submodules, then their projects."""
    from pondctl.core.engine.git_orchestrator import push_all

    _, targets = select_targets(ctx, query, tag)
    with progress_for(ctx, len(targets), "Pushing", as_json) as progress:
        report = push_all(targets, fail_fast=fail_fast, progress=progress)
    _finish(ctx, report, as_json)


@ggit.command()
@_target_options
@click.option("--fail-fast", "-f", is_flag=True, help="Stop at the first failure.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def pull(ctx: click.Context, query: str | None, tag: str | None, fail_fast: bool, as_json: bool) -> None:
    """Pull projects, then update their submodules."""
    from pondctl.core.engine.git_orchestrator import pull_all

    _, targets = select_targets(ctx, query, tag)
    with progress_for(ctx, len(targets), "Pulling", as_json) as progress:
        report = pull_all(targets, fail_fast=fail_fast, progress=progress)
    _finish(ctx, report, as_json)


@ggit.command()
@click.argument("branch")
@_target_options
@click.option("--create", "-b", is_flag=True, help="Create the branch.")
@click.option("--fail-fast", "-f", is_flag=True, help="Stop at the first failure.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def checkout(
    ctx: click.Context,
    branch: str,
    query: str | None,
    tag: str | None,
    create: bool,
    fail_fast: bool,
    as_json: bool,
) -> None:
    """Check out BRANCH in projects and their submodules."""
    from pondctl.core.engine.git_orchestrator import checkout_all

    _, targets = select_targets(ctx, query, tag)
    with progress_for(ctx, len(targets), "Checking out", as_json) as progress:
        report = checkout_all(targets, branch, create=create, fail_fast=fail_fast, progress=progress)
    _finish(ctx, report, as_json)


@ggit.command("sync")
@_target_options
@click.option("--force", is_flag=True, help="Proceed despite pre-flight issues.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def sync_repos(ctx: click.Context, query: str | None, tag: str | None, force: bool, as_json: bool) -> None:
    """Safety-check, then pull projects and update submodules recursively."""
    from pondctl.core.engine.git_orchestrator import sync_all
    from pondctl.core.errors import SafetyRefusal

    _, targets = select_targets(ctx, query, tag)
    try:
        with progress_for(ctx, len(targets), "Syncing", as_json) as progress:
            report = sync_all(targets, force=force, progress=progress)
    except SafetyRefusal as e:
        if as_json:
            click.echo(json.dumps({
                "refused": str(e),
                "issues": [r.model_dump(mode="json") for r in e.failing],
            }, indent=2))
        else:
            click.secho(f"🛑 {e}", fg="red", bold=True)
            for r in e.failing:
                click.secho(f"   ✗ {r.project_name}", fg="red")
                for issue in r.issues:
                    click.echo(f"     • {issue}")
            click.echo()
            click.echo("   Nothing was changed. Resolve the issues or re-run with --force.")
        sys.exit(1)
    _finish(ctx, report, as_json)


@ggit.command()
@_target_options
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def align(ctx: click.Context, query: str | None, tag: str | None, as_json: bool) -> None:
    """Reset submodules to the commits their projects expect."""
    from pondctl.core.engine.git_orchestrator import align_all

    _, targets = select_targets(ctx, query, tag)
    with progress_for(ctx, len(targets), "Aligning", as_json) as progress:
        report = align_all(targets, progress=progress)
    _finish(ctx, report, as_json)
