"""
pondctl — CLI entrypoint.

Usage:
    pond --help
    pond status
    pond do "cargo check" --tag rust --fail-fast
    pond ggit commit "bump deps" --cascade
"""

from __future__ import annotations

import json
import sys
from collections import Counter
from pathlib import Path

import click

from pondctl import __version__
from pondctl.core.models.project import VcsStatus
from pondctl.core.observability.logging_config import setup_logging
from pondctl.ui.cli.helpers import (
    echo_lines,
    load_settings,
    progress_for,
    resolve_workspace,
    select_targets,
)

CONFIRM_WORD = "PROCEED"


@click.group()
@click.version_option(version=__version__, prog_name="pond")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config-dir",
    "config_dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Configuration directory (default: $POND_CONFIG_DIR or ~/.pond).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_dir: str | None,
) -> None:
    """pondctl — run commands and git operations across your projects."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_dir"] = Path(config_dir) if config_dir else None

    setup_logging(debug=debug, verbose=verbose, quiet=quiet)


# ── Registry ────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show a summary of the ecosystem."""
    from pondctl.core.services.project_registry import resolve_projects

    workspace = resolve_workspace(ctx)
    projects = resolve_projects(workspace)

    tiers = Counter(p.activity.value for p in projects)
    stacks = Counter(p.stack for p in projects)
    dirty = [p.name for p in projects if p.vcs_status == VcsStatus.DIRTY]

    if as_json:
        click.echo(json.dumps({
            "root": str(workspace.root),
            "context": workspace.active_context,
            "project_count": len(projects),
            "tiers": dict(tiers),
            "stacks": dict(stacks),
            "dirty": dirty,
        }, indent=2))
        return

    click.secho(f"\n🌊 {workspace.root}", fg="cyan", bold=True)
    if workspace.active_context:
        click.echo(f"   Context: {workspace.active_context}")
    click.echo(f"   Projects: {len(projects)}")
    click.echo()

    if tiers:
        click.secho("   Activity:", fg="white", bold=True)
        for tier, count in sorted(tiers.items()):
            click.echo(f"     • {tier}: {count}")
    if stacks:
        click.secho("   Stacks:", fg="white", bold=True)
        for stack, count in stacks.most_common():
            click.echo(f"     • {stack}: {count}")
    if dirty:
        click.echo()
        click.secho(f"   ⚠️  Uncommitted changes in {len(dirty)} projects:", fg="yellow")
        for name in dirty:
            click.echo(f"     • {name}")
    click.echo()


@cli.command()
@click.pass_context
def sync(ctx: click.Context) -> None:
    """Rescan the projects directory and rebuild the registry."""
    from pondctl.core.services.project_registry import rebuild_registry

    workspace = resolve_workspace(ctx)
    registry = rebuild_registry(workspace)

    click.secho(f"🔄 Registry rebuilt: {len(registry.projects)} projects", fg="green")
    if ctx.obj.get("verbose"):
        click.echo(f"   Fingerprint: {registry.fingerprint:#018x}")
        click.echo(f"   Saved to:    {workspace.registry_path}")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def doctor(ctx: click.Context, as_json: bool) -> None:
    """Check registry freshness and submodule health."""
    from pondctl.core.services.doctor import run_health_check

    workspace = resolve_workspace(ctx)
    report = run_health_check(workspace)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    def line(ok: bool, text: str) -> None:
        click.secho(f"   {'✅' if ok else '⚠️ '} {text}", fg="green" if ok else "yellow")

    click.secho(f"\n🩺 {workspace.root}", fg="cyan", bold=True)
    line(report.projects_dir_exists, "Projects directory present")
    if report.registry_fresh:
        line(True, "Registry is fresh (fingerprint match)")
    else:
        line(False, "Registry is stale (fingerprint mismatch)")
    line(report.project_count > 0, f"Registry holds {report.project_count} projects")
    line(report.uninitialized_submodules == 0,
         f"{report.uninitialized_submodules} uninitialized submodules")
    line(report.dirty_submodules == 0,
         f"{report.dirty_submodules} submodules with uncommitted changes")
    if ctx.obj.get("verbose"):
        click.echo(f"   Fingerprint: stored {report.stored_fingerprint:#018x}, "
                   f"current {report.current_fingerprint:#018x}")

    click.echo()
    if report.healthy:
        click.secho("   All checks passed.", fg="green", bold=True)
    else:
        click.secho(f"   {len(report.warnings)} warnings", fg="yellow", bold=True)
    click.echo()


@cli.command()
@click.argument("query")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def reveal(ctx: click.Context, query: str, as_json: bool) -> None:
    """Find projects whose name contains QUERY."""
    from pondctl.core.services.project_registry import find_projects, resolve_projects

    workspace = resolve_workspace(ctx)
    matches = find_projects(resolve_projects(workspace), query)

    if as_json:
        click.echo(json.dumps([p.model_dump(mode="json") for p in matches], indent=2))
        return

    if not matches:
        click.secho(f"No projects match '{query}'.", fg="yellow")
        return

    for p in matches:
        click.secho(f"\n📦 {p.name} ", fg="cyan", bold=True, nl=False)
        click.echo(f"[{p.stack}] {p.activity.value} · {p.vcs_status.value}")
        click.echo(f"   {p.path}")
        if p.tags:
            click.echo(f"   {' '.join(p.tags)}")
        if p.essence:
            click.echo(f"   {p.essence}")
        for sub in p.submodules:
            marker = " (drift)" if sub.drifted else "" if sub.initialized else " (uninitialized)"
            click.echo(f"     ↳ {sub.name}{marker}")
    click.echo()


# ── Batch execution ─────────────────────────────────────────────


@cli.command("do")
@click.argument("command")
@click.option("--query", "-q", default=None, help="Only projects whose name contains this.")
@click.option("--tag", "-t", default=None, help="Only projects with this tag.")
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation for destructive commands.")
@click.option("--dry-run", "-d", is_flag=True, help="Show what would run without running it.")
@click.option("--fail-fast", "-f", is_flag=True, help="Skip remaining projects after a failure.")
@click.option("--timeout", type=int, default=None, help="Per-project timeout in seconds.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def do_command(
    ctx: click.Context,
    command: str,
    query: str | None,
    tag: str | None,
    yes: bool,
    dry_run: bool,
    fail_fast: bool,
    timeout: int | None,
    as_json: bool,
) -> None:
    """Run COMMAND in every selected project, in parallel.

    Examples:

        pond do "git fetch" --tag rust

        pond do "npm test" -q web --fail-fast --timeout 120
    """
    from pondctl.core.engine.executor import execute_batch, write_audit_entry
    from pondctl.core.persistence.audit import AuditWriter
    from pondctl.core.services.safety import is_destructive, is_stack_mismatch

    settings = load_settings(ctx)
    workspace, targets = select_targets(ctx, query, tag)

    if not targets:
        click.secho("No projects match the filter.", fg="yellow")
        return

    if is_destructive(command) and not (yes or dry_run):
        click.secho(f"⚠️  '{command}' looks destructive.", fg="yellow", bold=True)
        click.echo(f"   It will run in {len(targets)} projects.")
        answer = click.prompt(f"   Type {CONFIRM_WORD} to continue", default="", show_default=False)
        if answer != CONFIRM_WORD:
            click.secho("Aborted.", fg="red")
            sys.exit(1)

    if not as_json:
        for p in targets:
            if is_stack_mismatch(command, p.stack):
                click.secho(f"   ⚠️  {p.name} is a {p.stack} project", fg="yellow")

    with progress_for(ctx, len(targets), "Running", as_json) as progress:
        report = execute_batch(
            targets,
            command,
            fail_fast=fail_fast,
            timeout=settings.batch_timeout if timeout is None else timeout,
            max_workers=settings.max_workers,
            dry_run=dry_run,
            progress=progress,
        )

    if not dry_run:
        if not write_audit_entry(report, len(targets), AuditWriter(config_dir=workspace.config_dir)):
            click.secho("⚠️  Audit entry could not be written", fg="yellow", err=True)

    report = report.sorted()

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        if report.fail_count:
            sys.exit(1)
        return

    mode_label = "[dry-run] " if dry_run else ""
    click.secho(f"\n⚡ {mode_label}{command}", fg="cyan", bold=True)
    click.echo(f"   Projects: {len(targets)}")
    click.echo()

    verbose = ctx.obj.get("verbose")
    for outcome in report.results:
        timing = f" ({outcome.duration_ms}ms)" if outcome.duration_ms else ""
        if outcome.ok:
            click.secho(f"   ✓ {outcome.project_name}", fg="green", nl=False)
            click.echo(timing)
            if verbose and outcome.stdout:
                echo_lines(outcome.stdout, 10)
        elif outcome.skipped:
            click.secho(f"   ⊘ {outcome.project_name} ", fg="yellow", nl=False)
            click.echo(f"({outcome.stderr})")
        elif outcome.timed_out:
            click.secho(f"   ⏱ {outcome.project_name}", fg="red", nl=False)
            click.echo(" timed out")
        else:
            click.secho(f"   ✗ {outcome.project_name}", fg="red", nl=False)
            click.echo(f" exit {outcome.exit_code}{timing}")
            if outcome.stderr:
                echo_lines(outcome.stderr, 5)

    click.echo()
    color = "green" if report.all_ok else "red"
    click.secho(
        f"   Result: {report.success_count} ok, {report.fail_count} failed, "
        f"{report.skip_count} skipped",
        fg=color,
        bold=True,
    )
    click.echo()

    if report.fail_count:
        sys.exit(1)


# ── Tags ────────────────────────────────────────────────────────


def _tag_targets(ctx: click.Context, names: tuple[str, ...], query: str | None) -> list[str]:
    from pondctl.core.services.project_registry import filter_projects, resolve_projects

    workspace = resolve_workspace(ctx)
    projects = resolve_projects(workspace)
    known = {p.name for p in projects}

    selected = list(names)
    if query:
        selected.extend(p.name for p in filter_projects(projects, query=query))

    for name in selected:
        if name not in known:
            click.secho(f"⚠️  Unknown project: {name}", fg="yellow")
    return sorted({n for n in selected if n in known})


@cli.command()
@click.argument("tag_name")
@click.argument("names", nargs=-1)
@click.option("--query", "-q", default=None, help="Also tag projects whose name contains this.")
@click.pass_context
def tag(ctx: click.Context, tag_name: str, names: tuple[str, ...], query: str | None) -> None:
    """Add TAG_NAME to the named projects."""
    from pondctl.core.services.discovery import normalize_tag
    from pondctl.core.services.project_registry import tag_projects

    selected = _tag_targets(ctx, names, query)
    if not selected:
        click.secho("No projects selected.", fg="yellow")
        sys.exit(1)

    tag_projects(resolve_workspace(ctx), selected, tag_name)
    click.secho(f"🏷️  {normalize_tag(tag_name)} → {len(selected)} projects", fg="green")


@cli.command()
@click.argument("tag_name")
@click.argument("names", nargs=-1)
@click.option("--query", "-q", default=None, help="Also untag projects whose name contains this.")
@click.pass_context
def untag(ctx: click.Context, tag_name: str, names: tuple[str, ...], query: str | None) -> None:
    """Remove TAG_NAME from the named projects."""
    from pondctl.core.services.discovery import normalize_tag
    from pondctl.core.services.project_registry import untag_projects

    selected = _tag_targets(ctx, names, query)
    if not selected:
        click.secho("No projects selected.", fg="yellow")
        sys.exit(1)

    untag_projects(resolve_workspace(ctx), selected, tag_name)
    click.secho(f"🏷️  {normalize_tag(tag_name)} removed from {len(selected)} projects", fg="green")


@cli.command()
@click.pass_context
def harvest(ctx: click.Context) -> None:
    """Tag every project with its detected stack."""
    from pondctl.core.services.project_registry import harvest_tags, resolve_projects

    workspace = resolve_workspace(ctx)
    tagged = harvest_tags(workspace, resolve_projects(workspace))
    click.secho(f"🏷️  Stack tags applied to {len(tagged)} projects", fg="green")


# ── Register sub-command groups from pondctl/ui/cli/ ─────────────

from pondctl.ui.cli.context import context  # noqa: E402
from pondctl.ui.cli.git import ggit  # noqa: E402
from pondctl.ui.cli.strategy import strategy  # noqa: E402

cli.add_command(context)
cli.add_command(ggit)
cli.add_command(strategy)


if __name__ == "__main__":
    cli()
