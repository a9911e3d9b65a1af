"""
Git orchestrator — sequence git operations across projects and submodules.

Mutating operations walk the targets strictly sequentially. A
submodule lives inside its parent's working tree, so a parent and its
own submodules are never touched concurrently. Only read-only listings
(status, branches) fan out across top-level projects.

Ordering rules:
    commit    dirty submodules → project → (cascade) hub root
    push      submodules → project   (pointer targets reach the remote first)
    pull      project → submodules   (.gitmodules/refs must be current first)
    checkout  project → submodules
    sync      pre-flight everything → pull project → update submodules
    align     each submodule independently

Results are returned in the order operations were attempted. Fail-fast
is checked between operations; it never interrupts a running git call.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from pondctl.core.engine.progress import NullProgress, ProgressReporter
from pondctl.core.errors import SafetyRefusal, VcsOperationError
from pondctl.core.models.project import ProjectDetail, SubmoduleRef
from pondctl.core.models.report import (
    BranchListing,
    GitOperationResult,
    MultiRepoGitReport,
    PreflightResult,
    RepoStatus,
    SubmoduleStatus,
)
from pondctl.core.services import git_ops

logger = logging.getLogger(__name__)

HUB_ROOT = "Hub Root"
SUBMODULE_FAILED = "Skipped: a submodule commit failed"
NOT_A_REPO = "Not a git repository"


def submodule_label(project: ProjectDetail, sub: SubmoduleRef) -> str:
    return f"{project.name} > {sub.name}"


def _skipped(name: str, operation: str, reason: str) -> GitOperationResult:
    return GitOperationResult(
        project_name=name, operation=operation, success=False, skipped=True, stderr=reason
    )


def _record(report: MultiRepoGitReport, result: GitOperationResult) -> bool:
    """Append a result; True if it failed."""
    report.results.append(result)
    status = "ok" if result.success else "skipped" if result.skipped else "FAILED"
    logger.info("%s %s → %s", report.operation, result.project_name, status)
    if result.failed and result.stderr:
        logger.debug("%s: %s", result.project_name, result.stderr)
    return result.failed


# ═══════════════════════════════════════════════════════════════════
#  Read-only (parallel across top-level projects)
# ═══════════════════════════════════════════════════════════════════


def _repo_status(project: ProjectDetail) -> RepoStatus:
    status = RepoStatus(name=project.name, vcs_status=git_ops.check_status(project.path))
    if not git_ops.is_repo(project.path):
        return status

    try:
        status.branch = git_ops.current_branch(project.path)
    except VcsOperationError:
        status.branch = ""

    counts = git_ops.ahead_behind(project.path)
    if counts is not None:
        status.ahead, status.behind = counts

    status.submodules = [
        SubmoduleStatus(
            name=sub.name,
            vcs_status=sub.vcs_status,
            initialized=sub.initialized,
            drifted=sub.drifted,
        )
        for sub in git_ops.list_submodules(project.path)
    ]
    return status


def multi_repo_status(
    targets: list[ProjectDetail],
    max_workers: int | None = None,
) -> list[RepoStatus]:
    """Live status of every target, in input order."""
    if not targets:
        return []
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="pond-status") as pool:
        return list(pool.map(_repo_status, targets))


def _branch_listing(project: ProjectDetail, include_remote: bool) -> BranchListing:
    listing = BranchListing(name=project.name)
    if not git_ops.is_repo(project.path):
        return listing

    try:
        listing.current = git_ops.current_branch(project.path)
        listing.local = git_ops.list_local_branches(project.path)
        if include_remote:
            listing.remote = git_ops.list_remote_branches(project.path)
    except VcsOperationError as e:
        logger.warning("Cannot list branches of %s: %s", project.name, e)

    for sub in project.submodules:
        try:
            branch = git_ops.current_branch(project.submodule_path(sub))
        except VcsOperationError:
            branch = ""
        listing.submodule_branches[sub.name] = branch
    return listing


def list_branches(
    targets: list[ProjectDetail],
    include_remote: bool = False,
    max_workers: int | None = None,
) -> list[BranchListing]:
    """Branches of every target, in input order."""
    if not targets:
        return []
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="pond-branches") as pool:
        return list(pool.map(lambda p: _branch_listing(p, include_remote), targets))


# ═══════════════════════════════════════════════════════════════════
#  Commit (with optional cascade to the hub root)
# ═══════════════════════════════════════════════════════════════════


def commit_all(
    targets: list[ProjectDetail],
    message: str,
    *,
    cascade: bool = False,
    hub_dir: Path | None = None,
    fail_fast: bool = False,
    progress: ProgressReporter | None = None,
) -> MultiRepoGitReport:
    """Commit dirty submodules, then their projects, then optionally the hub.

    A project is never committed if one of its submodules failed to
    commit. The hub root commit embeds every project's pointer, so it
    is refused outright if any commit anywhere failed.
    """
    report = MultiRepoGitReport(operation="commit")
    progress = progress or NullProgress()
    any_failed = False
    any_committed = False

    for project in targets:
        progress.set_message(f"Committing {project.name}")
        sub_failed = False

        for sub in project.submodules:
            if not sub.initialized:
                continue
            sub_dir = project.submodule_path(sub)
            if not git_ops.is_dirty(sub_dir):
                continue
            if _record(report, git_ops.commit(sub_dir, message, submodule_label(project, sub))):
                sub_failed = True
                any_failed = True
                if fail_fast:
                    break
            else:
                any_committed = True

        if sub_failed:
            logger.warning("Not committing %s: a submodule commit failed", project.name)
            _record(report, _skipped(project.name, "commit", SUBMODULE_FAILED))
            report.notes.append(f"{project.name}: not committed because a submodule commit failed")
        elif git_ops.is_dirty(project.path):
            if _record(report, git_ops.commit(project.path, message, project.name)):
                any_failed = True
            else:
                any_committed = True

        progress.increment()
        if fail_fast and any_failed:
            report.notes.append("Stopped early (fail-fast)")
            break

    if cascade:
        _cascade(report, message, hub_dir, any_committed, any_failed)

    progress.finish()
    return report


def _cascade(
    report: MultiRepoGitReport,
    message: str,
    hub_dir: Path | None,
    any_committed: bool,
    any_failed: bool,
) -> None:
    if any_failed:
        report.notes.append(
            "Cascade refused: a commit failed, so the hub root would record "
            "an inconsistent submodule pointer"
        )
        return
    if not any_committed:
        report.notes.append("Cascade skipped: nothing was committed")
        return
    if hub_dir is None or not git_ops.is_repo(hub_dir):
        report.notes.append("Cascade skipped: the projects directory is not a git repository")
        return
    if not git_ops.is_dirty(hub_dir):
        report.notes.append("Cascade skipped: hub root has no changes")
        return
    _record(report, git_ops.commit(hub_dir, message, HUB_ROOT))


# ═══════════════════════════════════════════════════════════════════
#  Push / Pull / Checkout
# ═══════════════════════════════════════════════════════════════════


def push_all(
    targets: list[ProjectDetail],
    *,
    fail_fast: bool = False,
    progress: ProgressReporter | None = None,
) -> MultiRepoGitReport:
    """Push each project's submodules, then the project."""
    report = MultiRepoGitReport(operation="push")
    progress = progress or NullProgress()

    for project in targets:
        progress.set_message(f"Pushing {project.name}")
        if not git_ops.is_repo(project.path):
            _record(report, _skipped(project.name, "push", NOT_A_REPO))
            progress.increment()
            continue

        for sub in project.submodules:
            if not sub.initialized:
                continue
            label = submodule_label(project, sub)
            if _record(report, git_ops.push(project.submodule_path(sub), label)) and fail_fast:
                return _stop(report, progress)

        if _record(report, git_ops.push(project.path, project.name)) and fail_fast:
            return _stop(report, progress)
        progress.increment()

    progress.finish()
    return report


def pull_all(
    targets: list[ProjectDetail],
    *,
    fail_fast: bool = False,
    progress: ProgressReporter | None = None,
) -> MultiRepoGitReport:
    """Pull each project, then bring its submodules to the recorded commits."""
    report = MultiRepoGitReport(operation="pull")
    progress = progress or NullProgress()

    for project in targets:
        progress.set_message(f"Pulling {project.name}")
        if not git_ops.is_repo(project.path):
            _record(report, _skipped(project.name, "pull", NOT_A_REPO))
            progress.increment()
            continue

        if _record(report, git_ops.pull(project.path, project.name)) and fail_fast:
            return _stop(report, progress)

        for sub in project.submodules:
            label = submodule_label(project, sub)
            result = git_ops.update_submodule(project.path, sub.path, label)
            if _record(report, result) and fail_fast:
                return _stop(report, progress)
        progress.increment()

    progress.finish()
    return report


def checkout_all(
    targets: list[ProjectDetail],
    branch: str,
    *,
    create: bool = False,
    fail_fast: bool = False,
    progress: ProgressReporter | None = None,
) -> MultiRepoGitReport:
    """Check out ``branch`` in each project, then in each of its submodules."""
    report = MultiRepoGitReport(operation="checkout")
    progress = progress or NullProgress()

    for project in targets:
        progress.set_message(f"Checking out {branch} in {project.name}")
        if not git_ops.is_repo(project.path):
            _record(report, _skipped(project.name, "checkout", NOT_A_REPO))
            progress.increment()
            continue

        if _record(report, git_ops.checkout(project.path, branch, project.name, create)) and fail_fast:
            return _stop(report, progress)

        for sub in project.submodules:
            if not sub.initialized:
                continue
            label = submodule_label(project, sub)
            result = git_ops.checkout(project.submodule_path(sub), branch, label, create)
            if _record(report, result) and fail_fast:
                return _stop(report, progress)
        progress.increment()

    progress.finish()
    return report


def _stop(report: MultiRepoGitReport, progress: ProgressReporter) -> MultiRepoGitReport:
    report.notes.append("Stopped early (fail-fast)")
    progress.finish()
    return report


# ═══════════════════════════════════════════════════════════════════
#  Sync / Align
# ═══════════════════════════════════════════════════════════════════


def preflight_all(targets: list[ProjectDetail]) -> list[PreflightResult]:
    """Safety check every project and every submodule. Mutates nothing."""
    results: list[PreflightResult] = []
    for project in targets:
        results.append(git_ops.preflight_check(project.path, project.name))
        for sub in project.submodules:
            results.append(
                git_ops.preflight_check(
                    project.submodule_path(sub),
                    submodule_label(project, sub),
                    parent=project.path,
                    sub_path=sub.path,
                )
            )
    return results


def sync_all(
    targets: list[ProjectDetail],
    *,
    force: bool = False,
    progress: ProgressReporter | None = None,
) -> MultiRepoGitReport:
    """Pull every project and update its submodules recursively.

    Raises:
        SafetyRefusal: If any pre-flight issue exists and ``force`` is
            False. Nothing has been mutated when this is raised.
    """
    progress = progress or NullProgress()
    progress.set_message("Running safety checks")
    preflight = preflight_all(targets)
    issues = [r for r in preflight if r.issues]

    report = MultiRepoGitReport(operation="sync")
    if issues:
        if not force:
            progress.finish()
            raise SafetyRefusal(
                f"Safety checks failed for {len(issues)} repositories", preflight
            )
        report.notes.append(f"Pre-flight issues ignored for {len(issues)} repositories (force)")

    for project in targets:
        progress.set_message(f"Syncing {project.name}")
        _record(report, git_ops.pull(project.path, project.name))
        if project.submodules:
            _record(
                report,
                git_ops.update_all_submodules(project.path, f"{project.name} (submodules)"),
            )
        progress.increment()

    progress.finish()
    return report


def align_all(
    targets: list[ProjectDetail],
    progress: ProgressReporter | None = None,
) -> MultiRepoGitReport:
    """Force every submodule to the commit its parent expects.

    Each submodule is independent: one failure does not block siblings.
    """
    report = MultiRepoGitReport(operation="align")
    progress = progress or NullProgress()

    for project in targets:
        if not project.submodules:
            continue
        progress.set_message(f"Aligning submodules of {project.name}")
        for sub in project.submodules:
            label = submodule_label(project, sub)
            _record(report, git_ops.update_submodule(project.path, sub.path, label, force=True))
        progress.increment()

    progress.finish()
    return report
