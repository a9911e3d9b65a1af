"""
Git operations — single-repository primitives.

Every mutating primitive returns a GitOperationResult instead of
raising: a rejected push or a failed commit is a per-target outcome
that the orchestrator records and aggregates. Helpers whose output is
required to continue (branch name lookups) raise VcsOperationError.

Git invocations are not timed: they are assumed fast relative to
arbitrary shell commands.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from pondctl.core.errors import VcsOperationError
from pondctl.core.models.project import SubmoduleRef, VcsStatus
from pondctl.core.models.report import GitOperationResult, PreflightResult

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Low-level runners
# ═══════════════════════════════════════════════════════════════════


def run_git(
    *args: str,
    cwd: Path,
    timeout: int | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a git command and return the result.

    ``--no-optional-locks`` keeps read-only calls such as ``status`` from
    refreshing .git/index, whose mtime is part of the workspace fingerprint.
    """
    return subprocess.run(
        ["git", "--no-optional-locks", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def git_output(*args: str, cwd: Path) -> str:
    """Run a git command and return stripped stdout.

    Raises:
        VcsOperationError: On a non-zero exit or if git cannot start.
    """
    try:
        r = run_git(*args, cwd=cwd)
    except OSError as e:
        raise VcsOperationError(f"git {args[0]} failed in {cwd}: {e}") from e
    if r.returncode != 0:
        raise VcsOperationError(r.stderr.strip() or f"git {args[0]} failed in {cwd}")
    return r.stdout.strip()


def git_result(path: Path, args: list[str], name: str, operation: str) -> GitOperationResult:
    """Run a git command and capture it as a GitOperationResult."""
    logger.debug("git %s (%s)", " ".join(args), path)
    try:
        r = run_git(*args, cwd=path)
    except OSError as e:
        return GitOperationResult(
            project_name=name, operation=operation, success=False, stderr=str(e)
        )
    return GitOperationResult(
        project_name=name,
        operation=operation,
        success=r.returncode == 0,
        stdout=r.stdout.strip(),
        stderr=r.stderr.strip(),
    )


def is_repo(path: Path) -> bool:
    return (path / ".git").exists()


# ═══════════════════════════════════════════════════════════════════
#  Read-only queries
# ═══════════════════════════════════════════════════════════════════


def check_status(path: Path) -> VcsStatus:
    """Classify the working tree from ``git status --porcelain``."""
    if not is_repo(path):
        return VcsStatus.NONE

    try:
        r = run_git("status", "--porcelain", cwd=path)
    except OSError:
        return VcsStatus.NONE
    if r.returncode != 0:
        return VcsStatus.NONE

    lines = [ln for ln in r.stdout.splitlines() if ln.strip()]
    if not lines:
        return VcsStatus.CLEAN
    if all(ln.startswith("??") for ln in lines):
        return VcsStatus.UNTRACKED
    return VcsStatus.DIRTY


def is_dirty(path: Path) -> bool:
    """Anything that ``git add -A`` would stage."""
    return check_status(path) in (VcsStatus.DIRTY, VcsStatus.UNTRACKED)


def current_branch(path: Path) -> str:
    return git_output("rev-parse", "--abbrev-ref", "HEAD", cwd=path)


def head_commit(path: Path) -> str:
    """Full SHA of HEAD, or '' if there is none."""
    try:
        r = run_git("rev-parse", "HEAD", cwd=path)
    except OSError:
        return ""
    return r.stdout.strip() if r.returncode == 0 else ""


def has_remote(path: Path) -> bool:
    try:
        r = run_git("remote", cwd=path)
    except OSError:
        return False
    return r.returncode == 0 and bool(r.stdout.strip())


def ahead_behind(path: Path) -> tuple[int, int] | None:
    """Commits ahead of / behind the upstream, or None without one."""
    try:
        r = run_git("rev-list", "--left-right", "--count", "HEAD...@{upstream}", cwd=path)
    except OSError:
        return None
    if r.returncode != 0:
        return None
    parts = r.stdout.split()
    if len(parts) != 2:
        return None
    return int(parts[0]), int(parts[1])


def is_ancestor(path: Path, ancestor: str, descendant: str) -> bool:
    try:
        r = run_git("merge-base", "--is-ancestor", ancestor, descendant, cwd=path)
    except OSError:
        return False
    return r.returncode == 0


def expected_submodule_commit(parent: Path, sub_path: str) -> str:
    """Commit the parent's HEAD tree records for a submodule path."""
    try:
        r = run_git("ls-tree", "HEAD", sub_path, cwd=parent)
    except OSError:
        return ""
    if r.returncode != 0 or not r.stdout.strip():
        return ""
    # <mode> commit <sha>\t<path>
    fields = r.stdout.split()
    return fields[2] if len(fields) >= 3 else ""


def list_local_branches(path: Path) -> list[str]:
    out = git_output("branch", "--list", "--no-color", "--format=%(refname:short)", cwd=path)
    return [b.strip() for b in out.splitlines() if b.strip()]


def list_remote_branches(path: Path) -> list[str]:
    out = git_output("branch", "-r", "--no-color", "--format=%(refname:short)", cwd=path)
    return [b.strip() for b in out.splitlines() if b.strip() and not b.endswith("/HEAD")]


def _gitmodules_names(project: Path) -> dict[str, str]:
    """Map submodule path → name from .gitmodules."""
    if not (project / ".gitmodules").is_file():
        return {}
    try:
        r = run_git(
            "config", "--file", ".gitmodules", "--get-regexp", r"^submodule\..*\.path$",
            cwd=project,
        )
    except OSError:
        return {}
    names: dict[str, str] = {}
    for line in r.stdout.splitlines():
        key, _, sub_path = line.partition(" ")
        # submodule.<name>.path
        name = key[len("submodule."):-len(".path")]
        names[sub_path.strip()] = name
    return names


def list_submodules(project: Path) -> list[SubmoduleRef]:
    """Describe a project's submodules, in ``git submodule status`` order."""
    if not is_repo(project) or not (project / ".gitmodules").is_file():
        return []

    try:
        r = run_git("submodule", "status", cwd=project)
    except OSError:
        return []
    if r.returncode != 0:
        logger.debug("git submodule status failed in %s: %s", project, r.stderr.strip())
        return []

    names = _gitmodules_names(project)
    subs: list[SubmoduleRef] = []
    for line in r.stdout.splitlines():
        if not line.strip():
            continue
        # "<prefix><sha> <path> (<describe>)"; prefix is ' ', '-', '+', or 'U'
        prefix, rest = line[0], line[1:]
        fields = rest.split()
        if len(fields) < 2:
            continue
        sub_path = fields[1]
        initialized = prefix != "-"
        sub_dir = project / sub_path
        subs.append(
            SubmoduleRef(
                name=names.get(sub_path, Path(sub_path).name),
                path=sub_path,
                vcs_status=check_status(sub_dir) if initialized else VcsStatus.NONE,
                initialized=initialized,
                expected_commit=expected_submodule_commit(project, sub_path),
                actual_commit=head_commit(sub_dir) if initialized else "",
            )
        )
    return subs


# ═══════════════════════════════════════════════════════════════════
#  Mutating operations
# ═══════════════════════════════════════════════════════════════════


def commit(path: Path, message: str, name: str) -> GitOperationResult:
    """Stage everything and commit."""
    staged = git_result(path, ["add", "-A"], name, "commit")
    if not staged.success:
        return staged
    return git_result(path, ["commit", "-m", message], name, "commit")


def push(path: Path, name: str) -> GitOperationResult:
    return git_result(path, ["push"], name, "push")


def pull(path: Path, name: str) -> GitOperationResult:
    return git_result(path, ["pull"], name, "pull")


def checkout(path: Path, branch: str, name: str, create: bool = False) -> GitOperationResult:
    args = ["checkout", "-b", branch] if create else ["checkout", branch]
    return git_result(path, args, name, "checkout")


def update_submodule(
    parent: Path,
    sub_path: str,
    name: str,
    force: bool = False,
) -> GitOperationResult:
    """Bring one submodule to the commit its parent records."""
    args = ["submodule", "update", "--init", "--recursive"]
    if force:
        args.append("--force")
    args += ["--", sub_path]
    return git_result(parent, args, name, "align" if force else "pull")


def update_all_submodules(parent: Path, name: str) -> GitOperationResult:
    return git_result(parent, ["submodule", "update", "--init", "--recursive"], name, "sync")


# ═══════════════════════════════════════════════════════════════════
#  Pre-flight
# ═══════════════════════════════════════════════════════════════════


def preflight_check(
    path: Path,
    name: str,
    parent: Path | None = None,
    sub_path: str | None = None,
) -> PreflightResult:
    """Collect the reasons a pull/update here could lose or conflict work.

    For a submodule, also flags a checked-out commit that is not an
    ancestor of the commit the parent expects: updating would orphan it.
    """
    result = PreflightResult(project_name=name)

    if not is_repo(path):
        if parent is not None:
            # Uninitialized submodule: update will simply initialise it.
            return result
        result.issues.append("Not a git repository")
        return result

    if check_status(path) in (VcsStatus.DIRTY, VcsStatus.UNTRACKED):
        result.issues.append("Uncommitted local changes")

    if not has_remote(path):
        result.issues.append("No remote configured")
    else:
        # Detached submodules have no upstream and skip this
        counts = ahead_behind(path)
        if counts is not None and counts[0] > 0 and counts[1] > 0:
            result.issues.append(
                f"Branch has diverged from upstream ({counts[0]} ahead, {counts[1]} behind)"
            )

    if parent is not None and sub_path is not None:
        expected = expected_submodule_commit(parent, sub_path)
        actual = head_commit(path)
        if expected and actual and expected != actual and not is_ancestor(path, actual, expected):
            result.issues.append(
                f"Checked-out commit {actual[:8]} is not contained in expected {expected[:8]}"
            )

    return result
