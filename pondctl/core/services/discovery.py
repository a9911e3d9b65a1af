"""
Discovery service — scan the projects directory into ProjectDetail values.

Each non-hidden immediate subdirectory of ``projects/`` is one project.
Stack, artifact dirs, and stack tags come from the first matching row
of the strategy table; user tags come from the tag registry.

No persistence here: the registry service decides when to scan and
stores the result.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from pondctl.core.config.strategy_loader import default_strategies, match_strategy
from pondctl.core.models.project import ActivityTier, ProjectDetail
from pondctl.core.models.registry import TagRegistry
from pondctl.core.models.stack import GENERIC_STACK, StackStrategy
from pondctl.core.models.workspace import Workspace
from pondctl.core.services import git_ops
from pondctl.core.services.fingerprint import HIGH_VALUE_FILES

logger = logging.getLogger(__name__)

ACTIVE_DAYS = 30
COLD_DAYS = 180
_DAY = 86400

README_NAMES = ("README.md", "readme.md", "README.markdown")
ESSENCE_MAX = 200


def normalize_tag(tag: str) -> str:
    """Tags are stored ``#``-prefixed."""
    return tag if tag.startswith("#") else f"#{tag}"


def activity_tier(path: Path, now: float | None = None) -> ActivityTier:
    """Classify by the newest mtime among the dir and its marker files."""
    newest = 0.0
    for candidate in (path, *(path / f for f in HIGH_VALUE_FILES)):
        try:
            newest = max(newest, candidate.stat().st_mtime)
        except OSError:
            continue

    age_days = ((now or time.time()) - newest) / _DAY
    if age_days < ACTIVE_DAYS:
        return ActivityTier.ACTIVE
    if age_days < COLD_DAYS:
        return ActivityTier.COLD
    return ActivityTier.ARCHIVE


def extract_essence(path: Path) -> str | None:
    """First few meaningful README lines, capped for listings."""
    for name in README_NAMES:
        readme = path / name
        if not readme.is_file():
            continue
        try:
            content = readme.read_text(encoding="utf-8", errors="ignore")
        except OSError:
            continue
        lines = [
            ln.strip() for ln in content.splitlines()
            if ln.strip() and not ln.strip().startswith("#")
        ][:3]
        if lines:
            combined = " ".join(lines)
            if len(combined) > ESSENCE_MAX:
                return combined[: ESSENCE_MAX - 3] + "..."
            return combined
    return None


def detect_project(
    path: Path,
    strategies: list[StackStrategy],
    tags: TagRegistry,
) -> ProjectDetail:
    """Build the ProjectDetail for one project directory."""
    try:
        files = {p.name for p in path.iterdir()}
    except OSError:
        files = set()

    strategy = match_strategy(files, strategies)
    stack_tags = [normalize_tag(t) for t in strategy.tags] if strategy else []
    user_tags = [normalize_tag(t) for t in tags.get_tags(path.name)]

    return ProjectDetail(
        name=path.name,
        path=path.resolve(),
        stack=strategy.name if strategy else GENERIC_STACK,
        activity=activity_tier(path),
        vcs_status=git_ops.check_status(path),
        essence=extract_essence(path),
        tags=sorted(set(stack_tags) | set(user_tags)),
        artifact_dirs=list(strategy.artifacts) if strategy else [],
        submodules=git_ops.list_submodules(path),
    )


def project_dirs(workspace: Workspace) -> list[Path]:
    """Immediate non-hidden subdirectories of the projects directory."""
    root = workspace.projects_dir
    if not root.is_dir():
        return []
    return sorted(
        entry for entry in root.iterdir()
        if entry.is_dir() and not entry.name.startswith(".")
    )


def scan_all_projects(
    workspace: Workspace,
    strategies: list[StackStrategy] | None = None,
    tags: TagRegistry | None = None,
) -> list[ProjectDetail]:
    """Scan every project under the workspace, sorted by name."""
    root = workspace.projects_dir
    if not root.is_dir():
        logger.info("Projects directory %s does not exist", root)
        return []

    strategies = strategies if strategies is not None else default_strategies()
    tags = tags or TagRegistry()

    projects = [detect_project(entry, strategies, tags) for entry in project_dirs(workspace)]
    projects.sort(key=lambda p: p.name)
    logger.info("Scanned %d projects in %s", len(projects), root)
    return projects
