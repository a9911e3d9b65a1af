"""
Project registry service — fingerprint-guarded read-through cache.

``resolve_projects`` is the only way consumers obtain the project list:

    load registry → fingerprint matches and non-empty? → cached list
                  → otherwise: scan, persist new registry, return scan

Persistence is best effort: a failed save is logged and the freshly
scanned list is still returned. Concurrent invocations may both rescan
and both write; the later write wins.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Callable

from pondctl.core.config.strategy_loader import load_strategies
from pondctl.core.errors import FingerprintError
from pondctl.core.models.project import ProjectDetail
from pondctl.core.models.registry import ProjectRegistry, TagRegistry
from pondctl.core.models.workspace import Workspace
from pondctl.core.persistence.registry_file import (
    load_registry,
    load_tags,
    save_registry,
    save_tags,
)
from pondctl.core.services.discovery import normalize_tag, scan_all_projects
from pondctl.core.services.fingerprint import compute_fingerprint

logger = logging.getLogger(__name__)

Scanner = Callable[[Workspace], list[ProjectDetail]]


def default_scanner(workspace: Workspace) -> list[ProjectDetail]:
    """Full discovery with the configured strategies and tags."""
    strategies = load_strategies(workspace.config_dir)
    try:
        tags = load_tags(workspace.tags_path)
    except Exception as e:
        logger.warning("Cannot read tags from %s: %s — ignoring user tags", workspace.tags_path, e)
        tags = TagRegistry()
    return scan_all_projects(workspace, strategies=strategies, tags=tags)


def current_fingerprint(workspace: Workspace) -> int:
    """Fingerprint, or 0 when the projects directory is missing."""
    try:
        return compute_fingerprint(workspace)
    except FingerprintError as e:
        logger.info("%s", e)
        return 0


def rebuild_registry(workspace: Workspace, scanner: Scanner | None = None) -> ProjectRegistry:
    """Rescan and persist unconditionally."""
    fingerprint = current_fingerprint(workspace)
    projects = (scanner or default_scanner)(workspace)
    registry = ProjectRegistry(
        fingerprint=fingerprint,
        projects=projects,
        last_sync=datetime.now(UTC),
    )
    try:
        save_registry(registry, workspace.registry_path)
    except Exception as e:
        logger.warning("Registry not persisted (%s); continuing with fresh scan", e)
    return registry


def resolve_projects(workspace: Workspace, scanner: Scanner | None = None) -> list[ProjectDetail]:
    """Cached project list when trustworthy, a fresh scan otherwise."""
    stored = load_registry(workspace.registry_path)
    fingerprint = current_fingerprint(workspace)

    if stored.is_trustworthy(fingerprint):
        logger.debug("Registry cache hit (%d projects)", len(stored.projects))
        return stored.projects

    logger.info(
        "Registry stale (stored=%d, current=%d) — rescanning",
        stored.fingerprint, fingerprint,
    )
    return rebuild_registry(workspace, scanner).projects


# ── Filtering ───────────────────────────────────────────────────


def filter_projects(
    projects: list[ProjectDetail],
    query: str | None = None,
    tag: str | None = None,
) -> list[ProjectDetail]:
    """Name substring (case-insensitive) AND exact tag, both optional."""
    q = query.lower() if query else None
    t = normalize_tag(tag) if tag else None
    return [
        p for p in projects
        if (q is None or q in p.name.lower()) and (t is None or p.has_tag(t))
    ]


def find_projects(projects: list[ProjectDetail], query: str, limit: int = 50) -> list[ProjectDetail]:
    """Search by name, sorted, capped at ``limit``."""
    matches = sorted(filter_projects(projects, query=query), key=lambda p: p.name)
    return matches[:limit]


# ── Tagging ─────────────────────────────────────────────────────
#
# Tag writes bump the mtime of tags.json, which is part of the
# fingerprint, so the next resolve_projects() rescans automatically.


def tag_projects(workspace: Workspace, names: list[str], tag: str) -> TagRegistry:
    tags = load_tags(workspace.tags_path)
    normalized = normalize_tag(tag)
    for name in names:
        tags.add_tag(name, normalized)
    _save_tags(workspace, tags)
    logger.info("Tagged %d projects with %s", len(names), normalized)
    return tags


def untag_projects(workspace: Workspace, names: list[str], tag: str) -> TagRegistry:
    tags = load_tags(workspace.tags_path)
    normalized = normalize_tag(tag)
    for name in names:
        tags.remove_tag(name, normalized)
    _save_tags(workspace, tags)
    logger.info("Removed %s from %d projects", normalized, len(names))
    return tags


def harvest_tags(workspace: Workspace, projects: list[ProjectDetail]) -> list[str]:
    """Tag every project with its lower-cased stack name."""
    tags = load_tags(workspace.tags_path)
    tagged: list[str] = []
    for p in projects:
        tags.add_tag(p.name, normalize_tag(p.stack.lower()))
        tagged.append(p.name)
    _save_tags(workspace, tags)
    return tagged


def _save_tags(workspace: Workspace, tags: TagRegistry) -> None:
    workspace.ensure_shadows()
    save_tags(tags, workspace.tags_path)
