"""
Workspace health check — is the cached registry usable, and are the
projects' submodules in shape?

Read-only: the registry is inspected, never rebuilt, and submodule
state is read live from git.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pondctl.core.models.project import VcsStatus
from pondctl.core.models.workspace import Workspace
from pondctl.core.persistence.registry_file import load_registry
from pondctl.core.services import git_ops
from pondctl.core.services.discovery import project_dirs
from pondctl.core.services.project_registry import current_fingerprint

logger = logging.getLogger(__name__)


@dataclass
class DoctorReport:
    """Outcome of ``run_health_check``."""

    root: Path
    registry_path: Path
    projects_dir_exists: bool = False
    stored_fingerprint: int = 0
    current_fingerprint: int = 0
    registry_fresh: bool = False
    project_count: int = 0
    uninitialized_submodules: int = 0
    dirty_submodules: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return not self.warnings

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": str(self.root),
            "registry_path": str(self.registry_path),
            "projects_dir_exists": self.projects_dir_exists,
            "stored_fingerprint": self.stored_fingerprint,
            "current_fingerprint": self.current_fingerprint,
            "registry_fresh": self.registry_fresh,
            "project_count": self.project_count,
            "uninitialized_submodules": self.uninitialized_submodules,
            "dirty_submodules": self.dirty_submodules,
            "warnings": self.warnings,
            "healthy": self.healthy,
        }


def run_health_check(workspace: Workspace) -> DoctorReport:
    """Inspect the registry cache and every project's submodules."""
    report = DoctorReport(root=workspace.root, registry_path=workspace.registry_path)
    report.projects_dir_exists = workspace.projects_dir.is_dir()
    if not report.projects_dir_exists:
        report.warnings.append(f"Projects directory {workspace.projects_dir} does not exist")

    stored = load_registry(workspace.registry_path)
    report.stored_fingerprint = stored.fingerprint
    report.current_fingerprint = current_fingerprint(workspace)
    report.registry_fresh = stored.is_trustworthy(report.current_fingerprint)
    report.project_count = len(stored.projects)

    if not stored.projects:
        report.warnings.append("Registry is empty; run 'pond sync'")
    elif not report.registry_fresh:
        report.warnings.append("Registry is stale (fingerprint mismatch); run 'pond sync'")

    for path in project_dirs(workspace):
        for sub in git_ops.list_submodules(path):
            if not sub.initialized:
                report.uninitialized_submodules += 1
            elif sub.vcs_status in (VcsStatus.DIRTY, VcsStatus.UNTRACKED):
                report.dirty_submodules += 1

    if report.uninitialized_submodules:
        report.warnings.append(f"{report.uninitialized_submodules} uninitialized submodules")
    if report.dirty_submodules:
        report.warnings.append(f"{report.dirty_submodules} submodules with uncommitted changes")

    logger.info("Health check of %s: %d warnings", workspace.root, len(report.warnings))
    return report
