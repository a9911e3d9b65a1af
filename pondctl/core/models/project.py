"""
Project model — one discovered project in the ecosystem.

Produced fresh by the discovery service or read verbatim from the
registry cache. Never mutated in place: operations produce new values
or reports.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class ActivityTier(str, Enum):
    """Coarse recency classification derived from mtime age."""

    ACTIVE = "active"
    COLD = "cold"
    ARCHIVE = "archive"


class VcsStatus(str, Enum):
    """Working-tree state of a repository."""

    CLEAN = "clean"
    DIRTY = "dirty"
    UNTRACKED = "untracked"  # only untracked files
    NONE = "none"            # not a git repository


class SubmoduleRef(BaseModel):
    """A git submodule nested inside a project.

    ``path`` is relative to the parent project directory.
    """

    name: str
    path: str
    vcs_status: VcsStatus = VcsStatus.NONE
    initialized: bool = False
    expected_commit: str = ""   # what the parent's tree records
    actual_commit: str = ""     # what is checked out

    @property
    def drifted(self) -> bool:
        """Checked-out commit differs from what the parent expects."""
        return self.initialized and self.expected_commit != self.actual_commit


class ProjectDetail(BaseModel):
    """A project with its detected stack, VCS state, and tags."""

    name: str
    path: Path
    stack: str = "Generic"
    activity: ActivityTier = ActivityTier.ACTIVE
    vcs_status: VcsStatus = VcsStatus.NONE
    essence: str | None = None
    tags: list[str] = Field(default_factory=list)
    artifact_dirs: list[str] = Field(default_factory=list)
    submodules: list[SubmoduleRef] = Field(default_factory=list)

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def submodule_path(self, sub: SubmoduleRef) -> Path:
        """Absolute path of one of this project's submodules."""
        return self.path / sub.path
