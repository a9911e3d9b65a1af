"""
Registry models — the persisted project cache and the tag registry.

The ProjectRegistry is trustworthy for a workspace only while its
fingerprint equals the workspace's current fingerprint. It is replaced
wholesale on rebuild, never patched.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_serializer

from pondctl.core.models.project import ProjectDetail

_EPOCH = datetime.fromtimestamp(0, UTC)


class ProjectRegistry(BaseModel):
    """Cached discovery output: ``{fingerprint, projects, last_sync}``."""

    fingerprint: int = 0
    projects: list[ProjectDetail] = Field(default_factory=list)
    last_sync: datetime = _EPOCH

    def is_trustworthy(self, current_fingerprint: int) -> bool:
        return self.fingerprint == current_fingerprint and bool(self.projects)


class TagRegistry(BaseModel):
    """User-assigned tags, keyed by project name."""

    projects: dict[str, set[str]] = Field(default_factory=dict)

    @field_serializer("projects")
    def _sorted_projects(self, value: dict[str, set[str]]) -> dict[str, list[str]]:
        return {name: sorted(tags) for name, tags in sorted(value.items())}

    def add_tag(self, project: str, tag: str) -> None:
        self.projects.setdefault(project, set()).add(tag)

    def remove_tag(self, project: str, tag: str) -> None:
        tags = self.projects.get(project)
        if tags is not None:
            tags.discard(tag)

    def get_tags(self, project: str) -> list[str]:
        """Tags for a project, sorted."""
        return sorted(self.projects.get(project, set()))
