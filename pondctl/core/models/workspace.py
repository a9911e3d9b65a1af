"""
Workspace — the explicit configuration value threaded into every call.

A workspace is a root directory holding ``projects/`` plus the location
of its per-context state (registry, tags). Nothing here is process-global:
callers build a Workspace once and pass it down.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

PROJECTS_DIR = "projects"
SHADOWS_DIR = "shadows"
TAGS_FILE = "tags.json"
REGISTRY_FILE = "registry.json"
CONTEXTS_DIR = "contexts"


@dataclass(frozen=True)
class Workspace:
    """Resolved workspace paths for one invocation."""

    root: Path
    config_dir: Path
    active_context: str | None = None

    @property
    def projects_dir(self) -> Path:
        return self.root / PROJECTS_DIR

    @property
    def context_dir(self) -> Path | None:
        if self.active_context is None:
            return None
        return self.config_dir / CONTEXTS_DIR / self.active_context

    @property
    def shadows_dir(self) -> Path:
        """Per-context generated state; falls back to the root."""
        ctx = self.context_dir
        if ctx is not None:
            return ctx / SHADOWS_DIR
        return self.root / SHADOWS_DIR

    @property
    def tags_path(self) -> Path:
        return self.shadows_dir / TAGS_FILE

    @property
    def registry_path(self) -> Path:
        ctx = self.context_dir
        if ctx is not None:
            return ctx / REGISTRY_FILE
        return self.config_dir / REGISTRY_FILE

    def ensure_shadows(self) -> None:
        self.shadows_dir.mkdir(parents=True, exist_ok=True)
