"""
Global configuration model — loaded from ``<config_dir>/config.yml``.

Holds the registered project contexts, which one is active, and the
defaults for batch execution.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_BATCH_TIMEOUT = 30  # seconds


class ProjectContext(BaseModel):
    """A registered workspace root."""

    path: Path
    description: str | None = None
    registered_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class GlobalConfig(BaseModel):
    """Process-independent operator configuration.

    ``home_pointer`` is the fallback root used when no context is active.
    """

    home_pointer: Path | None = None
    active_context: str | None = None
    project_contexts: dict[str, ProjectContext] = Field(default_factory=dict)

    # ── Batch defaults ───────────────────────────────────────────
    batch_timeout: int = DEFAULT_BATCH_TIMEOUT
    max_workers: int | None = None

    def active_path(self) -> Path | None:
        """Root of the active context, falling back to the home pointer."""
        if self.active_context and self.active_context in self.project_contexts:
            return self.project_contexts[self.active_context].path
        return self.home_pointer
