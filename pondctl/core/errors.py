"""
Error taxonomy for the control plane.

Per-target failures (a command that exits non-zero, a git push that is
rejected) are NOT exceptions — they are recorded as data in reports.
Exceptions are reserved for conditions that stop an operation before
it starts or that a single helper cannot express as a result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pondctl.core.models.report import PreflightResult


class PondError(Exception):
    """Base class for all control-plane errors."""


class WorkspaceNotFoundError(PondError):
    """No workspace could be located (env var, marker file, or config)."""


class FingerprintError(PondError):
    """The projects directory is missing or unreadable."""


class SpawnError(PondError):
    """A subprocess could not be started."""


class VcsOperationError(PondError):
    """A git invocation whose output is required exited non-zero."""


class SafetyRefusal(PondError):
    """A pre-flight check declined to proceed. Nothing was mutated."""

    def __init__(self, message: str, results: list[PreflightResult] | None = None):
        super().__init__(message)
        self.results = results or []

    @property
    def failing(self) -> list[PreflightResult]:
        """Only the results that reported at least one issue."""
        return [r for r in self.results if r.issues]
