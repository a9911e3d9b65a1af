"""
Outcome and report models — the plain values returned to renderers.

Per-target results (OperationOutcome, GitOperationResult) are pydantic
models. Aggregates (BatchReport, MultiRepoGitReport) are dataclasses
that compute their counts from the ordered result list, so the same
renderer serves batch commands and git operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from pondctl.core.models.project import VcsStatus

SKIP_EXIT_CODE = -2
TIMEOUT_EXIT_CODE = -1
SPAWN_ERROR_EXIT_CODE = -1
SKIP_MESSAGE = "Skipped due to previous failure"


class OperationOutcome(BaseModel):
    """Result of running a shell command in one project."""

    project_name: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    skipped: bool = False   # never started; exit_code is SKIP_EXIT_CODE
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def failed(self) -> bool:
        return not self.ok and not self.skipped

    @classmethod
    def skip(cls, project_name: str) -> OperationOutcome:
        return cls(
            project_name=project_name,
            exit_code=SKIP_EXIT_CODE,
            stderr=SKIP_MESSAGE,
            skipped=True,
        )


class GitOperationResult(BaseModel):
    """Result of one git operation against one repository."""

    project_name: str
    operation: str = ""
    success: bool
    stdout: str = ""
    stderr: str = ""
    skipped: bool = False

    @property
    def failed(self) -> bool:
        return not self.success and not self.skipped


@dataclass
class BatchReport:
    """Outcomes of a batch command, in completion order."""

    command: str = ""
    results: list[OperationOutcome] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def fail_count(self) -> int:
        return sum(1 for r in self.results if r.failed)

    @property
    def skip_count(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    @property
    def all_ok(self) -> bool:
        return self.fail_count == 0

    def sorted(self) -> BatchReport:
        """Copy ordered by project name, for deterministic rendering."""
        return BatchReport(
            command=self.command,
            results=sorted(self.results, key=lambda r: r.project_name),
        )

    def to_dict(self) -> dict:
        return {
            "command": self.command,
            "success_count": self.success_count,
            "fail_count": self.fail_count,
            "skip_count": self.skip_count,
            "results": [r.model_dump(mode="json") for r in self.results],
        }


@dataclass
class MultiRepoGitReport:
    """Git results in the order they were attempted."""

    operation: str = ""
    results: list[GitOperationResult] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def fail_count(self) -> int:
        return sum(1 for r in self.results if r.failed)

    @property
    def skip_count(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    @property
    def all_ok(self) -> bool:
        return self.fail_count == 0

    def names(self) -> list[str]:
        return [r.project_name for r in self.results]

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "success_count": self.success_count,
            "fail_count": self.fail_count,
            "skip_count": self.skip_count,
            "notes": list(self.notes),
            "results": [r.model_dump(mode="json") for r in self.results],
        }


class PreflightResult(BaseModel):
    """Safety findings for one repository before a sync."""

    project_name: str
    issues: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues


class SubmoduleStatus(BaseModel):
    name: str
    vcs_status: VcsStatus = VcsStatus.NONE
    initialized: bool = False
    drifted: bool = False


class RepoStatus(BaseModel):
    """Read-only snapshot of one project's repository."""

    name: str
    vcs_status: VcsStatus = VcsStatus.NONE
    branch: str = ""
    ahead: int = 0
    behind: int = 0
    submodules: list[SubmoduleStatus] = Field(default_factory=list)


class BranchListing(BaseModel):
    """Branches of one project and the current branch of each submodule."""

    name: str
    current: str = ""
    local: list[str] = Field(default_factory=list)
    remote: list[str] = Field(default_factory=list)
    submodule_branches: dict[str, str] = Field(default_factory=dict)
