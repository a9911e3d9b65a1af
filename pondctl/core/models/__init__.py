"""
Domain models — Pydantic types for the control plane.

All models are re-exported here for convenient access:

    from pondctl.core.models import ProjectDetail, ProjectRegistry, Workspace
"""

from pondctl.core.models.config import GlobalConfig, ProjectContext
from pondctl.core.models.project import (
    ActivityTier,
    ProjectDetail,
    SubmoduleRef,
    VcsStatus,
)
from pondctl.core.models.registry import ProjectRegistry, TagRegistry
from pondctl.core.models.report import (
    BatchReport,
    BranchListing,
    GitOperationResult,
    MultiRepoGitReport,
    OperationOutcome,
    PreflightResult,
    RepoStatus,
    SubmoduleStatus,
)
from pondctl.core.models.stack import StackStrategy
from pondctl.core.models.workspace import Workspace

__all__ = [
    # config.py
    "GlobalConfig",
    "ProjectContext",
    # project.py
    "ActivityTier",
    "ProjectDetail",
    "SubmoduleRef",
    "VcsStatus",
    # registry.py
    "ProjectRegistry",
    "TagRegistry",
    # report.py
    "BatchReport",
    "BranchListing",
    "GitOperationResult",
    "MultiRepoGitReport",
    "OperationOutcome",
    "PreflightResult",
    "RepoStatus",
    "SubmoduleStatus",
    # stack.py
    "StackStrategy",
    # workspace.py
    "Workspace",
]
