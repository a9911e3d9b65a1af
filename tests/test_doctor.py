"""
Tests for the workspace health check.
"""

from pathlib import Path

import pytest
from conftest import add_submodule, git, init_repo, requires_git

from pondctl.core.models.workspace import Workspace
from pondctl.core.services.doctor import run_health_check
from pondctl.core.services.project_registry import rebuild_registry


class TestRegistryChecks:
    def test_never_synced(self, workspace: Workspace):
        report = run_health_check(workspace)
        assert report.projects_dir_exists
        assert not report.registry_fresh
        assert report.project_count == 0
        assert report.warnings == ["Registry is empty; run 'pond sync'"]

    def test_fresh_after_sync(self, workspace: Workspace):
        (workspace.projects_dir / "alpha").mkdir()
        rebuild_registry(workspace)

        report = run_health_check(workspace)
        assert report.registry_fresh
        assert report.stored_fingerprint == report.current_fingerprint
        assert report.project_count == 1
        assert report.healthy

    def test_stale_after_new_project(self, workspace: Workspace):
        (workspace.projects_dir / "alpha").mkdir()
        rebuild_registry(workspace)
        (workspace.projects_dir / "beta").mkdir()

        report = run_health_check(workspace)
        assert not report.registry_fresh
        assert report.project_count == 1
        assert "stale" in report.warnings[0]

    def test_check_does_not_rebuild(self, workspace: Workspace):
        (workspace.projects_dir / "alpha").mkdir()
        run_health_check(workspace)
        assert not workspace.registry_path.exists()

    def test_missing_projects_dir(self, tmp_path: Path, config_dir: Path):
        workspace = Workspace(root=tmp_path / "nowhere", config_dir=config_dir)
        report = run_health_check(workspace)
        assert not report.projects_dir_exists
        assert report.current_fingerprint == 0
        assert len(report.warnings) == 2

    def test_to_dict(self, workspace: Workspace):
        data = run_health_check(workspace).to_dict()
        assert data["root"] == str(workspace.root)
        assert data["healthy"] is False
        assert data["uninitialized_submodules"] == 0


@requires_git
@pytest.mark.usefixtures("git_env")
class TestSubmoduleChecks:
    def test_counts_uninitialized_and_dirty(self, workspace: Workspace, tmp_path: Path):
        app = init_repo(workspace.projects_dir / "app")
        add_submodule(app, init_repo(tmp_path / "src" / "lib1"), "lib1")
        add_submodule(app, init_repo(tmp_path / "src" / "lib2"), "lib2")

        (app / "lib1" / "README.md").write_text("changed\n")
        git("submodule", "deinit", "-q", "-f", "lib2", cwd=app)

        report = run_health_check(workspace)
        assert report.uninitialized_submodules == 1
        assert report.dirty_submodules == 1
        assert "1 uninitialized submodules" in report.warnings
        assert "1 submodules with uncommitted changes" in report.warnings

    def test_clean_submodules(self, workspace: Workspace, tmp_path: Path):
        app = init_repo(workspace.projects_dir / "app")
        add_submodule(app, init_repo(tmp_path / "src" / "lib"), "lib")

        report = run_health_check(workspace)
        assert report.uninitialized_submodules == 0
        assert report.dirty_submodules == 0
