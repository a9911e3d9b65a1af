"""
Tests for project discovery — stack detection, tags, activity, essence.
"""

import os
import time
from pathlib import Path

import pytest
from conftest import add_submodule, init_repo, requires_git

from pondctl.core.config.strategy_loader import default_strategies
from pondctl.core.models.project import ActivityTier, VcsStatus
from pondctl.core.models.registry import TagRegistry
from pondctl.core.models.workspace import Workspace
from pondctl.core.services.discovery import (
    activity_tier,
    detect_project,
    extract_essence,
    normalize_tag,
    scan_all_projects,
)

DAY = 86400


class TestNormalizeTag:
    def test_adds_hash(self):
        assert normalize_tag("rust") == "#rust"

    def test_keeps_existing_hash(self):
        assert normalize_tag("#rust") == "#rust"


class TestActivityTier:
    def _aged(self, tmp_path: Path, days: float) -> tuple[Path, float]:
        d = tmp_path / "p"
        d.mkdir()
        now = time.time()
        os.utime(d, (now - days * DAY, now - days * DAY))
        return d, now

    def test_active(self, tmp_path: Path):
        d, now = self._aged(tmp_path, 2)
        assert activity_tier(d, now) == ActivityTier.ACTIVE

    def test_cold(self, tmp_path: Path):
        d, now = self._aged(tmp_path, 90)
        assert activity_tier(d, now) == ActivityTier.COLD

    def test_archive(self, tmp_path: Path):
        d, now = self._aged(tmp_path, 400)
        assert activity_tier(d, now) == ActivityTier.ARCHIVE

    def test_recent_marker_file_counts(self, tmp_path: Path):
        d, now = self._aged(tmp_path, 400)
        (d / "Cargo.toml").write_text("")
        os.utime(d, (now - 400 * DAY, now - 400 * DAY))
        assert activity_tier(d, now) == ActivityTier.ACTIVE


class TestExtractEssence:
    def test_skips_headings_and_blanks(self, tmp_path: Path):
        (tmp_path / "README.md").write_text("# Title\n\nFirst line.\n## Sub\nSecond.\nThird.\nFourth.\n")
        assert extract_essence(tmp_path) == "First line. Second. Third."

    def test_capped(self, tmp_path: Path):
        (tmp_path / "README.md").write_text("x" * 500 + "\n")
        essence = extract_essence(tmp_path)
        assert len(essence) == 200
        assert essence.endswith("...")

    def test_no_readme(self, tmp_path: Path):
        assert extract_essence(tmp_path) is None


class TestDetectProject:
    def test_rust_project(self, tmp_path: Path):
        d = tmp_path / "crate"
        d.mkdir()
        (d / "Cargo.toml").write_text("")
        p = detect_project(d, default_strategies(), TagRegistry())

        assert p.stack == "Rust"
        assert p.tags == ["#rust"]
        assert p.artifact_dirs == ["target"]
        assert p.vcs_status == VcsStatus.NONE
        assert p.path.is_absolute()

    def test_generic_project(self, tmp_path: Path):
        d = tmp_path / "notes"
        d.mkdir()
        p = detect_project(d, default_strategies(), TagRegistry())
        assert p.stack == "Generic"
        assert p.tags == []
        assert p.artifact_dirs == []

    def test_user_tags_merged(self, tmp_path: Path):
        d = tmp_path / "svc"
        d.mkdir()
        (d / "go.mod").write_text("")
        tags = TagRegistry()
        tags.add_tag("svc", "#work")
        p = detect_project(d, default_strategies(), tags)
        assert p.tags == ["#go", "#work"]


class TestScanAllProjects:
    def test_sorted_and_hidden_skipped(self, workspace: Workspace):
        for name in ("zeta", "alpha", ".cache"):
            (workspace.projects_dir / name).mkdir()
        (workspace.projects_dir / "stray.txt").write_text("")

        projects = scan_all_projects(workspace)
        assert [p.name for p in projects] == ["alpha", "zeta"]

    def test_missing_projects_dir(self, tmp_path: Path):
        ws = Workspace(root=tmp_path / "none", config_dir=tmp_path)
        assert scan_all_projects(ws) == []

    @requires_git
    @pytest.mark.usefixtures("git_env")
    def test_git_state_and_submodules(self, workspace: Workspace, tmp_path: Path):
        lib = init_repo(tmp_path / "lib-src")
        app = init_repo(workspace.projects_dir / "app")
        add_submodule(app, lib, "deps/lib")
        (app / "scratch.txt").write_text("x")

        project = scan_all_projects(workspace)[0]
        assert project.vcs_status == VcsStatus.UNTRACKED
        assert [s.path for s in project.submodules] == ["deps/lib"]
        assert project.submodules[0].initialized
