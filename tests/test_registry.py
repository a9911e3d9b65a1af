"""
Tests for the project registry service — read-through cache, filtering, tags.
"""

import json
import os
from pathlib import Path

import pytest
from conftest import init_repo, requires_git

from pondctl.core.models.project import ProjectDetail
from pondctl.core.models.workspace import Workspace
from pondctl.core.persistence.registry_file import load_registry, load_tags
from pondctl.core.services.fingerprint import compute_fingerprint
from pondctl.core.services.project_registry import (
    filter_projects,
    find_projects,
    harvest_tags,
    rebuild_registry,
    resolve_projects,
    tag_projects,
    untag_projects,
)


class CountingScanner:
    """Scanner stand-in that lists project dirs and counts calls."""

    def __init__(self):
        self.calls = 0

    def __call__(self, workspace: Workspace) -> list[ProjectDetail]:
        self.calls += 1
        return sorted(
            (ProjectDetail(name=p.name, path=p) for p in workspace.projects_dir.iterdir() if p.is_dir()),
            key=lambda p: p.name,
        )


def _mkprojects(ws: Workspace, *names: str) -> None:
    for name in names:
        (ws.projects_dir / name).mkdir()


class TestResolveProjects:
    def test_first_call_scans_and_persists(self, workspace: Workspace):
        _mkprojects(workspace, "alpha", "beta")
        scanner = CountingScanner()

        projects = resolve_projects(workspace, scanner)

        assert [p.name for p in projects] == ["alpha", "beta"]
        assert scanner.calls == 1
        stored = load_registry(workspace.registry_path)
        assert stored.fingerprint == compute_fingerprint(workspace)
        assert [p.name for p in stored.projects] == ["alpha", "beta"]

    def test_cache_hit_skips_scan(self, workspace: Workspace):
        _mkprojects(workspace, "alpha")
        scanner = CountingScanner()
        resolve_projects(workspace, scanner)
        resolve_projects(workspace, scanner)
        assert scanner.calls == 1

    def test_empty_cache_always_rescans(self, workspace: Workspace):
        scanner = CountingScanner()
        assert resolve_projects(workspace, scanner) == []
        assert resolve_projects(workspace, scanner) == []
        assert scanner.calls == 2

    def test_stale_fingerprint_rescans(self, workspace: Workspace):
        _mkprojects(workspace, "alpha")
        scanner = CountingScanner()
        resolve_projects(workspace, scanner)

        _mkprojects(workspace, "beta")
        projects = resolve_projects(workspace, scanner)
        assert scanner.calls == 2
        assert [p.name for p in projects] == ["alpha", "beta"]

    def test_deleted_project_disappears(self, workspace: Workspace):
        """Removing a project dir invalidates the cache on the next call."""
        _mkprojects(workspace, "alpha", "beta")
        assert len(resolve_projects(workspace, CountingScanner())) == 2

        (workspace.projects_dir / "beta").rmdir()
        projects = resolve_projects(workspace, CountingScanner())
        assert [p.name for p in projects] == ["alpha"]

    def test_persisted_fingerprint_matches_on_return(self, workspace: Workspace):
        _mkprojects(workspace, "alpha")
        resolve_projects(workspace, CountingScanner())
        assert load_registry(workspace.registry_path).fingerprint == compute_fingerprint(workspace)

    @requires_git
    @pytest.mark.usefixtures("git_env")
    def test_git_status_scan_keeps_fingerprint_valid(self, workspace: Workspace):
        app = init_repo(workspace.projects_dir / "app")
        # Stale index stat data: a plain `git status` would rewrite .git/index
        for path in (app / "README.md", app / ".git" / "index"):
            os.utime(path, (1_000_000, 1_000_000))

        resolve_projects(workspace)

        assert load_registry(workspace.registry_path).fingerprint == compute_fingerprint(workspace)

    def test_corrupt_registry_triggers_rescan(self, workspace: Workspace):
        _mkprojects(workspace, "alpha")
        workspace.registry_path.parent.mkdir(parents=True, exist_ok=True)
        workspace.registry_path.write_text("{not json")
        scanner = CountingScanner()

        assert [p.name for p in resolve_projects(workspace, scanner)] == ["alpha"]
        assert scanner.calls == 1

    def test_save_failure_still_returns_scan(self, workspace: Workspace, monkeypatch):
        _mkprojects(workspace, "alpha")

        def boom(registry, path):
            raise OSError("disk full")

        monkeypatch.setattr("pondctl.core.services.project_registry.save_registry", boom)
        assert [p.name for p in resolve_projects(workspace, CountingScanner())] == ["alpha"]

    def test_missing_projects_dir_yields_empty(self, tmp_path: Path):
        ws = Workspace(root=tmp_path / "nowhere", config_dir=tmp_path / "cfg")
        assert resolve_projects(ws) == []

    def test_default_scanner_discovers(self, workspace: Workspace):
        _mkprojects(workspace, "crate")
        (workspace.projects_dir / "crate" / "Cargo.toml").write_text("[package]\n")
        projects = resolve_projects(workspace)
        assert projects[0].stack == "Rust"
        assert "#rust" in projects[0].tags


class TestRebuildRegistry:
    def test_rebuild_ignores_cache(self, workspace: Workspace):
        _mkprojects(workspace, "alpha")
        scanner = CountingScanner()
        resolve_projects(workspace, scanner)

        registry = rebuild_registry(workspace, scanner)
        assert scanner.calls == 2
        assert registry.last_sync.year >= 2024


class TestFilterProjects:
    @pytest.fixture
    def projects(self) -> list[ProjectDetail]:
        return [
            ProjectDetail(name="api-server", path=Path("/p/api-server"), tags=["#rust", "#work"]),
            ProjectDetail(name="web-app", path=Path("/p/web-app"), tags=["#nodejs", "#work"]),
            ProjectDetail(name="Api-Docs", path=Path("/p/Api-Docs"), tags=["#docs"]),
        ]

    def test_no_filter(self, projects):
        assert len(filter_projects(projects)) == 3

    def test_query_is_case_insensitive(self, projects):
        assert [p.name for p in filter_projects(projects, query="API")] == ["api-server", "Api-Docs"]

    def test_tag_with_or_without_hash(self, projects):
        assert len(filter_projects(projects, tag="work")) == 2
        assert len(filter_projects(projects, tag="#work")) == 2

    def test_query_and_tag_combine(self, projects):
        assert [p.name for p in filter_projects(projects, query="api", tag="rust")] == ["api-server"]

    def test_find_projects_sorted_and_limited(self, projects):
        found = find_projects(projects, "a", limit=2)
        assert [p.name for p in found] == ["Api-Docs", "api-server"]


class TestTags:
    def test_tag_and_untag(self, workspace: Workspace):
        tag_projects(workspace, ["alpha", "beta"], "work")
        assert load_tags(workspace.tags_path).get_tags("alpha") == ["#work"]

        untag_projects(workspace, ["alpha"], "#work")
        tags = load_tags(workspace.tags_path)
        assert tags.get_tags("alpha") == []
        assert tags.get_tags("beta") == ["#work"]

    def test_tagging_invalidates_cache(self, workspace: Workspace):
        _mkprojects(workspace, "alpha")
        scanner = CountingScanner()
        resolve_projects(workspace, scanner)

        tag_projects(workspace, ["alpha"], "work")
        os.utime(workspace.tags_path, (1_000_000, 1_000_000))
        resolve_projects(workspace, scanner)
        assert scanner.calls == 2

    def test_user_tags_reach_scanned_projects(self, workspace: Workspace):
        _mkprojects(workspace, "alpha")
        tag_projects(workspace, ["alpha"], "favourite")
        projects = resolve_projects(workspace)
        assert "#favourite" in projects[0].tags

    def test_harvest_uses_stack(self, workspace: Workspace):
        projects = [
            ProjectDetail(name="a", path=Path("/a"), stack="Rust"),
            ProjectDetail(name="b", path=Path("/b"), stack="NodeJS"),
        ]
        assert harvest_tags(workspace, projects) == ["a", "b"]
        tags = load_tags(workspace.tags_path)
        assert tags.get_tags("a") == ["#rust"]
        assert tags.get_tags("b") == ["#nodejs"]

    def test_tags_file_is_json(self, workspace: Workspace):
        tag_projects(workspace, ["alpha"], "x")
        assert json.loads(workspace.tags_path.read_text()) == {"projects": {"alpha": ["#x"]}}

    def test_tagging_creates_shadows_dir(self, workspace: Workspace):
        assert not workspace.shadows_dir.exists()
        tag_projects(workspace, ["alpha"], "work")
        assert workspace.shadows_dir.is_dir()
        assert workspace.tags_path.is_file()
