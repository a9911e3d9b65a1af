"""
Tests for persistence — registry files and the audit log.
"""

import json
from pathlib import Path

import pytest

from pondctl.core.models.project import ProjectDetail
from pondctl.core.models.registry import ProjectRegistry, TagRegistry
from pondctl.core.models.report import BatchReport, OperationOutcome
from pondctl.core.persistence.audit import AuditEntry, AuditWriter
from pondctl.core.persistence.registry_file import (
    load_registry,
    load_tags,
    save_registry,
    save_tags,
)


class TestRegistryFile:
    def test_load_missing_returns_empty(self, tmp_path: Path):
        reg = load_registry(tmp_path / "registry.json")
        assert reg.fingerprint == 0
        assert reg.projects == []

    def test_save_and_load(self, tmp_path: Path):
        path = tmp_path / "ctx" / "registry.json"
        reg = ProjectRegistry(
            fingerprint=12345,
            projects=[ProjectDetail(name="api", path=tmp_path / "api", stack="Go")],
        )
        save_registry(reg, path)

        loaded = load_registry(path)
        assert loaded.fingerprint == 12345
        assert loaded.projects[0].name == "api"
        assert loaded.projects[0].stack == "Go"

    def test_file_shape(self, tmp_path: Path):
        path = tmp_path / "registry.json"
        save_registry(ProjectRegistry(fingerprint=7), path)
        data = json.loads(path.read_text())
        assert set(data) == {"fingerprint", "projects", "last_sync"}

    def test_no_temp_files_left(self, tmp_path: Path):
        save_registry(ProjectRegistry(fingerprint=1), tmp_path / "registry.json")
        save_registry(ProjectRegistry(fingerprint=2), tmp_path / "registry.json")
        assert [p.name for p in tmp_path.iterdir()] == ["registry.json"]

    def test_corrupt_json_returns_empty(self, tmp_path: Path):
        path = tmp_path / "registry.json"
        path.write_text("{broken")
        assert load_registry(path).projects == []

    def test_wrong_schema_returns_empty(self, tmp_path: Path):
        path = tmp_path / "registry.json"
        path.write_text(json.dumps({"fingerprint": "not-a-number"}))
        assert load_registry(path).fingerprint == 0


class TestTagFile:
    def test_missing_is_empty(self, tmp_path: Path):
        assert load_tags(tmp_path / "tags.json").projects == {}

    def test_save_and_load(self, tmp_path: Path):
        tags = TagRegistry()
        tags.add_tag("api", "#work")
        save_tags(tags, tmp_path / "shadows" / "tags.json")
        assert load_tags(tmp_path / "shadows" / "tags.json").get_tags("api") == ["#work"]

    def test_corrupt_tag_file_raises(self, tmp_path: Path):
        """Tags are user data: corruption must not silently wipe them."""
        path = tmp_path / "tags.json"
        path.write_text("{broken")
        with pytest.raises(json.JSONDecodeError):
            load_tags(path)


class TestAuditWriter:
    def _report(self) -> BatchReport:
        return BatchReport(command="make test", results=[
            OperationOutcome(project_name="a", exit_code=0),
            OperationOutcome(project_name="b", exit_code=2),
            OperationOutcome.skip("c"),
        ])

    def test_entry_from_report(self):
        entry = AuditEntry.from_report(self._report(), target_count=3)
        assert entry.command == "make test"
        assert (entry.success_count, entry.fail_count, entry.skip_count) == (1, 1, 1)
        assert entry.target_count == 3
        assert entry.user
        assert "T" in entry.timestamp

    def test_appends_ndjson(self, tmp_path: Path):
        writer = AuditWriter(config_dir=tmp_path)
        assert writer.path == tmp_path / "ops.log"

        assert writer.write(AuditEntry.from_report(self._report(), 3))
        assert writer.write(AuditEntry(command="ls", target_count=1, success_count=1))

        lines = writer.path.read_text().splitlines()
        assert len(lines) == 2
        first = json.loads(lines[0])
        assert first["command"] == "make test"
        assert first["fail_count"] == 1
        assert json.loads(lines[1])["command"] == "ls"

    def test_write_failure_returns_false(self, tmp_path: Path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        writer = AuditWriter(path=blocker / "ops.log")
        assert writer.write(AuditEntry(command="ls")) is False
