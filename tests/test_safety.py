"""
Tests for the safety classifier.
"""

import pytest

from pondctl.core.services.safety import (
    is_destructive,
    is_destructive_git_command,
    is_stack_mismatch,
)


class TestIsDestructive:
    @pytest.mark.parametrize("command", [
        "rm -rf target",
        "git branch --delete old",
        "docker system prune",
        "psql -c 'DROP TABLE users'",
        "truncate -s 0 log.txt",
        "git push --force",
        "git reset --hard HEAD~1",
        "git clean -xdf",
    ])
    def test_flags_destructive(self, command):
        assert is_destructive(command)

    @pytest.mark.parametrize("command", [
        "cargo build",
        "npm test",
        "git status",
        "ls -la",
    ])
    def test_allows_harmless(self, command):
        assert not is_destructive(command)

    def test_over_flags_by_substring(self):
        """Substring matching: 'enforce' contains 'force'."""
        assert is_destructive("lint --enforce")
        assert not is_destructive("cargo fmt")


class TestIsDestructiveGit:
    def test_git_patterns(self):
        assert is_destructive_git_command("git push -f origin main")
        assert is_destructive_git_command("git clean -df")
        assert not is_destructive_git_command("git push origin main")


class TestIsStackMismatch:
    def test_cargo_in_node_project(self):
        assert is_stack_mismatch("cargo build", "NodeJS")

    def test_cargo_in_rust_project(self):
        assert not is_stack_mismatch("cargo build", "Rust")

    def test_npm_in_tauri_project(self):
        assert not is_stack_mismatch("npm run tauri build", "Tauri")

    def test_generic_command_never_mismatches(self):
        assert not is_stack_mismatch("git pull", "Rust")
        assert not is_stack_mismatch("make", "Generic")

    def test_any_segment_counts(self):
        assert is_stack_mismatch("git pull && go test ./...", "Python")

    def test_tool_name_as_argument_is_not_an_invocation(self):
        assert not is_stack_mismatch("echo npm", "Rust")

    def test_case_insensitive_stack(self):
        assert not is_stack_mismatch("pytest -q", "python")
