"""
Shared test fixtures and configuration.
"""

import shutil
import subprocess
from pathlib import Path

import pytest

from pondctl.core.models.workspace import Workspace

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def git(*args: str, cwd: Path) -> str:
    """Run git in a test repository, failing the test on error."""
    r = subprocess.run(["git", *args], cwd=str(cwd), capture_output=True, text=True)
    assert r.returncode == 0, f"git {' '.join(args)} failed: {r.stderr}"
    return r.stdout.strip()


def init_repo(path: Path, initial_file: str = "README.md") -> Path:
    """Create a repository with one commit on branch ``main``."""
    path.mkdir(parents=True, exist_ok=True)
    git("init", "-q", "-b", "main", cwd=path)
    (path / initial_file).write_text(f"# {path.name}\n")
    git("add", "-A", cwd=path)
    git("commit", "-q", "-m", "initial", cwd=path)
    return path


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """An isolated configuration directory."""
    d = tmp_path / "config"
    d.mkdir()
    return d


@pytest.fixture
def workspace(tmp_path: Path, config_dir: Path) -> Workspace:
    """A workspace root with an empty ``projects/`` directory."""
    root = tmp_path / "root"
    (root / "projects").mkdir(parents=True)
    return Workspace(root=root, config_dir=config_dir)


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Strip env vars that would leak the developer's own setup into a test."""
    for var in ("POND_ROOT", "POND_CONFIG_DIR", "POND_LOG_LEVEL", "POND_LOG_FILE", "POND_LOG_FILE_LEVEL"):
        monkeypatch.delenv(var, raising=False)


def add_submodule(parent: Path, source: Path, sub_path: str) -> Path:
    """Add ``source`` as a submodule of ``parent`` and commit it."""
    git("submodule", "add", "-q", str(source), sub_path, cwd=parent)
    git("commit", "-q", "-m", f"add {sub_path}", cwd=parent)
    return parent / sub_path


def clone_with_remote(tmp_path: Path, name: str) -> tuple[Path, Path]:
    """A bare remote plus a clone tracking it, with one pushed commit."""
    remote = tmp_path / "remotes" / f"{name}.git"
    remote.mkdir(parents=True)
    git("init", "-q", "--bare", "-b", "main", cwd=remote)

    work = init_repo(tmp_path / "seed" / name)
    git("remote", "add", "origin", str(remote), cwd=work)
    git("push", "-q", "-u", "origin", "main", cwd=work)
    return remote, work


@pytest.fixture
def git_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Deterministic git identity and config for every git subprocess."""
    global_config = tmp_path / "gitconfig"
    global_config.write_text("")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(global_config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    # Local-path submodules are blocked by default since git 2.38.1
    monkeypatch.setenv("GIT_CONFIG_COUNT", "2")
    monkeypatch.setenv("GIT_CONFIG_KEY_0", "protocol.file.allow")
    monkeypatch.setenv("GIT_CONFIG_VALUE_0", "always")
    monkeypatch.setenv("GIT_CONFIG_KEY_1", "commit.gpgsign")
    monkeypatch.setenv("GIT_CONFIG_VALUE_1", "false")
