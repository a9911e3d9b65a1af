"""
Workspace fingerprint — cheap change detection for the registry cache.

The fingerprint folds directory mtimes and the mtimes of a fixed list
of high-value marker files into one 64-bit integer. It is not a content
hash and collisions are acceptable: it only has to change, with high
probability, when something a scan would notice has changed.

The mix is order-dependent, so project directories are visited sorted
by name. Whole-second mtimes keep the value stable across filesystems
with different timestamp resolution.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pondctl.core.errors import FingerprintError
from pondctl.core.models.workspace import Workspace

logger = logging.getLogger(__name__)

_MASK64 = (1 << 64) - 1
_MIX_MULTIPLIER = 0x517CC1B727220A95
_ROTATE = 13

# Changing this list changes every fingerprint: treat it as versioned.
HIGH_VALUE_FILES: tuple[str, ...] = (
    "Cargo.toml",
    "Cargo.lock",
    "package.json",
    "package-lock.json",
    "pnpm-lock.yaml",
    "yarn.lock",
    "go.mod",
    "go.sum",
    "go.work",
    "pyproject.toml",
    "requirements.txt",
    "poetry.lock",
    "README.md",
    "README.markdown",
    "readme.md",
    "Justfile",
    ".gitignore",
    ".git/index",
)


def mix(acc: int, value: int) -> int:
    """Fold one value into the accumulator (64-bit add, rotate, multiply)."""
    acc = (acc + value) & _MASK64
    acc = ((acc << _ROTATE) | (acc >> (64 - _ROTATE))) & _MASK64
    return (acc * _MIX_MULTIPLIER) & _MASK64


def name_hash(name: str) -> int:
    """Sum of the UTF-8 bytes of a name."""
    return sum(name.encode("utf-8")) & _MASK64


def _mtime(path: Path) -> int | None:
    try:
        return int(path.stat().st_mtime)
    except OSError:
        return None


def compute_fingerprint(workspace: Workspace) -> int:
    """Fingerprint the workspace's projects directory.

    Raises:
        FingerprintError: If the projects directory does not exist.
    """
    projects_dir = workspace.projects_dir
    if not projects_dir.is_dir():
        raise FingerprintError(f"Projects directory does not exist: {projects_dir}")

    root_mtime = _mtime(projects_dir)
    if root_mtime is None:
        raise FingerprintError(f"Cannot stat projects directory: {projects_dir}")

    fingerprint = mix(0, root_mtime)

    try:
        entries = sorted(
            (p for p in projects_dir.iterdir() if p.is_dir()),
            key=lambda p: p.name,
        )
    except OSError as e:
        raise FingerprintError(f"Cannot list {projects_dir}: {e}") from e

    for entry in entries:
        fingerprint = mix(fingerprint, name_hash(entry.name))

        dir_mtime = _mtime(entry)
        if dir_mtime is not None:
            fingerprint = mix(fingerprint, dir_mtime)

        for marker in HIGH_VALUE_FILES:
            marker_mtime = _mtime(entry / marker)
            if marker_mtime is not None:
                fingerprint = mix(fingerprint, marker_mtime)

    tags_mtime = _mtime(workspace.tags_path)
    if tags_mtime is not None:
        fingerprint = mix(fingerprint, tags_mtime)

    logger.debug("Fingerprint of %s: %d (%d projects)", projects_dir, fingerprint, len(entries))
    return fingerprint
