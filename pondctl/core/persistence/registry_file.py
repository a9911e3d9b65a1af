"""
Registry persistence — atomic read/write for the project and tag registries.

Both are stored as JSON. Writes are atomic (write to temp file, then
rename) so a crash mid-write never leaves a truncated registry behind.
There is no cross-process locking: the last writer wins.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from pydantic import BaseModel

from pondctl.core.models.registry import ProjectRegistry, TagRegistry

logger = logging.getLogger(__name__)


def load_registry(path: Path) -> ProjectRegistry:
    """Load the project registry.

    Returns:
        ProjectRegistry. Missing or unreadable files yield an empty
        registry, which is never trustworthy and forces a rescan.
    """
    if not path.is_file():
        logger.info("No registry at %s — starting empty", path)
        return ProjectRegistry()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        registry = ProjectRegistry.model_validate(data)
        logger.debug(
            "Loaded registry from %s (%d projects, fingerprint=%d)",
            path, len(registry.projects), registry.fingerprint,
        )
        return registry
    except json.JSONDecodeError as e:
        logger.warning("Corrupt registry %s: %s — starting empty", path, e)
        return ProjectRegistry()
    except Exception as e:
        logger.warning("Cannot load registry from %s: %s — starting empty", path, e)
        return ProjectRegistry()


def save_registry(registry: ProjectRegistry, path: Path) -> None:
    """Persist the project registry (atomic write)."""
    _atomic_write_json(registry, path, prefix=".registry_")


def load_tags(path: Path) -> TagRegistry:
    """Load the tag registry; a missing file is an empty registry.

    Unlike the project registry, a corrupt tag file is an error: the
    tags are user data and cannot be rebuilt from a scan.
    """
    if not path.is_file():
        return TagRegistry()
    data = json.loads(path.read_text(encoding="utf-8"))
    return TagRegistry.model_validate(data)


def save_tags(tags: TagRegistry, path: Path) -> None:
    """Persist the tag registry (atomic write)."""
    _atomic_write_json(tags, path, prefix=".tags_")


def _atomic_write_json(model: BaseModel, path: Path, prefix: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    data = model.model_dump(mode="json")
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    try:
        _fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=prefix, suffix=".tmp")
        tmp = Path(tmp_path)
        try:
            with open(_fd, "w", encoding="utf-8") as f:
                f.write(content)
            tmp.replace(path)
            logger.debug("Saved %s", path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except Exception as e:
        logger.error("Failed to save %s: %s", path, e)
        raise
