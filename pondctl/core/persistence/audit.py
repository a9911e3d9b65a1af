"""
Audit log — append-only record of batch operations.

Every batch command appends one NDJSON (newline-delimited JSON) line
to ``<config_dir>/ops.log``. The core never reads, rotates, or compacts
the file. Lines are small and written with a single append, so
concurrent writers rely on the OS append guarantee.
"""

from __future__ import annotations

import getpass
import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

from pondctl.core.models.report import BatchReport

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_FILE = "ops.log"


def _current_user() -> str:
    try:
        return getpass.getuser()
    except Exception:
        return "unknown"


class AuditEntry(BaseModel):
    """A single audit log entry."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    command: str
    target_count: int = 0
    success_count: int = 0
    fail_count: int = 0
    skip_count: int = 0
    user: str = Field(default_factory=_current_user)

    @classmethod
    def from_report(cls, report: BatchReport, target_count: int) -> AuditEntry:
        return cls(
            command=report.command,
            target_count=target_count,
            success_count=report.success_count,
            fail_count=report.fail_count,
            skip_count=report.skip_count,
        )


class AuditWriter:
    """Append-only audit log writer."""

    def __init__(self, path: Path | None = None, config_dir: Path | None = None):
        if path is not None:
            self._path = path
        elif config_dir is not None:
            self._path = config_dir / DEFAULT_AUDIT_FILE
        else:
            self._path = Path(DEFAULT_AUDIT_FILE)

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> bool:
        """Append an entry to the log.

        Returns:
            False if the write failed. The operation being documented has
            already completed, so a failure here is only a warning.
        """
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("Audit entry written: %s", entry.command)
            return True
        except OSError as e:
            logger.warning("Failed to write audit entry to %s: %s", self._path, e)
            return False
