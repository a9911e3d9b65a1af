"""
Stack strategy model — one row of the stack detection rule table.

Strategies are plain data loaded from YAML. Detection is a single
generic matcher over an ordered list of rows: the highest-priority row
whose marker files appear in a directory wins.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

GENERIC_STACK = "Generic"


class StackStrategy(BaseModel):
    """How to recognise a stack, and what it leaves behind."""

    name: str
    match_files: list[str] = Field(default_factory=list)
    artifacts: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    priority: int = 0

    def matches(self, files: list[str] | set[str]) -> bool:
        """Whether any marker file is present in a directory listing."""
        return any(m in files for m in self.match_files)
