"""
Progress reporting capability injected into long-running operations.

The engine only ever calls these three methods and never waits on
them. Implementations must be thread-safe: the batch executor calls
``increment`` from worker threads.
"""

from __future__ import annotations

from typing import Protocol


class ProgressReporter(Protocol):
    def set_message(self, message: str) -> None: ...

    def increment(self, n: int = 1) -> None: ...

    def finish(self) -> None: ...


class NullProgress:
    """No-op reporter used when the caller supplies none."""

    def set_message(self, message: str) -> None:
        pass

    def increment(self, n: int = 1) -> None:
        pass

    def finish(self) -> None:
        pass
