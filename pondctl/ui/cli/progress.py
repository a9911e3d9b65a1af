"""
Terminal progress for long-running engine calls.

Wraps ``click.progressbar`` behind the engine's ProgressReporter
methods. Worker threads call ``increment`` concurrently, so every
bar mutation goes through one lock.
"""

from __future__ import annotations

import sys
import threading

import click


class ClickProgress:
    """Progress bar on stderr; use as a context manager."""

    def __init__(self, total: int, label: str = ""):
        self._bar = click.progressbar(
            length=max(total, 1),
            label=label,
            file=sys.stderr,
        )
        self._lock = threading.Lock()
        self._finished = False

    def __enter__(self) -> ClickProgress:
        self._bar.__enter__()
        return self

    def __exit__(self, *exc) -> None:
        self.finish()

    def set_message(self, message: str) -> None:
        with self._lock:
            if not self._finished:
                self._bar.label = message

    def increment(self, n: int = 1) -> None:
        with self._lock:
            if not self._finished:
                self._bar.update(n)

    def finish(self) -> None:
        with self._lock:
            if self._finished:
                return
            self._finished = True
            self._bar.__exit__(None, None, None)
