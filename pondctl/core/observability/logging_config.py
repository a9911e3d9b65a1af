"""
Logging for the ``pond`` CLI.

Console verbosity, first match wins:
    --debug  >  --verbose  >  --quiet  >  $POND_LOG_LEVEL  >  WARNING

``$POND_LOG_FILE`` adds a file handler. Its level is
``$POND_LOG_FILE_LEVEL``, or the console level when unset. Batch workers
log from pool threads, so the detailed formats carry the thread name.

Modules only ever do ``logger = logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass

LOG_LEVEL_ENV = "POND_LOG_LEVEL"
LOG_FILE_ENV = "POND_LOG_FILE"
LOG_FILE_LEVEL_ENV = "POND_LOG_FILE_LEVEL"

_DETAILED = "%(asctime)s %(levelname)-5s [%(threadName)s] %(name)s: %(message)s"


@dataclass(frozen=True)
class LogSettings:
    """Resolved logging configuration for one process."""

    level: int
    log_file: str | None = None
    file_level: int | None = None

    @property
    def root_level(self) -> int:
        """Lowest level any handler wants; the root logger must pass it."""
        if self.log_file and self.file_level is not None:
            return min(self.level, self.file_level)
        return self.level


def parse_level(name: str | None) -> int:
    """Level name to number; unknown or empty names mean WARNING."""
    if not name:
        return logging.WARNING
    return logging.getLevelNamesMapping().get(name.upper(), logging.WARNING)


def resolve_settings(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> LogSettings:
    env = os.environ if environ is None else environ

    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    elif quiet:
        level = logging.ERROR
    else:
        level = parse_level(env.get(LOG_LEVEL_ENV))

    log_file = env.get(LOG_FILE_ENV) or None
    file_level = parse_level(env[LOG_FILE_LEVEL_ENV]) if env.get(LOG_FILE_LEVEL_ENV) else level
    return LogSettings(level=level, log_file=log_file, file_level=file_level)


def _console_formatter(level: int) -> logging.Formatter:
    if level <= logging.DEBUG:
        return logging.Formatter(_DETAILED, datefmt="%H:%M:%S")
    if level <= logging.INFO:
        # Progress and results go to stdout; INFO lines only need a timestamp
        return logging.Formatter("%(asctime)s %(name)s: %(message)s", datefmt="%H:%M:%S")
    return logging.Formatter("%(message)s")


def setup_logging(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> LogSettings:
    """Install the console (and optional file) handler on the root logger.

    Replaces any handlers already there, so calling it twice is safe.
    """
    settings = resolve_settings(debug=debug, verbose=verbose, quiet=quiet, environ=environ)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(settings.level)
    console.setFormatter(_console_formatter(settings.level))
    handlers: list[logging.Handler] = [console]

    if settings.log_file:
        file_handler = logging.FileHandler(settings.log_file, encoding="utf-8")
        file_handler.setLevel(settings.file_level)
        file_handler.setFormatter(logging.Formatter(_DETAILED, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers[:] = handlers
    root.setLevel(settings.root_level)

    # A broken stderr must not turn a log call into a traceback
    logging.raiseExceptions = False
    return settings
