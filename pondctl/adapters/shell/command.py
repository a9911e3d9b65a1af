"""
Shell command adapter — run a command in a directory with a timeout.

Commands go through the platform shell in their own session, so a
timeout kill takes down the whole process group and not just the shell.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

from pondctl.core.errors import SpawnError
from pondctl.core.models.report import TIMEOUT_EXIT_CODE

logger = logging.getLogger(__name__)

KILL_GRACE_SECONDS = 1.0


@dataclass
class CommandResult:
    """Captured result of one subprocess."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    duration_ms: int = 0


class ShellCommandAdapter:
    """Execute shell commands and capture output."""

    def run(self, directory: Path, command: str, timeout: float) -> CommandResult:
        """Run ``command`` with ``directory`` as working directory.

        On timeout the process group is killed and the result carries
        ``timed_out=True`` with exit code -1.

        Raises:
            SpawnError: If the process could not be started.
        """
        logger.debug("Executing: %s (cwd=%s, timeout=%ss)", command, directory, timeout)
        start = time.monotonic()

        try:
            proc = subprocess.Popen(
                command,
                shell=True,
                cwd=str(directory),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                start_new_session=(os.name != "nt"),
            )
        except OSError as e:
            raise SpawnError(f"Failed to start '{command}' in {directory}: {e}") from e

        try:
            stdout, stderr = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            self._kill(proc)
            self._reap(proc)
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.info("Timed out after %ss: %s (cwd=%s)", timeout, command, directory)
            return CommandResult(
                exit_code=TIMEOUT_EXIT_CODE,
                stderr=f"Command timed out after {timeout}s",
                timed_out=True,
                duration_ms=elapsed_ms,
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        return CommandResult(
            exit_code=proc.returncode,
            stdout=stdout,
            stderr=stderr,
            duration_ms=elapsed_ms,
        )

    @staticmethod
    def _reap(proc: subprocess.Popen) -> None:
        # A grandchild in its own session survives killpg and keeps the
        # pipes open; stop reading after a short grace period.
        try:
            proc.communicate(timeout=KILL_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning("Output pipes still open after kill (pid %d); abandoning them", proc.pid)
            for stream in (proc.stdout, proc.stderr):
                if stream is not None:
                    stream.close()
            proc.wait()

    @staticmethod
    def _kill(proc: subprocess.Popen) -> None:
        if os.name != "nt":
            try:
                os.killpg(proc.pid, signal.SIGKILL)
                return
            except (ProcessLookupError, PermissionError):
                pass
        proc.kill()
