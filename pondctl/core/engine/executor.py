"""
Batch executor — run one shell command across many projects in parallel.

Flow:
    targets → thread pool (one task per project) → outcomes → BatchReport

Targets are independent. The only shared state is the fail-fast flag,
a ``threading.Event`` that is set once and never cleared. Fail-fast
stops tasks that have not started yet and never interrupts one that is
running. A running task is bounded only by its timeout.

Outcomes are collected in completion order. Callers wanting a stable
order use ``BatchReport.sorted()``.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from pondctl.adapters.shell.command import ShellCommandAdapter
from pondctl.core.engine.progress import NullProgress, ProgressReporter
from pondctl.core.errors import SpawnError
from pondctl.core.models.config import DEFAULT_BATCH_TIMEOUT
from pondctl.core.models.project import ProjectDetail
from pondctl.core.models.report import SPAWN_ERROR_EXIT_CODE, BatchReport, OperationOutcome
from pondctl.core.persistence.audit import AuditEntry, AuditWriter

logger = logging.getLogger(__name__)


def execute_batch(
    targets: list[ProjectDetail],
    command: str,
    fail_fast: bool = False,
    timeout: float = DEFAULT_BATCH_TIMEOUT,
    *,
    max_workers: int | None = None,
    dry_run: bool = False,
    progress: ProgressReporter | None = None,
    adapter: ShellCommandAdapter | None = None,
) -> BatchReport:
    """Run ``command`` in every target's directory.

    Blocks until every task has finished or been skipped.

    Args:
        targets: Projects to run in.
        command: Shell command line.
        fail_fast: Skip not-yet-started tasks once any task fails.
        timeout: Per-task budget in seconds; overrunning processes are killed.
        max_workers: Pool size (default: ``concurrent.futures`` default).
        dry_run: Report what would run without spawning anything.
        progress: Optional UI feedback sink.
        adapter: Shell adapter override (tests).

    Returns:
        BatchReport with one outcome per target, in completion order.
    """
    report = BatchReport(command=command)
    progress = progress or NullProgress()
    adapter = adapter or ShellCommandAdapter()

    if not targets:
        progress.finish()
        return report

    if dry_run:
        for project in targets:
            report.results.append(
                OperationOutcome(
                    project_name=project.name,
                    exit_code=0,
                    stdout=f"[dry-run] {command}",
                )
            )
            progress.increment()
        progress.finish()
        return report

    failed = threading.Event()
    progress.set_message(f"Running '{command}' in {len(targets)} projects")

    def _task(project: ProjectDetail) -> OperationOutcome:
        if fail_fast and failed.is_set():
            return OperationOutcome.skip(project.name)

        outcome = _run_one(adapter, project.name, project.path, command, timeout)
        if not outcome.ok:
            failed.set()
        return outcome

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="pond-batch") as pool:
        futures = {pool.submit(_task, p): p for p in targets}
        for future in as_completed(futures):
            outcome = future.result()
            report.results.append(outcome)
            progress.increment()

            marker = "✓" if outcome.ok else "⊘" if outcome.skipped else "✗"
            logger.info("%s %s → %d", marker, outcome.project_name, outcome.exit_code)

    progress.finish()
    logger.info(
        "Batch '%s': %d ok, %d failed, %d skipped",
        command, report.success_count, report.fail_count, report.skip_count,
    )
    return report


def _run_one(
    adapter: ShellCommandAdapter,
    name: str,
    directory: Path,
    command: str,
    timeout: float,
) -> OperationOutcome:
    try:
        result = adapter.run(directory, command, timeout)
    except SpawnError as e:
        logger.warning("%s", e)
        return OperationOutcome(
            project_name=name,
            exit_code=SPAWN_ERROR_EXIT_CODE,
            stderr=str(e),
        )

    return OperationOutcome(
        project_name=name,
        exit_code=result.exit_code,
        stdout=result.stdout,
        stderr=result.stderr,
        timed_out=result.timed_out,
        duration_ms=result.duration_ms,
    )


def write_audit_entry(
    report: BatchReport,
    target_count: int,
    audit_writer: AuditWriter,
) -> bool:
    """Record a completed batch in the audit log.

    Returns:
        False if the entry could not be written.
    """
    return audit_writer.write(AuditEntry.from_report(report, target_count))
