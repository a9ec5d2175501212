# Copyright (c) Syntropy Systems
"""Worker pool that builds packages and fixes up their constraints.

One feeder thread puts directories on a bounded task queue, a fixed
number of workers build them and rewrite their files, and the calling
thread collects results. A closer thread puts a sentinel on the result
queue once every worker has exited.
"""
from __future__ import annotations

import logging
import os
import queue
from dataclasses import dataclass, field
from pathlib import Path
from threading import Event, Thread
from typing import TYPE_CHECKING, Callable, Optional, cast

from tinygoize.errors import RunAbortedError
from tinygoize.models.status import BuildStatus
from tinygoize.rewriter import fixup_pkg_constraints
from tinygoize.runner import BuildCode, BuildOutcome

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tinygoize.runner import BuildRunner

logger = logging.getLogger(__name__)

Fixup = Callable[[Path, bool, bool], list[Path]]
ProgressCallback = Callable[[int, int, "WorkerResult"], None]

_DONE = None


@dataclass
class WorkerResult:
    """What a worker sends back for one directory."""

    directory: Path
    outcome: Optional[BuildOutcome] = None
    modified_files: list[Path] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def did_work(self) -> bool:
        """Whether files in the package need(ed) a constraint update."""
        return bool(self.modified_files)

    @property
    def fatal(self) -> bool:
        if self.error is not None:
            return True
        return self.outcome is not None and self.outcome.code is BuildCode.FATAL


def host_parallelism() -> int:
    """Number of CPUs this process may run on."""
    if hasattr(os, "sched_getaffinity"):
        return len(os.sched_getaffinity(0))
    return os.cpu_count() or 1


def resolve_workers(requested: int, jobs: int) -> int:
    """Pick the pool size: host parallelism by default, never more than jobs."""
    n_workers = requested if requested > 0 else host_parallelism()
    return min(n_workers, jobs)


def _worker(
    worker_id: int,
    runner: BuildRunner,
    fixup: Fixup,
    check_only: bool,
    tasks: queue.Queue[Optional[Path]],
    results: queue.Queue[Optional[WorkerResult]],
    stop: Event,
) -> None:
    while True:
        directory = tasks.get()
        if directory is _DONE:
            return
        if stop.is_set():
            # Drain without building so the feeder can finish.
            continue

        result = WorkerResult(directory=directory)
        try:
            result.outcome = runner.run(directory, worker_id)
            desired = result.outcome.desired
            if desired is not None:
                result.modified_files = fixup(directory, desired, check_only)
        except Exception as e:  # noqa: BLE001
            logger.error("[%d] %s: %s", worker_id, directory, e)
            result.error = e

        if result.fatal:
            stop.set()
        results.put(result)


def _feed(
    dirs: Sequence[Path],
    tasks: queue.Queue[Optional[Path]],
    n_workers: int,
    stop: Event,
) -> None:
    for directory in dirs:
        if stop.is_set():
            break
        tasks.put(directory)
    # One sentinel per worker closes the queue.
    for _ in range(n_workers):
        tasks.put(_DONE)


def _close_when_done(workers: list[Thread], results: queue.Queue[Optional[WorkerResult]]) -> None:
    for t in workers:
        t.join()
    results.put(_DONE)


def _describe(result: WorkerResult) -> str:
    if result.error is not None:
        return f"{result.directory}: {result.error}"
    outcome = cast("BuildOutcome", result.outcome)
    return f"{result.directory}: {outcome.error}"


def build_dirs(
    dirs: Sequence[Path | str],
    runner: BuildRunner,
    *,
    workers: int = 0,
    check_only: bool = False,
    fixup: Fixup = fixup_pkg_constraints,
    on_progress: Optional[ProgressCallback] = None,
) -> BuildStatus:
    """Run ``tinygo build`` in each of ``dirs`` and fix up their constraints.

    Args:
        dirs: Package directories
        runner: Builds and classifies one directory
        workers: Pool size; 0 or less means host parallelism
        check_only: Compute edits without writing files
        fixup: Rewrites one package's files, returns the changed ones
        on_progress: Called after each collected result

    Returns:
        The classified packages.

    Raises:
        RunAbortedError: a build could not be launched, or a file could
            not be parsed or written. ``status`` holds the partial result.

    """
    paths = [Path(d) for d in dirs]
    jobs = len(paths)
    status = BuildStatus()
    if jobs == 0:
        return status

    n_workers = resolve_workers(workers, jobs)
    tasks: queue.Queue[Optional[Path]] = queue.Queue(maxsize=1)
    results: queue.Queue[Optional[WorkerResult]] = queue.Queue()
    stop = Event()

    logger.info("Spawning %d workers", n_workers)
    pool: list[Thread] = []
    for worker_id in range(1, n_workers + 1):
        t = Thread(
            target=_worker,
            args=(worker_id, runner, fixup, check_only, tasks, results, stop),
            name=f"tinygoize-worker-{worker_id}",
        )
        pool.append(t)
        t.start()

    Thread(target=_feed, args=(paths, tasks, n_workers, stop), daemon=True).start()
    Thread(target=_close_when_done, args=(pool, results), daemon=True).start()

    n_complete = 0
    while True:
        result = results.get()
        if result is _DONE:
            break
        n_complete += 1
        if on_progress is not None:
            on_progress(n_complete, jobs, result)

        if result.fatal:
            stop.set()
            # Let in-flight builds and file writes finish before unwinding.
            for t in pool:
                t.join()
            raise RunAbortedError(_describe(result), status)

        outcome = cast("BuildOutcome", result.outcome)
        directory = str(result.directory)
        if outcome.code is BuildCode.EXCLUDED:
            status.excluded.append(directory)
        elif outcome.code is BuildCode.FAILED:
            status.failing.append(directory)
        else:
            status.passing.append(directory)
        if result.did_work:
            status.modified.append(directory)

    return status
