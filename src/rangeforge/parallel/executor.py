"""Local parallel execution of per-sequence work.

This module runs a function over independent partitions (typically one
per sequence) using Python's thread or process pools, or serially.

Features:
    - Multiple execution backends (serial, threads, processes)
    - Optional progress display with rich
    - Per-task timing and execution statistics
    - Failures re-raised with their original exception type

Functions submitted to the process backend must be picklable, e.g.
module-level functions or :func:`functools.partial` objects over them.

Example:
    >>> from rangeforge.parallel.executor import ParallelExecutor
    >>> executor = ParallelExecutor(n_workers=4, backend="threads")
    >>> results = executor.run(compute_one_sequence, plan.partitions)
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import Future, ProcessPoolExecutor, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from enum import Enum
from typing import Any, Callable, Sequence, TypeVar

import attrs
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


# =============================================================================
# Enums
# =============================================================================


class ExecutorBackend(Enum):
    """Available execution backends."""

    SERIAL = "serial"
    THREADS = "threads"
    PROCESSES = "processes"


# =============================================================================
# Data Structures
# =============================================================================


@attrs.define(slots=True)
class TaskResult:
    """Result from one partition task."""

    chunk_id: str
    success: bool
    result: Any | None = None
    error: str | None = None
    exception: BaseException | None = None
    duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "chunk_id": self.chunk_id,
            "success": self.success,
            "error": self.error,
            "duration_seconds": round(self.duration_seconds, 3),
        }


@attrs.define(slots=True)
class ExecutionStats:
    """Statistics from parallel execution."""

    total_tasks: int
    successful: int
    failed: int
    total_duration: float
    mean_task_duration: float
    max_task_duration: float

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "total_tasks": self.total_tasks,
            "successful": self.successful,
            "failed": self.failed,
            "total_duration": round(self.total_duration, 3),
            "mean_task_duration": round(self.mean_task_duration, 3),
            "max_task_duration": round(self.max_task_duration, 3),
        }


def _timed_call(func: Callable[[Any], Any], item: Any, chunk_id: str) -> TaskResult:
    """Run one task and capture its outcome."""
    start_time = time.time()
    try:
        result = func(item)
    except Exception as e:
        return TaskResult(
            chunk_id=chunk_id,
            success=False,
            error=f"{type(e).__name__}: {e}",
            exception=e,
            duration_seconds=time.time() - start_time,
        )
    return TaskResult(
        chunk_id=chunk_id,
        success=True,
        result=result,
        duration_seconds=time.time() - start_time,
    )


def _chunk_id(item: Any, position: int) -> str:
    return str(getattr(item, "chunk_id", position))


# =============================================================================
# Parallel Executor
# =============================================================================


class ParallelExecutor:
    """Execute a function over partitions in parallel.

    Results are always returned in input order, whatever order the
    workers finish in.

    Example:
        >>> executor = ParallelExecutor(n_workers=4, backend="threads")
        >>> results, stats = executor.map_partitions(func, partitions)
        >>> print(f"Processed {stats.successful}/{stats.total_tasks} partitions")
    """

    def __init__(
        self,
        n_workers: int = 1,
        backend: ExecutorBackend | str = ExecutorBackend.THREADS,
        progress_callback: Callable[[int, int, str], None] | None = None,
        show_progress: bool = False,
    ) -> None:
        """Initialize executor.

        Args:
            n_workers: Number of parallel workers (1 = serial).
            backend: Execution backend.
            progress_callback: Called with (completed, total, chunk_id).
            show_progress: Display a rich progress bar.
        """
        self.n_workers = max(1, n_workers)
        self.backend = ExecutorBackend(backend) if isinstance(backend, str) else backend
        self.progress_callback = progress_callback
        self.show_progress = show_progress

        # Auto-select serial if n_workers=1
        if self.n_workers == 1:
            self.backend = ExecutorBackend.SERIAL

    def __repr__(self) -> str:
        return f"ParallelExecutor(n_workers={self.n_workers}, backend={self.backend.value})"

    def map_partitions(
        self,
        func: Callable[[T], R],
        partitions: Sequence[T],
        continue_on_error: bool = True,
        deadline: float | None = None,
    ) -> tuple[list[TaskResult], ExecutionStats]:
        """Apply a function to each partition.

        Args:
            func: Function taking one partition.
            partitions: Units of work.
            continue_on_error: If False, stop submitting work after the
                first failure.
            deadline: Seconds from now after which tasks that have not
                started fail with TimeoutError.

        Returns:
            Tuple of (results in input order, execution stats).
        """
        partitions = list(partitions)
        if not partitions:
            return [], ExecutionStats(
                total_tasks=0,
                successful=0,
                failed=0,
                total_duration=0.0,
                mean_task_duration=0.0,
                max_task_duration=0.0,
            )

        logger.debug(
            f"Processing {len(partitions)} partitions with {self.n_workers} workers "
            f"(backend={self.backend.value})"
        )

        start_time = time.time()
        stop_at = start_time + deadline if deadline is not None else None

        if self.backend == ExecutorBackend.SERIAL:
            results = self._execute_serial(func, partitions, continue_on_error, stop_at)
        else:
            results = self._execute_pool(func, partitions, continue_on_error, stop_at)

        total_duration = time.time() - start_time
        successful = sum(1 for r in results if r.success)
        durations = [r.duration_seconds for r in results]
        stats = ExecutionStats(
            total_tasks=len(results),
            successful=successful,
            failed=len(results) - successful,
            total_duration=total_duration,
            mean_task_duration=sum(durations) / len(durations) if durations else 0.0,
            max_task_duration=max(durations) if durations else 0.0,
        )

        logger.debug(
            f"Completed: {successful}/{len(partitions)} partitions, "
            f"duration={total_duration:.3f}s"
        )
        return results, stats

    def run(
        self,
        func: Callable[[T], R],
        partitions: Sequence[T],
        deadline: float | None = None,
    ) -> list[R]:
        """Apply a function to each partition and return plain results.

        Args:
            func: Function taking one partition.
            partitions: Units of work.
            deadline: Optional time budget in seconds.

        Returns:
            Results in input order.

        Raises:
            Exception: The original exception of the first failed task.
        """
        results, _ = self.map_partitions(func, partitions, continue_on_error=False, deadline=deadline)
        for task in results:
            if not task.success:
                logger.error(f"Task {task.chunk_id} failed: {task.error}")
                if task.exception is not None:
                    raise task.exception
                raise RuntimeError(task.error)
        return [task.result for task in results]

    def _notify(self, completed: int, total: int, chunk_id: str) -> None:
        if self.progress_callback:
            self.progress_callback(completed, total, chunk_id)

    def _execute_serial(
        self,
        func: Callable,
        partitions: list,
        continue_on_error: bool,
        stop_at: float | None,
    ) -> list[TaskResult]:
        """Serial execution with progress tracking."""
        results: list[TaskResult] = []
        total = len(partitions)
        progress = create_progress_bar(total) if self.show_progress else None
        task_id = progress.add_task("Partitions", total=total) if progress else None

        if progress:
            progress.start()
        try:
            for i, partition in enumerate(partitions):
                chunk_id = _chunk_id(partition, i)
                if stop_at is not None and time.time() >= stop_at:
                    results.append(_deadline_result(chunk_id))
                else:
                    results.append(_timed_call(func, partition, chunk_id))
                self._notify(i + 1, total, chunk_id)
                if progress:
                    progress.advance(task_id)
                if not results[-1].success and not continue_on_error:
                    break
        finally:
            if progress:
                progress.stop()
        return results

    def _execute_pool(
        self,
        func: Callable,
        partitions: list,
        continue_on_error: bool,
        stop_at: float | None,
    ) -> list[TaskResult]:
        """Pool execution (threads or processes), results in input order."""
        pool_cls = ThreadPoolExecutor if self.backend == ExecutorBackend.THREADS else ProcessPoolExecutor
        total = len(partitions)
        results: list[TaskResult | None] = [None] * total
        completed = 0
        max_workers = get_optimal_workers(total, self.n_workers)
        progress = create_progress_bar(total) if self.show_progress else None
        task_id = progress.add_task("Partitions", total=total) if progress else None

        if progress:
            progress.start()
        try:
            with pool_cls(max_workers=max_workers) as pool:
                futures: list[Future] = [
                    pool.submit(_timed_call, func, partition, _chunk_id(partition, i))
                    for i, partition in enumerate(partitions)
                ]
                for i, future in enumerate(futures):
                    chunk_id = _chunk_id(partitions[i], i)
                    timeout = None if stop_at is None else max(0.0, stop_at - time.time())
                    try:
                        task_result = future.result(timeout=timeout)
                    except FutureTimeoutError:
                        future.cancel()
                        task_result = _deadline_result(chunk_id)
                    results[i] = task_result
                    completed += 1
                    self._notify(completed, total, chunk_id)
                    if progress:
                        progress.advance(task_id)

                    if not task_result.success and not continue_on_error:
                        for pending in futures[i + 1 :]:
                            pending.cancel()
                        break
        finally:
            if progress:
                progress.stop()

        return [r for r in results if r is not None]


def _deadline_result(chunk_id: str) -> TaskResult:
    error = TimeoutError(f"Deadline passed before partition {chunk_id} completed")
    return TaskResult(chunk_id=chunk_id, success=False, error=str(error), exception=error)


# =============================================================================
# Utilities
# =============================================================================


def run_partitions(
    func: Callable[[T], R],
    partitions: Sequence[T],
    executor: ParallelExecutor | None = None,
) -> list[R]:
    """Apply ``func`` to every partition, serially when no executor is given."""
    if executor is None:
        return [func(partition) for partition in partitions]
    return executor.run(func, partitions)


def get_optimal_workers(n_tasks: int, max_workers: int | None = None) -> int:
    """Determine a worker count for a number of independent tasks.

    Args:
        n_tasks: Number of partitions to process.
        max_workers: Upper bound (defaults to CPU count).

    Returns:
        Worker count between 1 and ``min(n_tasks, cpu_count)``.
    """
    cpu_count = os.cpu_count() or 1
    if max_workers is None:
        max_workers = cpu_count
    return max(1, min(max_workers, cpu_count, n_tasks))


def create_progress_bar(total: int, description: str = "Processing") -> Progress:
    """Create a rich progress bar for partition processing.

    Args:
        total: Total number of partitions.
        description: Description text.

    Returns:
        A configured (not yet started) rich Progress.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
    )
