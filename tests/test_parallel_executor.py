"""Tests for rangeforge.parallel.executor module.

Tests cover:
- TaskResult data structure
- ExecutionStats data structure
- ParallelExecutor with different backends
- Deadlines and error propagation
- Utility functions
"""

import os
import time

import numpy as np
import pytest

from rangeforge.parallel import executor as executor_module
from rangeforge.parallel.executor import (
    ExecutionStats,
    ExecutorBackend,
    ParallelExecutor,
    TaskResult,
    create_progress_bar,
    get_optimal_workers,
    run_partitions,
)
from rangeforge.parallel.partition import SequencePartition


def _size(partition: SequencePartition) -> int:
    return partition.size


# =============================================================================
# Data Structure Tests
# =============================================================================


class TestTaskResult:
    """Tests for TaskResult data structure."""

    def test_create_successful_result(self):
        """Test creating successful TaskResult."""
        result = TaskResult(chunk_id="chr1", success=True, result=10, duration_seconds=1.5)
        assert result.chunk_id == "chr1"
        assert result.success is True
        assert result.result == 10
        assert result.error is None
        assert result.exception is None

    def test_task_result_to_dict(self):
        """Test serialization to dict."""
        result = TaskResult(
            chunk_id="chr1",
            success=False,
            error="ValueError: bad",
            exception=ValueError("bad"),
            duration_seconds=1.5678,
        )
        d = result.to_dict()
        assert d["chunk_id"] == "chr1"
        assert d["success"] is False
        assert d["error"] == "ValueError: bad"
        assert d["duration_seconds"] == 1.568
        assert "result" not in d
        assert "exception" not in d


class TestExecutionStats:
    """Tests for ExecutionStats data structure."""

    def test_execution_stats_to_dict(self):
        """Test serialization to dict."""
        stats = ExecutionStats(
            total_tasks=10,
            successful=8,
            failed=2,
            total_duration=60.5678,
            mean_task_duration=5.1234,
            max_task_duration=12.3456,
        )
        d = stats.to_dict()
        assert d["total_tasks"] == 10
        assert d["failed"] == 2
        assert d["total_duration"] == 60.568
        assert d["mean_task_duration"] == 5.123
        assert d["max_task_duration"] == 12.346


# =============================================================================
# ParallelExecutor Tests
# =============================================================================


class TestParallelExecutor:
    """Tests for ParallelExecutor class."""

    @pytest.fixture
    def sample_partitions(self) -> list[SequencePartition]:
        """Create sample partitions for testing."""
        return [
            SequencePartition("chr1", "chr1", None, np.arange(3)),
            SequencePartition("chr2", "chr2", None, np.arange(3, 5)),
            SequencePartition("chr3", "chr3", None, np.arange(5, 6)),
        ]

    def test_executor_creation(self):
        """Test executor initialization."""
        executor = ParallelExecutor(n_workers=4, backend=ExecutorBackend.PROCESSES)
        assert executor.n_workers == 4
        assert executor.backend == ExecutorBackend.PROCESSES

    def test_executor_single_worker_uses_serial(self):
        """Test that single worker uses serial backend."""
        executor = ParallelExecutor(n_workers=1)
        assert executor.backend == ExecutorBackend.SERIAL

    def test_executor_string_backend(self):
        """Test using string for backend."""
        executor = ParallelExecutor(n_workers=2, backend="threads")
        assert executor.backend == ExecutorBackend.THREADS

    def test_executor_serial_success(self, sample_partitions):
        """Test serial execution with successful tasks."""
        executor = ParallelExecutor(n_workers=1)
        results, stats = executor.map_partitions(_size, sample_partitions)

        assert stats.total_tasks == 3
        assert stats.successful == 3
        assert stats.failed == 0
        assert [r.result for r in results] == [3, 2, 1]
        assert [r.chunk_id for r in results] == ["chr1", "chr2", "chr3"]

    def test_executor_serial_with_errors(self, sample_partitions):
        """Test serial execution with errors."""

        def failing_func(partition):
            if partition.sequence_name == "chr2":
                raise ValueError("Simulated error")
            return partition.size

        executor = ParallelExecutor(n_workers=1)
        results, stats = executor.map_partitions(failing_func, sample_partitions)

        assert stats.successful == 2
        assert stats.failed == 1
        failed = [r for r in results if not r.success]
        assert "Simulated error" in failed[0].error
        assert isinstance(failed[0].exception, ValueError)

    def test_executor_stop_on_error(self, sample_partitions):
        """Test stopping after the first failure."""
        calls = []

        def failing_func(partition):
            calls.append(partition.chunk_id)
            if partition.chunk_id == "chr2":
                raise ValueError("Stop here")
            return partition.size

        executor = ParallelExecutor(n_workers=1)
        results, _ = executor.map_partitions(failing_func, sample_partitions, continue_on_error=False)
        assert calls == ["chr1", "chr2"]
        assert len(results) == 2

    def test_run_reraises_original_exception(self, sample_partitions):
        """run() re-raises the task's own exception type."""

        class CustomError(Exception):
            pass

        def failing_func(partition):
            raise CustomError(partition.chunk_id)

        executor = ParallelExecutor(n_workers=2, backend="threads")
        with pytest.raises(CustomError):
            executor.run(failing_func, sample_partitions)

    def test_run_returns_plain_results(self, sample_partitions):
        """run() returns results in input order."""
        executor = ParallelExecutor(n_workers=1)
        assert executor.run(_size, sample_partitions) == [3, 2, 1]

    def test_executor_empty_partitions(self):
        """Test execution with empty partition list."""
        executor = ParallelExecutor(n_workers=1)
        results, stats = executor.map_partitions(lambda x: x, [])

        assert stats.total_tasks == 0
        assert stats.successful == 0
        assert results == []

    def test_executor_progress_callback(self, sample_partitions):
        """Test progress callback."""
        progress_log = []

        def callback(completed, total, chunk_id):
            progress_log.append((completed, total, chunk_id))

        executor = ParallelExecutor(n_workers=1, progress_callback=callback)
        executor.map_partitions(_size, sample_partitions)

        assert len(progress_log) == 3
        assert progress_log[-1] == (3, 3, "chr3")

    def test_executor_threads_keep_order(self, sample_partitions):
        """Threaded results come back in input order."""

        def slow_first(partition):
            if partition.chunk_id == "chr1":
                time.sleep(0.05)
            return partition.chunk_id

        executor = ParallelExecutor(n_workers=3, backend=ExecutorBackend.THREADS)
        results, stats = executor.map_partitions(slow_first, sample_partitions)

        assert stats.successful == 3
        assert [r.result for r in results] == ["chr1", "chr2", "chr3"]

    def test_pool_progress_bar(self, sample_partitions, monkeypatch):
        """The pool backends advance the rich progress bar."""
        created = []

        def recording_bar(total, description="Processing"):
            progress = create_progress_bar(total, description)
            created.append(progress)
            return progress

        monkeypatch.setattr(executor_module, "create_progress_bar", recording_bar)
        executor = ParallelExecutor(n_workers=2, backend="threads", show_progress=True)
        executor.map_partitions(_size, sample_partitions)

        assert len(created) == 1
        assert created[0].tasks[0].completed == 3
        assert created[0].tasks[0].total == 3

    def test_pool_sized_by_tasks(self, sample_partitions, monkeypatch):
        """The pool never starts more workers than there are partitions."""
        calls = []

        def recording_workers(n_tasks, max_workers=None):
            calls.append((n_tasks, max_workers))
            return get_optimal_workers(n_tasks, max_workers)

        monkeypatch.setattr(executor_module, "get_optimal_workers", recording_workers)
        executor = ParallelExecutor(n_workers=8, backend="threads")
        results, _ = executor.map_partitions(_size, sample_partitions)

        assert calls == [(3, 8)]
        assert [r.result for r in results] == [3, 2, 1]

    @pytest.mark.slow
    def test_executor_processes_backend(self, sample_partitions):
        """Test process-based execution."""
        executor = ParallelExecutor(n_workers=2, backend=ExecutorBackend.PROCESSES)
        results, stats = executor.map_partitions(_size, sample_partitions)

        assert stats.successful == 3
        assert [r.result for r in results] == [3, 2, 1]

    def test_deadline_passed(self, sample_partitions):
        """Tasks not started before the deadline fail with TimeoutError."""
        executor = ParallelExecutor(n_workers=1)
        results, stats = executor.map_partitions(_size, sample_partitions, deadline=0)

        assert stats.failed == 3
        assert all(isinstance(r.exception, TimeoutError) for r in results)

    def test_deadline_run_raises(self, sample_partitions):
        """run() surfaces a passed deadline as TimeoutError."""
        executor = ParallelExecutor(n_workers=1)
        with pytest.raises(TimeoutError):
            executor.run(_size, sample_partitions, deadline=0)

    def test_generous_deadline(self, sample_partitions):
        """A deadline that is not reached changes nothing."""
        executor = ParallelExecutor(n_workers=2, backend="threads")
        assert executor.run(_size, sample_partitions, deadline=60) == [3, 2, 1]


# =============================================================================
# Utility Function Tests
# =============================================================================


class TestRunPartitions:
    """Tests for run_partitions."""

    def test_without_executor(self):
        """Without an executor work runs inline."""
        assert run_partitions(lambda x: x * 2, [1, 2, 3]) == [2, 4, 6]

    def test_inline_errors_propagate(self):
        """Inline errors propagate unchanged."""

        def boom(x):
            raise KeyError(x)

        with pytest.raises(KeyError):
            run_partitions(boom, [1])

    def test_with_executor(self):
        """An executor returns the same results."""
        executor = ParallelExecutor(n_workers=2, backend="threads")
        assert run_partitions(lambda x: x * 2, [1, 2, 3], executor) == [2, 4, 6]


class TestGetOptimalWorkers:
    """Tests for get_optimal_workers function."""

    def test_bounded_by_tasks(self):
        """Never more workers than tasks."""
        assert get_optimal_workers(1) == 1

    def test_bounded_by_cpus(self):
        """Never more workers than CPUs."""
        assert 1 <= get_optimal_workers(10_000) <= (os.cpu_count() or 1)

    def test_max_workers_limit(self):
        """Test max_workers parameter."""
        assert get_optimal_workers(100, max_workers=2) <= 2

    def test_zero_tasks(self):
        """At least one worker is returned."""
        assert get_optimal_workers(0) == 1


class TestProgressBar:
    """Tests for create_progress_bar."""

    def test_create(self):
        """A rich Progress is returned without being started."""
        progress = create_progress_bar(10, "Sequences")
        task_id = progress.add_task("Sequences", total=10)
        progress.advance(task_id)
        assert progress.tasks[0].completed == 1


# =============================================================================
# ExecutorBackend Tests
# =============================================================================


class TestExecutorBackend:
    """Tests for ExecutorBackend enum."""

    def test_backend_values(self):
        """Test backend enum values."""
        assert ExecutorBackend.SERIAL.value == "serial"
        assert ExecutorBackend.THREADS.value == "threads"
        assert ExecutorBackend.PROCESSES.value == "processes"
