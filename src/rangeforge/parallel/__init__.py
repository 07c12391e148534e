"""Per-sequence parallel execution for rangeforge.

Every verb is independent across sequences, so work is split into one
partition per sequence (and strand, for directed operations) and run on a
local thread or process pool. Results are merged by concatenation.

Example:
    >>> from rangeforge.parallel import ParallelExecutor
    >>> executor = ParallelExecutor(n_workers=8, backend="processes")
    >>> cov = compute_coverage(reads, executor=executor)
"""

from rangeforge.parallel.executor import (
    ExecutionStats,
    ExecutorBackend,
    ParallelExecutor,
    TaskResult,
    create_progress_bar,
    run_partitions,
)
from rangeforge.parallel.partition import (
    PartitionPlan,
    SequencePartition,
    partition_by_sequence,
)

__all__: list[str] = [
    # Partitioning
    "PartitionPlan",
    "SequencePartition",
    "partition_by_sequence",
    # Execution
    "ExecutionStats",
    "ExecutorBackend",
    "ParallelExecutor",
    "TaskResult",
    "create_progress_bar",
    "run_partitions",
]
