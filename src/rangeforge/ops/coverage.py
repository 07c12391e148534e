"""Per-base coverage as a run-length partition.

Coverage is computed with a sweep line per sequence (per sequence and
strand when directed): every interval contributes ``+weight`` at its start
and ``-weight`` at ``end + 1``; deltas at one position are applied
together, and a new run starts wherever the running sum changes.

The result is a *coverage partition*: a collection whose intervals are
disjoint, cover the requested extent contiguously and carry a ``score``
column. Gaps are reported with score 0.

Extent:
    - ``CoverageExtent.SEQUENCE_LENGTHS``: ``[1, length]`` for every
      sequence of the length table (which is then required).
    - ``CoverageExtent.OBSERVED``: ``[min start, max end]`` of the inputs on
      each sequence.

Zero-width intervals add no events.

Example:
    >>> cov = compute_coverage(reads, extent=CoverageExtent.OBSERVED)
    >>> cov.to_bedgraph()
    [('chr1', 0, 4, 1), ('chr1', 4, 10, 2), ('chr1', 10, 15, 1)]
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Mapping
from enum import Enum

import numpy as np

from rangeforge.core.collection import IntervalCollection
from rangeforge.core.columns import Column, ColumnKind
from rangeforge.core.exceptions import MissingSequenceLengths, UnknownSequence
from rangeforge.core.interval import SequenceLengths
from rangeforge.parallel.executor import ParallelExecutor, run_partitions
from rangeforge.parallel.partition import SequencePartition, partition_by_sequence

logger = logging.getLogger(__name__)

SCORE_COLUMN = "score"


class CoverageExtent(Enum):
    """Region over which coverage runs are reported."""

    SEQUENCE_LENGTHS = "sequence_lengths"
    OBSERVED = "observed"


# =============================================================================
# Sweep Kernel
# =============================================================================


def _sweep(
    starts: np.ndarray,
    ends: np.ndarray,
    weights: np.ndarray,
    lo: int,
    hi: int,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Coverage runs over ``[lo, hi]`` as (starts, ends, scores)."""
    if hi < lo:
        empty = np.empty(0, dtype=np.int64)
        return empty, empty, np.empty(0, dtype=weights.dtype)

    keep = ends >= starts
    positions = np.concatenate([starts[keep], ends[keep] + 1])
    deltas = np.concatenate([weights[keep], -weights[keep]])

    n_kept = int(keep.sum())
    opens = np.repeat(np.asarray([1, -1], dtype=np.int64), n_kept)

    unique_pos, inverse = np.unique(positions, return_inverse=True)
    summed = np.zeros(len(unique_pos), dtype=weights.dtype)
    np.add.at(summed, inverse, deltas)
    active = np.zeros(len(unique_pos), dtype=np.int64)
    np.add.at(active, inverse, opens)
    # float sums leave residue once every interval has closed
    running = np.where(np.cumsum(active) > 0, np.cumsum(summed), 0).astype(weights.dtype)

    inner = unique_pos[(unique_pos > lo) & (unique_pos <= hi)]
    bounds = np.concatenate([np.asarray([lo], dtype=np.int64), inner])
    at = np.searchsorted(unique_pos, bounds, side="right") - 1
    if len(running):
        scores = np.where(at >= 0, running[np.maximum(at, 0)], 0).astype(weights.dtype)
    else:
        scores = np.zeros(len(bounds), dtype=weights.dtype)

    # merge neighbouring runs whose score did not change
    changed = np.concatenate([[True], scores[1:] != scores[:-1]])
    run_starts = bounds[changed]
    run_scores = scores[changed]
    run_ends = np.append(run_starts[1:] - 1, hi)
    return run_starts, run_ends, run_scores


def _coverage_partition(
    starts: np.ndarray,
    ends: np.ndarray,
    weights: np.ndarray,
    extents: Mapping[str, tuple[int, int]],
    partition: SequencePartition,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    rows = partition.row_ids
    lo, hi = extents[partition.sequence_name]
    return _sweep(starts[rows], ends[rows], weights[rows], lo, hi)


# =============================================================================
# Coverage
# =============================================================================


def _weights(collection: IntervalCollection, weight: str | int | float | None) -> np.ndarray:
    if weight is None:
        return np.ones(len(collection), dtype=np.int64)
    if isinstance(weight, (int, float)) and not isinstance(weight, bool):
        dtype = np.int64 if isinstance(weight, int) else np.float64
        return np.full(len(collection), weight, dtype=dtype)

    col = collection.get(weight)
    if col.kind == ColumnKind.INTEGER or col.kind == ColumnKind.BOOLEAN:
        values = col.values.astype(np.int64)
        return np.where(col.mask, 0, values)
    if col.kind == ColumnKind.FLOAT:
        return np.where(col.mask, 0.0, col.values)
    raise TypeError(f"Weight column '{weight}' must be numeric, got {col.kind.value}")


def compute_coverage(
    *collections: IntervalCollection,
    extent: CoverageExtent | str = CoverageExtent.SEQUENCE_LENGTHS,
    seqlengths: Mapping[str, int] | SequenceLengths | None = None,
    weight: str | int | float | None = None,
    directed: bool = False,
    executor: ParallelExecutor | None = None,
) -> IntervalCollection:
    """Compute the coverage partition of one or more collections.

    Args:
        *collections: Input collections; their intervals are pooled.
        extent: Region over which runs are reported.
        seqlengths: Length table; defaults to the merged tables of the
            inputs.
        weight: Per-interval contribution: None (1), a number, or a
            numeric column name (missing values count as 0).
        directed: Compute coverage per strand. Runs of each strand present
            on a sequence are reported separately.
        executor: Optional executor for the per-sequence sweeps.

    Returns:
        A coverage partition with a ``score`` column (INTEGER, or FLOAT for
        float weights) in sequence order, then strand, then position.

    Raises:
        MissingSequenceLengths: For ``SEQUENCE_LENGTHS`` without a table.
        UnknownSequence: If an input sequence is absent from the table.
    """
    extent = CoverageExtent(extent)

    table: SequenceLengths | None = None
    if seqlengths is not None:
        table = seqlengths if isinstance(seqlengths, SequenceLengths) else SequenceLengths(seqlengths)
    else:
        for c in collections:
            if c.seqlengths is not None:
                table = c.seqlengths if table is None else table.merge(c.seqlengths)
    if extent == CoverageExtent.SEQUENCE_LENGTHS and table is None:
        raise MissingSequenceLengths(
            "compute_coverage needs a sequence length table for extent=SEQUENCE_LENGTHS; "
            "pass seqlengths= or use CoverageExtent.OBSERVED"
        )

    weight_parts = [_weights(c, weight) for c in collections]
    float_weights = any(w.dtype.kind == "f" for w in weight_parts)
    weights = (
        np.concatenate(weight_parts).astype(np.float64 if float_weights else np.int64)
        if weight_parts
        else np.empty(0, dtype=np.int64)
    )
    pooled = IntervalCollection.concat([c.drop(*c.column_names).with_seqlengths(None) for c in collections])
    if not directed:
        pooled = pooled.unstrand()

    if table is not None:
        for name in set(pooled.sequence_names.tolist()):
            if name not in table:
                raise UnknownSequence(f"Sequence '{name}' not in sequence length table")

    extents: dict[str, tuple[int, int]] = {}
    if extent == CoverageExtent.SEQUENCE_LENGTHS:
        sequence_names = list(table)
        for name, length in table.items():
            extents[name] = (1, length)
    else:
        sequence_names = [n for n in table if n in set(pooled.sequence_names.tolist())] if table else None
        nonempty = pooled.ends >= pooled.starts
        for name, s, e in zip(
            pooled.sequence_names[nonempty],
            pooled.starts[nonempty].tolist(),
            pooled.ends[nonempty].tolist(),
        ):
            lo, hi = extents.get(name, (s, e))
            extents[name] = (min(lo, s), max(hi, e))

    plan = partition_by_sequence(pooled, directed=directed, sequence_names=sequence_names)
    partitions = [p for p in plan if p.sequence_name in extents]
    func = functools.partial(_coverage_partition, pooled.starts, pooled.ends, weights, extents)
    results = run_partitions(func, partitions, executor)

    names: list[np.ndarray] = []
    strands: list[np.ndarray] = []
    for partition, (run_starts, _, _) in zip(partitions, results):
        names.append(np.full(len(run_starts), partition.sequence_name, dtype=object))
        strands.append(np.full(len(run_starts), partition.strand or 0, dtype=np.int8))

    kind = ColumnKind.FLOAT if float_weights else ColumnKind.INTEGER
    dtype = np.float64 if float_weights else np.int64
    if results:
        run_starts = np.concatenate([r[0] for r in results]).astype(np.int64)
        run_ends = np.concatenate([r[1] for r in results]).astype(np.int64)
        scores = np.concatenate([r[2] for r in results]).astype(dtype)
        run_names = np.concatenate(names)
        run_strands = np.concatenate(strands)
    else:
        run_starts = run_ends = np.empty(0, dtype=np.int64)
        scores = np.empty(0, dtype=dtype)
        run_names = np.empty(0, dtype=object)
        run_strands = np.empty(0, dtype=np.int8)

    result = IntervalCollection(
        run_names,
        run_starts,
        run_ends,
        run_strands,
        columns={SCORE_COLUMN: Column(scores, kind)},
        seqlengths=table,
        bounds_policy="ignore",
    )
    logger.debug(f"compute_coverage: {len(pooled)} intervals -> {len(result)} runs ({extent.value})")
    return result


def coverage_at(
    partition: IntervalCollection,
    sequence_name: str,
    position: int,
    strand: int | None = None,
    score: str = SCORE_COLUMN,
) -> int | float:
    """Score of the run containing ``position``; 0 outside every run.

    Args:
        partition: A coverage partition.
        sequence_name: Sequence to look up.
        position: 1-based position.
        strand: Restrict to runs of one strand (directed partitions).
        score: Score column name.
    """
    mask = (
        (partition.sequence_names == sequence_name)
        & (partition.starts <= position)
        & (partition.ends >= position)
    )
    if strand is not None:
        mask &= partition.strands == int(strand)
    hits = np.flatnonzero(mask)
    if not len(hits):
        return 0
    values = partition.get(score)
    if len(hits) == 1:
        return values[int(hits[0])]
    return sum(values[int(i)] for i in hits)
