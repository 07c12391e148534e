"""Set algebra over interval collections.

This module provides the position-set operations of the engine:

- :func:`reduce_ranges`: merge overlapping or adjacent intervals
- :func:`disjoin_ranges`: split intervals at every distinct boundary
- :func:`complement_ranges` (alias :func:`gaps`): uncovered stretches of
  each declared sequence
- :func:`union_ranges`, :func:`intersect_ranges`, :func:`setdiff_ranges`:
  set operations on the positions covered by two collections

Reduce and disjoin work per group: per sequence by default, per sequence
and strand when ``directed=True``, and additionally per group key when
given a :class:`~rangeforge.core.grouping.GroupedCollection`. Every group
is processed independently, so the work can be spread over a
:class:`~rangeforge.parallel.executor.ParallelExecutor`.

Strand handling in undirected mode:
    ``StrandPolicy.MERGE`` merges across strands and returns unstranded
    intervals. ``StrandPolicy.ERROR`` raises :class:`MixedStrandError` when
    one sequence carries more than one strand.

Example:
    >>> merged = reduce_ranges(exons, n=count(), ids=concat("exon_id"))
    >>> pieces = disjoin_ranges(exons.group_by("gene_id"))
    >>> introns = setdiff_ranges(genes, exons)
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Mapping
from enum import Enum

import numpy as np

from rangeforge.core.collection import IntervalCollection
from rangeforge.core.columns import Column
from rangeforge.core.exceptions import (
    IncompatibleGroupKey,
    MissingSequenceLengths,
    MixedStrandError,
    UnknownSequence,
)
from rangeforge.core.grouping import GroupedCollection
from rangeforge.core.interval import SequenceLengths
from rangeforge.index.sequence_index import SequenceIndex
from rangeforge.ops.aggregate import Reducer, evaluate_reducers
from rangeforge.parallel.executor import ParallelExecutor, run_partitions
from rangeforge.parallel.partition import SequencePartition, partition_by_sequence

logger = logging.getLogger(__name__)

DEFAULT_MIN_GAP_WIDTH = 1


class StrandPolicy(Enum):
    """Handling of mixed strands in undirected reduce and disjoin."""

    MERGE = "merge"  # Ignore strand, output unstranded
    ERROR = "error"  # Raise MixedStrandError


# =============================================================================
# Per-Partition Kernels
# =============================================================================


def _member_order(starts: np.ndarray, ends: np.ndarray, rows: np.ndarray) -> np.ndarray:
    """Rows sorted by start, then end, then input order."""
    order = np.lexsort((rows, ends[rows], starts[rows]))
    return rows[order]


def _reduce_partition(
    min_gap_width: int,
    starts: np.ndarray,
    ends: np.ndarray,
    partition: SequencePartition,
) -> list[tuple[int, int, np.ndarray]]:
    """Merged runs of one partition as (start, end, member rows)."""
    rows = partition.row_ids[ends[partition.row_ids] >= starts[partition.row_ids]]
    if not len(rows):
        return []
    rows = _member_order(starts, ends, rows)

    runs: list[tuple[int, int, np.ndarray]] = []
    run_start = int(starts[rows[0]])
    run_end = int(ends[rows[0]])
    first = 0
    for k in range(1, len(rows)):
        s = int(starts[rows[k]])
        e = int(ends[rows[k]])
        if s - run_end - 1 < min_gap_width:
            run_end = max(run_end, e)
        else:
            runs.append((run_start, run_end, rows[first:k]))
            run_start, run_end, first = s, e, k
    runs.append((run_start, run_end, rows[first:]))
    return runs


def _disjoin_partition(
    starts: np.ndarray,
    ends: np.ndarray,
    partition: SequencePartition,
) -> list[tuple[int, int, np.ndarray]]:
    """Disjoint pieces of one partition as (start, end, covering rows)."""
    rows = partition.row_ids[ends[partition.row_ids] >= starts[partition.row_ids]]
    if not len(rows):
        return []

    bounds = np.unique(np.concatenate([starts[rows], ends[rows] + 1]))
    index = SequenceIndex(starts[rows], ends[rows], rows)
    pieces: list[tuple[int, int, np.ndarray]] = []
    for lo, hi in zip(bounds[:-1].tolist(), (bounds[1:] - 1).tolist()):
        covering = index.within(lo, hi)
        if len(covering):
            pieces.append((lo, hi, _member_order(starts, ends, covering)))
    return pieces


# =============================================================================
# Grouped Driver
# =============================================================================


def _unpack(
    data: IntervalCollection | GroupedCollection,
    directed: bool,
) -> tuple[IntervalCollection, np.ndarray | None, tuple[str, ...], bool]:
    """Split input into (collection, group ids, extra key columns, directed)."""
    if not isinstance(data, GroupedCollection):
        return data, None, (), directed
    if "strand" in data.key_names:
        directed = True
    extra = tuple(k for k in data.key_names if k not in ("sequence_name", "strand"))
    for key in extra:
        if key in ("start", "end", "width"):
            raise IncompatibleGroupKey(f"Cannot reduce or disjoin grouped by coordinate '{key}'")
    return data.collection, data.group_ids(), extra, directed


def _check_strands(collection: IntervalCollection, group_ids: np.ndarray | None) -> None:
    seen: dict[tuple, int] = {}
    gids = group_ids if group_ids is not None else np.zeros(len(collection), dtype=np.int64)
    for name, strand, gid in zip(collection.sequence_names, collection.strands.tolist(), gids.tolist()):
        key = (gid, name)
        if seen.setdefault(key, strand) != strand:
            raise MixedStrandError(
                f"Sequence '{name}' has intervals on more than one strand; "
                f"use directed=True or StrandPolicy.MERGE"
            )


def _run_grouped(
    kernel,
    data: IntervalCollection | GroupedCollection,
    directed: bool,
    strand_policy: StrandPolicy | str,
    aggregations: Mapping[str, Reducer],
    executor: ParallelExecutor | None,
    op_name: str,
) -> IntervalCollection:
    collection, group_ids, extra_keys, directed = _unpack(data, directed)
    strand_policy = StrandPolicy(strand_policy)
    if not directed and strand_policy == StrandPolicy.ERROR:
        _check_strands(collection, group_ids)

    plan = partition_by_sequence(collection, directed=directed, group_ids=group_ids)
    func = functools.partial(kernel, collection.starts, collection.ends)
    results = run_partitions(func, plan.partitions, executor)

    names: list[str] = []
    starts: list[int] = []
    ends: list[int] = []
    strands: list[int] = []
    members: list[np.ndarray] = []
    key_rows: list[int] = []
    for partition, runs in zip(plan.partitions, results):
        strand = partition.strand if partition.strand is not None else 0
        for start, end, rows in runs:
            names.append(partition.sequence_name)
            starts.append(start)
            ends.append(end)
            strands.append(strand)
            members.append(rows)
            key_rows.append(int(partition.row_ids[0]))

    columns: dict[str, Column] = {}
    if extra_keys:
        key_index = np.asarray(key_rows, dtype=np.int64)
        for key in extra_keys:
            columns[key] = collection.get(key).take(key_index)
    columns.update(evaluate_reducers(collection, members, aggregations))

    result = IntervalCollection(
        names,
        np.asarray(starts, dtype=np.int64),
        np.asarray(ends, dtype=np.int64),
        np.asarray(strands, dtype=np.int8),
        columns=columns,
        seqlengths=collection.seqlengths,
        bounds_policy="ignore",
    )
    logger.debug(f"{op_name}: {len(collection)} intervals -> {len(result)} in {len(plan)} partitions")
    return result


# =============================================================================
# Reduce and Disjoin
# =============================================================================


def reduce_ranges(
    data: IntervalCollection | GroupedCollection,
    directed: bool = False,
    strand_policy: StrandPolicy | str = StrandPolicy.MERGE,
    min_gap_width: int = DEFAULT_MIN_GAP_WIDTH,
    executor: ParallelExecutor | None = None,
    **aggregations: Reducer,
) -> IntervalCollection:
    """Merge overlapping and adjacent intervals.

    Intervals separated by fewer than ``min_gap_width`` uncovered bases are
    merged; the default of 1 merges adjacent intervals (``end + 1 ==
    next start``), 0 merges only overlapping ones. Zero-width intervals
    are dropped.

    Args:
        data: Collection, or GroupedCollection to reduce per group.
        directed: Reduce each strand separately and keep strand.
        strand_policy: Mixed-strand handling when undirected.
        min_gap_width: Smallest gap that keeps two intervals apart.
        executor: Optional executor for the per-sequence work.
        **aggregations: Output column name to Reducer, evaluated over the
            inputs of each merged interval (ordered by start, end, then
            input order).

    Returns:
        Disjoint, non-adjacent intervals ordered by group, sequence,
        strand and start. Group key columns lead the metadata.

    Raises:
        MixedStrandError: With ``StrandPolicy.ERROR`` and mixed strands.

    Example:
        >>> reduce_ranges(peaks, n=count()).to_records()
        [{'sequence_name': 'chr1', 'start': 1, 'end': 20, 'strand': '*', 'n': 2}]
    """
    if min_gap_width < 0:
        raise ValueError(f"min_gap_width must be >= 0, got {min_gap_width}")
    kernel = functools.partial(_reduce_partition, min_gap_width)
    return _run_grouped(kernel, data, directed, strand_policy, aggregations, executor, "reduce_ranges")


def disjoin_ranges(
    data: IntervalCollection | GroupedCollection,
    directed: bool = False,
    strand_policy: StrandPolicy | str = StrandPolicy.MERGE,
    executor: ParallelExecutor | None = None,
    **aggregations: Reducer,
) -> IntervalCollection:
    """Split intervals at every distinct boundary.

    Boundaries are every input start and every input ``end + 1``. Only
    pieces covered by at least one input are emitted, so the union of the
    pieces equals the union of the inputs and no two pieces overlap.

    Args:
        data: Collection, or GroupedCollection to disjoin per group.
        directed: Disjoin each strand separately and keep strand.
        strand_policy: Mixed-strand handling when undirected.
        executor: Optional executor for the per-sequence work.
        **aggregations: Output column name to Reducer, evaluated over the
            inputs covering each piece.

    Returns:
        Disjoint intervals ordered by group, sequence, strand and start.
    """
    return _run_grouped(_disjoin_partition, data, directed, strand_policy, aggregations, executor, "disjoin_ranges")


# =============================================================================
# Complement
# =============================================================================


def complement_ranges(
    collection: IntervalCollection,
    seqlengths: Mapping[str, int] | SequenceLengths | None = None,
) -> IntervalCollection:
    """Stretches of each declared sequence not covered by any interval.

    Every sequence of the length table is visited, in table order; a
    sequence without intervals yields one gap spanning ``[1, length]``.
    Strand is ignored and the output is unstranded.

    Args:
        collection: Intervals whose gaps are wanted.
        seqlengths: Length table; defaults to the collection's own.

    Returns:
        Unstranded gaps carrying the length table.

    Raises:
        MissingSequenceLengths: If no length table is available.
        UnknownSequence: If an interval lies on a sequence missing from
            the table.
    """
    if seqlengths is None:
        seqlengths = collection.seqlengths
    if seqlengths is None:
        raise MissingSequenceLengths("complement_ranges needs a sequence length table")
    if not isinstance(seqlengths, SequenceLengths):
        seqlengths = SequenceLengths(seqlengths)

    for name in set(collection.sequence_names.tolist()):
        if name not in seqlengths:
            raise UnknownSequence(f"Sequence '{name}' not in sequence length table")

    reduced = reduce_ranges(collection.unstrand())
    by_name: dict[str, list[tuple[int, int]]] = {}
    for name, s, e in zip(reduced.sequence_names, reduced.starts.tolist(), reduced.ends.tolist()):
        by_name.setdefault(name, []).append((s, e))

    names: list[str] = []
    starts: list[int] = []
    ends: list[int] = []
    for name, length in seqlengths.items():
        cursor = 1
        for s, e in by_name.get(name, []):
            if s > cursor and cursor <= length:
                names.append(name)
                starts.append(cursor)
                ends.append(min(s - 1, length))
            cursor = max(cursor, e + 1)
        if cursor <= length:
            names.append(name)
            starts.append(cursor)
            ends.append(length)

    logger.debug(f"complement_ranges: {len(names)} gaps over {len(seqlengths)} sequences")
    return IntervalCollection(names, starts, ends, seqlengths=seqlengths)


gaps = complement_ranges


# =============================================================================
# Two-Collection Set Operations
# =============================================================================


def _positions(collection: IntervalCollection) -> IntervalCollection:
    """Reduced, unstranded, metadata-free copy."""
    stripped = collection.unstrand()
    return reduce_ranges(stripped.drop(*stripped.column_names))


def _span_lengths(*collections: IntervalCollection) -> SequenceLengths:
    """Length table reaching past the last interval end of every sequence."""
    spans: dict[str, int] = {}
    for c in collections:
        if c.seqlengths is not None:
            for name, length in c.seqlengths.items():
                spans[name] = max(spans.get(name, 0), length)
        for name, end in zip(c.sequence_names, c.ends.tolist()):
            spans[name] = max(spans.get(name, 0), end)
    return SequenceLengths(spans)


def union_ranges(a: IntervalCollection, b: IntervalCollection) -> IntervalCollection:
    """Positions covered by either collection, as reduced intervals."""
    return reduce_ranges(IntervalCollection.concat([_positions(a), _positions(b)]))


def intersect_ranges(a: IntervalCollection, b: IntervalCollection) -> IntervalCollection:
    """Positions covered by both collections, as reduced intervals."""
    ra = _positions(a)
    rb = _positions(b)

    names: list[str] = []
    starts: list[int] = []
    ends: list[int] = []
    for name in ra.sequence_order():
        xs = ra.filter(ra.sequence_names == name)
        ys = rb.filter(rb.sequence_names == name)
        i = j = 0
        while i < len(xs) and j < len(ys):
            lo = max(int(xs.starts[i]), int(ys.starts[j]))
            hi = min(int(xs.ends[i]), int(ys.ends[j]))
            if lo <= hi:
                names.append(name)
                starts.append(lo)
                ends.append(hi)
            if xs.ends[i] < ys.ends[j]:
                i += 1
            else:
                j += 1

    logger.debug(f"intersect_ranges: {len(ra)} x {len(rb)} reduced intervals -> {len(names)}")
    return IntervalCollection(names, starts, ends, seqlengths=a.seqlengths, bounds_policy="ignore")


def setdiff_ranges(a: IntervalCollection, b: IntervalCollection) -> IntervalCollection:
    """Positions covered by ``a`` but not by ``b``, as reduced intervals."""
    universe = _span_lengths(a, b)
    outside_b = complement_ranges(_positions(b).with_seqlengths(None), seqlengths=universe)
    return intersect_ranges(a, outside_b)
