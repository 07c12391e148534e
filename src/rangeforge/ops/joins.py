"""Overlap and nearest-neighbour joins.

Joins pair rows of a left collection with rows of a right collection by
genomic position rather than by key equality. Every join keeps the left
interval (or, for :func:`join_overlap_intersect`, the intersection), the
left strand, the left metadata and the left length table, and appends the
right metadata columns.

Ordering:
    Output rows follow left row order. Several matches of one left row
    follow right row order.

Column collisions:
    A metadata name present on both sides is renamed on both sides with
    ``suffixes`` (default ``(".x", ".y")``).

Example:
    >>> joined = join_overlap_inner(peaks, genes)
    >>> joined.column_names
    ['score', 'gene_id']
    >>> left = join_overlap_left(peaks, genes)
    >>> left["gene_id"].to_list()
    ['g1', None, 'g2']
"""

from __future__ import annotations

import logging

import numpy as np

from rangeforge.core.collection import RESERVED_COLUMNS, IntervalCollection
from rangeforge.core.columns import Column
from rangeforge.core.exceptions import ReservedColumnName
from rangeforge.index.sequence_index import GenomeIndex
from rangeforge.ops.overlaps import find_overlaps
from rangeforge.parallel.executor import ParallelExecutor

logger = logging.getLogger(__name__)

DEFAULT_SUFFIXES = (".x", ".y")


# =============================================================================
# Helpers
# =============================================================================


def _joined(
    left: IntervalCollection,
    right: IntervalCollection,
    left_rows: np.ndarray,
    right_rows: np.ndarray,
    suffixes: tuple[str, str],
) -> IntervalCollection:
    """Left rows with the matching right metadata appended.

    A right row index of -1 yields missing right values.
    """
    if len(suffixes) != 2:
        raise ValueError(f"suffixes must hold two strings, got {suffixes!r}")
    left_suffix, right_suffix = suffixes
    shared = set(left.column_names) & set(right.column_names)

    columns: dict[str, Column] = {}
    taken = left.take(left_rows)
    for name, col in taken.columns.items():
        columns[name + left_suffix if name in shared else name] = col
    for name, col in right.columns.items():
        out_name = name + right_suffix if name in shared else name
        if out_name in columns:
            raise ReservedColumnName(f"Joined column name '{out_name}' is ambiguous")
        if out_name in RESERVED_COLUMNS:
            raise ReservedColumnName(f"Column name '{out_name}' is reserved")
        columns[out_name] = col.take(right_rows)

    return taken.drop(*taken.column_names).mutate(**columns)


# =============================================================================
# Overlap Joins
# =============================================================================


def join_overlap_inner(
    left: IntervalCollection,
    right: IntervalCollection,
    directed: bool = False,
    within: bool = False,
    suffixes: tuple[str, str] = DEFAULT_SUFFIXES,
    unstranded_matches_any: bool = False,
    executor: ParallelExecutor | None = None,
) -> IntervalCollection:
    """One row per overlapping (left, right) pair, keeping the left interval.

    Args:
        left: Left collection.
        right: Right collection (indexed).
        directed: Require compatible strands.
        within: Only pair a left row with right rows that contain it.
        suffixes: Renaming suffixes for shared column names.
        unstranded_matches_any: Strand rule used when directed.
        executor: Optional executor for the per-sequence lookups.

    Returns:
        A new collection.
    """
    hits = find_overlaps(left, right, directed, within, unstranded_matches_any, executor)
    logger.debug(f"join_overlap_inner: {len(hits)} pairs")
    return _joined(left, right, hits.query_hits, hits.subject_hits, suffixes)


def join_overlap_intersect(
    left: IntervalCollection,
    right: IntervalCollection,
    directed: bool = False,
    within: bool = False,
    suffixes: tuple[str, str] = DEFAULT_SUFFIXES,
    unstranded_matches_any: bool = False,
    executor: ParallelExecutor | None = None,
) -> IntervalCollection:
    """Like :func:`join_overlap_inner` but each output interval is the
    intersection ``[max(l.start, r.start), min(l.end, r.end)]``.
    """
    hits = find_overlaps(left, right, directed, within, unstranded_matches_any, executor)
    joined = _joined(left, right, hits.query_hits, hits.subject_hits, suffixes)
    starts = np.maximum(left.starts[hits.query_hits], right.starts[hits.subject_hits])
    ends = np.minimum(left.ends[hits.query_hits], right.ends[hits.subject_hits])
    return joined.with_coordinates(starts=starts, ends=ends)


def join_overlap_left(
    left: IntervalCollection,
    right: IntervalCollection,
    directed: bool = False,
    within: bool = False,
    suffixes: tuple[str, str] = DEFAULT_SUFFIXES,
    unstranded_matches_any: bool = False,
    executor: ParallelExecutor | None = None,
) -> IntervalCollection:
    """Like :func:`join_overlap_inner` but unmatched left rows are kept.

    A left row without any match yields exactly one row whose right
    columns are missing (``None``).
    """
    hits = find_overlaps(left, right, directed, within, unstranded_matches_any, executor)
    unmatched = np.flatnonzero(hits.counts() == 0)

    left_rows = np.concatenate([hits.query_hits, unmatched]).astype(np.int64)
    right_rows = np.concatenate([hits.subject_hits, np.full(len(unmatched), -1, dtype=np.int64)])
    order = np.lexsort((right_rows, left_rows))

    logger.debug(f"join_overlap_left: {len(hits)} pairs, {len(unmatched)} unmatched left rows")
    return _joined(left, right, left_rows[order], right_rows[order], suffixes)


# =============================================================================
# Nearest Join
# =============================================================================


def join_nearest(
    left: IntervalCollection,
    right: IntervalCollection,
    directed: bool = False,
    suffixes: tuple[str, str] = DEFAULT_SUFFIXES,
    unstranded_matches_any: bool = False,
    distance_column: str = "distance",
) -> IntervalCollection:
    """Pair each left row with its nearest right interval.

    Overlapping and adjacent intervals are at distance 0. Among several
    right intervals at the same distance the first in right order wins.
    Left rows with no candidate on their sequence are dropped.

    Args:
        left: Left collection.
        right: Right collection (indexed).
        directed: Require compatible strands.
        suffixes: Renaming suffixes for shared column names.
        unstranded_matches_any: Strand rule used when directed.
        distance_column: Name of the added distance column.

    Returns:
        A new collection with the right metadata and a distance column.
    """
    index = GenomeIndex(right, directed=directed, unstranded_matches_any=unstranded_matches_any)
    left_rows: list[int] = []
    right_rows: list[int] = []
    distances: list[int] = []
    for i in range(len(left)):
        ids, dist = index.nearest(
            left.sequence_names[i],
            int(left.starts[i]),
            int(left.ends[i]),
            int(left.strands[i]),
        )
        if dist < 0:
            continue
        left_rows.append(i)
        right_rows.append(int(ids[0]))
        distances.append(dist)

    joined = _joined(
        left,
        right,
        np.asarray(left_rows, dtype=np.int64),
        np.asarray(right_rows, dtype=np.int64),
        suffixes,
    )
    logger.debug(f"join_nearest: {len(left_rows)}/{len(left)} left rows matched")
    return joined.mutate(**{distance_column: np.asarray(distances, dtype=np.int64)})
