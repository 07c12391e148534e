"""Overlap queries between two interval collections.

:func:`find_overlaps` is the primitive every join and filter is built on. It
indexes the subject collection once (see
:class:`~rangeforge.index.sequence_index.GenomeIndex`) and queries it once per
query row, so the cost is O((n + m) log m + hits).

Overlap rules:
    - Two closed intervals overlap when ``a.start <= b.end`` and
      ``b.start <= a.end`` on the same sequence.
    - Zero-width intervals never overlap anything.
    - With ``directed=True`` strands must also be compatible.
    - With ``within=True`` the query must lie entirely inside the subject.

Example:
    >>> hits = find_overlaps(peaks, genes)
    >>> hits.query_hits, hits.subject_hits
    (array([0, 0, 2]), array([1, 4, 3]))
    >>> filter_by_overlaps(peaks, genes)
"""

from __future__ import annotations

import functools
import logging

import attrs
import numpy as np

from rangeforge.core.collection import IntervalCollection
from rangeforge.index.sequence_index import GenomeIndex
from rangeforge.parallel.executor import ParallelExecutor, run_partitions
from rangeforge.parallel.partition import SequencePartition, partition_by_sequence

logger = logging.getLogger(__name__)


# =============================================================================
# Data Structures
# =============================================================================


@attrs.define(frozen=True, eq=False)
class OverlapHits:
    """Pairs of overlapping rows.

    Pairs are ordered by query row, then by subject row.

    Attributes:
        query_hits: Query row of each pair (int64).
        subject_hits: Subject row of each pair (int64).
        n_query: Row count of the query collection.
        n_subject: Row count of the subject collection.
    """

    query_hits: np.ndarray
    subject_hits: np.ndarray
    n_query: int
    n_subject: int

    def __len__(self) -> int:
        return len(self.query_hits)

    def __iter__(self):
        return zip(self.query_hits.tolist(), self.subject_hits.tolist())

    def counts(self) -> np.ndarray:
        """Number of subject hits per query row."""
        return np.bincount(self.query_hits, minlength=self.n_query).astype(np.int64)

    def query_has_hit(self) -> np.ndarray:
        """Boolean mask of query rows with at least one hit."""
        return self.counts() > 0


# =============================================================================
# Core Query
# =============================================================================


def _query_partition(
    index: GenomeIndex,
    query: IntervalCollection,
    within: bool,
    partition: SequencePartition,
) -> tuple[np.ndarray, np.ndarray]:
    """Overlap pairs for the query rows of one sequence."""
    starts = query.starts
    ends = query.ends
    strands = query.strands
    lookup = index.within if within else index.overlapping

    q_parts: list[np.ndarray] = []
    s_parts: list[np.ndarray] = []
    for row in partition.row_ids.tolist():
        ids = lookup(partition.sequence_name, int(starts[row]), int(ends[row]), int(strands[row]))
        if len(ids):
            q_parts.append(np.full(len(ids), row, dtype=np.int64))
            s_parts.append(ids)

    if not q_parts:
        empty = np.empty(0, dtype=np.int64)
        return empty, empty
    return np.concatenate(q_parts), np.concatenate(s_parts)


def find_overlaps(
    query: IntervalCollection,
    subject: IntervalCollection,
    directed: bool = False,
    within: bool = False,
    unstranded_matches_any: bool = False,
    executor: ParallelExecutor | None = None,
) -> OverlapHits:
    """Find all overlapping (query, subject) row pairs.

    Args:
        query: Collection whose rows are looked up.
        subject: Collection that is indexed.
        directed: Require compatible strands.
        within: Only report subjects that fully contain the query row.
        unstranded_matches_any: In directed mode, let unstranded intervals
            match either strand.
        executor: Optional executor running the per-sequence lookups.

    Returns:
        OverlapHits ordered by query row, then subject row.
    """
    index = GenomeIndex(subject, directed=directed, unstranded_matches_any=unstranded_matches_any)
    plan = partition_by_sequence(query)
    func = functools.partial(_query_partition, index, query, within)
    results = run_partitions(func, plan.partitions, executor)

    if results:
        q_hits = np.concatenate([r[0] for r in results])
        s_hits = np.concatenate([r[1] for r in results])
    else:
        q_hits = np.empty(0, dtype=np.int64)
        s_hits = np.empty(0, dtype=np.int64)

    order = np.lexsort((s_hits, q_hits))
    q_hits = q_hits[order]
    s_hits = s_hits[order]
    q_hits.setflags(write=False)
    s_hits.setflags(write=False)

    logger.debug(
        f"find_overlaps: {len(query)} x {len(subject)} rows -> {len(q_hits)} pairs "
        f"(directed={directed}, within={within})"
    )
    return OverlapHits(q_hits, s_hits, len(query), len(subject))


# =============================================================================
# Filters and Counts
# =============================================================================


def overlaps_any(
    query: IntervalCollection,
    subject: IntervalCollection,
    directed: bool = False,
    within: bool = False,
    unstranded_matches_any: bool = False,
    executor: ParallelExecutor | None = None,
) -> np.ndarray:
    """Boolean mask of query rows overlapping at least one subject row."""
    hits = find_overlaps(query, subject, directed, within, unstranded_matches_any, executor)
    return hits.query_has_hit()


def count_overlaps(
    query: IntervalCollection,
    subject: IntervalCollection,
    directed: bool = False,
    within: bool = False,
    unstranded_matches_any: bool = False,
    executor: ParallelExecutor | None = None,
) -> np.ndarray:
    """Number of subject rows overlapping each query row (int64)."""
    hits = find_overlaps(query, subject, directed, within, unstranded_matches_any, executor)
    return hits.counts()


def filter_by_overlaps(
    query: IntervalCollection,
    subject: IntervalCollection,
    directed: bool = False,
    within: bool = False,
    unstranded_matches_any: bool = False,
    executor: ParallelExecutor | None = None,
) -> IntervalCollection:
    """Keep query rows that overlap any subject row, in query order.

    Example:
        >>> near_genes = filter_by_overlaps(snps, genes)
    """
    mask = overlaps_any(query, subject, directed, within, unstranded_matches_any, executor)
    return query.filter(mask)


def filter_by_non_overlaps(
    query: IntervalCollection,
    subject: IntervalCollection,
    directed: bool = False,
    within: bool = False,
    unstranded_matches_any: bool = False,
    executor: ParallelExecutor | None = None,
) -> IntervalCollection:
    """Keep query rows that overlap no subject row, in query order."""
    mask = overlaps_any(query, subject, directed, within, unstranded_matches_any, executor)
    return query.filter(~mask)
