"""Static overlap indices over interval collections.

This module provides the query structures behind every join and filter:

- :class:`SequenceIndex`: intervals of one sequence (or one sequence and
  strand), sorted by start with a running maximum of ends.
- :class:`GenomeIndex`: one :class:`SequenceIndex` per sequence, or per
  (sequence, strand) partition for directed queries.

Algorithm:
    Starts are sorted ascending and ``max_end[i]`` holds the largest end among
    the first ``i + 1`` sorted intervals, so ``max_end`` is non-decreasing.
    For a closed query ``[qs, qe]`` any overlapping interval satisfies
    ``start <= qe`` (a prefix of the sorted order, found by binary search)
    and lies at or after the first position where ``max_end >= qs`` (a
    second binary search). Only that window is scanned, so a query costs
    O(log n + candidates).

Zero-width intervals (``end == start - 1``) are left out of the overlap
structure and a zero-width query overlaps nothing.

Indices are immutable once built and hold read-only arrays, so they can be
shared between threads without locking.

Example:
    >>> index = GenomeIndex(collection)
    >>> index.overlapping("chr1", 100, 200)
    array([0, 3])
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy as np

from rangeforge.core.collection import IntervalCollection
from rangeforge.core.interval import Strand

logger = logging.getLogger(__name__)

_EMPTY = np.empty(0, dtype=np.int64)
_EMPTY.setflags(write=False)


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


# =============================================================================
# Single-Sequence Index
# =============================================================================


class SequenceIndex:
    """Sorted interval index for a single sequence.

    Query results are row ids of the source collection, returned in
    ascending (original collection) order.

    Attributes:
        n_intervals: Number of indexed (non zero-width) intervals.
    """

    __slots__ = (
        "_starts",
        "_ends",
        "_row_ids",
        "_max_ends",
        "_ends_by_end",
        "_row_ids_by_end",
        "n_intervals",
    )

    def __init__(self, starts: np.ndarray, ends: np.ndarray, row_ids: np.ndarray) -> None:
        """Build the index.

        Args:
            starts: 1-based inclusive starts.
            ends: 1-based inclusive ends.
            row_ids: Row id of each interval in the source collection.
        """
        starts = np.asarray(starts, dtype=np.int64)
        ends = np.asarray(ends, dtype=np.int64)
        row_ids = np.asarray(row_ids, dtype=np.int64)

        keep = ends >= starts
        starts, ends, row_ids = starts[keep], ends[keep], row_ids[keep]

        order = np.lexsort((row_ids, ends, starts))
        self._starts = _readonly(starts[order])
        self._ends = _readonly(ends[order])
        self._row_ids = _readonly(row_ids[order])
        if len(order):
            self._max_ends = _readonly(np.maximum.accumulate(self._ends))
        else:
            self._max_ends = _EMPTY

        by_end = np.lexsort((row_ids, ends))
        self._ends_by_end = _readonly(ends[by_end])
        self._row_ids_by_end = _readonly(row_ids[by_end])
        self.n_intervals = len(order)

    def __len__(self) -> int:
        return self.n_intervals

    def __repr__(self) -> str:
        return f"SequenceIndex(n={self.n_intervals})"

    def _window(self, lo_pos: int, hi_pos: int) -> tuple[int, int]:
        """Sorted-array bounds of candidates with start <= hi_pos and max_end >= lo_pos."""
        hi = int(np.searchsorted(self._starts, hi_pos, side="right"))
        lo = int(np.searchsorted(self._max_ends, lo_pos, side="left"))
        return lo, hi

    def _raw_overlap(self, lo_pos: int, hi_pos: int) -> np.ndarray:
        """Row ids with start <= hi_pos and end >= lo_pos, unsorted."""
        lo, hi = self._window(lo_pos, hi_pos)
        if lo >= hi:
            return _EMPTY
        hits = self._ends[lo:hi] >= lo_pos
        return self._row_ids[lo:hi][hits]

    def overlapping(self, start: int, end: int) -> np.ndarray:
        """Row ids of intervals overlapping the closed query ``[start, end]``."""
        if end < start or self.n_intervals == 0:
            return _EMPTY
        return np.sort(self._raw_overlap(start, end))

    def covering(self, position: int) -> np.ndarray:
        """Row ids of intervals containing a single position."""
        return self.overlapping(position, position)

    def within(self, start: int, end: int) -> np.ndarray:
        """Row ids of intervals that fully contain ``[start, end]``."""
        if end < start or self.n_intervals == 0:
            return _EMPTY
        lo, hi = self._window(end, start)
        if lo >= hi:
            return _EMPTY
        hits = self._ends[lo:hi] >= end
        return np.sort(self._row_ids[lo:hi][hits])

    def enclosed(self, start: int, end: int) -> np.ndarray:
        """Row ids of intervals lying entirely inside ``[start, end]``."""
        if end < start or self.n_intervals == 0:
            return _EMPTY
        lo = int(np.searchsorted(self._starts, start, side="left"))
        hi = int(np.searchsorted(self._starts, end, side="right"))
        if lo >= hi:
            return _EMPTY
        hits = self._ends[lo:hi] <= end
        return np.sort(self._row_ids[lo:hi][hits])

    def preceding(self, start: int) -> tuple[np.ndarray, int]:
        """Intervals ending before ``start`` with the largest end.

        Returns:
            (row ids, distance) where distance is ``start - end - 1``, or
            (empty, -1) if nothing precedes.
        """
        idx = int(np.searchsorted(self._ends_by_end, start - 1, side="right")) - 1
        if idx < 0:
            return _EMPTY, -1
        best_end = int(self._ends_by_end[idx])
        lo = int(np.searchsorted(self._ends_by_end, best_end, side="left"))
        return np.sort(self._row_ids_by_end[lo : idx + 1]), start - best_end - 1

    def following(self, end: int) -> tuple[np.ndarray, int]:
        """Intervals starting after ``end`` with the smallest start.

        Returns:
            (row ids, distance) where distance is ``start - end - 1``, or
            (empty, -1) if nothing follows.
        """
        lo = int(np.searchsorted(self._starts, end + 1, side="left"))
        if lo >= self.n_intervals:
            return _EMPTY, -1
        best_start = int(self._starts[lo])
        hi = int(np.searchsorted(self._starts, best_start, side="right"))
        return np.sort(self._row_ids[lo:hi]), best_start - end - 1

    def nearest(self, start: int, end: int) -> tuple[np.ndarray, int]:
        """All intervals at the minimum distance from ``[start, end]``.

        Overlapping and adjacent intervals are at distance 0. A zero-width
        query matches intervals spanning its insertion point at distance 0.

        Returns:
            (row ids, distance), or (empty, -1) for an empty index.
        """
        if self.n_intervals == 0:
            return _EMPTY, -1
        hits = self._raw_overlap(start, end)
        if len(hits):
            return np.sort(hits), 0

        left, left_dist = self.preceding(start)
        right, right_dist = self.following(end)
        if left_dist < 0:
            return right, right_dist
        if right_dist < 0 or left_dist < right_dist:
            return left, left_dist
        if right_dist < left_dist:
            return right, right_dist
        return np.union1d(left, right), left_dist


# =============================================================================
# Genome-Wide Index
# =============================================================================


class GenomeIndex:
    """Per-sequence overlap index over a whole collection.

    In directed mode each sequence is split by strand and queries only
    consult compatible partitions: equal strand, plus the unstranded
    partition (or, for an unstranded query, every partition) when
    ``unstranded_matches_any`` is set.

    Attributes:
        directed: Whether strand is part of the overlap predicate.
        unstranded_matches_any: Strand rule used in directed mode.
        n_intervals: Number of source rows.

    Example:
        >>> index = GenomeIndex(genes, directed=True)
        >>> index.overlapping("chr1", 100, 200, strand=Strand.FORWARD)
    """

    def __init__(
        self,
        collection: IntervalCollection,
        directed: bool = False,
        unstranded_matches_any: bool = False,
    ) -> None:
        """Build one SequenceIndex per partition of the collection.

        Args:
            collection: Collection to index. The index keeps a read-only
                snapshot of its coordinate arrays.
            directed: Partition by strand as well as sequence.
            unstranded_matches_any: Let unstranded intervals match any strand.
        """
        self.directed = directed
        self.unstranded_matches_any = unstranded_matches_any
        self.n_intervals = len(collection)

        names = collection.sequence_names
        strands = collection.strands
        groups: dict[tuple[str, int | None], list[int]] = {}
        for i in range(len(collection)):
            key = (names[i], int(strands[i]) if directed else None)
            groups.setdefault(key, []).append(i)

        starts = collection.starts
        ends = collection.ends
        self._partitions: dict[tuple[str, int | None], SequenceIndex] = {}
        for key, rows in groups.items():
            row_ids = np.asarray(rows, dtype=np.int64)
            self._partitions[key] = SequenceIndex(starts[row_ids], ends[row_ids], row_ids)

        logger.debug(
            f"Built index over {self.n_intervals} intervals "
            f"in {len(self._partitions)} partitions (directed={directed})"
        )

    def __repr__(self) -> str:
        return f"GenomeIndex(n={self.n_intervals}, partitions={len(self._partitions)})"

    @property
    def sequence_names(self) -> list[str]:
        """Sequences present in the index."""
        seen: dict[str, None] = {}
        for name, _ in self._partitions:
            seen[name] = None
        return list(seen)

    def partitions_for(self, sequence_name: str, strand: int = 0) -> list[SequenceIndex]:
        """SequenceIndex objects a query on this sequence and strand must consult."""
        if not self.directed:
            part = self._partitions.get((sequence_name, None))
            return [part] if part is not None else []

        strand = int(strand)
        if strand == Strand.UNSTRANDED:
            keys: Iterable[int] = (1, -1, 0) if self.unstranded_matches_any else (0,)
        else:
            keys = (strand, 0) if self.unstranded_matches_any else (strand,)
        return [
            self._partitions[(sequence_name, k)]
            for k in keys
            if (sequence_name, k) in self._partitions
        ]

    @staticmethod
    def _merge(results: list[np.ndarray]) -> np.ndarray:
        if not results:
            return _EMPTY
        if len(results) == 1:
            return results[0]
        return np.sort(np.concatenate(results))

    def overlapping(self, sequence_name: str, start: int, end: int, strand: int = 0) -> np.ndarray:
        """Row ids overlapping the query, in collection order."""
        parts = self.partitions_for(sequence_name, strand)
        return self._merge([p.overlapping(start, end) for p in parts])

    def within(self, sequence_name: str, start: int, end: int, strand: int = 0) -> np.ndarray:
        """Row ids of intervals containing the query, in collection order."""
        parts = self.partitions_for(sequence_name, strand)
        return self._merge([p.within(start, end) for p in parts])

    def enclosed(self, sequence_name: str, start: int, end: int, strand: int = 0) -> np.ndarray:
        """Row ids of intervals inside the query, in collection order."""
        parts = self.partitions_for(sequence_name, strand)
        return self._merge([p.enclosed(start, end) for p in parts])

    def nearest(
        self,
        sequence_name: str,
        start: int,
        end: int,
        strand: int = 0,
    ) -> tuple[np.ndarray, int]:
        """Row ids at minimum distance from the query, with that distance.

        Returns:
            (row ids, distance), or (empty, -1) if the sequence has no
            compatible intervals.
        """
        best: list[np.ndarray] = []
        best_dist = -1
        for part in self.partitions_for(sequence_name, strand):
            ids, dist = part.nearest(start, end)
            if dist < 0:
                continue
            if best_dist < 0 or dist < best_dist:
                best, best_dist = [ids], dist
            elif dist == best_dist:
                best.append(ids)
        return self._merge(best), best_dist
