"""Configured entry point to the interval verbs.

:class:`RangeEngine` binds a :class:`~rangeforge.config.Config` to the
functional verbs of :mod:`rangeforge.ops` so that policy settings (bounds
handling, strand rule, mixed-strand policy, coverage extent, worker pool)
are chosen once instead of at every call. Every method returns a new value
and leaves its inputs untouched; the plain functions remain available for
callers that prefer explicit arguments.

Example:
    >>> from rangeforge import Config, RangeEngine
    >>> engine = RangeEngine(Config.load("rangeforge.json"))
    >>> peaks = engine.from_records(records, seqlengths=genome)
    >>> merged = engine.reduce_ranges(peaks)
    >>> cov = engine.compute_coverage(peaks)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import numpy as np

from rangeforge.config import Config
from rangeforge.core.collection import IntervalCollection
from rangeforge.core.grouping import GroupedCollection
from rangeforge.core.interval import SequenceLengths
from rangeforge.ops import aggregate, coverage, joins, overlaps, setops
from rangeforge.ops.aggregate import Reducer, Table
from rangeforge.ops.overlaps import OverlapHits
from rangeforge.parallel.executor import ParallelExecutor
from rangeforge.utils.logging import Timer

logger = logging.getLogger(__name__)


class RangeEngine:
    """Interval verbs bound to one configuration and one worker pool.

    Attributes:
        config: Active configuration.
        executor: Executor running per-sequence work.
    """

    def __init__(self, config: Config | None = None) -> None:
        """Initialize the engine.

        Args:
            config: Configuration; defaults to ``Config()``.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or Config()
        self.config.validate()
        self.executor = ParallelExecutor(
            n_workers=self.config.parallel.n_workers,
            backend=self.config.parallel.backend,
        )
        logger.debug(f"RangeEngine ready ({self.executor!r})")

    def __repr__(self) -> str:
        return f"RangeEngine(executor={self.executor!r})"

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def _collection_kwargs(self) -> dict[str, Any]:
        return {
            "bounds_policy": self.config.collection.bounds_policy,
            "allow_zero_width": self.config.collection.allow_zero_width,
        }

    def collection(
        self,
        sequence_names: Sequence[str] | np.ndarray,
        starts: Sequence[int] | np.ndarray,
        ends: Sequence[int] | np.ndarray,
        strands: Sequence[Any] | np.ndarray | None = None,
        columns: Mapping[str, Any] | None = None,
        seqlengths: Mapping[str, int] | SequenceLengths | None = None,
    ) -> IntervalCollection:
        """Build a collection with the configured validation policy."""
        return IntervalCollection(
            sequence_names,
            starts,
            ends,
            strands,
            columns=columns,
            seqlengths=seqlengths,
            **self._collection_kwargs(),
        )

    def from_records(
        self,
        records: Iterable[Mapping[str, Any]],
        seqlengths: Mapping[str, int] | SequenceLengths | None = None,
    ) -> IntervalCollection:
        """Build a collection from row mappings."""
        return IntervalCollection.from_records(records, seqlengths=seqlengths, **self._collection_kwargs())

    def from_bed_records(
        self,
        records: Iterable[Sequence[Any]],
        seqlengths: Mapping[str, int] | SequenceLengths | None = None,
    ) -> IntervalCollection:
        """Build a collection from parsed 0-based BED fields."""
        return IntervalCollection.from_bed_records(records, seqlengths=seqlengths, **self._collection_kwargs())

    # -------------------------------------------------------------------------
    # Overlaps and joins
    # -------------------------------------------------------------------------

    def _overlap_kwargs(self) -> dict[str, Any]:
        return {
            "unstranded_matches_any": self.config.overlap.unstranded_matches_any,
            "executor": self.executor,
        }

    def find_overlaps(
        self,
        query: IntervalCollection,
        subject: IntervalCollection,
        directed: bool = False,
        within: bool = False,
    ) -> OverlapHits:
        with Timer("find_overlaps", logger, logging.DEBUG):
            return overlaps.find_overlaps(query, subject, directed, within, **self._overlap_kwargs())

    def filter_by_overlaps(
        self,
        query: IntervalCollection,
        subject: IntervalCollection,
        directed: bool = False,
        within: bool = False,
    ) -> IntervalCollection:
        return overlaps.filter_by_overlaps(query, subject, directed, within, **self._overlap_kwargs())

    def filter_by_non_overlaps(
        self,
        query: IntervalCollection,
        subject: IntervalCollection,
        directed: bool = False,
        within: bool = False,
    ) -> IntervalCollection:
        return overlaps.filter_by_non_overlaps(query, subject, directed, within, **self._overlap_kwargs())

    def count_overlaps(
        self,
        query: IntervalCollection,
        subject: IntervalCollection,
        directed: bool = False,
        within: bool = False,
    ) -> np.ndarray:
        return overlaps.count_overlaps(query, subject, directed, within, **self._overlap_kwargs())

    def join_overlap_inner(
        self,
        left: IntervalCollection,
        right: IntervalCollection,
        directed: bool = False,
        within: bool = False,
    ) -> IntervalCollection:
        return joins.join_overlap_inner(
            left, right, directed, within, self.config.overlap.suffixes, **self._overlap_kwargs()
        )

    def join_overlap_intersect(
        self,
        left: IntervalCollection,
        right: IntervalCollection,
        directed: bool = False,
        within: bool = False,
    ) -> IntervalCollection:
        return joins.join_overlap_intersect(
            left, right, directed, within, self.config.overlap.suffixes, **self._overlap_kwargs()
        )

    def join_overlap_left(
        self,
        left: IntervalCollection,
        right: IntervalCollection,
        directed: bool = False,
        within: bool = False,
    ) -> IntervalCollection:
        return joins.join_overlap_left(
            left, right, directed, within, self.config.overlap.suffixes, **self._overlap_kwargs()
        )

    def join_nearest(
        self,
        left: IntervalCollection,
        right: IntervalCollection,
        directed: bool = False,
    ) -> IntervalCollection:
        return joins.join_nearest(
            left,
            right,
            directed,
            self.config.overlap.suffixes,
            self.config.overlap.unstranded_matches_any,
        )

    # -------------------------------------------------------------------------
    # Set algebra
    # -------------------------------------------------------------------------

    def reduce_ranges(
        self,
        data: IntervalCollection | GroupedCollection,
        directed: bool = False,
        **aggregations: Reducer,
    ) -> IntervalCollection:
        with Timer("reduce_ranges", logger, logging.DEBUG):
            return setops.reduce_ranges(
                data,
                directed=directed,
                strand_policy=self.config.set_algebra.strand_policy,
                min_gap_width=self.config.set_algebra.min_gap_width,
                executor=self.executor,
                **aggregations,
            )

    def disjoin_ranges(
        self,
        data: IntervalCollection | GroupedCollection,
        directed: bool = False,
        **aggregations: Reducer,
    ) -> IntervalCollection:
        with Timer("disjoin_ranges", logger, logging.DEBUG):
            return setops.disjoin_ranges(
                data,
                directed=directed,
                strand_policy=self.config.set_algebra.strand_policy,
                executor=self.executor,
                **aggregations,
            )

    def complement_ranges(
        self,
        collection: IntervalCollection,
        seqlengths: Mapping[str, int] | SequenceLengths | None = None,
    ) -> IntervalCollection:
        return setops.complement_ranges(collection, seqlengths)

    def union_ranges(self, a: IntervalCollection, b: IntervalCollection) -> IntervalCollection:
        return setops.union_ranges(a, b)

    def intersect_ranges(self, a: IntervalCollection, b: IntervalCollection) -> IntervalCollection:
        return setops.intersect_ranges(a, b)

    def setdiff_ranges(self, a: IntervalCollection, b: IntervalCollection) -> IntervalCollection:
        return setops.setdiff_ranges(a, b)

    # -------------------------------------------------------------------------
    # Coverage and summaries
    # -------------------------------------------------------------------------

    def compute_coverage(
        self,
        *collections: IntervalCollection,
        seqlengths: Mapping[str, int] | SequenceLengths | None = None,
        weight: str | int | float | None = None,
        directed: bool = False,
    ) -> IntervalCollection:
        """Coverage partition over the configured extent."""
        with Timer("compute_coverage", logger, logging.DEBUG):
            return coverage.compute_coverage(
                *collections,
                extent=self.config.coverage.extent,
                seqlengths=seqlengths,
                weight=weight,
                directed=directed,
                executor=self.executor,
            )

    def summarise(
        self,
        data: IntervalCollection | GroupedCollection,
        **reducers: Reducer,
    ) -> Table:
        return aggregate.summarise(data, **reducers)
