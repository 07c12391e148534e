"""Tests for rangeforge.ops.overlaps module."""

import pytest

from rangeforge.core.collection import IntervalCollection
from rangeforge.ops.overlaps import (
    count_overlaps,
    filter_by_non_overlaps,
    filter_by_overlaps,
    find_overlaps,
    overlaps_any,
)
from rangeforge.parallel.executor import ParallelExecutor


# =============================================================================
# find_overlaps Tests
# =============================================================================


class TestFindOverlaps:
    """Tests for find_overlaps."""

    def test_pairs(self, peaks, genes):
        """Pairs are ordered by query row then subject row."""
        hits = find_overlaps(peaks, genes)
        assert hits.query_hits.tolist() == [0, 1, 2]
        assert hits.subject_hits.tolist() == [0, 0, 1]
        assert list(hits) == [(0, 0), (1, 0), (2, 1)]
        assert len(hits) == 3

    def test_symmetry(self, peaks, genes):
        """Swapping query and subject swaps the pairs."""
        forward = set(find_overlaps(peaks, genes))
        backward = set(find_overlaps(genes, peaks))
        assert forward == {(q, s) for s, q in backward}

    def test_counts(self, peaks, genes):
        """Counts have one entry per query row."""
        hits = find_overlaps(peaks, genes)
        assert hits.counts().tolist() == [1, 1, 1, 0]
        assert hits.query_has_hit().tolist() == [True, True, True, False]

    def test_hits_read_only(self, peaks, genes):
        """Returned hit arrays cannot be modified."""
        hits = find_overlaps(peaks, genes)
        with pytest.raises(ValueError):
            hits.query_hits[0] = 5

    def test_multiple_subjects_sorted(self):
        """Several subject hits for one query come back ascending."""
        query = IntervalCollection(["chr1"], [1], [100])
        subject = IntervalCollection(["chr1"] * 3, [90, 10, 50], [95, 20, 60])
        hits = find_overlaps(query, subject)
        assert hits.subject_hits.tolist() == [0, 1, 2]

    def test_zero_width_query(self, genes):
        """Zero-width queries have no hits."""
        query = IntervalCollection(["chr1"], [190], [189])
        assert len(find_overlaps(query, genes)) == 0

    def test_empty_inputs(self, genes):
        """Empty collections produce no pairs."""
        empty = IntervalCollection.empty()
        assert len(find_overlaps(empty, genes)) == 0
        assert find_overlaps(genes, empty).counts().tolist() == [0, 0, 0]

    def test_within(self, genes):
        """within only reports subjects containing the query."""
        query = IntervalCollection(["chr1", "chr1"], [200, 150], [300, 300])
        hits = find_overlaps(query, genes, within=True)
        assert list(hits) == [(0, 0)]

    def test_directed(self, genes):
        """Directed queries require compatible strands."""
        query = IntervalCollection(["chr1", "chr1"], [550, 550], [560, 560], ["+", "-"])
        assert list(find_overlaps(query, genes)) == [(0, 1), (1, 1)]
        assert list(find_overlaps(query, genes, directed=True)) == [(1, 1)]

    def test_unstranded_matches_any(self, peaks, genes):
        """Unstranded queries match stranded subjects only when enabled."""
        assert len(find_overlaps(peaks, genes, directed=True)) == 0
        relaxed = find_overlaps(peaks, genes, directed=True, unstranded_matches_any=True)
        assert len(relaxed) == 3

    def test_directed_rejects_unstranded_subject(self):
        """By default a stranded query does not match an unstranded subject."""
        query = IntervalCollection(["chr1"], [100], [200], ["+"])
        subject = IntervalCollection(["chr1"], [150], [250], ["*"])
        assert len(find_overlaps(query, subject, directed=True)) == 0
        assert len(find_overlaps(query, subject)) == 1
        assert overlaps_any(query, subject, directed=True).tolist() == [False]

    def test_executor_same_result(self, peaks, genes):
        """A thread pool gives the same pairs as serial execution."""
        executor = ParallelExecutor(n_workers=2, backend="threads")
        serial = find_overlaps(peaks, genes)
        pooled = find_overlaps(peaks, genes, executor=executor)
        assert list(serial) == list(pooled)


# =============================================================================
# Filter and Count Tests
# =============================================================================


class TestOverlapFilters:
    """Tests for filters and counts built on find_overlaps."""

    def test_overlaps_any(self, peaks, genes):
        """Mask of query rows with a hit."""
        assert overlaps_any(peaks, genes).tolist() == [True, True, True, False]

    def test_count_overlaps(self, genes, peaks):
        """Counts per query row."""
        assert count_overlaps(genes, peaks).tolist() == [2, 1, 0]

    def test_filter_by_overlaps(self, peaks, genes):
        """Kept rows preserve query order and metadata."""
        out = filter_by_overlaps(peaks, genes)
        assert out["name"].to_list() == ["p1", "p2", "p3"]

    def test_filter_by_non_overlaps(self, peaks, genes):
        """The complement filter keeps the remaining rows."""
        out = filter_by_non_overlaps(peaks, genes)
        assert out["name"].to_list() == ["p4"]

    def test_filters_partition_query(self, peaks, genes):
        """The two filters split the query without loss."""
        kept = filter_by_overlaps(peaks, genes)
        dropped = filter_by_non_overlaps(peaks, genes)
        assert len(kept) + len(dropped) == len(peaks)
