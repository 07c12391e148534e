"""Tests for rangeforge.ops.joins module.

Tests cover:
- Inner, intersect and left overlap joins
- Column name collisions and suffixes
- Nearest-neighbour join
"""

import pytest

from rangeforge.core.collection import IntervalCollection
from rangeforge.core.exceptions import ReservedColumnName
from rangeforge.ops.joins import (
    join_nearest,
    join_overlap_inner,
    join_overlap_intersect,
    join_overlap_left,
)


# =============================================================================
# Overlap Join Tests
# =============================================================================


class TestJoinOverlapInner:
    """Tests for join_overlap_inner."""

    def test_rows_and_columns(self, peaks, genes):
        """One row per pair with left intervals and both metadata sets."""
        out = join_overlap_inner(peaks, genes)
        assert out.column_names == ["name", "score", "gene_id"]
        assert out["name"].to_list() == ["p1", "p2", "p3"]
        assert out["gene_id"].to_list() == ["g1", "g1", "g2"]
        assert out.starts.tolist() == [100, 150, 600]

    def test_keeps_left_strand_and_lengths(self, genes, peaks):
        """Left strand and length table carry through."""
        out = join_overlap_inner(genes, peaks)
        assert out.strands.tolist() == [1, 1, -1]
        assert out.seqlengths == genes.seqlengths

    def test_no_matches(self, peaks):
        """No overlap gives an empty collection with all columns."""
        right = IntervalCollection(["chr2"], [400], [450], columns={"tag": ["x"]})
        out = join_overlap_inner(peaks, right)
        assert len(out) == 0
        assert out.column_names == ["name", "score", "tag"]

    def test_shared_names_suffixed(self, peaks):
        """Names present on both sides get suffixes on both sides."""
        right = IntervalCollection(["chr1"], [120], [130], columns={"name": ["r1"]})
        out = join_overlap_inner(peaks, right)
        assert out.column_names == ["name.x", "score", "name.y"]
        assert out["name.x"].to_list() == ["p1"]
        assert out["name.y"].to_list() == ["r1"]

    def test_custom_suffixes(self, peaks):
        """Suffixes are configurable."""
        right = IntervalCollection(["chr1"], [120], [130], columns={"score": [9]})
        out = join_overlap_inner(peaks, right, suffixes=("_peak", "_other"))
        assert "score_peak" in out.column_names
        assert out["score_other"].to_list() == [9]

    def test_ambiguous_suffixed_name(self):
        """A suffixed name clashing with an existing column is rejected."""
        left = IntervalCollection(["chr1"], [1], [10], columns={"a": [1], "a.y": [2]})
        right = IntervalCollection(["chr1"], [1], [10], columns={"a": [3]})
        with pytest.raises(ReservedColumnName):
            join_overlap_inner(left, right)


class TestJoinOverlapIntersect:
    """Tests for join_overlap_intersect."""

    def test_intersection_coordinates(self):
        """Output intervals are the pairwise intersections."""
        left = IntervalCollection(["chr1"], [100], [200])
        right = IntervalCollection(["chr1"], [150], [250])
        out = join_overlap_intersect(left, right)
        assert out.intervals()[0].start == 150
        assert out.intervals()[0].end == 200

    def test_multiple_pairs(self, peaks, genes):
        """Each pair is clipped separately."""
        out = join_overlap_intersect(peaks, genes)
        assert out.starts.tolist() == [180, 180, 600]
        assert out.ends.tolist() == [200, 250, 650]
        assert out["gene_id"].to_list() == ["g1", "g1", "g2"]

    def test_within_bounds(self, peaks, genes):
        """Intersections never leave either input interval."""
        out = join_overlap_intersect(peaks, genes)
        inner = join_overlap_inner(peaks, genes)
        assert (out.starts >= inner.starts).all()
        assert (out.ends <= inner.ends).all()


class TestJoinOverlapLeft:
    """Tests for join_overlap_left."""

    def test_unmatched_rows_kept(self, peaks, genes):
        """Unmatched left rows appear once with missing right values."""
        out = join_overlap_left(peaks, genes)
        assert out["name"].to_list() == ["p1", "p2", "p3", "p4"]
        assert out["gene_id"].to_list() == ["g1", "g1", "g2", None]

    def test_left_order(self, genes, peaks):
        """Rows follow left order, then right order."""
        out = join_overlap_left(genes, peaks)
        assert out["gene_id"].to_list() == ["g1", "g1", "g2", "g3"]
        assert out["name"].to_list() == ["p1", "p2", "p3", None]
        assert out["score"].to_list() == [5, 3, 8, None]

    def test_inner_is_left_without_unmatched(self, peaks, genes):
        """Dropping missing right rows from the left join gives the inner join."""
        left = join_overlap_left(peaks, genes)
        inner = join_overlap_inner(peaks, genes)
        assert left.filter(~left["gene_id"].mask) == inner

    def test_empty_right(self, peaks):
        """Every left row is kept when the right side is empty."""
        right = IntervalCollection.empty().mutate(tag=[])
        out = join_overlap_left(peaks, right)
        assert len(out) == len(peaks)
        assert out["tag"].to_list() == [None] * 4


# =============================================================================
# Nearest Join Tests
# =============================================================================


class TestJoinNearest:
    """Tests for join_nearest."""

    def test_overlap_is_distance_zero(self, peaks, genes):
        """Overlapping pairs have distance 0."""
        out = join_nearest(peaks.take([0, 1, 2]), genes)
        assert out["gene_id"].to_list() == ["g1", "g1", "g2"]
        assert out["distance"].to_list() == [0, 0, 0]

    def test_closest_wins(self, genes):
        """The closer of the preceding and following intervals wins."""
        left = IntervalCollection(["chr1"], [450], [460])
        out = join_nearest(left, genes)
        assert out["gene_id"].to_list() == ["g2"]
        assert out["distance"].to_list() == [39]

    def test_directed(self, genes):
        """Directed search skips incompatible strands."""
        left = IntervalCollection(["chr1"], [450], [460], ["+"])
        out = join_nearest(left, genes, directed=True)
        assert out["gene_id"].to_list() == ["g1"]
        assert out["distance"].to_list() == [49]

    def test_tie_takes_first_right_row(self):
        """Equidistant candidates resolve to the lowest right row."""
        right = IntervalCollection(["chr1", "chr1"], [31, 1], [40, 10], columns={"id": ["b", "a"]})
        left = IntervalCollection(["chr1"], [16], [25])
        out = join_nearest(left, right)
        assert out["id"].to_list() == ["b"]
        assert out["distance"].to_list() == [5]

    def test_no_candidate_dropped(self, genes):
        """Left rows on sequences without right intervals are dropped."""
        left = IntervalCollection(["chr1", "chr3"], [1, 1], [10, 10])
        out = join_nearest(left, genes)
        assert out.sequence_names.tolist() == ["chr1"]

    def test_distance_column_name(self, genes):
        """The distance column name is configurable."""
        left = IntervalCollection(["chr1"], [450], [460])
        out = join_nearest(left, genes, distance_column="gap")
        assert out["gap"].to_list() == [39]
