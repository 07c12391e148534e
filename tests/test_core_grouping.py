"""Tests for rangeforge.core.grouping module."""

import pytest

from rangeforge.core.exceptions import IncompatibleGroupKey
from rangeforge.core.interval import Strand


class TestGroupedCollection:
    """Tests for GroupedCollection."""

    def test_group_by_sequence(self, peaks):
        """Groups follow first appearance."""
        grouped = peaks.group_by("sequence_name")
        assert grouped.n_groups == 2
        assert grouped.group_keys == [("chr1",), ("chr2",)]
        assert grouped.group_ids().tolist() == [0, 0, 0, 1]
        assert len(grouped) == 4

    def test_indices(self, peaks):
        """Row indices keep collection order within a group."""
        indices = peaks.group_by("sequence_name").indices()
        assert indices[("chr1",)].tolist() == [0, 1, 2]
        assert indices[("chr2",)].tolist() == [3]

    def test_multiple_keys(self, genes):
        """Keys can combine metadata and pseudo-columns."""
        grouped = genes.group_by("sequence_name", "strand")
        assert grouped.group_keys == [
            ("chr1", Strand.FORWARD),
            ("chr1", Strand.REVERSE),
            ("chr2", Strand.FORWARD),
        ]

    def test_iteration(self, peaks):
        """Iteration yields keys with sub-collections."""
        grouped = peaks.group_by("sequence_name")
        assert grouped.key_names == ("sequence_name",)
        parts = dict(grouped)
        assert len(parts[("chr1",)]) == 3
        assert parts[("chr2",)]["name"].to_list() == ["p4"]

    def test_unknown_key(self, peaks):
        """Grouping by an absent column raises."""
        with pytest.raises(IncompatibleGroupKey):
            peaks.group_by("biotype")

    def test_no_keys(self, peaks):
        """At least one key is required."""
        with pytest.raises(IncompatibleGroupKey):
            peaks.group_by()

    def test_ungroup(self, peaks):
        """Ungrouping returns the original collection."""
        assert peaks.group_by("name").ungroup() is peaks
