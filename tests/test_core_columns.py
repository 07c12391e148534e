"""Tests for rangeforge.core.columns module."""

import numpy as np
import pytest

from rangeforge.core.columns import Column, ColumnKind
from rangeforge.core.interval import Strand


class TestColumnFromValues:
    """Tests for Column.from_values kind inference."""

    @pytest.mark.parametrize(
        "values,kind",
        [
            ([1, 2, 3], ColumnKind.INTEGER),
            ([1.5, 2.0], ColumnKind.FLOAT),
            ([1, 2.5], ColumnKind.FLOAT),
            (["a", "b"], ColumnKind.STRING),
            ([True, False], ColumnKind.BOOLEAN),
            ([Strand.FORWARD, Strand.REVERSE], ColumnKind.STRAND),
            ([(1, 2), (3,)], ColumnKind.LIST),
        ],
    )
    def test_infer_kind(self, values, kind):
        """Kinds are inferred from Python values."""
        assert Column.from_values(values).kind == kind

    def test_numpy_arrays(self):
        """Typed numpy arrays map to the matching kind."""
        assert Column.from_values(np.array([1, 2], dtype=np.int32)).kind == ColumnKind.INTEGER
        assert Column.from_values(np.array([0.5])).kind == ColumnKind.FLOAT
        assert Column.from_values(np.array([True])).kind == ColumnKind.BOOLEAN

    def test_missing_values(self):
        """None entries read back as missing."""
        col = Column.from_values([1, None, 3])
        assert col.kind == ColumnKind.INTEGER
        assert col.has_missing
        assert col.to_list() == [1, None, 3]
        assert col.mask.tolist() == [False, True, False]
        assert col.present_values().tolist() == [1, 3]

    def test_mixed_types_rejected(self):
        """Strings and numbers cannot share a column."""
        with pytest.raises(TypeError):
            Column.from_values([1, "a"])

    def test_forced_kind(self):
        """An explicit kind converts values."""
        col = Column.from_values(["+", "-", None], kind=ColumnKind.STRAND)
        assert col.to_list() == [Strand.FORWARD, Strand.REVERSE, None]

    def test_values_read_only(self):
        """Underlying arrays cannot be written."""
        col = Column.from_values([1, 2, 3])
        with pytest.raises(ValueError):
            col.values[0] = 10


class TestColumnDerivation:
    """Tests for take and concat."""

    def test_take(self):
        """Take reorders entries."""
        col = Column.from_values(["a", "b", "c"])
        assert col.take([2, 0]).to_list() == ["c", "a"]

    def test_take_missing_marker(self):
        """Index -1 yields a missing entry."""
        col = Column.from_values([10, 20])
        taken = col.take([1, -1, 0])
        assert taken.to_list() == [20, None, 10]
        assert taken.kind == ColumnKind.INTEGER

    def test_take_from_empty(self):
        """Only missing markers can be taken from an empty column."""
        col = Column.missing(ColumnKind.STRING, 0)
        assert col.take([-1, -1]).to_list() == [None, None]
        with pytest.raises(IndexError):
            col.take([0])

    def test_concat_promotes_to_float(self):
        """INTEGER and FLOAT concatenate to FLOAT."""
        col = Column.concat([Column.from_values([1, 2]), Column.from_values([0.5])])
        assert col.kind == ColumnKind.FLOAT
        assert col.to_list() == [1.0, 2.0, 0.5]

    def test_concat_keeps_missing(self):
        """Missing masks are concatenated."""
        col = Column.concat([Column.from_values(["a"]), Column.missing(ColumnKind.STRING, 2)])
        assert col.to_list() == ["a", None, None]

    def test_concat_incompatible(self):
        """Strings do not concatenate with numbers."""
        with pytest.raises(TypeError):
            Column.concat([Column.from_values(["a"]), Column.from_values([1])])

    def test_equals(self):
        """Equality compares kind, values and missing positions."""
        assert Column.from_values([1, None]).equals(Column.from_values([1, None]))
        assert not Column.from_values([1, None]).equals(Column.from_values([1, 0]))
        assert not Column.from_values([1]).equals(Column.from_values([1.0]))
