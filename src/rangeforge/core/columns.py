"""Typed metadata columns.

Metadata attached to an interval collection is stored column-wise. Each
:class:`Column` is a read-only numpy array tagged with a
:class:`ColumnKind`, plus an optional mask marking missing entries.

Supported kinds:
    - INTEGER: int64
    - FLOAT: float64
    - STRING: Python str (object array)
    - BOOLEAN: bool
    - STRAND: int8 holding :class:`~rangeforge.core.interval.Strand` values
    - LIST: tuples of scalars (object array), e.g. collected values

Missing entries read back as ``None`` (:data:`MISSING`). They appear when a
left join finds no partner or when ``None`` is given in the input values.

Example:
    >>> from rangeforge.core.columns import Column
    >>> col = Column.from_values([1, 2, None])
    >>> col.kind
    <ColumnKind.INTEGER: 'integer'>
    >>> col.to_list()
    [1, 2, None]
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from enum import Enum
from typing import Any

import numpy as np

from rangeforge.core.interval import Strand

# Value returned for missing entries
MISSING = None


# =============================================================================
# Column Kinds
# =============================================================================


class ColumnKind(Enum):
    """Supported column types."""

    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    BOOLEAN = "boolean"
    STRAND = "strand"
    LIST = "list"

    @property
    def is_numeric(self) -> bool:
        """Whether values support arithmetic reducers."""
        return self in (ColumnKind.INTEGER, ColumnKind.FLOAT, ColumnKind.BOOLEAN)


_DTYPES: dict[ColumnKind, Any] = {
    ColumnKind.INTEGER: np.int64,
    ColumnKind.FLOAT: np.float64,
    ColumnKind.STRING: object,
    ColumnKind.BOOLEAN: np.bool_,
    ColumnKind.STRAND: np.int8,
    ColumnKind.LIST: object,
}

# Placeholder stored under a missing entry
_FILL: dict[ColumnKind, Any] = {
    ColumnKind.INTEGER: 0,
    ColumnKind.FLOAT: np.nan,
    ColumnKind.STRING: "",
    ColumnKind.BOOLEAN: False,
    ColumnKind.STRAND: 0,
    ColumnKind.LIST: (),
}


def _infer_kind(values: Sequence[Any]) -> ColumnKind:
    """Infer the column kind from non-missing Python values."""
    kinds: set[ColumnKind] = set()
    for value in values:
        if value is None:
            continue
        if isinstance(value, Strand):
            kinds.add(ColumnKind.STRAND)
        elif isinstance(value, (bool, np.bool_)):
            kinds.add(ColumnKind.BOOLEAN)
        elif isinstance(value, (int, np.integer)):
            kinds.add(ColumnKind.INTEGER)
        elif isinstance(value, (float, np.floating)):
            kinds.add(ColumnKind.FLOAT)
        elif isinstance(value, str):
            kinds.add(ColumnKind.STRING)
        elif isinstance(value, (list, tuple)):
            kinds.add(ColumnKind.LIST)
        else:
            raise TypeError(f"Unsupported column value type: {type(value).__name__}")

    if not kinds:
        return ColumnKind.FLOAT
    if len(kinds) == 1:
        return kinds.pop()
    if kinds == {ColumnKind.INTEGER, ColumnKind.FLOAT}:
        return ColumnKind.FLOAT
    names = sorted(k.value for k in kinds)
    raise TypeError(f"Column mixes incompatible value types: {names}")


def _coerce(value: Any, kind: ColumnKind) -> Any:
    if kind == ColumnKind.STRAND:
        return int(Strand.from_symbol(value))
    if kind == ColumnKind.LIST:
        return tuple(value)
    if kind == ColumnKind.STRING:
        if not isinstance(value, str):
            raise TypeError(f"Expected str in string column, got {type(value).__name__}")
        return value
    return value


# =============================================================================
# Column
# =============================================================================


class Column:
    """An immutable typed column of metadata values.

    Attributes:
        kind: The column kind.
    """

    __slots__ = ("kind", "_values", "_mask")

    def __init__(
        self,
        values: np.ndarray,
        kind: ColumnKind,
        mask: np.ndarray | None = None,
    ) -> None:
        """Initialize from an array already in the kind's dtype.

        Prefer :meth:`from_values` for untyped input.

        Args:
            values: Column values.
            kind: Column kind.
            mask: Boolean array, True where the entry is missing.
        """
        arr = np.array(values, dtype=_DTYPES[kind])
        if arr.ndim != 1:
            # sequences of tuples come back 2-D from np.array
            flat = np.empty(len(values), dtype=object)
            for i, value in enumerate(values):
                flat[i] = value
            arr = flat
        arr.setflags(write=False)
        if mask is not None:
            mask = np.asarray(mask, dtype=bool)
            if len(mask) != len(arr):
                raise ValueError("Column mask length differs from values length")
            if not mask.any():
                mask = None
            else:
                mask = mask.copy()
                mask.setflags(write=False)
        self.kind = kind
        self._values = arr
        self._mask = mask

    @classmethod
    def from_values(
        cls,
        values: Column | np.ndarray | Iterable[Any],
        kind: ColumnKind | None = None,
    ) -> Column:
        """Build a column from arbitrary values.

        Args:
            values: A Column, numpy array or iterable of Python values.
                ``None`` entries become missing.
            kind: Force a kind instead of inferring it.

        Returns:
            A new Column.

        Raises:
            TypeError: If values mix incompatible types.
        """
        if isinstance(values, Column):
            if kind is None or kind == values.kind:
                return values
            return cls.from_values(values.to_list(), kind)

        if isinstance(values, np.ndarray) and values.dtype != object and kind is None:
            if values.dtype.kind in "iu":
                return cls(values.astype(np.int64), ColumnKind.INTEGER)
            if values.dtype.kind == "f":
                return cls(values.astype(np.float64), ColumnKind.FLOAT)
            if values.dtype.kind == "b":
                return cls(values, ColumnKind.BOOLEAN)
            if values.dtype.kind in "US":
                return cls(values.astype(str).astype(object), ColumnKind.STRING)
            raise TypeError(f"Unsupported array dtype: {values.dtype}")

        items = list(values)
        if kind is None:
            kind = _infer_kind(items)

        mask = np.fromiter((v is None for v in items), dtype=bool, count=len(items))
        fill = _FILL[kind]
        filled = [fill if v is None else _coerce(v, kind) for v in items]
        if kind in (ColumnKind.STRING, ColumnKind.LIST):
            arr = np.empty(len(filled), dtype=object)
            for i, value in enumerate(filled):
                arr[i] = value
        else:
            arr = np.asarray(filled, dtype=_DTYPES[kind])
        return cls(arr, kind, mask if mask.any() else None)

    @classmethod
    def missing(cls, kind: ColumnKind, length: int) -> Column:
        """A column where every entry is missing."""
        return cls.from_values([None] * length, kind)

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Column({self.kind.value}, n={len(self)})"

    def __getitem__(self, index: int) -> Any:
        if self._mask is not None and self._mask[index]:
            return MISSING
        return self._box(self._values[index])

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def _box(self, value: Any) -> Any:
        if self.kind == ColumnKind.INTEGER:
            return int(value)
        if self.kind == ColumnKind.FLOAT:
            return float(value)
        if self.kind == ColumnKind.BOOLEAN:
            return bool(value)
        if self.kind == ColumnKind.STRAND:
            return Strand(int(value))
        return value

    @property
    def values(self) -> np.ndarray:
        """Read-only array of raw values (missing entries hold a filler)."""
        return self._values

    @property
    def mask(self) -> np.ndarray:
        """Boolean array, True where the entry is missing."""
        if self._mask is None:
            return np.zeros(len(self._values), dtype=bool)
        return self._mask

    @property
    def has_missing(self) -> bool:
        """Whether any entry is missing."""
        return self._mask is not None

    def to_list(self) -> list[Any]:
        """Convert to a list of Python values."""
        return [self[i] for i in range(len(self))]

    def present_values(self) -> np.ndarray:
        """Values of the non-missing entries."""
        if self._mask is None:
            return self._values
        return self._values[~self._mask]

    # -------------------------------------------------------------------------
    # Derivation
    # -------------------------------------------------------------------------

    def take(self, indices: np.ndarray | Sequence[int]) -> Column:
        """Select entries by position.

        An index of ``-1`` yields a missing entry.

        Args:
            indices: Row positions to take.

        Returns:
            A new Column.
        """
        indices = np.asarray(indices, dtype=np.int64)
        absent = indices < 0
        safe = np.where(absent, 0, indices)
        if len(self._values) == 0:
            if not absent.all():
                raise IndexError("take from an empty column")
            return Column.missing(self.kind, len(indices))

        values = self._values[safe]
        mask = self.mask[safe] | absent
        return Column(values, self.kind, mask)

    def equals(self, other: Column) -> bool:
        """Value equality including missing positions."""
        if self.kind != other.kind or len(self) != len(other):
            return False
        return self.to_list() == other.to_list()

    @classmethod
    def concat(cls, columns: Sequence[Column]) -> Column:
        """Concatenate columns of compatible kinds.

        INTEGER and FLOAT columns concatenate to FLOAT.

        Raises:
            TypeError: If the kinds cannot be combined.
        """
        if not columns:
            raise ValueError("Nothing to concatenate")
        kinds = {c.kind for c in columns}
        if len(kinds) == 1:
            kind = kinds.pop()
        elif kinds == {ColumnKind.INTEGER, ColumnKind.FLOAT}:
            kind = ColumnKind.FLOAT
        else:
            names = sorted(k.value for k in kinds)
            raise TypeError(f"Cannot concatenate columns of kinds {names}")

        if kind in (ColumnKind.STRING, ColumnKind.LIST):
            values = np.empty(sum(len(c) for c in columns), dtype=object)
            offset = 0
            for c in columns:
                values[offset : offset + len(c)] = c.values
                offset += len(c)
        else:
            values = np.concatenate([c.values.astype(_DTYPES[kind]) for c in columns])
        mask = np.concatenate([c.mask for c in columns])
        return cls(values, kind, mask)
