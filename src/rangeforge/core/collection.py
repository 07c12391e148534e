"""Interval collections.

An :class:`IntervalCollection` is an ordered, columnar store of genomic
intervals plus named, typed metadata columns. Every verb in rangeforge takes
collections and returns new ones; a collection is never mutated in place.
Arrays handed out by a collection are read-only.

Reserved names:
    ``sequence_name``, ``start``, ``end``, ``strand`` and ``width`` address
    the coordinate fields and cannot be used as metadata column names. They
    can still be read through :meth:`IntervalCollection.get` as
    pseudo-columns, e.g. for grouping.

Example:
    >>> from rangeforge.core.collection import IntervalCollection
    >>> peaks = IntervalCollection.from_records(
    ...     [
    ...         {"sequence_name": "chr1", "start": 100, "end": 200, "score": 5},
    ...         {"sequence_name": "chr1", "start": 150, "end": 250, "score": 2},
    ...     ],
    ...     seqlengths={"chr1": 1000},
    ... )
    >>> len(peaks)
    2
    >>> peaks.mutate(double=lambda c: c.get("score").values * 2)["double"].to_list()
    [10, 4]
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any

import numpy as np

from rangeforge.core.columns import Column, ColumnKind
from rangeforge.core.exceptions import (
    ColumnLengthMismatch,
    DuplicateColumnName,
    IncompatibleGroupKey,
    InvalidInterval,
    ReservedColumnName,
    UnknownSequence,
)
from rangeforge.core.interval import Interval, SequenceLengths, Strand

if TYPE_CHECKING:
    from rangeforge.core.grouping import GroupedCollection

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

RESERVED_COLUMNS = ("sequence_name", "start", "end", "strand", "width")

ColumnInput = Column | np.ndarray | Sequence[Any]


class BoundsPolicy(Enum):
    """How intervals outside declared sequence lengths are handled."""

    ERROR = "error"  # Raise InvalidInterval
    CLIP = "clip"  # Clip to [1, length] and log a warning
    IGNORE = "ignore"  # Skip the bounds check


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


def _as_seqlengths(value: Mapping[str, int] | SequenceLengths | None) -> SequenceLengths | None:
    if value is None or isinstance(value, SequenceLengths):
        return value
    return SequenceLengths(value)


# =============================================================================
# Interval Collection
# =============================================================================


class IntervalCollection:
    """Ordered collection of genomic intervals with typed metadata columns.

    Attributes:
        seqlengths: Optional declared sequence lengths, shared read-only.
        bounds_policy: Policy applied when validating against seqlengths.
        allow_zero_width: Whether zero-width intervals are accepted.
    """

    __slots__ = (
        "_sequence_names",
        "_starts",
        "_ends",
        "_strands",
        "_columns",
        "seqlengths",
        "bounds_policy",
        "allow_zero_width",
    )

    def __init__(
        self,
        sequence_names: Sequence[str] | np.ndarray,
        starts: Sequence[int] | np.ndarray,
        ends: Sequence[int] | np.ndarray,
        strands: Sequence[Any] | np.ndarray | None = None,
        columns: Mapping[str, ColumnInput] | None = None,
        seqlengths: Mapping[str, int] | SequenceLengths | None = None,
        bounds_policy: BoundsPolicy | str = BoundsPolicy.ERROR,
        allow_zero_width: bool = True,
    ) -> None:
        """Build and validate a collection.

        Args:
            sequence_names: Sequence name per interval.
            starts: 1-based inclusive starts.
            ends: 1-based inclusive ends.
            strands: Strand per interval (symbols, ints or Strand). Defaults
                to unstranded.
            columns: Metadata columns by name.
            seqlengths: Declared sequence lengths to validate against.
            bounds_policy: Handling of out-of-bounds intervals.
            allow_zero_width: Accept intervals with ``end == start - 1``.

        Raises:
            InvalidInterval: Malformed coordinates or names.
            UnknownSequence: Sequence missing from seqlengths.
            ReservedColumnName: Column named like a coordinate field.
            ColumnLengthMismatch: Column length differs from row count.
        """
        self.bounds_policy = BoundsPolicy(bounds_policy)
        self.allow_zero_width = allow_zero_width
        self.seqlengths = _as_seqlengths(seqlengths)

        names = np.empty(len(sequence_names), dtype=object)
        for i, name in enumerate(sequence_names):
            names[i] = name
        starts_arr = np.array(starts, dtype=np.int64).reshape(-1)
        ends_arr = np.array(ends, dtype=np.int64).reshape(-1)
        n = len(names)

        if len(starts_arr) != n or len(ends_arr) != n:
            raise ColumnLengthMismatch(
                f"Coordinate arrays differ in length: sequence_names={n}, "
                f"starts={len(starts_arr)}, ends={len(ends_arr)}"
            )

        if strands is None:
            strands_arr = np.zeros(n, dtype=np.int8)
        elif isinstance(strands, np.ndarray) and strands.dtype.kind in "iu":
            strands_arr = strands.astype(np.int8)
            if not np.isin(strands_arr, (-1, 0, 1)).all():
                raise InvalidInterval("Strand values must be -1, 0 or 1")
        else:
            strands_arr = np.fromiter(
                (int(Strand.from_symbol(s)) for s in strands), dtype=np.int8, count=len(strands)
            )
        if len(strands_arr) != n:
            raise ColumnLengthMismatch(f"strands has {len(strands_arr)} values, expected {n}")

        self._validate_coordinates(names, starts_arr, ends_arr)
        if self.seqlengths is not None:
            starts_arr, ends_arr = self._validate_bounds(names, starts_arr, ends_arr)

        self._sequence_names = _readonly(names)
        self._starts = _readonly(starts_arr)
        self._ends = _readonly(ends_arr)
        self._strands = _readonly(strands_arr)
        self._columns: dict[str, Column] = {}
        for name, values in (columns or {}).items():
            self._columns[name] = self._check_column(name, values)

    @classmethod
    def _unchecked(
        cls,
        sequence_names: np.ndarray,
        starts: np.ndarray,
        ends: np.ndarray,
        strands: np.ndarray,
        columns: dict[str, Column],
        seqlengths: SequenceLengths | None,
        bounds_policy: BoundsPolicy = BoundsPolicy.ERROR,
        allow_zero_width: bool = True,
    ) -> IntervalCollection:
        """Assemble a collection from arrays already known to be valid."""
        obj = cls.__new__(cls)
        obj._sequence_names = _readonly(np.asarray(sequence_names, dtype=object))
        obj._starts = _readonly(np.asarray(starts, dtype=np.int64))
        obj._ends = _readonly(np.asarray(ends, dtype=np.int64))
        obj._strands = _readonly(np.asarray(strands, dtype=np.int8))
        obj._columns = dict(columns)
        obj.seqlengths = seqlengths
        obj.bounds_policy = bounds_policy
        obj.allow_zero_width = allow_zero_width
        return obj

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _validate_coordinates(
        self,
        names: np.ndarray,
        starts: np.ndarray,
        ends: np.ndarray,
    ) -> None:
        for i, name in enumerate(names):
            if not isinstance(name, str) or not name:
                raise InvalidInterval(f"Row {i}: sequence_name must be a non-empty string")

        bad = np.flatnonzero(ends < starts - 1)
        if len(bad):
            i = int(bad[0])
            raise InvalidInterval(
                f"Row {i}: end must be >= start - 1 ({names[i]}:{starts[i]}-{ends[i]})"
            )
        if not self.allow_zero_width:
            empty = np.flatnonzero(ends == starts - 1)
            if len(empty):
                i = int(empty[0])
                raise InvalidInterval(
                    f"Row {i}: zero-width interval not allowed ({names[i]}:{starts[i]}-{ends[i]})"
                )

    def _validate_bounds(
        self,
        names: np.ndarray,
        starts: np.ndarray,
        ends: np.ndarray,
    ) -> tuple[np.ndarray, np.ndarray]:
        if self.seqlengths is None:
            return starts, ends
        lengths = np.empty(len(names), dtype=np.int64)
        for i, name in enumerate(names):
            if name not in self.seqlengths:
                raise UnknownSequence(f"Row {i}: sequence '{name}' not in sequence length table")
            lengths[i] = self.seqlengths[name]

        if self.bounds_policy == BoundsPolicy.IGNORE:
            return starts, ends

        outside = (starts < 1) | (ends > lengths)
        if not outside.any():
            return starts, ends

        if self.bounds_policy == BoundsPolicy.ERROR:
            i = int(np.flatnonzero(outside)[0])
            raise InvalidInterval(
                f"Row {i}: {names[i]}:{starts[i]}-{ends[i]} outside [1, {lengths[i]}]"
            )

        logger.warning(f"Clipping {int(outside.sum())} intervals to sequence bounds")
        starts = np.clip(starts, 1, lengths + 1)
        ends = np.clip(ends, 0, lengths)
        ends = np.maximum(ends, starts - 1)
        return starts, ends

    def _check_column(self, name: str, values: ColumnInput | Any) -> Column:
        if name in RESERVED_COLUMNS:
            raise ReservedColumnName(f"Column name '{name}' is reserved")
        if not isinstance(name, str) or not name:
            raise ReservedColumnName("Column names must be non-empty strings")
        if isinstance(values, (str, bytes, int, float, bool, Strand, np.generic)) or values is None:
            column = Column.from_values([values] * len(self))
        else:
            column = Column.from_values(values)
        if len(column) != len(self):
            raise ColumnLengthMismatch(
                f"Column '{name}' has {len(column)} values, collection has {len(self)} rows"
            )
        return column

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def empty(
        cls,
        seqlengths: Mapping[str, int] | SequenceLengths | None = None,
        columns: Mapping[str, ColumnKind] | None = None,
    ) -> IntervalCollection:
        """An empty collection, optionally with typed empty columns."""
        cols = {name: Column.missing(kind, 0) for name, kind in (columns or {}).items()}
        return cls([], [], [], columns=cols, seqlengths=seqlengths)

    @classmethod
    def from_intervals(
        cls,
        intervals: Iterable[Interval],
        columns: Mapping[str, ColumnInput] | None = None,
        seqlengths: Mapping[str, int] | SequenceLengths | None = None,
        **kwargs: Any,
    ) -> IntervalCollection:
        """Build a collection from Interval records."""
        intervals = list(intervals)
        return cls(
            [iv.sequence_name for iv in intervals],
            [iv.start for iv in intervals],
            [iv.end for iv in intervals],
            [iv.strand for iv in intervals],
            columns=columns,
            seqlengths=seqlengths,
            **kwargs,
        )

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        seqlengths: Mapping[str, int] | SequenceLengths | None = None,
        **kwargs: Any,
    ) -> IntervalCollection:
        """Build a collection from row mappings.

        Each record must hold ``sequence_name``, ``start`` and ``end`` and may
        hold ``strand``; every other key becomes a metadata column. All
        records must carry the same metadata keys.
        """
        records = list(records)
        meta_names: list[str] = []
        if records:
            meta_names = [k for k in records[0] if k not in ("sequence_name", "start", "end", "strand", "width")]
        expected = set(meta_names)
        for i, rec in enumerate(records):
            keys = {k for k in rec if k not in ("sequence_name", "start", "end", "strand", "width")}
            if keys != expected:
                raise ColumnLengthMismatch(
                    f"Record {i} has columns {sorted(keys)}, expected {sorted(expected)}"
                )
        try:
            names = [rec["sequence_name"] for rec in records]
            starts = [rec["start"] for rec in records]
            ends = [rec["end"] for rec in records]
        except KeyError as e:
            raise InvalidInterval(f"Record missing coordinate field: {e}") from e
        strands = [rec.get("strand") for rec in records]
        columns = {name: [rec[name] for rec in records] for name in meta_names}
        return cls(names, starts, ends, strands, columns=columns, seqlengths=seqlengths, **kwargs)

    @classmethod
    def from_bed_records(
        cls,
        records: Iterable[Sequence[Any]],
        seqlengths: Mapping[str, int] | SequenceLengths | None = None,
        **kwargs: Any,
    ) -> IntervalCollection:
        """Build a collection from already-parsed BED fields.

        Each record is ``(chrom, start, end[, name[, score[, strand]]])`` in
        0-based half-open coordinates; they are converted to 1-based closed.
        ``name`` and ``score`` become metadata columns when present.
        """
        records = [tuple(r) for r in records]
        widths = {len(r) for r in records}
        if len(widths) > 1:
            raise ColumnLengthMismatch(f"BED records have differing field counts: {sorted(widths)}")
        n_fields = widths.pop() if widths else 3
        if n_fields < 3:
            raise InvalidInterval("BED records need at least chrom, start and end")

        names = [r[0] for r in records]
        starts = [int(r[1]) + 1 for r in records]
        ends = [int(r[2]) for r in records]
        strands = [r[5] for r in records] if n_fields >= 6 else None
        columns: dict[str, ColumnInput] = {}
        if n_fields >= 4:
            columns["name"] = [r[3] for r in records]
        if n_fields >= 5:
            columns["score"] = [r[4] for r in records]
        return cls(names, starts, ends, strands, columns=columns, seqlengths=seqlengths, **kwargs)

    @classmethod
    def concat(cls, collections: Sequence[IntervalCollection]) -> IntervalCollection:
        """Stack collections row-wise.

        Columns absent from some inputs are filled with missing values.
        Sequence length tables are merged.
        """
        collections = list(collections)
        if not collections:
            return cls.empty()
        if len(collections) == 1:
            return collections[0]

        seqlengths = None
        for c in collections:
            if c.seqlengths is not None:
                seqlengths = c.seqlengths if seqlengths is None else seqlengths.merge(c.seqlengths)

        names: list[str] = []
        kinds: dict[str, ColumnKind] = {}
        for c in collections:
            for name, col in c._columns.items():
                if name not in kinds:
                    names.append(name)
                    kinds[name] = col.kind

        columns = {}
        for name in names:
            parts = [
                c._columns[name] if name in c._columns else Column.missing(kinds[name], len(c))
                for c in collections
            ]
            columns[name] = Column.concat(parts)

        return cls._unchecked(
            np.concatenate([c._sequence_names for c in collections]),
            np.concatenate([c._starts for c in collections]),
            np.concatenate([c._ends for c in collections]),
            np.concatenate([c._strands for c in collections]),
            columns,
            seqlengths,
            collections[0].bounds_policy,
            all(c.allow_zero_width for c in collections),
        )

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._starts)

    def __repr__(self) -> str:
        cols = ", ".join(self._columns)
        return f"IntervalCollection(n={len(self)}, columns=[{cols}])"

    def __iter__(self) -> Iterator[tuple[Interval, dict[str, Any]]]:
        for i in range(len(self)):
            yield self.interval(i), self.row(i)

    def __getitem__(self, key: Any) -> Any:
        if isinstance(key, str):
            return self.get(key)
        if isinstance(key, (int, np.integer)):
            i = int(key)
            if i < 0:
                i += len(self)
            return self.interval(i), self.row(i)
        if isinstance(key, slice):
            return self.take(np.arange(len(self))[key])
        key = np.asarray(key)
        if key.dtype == bool:
            return self.filter(key)
        return self.take(key)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IntervalCollection):
            return NotImplemented
        return self.equals(other)

    __hash__ = None  # type: ignore[assignment]

    @property
    def sequence_names(self) -> np.ndarray:
        """Sequence name per row."""
        return self._sequence_names

    @property
    def starts(self) -> np.ndarray:
        """1-based inclusive starts (int64)."""
        return self._starts

    @property
    def ends(self) -> np.ndarray:
        """1-based inclusive ends (int64)."""
        return self._ends

    @property
    def strands(self) -> np.ndarray:
        """Strand per row as int8 (1, -1, 0)."""
        return self._strands

    @property
    def widths(self) -> np.ndarray:
        """Width per row (int64)."""
        return self._ends - self._starts + 1

    @property
    def column_names(self) -> list[str]:
        """Metadata column names in order."""
        return list(self._columns)

    @property
    def columns(self) -> dict[str, Column]:
        """Metadata columns by name (a new dict sharing the columns)."""
        return dict(self._columns)

    def has_column(self, name: str) -> bool:
        """True for metadata columns and coordinate pseudo-columns."""
        return name in self._columns or name in RESERVED_COLUMNS

    def get(self, name: str) -> Column:
        """Return a metadata column or a coordinate pseudo-column.

        Raises:
            IncompatibleGroupKey: If no such column exists.
        """
        if name in self._columns:
            return self._columns[name]
        if name == "sequence_name":
            return Column(self._sequence_names, ColumnKind.STRING)
        if name == "start":
            return Column(self._starts, ColumnKind.INTEGER)
        if name == "end":
            return Column(self._ends, ColumnKind.INTEGER)
        if name == "strand":
            return Column(self._strands, ColumnKind.STRAND)
        if name == "width":
            return Column(self.widths, ColumnKind.INTEGER)
        raise IncompatibleGroupKey(f"No column named '{name}'")

    def interval(self, i: int) -> Interval:
        """Return row ``i`` as an Interval."""
        return Interval(
            self._sequence_names[i],
            int(self._starts[i]),
            int(self._ends[i]),
            Strand(int(self._strands[i])),
        )

    def intervals(self) -> list[Interval]:
        """All rows as Interval records."""
        return [self.interval(i) for i in range(len(self))]

    def row(self, i: int) -> dict[str, Any]:
        """Metadata of row ``i`` as a dict."""
        return {name: col[i] for name, col in self._columns.items()}

    def to_records(self) -> list[dict[str, Any]]:
        """Rows as dicts with coordinates (strand as symbol) and metadata."""
        records = []
        for i in range(len(self)):
            rec: dict[str, Any] = {
                "sequence_name": self._sequence_names[i],
                "start": int(self._starts[i]),
                "end": int(self._ends[i]),
                "strand": Strand(int(self._strands[i])).symbol,
            }
            rec.update(self.row(i))
            records.append(rec)
        return records

    def to_bedgraph(self, score: str = "score") -> list[tuple[str, int, int, Any]]:
        """Return (sequence_name, start, end, score) triples, 0-based half-open."""
        values = self.get(score)
        return [
            (self._sequence_names[i], int(self._starts[i]) - 1, int(self._ends[i]), values[i])
            for i in range(len(self))
        ]

    def sequence_order(self) -> list[str]:
        """Sequence names in canonical order.

        Names from the length table come first in table order, followed by
        any other names in order of first appearance.
        """
        order: list[str] = list(self.seqlengths) if self.seqlengths is not None else []
        seen = set(order)
        for name in self._sequence_names:
            if name not in seen:
                seen.add(name)
                order.append(name)
        return order

    def equals(self, other: IntervalCollection, check_columns: bool = True) -> bool:
        """Compare coordinates, strands and (optionally) metadata."""
        if len(self) != len(other):
            return False
        if not (
            np.array_equal(self._starts, other._starts)
            and np.array_equal(self._ends, other._ends)
            and np.array_equal(self._strands, other._strands)
            and list(self._sequence_names) == list(other._sequence_names)
        ):
            return False
        if not check_columns:
            return True
        if list(self._columns) != list(other._columns):
            return False
        return all(self._columns[n].equals(other._columns[n]) for n in self._columns)

    # -------------------------------------------------------------------------
    # Derivation
    # -------------------------------------------------------------------------

    def _derive(
        self,
        indices: np.ndarray | None = None,
        columns: dict[str, Column] | None = None,
    ) -> IntervalCollection:
        if indices is None:
            return IntervalCollection._unchecked(
                self._sequence_names,
                self._starts,
                self._ends,
                self._strands,
                self._columns if columns is None else columns,
                self.seqlengths,
                self.bounds_policy,
                self.allow_zero_width,
            )
        indices = np.asarray(indices, dtype=np.int64)
        source = self._columns if columns is None else columns
        return IntervalCollection._unchecked(
            self._sequence_names[indices],
            self._starts[indices],
            self._ends[indices],
            self._strands[indices],
            {name: col.take(indices) for name, col in source.items()},
            self.seqlengths,
            self.bounds_policy,
            self.allow_zero_width,
        )

    def take(self, indices: Sequence[int] | np.ndarray) -> IntervalCollection:
        """Select rows by position, in the given order."""
        indices = np.asarray(indices, dtype=np.int64)
        if len(indices) and (indices.min() < -len(self) or indices.max() >= len(self)):
            raise IndexError("Row index out of range")
        indices = np.where(indices < 0, indices + len(self), indices)
        return self._derive(indices)

    def filter(self, mask: Sequence[bool] | np.ndarray) -> IntervalCollection:
        """Keep rows where ``mask`` is True, preserving order."""
        mask = np.asarray(mask, dtype=bool)
        if len(mask) != len(self):
            raise ColumnLengthMismatch(f"Filter mask has {len(mask)} values, expected {len(self)}")
        return self._derive(np.flatnonzero(mask))

    def head(self, n: int = 5) -> IntervalCollection:
        """First ``n`` rows."""
        return self._derive(np.arange(min(n, len(self))))

    def order(self) -> np.ndarray:
        """Stable permutation sorting by sequence order, start, end, strand."""
        rank = {name: i for i, name in enumerate(self.sequence_order())}
        seq_rank = np.fromiter(
            (rank[name] for name in self._sequence_names), dtype=np.int64, count=len(self)
        )
        # lexsort sorts by the last key first
        return np.lexsort((self._strands, self._ends, self._starts, seq_rank))

    def sort(self) -> IntervalCollection:
        """Sorted copy (sequence order, start, end, strand; stable)."""
        return self._derive(self.order())

    def mutate(self, **values: ColumnInput | Callable[[IntervalCollection], Any] | Any) -> IntervalCollection:
        """Add or replace metadata columns.

        Each value may be a Column, an array or sequence of row values, a
        scalar broadcast to every row, or a callable receiving this
        collection. Callables are evaluated against the input collection,
        not against columns added by the same call.

        Raises:
            ReservedColumnName: For coordinate field names.
            ColumnLengthMismatch: For values of the wrong length.
        """
        columns = dict(self._columns)
        for name, value in values.items():
            if callable(value) and not isinstance(value, (Column, np.ndarray)):
                value = value(self)
            columns[name] = self._check_column(name, value)
        return self._derive(columns=columns)

    def select(self, *names: str) -> IntervalCollection:
        """Keep only the named metadata columns, in the given order."""
        for name in names:
            if name not in self._columns:
                raise IncompatibleGroupKey(f"No column named '{name}'")
        return self._derive(columns={name: self._columns[name] for name in names})

    def drop(self, *names: str) -> IntervalCollection:
        """Remove the named metadata columns."""
        for name in names:
            if name not in self._columns:
                raise IncompatibleGroupKey(f"No column named '{name}'")
        return self._derive(columns={k: v for k, v in self._columns.items() if k not in names})

    def rename(self, **mapping: str) -> IntervalCollection:
        """Rename metadata columns: ``rename(old="new")``."""
        for old, new in mapping.items():
            if old not in self._columns:
                raise IncompatibleGroupKey(f"No column named '{old}'")
            if new in RESERVED_COLUMNS:
                raise ReservedColumnName(f"Column name '{new}' is reserved")
        renamed = [mapping.get(k, k) for k in self._columns]
        if len(set(renamed)) != len(renamed):
            clash = next(name for name in renamed if renamed.count(name) > 1)
            raise DuplicateColumnName(f"Renaming would create two columns named '{clash}'")
        return self._derive(columns=dict(zip(renamed, self._columns.values())))

    def with_coordinates(
        self,
        starts: np.ndarray | None = None,
        ends: np.ndarray | None = None,
        strands: np.ndarray | None = None,
        sequence_names: np.ndarray | None = None,
    ) -> IntervalCollection:
        """Return a validated copy with replaced coordinate arrays.

        Metadata columns, length table and policies are carried over.
        """
        return IntervalCollection(
            self._sequence_names if sequence_names is None else sequence_names,
            self._starts if starts is None else starts,
            self._ends if ends is None else ends,
            self._strands if strands is None else strands,
            columns=self._columns,
            seqlengths=self.seqlengths,
            bounds_policy=self.bounds_policy,
            allow_zero_width=self.allow_zero_width,
        )

    def with_seqlengths(
        self,
        seqlengths: Mapping[str, int] | SequenceLengths | None,
        bounds_policy: BoundsPolicy | str | None = None,
    ) -> IntervalCollection:
        """Attach (and validate against) a sequence length table."""
        return IntervalCollection(
            self._sequence_names,
            self._starts,
            self._ends,
            self._strands,
            columns=self._columns,
            seqlengths=seqlengths,
            bounds_policy=self.bounds_policy if bounds_policy is None else bounds_policy,
            allow_zero_width=self.allow_zero_width,
        )

    def unstrand(self) -> IntervalCollection:
        """Copy with every strand set to unstranded."""
        return IntervalCollection._unchecked(
            self._sequence_names,
            self._starts,
            self._ends,
            np.zeros(len(self), dtype=np.int8),
            self._columns,
            self.seqlengths,
            self.bounds_policy,
            self.allow_zero_width,
        )

    def group_by(self, *keys: str) -> GroupedCollection:
        """Partition rows by one or more columns or pseudo-columns."""
        from rangeforge.core.grouping import GroupedCollection

        return GroupedCollection(self, keys)

    def subset_by_region(self, region: str) -> IntervalCollection:
        """Rows overlapping a region string such as ``chr1:100-200``.

        Raises:
            UnknownSequence: If the collection has a length table that does
                not list the region's sequence.
            InvalidInterval: If the region runs past the sequence end.
        """
        from rangeforge.ops.overlaps import filter_by_overlaps
        from rangeforge.utils.regions import parse_region, validate_region

        interval = parse_region(region)
        if self.seqlengths is not None:
            validate_region(interval, self.seqlengths)
        query = IntervalCollection.from_intervals([interval])
        return filter_by_overlaps(self, query)
