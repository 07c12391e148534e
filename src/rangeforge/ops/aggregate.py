"""Grouped summaries over interval collections.

Reducers describe how a set of rows collapses to one value. They are used
by :func:`summarise` and, for per-merge columns, by
:func:`~rangeforge.ops.setops.reduce_ranges` and
:func:`~rangeforge.ops.setops.disjoin_ranges`.

Available reducers:
    - count(): number of rows
    - total(column): sum of values
    - weighted_sum(column): sum of value x width
    - mean(column), median(column)
    - minimum(column), maximum(column)
    - concat(column, sep=","): joined string of values
    - n_distinct(column): number of distinct values
    - collect(column): tuple of values
    - first(column): first value

Missing values are skipped. Integer sums accumulate in Python ``int`` so
genome-scale totals cannot overflow.

Example:
    >>> from rangeforge.ops.aggregate import summarise, total
    >>> table = summarise(coverage.group_by("score"), bases=total("width"))
    >>> table.to_records()
    [{'score': 0, 'bases': 1200}, {'score': 1, 'bases': 300}]
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

import attrs
import numpy as np

from rangeforge.core.collection import IntervalCollection
from rangeforge.core.columns import Column, ColumnKind
from rangeforge.core.grouping import GroupedCollection

logger = logging.getLogger(__name__)


# =============================================================================
# Reducers
# =============================================================================


def _present(collection: IntervalCollection, column: str, rows: np.ndarray) -> tuple[Column, list[Any]]:
    col = collection.get(column)
    values = [col[int(i)] for i in rows]
    return col, [v for v in values if v is not None]


def _require_numeric(col: Column, column: str, op: str) -> None:
    if not col.kind.is_numeric:
        raise TypeError(f"{op}() needs a numeric column, '{column}' is {col.kind.value}")


def _sum(col: Column, values: list[Any]) -> int | float:
    if col.kind == ColumnKind.FLOAT:
        return float(np.sum(np.asarray(values, dtype=np.float64))) if values else 0.0
    return sum(int(v) for v in values)


@attrs.define(frozen=True)
class Reducer:
    """A named reduction of a set of rows to one value.

    Use the factory functions (:func:`count`, :func:`total`, ...) rather than
    building Reducers directly.

    Attributes:
        op: Reduction name.
        column: Column the reduction reads (None for count).
        sep: Separator used by concat.
    """

    op: str
    column: str | None = None
    sep: str = ","

    def __call__(self, collection: IntervalCollection, rows: np.ndarray) -> Any:
        """Reduce ``rows`` of ``collection`` to one value."""
        rows = np.asarray(rows, dtype=np.int64)
        if self.op == "count":
            return int(len(rows))

        col, values = _present(collection, self.column, rows)

        if self.op == "total":
            _require_numeric(col, self.column, self.op)
            return _sum(col, values)

        if self.op == "weighted_sum":
            _require_numeric(col, self.column, self.op)
            widths = collection.widths
            result = 0.0 if col.kind == ColumnKind.FLOAT else 0
            for i in rows.tolist():
                value = col[i]
                if value is not None:
                    result += value * int(widths[i])
            return result

        if self.op in ("mean", "median"):
            _require_numeric(col, self.column, self.op)
            if not values:
                return None
            arr = np.asarray(values, dtype=np.float64)
            return float(np.mean(arr) if self.op == "mean" else np.median(arr))

        if self.op in ("minimum", "maximum"):
            if not values:
                return None
            return min(values) if self.op == "minimum" else max(values)

        if self.op == "concat":
            return self.sep.join(str(v) for v in values)

        if self.op == "n_distinct":
            return len(set(values))

        if self.op == "collect":
            return tuple(values)

        if self.op == "first":
            return values[0] if values else None

        raise ValueError(f"Unknown reducer: {self.op}")

    def output_kind(self, collection: IntervalCollection) -> ColumnKind:
        """Kind of the column this reducer produces on ``collection``."""
        if self.op in ("count", "n_distinct"):
            return ColumnKind.INTEGER
        if self.op in ("mean", "median"):
            return ColumnKind.FLOAT
        if self.op == "concat":
            return ColumnKind.STRING
        if self.op == "collect":
            return ColumnKind.LIST
        kind = collection.get(self.column).kind
        if self.op in ("total", "weighted_sum") and kind == ColumnKind.BOOLEAN:
            return ColumnKind.INTEGER
        return kind


def count() -> Reducer:
    """Number of rows."""
    return Reducer("count")


def total(column: str) -> Reducer:
    """Sum of a numeric column."""
    return Reducer("total", column)


def weighted_sum(column: str) -> Reducer:
    """Sum of value x width over rows."""
    return Reducer("weighted_sum", column)


def mean(column: str) -> Reducer:
    return Reducer("mean", column)


def median(column: str) -> Reducer:
    return Reducer("median", column)


def minimum(column: str) -> Reducer:
    return Reducer("minimum", column)


def maximum(column: str) -> Reducer:
    return Reducer("maximum", column)


def concat(column: str, sep: str = ",") -> Reducer:
    """Values joined into one string, in row order."""
    return Reducer("concat", column, sep)


def n_distinct(column: str) -> Reducer:
    return Reducer("n_distinct", column)


def collect(column: str) -> Reducer:
    """Values gathered into a tuple, in row order."""
    return Reducer("collect", column)


def first(column: str) -> Reducer:
    return Reducer("first", column)


def evaluate_reducers(
    collection: IntervalCollection,
    row_sets: Sequence[np.ndarray],
    reducers: Mapping[str, Reducer],
    as_columns: bool = True,
) -> dict[str, Column] | dict[str, list[Any]]:
    """Evaluate each reducer over every row set.

    Args:
        collection: Source rows.
        row_sets: One array of row indices per output row.
        reducers: Output column name to reducer.
        as_columns: Return typed Columns; otherwise plain lists of Python
            values (which keep arbitrary-precision integer sums).

    Returns:
        One Column (or list) per reducer, with one entry per row set.

    Raises:
        IncompatibleGroupKey: If a reducer names an unknown column.
    """
    results: dict[str, Any] = {}
    for name, reducer in reducers.items():
        if not isinstance(reducer, Reducer):
            raise TypeError(f"Aggregation '{name}' must be a Reducer, got {type(reducer).__name__}")
        kind = reducer.output_kind(collection)
        values = [reducer(collection, rows) for rows in row_sets]
        results[name] = Column.from_values(values, kind) if as_columns else values
    return results


# =============================================================================
# Tabular Results
# =============================================================================


class Table:
    """Plain column-ordered table returned by :func:`summarise`.

    Unlike an IntervalCollection a Table has no coordinates; it holds one
    list of Python values per column.

    Example:
        >>> table = summarise(genes.group_by("biotype"), n=count())
        >>> table.column("n")
        [12, 3]
    """

    def __init__(self, columns: Mapping[str, Sequence[Any]]) -> None:
        lengths = {len(v) for v in columns.values()}
        if len(lengths) > 1:
            raise ValueError(f"Table columns differ in length: {sorted(lengths)}")
        self._columns = {name: list(values) for name, values in columns.items()}
        self._n_rows = lengths.pop() if lengths else 0

    def __len__(self) -> int:
        return self._n_rows

    def __repr__(self) -> str:
        return f"Table(n={self._n_rows}, columns={self.column_names})"

    def __iter__(self) -> Iterator[dict[str, Any]]:
        for i in range(self._n_rows):
            yield {name: values[i] for name, values in self._columns.items()}

    def __getitem__(self, name: str) -> list[Any]:
        return self.column(name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Table):
            return NotImplemented
        return self._columns == other._columns

    __hash__ = None  # type: ignore[assignment]

    @property
    def column_names(self) -> list[str]:
        """Column names in order."""
        return list(self._columns)

    def column(self, name: str) -> list[Any]:
        """Values of one column."""
        if name not in self._columns:
            raise KeyError(f"No column named '{name}'")
        return list(self._columns[name])

    def to_records(self) -> list[dict[str, Any]]:
        """Rows as dicts."""
        return list(self)

    def to_dict(self) -> dict[str, list[Any]]:
        """Columns as lists."""
        return {name: list(values) for name, values in self._columns.items()}


def summarise(
    data: IntervalCollection | GroupedCollection,
    **reducers: Reducer,
) -> Table:
    """Summarise a collection, or each group of a grouped collection.

    Args:
        data: A collection (one output row) or a GroupedCollection (one row
            per group, in first-appearance order, key columns first).
        **reducers: Output column name to Reducer.

    Returns:
        A Table.

    Raises:
        IncompatibleGroupKey: If a reducer names an unknown column.
    """
    if isinstance(data, GroupedCollection):
        collection = data.collection
        index = data.indices()
        keys = list(index)
        row_sets = list(index.values())
        columns: dict[str, list[Any]] = {
            name: [key[j] for key in keys] for j, name in enumerate(data.key_names)
        }
    else:
        collection = data
        row_sets = [np.arange(len(data), dtype=np.int64)]
        columns = {}

    columns.update(evaluate_reducers(collection, row_sets, reducers, as_columns=False))

    logger.debug(f"summarise: {len(row_sets)} groups, {len(reducers)} reducers")
    return Table(columns)
