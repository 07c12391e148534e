"""Grouped interval collections.

A :class:`GroupedCollection` pairs a collection with a grouping key and the
partition of its rows into groups. Grouping is an explicit value: verbs that
understand groups (:func:`~rangeforge.ops.aggregate.summarise`,
:func:`~rangeforge.ops.setops.reduce_ranges`,
:func:`~rangeforge.ops.setops.disjoin_ranges`) accept it in place of a plain
collection.

Example:
    >>> grouped = genes.group_by("sequence_name", "biotype")
    >>> grouped.n_groups
    4
    >>> summarise(grouped, n=count())
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any

import numpy as np

from rangeforge.core.exceptions import IncompatibleGroupKey

if TYPE_CHECKING:
    from rangeforge.core.collection import IntervalCollection


class GroupedCollection:
    """A collection partitioned by a grouping key.

    Groups are ordered by first appearance in the collection; row indices
    within a group keep collection order.

    Attributes:
        collection: The underlying collection.
        key_names: Names of the grouping columns.
    """

    def __init__(self, collection: IntervalCollection, keys: Sequence[str]) -> None:
        """Partition the collection.

        Args:
            collection: Collection to group.
            keys: Column or pseudo-column names.

        Raises:
            IncompatibleGroupKey: If a key is not a column of the collection.
        """
        keys = tuple(keys)
        if not keys:
            raise IncompatibleGroupKey("group_by needs at least one key")
        for key in keys:
            if not collection.has_column(key):
                raise IncompatibleGroupKey(
                    f"Grouping column '{key}' not in collection "
                    f"(columns: {collection.column_names})"
                )

        self.collection = collection
        self.key_names = keys

        key_columns = [collection.get(key) for key in keys]
        groups: dict[tuple[Any, ...], list[int]] = {}
        for i in range(len(collection)):
            value = tuple(col[i] for col in key_columns)
            groups.setdefault(value, []).append(i)
        self._groups = {k: np.asarray(v, dtype=np.int64) for k, v in groups.items()}

    def __repr__(self) -> str:
        return f"GroupedCollection(keys={list(self.key_names)}, n_groups={self.n_groups})"

    def __len__(self) -> int:
        return len(self.collection)

    def __iter__(self) -> Iterator[tuple[tuple[Any, ...], IntervalCollection]]:
        """Iterate over (key values, sub-collection) pairs."""
        for key, rows in self._groups.items():
            yield key, self.collection.take(rows)

    @property
    def n_groups(self) -> int:
        """Number of groups."""
        return len(self._groups)

    @property
    def group_keys(self) -> list[tuple[Any, ...]]:
        """Key values of each group in order."""
        return list(self._groups)

    def indices(self) -> dict[tuple[Any, ...], np.ndarray]:
        """Row indices per group."""
        return dict(self._groups)

    def group_ids(self) -> np.ndarray:
        """Integer group id per row of the collection."""
        ids = np.empty(len(self.collection), dtype=np.int64)
        for gid, rows in enumerate(self._groups.values()):
            ids[rows] = gid
        return ids

    def ungroup(self) -> IntervalCollection:
        """Drop the grouping."""
        return self.collection
