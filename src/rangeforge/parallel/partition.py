"""Per-sequence partitioning for parallel processing.

Every engine operation is independent across sequences (and, in directed
mode, across strands). This module splits a collection into those
independent units of work.

Example:
    >>> from rangeforge.parallel.partition import partition_by_sequence
    >>> parts = partition_by_sequence(peaks)
    >>> [p.sequence_name for p in parts]
    ['chr1', 'chr2']
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence

import attrs
import numpy as np

from rangeforge.core.collection import IntervalCollection
from rangeforge.core.interval import Strand

logger = logging.getLogger(__name__)


# =============================================================================
# Data Structures
# =============================================================================


@attrs.define(slots=True, frozen=True, eq=False)
class SequencePartition:
    """Rows of a collection that belong to one sequence (and strand).

    Attributes:
        chunk_id: Unique identifier for this unit of work.
        sequence_name: Sequence shared by all rows.
        strand: Strand shared by all rows, or None when undirected.
        row_ids: Row positions in the source collection, ascending.
        group: Index of the group the rows belong to (0 when ungrouped).
    """

    chunk_id: str
    sequence_name: str
    strand: int | None
    row_ids: np.ndarray
    group: int = 0

    @property
    def size(self) -> int:
        """Number of rows."""
        return len(self.row_ids)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "chunk_id": self.chunk_id,
            "sequence_name": self.sequence_name,
            "strand": self.strand,
            "group": self.group,
            "size": self.size,
        }

    def __str__(self) -> str:
        if self.strand is None:
            return self.sequence_name
        return f"{self.sequence_name}:{Strand(self.strand).symbol}"


@attrs.define(slots=True)
class PartitionPlan:
    """Ordered partitions of one collection.

    Attributes:
        partitions: Partitions in canonical sequence order.
        total_rows: Row count of the source collection.
    """

    partitions: list[SequencePartition]
    total_rows: int

    def __len__(self) -> int:
        return len(self.partitions)

    def __iter__(self) -> Iterator[SequencePartition]:
        return iter(self.partitions)

    def __getitem__(self, index: int) -> SequencePartition:
        return self.partitions[index]


# =============================================================================
# Partitioning
# =============================================================================


def partition_by_sequence(
    collection: IntervalCollection,
    directed: bool = False,
    sequence_names: Sequence[str] | None = None,
    group_ids: np.ndarray | None = None,
) -> PartitionPlan:
    """Split a collection into per-sequence (and per-strand) partitions.

    Args:
        collection: Collection to split.
        directed: Split each sequence further by strand.
        sequence_names: Explicit sequence order. Sequences listed here that
            have no rows still get an empty partition; sequences with rows
            that are not listed are appended in canonical order.
        group_ids: Optional group id per row (see
            :meth:`GroupedCollection.group_ids`). Groups are split
            separately and come out in ascending group id order.

    Returns:
        PartitionPlan in canonical order (group, sequence order, then strand
        ``+``, ``-``, ``*``).
    """
    if group_ids is not None and len(group_ids):
        plans = []
        for gid in range(int(np.max(group_ids)) + 1):
            rows = np.flatnonzero(group_ids == gid)
            sub = partition_by_sequence(collection.take(rows), directed)
            plans.extend(
                SequencePartition(f"{gid}/{p.chunk_id}", p.sequence_name, p.strand, rows[p.row_ids], gid)
                for p in sub
            )
        logger.debug(f"Partitioned {len(collection)} rows into {len(plans)} grouped partitions")
        return PartitionPlan(partitions=plans, total_rows=len(collection))

    names = collection.sequence_names
    strands = collection.strands
    groups: dict[tuple[str, int | None], list[int]] = {}
    for i in range(len(collection)):
        key = (names[i], int(strands[i]) if directed else None)
        groups.setdefault(key, []).append(i)

    order = list(sequence_names) if sequence_names is not None else []
    listed = set(order)
    for name in collection.sequence_order():
        if name not in listed:
            listed.add(name)
            order.append(name)

    strand_order: tuple[int | None, ...] = (1, -1, 0) if directed else (None,)
    partitions: list[SequencePartition] = []
    for name in order:
        present = [s for s in strand_order if (name, s) in groups]
        if not present and sequence_names is not None and name in sequence_names:
            present = [None if not directed else 0]
        for strand in present:
            rows = np.asarray(groups.get((name, strand), []), dtype=np.int64)
            chunk_id = name if strand is None else f"{name}:{strand}"
            partitions.append(SequencePartition(chunk_id, name, strand, rows))

    logger.debug(f"Partitioned {len(collection)} rows into {len(partitions)} partitions")
    return PartitionPlan(partitions=partitions, total_rows=len(collection))

