"""Core data model for rangeforge.

This module contains the value types every verb works on:

- Interval records, strands and anchors
- Typed metadata columns
- Interval collections and grouped collections
- The error taxonomy

Example:
    >>> from rangeforge.core import IntervalCollection, Interval
    >>> peaks = IntervalCollection.from_intervals([Interval("chr1", 100, 200)])
"""

from rangeforge.core.collection import RESERVED_COLUMNS, BoundsPolicy, IntervalCollection
from rangeforge.core.columns import MISSING, Column, ColumnKind
from rangeforge.core.exceptions import (
    AmbiguousAnchor,
    ColumnLengthMismatch,
    DuplicateColumnName,
    IncompatibleGroupKey,
    InvalidInterval,
    MissingSequenceLengths,
    MixedStrandError,
    RangeError,
    ReservedColumnName,
    UnknownSequence,
)
from rangeforge.core.grouping import GroupedCollection
from rangeforge.core.interval import Anchor, Interval, SequenceLengths, Strand, strands_compatible

__all__: list[str] = [
    # Records
    "Anchor",
    "Interval",
    "SequenceLengths",
    "Strand",
    "strands_compatible",
    # Columns
    "MISSING",
    "Column",
    "ColumnKind",
    # Collections
    "RESERVED_COLUMNS",
    "BoundsPolicy",
    "GroupedCollection",
    "IntervalCollection",
    # Errors
    "AmbiguousAnchor",
    "ColumnLengthMismatch",
    "DuplicateColumnName",
    "IncompatibleGroupKey",
    "InvalidInterval",
    "MissingSequenceLengths",
    "MixedStrandError",
    "RangeError",
    "ReservedColumnName",
    "UnknownSequence",
]
