"""Genomic interval records.

This module provides the value types shared by the whole engine:

- Strand and anchor enumerations
- The immutable :class:`Interval` record (1-based, closed coordinates)
- The :class:`SequenceLengths` table of declared sequence lengths

Coordinate conventions:
    - Intervals are 1-based and closed: ``start`` and ``end`` are inclusive.
    - Width is ``end - start + 1``.
    - A zero-width interval has ``end == start - 1``. It marks an insertion
      point and never overlaps anything.
    - BED input is 0-based half-open and is converted with
      :meth:`Interval.from_bed`.

Example:
    >>> from rangeforge.core.interval import Interval, Strand
    >>> a = Interval("chr1", 100, 200, "+")
    >>> b = Interval("chr1", 150, 250)
    >>> a.overlaps(b)
    True
    >>> a.intersection(b)
    Interval(sequence_name='chr1', start=150, end=200, strand=<Strand.FORWARD: 1>)
"""

from __future__ import annotations

import numbers
from collections.abc import Iterator, Mapping
from enum import Enum, IntEnum
from typing import Any

import attrs

from rangeforge.core.exceptions import InvalidInterval

# =============================================================================
# Enums
# =============================================================================


class Strand(IntEnum):
    """Strand orientation of an interval."""

    FORWARD = 1
    REVERSE = -1
    UNSTRANDED = 0

    def __str__(self) -> str:
        return _STRAND_SYMBOLS[self]

    @property
    def symbol(self) -> str:
        """Single-character symbol (``+``, ``-`` or ``*``)."""
        return _STRAND_SYMBOLS[self]

    @classmethod
    def from_symbol(cls, value: Any) -> Strand:
        """Convert a symbol, integer or Strand to a Strand.

        Args:
            value: ``"+"``, ``"-"``, ``"*"``, ``"."``, ``None``, 1, -1, 0
                or a Strand.

        Returns:
            The matching Strand.

        Raises:
            InvalidInterval: If the value is not a recognised strand.
        """
        if isinstance(value, Strand):
            return value
        if value is None:
            return cls.UNSTRANDED
        if isinstance(value, str):
            if value in _SYMBOL_TO_STRAND:
                return _SYMBOL_TO_STRAND[value]
        elif isinstance(value, numbers.Integral) and int(value) in (-1, 0, 1):
            return cls(int(value))
        raise InvalidInterval(f"Unrecognised strand: {value!r}")


_STRAND_SYMBOLS = {
    Strand.FORWARD: "+",
    Strand.REVERSE: "-",
    Strand.UNSTRANDED: "*",
}

_SYMBOL_TO_STRAND = {
    "+": Strand.FORWARD,
    "-": Strand.REVERSE,
    "*": Strand.UNSTRANDED,
    ".": Strand.UNSTRANDED,
    "": Strand.UNSTRANDED,
}


class Anchor(Enum):
    """Coordinate held fixed when an interval is resized."""

    START = "start"
    END = "end"
    CENTER = "center"
    FIVE_PRIME = "5p"  # start on +, end on -
    THREE_PRIME = "3p"  # end on +, start on -

    @property
    def is_stranded(self) -> bool:
        """Whether the anchor depends on strand."""
        return self in (Anchor.FIVE_PRIME, Anchor.THREE_PRIME)


# =============================================================================
# Interval
# =============================================================================


def strands_compatible(
    a: Strand,
    b: Strand,
    unstranded_matches_any: bool = False,
) -> bool:
    """Check whether two strands may match in a directed comparison.

    Args:
        a: First strand.
        b: Second strand.
        unstranded_matches_any: If True, an unstranded side matches any
            strand. Otherwise only equal strands match.

    Returns:
        True if the strands are compatible.
    """
    if a == b:
        return True
    if unstranded_matches_any:
        return a == Strand.UNSTRANDED or b == Strand.UNSTRANDED
    return False


@attrs.define(frozen=True)
class Interval:
    """A closed, 1-based genomic interval.

    Frozen attrs class, hashable and safe to use in sets.

    Attributes:
        sequence_name: Chromosome/contig name.
        start: Start position (1-based, inclusive).
        end: End position (1-based, inclusive).
        strand: Strand orientation.
    """

    sequence_name: str
    start: int = attrs.field(converter=int)
    end: int = attrs.field(converter=int)
    strand: Strand = attrs.field(default=Strand.UNSTRANDED, converter=Strand.from_symbol)

    def __attrs_post_init__(self) -> None:
        if not isinstance(self.sequence_name, str) or not self.sequence_name:
            raise InvalidInterval("Interval sequence_name must be a non-empty string")
        if self.end < self.start - 1:
            raise InvalidInterval(
                f"Interval end must be >= start - 1: {self.sequence_name}:{self.start}-{self.end}"
            )

    def __str__(self) -> str:
        return f"{self.sequence_name}:{self.start}-{self.end}:{self.strand.symbol}"

    @classmethod
    def from_bed(
        cls,
        sequence_name: str,
        start: int,
        end: int,
        strand: Any = None,
    ) -> Interval:
        """Build an Interval from 0-based half-open coordinates."""
        return cls(sequence_name, int(start) + 1, int(end), strand)

    @property
    def width(self) -> int:
        """Number of bases covered."""
        return self.end - self.start + 1

    @property
    def is_empty(self) -> bool:
        """True for zero-width intervals."""
        return self.end < self.start

    def to_bed(self) -> tuple[str, int, int]:
        """Return (sequence_name, start, end) in 0-based half-open form."""
        return (self.sequence_name, self.start - 1, self.end)

    def overlaps(
        self,
        other: Interval,
        directed: bool = False,
        unstranded_matches_any: bool = False,
    ) -> bool:
        """Check if this interval overlaps another.

        Zero-width intervals never overlap anything.

        Args:
            other: Another Interval.
            directed: If True, strands must also be compatible.
            unstranded_matches_any: Strand rule used when directed.

        Returns:
            True if the intervals overlap.
        """
        if self.sequence_name != other.sequence_name:
            return False
        if self.is_empty or other.is_empty:
            return False
        if directed and not strands_compatible(self.strand, other.strand, unstranded_matches_any):
            return False
        return self.start <= other.end and other.start <= self.end

    def contains(self, other: Interval) -> bool:
        """Check if this interval fully contains another."""
        if self.sequence_name != other.sequence_name:
            return False
        return self.start <= other.start and other.end <= self.end

    def distance(self, other: Interval) -> int | None:
        """Gap between two intervals in bases.

        Overlapping and adjacent intervals are at distance 0.

        Returns:
            The distance, or None if the intervals are on different sequences.
        """
        if self.sequence_name != other.sequence_name:
            return None
        return max(0, other.start - self.end - 1, self.start - other.end - 1)

    def intersection(self, other: Interval) -> Interval | None:
        """Return the overlapping part of two intervals, or None."""
        if not self.overlaps(other):
            return None
        return Interval(
            self.sequence_name,
            max(self.start, other.start),
            min(self.end, other.end),
            self.strand,
        )


# =============================================================================
# Sequence Length Table
# =============================================================================


class SequenceLengths(Mapping[str, int]):
    """Immutable table of declared sequence lengths.

    Supplied once when a collection is built and shared read-only by every
    collection derived from it. Iteration follows declaration order, which
    is also the sequence order used when sorting.

    Example:
        >>> lengths = SequenceLengths({"chr1": 1000, "chr2": 500})
        >>> lengths["chr1"]
        1000
        >>> list(lengths)
        ['chr1', 'chr2']
    """

    __slots__ = ("_lengths",)

    def __init__(self, lengths: Mapping[str, int] | Iterator[tuple[str, int]] | list) -> None:
        items = lengths.items() if isinstance(lengths, Mapping) else lengths
        table: dict[str, int] = {}
        for name, length in items:
            if not isinstance(name, str) or not name:
                raise InvalidInterval("Sequence names must be non-empty strings")
            length = int(length)
            if length < 0:
                raise InvalidInterval(f"Sequence length must be >= 0: {name}={length}")
            table[name] = length
        self._lengths = table

    def __getitem__(self, name: str) -> int:
        return self._lengths[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._lengths)

    def __len__(self) -> int:
        return len(self._lengths)

    def __repr__(self) -> str:
        return f"SequenceLengths({self._lengths!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SequenceLengths):
            return self._lengths == other._lengths
        if isinstance(other, Mapping):
            return self._lengths == dict(other)
        return False

    def __hash__(self) -> int:
        return hash(tuple(self._lengths.items()))

    @property
    def total_length(self) -> int:
        """Sum of all sequence lengths."""
        return sum(self._lengths.values())

    def merge(self, other: SequenceLengths | None) -> SequenceLengths:
        """Union of two tables.

        Raises:
            InvalidInterval: If a sequence has conflicting lengths.
        """
        if other is None or other is self:
            return self
        merged = dict(self._lengths)
        for name, length in other.items():
            if name in merged and merged[name] != length:
                raise InvalidInterval(
                    f"Conflicting lengths for {name}: {merged[name]} vs {length}"
                )
            merged[name] = length
        return SequenceLengths(merged)
