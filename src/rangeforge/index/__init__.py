"""Overlap indices for interval collections."""

from rangeforge.index.sequence_index import GenomeIndex, SequenceIndex

__all__: list[str] = ["GenomeIndex", "SequenceIndex"]
