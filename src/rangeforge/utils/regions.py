"""Genomic region string parsing.

Region strings are the usual way to name a stretch of a sequence on a
command line or in a config file. They are parsed into
:class:`~rangeforge.core.interval.Interval` records.

Coordinate conventions:
    - Region strings: 1-based inclusive (standard genomic convention)
    - Interval records: 1-based inclusive (no conversion needed)
    - BED-style output: 0-based half-open

Example:
    >>> from rangeforge.utils.regions import parse_region
    >>> region = parse_region("chr1:1000-2000:+")
    >>> region.start, region.end, region.strand.symbol
    (1000, 2000, '+')
    >>> region.width
    1001
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from rangeforge.core.exceptions import InvalidInterval, UnknownSequence
from rangeforge.core.interval import Interval

# Regex pattern for region parsing
# Handles: chr1:1000-2000, chr1:1000..2000, chr1:1,000-2,000, chr1:100-200:-
_REGION_PATTERN = re.compile(r"^(.+?):([\d,]+)(?:-|\.\.)([\d,]+)(?::([+\-*.]))?$")


def parse_region(region_str: str) -> Interval:
    """Parse a region string into an Interval.

    Supported formats:
        chr1:1000-2000      (1-based, inclusive - standard)
        chr1:1000..2000     (1-based, inclusive - GFF style)
        chr1:1,000-2,000    (thousands separators)
        chr1:1000-2000:-    (with strand)

    Args:
        region_str: Region string in format seqid:start-end[:strand].

    Returns:
        Interval with 1-based, inclusive coordinates.

    Raises:
        InvalidInterval: If format is invalid or coordinates are invalid.

    Example:
        >>> parse_region("chr1:1000-2000")
        Interval(sequence_name='chr1', start=1000, end=2000, strand=<Strand.UNSTRANDED: 0>)
    """
    match = _REGION_PATTERN.match(region_str.strip())
    if not match:
        raise InvalidInterval(
            f"Invalid region format: '{region_str}'. "
            "Expected format: seqid:start-end[:strand] (e.g., chr1:1000-2000)"
        )

    seqid = match.group(1)
    start = int(match.group(2).replace(",", ""))
    end = int(match.group(3).replace(",", ""))

    if start < 1:
        raise InvalidInterval(f"Start position must be >= 1, got {start}")
    if end < start:
        raise InvalidInterval(f"End must be >= start: {start}-{end}")

    return Interval(seqid, start, end, match.group(4))


def validate_region(region: Interval, seqlengths: Mapping[str, int]) -> None:
    """Validate a region against a sequence length table.

    Raises:
        UnknownSequence: If the sequence is not in the table.
        InvalidInterval: If the region extends past the sequence end.
    """
    if region.sequence_name not in seqlengths:
        available = list(seqlengths)[:5]
        suffix = "..." if len(seqlengths) > 5 else ""
        raise UnknownSequence(
            f"Sequence '{region.sequence_name}' not found. Available: {available}{suffix}"
        )

    length = seqlengths[region.sequence_name]
    if region.end > length:
        raise InvalidInterval(f"Region end ({region.end}) exceeds sequence length ({length})")

