"""BedGraph export for coverage partitions.

BedGraph lines are ``sequence<TAB>start<TAB>end<TAB>score`` in 0-based
half-open coordinates, optionally preceded by a ``track`` line. Only
writing is supported; reading BED-like formats belongs to the caller.

Example:
    >>> from rangeforge.io.bedgraph import write_bedgraph
    >>> cov = compute_coverage(reads, seqlengths=genome)
    >>> write_bedgraph(cov, "coverage.bedgraph", track_name="reads")
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from rangeforge.core.collection import IntervalCollection
from rangeforge.ops.coverage import SCORE_COLUMN

logger = logging.getLogger(__name__)


def format_score(score: Any) -> str:
    """Format a score value; missing scores are written as ``0``."""
    if score is None:
        return "0"
    if isinstance(score, float):
        return f"{score:.6g}"
    return str(score)


def format_bedgraph_line(sequence_name: str, start0: int, end: int, score: Any) -> str:
    """Format a single BedGraph line.

    Args:
        sequence_name: Sequence name.
        start0: Start position (0-based).
        end: End position (0-based, exclusive).
        score: Score value.

    Returns:
        Formatted line without a trailing newline.
    """
    return f"{sequence_name}\t{start0}\t{end}\t{format_score(score)}"


def bedgraph_lines(
    partition: IntervalCollection,
    score_column: str = SCORE_COLUMN,
    skip_zero: bool = False,
) -> Iterator[str]:
    """Yield BedGraph lines for a collection.

    Args:
        partition: Collection (typically a coverage partition).
        score_column: Column holding the score.
        skip_zero: Omit runs with score 0.
    """
    for sequence_name, start0, end, score in partition.to_bedgraph(score_column):
        if skip_zero and not score:
            continue
        yield format_bedgraph_line(sequence_name, start0, end, score)


def write_bedgraph(
    partition: IntervalCollection,
    path: Path | str,
    score_column: str = SCORE_COLUMN,
    track_name: str | None = None,
    skip_zero: bool = False,
) -> int:
    """Write a collection to a BedGraph file.

    Args:
        partition: Collection (typically a coverage partition).
        path: Output file path.
        score_column: Column holding the score.
        track_name: If given, write a ``track type=bedGraph`` header line.
        skip_zero: Omit runs with score 0.

    Returns:
        Number of data lines written.
    """
    path = Path(path)
    n_lines = 0
    with open(path, "w") as f:
        if track_name is not None:
            f.write(f'track type=bedGraph name="{track_name}"\n')
        for line in bedgraph_lines(partition, score_column, skip_zero):
            f.write(line + "\n")
            n_lines += 1

    logger.info(f"Wrote {n_lines} BedGraph lines to {path}")
    return n_lines
