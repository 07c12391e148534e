"""Output helpers for rangeforge.

- BedGraph: coverage partitions as 0-based half-open text

Example:
    >>> from rangeforge.io import write_bedgraph
    >>> write_bedgraph(coverage, "coverage.bedgraph")
"""

from rangeforge.io.bedgraph import bedgraph_lines, format_bedgraph_line, write_bedgraph

__all__: list[str] = [
    "bedgraph_lines",
    "format_bedgraph_line",
    "write_bedgraph",
]
