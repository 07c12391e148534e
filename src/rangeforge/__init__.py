"""rangeforge: a grammar of verbs for genomic interval collections.

rangeforge stores genomic intervals and their metadata in typed, columnar
collections and provides composable verbs over them: overlap filters and
joins, reduce, disjoin and complement, anchor-based resizing, run-length
coverage and grouped summaries. Work is independent across sequences and
can be spread over a local worker pool.

Example:
    >>> import rangeforge as rf
    >>> peaks = rf.IntervalCollection.from_records(records, seqlengths=genome)
    >>> merged = rf.reduce_ranges(peaks, n=rf.count())
    >>> cov = rf.compute_coverage(peaks)

Modules:
    core: Intervals, columns, collections and errors
    index: Overlap indices
    ops: Verbs (overlaps, joins, set algebra, transforms, coverage, summaries)
    parallel: Per-sequence partitioning and execution
    io: BedGraph export
    utils: Logging and region strings
"""

__version__ = "0.1.0"

from rangeforge.config import Config
from rangeforge.core import (
    Anchor,
    BoundsPolicy,
    Column,
    ColumnKind,
    GroupedCollection,
    Interval,
    IntervalCollection,
    RangeError,
    SequenceLengths,
    Strand,
)
from rangeforge.engine import RangeEngine
from rangeforge.ops import (
    CoverageExtent,
    StrandPolicy,
    complement_ranges,
    compute_coverage,
    count,
    count_overlaps,
    disjoin_ranges,
    filter_by_non_overlaps,
    filter_by_overlaps,
    find_overlaps,
    join_nearest,
    join_overlap_inner,
    join_overlap_intersect,
    join_overlap_left,
    reduce_ranges,
    summarise,
)

__all__ = [
    "__version__",
    "Anchor",
    "BoundsPolicy",
    "Column",
    "ColumnKind",
    "Config",
    "CoverageExtent",
    "GroupedCollection",
    "Interval",
    "IntervalCollection",
    "RangeEngine",
    "RangeError",
    "SequenceLengths",
    "Strand",
    "StrandPolicy",
    "complement_ranges",
    "compute_coverage",
    "count",
    "count_overlaps",
    "disjoin_ranges",
    "filter_by_non_overlaps",
    "filter_by_overlaps",
    "find_overlaps",
    "join_nearest",
    "join_overlap_inner",
    "join_overlap_intersect",
    "join_overlap_left",
    "reduce_ranges",
    "summarise",
]
