"""Verbs over interval collections.

- overlaps: find_overlaps and overlap filters
- joins: overlap and nearest joins
- setops: reduce, disjoin, complement and two-collection set operations
- transform: anchor-based width, shift and flank edits
- coverage: run-length coverage partitions
- aggregate: reducers and grouped summaries

Example:
    >>> from rangeforge.ops import join_overlap_inner, reduce_ranges, count
    >>> merged = reduce_ranges(peaks, n=count())
"""

from rangeforge.ops.aggregate import (
    Reducer,
    Table,
    collect,
    concat,
    count,
    first,
    maximum,
    mean,
    median,
    minimum,
    n_distinct,
    summarise,
    total,
    weighted_sum,
)
from rangeforge.ops.coverage import CoverageExtent, compute_coverage, coverage_at
from rangeforge.ops.joins import (
    join_nearest,
    join_overlap_inner,
    join_overlap_intersect,
    join_overlap_left,
)
from rangeforge.ops.overlaps import (
    OverlapHits,
    count_overlaps,
    filter_by_non_overlaps,
    filter_by_overlaps,
    find_overlaps,
    overlaps_any,
)
from rangeforge.ops.setops import (
    StrandPolicy,
    complement_ranges,
    disjoin_ranges,
    gaps,
    intersect_ranges,
    reduce_ranges,
    setdiff_ranges,
    union_ranges,
)
from rangeforge.ops.transform import (
    flank_downstream,
    flank_left,
    flank_right,
    flank_upstream,
    set_width,
    shift_downstream,
    shift_left,
    shift_right,
    shift_upstream,
    stretch,
)

__all__: list[str] = [
    # Overlaps
    "OverlapHits",
    "count_overlaps",
    "filter_by_non_overlaps",
    "filter_by_overlaps",
    "find_overlaps",
    "overlaps_any",
    # Joins
    "join_nearest",
    "join_overlap_inner",
    "join_overlap_intersect",
    "join_overlap_left",
    # Set algebra
    "StrandPolicy",
    "complement_ranges",
    "disjoin_ranges",
    "gaps",
    "intersect_ranges",
    "reduce_ranges",
    "setdiff_ranges",
    "union_ranges",
    # Transforms
    "flank_downstream",
    "flank_left",
    "flank_right",
    "flank_upstream",
    "set_width",
    "shift_downstream",
    "shift_left",
    "shift_right",
    "shift_upstream",
    "stretch",
    # Coverage
    "CoverageExtent",
    "compute_coverage",
    "coverage_at",
    # Aggregation
    "Reducer",
    "Table",
    "collect",
    "concat",
    "count",
    "first",
    "maximum",
    "mean",
    "median",
    "minimum",
    "n_distinct",
    "summarise",
    "total",
    "weighted_sum",
]
