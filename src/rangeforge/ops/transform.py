"""Anchor-based coordinate transforms.

Every function returns a new, validated collection with the same rows and
metadata and edited coordinates. The fixed reference point is always an
explicit ``anchor`` argument:

- ``Anchor.START`` / ``Anchor.END``: keep the start / end
- ``Anchor.CENTER``: keep the midpoint (``start + (old - new) // 2``)
- ``Anchor.FIVE_PRIME``: keep the 5' end (start on ``+``, end on ``-``)
- ``Anchor.THREE_PRIME``: keep the 3' end (end on ``+``, start on ``-``)

Stranded anchors, and the ``*_upstream`` / ``*_downstream`` variants,
raise :class:`~rangeforge.core.exceptions.AmbiguousAnchor` when any row is
unstranded.

Example:
    >>> promoters = flank_upstream(genes, 2000)
    >>> tss = set_width(genes, 1, anchor=Anchor.FIVE_PRIME)
"""

from __future__ import annotations

import logging

import numpy as np

from rangeforge.core.collection import IntervalCollection
from rangeforge.core.exceptions import AmbiguousAnchor, InvalidInterval
from rangeforge.core.interval import Anchor

logger = logging.getLogger(__name__)


def _as_anchor(anchor: Anchor | str) -> Anchor:
    return anchor if isinstance(anchor, Anchor) else Anchor(anchor)


def _require_stranded(collection: IntervalCollection, what: str) -> None:
    unstranded = np.flatnonzero(collection.strands == 0)
    if len(unstranded):
        i = int(unstranded[0])
        raise AmbiguousAnchor(
            f"{what} needs stranded intervals; row {i} "
            f"({collection.interval(i)}) is unstranded"
        )


def _broadcast(value: int | np.ndarray, n: int, name: str) -> np.ndarray:
    arr = np.asarray(value, dtype=np.int64)
    if arr.ndim == 0:
        return np.full(n, int(arr), dtype=np.int64)
    if len(arr) != n:
        raise InvalidInterval(f"{name} has {len(arr)} values, collection has {n} rows")
    return arr


# =============================================================================
# Width
# =============================================================================


def set_width(
    collection: IntervalCollection,
    width: int | np.ndarray,
    anchor: Anchor | str = Anchor.START,
) -> IntervalCollection:
    """Resize intervals to ``width`` keeping the anchor fixed.

    Args:
        collection: Intervals to resize.
        width: New width (scalar or one per row), >= 0.
        anchor: Fixed reference point.

    Returns:
        A new collection.

    Raises:
        InvalidInterval: For negative widths or out-of-bounds results.
        AmbiguousAnchor: For stranded anchors on unstranded rows.
    """
    anchor = _as_anchor(anchor)
    width = _broadcast(width, len(collection), "width")
    if (width < 0).any():
        raise InvalidInterval("width must be >= 0")

    starts = collection.starts
    ends = collection.ends
    if anchor.is_stranded:
        _require_stranded(collection, f"Anchor {anchor.value}")
        forward = collection.strands > 0
        keep_start = forward if anchor == Anchor.FIVE_PRIME else ~forward
    elif anchor == Anchor.CENTER:
        new_starts = starts + (collection.widths - width) // 2
        return collection.with_coordinates(starts=new_starts, ends=new_starts + width - 1)
    else:
        keep_start = np.full(len(collection), anchor == Anchor.START)

    new_starts = np.where(keep_start, starts, ends - width + 1)
    new_ends = np.where(keep_start, starts + width - 1, ends)
    return collection.with_coordinates(starts=new_starts, ends=new_ends)


def stretch(
    collection: IntervalCollection,
    extend: int | np.ndarray,
    anchor: Anchor | str | None = None,
) -> IntervalCollection:
    """Grow (or, with negative ``extend``, shrink) intervals.

    Without an anchor both ends move outward by ``extend``. With an anchor
    the width grows by ``extend`` around it.
    """
    extend = _broadcast(extend, len(collection), "extend")
    if anchor is None:
        return collection.with_coordinates(
            starts=collection.starts - extend,
            ends=collection.ends + extend,
        )
    return set_width(collection, collection.widths + extend, anchor)


# =============================================================================
# Shift
# =============================================================================


def shift_left(collection: IntervalCollection, shift: int | np.ndarray) -> IntervalCollection:
    """Move intervals towards lower coordinates."""
    shift = _broadcast(shift, len(collection), "shift")
    return collection.with_coordinates(starts=collection.starts - shift, ends=collection.ends - shift)


def shift_right(collection: IntervalCollection, shift: int | np.ndarray) -> IntervalCollection:
    """Move intervals towards higher coordinates."""
    shift = _broadcast(shift, len(collection), "shift")
    return collection.with_coordinates(starts=collection.starts + shift, ends=collection.ends + shift)


def _strand_signed(collection: IntervalCollection, amount: int | np.ndarray, what: str) -> np.ndarray:
    _require_stranded(collection, what)
    amount = _broadcast(amount, len(collection), "shift")
    return np.where(collection.strands > 0, amount, -amount)


def shift_upstream(collection: IntervalCollection, shift: int | np.ndarray) -> IntervalCollection:
    """Move intervals towards their 5' side (left on ``+``, right on ``-``)."""
    delta = _strand_signed(collection, shift, "shift_upstream")
    return collection.with_coordinates(starts=collection.starts - delta, ends=collection.ends - delta)


def shift_downstream(collection: IntervalCollection, shift: int | np.ndarray) -> IntervalCollection:
    """Move intervals towards their 3' side (right on ``+``, left on ``-``)."""
    delta = _strand_signed(collection, shift, "shift_downstream")
    return collection.with_coordinates(starts=collection.starts + delta, ends=collection.ends + delta)


# =============================================================================
# Flank
# =============================================================================


def _flank(collection: IntervalCollection, width: int | np.ndarray, left: np.ndarray) -> IntervalCollection:
    width = _broadcast(width, len(collection), "width")
    if (width < 0).any():
        raise InvalidInterval("flank width must be >= 0")
    starts = np.where(left, collection.starts - width, collection.ends + 1)
    ends = np.where(left, collection.starts - 1, collection.ends + width)
    return collection.with_coordinates(starts=starts, ends=ends)


def flank_left(collection: IntervalCollection, width: int | np.ndarray) -> IntervalCollection:
    """The ``width`` bases just before each interval."""
    return _flank(collection, width, np.ones(len(collection), dtype=bool))


def flank_right(collection: IntervalCollection, width: int | np.ndarray) -> IntervalCollection:
    """The ``width`` bases just after each interval."""
    return _flank(collection, width, np.zeros(len(collection), dtype=bool))


def flank_upstream(collection: IntervalCollection, width: int | np.ndarray) -> IntervalCollection:
    """The ``width`` bases on the 5' side of each stranded interval.

    Example:
        >>> promoters = flank_upstream(genes, 2000)
    """
    _require_stranded(collection, "flank_upstream")
    return _flank(collection, width, collection.strands > 0)


def flank_downstream(collection: IntervalCollection, width: int | np.ndarray) -> IntervalCollection:
    """The ``width`` bases on the 3' side of each stranded interval."""
    _require_stranded(collection, "flank_downstream")
    return _flank(collection, width, collection.strands < 0)
