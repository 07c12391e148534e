"""Exceptions raised by the interval engine.

All errors are local validation failures raised at the call that
introduced the bad state. Every class derives from :class:`RangeError`,
itself a :class:`ValueError`, so callers may catch either.

Example:
    >>> from rangeforge.core.exceptions import InvalidInterval
    >>> try:
    ...     Interval("chr1", 10, 5)
    ... except InvalidInterval as e:
    ...     print(e)
"""


class RangeError(ValueError):
    """Base class for all rangeforge errors."""

    pass


class InvalidInterval(RangeError):
    """Raised for malformed coordinates or an empty sequence name."""

    pass


class ReservedColumnName(RangeError):
    """Raised when a metadata column collides with a coordinate field."""

    pass


class ColumnLengthMismatch(RangeError):
    """Raised when a column length differs from the collection row count."""

    pass


class DuplicateColumnName(RangeError):
    """Raised when a rename would give two metadata columns the same name."""

    pass


class UnknownSequence(RangeError):
    """Raised when an interval names a sequence absent from the length table."""

    pass


class AmbiguousAnchor(RangeError):
    """Raised when a 5'/3' anchor is requested on an unstranded interval."""

    pass


class IncompatibleGroupKey(RangeError):
    """Raised when a grouping or reducer column is absent from a collection."""

    pass


class MixedStrandError(RangeError):
    """Raised when strands are heterogeneous under the ERROR strand policy."""

    pass


class MissingSequenceLengths(RangeError):
    """Raised when an operation needs a sequence length table and has none."""

    pass
