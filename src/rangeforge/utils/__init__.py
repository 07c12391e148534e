"""Utility functions for rangeforge.

- Logging configuration
- Genomic region string parsing

Example:
    >>> from rangeforge.utils.regions import parse_region
    >>> region = parse_region("chr1:1000-2000")
"""

from rangeforge.utils.logging import Timer, get_logger, setup_logging
from rangeforge.utils.regions import parse_region, validate_region

__all__ = [
    "Timer",
    "get_logger",
    "setup_logging",
    "parse_region",
    "validate_region",
]
