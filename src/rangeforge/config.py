"""Configuration management for rangeforge.

This module holds the settings that change how the engine behaves: how
collections are validated, the strand rule for overlaps, mixed-strand
handling in set algebra, the coverage extent and parallel execution.
Configuration can come from:
- Default values
- JSON configuration files
- Plain dictionaries

Example:
    >>> from rangeforge.config import Config
    >>> config = Config.load("rangeforge.json")
    >>> config.coverage.extent
    <CoverageExtent.OBSERVED: 'observed'>
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import attrs

from rangeforge.core.collection import BoundsPolicy
from rangeforge.ops.coverage import CoverageExtent
from rangeforge.ops.joins import DEFAULT_SUFFIXES
from rangeforge.ops.setops import DEFAULT_MIN_GAP_WIDTH, StrandPolicy
from rangeforge.parallel.executor import ExecutorBackend

logger = logging.getLogger(__name__)

# =============================================================================
# Default Configuration Values
# =============================================================================

# Collection defaults
DEFAULT_ALLOW_ZERO_WIDTH = True
DEFAULT_BOUNDS_POLICY = BoundsPolicy.ERROR

# Overlap defaults
DEFAULT_UNSTRANDED_MATCHES_ANY = False

# Set algebra defaults
DEFAULT_STRAND_POLICY = StrandPolicy.MERGE

# Coverage defaults
DEFAULT_COVERAGE_EXTENT = CoverageExtent.SEQUENCE_LENGTHS

# Parallel processing defaults
DEFAULT_N_WORKERS = 1
DEFAULT_BACKEND = ExecutorBackend.THREADS


def _enum_converter(enum_cls):
    def convert(value):
        return value if isinstance(value, enum_cls) else enum_cls(value)

    return convert


# =============================================================================
# Configuration Classes
# =============================================================================


@attrs.define
class CollectionConfig:
    """Configuration for building collections.

    Attributes:
        allow_zero_width: Accept zero-width intervals (insertion points).
        bounds_policy: Handling of intervals outside declared lengths.
    """

    allow_zero_width: bool = DEFAULT_ALLOW_ZERO_WIDTH
    bounds_policy: BoundsPolicy = attrs.field(
        default=DEFAULT_BOUNDS_POLICY, converter=_enum_converter(BoundsPolicy)
    )

    def validate(self) -> None:
        if not isinstance(self.allow_zero_width, bool):
            raise ValueError("allow_zero_width must be a boolean")


@attrs.define
class OverlapConfig:
    """Configuration for overlap queries and joins.

    Attributes:
        unstranded_matches_any: In directed mode, let unstranded intervals
            match either strand.
        suffixes: Suffixes for column names shared by both join sides.
    """

    unstranded_matches_any: bool = DEFAULT_UNSTRANDED_MATCHES_ANY
    suffixes: tuple[str, str] = attrs.field(default=DEFAULT_SUFFIXES, converter=tuple)

    def validate(self) -> None:
        """Validate overlap settings.

        Raises:
            ValueError: If suffixes are not two distinct strings.
        """
        if len(self.suffixes) != 2 or not all(isinstance(s, str) for s in self.suffixes):
            raise ValueError(f"suffixes must be two strings, got {self.suffixes!r}")
        if self.suffixes[0] == self.suffixes[1]:
            raise ValueError("suffixes must differ")


@attrs.define
class SetAlgebraConfig:
    """Configuration for reduce and disjoin.

    Attributes:
        strand_policy: Mixed-strand handling in undirected mode.
        min_gap_width: Smallest gap that keeps two intervals apart in reduce.
    """

    strand_policy: StrandPolicy = attrs.field(
        default=DEFAULT_STRAND_POLICY, converter=_enum_converter(StrandPolicy)
    )
    min_gap_width: int = DEFAULT_MIN_GAP_WIDTH

    def validate(self) -> None:
        if self.min_gap_width < 0:
            raise ValueError(f"min_gap_width must be >= 0, got {self.min_gap_width}")


@attrs.define
class CoverageConfig:
    """Configuration for coverage.

    Attributes:
        extent: Report runs over declared lengths or the observed span.
    """

    extent: CoverageExtent = attrs.field(
        default=DEFAULT_COVERAGE_EXTENT, converter=_enum_converter(CoverageExtent)
    )

    def validate(self) -> None:
        pass


@attrs.define
class ParallelConfig:
    """Configuration for parallel processing.

    Attributes:
        n_workers: Number of parallel workers (1 = serial).
        backend: Execution backend.
    """

    n_workers: int = DEFAULT_N_WORKERS
    backend: ExecutorBackend = attrs.field(
        default=DEFAULT_BACKEND, converter=_enum_converter(ExecutorBackend)
    )

    def validate(self) -> None:
        if self.n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {self.n_workers}")


@attrs.define
class Config:
    """Main configuration container for rangeforge.

    Attributes:
        collection: Collection construction settings.
        overlap: Overlap and join settings.
        set_algebra: Reduce and disjoin settings.
        coverage: Coverage settings.
        parallel: Parallel processing settings.
    """

    collection: CollectionConfig = attrs.Factory(CollectionConfig)
    overlap: OverlapConfig = attrs.Factory(OverlapConfig)
    set_algebra: SetAlgebraConfig = attrs.Factory(SetAlgebraConfig)
    coverage: CoverageConfig = attrs.Factory(CoverageConfig)
    parallel: ParallelConfig = attrs.Factory(ParallelConfig)

    def validate(self) -> None:
        """Validate every section.

        Raises:
            ValueError: If any setting is invalid.
        """
        for section in (self.collection, self.overlap, self.set_algebra, self.coverage, self.parallel):
            section.validate()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Build a configuration from nested dictionaries.

        Missing sections and keys take their defaults.

        Raises:
            ValueError: For unknown sections, unknown keys or invalid values.
        """
        sections = {field.name: field for field in attrs.fields(cls)}
        kwargs: dict[str, Any] = {}
        for name, values in data.items():
            if name not in sections:
                raise ValueError(f"Unknown configuration section: '{name}'")
            if not isinstance(values, dict):
                raise ValueError(f"Configuration section '{name}' must be a mapping")
            section_cls = sections[name].default.factory
            known = {f.name for f in attrs.fields(section_cls)}
            unknown = set(values) - known
            if unknown:
                raise ValueError(f"Unknown keys in section '{name}': {sorted(unknown)}")
            kwargs[name] = section_cls(**values)

        config = cls(**kwargs)
        config.validate()
        return config

    @classmethod
    def load(cls, path: Path | str | None = None) -> Config:
        """Load configuration from a JSON file.

        Args:
            path: Path to configuration file. If None, returns default
                configuration.

        Returns:
            Loaded configuration object.

        Raises:
            FileNotFoundError: If configuration file doesn't exist.
            ValueError: If configuration file is invalid.
        """
        if path is None:
            return cls()

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be an object: {path}")

        logger.debug(f"Loaded configuration from {path}")
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a JSON-compatible dictionary."""

        def serialize(inst, field, value):
            if isinstance(value, (BoundsPolicy, StrandPolicy, CoverageExtent, ExecutorBackend)):
                return value.value
            if isinstance(value, tuple):
                return list(value)
            return value

        return attrs.asdict(self, value_serializer=serialize)

    def save(self, path: Path | str) -> None:
        """Save configuration to a JSON file.

        Args:
            path: Path to save configuration file.
        """
        path = Path(path)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
            f.write("\n")
        logger.debug(f"Saved configuration to {path}")
