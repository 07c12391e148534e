"""Pytest configuration and shared fixtures for rangeforge tests.

Fixtures are organized by category:

- Length tables: Declared sequence lengths
- Collections: Small hand-built interval collections
"""

import pytest

from rangeforge.core.collection import IntervalCollection
from rangeforge.core.interval import SequenceLengths


# =============================================================================
# Length Table Fixtures
# =============================================================================


@pytest.fixture
def seqlengths() -> SequenceLengths:
    """Two-sequence genome: chr1 (1000 bp) and chr2 (500 bp)."""
    return SequenceLengths({"chr1": 1000, "chr2": 500})


# =============================================================================
# Collection Fixtures
# =============================================================================


@pytest.fixture
def peaks(seqlengths: SequenceLengths) -> IntervalCollection:
    """Unstranded peaks with a name and an integer score."""
    return IntervalCollection.from_records(
        [
            {"sequence_name": "chr1", "start": 100, "end": 200, "name": "p1", "score": 5},
            {"sequence_name": "chr1", "start": 150, "end": 250, "name": "p2", "score": 3},
            {"sequence_name": "chr1", "start": 600, "end": 700, "name": "p3", "score": 8},
            {"sequence_name": "chr2", "start": 10, "end": 50, "name": "p4", "score": 1},
        ],
        seqlengths=seqlengths,
    )


@pytest.fixture
def genes(seqlengths: SequenceLengths) -> IntervalCollection:
    """Stranded genes with an identifier."""
    return IntervalCollection.from_records(
        [
            {"sequence_name": "chr1", "start": 180, "end": 400, "strand": "+", "gene_id": "g1"},
            {"sequence_name": "chr1", "start": 500, "end": 650, "strand": "-", "gene_id": "g2"},
            {"sequence_name": "chr2", "start": 300, "end": 450, "strand": "+", "gene_id": "g3"},
        ],
        seqlengths=seqlengths,
    )


@pytest.fixture
def coverage_inputs() -> IntervalCollection:
    """Three chr1 intervals: (1,10), (5,15), (20,30)."""
    return IntervalCollection(["chr1"] * 3, [1, 5, 20], [10, 15, 30])


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
