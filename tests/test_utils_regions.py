"""Tests for region string utilities.

Tests the parsing and validation of region strings such as
``chr1:1000-2000:+``.
"""

import pytest

from rangeforge.core.exceptions import InvalidInterval, UnknownSequence
from rangeforge.core.interval import Interval, Strand
from rangeforge.utils.regions import parse_region, validate_region


# =============================================================================
# Test parse_region
# =============================================================================


class TestParseRegion:
    """Tests for parse_region function."""

    def test_standard_format(self):
        """Parse standard format chr1:1000-2000."""
        region = parse_region("chr1:1000-2000")
        assert region == Interval("chr1", 1000, 2000)
        assert region.width == 1001

    def test_gff_style_format(self):
        """Parse GFF-style format chr1:1000..2000."""
        region = parse_region("chr1:1000..2000")
        assert (region.start, region.end) == (1000, 2000)

    def test_comma_separators(self):
        """Parse format with comma thousand separators."""
        region = parse_region("chr1:1,000,000-2,000,000")
        assert (region.start, region.end) == (1_000_000, 2_000_000)

    def test_with_strand(self):
        """A trailing strand symbol is parsed."""
        assert parse_region("chr1:100-200:-").strand == Strand.REVERSE
        assert parse_region("chr1:100-200:+").strand == Strand.FORWARD
        assert parse_region("chr1:100-200:.").strand == Strand.UNSTRANDED

    def test_whitespace_stripped(self):
        """Surrounding whitespace is ignored."""
        assert parse_region("  chr2:5-10 \n") == Interval("chr2", 5, 10)

    def test_seqid_with_colon(self):
        """Sequence names may contain colons."""
        region = parse_region("HLA:A:10-20")
        assert region.sequence_name == "HLA:A"

    def test_single_base(self):
        """A one-base region is valid."""
        assert parse_region("chr1:5-5").width == 1

    @pytest.mark.parametrize(
        "text",
        ["chr1", "chr1:100", "chr1:abc-200", ":100-200", "chr1:100-200:x", ""],
    )
    def test_invalid_format(self, text):
        """Malformed strings raise InvalidInterval."""
        with pytest.raises(InvalidInterval):
            parse_region(text)

    def test_start_zero(self):
        """Start must be at least 1."""
        with pytest.raises(InvalidInterval, match="Start position"):
            parse_region("chr1:0-100")

    def test_end_before_start(self):
        """End must not precede start."""
        with pytest.raises(InvalidInterval, match="End must be"):
            parse_region("chr1:200-100")


# =============================================================================
# Test validate_region
# =============================================================================


class TestValidateRegion:
    """Tests for validate_region function."""

    def test_valid(self, seqlengths):
        """Regions inside the sequence pass."""
        validate_region(Interval("chr1", 1, 1000), seqlengths)

    def test_unknown_sequence(self, seqlengths):
        """Unknown sequences raise UnknownSequence."""
        with pytest.raises(UnknownSequence, match="chrX"):
            validate_region(Interval("chrX", 1, 10), seqlengths)

    def test_past_end(self, seqlengths):
        """Regions past the sequence end are rejected."""
        with pytest.raises(InvalidInterval, match="exceeds"):
            validate_region(Interval("chr2", 400, 501), seqlengths)

    def test_plain_dict(self):
        """A plain mapping works as a length table."""
        validate_region(Interval("chr1", 1, 10), {"chr1": 10})

