"""Tests for rangeforge.config module."""

import json

import pytest

from rangeforge.config import (
    CollectionConfig,
    Config,
    CoverageConfig,
    OverlapConfig,
    ParallelConfig,
    SetAlgebraConfig,
)
from rangeforge.core.collection import BoundsPolicy
from rangeforge.ops.coverage import CoverageExtent
from rangeforge.ops.setops import StrandPolicy
from rangeforge.parallel.executor import ExecutorBackend


# =============================================================================
# Default Tests
# =============================================================================


class TestDefaults:
    """Tests for default configuration values."""

    def test_default_sections(self):
        """Every section has sensible defaults."""
        config = Config()
        assert config.collection.allow_zero_width is True
        assert config.collection.bounds_policy == BoundsPolicy.ERROR
        assert config.overlap.unstranded_matches_any is False
        assert config.overlap.suffixes == (".x", ".y")
        assert config.set_algebra.strand_policy == StrandPolicy.MERGE
        assert config.set_algebra.min_gap_width == 1
        assert config.coverage.extent == CoverageExtent.SEQUENCE_LENGTHS
        assert config.parallel.n_workers == 1
        assert config.parallel.backend == ExecutorBackend.THREADS

    def test_defaults_validate(self):
        """Defaults pass validation."""
        Config().validate()

    def test_load_none(self):
        """Loading without a path returns defaults."""
        assert Config.load() == Config()


# =============================================================================
# from_dict Tests
# =============================================================================


class TestFromDict:
    """Tests for Config.from_dict."""

    def test_partial(self):
        """Missing sections and keys keep their defaults."""
        config = Config.from_dict({"coverage": {"extent": "observed"}, "parallel": {"n_workers": 4}})
        assert config.coverage.extent == CoverageExtent.OBSERVED
        assert config.parallel.n_workers == 4
        assert config.parallel.backend == ExecutorBackend.THREADS
        assert config.overlap == OverlapConfig()

    def test_enum_strings(self):
        """Enum fields accept their string values."""
        config = Config.from_dict(
            {
                "collection": {"bounds_policy": "clip"},
                "set_algebra": {"strand_policy": "error"},
                "parallel": {"backend": "processes", "n_workers": 2},
            }
        )
        assert config.collection.bounds_policy == BoundsPolicy.CLIP
        assert config.set_algebra.strand_policy == StrandPolicy.ERROR
        assert config.parallel.backend == ExecutorBackend.PROCESSES

    def test_suffixes_list(self):
        """Suffixes given as a list become a tuple."""
        config = Config.from_dict({"overlap": {"suffixes": ["_a", "_b"]}})
        assert config.overlap.suffixes == ("_a", "_b")

    def test_unknown_section(self):
        """Unknown sections are rejected."""
        with pytest.raises(ValueError, match="Unknown configuration section"):
            Config.from_dict({"plotting": {}})

    def test_unknown_key(self):
        """Unknown keys are rejected."""
        with pytest.raises(ValueError, match="Unknown keys"):
            Config.from_dict({"parallel": {"threads": 4}})

    def test_section_not_mapping(self):
        """Sections must be mappings."""
        with pytest.raises(ValueError):
            Config.from_dict({"parallel": 4})

    def test_invalid_enum(self):
        """Unknown enum values are rejected."""
        with pytest.raises(ValueError):
            Config.from_dict({"coverage": {"extent": "genome"}})


# =============================================================================
# Validation Tests
# =============================================================================


class TestValidation:
    """Tests for section validation."""

    def test_zero_workers(self):
        """At least one worker is required."""
        with pytest.raises(ValueError, match="n_workers"):
            Config.from_dict({"parallel": {"n_workers": 0}})

    def test_identical_suffixes(self):
        """Suffixes must differ."""
        with pytest.raises(ValueError, match="differ"):
            OverlapConfig(suffixes=("_x", "_x")).validate()

    def test_suffix_count(self):
        """Exactly two suffixes are needed."""
        with pytest.raises(ValueError):
            OverlapConfig(suffixes=(".x",)).validate()

    def test_negative_gap(self):
        """min_gap_width cannot be negative."""
        with pytest.raises(ValueError, match="min_gap_width"):
            SetAlgebraConfig(min_gap_width=-1).validate()

    def test_zero_width_flag_type(self):
        """allow_zero_width must be a boolean."""
        with pytest.raises(ValueError):
            CollectionConfig(allow_zero_width="yes").validate()

    def test_sections_validate(self):
        """Valid sections pass."""
        CoverageConfig().validate()
        ParallelConfig(n_workers=8).validate()


# =============================================================================
# File Tests
# =============================================================================


class TestConfigFiles:
    """Tests for loading and saving configuration files."""

    def test_save_load_round_trip(self, tmp_path):
        """A saved configuration loads back unchanged."""
        config = Config.from_dict(
            {"coverage": {"extent": "observed"}, "overlap": {"suffixes": ["_l", "_r"]}}
        )
        path = tmp_path / "rangeforge.json"
        config.save(path)
        assert Config.load(path) == config

    def test_saved_json(self, tmp_path):
        """Enums are stored by value."""
        path = tmp_path / "rangeforge.json"
        Config().save(path)
        data = json.loads(path.read_text())
        assert data["coverage"]["extent"] == "sequence_lengths"
        assert data["parallel"]["backend"] == "threads"
        assert data["overlap"]["suffixes"] == [".x", ".y"]

    def test_to_dict(self):
        """to_dict returns plain values."""
        data = Config().to_dict()
        assert data["collection"] == {"allow_zero_width": True, "bounds_policy": "error"}
        assert data["set_algebra"] == {"strand_policy": "merge", "min_gap_width": 1}

    def test_missing_file(self, tmp_path):
        """Missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            Config.load(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        """Malformed JSON raises ValueError."""
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ValueError, match="Invalid JSON"):
            Config.load(path)

    def test_root_must_be_object(self, tmp_path):
        """The top level must be an object."""
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError):
            Config.load(path)
