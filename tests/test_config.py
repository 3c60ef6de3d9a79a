# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for configuration loading and validation."""

import tempfile
from pathlib import Path

import pytest
import yaml

from vb6_xref.config import Config, ConfigurationError


def test_default_config_when_file_missing():
    """Test that defaults are used when config file is missing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "nonexistent.yml"
        config = Config(config_path=config_path)

        assert config.source_encoding == "cp1252"
        assert config.reserved_word_profiles == ["csharp"]
        assert config.extra_reserved_words == []
        assert config.backup_root is None
        assert config.backup_suffix_format == "%Y%m%d_%H%M%S"
        assert config.export_dir is None
        assert config.header_scan_lines == 20
        assert config.indent_width == 2
        assert config.max_consecutive_blank_lines == 1
        assert config.write_exports is True


def test_valid_config_loading():
    """Test loading a valid configuration file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_data = {
            "source_encoding": "latin-1",
            "reserved_word_profiles": ["csharp", "python"],
            "extra_reserved_words": ["Record"],
            "backup_root": tmpdir,
            "indent_width": 4,
            "write_exports": False,
        }

        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        config = Config(config_path=config_path)

        assert config.source_encoding == "latin-1"
        assert config.reserved_word_profiles == ["csharp", "python"]
        assert config.extra_reserved_words == ["Record"]
        assert config.backup_root == Path(tmpdir)
        assert config.indent_width == 4
        assert config.write_exports is False
        # Defaults for unspecified values
        assert config.header_scan_lines == 20


def test_invalid_parameter_values():
    """Test that invalid parameter values are rejected and defaults used."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_data = {
            "source_encoding": "no-such-codec",
            "reserved_word_profiles": ["cobol"],
            "header_scan_lines": 0,  # Invalid: must be > 0
            "indent_width": -2,  # Invalid: must be > 0
            "max_consecutive_blank_lines": -1,  # Invalid: must be >= 0
            "backup_suffix_format": "",
        }

        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        config = Config(config_path=config_path)

        assert config.source_encoding == "cp1252"
        assert config.reserved_word_profiles == ["csharp"]
        assert config.header_scan_lines == 20
        assert config.indent_width == 2
        assert config.max_consecutive_blank_lines == 1
        assert config.backup_suffix_format == "%Y%m%d_%H%M%S"


def test_invalid_parameter_types():
    """Test that invalid parameter types are rejected and defaults used."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_data = {
            "header_scan_lines": "twenty",
            "indent_width": True,  # bool is not a count
            "write_exports": "yes",
            "extra_reserved_words": "Record",
        }

        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        config = Config(config_path=config_path)

        assert config.header_scan_lines == 20
        assert config.indent_width == 2
        assert config.write_exports is True
        assert config.extra_reserved_words == []


def test_unknown_parameters_ignored():
    """Test that unknown parameters are ignored."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        with open(config_path, "w") as f:
            yaml.dump({"unknown_param": "value", "indent_width": 3}, f)

        config = Config(config_path=config_path)

        assert config.indent_width == 3
        assert "unknown_param" not in config.to_dict()


def test_empty_config_file():
    """Test that an empty file falls back to defaults."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_path.write_text("")

        config = Config(config_path=config_path)

        assert config.to_dict() == Config.DEFAULTS


def test_non_dict_config_file():
    """Test that a YAML list instead of a mapping falls back to defaults."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_path.write_text("- a\n- b\n")

        config = Config(config_path=config_path)

        assert config.indent_width == 2


def test_malformed_yaml():
    """Test that malformed YAML falls back to defaults."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_path.write_text("indent_width: [unclosed\n")

        config = Config(config_path=config_path)

        assert config.indent_width == 2


def test_defaults_are_not_shared_between_instances():
    """Mutating one config's list must not leak into DEFAULTS."""
    first = Config.from_mapping({})
    first.extra_reserved_words.append("Leaked")

    second = Config.from_mapping({})

    assert second.extra_reserved_words == []
    assert Config.DEFAULTS["extra_reserved_words"] == []


class TestFromMapping:
    """Tests for Config.from_mapping."""

    def test_overrides_applied(self):
        config = Config.from_mapping({"max_consecutive_blank_lines": 0, "export_dir": "out"})

        assert config.max_consecutive_blank_lines == 0
        assert config.export_dir == Path("out")
        assert config.config_path is None

    def test_lenient_mode_skips_bad_values(self):
        config = Config.from_mapping({"indent_width": 0, "bogus": 1})

        assert config.indent_width == 2

    def test_strict_mode_rejects_unknown_key(self):
        with pytest.raises(ConfigurationError, match="bogus"):
            Config.from_mapping({"bogus": 1}, strict=True)

    def test_strict_mode_rejects_invalid_value(self):
        with pytest.raises(ConfigurationError, match="indent_width"):
            Config.from_mapping({"indent_width": 0}, strict=True)

    def test_set_write_exports(self):
        config = Config.from_mapping({})
        config.set_write_exports(False)

        assert config.write_exports is False
