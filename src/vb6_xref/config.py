# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Configuration loading and validation for vb6-xref."""

import codecs
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from vb6_xref.naming import RESERVED_WORD_PROFILES

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = ".vb6_xref.yml"


class ConfigurationError(Exception):
    """Raised when configuration validation fails critically."""

    pass


class Config:
    """Configuration for a vb6-xref run.

    Loads configuration from .vb6_xref.yml with validation and defaults.
    """

    DEFAULTS: Dict[str, Any] = {
        "source_encoding": "cp1252",
        "reserved_word_profiles": ["csharp"],
        "extra_reserved_words": [],
        "backup_root": "",
        "backup_suffix_format": "%Y%m%d_%H%M%S",
        "export_dir": "",
        "header_scan_lines": 20,
        "indent_width": 2,
        "max_consecutive_blank_lines": 1,
        "write_exports": True,
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file. If None, uses
                .vb6_xref.yml in the working directory.
        """
        if config_path is None:
            config_path = Path.cwd() / DEFAULT_CONFIG_FILE

        self.config_path = config_path
        self._config: Dict[str, Any] = {}
        self._load_config()

    @classmethod
    def from_mapping(cls, values: Dict[str, Any], strict: bool = False) -> "Config":
        """Build a configuration from an in-memory mapping.

        Args:
            values: Overrides applied on top of DEFAULTS.
            strict: Raise instead of warning on unknown or invalid keys.

        Raises:
            ConfigurationError: In strict mode, for the first bad key.
        """
        config = cls.__new__(cls)
        config.config_path = None
        config._config = cls._copy_defaults()
        if strict:
            for key, value in values.items():
                if key not in cls.DEFAULTS:
                    raise ConfigurationError(f"Unknown configuration parameter '{key}'")
                if not config._validate_parameter(key, value):
                    raise ConfigurationError(f"Invalid value for '{key}': {value!r}")
        config._validate_and_merge(values)
        return config

    @classmethod
    def _copy_defaults(cls) -> Dict[str, Any]:
        return {
            key: list(value) if isinstance(value, list) else value
            for key, value in cls.DEFAULTS.items()
        }

    def _load_config(self) -> None:
        """Load and validate configuration from file."""
        if not self.config_path.exists():
            logger.info(f"Configuration file not found at {self.config_path}, using defaults")
            self._config = self._copy_defaults()
            return

        try:
            with open(self.config_path, encoding="utf-8") as f:
                loaded_config = yaml.safe_load(f)

            if loaded_config is None:
                logger.warning("Configuration file is empty, using defaults")
                self._config = self._copy_defaults()
                return

            if not isinstance(loaded_config, dict):
                logger.warning(
                    f"Configuration file must contain a YAML dictionary, "
                    f"got {type(loaded_config)}, using defaults"
                )
                self._config = self._copy_defaults()
                return

            # Start with defaults and override with loaded values
            self._config = self._copy_defaults()
            self._validate_and_merge(loaded_config)

        except yaml.YAMLError as e:
            logger.warning(
                f"Error parsing configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._copy_defaults()
        except OSError as e:
            logger.warning(
                f"Could not read configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._copy_defaults()

    def _validate_and_merge(self, loaded_config: Dict[str, Any]) -> None:
        """Validate loaded configuration and merge with defaults.

        Invalid parameters are logged as warnings and defaults are used.
        """
        for key, value in loaded_config.items():
            if key not in self.DEFAULTS:
                logger.warning(f"Unknown configuration parameter '{key}', ignoring")
                continue

            if not self._validate_parameter(key, value):
                logger.warning(
                    f"Invalid value for '{key}': {value}, using default {self.DEFAULTS[key]}"
                )
                continue

            self._config[key] = value

    def _validate_parameter(self, key: str, value: Any) -> bool:
        """Validate a configuration parameter.

        Returns:
            True if valid, False if invalid
        """
        # Type validation; bool is an int subclass but never a valid count
        expected_type = type(self.DEFAULTS[key])
        if not isinstance(value, expected_type):
            return False
        if expected_type is int and isinstance(value, bool):
            return False

        if key == "source_encoding":
            try:
                codecs.lookup(value)
            except LookupError:
                return False
            return True
        elif key == "reserved_word_profiles":
            return all(
                isinstance(name, str) and name.lower() in RESERVED_WORD_PROFILES for name in value
            )
        elif key == "extra_reserved_words":
            return all(isinstance(word, str) and word.strip() for word in value)
        elif key == "backup_suffix_format":
            if not value:
                return False
            try:
                datetime(2000, 1, 1).strftime(value)
            except ValueError:
                return False
            return True
        elif key in ("header_scan_lines", "indent_width"):
            return value > 0
        elif key == "max_consecutive_blank_lines":
            return value >= 0

        return True

    # Property accessors for all configuration values
    @property
    def source_encoding(self) -> str:
        """Legacy code page used to read and write sources."""
        value = self._config["source_encoding"]
        assert isinstance(value, str)
        return value

    @property
    def reserved_word_profiles(self) -> List[str]:
        """Reserved-identifier profiles used by naming conflict fallback."""
        value = self._config["reserved_word_profiles"]
        assert isinstance(value, list)
        return value

    @property
    def extra_reserved_words(self) -> List[str]:
        value = self._config["extra_reserved_words"]
        assert isinstance(value, list)
        return value

    @property
    def backup_root(self) -> Optional[Path]:
        """Parent directory for backup trees, None for next to the project folder."""
        value = self._config["backup_root"]
        assert isinstance(value, str)
        return Path(value) if value else None

    @property
    def backup_suffix_format(self) -> str:
        value = self._config["backup_suffix_format"]
        assert isinstance(value, str)
        return value

    @property
    def export_dir(self) -> Optional[Path]:
        """Directory for export files, None for next to the manifest."""
        value = self._config["export_dir"]
        assert isinstance(value, str)
        return Path(value) if value else None

    @property
    def header_scan_lines(self) -> int:
        """Lines scanned for the Attribute VB_Name directive."""
        value = self._config["header_scan_lines"]
        assert isinstance(value, int)
        return value

    @property
    def indent_width(self) -> int:
        """Indent used by the declaration reorderer."""
        value = self._config["indent_width"]
        assert isinstance(value, int)
        return value

    @property
    def max_consecutive_blank_lines(self) -> int:
        value = self._config["max_consecutive_blank_lines"]
        assert isinstance(value, int)
        return value

    @property
    def write_exports(self) -> bool:
        """Whether analyze writes export files."""
        value = self._config["write_exports"]
        assert isinstance(value, bool)
        return value

    def set_write_exports(self, enabled: bool) -> None:
        self._config["write_exports"] = enabled

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._config)
