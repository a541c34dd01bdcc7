# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Configuration loading and validation for include usage analysis."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".include_audit.yml"


class ConfigurationError(Exception):
    """Raised when configuration validation fails critically."""

    pass


class Config:
    """Configuration for include usage analysis.

    Loads configuration from .include_audit.yml with validation and defaults.
    A missing, empty or malformed file falls back to defaults; invalid values
    fall back to their default individually.
    """

    DEFAULTS: Dict[str, Any] = {
        "max_parse_steps": 200000,  # directives + tokens per file
        "follow_local_includes": True,
        "max_local_include_depth": 32,
        "extra_header_symbols": {},  # header -> list of symbol names
        "include_paths": [],  # directories searched for headers by analyze_file
        "knowledge_base_max_entries": 1000,  # cached parsed headers
        "record_directive_usages": True,
    }

    _POSITIVE_INTS = ("max_parse_steps", "max_local_include_depth", "knowledge_base_max_entries")

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file. If None, uses
                .include_audit.yml in the current working directory.
        """
        if config_path is None:
            config_path = Path.cwd() / CONFIG_FILENAME

        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "Config":
        """Build a configuration from explicit values, without reading a file.

        Raises:
            ConfigurationError: If a key is unknown or a value is invalid.
        """
        config = cls.__new__(cls)
        config.config_path = None
        config._config = cls._defaults()
        for key, value in values.items():
            if key not in cls.DEFAULTS:
                raise ConfigurationError(f"Unknown configuration parameter '{key}'")
            if not cls._validate_parameter(key, value):
                raise ConfigurationError(f"Invalid value for '{key}': {value!r}")
            config._config[key] = value
        return config

    @classmethod
    def _defaults(cls) -> Dict[str, Any]:
        return {
            key: (value.copy() if isinstance(value, (dict, list)) else value)
            for key, value in cls.DEFAULTS.items()
        }

    def _load_config(self) -> None:
        """Load and validate configuration from file."""
        if not self.config_path.exists():
            logger.info(f"Configuration file not found at {self.config_path}, using defaults")
            self._config = self._defaults()
            return

        try:
            with open(self.config_path, encoding="utf-8") as f:
                loaded_config = yaml.safe_load(f)

            if loaded_config is None:
                logger.warning("Configuration file is empty, using defaults")
                self._config = self._defaults()
                return

            if not isinstance(loaded_config, dict):
                logger.warning(
                    f"Configuration file must contain a YAML dictionary, "
                    f"got {type(loaded_config)}, using defaults"
                )
                self._config = self._defaults()
                return

            # Start with defaults and override with loaded values
            self._config = self._defaults()
            self._validate_and_merge(loaded_config)

        except yaml.YAMLError as e:
            logger.warning(
                f"Error parsing configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._defaults()
        except OSError as e:
            logger.warning(
                f"Cannot read configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._defaults()

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

    @classmethod
    def _validate_parameter(cls, key: str, value: Any) -> bool:
        """Validate a configuration parameter.

        Returns:
            True if valid, False if invalid
        """
        expected_type = type(cls.DEFAULTS[key])
        if not isinstance(value, expected_type):
            return False
        # bool is an int subclass
        if expected_type is int and isinstance(value, bool):
            return False

        if key in cls._POSITIVE_INTS:
            return value > 0
        elif key == "include_paths":
            return all(isinstance(p, str) for p in value)
        elif key == "extra_header_symbols":
            # Must map header names to lists of symbol names
            for header, symbols in value.items():
                if not isinstance(header, str):
                    return False
                if not isinstance(symbols, list):
                    return False
                if not all(isinstance(s, str) for s in symbols):
                    return False
            return True

        return True

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._config)

    # Property accessors for all configuration values
    @property
    def max_parse_steps(self) -> int:
        """Per-file budget of directives plus tokens."""
        value = self._config["max_parse_steps"]
        assert isinstance(value, int)
        return value

    @property
    def follow_local_includes(self) -> bool:
        """Whether local header parsing recurses into the headers it includes."""
        value = self._config["follow_local_includes"]
        assert isinstance(value, bool)
        return value

    @property
    def max_local_include_depth(self) -> int:
        value = self._config["max_local_include_depth"]
        assert isinstance(value, int)
        return value

    @property
    def extra_header_symbols(self) -> Dict[str, List[str]]:
        """Header symbol tables that extend or override the built-in ones.

        Returns:
            Dictionary mapping header names to provided symbols.
            Example: {"spdlog/spdlog.h": ["spdlog", "info", "warn"]}
        """
        value = self._config["extra_header_symbols"]
        assert isinstance(value, dict)
        return value

    @property
    def include_paths(self) -> List[str]:
        """Directories searched for headers after the including file's directory."""
        value = self._config["include_paths"]
        assert isinstance(value, list)
        return value

    @property
    def knowledge_base_max_entries(self) -> int:
        """Maximum number of parsed headers kept in the knowledge base cache.

        When the cache reaches this limit, least recently used entries
        are evicted to make room for new entries.
        """
        value = self._config["knowledge_base_max_entries"]
        assert isinstance(value, int)
        return value

    @property
    def record_directive_usages(self) -> bool:
        """Whether #define bodies and #if expressions count as usages."""
        value = self._config["record_directive_usages"]
        assert isinstance(value, bool)
        return value
