"""TOML configuration loader for typeshape."""

from __future__ import annotations

import os
import re
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, cast

from typeshape.kernel.config.models import (
    DEFAULT_REF_PREFIX,
    DerivationConfig,
    LoggingConfig,
    TypeShapeConfig,
    _default_builtin_nominals,
)
from typeshape.kernel.exceptions import ConfigurationError
from typeshape.kernel.logging import get_logger

# Constants for boolean environment variable parsing
_TRUTHY_VALUES = frozenset({"true", "1", "yes", "on", "enabled"})
_FALSY_VALUES = frozenset({"false", "0", "no", "off", "disabled"})

CONFIG_FILE_NAMES = ("typeshape.toml", "pyproject.toml", ".typeshape.toml")

logger = get_logger(__name__)


def _parse_bool_env(value: str) -> bool:
    """Parse boolean from environment variable value.

    Raises
    ------
    ValueError
        If value is not a recognized boolean string
    """
    normalized = value.lower().strip()
    if normalized in _TRUTHY_VALUES:
        return True
    if normalized in _FALSY_VALUES:
        return False
    expected = _TRUTHY_VALUES | _FALSY_VALUES
    raise ValueError(f"Invalid boolean value: {value!r}. Expected one of: {expected}")


@lru_cache(maxsize=32)
def _load_and_parse_cached(path_str: str) -> TypeShapeConfig:
    """Cached configuration loader."""
    loader = ConfigLoader()
    return loader._load_and_parse(Path(path_str))


class ConfigLoader:
    """Loads and processes typeshape configuration from TOML files."""

    ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

    def load_from_toml(self, path: str | Path | None = None) -> TypeShapeConfig:
        """Load configuration from TOML file.

        Parameters
        ----------
        path : str | Path | None
            Path to TOML file. If None, searches for typeshape.toml or pyproject.toml

        Returns
        -------
        TypeShapeConfig
            Parsed configuration with environment variables substituted
        """
        config_path = self._find_config_file(path)
        return _load_and_parse_cached(str(config_path.absolute()))

    def _load_and_parse(self, config_path: Path) -> TypeShapeConfig:
        """Load and parse configuration file."""
        logger.info("Loading configuration from {path}", path=config_path)

        with config_path.open("rb") as f:
            data = tomllib.load(f)

        if config_path.name == "pyproject.toml":
            section = data.get("tool", {}).get("typeshape", {})
            if not section:
                logger.warning("No [tool.typeshape] section found in pyproject.toml, using defaults")
                return TypeShapeConfig()
        elif "tool" in data and "typeshape" in data.get("tool", {}):
            section = data["tool"]["typeshape"]
        else:
            # Flat format (top-level keys)
            section = data

        if not isinstance(section, dict):
            raise ConfigurationError(str(config_path), "typeshape section must be a table")

        section = self._substitute_env_vars(section)
        return self._parse_config(section)

    def _find_config_file(self, path: str | Path | None) -> Path:
        """Find configuration file.

        Raises
        ------
        FileNotFoundError
            If no configuration file is found
        """
        if path:
            config_path = Path(path)
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return config_path

        if env_path := os.getenv("TYPESHAPE_CONFIG_PATH"):
            config_path = Path(env_path)
            if config_path.exists():
                logger.debug(f"Using config from TYPESHAPE_CONFIG_PATH: {config_path}")
                return config_path
            logger.warning(f"TYPESHAPE_CONFIG_PATH set but file not found: {config_path}")

        for name in CONFIG_FILE_NAMES:
            candidate = Path(name)
            if candidate.exists():
                return candidate

        # Walk up looking for a pyproject.toml that declares [tool.typeshape]
        current = Path.cwd()
        while current != current.parent:
            pyproject = current / "pyproject.toml"
            if pyproject.exists():
                with pyproject.open("rb") as f:
                    data = tomllib.load(f)
                if "typeshape" in data.get("tool", {}):
                    return pyproject
            current = current.parent

        raise FileNotFoundError(
            "No configuration file found. Searched for: " + ", ".join(CONFIG_FILE_NAMES)
        )

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively substitute ``${VAR}`` placeholders from the environment."""
        if isinstance(data, str):

            def replacer(match: re.Match[str]) -> str:
                var_name = match.group(1)
                value = os.environ.get(var_name)
                if value is None:
                    logger.debug(
                        f"Environment variable ${{{var_name}}} not found, keeping placeholder"
                    )
                    return match.group(0)
                return value

            return self.ENV_VAR_PATTERN.sub(replacer, data)

        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}

        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]

        return data

    def _parse_config(self, data: dict[str, Any]) -> TypeShapeConfig:
        """Parse configuration data into TypeShapeConfig."""
        return TypeShapeConfig(
            logging=self._parse_logging_config(data.get("logging", {})),
            derivation=self._parse_derivation_config(data.get("derivation", {})),
        )

    def _parse_logging_config(self, logging_data: dict[str, Any]) -> LoggingConfig:
        """Parse logging configuration with environment variable overrides.

        Environment variables take precedence over TOML configuration:
        - TYPESHAPE_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        - TYPESHAPE_LOG_FORMAT: Output format (console, json, structured, rich)
        - TYPESHAPE_LOG_FILE: Optional file path for log output
        - TYPESHAPE_LOG_COLOR: Use color output (true/false)
        - TYPESHAPE_LOG_RICH: Use Rich for console output (true/false)
        """
        level = logging_data.get("level", "INFO")
        format_type = logging_data.get("format", "structured")
        output_file = logging_data.get("output_file")
        use_color = logging_data.get("use_color", True)
        include_timestamp = logging_data.get("include_timestamp", True)
        use_rich = logging_data.get("use_rich", False)

        if env_level := os.getenv("TYPESHAPE_LOG_LEVEL"):
            level = env_level.upper()
            logger.debug(f"Overriding log level from env: {level}")

        if env_format := os.getenv("TYPESHAPE_LOG_FORMAT"):
            format_type = env_format.lower()
            logger.debug(f"Overriding log format from env: {format_type}")

        if env_file := os.getenv("TYPESHAPE_LOG_FILE"):
            output_file = env_file
            logger.debug(f"Overriding log file from env: {output_file}")

        if env_color := os.getenv("TYPESHAPE_LOG_COLOR"):
            try:
                use_color = _parse_bool_env(env_color)
            except ValueError as e:
                logger.warning(f"Invalid TYPESHAPE_LOG_COLOR value: {e}")

        if env_rich := os.getenv("TYPESHAPE_LOG_RICH"):
            try:
                use_rich = _parse_bool_env(env_rich)
            except ValueError as e:
                logger.warning(f"Invalid TYPESHAPE_LOG_RICH value: {e}")

        return LoggingConfig(
            level=cast(
                "Literal['TRACE', 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']", level
            ),
            format=cast("Literal['console', 'json', 'structured', 'rich']", format_type),
            output_file=output_file,
            use_color=use_color,
            include_timestamp=include_timestamp,
            use_rich=use_rich,
        )

    def _parse_derivation_config(self, data: dict[str, Any]) -> DerivationConfig:
        """Parse the derivation section; builtin nominals extend the defaults."""
        builtin_nominals = _default_builtin_nominals()
        overrides = data.get("builtin_nominals", {})
        if not isinstance(overrides, dict):
            raise ConfigurationError("derivation.builtin_nominals", "must be a table")
        builtin_nominals.update(overrides)

        ref_prefix = data.get("ref_prefix", DEFAULT_REF_PREFIX)
        if env_prefix := os.getenv("TYPESHAPE_REF_PREFIX"):
            ref_prefix = env_prefix
            logger.debug(f"Overriding ref prefix from env: {ref_prefix}")

        return DerivationConfig(
            ref_prefix=ref_prefix,
            hash_algorithm=data.get("hash_algorithm", "sha256"),
            builtin_nominals=builtin_nominals,
            include_descriptions=data.get("include_descriptions", True),
        )


def load_config(path: str | Path | None = None) -> TypeShapeConfig:
    """Load configuration from TOML file or return defaults.

    Parameters
    ----------
    path : str | Path | None
        Path to configuration file or None to search

    Returns
    -------
    TypeShapeConfig
        Loaded configuration or defaults if no file found
    """
    try:
        return ConfigLoader().load_from_toml(path)
    except FileNotFoundError:
        logger.info("No configuration file found, using defaults")
        return TypeShapeConfig()


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when configuration files have been modified
    and you need to force a reload.
    """
    _load_and_parse_cached.cache_clear()
