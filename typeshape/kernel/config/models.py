"""Configuration data models for typeshape."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any, Literal

from typeshape.kernel.exceptions import ValidationError

DEFAULT_REF_PREFIX = "#/components/schemas/"


def _default_builtin_nominals() -> dict[str, dict[str, Any]]:
    return {
        "Date": {"type": "string", "format": "date"},
        "date": {"type": "string", "format": "date"},
        "datetime": {"type": "string", "format": "date-time"},
        "Object": {"type": "any"},
        "object": {"type": "any"},
    }


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Logging configuration for typeshape.

    Attributes
    ----------
    level : str, default="INFO"
        Log level (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL)
    format : str, default="structured"
        Output format (console, json, structured, rich)
    output_file : str | None, default=None
        Optional file path to write logs to
    use_color : bool, default=True
        Use ANSI color codes (auto-disabled for non-TTY)
    include_timestamp : bool, default=True
        Include timestamp in log output
    use_rich : bool, default=False
        Use Rich for console output

    Examples
    --------
    TOML configuration:

    ```toml
    [tool.typeshape.logging]
    level = "DEBUG"
    format = "rich"
    ```
    """

    level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "structured", "rich"] = "structured"
    output_file: str | None = None
    use_color: bool = True
    include_timestamp: bool = True
    use_rich: bool = False


@dataclass(frozen=True, slots=True)
class DerivationConfig:
    """Options that shape the derived schema document.

    Attributes
    ----------
    ref_prefix : str
        Prefix joined with a registry name to form a ``$ref``
    hash_algorithm : str
        hashlib algorithm used for structural content hashes
    builtin_nominals : dict[str, dict[str, Any]]
        Named types rendered as fixed fragments instead of being expanded,
        keyed by declared name
    include_descriptions : bool
        Copy documentation comments into ``description``
    """

    ref_prefix: str = DEFAULT_REF_PREFIX
    hash_algorithm: str = "sha256"
    builtin_nominals: dict[str, dict[str, Any]] = field(default_factory=_default_builtin_nominals)
    include_descriptions: bool = True

    def __post_init__(self) -> None:
        """Validate derivation options.

        Raises
        ------
        ValidationError
            If the hash algorithm is unknown or variable-length, or a builtin
            entry has no type
        """
        if self.hash_algorithm not in hashlib.algorithms_available:
            raise ValidationError(
                "hash_algorithm", "must be a hashlib algorithm", self.hash_algorithm
            )
        # SHAKE digests have no fixed size and cannot produce a plain hexdigest
        if hashlib.new(self.hash_algorithm).digest_size == 0:
            raise ValidationError(
                "hash_algorithm", "must have a fixed digest size", self.hash_algorithm
            )
        for name, fragment in self.builtin_nominals.items():
            if "type" not in fragment:
                raise ValidationError(f"builtin_nominals.{name}", "must define 'type'")


@dataclass(slots=True)
class TypeShapeConfig:
    """Root configuration object.

    Examples
    --------
    ```toml
    [tool.typeshape.derivation]
    ref_prefix = "#/definitions/"

    [tool.typeshape.derivation.builtin_nominals]
    Decimal = { type = "string", format = "decimal" }
    ```
    """

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    derivation: DerivationConfig = field(default_factory=DerivationConfig)
