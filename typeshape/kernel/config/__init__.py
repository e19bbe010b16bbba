"""Configuration loading and management for typeshape."""

from typeshape.kernel.config.loader import ConfigLoader, clear_config_cache, load_config
from typeshape.kernel.config.models import DerivationConfig, LoggingConfig, TypeShapeConfig

__all__ = [
    "ConfigLoader",
    "DerivationConfig",
    "LoggingConfig",
    "TypeShapeConfig",
    "clear_config_cache",
    "load_config",
]
