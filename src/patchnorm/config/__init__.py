"""Configuration loading, schema, and defaults."""

from patchnorm.config.loader import ConfigError, load_config
from patchnorm.config.schema import OUTPUT_FORMATS, PatchnormConfig

__all__ = [
    "ConfigError",
    "OUTPUT_FORMATS",
    "PatchnormConfig",
    "load_config",
]
