"""Configuration loading, schema, and defaults."""

from cfgaudit.config.loader import ConfigError, load_config
from cfgaudit.config.schema import AuditorConfig

__all__ = [
    "AuditorConfig",
    "ConfigError",
    "load_config",
]
