"""Configuration loading, precedence resolution, and persistence for mvx."""

from .exceptions import ConfigError
from .manager import ConfigManager
from .models import CLIOptions, ConversionDefaults, LoggingSettings, MvxConfig
from .paths import config_home, default_config_path
from .resolver import (
    ENV_PREFIX,
    conversion_options,
    env_overrides,
    flatten_for_env,
    resolve_with_precedence,
)

__all__ = [
    "CLIOptions",
    "ConfigError",
    "ConfigManager",
    "ConversionDefaults",
    "ENV_PREFIX",
    "LoggingSettings",
    "MvxConfig",
    "config_home",
    "conversion_options",
    "default_config_path",
    "env_overrides",
    "flatten_for_env",
    "resolve_with_precedence",
]
