"""Configuration errors."""


class ConfigError(Exception):
    """Raised when a configuration file, override, or profile is invalid."""
