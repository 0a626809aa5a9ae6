"""YAML-backed configuration file management."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from . import resolver
from .exceptions import ConfigError
from .models import MvxConfig
from .paths import default_config_path

LOGGER = logging.getLogger(__name__)

HEADER_LINES = (
    "# mvx configuration file",
    "# Manage via `mvx config edit` or `mvx config set KEY --value VALUE`.",
    "# Sections: conversion, profiles, logging, cli.",
)
TIMESTAMP_PREFIX = "# Last updated: "


class ConfigManager:
    """Read, resolve, and write the mvx configuration file.

    A manager created without ``config_path`` uses the XDG default location,
    which may be absent; an explicitly passed path must exist when loaded.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._env: Mapping[str, str] = os.environ if env is None else env
        self._explicit = config_path is not None
        path = config_path if config_path is not None else default_config_path(self._env)
        self._config_path = Path(path).expanduser()

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = False,
        env_overrides: Mapping[str, str] | None = None,
    ) -> MvxConfig:
        """Resolve the effective configuration.

        Args:
            cli_overrides: Highest-precedence values, nested or dotted.
            include_env: Whether ``MVX__`` environment variables apply.
            ensure_file: Create the file with defaults first when missing.
            env_overrides: Environment mapping to use instead of the manager's.

        Returns:
            MvxConfig: Validated configuration.

        Raises:
            ConfigError: If an explicit file is missing or any layer is invalid.
        """
        if ensure_file:
            self.ensure_exists()
        elif self._explicit and not self._config_path.exists():
            raise ConfigError(f"Config file not found: {self._config_path}")

        env_layer = None
        if include_env:
            env_layer = resolver.env_overrides(
                env_overrides if env_overrides is not None else self._env
            )

        return resolver.resolve_with_precedence(
            defaults=MvxConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=env_layer or None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored on disk, or an empty mapping.

        Raises:
            ConfigError: If the file is not valid YAML or not a mapping.
        """
        text = self.read_text()
        if not text:
            return {}
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return data

    def read_text(self) -> str:
        """Return the current file contents, or an empty string when absent."""
        try:
            return self._config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""

    def ensure_exists(self) -> Path:
        """Write a defaults file when none exists and return its path."""
        if not self._config_path.exists():
            self.save(MvxConfig())
            LOGGER.debug("Created default configuration at %s", self._config_path)
        return self._config_path

    def save(self, config: MvxConfig | Mapping[str, Any]) -> None:
        """Write ``config`` to disk with the header and a fresh timestamp."""
        data = config.model_dump(mode="python") if isinstance(config, MvxConfig) else dict(config)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        lines = [*HEADER_LINES, f"{TIMESTAMP_PREFIX}{stamp}"]
        body = yaml.safe_dump(data, sort_keys=False)
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._config_path.write_text("\n".join(lines) + "\n" + body, encoding="utf-8")


__all__ = ["ConfigManager", "HEADER_LINES", "TIMESTAMP_PREFIX"]
