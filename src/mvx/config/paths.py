"""Filesystem locations for mvx configuration and state."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

APP_DIRNAME = "mvx"
CONFIG_FILENAME = "config.yaml"


def config_home(env: Mapping[str, str] | None = None) -> Path:
    """Return ``$XDG_CONFIG_HOME/mvx``, falling back to ``~/.config/mvx``."""
    source = os.environ if env is None else env
    base = source.get("XDG_CONFIG_HOME") or "~/.config"
    return Path(base).expanduser() / APP_DIRNAME


def default_config_path(env: Mapping[str, str] | None = None) -> Path:
    """Return the default configuration file location."""
    return config_home(env) / CONFIG_FILENAME


__all__ = ["APP_DIRNAME", "CONFIG_FILENAME", "config_home", "default_config_path"]
