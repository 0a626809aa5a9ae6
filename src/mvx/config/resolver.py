"""Merge configuration layers and derive conversion options from them."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Tuple

import yaml
from pydantic import ValidationError

from mvx.planning.models import ConversionOptions, FfmpegPreference

from .exceptions import ConfigError
from .models import ConversionDefaults, MvxConfig

ENV_PREFIX = "MVX__"


def resolve_with_precedence(
    *,
    defaults: MvxConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> MvxConfig:
    """Merge configuration sources: defaults < file < environment < CLI.

    Each override mapping may use nested mappings, dotted keys
    (``"logging.level"``), or a mix of both.

    Raises:
        ConfigError: If an override is malformed or the merged result is invalid.
    """
    merged: Dict[str, Any] = defaults.model_dump(mode="python")
    for source_name, layer in (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    ):
        if layer is not None:
            merged = merge_layers(merged, expand_dotted(layer, source_name=source_name))

    try:
        return MvxConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def env_overrides(env: Mapping[str, str], prefix: str = ENV_PREFIX) -> Dict[str, Any]:
    """Collect ``MVX__SECTION__KEY=value`` variables into a nested mapping.

    Values are parsed as YAML scalars so ``true`` and ``85`` keep their types.
    Malformed names such as ``MVX__CONVERSION__`` are skipped.
    """
    collected: Dict[str, Any] = {}
    for name, raw in env.items():
        if not name.startswith(prefix):
            continue
        segments = name[len(prefix) :].split("__")
        if not all(segments):
            continue
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        assign_path(collected, [segment.lower() for segment in segments], value)
    return collected


def flatten_for_env(config: MvxConfig) -> Dict[str, str]:
    """Render ``config`` as the ``MVX__SECTION__KEY`` variables that reproduce it."""
    return {
        ENV_PREFIX + "__".join(part.upper() for part in path): _render_env_value(value)
        for path, value in _leaves(config.model_dump(mode="python"), ())
    }


def conversion_options(config: MvxConfig, profile: Optional[str] = None) -> ConversionOptions:
    """Return conversion options from the `conversion` section and an optional profile.

    Args:
        config: Resolved configuration.
        profile: Name of a profile to layer over the defaults.

    Returns:
        ConversionOptions: Options ready to be handed to the planner.

    Raises:
        ConfigError: If the named profile is not defined.
    """
    layers: list[ConversionDefaults] = [config.conversion]
    if profile is not None:
        selected = config.profiles.get(profile)
        if selected is None:
            raise ConfigError(f"Profile not found in config: {profile}")
        layers.append(selected)

    values: dict[str, Any] = {}
    for layer in layers:
        values.update(layer.model_dump(mode="python", exclude_none=True))

    preference = values.pop("ffmpeg_preference", None)
    if preference is not None:
        values["ffmpeg_preference"] = FfmpegPreference(preference)
    return ConversionOptions(**values)


def expand_dotted(source: Mapping[str, Any], *, source_name: str = "config") -> Dict[str, Any]:
    """Return a nested copy of ``source`` with dotted keys split into sections.

    Raises:
        ConfigError: If ``source`` is not a mapping, a key is not a string, or
            a dotted key collides with a scalar value.
    """
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    expanded: Dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = expand_dotted(value, source_name=source_name)
        try:
            assign_path(expanded, key.split("."), value, merge=True)
        except ConfigError as exc:
            raise ConfigError(f"{source_name.capitalize()} override for {key}: {exc}") from exc
    return expanded


def assign_path(
    target: Dict[str, Any],
    path: Sequence[str],
    value: Any,
    *,
    merge: bool = False,
) -> None:
    """Set ``value`` at ``path`` inside ``target``, creating sections as needed.

    Args:
        target: Mapping updated in place.
        path: Section names followed by the leaf key.
        value: Value to store.
        merge: Deep-merge mapping values into an existing section instead of
            replacing it.

    Raises:
        ConfigError: If an intermediate segment holds a non-mapping value.
    """
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if child is None:
            child = node[segment] = {}
        if not isinstance(child, dict):
            raise ConfigError(f"'{segment}' is not a mapping")
        node = child
    leaf = path[-1]
    existing = node.get(leaf)
    if merge and isinstance(value, MappingABC) and isinstance(existing, MappingABC):
        node[leaf] = merge_layers(existing, value)
    else:
        node[leaf] = value


def merge_layers(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    """Return ``base`` deep-merged with ``overlay``; overlay values win."""
    result = deepcopy(dict(base))
    for key, value in overlay.items():
        current = result.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            result[key] = merge_layers(current, value)
        else:
            result[key] = deepcopy(value)
    return result


def _leaves(data: Any, prefix: Tuple[str, ...]) -> Iterator[Tuple[Tuple[str, ...], Any]]:
    if isinstance(data, dict) and data:
        for key, child in data.items():
            yield from _leaves(child, prefix + (str(key),))
    else:
        yield prefix, data


def _render_env_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, (dict, list)):
        return yaml.safe_dump(value, default_flow_style=True).strip()
    return str(value)


__all__ = [
    "ENV_PREFIX",
    "assign_path",
    "conversion_options",
    "env_overrides",
    "expand_dotted",
    "flatten_for_env",
    "merge_layers",
    "resolve_with_precedence",
]
