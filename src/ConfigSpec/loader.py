# === NAVMAP v1 ===
# {
#   "module": "ConfigSpec.loader",
#   "purpose": "Configuration Loading with File/Env/Override Precedence.",
#   "sections": [
#     {
#       "id": "read-config-file",
#       "name": "read_config_file",
#       "anchor": "function-read-config-file",
#       "kind": "function"
#     },
#     {
#       "id": "apply-env-overrides",
#       "name": "apply_env_overrides",
#       "anchor": "function-apply-env-overrides",
#       "kind": "function"
#     },
#     {
#       "id": "merge-overrides",
#       "name": "merge_overrides",
#       "anchor": "function-merge-overrides",
#       "kind": "function"
#     },
#     {
#       "id": "section-at",
#       "name": "section_at",
#       "anchor": "function-section-at",
#       "kind": "function"
#     },
#     {
#       "id": "load-config",
#       "name": "load_config",
#       "anchor": "function-load-config",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Configuration Loading with File/Env/Override Precedence

Implements three-level config composition against a :class:`ConfigSpec`:
1. **File level** (YAML/JSON): base configuration
2. **Environment level**: prefixed variables override file
3. **Override level**: programmatic overrides win

Environment variables use double-underscore notation:
  APP_RETRY__MAX_INTERVAL="30s"  →  retry.max_interval="30s"
  APP_RETRY__ENABLED=true        →  retry.enabled=True

JSON values are decoded when possible; anything else stays a string and is
left to schema validation.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Sequence

import yaml

from .errors import ConfigLoadError, format_path
from .parsed import ParsedConfig
from .spec import ConfigSpec

_LOGGER = logging.getLogger(__name__)

# ============================================================================
# Helpers
# ============================================================================


def read_config_file(path: str | Path) -> dict[str, Any]:
    """
    Read a YAML or JSON config file.

    Args:
        path: File path (suffix determines format: .yaml/.yml or .json)

    Returns:
        Parsed config dictionary (empty YAML documents yield ``{}``)

    Raises:
        ConfigLoadError: If the file is missing, unreadable, malformed, or not a mapping
    """
    p = Path(path)
    if not p.exists():
        raise ConfigLoadError(f"Config file not found: {p}")

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigLoadError(f"Cannot read config file {p}: {e}") from e

    suffix = p.suffix.lower()
    if suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigLoadError(f"Invalid YAML in {p}: {e}") from e
    elif suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigLoadError(f"Invalid JSON in {p}: {e}") from e
    else:
        raise ConfigLoadError(f"Unsupported file format: {suffix}. Use .yaml or .json")

    if not isinstance(data, dict):
        raise ConfigLoadError(f"Config file {p} must contain a mapping at the top level")
    return data


def _assign_nested(data: dict[str, Any], keys: Sequence[str], value: Any) -> None:
    current = data
    for key in keys[:-1]:
        existing = current.get(key)
        if not isinstance(existing, dict):
            existing = {}
            current[key] = existing
        current = existing
    current[keys[-1]] = value


def _coerce_env_value(value: str) -> Any:
    """Decode JSON scalars/containers, leaving plain strings (like ``30s``) untouched."""
    try:
        return json.loads(value)
    except (json.JSONDecodeError, ValueError):
        return value


def apply_env_overrides(
    data: dict[str, Any],
    prefix: str,
    env: Optional[Mapping[str, str]] = None,
) -> dict[str, Any]:
    """
    Overlay prefixed environment variables onto a config dict.

    Args:
        data: Base config dict (modified in place)
        prefix: Variable prefix, e.g. ``APP_``
        env: Environment mapping (default: ``os.environ``)

    Returns:
        The modified ``data`` dict
    """
    if env is None:
        env = os.environ

    for env_key in sorted(env):
        if not env_key.startswith(prefix):
            continue
        relative = env_key[len(prefix) :].lower()
        keys = [part for part in relative.split("__") if part]
        if not keys:
            continue
        value = _coerce_env_value(env[env_key])
        _assign_nested(data, keys, value)
        _LOGGER.debug("Environment override: %s → %s = %r", env_key, ".".join(keys), value)

    return data


def merge_overrides(data: dict[str, Any], overrides: Mapping[str, Any] | None) -> dict[str, Any]:
    """
    Recursively merge programmatic overrides into a config dict.

    Later values win; nested mappings are merged key by key.
    """
    if not overrides:
        return data

    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(data.get(key), dict):
            data[key] = merge_overrides(data[key], value)
        else:
            data[key] = value
        _LOGGER.debug("Override: %s = %r", key, value)

    return data


def section_at(data: Mapping[str, Any], path: Sequence[str]) -> dict[str, Any]:
    """
    Return the mapping found at ``path`` (``{}`` when the section is absent).

    Raises:
        ConfigLoadError: If a value along the path is not a mapping
    """
    current: Any = data
    for depth, key in enumerate(path):
        if not isinstance(current, Mapping):
            raise ConfigLoadError(f"'{format_path(path[:depth])}' is not an object")
        current = current.get(key, {})
    if current is None:
        return {}
    if not isinstance(current, Mapping):
        raise ConfigLoadError(f"'{format_path(path)}' is not an object")
    return dict(current)


# ============================================================================
# Public API
# ============================================================================


def load_config(
    spec: ConfigSpec,
    path: str | Path | None = None,
    *,
    env_prefix: str | None = None,
    env: Optional[Mapping[str, str]] = None,
    overrides: Mapping[str, Any] | None = None,
    lint: bool = True,
) -> ParsedConfig:
    """
    Load and validate a config against ``spec`` with proper precedence.

    **Precedence:** file < environment < overrides

    Args:
        spec: Schema to validate against
        path: Path to YAML/JSON config file (optional)
        env_prefix: Environment variable prefix; environment is ignored when ``None``
        env: Environment mapping (default: ``os.environ``)
        overrides: Programmatic overrides (optional)
        lint: Whether lint findings fail the load

    Returns:
        Validated ParsedConfig

    Raises:
        ConfigLoadError: If the file cannot be read
        ConfigParseError: If the merged config is invalid
    """
    data: dict[str, Any] = {}

    if path:
        try:
            data = read_config_file(path)
        except ConfigLoadError as e:
            _LOGGER.error("Failed to load config: %s", e)
            raise
        _LOGGER.info("Loaded config from %s", path)

    if env_prefix:
        data = apply_env_overrides(data, env_prefix, env)

    data = merge_overrides(data, overrides)

    parsed = spec.parse(data, lint=lint)
    _LOGGER.info("Configuration validated against %r", spec)
    return parsed


__all__ = [
    "apply_env_overrides",
    "load_config",
    "merge_overrides",
    "read_config_file",
    "section_at",
]
