"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars

There is deliberately no module-level cache: every scheduler cycle calls
load_config() to get a fresh, typed snapshot.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import LeySyncConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_NAME = ".leysync.json"

# env var -> (section, key, kind)
ENV_OVERRIDES: dict[str, tuple[str, str, str]] = {
    "LEYSYNC_REPOSITORY_URL": ("repository", "url", "str"),
    "LEYSYNC_REPOSITORY_BRANCH": ("repository", "branch", "str"),
    "LEYSYNC_CACHE_DIRECTORY": ("cache", "directory", "str"),
    "LEYSYNC_UPDATE_ENABLED": ("update", "enabled", "bool"),
    "LEYSYNC_UPDATE_INTERVAL": ("update", "interval", "int"),
    "LEYSYNC_CONTRIBUTE_ENABLED": ("contribute", "enabled", "bool"),
    "LEYSYNC_IGNORE_AUTO_UPDATE": ("ignore_file", "auto_update", "bool"),
}


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """Path to ~/.config/leysync/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "leysync" / "config.json"


def get_project_config_path(workspace_root: Path | None = None) -> Path:
    """Path to .leysync.json in the workspace root."""
    if workspace_root is None:
        workspace_root = Path.cwd()
    return workspace_root / PROJECT_CONFIG_NAME


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`. Nested dicts
    are merged, not replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 2}})
        {'a': 1, 'b': {'x': 10, 'y': 2}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            logger.warning("Ignoring config at %s: top level is not an object", path)
            return None
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def _parse_bool(value: str) -> bool:
    return value.strip().lower() not in ("false", "0", "no", "off", "")


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply LEYSYNC_* environment variable overrides to configuration.

    Env vars have the highest precedence. Values that cannot be parsed are
    logged and ignored.

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()

    for env_name, (section, key, kind) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None or raw == "":
            continue

        value: Any
        if kind == "bool":
            value = _parse_bool(raw)
        elif kind == "int":
            try:
                value = int(raw)
            except ValueError:
                logger.warning("Invalid %s value %r, ignoring", env_name, raw)
                continue
        else:
            value = raw

        section_dict = dict(result.get(section) or {})
        section_dict[key] = value
        result[section] = section_dict

    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Model defaults already cover every key; this only exists so that the
    merge chain has an explicit starting point.
    """
    return LeySyncConfig().model_dump()


def load_config(workspace_root: Path | None = None) -> LeySyncConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (LEYSYNC_*)
        2. Project config (.leysync.json)
        3. User config (~/.config/leysync/config.json)
        4. Hardcoded defaults

    Args:
        workspace_root: Workspace to load .leysync.json from (defaults to cwd)

    Returns:
        Validated LeySyncConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(workspace_root)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    return LeySyncConfig(**merged)
