"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import LandfallConfig

logger = logging.getLogger(__name__)

# Loaded once per process unless use_cache=False
_config_cache: LandfallConfig | None = None

_TRUE_VALUES = ("1", "true", "yes", "on")


def get_xdg_config_home() -> Path:
    """Return $XDG_CONFIG_HOME, defaulting to ~/.config."""
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """Path to ~/.config/landfall/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "landfall" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """Path to .landfall.json in ``cwd`` (defaults to the current directory)."""
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".landfall.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge ``override`` into a deep copy of ``base``.

    Neither argument is modified, and the result shares no nested dicts with them.

    Example:
        >>> deep_merge({"a": {"x": 1, "y": 2}}, {"a": {"y": 3}, "b": 4})
        {'a': {'x': 1, 'y': 3}, 'b': 4}
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON object from ``path``.

    Returns None if the file is missing, unreadable, or not a JSON object.
    """
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring config at %s: expected a JSON object", path)
        return None
    return data


def _set(config: dict[str, Any], section: str, key: str, value: Any) -> None:
    config.setdefault(section, {})[key] = value


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides.

    Supported env vars:
        LANDFALL_FORCE - overrides destination.force
        LANDFALL_VCS - overrides destination.vcs
        LANDFALL_CACHE_DIR - overrides repository.cache_dir
        LANDFALL_CREDENTIAL_TIMEOUT - overrides credentials.timeout_seconds
    """
    result = deep_merge({}, config_dict)

    if force_str := os.environ.get("LANDFALL_FORCE"):
        _set(result, "destination", "force", force_str.lower() in _TRUE_VALUES)

    if vcs := os.environ.get("LANDFALL_VCS"):
        _set(result, "destination", "vcs", vcs.lower())

    if cache_dir := os.environ.get("LANDFALL_CACHE_DIR"):
        _set(result, "repository", "cache_dir", cache_dir)

    if timeout_str := os.environ.get("LANDFALL_CREDENTIAL_TIMEOUT"):
        try:
            _set(result, "credentials", "timeout_seconds", int(timeout_str))
        except ValueError:
            logger.warning("Invalid LANDFALL_CREDENTIAL_TIMEOUT value '%s', ignoring", timeout_str)

    return result


def get_default_config() -> dict[str, Any]:
    """Hardcoded defaults; everything else comes from the model defaults."""
    return {
        "destination": {"fetch": "default", "push": "default", "vcs": "hg", "force": False},
        "message": {"origin_label_separator": ": "},
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> LandfallConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (LANDFALL_*)
        2. Project config (.landfall.json)
        3. User config (~/.config/landfall/config.json)
        4. Hardcoded defaults

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = LandfallConfig(**merged)
    _config_cache = config
    return config


def clear_cache() -> None:
    """Forget the cached configuration."""
    global _config_cache
    _config_cache = None
