"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Environment variable overrides
- Config caching with reload support
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from autoreload.config.merge import merge_configs
from autoreload.config.paths import get_config_paths
from autoreload.config.schema import (
    DEFAULT_ALGORITHM,
    DEFAULT_CHECK_INTERVAL,
    DEFAULT_LABEL_MAX_LENGTH,
    DEFAULT_POLL_INTERVAL,
    Config,
    LoggingConfig,
    WatchConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("autoreload.config")

_cached_config: Config | None = None

_reload_callbacks: list[Callable[[Config], None]] = []

# Environment variable -> (section, key) for float overrides
_FLOAT_ENV_VARS = {
    "AUTORELOAD_POLL_INTERVAL": ("watch", "poll_interval"),
    "AUTORELOAD_CHECK_INTERVAL": ("watch", "check_interval"),
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML as dict, or empty dict on error.
    """
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables.

    Returns:
        Config dict with values from environment.
    """
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("AUTORELOAD_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    for var, (section, key) in _FLOAT_ENV_VARS.items():
        raw = os.environ.get(var)
        if not raw:
            continue
        try:
            value = float(raw)
        except ValueError:
            _log.warning("Ignoring %s=%r: not a number", var, raw)
            continue
        overrides.setdefault(section, {})[key] = value

    return overrides


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        _log.warning("Expected a number, got %r; using %s", value, default)
        return default


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        _log.warning("Expected an integer, got %r; using %s", value, default)
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        _log.warning("Expected an integer, got %r; using %s", value, default)
        return default


_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "off", "0", ""})


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    _log.warning("Expected true or false, got %r; using %s", value, default)
    return default


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass.

    Args:
        data: Merged configuration dictionary.

    Returns:
        Typed Config object.
    """
    watch_data = data.get("watch", {})
    if not isinstance(watch_data, dict):
        watch_data = {}
    paths_data = watch_data.get("paths", [])
    if not isinstance(paths_data, list):
        paths_data = []
    watch = WatchConfig(
        poll_interval=_as_float(
            watch_data.get("poll_interval", DEFAULT_POLL_INTERVAL), DEFAULT_POLL_INTERVAL
        ),
        check_interval=_as_float(
            watch_data.get("check_interval", DEFAULT_CHECK_INTERVAL), DEFAULT_CHECK_INTERVAL
        ),
        enabled_by_default=_as_bool(watch_data.get("enabled_by_default", False), False),
        label_max_length=_as_int(
            watch_data.get("label_max_length", DEFAULT_LABEL_MAX_LENGTH), DEFAULT_LABEL_MAX_LENGTH
        ),
        algorithm=str(watch_data.get("algorithm", DEFAULT_ALGORITHM)),
        paths=[p for p in paths_data if isinstance(p, str) and p],
    )

    log_data = data.get("logging", {})
    if not isinstance(log_data, dict):
        log_data = {}
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    known_keys = {"watch", "logging"}
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(watch=watch, logging=logging_config, extra=extra)


def load_config(project_root: str | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config ($project_root/.autoreload/config.yaml)
    3. User config
    4. System config

    Args:
        project_root: Project directory for project-level config.
        reload: Force reload even if cached.

    Returns:
        Merged Config object.
    """
    global _cached_config

    if _cached_config is not None and not reload and project_root is None:
        return _cached_config

    configs: list[dict[str, Any]] = []

    for path in get_config_paths(project_root):
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            configs.append(config_data)

    env_config = env_overrides()
    if env_config:
        configs.append(env_config)

    config = dict_to_config(merge_configs(*configs))

    # Cache only global config (no project_root)
    if project_root is None:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it if not yet loaded."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config.

    Useful for testing or forcing a reload.
    """
    global _cached_config
    _cached_config = None


def reload_config(project_root: str | None = None) -> Config:
    """Reload config from files and notify callbacks."""
    config = load_config(project_root=project_root, reload=True)

    for callback in _reload_callbacks:
        try:
            callback(config)
        except Exception as e:
            _log.warning("Config reload callback error: %s", e)

    return config


def on_config_reload(callback: Callable[[Config], None]) -> Callable[[], None]:
    """Register a callback to be called when config is reloaded.

    Returns:
        A function to unregister the callback.
    """
    _reload_callbacks.append(callback)

    def unregister() -> None:
        if callback in _reload_callbacks:
            _reload_callbacks.remove(callback)

    return unregister
