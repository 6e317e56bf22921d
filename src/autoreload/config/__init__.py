"""Configuration management for autoreload.

Provides hierarchical YAML-based configuration with:
- System-level config (/etc/autoreload/ or %PROGRAMDATA%)
- User-level config (~/.config/autoreload/ or %APPDATA%)
- Project-level config ($project_root/.autoreload/)
- Environment variable overrides (highest priority)

Example usage:
    from autoreload.config import load_config

    config = load_config(project_root="/path/to/project")
    print(config.watch.poll_interval)
"""

from autoreload.config.loader import (
    get_config,
    load_config,
    on_config_reload,
    reload_config,
    reset_config,
)
from autoreload.config.paths import (
    get_config_paths,
    get_explicit_config_path,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from autoreload.config.schema import (
    Config,
    LoggingConfig,
    WatchConfig,
)

__all__ = [
    # Main API
    "Config",
    "load_config",
    "get_config",
    "reload_config",
    "reset_config",
    "on_config_reload",
    # Schema types
    "WatchConfig",
    "LoggingConfig",
    # Path utilities
    "get_config_paths",
    "get_explicit_config_path",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
