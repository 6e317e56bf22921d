"""Where autoreload looks for config.yaml.

Lowest to highest priority:

    system   /etc/autoreload/              %PROGRAMDATA%\\autoreload\\
    user     $XDG_CONFIG_HOME/autoreload/  %APPDATA%\\autoreload\\
             ~/.config/autoreload/ (when ~/.config exists), else ~/.autoreload/
    explicit $AUTORELOAD_CONFIG
    project  <project_root>/.autoreload/
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "autoreload"
PROJECT_DIR_NAME = ".autoreload"
CONFIG_ENV_VAR = "AUTORELOAD_CONFIG"


def _in_env_dir(var: str) -> Path | None:
    base = os.environ.get(var)
    return Path(base) / APP_NAME / CONFIG_FILENAME if base else None


def get_system_config_path() -> Path | None:
    """Machine-wide config file (may not exist)."""
    if sys.platform == "win32":
        return _in_env_dir("PROGRAMDATA")
    return Path("/etc") / APP_NAME / CONFIG_FILENAME


def get_user_config_path() -> Path | None:
    """Per-user config file (may not exist)."""
    if sys.platform == "win32":
        return _in_env_dir("APPDATA")

    path = _in_env_dir("XDG_CONFIG_HOME")
    if path is not None:
        return path
    dot_config = Path.home() / ".config"
    if dot_config.exists():
        return dot_config / APP_NAME / CONFIG_FILENAME
    return Path.home() / PROJECT_DIR_NAME / CONFIG_FILENAME


def get_explicit_config_path() -> Path | None:
    """File named by AUTORELOAD_CONFIG, if set."""
    value = os.environ.get(CONFIG_ENV_VAR)
    return Path(value).expanduser() if value else None


def get_project_config_path(project_root: str) -> Path:
    """Config file of the project whose files are watched (may not exist)."""
    return Path(project_root) / PROJECT_DIR_NAME / CONFIG_FILENAME


def get_config_paths(project_root: str | None = None) -> list[Path]:
    """Every candidate config file, lowest priority first."""
    candidates = [
        get_system_config_path(),
        get_user_config_path(),
        get_explicit_config_path(),
        get_project_config_path(project_root) if project_root else None,
    ]
    return [path for path in candidates if path is not None]
