"""Configuration schema dataclasses for autoreload.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults so partial configs merge together cleanly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_CHECK_INTERVAL = 1.0
DEFAULT_LABEL_MAX_LENGTH = 30
DEFAULT_ALGORITHM = "md5"


@dataclass
class WatchConfig:
    """File watch configuration.

    Example config.yaml:
        watch:
          poll_interval: 0.5
          check_interval: 1.0
          enabled_by_default: false
          paths:
            - "textures/skin_diffuse.png"
    """

    poll_interval: float = DEFAULT_POLL_INTERVAL  # Seconds between poller ticks
    check_interval: float = DEFAULT_CHECK_INTERVAL  # Minimum seconds between reads per file
    enabled_by_default: bool = False  # Initial toggle state for new entries
    label_max_length: int = DEFAULT_LABEL_MAX_LENGTH  # Toggle label width
    algorithm: str = DEFAULT_ALGORITHM  # hashlib algorithm name
    paths: list[str] = field(default_factory=list)  # Paths watched by the CLI


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0 (errors) .. 4 (trace), overrides level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    watch: WatchConfig = field(default_factory=WatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    extra: dict[str, Any] = field(default_factory=dict)  # Unknown top-level keys
