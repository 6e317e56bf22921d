"""Logging for autoreload.

Every module logs through a child of the ``autoreload`` logger
(``autoreload.poller``, ``autoreload.watching`` ...). Nothing is emitted
until setup_logging() attaches a handler: a log file when one is
configured (``logging.file`` or AUTORELOAD_LOG), otherwise stderr when it
is a console.

Verbosity runs error(0), warning(1), info(2), verbose(3), trace(4). Change
detections log at INFO, per-file reads and sharing violations below that.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from autoreload.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

LOG_ENV_VAR = "AUTORELOAD_LOG"

logger = logging.getLogger("autoreload")

# Handlers attached by setup_logging(); empty until then
_handlers: list[logging.Handler] = []

_NAMED_LEVELS = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "VERBOSE": VERBOSE,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_VERBOSITY_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)


class LineFormatter(logging.Formatter):
    """``HH:MM:SS level: message`` with the level name in lowercase."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s: %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        # Other handlers share the record, so lowercase a copy
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Pick the effective log level; verbose (int) wins over level (str)."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        index = min(max(config.verbose, 0), len(_VERBOSITY_LEVELS) - 1)
        return _VERBOSITY_LEVELS[index]
    if config.level:
        return _NAMED_LEVELS.get(config.level.strip().upper(), logging.INFO)
    return logging.INFO


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Attach the autoreload handler. Only the first call has any effect.

    A log file that cannot be opened is reported on stderr, and stderr is
    used in its place when it is a console.
    """
    if _handlers:
        return

    level = resolve_level(config)
    logger.setLevel(level)

    log_path = (config.file if config else None) or os.environ.get(LOG_ENV_VAR)
    handler: logging.Handler | None = None
    if log_path:
        try:
            handler = logging.FileHandler(
                os.path.expanduser(log_path), mode="a", encoding="utf-8"
            )
        except OSError as e:
            if sys.stderr.isatty():
                print(f"[autoreload] Cannot open log file {log_path}: {e}", file=sys.stderr)
    if handler is None and sys.stderr.isatty():
        handler = logging.StreamHandler(sys.stderr)
    if handler is None:
        return

    handler.setLevel(level)
    handler.setFormatter(LineFormatter())
    logger.addHandler(handler)
    _handlers.append(handler)


def shutdown_logging() -> None:
    """Detach and close whatever setup_logging() attached."""
    while _handlers:
        handler = _handlers.pop()
        logger.removeHandler(handler)
        handler.close()


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the ``autoreload`` logger, or its child ``autoreload.<name>``."""
    if name:
        return logger.getChild(name)
    return logger
