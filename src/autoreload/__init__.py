"""autoreload: poll-based change detection for externally edited files."""

__version__ = "0.1.0"

from autoreload.config import Config, WatchConfig, get_config, load_config
from autoreload.errors import (
    AutoReloadError,
    MisconfigurationError,
    ReadError,
    SharingViolation,
    StorageError,
)
from autoreload.ports import (
    MemoryToggleHost,
    RegistrationSource,
    StaticRegistrationSource,
    Toggle,
    ToggleHost,
)
from autoreload.reloader import AutoReloader
from autoreload.watching import (
    Fingerprinter,
    LocalStorage,
    Poller,
    Storage,
    WatchedEntry,
    WatchSet,
    fingerprint,
)

__all__ = [
    # Subsystem
    "AutoReloader",
    # Core
    "Fingerprinter",
    "WatchedEntry",
    "WatchSet",
    "Poller",
    "fingerprint",
    # Ports
    "Storage",
    "LocalStorage",
    "RegistrationSource",
    "StaticRegistrationSource",
    "ToggleHost",
    "MemoryToggleHost",
    "Toggle",
    # Errors
    "AutoReloadError",
    "StorageError",
    "SharingViolation",
    "ReadError",
    "MisconfigurationError",
    # Config
    "Config",
    "WatchConfig",
    "load_config",
    "get_config",
]
