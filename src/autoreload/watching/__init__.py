"""Poll-based change detection for watched files.

Each watched file is read at most once per check interval, fingerprinted
and compared with its previous fingerprint. A poller ticks the whole set
and reports changed paths through a callback.
"""

from autoreload.watching.entry import WatchedEntry, format_label
from autoreload.watching.fingerprint import Fingerprinter, fingerprint
from autoreload.watching.poller import Poller
from autoreload.watching.storage import LocalStorage, Storage, is_sharing_violation
from autoreload.watching.watch_set import WatchSet

__all__ = [
    "Fingerprinter",
    "LocalStorage",
    "Poller",
    "Storage",
    "WatchSet",
    "WatchedEntry",
    "fingerprint",
    "format_label",
    "is_sharing_violation",
]
