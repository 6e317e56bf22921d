"""A single watched file and its change-detection state."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from autoreload.config.schema import DEFAULT_CHECK_INTERVAL, DEFAULT_LABEL_MAX_LENGTH
from autoreload.errors import SharingViolation
from autoreload.logging import get_logger

if TYPE_CHECKING:
    from autoreload.ports import ToggleHost
    from autoreload.watching.fingerprint import Fingerprinter
    from autoreload.watching.storage import Storage

log = get_logger("watching")


def format_label(path: str, max_length: int = DEFAULT_LABEL_MAX_LENGTH) -> str:
    """Shorten a path for a toggle label, keeping its trailing characters."""
    if len(path) < max_length:
        return path
    return "..." + path[-max_length:]


class WatchedEntry:
    """Tracks one file's fingerprint and decides whether it has changed.

    The first successful read only records a baseline. After that, a change
    is reported exactly once per content transition: the stored fingerprint
    is overwritten on every successful read, triggering or not.

    Reads are throttled to one per ``check_interval`` seconds regardless of
    how often ``has_changed()`` is called, so the poller can tick quickly
    while file reads stay bounded.
    """

    def __init__(
        self,
        path: str,
        storage: Storage,
        fingerprinter: Fingerprinter,
        *,
        enabled: bool = False,
        check_interval: float = DEFAULT_CHECK_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        toggles: ToggleHost | None = None,
        label_max_length: int = DEFAULT_LABEL_MAX_LENGTH,
    ) -> None:
        """Initialize the entry and acquire its toggle, if a toggle host is given.

        Args:
            path: Path as registered by the host; reported back on change.
            storage: Port used to normalize and read the file.
            fingerprinter: Shared fingerprint function.
            enabled: Initial enabled state.
            check_interval: Minimum seconds between two reads of this file.
            clock: Monotonic time source in seconds.
            toggles: Optional UI port; one toggle is created per entry.
            label_max_length: Maximum label length before truncation.
        """
        self._path = path
        self._key = storage.normalize_path(path)
        self._storage = storage
        self._fingerprinter = fingerprinter
        self._enabled = enabled
        self._check_interval = check_interval
        self._clock = clock

        self.last_fingerprint: str | None = None
        self.last_checked_at: float = clock()

        self._toggles = toggles
        self._toggle: Any = None
        if toggles is not None:
            self._toggle = toggles.create_toggle(
                enabled, format_label(path, label_max_length), self._on_toggle
            )

    @property
    def path(self) -> str:
        return self._path

    @property
    def key(self) -> str:
        """Normalized path used for reads and identity."""
        return self._key

    @property
    def check_interval(self) -> float:
        return self._check_interval

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = bool(value)

    @property
    def toggle(self) -> Any:
        """Handle returned by the toggle host, or None."""
        return self._toggle

    def _on_toggle(self, value: bool) -> None:
        self.enabled = value
        log.debug("Watch %s for %s", "enabled" if value else "disabled", self._path)

    def read_fingerprint(self) -> str:
        """Read the file and fingerprint its contents.

        Raises:
            SharingViolation: The file is locked by another writer.
            ReadError: The file could not be read.
        """
        return self._fingerprinter(self._storage.read_all_bytes(self._key))

    def has_changed(self) -> bool:
        """Check whether the file content changed since the last check.

        Returns False when disabled, when throttled, on the baseline read,
        and on any read failure. Never raises.
        """
        if not self._enabled:
            return False

        now = self._clock()
        if now < self.last_checked_at + self._check_interval:
            return False

        self.last_checked_at = now

        try:
            new_fingerprint = self.read_fingerprint()
        except SharingViolation:
            # External writer mid-write, retry next cycle
            log.debug("Sharing violation on %s, will retry", self._path)
            return False
        except Exception as e:
            log.error("Error checking %s: %s", self._path, e)
            return False

        if self.last_fingerprint is None:
            self.last_fingerprint = new_fingerprint
            log.debug("Baseline for %s: %s", self._path, new_fingerprint)
            return False

        changed = new_fingerprint != self.last_fingerprint
        self.last_fingerprint = new_fingerprint
        return changed

    def close(self) -> None:
        """Release the entry's toggle. Safe to call more than once."""
        toggle, self._toggle = self._toggle, None
        if toggle is not None and self._toggles is not None:
            self._toggles.remove_toggle(toggle)

    def __repr__(self) -> str:
        return (
            f"WatchedEntry(path={self._path!r}, enabled={self._enabled}, "
            f"fingerprint={self.last_fingerprint!r})"
        )
