"""Ordered collection of watched entries."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING

from autoreload.config.schema import DEFAULT_CHECK_INTERVAL, DEFAULT_LABEL_MAX_LENGTH
from autoreload.logging import get_logger
from autoreload.watching.entry import WatchedEntry

if TYPE_CHECKING:
    from autoreload.ports import ToggleHost
    from autoreload.watching.fingerprint import Fingerprinter
    from autoreload.watching.storage import Storage

log = get_logger("watching")


class WatchSet:
    """Owns the watched entries and runs one detection pass over them.

    Entries are keyed by normalized path and kept in registration order.
    Registering a path that is already watched returns the existing entry,
    so a file shared by several host slots is read once per pass.

    Example:
        watch_set = WatchSet(LocalStorage(), Fingerprinter())
        watch_set.add("textures/skin.png").enabled = True
        for path in watch_set.tick():
            print(f"changed: {path}")
    """

    def __init__(
        self,
        storage: Storage,
        fingerprinter: Fingerprinter,
        *,
        toggles: ToggleHost | None = None,
        check_interval: float = DEFAULT_CHECK_INTERVAL,
        enabled_by_default: bool = False,
        label_max_length: int = DEFAULT_LABEL_MAX_LENGTH,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._storage = storage
        self._fingerprinter = fingerprinter
        self._toggles = toggles
        self._check_interval = check_interval
        self._enabled_by_default = enabled_by_default
        self._label_max_length = label_max_length
        self._clock = clock

        # normalized path -> entry, in registration order
        self._entries: dict[str, WatchedEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[WatchedEntry]:
        return iter(list(self._entries.values()))

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str):
            return False
        return self._storage.normalize_path(path) in self._entries

    @property
    def paths(self) -> list[str]:
        """Registered paths in registration order."""
        return [entry.path for entry in self._entries.values()]

    def get(self, path: str) -> WatchedEntry | None:
        return self._entries.get(self._storage.normalize_path(path))

    def add(self, path: str) -> WatchedEntry:
        """Start watching a path.

        Args:
            path: File path as known to the host.

        Returns:
            The new entry, or the existing one if the path is already watched.
        """
        key = self._storage.normalize_path(path)
        existing = self._entries.get(key)
        if existing is not None:
            log.debug("Already watching %s as %s", path, existing.path)
            return existing

        entry = WatchedEntry(
            path,
            self._storage,
            self._fingerprinter,
            enabled=self._enabled_by_default,
            check_interval=self._check_interval,
            clock=self._clock,
            toggles=self._toggles,
            label_max_length=self._label_max_length,
        )
        self._entries[entry.key] = entry
        log.debug("Watching %s", path)
        return entry

    def remove(self, path: str) -> bool:
        """Stop watching a path and release its toggle.

        Returns:
            True if the path was being watched.
        """
        entry = self._entries.pop(self._storage.normalize_path(path), None)
        if entry is None:
            return False
        entry.close()
        return True

    def remove_all(self) -> None:
        """Release every entry and clear the set.

        A failure releasing one entry is logged and does not stop the rest
        from being released.
        """
        entries = list(self._entries.values())
        self._entries.clear()
        for entry in entries:
            try:
                entry.close()
            except Exception as e:
                log.error("Error releasing watch for %s: %s", entry.path, e)

    def tick(self) -> list[str]:
        """Check every entry once.

        Returns:
            Paths of entries whose content changed, in registration order.
        """
        changed: list[str] = []
        for entry in list(self._entries.values()):
            try:
                if entry.has_changed():
                    changed.append(entry.path)
            except Exception as e:
                log.error("Error checking %s: %s", entry.path, e)
        return changed
