"""Auto-reload subsystem: watches a host's files and re-applies them on change.

Lifecycle:
1. start(source) reads the source's (name, path) slots and watches each path
2. A Poller ticks the WatchSet on its own asyncio task
3. For every changed path, each slot pointing at it is re-set on the source
4. stop() halts the poller and releases every entry's toggle
"""

from __future__ import annotations

import contextlib
import time
from collections.abc import AsyncIterator, Callable
from typing import Any

from autoreload.config.schema import WatchConfig
from autoreload.errors import MisconfigurationError, SharingViolation
from autoreload.logging import get_logger
from autoreload.ports import RegistrationSource, ToggleHost
from autoreload.watching.fingerprint import Fingerprinter
from autoreload.watching.poller import Poller
from autoreload.watching.storage import LocalStorage, Storage
from autoreload.watching.watch_set import WatchSet

log = get_logger("reloader")


class AutoReloader:
    """Watches the files a host has registered and tells it when they change.

    Example:
        source = StaticRegistrationSource({"diffuse": "skin.png"})
        reloader = AutoReloader(toggles=MemoryToggleHost())

        async with reloader.watching(source):
            await asyncio.sleep(60)
    """

    def __init__(
        self,
        *,
        config: WatchConfig | None = None,
        storage: Storage | None = None,
        toggles: ToggleHost | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the subsystem. Nothing is watched until start().

        Args:
            config: Watch settings (intervals, defaults, hash algorithm).
            storage: Storage port (default: LocalStorage).
            toggles: Optional UI port, one toggle per watched file.
            clock: Monotonic time source for per-file throttling.
        """
        self._config = config or WatchConfig()
        self._storage = storage or LocalStorage()
        self._toggles = toggles
        self._clock = clock

        self._source: RegistrationSource | None = None
        self._fingerprinter: Fingerprinter | None = None
        self._watch_set: WatchSet | None = None
        self._poller: Poller | None = None

    @property
    def watch_set(self) -> WatchSet | None:
        return self._watch_set

    @property
    def poller(self) -> Poller | None:
        return self._poller

    def is_running(self) -> bool:
        return self._poller is not None and self._poller.is_running()

    def start(self, source: Any) -> bool:
        """Watch every non-empty path the source lists and start polling.

        Must be called from within an async context.

        Args:
            source: The host's RegistrationSource.

        Returns:
            True if polling started. On misconfiguration an error is logged,
            nothing is watched and False is returned.
        """
        if self.is_running():
            log.warning("AutoReloader already running")
            return False

        if self._watch_set is not None:
            # Poller ended without stop(), e.g. its task was cancelled
            log.debug("Releasing watches left by a poller that exited without stop()")
            self.stop()

        if not isinstance(source, RegistrationSource):
            log.error("Cannot watch %r: not a registration source", source)
            return False

        try:
            fingerprinter = Fingerprinter(self._config.algorithm)
        except ValueError as e:
            log.error("Unsupported fingerprint algorithm %r: %s", self._config.algorithm, e)
            return False

        watch_set = WatchSet(
            self._storage,
            fingerprinter,
            toggles=self._toggles,
            check_interval=self._config.check_interval,
            enabled_by_default=self._config.enabled_by_default,
            label_max_length=self._config.label_max_length,
            clock=self._clock,
        )

        try:
            for name, path in source.watch_targets():
                # Slot has no file assigned
                if not path:
                    continue
                watch_set.add(path)
        except Exception as e:
            log.error("Error reading watch targets from %r: %s", source, e)
            watch_set.remove_all()
            return False

        poller = Poller(watch_set, self._on_file_changed, self._config.poll_interval)

        self._source = source
        self._fingerprinter = fingerprinter
        self._watch_set = watch_set
        self._poller = poller

        try:
            poller.start()
        except RuntimeError:
            self.stop()
            raise

        log.info("Watching %d files", len(watch_set))
        return True

    def stop(self) -> None:
        """Stop polling and release every watched entry."""
        if self._poller is not None:
            self._poller.stop()

        watch_set = self._watch_set
        self._watch_set = None
        self._fingerprinter = None
        self._source = None
        if watch_set is not None:
            watch_set.remove_all()

    async def wait_stopped(self) -> None:
        """Wait for the last poller loop to exit."""
        if self._poller is not None:
            await self._poller.wait_stopped()

    @contextlib.asynccontextmanager
    async def watching(self, source: Any) -> AsyncIterator[AutoReloader]:
        """Run the subsystem for the duration of an ``async with`` block.

        Raises:
            MisconfigurationError: If start() refuses the source.
        """
        if not self.start(source):
            raise MisconfigurationError(f"Cannot watch {source!r}")
        try:
            yield self
        finally:
            self.stop()
            await self.wait_stopped()

    def _on_file_changed(self, path: str) -> None:
        """Re-set every source slot whose path is the changed file."""
        source = self._source
        if source is None:
            return

        log.info("File changed: %s", path)
        key = self._storage.normalize_path(path)

        for name, value in source.watch_targets():
            if not value or self._storage.normalize_path(value) != key:
                continue
            log.debug("Reloading slot %s", name)
            try:
                source.set_file_path(name, path)
            except SharingViolation:
                # External writer mid-write, picked up by a later change
                log.debug("Sharing violation reloading %s", path)
            except Exception as e:
                log.error("Error reloading %s for %s: %s", path, name, e)
