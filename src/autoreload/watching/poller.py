"""Polling loop that drives a WatchSet.

The poller sleeps for its interval, runs one pass over the watch set and
hands each changed path to a callback, until stopped. Stopping is
cooperative: the flag is checked once per tick, so a sleep or pass already
in progress completes before the loop exits.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING

from autoreload.config.schema import DEFAULT_POLL_INTERVAL
from autoreload.logging import get_logger

if TYPE_CHECKING:
    from autoreload.watching.watch_set import WatchSet

log = get_logger("poller")


class Poller:
    """Ticks a WatchSet at a fixed interval.

    Example:
        poller = Poller(watch_set, on_change=lambda path: print(path))
        poller.start()
        ...
        poller.stop()
        await poller.wait_stopped()
    """

    def __init__(
        self,
        watch_set: WatchSet,
        on_change: Callable[[str], None],
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        """Initialize the poller.

        Args:
            watch_set: Entries to check on every tick.
            on_change: Called synchronously with each changed path.
            interval: Seconds between ticks; negative values are made positive.
        """
        self._watch_set = watch_set
        self._on_change = on_change
        self._interval = abs(interval)

        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._task_generation = 0
        self._tick_count = 0
        # Bumped on every start so a loop left over from an earlier run exits
        self._generation = 0

    @property
    def interval(self) -> float:
        """Get the tick interval in seconds."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        self._interval = abs(value)

    @property
    def tick_count(self) -> int:
        """Ticks completed since the last start."""
        return self._tick_count

    @property
    def watch_set(self) -> WatchSet:
        return self._watch_set

    def is_running(self) -> bool:
        # A task cancelled before its first step never reaches the loop's finally
        task = self._task
        if task is not None and task.done() and self._task_generation == self._generation:
            return False
        return self._running

    def poll_once(self) -> list[str]:
        """Run one pass and dispatch the changed paths.

        Errors from the pass or from the callback are logged, never raised.

        Returns:
            Paths reported as changed by this pass.
        """
        try:
            changed = self._watch_set.tick()
        except Exception as e:
            log.error("Error during watch pass: %s", e)
            changed = []

        for path in changed:
            try:
                self._on_change(path)
            except Exception as e:
                log.error("Error in file change callback for %s: %s", path, e)

        self._tick_count += 1
        return changed

    async def _loop(self, generation: int) -> None:
        try:
            while self._running and generation == self._generation:
                await asyncio.sleep(self._interval)

                if not self._running or generation != self._generation:
                    break

                self.poll_once()
        finally:
            if generation == self._generation:
                self._running = False
            log.debug("Poller loop exited after %d ticks", self._tick_count)

    def _begin(self) -> int:
        self._running = True
        self._tick_count = 0
        self._generation += 1
        log.info("Poller started (interval: %.1fs, %d files)", self._interval, len(self._watch_set))
        return self._generation

    async def run(self) -> None:
        """Run the polling loop in the current task until stopped."""
        if self.is_running():
            log.warning("Poller already running")
            return
        await self._loop(self._begin())

    def start(self) -> asyncio.Task[None]:
        """Start the polling loop as a background task.

        Must be called from within an async context.

        Returns:
            The task running the loop.
        """
        task = self._task
        if self._running and task is not None and not task.done():
            log.warning("Poller already running")
            return task

        generation = self._begin()
        self._task = asyncio.create_task(self._loop(generation))
        self._task_generation = generation
        return self._task

    def stop(self) -> None:
        """Ask the loop to exit at the next tick boundary."""
        if self._running:
            log.info("Poller stopped")
        self._running = False

    async def wait_stopped(self) -> None:
        """Wait for the background loop started by start() to exit."""
        task = self._task
        if task is not None and not task.done():
            await task
