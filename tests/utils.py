"""Shared test utilities for autoreload tests."""

from __future__ import annotations

import asyncio
import posixpath
from collections.abc import Callable

from autoreload.errors import ReadError, SharingViolation


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeStorage:
    """In-memory Storage that can simulate locked and unreadable files.

    Paths normalize with posixpath.normpath, so "a/./b" and "a/b" are the
    same file.
    """

    def __init__(self) -> None:
        self.files: dict[str, bytes | BaseException] = {}
        self.reads: list[str] = []

    def normalize_path(self, path: str) -> str:
        return posixpath.normpath(path)

    def read_all_bytes(self, path: str) -> bytes:
        self.reads.append(path)
        value = self.files.get(path)
        if value is None:
            raise ReadError(path, FileNotFoundError(path))
        if isinstance(value, BaseException):
            raise value
        return value

    def write(self, path: str, data: bytes) -> None:
        self.files[self.normalize_path(path)] = data

    def lock(self, path: str) -> None:
        key = self.normalize_path(path)
        self.files[key] = SharingViolation(key, PermissionError(13, "Sharing violation"))

    def fail(self, path: str, error: BaseException) -> None:
        self.files[self.normalize_path(path)] = error


async def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll a predicate until it holds, failing after the timeout."""

    async def _wait() -> None:
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_wait(), timeout)
