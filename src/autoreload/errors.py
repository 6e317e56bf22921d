"""Error taxonomy for autoreload.

Storage failures are classified once, at the storage boundary, so callers
never need to inspect error messages to tell a transient lock apart from a
real read failure.
"""

from __future__ import annotations


class AutoReloadError(Exception):
    """Base class for all autoreload errors."""


class StorageError(AutoReloadError):
    """A file could not be read from storage."""

    def __init__(self, path: str, cause: BaseException | None = None) -> None:
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{path}{detail}")


class SharingViolation(StorageError):
    """Another process holds the file locked, usually mid-write.

    Expected during normal operation and retried on the next poll.
    """


class ReadError(StorageError):
    """Any storage failure that is not a sharing violation."""


class MisconfigurationError(AutoReloadError):
    """The subsystem was wired to a host that cannot be watched."""
