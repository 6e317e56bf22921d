"""Storage port used by watched entries to read file contents.

The port normalizes paths and classifies read failures. A file held open
exclusively by another writer is reported as SharingViolation; every other
failure is a ReadError. Callers decide on the error type, never on message
text.
"""

from __future__ import annotations

import errno
import os
from pathlib import Path
from typing import Protocol, runtime_checkable

from autoreload.errors import ReadError, SharingViolation

# ERROR_SHARING_VIOLATION, ERROR_LOCK_VIOLATION
_SHARING_WINERRORS = frozenset({32, 33})

_SHARING_ERRNOS = frozenset(
    code
    for code in (
        getattr(errno, "EBUSY", None),
        getattr(errno, "ETXTBSY", None),
        getattr(errno, "EAGAIN", None),
    )
    if code is not None
)


@runtime_checkable
class Storage(Protocol):
    """Reads whole files by normalized path."""

    def normalize_path(self, path: str) -> str:
        """Resolve relative or aliased forms to a canonical path."""
        ...

    def read_all_bytes(self, path: str) -> bytes:
        """Read a file's full contents.

        Raises:
            SharingViolation: Another process holds the file locked.
            ReadError: Any other failure.
        """
        ...


def is_sharing_violation(error: OSError) -> bool:
    """Check whether an OSError means the file is locked by another writer."""
    winerror = getattr(error, "winerror", None)
    if winerror is not None:
        return winerror in _SHARING_WINERRORS
    return error.errno in _SHARING_ERRNOS


class LocalStorage:
    """Storage backed by the local filesystem."""

    def __init__(self, root: str | Path | None = None) -> None:
        """Initialize local storage.

        Args:
            root: Directory relative paths are resolved against
                  (default: the current working directory at call time).
        """
        self._root = Path(root) if root is not None else None

    def normalize_path(self, path: str) -> str:
        p = Path(path).expanduser()
        if not p.is_absolute():
            p = (self._root or Path.cwd()) / p
        return os.path.normcase(os.path.realpath(p))

    def read_all_bytes(self, path: str) -> bytes:
        try:
            return Path(path).read_bytes()
        except OSError as e:
            if is_sharing_violation(e):
                raise SharingViolation(path, e) from e
            raise ReadError(path, e) from e
