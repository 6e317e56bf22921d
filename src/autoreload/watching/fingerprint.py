"""Content fingerprints for change detection.

A fingerprint is an uppercase hex digest of a file's bytes. It only has to
tell two byte sequences apart cheaply; it is not a security boundary.
"""

from __future__ import annotations

import hashlib

from autoreload.config.schema import DEFAULT_ALGORITHM


class Fingerprinter:
    """Computes deterministic fingerprints of already-read bytes.

    The fingerprinter never touches the filesystem, so reading and hashing
    fail independently and can be tested independently.

    Example:
        fingerprint = Fingerprinter()
        fingerprint(b"hello")  # '5D41402ABC4B2A76B9719D911017C592'
    """

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM) -> None:
        """Initialize the fingerprinter.

        Args:
            algorithm: Any name accepted by hashlib.new().

        Raises:
            ValueError: If the algorithm is not available.
        """
        # Fail at construction, not on the first file read
        hashlib.new(algorithm, usedforsecurity=False)
        self._algorithm = algorithm

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def __call__(self, data: bytes) -> str:
        digest = hashlib.new(self._algorithm, data, usedforsecurity=False)
        return digest.hexdigest().upper()


def fingerprint(data: bytes, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Fingerprint bytes with a one-off Fingerprinter."""
    return Fingerprinter(algorithm)(data)
