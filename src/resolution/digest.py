"""SHA-512 fingerprints with bounded hashing concurrency."""
from __future__ import annotations

import hashlib
import os
import threading
from typing import BinaryIO, Optional, Union

from constants import Constants

Digestible = Union[bytes, bytearray, memoryview, BinaryIO]


class DigestAlgorithmUnavailable(RuntimeError):
    """The configured hash algorithm is not provided by this interpreter."""

    def __init__(self, algorithm: str):
        super().__init__(f"Digest algorithm not available: {algorithm}")
        self.algorithm = algorithm


class DigestEngine:
    """Compute hex digests while capping how many run at once.

    Network concurrency is high, hashing is CPU bound; a bounded semaphore
    sized to the number of cores keeps the two apart.

    Args:
        algorithm: hashlib algorithm name, defaults to sha512.
        max_concurrency: number of simultaneous hash computations, defaults
            to ``os.cpu_count()``.

    Raises:
        DigestAlgorithmUnavailable: the algorithm cannot be instantiated.
    """

    def __init__(self, algorithm: str = Constants.DIGEST_ALGORITHM, max_concurrency: Optional[int] = None):
        try:
            hashlib.new(algorithm)
        except (ValueError, TypeError) as exc:
            raise DigestAlgorithmUnavailable(algorithm) from exc
        self.algorithm = algorithm
        self.max_concurrency = max_concurrency or os.cpu_count() or 1
        self._permits = threading.BoundedSemaphore(self.max_concurrency)

    def digest(self, data: Digestible) -> str:
        """Return the hex digest of a byte string or a readable binary stream."""
        with self._permits:
            hasher = hashlib.new(self.algorithm)
            if isinstance(data, (bytes, bytearray, memoryview)):
                hasher.update(data)
            else:
                for chunk in iter(lambda: data.read(Constants.DIGEST_CHUNK_SIZE), b""):
                    hasher.update(chunk)
            return hasher.hexdigest()
