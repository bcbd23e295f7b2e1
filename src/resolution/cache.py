"""Run-scoped memo tables with single-flight semantics."""

from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Callable, Dict, Generic, Hashable, TypeVar

T = TypeVar("T")


class SingleFlightCache(Generic[T]):
    """Memoize one computation per key for the lifetime of the cache.

    Concurrent callers asking for the same key share a single computation:
    the first caller runs it, the others block on its result. A computation
    that raises is not memoized; every waiter sees the exception and a later
    call may try again.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[Hashable, Future] = {}
        self._computed = 0

    def get_or_compute(self, key: Hashable, compute: Callable[[], T]) -> T:
        """Return the cached value for ``key``, computing it at most once.

        Args:
            key: Cache key (usually a URL).
            compute: Zero-argument callable producing the value.

        Returns:
            The memoized value.
        """
        with self._lock:
            future = self._entries.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._entries[key] = future

        if not owner:
            return future.result()

        try:
            value = compute()
        except BaseException as exc:
            with self._lock:
                self._entries.pop(key, None)
            future.set_exception(exc)
            raise
        with self._lock:
            self._computed += 1
        future.set_result(value)
        return value

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            future = self._entries.get(key)
        return future is not None and future.done() and future.exception() is None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def computed(self) -> int:
        """Number of computations that actually ran."""
        with self._lock:
            return self._computed
