"""Result cache: time-boxed memoization of timeline and seasonal results."""

from __future__ import annotations

import copy
import logging
import threading
import time
from typing import Any, Callable, Hashable, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60

_MISSING = object()


class ResultCache:
    """Thread-safe TTL cache keyed by ``(user_id, operation, params)``.

    Entries are ``key -> (data, stored_at)``. A read is a hit only while
    ``clock() - stored_at < ttl_seconds``; expired entries are dropped when
    read. Values are deep-copied on the way in and out, so callers may
    mutate what they get back. Writes overwrite. Concurrent identical misses are not coalesced:
    each caller computes and the last write wins.

    Args:
        ttl_seconds: Entry lifetime.
        clock: Monotonic time source in seconds. Tests inject a fake.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[tuple, tuple[Any, float]] = {}

    @staticmethod
    def make_key(user_id: str, operation: str, params: Hashable = ()) -> tuple:
        return (user_id, operation, params)

    def get(self, user_id: str, operation: str, params: Hashable = ()) -> Any:
        """Return the cached value, or None on a miss."""
        value = self._lookup(self.make_key(user_id, operation, params))
        return None if value is _MISSING else copy.deepcopy(value)

    def set(self, user_id: str, operation: str, params: Hashable, data: Any) -> None:
        with self._lock:
            self._entries[self.make_key(user_id, operation, params)] = (
                copy.deepcopy(data), self._clock(),
            )

    def get_or_compute(
        self, user_id: str, operation: str, params: Hashable, compute: Callable[[], Any]
    ) -> Any:
        """Return a fresh cached value or compute and store a new one.

        Exceptions from *compute* propagate and nothing is stored.
        """
        key = self.make_key(user_id, operation, params)
        value = self._lookup(key)
        if value is not _MISSING:
            logger.debug("Cache hit for %s/%s.", user_id, operation)
            return copy.deepcopy(value)

        logger.debug("Cache miss for %s/%s.", user_id, operation)
        value = compute()
        with self._lock:
            self._entries[key] = (copy.deepcopy(value), self._clock())
        return value

    def invalidate(self, user_id: Optional[str] = None) -> int:
        """Drop one user's entries, or every entry when no user is given.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            if user_id is None:
                removed = len(self._entries)
                self._entries.clear()
            else:
                doomed = [key for key in self._entries if key[0] == user_id]
                for key in doomed:
                    del self._entries[key]
                removed = len(doomed)

        logger.debug("Invalidated %d cache entries (user=%s).", removed, user_id or "*")
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _lookup(self, key: tuple) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return _MISSING
            data, stored_at = entry
            if self._clock() - stored_at < self._ttl:
                return data
            del self._entries[key]
            return _MISSING
