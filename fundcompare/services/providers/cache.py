# fundcompare/services/providers/cache.py
"""
Thread-safe bounded LRU cache with TTL for provider results.

Upstream series change at most once a day, so providers keep them for a few
minutes to absorb bursts of comparisons against the same instruments.

Memory Safety:
    Bounded to max_size entries. When full, the least recently used entry is
    evicted to make room.

Clock:
    The clock is a zero-argument callable returning seconds (monotonic by
    default). Tests inject a manual clock instead of sleeping.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable

from fundcompare.services.constants import PROVIDER_CACHE_MAX_SIZE, PRICE_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class TTLCache:
    """
    Bounded LRU cache whose entries expire ttl_seconds after being set.

    Thread Safety:
        Uses threading.Lock; the comparison service reads it from worker threads.
    """

    def __init__(
            self,
            ttl_seconds: float = PRICE_CACHE_TTL_SECONDS,
            max_size: int = PROVIDER_CACHE_MAX_SIZE,
            clock: Clock = time.monotonic,
    ):
        """
        Initialize cache with TTL and max size.

        Args:
            ttl_seconds: Time-to-live in seconds
            max_size: Maximum number of entries
            clock: Returns the current time in seconds
        """
        self._cache: OrderedDict[Hashable, tuple[float, Any]] = OrderedDict()
        self._ttl = ttl_seconds
        self._max_size = max_size
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Any | None:
        """
        Get cached value if present and not expired.

        Implements LRU by moving accessed entries to the end.

        Returns:
            Cached value or None if not found/expired
        """
        with self._lock:
            if key in self._cache:
                stored_at, value = self._cache[key]
                if self._clock() - stored_at < self._ttl:
                    self._cache.move_to_end(key)
                    logger.debug(f"Cache hit for {key}")
                    return value

                del self._cache[key]
                logger.debug(f"Cache expired for {key}")

        return None

    def set(self, key: Hashable, value: Any) -> None:
        """
        Store a value with LRU eviction.

        If the cache is at max capacity, evicts the least recently used entry.
        """
        with self._lock:
            if key in self._cache:
                del self._cache[key]
            while len(self._cache) >= self._max_size:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
                logger.debug(f"Cache evicted {oldest_key} (LRU)")
            self._cache[key] = (self._clock(), value)
        logger.debug(f"Cached value for {key}")

    def invalidate(self, key: Hashable) -> bool:
        """
        Remove one entry.

        Returns:
            True if an entry was removed
        """
        with self._lock:
            return self._cache.pop(key, None) is not None

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
        logger.debug(f"Cleared {count} cache entries")

    def size(self) -> int:
        """Return current number of cached entries (expired ones included until read)."""
        with self._lock:
            return len(self._cache)
