# fundcompare/services/providers/caching.py
"""
Caching wrappers around price and benchmark providers.

Each wrapper owns a TTLCache and delegates misses to the wrapped provider.
Errors are never cached: a failed fetch is retried by the next caller, not
by the wrapper.
"""

import logging

from fundcompare.services.engine.types import BenchmarkStats, PriceSeries
from fundcompare.services.protocols import BenchmarkDataProvider, PriceSeriesProvider
from fundcompare.services.providers.cache import TTLCache

logger = logging.getLogger(__name__)


class CachingPriceProvider:
    """PriceSeriesProvider that caches series per instrument."""

    def __init__(self, inner: PriceSeriesProvider, cache: TTLCache):
        self._inner = inner
        self._cache = cache

    def get_series(self, instrument_id: str) -> PriceSeries:
        key = ("series", instrument_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        series = self._inner.get_series(instrument_id)
        self._cache.set(key, series)
        return series

    def get_name(self, instrument_id: str) -> str | None:
        return self._inner.get_name(instrument_id)

    def invalidate(self, instrument_id: str) -> bool:
        return self._cache.invalidate(("series", instrument_id))


class CachingBenchmarkProvider:
    """BenchmarkDataProvider that caches series and stats per (key, period)."""

    def __init__(self, inner: BenchmarkDataProvider, cache: TTLCache):
        self._inner = inner
        self._cache = cache

    def get_benchmark_series(self, key: str, period: str) -> PriceSeries:
        cache_key = ("series", key.lower(), period)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        series = self._inner.get_benchmark_series(key, period)
        self._cache.set(cache_key, series)
        return series

    def get_benchmark_stats(self, key: str, period: str) -> BenchmarkStats:
        cache_key = ("stats", key.lower(), period)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        stats = self._inner.get_benchmark_stats(key, period)
        self._cache.set(cache_key, stats)
        logger.debug(f"Cached stats for {key} ({period})")
        return stats

    def keys(self) -> list[str]:
        return self._inner.keys()
