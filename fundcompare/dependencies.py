# fundcompare/dependencies.py
"""
Dependency injection module for FastAPI services.

Provides singleton provider and service instances shared across all
requests, so caches and the fetch pool are shared too.

Services are lazily initialized on first use to avoid import-time side
effects (the dataset is only read when the first request needs it).

Usage in routers:
    from fundcompare.dependencies import get_comparison_service

    @router.post("/compare")
    def compare(service: ComparisonService = Depends(get_comparison_service)):
        ...
"""

import logging
from functools import lru_cache

from fundcompare.config import settings
from fundcompare.services.comparison_service import ComparisonService
from fundcompare.services.constants import PROVIDER_CACHE_MAX_SIZE
from fundcompare.services.providers import (
    CachingBenchmarkProvider,
    CachingPriceProvider,
    InMemoryBenchmarkProvider,
    InMemoryPriceProvider,
    StaticRiskFreeRateProvider,
    TTLCache,
    load_dataset,
)

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. get_data_sources (no deps)
# 2. get_price_provider / get_benchmark_provider (depend on data sources)
# 3. get_comparison_service (depends on both providers)


@lru_cache(maxsize=1)
def get_data_sources() -> tuple[InMemoryPriceProvider, InMemoryBenchmarkProvider]:
    """
    Get the in-memory price and benchmark stores, loaded from DATA_FILE.

    Raises:
        UpstreamDataError: If DATA_FILE is set but unreadable or malformed
    """
    prices = InMemoryPriceProvider()
    benchmarks = InMemoryBenchmarkProvider()

    if settings.data_file is not None:
        load_dataset(settings.data_file, prices, benchmarks)
    else:
        logger.warning("DATA_FILE not set, serving an empty dataset")

    return prices, benchmarks


@lru_cache(maxsize=1)
def get_price_provider() -> CachingPriceProvider:
    """Get the singleton, cached instrument price provider."""
    logger.debug("Initializing singleton CachingPriceProvider")
    prices, _ = get_data_sources()
    return CachingPriceProvider(
        prices,
        TTLCache(settings.provider_cache_ttl_seconds, PROVIDER_CACHE_MAX_SIZE),
    )


@lru_cache(maxsize=1)
def get_benchmark_provider() -> CachingBenchmarkProvider:
    """Get the singleton, cached benchmark provider."""
    logger.debug("Initializing singleton CachingBenchmarkProvider")
    _, benchmarks = get_data_sources()
    return CachingBenchmarkProvider(
        benchmarks,
        TTLCache(settings.benchmark_cache_ttl_seconds, PROVIDER_CACHE_MAX_SIZE),
    )


@lru_cache(maxsize=1)
def get_comparison_service() -> ComparisonService:
    """
    Get the singleton ComparisonService instance.

    Shares the provider caches and the fetch pool across all requests.
    """
    logger.debug("Initializing singleton ComparisonService")
    return ComparisonService(
        price_provider=get_price_provider(),
        benchmark_provider=get_benchmark_provider(),
        risk_free_provider=StaticRiskFreeRateProvider(settings.risk_free_rate_pct),
        fetch_timeout_seconds=settings.fetch_timeout_seconds,
        chart_max_points=settings.chart_max_points,
    )
