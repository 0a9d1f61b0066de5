# fundcompare/services/providers/__init__.py
"""
Provider layer: where price series come from.

    providers/
    ├── cache.py        # TTLCache (bounded LRU + TTL, injectable clock)
    ├── in_memory.py    # In-process price / benchmark / risk-free providers
    ├── caching.py      # TTLCache-backed wrappers
    └── dataset.py      # JSON dataset loader for the in-memory providers
"""

from fundcompare.services.providers.cache import TTLCache
from fundcompare.services.providers.caching import (
    CachingBenchmarkProvider,
    CachingPriceProvider,
)
from fundcompare.services.providers.dataset import load_dataset
from fundcompare.services.providers.in_memory import (
    InMemoryBenchmarkProvider,
    InMemoryPriceProvider,
    StaticRiskFreeRateProvider,
)

__all__ = [
    "TTLCache",
    "CachingPriceProvider",
    "CachingBenchmarkProvider",
    "InMemoryPriceProvider",
    "InMemoryBenchmarkProvider",
    "StaticRiskFreeRateProvider",
    "load_dataset",
]
