# fundcompare/services/__init__.py
"""
Service layer for business logic.

Services have NO knowledge of HTTP: they raise domain exceptions that the
API layer maps to status codes. Providers are injected, so every service
is testable with in-memory data.

Usage:
    from fundcompare.services import ComparisonService
    from fundcompare.services import InMemoryPriceProvider
    from fundcompare.services import InstrumentNotFoundError

Architecture:
    services/
    ├── __init__.py                  # This file - main exports
    ├── exceptions.py                # Domain exceptions
    ├── constants.py                 # Calendar, solver, risk and cache constants
    ├── protocols.py                 # Provider interfaces (Protocol classes)
    ├── comparison_service.py        # Concurrent fetch + engine orchestration
    ├── engine/                      # Pure return calculation engine
    │   ├── types.py                 # Engine data types
    │   ├── normalizer.py            # Series alignment
    │   ├── simulator.py             # Lump sum / SIP replay
    │   ├── returns.py               # Absolute, CAGR, XIRR
    │   ├── risk.py                  # Volatility, risk score, Sharpe
    │   ├── comparator.py            # Scenario comparison
    │   └── portfolio.py             # Multi-fund SIP
    └── providers/                   # Where series come from
        ├── cache.py                 # TTL + LRU cache
        ├── caching.py               # Cached provider wrappers
        ├── in_memory.py             # In-process providers
        └── dataset.py               # JSON dataset loader
"""

# Exceptions
from fundcompare.services.exceptions import (
    # Base exceptions
    ServiceError,
    ValidationError,
    InvalidRequestError,
    NotFoundError,
    InstrumentNotFoundError,
    # Data availability
    InsufficientDataError,
    UpstreamDataError,
    # Calculation
    CalculationDegradedError,
    RiskDataUnavailableError,
)
# Providers
from fundcompare.services.providers import (
    CachingBenchmarkProvider,
    CachingPriceProvider,
    InMemoryBenchmarkProvider,
    InMemoryPriceProvider,
    StaticRiskFreeRateProvider,
    TTLCache,
    load_dataset,
)
# Comparison Service
from fundcompare.services.comparison_service import ComparisonService

__all__ = [
    # ==========================================================================
    # Services
    # ==========================================================================
    "ComparisonService",
    # Providers
    "InMemoryPriceProvider",
    "InMemoryBenchmarkProvider",
    "StaticRiskFreeRateProvider",
    "CachingPriceProvider",
    "CachingBenchmarkProvider",
    "TTLCache",
    "load_dataset",
    # ==========================================================================
    # Exceptions
    # ==========================================================================
    "ServiceError",
    "ValidationError",
    "InvalidRequestError",
    "NotFoundError",
    "InstrumentNotFoundError",
    "InsufficientDataError",
    "UpstreamDataError",
    "CalculationDegradedError",
    "RiskDataUnavailableError",
]
