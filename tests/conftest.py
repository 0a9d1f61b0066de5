# tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Environment defaults (test mode, rate limiting off) set before any import
- Price series builders
- In-memory provider fixtures
- A controllable clock for cache tests
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import date
from decimal import Decimal

import pytest

from fundcompare.services.engine.types import PricePoint, PriceSeries
from fundcompare.services.providers import (
    InMemoryBenchmarkProvider,
    InMemoryPriceProvider,
)
from fundcompare.utils.date_utils import add_months


# =============================================================================
# SERIES BUILDERS
# =============================================================================

def make_series(rows: list[tuple[date, str | int]]) -> PriceSeries:
    """Build a series from (date, price) rows given in ascending order."""
    return tuple(PricePoint(date=d, price=Decimal(str(p))) for d, p in rows)


def monthly_series(start: date, prices: list[str | int]) -> PriceSeries:
    """One observation on the first day of each consecutive month."""
    rows = []
    for i, price in enumerate(prices):
        year, month = add_months((start.year, start.month), i)
        rows.append((date(year, month, 1), price))
    return make_series(rows)


# =============================================================================
# FAKE CLOCK
# =============================================================================

class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# PROVIDER FIXTURES
# =============================================================================

@pytest.fixture
def price_provider() -> InMemoryPriceProvider:
    """
    Two funds over three years (2021-01 .. 2024-01, monthly):
    - fund_a: 100 -> 150
    - fund_b: 100 -> 200
    """
    provider = InMemoryPriceProvider()
    provider.register(
        "fund_a",
        make_series([(date(2021, 1, 1), 100), (date(2024, 1, 1), 150)]),
        name="Axis Bluechip Fund - Direct Growth",
    )
    provider.register(
        "fund_b",
        make_series([(date(2021, 1, 1), 100), (date(2024, 1, 1), 200)]),
        name="Nippon India Small Cap Fund",
    )
    provider.register("flat_a", monthly_series(date(2021, 1, 1), [100] * 24))
    provider.register("flat_b", monthly_series(date(2021, 1, 1), [10] * 24))
    return provider


@pytest.fixture
def benchmark_provider() -> InMemoryBenchmarkProvider:
    """
    nifty50: 2021-01 .. 2024-01 monthly, rising 1% a month.
    niftysmallcap, nifty500: same span, alternating 100 and 110.
    """
    provider = InMemoryBenchmarkProvider()

    rising = [Decimal("100") * Decimal("1.01") ** i for i in range(37)]
    provider.register("nifty50", monthly_series(date(2021, 1, 1), rising))

    choppy = [100 if i % 2 == 0 else 110 for i in range(37)]
    provider.register("niftysmallcap", monthly_series(date(2021, 1, 1), choppy))
    provider.register("nifty500", monthly_series(date(2021, 1, 1), choppy))
    return provider
