# fundcompare/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- Providers satisfy protocols without inheriting from them
- Test doubles work without explicit inheritance
- The engine never depends on where series come from
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from fundcompare.services.engine.types import BenchmarkStats, PriceSeries


class PriceSeriesProvider(Protocol):
    """Interface required by ComparisonService for instrument prices."""

    def get_series(self, instrument_id: str) -> PriceSeries:
        """
        Return the full ascending price series of an instrument.

        Raises:
            InstrumentNotFoundError: If the instrument is unknown
            UpstreamDataError: If the source failed or returned malformed data
        """
        ...

    def get_name(self, instrument_id: str) -> str | None:
        """Return the instrument's display name, or None if the source has none."""
        ...


class BenchmarkDataProvider(Protocol):
    """Interface required by ComparisonService for benchmark indices."""

    def get_benchmark_series(self, key: str, period: str) -> PriceSeries:
        """Return index levels over a trailing period ("1y", "5y", "max", ...)."""
        ...

    def get_benchmark_stats(self, key: str, period: str) -> BenchmarkStats:
        """Return volatility, return and drawdown over a trailing period."""
        ...

    def keys(self) -> list[str]:
        """Return the benchmark keys this source serves."""
        ...


class RiskFreeRateProvider(Protocol):
    """Interface for the annualized risk-free rate used by Sharpe ratios."""

    def get_risk_free_rate(self) -> Decimal:
        """Return the rate in percent (7.1 = 7.1%)."""
        ...
