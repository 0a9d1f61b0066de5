# fundcompare/services/providers/in_memory.py
"""
In-process providers serving registered price series.

These back the HTTP app (loaded from a dataset file) and the tests. They
satisfy the protocols in fundcompare.services.protocols structurally.

Series are validated once at registration; readers get the same immutable
tuple, so concurrent comparisons never copy or lock.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import timedelta
from decimal import Decimal

from fundcompare.services.constants import BENCHMARK_PERIOD_DAYS
from fundcompare.services.engine.normalizer import validate_series
from fundcompare.services.engine.risk import calculate_benchmark_stats
from fundcompare.services.engine.types import BenchmarkStats, PricePoint, PriceSeries
from fundcompare.services.exceptions import (
    InstrumentNotFoundError,
    InvalidRequestError,
    UpstreamDataError,
)

logger = logging.getLogger(__name__)


class InMemoryPriceProvider:
    """Serves instrument price series registered in memory."""

    name = "in_memory_prices"

    def __init__(self, series: Mapping[str, Iterable[PricePoint]] | None = None):
        self._series: dict[str, PriceSeries] = {}
        self._names: dict[str, str] = {}
        for instrument_id, points in (series or {}).items():
            self.register(instrument_id, points)

    def register(
            self,
            instrument_id: str,
            points: Iterable[PricePoint],
            name: str | None = None,
    ) -> None:
        """
        Register (or replace) an instrument's series.

        Raises:
            InvalidRequestError: If the series is unsorted or has duplicate dates
        """
        self._series[instrument_id] = validate_series(points)
        if name:
            self._names[instrument_id] = name
        logger.debug(f"Registered {len(self._series[instrument_id])} prices for {instrument_id}")

    def get_series(self, instrument_id: str) -> PriceSeries:
        """
        Return an instrument's series.

        Raises:
            InstrumentNotFoundError: If nothing is registered under instrument_id
        """
        try:
            return self._series[instrument_id]
        except KeyError:
            raise InstrumentNotFoundError(instrument_id) from None

    def get_name(self, instrument_id: str) -> str | None:
        """Display name of an instrument, if one was registered."""
        return self._names.get(instrument_id)

    def instrument_ids(self) -> list[str]:
        return sorted(self._series)


class InMemoryBenchmarkProvider:
    """
    Serves benchmark index series registered in memory.

    Trailing periods are measured back from the LAST observation of each
    series, so results do not drift with the wall clock.
    """

    name = "in_memory_benchmarks"

    def __init__(self, series: Mapping[str, Iterable[PricePoint]] | None = None):
        self._series: dict[str, PriceSeries] = {}
        for key, points in (series or {}).items():
            self.register(key, points)

    def register(self, key: str, points: Iterable[PricePoint]) -> None:
        """Register (or replace) a benchmark's full series."""
        self._series[key.lower()] = validate_series(points)

    def keys(self) -> list[str]:
        return sorted(self._series)

    def get_benchmark_series(self, key: str, period: str) -> PriceSeries:
        """
        Return index levels over a trailing period.

        Raises:
            InvalidRequestError: If the period label is unknown
            UpstreamDataError: If the benchmark is not available
        """
        if period not in BENCHMARK_PERIOD_DAYS:
            raise InvalidRequestError(
                f"Unknown period '{period}'. Valid options: {', '.join(BENCHMARK_PERIOD_DAYS)}",
                field="period",
            )

        series = self._series.get(key.lower())
        if not series:
            raise UpstreamDataError(self.name, f"no data for benchmark '{key}'")

        days = BENCHMARK_PERIOD_DAYS[period]
        if days is None:
            return series

        cutoff = series[-1].date - timedelta(days=days)
        return tuple(p for p in series if p.date >= cutoff)

    def get_benchmark_stats(self, key: str, period: str) -> BenchmarkStats:
        """Derive statistics from the trailing-period series."""
        return calculate_benchmark_stats(key.lower(), period, self.get_benchmark_series(key, period))


class StaticRiskFreeRateProvider:
    """Returns a configured risk-free rate (percent)."""

    def __init__(self, rate_pct: Decimal):
        self._rate_pct = Decimal(str(rate_pct))

    def get_risk_free_rate(self) -> Decimal:
        return self._rate_pct
