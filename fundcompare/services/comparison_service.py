# fundcompare/services/comparison_service.py
"""
Comparison orchestration.

ComparisonService is the entry point above the engine:
1. Validates the request before any I/O
2. Fetches the current, comparison and benchmark series concurrently
3. Resolves risk inputs from category metadata (benchmark volatility proxy)
4. Delegates every calculation to the pure engine

Failure policy:
    - Current / comparison fetch failures propagate (no result without both)
    - Benchmark fetch failure or timeout degrades to a two-way comparison:
      benchmark = None plus a warning
    - Risk lookups never degrade; RiskDataUnavailableError propagates
    - Nothing is retried here

Known limitation:
    A timed-out fetch is abandoned, not stopped. Future.cancel() only
    removes fetches that have not started, so a provider call that hangs
    keeps its pool worker until it returns. With FETCH_MAX_WORKERS hung
    calls every later fetch queues and times out. Providers that do I/O
    must enforce their own deadline.

The service holds no per-request state; one instance serves all requests.
"""

import logging
from collections.abc import Mapping
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from datetime import date
from decimal import Decimal

from fundcompare.services.constants import (
    BENCHMARK_KEYS,
    BENCHMARK_NAMES,
    CATEGORY_BENCHMARKS,
    CHART_MAX_POINTS,
    DEFAULT_RISK_FREE_RATE_PCT,
    FETCH_MAX_WORKERS,
    FETCH_TIMEOUT_SECONDS,
    RISK_VOLATILITY_PERIOD,
)
from fundcompare.services.engine.comparator import compare_scenarios
from fundcompare.services.engine.normalizer import latest_point
from fundcompare.services.engine.portfolio import (
    analyze_sip_portfolio,
    categorize_scheme,
    validate_allocations,
)
from fundcompare.services.engine.risk import build_risk_profile
from fundcompare.services.engine.simulator import validate_request
from fundcompare.services.engine.types import (
    BenchmarkInfo,
    BenchmarkStats,
    ComparisonResult,
    FundAllocation,
    FundDetails,
    InstrumentRiskProfile,
    InvestmentMode,
    InvestmentRequest,
    PortfolioResult,
    PriceSeries,
)
from fundcompare.services.exceptions import (
    ServiceError,
    UpstreamDataError,
)
from fundcompare.services.protocols import (
    BenchmarkDataProvider,
    PriceSeriesProvider,
    RiskFreeRateProvider,
)
from fundcompare.services.providers.in_memory import StaticRiskFreeRateProvider
from fundcompare.utils.context import run_in_context
from fundcompare.utils.date_utils import period_for_window

logger = logging.getLogger(__name__)


class ComparisonService:
    """
    Orchestrates fetching and calculation for comparisons and portfolios.

    Attributes:
        _prices: Instrument price provider
        _benchmarks: Benchmark provider (None disables benchmarks and risk)
        _risk_free: Risk-free rate provider
        _executor: Shared pool for concurrent fetches
    """

    def __init__(
            self,
            price_provider: PriceSeriesProvider,
            benchmark_provider: BenchmarkDataProvider | None = None,
            risk_free_provider: RiskFreeRateProvider | None = None,
            fetch_timeout_seconds: float = FETCH_TIMEOUT_SECONDS,
            chart_max_points: int = CHART_MAX_POINTS,
            max_workers: int = FETCH_MAX_WORKERS,
    ):
        self._prices = price_provider
        self._benchmarks = benchmark_provider
        self._risk_free = risk_free_provider or StaticRiskFreeRateProvider(DEFAULT_RISK_FREE_RATE_PCT)
        self._timeout = fetch_timeout_seconds
        self._chart_max_points = chart_max_points
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="fundcompare-fetch",
        )

        logger.info("ComparisonService initialized")

    def close(self) -> None:
        """Stop the fetch pool without waiting for abandoned fetches."""
        self._executor.shutdown(wait=False)

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def compare(
            self,
            current_id: str,
            comparison_id: str,
            request: InvestmentRequest,
            benchmark_key: str | None = None,
            categories: Mapping[str, str] | None = None,
            as_of: date | None = None,
    ) -> ComparisonResult:
        """
        Compare two instruments (and optionally a benchmark) over one request.

        Args:
            current_id: Instrument currently held
            comparison_id: Alternative instrument
            request: Lump sum or SIP request
            benchmark_key: Optional benchmark index key (e.g., "nifty50")
            categories: Instrument id -> category; enables risk metrics
            as_of: Valuation date, defaults to today

        Returns:
            ComparisonResult

        Raises:
            InvalidRequestError: Malformed request (before any fetch)
            InstrumentNotFoundError: Unknown current or comparison instrument
            UpstreamDataError: Primary fetch failed or timed out
            InsufficientDataError: A primary series has no usable data
            RiskDataUnavailableError: Categories given but risk cannot be computed
        """
        as_of = as_of or date.today()
        request = InvestmentRequest(
            mode=InvestmentMode.parse(request.mode),
            amount=request.amount,
            start_date=request.start_date,
            end_date=request.end_date,
        )
        validate_request(request, as_of)

        logger.info(
            f"Comparing {current_id} vs {comparison_id} "
            f"({request.mode.value}, amount={request.amount}, benchmark={benchmark_key or 'none'})"
        )

        current_future = self._submit(self._prices.get_series, current_id)
        comparison_future = self._submit(self._prices.get_series, comparison_id)
        benchmark_future = None
        if benchmark_key and self._benchmarks is not None:
            period = period_for_window(request.start_date, as_of)
            benchmark_future = self._submit(
                self._benchmarks.get_benchmark_series, benchmark_key, period
            )

        current_series = self._await_primary(current_future, current_id)
        comparison_series = self._await_primary(comparison_future, comparison_id)

        warnings: list[str] = []
        benchmark_series = None
        if benchmark_key:
            if benchmark_future is None:
                warnings.append(f"Benchmark '{benchmark_key}' unavailable: no benchmark provider configured")
            else:
                benchmark_series = self._await_benchmark(benchmark_future, benchmark_key, warnings)

        current_profile = comparison_profile = None
        risk_free_rate = None
        if categories:
            current_profile = self._profile_for(categories.get(current_id))
            comparison_profile = self._profile_for(categories.get(comparison_id))
            risk_free_rate = self._risk_free.get_risk_free_rate()

        result = compare_scenarios(
            current_series,
            comparison_series,
            request,
            as_of,
            benchmark_series=benchmark_series,
            current_id=current_id,
            comparison_id=comparison_id,
            benchmark_id=benchmark_key,
            current_profile=current_profile,
            comparison_profile=comparison_profile,
            risk_free_rate_pct=risk_free_rate,
            chart_max_points=self._chart_max_points,
        )
        result.warnings = warnings + result.warnings

        logger.info(
            f"Comparison complete: best={result.best_performer}, "
            f"difference={result.difference:.2f}"
        )
        return result

    def analyze_portfolio(
            self,
            holdings: list[FundAllocation],
            monthly_amount: Decimal,
            start_date: date,
            end_date: date,
            as_of: date | None = None,
    ) -> PortfolioResult:
        """
        Analyze a multi-fund SIP.

        Args:
            holdings: Funds with allocation percentages summing to 100
            monthly_amount: Total monthly amount split across funds
            start_date: First schedule month
            end_date: Last schedule month (inclusive)
            as_of: Valuation date, defaults to today

        Returns:
            PortfolioResult

        Raises:
            InvalidRequestError: Bad allocations, amount or window
            InstrumentNotFoundError / UpstreamDataError: A fund fetch failed
            InsufficientDataError: A fund has no usable data
            RiskDataUnavailableError: A fund's risk cannot be computed
        """
        as_of = as_of or date.today()
        validate_allocations(holdings)
        validate_request(
            InvestmentRequest(InvestmentMode.SIP, monthly_amount, start_date, end_date),
            as_of,
        )

        logger.info(
            f"Analyzing SIP portfolio of {len(holdings)} fund(s), "
            f"monthly={monthly_amount}, {start_date} to {end_date}"
        )

        futures = {
            h.instrument_id: self._submit(self._prices.get_series, h.instrument_id)
            for h in holdings
        }
        series_by_id = {
            instrument_id: self._await_primary(future, instrument_id)
            for instrument_id, future in futures.items()
        }

        result = analyze_sip_portfolio(
            holdings,
            series_by_id,
            monthly_amount,
            start_date,
            end_date,
            as_of,
            volatility_lookup=self._benchmark_volatility,
            risk_free_rate_pct=self._risk_free.get_risk_free_rate(),
        )

        logger.info(
            f"Portfolio analysis complete: value={result.current_value:.2f}, "
            f"risk={result.risk.risk_level.value}"
        )
        return result

    def get_benchmark_stats(self, key: str, period: str = RISK_VOLATILITY_PERIOD) -> BenchmarkStats:
        """
        Statistics of a benchmark over a trailing period.

        Raises:
            UpstreamDataError: No benchmark provider, or the benchmark is unavailable
            InsufficientDataError: Too few observations in the period
        """
        if self._benchmarks is None:
            raise UpstreamDataError("benchmarks", "no benchmark provider configured")
        return self._benchmarks.get_benchmark_stats(key, period)

    def get_fund_details(self, instrument_id: str) -> FundDetails:
        """
        Name, derived category and latest price of one instrument.

        The category is derived from the display name with the same keyword
        rules the portfolio analysis uses, so clients can pass it back in
        `categories` to get risk metrics.

        Raises:
            InstrumentNotFoundError: Unknown instrument
            UpstreamDataError: Fetch failed or timed out
        """
        series = self._await_primary(
            self._submit(self._prices.get_series, instrument_id), instrument_id
        )
        name = self._prices.get_name(instrument_id)
        latest = latest_point(series) if series else None

        return FundDetails(
            instrument_id=instrument_id,
            name=name,
            category=categorize_scheme(name) if name else None,
            latest_price=latest.price if latest else None,
            latest_date=latest.date if latest else None,
            observations=len(series),
        )

    def list_benchmarks(self) -> list[BenchmarkInfo]:
        """
        Supported benchmark keys plus any extra keys the source serves.

        Supported keys come first in their fixed order; `available` tells
        whether the configured source has data for each.
        """
        served = set(self._benchmarks.keys()) if self._benchmarks is not None else set()
        keys = list(BENCHMARK_KEYS) + sorted(served.difference(BENCHMARK_KEYS))

        return [
            BenchmarkInfo(
                key=key,
                name=BENCHMARK_NAMES.get(key, key),
                available=key in served,
                proxy_for=[
                    category for category, proxy in CATEGORY_BENCHMARKS.items()
                    if proxy == key
                ],
            )
            for key in keys
        ]

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _submit(self, fn, *args) -> Future:
        return self._executor.submit(run_in_context(fn), *args)

    def _await_primary(self, future: Future, instrument_id: str) -> PriceSeries:
        """Wait for a primary fetch; every failure propagates."""
        try:
            return future.result(timeout=self._timeout)
        except FutureTimeoutError as e:
            future.cancel()
            raise UpstreamDataError(
                "prices", f"fetch for {instrument_id} timed out after {self._timeout}s"
            ) from e
        except ServiceError:
            raise
        except Exception as e:
            raise UpstreamDataError("prices", f"fetch for {instrument_id} failed: {e}") from e

    def _await_benchmark(
            self,
            future: Future,
            benchmark_key: str,
            warnings: list[str],
    ) -> PriceSeries | None:
        """Wait for the benchmark fetch; failures become a warning."""
        try:
            return future.result(timeout=self._timeout)
        except FutureTimeoutError:
            future.cancel()
            reason = f"timed out after {self._timeout}s"
        except ServiceError as e:
            reason = e.message
        except Exception as e:
            reason = str(e)

        logger.warning(f"Benchmark {benchmark_key} unavailable, continuing without it: {reason}")
        warnings.append(f"Benchmark '{benchmark_key}' unavailable: {reason}")
        return None

    def _profile_for(self, category: str | None) -> InstrumentRiskProfile | None:
        if category is None:
            return None
        return build_risk_profile(category, self._benchmark_volatility)

    def _benchmark_volatility(self, benchmark_key: str) -> Decimal:
        """Trailing volatility of a proxy benchmark (percent)."""
        if self._benchmarks is None:
            raise UpstreamDataError("benchmarks", "no benchmark provider configured")
        stats = self._benchmarks.get_benchmark_stats(benchmark_key, RISK_VOLATILITY_PERIOD)
        return stats.annualized_volatility_pct
