# tests/services/test_comparison_service.py
"""
Tests for ComparisonService orchestration.

Uses in-memory providers; slow and failing providers are simulated with
small wrappers.

Test Coverage:
- Validation before any fetch
- Primary fetch failures propagate (not found, timeout, unexpected errors)
- Benchmark failures degrade to a warning
- Risk metrics from category metadata
- Correlation ID reaches worker threads
- Multi-fund SIP analysis and benchmark stats
- Fund details and benchmark listing
- Timed-out fetches are abandoned, not interrupted
"""

import threading
import time
from datetime import date
from decimal import Decimal

import pytest

from fundcompare.services.comparison_service import ComparisonService
from fundcompare.services.constants import BENCHMARK_KEYS
from fundcompare.services.engine.types import (
    FundAllocation,
    InvestmentMode,
    InvestmentRequest,
    RiskLevel,
)
from fundcompare.services.exceptions import (
    InstrumentNotFoundError,
    InvalidRequestError,
    RiskDataUnavailableError,
    UpstreamDataError,
)
from fundcompare.services.providers import (
    CachingPriceProvider,
    StaticRiskFreeRateProvider,
    TTLCache,
)
from fundcompare.utils.context import clear_correlation_id, get_correlation_id, set_correlation_id
from tests.conftest import monthly_series


AS_OF = date(2024, 1, 1)
LUMP_SUM = InvestmentRequest(InvestmentMode.LUMP_SUM, Decimal("100000"), date(2021, 1, 1))


# =============================================================================
# TEST PROVIDERS
# =============================================================================

class RecordingPriceProvider:
    """Records requested ids and the correlation ID seen by the worker."""

    def __init__(self, inner):
        self.inner = inner
        self.requested: list[str] = []
        self.correlation_ids: list[str | None] = []
        self._lock = threading.Lock()

    def get_series(self, instrument_id):
        with self._lock:
            self.requested.append(instrument_id)
            self.correlation_ids.append(get_correlation_id())
        return self.inner.get_series(instrument_id)


class SlowPriceProvider:
    """Sleeps before serving one instrument."""

    def __init__(self, inner, slow_id, delay):
        self.inner = inner
        self.slow_id = slow_id
        self.delay = delay

    def get_series(self, instrument_id):
        if instrument_id == self.slow_id:
            time.sleep(self.delay)
        return self.inner.get_series(instrument_id)


class BlockingPriceProvider:
    """Blocks one instrument's fetch until released."""

    def __init__(self, inner, blocked_id):
        self.inner = inner
        self.blocked_id = blocked_id
        self.release = threading.Event()
        self.finished = threading.Event()

    def get_series(self, instrument_id):
        if instrument_id == self.blocked_id:
            self.release.wait(timeout=5)
            self.finished.set()
        return self.inner.get_series(instrument_id)


class BrokenPriceProvider:
    """Fails with a non-service exception."""

    def get_series(self, instrument_id):
        raise ConnectionError("connection reset")


class SlowBenchmarkProvider:
    """Benchmark provider whose series fetch is slow."""

    def __init__(self, inner, delay):
        self.inner = inner
        self.delay = delay

    def get_benchmark_series(self, key, period):
        time.sleep(self.delay)
        return self.inner.get_benchmark_series(key, period)

    def get_benchmark_stats(self, key, period):
        return self.inner.get_benchmark_stats(key, period)


@pytest.fixture
def service(price_provider, benchmark_provider):
    svc = ComparisonService(
        price_provider,
        benchmark_provider,
        StaticRiskFreeRateProvider(Decimal("7.1")),
    )
    yield svc
    svc.close()


# =============================================================================
# COMPARE
# =============================================================================

class TestCompare:
    """Tests for ComparisonService.compare."""

    def test_lump_sum(self, service):
        result = service.compare("fund_a", "fund_b", LUMP_SUM, as_of=AS_OF)

        assert result.current.instrument_id == "fund_a"
        assert result.comparison.instrument_id == "fund_b"
        assert result.difference == Decimal("50000")
        assert result.best_performer == "comparison"
        assert result.benchmark is None
        assert result.warnings == []

    def test_string_mode_accepted(self, service):
        request = InvestmentRequest("lumpsum", Decimal("100000"), date(2021, 1, 1))
        result = service.compare("fund_a", "fund_b", request, as_of=AS_OF)
        assert result.mode == InvestmentMode.LUMP_SUM

    def test_invalid_request_rejected_before_fetch(self, price_provider, benchmark_provider):
        recording = RecordingPriceProvider(price_provider)
        svc = ComparisonService(recording, benchmark_provider)
        request = InvestmentRequest(InvestmentMode.LUMP_SUM, Decimal("0"), date(2021, 1, 1))

        try:
            with pytest.raises(InvalidRequestError):
                svc.compare("fund_a", "fund_b", request, as_of=AS_OF)
        finally:
            svc.close()

        assert recording.requested == []

    def test_unknown_instrument_propagates(self, service):
        with pytest.raises(InstrumentNotFoundError):
            service.compare("fund_a", "missing", LUMP_SUM, as_of=AS_OF)

    def test_with_benchmark(self, service):
        result = service.compare("fund_a", "fund_b", LUMP_SUM, benchmark_key="nifty50", as_of=AS_OF)

        assert result.benchmark is not None
        assert result.benchmark.instrument_id == "nifty50"
        # 100 -> 100 × 1.01^36 = 143.08
        assert result.benchmark.current_value.quantize(Decimal("1")) == Decimal("143077")

    def test_unknown_benchmark_degrades_to_warning(self, service):
        result = service.compare("fund_a", "fund_b", LUMP_SUM, benchmark_key="sensex", as_of=AS_OF)

        assert result.benchmark is None
        assert len(result.warnings) == 1
        assert "sensex" in result.warnings[0]
        assert result.best_performer == "comparison"

    def test_benchmark_without_provider_warns(self, price_provider):
        svc = ComparisonService(price_provider)
        try:
            result = svc.compare("fund_a", "fund_b", LUMP_SUM, benchmark_key="nifty50", as_of=AS_OF)
        finally:
            svc.close()

        assert result.benchmark is None
        assert "no benchmark provider" in result.warnings[0]

    def test_categories_enable_risk(self, service):
        result = service.compare(
            "fund_a", "fund_b", LUMP_SUM,
            categories={"fund_a": "Large Cap", "fund_b": "Small Cap"},
            as_of=AS_OF,
        )

        assert result.current.risk is not None
        assert result.comparison.risk is not None
        assert result.current.risk.risk_free_rate_pct == Decimal("7.1")
        # Small Cap carries a +2 adjustment over its proxy benchmark
        assert result.comparison.risk.risk_score >= Decimal("3")

    def test_category_for_one_instrument_only(self, service):
        result = service.compare(
            "fund_a", "fund_b", LUMP_SUM,
            categories={"fund_b": "Debt"},
            as_of=AS_OF,
        )

        assert result.current.risk is None
        assert result.comparison.risk.risk_level == RiskLevel.LOW
        assert result.comparison.risk.sharpe_ratio is None

    def test_unknown_category_propagates(self, service):
        with pytest.raises(RiskDataUnavailableError):
            service.compare(
                "fund_a", "fund_b", LUMP_SUM,
                categories={"fund_a": "Crypto"},
                as_of=AS_OF,
            )

    def test_risk_without_benchmark_provider_raises(self, price_provider):
        svc = ComparisonService(price_provider)
        try:
            with pytest.raises(RiskDataUnavailableError) as exc_info:
                svc.compare(
                    "fund_a", "fund_b", LUMP_SUM,
                    categories={"fund_a": "Large Cap"},
                    as_of=AS_OF,
                )
        finally:
            svc.close()

        assert exc_info.value.category == "Large Cap"


# =============================================================================
# FAILURE HANDLING
# =============================================================================

class TestFetchFailures:
    """Timeouts and unexpected provider errors."""

    def test_primary_timeout(self, price_provider):
        slow = SlowPriceProvider(price_provider, "fund_b", delay=0.5)
        svc = ComparisonService(slow, fetch_timeout_seconds=0.05)

        try:
            with pytest.raises(UpstreamDataError, match="timed out"):
                svc.compare("fund_a", "fund_b", LUMP_SUM, as_of=AS_OF)
        finally:
            svc.close()

    def test_timed_out_fetch_keeps_its_worker(self, price_provider):
        """A timed-out fetch runs until the provider returns; then the pool recovers."""
        blocking = BlockingPriceProvider(price_provider, "fund_b")
        svc = ComparisonService(blocking, fetch_timeout_seconds=0.2, max_workers=2)

        try:
            with pytest.raises(UpstreamDataError, match="timed out"):
                svc.compare("fund_a", "fund_b", LUMP_SUM, as_of=AS_OF)
            assert not blocking.finished.is_set()

            blocking.release.set()
            assert blocking.finished.wait(timeout=2)

            result = svc.compare("fund_a", "fund_b", LUMP_SUM, as_of=AS_OF)
        finally:
            blocking.release.set()
            svc.close()

        assert result.best_performer == "comparison"

    def test_unexpected_error_wrapped(self):
        svc = ComparisonService(BrokenPriceProvider())

        try:
            with pytest.raises(UpstreamDataError) as exc_info:
                svc.compare("fund_a", "fund_b", LUMP_SUM, as_of=AS_OF)
        finally:
            svc.close()

        assert "connection reset" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_benchmark_timeout_degrades(self, price_provider, benchmark_provider):
        svc = ComparisonService(
            price_provider,
            SlowBenchmarkProvider(benchmark_provider, delay=0.5),
            fetch_timeout_seconds=0.1,
        )

        try:
            result = svc.compare("fund_a", "fund_b", LUMP_SUM, benchmark_key="nifty50", as_of=AS_OF)
        finally:
            svc.close()

        assert result.benchmark is None
        assert "timed out" in result.warnings[0]


class TestCorrelationPropagation:
    """Worker threads see the caller's correlation ID."""

    def test_correlation_id_reaches_fetch(self, price_provider):
        recording = RecordingPriceProvider(price_provider)
        svc = ComparisonService(recording)

        set_correlation_id("trace-123")
        try:
            svc.compare("fund_a", "fund_b", LUMP_SUM, as_of=AS_OF)
        finally:
            clear_correlation_id()
            svc.close()

        assert sorted(recording.requested) == ["fund_a", "fund_b"]
        assert recording.correlation_ids == ["trace-123", "trace-123"]


# =============================================================================
# PORTFOLIO & BENCHMARK STATS
# =============================================================================

class TestAnalyzePortfolio:
    """Tests for ComparisonService.analyze_portfolio."""

    def test_two_fund_sip(self, service):
        holdings = [
            FundAllocation("flat_a", Decimal("60"), category="Large Cap"),
            FundAllocation("flat_b", Decimal("40"), category="Debt"),
        ]

        result = service.analyze_portfolio(
            holdings, Decimal("10000"), date(2021, 1, 1), date(2021, 12, 1), as_of=date(2022, 12, 1),
        )

        assert result.total_invested == Decimal("120000")
        assert result.current_value == Decimal("120000")
        assert len(result.funds) == 2
        assert result.risk.risk_level in (RiskLevel.LOW, RiskLevel.MODERATE)

    def test_bad_allocation_rejected_before_fetch(self, price_provider):
        recording = RecordingPriceProvider(price_provider)
        svc = ComparisonService(recording)
        holdings = [FundAllocation("flat_a", Decimal("50"), category="Large Cap")]

        try:
            with pytest.raises(InvalidRequestError):
                svc.analyze_portfolio(
                    holdings, Decimal("10000"), date(2021, 1, 1), date(2021, 12, 1), as_of=date(2022, 12, 1),
                )
        finally:
            svc.close()

        assert recording.requested == []

    def test_unknown_fund_propagates(self, service):
        holdings = [
            FundAllocation("flat_a", Decimal("50"), category="Large Cap"),
            FundAllocation("missing", Decimal("50"), category="Debt"),
        ]

        with pytest.raises(InstrumentNotFoundError):
            service.analyze_portfolio(
                holdings, Decimal("10000"), date(2021, 1, 1), date(2021, 12, 1), as_of=date(2022, 12, 1),
            )


class TestBenchmarkStats:
    """Tests for ComparisonService.get_benchmark_stats."""

    def test_stats(self, service):
        stats = service.get_benchmark_stats("nifty50", "3y")

        assert stats.data_points == 37
        assert stats.annualized_return_pct.quantize(Decimal("0.01")) == Decimal("12.68")
        assert stats.max_drawdown_pct == Decimal("0")

    def test_no_provider(self, price_provider):
        svc = ComparisonService(price_provider)
        try:
            with pytest.raises(UpstreamDataError):
                svc.get_benchmark_stats("nifty50")
        finally:
            svc.close()


# =============================================================================
# CATALOG
# =============================================================================

class TestFundDetails:
    """Tests for ComparisonService.get_fund_details."""

    def test_details(self, service):
        details = service.get_fund_details("fund_b")

        assert details.name == "Nippon India Small Cap Fund"
        assert details.category == "Small Cap"
        assert details.latest_price == Decimal("200")
        assert details.latest_date == date(2024, 1, 1)
        assert details.observations == 2

    def test_unnamed_fund_has_no_category(self, service):
        details = service.get_fund_details("flat_b")

        assert details.name is None
        assert details.category is None
        assert details.observations == 24

    def test_unknown_fund(self, service):
        with pytest.raises(InstrumentNotFoundError):
            service.get_fund_details("missing")

    def test_through_caching_provider(self, price_provider, clock):
        cached = CachingPriceProvider(price_provider, TTLCache(ttl_seconds=60, clock=clock))
        svc = ComparisonService(cached)

        try:
            details = svc.get_fund_details("fund_a")
        finally:
            svc.close()

        assert details.category == "Large Cap"


class TestListBenchmarks:
    """Tests for ComparisonService.list_benchmarks."""

    def test_supported_keys_first(self, service, benchmark_provider):
        benchmark_provider.register("goldbees", monthly_series(date(2021, 1, 1), [100, 101, 102]))

        benchmarks = service.list_benchmarks()

        assert [b.key for b in benchmarks] == list(BENCHMARK_KEYS) + ["goldbees"]
        assert benchmarks[-1].name == "goldbees"
        assert benchmarks[-1].available is True

    def test_availability_follows_source(self, service):
        available = {b.key for b in service.list_benchmarks() if b.available}
        assert available == {"nifty50", "nifty500", "niftysmallcap"}

    def test_proxy_categories(self, service):
        benchmarks = {b.key: b for b in service.list_benchmarks()}

        assert benchmarks["niftymidcap"].proxy_for == ["Mid Cap"]
        assert "Flexi Cap" in benchmarks["nifty500"].proxy_for

    def test_no_provider_lists_nothing_available(self, price_provider):
        svc = ComparisonService(price_provider)
        try:
            benchmarks = svc.list_benchmarks()
        finally:
            svc.close()

        assert [b.key for b in benchmarks] == list(BENCHMARK_KEYS)
        assert not any(b.available for b in benchmarks)
