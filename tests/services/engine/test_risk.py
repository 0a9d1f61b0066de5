# tests/services/engine/test_risk.py
"""
Unit tests for risk calculations.

Test Coverage:
- calculate_daily_returns / calculate_volatility: sample stdev × √252
- calculate_max_drawdown: peak-to-trough decline
- calculate_benchmark_stats: minimum observations, annualization rule
- volatility_to_risk_score / apply_category_adjustment / risk_level_for_score
- build_risk_profile: category resolution and lookup failures
- aggregate_risk_score / portfolio_volatility: capital weighting
- calculate_sharpe_ratio
- RiskCalculator
"""

from datetime import date
from decimal import Decimal

import pytest

from fundcompare.services.engine.risk import (
    RiskCalculator,
    aggregate_risk_score,
    apply_category_adjustment,
    build_risk_profile,
    calculate_benchmark_stats,
    calculate_daily_returns,
    calculate_max_drawdown,
    calculate_sharpe_ratio,
    calculate_volatility,
    portfolio_volatility,
    risk_level_for_score,
    volatility_to_risk_score,
)
from fundcompare.services.engine.types import InstrumentRiskProfile, RiskLevel
from fundcompare.services.exceptions import (
    InsufficientDataError,
    RiskDataUnavailableError,
    UpstreamDataError,
)
from tests.conftest import make_series, monthly_series


def _fail_lookup(key: str) -> Decimal:
    raise AssertionError(f"volatility lookup should not be called for {key}")


# =============================================================================
# VOLATILITY TESTS
# =============================================================================

class TestVolatility:
    """Tests for daily returns and volatility."""

    def test_daily_returns(self):
        series = make_series([
            (date(2024, 1, 1), 100),
            (date(2024, 1, 2), 110),
            (date(2024, 1, 3), 99),
        ])
        assert calculate_daily_returns(series) == [Decimal("0.1"), Decimal("-0.1")]

    def test_daily_volatility(self):
        """stdev(0.1, -0.1) = sqrt(0.02) = 14.1421%."""
        vol = calculate_volatility([Decimal("0.1"), Decimal("-0.1")], annualize=False)
        assert vol.quantize(Decimal("0.0001")) == Decimal("14.1421")

    def test_annualized_volatility(self):
        """sqrt(0.02) × sqrt(252) = sqrt(5.04) = 224.50%."""
        vol = calculate_volatility([Decimal("0.1"), Decimal("-0.1")])
        assert vol.quantize(Decimal("0.01")) == Decimal("224.50")

    def test_constant_returns_zero_volatility(self):
        vol = calculate_volatility([Decimal("0.01")] * 5)
        assert vol == Decimal("0")

    def test_single_return_insufficient(self):
        assert calculate_volatility([Decimal("0.01")]) is None


class TestMaxDrawdown:
    """Tests for calculate_max_drawdown."""

    def test_largest_decline(self):
        """Peak 120 -> trough 90 is 25%; the later 130 -> 117 is only 10%."""
        series = monthly_series(date(2024, 1, 1), [100, 120, 90, 130, 117])
        assert calculate_max_drawdown(series) == Decimal("25")

    def test_monotonic_rise_has_no_drawdown(self):
        series = monthly_series(date(2024, 1, 1), [100, 110, 120])
        assert calculate_max_drawdown(series) == Decimal("0")


class TestBenchmarkStats:
    """Tests for calculate_benchmark_stats."""

    def test_requires_three_observations(self):
        series = monthly_series(date(2024, 1, 1), [100, 110])
        with pytest.raises(InsufficientDataError):
            calculate_benchmark_stats("nifty50", "1y", series)

    def test_short_span_not_annualized(self):
        series = monthly_series(date(2024, 1, 1), [100, 110, 121])

        stats = calculate_benchmark_stats("nifty50", "6mo", series)

        assert stats.annualized_return_pct is None
        assert stats.total_return_pct == Decimal("21")
        assert stats.data_points == 3
        assert stats.start_date == date(2024, 1, 1)
        assert stats.end_date == date(2024, 3, 1)
        # constant 10% steps
        assert stats.annualized_volatility_pct == Decimal("0")

    def test_multi_year_span_annualized(self):
        series = make_series([
            (date(2021, 1, 1), 100),
            (date(2022, 1, 1), 105),
            (date(2023, 1, 1), 121),
        ])

        stats = calculate_benchmark_stats("nifty50", "2y", series)

        # 730 days = 2.0 years, 100 -> 121
        assert stats.annualized_return_pct.quantize(Decimal("0.01")) == Decimal("10.00")


# =============================================================================
# RISK SCORE TESTS
# =============================================================================

class TestRiskScore:
    """Tests for volatility banding, adjustments and levels."""

    @pytest.mark.parametrize("volatility, expected", [
        ("0", "1"),
        ("5", "1.5"),
        ("10", "2"),
        ("15", "3"),
        ("20", "4"),
        ("25", "5"),
        ("30", "6"),
        ("40", "8"),
        ("50", "10"),
        ("80", "10"),
    ])
    def test_volatility_bands(self, volatility, expected):
        assert volatility_to_risk_score(Decimal(volatility)) == Decimal(expected)

    def test_score_non_decreasing(self):
        scores = [volatility_to_risk_score(Decimal(v)) for v in range(0, 60)]
        assert scores == sorted(scores)

    def test_small_cap_adjustment_clamped(self):
        assert apply_category_adjustment(Decimal("9"), "Small Cap") == Decimal("10")

    def test_hybrid_adjustment_clamped_at_one(self):
        assert apply_category_adjustment(Decimal("1.5"), "Hybrid") == Decimal("1")

    def test_unadjusted_category(self):
        assert apply_category_adjustment(Decimal("3"), "Large Cap") == Decimal("3")

    @pytest.mark.parametrize("score, level", [
        ("1", RiskLevel.LOW),
        ("2", RiskLevel.LOW),
        ("2.01", RiskLevel.MODERATE),
        ("4", RiskLevel.MODERATE),
        ("6", RiskLevel.HIGH),
        ("6.5", RiskLevel.VERY_HIGH),
        ("10", RiskLevel.VERY_HIGH),
    ])
    def test_risk_levels(self, score, level):
        assert risk_level_for_score(Decimal(score)) == level


# =============================================================================
# RISK PROFILE TESTS
# =============================================================================

class TestBuildRiskProfile:
    """Tests for build_risk_profile."""

    def test_debt_is_unbenchmarked(self):
        """Debt never consults a benchmark."""
        profile = build_risk_profile("Debt", _fail_lookup)

        assert profile.benchmark_key is None
        assert profile.volatility_pct == Decimal("0")
        assert profile.risk_score == Decimal("1")

    def test_large_cap_uses_nifty50(self):
        calls = []

        def lookup(key):
            calls.append(key)
            return Decimal("15")

        profile = build_risk_profile("Large Cap", lookup)

        assert calls == ["nifty50"]
        assert profile.volatility_pct == Decimal("15")
        assert profile.risk_score == Decimal("3")

    def test_small_cap_adjusted_up(self):
        profile = build_risk_profile("Small Cap", lambda key: Decimal("25"))
        assert profile.benchmark_key == "niftysmallcap"
        assert profile.risk_score == Decimal("7")

    def test_unknown_category_raises(self):
        with pytest.raises(RiskDataUnavailableError) as exc_info:
            build_risk_profile("Crypto", _fail_lookup)
        assert exc_info.value.category == "Crypto"

    def test_lookup_failure_raises_risk_unavailable(self):
        """No placeholder volatility is ever substituted."""

        def lookup(key):
            raise UpstreamDataError("benchmarks", "offline")

        with pytest.raises(RiskDataUnavailableError) as exc_info:
            build_risk_profile("Mid Cap", lookup)

        assert exc_info.value.category == "Mid Cap"
        assert exc_info.value.benchmark_key == "niftymidcap"


# =============================================================================
# AGGREGATION & SHARPE TESTS
# =============================================================================

class TestAggregation:
    """Tests for capital-weighted aggregation."""

    def test_weighted_score(self):
        """25% at score 2, 75% at score 6 -> 5."""
        score = aggregate_risk_score([
            (Decimal("100"), Decimal("2")),
            (Decimal("300"), Decimal("6")),
        ])
        assert score == Decimal("5")

    def test_zero_capital_raises(self):
        with pytest.raises(InsufficientDataError):
            aggregate_risk_score([(Decimal("0"), Decimal("5"))])

    def test_uncorrelated_volatility(self):
        """Two equal halves at 20%: sqrt(10² + 10²) = 14.14%."""
        vol = portfolio_volatility([
            (Decimal("50"), Decimal("20")),
            (Decimal("50"), Decimal("20")),
        ])
        assert vol.quantize(Decimal("0.01")) == Decimal("14.14")


class TestSharpeRatio:
    """Tests for calculate_sharpe_ratio."""

    def test_positive_excess_return(self):
        sharpe = calculate_sharpe_ratio(Decimal("14.47"), Decimal("15"), Decimal("7.1"))
        assert sharpe.quantize(Decimal("0.0001")) == Decimal("0.4913")

    def test_zero_volatility_undefined(self):
        assert calculate_sharpe_ratio(Decimal("10"), Decimal("0"), Decimal("7.1")) is None

    def test_unknown_return_undefined(self):
        assert calculate_sharpe_ratio(None, Decimal("15"), Decimal("7.1")) is None


class TestRiskCalculator:
    """Tests for RiskCalculator."""

    def test_for_instrument(self):
        profile = InstrumentRiskProfile("Large Cap", "nifty50", Decimal("15"), Decimal("3"))

        risk = RiskCalculator.for_instrument(profile, Decimal("22.1"), Decimal("7.1"))

        assert risk.risk_level == RiskLevel.MODERATE
        assert risk.sharpe_ratio == Decimal("1")
        assert risk.risk_free_rate_pct == Decimal("7.1")

    def test_for_portfolio(self):
        large_cap = InstrumentRiskProfile("Large Cap", "nifty50", Decimal("15"), Decimal("3"))
        debt = InstrumentRiskProfile("Debt", None, Decimal("0"), Decimal("1"))

        risk = RiskCalculator.for_portfolio(
            [(Decimal("60000"), large_cap), (Decimal("40000"), debt)],
            None,
            Decimal("7.1"),
        )

        assert risk.risk_score == Decimal("2.2")
        assert risk.risk_level == RiskLevel.MODERATE
        assert risk.volatility_pct == Decimal("9")
        assert risk.sharpe_ratio is None
