# tests/services/engine/test_returns.py
"""
Unit tests for return calculations.

These tests verify the pure calculation logic with known values that can
be verified by hand.

Test Coverage:
- calculate_absolute_return: Gain and percentage of capital
- calculate_cagr: Compound Annual Growth Rate
- calculate_xirr: Extended Internal Rate of Return
- build_cash_flows: Simulation -> XIRR flows
- ReturnsCalculator.calculate_all: Method selection and the one-year rule
"""

from datetime import date
from decimal import Decimal

import pytest

from fundcompare.services.engine.returns import (
    ReturnsCalculator,
    build_cash_flows,
    calculate_absolute_return,
    calculate_cagr,
    calculate_xirr,
)
from fundcompare.services.engine.simulator import simulate_lump_sum, simulate_sip
from fundcompare.services.engine.types import CashFlow
from tests.conftest import make_series, monthly_series


# =============================================================================
# ABSOLUTE RETURN TESTS
# =============================================================================

class TestAbsoluteReturn:
    """Tests for calculate_absolute_return."""

    def test_gain(self):
        absolute, pct = calculate_absolute_return(Decimal("100000"), Decimal("150000"))
        assert absolute == Decimal("50000")
        assert pct == Decimal("50")

    def test_loss(self):
        absolute, pct = calculate_absolute_return(Decimal("1000"), Decimal("800"))
        assert absolute == Decimal("-200")
        assert pct == Decimal("-20")

    def test_nothing_contributed(self):
        """Percentage is undefined without capital."""
        absolute, pct = calculate_absolute_return(Decimal("0"), Decimal("0"))
        assert absolute == Decimal("0")
        assert pct is None


# =============================================================================
# CAGR TESTS
# =============================================================================

class TestCAGR:
    """Tests for calculate_cagr."""

    def test_three_year_growth(self):
        """100000 -> 150000 over 3 years: 1.5^(1/3) - 1 = 14.47%."""
        result = calculate_cagr(Decimal("100000"), Decimal("150000"), 3)
        assert result.quantize(Decimal("0.01")) == Decimal("14.47")

    def test_one_year_equals_simple_return(self):
        result = calculate_cagr(Decimal("1000"), Decimal("1100"), 1)
        assert result.quantize(Decimal("0.0001")) == Decimal("10.0000")

    def test_decline(self):
        """1000 -> 810 over 2 years: 0.81^(1/2) - 1 = -10%."""
        result = calculate_cagr(Decimal("1000"), Decimal("810"), 2)
        assert result.quantize(Decimal("0.0001")) == Decimal("-10.0000")

    @pytest.mark.parametrize("contributed, value, years", [
        (Decimal("0"), Decimal("100"), 1),
        (Decimal("100"), Decimal("0"), 1),
        (Decimal("100"), Decimal("120"), 0),
    ])
    def test_non_positive_inputs_return_none(self, contributed, value, years):
        assert calculate_cagr(contributed, value, years) is None


# =============================================================================
# XIRR TESTS
# =============================================================================

class TestXIRR:
    """Tests for calculate_xirr."""

    def test_two_year_ten_percent(self):
        """-1000 then +1210 two years (730 days) later is exactly 10%."""
        flows = [
            CashFlow(date(2021, 1, 1), Decimal("-1000")),
            CashFlow(date(2023, 1, 1), Decimal("1210")),
        ]

        result = calculate_xirr(flows)

        assert abs(result.rate_pct - Decimal("10")) < Decimal("0.01")
        assert result.approximate is False

    def test_converges_from_other_guess(self):
        flows = [
            CashFlow(date(2021, 1, 1), Decimal("-1000")),
            CashFlow(date(2023, 1, 1), Decimal("1210")),
        ]

        result = calculate_xirr(flows, initial_guess=0.0)

        assert abs(result.rate_pct - Decimal("10")) < Decimal("0.01")
        assert result.iterations > 1

    def test_unordered_flows(self):
        """The earliest date is the origin regardless of input order."""
        flows = [
            CashFlow(date(2023, 1, 1), Decimal("1210")),
            CashFlow(date(2021, 1, 1), Decimal("-1000")),
        ]
        assert abs(calculate_xirr(flows).rate_pct - Decimal("10")) < Decimal("0.01")

    def test_loss(self):
        flows = [
            CashFlow(date(2021, 1, 1), Decimal("-1000")),
            CashFlow(date(2022, 1, 1), Decimal("900")),
        ]
        assert abs(calculate_xirr(flows).rate_pct - Decimal("-10")) < Decimal("0.01")

    def test_single_flow_is_zero(self):
        result = calculate_xirr([CashFlow(date(2021, 1, 1), Decimal("-1000"))])
        assert result.rate_pct == Decimal("0")
        assert result.approximate is False

    def test_no_sign_change_is_approximate(self):
        flows = [
            CashFlow(date(2021, 1, 1), Decimal("-1000")),
            CashFlow(date(2022, 1, 1), Decimal("-1000")),
        ]
        result = calculate_xirr(flows)
        assert result.rate_pct == Decimal("0")
        assert result.approximate is True

    def test_iteration_cap_flags_approximate(self):
        flows = [
            CashFlow(date(2021, 1, 1), Decimal("-1000")),
            CashFlow(date(2023, 1, 1), Decimal("1210")),
        ]

        result = calculate_xirr(flows, max_iterations=1, initial_guess=0.0)

        assert result.approximate is True
        assert result.iterations == 1


# =============================================================================
# CASH FLOW TESTS
# =============================================================================

class TestBuildCashFlows:
    """Tests for build_cash_flows."""

    def test_sip_flows(self):
        series = monthly_series(date(2021, 1, 1), [100, 110, 90])
        simulation = simulate_sip(series, Decimal("5000"), date(2021, 1, 1), date(2021, 3, 1))

        flows = build_cash_flows(simulation, date(2022, 6, 1))

        assert [f.amount for f in flows[:3]] == [Decimal("-5000")] * 3
        assert flows[-1].date == date(2022, 6, 1)
        assert flows[-1].amount == simulation.current_value


# =============================================================================
# COMBINED CALCULATOR TESTS
# =============================================================================

class TestReturnsCalculator:
    """Tests for ReturnsCalculator.calculate_all."""

    def test_lump_sum_uses_cagr(self):
        series = make_series([(date(2021, 1, 1), 100), (date(2024, 1, 1), 150)])
        simulation = simulate_lump_sum(series, Decimal("100000"), date(2021, 1, 1))

        # 2021-01-01 -> 2024-01-01 is 1095 days = 3.0 years
        result = ReturnsCalculator.calculate_all(simulation, date(2024, 1, 1))

        assert result.annualized_method == "cagr"
        assert result.absolute_return == Decimal("50000")
        assert result.absolute_return_pct == Decimal("50")
        assert result.annualized_return_pct.quantize(Decimal("0.01")) == Decimal("14.47")
        assert result.elapsed_days == 1095

    def test_under_one_year_not_annualized(self):
        series = make_series([(date(2023, 6, 1), 100), (date(2023, 12, 1), 110)])
        simulation = simulate_lump_sum(series, Decimal("1000"), date(2023, 6, 1))

        result = ReturnsCalculator.calculate_all(simulation, date(2024, 1, 1))

        assert result.annualized_return_pct is None
        assert result.absolute_return_pct == Decimal("10")

    def test_sip_uses_xirr(self):
        """Flat prices: value equals capital, XIRR is ~0."""
        series = monthly_series(date(2021, 1, 1), [100] * 24)
        simulation = simulate_sip(series, Decimal("1000"), date(2021, 1, 1), date(2021, 12, 1))

        result = ReturnsCalculator.calculate_all(simulation, date(2022, 12, 1))

        assert result.annualized_method == "xirr"
        assert abs(result.annualized_return_pct) < Decimal("0.01")
        assert result.approximate is False

    def test_sip_growth_is_positive(self):
        series = monthly_series(date(2021, 1, 1), [100 + 2 * i for i in range(24)])
        simulation = simulate_sip(series, Decimal("1000"), date(2021, 1, 1), date(2022, 12, 1))

        result = ReturnsCalculator.calculate_all(simulation, date(2023, 1, 1))

        assert result.annualized_return_pct > Decimal("0")
