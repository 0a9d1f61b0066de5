# fundcompare/services/engine/returns.py
"""
Return calculation functions for the Return Calculation Engine.

This module contains pure functions for calculating return metrics:
- Absolute Return: current value minus capital contributed
- Compound Annual Growth Rate (CAGR): closed form, one cash-flow pair
- Extended IRR (XIRR): irregular dated cash flows (Newton-Raphson solver)

Results are percentages (14.47 = 14.47%).

Formulas:
    Absolute Return % = (Value - Contributed) / Contributed × 100

    CAGR % = ((Value / Contributed)^(1 / years) - 1) × 100

    XIRR solves: Σ CF_i / (1 + r)^((d_i - d_0) / 365) = 0

Which metric annualizes what:
    LUMP SUM -> CAGR (a single contribution and a single valuation)
    SIP      -> XIRR over every monthly contribution plus one terminal
                inflow equal to the current value, dated "now"

Precision Note (Decimal vs Float):
    CAGR uses Decimal.__pow__() with a float fallback for extreme inputs.
    The XIRR solver iterates in float (exponentials in every step) and
    converts the final rate back to Decimal with 8 decimal places.

Known limitation:
    Newton-Raphson is not provably convergent for pathological cash-flow
    patterns. After XIRR_MAX_ITERATIONS the last computed rate is returned
    as a best-effort estimate flagged approximate=True, never as exact.
"""

import decimal
import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from fundcompare.services.constants import (
    CALENDAR_DAYS_PER_YEAR,
    MIN_DAYS_FOR_ANNUALIZATION,
    ONE_HUNDRED,
    RATE_PRECISION,
    XIRR_INITIAL_GUESS,
    XIRR_MAX_ITERATIONS,
    XIRR_MAX_RATE,
    XIRR_MIN_RATE,
    XIRR_TOLERANCE,
    ZERO,
)
from fundcompare.services.engine.types import (
    CashFlow,
    InvestmentMode,
    ReturnMetrics,
    SimulationResult,
    XirrResult,
)

logger = logging.getLogger(__name__)


# =============================================================================
# ABSOLUTE RETURN
# =============================================================================

def calculate_absolute_return(
        total_contributed: Decimal,
        current_value: Decimal,
) -> tuple[Decimal, Decimal | None]:
    """
    Calculate absolute gain and its percentage of capital contributed.

    Args:
        total_contributed: Capital put in
        current_value: Value now

    Returns:
        (absolute_return, absolute_return_pct); pct is None if nothing was contributed
    """
    absolute_return = current_value - total_contributed

    if total_contributed == ZERO:
        return absolute_return, None

    return absolute_return, absolute_return / total_contributed * ONE_HUNDRED


# =============================================================================
# COMPOUND ANNUAL GROWTH RATE (CAGR)
# =============================================================================

def calculate_cagr(
        total_contributed: Decimal,
        current_value: Decimal,
        elapsed_years: Decimal | float,
) -> Decimal | None:
    """
    Calculate Compound Annual Growth Rate as a percentage.

    Formula: ((current_value / total_contributed)^(1 / elapsed_years) - 1) × 100

    Args:
        total_contributed: Capital put in
        current_value: Value now
        elapsed_years: Years between contribution and valuation

    Returns:
        CAGR in percent, or None if any input is non-positive

    Example:
        >>> calculate_cagr(Decimal("100000"), Decimal("150000"), 3)
        Decimal("14.47...")
    """
    years = Decimal(str(elapsed_years))

    if total_contributed <= ZERO or current_value <= ZERO or years <= ZERO:
        return None

    ratio = current_value / total_contributed
    exponent = Decimal("1") / years

    try:
        growth = ratio ** exponent
    except decimal.InvalidOperation:
        # Fallback to float for edge cases (extremely large/small values)
        growth = Decimal(str(float(ratio) ** float(exponent)))

    return (growth - Decimal("1")) * ONE_HUNDRED


# =============================================================================
# EXTENDED INTERNAL RATE OF RETURN (XIRR)
# =============================================================================

def calculate_xirr(
        cash_flows: list[CashFlow],
        max_iterations: int = XIRR_MAX_ITERATIONS,
        tolerance: float = XIRR_TOLERANCE,
        initial_guess: float = XIRR_INITIAL_GUESS,
) -> XirrResult:
    """
    Calculate Extended Internal Rate of Return as a percentage.

    Formula:
        Solve for r: Σ CF_i / (1 + r)^((d_i - d_0) / 365) = 0

    Uses Newton-Raphson starting at initial_guess, converging when
    |NPV| < tolerance.

    Args:
        cash_flows: Dated flows. Negative = contribution (outflow from the
                    investor), positive = final valuation (inflow).
                    The earliest date is the time origin.
        max_iterations: Solver iteration cap
        tolerance: Convergence threshold on |NPV|
        initial_guess: Starting rate (0.10 = 10%)

    Returns:
        XirrResult. With fewer than two flows the rate is 0 (no rate is
        determinable from a single point). If the cap is reached, the
        derivative vanishes, or the flows never change sign, the result is
        flagged approximate=True.

    Example:
        cash_flows = [
            CashFlow(date(2021, 1, 1), Decimal("-1000")),
            CashFlow(date(2023, 1, 1), Decimal("1210")),
        ]
        calculate_xirr(cash_flows).rate_pct  # ~10
    """
    if len(cash_flows) < 2:
        return XirrResult(rate_pct=ZERO, approximate=False, iterations=0)

    sorted_flows = sorted(cash_flows, key=lambda x: x.date)
    base_date = sorted_flows[0].date

    # (years since origin, amount)
    flows = [
        ((cf.date - base_date).days / float(CALENDAR_DAYS_PER_YEAR), float(cf.amount))
        for cf in sorted_flows
    ]

    has_positive = any(f[1] > 0 for f in flows)
    has_negative = any(f[1] < 0 for f in flows)

    if not (has_positive and has_negative):
        logger.warning("XIRR requires both positive and negative cash flows")
        return XirrResult(rate_pct=ZERO, approximate=True, iterations=0)

    rate = initial_guess
    iterations = 0

    for iteration in range(max_iterations):
        iterations = iteration + 1
        npv = 0.0
        npv_derivative = 0.0

        for years, amount in flows:
            discount = (1 + rate) ** years
            npv += amount / discount

            # d/dr [CF / (1+r)^t] = -t * CF / (1+r)^(t+1)
            if years > 0:
                npv_derivative -= years * amount / (discount * (1 + rate))

        if abs(npv) < tolerance:
            return XirrResult(
                rate_pct=_to_percent(rate),
                approximate=False,
                iterations=iterations,
            )

        if npv_derivative == 0:
            logger.warning(f"XIRR derivative vanished at rate {rate:.6f}; returning estimate")
            break

        rate = rate - npv / npv_derivative

        # Keep (1 + r) positive so fractional powers stay real
        if rate < XIRR_MIN_RATE:
            rate = XIRR_MIN_RATE
        elif rate > XIRR_MAX_RATE:
            rate = XIRR_MAX_RATE

    logger.warning(
        f"XIRR did not converge after {iterations} iterations; "
        f"returning approximate rate {rate:.6f}"
    )
    return XirrResult(rate_pct=_to_percent(rate), approximate=True, iterations=iterations)


def _to_percent(rate: float) -> Decimal:
    """Convert a float rate (0.1) to a Decimal percentage (10.00000000)."""
    return (Decimal(str(rate)) * ONE_HUNDRED).quantize(RATE_PRECISION, rounding=ROUND_HALF_UP)


def build_cash_flows(simulation: SimulationResult, as_of: date) -> list[CashFlow]:
    """
    Turn a simulation into XIRR cash flows.

    Every contribution becomes an outflow on its purchase date; the current
    value becomes one terminal inflow dated as_of.

    Args:
        simulation: Simulator output
        as_of: Valuation date ("now")

    Returns:
        Cash flows in chronological order
    """
    flows = [CashFlow(date=c.date, amount=-c.amount) for c in simulation.contributions]
    flows.append(CashFlow(date=as_of, amount=simulation.current_value))
    return sorted(flows, key=lambda x: x.date)


# =============================================================================
# COMBINED RETURNS CALCULATOR
# =============================================================================

class ReturnsCalculator:
    """
    Calculator for all return metrics of one simulation.

    Picks the annualization method from the simulation mode:
    CAGR for lump sums, XIRR for SIPs.
    """

    @staticmethod
    def calculate_all(simulation: SimulationResult, as_of: date) -> ReturnMetrics:
        """
        Calculate absolute and annualized returns.

        Annualized return is None when less than a year has elapsed between
        the first contribution and as_of.

        Args:
            simulation: Simulator output
            as_of: Valuation date ("now")

        Returns:
            ReturnMetrics
        """
        absolute_return, absolute_return_pct = calculate_absolute_return(
            simulation.total_contributed,
            simulation.current_value,
        )

        first_date = min(c.date for c in simulation.contributions)
        elapsed_days = (as_of - first_date).days

        is_sip = simulation.mode == InvestmentMode.SIP
        result = ReturnMetrics(
            absolute_return=absolute_return,
            absolute_return_pct=absolute_return_pct,
            annualized_method="xirr" if is_sip else "cagr",
            elapsed_days=elapsed_days,
        )

        if elapsed_days < MIN_DAYS_FOR_ANNUALIZATION:
            logger.debug(
                f"Not annualizing: {elapsed_days} days elapsed "
                f"(< {MIN_DAYS_FOR_ANNUALIZATION})"
            )
            return result

        if is_sip:
            xirr = calculate_xirr(build_cash_flows(simulation, as_of))
            result.annualized_return_pct = xirr.rate_pct
            result.approximate = xirr.approximate
        else:
            elapsed_years = Decimal(elapsed_days) / Decimal(CALENDAR_DAYS_PER_YEAR)
            result.annualized_return_pct = calculate_cagr(
                simulation.total_contributed,
                simulation.current_value,
                elapsed_years,
            )

        return result
