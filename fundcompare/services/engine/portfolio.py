# fundcompare/services/engine/portfolio.py
"""
Multi-fund SIP analysis.

Splits one monthly amount across several funds by allocation percentage,
simulates each fund's SIP independently and aggregates:

    fund monthly amount = monthly_amount × allocation / 100
    portfolio XIRR      = XIRR over every fund's contributions plus one
                          terminal inflow per fund, all dated "now"
    portfolio risk      = capital-weighted score, uncorrelated volatility

A fund without usable price data fails the whole analysis; no return is
ever assumed for it.
"""

import logging
from collections.abc import Mapping
from datetime import date
from decimal import Decimal

from fundcompare.services.constants import (
    ALLOCATION_TOLERANCE,
    CATEGORY_KEYWORDS,
    DEFAULT_CATEGORY,
    HIGH_RETURN_THRESHOLD,
    LOW_RETURN_THRESHOLD,
    MAX_FUNDS_BEFORE_OVERLAP,
    MIN_CATEGORY_DIVERSITY,
    MIN_DAYS_FOR_ANNUALIZATION,
    ONE_HUNDRED,
    ZERO,
)
from fundcompare.services.engine.comparator import run_scenario
from fundcompare.services.engine.returns import (
    build_cash_flows,
    calculate_absolute_return,
    calculate_xirr,
)
from fundcompare.services.engine.risk import (
    RiskCalculator,
    VolatilityLookup,
    build_risk_profile,
)
from fundcompare.services.engine.types import (
    CashFlow,
    FundAllocation,
    FundSipResult,
    InstrumentRiskProfile,
    InvestmentMode,
    InvestmentRequest,
    PortfolioResult,
    PriceSeries,
    RiskLevel,
)
from fundcompare.services.exceptions import InsufficientDataError, InvalidRequestError

logger = logging.getLogger(__name__)


RECOMMENDATION_REDUCE_RISK = (
    "Consider reducing allocation to small-cap and sectoral funds to lower portfolio risk"
)
RECOMMENDATION_ADD_GROWTH = (
    "You could consider adding some mid-cap or small-cap funds for higher growth potential"
)
RECOMMENDATION_REVIEW_FUNDS = (
    "Consider reviewing fund selection - some funds may be underperforming"
)
RECOMMENDATION_BOOK_PROFITS = (
    "Excellent returns! Consider booking some profits and rebalancing"
)
RECOMMENDATION_DIVERSIFY = (
    "Consider diversifying across more fund categories (large-cap, mid-cap, debt)"
)
RECOMMENDATION_CONSOLIDATE = (
    "You have many funds - consider consolidating similar funds to reduce overlap"
)
RECOMMENDATION_BALANCED = (
    "Your portfolio looks well-balanced. Continue monitoring and rebalance periodically."
)


def categorize_scheme(scheme_name: str) -> str:
    """
    Derive a fund category from its scheme name.

    Example:
        >>> categorize_scheme("Axis Bluechip Fund - Direct Growth")
        'Large Cap'
    """
    name = scheme_name.lower()
    for keywords, category in CATEGORY_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def validate_allocations(holdings: list[FundAllocation]) -> None:
    """
    Check a multi-fund allocation.

    Raises:
        InvalidRequestError: Empty holdings, duplicate funds, an allocation
            outside (0, 100], or allocations not summing to 100
    """
    if not holdings:
        raise InvalidRequestError("At least one fund is required", field="funds")

    seen: set[str] = set()
    for holding in holdings:
        if holding.instrument_id in seen:
            raise InvalidRequestError(
                f"Fund {holding.instrument_id} appears more than once",
                field="funds",
            )
        seen.add(holding.instrument_id)

        if holding.allocation <= ZERO or holding.allocation > ONE_HUNDRED:
            raise InvalidRequestError(
                f"Allocation for {holding.instrument_id} must be in (0, 100], "
                f"got {holding.allocation}",
                field="allocation",
            )

    total = sum((h.allocation for h in holdings), ZERO)
    if abs(total - ONE_HUNDRED) > ALLOCATION_TOLERANCE:
        raise InvalidRequestError(
            f"Fund allocations must sum to 100%, got {total}%",
            field="allocation",
        )


def build_recommendations(
        risk_level: RiskLevel,
        annualized_return_pct: Decimal | None,
        categories: set[str],
        fund_count: int,
) -> list[str]:
    """
    Plain-language suggestions for a portfolio.

    Args:
        risk_level: Aggregate risk level
        annualized_return_pct: Portfolio XIRR (None skips return advice)
        categories: Distinct fund categories held
        fund_count: Number of funds held

    Returns:
        Non-empty list of recommendations
    """
    recommendations = []

    if risk_level == RiskLevel.VERY_HIGH:
        recommendations.append(RECOMMENDATION_REDUCE_RISK)
    elif risk_level == RiskLevel.LOW:
        recommendations.append(RECOMMENDATION_ADD_GROWTH)

    if annualized_return_pct is not None:
        if annualized_return_pct < LOW_RETURN_THRESHOLD:
            recommendations.append(RECOMMENDATION_REVIEW_FUNDS)
        elif annualized_return_pct > HIGH_RETURN_THRESHOLD:
            recommendations.append(RECOMMENDATION_BOOK_PROFITS)

    if len(categories) < MIN_CATEGORY_DIVERSITY:
        recommendations.append(RECOMMENDATION_DIVERSIFY)

    if fund_count > MAX_FUNDS_BEFORE_OVERLAP:
        recommendations.append(RECOMMENDATION_CONSOLIDATE)

    return recommendations or [RECOMMENDATION_BALANCED]


def analyze_sip_portfolio(
        holdings: list[FundAllocation],
        series_by_id: Mapping[str, PriceSeries],
        monthly_amount: Decimal,
        start_date: date,
        end_date: date,
        as_of: date,
        volatility_lookup: VolatilityLookup,
        risk_free_rate_pct: Decimal,
) -> PortfolioResult:
    """
    Simulate a multi-fund SIP and aggregate returns and risk.

    Args:
        holdings: Funds with allocation percentages summing to 100
        series_by_id: Price series per instrument id
        monthly_amount: Total amount invested every month
        start_date: First schedule month
        end_date: Last schedule month (inclusive)
        as_of: Valuation date ("now")
        volatility_lookup: Annualized volatility of a benchmark key
        risk_free_rate_pct: Risk-free rate for the Sharpe ratio

    Returns:
        PortfolioResult

    Raises:
        InvalidRequestError: Bad allocations, amount or window
        InsufficientDataError: A fund has no usable price data
        RiskDataUnavailableError: A fund's risk cannot be computed
    """
    validate_allocations(holdings)

    funds: list[FundSipResult] = []
    profiles: list[tuple[Decimal, InstrumentRiskProfile]] = []
    cash_flows: list[CashFlow] = []
    breakdown: dict[str, Decimal] = {}

    for holding in holdings:
        series = series_by_id.get(holding.instrument_id)
        if series is None:
            raise InsufficientDataError(
                f"No price data for fund {holding.instrument_id}",
                instrument_id=holding.instrument_id,
            )

        category = holding.category or categorize_scheme(holding.name or "")
        fund_amount = monthly_amount * holding.allocation / ONE_HUNDRED
        request = InvestmentRequest(
            mode=InvestmentMode.SIP,
            amount=fund_amount,
            start_date=start_date,
            end_date=end_date,
        )
        profile = build_risk_profile(category, volatility_lookup)

        try:
            scenario = run_scenario(
                "fund", holding.instrument_id, series, request, as_of,
                profile, risk_free_rate_pct,
            )
        except InsufficientDataError as e:
            raise InsufficientDataError(
                f"Fund {holding.instrument_id}: {e.message}",
                instrument_id=holding.instrument_id,
                requested_date=e.requested_date,
            ) from e

        funds.append(
            FundSipResult(
                instrument_id=holding.instrument_id,
                category=category,
                allocation=holding.allocation,
                monthly_amount=fund_amount,
                scenario=scenario,
            )
        )
        profiles.append((scenario.invested, profile))
        cash_flows.extend(build_cash_flows(scenario.simulation, as_of))
        breakdown[category] = breakdown.get(category, ZERO) + holding.allocation

    total_invested = sum((f.scenario.invested for f in funds), ZERO)
    current_value = sum((f.scenario.current_value for f in funds), ZERO)
    absolute_return, absolute_return_pct = calculate_absolute_return(total_invested, current_value)

    first_contribution = min(
        c.date for f in funds for c in f.scenario.simulation.contributions
    )
    annualized = None
    approximate = False
    if (as_of - first_contribution).days >= MIN_DAYS_FOR_ANNUALIZATION:
        xirr = calculate_xirr(cash_flows)
        annualized = xirr.rate_pct
        approximate = xirr.approximate

    risk = RiskCalculator.for_portfolio(profiles, annualized, risk_free_rate_pct)

    logger.debug(
        f"Portfolio of {len(funds)} fund(s): invested={total_invested:.2f}, "
        f"value={current_value:.2f}, risk={risk.risk_level.value}"
    )

    return PortfolioResult(
        total_invested=total_invested,
        current_value=current_value,
        absolute_return=absolute_return,
        absolute_return_pct=absolute_return_pct,
        annualized_return_pct=annualized,
        approximate=approximate,
        risk=risk,
        funds=funds,
        category_breakdown=breakdown,
        recommendations=build_recommendations(
            risk.risk_level, annualized, set(breakdown), len(funds)
        ),
    )
