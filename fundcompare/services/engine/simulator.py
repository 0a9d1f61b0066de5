# fundcompare/services/engine/simulator.py
"""
Investment simulation for the Return Calculation Engine.

Replays an InvestmentRequest against a normalized price series:

LUMP SUM:
    price = price_on_or_before(series, start_date)
    units = amount / price

SIP (monthly):
    for each month in [start_date, end_date]:
        if the month has a representative price:
            units += amount / price
        else:
            skip the month (no retry, no estimate)

Valuation uses the last price on or before as_of ("value as of now"), not
the price on end_date. Without as_of the latest observation is used.
Observations dated after as_of are never bought and never used for
valuation.

Each result also carries a monthly value trajectory (units held × that
month's representative price) from the first purchase month to the last
month with data up to as_of, used by the comparator for charting.

All functions are pure: the series is never mutated and no state is kept
between calls.
"""

import logging
from datetime import date
from decimal import Decimal

from fundcompare.services.constants import ZERO
from fundcompare.services.engine.normalizer import (
    latest_point,
    monthly_observations,
    point_on_or_before,
)
from fundcompare.services.engine.types import (
    Contribution,
    InvestmentMode,
    InvestmentRequest,
    PricePoint,
    PriceSeries,
    SimulationResult,
    ValuePoint,
    YearMonth,
)
from fundcompare.services.exceptions import InsufficientDataError, InvalidRequestError
from fundcompare.utils.date_utils import format_year_month, iter_months, year_month

logger = logging.getLogger(__name__)


# =============================================================================
# VALIDATION
# =============================================================================

def validate_request(request: InvestmentRequest, as_of: date) -> InvestmentMode:
    """
    Check a request eagerly, before any simulation runs.

    Args:
        request: Request to validate
        as_of: Valuation date ("now")

    Returns:
        The parsed investment mode (aliases resolved)

    Raises:
        InvalidRequestError: On non-positive amount, unknown mode, missing or
            inverted SIP window, a SIP window ending after as_of, or a lump
            sum dated after as_of
    """
    mode = InvestmentMode.parse(request.mode)

    if request.amount is None or request.amount <= ZERO:
        raise InvalidRequestError(
            f"Investment amount must be greater than 0, got {request.amount}",
            field="amount",
        )

    if mode == InvestmentMode.SIP:
        if request.end_date is None:
            raise InvalidRequestError("end_date is required for SIP", field="end_date")
        if request.end_date <= request.start_date:
            raise InvalidRequestError(
                f"end_date ({request.end_date}) must be after start_date ({request.start_date}) for SIP",
                field="end_date",
            )
        if request.end_date > as_of:
            raise InvalidRequestError(
                f"SIP end_date ({request.end_date}) is after the valuation date ({as_of})",
                field="end_date",
            )
    elif request.start_date > as_of:
        raise InvalidRequestError(
            f"Lump sum start_date ({request.start_date}) is after the valuation date ({as_of})",
            field="start_date",
        )

    return mode


# =============================================================================
# LUMP SUM
# =============================================================================

def simulate_lump_sum(
        series: PriceSeries,
        amount: Decimal,
        investment_date: date,
        as_of: date | None = None,
) -> SimulationResult:
    """
    Simulate a single purchase.

    Args:
        series: Ascending price series
        amount: Amount invested
        investment_date: Purchase date (priced on or before, earliest fallback)
        as_of: Valuation date; None values at the latest observation

    Returns:
        SimulationResult valued at the last price on or before as_of

    Raises:
        InsufficientDataError: If the series has no observations
    """
    if not series:
        raise InsufficientDataError(
            f"No price data available for lump sum on {investment_date}",
            requested_date=investment_date,
        )

    purchase = point_on_or_before(series, investment_date)
    units = amount / purchase.price
    contribution = Contribution(
        date=investment_date,
        amount=amount,
        price=purchase.price,
        units=units,
    )

    return _build_result(
        series=series,
        mode=InvestmentMode.LUMP_SUM,
        contributions=[contribution],
        purchase_months={year_month(investment_date): contribution},
        skipped_months=[],
        as_of=as_of,
    )


# =============================================================================
# SIP
# =============================================================================

def simulate_sip(
        series: PriceSeries,
        amount: Decimal,
        start_date: date,
        end_date: date,
        as_of: date | None = None,
) -> SimulationResult:
    """
    Simulate a monthly contribution schedule.

    Months in [start_date, end_date] without a representative price are
    skipped and reported in skipped_months. So is a month whose
    representative observation is dated after as_of.

    Args:
        series: Ascending price series
        amount: Amount invested every month
        start_date: First schedule month
        end_date: Last schedule month (inclusive)
        as_of: Valuation date; None values at the latest observation

    Returns:
        SimulationResult valued at the last price on or before as_of

    Raises:
        InsufficientDataError: If no month in the schedule has a price
    """
    observations = _observations_until(series, as_of)

    contributions: list[Contribution] = []
    purchase_months: dict[YearMonth, Contribution] = {}
    skipped: list[YearMonth] = []

    for period in iter_months(start_date, end_date):
        point = observations.get(period)
        if point is None:
            skipped.append(period)
            continue

        contribution = Contribution(
            date=point.date,
            amount=amount,
            price=point.price,
            units=amount / point.price,
        )
        contributions.append(contribution)
        purchase_months[period] = contribution

    if not contributions:
        raise InsufficientDataError(
            f"No monthly prices between {format_year_month(year_month(start_date))} "
            f"and {format_year_month(year_month(end_date))}",
            requested_date=start_date,
        )

    if skipped:
        logger.debug(
            f"SIP skipped {len(skipped)} month(s) without data: "
            f"{', '.join(format_year_month(p) for p in skipped[:6])}"
            f"{'...' if len(skipped) > 6 else ''}"
        )

    return _build_result(
        series=series,
        mode=InvestmentMode.SIP,
        contributions=contributions,
        purchase_months=purchase_months,
        skipped_months=skipped,
        as_of=as_of,
    )


def simulate(
        series: PriceSeries,
        request: InvestmentRequest,
        as_of: date,
) -> SimulationResult:
    """
    Validate a request and dispatch to the matching simulator.

    Args:
        series: Ascending price series
        request: Investment request
        as_of: Valuation date ("now")

    Returns:
        SimulationResult
    """
    mode = validate_request(request, as_of)

    if mode == InvestmentMode.SIP:
        return simulate_sip(series, request.amount, request.start_date, request.end_date, as_of)

    return simulate_lump_sum(series, request.amount, request.start_date, as_of)


# =============================================================================
# HELPERS
# =============================================================================

def _build_result(
        series: PriceSeries,
        mode: InvestmentMode,
        contributions: list[Contribution],
        purchase_months: dict[YearMonth, Contribution],
        skipped_months: list[YearMonth],
        as_of: date | None,
) -> SimulationResult:
    """Value the holdings as of the valuation date and build the trajectory."""
    if as_of is None:
        valuation = latest_point(series)
    else:
        valuation = point_on_or_before(series, as_of)

    total_contributed = sum((c.amount for c in contributions), ZERO)
    units_held = sum((c.units for c in contributions), ZERO)

    return SimulationResult(
        mode=mode,
        total_contributed=total_contributed,
        units_held=units_held,
        valuation_price=valuation.price,
        valuation_date=valuation.date,
        current_value=units_held * valuation.price,
        contributions=contributions,
        skipped_months=skipped_months,
        trajectory=_build_trajectory(series, purchase_months, as_of),
    )


def _observations_until(series: PriceSeries, as_of: date | None) -> dict[YearMonth, PricePoint]:
    observations = monthly_observations(series)
    if as_of is None:
        return observations
    return {period: point for period, point in observations.items() if point.date <= as_of}


def _build_trajectory(
        series: PriceSeries,
        purchase_months: dict[YearMonth, Contribution],
        as_of: date | None,
) -> list[ValuePoint]:
    """
    Mark holdings to market at every month with data, from the first purchase on.

    Purchases dated in a month without data (lump sum priced by fallback)
    are attributed to the first later month that has data.
    """
    if not purchase_months:
        return []

    first_period = min(purchase_months)
    pending = sorted(purchase_months.items())

    trajectory: list[ValuePoint] = []
    units = ZERO
    invested = ZERO

    for period, point in _observations_until(series, as_of).items():
        while pending and pending[0][0] <= period:
            _, contribution = pending.pop(0)
            units += contribution.units
            invested += contribution.amount

        if period < first_period:
            continue

        trajectory.append(
            ValuePoint(
                period=period,
                date=point.date,
                invested=invested,
                units=units,
                value=units * point.price,
            )
        )

    return trajectory
