# fundcompare/services/engine/normalizer.py
"""
Series normalization for the Return Calculation Engine.

Aligns a raw, irregularly-dated price series to the granularity a scenario
needs:
- price_on_or_before: nearest observation on or before a date (lump sum)
- monthly_representative: one price per calendar month (SIP)

All functions are pure and never mutate their input. Series are expected to
be ascending with unique dates; validate_series enforces that at the
provider boundary.

Fallback rule (price_on_or_before):
    If no observation exists on or before the requested date, the EARLIEST
    available price is used. This covers requests whose start predates the
    series and is intentional, not an error.
"""

import logging
from bisect import bisect_right
from datetime import date
from decimal import Decimal
from typing import Iterable

from fundcompare.services.engine.types import PricePoint, PriceSeries, YearMonth
from fundcompare.services.exceptions import InsufficientDataError, InvalidRequestError
from fundcompare.utils.date_utils import year_month

logger = logging.getLogger(__name__)


def validate_series(points: Iterable[PricePoint]) -> PriceSeries:
    """
    Validate and freeze a price series.

    Only ordering is checked here. Prices are already known to be positive:
    PricePoint.__post_init__ rejects zero and negative prices when each
    observation is built.

    Args:
        points: Price observations

    Returns:
        The observations as an immutable tuple

    Raises:
        InvalidRequestError: If dates are not strictly ascending (duplicates
            or unsorted input)
    """
    series = tuple(points)

    for previous, current in zip(series, series[1:]):
        if current.date == previous.date:
            raise InvalidRequestError(
                f"Duplicate price observation for {current.date}",
                field="series",
            )
        if current.date < previous.date:
            raise InvalidRequestError(
                f"Price series is not sorted: {current.date} follows {previous.date}",
                field="series",
            )

    return series


def price_on_or_before(series: PriceSeries, target_date: date) -> Decimal:
    """
    Return the latest price observed on or before target_date.

    Falls back to the earliest available price when the series starts
    after target_date.

    Args:
        series: Ascending price series
        target_date: Date to price

    Returns:
        Per-unit price

    Raises:
        InsufficientDataError: If the series is empty
    """
    return point_on_or_before(series, target_date).price


def point_on_or_before(series: PriceSeries, target_date: date) -> PricePoint:
    """Same as price_on_or_before, returning the whole observation."""
    if not series:
        raise InsufficientDataError(
            "Price series is empty",
            requested_date=target_date,
        )

    dates = [p.date for p in series]
    index = bisect_right(dates, target_date)

    if index == 0:
        logger.debug(
            f"No price on or before {target_date}; "
            f"falling back to earliest observation {series[0].date}"
        )
        return series[0]

    return series[index - 1]


def monthly_observations(series: PriceSeries) -> dict[YearMonth, PricePoint]:
    """
    Pick the earliest-dated observation of every calendar month present.

    Months without any observation have no entry.

    Args:
        series: Ascending price series

    Returns:
        Dict mapping (year, month) to that month's first observation,
        in chronological order
    """
    buckets: dict[YearMonth, PricePoint] = {}

    for point in series:
        key = year_month(point.date)
        existing = buckets.get(key)
        if existing is None or point.date < existing.date:
            buckets[key] = point

    return dict(sorted(buckets.items()))


def monthly_representative(series: PriceSeries) -> dict[YearMonth, Decimal]:
    """
    Price "as of the start of the month" for every month present.

    This is the canonical SIP purchase price.

    Args:
        series: Ascending price series

    Returns:
        Dict mapping (year, month) to the month's earliest price
    """
    return {
        period: point.price
        for period, point in monthly_observations(series).items()
    }


def latest_point(series: PriceSeries) -> PricePoint:
    """
    Return the most recent observation.

    Raises:
        InsufficientDataError: If the series is empty
    """
    if not series:
        raise InsufficientDataError("Price series is empty")
    return series[-1]


def latest_price(series: PriceSeries) -> Decimal:
    """Return the most recent price ("value as of now")."""
    return latest_point(series).price
