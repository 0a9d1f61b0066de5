# fundcompare/utils/date_utils.py
"""
Date utility functions for the Fund Comparison engine.

Calendar-month arithmetic shared by the normalizer, the simulator and the
benchmark period lookups.

Usage:
    from fundcompare.utils.date_utils import iter_months

    for year, month in iter_months(date(2024, 1, 15), date(2024, 3, 1)):
        ...
"""

from datetime import date
from typing import Iterator

YearMonth = tuple[int, int]


def year_month(d: date) -> YearMonth:
    """Return the (year, month) bucket of a date."""
    return d.year, d.month


def add_months(period: YearMonth, months: int) -> YearMonth:
    """
    Shift a (year, month) bucket by a number of months.

    Example:
        >>> add_months((2024, 11), 3)
        (2025, 2)
    """
    index = period[0] * 12 + (period[1] - 1) + months
    return index // 12, index % 12 + 1


def iter_months(start_date: date, end_date: date) -> Iterator[YearMonth]:
    """
    Yield every calendar month from start_date to end_date, inclusive.

    Days are ignored: 2024-01-31 to 2024-02-01 yields January and February.

    Args:
        start_date: First date (its month is the first bucket)
        end_date: Last date (its month is the last bucket)

    Yields:
        (year, month) tuples in chronological order
    """
    current = year_month(start_date)
    last = year_month(end_date)

    while current <= last:
        yield current
        current = add_months(current, 1)


def months_between(start_date: date, end_date: date) -> int:
    """
    Number of calendar months in [start_date, end_date], inclusive.

    Returns 0 when end_date falls in an earlier month than start_date.
    """
    count = (end_date.year - start_date.year) * 12 + (end_date.month - start_date.month) + 1
    return max(count, 0)


def format_year_month(period: YearMonth) -> str:
    """Format a (year, month) bucket as "YYYY-MM"."""
    return f"{period[0]:04d}-{period[1]:02d}"


def period_for_window(start_date: date, as_of: date) -> str:
    """
    Pick the smallest trailing benchmark period label covering a window.

    Args:
        start_date: Earliest date the caller needs
        as_of: Valuation date

    Returns:
        One of "1y", "2y", "3y", "5y", "10y" or "max"
    """
    days = (as_of - start_date).days
    for label, span in (("1y", 365), ("2y", 730), ("3y", 1095), ("5y", 1825), ("10y", 3650)):
        if days <= span:
            return label
    return "max"
