"""Date parsing and period expansion utilities."""

from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from fuelmetrics.domain.entities import Period, PeriodSet


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2025-01-15", "January 15, 2025", ...) and the
    relative phrases "today", "yesterday", "this month", "last month",
    "this year" and "last year" (the latter four resolve to the first day of
    the period).

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "this month": today.replace(day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "this year": today.replace(month=1, day=1),
        "last year": today.replace(month=1, day=1) - relativedelta(years=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a named reporting period.

    Args:
        period: One of this-month, this-year, last-month, last-year

    Returns:
        Tuple of (start_date, end_date) for the specified period

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()

    if period == "this-month":
        return (today.replace(day=1), today)

    elif period == "this-year":
        return (today.replace(month=1, day=1), today)

    elif period == "last-month":
        start_date = (today - relativedelta(months=1)).replace(day=1)
        end_date = today.replace(day=1) - timedelta(days=1)
        return (start_date, end_date)

    elif period == "last-year":
        start_date = today.replace(month=1, day=1) - relativedelta(years=1)
        end_date = today.replace(month=1, day=1) - timedelta(days=1)
        return (start_date, end_date)

    else:
        raise ValueError(
            f"Unknown period: '{period}'. Supported periods: this-month, this-year, last-month, last-year"
        )


def last_day_of_month(year: int, month: int) -> date:
    """Return the last calendar day of a month."""
    return date(year, month, 1) + relativedelta(months=1) - timedelta(days=1)


def expand_periods(start_date: date, end_date: date) -> PeriodSet:
    """Expand a day range into the months it touches.

    Walks from the first day of ``start_date``'s month to the first day of
    ``end_date``'s month inclusive. Years and months are collected as two
    independent ordered lists without duplicates, so a range crossing a year
    boundary with partial months can match more rows than the exact pairs
    would. An inverted range expands to an empty set.

    Args:
        start_date: First day of the range
        end_date: Last day of the range (inclusive)

    Returns:
        PeriodSet covering the range
    """
    years: list[int] = []
    months: list[int] = []
    pairs: list[Period] = []

    current = start_date.replace(day=1)
    last = end_date.replace(day=1)
    while current <= last:
        if current.year not in years:
            years.append(current.year)
        if current.month not in months:
            months.append(current.month)
        pairs.append(Period(year=current.year, month=current.month))
        current += relativedelta(months=1)

    return PeriodSet(years=tuple(years), months=tuple(months), pairs=tuple(pairs))
