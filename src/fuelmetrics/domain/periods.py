"""Period validation and translation into query windows."""

from itertools import product
from typing import Optional

from fuelmetrics.domain.entities import LedgerWindow, Period, PeriodSet, PeriodSpec
from fuelmetrics.domain.errors import (
    ValidationError,
    invalid_month,
    invalid_site_code,
    invalid_year,
    inverted_date_range,
    missing_period,
    mixed_period,
)
from fuelmetrics.utils.date_parser import expand_periods, last_day_of_month


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _unique(values) -> tuple[int, ...]:
    seen: list[int] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return tuple(seen)


def validate_site_code(site_code) -> Optional[int]:
    """Validate a scope filter: None for all sites, or a non-negative integer."""
    if site_code is None:
        return None
    if not _is_int(site_code) or site_code < 0:
        raise ValidationError(invalid_site_code(site_code))
    return site_code


def validate_period_spec(spec: Optional[PeriodSpec]) -> PeriodSpec:
    """Check a period request before any query is issued.

    Raises:
        ValidationError: If no period or only half of one is given, a range
            is mixed with months/years or inverted, or a month or year is not
            a valid integer
    """
    if spec is None or (not spec.is_range and not spec.is_explicit):
        raise ValidationError(missing_period())
    if spec.is_range and spec.is_explicit:
        raise ValidationError(mixed_period())

    if spec.is_range:
        if spec.start_date is None or spec.end_date is None:
            raise ValidationError(missing_period())
        if spec.start_date > spec.end_date:
            raise ValidationError(inverted_date_range(spec.start_date, spec.end_date))
        return spec

    # Empty lists are a valid request; a missing list is not.
    if spec.months is None or spec.years is None:
        raise ValidationError(missing_period())
    for month in spec.months:
        if not _is_int(month) or not 1 <= month <= 12:
            raise ValidationError(invalid_month(month))
    for year in spec.years:
        if not _is_int(year) or year < 1:
            raise ValidationError(invalid_year(year))
    return spec


def resolve_periods(spec: PeriodSpec) -> PeriodSet:
    """Return the month-granularity periods a request covers."""
    if spec.is_range:
        return expand_periods(spec.start_date, spec.end_date)

    years = _unique(spec.years or ())
    months = _unique(spec.months or ())
    pairs = tuple(Period(year=year, month=month) for year, month in product(years, months))
    return PeriodSet(years=years, months=months, pairs=pairs)


def ledger_window(spec: PeriodSpec) -> LedgerWindow:
    """Return the ledger filter for flow metrics over the requested period."""
    if spec.is_range:
        return LedgerWindow(start_date=spec.start_date, end_date=spec.end_date)
    return LedgerWindow(years=_unique(spec.years or ()), months=_unique(spec.months or ()))


def balance_window(spec: PeriodSpec) -> LedgerWindow:
    """Return the ledger filter for running balances.

    Balances have no lower bound. For explicit months and years the upper
    bound is the last day of the latest requested month in the latest year.
    """
    if spec.is_range:
        return LedgerWindow(end_date=spec.end_date)
    if not spec.years or not spec.months:
        # Matches nothing.
        return LedgerWindow(years=(), months=())
    return LedgerWindow(end_date=last_day_of_month(max(spec.years), max(spec.months)))
