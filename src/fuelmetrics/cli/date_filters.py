"""CLI helpers for period resolution."""

from datetime import date
from typing import Sequence

import click

from fuelmetrics.domain.entities import PeriodSpec
from fuelmetrics.utils.date_parser import get_date_range, parse_date


def period_options(command):
    """Attach the shared period options to a command."""
    options = [
        click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this year')"),
        click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')"),
        click.option("--this-month", is_flag=True, help="Current month to date (the default)"),
        click.option("--this-year", is_flag=True, help="Current year to date"),
        click.option("--last-month", is_flag=True, help="Previous month"),
        click.option("--last-year", is_flag=True, help="Previous year"),
        click.option("--month", "months", type=click.IntRange(1, 12), multiple=True, help="Month number (repeatable)"),
        click.option("--year", "years", type=int, multiple=True, help="Year (repeatable)"),
    ]
    for option in reversed(options):
        command = option(command)
    return command


def resolve_cli_period(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    months: Sequence[int] = (),
    years: Sequence[int] = (),
) -> PeriodSpec:
    """Resolve the CLI period from flags, explicit months/years or dates.

    Explicit months without years use the current year; years without months
    cover the whole year. With no option at all the current month to date is
    used.
    """
    period_count = sum(1 for is_set in period_flags.values() if is_set)
    has_dates = bool(start_date or end_date)
    has_periods = bool(months or years)

    if period_count > 1:
        click.echo(
            "Error: Only one period option (--this-month, --this-year, --last-month, --last-year) can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if period_count > 0 and (has_dates or has_periods):
        click.echo(
            "Error: Period options (--this-month, --this-year, etc.) cannot be combined with --start-date, --end-date, --month or --year.",
            err=True,
        )
        ctx.exit(1)

    if has_dates and has_periods:
        click.echo("Error: --month/--year cannot be combined with --start-date or --end-date.", err=True)
        ctx.exit(1)

    if period_count == 1:
        for period, is_set in period_flags.items():
            if is_set:
                start, end = get_date_range(period)
                return PeriodSpec.date_range(start, end)

    if has_periods:
        return PeriodSpec.explicit(
            months=months or range(1, 13),
            years=years or (date.today().year,),
        )

    if not has_dates:
        start, end = get_date_range("this-month")
        return PeriodSpec.date_range(start, end)

    start = None
    end = None
    if start_date:
        try:
            start = parse_date(start_date)
        except ValueError as e:
            click.echo(f"Error: Invalid start date: {e}", err=True)
            ctx.exit(1)

    if end_date:
        try:
            end = parse_date(end_date)
        except ValueError as e:
            click.echo(f"Error: Invalid end date: {e}", err=True)
            ctx.exit(1)

    if end is None:
        end = date.today()
    if start is None:
        start = end.replace(day=1)
    return PeriodSpec.date_range(start, end)


def period_from_options(ctx, options: dict) -> PeriodSpec:
    """Resolve a period from the keyword arguments of ``period_options``."""
    return resolve_cli_period(
        ctx,
        start_date=options["start_date"],
        end_date=options["end_date"],
        period_flags={
            "this-month": options["this_month"],
            "this-year": options["this_year"],
            "last-month": options["last_month"],
            "last-year": options["last_year"],
        },
        months=options["months"],
        years=options["years"],
    )
