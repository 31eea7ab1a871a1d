"""Trend commands."""

from datetime import date

import click

from fuelmetrics.cli.commands.metric import get_assembler
from fuelmetrics.cli.error_handling import handle_domain_error
from fuelmetrics.domain.errors import DomainError
from fuelmetrics.domain.report import TREND_SERIES


@click.command("trend")
@click.argument("name", metavar="TREND", type=click.Choice(list(TREND_SERIES)))
@click.option("--site", type=int, help="Site code (defaults to all sites)")
@click.option("--year", "years", type=int, multiple=True, help="Year (repeatable, defaults to this year)")
@click.pass_context
def trend(ctx, name: str, site: int | None, years: tuple[int, ...]):
    """Show a twelve-month trend.

    Examples:
        fuelmetrics trend sales --site 5 --year 2025
        fuelmetrics trend performance --year 2024 --year 2025
    """
    years = years or (date.today().year,)
    try:
        result = get_assembler(ctx).get_trend(name, site, years)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    header = "".join(f"{series.name:>14s}" for series in result.series)
    click.echo(f"{'Month':<6s}{header}")
    click.echo("-" * (6 + 14 * len(result.series)))
    for index, label in enumerate(result.labels):
        row = "".join(f"{series.values[index]:>14,.2f}" for series in result.series)
        click.echo(f"{label:<6s}{row}")


def register_commands(cli):
    """Register trend commands with main CLI."""
    cli.add_command(trend)
