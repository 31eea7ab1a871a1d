"""Metric commands."""

import click

from fuelmetrics.cli.date_filters import period_from_options, period_options
from fuelmetrics.cli.error_handling import handle_domain_error
from fuelmetrics.cli.formatting import format_value
from fuelmetrics.domain.errors import DomainError
from fuelmetrics.domain.report import ReportAssembler
from fuelmetrics.domain.resolver import METRIC_RULES


def get_assembler(ctx) -> ReportAssembler:
    """Build the report assembler for the CLI's database."""
    return ReportAssembler(ctx.obj["db"], max_workers=ctx.obj["workers"])


def _scope_label(site: int | None) -> str:
    return f"site {site}" if site is not None else "all sites"


@click.command("metric")
@click.argument("name", metavar="METRIC")
@click.option("--site", type=int, help="Site code (defaults to all sites)")
@period_options
@click.pass_context
def metric(ctx, name: str, site: int | None, **options):
    """Show a single metric value.

    Examples:
        fuelmetrics metric totalFuelVolume --site 5 --last-month
        fuelmetrics metric netSales --month 1 --month 2 --year 2025
    """
    period = period_from_options(ctx, options)
    try:
        card = get_assembler(ctx).get_metric(name, site, period)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"{card.name} ({_scope_label(site)}): {format_value(card.value, card.unit)}")


@click.command("cards")
@click.option("--site", type=int, help="Site code (defaults to all sites)")
@period_options
@click.pass_context
def cards(ctx, site: int | None, **options):
    """Show every metric card for a scope and period."""
    period = period_from_options(ctx, options)
    try:
        result = get_assembler(ctx).get_cards(site, period)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nMetrics for {_scope_label(site)}:")
    click.echo("-" * 50)
    for card in result:
        click.echo(f"{card.name:<20s} {format_value(card.value, card.unit):>29s}")


@click.command("breakdown")
@click.argument("name", metavar="METRIC")
@click.option("--site", type=int, help="Site code (defaults to all sites)")
@period_options
@click.pass_context
def breakdown(ctx, name: str, site: int | None, **options):
    """Show the breakdown behind a metric.

    Examples:
        fuelmetrics breakdown overheads --site 5 --this-year
        fuelmetrics breakdown bankBalance --end-date 2025-06-30
    """
    period = period_from_options(ctx, options)
    try:
        result = get_assembler(ctx).get_breakdown(name, site, period)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\n{result.metric} breakdown ({_scope_label(site)}):")
    click.echo("-" * 70)
    if not result.items:
        click.echo("No data found.")
    for item in result.items:
        code = item.code or ""
        count = "" if item.transaction_count is None else f"{item.transaction_count:d} txns"
        click.echo(
            f"{code:<6s}{item.name:<30s} {format_value(item.value, result.unit):>20s} {count:>12s}"
        )
    click.echo("-" * 70)
    click.echo(f"{'Total':<36s} {format_value(result.total, result.unit):>20s}")


@click.command("metrics")
def list_metrics():
    """List supported metrics with their units."""
    for name, rule in METRIC_RULES.items():
        marker = " (breakdown)" if rule.breakdown is not None else ""
        click.echo(f"{name:<20s} {rule.unit.value}{marker}")


def register_commands(cli):
    """Register metric commands with main CLI."""
    cli.add_command(metric)
    cli.add_command(cards)
    cli.add_command(breakdown)
    cli.add_command(list_metrics, name="metrics")
