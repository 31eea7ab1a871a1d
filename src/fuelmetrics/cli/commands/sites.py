"""Site report commands."""

import click

from fuelmetrics.cli.commands.metric import get_assembler
from fuelmetrics.cli.date_filters import period_from_options, period_options
from fuelmetrics.cli.error_handling import handle_domain_error
from fuelmetrics.cli.formatting import format_value
from fuelmetrics.domain.entities import Unit
from fuelmetrics.domain.errors import DomainError


def _site_line(site) -> str:
    name = site.site_name or f"Site {site.site_code}"
    return (
        f"{site.site_code:5d}  {name:<25s} "
        f"{format_value(site.net_sales, Unit.GBP):>16s} "
        f"{format_value(site.fuel_profit, Unit.GBP):>14s}"
    )


@click.command("rankings")
@click.option("--limit", type=click.IntRange(min=1), default=5, show_default=True, help="Sites per list")
@period_options
@click.pass_context
def rankings(ctx, limit: int, **options):
    """Show the top and bottom sites by fuel net sales."""
    period = period_from_options(ctx, options)
    try:
        result = get_assembler(ctx).get_site_rankings(period, limit=limit)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not result.top:
        click.echo("No site data found.")
        return

    click.echo("\nTop sites:")
    click.echo("-" * 64)
    for site in result.top:
        click.echo(_site_line(site))
    click.echo("\nBottom sites:")
    click.echo("-" * 64)
    for site in result.bottom:
        click.echo(_site_line(site))


@click.command("profit-by-site")
@click.option("--limit", type=click.IntRange(min=1), default=10, show_default=True, help="Number of sites")
@period_options
@click.pass_context
def profit_by_site(ctx, limit: int, **options):
    """Show the most profitable sites by fuel profit."""
    period = period_from_options(ctx, options)
    try:
        sites = get_assembler(ctx).get_profit_by_site(period, limit=limit)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not sites:
        click.echo("No site data found.")
        return
    for site in sites:
        click.echo(_site_line(site))


@click.command("daily")
@click.option("--site", type=int, help="Site code (defaults to all sites)")
@period_options
@click.pass_context
def daily(ctx, site: int | None, **options):
    """Show ledger sales per day of month."""
    period = period_from_options(ctx, options)
    try:
        days = get_assembler(ctx).get_daily_sales(site, period)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not days:
        click.echo("No sales found.")
        return

    click.echo(f"{'Day':>3s} {'Fuel':>14s} {'Shop':>14s} {'Valet':>14s} {'Total':>14s} {'Txns':>6s}")
    for day in days:
        click.echo(
            f"{day.day:3d} {day.fuel_sales:>14,.2f} {day.shop_sales:>14,.2f} "
            f"{day.valet_sales:>14,.2f} {day.total_sales:>14,.2f} {day.transaction_count:6d}"
        )


@click.command("sites")
@click.option("--site", type=int, help="Show a single site, header rows included")
@click.option("--all", "include_inactive", is_flag=True, help="Include inactive sites")
@click.pass_context
def list_sites(ctx, site: int | None, include_inactive: bool):
    """List sites."""
    assembler = get_assembler(ctx)
    try:
        if site is not None:
            found = (assembler.get_site(site),)
        else:
            found = assembler.list_sites(active_only=not include_inactive)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not found:
        click.echo("No sites found.")
        return

    click.echo(f"{'Code':>5s}  {'Name':<25s} {'Bunkered':<9s} {'Active':<6s}")
    click.echo("-" * 50)
    for entry in found:
        name = entry.site_name or f"Site {entry.site_code}"
        if entry.is_sentinel:
            name = f"{name} (sentinel)"
        bunkered = "-" if entry.is_bunkered is None else ("yes" if entry.is_bunkered else "no")
        active = "yes" if entry.is_active else "no"
        click.echo(f"{entry.site_code:5d}  {name:<25s} {bunkered:<9s} {active:<6s}")


def register_commands(cli):
    """Register site report commands with main CLI."""
    cli.add_command(rankings)
    cli.add_command(profit_by_site)
    cli.add_command(daily)
    cli.add_command(list_sites)
