"""Rendering of domain errors raised under CLI commands."""

import click

from fuelmetrics.domain.errors import DomainError, ReconciliationError

# Exit status for a breakdown whose items do not add up to its total.
RECONCILIATION_EXIT_CODE = 3


def handle_domain_error(ctx: click.Context, error: DomainError) -> None:
    """Print the error to stderr and exit the command.

    Invalid input exits with status 1; a failed reconciliation exits with
    ``RECONCILIATION_EXIT_CODE``.
    """
    if isinstance(error, ReconciliationError):
        click.echo(f"Reconciliation failed: {error}", err=True)
        ctx.exit(RECONCILIATION_EXIT_CODE)
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
