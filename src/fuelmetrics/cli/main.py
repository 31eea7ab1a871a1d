"""Main CLI entry point."""

import logging

import click
from fuelmetrics.database.factories import create_database
from fuelmetrics.domain.resolver import DEFAULT_QUERY_WORKERS

# Import and register all commands at module level
from fuelmetrics.cli.commands import metric, sites, trend

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to SQLite database file (overrides FUELMETRICS_DB_PATH environment variable)",
    envvar="FUELMETRICS_DB_PATH",
)
@click.option(
    "--db-url",
    help="SQLAlchemy database URL, takes precedence over --db-path",
    envvar="FUELMETRICS_DB_URL",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=DEFAULT_QUERY_WORKERS,
    show_default=True,
    help="Queries issued concurrently per request",
    envvar="FUELMETRICS_QUERY_WORKERS",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="FUELMETRICS_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, db_url: str | None, workers: int, log_level: str):
    """Fuelmetrics - financial metrics for fuel-retail sites.

    Reconciles the transaction ledger, monthly summaries and fuel margin data
    into metric cards, breakdowns and trends.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_database(database_url=db_url, database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["workers"] = workers
        ctx.call_on_close(db.disconnect)


# Register all commands
metric.register_commands(cli)
trend.register_commands(cli)
sites.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
