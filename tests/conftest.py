"""Shared pytest fixtures for fuelmetrics tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal

import pytest

from fuelmetrics.database.factories import create_sqlite_database
from fuelmetrics.domain.ledger import LedgerAggregator
from fuelmetrics.domain.monthly import MonthlyAggregator
from fuelmetrics.domain.report import ReportAssembler


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def ledger_aggregator(temp_db):
    """Create a LedgerAggregator with a temporary database."""
    return LedgerAggregator(temp_db)


@pytest.fixture
def monthly_aggregator(temp_db):
    """Create a MonthlyAggregator with a temporary database."""
    return MonthlyAggregator(temp_db)


@pytest.fixture
def report(temp_db):
    """Create a ReportAssembler with a temporary database."""
    return ReportAssembler(temp_db)


def add_ledger(db, site_code, code, day, amount, volume=None, category="other", deleted_flag=0):
    """Add one ledger row; ``day`` is an ISO date string."""
    return db.add_ledger_entry(
        site_code=site_code,
        nominal_code=code,
        transaction_date=date.fromisoformat(day),
        amount=Decimal(amount),
        volume=Decimal(volume) if volume is not None else None,
        category=category,
        deleted_flag=deleted_flag,
    )


@pytest.fixture
def estate(temp_db):
    """Load a small estate: three real sites, two sentinels, January-February 2025.

    Site 5 is bunkered, site 6 is not, site 7 has no bunkered flag and no fuel
    margin rows (its fuel figures come from the monthly summary).
    """
    db = temp_db

    db.add_site(0, site_name="Head Office")
    db.add_site(1, site_name="Company Totals")
    db.add_site(5, site_name="Northgate", is_bunkered=True)
    db.add_site(6, site_name="Southside", is_bunkered=False)
    db.add_site(7, site_name="Eastway", is_bunkered=None)

    db.add_fuel_margin(
        5, 2025, 1,
        sale_volume=Decimal("1000"), net_sales=Decimal("1500"),
        fuel_profit=Decimal("100"), purchases=Decimal("1400"), ppl=Decimal("10"),
    )
    db.add_fuel_margin(
        5, 2025, 2,
        sale_volume=Decimal("2000"), net_sales=Decimal("3000"),
        fuel_profit=Decimal("300"), purchases=Decimal("2700"), ppl=Decimal("15"),
    )
    db.add_fuel_margin(
        6, 2025, 1,
        sale_volume=Decimal("500"), net_sales=Decimal("800"),
        fuel_profit=Decimal("40"), purchases=Decimal("760"), ppl=Decimal("8"),
    )
    db.add_fuel_margin(
        0, 2025, 1,
        sale_volume=Decimal("9999"), net_sales=Decimal("9999"),
        fuel_profit=Decimal("999"), purchases=Decimal("9000"), ppl=Decimal("10"),
    )

    db.add_monthly_summary(
        5, 2025, 1,
        bunkered_volume=Decimal("900"), bunkered_sales=Decimal("1400"),
        bunkered_purchases=Decimal("1300"),
        shop_sales=Decimal("2000"), shop_purchases=Decimal("1500"),
        valet_sales=Decimal("300"), valet_purchases=Decimal("100"),
    )
    db.add_monthly_summary(
        5, 2025, 2,
        shop_sales=Decimal("1000"), shop_purchases=Decimal("600"),
        valet_sales=Decimal("200"), valet_purchases=Decimal("50"),
    )
    db.add_monthly_summary(
        6, 2025, 1,
        non_bunkered_volume=Decimal("450"), non_bunkered_sales=Decimal("700"),
        non_bunkered_purchases=Decimal("650"),
        shop_sales=Decimal("500"), shop_purchases=Decimal("300"),
    )
    db.add_monthly_summary(
        7, 2025, 1,
        bunkered_volume=Decimal("500"), non_bunkered_volume=Decimal("300"),
        bunkered_sales=Decimal("750"), non_bunkered_sales=Decimal("450"),
        bunkered_purchases=Decimal("700"), non_bunkered_purchases=Decimal("400"),
        shop_sales=Decimal("400"),
    )
    db.add_monthly_summary(1, 2025, 1, shop_sales=Decimal("10000"))

    # Site 5, January: other income, overheads, labour, bank and sales rows.
    add_ledger(db, 5, "6100", "2025-01-10", "-50.00")
    add_ledger(db, 5, "6100", "2025-01-20", "-25.00")
    add_ledger(db, 5, "6101", "2025-01-12", "-10.00", deleted_flag=None)
    add_ledger(db, 5, "6101", "2025-01-12", "-999.00", deleted_flag=1)
    add_ledger(db, 5, "6102", "2025-01-15", "30.00")
    add_ledger(db, 5, "7000", "2025-01-31", "-1000.00")
    add_ledger(db, 5, "7006", "2025-01-31", "-200.00")
    add_ledger(db, 5, "7100", "2025-01-05", "-500.00")
    add_ledger(db, 5, "7100", "2025-01-06", "-777.00", deleted_flag=1)
    add_ledger(db, 5, "7205", "2025-01-08", "-120.00")
    add_ledger(db, 5, "1200", "2025-01-02", "5000.00")
    add_ledger(db, 5, "1200", "2025-01-25", "-1500.00")
    add_ledger(db, 5, "1224", "2025-02-10", "2000.00")
    add_ledger(db, 5, "4000", "2025-01-03", "-1200.00", volume="800", category="fuel_sales")
    add_ledger(db, 5, "4001", "2025-01-03", "-300.00", volume="200", category="fuel_sales")
    add_ledger(db, 5, "4100", "2025-01-03", "-400.00", category="shop_sales")
    add_ledger(db, 5, "4100", "2025-01-04", "-100.00", category="shop_sales")
    add_ledger(db, 5, "4100", "2025-01-04", "-60.00", category="shop_sales", deleted_flag=1)
    add_ledger(db, 5, "9999", "2025-01-09", "123.00")

    # Site 6, January.
    add_ledger(db, 6, "6100", "2025-01-10", "-20.00")
    add_ledger(db, 6, "7000", "2025-01-31", "-400.00")

    # Sentinel site 0, January.
    add_ledger(db, 0, "6100", "2025-01-10", "-100000.00")
    add_ledger(db, 0, "4100", "2025-01-10", "-5000.00", category="shop_sales")

    return db


@pytest.fixture
def estate_report(estate):
    """Create a ReportAssembler over the loaded estate."""
    return ReportAssembler(estate)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def add_ledger_row(temp_db):
    """Return a helper adding ledger rows to the temporary database."""

    def add(site_code, code, day, amount, **kwargs):
        return add_ledger(temp_db, site_code, code, day, amount, **kwargs)

    return add
