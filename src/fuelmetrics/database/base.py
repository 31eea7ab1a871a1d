"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Any, Sequence
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from fuelmetrics.domain.entities import (
    CodeSelection,
    FuelMarginTotals,
    LedgerWindow,
    MonthlySummaryTotals,
    Site,
    SiteFuelTotals,
)


class Database(ABC):
    """Abstract database interface for fuelmetrics.

    The domain services only call the read/aggregate operations. The ``add_*``
    operations exist for ingestion tooling and tests.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Loading operations
    @abstractmethod
    def add_site(
        self,
        site_code: int,
        site_name: Optional[str] = None,
        is_bunkered: Optional[bool] = None,
        is_active: bool = True,
    ) -> int:
        """Add a site. Returns the site code."""
        pass

    @abstractmethod
    def add_ledger_entry(
        self,
        site_code: int,
        nominal_code: str,
        transaction_date: date,
        amount: Decimal,
        volume: Optional[Decimal] = None,
        category: str = "other",
        deleted_flag: Optional[int] = 0,
    ) -> int:
        """Add a ledger row. Returns the row ID."""
        pass

    @abstractmethod
    def add_monthly_summary(self, site_code: int, year: int, month: int, **values: Decimal) -> int:
        """Add a monthly summary row. Returns the row ID."""
        pass

    @abstractmethod
    def add_fuel_margin(self, site_code: int, year: int, month: int, **values: Decimal) -> int:
        """Add a fuel margin row. Returns the row ID."""
        pass

    # Lookups
    @abstractmethod
    def get_site(self, site_code: int) -> Optional[Site]:
        """Get site by code."""
        pass

    @abstractmethod
    def list_sites(self, active_only: bool = True) -> list[Site]:
        """List real (non-sentinel) sites."""
        pass

    # Ledger aggregates
    @abstractmethod
    def sum_ledger_by_code(
        self,
        selection: CodeSelection,
        window: LedgerWindow,
        site_code: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Sum ledger rows per nominal code.

        Returns one dictionary per code present (nominal_code, sum_amount,
        sum_abs_amount, sum_volume, count). Deleted rows never match. When
        site_code is None, sentinel sites are excluded.
        """
        pass

    @abstractmethod
    def count_ledger_rows(
        self,
        categories: Sequence[str],
        window: LedgerWindow,
        site_code: Optional[int] = None,
    ) -> int:
        """Count live ledger rows whose category is in categories."""
        pass

    @abstractmethod
    def sum_ledger_by_day(
        self,
        categories: Sequence[str],
        window: LedgerWindow,
        site_code: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Sum ledger amounts per day of month and category.

        Returns dictionaries with day, category, sum_amount and count.
        """
        pass

    # Monthly aggregates
    @abstractmethod
    def sum_monthly_summary(
        self,
        years: Sequence[int],
        months: Sequence[int],
        site_code: Optional[int] = None,
        bunkered: Optional[bool] = None,
    ) -> MonthlySummaryTotals:
        """Sum monthly summary columns over matching rows."""
        pass

    @abstractmethod
    def sum_fuel_margin(
        self,
        years: Sequence[int],
        months: Sequence[int],
        site_code: Optional[int] = None,
        bunkered: Optional[bool] = None,
    ) -> FuelMarginTotals:
        """Sum fuel margin columns over matching rows.

        Also carries the unweighted mean of stored ppl, the row count and the
        distinct site count.
        """
        pass

    @abstractmethod
    def sum_monthly_summary_by_month(
        self, years: Sequence[int], site_code: Optional[int] = None
    ) -> dict[int, MonthlySummaryTotals]:
        """Sum monthly summary columns per month of year across years."""
        pass

    @abstractmethod
    def sum_fuel_margin_by_month(
        self, years: Sequence[int], site_code: Optional[int] = None
    ) -> dict[int, FuelMarginTotals]:
        """Sum fuel margin columns per month of year across years."""
        pass

    @abstractmethod
    def sum_fuel_margin_by_site(
        self, years: Sequence[int], months: Sequence[int]
    ) -> list[SiteFuelTotals]:
        """Sum fuel margin columns per (non-sentinel) site."""
        pass
