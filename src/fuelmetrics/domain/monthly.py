"""Monthly summary and fuel margin aggregation domain service."""

import logging
from typing import Optional, Sequence

from fuelmetrics.database.base import Database
from fuelmetrics.domain.entities import (
    FuelMarginTotals,
    MonthlyTotals,
    MonthlyTotalsByMonth,
    PeriodSet,
    SiteFuelTotals,
)

logger = logging.getLogger(__name__)


class MonthlyAggregator:
    """Service for summing the month-granularity tables."""

    def __init__(self, db: Database):
        """Initialize monthly aggregator.

        Args:
            db: Database instance
        """
        self.db = db

    def aggregate_monthly(
        self,
        periods: PeriodSet,
        site_code: Optional[int] = None,
        bunkered: Optional[bool] = None,
    ) -> MonthlyTotals:
        """Sum monthly summary and fuel margin rows matching the periods.

        Rows match when their year is in ``periods.years`` and their month is
        in ``periods.months``.

        Args:
            periods: Periods to match
            site_code: Single site, or None for all (non-sentinel) sites
            bunkered: True for bunkered sites, False for the rest, None for both

        Returns:
            MonthlyTotals; zero-filled when the period set is empty
        """
        if periods.is_empty:
            logger.debug("Empty period set, returning zero monthly totals")
            return MonthlyTotals()

        summary = self.db.sum_monthly_summary(
            periods.years, periods.months, site_code=site_code, bunkered=bunkered
        )
        fuel_margin = self.aggregate_fuel_margin(periods, site_code=site_code, bunkered=bunkered)
        return MonthlyTotals(summary=summary, fuel_margin=fuel_margin)

    def aggregate_fuel_margin(
        self,
        periods: PeriodSet,
        site_code: Optional[int] = None,
        bunkered: Optional[bool] = None,
    ) -> FuelMarginTotals:
        """Sum fuel margin rows matching the periods."""
        if periods.is_empty:
            return FuelMarginTotals()

        totals = self.db.sum_fuel_margin(
            periods.years, periods.months, site_code=site_code, bunkered=bunkered
        )
        if totals.row_count == 0:
            logger.debug(
                "No fuel margin rows for years=%s months=%s site=%s bunkered=%s",
                periods.years,
                periods.months,
                site_code,
                bunkered,
            )
        return totals

    def aggregate_by_month(
        self, years: Sequence[int], site_code: Optional[int] = None
    ) -> MonthlyTotalsByMonth:
        """Sum both tables per month of year across the given years."""
        if not years:
            return MonthlyTotalsByMonth()

        return MonthlyTotalsByMonth(
            summary=self.db.sum_monthly_summary_by_month(years, site_code=site_code),
            fuel_margin=self.db.sum_fuel_margin_by_month(years, site_code=site_code),
        )

    def aggregate_by_site(self, periods: PeriodSet) -> tuple[SiteFuelTotals, ...]:
        """Sum fuel margin rows per site across all non-sentinel sites."""
        if periods.is_empty:
            return ()
        return tuple(self.db.sum_fuel_margin_by_site(periods.years, periods.months))
