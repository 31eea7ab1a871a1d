"""Report assembly domain service."""

import logging
from types import MappingProxyType
from typing import Iterable, Optional

from fuelmetrics.database.base import Database
from fuelmetrics.domain.entities import (
    MONTH_LABELS,
    Breakdown,
    DailySales,
    FuelMarginTotals,
    MetricCard,
    MonthlySummaryTotals,
    PeriodSpec,
    Site,
    SiteFuelTotals,
    SiteRankings,
    Trend,
    TrendSeries,
)
from fuelmetrics.domain.errors import (
    ValidationError,
    invalid_limit,
    invalid_site_code,
    invalid_year,
    unknown_site,
    unknown_trend,
)
from fuelmetrics.domain.ledger import LedgerAggregator
from fuelmetrics.domain.monthly import MonthlyAggregator
from fuelmetrics.domain.periods import (
    ledger_window,
    resolve_periods,
    validate_period_spec,
    validate_site_code,
)
from fuelmetrics.domain.resolver import (
    DEFAULT_QUERY_WORKERS,
    METRIC_RULES,
    MetricResolver,
    get_rule,
    prefer_positive,
    safe_ratio,
)

logger = logging.getLogger(__name__)

SALES_SERIES = "Sales"
PROFIT_SERIES = "Profit"
VOLUME_SERIES = "Sale Volume"
PPL_SERIES = "PPL"
SHOP_SALES_SERIES = "Shop Sales"
VALET_SALES_SERIES = "Valet Sales"

TREND_SERIES = MappingProxyType(
    {
        "sales": (SALES_SERIES,),
        "profit": (PROFIT_SERIES,),
        "saleVolume": (VOLUME_SERIES,),
        "ppl": (PPL_SERIES,),
        "shopSales": (SHOP_SALES_SERIES,),
        "valetSales": (VALET_SALES_SERIES,),
        "performance": (
            SALES_SERIES,
            PROFIT_SERIES,
            VOLUME_SERIES,
            PPL_SERIES,
            SHOP_SALES_SERIES,
            VALET_SALES_SERIES,
        ),
    }
)


def month_values(
    summary: MonthlySummaryTotals, fuel_margin: Optional[FuelMarginTotals]
) -> dict[str, float]:
    """Compute every trend series value for one month.

    Sales fall back to the monthly summary when the fuel margin figure is not
    positive; profit falls back to summary sales less purchases only when the
    month has no fuel margin row at all.
    """
    if fuel_margin is not None and fuel_margin.row_count > 0:
        sales = prefer_positive(fuel_margin.net_sales, summary.fuel_sales)
        profit = fuel_margin.fuel_profit
        volume = fuel_margin.sale_volume
    else:
        sales = summary.fuel_sales
        profit = summary.fuel_sales - summary.fuel_purchases
        volume = 0.0

    return {
        SALES_SERIES: sales,
        PROFIT_SERIES: profit,
        VOLUME_SERIES: volume,
        PPL_SERIES: safe_ratio(profit, volume) * 100,
        SHOP_SALES_SERIES: summary.shop_sales,
        VALET_SALES_SERIES: summary.valet_sales,
    }


class ReportAssembler:
    """Service producing metric cards, breakdowns, trends and site reports."""

    def __init__(self, db: Database, max_workers: int = DEFAULT_QUERY_WORKERS):
        """Initialize report assembler.

        Args:
            db: Database instance
            max_workers: Number of reads issued concurrently per request
        """
        self.db = db
        self.ledger = LedgerAggregator(db)
        self.monthly = MonthlyAggregator(db)
        self.resolver = MetricResolver(self.ledger, self.monthly, max_workers=max_workers)

    def get_metric(
        self, name: str, site_code: Optional[int], period: PeriodSpec
    ) -> MetricCard:
        """Resolve one metric card.

        Args:
            name: Metric name (see ``METRIC_RULES``)
            site_code: Site code, or None for all sites
            period: Explicit months/years or a date range

        Returns:
            MetricCard with the value and its unit

        Raises:
            ValidationError: If the name, site code or period is invalid
        """
        rule = get_rule(name)
        site_code = validate_site_code(site_code)
        period = validate_period_spec(period)
        value = self.resolver.resolve(name, period, site_code)
        return MetricCard(name=name, value=value, unit=rule.unit)

    def get_breakdown(
        self, name: str, site_code: Optional[int], period: PeriodSpec
    ) -> Breakdown:
        """Resolve a metric's breakdown; items always sum to the total."""
        get_rule(name)
        site_code = validate_site_code(site_code)
        period = validate_period_spec(period)
        return self.resolver.breakdown(name, period, site_code)

    def get_cards(
        self,
        site_code: Optional[int],
        period: PeriodSpec,
        names: Optional[Iterable[str]] = None,
    ) -> tuple[MetricCard, ...]:
        """Resolve several cards from one shared set of reads (all by default)."""
        names = list(names) if names is not None else list(METRIC_RULES)
        rules = {name: get_rule(name) for name in names}
        site_code = validate_site_code(site_code)
        period = validate_period_spec(period)
        values = self.resolver.resolve_many(names, period, site_code)
        return tuple(
            MetricCard(name=name, value=values[name], unit=rules[name].unit) for name in names
        )

    def get_trend(
        self, name: str, site_code: Optional[int], years: Iterable[int]
    ) -> Trend:
        """Build a month-of-year trend across the given years.

        Every series has exactly twelve values, Jan to Dec, with months that
        have no rows filled with zero.

        Raises:
            ValidationError: If the trend name, site code or a year is invalid
        """
        series_names = TREND_SERIES.get(name)
        if series_names is None:
            raise ValidationError(unknown_trend(name, TREND_SERIES))
        site_code = validate_site_code(site_code)
        years = list(years)
        for year in years:
            if not isinstance(year, int) or isinstance(year, bool) or year < 1:
                raise ValidationError(invalid_year(year))

        by_month = self.monthly.aggregate_by_month(years, site_code)

        columns: dict[str, list[float]] = {series: [] for series in series_names}
        for month in range(1, len(MONTH_LABELS) + 1):
            values = month_values(
                by_month.summary.get(month, MonthlySummaryTotals()),
                by_month.fuel_margin.get(month),
            )
            for series in series_names:
                columns[series].append(values[series])

        return Trend(
            metric=name,
            labels=MONTH_LABELS,
            series=tuple(
                TrendSeries(name=series, values=tuple(values))
                for series, values in columns.items()
            ),
        )

    def get_site_rankings(self, period: PeriodSpec, limit: int = 5) -> SiteRankings:
        """Return the best and worst sites by fuel net sales, across all sites.

        ``bottom`` lists the weakest site first.
        """
        _validate_limit(limit)
        period = validate_period_spec(period)
        sites = sorted(
            self.monthly.aggregate_by_site(resolve_periods(period)),
            key=lambda site: (-site.net_sales, site.site_code),
        )
        if not sites:
            logger.warning("No fuel margin data to rank sites for %s", period)
        return SiteRankings(
            top=tuple(sites[:limit]),
            bottom=tuple(reversed(sites[-limit:])),
        )

    def get_profit_by_site(self, period: PeriodSpec, limit: int = 10) -> tuple[SiteFuelTotals, ...]:
        """Return the most profitable sites by fuel profit."""
        _validate_limit(limit)
        period = validate_period_spec(period)
        sites = sorted(
            self.monthly.aggregate_by_site(resolve_periods(period)),
            key=lambda site: (-site.fuel_profit, site.site_code),
        )
        return tuple(sites[:limit])

    def get_daily_sales(
        self, site_code: Optional[int], period: PeriodSpec
    ) -> tuple[DailySales, ...]:
        """Return ledger sales per day of month."""
        site_code = validate_site_code(site_code)
        period = validate_period_spec(period)
        return self.ledger.daily_sales(ledger_window(period), site_code)

    def list_sites(self, active_only: bool = True) -> tuple[Site, ...]:
        """Return the real sites, sentinel rows excluded, ordered by code."""
        return tuple(self.db.list_sites(active_only=active_only))

    def get_site(self, site_code: int) -> Site:
        """Look up one site, sentinel rows included.

        Raises:
            ValidationError: If the site code is malformed or unknown
        """
        if site_code is None:
            raise ValidationError(invalid_site_code(site_code))
        site_code = validate_site_code(site_code)
        site = self.db.get_site(site_code)
        if site is None:
            raise ValidationError(unknown_site(site_code))
        return site


def _validate_limit(limit) -> None:
    if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
        raise ValidationError(invalid_limit(limit))
