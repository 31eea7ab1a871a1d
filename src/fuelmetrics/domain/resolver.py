"""Metric resolution.

Each metric is an entry in ``METRIC_RULES``: the sources it reads, how its
value is derived from them, and, where it has one, how its breakdown is
built. Fuel figures come from the fuel margin table when it holds a
positive value and from the monthly summary otherwise. A breakdown is always
built from the same source its total used, and is checked against that total
before it is returned.
"""

import logging
import math
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional

from fuelmetrics.domain.entities import (
    Breakdown,
    BreakdownItem,
    CodeCategory,
    FuelMarginTotals,
    LedgerAggregate,
    MonthlySummaryTotals,
    MonthlyTotals,
    PeriodSpec,
    Unit,
)
from fuelmetrics.domain.errors import (
    ReconciliationError,
    ValidationError,
    breakdown_mismatch,
    no_breakdown,
    unknown_metric,
)
from fuelmetrics.domain.ledger import LedgerAggregator
from fuelmetrics.domain.monthly import MonthlyAggregator
from fuelmetrics.domain.nominal_codes import overhead_bucket, selection_for
from fuelmetrics.domain.periods import balance_window, ledger_window, resolve_periods

logger = logging.getLogger(__name__)

DEFAULT_QUERY_WORKERS = 4
BREAKDOWN_TOLERANCE = 1e-2


class Source(str, Enum):
    """Independent reads a metric can depend on."""

    MONTHLY = "monthly"
    FUEL_MARGIN_BUNKERED = "fuel_margin_bunkered"
    FUEL_MARGIN_NON_BUNKERED = "fuel_margin_non_bunkered"
    OTHER_INCOME = "other_income"
    OVERHEADS = "overheads"
    LABOUR = "labour"
    FUEL_PURCHASES = "fuel_purchases"
    FUEL_SALES = "fuel_sales"
    BANK = "bank"
    CUSTOMERS = "customers"


@dataclass(frozen=True)
class SourceData:
    """Results of the reads for one request; unread sources stay zero."""

    monthly: MonthlyTotals = field(default_factory=MonthlyTotals)
    fuel_margin_bunkered: FuelMarginTotals = field(default_factory=FuelMarginTotals)
    fuel_margin_non_bunkered: FuelMarginTotals = field(default_factory=FuelMarginTotals)
    other_income: LedgerAggregate = field(default_factory=LedgerAggregate)
    overheads: LedgerAggregate = field(default_factory=LedgerAggregate)
    labour: LedgerAggregate = field(default_factory=LedgerAggregate)
    fuel_purchases: LedgerAggregate = field(default_factory=LedgerAggregate)
    fuel_sales: LedgerAggregate = field(default_factory=LedgerAggregate)
    bank: LedgerAggregate = field(default_factory=LedgerAggregate)
    customers: int = 0

    @property
    def summary(self) -> MonthlySummaryTotals:
        return self.monthly.summary

    @property
    def fuel_margin(self) -> FuelMarginTotals:
        return self.monthly.fuel_margin


def prefer_positive(primary: float, fallback: float) -> float:
    """Return primary when it is positive, fallback otherwise."""
    return primary if primary > 0 else fallback


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide, yielding 0 instead of an error or a non-finite value."""
    if denominator == 0:
        return 0.0
    result = numerator / denominator
    return result if math.isfinite(result) else 0.0


def fan_out(calls: Mapping[Any, Callable[[], Any]], max_workers: int) -> dict[Any, Any]:
    """Run independent calls concurrently and return their results by key.

    Every call must succeed. The first failure cancels calls that have not
    started yet and is re-raised unchanged.
    """
    if max_workers <= 1 or len(calls) <= 1:
        return {key: call() for key, call in calls.items()}

    with ThreadPoolExecutor(max_workers=min(max_workers, len(calls))) as executor:
        futures = {key: executor.submit(call) for key, call in calls.items()}
        done, pending = wait(futures.values(), return_when=FIRST_EXCEPTION)
        for future in done:
            error = future.exception()
            if error is not None:
                for other in pending:
                    other.cancel()
                raise error
        return {key: future.result() for key, future in futures.items()}


# Derived values


def total_fuel_volume(data: SourceData) -> float:
    return prefer_positive(data.fuel_margin.sale_volume, data.summary.fuel_volume)


def fuel_net_sales(data: SourceData) -> float:
    return prefer_positive(data.fuel_margin.net_sales, data.summary.fuel_sales)


def other_income(data: SourceData) -> float:
    return data.other_income.total


def net_sales(data: SourceData) -> float:
    return fuel_net_sales(data) + other_income(data)


def fuel_profit(data: SourceData) -> float:
    return data.fuel_margin.fuel_profit


def profit(data: SourceData) -> float:
    return fuel_profit(data) + other_income(data)


def shop_profit(data: SourceData) -> float:
    return data.summary.shop_sales - data.summary.shop_purchases


def valet_profit(data: SourceData) -> float:
    return data.summary.valet_sales - data.summary.valet_purchases


def total_sales(data: SourceData) -> float:
    return fuel_net_sales(data) + data.summary.shop_sales + data.summary.valet_sales


def avg_ppl(data: SourceData) -> float:
    return safe_ratio(data.fuel_margin.fuel_profit, data.fuel_margin.sale_volume) * 100


def avg_stored_ppl(data: SourceData) -> float:
    return data.fuel_margin.avg_stored_ppl


def overheads(data: SourceData) -> float:
    return data.overheads.total


def actual_ppl(data: SourceData) -> float:
    return safe_ratio(overheads(data), total_fuel_volume(data)) * 100


def profit_margin(data: SourceData) -> float:
    return safe_ratio(fuel_profit(data), fuel_net_sales(data)) * 100


def labour_cost(data: SourceData) -> float:
    return data.labour.total


def labour_cost_percent(data: SourceData) -> float:
    return safe_ratio(labour_cost(data), data.summary.shop_sales) * 100


def customer_count(data: SourceData) -> float:
    return float(data.customers)


def basket_size(data: SourceData) -> float:
    return safe_ratio(data.summary.shop_sales, data.customers)


def active_sites(data: SourceData) -> float:
    return float(data.fuel_margin.site_count)


def avg_sale_per_site(data: SourceData) -> float:
    return safe_ratio(net_sales(data), data.fuel_margin.site_count)


def total_purchases(data: SourceData) -> float:
    return data.fuel_purchases.total


def ledger_fuel_volume(data: SourceData) -> float:
    return data.fuel_sales.sum_volume


def bank_balance(data: SourceData) -> float:
    return data.bank.total


# Breakdowns


def _fuel_split(
    data: SourceData, margin_field: str, bunkered_field: str, non_bunkered_field: str
) -> tuple[BreakdownItem, ...]:
    """Bunkered and non-bunkered parts of a fuel figure, from the source its total used."""
    if getattr(data.fuel_margin, margin_field) > 0:
        bunkered = getattr(data.fuel_margin_bunkered, margin_field)
        non_bunkered = getattr(data.fuel_margin_non_bunkered, margin_field)
    else:
        bunkered = getattr(data.summary, bunkered_field)
        non_bunkered = getattr(data.summary, non_bunkered_field)
    return (
        BreakdownItem(name="Bunkered", value=bunkered),
        BreakdownItem(name="Non-Bunkered", value=non_bunkered),
    )


def _code_items(aggregate: LedgerAggregate, volume: bool = False) -> tuple[BreakdownItem, ...]:
    return tuple(
        BreakdownItem(
            name=item.name,
            value=item.volume if volume else item.amount,
            code=item.code,
            transaction_count=item.transaction_count,
        )
        for item in aggregate.per_code
    )


def fuel_volume_items(data: SourceData) -> tuple[BreakdownItem, ...]:
    return _fuel_split(data, "sale_volume", "bunkered_volume", "non_bunkered_volume")


def fuel_net_sales_items(data: SourceData) -> tuple[BreakdownItem, ...]:
    return _fuel_split(data, "net_sales", "bunkered_sales", "non_bunkered_sales")


def fuel_profit_items(data: SourceData) -> tuple[BreakdownItem, ...]:
    return (
        BreakdownItem(name="Bunkered", value=data.fuel_margin_bunkered.fuel_profit),
        BreakdownItem(name="Non-Bunkered", value=data.fuel_margin_non_bunkered.fuel_profit),
    )


def net_sales_items(data: SourceData) -> tuple[BreakdownItem, ...]:
    return fuel_net_sales_items(data) + _code_items(data.other_income)


def profit_items(data: SourceData) -> tuple[BreakdownItem, ...]:
    return fuel_profit_items(data) + _code_items(data.other_income)


def total_sales_items(data: SourceData) -> tuple[BreakdownItem, ...]:
    return (
        BreakdownItem(name="Fuel Sales", value=fuel_net_sales(data)),
        BreakdownItem(name="Shop Sales", value=data.summary.shop_sales),
        BreakdownItem(name="Valet Sales", value=data.summary.valet_sales),
    )


def overhead_items(data: SourceData) -> tuple[BreakdownItem, ...]:
    """One item per overhead bucket that has data, in code order."""
    buckets: dict[str, list] = {}
    for item in data.overheads.per_code:
        bucket = buckets.setdefault(overhead_bucket(item.code), [0.0, 0])
        bucket[0] += item.amount
        bucket[1] += item.transaction_count
    return tuple(
        BreakdownItem(name=name, value=value, transaction_count=count)
        for name, (value, count) in buckets.items()
    )


@dataclass(frozen=True)
class MetricRule:
    """How one metric is resolved.

    ``breakdown_total`` is the figure the breakdown decomposes when it is
    not the metric value itself (ratios decompose their numerator).
    """

    unit: Unit
    sources: frozenset[Source]
    value: Callable[[SourceData], float]
    breakdown: Optional[Callable[[SourceData], tuple[BreakdownItem, ...]]] = None
    breakdown_sources: frozenset[Source] = frozenset()
    breakdown_total: Optional[Callable[[SourceData], float]] = None


_MONTHLY = frozenset({Source.MONTHLY})
_FUEL_SPLIT = frozenset({Source.FUEL_MARGIN_BUNKERED, Source.FUEL_MARGIN_NON_BUNKERED})

METRIC_RULES: Mapping[str, MetricRule] = MappingProxyType(
    {
        "totalFuelVolume": MetricRule(
            Unit.LITRES, _MONTHLY, total_fuel_volume, fuel_volume_items, _FUEL_SPLIT
        ),
        "fuelNetSales": MetricRule(
            Unit.GBP, _MONTHLY, fuel_net_sales, fuel_net_sales_items, _FUEL_SPLIT
        ),
        "otherIncome": MetricRule(
            Unit.GBP,
            frozenset({Source.OTHER_INCOME}),
            other_income,
            lambda data: _code_items(data.other_income),
        ),
        "netSales": MetricRule(
            Unit.GBP,
            frozenset({Source.MONTHLY, Source.OTHER_INCOME}),
            net_sales,
            net_sales_items,
            _FUEL_SPLIT,
        ),
        "fuelProfit": MetricRule(Unit.GBP, _MONTHLY, fuel_profit, fuel_profit_items, _FUEL_SPLIT),
        "profit": MetricRule(
            Unit.GBP,
            frozenset({Source.MONTHLY, Source.OTHER_INCOME}),
            profit,
            profit_items,
            _FUEL_SPLIT,
        ),
        "shopProfit": MetricRule(Unit.GBP, _MONTHLY, shop_profit),
        "valetProfit": MetricRule(Unit.GBP, _MONTHLY, valet_profit),
        "totalSales": MetricRule(Unit.GBP, _MONTHLY, total_sales, total_sales_items),
        "avgPPL": MetricRule(Unit.PENCE_PER_LITRE, _MONTHLY, avg_ppl),
        "avgStoredPPL": MetricRule(Unit.PENCE_PER_LITRE, _MONTHLY, avg_stored_ppl),
        "overheads": MetricRule(
            Unit.GBP, frozenset({Source.OVERHEADS}), overheads, overhead_items
        ),
        "actualPPL": MetricRule(
            Unit.PENCE_PER_LITRE,
            frozenset({Source.OVERHEADS, Source.MONTHLY}),
            actual_ppl,
            overhead_items,
            breakdown_total=overheads,
        ),
        "profitMargin": MetricRule(Unit.PERCENT, _MONTHLY, profit_margin),
        "labourCost": MetricRule(
            Unit.GBP,
            frozenset({Source.LABOUR}),
            labour_cost,
            lambda data: _code_items(data.labour),
        ),
        "labourCostPercent": MetricRule(
            Unit.PERCENT,
            frozenset({Source.LABOUR, Source.MONTHLY}),
            labour_cost_percent,
            lambda data: _code_items(data.labour),
            breakdown_total=labour_cost,
        ),
        "customerCount": MetricRule(Unit.COUNT, frozenset({Source.CUSTOMERS}), customer_count),
        "basketSize": MetricRule(
            Unit.GBP, frozenset({Source.MONTHLY, Source.CUSTOMERS}), basket_size
        ),
        "activeSites": MetricRule(Unit.COUNT, _MONTHLY, active_sites),
        "avgSalePerSite": MetricRule(
            Unit.GBP, frozenset({Source.MONTHLY, Source.OTHER_INCOME}), avg_sale_per_site
        ),
        "totalPurchases": MetricRule(
            Unit.GBP,
            frozenset({Source.FUEL_PURCHASES}),
            total_purchases,
            lambda data: _code_items(data.fuel_purchases),
        ),
        "ledgerFuelVolume": MetricRule(
            Unit.LITRES,
            frozenset({Source.FUEL_SALES}),
            ledger_fuel_volume,
            lambda data: _code_items(data.fuel_sales, volume=True),
        ),
        "bankBalance": MetricRule(
            Unit.GBP,
            frozenset({Source.BANK}),
            bank_balance,
            lambda data: _code_items(data.bank),
        ),
    }
)


def get_rule(name: str) -> MetricRule:
    """Return the rule for a metric name.

    Raises:
        ValidationError: If the metric is unknown
    """
    rule = METRIC_RULES.get(name)
    if rule is None:
        raise ValidationError(unknown_metric(name, METRIC_RULES))
    return rule


class MetricResolver:
    """Service for resolving metric values and breakdowns."""

    def __init__(
        self,
        ledger: LedgerAggregator,
        monthly: MonthlyAggregator,
        max_workers: int = DEFAULT_QUERY_WORKERS,
    ):
        """Initialize metric resolver.

        Args:
            ledger: Ledger aggregator
            monthly: Monthly aggregator
            max_workers: Number of reads issued concurrently (1 runs them in turn)
        """
        self.ledger = ledger
        self.monthly = monthly
        self.max_workers = max_workers

    def fetch(
        self, sources: Iterable[Source], spec: PeriodSpec, site_code: Optional[int] = None
    ) -> SourceData:
        """Read the given sources for one scope and period.

        The period is assumed valid. Reads are independent and run concurrently;
        any failure fails the whole fetch.
        """
        periods = resolve_periods(spec)
        window = ledger_window(spec)

        loaders = {
            Source.MONTHLY: lambda: self.monthly.aggregate_monthly(periods, site_code),
            Source.FUEL_MARGIN_BUNKERED: lambda: self.monthly.aggregate_fuel_margin(
                periods, site_code, bunkered=True
            ),
            Source.FUEL_MARGIN_NON_BUNKERED: lambda: self.monthly.aggregate_fuel_margin(
                periods, site_code, bunkered=False
            ),
            Source.OTHER_INCOME: lambda: self.ledger.aggregate(
                selection_for(CodeCategory.OTHER_INCOME), window, site_code
            ),
            Source.OVERHEADS: lambda: self.ledger.aggregate(
                selection_for(CodeCategory.OVERHEAD), window, site_code
            ),
            Source.LABOUR: lambda: self.ledger.aggregate(
                selection_for(CodeCategory.LABOUR), window, site_code
            ),
            Source.FUEL_PURCHASES: lambda: self.ledger.aggregate(
                selection_for(CodeCategory.FUEL_PURCHASE), window, site_code
            ),
            Source.FUEL_SALES: lambda: self.ledger.aggregate(
                selection_for(CodeCategory.FUEL_SALE), window, site_code
            ),
            Source.BANK: lambda: self.ledger.aggregate(
                selection_for(CodeCategory.BANK_ACCOUNT), balance_window(spec), site_code
            ),
            Source.CUSTOMERS: lambda: self.ledger.count_sales_transactions(window, site_code),
        }

        requested = [source for source in Source if source in set(sources)]
        logger.debug(
            "Fetching %s for site=%s years=%s months=%s",
            [source.value for source in requested],
            site_code,
            periods.years,
            periods.months,
        )
        results = fan_out({source: loaders[source] for source in requested}, self.max_workers)
        return SourceData(**{source.value: result for source, result in results.items()})

    def resolve(self, name: str, spec: PeriodSpec, site_code: Optional[int] = None) -> float:
        """Resolve a single metric value."""
        return self.resolve_many([name], spec, site_code)[name]

    def resolve_many(
        self, names: Iterable[str], spec: PeriodSpec, site_code: Optional[int] = None
    ) -> dict[str, float]:
        """Resolve several metrics from one shared set of reads."""
        rules = {name: get_rule(name) for name in names}
        sources: set[Source] = set()
        for rule in rules.values():
            sources |= rule.sources

        data = self.fetch(sources, spec, site_code)
        values = {name: _finite(rule.value(data)) for name, rule in rules.items()}
        logger.debug("Resolved %s for site=%s", values, site_code)
        return values

    def breakdown(self, name: str, spec: PeriodSpec, site_code: Optional[int] = None) -> Breakdown:
        """Resolve a metric's breakdown.

        Raises:
            ValidationError: If the metric is unknown or has no breakdown
            ReconciliationError: If the items do not add up to the total
        """
        rule = get_rule(name)
        if rule.breakdown is None:
            supported = [key for key, value in METRIC_RULES.items() if value.breakdown is not None]
            raise ValidationError(no_breakdown(name, supported))

        data = self.fetch(rule.sources | rule.breakdown_sources, spec, site_code)
        total_of = rule.breakdown_total or rule.value
        total = _finite(total_of(data))
        items = tuple(
            BreakdownItem(
                name=item.name,
                value=_finite(item.value),
                code=item.code,
                transaction_count=item.transaction_count,
            )
            for item in rule.breakdown(data)
        )

        items_total = sum(item.value for item in items)
        if abs(items_total - total) > BREAKDOWN_TOLERANCE:
            logger.error(
                "Breakdown for %s does not reconcile: items=%s total=%s", name, items_total, total
            )
            raise ReconciliationError(breakdown_mismatch(name, items_total, total))

        return Breakdown(metric=name, unit=rule.unit, items=items, total=total)


def _finite(value: float) -> float:
    value = float(value)
    return value if math.isfinite(value) else 0.0
