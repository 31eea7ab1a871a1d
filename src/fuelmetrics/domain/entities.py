"""Domain model entities for fuelmetrics.

These are pure data classes representing business concepts, independent of
database schema. Rows read from the store are mapped into these classes, and
every aggregate or report the domain services produce is one of them too.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Mapping, Optional

# Header/company-level placeholder rows in the sites table.
SENTINEL_SITE_CODES = frozenset({0, 1})

MONTH_LABELS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


class LedgerCategory(str, Enum):
    """Ledger row category."""

    FUEL_SALES = "fuel_sales"
    SHOP_SALES = "shop_sales"
    VALET_SALES = "valet_sales"
    OTHER = "other"


class CodeCategory(str, Enum):
    """Semantic category of a nominal code."""

    FUEL_SALE = "fuel-sale"
    FUEL_PURCHASE = "fuel-purchase"
    OTHER_INCOME = "other-income"
    OVERHEAD = "overhead"
    LABOUR = "labour-component"
    BANK_ACCOUNT = "bank-account"


class SignRule(str, Enum):
    """How ledger amounts for a code are summed."""

    AS_IS = "as-is"
    ABSOLUTE = "absolute"


class Unit(str, Enum):
    """Unit a metric value is expressed in."""

    GBP = "GBP"
    LITRES = "litres"
    PENCE_PER_LITRE = "ppl"
    PERCENT = "%"
    COUNT = "count"


@dataclass(frozen=True)
class Site:
    """Site domain entity."""

    site_code: int
    site_name: Optional[str]
    is_bunkered: Optional[bool]
    is_active: bool

    @property
    def is_sentinel(self) -> bool:
        return self.site_code in SENTINEL_SITE_CODES


@dataclass(frozen=True)
class NominalCode:
    """Static taxonomy entry for a nominal code."""

    code: str
    name: str
    category: CodeCategory
    sign_rule: SignRule


@dataclass(frozen=True)
class Period:
    """A (year, month) pair."""

    year: int
    month: int


@dataclass(frozen=True)
class PeriodSet:
    """Month-granularity coverage of a date range.

    ``years`` and ``months`` are independent ordered lists; queries match
    ``year IN years AND month IN months``. ``pairs`` keeps the exact walk.
    """

    years: tuple[int, ...] = ()
    months: tuple[int, ...] = ()
    pairs: tuple[Period, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.years or not self.months


@dataclass(frozen=True)
class PeriodSpec:
    """Requested period: explicit months/years, or a day range.

    ``months``/``years`` are None when not given, so an explicit empty list
    (a valid request that matches nothing) stays distinguishable from a
    missing period.
    """

    months: Optional[tuple[int, ...]] = None
    years: Optional[tuple[int, ...]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def explicit(cls, months, years) -> "PeriodSpec":
        return cls(months=tuple(months), years=tuple(years))

    @classmethod
    def date_range(cls, start_date: date, end_date: date) -> "PeriodSpec":
        return cls(start_date=start_date, end_date=end_date)

    @property
    def is_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None

    @property
    def is_explicit(self) -> bool:
        return self.months is not None or self.years is not None


@dataclass(frozen=True)
class LedgerWindow:
    """Ledger date filter.

    Either explicit ``years``/``months`` (matched on the extracted parts of
    ``transaction_date``) or inclusive date bounds, each of which may be open.
    """

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    years: Optional[tuple[int, ...]] = None
    months: Optional[tuple[int, ...]] = None

    @property
    def uses_periods(self) -> bool:
        return self.years is not None or self.months is not None

    @property
    def is_empty(self) -> bool:
        return self.uses_periods and (not self.years or not self.months)


@dataclass(frozen=True)
class CodeSelection:
    """Nominal codes to aggregate: explicit codes or an inclusive range."""

    codes: tuple[str, ...] = ()
    low: Optional[str] = None
    high: Optional[str] = None

    @property
    def is_range(self) -> bool:
        return self.low is not None and self.high is not None


@dataclass(frozen=True)
class CodeTotal:
    """Ledger total for a single nominal code."""

    code: str
    name: str
    amount: float
    volume: float
    transaction_count: int


@dataclass(frozen=True)
class LedgerAggregate:
    """Ledger totals for a code selection."""

    sum_amount: float = 0.0
    sum_abs_amount: float = 0.0
    sum_volume: float = 0.0
    count: int = 0
    total: float = 0.0
    per_code: tuple[CodeTotal, ...] = ()


@dataclass(frozen=True)
class MonthlySummaryTotals:
    """Sums over matching monthly summary rows."""

    bunkered_volume: float = 0.0
    bunkered_sales: float = 0.0
    bunkered_purchases: float = 0.0
    non_bunkered_volume: float = 0.0
    non_bunkered_sales: float = 0.0
    non_bunkered_purchases: float = 0.0
    shop_sales: float = 0.0
    shop_purchases: float = 0.0
    valet_sales: float = 0.0
    valet_purchases: float = 0.0
    overheads: float = 0.0
    labour_cost: float = 0.0

    @property
    def fuel_volume(self) -> float:
        return self.bunkered_volume + self.non_bunkered_volume

    @property
    def fuel_sales(self) -> float:
        return self.bunkered_sales + self.non_bunkered_sales

    @property
    def fuel_purchases(self) -> float:
        return self.bunkered_purchases + self.non_bunkered_purchases


@dataclass(frozen=True)
class FuelMarginTotals:
    """Sums over matching fuel margin rows."""

    sale_volume: float = 0.0
    net_sales: float = 0.0
    fuel_profit: float = 0.0
    purchases: float = 0.0
    avg_stored_ppl: float = 0.0
    row_count: int = 0
    site_count: int = 0


@dataclass(frozen=True)
class MonthlyTotals:
    """Both month-granularity sources for one filter."""

    summary: MonthlySummaryTotals = field(default_factory=MonthlySummaryTotals)
    fuel_margin: FuelMarginTotals = field(default_factory=FuelMarginTotals)


@dataclass(frozen=True)
class MonthlyTotalsByMonth:
    """Month-granularity sources keyed by month of year (1-12)."""

    summary: Mapping[int, MonthlySummaryTotals] = field(default_factory=dict)
    fuel_margin: Mapping[int, FuelMarginTotals] = field(default_factory=dict)


@dataclass(frozen=True)
class SiteFuelTotals:
    """Fuel totals for one site."""

    site_code: int
    site_name: Optional[str]
    net_sales: float
    fuel_profit: float
    sale_volume: float


@dataclass(frozen=True)
class DailySales:
    """Ledger sales for one day of month."""

    day: int
    fuel_sales: float
    shop_sales: float
    valet_sales: float
    total_sales: float
    transaction_count: int


@dataclass(frozen=True)
class MetricCard:
    """A single resolved metric value."""

    name: str
    value: float
    unit: Unit


@dataclass(frozen=True)
class BreakdownItem:
    """One line of a breakdown."""

    name: str
    value: float
    code: Optional[str] = None
    transaction_count: Optional[int] = None


@dataclass(frozen=True)
class Breakdown:
    """Named decomposition of a metric total."""

    metric: str
    unit: Unit
    items: tuple[BreakdownItem, ...]
    total: float


@dataclass(frozen=True)
class TrendSeries:
    """Twelve monthly values, Jan to Dec."""

    name: str
    values: tuple[float, ...]


@dataclass(frozen=True)
class Trend:
    """Month-of-year series for a set of years."""

    metric: str
    labels: tuple[str, ...]
    series: tuple[TrendSeries, ...]


@dataclass(frozen=True)
class SiteRankings:
    """Best and worst sites by fuel net sales."""

    top: tuple[SiteFuelTotals, ...]
    bottom: tuple[SiteFuelTotals, ...]
