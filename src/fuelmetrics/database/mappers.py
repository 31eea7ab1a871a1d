"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the domain stays stable when
the store's schema changes.
"""

from typing import Any, Optional

from fuelmetrics.domain import entities as domain
from fuelmetrics.database.models import Site as ORMSite

MONTHLY_SUMMARY_FIELDS = (
    "bunkered_volume",
    "bunkered_sales",
    "bunkered_purchases",
    "non_bunkered_volume",
    "non_bunkered_sales",
    "non_bunkered_purchases",
    "shop_sales",
    "shop_purchases",
    "valet_sales",
    "valet_purchases",
    "overheads",
    "labour_cost",
)

FUEL_MARGIN_FIELDS = ("sale_volume", "net_sales", "fuel_profit", "purchases")


def to_float(value: Any) -> float:
    """Convert a nullable numeric column value to float (None -> 0.0)."""
    if value is None:
        return 0.0
    return float(value)


def site_to_domain(orm_site: ORMSite) -> domain.Site:
    """Convert SQLAlchemy Site model to domain Site entity."""
    return domain.Site(
        site_code=orm_site.site_code,
        site_name=orm_site.site_name,
        is_bunkered=orm_site.is_bunkered,
        is_active=bool(orm_site.is_active),
    )


def monthly_summary_totals_from_row(row: Optional[dict[str, Any]]) -> domain.MonthlySummaryTotals:
    """Build MonthlySummaryTotals from an aggregate result row (None -> zeros)."""
    row = row or {}
    return domain.MonthlySummaryTotals(
        **{name: to_float(row.get(name)) for name in MONTHLY_SUMMARY_FIELDS}
    )


def fuel_margin_totals_from_row(row: Optional[dict[str, Any]]) -> domain.FuelMarginTotals:
    """Build FuelMarginTotals from an aggregate result row (None -> zeros)."""
    row = row or {}
    return domain.FuelMarginTotals(
        sale_volume=to_float(row.get("sale_volume")),
        net_sales=to_float(row.get("net_sales")),
        fuel_profit=to_float(row.get("fuel_profit")),
        purchases=to_float(row.get("purchases")),
        avg_stored_ppl=to_float(row.get("avg_ppl")),
        row_count=int(row.get("row_count") or 0),
        site_count=int(row.get("site_count") or 0),
    )


def site_fuel_totals_from_row(row: dict[str, Any]) -> domain.SiteFuelTotals:
    """Build SiteFuelTotals from a per-site aggregate result row."""
    return domain.SiteFuelTotals(
        site_code=int(row["site_code"]),
        site_name=row.get("site_name"),
        net_sales=to_float(row.get("net_sales")),
        fuel_profit=to_float(row.get("fuel_profit")),
        sale_volume=to_float(row.get("sale_volume")),
    )
