"""Ledger aggregation domain service."""

import logging
from collections import defaultdict
from typing import Optional

from fuelmetrics.database.base import Database
from fuelmetrics.domain.entities import (
    CodeSelection,
    CodeTotal,
    DailySales,
    LedgerAggregate,
    LedgerCategory,
    LedgerWindow,
    SignRule,
)
from fuelmetrics.domain.nominal_codes import classify, normalize_code

logger = logging.getLogger(__name__)

SALES_CATEGORIES = (LedgerCategory.SHOP_SALES.value, LedgerCategory.FUEL_SALES.value)
DAILY_SALES_CATEGORIES = (
    LedgerCategory.FUEL_SALES.value,
    LedgerCategory.SHOP_SALES.value,
    LedgerCategory.VALET_SALES.value,
)


def _number(value) -> float:
    return float(value) if value is not None else 0.0


class LedgerAggregator:
    """Service for summing transaction ledger rows by nominal code."""

    def __init__(self, db: Database):
        """Initialize ledger aggregator.

        Args:
            db: Database instance
        """
        self.db = db

    def classified_selection(self, selection: CodeSelection) -> CodeSelection:
        """Drop codes the taxonomy does not know and normalize the rest."""
        if selection.is_range:
            return selection

        codes: list[str] = []
        for code in selection.codes:
            normalized = normalize_code(code)
            if normalized is None or classify(normalized) is None:
                logger.debug("Skipping unclassified nominal code %r", code)
                continue
            if normalized not in codes:
                codes.append(normalized)
        return CodeSelection(codes=tuple(codes))

    def aggregate(
        self,
        selection: CodeSelection,
        window: LedgerWindow,
        site_code: Optional[int] = None,
    ) -> LedgerAggregate:
        """Aggregate ledger rows for a code selection.

        Each code is summed according to its sign rule: absolute codes use
        the sum of absolute amounts, as-is codes the signed sum. Volumes are
        summed as stored.

        Args:
            selection: Explicit codes or an inclusive code range
            window: Date filter
            site_code: Single site, or None for all (non-sentinel) sites

        Returns:
            LedgerAggregate with totals and a per-code breakdown in taxonomy order
        """
        selection = self.classified_selection(selection)
        if window.is_empty or (not selection.is_range and not selection.codes):
            return LedgerAggregate()

        rows = self.db.sum_ledger_by_code(selection, window, site_code)

        per_code: list[CodeTotal] = []
        sum_amount = 0.0
        sum_abs_amount = 0.0
        sum_volume = 0.0
        count = 0
        for row in rows:
            entry = classify(row["nominal_code"])
            if entry is None:
                continue

            row_amount = _number(row["sum_amount"])
            row_abs_amount = _number(row["sum_abs_amount"])
            row_volume = _number(row["sum_volume"])
            row_count = int(row["count"] or 0)

            amount = row_abs_amount if entry.sign_rule == SignRule.ABSOLUTE else row_amount
            per_code.append(
                CodeTotal(
                    code=entry.code,
                    name=entry.name,
                    amount=amount,
                    volume=row_volume,
                    transaction_count=row_count,
                )
            )
            sum_amount += row_amount
            sum_abs_amount += row_abs_amount
            sum_volume += row_volume
            count += row_count

        if not selection.is_range:
            order = {code: index for index, code in enumerate(selection.codes)}
            per_code.sort(key=lambda item: order[item.code])
        else:
            per_code.sort(key=lambda item: item.code)

        total = sum(item.amount for item in per_code)
        if not per_code:
            logger.debug("No ledger rows for %s in %s (site=%s)", selection, window, site_code)

        return LedgerAggregate(
            sum_amount=sum_amount,
            sum_abs_amount=sum_abs_amount,
            sum_volume=sum_volume,
            count=count,
            total=total,
            per_code=tuple(per_code),
        )

    def count_sales_transactions(self, window: LedgerWindow, site_code: Optional[int] = None) -> int:
        """Count shop and fuel sale rows (the customer count behind basket size)."""
        if window.is_empty:
            return 0
        return self.db.count_ledger_rows(SALES_CATEGORIES, window, site_code)

    def daily_sales(self, window: LedgerWindow, site_code: Optional[int] = None) -> tuple[DailySales, ...]:
        """Sum fuel, shop and valet sales per day of month.

        Amounts are signed sums of the rows' stored values.
        """
        if window.is_empty:
            return ()

        rows = self.db.sum_ledger_by_day(DAILY_SALES_CATEGORIES, window, site_code)

        days: dict[int, dict[str, float]] = defaultdict(
            lambda: {category: 0.0 for category in DAILY_SALES_CATEGORIES}
        )
        counts: dict[int, int] = defaultdict(int)
        for row in rows:
            day = int(row["day"])
            days[day][row["category"]] += _number(row["sum_amount"])
            counts[day] += int(row["count"] or 0)

        result = []
        for day in sorted(days):
            sales = days[day]
            fuel = sales[LedgerCategory.FUEL_SALES.value]
            shop = sales[LedgerCategory.SHOP_SALES.value]
            valet = sales[LedgerCategory.VALET_SALES.value]
            result.append(
                DailySales(
                    day=day,
                    fuel_sales=fuel,
                    shop_sales=shop,
                    valet_sales=valet,
                    total_sales=fuel + shop + valet,
                    transaction_count=counts[day],
                )
            )
        return tuple(result)
