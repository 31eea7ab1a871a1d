"""Tests for ReportAssembler."""

from datetime import date
from decimal import Decimal

import pytest

from fuelmetrics.domain.entities import MONTH_LABELS, PeriodSpec, Unit
from fuelmetrics.domain.errors import DomainError, ValidationError
from fuelmetrics.domain.report import ReportAssembler
from fuelmetrics.domain.resolver import METRIC_RULES

JANUARY = PeriodSpec.explicit([1], [2025])
JAN_FEB = PeriodSpec.explicit([1, 2], [2025])

BREAKDOWN_METRICS = [name for name, rule in METRIC_RULES.items() if rule.breakdown is not None]


def _items(breakdown):
    return {item.name: item.value for item in breakdown.items}


class TestGetMetric:
    """Tests for metric cards."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("totalFuelVolume", 1000.0),
            ("fuelNetSales", 1500.0),
            ("otherIncome", 115.0),
            ("netSales", 1615.0),
            ("fuelProfit", 100.0),
            ("profit", 215.0),
            ("shopProfit", 500.0),
            ("valetProfit", 200.0),
            ("totalSales", 3800.0),
            ("avgPPL", 10.0),
            ("avgStoredPPL", 10.0),
            ("overheads", 1820.0),
            ("actualPPL", 182.0),
            ("profitMargin", 100 / 1500 * 100),
            ("labourCost", 1200.0),
            ("labourCostPercent", 60.0),
            ("customerCount", 4.0),
            ("basketSize", 500.0),
            ("activeSites", 1.0),
            ("avgSalePerSite", 1615.0),
            ("totalPurchases", 0.0),
            ("ledgerFuelVolume", 1000.0),
            ("bankBalance", 3500.0),
        ],
    )
    def test_site_metrics(self, estate_report, name, expected):
        card = estate_report.get_metric(name, 5, JANUARY)
        assert card.name == name
        assert card.value == pytest.approx(expected)
        assert card.unit == METRIC_RULES[name].unit

    def test_fuel_volume_fallback_scenario(self, estate_report):
        """Site 7 has no fuel margin volume: 500 bunkered + 300 non-bunkered."""
        card = estate_report.get_metric("totalFuelVolume", 7, JANUARY)
        assert card.value == pytest.approx(800.0)
        assert card.unit == Unit.LITRES

    def test_date_range_matches_explicit_month(self, estate_report):
        period = PeriodSpec.date_range(date(2025, 1, 1), date(2025, 1, 31))
        for name in ("netSales", "overheads", "customerCount", "bankBalance"):
            assert estate_report.get_metric(name, 5, period).value == pytest.approx(
                estate_report.get_metric(name, 5, JANUARY).value
            )

    def test_bank_balance_ignores_start_date(self, estate_report):
        period = PeriodSpec.date_range(date(2025, 1, 10), date(2025, 2, 28))
        assert estate_report.get_metric("bankBalance", 5, period).value == pytest.approx(5500.0)

    def test_all_sites_exclude_sentinels(self, estate_report):
        assert estate_report.get_metric("otherIncome", None, JANUARY).value == pytest.approx(135.0)
        assert estate_report.get_metric("activeSites", None, JANUARY).value == 2
        assert estate_report.get_metric("totalFuelVolume", None, JANUARY).value == pytest.approx(1500.0)

    def test_sentinel_requested_explicitly(self, estate_report):
        assert estate_report.get_metric("otherIncome", 0, JANUARY).value == pytest.approx(100000.0)
        assert estate_report.get_metric("activeSites", 0, JANUARY).value == 1

    def test_empty_periods_are_zero_filled(self, estate_report):
        empty = PeriodSpec.explicit([], [])
        for name in METRIC_RULES:
            card = estate_report.get_metric(name, 5, empty)
            assert card.value == 0.0, name

    def test_no_rows_are_zero_filled(self, estate_report):
        period = PeriodSpec.explicit([6], [2019])
        cards = estate_report.get_cards(None, period)
        assert all(card.value == 0.0 for card in cards)


class TestValidation:
    """Tests that invalid input is rejected before any query."""

    @pytest.fixture
    def guarded(self, temp_db, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("query issued")

        for method in (
            "sum_ledger_by_code",
            "count_ledger_rows",
            "sum_monthly_summary",
            "sum_fuel_margin",
            "sum_fuel_margin_by_site",
            "sum_monthly_summary_by_month",
        ):
            monkeypatch.setattr(temp_db, method, fail)
        return ReportAssembler(temp_db)

    def test_inverted_range(self, guarded):
        period = PeriodSpec.date_range(date(2025, 2, 1), date(2025, 1, 1))
        with pytest.raises(ValidationError, match="is after end date"):
            guarded.get_metric("netSales", 5, period)

    def test_missing_period(self, guarded):
        with pytest.raises(ValidationError):
            guarded.get_breakdown("netSales", 5, PeriodSpec())
        with pytest.raises(ValidationError, match="period is required"):
            guarded.get_metric("totalFuelVolume", 5, PeriodSpec(months=(3,)))
        with pytest.raises(ValidationError, match="period is required"):
            guarded.get_cards(5, PeriodSpec(years=(2025,)))

    def test_range_mixed_with_months(self, guarded):
        period = PeriodSpec(
            months=(3,), years=(2025,), start_date=date(2025, 3, 1), end_date=date(2025, 3, 31)
        )
        with pytest.raises(ValidationError, match="not both"):
            guarded.get_metric("netSales", 5, period)

    def test_invalid_month(self, guarded):
        with pytest.raises(ValidationError):
            guarded.get_cards(None, PeriodSpec.explicit([13], [2025]))

    def test_invalid_site(self, guarded):
        with pytest.raises(ValidationError):
            guarded.get_metric("netSales", -4, JANUARY)

    def test_unknown_metric(self, guarded):
        with pytest.raises(ValidationError, match="Unknown metric"):
            guarded.get_metric("margin", 5, JANUARY)
        with pytest.raises(ValidationError, match="Unknown metric"):
            guarded.get_cards(5, JANUARY, names=["netSales", "margin"])

    def test_unknown_trend(self, guarded):
        with pytest.raises(ValidationError, match="Unknown trend"):
            guarded.get_trend("margin", 5, [2025])

    def test_invalid_trend_year(self, guarded):
        with pytest.raises(ValidationError, match="Invalid year"):
            guarded.get_trend("sales", 5, ["2025"])

    def test_invalid_limit(self, guarded):
        with pytest.raises(ValidationError, match="Invalid limit"):
            guarded.get_site_rankings(JANUARY, limit=0)

    def test_domain_errors_are_value_errors(self):
        assert issubclass(DomainError, ValueError)


class TestUpstreamFailure:
    """Tests that query failures abort the whole request."""

    def test_failure_propagates_unmodified(self, estate_report, monkeypatch):
        error = RuntimeError("server closed the connection")

        def fail(*args, **kwargs):
            raise error

        monkeypatch.setattr(estate_report.ledger, "aggregate", fail)
        with pytest.raises(RuntimeError) as excinfo:
            estate_report.get_metric("profit", 5, JANUARY)
        assert excinfo.value is error

        with pytest.raises(RuntimeError):
            estate_report.get_breakdown("netSales", 5, JANUARY)


class TestGetBreakdown:
    """Tests for breakdowns."""

    def test_other_income_by_code(self, estate_report):
        result = estate_report.get_breakdown("otherIncome", 5, JANUARY)

        assert result.total == pytest.approx(115.0)
        assert [(item.code, item.transaction_count) for item in result.items] == [
            ("6100", 2),
            ("6101", 1),
            ("6102", 1),
        ]
        assert _items(result) == pytest.approx(
            {"Fuel Commissions": 75.0, "Daily Facility Fees": 10.0, "Valeting Commissions": 30.0}
        )

    def test_overheads_by_bucket(self, estate_report):
        result = estate_report.get_breakdown("overheads", 5, JANUARY)
        assert [item.name for item in result.items] == ["Labour", "Rent & Rates", "Utilities"]
        assert _items(result) == pytest.approx(
            {"Labour": 1200.0, "Rent & Rates": 500.0, "Utilities": 120.0}
        )
        assert result.items[0].transaction_count == 2

    def test_actual_ppl_decomposes_overheads(self, estate_report):
        result = estate_report.get_breakdown("actualPPL", 5, JANUARY)
        assert result.total == pytest.approx(1820.0)
        assert result.unit == Unit.PENCE_PER_LITRE

    def test_labour_cost(self, estate_report):
        result = estate_report.get_breakdown("labourCost", 5, JANUARY)
        assert _items(result) == pytest.approx({"Gross Wages": 1000.0, "Employers N.I.": 200.0})
        percent = estate_report.get_breakdown("labourCostPercent", 5, JANUARY)
        assert percent.total == pytest.approx(1200.0)

    def test_fuel_volume_from_fuel_margin(self, estate_report):
        result = estate_report.get_breakdown("totalFuelVolume", None, JANUARY)
        assert result.total == pytest.approx(1500.0)
        assert _items(result) == pytest.approx({"Bunkered": 1000.0, "Non-Bunkered": 500.0})

    def test_fuel_volume_from_fallback(self, estate_report):
        """The breakdown follows the source its total used."""
        result = estate_report.get_breakdown("totalFuelVolume", 7, JANUARY)
        assert result.total == pytest.approx(800.0)
        assert _items(result) == pytest.approx({"Bunkered": 500.0, "Non-Bunkered": 300.0})

    def test_net_sales(self, estate_report):
        result = estate_report.get_breakdown("netSales", 5, JANUARY)
        assert result.total == pytest.approx(1615.0)
        assert [item.name for item in result.items] == [
            "Bunkered",
            "Non-Bunkered",
            "Fuel Commissions",
            "Daily Facility Fees",
            "Valeting Commissions",
        ]

    def test_total_sales(self, estate_report):
        result = estate_report.get_breakdown("totalSales", 5, JANUARY)
        assert _items(result) == pytest.approx(
            {"Fuel Sales": 1500.0, "Shop Sales": 2000.0, "Valet Sales": 300.0}
        )

    def test_bank_balance(self, estate_report):
        result = estate_report.get_breakdown("bankBalance", 5, JAN_FEB)
        assert result.total == pytest.approx(5500.0)
        assert _items(result) == pytest.approx({"PRL HSBC": 3500.0, "Lloyds Bank": 2000.0})

    def test_deleted_rows_never_appear(self, estate_report):
        overheads = estate_report.get_breakdown("overheads", 5, JANUARY)
        assert sum(item.value for item in overheads.items) == pytest.approx(1820.0)
        income = estate_report.get_breakdown("otherIncome", 5, JANUARY)
        assert _items(income)["Daily Facility Fees"] == pytest.approx(10.0)

    def test_sentinels_never_appear_in_all_sites(self, estate_report):
        income = estate_report.get_breakdown("otherIncome", None, JANUARY)
        assert _items(income)["Fuel Commissions"] == pytest.approx(95.0)

    def test_empty_breakdown(self, estate_report):
        result = estate_report.get_breakdown("overheads", 5, PeriodSpec.explicit([], [2025]))
        assert result.items == ()
        assert result.total == 0.0

    @pytest.mark.parametrize("name", BREAKDOWN_METRICS)
    @pytest.mark.parametrize("site_code", [None, 0, 5, 6, 7, 42])
    @pytest.mark.parametrize(
        "period",
        [
            JANUARY,
            JAN_FEB,
            PeriodSpec.explicit([], []),
            PeriodSpec.date_range(date(2025, 1, 12), date(2025, 2, 15)),
            PeriodSpec.date_range(date(2024, 12, 1), date(2025, 1, 31)),
        ],
    )
    def test_breakdown_sums_to_total(self, estate_report, name, site_code, period):
        result = estate_report.get_breakdown(name, site_code, period)
        assert sum(item.value for item in result.items) == pytest.approx(result.total, abs=1e-2)


class TestGetCards:
    """Tests for the dashboard card set."""

    def test_all_cards(self, estate_report):
        cards = estate_report.get_cards(5, JANUARY)
        assert [card.name for card in cards] == list(METRIC_RULES)
        by_name = {card.name: card.value for card in cards}
        assert by_name["netSales"] == pytest.approx(1615.0)
        assert by_name["basketSize"] == pytest.approx(500.0)

    def test_selected_cards(self, estate_report):
        cards = estate_report.get_cards(None, JANUARY, names=["activeSites", "fuelProfit"])
        assert [(card.name, card.value) for card in cards] == [("activeSites", 2.0), ("fuelProfit", 140.0)]

    def test_cards_match_single_metrics(self, estate_report):
        for card in estate_report.get_cards(6, JAN_FEB):
            assert card.value == pytest.approx(estate_report.get_metric(card.name, 6, JAN_FEB).value)


class TestGetTrend:
    """Tests for month-of-year trends."""

    def test_zero_fill_scenario(self, temp_db):
        """Only March and April have rows; every other month is 0."""
        temp_db.add_fuel_margin(5, 2025, 3, sale_volume=Decimal("1000"), net_sales=Decimal("1500"))
        temp_db.add_monthly_summary(
            5, 2025, 4, bunkered_sales=Decimal("600"), non_bunkered_sales=Decimal("400")
        )
        trend = ReportAssembler(temp_db).get_trend("sales", 5, [2025])

        assert trend.labels == MONTH_LABELS
        assert len(trend.series) == 1
        values = trend.series[0].values
        assert len(values) == 12
        assert values[2] == pytest.approx(1500.0)
        assert values[3] == pytest.approx(1000.0)
        assert all(value == 0 for index, value in enumerate(values) if index not in (2, 3))

    def test_performance_series(self, estate_report):
        trend = estate_report.get_trend("performance", 5, [2025])
        series = {item.name: item.values for item in trend.series}

        assert list(series) == ["Sales", "Profit", "Sale Volume", "PPL", "Shop Sales", "Valet Sales"]
        assert all(len(values) == 12 for values in series.values())
        assert series["Sales"][:3] == pytest.approx((1500.0, 3000.0, 0.0))
        assert series["Profit"][:2] == pytest.approx((100.0, 300.0))
        assert series["PPL"][:3] == pytest.approx((10.0, 15.0, 0.0))
        assert series["Shop Sales"][:2] == pytest.approx((2000.0, 1000.0))

    def test_profit_falls_back_without_fuel_margin_row(self, estate_report):
        trend = estate_report.get_trend("profit", 7, [2025])
        # 1200 fuel sales - 1100 fuel purchases
        assert trend.series[0].values[0] == pytest.approx(100.0)
        assert trend.series[0].name == "Profit"

    def test_all_sites_trend_excludes_sentinels(self, estate_report):
        trend = estate_report.get_trend("saleVolume", None, [2025])
        assert trend.series[0].values[0] == pytest.approx(1500.0)

    def test_no_years(self, estate_report):
        trend = estate_report.get_trend("shopSales", 5, [])
        assert trend.series[0].values == (0.0,) * 12


class TestSiteReports:
    """Tests for rankings, profit by site and daily sales."""

    def test_rankings(self, estate_report):
        rankings = estate_report.get_site_rankings(JAN_FEB)
        assert [site.site_code for site in rankings.top] == [5, 6]
        assert [site.site_code for site in rankings.bottom] == [6, 5]

    def test_rankings_limit(self, estate_report):
        rankings = estate_report.get_site_rankings(JAN_FEB, limit=1)
        assert [site.site_name for site in rankings.top] == ["Northgate"]
        assert [site.site_name for site in rankings.bottom] == ["Southside"]

    def test_rankings_without_data(self, estate_report):
        rankings = estate_report.get_site_rankings(PeriodSpec.explicit([1], [2019]))
        assert rankings.top == ()
        assert rankings.bottom == ()

    def test_profit_by_site(self, estate_report):
        sites = estate_report.get_profit_by_site(JAN_FEB)
        assert [(site.site_code, site.fuel_profit) for site in sites] == [(5, 400.0), (6, 40.0)]

    def test_daily_sales(self, estate_report):
        days = estate_report.get_daily_sales(5, JANUARY)
        assert [day.day for day in days] == [3, 4]
        assert days[0].total_sales == pytest.approx(-1900.0)


class TestSiteLookup:
    """Tests for listing and looking up sites."""

    def test_list_sites_excludes_sentinels(self, estate_report):
        estate_report.db.add_site(8, site_name="Closed", is_active=False)

        assert [site.site_code for site in estate_report.list_sites()] == [5, 6, 7]
        assert [site.site_code for site in estate_report.list_sites(active_only=False)] == [5, 6, 7, 8]

    def test_get_site(self, estate_report):
        site = estate_report.get_site(5)
        assert site.site_name == "Northgate"
        assert site.is_bunkered is True
        assert not site.is_sentinel

    def test_get_sentinel_site(self, estate_report):
        assert estate_report.get_site(0).is_sentinel

    def test_unknown_site(self, estate_report):
        with pytest.raises(ValidationError, match="Site 99 not found"):
            estate_report.get_site(99)

    @pytest.mark.parametrize("site_code", [None, -1])
    def test_invalid_site(self, estate_report, site_code):
        with pytest.raises(ValidationError, match="Invalid site code"):
            estate_report.get_site(site_code)
