"""Tests for period validation and query windows."""

from datetime import date

import pytest

from fuelmetrics.domain.entities import LedgerWindow, PeriodSpec
from fuelmetrics.domain.errors import ValidationError
from fuelmetrics.domain.periods import (
    balance_window,
    ledger_window,
    resolve_periods,
    validate_period_spec,
    validate_site_code,
)


class TestValidation:
    """Tests for input validation."""

    def test_missing_period(self):
        with pytest.raises(ValidationError, match="period is required"):
            validate_period_spec(PeriodSpec())
        with pytest.raises(ValidationError):
            validate_period_spec(None)

    def test_half_explicit_period(self):
        with pytest.raises(ValidationError, match="period is required"):
            validate_period_spec(PeriodSpec(months=(3,)))
        with pytest.raises(ValidationError, match="period is required"):
            validate_period_spec(PeriodSpec(years=(2025,)))

    def test_range_with_explicit_lists(self):
        spec = PeriodSpec(months=(1,), years=(2025,), end_date=date(2025, 1, 31))
        with pytest.raises(ValidationError, match="not both"):
            validate_period_spec(spec)

    def test_incomplete_range(self):
        with pytest.raises(ValidationError):
            validate_period_spec(PeriodSpec(start_date=date(2025, 1, 1)))

    def test_inverted_range(self):
        spec = PeriodSpec.date_range(date(2025, 3, 1), date(2025, 1, 1))
        with pytest.raises(ValidationError, match="is after end date"):
            validate_period_spec(spec)

    @pytest.mark.parametrize("month", [0, 13, -1, True, "3"])
    def test_invalid_month(self, month):
        with pytest.raises(ValidationError, match="Invalid month"):
            validate_period_spec(PeriodSpec.explicit([month], [2025]))

    def test_invalid_year(self):
        with pytest.raises(ValidationError, match="Invalid year"):
            validate_period_spec(PeriodSpec.explicit([1], [0]))

    def test_empty_lists_are_valid(self):
        spec = PeriodSpec.explicit([], [])
        assert validate_period_spec(spec) is spec

    @pytest.mark.parametrize("site_code", [-1, 1.5, "5", False])
    def test_invalid_site_code(self, site_code):
        with pytest.raises(ValidationError, match="Invalid site code"):
            validate_site_code(site_code)

    def test_valid_site_codes(self):
        assert validate_site_code(None) is None
        assert validate_site_code(0) == 0
        assert validate_site_code(5) == 5


def test_resolve_periods_for_range():
    periods = resolve_periods(PeriodSpec.date_range(date(2025, 12, 1), date(2026, 1, 31)))
    assert periods.years == (2025, 2026)
    assert periods.months == (12, 1)


def test_resolve_periods_for_explicit_lists():
    periods = resolve_periods(PeriodSpec.explicit([2, 1, 2], [2025]))
    assert periods.years == (2025,)
    assert periods.months == (2, 1)
    assert len(periods.pairs) == 2


def test_ledger_window():
    assert ledger_window(PeriodSpec.date_range(date(2025, 1, 1), date(2025, 1, 31))) == LedgerWindow(
        start_date=date(2025, 1, 1), end_date=date(2025, 1, 31)
    )
    window = ledger_window(PeriodSpec.explicit([1, 2], [2025]))
    assert window.uses_periods
    assert window.months == (1, 2)
    assert not window.is_empty
    assert ledger_window(PeriodSpec.explicit([], [2025])).is_empty


def test_balance_window_has_no_lower_bound():
    window = balance_window(PeriodSpec.date_range(date(2025, 1, 10), date(2025, 2, 28)))
    assert window.start_date is None
    assert window.end_date == date(2025, 2, 28)


def test_balance_window_for_explicit_periods_ends_at_latest_month():
    window = balance_window(PeriodSpec.explicit([1, 2], [2024, 2025]))
    assert window == LedgerWindow(end_date=date(2025, 2, 28))
    assert balance_window(PeriodSpec.explicit([], [])).is_empty
