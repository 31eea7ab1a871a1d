"""Value formatting for CLI output."""

from fuelmetrics.domain.entities import Unit


def format_value(value: float, unit: Unit) -> str:
    """Format a metric value for display in its unit."""
    if unit == Unit.GBP:
        sign = "-" if value < 0 else ""
        return f"{sign}£{abs(value):,.2f}"
    if unit == Unit.LITRES:
        return f"{value:,.2f} L"
    if unit == Unit.PENCE_PER_LITRE:
        return f"{value:,.2f} ppl"
    if unit == Unit.PERCENT:
        return f"{value:,.2f}%"
    return f"{value:,.0f}"
