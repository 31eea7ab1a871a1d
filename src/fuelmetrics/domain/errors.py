"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class ReconciliationError(DomainError):
    """A breakdown does not add up to the total it decomposes."""


def unknown_metric(name: str, known) -> str:
    """Return message for an unsupported metric name."""
    return f"Unknown metric '{name}'. Supported metrics: {', '.join(sorted(known))}"


def missing_period() -> str:
    """Return message when neither months/years nor a date range was given."""
    return "A period is required: give months and years, or a start and end date"


def mixed_period() -> str:
    """Return message when both months/years and a date range were given."""
    return "Give either months and years or a start and end date, not both"


def inverted_date_range(start_date, end_date) -> str:
    """Return message for a range whose start is after its end."""
    return f"Start date {start_date} is after end date {end_date}"


def invalid_month(month) -> str:
    """Return message for a month outside 1-12."""
    return f"Invalid month {month!r}: months must be between 1 and 12"


def invalid_year(year) -> str:
    """Return message for a year that is not a positive integer."""
    return f"Invalid year {year!r}: years must be positive integers"


def invalid_site_code(site_code) -> str:
    """Return message for a malformed site code."""
    return f"Invalid site code {site_code!r}: site codes are non-negative integers"


def breakdown_mismatch(metric: str, items_total: float, total: float) -> str:
    """Return message when breakdown items do not reconcile with the total."""
    return (
        f"Breakdown for '{metric}' does not reconcile: "
        f"items sum to {items_total:,.2f}, total is {total:,.2f}"
    )


def no_breakdown(name: str, supported) -> str:
    """Return message for a metric that has no breakdown view."""
    return f"Metric '{name}' has no breakdown. Metrics with breakdowns: {', '.join(sorted(supported))}"


def unknown_trend(name: str, known) -> str:
    """Return message for an unsupported trend name."""
    return f"Unknown trend '{name}'. Supported trends: {', '.join(sorted(known))}"


def invalid_limit(limit) -> str:
    """Return message for a non-positive result limit."""
    return f"Invalid limit {limit!r}: limit must be a positive integer"


def unknown_site(site_code) -> str:
    """Return message for a site code with no row in the sites table."""
    return f"Site {site_code} not found"
