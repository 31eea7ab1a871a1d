"""Domain layer for fuelmetrics.

Services are exported lazily so that importing ``fuelmetrics.domain.entities``
from the database layer does not pull the services (and with them the
database layer) back in.
"""

_SERVICES = {
    "LedgerAggregator": "fuelmetrics.domain.ledger",
    "MonthlyAggregator": "fuelmetrics.domain.monthly",
    "MetricResolver": "fuelmetrics.domain.resolver",
    "ReportAssembler": "fuelmetrics.domain.report",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
