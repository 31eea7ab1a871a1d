"""Utility functions for fuelmetrics."""

from fuelmetrics.utils.date_parser import parse_date, expand_periods

__all__ = ["parse_date", "expand_periods"]
