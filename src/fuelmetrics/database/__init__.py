"""Database layer for fuelmetrics."""

from fuelmetrics.database.base import Database
from fuelmetrics.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
