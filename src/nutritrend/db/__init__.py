"""SQLite storage layer."""

from nutritrend.db.connection import DatabaseConnection, get_db, set_db
from nutritrend.db.schema import get_schema_sql

__all__ = ["DatabaseConnection", "get_db", "get_schema_sql", "set_db"]
