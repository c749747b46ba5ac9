"""Durable SQLite storage for the tracker."""

from tracker_mcp.store.database import Database, format_timestamp, parse_timestamp, utc_now
from tracker_mcp.store.schema import SCHEMA_SQL

__all__ = [
    "Database",
    "SCHEMA_SQL",
    "format_timestamp",
    "parse_timestamp",
    "utc_now",
]
