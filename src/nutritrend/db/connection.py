"""SQLite connection management for the nutritrend store."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional, Union

from nutritrend.db.schema import get_schema_sql

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Opens short-lived connections to one SQLite file."""

    def __init__(self, db_path: Union[Path, str]):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Yield a connection with Row access.

        Commits when the block exits normally and rolls back when it raises.
        Query methods that need all-or-nothing writes still manage their own
        transaction on the connection they are given.

        Example:
            with db.get_connection() as conn:
                entry = WeightQueries.get_latest(conn)
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize_schema(self) -> None:
        """Create any missing tables and indexes (safe to call repeatedly)."""
        with self.get_connection() as conn:
            conn.executescript(get_schema_sql())
        logger.debug("Schema ready at %s", self.db_path)


# Global database instance (lazy loaded)
_db: Optional[DatabaseConnection] = None


def get_db() -> DatabaseConnection:
    """Global database at the configured ``database.path``, created on first use."""
    global _db
    if _db is None:
        from nutritrend.config import get_settings

        _db = DatabaseConnection(get_settings().database.path)
    return _db


def set_db(db: Optional[DatabaseConnection]) -> None:
    """Replace the global database (None falls back to settings on next use)."""
    global _db
    _db = db
