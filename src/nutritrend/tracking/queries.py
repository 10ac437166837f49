"""Database queries for weight entries and their trend chain."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import date, datetime
from typing import Optional

from nutritrend.tracking.models import WeightEntry, validate_weight_kg
from nutritrend.tracking.trend import HALF_LIFE_DAYS, recompute_from_date

logger = logging.getLogger(__name__)

_ENTRY_COLUMNS = (
    "entry_id, date, weight_kg, trend_weight_kg, notes, created_at, updated_at"
)


def _row_to_entry(row: sqlite3.Row | tuple) -> WeightEntry:
    return WeightEntry(
        entry_id=row[0],
        date=date.fromisoformat(row[1]),
        weight_kg=row[2],
        trend_weight_kg=row[3],
        notes=row[4],
        created_at=datetime.fromisoformat(row[5]) if row[5] else None,
        updated_at=datetime.fromisoformat(row[6]) if row[6] else None,
    )


class WeightQueries:
    """Database queries for weight entries.

    Writes keep the trend chain consistent: any insert, edit or delete
    recomputes the trend of the affected date and every later entry inside
    the same transaction.
    """

    @staticmethod
    def add_weight(
        conn: sqlite3.Connection,
        weight_kg: float,
        measured_at: date,
        notes: Optional[str] = None,
        half_life_days: float = HALF_LIFE_DAYS,
    ) -> WeightEntry:
        """
        Log a weigh-in, computing its trend automatically.

        If an entry already exists for this date it is updated in place
        (same entry_id). Backfilled dates recompute every later trend.

        Raises:
            ValueError: If weight_kg is outside the 30-300 kg range
        """
        weight = validate_weight_kg(weight_kg)
        now = datetime.now().isoformat()

        try:
            existing = conn.execute(
                "SELECT entry_id FROM weight_entries WHERE date = ?",
                (measured_at.isoformat(),),
            ).fetchone()

            if existing is None:
                entry_id = uuid.uuid4().hex
                conn.execute(
                    """
                    INSERT INTO weight_entries
                        (entry_id, date, weight_kg, trend_weight_kg, notes, created_at, updated_at)
                    VALUES (?, ?, ?, NULL, ?, ?, ?)
                    """,
                    (entry_id, measured_at.isoformat(), weight, notes, now, now),
                )
            else:
                entry_id = existing[0]
                conn.execute(
                    """
                    UPDATE weight_entries
                    SET weight_kg = ?, notes = COALESCE(?, notes), updated_at = ?
                    WHERE entry_id = ?
                    """,
                    (weight, notes, now, entry_id),
                )

            WeightQueries._recompute_from(conn, measured_at, half_life_days)
        except Exception:
            conn.rollback()
            raise
        conn.commit()

        logger.info("Logged %.2f kg on %s", weight, measured_at.isoformat())
        entry = WeightQueries.get_entry(conn, entry_id)
        if entry is None:
            raise RuntimeError(f"Weight entry {entry_id} vanished after insert")
        return entry

    @staticmethod
    def update_weight(
        conn: sqlite3.Connection,
        entry_id: str,
        weight_kg: Optional[float] = None,
        notes: Optional[str] = None,
        half_life_days: float = HALF_LIFE_DAYS,
    ) -> WeightEntry:
        """Edit an existing entry and recompute the chain from its date."""
        entry = WeightQueries.get_entry(conn, entry_id)
        if entry is None:
            raise ValueError(f"Weight entry not found: {entry_id}")

        weight = validate_weight_kg(weight_kg) if weight_kg is not None else entry.weight_kg
        try:
            conn.execute(
                """
                UPDATE weight_entries
                SET weight_kg = ?, notes = COALESCE(?, notes), updated_at = ?
                WHERE entry_id = ?
                """,
                (weight, notes, datetime.now().isoformat(), entry_id),
            )
            WeightQueries._recompute_from(conn, entry.date, half_life_days)
        except Exception:
            conn.rollback()
            raise
        conn.commit()

        updated = WeightQueries.get_entry(conn, entry_id)
        if updated is None:
            raise RuntimeError(f"Weight entry {entry_id} vanished after update")
        return updated

    @staticmethod
    def delete_entry_by_date(
        conn: sqlite3.Connection,
        measured_at: date,
        half_life_days: float = HALF_LIFE_DAYS,
    ) -> bool:
        """Delete the entry for a date. Returns False if there was none."""
        try:
            cursor = conn.execute(
                "DELETE FROM weight_entries WHERE date = ?", (measured_at.isoformat(),)
            )
            deleted = cursor.rowcount > 0
            if deleted:
                WeightQueries._recompute_from(conn, measured_at, half_life_days)
        except Exception:
            conn.rollback()
            raise
        conn.commit()
        return deleted

    @staticmethod
    def recompute_trends(
        conn: sqlite3.Connection,
        start_date: Optional[date] = None,
        half_life_days: float = HALF_LIFE_DAYS,
    ) -> int:
        """
        Bulk recompute trends from start_date (default: the whole history).

        Runs as a single transaction; returns the number of entries updated.
        """
        try:
            count = WeightQueries._recompute_from(
                conn, start_date or date.min, half_life_days
            )
        except Exception:
            conn.rollback()
            raise
        conn.commit()
        logger.info("Recomputed %d trend values", count)
        return count

    @staticmethod
    def _recompute_from(
        conn: sqlite3.Connection, changed_date: date, half_life_days: float
    ) -> int:
        """Rewrite trend_weight_kg from changed_date onward (no commit)."""
        # The seed entry is the last one before changed_date
        seed_row = conn.execute(
            f"""
            SELECT {_ENTRY_COLUMNS} FROM weight_entries
            WHERE date < ?
            ORDER BY date DESC LIMIT 1
            """,
            (changed_date.isoformat(),),
        ).fetchone()
        rows = conn.execute(
            f"""
            SELECT {_ENTRY_COLUMNS} FROM weight_entries
            WHERE date >= ?
            ORDER BY date ASC
            """,
            (changed_date.isoformat(),),
        ).fetchall()

        entries = [_row_to_entry(row) for row in rows]
        if seed_row is not None:
            entries.insert(0, _row_to_entry(seed_row))

        updates = recompute_from_date(entries, changed_date, half_life_days)
        conn.executemany(
            "UPDATE weight_entries SET trend_weight_kg = ? WHERE entry_id = ?",
            [(trend, entry_id) for entry_id, trend in updates],
        )
        return len(updates)

    @staticmethod
    def get_entry(conn: sqlite3.Connection, entry_id: str) -> Optional[WeightEntry]:
        """Get a weight entry by ID."""
        row = conn.execute(
            f"SELECT {_ENTRY_COLUMNS} FROM weight_entries WHERE entry_id = ?",
            (entry_id,),
        ).fetchone()
        return _row_to_entry(row) if row else None

    @staticmethod
    def get_entry_by_date(
        conn: sqlite3.Connection, measured_at: date
    ) -> Optional[WeightEntry]:
        """Get the weight entry for a calendar date."""
        row = conn.execute(
            f"SELECT {_ENTRY_COLUMNS} FROM weight_entries WHERE date = ?",
            (measured_at.isoformat(),),
        ).fetchone()
        return _row_to_entry(row) if row else None

    @staticmethod
    def get_latest(conn: sqlite3.Connection) -> Optional[WeightEntry]:
        """Get the most recent weight entry by date."""
        row = conn.execute(
            f"SELECT {_ENTRY_COLUMNS} FROM weight_entries ORDER BY date DESC LIMIT 1"
        ).fetchone()
        return _row_to_entry(row) if row else None

    @staticmethod
    def get_history(
        conn: sqlite3.Connection,
        days: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[WeightEntry]:
        """
        Get weight history in chronological order.

        Args:
            days: If set, return only the last N entries
            start_date: If set, return entries on or after this date
            end_date: If set, return entries on or before this date
        """
        query = f"SELECT {_ENTRY_COLUMNS} FROM weight_entries WHERE 1 = 1"
        params: list = []

        if start_date:
            query += " AND date >= ?"
            params.append(start_date.isoformat())
        if end_date:
            query += " AND date <= ?"
            params.append(end_date.isoformat())

        query += " ORDER BY date DESC"

        if days:
            query += " LIMIT ?"
            params.append(days)

        rows = conn.execute(query, params).fetchall()
        return [_row_to_entry(row) for row in reversed(rows)]

    @staticmethod
    def get_trend_at_date(conn: sqlite3.Connection, at_date: date) -> Optional[float]:
        """Get the trend value at or before a specific date."""
        row = conn.execute(
            """
            SELECT trend_weight_kg FROM weight_entries
            WHERE date <= ?
            ORDER BY date DESC LIMIT 1
            """,
            (at_date.isoformat(),),
        ).fetchone()
        return row[0] if row else None

    @staticmethod
    def count_days_weighed(
        conn: sqlite3.Connection, start_date: date, end_date: date
    ) -> int:
        """Count distinct days with a weigh-in between two dates (inclusive)."""
        row = conn.execute(
            """
            SELECT COUNT(DISTINCT date) FROM weight_entries
            WHERE date BETWEEN ? AND ?
            """,
            (start_date.isoformat(), end_date.isoformat()),
        ).fetchone()
        return row[0] if row else 0
