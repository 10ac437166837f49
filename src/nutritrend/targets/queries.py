"""Database queries for macro cycling configuration and per-date overrides."""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import date, datetime
from typing import Optional, Sequence

from nutritrend.targets.models import (
    DayTargets,
    MacroCycleConfig,
    MacroOverride,
    PatternType,
    parse_pattern_type,
    validate_weekday,
)

logger = logging.getLogger(__name__)

CONFIG_ID = 1

_OVERRIDE_COLUMNS = "override_id, date, calories, protein, carbs, fat, created_at"


def _row_to_config(row: sqlite3.Row | tuple) -> MacroCycleConfig:
    day_targets_raw = json.loads(row[4]) if row[4] else {}
    return MacroCycleConfig(
        enabled=bool(row[1]),
        pattern_type=parse_pattern_type(row[2]),
        marked_days=json.loads(row[3]) if row[3] else [],
        day_targets={
            int(day): DayTargets.from_dict(targets)
            for day, targets in day_targets_raw.items()
        },
        locked_days=json.loads(row[5]) if row[5] else [],
        redistribution_start_day=row[6] if row[6] is not None else 0,
        created_at=datetime.fromisoformat(row[7]) if row[7] else None,
        last_modified=datetime.fromisoformat(row[8]) if row[8] else None,
    )


def _row_to_override(row: sqlite3.Row | tuple) -> MacroOverride:
    return MacroOverride(
        override_id=row[0],
        date=date.fromisoformat(row[1]),
        calories=row[2],
        protein=row[3],
        carbs=row[4],
        fat=row[5],
        created_at=datetime.fromisoformat(row[6]) if row[6] else None,
    )


def _weekday_list(days: Sequence[int]) -> str:
    return json.dumps(sorted({validate_weekday(d) for d in days}))


class MacroCycleQueries:
    """Database queries for the macro cycling singleton and overrides."""

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @staticmethod
    def get_config(conn: sqlite3.Connection) -> Optional[MacroCycleConfig]:
        """Get the cycling configuration, or None if it was never created."""
        row = conn.execute(
            """
            SELECT id, enabled, pattern_type, marked_days, day_targets,
                   locked_days, redistribution_start_day, created_at, last_modified
            FROM macro_cycle_config WHERE id = ?
            """,
            (CONFIG_ID,),
        ).fetchone()
        return _row_to_config(row) if row else None

    @staticmethod
    def get_or_create_config(conn: sqlite3.Connection) -> MacroCycleConfig:
        """Get the configuration, creating the default row on first access."""
        existing = MacroCycleQueries.get_config(conn)
        if existing is not None:
            return existing

        now = datetime.now().isoformat()
        conn.execute(
            """
            INSERT INTO macro_cycle_config
                (id, enabled, pattern_type, marked_days, day_targets,
                 locked_days, redistribution_start_day, created_at, last_modified)
            VALUES (?, 0, ?, '[]', '{}', '[]', 0, ?, ?)
            """,
            (CONFIG_ID, PatternType.TRAINING_REST.value, now, now),
        )
        conn.commit()

        config = MacroCycleQueries.get_config(conn)
        if config is None:
            raise RuntimeError("Macro cycle config vanished after write")
        return config

    @staticmethod
    def update_config(
        conn: sqlite3.Connection,
        enabled: Optional[bool] = None,
        pattern_type: Optional[PatternType | str] = None,
        marked_days: Optional[Sequence[int]] = None,
        day_targets: Optional[dict[int, DayTargets]] = None,
        locked_days: Optional[Sequence[int]] = None,
        redistribution_start_day: Optional[int] = None,
    ) -> MacroCycleConfig:
        """
        Update selected configuration fields, creating the row if needed.

        Raises:
            ValueError: On an unknown pattern type or weekday outside 0-6
        """
        MacroCycleQueries.get_or_create_config(conn)

        set_clauses = ["last_modified = ?"]
        values: list = [datetime.now().isoformat()]

        if enabled is not None:
            set_clauses.append("enabled = ?")
            values.append(1 if enabled else 0)
        if pattern_type is not None:
            set_clauses.append("pattern_type = ?")
            values.append(PatternType(pattern_type).value)
        if marked_days is not None:
            set_clauses.append("marked_days = ?")
            values.append(_weekday_list(marked_days))
        if day_targets is not None:
            set_clauses.append("day_targets = ?")
            values.append(
                json.dumps(
                    {
                        str(validate_weekday(day)): targets.to_dict()
                        for day, targets in sorted(day_targets.items())
                    }
                )
            )
        if locked_days is not None:
            set_clauses.append("locked_days = ?")
            values.append(_weekday_list(locked_days))
        if redistribution_start_day is not None:
            set_clauses.append("redistribution_start_day = ?")
            values.append(validate_weekday(redistribution_start_day))

        values.append(CONFIG_ID)
        conn.execute(
            f"UPDATE macro_cycle_config SET {', '.join(set_clauses)} WHERE id = ?",
            values,
        )
        conn.commit()

        config = MacroCycleQueries.get_config(conn)
        if config is None:
            raise RuntimeError("Macro cycle config vanished after write")
        return config

    @staticmethod
    def disable_cycling(conn: sqlite3.Connection) -> MacroCycleConfig:
        """Turn cycling off, keeping the rest of the configuration."""
        return MacroCycleQueries.update_config(conn, enabled=False)

    @staticmethod
    def get_redistribution_config(conn: sqlite3.Connection) -> tuple[list[int], int]:
        """Return (locked_days, redistribution_start_day), defaulting to ([], 0)."""
        config = MacroCycleQueries.get_config(conn)
        if config is None:
            return [], 0
        return list(config.locked_days), config.redistribution_start_day

    @staticmethod
    def set_redistribution_config(
        conn: sqlite3.Connection,
        locked_days: Sequence[int],
        redistribution_start_day: int,
    ) -> MacroCycleConfig:
        """Store the locked weekdays and the weekday a budget week starts on."""
        return MacroCycleQueries.update_config(
            conn,
            locked_days=locked_days,
            redistribution_start_day=redistribution_start_day,
        )

    # ------------------------------------------------------------------
    # Overrides
    # ------------------------------------------------------------------

    @staticmethod
    def get_override(conn: sqlite3.Connection, on_date: date) -> Optional[MacroOverride]:
        """Get the override for a date."""
        row = conn.execute(
            f"SELECT {_OVERRIDE_COLUMNS} FROM macro_cycle_overrides WHERE date = ?",
            (on_date.isoformat(),),
        ).fetchone()
        return _row_to_override(row) if row else None

    @staticmethod
    def set_override(
        conn: sqlite3.Connection, on_date: date, targets: DayTargets
    ) -> MacroOverride:
        """
        Pin targets to a date.

        Any existing override for the date is deleted and a new row (new id,
        new created_at) is inserted; the old values are never merged in.
        """
        try:
            conn.execute(
                "DELETE FROM macro_cycle_overrides WHERE date = ?",
                (on_date.isoformat(),),
            )
            MacroCycleQueries._insert_override(conn, on_date, targets)
        except Exception:
            conn.rollback()
            raise
        conn.commit()

        override = MacroCycleQueries.get_override(conn, on_date)
        if override is None:
            raise RuntimeError(f"Override for {on_date} vanished after insert")
        return override

    @staticmethod
    def clear_override(conn: sqlite3.Connection, on_date: date) -> None:
        """Remove the override for a date (no-op if there is none)."""
        conn.execute(
            "DELETE FROM macro_cycle_overrides WHERE date = ?", (on_date.isoformat(),)
        )
        conn.commit()

    @staticmethod
    def get_all_overrides(conn: sqlite3.Connection) -> list[MacroOverride]:
        """Get every override, sorted by date ascending."""
        rows = conn.execute(
            f"SELECT {_OVERRIDE_COLUMNS} FROM macro_cycle_overrides ORDER BY date ASC"
        ).fetchall()
        return [_row_to_override(row) for row in rows]

    @staticmethod
    def get_overrides_between(
        conn: sqlite3.Connection, start_date: date, end_date: date
    ) -> list[MacroOverride]:
        """Get overrides between two dates (inclusive), sorted by date."""
        rows = conn.execute(
            f"""
            SELECT {_OVERRIDE_COLUMNS} FROM macro_cycle_overrides
            WHERE date BETWEEN ? AND ?
            ORDER BY date ASC
            """,
            (start_date.isoformat(), end_date.isoformat()),
        ).fetchall()
        return [_row_to_override(row) for row in rows]

    @staticmethod
    def clear_all_overrides(conn: sqlite3.Connection) -> None:
        """Delete every override."""
        conn.execute("DELETE FROM macro_cycle_overrides")
        conn.commit()

    @staticmethod
    def save_redistribution_overrides(
        conn: sqlite3.Connection,
        overrides: Sequence[tuple[date, DayTargets]],
    ) -> None:
        """
        Replace the overrides for a batch of dates atomically.

        Existing overrides for every date in the batch are deleted, then one
        row per entry is inserted. Any failure rolls back the whole batch and
        re-raises, leaving the previous overrides untouched.
        """
        dates = [on_date.isoformat() for on_date, _ in overrides]
        try:
            if dates:
                placeholders = ",".join("?" for _ in dates)
                conn.execute(
                    f"DELETE FROM macro_cycle_overrides WHERE date IN ({placeholders})",
                    dates,
                )
            for on_date, targets in overrides:
                MacroCycleQueries._insert_override(conn, on_date, targets)
        except Exception:
            conn.rollback()
            logger.warning("Rolled back redistribution save for %d dates", len(dates))
            raise
        conn.commit()

    @staticmethod
    def _insert_override(
        conn: sqlite3.Connection, on_date: date, targets: DayTargets
    ) -> None:
        conn.execute(
            f"""
            INSERT INTO macro_cycle_overrides ({_OVERRIDE_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                uuid.uuid4().hex,
                on_date.isoformat(),
                targets.calories,
                targets.protein,
                targets.carbs,
                targets.fat,
                datetime.now().isoformat(),
            ),
        )
