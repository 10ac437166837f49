"""Import nutrition history from CSV exports into quick-add entries."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from nutritrend.importing.macrofactor import MacroFactorParser, ParsedDay, ParseWarning
from nutritrend.importing.nutritionrx import NutritionRxParser
from nutritrend.rounding import round_half_up

logger = logging.getLogger(__name__)


class NutritionImportError(Exception):
    """Raised when a file cannot be read or holds no importable data."""


@dataclass
class ImportSession:
    """A parsed file waiting to be written."""

    session_id: str
    source: str
    file_name: str
    days: list[ParsedDay]
    warnings: list[ParseWarning] = field(default_factory=list)
    imported_days: int = 0
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def total_days(self) -> int:
        return len(self.days)


class NutritionImporter:
    """Detects the export format of a CSV file and imports its days."""

    def __init__(self, parsers: Optional[list] = None):
        # NutritionRx first: its headers also pass MacroFactor detection
        self.parsers = (
            parsers if parsers is not None else [NutritionRxParser(), MacroFactorParser()]
        )

    def read_csv(self, csv_path: Path) -> pd.DataFrame:
        """Read a CSV with every column kept as a string."""
        try:
            return pd.read_csv(
                csv_path,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
            )
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise NutritionImportError(f"Could not read {csv_path}: {e}") from e

    def detect(self, headers: list[str]):
        """First parser that recognises the headers, or None."""
        for parser in self.parsers:
            if parser.detect(headers):
                return parser
        return None

    def analyze(self, csv_path: Path) -> ImportSession:
        """Parse a file into an import session without writing anything.

        Raises:
            NutritionImportError: Unknown format or no valid rows
        """
        csv_path = Path(csv_path)
        frame = self.read_csv(csv_path)

        parser = self.detect(list(frame.columns))
        if parser is None:
            raise NutritionImportError(
                "Could not detect the format of this CSV file. "
                "Please ensure you exported it from MacroFactor or NutritionRx."
            )

        parsed = parser.parse(frame)
        if not parsed.days:
            raise NutritionImportError(
                "No valid nutrition data found in this file. "
                "Please check that the file contains food entries."
            )

        logger.info(
            "Parsed %d days from %s (%d rows skipped)",
            len(parsed.days),
            csv_path.name,
            len(parsed.warnings),
        )
        return ImportSession(
            session_id=uuid.uuid4().hex,
            source=parser.source,
            file_name=csv_path.name,
            days=parsed.days,
            warnings=parsed.warnings,
        )

    def run(self, conn: sqlite3.Connection, session: ImportSession) -> int:
        """Write one quick-add entry per meal per day.

        All days are written in one transaction; any failure leaves the
        database unchanged.

        Returns:
            Number of days imported
        """
        display_name = next(
            (p.display_name for p in self.parsers if p.source == session.source),
            session.source,
        )
        description = f"Imported from {display_name}"
        now = datetime.now().isoformat()

        try:
            for day in session.days:
                for meal in day.meals:
                    conn.execute(
                        """
                        INSERT INTO quick_add_entries
                            (entry_id, date, meal_type, calories, protein, carbs,
                             fat, description, created_at)
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            uuid.uuid4().hex,
                            day.date.isoformat(),
                            meal.meal_type,
                            round_half_up(meal.calories),
                            round_half_up(meal.protein),
                            round_half_up(meal.carbs),
                            round_half_up(meal.fat),
                            description,
                            now,
                        ),
                    )
        except Exception:
            conn.rollback()
            raise
        conn.commit()

        session.imported_days = len(session.days)
        logger.info("Imported %d days from %s", session.imported_days, session.file_name)
        return session.imported_days
