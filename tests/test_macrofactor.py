"""Tests for MacroFactor CSV parsing and nutrition import."""

from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from nutritrend.importing import (
    MacroFactorParser,
    NutritionImporter,
    NutritionImportError,
)
from nutritrend.importing.macrofactor import (
    meal_type_for_time,
    parse_date,
    parse_number,
)

parser = MacroFactorParser()


def frame(rows: list[dict]) -> pd.DataFrame:
    return pd.DataFrame(rows, dtype=str)


class TestDetect:
    """Tests for header detection."""

    def test_standard_headers(self) -> None:
        headers = ["Date", "Food", "Calories", "Protein (g)", "Carbs (g)", "Fat (g)"]
        assert parser.detect(headers)

    def test_header_variations(self) -> None:
        assert parser.detect(["Date", "Food Name", "Energy", "Protein"])
        assert parser.detect(["date ", " NAME", "kcal", "Fat"])

    def test_empty(self) -> None:
        assert not parser.detect([])

    def test_missing_food_column(self) -> None:
        assert not parser.detect(["Date", "Calories"])


class TestHelpers:
    """Tests for value parsing helpers."""

    @pytest.mark.parametrize(
        "text",
        ["2024-01-15", "01/15/2024", "2024/01/15"],
    )
    def test_date_formats(self, text: str) -> None:
        assert parse_date(text) == date(2024, 1, 15)

    def test_bad_date(self) -> None:
        assert parse_date("15.01.2024") is None
        assert parse_date("") is None

    def test_numbers(self) -> None:
        assert parse_number("1,250.5") == 1250.5
        assert parse_number("") == 0.0
        assert parse_number(None) == 0.0
        assert parse_number("n/a") == 0.0

    @pytest.mark.parametrize(
        "time, meal",
        [
            ("08:30", "breakfast"),
            ("12:15", "lunch"),
            ("6:45 PM", "dinner"),
            ("12:00 AM", "snack"),
            ("22:00", "snack"),
            ("", "snack"),
        ],
    )
    def test_meal_by_time(self, time: str, meal: str) -> None:
        assert meal_type_for_time(time) == meal


class TestParse:
    """Tests for MacroFactorParser.parse."""

    def test_empty(self) -> None:
        result = parser.parse(pd.DataFrame())
        assert result.days == []
        assert result.warnings == []

    def test_single_food(self) -> None:
        result = parser.parse(
            frame(
                [
                    {
                        "Date": "2024-01-15",
                        "Food Name": "Chicken Breast",
                        "Calories": "250",
                        "Protein (g)": "40",
                        "Carbs (g)": "0",
                        "Fat (g)": "8",
                        "Amount": "6 oz",
                    }
                ]
            )
        )
        assert len(result.days) == 1
        day = result.days[0]
        assert day.date == date(2024, 1, 15)

        foods = [food for meal in day.meals for food in meal.foods]
        assert len(foods) == 1
        assert foods[0].name == "Chicken Breast"
        assert foods[0].amount == "6 oz"
        assert (foods[0].calories, foods[0].protein, foods[0].carbs, foods[0].fat) == (
            250,
            40,
            0,
            8,
        )

    def test_no_time_gives_single_snack_meal(self) -> None:
        result = parser.parse(
            frame(
                [
                    {"Date": "2024-01-15", "Food": "Oatmeal", "Calories": "150"},
                    {"Date": "2024-01-15", "Food": "Apple", "Calories": "95"},
                ]
            )
        )
        meals = result.days[0].meals
        assert len(meals) == 1
        assert meals[0].meal_type == "snack"
        assert meals[0].calories == 245

    def test_groups_by_time(self) -> None:
        result = parser.parse(
            frame(
                [
                    {"Date": "2024-01-15", "Time": "07:30", "Food": "Eggs", "Calories": "200"},
                    {"Date": "2024-01-15", "Time": "08:00", "Food": "Toast", "Calories": "100"},
                    {"Date": "2024-01-15", "Time": "13:00", "Food": "Salad", "Calories": "350"},
                    {"Date": "2024-01-15", "Time": "19:00", "Food": "Steak", "Calories": "600"},
                ]
            )
        )
        meals = {meal.meal_type: meal for meal in result.days[0].meals}
        assert set(meals) == {"breakfast", "lunch", "dinner"}
        assert meals["breakfast"].calories == 300
        assert result.days[0].totals.calories == 1250

    def test_meals_in_day_order(self) -> None:
        result = parser.parse(
            frame(
                [
                    {"Date": "2024-01-15", "Time": "23:00", "Food": "Popcorn", "Calories": "150"},
                    {"Date": "2024-01-15", "Time": "19:00", "Food": "Steak", "Calories": "600"},
                    {"Date": "2024-01-15", "Time": "07:30", "Food": "Eggs", "Calories": "200"},
                    {"Date": "2024-01-15", "Time": "12:00", "Food": "Soup", "Calories": "300"},
                ]
            )
        )
        assert [m.meal_type for m in result.days[0].meals] == [
            "breakfast",
            "lunch",
            "dinner",
            "snack",
        ]

    def test_days_sorted(self) -> None:
        result = parser.parse(
            frame(
                [
                    {"Date": "2024-01-17", "Food": "A", "Calories": "1"},
                    {"Date": "01/15/2024", "Food": "B", "Calories": "1"},
                    {"Date": "2024/01/16", "Food": "C", "Calories": "1"},
                ]
            )
        )
        assert [d.date.day for d in result.days] == [15, 16, 17]

    def test_bad_date_warns_with_line_number(self) -> None:
        result = parser.parse(
            frame(
                [
                    {"Date": "2024-01-15", "Food": "A", "Calories": "100"},
                    {"Date": "yesterday", "Food": "B", "Calories": "100"},
                ]
            )
        )
        assert len(result.days) == 1
        assert len(result.warnings) == 1
        assert result.warnings[0].line == 3
        assert "yesterday" in result.warnings[0].message

    def test_blank_and_formatted_numbers(self) -> None:
        result = parser.parse(
            frame(
                [
                    {
                        "Date": "2024-01-15",
                        "Food": "",
                        "Calories": "1,200",
                        "Protein (g)": "",
                    }
                ]
            )
        )
        food = result.days[0].meals[0].foods[0]
        assert food.name == "Unknown Food"
        assert food.amount == "1 serving"
        assert food.calories == 1200
        assert food.protein == 0


CSV_TEXT = """Date,Time,Food Name,Calories,Protein (g),Carbs (g),Fat (g)
2024-01-15,08:00,Oatmeal,150.4,5,27,3
2024-01-15,12:30,Chicken Salad,420.6,35,12,22
2024-01-16,19:00,Salmon,500,40,0,30
bad-date,19:00,Mystery,100,1,1,1
"""


class TestNutritionImporter:
    """Tests for NutritionImporter analyze and run."""

    def test_analyze(self, tmp_path) -> None:
        path = tmp_path / "export.csv"
        path.write_text(CSV_TEXT)

        session = NutritionImporter().analyze(path)
        assert session.source == "macrofactor"
        assert session.file_name == "export.csv"
        assert session.total_days == 2
        assert len(session.warnings) == 1
        assert session.warnings[0].line == 5

    def test_unknown_format(self, tmp_path) -> None:
        path = tmp_path / "other.csv"
        path.write_text("Day,Steps\n2024-01-15,9000\n")
        with pytest.raises(NutritionImportError):
            NutritionImporter().analyze(path)

    def test_no_valid_rows(self, tmp_path) -> None:
        path = tmp_path / "empty.csv"
        path.write_text("Date,Food,Calories\nnope,Apple,95\n")
        with pytest.raises(NutritionImportError):
            NutritionImporter().analyze(path)

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(NutritionImportError):
            NutritionImporter().analyze(tmp_path / "missing.csv")

    def test_run_writes_one_row_per_meal(self, tmp_path, conn) -> None:
        path = tmp_path / "export.csv"
        path.write_text(CSV_TEXT)
        importer = NutritionImporter()
        session = importer.analyze(path)

        assert importer.run(conn, session) == 2
        assert session.imported_days == 2

        rows = conn.execute(
            """
            SELECT date, meal_type, calories, description
            FROM quick_add_entries ORDER BY date, meal_type
            """
        ).fetchall()
        assert [tuple(row) for row in rows] == [
            ("2024-01-15", "breakfast", 150, "Imported from MacroFactor"),
            ("2024-01-15", "lunch", 421, "Imported from MacroFactor"),
            ("2024-01-16", "dinner", 500, "Imported from MacroFactor"),
        ]
