"""Parse NutritionRx food log backups.

The food log section of a NutritionRx backup has one row per food, with
the meal already named:
    Date,Meal,Type,Food Name,Brand,Servings,Calories,Protein (g),Carbs (g),Fat (g),Notes
    2024-01-15,Breakfast,food,Greek Yogurt,Fage,1,150,15,8,4,
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

import pandas as pd

from nutritrend.importing.macrofactor import (
    ParsedDay,
    ParsedFood,
    ParseResult,
    ParseWarning,
    meals_in_order,
    normalize_header,
    parse_date,
    parse_number,
)

REQUIRED_HEADERS = ("date", "meal", "type", "food name")

_MEAL_NAMES = {
    "breakfast": "breakfast",
    "lunch": "lunch",
    "dinner": "dinner",
    "snack": "snack",
    "snacks": "snack",
}


def normalize_meal_name(value: Optional[str]) -> str:
    """Map a NutritionRx meal label to a meal type; unknown labels are snacks."""
    return _MEAL_NAMES.get((value or "").strip().lower(), "snack")


class NutritionRxParser:
    """Parser for NutritionRx food log backups."""

    source = "nutritionrx"
    display_name = "NutritionRx"

    def detect(self, headers: Iterable[str]) -> bool:
        """True if the headers include Date, Meal, Type and Food Name."""
        normalized = {normalize_header(h) for h in headers}
        return all(h in normalized for h in REQUIRED_HEADERS)

    def parse(self, frame: pd.DataFrame) -> ParseResult:
        """Group rows into sorted days, keeping the meal each row names."""
        result = ParseResult()
        if frame.empty:
            return result

        columns = {normalize_header(c): c for c in frame.columns}
        by_date: dict[date, dict[str, list[ParsedFood]]] = {}

        for position, (_, row) in enumerate(frame.iterrows()):

            def value(header: str) -> str:
                col = columns.get(header)
                if col is None:
                    return ""
                raw = row[col]
                return "" if pd.isna(raw) else str(raw).strip()

            raw_date = value("date")
            parsed_date = parse_date(raw_date)
            if parsed_date is None:
                result.warnings.append(
                    ParseWarning(
                        line=position + 2,
                        message=f'Could not parse date: "{raw_date}"',
                    )
                )
                continue

            name = value("food name") or "Unknown Food"
            brand = value("brand")
            servings = value("servings")
            food = ParsedFood(
                name=f"{name} ({brand})" if brand else name,
                amount=f"{servings} serving(s)" if servings else "1 serving",
                calories=parse_number(value("calories")),
                protein=parse_number(value("protein (g)")),
                carbs=parse_number(value("carbs (g)")),
                fat=parse_number(value("fat (g)")),
            )
            meals = by_date.setdefault(parsed_date, {})
            meals.setdefault(normalize_meal_name(value("meal")), []).append(food)

        for day_date in sorted(by_date):
            result.days.append(ParsedDay(date=day_date, meals=meals_in_order(by_date[day_date])))
        return result
