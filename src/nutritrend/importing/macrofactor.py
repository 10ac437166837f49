"""Parse food-level MacroFactor CSV exports into per-day meals.

MacroFactor exports one row per logged food:
    Date,Time,Food Name,Amount,Calories,Protein (g),Carbs (g),Fat (g)
    2024-01-15,08:30,Oatmeal,1 cup,150,5,27,3

Rows are grouped by date, then into meals by time of day.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Optional

import pandas as pd

DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%Y/%m/%d")

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")

_TIME_PATTERN = re.compile(r"(\d{1,2}):?(\d{2})?\s*(am|pm)?", re.IGNORECASE)

# Candidate headers per field, already normalized
DATE_HEADERS = ("date",)
FOOD_HEADERS = ("food name", "food", "name")
CALORIE_HEADERS = ("calories", "energy", "kcal")
PROTEIN_HEADERS = ("protein (g)", "protein")
CARB_HEADERS = ("carbs (g)", "carbohydrates (g)", "carbs")
FAT_HEADERS = ("fat (g)", "fat")
TIME_HEADERS = ("time",)
AMOUNT_HEADERS = ("amount", "serving", "servings")


@dataclass
class ParsedFood:
    """One logged food."""

    name: str
    amount: str
    calories: float
    protein: float
    carbs: float
    fat: float


@dataclass
class NutritionTotals:
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    @classmethod
    def of(cls, items: Iterable) -> "NutritionTotals":
        totals = cls()
        for item in items:
            totals.calories += item.calories
            totals.protein += item.protein
            totals.carbs += item.carbs
            totals.fat += item.fat
        return totals


@dataclass
class ParsedMeal:
    """Foods logged in one meal slot of a day."""

    meal_type: str
    foods: list[ParsedFood] = field(default_factory=list)

    @property
    def totals(self) -> NutritionTotals:
        return NutritionTotals.of(self.foods)

    @property
    def calories(self) -> float:
        return self.totals.calories

    @property
    def protein(self) -> float:
        return self.totals.protein

    @property
    def carbs(self) -> float:
        return self.totals.carbs

    @property
    def fat(self) -> float:
        return self.totals.fat


@dataclass
class ParsedDay:
    date: date
    meals: list[ParsedMeal] = field(default_factory=list)

    @property
    def totals(self) -> NutritionTotals:
        return NutritionTotals.of(self.meals)


@dataclass
class ParseWarning:
    """A skipped row. line is 1-based and counts the header row."""

    line: int
    message: str


@dataclass
class ParseResult:
    days: list[ParsedDay] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)


def normalize_header(header: str) -> str:
    return " ".join(str(header).strip().lower().split())


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse YYYY-MM-DD, MM/DD/YYYY or YYYY/MM/DD; None if none match."""
    if not value:
        return None
    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_number(value: Optional[str]) -> float:
    """Parse a number, allowing thousands separators. Blank or junk is 0."""
    if value is None:
        return 0.0
    text = str(value).strip().replace(",", "")
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0


def meals_in_order(buckets: dict[str, list[ParsedFood]]) -> list[ParsedMeal]:
    """Meals in breakfast, lunch, dinner, snack order, skipping empty slots."""
    return [
        ParsedMeal(meal_type=meal, foods=buckets[meal])
        for meal in MEAL_TYPES
        if meal in buckets
    ]


def meal_type_for_time(value: Optional[str]) -> str:
    """Bucket a clock time ("08:30", "8:30 PM") into a meal type."""
    if not value:
        return "snack"
    match = _TIME_PATTERN.search(value)
    if not match:
        return "snack"

    hour = int(match.group(1))
    meridiem = (match.group(3) or "").lower()
    if meridiem == "pm" and hour != 12:
        hour += 12
    if meridiem == "am" and hour == 12:
        hour = 0

    if 5 <= hour < 11:
        return "breakfast"
    if 11 <= hour < 15:
        return "lunch"
    if 15 <= hour < 21:
        return "dinner"
    return "snack"


class MacroFactorParser:
    """Parser for MacroFactor food log exports."""

    source = "macrofactor"
    display_name = "MacroFactor"

    def detect(self, headers: Iterable[str]) -> bool:
        """True if the headers include a date, a food name and calories."""
        normalized = {normalize_header(h) for h in headers}
        if not normalized:
            return False
        return (
            any(h in normalized for h in DATE_HEADERS)
            and any(h in normalized for h in FOOD_HEADERS)
            and any(h in normalized for h in CALORIE_HEADERS)
        )

    def parse(self, frame: pd.DataFrame) -> ParseResult:
        """Group rows of a string-typed frame into sorted days of meals."""
        result = ParseResult()
        if frame.empty:
            return result

        columns = {normalize_header(c): c for c in frame.columns}

        def column(candidates: tuple[str, ...]) -> Optional[str]:
            for candidate in candidates:
                if candidate in columns:
                    return columns[candidate]
            return None

        date_col = column(DATE_HEADERS)
        food_col = column(FOOD_HEADERS)
        calorie_col = column(CALORIE_HEADERS)
        protein_col = column(PROTEIN_HEADERS)
        carb_col = column(CARB_HEADERS)
        fat_col = column(FAT_HEADERS)
        time_col = column(TIME_HEADERS)
        amount_col = column(AMOUNT_HEADERS)

        by_date: dict[date, list[tuple[ParsedFood, str]]] = {}

        for position, (_, row) in enumerate(frame.iterrows()):

            def value(col: Optional[str]) -> str:
                if col is None:
                    return ""
                raw = row[col]
                return "" if pd.isna(raw) else str(raw).strip()

            raw_date = value(date_col)
            parsed_date = parse_date(raw_date)
            if parsed_date is None:
                result.warnings.append(
                    ParseWarning(
                        line=position + 2,
                        message=f'Could not parse date: "{raw_date}"',
                    )
                )
                continue

            food = ParsedFood(
                name=value(food_col) or "Unknown Food",
                amount=value(amount_col) or "1 serving",
                calories=parse_number(value(calorie_col)),
                protein=parse_number(value(protein_col)),
                carbs=parse_number(value(carb_col)),
                fat=parse_number(value(fat_col)),
            )
            by_date.setdefault(parsed_date, []).append((food, value(time_col)))

        for day_date in sorted(by_date):
            result.days.append(
                ParsedDay(date=day_date, meals=self._group_into_meals(by_date[day_date]))
            )
        return result

    def _group_into_meals(self, entries: list[tuple[ParsedFood, str]]) -> list[ParsedMeal]:
        if not any(time for _, time in entries):
            return [ParsedMeal(meal_type="snack", foods=[food for food, _ in entries])]

        buckets: dict[str, list[ParsedFood]] = {}
        for food, time in entries:
            buckets.setdefault(meal_type_for_time(time), []).append(food)
        return meals_in_order(buckets)
