"""Weekly calorie redistribution.

A redistribution week is seven consecutive days sharing a fixed calorie
budget. Raising or lowering one day spreads the opposite change over the
days that are neither locked nor already past, so the weekly total stays
the same. The saved week is stored as seven per-date overrides.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import replace
from datetime import date, timedelta
from typing import Optional, Sequence

from nutritrend.rounding import round_half_up
from nutritrend.targets.models import (
    WEEKDAY_LABELS,
    DayBudget,
    PatternType,
    validate_weekday,
)
from nutritrend.targets.queries import MacroCycleQueries
from nutritrend.targets.resolver import day_of_week

logger = logging.getLogger(__name__)

MIN_DAY_CALORIES = 800
LOW_DAY_CALORIES = 1200
HIGH_DAY_FACTOR = 1.5

MIN_FAT_FRACTION = 0.15
DEFAULT_FAT_FRACTION = 0.3


def week_start_for(today: date, start_day: int) -> date:
    """Most recent date on or before today that falls on start_day."""
    validate_weekday(start_day)
    diff = (day_of_week(today) - start_day + 7) % 7
    return today - timedelta(days=diff)


def generate_initial_budget(
    calories: int,
    protein: float,
    carbs: float,
    fat: float,
    start_date: date,
    today: Optional[date] = None,
) -> list[DayBudget]:
    """Seven unlocked days from start_date, each at the base targets."""
    today = today or date.today()
    days = []
    for offset in range(7):
        current = start_date + timedelta(days=offset)
        dow = day_of_week(current)
        days.append(
            DayBudget(
                date=current,
                day_of_week=dow,
                day_label=WEEKDAY_LABELS[dow],
                calories=calories,
                protein=protein,
                carbs=carbs,
                fat=fat,
                locked=False,
                is_today=current == today,
                is_past=current < today,
            )
        )
    return days


def recalculate_macros(
    new_calories: int, day: DayBudget, protein_floor: float
) -> tuple[float, int, int]:
    """
    Macros for a day whose calories changed.

    Protein never drops below the floor. Fat keeps the day's original share
    of calories (30% when the day had none) but never less than 15%. Carbs
    take what is left, never negative.

    Returns:
        (protein, carbs, fat) in grams
    """
    protein = max(day.protein, protein_floor)
    protein_calories = protein * 4

    if day.calories > 0:
        fat_fraction = (day.fat * 9) / day.calories
    else:
        fat_fraction = DEFAULT_FAT_FRACTION
    fat_calories = max(
        round_half_up(new_calories * fat_fraction),
        round_half_up(new_calories * MIN_FAT_FRACTION),
    )

    carbs = round_half_up(max(0, new_calories - protein_calories - fat_calories) / 4)
    fat = round_half_up(fat_calories / 9)
    return protein, carbs, fat


def _split_evenly(total: int, parts: int) -> list[int]:
    """Integer shares of total that sum exactly to total."""
    quotient, remainder = divmod(total, parts)
    return [quotient + 1 if i < remainder else quotient for i in range(parts)]


def redistribute_calories(
    days: Sequence[DayBudget],
    index: int,
    new_calories: int,
    protein_floor: float,
) -> Optional[list[DayBudget]]:
    """
    Set one day's calories and absorb the difference in the other days.

    The opposite of the change is split evenly across days that are not
    locked, not past and not the changed day. A day pushed under
    MIN_DAY_CALORIES is held there and its shortfall spread over the rest.

    Returns:
        A new list of days (the input is never mutated), or None when no day
        can absorb the change or the floor makes it impossible.
    """
    delta = new_calories - days[index].calories
    if delta == 0:
        return [replace(day) for day in days]

    pool = [
        i
        for i, day in enumerate(days)
        if i != index and not day.locked and not day.is_past
    ]
    if not pool:
        return None

    calories = {i: days[i].calories for i in pool}
    remaining = -delta
    while remaining != 0 and pool:
        next_pool = []
        shortfall = 0
        for i, share in zip(pool, _split_evenly(remaining, len(pool))):
            target = calories[i] + share
            if target < MIN_DAY_CALORIES:
                shortfall += target - MIN_DAY_CALORIES
                calories[i] = MIN_DAY_CALORIES
            else:
                calories[i] = target
                next_pool.append(i)
        remaining = shortfall
        pool = next_pool

    if remaining != 0:
        logger.info(
            "Cannot move %+d kcal without dropping a day under %d kcal",
            delta,
            MIN_DAY_CALORIES,
        )
        return None

    result = []
    for i, day in enumerate(days):
        if i == index:
            new_value = new_calories
        elif i in calories:
            new_value = calories[i]
        else:
            result.append(replace(day))
            continue

        if new_value == day.calories:
            result.append(replace(day))
            continue
        protein, carbs, fat = recalculate_macros(new_value, day, protein_floor)
        result.append(
            replace(day, calories=new_value, protein=protein, carbs=carbs, fat=fat)
        )
    return result


def get_day_warning(calories: int, average: float) -> Optional[str]:
    """Warning text for an unusual day, or None."""
    if calories <= MIN_DAY_CALORIES:
        return f"At the {MIN_DAY_CALORIES} kcal minimum for a single day"
    if calories < LOW_DAY_CALORIES:
        return "Very low-calorie day; consider spreading the deficit"
    if calories > average * HIGH_DAY_FACTOR:
        return "Well above average for the week"
    return None


def get_deviation_percent(calories: int, weekly_total: int) -> int:
    """Percent difference between a day and the week's daily average."""
    if weekly_total == 0:
        return 0
    average = weekly_total / 7
    return round_half_up((calories - average) / average * 100)


def save_redistribution(
    conn: sqlite3.Connection,
    days: Sequence[DayBudget],
    start_day: Optional[int] = None,
) -> None:
    """
    Persist a redistribution week.

    Enables the redistribution pattern, stores locked weekdays and the week
    start (the first day's weekday unless given), then replaces the date
    overrides in one transaction.
    """
    if start_day is None:
        start_day = days[0].day_of_week
    MacroCycleQueries.update_config(
        conn,
        enabled=True,
        pattern_type=PatternType.REDISTRIBUTION,
        locked_days=[day.day_of_week for day in days if day.locked],
        redistribution_start_day=start_day,
    )
    MacroCycleQueries.save_redistribution_overrides(
        conn, [(day.date, day.targets) for day in days]
    )
    logger.info("Saved redistribution week starting %s", days[0].date.isoformat())


def load_redistribution(
    conn: sqlite3.Connection, today: Optional[date] = None
) -> Optional[list[DayBudget]]:
    """
    Rebuild the current redistribution week from stored overrides.

    Returns None unless redistribution is the active pattern and every day
    of the current week has an override.
    """
    config = MacroCycleQueries.get_config(conn)
    if config is None or config.pattern_type != PatternType.REDISTRIBUTION:
        return None

    today = today or date.today()
    start = week_start_for(today, config.redistribution_start_day)
    end = start + timedelta(days=6)
    overrides = {
        override.date: override
        for override in MacroCycleQueries.get_overrides_between(conn, start, end)
    }
    if len(overrides) != 7:
        return None

    days = []
    for offset in range(7):
        current = start + timedelta(days=offset)
        override = overrides[current]
        dow = day_of_week(current)
        days.append(
            DayBudget(
                date=current,
                day_of_week=dow,
                day_label=WEEKDAY_LABELS[dow],
                calories=override.calories,
                protein=override.protein,
                carbs=override.carbs,
                fat=override.fat,
                locked=dow in config.locked_days,
                is_today=current == today,
                is_past=current < today,
            )
        )
    return days
