"""Resolve the effective macro targets for a date.

Exactly one source supplies the targets for any date, checked in order:

1. A per-date override (wins unconditionally)
2. The weekday's cycling target, when cycling is enabled and one is set
3. The caller's base targets

Sources are never blended. Weekdays are numbered 0 (Sunday) to 6 and are
taken from the calendar date itself, never from a UTC timestamp, so a date
classifies the same way in every timezone.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date
from typing import Optional, Sequence, Union

from nutritrend.rounding import round_half_up
from nutritrend.targets.models import (
    DayTargets,
    DayType,
    MacroAdjustment,
    MacroCycleConfig,
    PatternType,
    ResolvedTargets,
    TargetSource,
    parse_pattern_type,
)
from nutritrend.targets.queries import MacroCycleQueries

logger = logging.getLogger(__name__)

# Low-carb days move carbs and fat by half the high-carb adjustment
LOW_CARB_SCALE = 0.5


def day_of_week(on_date: Union[date, str]) -> int:
    """Weekday of a calendar date, 0 = Sunday through 6 = Saturday."""
    if isinstance(on_date, str):
        on_date = date.fromisoformat(on_date)
    return (on_date.weekday() + 1) % 7


def _as_date(on_date: Union[date, str]) -> date:
    return date.fromisoformat(on_date) if isinstance(on_date, str) else on_date


def resolve_targets_with_source(
    conn: sqlite3.Connection,
    on_date: Union[date, str],
    base_targets: DayTargets,
) -> ResolvedTargets:
    """
    Resolve targets for a date and report which source supplied them.

    Storage errors and undecodable stored rows are logged and degrade to
    base targets so a lookup failure never blocks showing a target.
    """
    on_date = _as_date(on_date)
    try:
        override = MacroCycleQueries.get_override(conn, on_date)
        if override is not None:
            return ResolvedTargets(TargetSource.OVERRIDE, override.targets)

        config = MacroCycleQueries.get_config(conn)
    except (sqlite3.Error, ValueError, KeyError, TypeError):
        logger.warning(
            "Target lookup failed for %s, using base targets",
            on_date.isoformat(),
            exc_info=True,
        )
        return ResolvedTargets(TargetSource.BASE, base_targets)

    if config is None or not config.enabled:
        return ResolvedTargets(TargetSource.BASE, base_targets)

    cycled = config.day_targets.get(day_of_week(on_date))
    if cycled is not None:
        return ResolvedTargets(TargetSource.CYCLING, cycled)

    return ResolvedTargets(TargetSource.BASE, base_targets)


def resolve_targets(
    conn: sqlite3.Connection,
    on_date: Union[date, str],
    base_targets: DayTargets,
) -> DayTargets:
    """Effective targets for a date: override, else cycling day, else base."""
    return resolve_targets_with_source(conn, on_date, base_targets).targets


def get_day_type(day: int, config: MacroCycleConfig) -> Optional[DayType]:
    """
    Classify a weekday under the active pattern, for labelling only.

    Returns None when cycling is disabled or the pattern is not recognised.
    """
    if not config.enabled:
        return None

    is_marked = day in config.marked_days
    pattern = parse_pattern_type(config.pattern_type)

    if pattern == PatternType.TRAINING_REST:
        return DayType.TRAINING if is_marked else DayType.REST
    if pattern == PatternType.HIGH_LOW_CARB:
        return DayType.HIGH_CARB if is_marked else DayType.LOW_CARB
    if pattern == PatternType.EVEN_DISTRIBUTION:
        return DayType.EVEN
    if pattern in (PatternType.CUSTOM, PatternType.REDISTRIBUTION):
        return DayType.CUSTOM
    return None


def calculate_weekly_average(config: MacroCycleConfig) -> DayTargets:
    """
    Average the weekdays that have targets, each field independently.

    Only populated weekdays count toward the denominator. Each average is
    rounded half-up; an empty mapping gives all zeros.
    """
    present = [config.day_targets[day] for day in range(7) if day in config.day_targets]
    if not present:
        return DayTargets.zero()

    count = len(present)
    return DayTargets(
        calories=round_half_up(sum(t.calories for t in present) / count),
        protein=round_half_up(sum(t.protein for t in present) / count),
        carbs=round_half_up(sum(t.carbs for t in present) / count),
        fat=round_half_up(sum(t.fat for t in present) / count),
    )


def calculate_day_targets(
    base: DayTargets,
    pattern_type: Union[PatternType, str],
    marked_days: Sequence[int],
    adjustment: MacroAdjustment,
) -> dict[int, DayTargets]:
    """
    Build a full week of day targets for a pattern.

    training_rest: marked (training) days get base + adjustment.
    high_low_carb: marked days shift carbs/fat by the adjustment at equal
    calories; unmarked days shift the other way by LOW_CARB_SCALE of it.
    even_distribution and custom: base every day.
    """
    pattern = PatternType(pattern_type)
    marked = set(marked_days)
    week: dict[int, DayTargets] = {}

    for day in range(7):
        is_marked = day in marked
        if pattern == PatternType.TRAINING_REST and is_marked:
            week[day] = DayTargets(
                calories=max(0, base.calories + adjustment.calories),
                protein=max(0, base.protein + adjustment.protein),
                carbs=max(0, base.carbs + adjustment.carbs),
                fat=max(0, base.fat + adjustment.fat),
            )
        elif pattern == PatternType.HIGH_LOW_CARB:
            if is_marked:
                carbs = base.carbs + adjustment.carbs
                fat = base.fat + adjustment.fat
            else:
                carbs = base.carbs - round_half_up(adjustment.carbs * LOW_CARB_SCALE)
                fat = base.fat - round_half_up(adjustment.fat * LOW_CARB_SCALE)
            week[day] = DayTargets(
                calories=base.calories,
                protein=base.protein,
                carbs=max(0, carbs),
                fat=max(0, fat),
            )
        else:
            week[day] = base

    return week
