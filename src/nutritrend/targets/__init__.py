"""Daily macro targets.

A date's targets come from exactly one source: a per-date override, the
weekday's cycling target, or the base targets. Weekly redistribution
moves calories between days and saves the week as overrides.
"""

from __future__ import annotations

from nutritrend.targets.models import (
    DayBudget,
    DayTargets,
    DayType,
    MacroAdjustment,
    MacroCycleConfig,
    MacroOverride,
    PatternType,
    ResolvedTargets,
    TargetSource,
)
from nutritrend.targets.queries import MacroCycleQueries
from nutritrend.targets.resolver import (
    calculate_day_targets,
    calculate_weekly_average,
    day_of_week,
    get_day_type,
    resolve_targets,
    resolve_targets_with_source,
)

__all__ = [
    "DayBudget",
    "DayTargets",
    "DayType",
    "MacroAdjustment",
    "MacroCycleConfig",
    "MacroCycleQueries",
    "MacroOverride",
    "PatternType",
    "ResolvedTargets",
    "TargetSource",
    "calculate_day_targets",
    "calculate_weekly_average",
    "day_of_week",
    "get_day_type",
    "resolve_targets",
    "resolve_targets_with_source",
]
