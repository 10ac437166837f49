"""Exponentially weighted moving average for weight tracking.

The trend weight damps day-to-day noise (water retention, gut contents,
scale error) while following sustained change. It is a continuous-time
EWMA with a fixed half-life:

    alpha = 1 - 2^(-gap / HALF_LIFE_DAYS)
    T_n   = alpha × W_n + (1 - alpha) × T_{n-1}

where gap is the number of days since the previous weigh-in. An
observation HALF_LIFE_DAYS old keeps half its influence however irregular
the logging is, so skipped days neither over- nor under-weight the next
entry. Two weigh-ins exactly seven days apart give alpha = 0.5.

The series is a strict left-to-right fold over entries sorted by date:
every trend value depends on the one before it, so changing an entry
invalidates every later trend.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from nutritrend.tracking.models import TrendPoint

HALF_LIFE_DAYS = 7.0

# Floor for the gap between two entries, so same-day entries still move
# the trend a little instead of not at all
MIN_DAY_GAP = 0.01


class TrendSource(Protocol):
    """Anything carrying the fields the recompute fold reads."""

    entry_id: str
    date: date
    weight_kg: float
    trend_weight_kg: Optional[float]


def compute_effective_alpha(
    day_gap: float, half_life_days: float = HALF_LIFE_DAYS
) -> float:
    """
    Smoothing factor for an entry day_gap days after the previous one.

    Example:
        >>> compute_effective_alpha(7)
        0.5
        >>> compute_effective_alpha(14)
        0.75
        >>> compute_effective_alpha(1)  # 1 - 2^(-1/7)
        0.0942...
    """
    return 1 - 2 ** (-day_gap / half_life_days)


def day_gap(prev_date: date, curr_date: date) -> float:
    """Days between two calendar dates, clamped to MIN_DAY_GAP."""
    return max(float((curr_date - prev_date).days), MIN_DAY_GAP)


def update_trend(
    prev_trend: float,
    weight_kg: float,
    gap_days: float = 1.0,
    half_life_days: float = HALF_LIFE_DAYS,
) -> float:
    """
    Fold one weigh-in into the trend.

    Args:
        prev_trend: Previous trend value (T_{n-1})
        weight_kg: Today's scale weight (W_n)
        gap_days: Days since the previous weigh-in (already clamped)
        half_life_days: Half-life of the filter

    Returns:
        Today's trend value (T_n)
    """
    alpha = compute_effective_alpha(gap_days, half_life_days)
    return alpha * weight_kg + (1 - alpha) * prev_trend


def compute_trend_series(
    points: Sequence[tuple[date, float]],
    half_life_days: float = HALF_LIFE_DAYS,
) -> list[TrendPoint]:
    """
    Calculate trend values for a date-ascending series of weigh-ins.

    The first weight seeds the trend. No rounding is applied.

    Example:
        >>> from datetime import date
        >>> series = compute_trend_series([(date(2025, 1, 1), 80.0), (date(2025, 1, 8), 84.0)])
        >>> [p.trend_weight_kg for p in series]
        [80.0, 82.0]
    """
    series: list[TrendPoint] = []
    prev_trend: Optional[float] = None
    prev_date: Optional[date] = None

    for curr_date, weight in points:
        if prev_trend is None or prev_date is None:
            trend = weight
        else:
            trend = update_trend(
                prev_trend, weight, day_gap(prev_date, curr_date), half_life_days
            )
        series.append(TrendPoint(date=curr_date, weight_kg=weight, trend_weight_kg=trend))
        prev_trend, prev_date = trend, curr_date

    return series


def recompute_from_date(
    entries: Sequence[TrendSource],
    changed_date: date,
    half_life_days: float = HALF_LIFE_DAYS,
) -> list[tuple[str, float]]:
    """
    Recompute trends for every entry on or after changed_date.

    The entry immediately before the first recomputed one seeds the fold
    with its stored trend (or its raw weight when no trend was stored). If
    nothing precedes it, the first recomputed trend equals its raw weight.

    Args:
        entries: Full history sorted ascending by date
        changed_date: Earliest date whose trend may be stale

    Returns:
        (entry_id, trend_weight_kg) for each recomputed entry, in date order
    """
    start_idx = next(
        (i for i, entry in enumerate(entries) if entry.date >= changed_date), None
    )
    if start_idx is None:
        return []

    prev_trend: Optional[float] = None
    prev_date: Optional[date] = None
    if start_idx > 0:
        seed = entries[start_idx - 1]
        prev_trend = (
            seed.trend_weight_kg if seed.trend_weight_kg is not None else seed.weight_kg
        )
        prev_date = seed.date

    updates: list[tuple[str, float]] = []
    for entry in entries[start_idx:]:
        if prev_trend is None or prev_date is None:
            trend = entry.weight_kg
        else:
            trend = update_trend(
                prev_trend, entry.weight_kg, day_gap(prev_date, entry.date), half_life_days
            )
        updates.append((entry.entry_id, trend))
        prev_trend, prev_date = trend, entry.date

    return updates


def estimate_weekly_change(trend_start: float, trend_end: float, days: int = 7) -> float:
    """
    Estimate weekly weight change from two trend values.

    Args:
        trend_start: Trend value at start of period
        trend_end: Trend value at end of period
        days: Number of days in period (default 7)

    Returns:
        Estimated weekly change in kg (negative = losing)
    """
    if days <= 0:
        return 0.0
    daily_change = (trend_end - trend_start) / days
    return daily_change * 7


def estimate_daily_calorie_balance(weekly_change_kg: float) -> float:
    """
    Estimate daily calorie surplus/deficit from weekly weight change.

    Uses the approximation 7700 kcal = 1 kg of body weight.
    """
    return (weekly_change_kg * 7700) / 7
