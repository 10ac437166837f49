"""Weight tracking module.

Trend weight is an exponentially weighted moving average with a 7 day
half-life, tolerant of irregular gaps between weigh-ins.

Key components:
- Pure trend fold (full series and recompute-from-date)
- Weight entry queries that keep the stored trend chain consistent
"""

from __future__ import annotations

from nutritrend.tracking.models import TrendPoint, WeightEntry
from nutritrend.tracking.queries import WeightQueries
from nutritrend.tracking.trend import (
    HALF_LIFE_DAYS,
    compute_effective_alpha,
    compute_trend_series,
    recompute_from_date,
    update_trend,
)

__all__ = [
    "HALF_LIFE_DAYS",
    "TrendPoint",
    "WeightEntry",
    "WeightQueries",
    "compute_effective_alpha",
    "compute_trend_series",
    "recompute_from_date",
    "update_trend",
]
