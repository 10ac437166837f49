"""Data models for weight tracking."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

# Physiological range accepted at the logging boundary
MIN_WEIGHT_KG = 30.0
MAX_WEIGHT_KG = 300.0


def validate_weight_kg(weight_kg: float) -> float:
    """Return weight_kg as a float, raising ValueError outside 30-300 kg."""
    weight = float(weight_kg)
    if not MIN_WEIGHT_KG <= weight <= MAX_WEIGHT_KG:
        raise ValueError(
            f"weight_kg must be between {MIN_WEIGHT_KG:g} and {MAX_WEIGHT_KG:g}, "
            f"got {weight:g}"
        )
    return weight


@dataclass
class WeightEntry:
    """A single weigh-in with its derived trend weight."""

    entry_id: str
    date: date
    weight_kg: float
    trend_weight_kg: Optional[float] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class TrendPoint:
    """A raw weight paired with its smoothed trend value."""

    date: date
    weight_kg: float
    trend_weight_kg: float
