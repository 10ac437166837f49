"""Data models for daily macro targets, cycling and overrides."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

from nutritrend.rounding import round_half_up

WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

# Displayed "on target" band around each resolved value
TARGET_TOLERANCE = 0.05


class PatternType(Enum):
    """How daily targets vary across the week."""
    TRAINING_REST = "training_rest"          # Marked days are training days
    HIGH_LOW_CARB = "high_low_carb"          # Marked days are high-carb days
    EVEN_DISTRIBUTION = "even_distribution"  # Same targets every day
    CUSTOM = "custom"                        # Each day set by hand
    REDISTRIBUTION = "redistribution"        # Weekly budget moved between days


class DayType(Enum):
    """Label for a weekday under the active pattern."""
    TRAINING = "training"
    REST = "rest"
    HIGH_CARB = "high_carb"
    LOW_CARB = "low_carb"
    EVEN = "even"
    CUSTOM = "custom"


class TargetSource(Enum):
    """Which source supplied the resolved targets for a date."""
    OVERRIDE = "override"
    CYCLING = "cycling"
    BASE = "base"


def validate_weekday(day_of_week: int) -> int:
    """Return day_of_week if it is 0 (Sunday) through 6 (Saturday)."""
    if isinstance(day_of_week, bool) or not isinstance(day_of_week, int):
        raise ValueError(f"weekday must be an integer 0-6, got {day_of_week!r}")
    if not 0 <= day_of_week <= 6:
        raise ValueError(f"weekday must be between 0 (Sunday) and 6, got {day_of_week}")
    return day_of_week


def parse_pattern_type(value: Union[str, PatternType]) -> Union[PatternType, str]:
    """Map a stored pattern string to PatternType, keeping unknown strings as-is."""
    if isinstance(value, PatternType):
        return value
    try:
        return PatternType(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class DayTargets:
    """Calorie and macro targets for one day (grams for macros)."""

    calories: int
    protein: float
    carbs: float
    fat: float

    def __post_init__(self) -> None:
        for name in ("calories", "protein", "carbs", "fat"):
            value = getattr(self, name)
            if value is None or value < 0:
                raise ValueError(f"{name} must be a non-negative number, got {value!r}")
        if self.calories != int(self.calories):
            raise ValueError(f"calories must be a whole number, got {self.calories!r}")
        object.__setattr__(self, "calories", int(self.calories))

    @classmethod
    def zero(cls) -> "DayTargets":
        return cls(calories=0, protein=0, carbs=0, fat=0)

    @classmethod
    def from_dict(cls, data: dict) -> "DayTargets":
        return cls(
            calories=data["calories"],
            protein=data["protein"],
            carbs=data["carbs"],
            fat=data["fat"],
        )

    def to_dict(self) -> dict:
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
        }


@dataclass(frozen=True)
class MacroAdjustment:
    """Signed change applied to base targets on cycling days."""

    calories: int = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0


@dataclass
class MacroCycleConfig:
    """Singleton macro cycling configuration."""

    enabled: bool = False
    pattern_type: Union[PatternType, str] = PatternType.TRAINING_REST
    marked_days: list[int] = field(default_factory=list)
    day_targets: dict[int, DayTargets] = field(default_factory=dict)
    locked_days: list[int] = field(default_factory=list)
    redistribution_start_day: int = 0
    created_at: Optional[datetime] = None
    last_modified: Optional[datetime] = None


@dataclass
class MacroOverride:
    """Targets pinned to a specific date, superseding cycling and base."""

    override_id: str
    date: date
    calories: int
    protein: float
    carbs: float
    fat: float
    created_at: Optional[datetime] = None

    @property
    def targets(self) -> DayTargets:
        return DayTargets(
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
        )


@dataclass(frozen=True)
class ResolvedTargets:
    """Effective targets for a date, tagged with the source that won."""

    source: TargetSource
    targets: DayTargets

    def range(self, name: str) -> tuple[int, int]:
        """(min, max) within TARGET_TOLERANCE of one target field."""
        value = getattr(self.targets, name)
        return (
            round_half_up(value * (1 - TARGET_TOLERANCE)),
            round_half_up(value * (1 + TARGET_TOLERANCE)),
        )


@dataclass
class DayBudget:
    """One day of a weekly redistribution budget."""

    date: date
    day_of_week: int
    day_label: str
    calories: int
    protein: float
    carbs: float
    fat: float
    locked: bool = False
    is_today: bool = False
    is_past: bool = False

    @property
    def targets(self) -> DayTargets:
        return DayTargets(
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
        )
