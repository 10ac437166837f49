"""Goal calculator for calorie and macro targets.

Estimates TDEE (Total Daily Energy Expenditure) from metric body measures
and turns a weight goal (lose, maintain, gain at a % of body weight per
week) into daily calorie and macro targets.

Uses the Mifflin-St Jeor equation for BMR. All displayed values are
rounded half-up.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from nutritrend.rounding import round_half_up


class Sex(Enum):
    """Biological sex for BMR calculation."""
    MALE = "male"
    FEMALE = "female"


class ActivityLevel(Enum):
    """Activity level multipliers for TDEE calculation."""
    SEDENTARY = "sedentary"                  # Desk job, little or no exercise
    LIGHTLY_ACTIVE = "lightly_active"        # Light exercise 1-3 days/week
    MODERATELY_ACTIVE = "moderately_active"  # Moderate exercise 3-5 days/week
    VERY_ACTIVE = "very_active"              # Hard exercise 6-7 days/week
    EXTREMELY_ACTIVE = "extremely_active"    # Very hard exercise, physical job


class GoalType(Enum):
    """Direction of the weight goal."""
    LOSE = "lose"
    MAINTAIN = "maintain"
    GAIN = "gain"


class EatingStyle(Enum):
    """How calories left after protein are split between carbs and fat."""
    FLEXIBLE = "flexible"
    CARB_FOCUSED = "carb_focused"
    FAT_FOCUSED = "fat_focused"
    VERY_LOW_CARB = "very_low_carb"


class ProteinPriority(Enum):
    """Protein target relative to body weight."""
    STANDARD = "standard"
    ACTIVE = "active"
    ATHLETIC = "athletic"
    MAXIMUM = "maximum"


ACTIVITY_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHTLY_ACTIVE: 1.375,
    ActivityLevel.MODERATELY_ACTIVE: 1.55,
    ActivityLevel.VERY_ACTIVE: 1.725,
    ActivityLevel.EXTREMELY_ACTIVE: 1.9,
}

# Weekly change as % of body weight
RATE_OPTIONS = {
    GoalType.LOSE: [0.25, 0.5, 0.75, 1.0],
    GoalType.MAINTAIN: [0.0],
    GoalType.GAIN: [0.25, 0.5],
}

KCAL_PER_KG = 7700
MIN_SAFE_CALORIES = 1200

# (protein g per kg body weight, fat share of calories)
GOAL_MACRO_GUIDELINES = {
    GoalType.LOSE: (2.0, 0.30),      # Higher protein during a deficit
    GoalType.MAINTAIN: (1.6, 0.30),
    GoalType.GAIN: (1.8, 0.25),
}

# (carb share, fat share, carb cap in grams)
EATING_STYLE_SPLITS = {
    EatingStyle.FLEXIBLE: (0.5, 0.5, None),
    EatingStyle.CARB_FOCUSED: (0.65, 0.35, None),
    EatingStyle.FAT_FOCUSED: (0.35, 0.65, 150),
    EatingStyle.VERY_LOW_CARB: (0.1, 0.9, 50),
}

PROTEIN_PER_KG = {
    ProteinPriority.STANDARD: 1.32,
    ProteinPriority.ACTIVE: 1.65,
    ProteinPriority.ATHLETIC: 1.98,
    ProteinPriority.MAXIMUM: 2.2,
}

KCAL_PER_GRAM_PROTEIN = 4
KCAL_PER_GRAM_CARBS = 4
KCAL_PER_GRAM_FAT = 9


@dataclass
class BodyMetrics:
    """Inputs for BMR and TDEE."""

    sex: Sex
    age_years: int
    height_cm: float
    weight_kg: float
    activity_level: ActivityLevel

    def __post_init__(self):
        if isinstance(self.sex, str):
            self.sex = Sex(self.sex.lower())
        if isinstance(self.activity_level, str):
            self.activity_level = ActivityLevel(self.activity_level.lower())
        if self.age_years <= 0:
            raise ValueError(f"age must be positive, got {self.age_years}")
        if self.height_cm <= 0 or self.weight_kg <= 0:
            raise ValueError("height and weight must be positive")


@dataclass
class MacroTargets:
    """Daily calorie and macro targets (grams)."""

    calories: int
    protein: int
    carbs: int
    fat: int

    def to_dict(self) -> dict:
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
        }


@dataclass
class MacroBreakdown(MacroTargets):
    """Macro targets with calories and percentages from the rounded grams."""

    protein_calories: int = 0
    carbs_calories: int = 0
    fat_calories: int = 0
    protein_percent: int = 0
    carbs_percent: int = 0
    fat_percent: int = 0
    carb_cap_applied: bool = False

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            {
                "protein_calories": self.protein_calories,
                "carbs_calories": self.carbs_calories,
                "fat_calories": self.fat_calories,
                "protein_percent": self.protein_percent,
                "carbs_percent": self.carbs_percent,
                "fat_percent": self.fat_percent,
                "carb_cap_applied": self.carb_cap_applied,
            }
        )
        return data


@dataclass
class ValidationResult:
    """Warnings about a goal or macro combination."""

    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.warnings


def calculate_bmr(metrics: BodyMetrics) -> int:
    """Calculate Basal Metabolic Rate using the Mifflin-St Jeor equation.

    Args:
        metrics: Sex, age, height (cm) and weight (kg)

    Returns:
        BMR in calories per day
    """
    base = 10 * metrics.weight_kg + 6.25 * metrics.height_cm - 5 * metrics.age_years
    if metrics.sex == Sex.MALE:
        return round_half_up(base + 5)
    return round_half_up(base - 161)


def calculate_tdee(metrics: BodyMetrics) -> int:
    """Calculate Total Daily Energy Expenditure (BMR x activity multiplier)."""
    multiplier = ACTIVITY_MULTIPLIERS[metrics.activity_level]
    return round_half_up(calculate_bmr(metrics) * multiplier)


def calculate_target_calories(
    metrics: BodyMetrics,
    goal_type: GoalType,
    rate_percent: float,
) -> int:
    """Calculate the daily calorie target for a goal.

    Args:
        metrics: Body measures
        goal_type: lose, maintain or gain
        rate_percent: Weekly change as % of body weight

    Returns:
        Daily calories. Losing never goes below MIN_SAFE_CALORIES.
    """
    tdee = calculate_tdee(metrics)
    if goal_type == GoalType.MAINTAIN:
        return tdee

    weekly_change_kg = (rate_percent / 100) * metrics.weight_kg
    daily_adjustment = round_half_up(weekly_change_kg * KCAL_PER_KG / 7)

    if goal_type == GoalType.LOSE:
        return max(MIN_SAFE_CALORIES, tdee - daily_adjustment)
    return tdee + daily_adjustment


def calculate_goal_macros(
    metrics: BodyMetrics,
    goal_type: GoalType,
    rate_percent: float,
) -> MacroTargets:
    """Macro targets for a goal: protein by body weight, fat by share, carbs the rest."""
    calories = calculate_target_calories(metrics, goal_type, rate_percent)
    protein_per_kg, fat_share = GOAL_MACRO_GUIDELINES[goal_type]

    protein = round_half_up(metrics.weight_kg * protein_per_kg)
    fat_calories = round_half_up(calories * fat_share)
    carbs_calories = calories - protein * KCAL_PER_GRAM_PROTEIN - fat_calories

    return MacroTargets(
        calories=calories,
        protein=max(0, protein),
        carbs=max(0, round_half_up(carbs_calories / KCAL_PER_GRAM_CARBS)),
        fat=max(0, round_half_up(fat_calories / KCAL_PER_GRAM_FAT)),
    )


def get_rate_options(goal_type: GoalType) -> list[float]:
    """Weekly rate choices (% of body weight) offered for a goal."""
    return list(RATE_OPTIONS[goal_type])


def calculate_time_to_goal(
    current_weight_kg: float,
    target_weight_kg: Optional[float],
    rate_percent: float,
) -> Optional[tuple[int, int]]:
    """Estimate (weeks, months) to reach a target weight.

    Returns None when there is no target or the rate is zero.
    """
    if not target_weight_kg or rate_percent == 0:
        return None

    weight_diff = abs(target_weight_kg - current_weight_kg)
    weekly_change = (rate_percent / 100) * current_weight_kg
    weeks = math.ceil(weight_diff / weekly_change)
    months = round_half_up(weeks / 4.33)
    return weeks, months


def validate_goal(
    metrics: BodyMetrics,
    goal_type: GoalType,
    rate_percent: float,
) -> ValidationResult:
    """Flag goals that are likely unhealthy or unsustainable."""
    result = ValidationResult()

    if calculate_target_calories(metrics, goal_type, rate_percent) < MIN_SAFE_CALORIES:
        result.warnings.append("Calorie target may be too low for long-term health.")

    if goal_type == GoalType.LOSE and rate_percent > 1.0:
        result.warnings.append(
            "Losing more than 1% body weight per week may not be sustainable."
        )

    bmi = metrics.weight_kg / (metrics.height_cm / 100) ** 2
    if goal_type == GoalType.LOSE and bmi < 18.5:
        result.warnings.append("Your BMI suggests you may already be underweight.")

    return result


def _split_by_style(
    weight_kg: float,
    target_calories: int,
    eating_style: EatingStyle,
    protein_priority: ProteinPriority,
) -> tuple[int, int, int, bool]:
    carb_share, fat_share, carb_cap = EATING_STYLE_SPLITS[eating_style]

    protein = round_half_up(weight_kg * PROTEIN_PER_KG[protein_priority])
    remaining = max(0, target_calories - protein * KCAL_PER_GRAM_PROTEIN)

    carbs = round_half_up(remaining * carb_share / KCAL_PER_GRAM_CARBS)
    fat = round_half_up(remaining * fat_share / KCAL_PER_GRAM_FAT)

    cap_applied = False
    if carb_cap is not None and carbs > carb_cap:
        # Calories above the cap go to fat
        cap_applied = True
        carbs = carb_cap
        fat = round_half_up((remaining - carbs * KCAL_PER_GRAM_CARBS) / KCAL_PER_GRAM_FAT)

    return max(0, protein), max(0, carbs), max(0, fat), cap_applied


def calculate_macros(
    weight_kg: float,
    target_calories: int,
    eating_style: EatingStyle = EatingStyle.FLEXIBLE,
    protein_priority: ProteinPriority = ProteinPriority.ACTIVE,
) -> MacroTargets:
    """Calculate macros from an eating style and protein priority.

    Protein comes from body weight. The calories left are split between
    carbs and fat by the style's ratio. Styles with a carb cap move any
    carb calories over the cap to fat.

    Args:
        weight_kg: Body weight in kg
        target_calories: Daily calorie target
        eating_style: Carb/fat split
        protein_priority: Protein grams per kg

    Returns:
        MacroTargets in grams
    """
    protein, carbs, fat, _ = _split_by_style(
        weight_kg, target_calories, eating_style, protein_priority
    )
    return MacroTargets(calories=target_calories, protein=protein, carbs=carbs, fat=fat)


def calculate_macro_breakdown(
    weight_kg: float,
    target_calories: int,
    eating_style: EatingStyle = EatingStyle.FLEXIBLE,
    protein_priority: ProteinPriority = ProteinPriority.ACTIVE,
) -> MacroBreakdown:
    """Calculate macros plus each macro's calories and share of the total."""
    protein, carbs, fat, cap_applied = _split_by_style(
        weight_kg, target_calories, eating_style, protein_priority
    )

    protein_calories = protein * KCAL_PER_GRAM_PROTEIN
    carbs_calories = carbs * KCAL_PER_GRAM_CARBS
    fat_calories = fat * KCAL_PER_GRAM_FAT
    total = protein_calories + carbs_calories + fat_calories

    def percent(part: int) -> int:
        return round_half_up(part / total * 100) if total > 0 else 0

    return MacroBreakdown(
        calories=target_calories,
        protein=protein,
        carbs=carbs,
        fat=fat,
        protein_calories=protein_calories,
        carbs_calories=carbs_calories,
        fat_calories=fat_calories,
        protein_percent=percent(protein_calories),
        carbs_percent=percent(carbs_calories),
        fat_percent=percent(fat_calories),
        carb_cap_applied=cap_applied,
    )


def validate_macros(macros: MacroTargets) -> ValidationResult:
    """Flag macro combinations that are too low or don't add up."""
    result = ValidationResult()

    if macros.protein < 40:
        result.warnings.append(
            "Protein is very low. Consider increasing protein priority."
        )
    if macros.fat < 30:
        result.warnings.append("Fat is very low. This may affect hormone function.")
    if macros.carbs < 0:
        result.warnings.append("Carbs calculation resulted in negative value.")

    computed = (
        macros.protein * KCAL_PER_GRAM_PROTEIN
        + macros.carbs * KCAL_PER_GRAM_CARBS
        + macros.fat * KCAL_PER_GRAM_FAT
    )
    if abs(computed - macros.calories) > 50:
        result.warnings.append("Macro totals differ significantly from calorie target.")

    return result
