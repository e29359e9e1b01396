"""Core Data Models - Pydantic models for type safety.

All models are value objects with no behavior beyond validation.
Numeric amounts that arrive as None, NaN, Infinity or below zero are coerced to
0 so that downstream arithmetic never sees a non-finite or negative value.
"""

import math
from datetime import datetime
from datetime import date as DateType
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")


def safe_amount(value: Any) -> float:
    """Return value as a non-negative finite float, or 0.0 for anything else."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


class NutrientProfile(BaseModel):
    """Grams of each macro plus calories for a food, a meal or a target."""

    calories: float = Field(default=0, ge=0, description="Calories (kcal)")
    protein: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("protein", "proteins"),
        description="Protein in grams",
    )
    carbs: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("carbs", "carb"),
        description="Carbohydrates in grams",
    )
    fat: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("fat", "fats"),
        description="Fat in grams",
    )
    fiber: float = Field(default=0, ge=0, description="Fiber in grams")

    @field_validator("calories", "protein", "carbs", "fat", "fiber", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> float:
        return safe_amount(value)


class MealTargets(BaseModel):
    """Per-meal portions of the daily target. Any slot may be missing."""

    breakfast: Optional[NutrientProfile] = None
    lunch: Optional[NutrientProfile] = None
    dinner: Optional[NutrientProfile] = None
    snack: Optional[NutrientProfile] = None


class TargetProfile(BaseModel):
    """A user's nutrition targets: the full day plus optional meal portions."""

    id: Optional[str] = None
    user_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("user_id", "userId")
    )
    daily: NutrientProfile
    meals: Optional[MealTargets] = None


DEFAULT_TARGET_PROFILE = TargetProfile(
    daily=NutrientProfile(calories=2000, protein=80, fat=80, carbs=150),
)


class FoodRecord(BaseModel):
    """A food as stored by the food collaborator.

    Totals stay nullable here: a missing value means "not analyzed yet",
    which is different from an explicit zero.
    """

    id: Optional[str] = None
    user_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("user_id", "userId")
    )
    food_name: str = Field(default="Unknown Food", description="Display name")
    total_calorie: Optional[float] = None
    total_protein: Optional[float] = None
    total_carb: Optional[float] = None
    total_fat: Optional[float] = None
    total_fiber: Optional[float] = None
    meal_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("meal_type", "meal_type_id")
    )
    consumed_at: Optional[datetime] = None


class MacroRatios(BaseModel):
    """Share of each macro in the four-macro total, in percent."""

    protein: float = 0
    fat: float = 0
    carbs: float = 0
    fiber: float = 0


class ScoreInterpretation(BaseModel):
    """Named tier for a balance score."""

    rating: str
    description: str


class ScoreResult(BaseModel):
    """Balance score with its interpretation."""

    score: int = Field(ge=0, le=100)
    interpretation: ScoreInterpretation


class NutrientComparison(BaseModel):
    """Food amount versus target amount for one nutrient."""

    food_value: float
    target_value: float
    percentage: int = Field(ge=0, description="Food value as percent of target")
    display_percentage: int = Field(ge=0, le=100, description="Percentage capped at 100")
    deviation: int = Field(description="percentage - 100. Negative = under target.")
    food_ratio: Optional[float] = Field(default=None, description="None for calories")
    target_ratio: Optional[float] = Field(default=None, description="None for calories")
    ratio_difference: Optional[float] = Field(default=None, description="None for calories")


class BalanceSummary(BaseModel):
    """Inputs of the balance score, kept for display."""

    avg_ratio_difference: float
    total_food_grams: float
    total_target_grams: float


class NutritionComparisons(BaseModel):
    """Comparison of every tracked nutrient against a target."""

    calories: NutrientComparison
    protein: NutrientComparison
    fat: NutrientComparison
    carbs: NutrientComparison
    fiber: NutrientComparison
    balance: BalanceSummary


class ScoreAnalysis(BaseModel):
    """Everything a scoring record stores for a food or a meal."""

    score: int = Field(ge=0, le=100)
    interpretation: ScoreInterpretation
    comparisons: NutritionComparisons
    meal_type: str = Field(description="Effective meal type, 'custom' when none")
    nutrition: NutrientProfile


class NutrientComment(BaseModel):
    """Qualitative feedback for one nutrient."""

    nutrient_type: str
    percentage: int = Field(ge=0)
    band: str = Field(description="low, balanced or high")
    comment: str
    icon: str


class MealComments(BaseModel):
    """Comments for every tracked nutrient of one food."""

    calories: NutrientComment
    protein: NutrientComment
    fat: NutrientComment
    carbs: NutrientComment
    fiber: NutrientComment


class DailyTotal(BaseModel):
    """Sum of everything a user ate on one calendar day."""

    user_id: str = Field(min_length=1)
    log_date: DateType = Field(description="Date of the total (YYYY-MM-DD)")
    calories: float = Field(default=0, ge=0)
    protein: float = Field(default=0, ge=0)
    carbs: float = Field(default=0, ge=0)
    fat: float = Field(default=0, ge=0)
    fiber: float = Field(default=0, ge=0)
    food_count: int = Field(default=0, ge=0)
    food_ids: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class NutrientProgress(BaseModel):
    """Progress toward one daily target, capped for display."""

    current: int
    target: int
    percentage: int = Field(ge=0, le=100)


class DailyProgress(BaseModel):
    """Daily progress for every tracked nutrient."""

    calories: NutrientProgress
    protein: NutrientProgress
    fat: NutrientProgress
    carbs: NutrientProgress
    fiber: NutrientProgress
