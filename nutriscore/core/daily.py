"""Daily Totals - Pure functions for daily aggregation and progress.

All functions are pure: same input always produces same output, no side effects.
"""

from datetime import date, datetime
from typing import Sequence

from .macros import percent_of, round_half_up
from .models import (
    DailyProgress,
    DailyTotal,
    FoodRecord,
    NutrientProfile,
    NutrientProgress,
    safe_amount,
)


def calculate_daily_totals(foods: Sequence[FoodRecord]) -> NutrientProfile:
    """Calculate total nutrients from a day's food records.

    Calories are summed from each food's stored calorie value, not derived
    again from the summed macros.

    Args:
        foods: Food records for one day

    Returns:
        NutrientProfile with totals (all zeros for an empty day)
    """
    calories = protein = carbs = fat = fiber = 0.0
    for food in foods:
        calories += safe_amount(food.total_calorie)
        protein += safe_amount(food.total_protein)
        carbs += safe_amount(food.total_carb)
        fat += safe_amount(food.total_fat)
        fiber += safe_amount(food.total_fiber)

    return NutrientProfile(
        calories=round(calories, 1),
        protein=round(protein, 1),
        carbs=round(carbs, 1),
        fat=round(fat, 1),
        fiber=round(fiber, 1),
    )


def compute_daily_total(
    user_id: str,
    log_date: date,
    foods: Sequence[FoodRecord],
    now: datetime,
    created_at: datetime | None = None,
) -> DailyTotal:
    """Build the DailyTotal record for a user and day.

    Args:
        user_id: The user's ID
        log_date: Calendar day being totalled
        foods: Every food record for that day
        now: Timestamp for updated_at (and created_at for a new record)
        created_at: Creation time of the record being replaced, if any

    Returns:
        DailyTotal ready to be stored
    """
    totals = calculate_daily_totals(foods)

    return DailyTotal(
        user_id=user_id,
        log_date=log_date,
        calories=totals.calories,
        protein=totals.protein,
        carbs=totals.carbs,
        fat=totals.fat,
        fiber=totals.fiber,
        food_count=len(foods),
        food_ids=[food.id for food in foods if food.id],
        created_at=created_at or now,
        updated_at=now,
    )


def progress_percentage(current: float, target: float) -> int:
    """Percentage of a daily target reached, capped at 100.

    Returns 0 when the target is missing, zero or negative, or when the
    result is not a finite number.
    """
    return min(percent_of(safe_amount(current), safe_amount(target)), 100)


def _progress(current: float, target: float) -> NutrientProgress:
    return NutrientProgress(
        current=round_half_up(safe_amount(current)),
        target=round_half_up(safe_amount(target)),
        percentage=progress_percentage(current, target),
    )


def calculate_daily_progress(total: DailyTotal, target: NutrientProfile) -> DailyProgress:
    """Calculate display progress of a day's totals against the daily target.

    Args:
        total: The day's totals
        target: The user's daily target

    Returns:
        DailyProgress with current, target and capped percentage per nutrient
    """
    return DailyProgress(
        calories=_progress(total.calories, target.calories),
        protein=_progress(total.protein, target.protein),
        fat=_progress(total.fat, target.fat),
        carbs=_progress(total.carbs, target.carbs),
        fiber=_progress(total.fiber, target.fiber),
    )
