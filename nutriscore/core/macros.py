"""Macro Calculations - Pure functions for nutrition math.

All functions are pure: same input always produces same output, no side effects.
"""

import math
from typing import Iterable, Literal, Optional

from .models import (
    MEAL_TYPES,
    FoodRecord,
    MacroRatios,
    NutrientProfile,
    TargetProfile,
    safe_amount,
)


MealFallback = Literal["daily", "portion"]

# Share of the daily target used for a meal slot when fallback="portion"
MEAL_SHARES = {
    "breakfast": 0.25,
    "lunch": 0.35,
    "dinner": 0.30,
    "snack": 0.10,
}
UNKNOWN_MEAL_SHARE = 0.25


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding up.

    Python's round() rounds halves to even; stored scores and percentages
    use half-up so 0.5 -> 1 and 92.5 -> 93. Non-finite values give 0.
    """
    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


def percent_of(value: float, target: float) -> int:
    """Value as a whole-number percentage of target.

    Returns 0 when the target is zero or negative, or when the division
    overflows (a tiny target or a huge value).
    """
    if target <= 0:
        return 0
    percentage = value / target * 100
    if not math.isfinite(percentage):
        return 0
    return round_half_up(percentage)


def derive_calories(protein: float, carbs: float, fat: float) -> int:
    """Calculate calories from macronutrients.

    Uses standard conversion: 4 cal/g protein, 4 cal/g carbs, 9 cal/g fat.
    Fiber does not contribute. A missing or non-finite input counts as 0.

    Args:
        protein: Grams of protein
        carbs: Grams of carbohydrates
        fat: Grams of fat

    Returns:
        Estimated calories (rounded to nearest integer)
    """
    protein = safe_amount(protein)
    carbs = safe_amount(carbs)
    fat = safe_amount(fat)
    return round_half_up(protein * 4 + carbs * 4 + fat * 9)


def macro_total(profile: NutrientProfile) -> float:
    """Sum of the four tracked macros in grams. Calories are excluded."""
    return profile.protein + profile.fat + profile.carbs + profile.fiber


def to_ratios(profile: NutrientProfile) -> MacroRatios:
    """Convert macro grams to percentage-of-total ratios.

    Args:
        profile: Nutrient profile to normalize

    Returns:
        MacroRatios summing to 100, or all zeros if the profile has no macros
    """
    total = macro_total(profile)
    if total <= 0:
        return MacroRatios()

    return MacroRatios(
        protein=profile.protein / total * 100,
        fat=profile.fat / total * 100,
        carbs=profile.carbs / total * 100,
        fiber=profile.fiber / total * 100,
    )


def food_profile(food: FoodRecord) -> NutrientProfile:
    """Build a NutrientProfile from a stored food record. Missing totals become 0."""
    return NutrientProfile(
        calories=food.total_calorie,
        protein=food.total_protein,
        carbs=food.total_carb,
        fat=food.total_fat,
        fiber=food.total_fiber,
    )


def sum_profiles(profiles: Iterable[NutrientProfile]) -> NutrientProfile:
    """Fold several profiles into one by summing each field.

    Args:
        profiles: Profiles to combine (may be empty)

    Returns:
        NutrientProfile with summed values (all zeros for no input)
    """
    calories = protein = carbs = fat = fiber = 0.0
    for profile in profiles:
        calories += profile.calories
        protein += profile.protein
        carbs += profile.carbs
        fat += profile.fat
        fiber += profile.fiber

    return NutrientProfile(
        calories=calories,
        protein=protein,
        carbs=carbs,
        fat=fat,
        fiber=fiber,
    )


def has_nutrition_values(food: FoodRecord) -> bool:
    """True if the food has been analyzed (any of protein, carb, fat, calorie is non-zero)."""
    values = (food.total_protein, food.total_carb, food.total_fat, food.total_calorie)
    return any(safe_amount(v) > 0 for v in values)


def normalize_meal_type(meal_type: Optional[str]) -> Optional[str]:
    """Lower-case and strip a meal type. Blank input returns None."""
    if meal_type is None:
        return None
    cleaned = meal_type.strip().lower()
    return cleaned or None


def scale_profile(profile: NutrientProfile, share: float) -> NutrientProfile:
    """Multiply every field of a profile by share."""
    return NutrientProfile(
        calories=profile.calories * share,
        protein=profile.protein * share,
        carbs=profile.carbs * share,
        fat=profile.fat * share,
        fiber=profile.fiber * share,
    )


def resolve_meal_target(
    target: TargetProfile,
    meal_type: Optional[str],
    fallback: MealFallback = "daily",
) -> NutrientProfile:
    """Pick the target a meal is compared against.

    A configured meal portion always wins. Otherwise, with fallback="daily"
    the full-day target is used; with fallback="portion" a fixed share of the
    daily target is used (MEAL_SHARES, or UNKNOWN_MEAL_SHARE for anything
    that is not a known meal slot).

    Args:
        target: The user's target profile
        meal_type: breakfast, lunch, dinner, snack, or anything else
        fallback: "daily" or "portion"

    Returns:
        Effective NutrientProfile target
    """
    meal = normalize_meal_type(meal_type)

    if meal in MEAL_TYPES and target.meals is not None:
        portion = getattr(target.meals, meal)
        if portion is not None:
            return portion

    if fallback == "portion":
        share = MEAL_SHARES.get(meal, UNKNOWN_MEAL_SHARE)
        return scale_profile(target.daily, share)

    if fallback != "daily":
        raise ValueError(f"Unknown meal target fallback: {fallback!r}")

    return target.daily
