"""Balance Scoring - Pure functions for ratio-based nutrition scores.

The score measures how closely a food's macro composition mirrors the
target's composition. It ignores portion size: half a plate of a perfectly
balanced meal still scores 100. Quantity against target is reported
separately in the comparisons.

All functions are pure: same input always produces same output, no side effects.
"""

from typing import Optional, Sequence

from .macros import (
    MealFallback,
    macro_total,
    normalize_meal_type,
    percent_of,
    resolve_meal_target,
    round_half_up,
    sum_profiles,
    to_ratios,
)
from .models import (
    BalanceSummary,
    NutrientComparison,
    NutrientProfile,
    NutritionComparisons,
    ScoreAnalysis,
    ScoreInterpretation,
    ScoreResult,
    TargetProfile,
)


MACROS = ("protein", "fat", "carbs", "fiber")

# (lower bound, rating, description), highest band first.
# Stored interpretations depend on these; do not renumber.
SCORE_BANDS = (
    (85, "Excellent", "Macro composition closely matches your target balance."),
    (70, "Good", "Macro composition deviates slightly from your target balance."),
    (50, "Fair", "Macro composition deviates moderately; some adjustment would help."),
    (30, "Poor", "Macro composition is substantially out of balance."),
    (0, "Very Poor", "Macro composition strongly diverges from your target balance."),
)

NO_MEAL_TYPE = "custom"


def average_ratio_difference(food: NutrientProfile, target: NutrientProfile) -> float:
    """Mean absolute difference between food and target macro ratios, in percentage points."""
    food_ratio = to_ratios(food)
    target_ratio = to_ratios(target)

    diffs = [abs(getattr(food_ratio, m) - getattr(target_ratio, m)) for m in MACROS]
    return sum(diffs) / len(diffs)


def score_single(food: NutrientProfile, target: NutrientProfile) -> int:
    """Calculate the balance score of one nutrient profile against a target.

    Args:
        food: Nutrition of the food or meal
        target: Target nutrition to compare composition against

    Returns:
        Score from 0 to 100. A food with no macros at all scores 0.
    """
    if macro_total(food) <= 0:
        return 0

    score = round_half_up(100 - average_ratio_difference(food, target))
    return max(0, min(100, score))


def score_by_meal_type(
    food: NutrientProfile,
    target: TargetProfile,
    meal_type: Optional[str],
    fallback: MealFallback = "daily",
) -> int:
    """Score a food against the target portion of its meal slot.

    See resolve_meal_target for how the slot target is picked.
    """
    return score_single(food, resolve_meal_target(target, meal_type, fallback))


def score_combined(foods: Sequence[NutrientProfile], target: NutrientProfile) -> int:
    """Score several foods eaten together as one meal.

    Args:
        foods: Nutrition of each food
        target: Target nutrition

    Returns:
        Score of the summed profile, 0 for an empty list
    """
    if not foods:
        return 0
    return score_single(sum_profiles(foods), target)


def interpret_score(score: int) -> ScoreInterpretation:
    """Map a score to its rating band.

    Args:
        score: Balance score; values outside 0-100 are clamped first

    Returns:
        ScoreInterpretation with rating and description
    """
    score = max(0, min(100, score))
    for lower, rating, description in SCORE_BANDS:
        if score >= lower:
            break
    return ScoreInterpretation(rating=rating, description=description)


def build_score_result(score: int) -> ScoreResult:
    """Wrap a score with its interpretation."""
    return ScoreResult(score=score, interpretation=interpret_score(score))


def _compare(
    food_value: float,
    target_value: float,
    food_ratio: Optional[float] = None,
    target_ratio: Optional[float] = None,
) -> NutrientComparison:
    percentage = percent_of(food_value, target_value)
    ratio_difference = None
    if food_ratio is not None and target_ratio is not None:
        ratio_difference = round(abs(food_ratio - target_ratio), 1)
        food_ratio = round(food_ratio, 1)
        target_ratio = round(target_ratio, 1)

    return NutrientComparison(
        food_value=food_value,
        target_value=target_value,
        percentage=percentage,
        display_percentage=min(percentage, 100),
        deviation=percentage - 100,
        food_ratio=food_ratio,
        target_ratio=target_ratio,
        ratio_difference=ratio_difference,
    )


def compare_nutrients(food: NutrientProfile, target: NutrientProfile) -> NutritionComparisons:
    """Compare every tracked nutrient of a food against a target.

    Args:
        food: Nutrition of the food or meal
        target: Target nutrition

    Returns:
        NutritionComparisons with one entry per nutrient plus a balance summary
    """
    food_ratio = to_ratios(food)
    target_ratio = to_ratios(target)

    def macro(name: str) -> NutrientComparison:
        return _compare(
            getattr(food, name),
            getattr(target, name),
            getattr(food_ratio, name),
            getattr(target_ratio, name),
        )

    return NutritionComparisons(
        calories=_compare(food.calories, target.calories),
        protein=macro("protein"),
        fat=macro("fat"),
        carbs=macro("carbs"),
        fiber=macro("fiber"),
        balance=BalanceSummary(
            avg_ratio_difference=round(average_ratio_difference(food, target), 2),
            total_food_grams=macro_total(food),
            total_target_grams=macro_total(target),
        ),
    )


def compare_nutrients_by_meal_type(
    food: NutrientProfile,
    target: TargetProfile,
    meal_type: Optional[str],
    fallback: MealFallback = "daily",
) -> NutritionComparisons:
    """Compare a food against the target portion of its meal slot."""
    return compare_nutrients(food, resolve_meal_target(target, meal_type, fallback))


def analyze_food(
    food: NutrientProfile,
    target: TargetProfile,
    meal_type: Optional[str] = None,
    fallback: MealFallback = "daily",
) -> ScoreAnalysis:
    """Score, interpret and compare one food in a single pass.

    Without a meal type the food is compared against the daily target.

    Args:
        food: Nutrition of the food
        target: The user's target profile
        meal_type: Optional meal slot for meal-adjusted targets
        fallback: How to resolve a meal slot with no configured portion

    Returns:
        ScoreAnalysis ready to be stored with the food
    """
    meal = normalize_meal_type(meal_type)
    if meal is None:
        effective_target = target.daily
    else:
        effective_target = resolve_meal_target(target, meal, fallback)

    score = score_single(food, effective_target)

    return ScoreAnalysis(
        score=score,
        interpretation=interpret_score(score),
        comparisons=compare_nutrients(food, effective_target),
        meal_type=meal or NO_MEAL_TYPE,
        nutrition=food,
    )


def analyze_foods(
    foods: Sequence[NutrientProfile],
    target: TargetProfile,
    meal_type: Optional[str] = None,
    fallback: MealFallback = "daily",
) -> ScoreAnalysis:
    """Score several foods eaten together. See analyze_food."""
    return analyze_food(sum_profiles(foods), target, meal_type, fallback)
