"""Nutrition Comments - Pure functions for per-nutrient feedback.

Each nutrient is compared with its (meal) target and placed in one of three
bands. The band thresholds and the percentage formula are what callers rely
on; the wording is presentation only.
"""

from typing import Optional

from .macros import MealFallback, normalize_meal_type, percent_of, resolve_meal_target
from .models import MealComments, NutrientComment, NutrientProfile, TargetProfile


LOW_THRESHOLD = 70
HIGH_THRESHOLD = 130

BAND_ICONS = {
    "low": "⬇️",
    "balanced": "✅",
    "high": "⬆️",
}
DEFAULT_ICON = "💬"

# Field name -> display name used in comment text and stored rows
NUTRIENT_LABELS = {
    "calories": "Calories",
    "protein": "Protein",
    "fat": "Fat",
    "carbs": "Carbohydrate",
    "fiber": "Fiber",
}

ADVICE = {
    ("calories", "low"): "Add a little more food to keep your energy up.",
    ("calories", "high"): "Consider a smaller portion or more activity today.",
    ("protein", "low"): "Add meat, eggs, beans or dairy to support muscle and immunity.",
    ("protein", "high"): "Fish or legumes are lighter protein sources if you keep this up.",
    ("fat", "low"): "Olive oil, oily fish, avocado or nuts add healthy fats.",
    ("fat", "high"): "Prefer unsaturated fats and limit fried food.",
    ("carbs", "low"): "Whole grains, fruit or potatoes provide steady energy.",
    ("carbs", "high"): "Prefer low glycaemic carbs and cut back on refined starch.",
    ("fiber", "low"): "More vegetables, fruit and whole grains help digestion.",
    ("fiber", "high"): "Drink enough water with high-fiber meals.",
}


def nutrient_key(name: str) -> Optional[str]:
    """Field name for a nutrient given as field name or display label, else None."""
    cleaned = (name or "").strip()
    if cleaned.lower() in NUTRIENT_LABELS:
        return cleaned.lower()
    for key, label in NUTRIENT_LABELS.items():
        if label.lower() == cleaned.lower():
            return key
    return None


def nutrient_percentage(value: float, target: float) -> int:
    """Food value as a whole-number percentage of target, 0 when there is no target."""
    return percent_of(value, target)


def comment_band(percentage: int) -> Optional[str]:
    """Band for a percentage: low (<70), balanced (70-130) or high (>130)."""
    if percentage < LOW_THRESHOLD:
        return "low"
    if LOW_THRESHOLD <= percentage <= HIGH_THRESHOLD:
        return "balanced"
    if percentage > HIGH_THRESHOLD:
        return "high"
    return None


def comment_text(nutrient: str, band: Optional[str], scope: str) -> str:
    """Short sentence describing how a nutrient compares with its target."""
    label = NUTRIENT_LABELS[nutrient]
    if band == "low":
        summary = f"{label} is below target for this {scope}."
    elif band == "high":
        summary = f"{label} is above target for this {scope}."
    elif band == "balanced":
        return f"{label} is on target for this {scope}."
    else:
        return f"{label} could not be compared with your target."

    return f"{summary} {ADVICE[(nutrient, band)]}"


def generate_comment(
    nutrient: str, value: float, target: float, scope: str = "meal"
) -> NutrientComment:
    """Build the comment for one nutrient.

    Args:
        nutrient: One of calories, protein, fat, carbs, fiber
        value: Amount in the food
        target: Amount in the target
        scope: Word used in the sentence ("meal" or "day")

    Returns:
        NutrientComment with percentage, band, text and icon
    """
    percentage = nutrient_percentage(value, target)
    band = comment_band(percentage)

    return NutrientComment(
        nutrient_type=NUTRIENT_LABELS[nutrient],
        percentage=percentage,
        band=band or "unknown",
        comment=comment_text(nutrient, band, scope),
        icon=BAND_ICONS.get(band, DEFAULT_ICON),
    )


def generate_all_comments(
    food: NutrientProfile,
    target: TargetProfile,
    meal_type: Optional[str],
    fallback: MealFallback = "daily",
) -> MealComments:
    """Generate comments for every tracked nutrient of a food.

    The target is resolved from the meal type the same way the balance
    score resolves it.

    Args:
        food: Nutrition of the food
        target: The user's target profile
        meal_type: breakfast, lunch, dinner, snack, or anything else
        fallback: How to resolve a meal slot with no configured portion

    Returns:
        MealComments with one NutrientComment per nutrient
    """
    meal_target = resolve_meal_target(target, meal_type, fallback)
    scope = "meal" if normalize_meal_type(meal_type) else "day"

    comments = {
        nutrient: generate_comment(
            nutrient, getattr(food, nutrient), getattr(meal_target, nutrient), scope
        )
        for nutrient in NUTRIENT_LABELS
    }
    return MealComments(**comments)


def manual_comment(nutrient: str, text: str, percentage: int = 0) -> NutrientComment:
    """Wrap free-form feedback entered outside the generator. Uses the default icon."""
    return NutrientComment(
        nutrient_type=NUTRIENT_LABELS[nutrient],
        percentage=percentage,
        band="manual",
        comment=text,
        icon=DEFAULT_ICON,
    )
