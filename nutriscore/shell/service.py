"""Engine Service - Loads records, runs the core and stores the results.

Each operation here is what one HTTP handler needs. Records are read through
the Firestore client, handed to the pure core, and outputs are persisted
verbatim.
"""

import logging
import os
from datetime import date, datetime

from ..core.comments import generate_all_comments, manual_comment, nutrient_key
from ..core.daily import calculate_daily_progress
from ..core.macros import (
    MealFallback,
    food_profile,
    has_nutrition_values,
    normalize_meal_type,
)
from ..core.models import DEFAULT_TARGET_PROFILE, MEAL_TYPES, TargetProfile
from ..core.scoring import NO_MEAL_TYPE, analyze_food, analyze_foods
from .aggregator import DailyAggregator
from .firestore_client import FirestoreConfig, NutritionFirestoreClient


logger = logging.getLogger(__name__)

MEAL_FALLBACKS = ("daily", "portion")


class NotFoundError(LookupError):
    """A requested record does not exist."""


# Lazy-initialized clients
_firestore_client: NutritionFirestoreClient | None = None
_aggregator: DailyAggregator | None = None


def get_firestore_client() -> NutritionFirestoreClient:
    """Get or create Firestore client."""
    global _firestore_client
    if _firestore_client is None:
        config = FirestoreConfig(
            project_id=os.environ.get("GOOGLE_CLOUD_PROJECT"),
            database=os.environ.get("FIRESTORE_DATABASE", "nutriscore"),
        )
        _firestore_client = NutritionFirestoreClient(config)
    return _firestore_client


def get_aggregator() -> DailyAggregator:
    """Get or create the daily aggregator."""
    global _aggregator
    if _aggregator is None:
        _aggregator = DailyAggregator(get_firestore_client())
    return _aggregator


def get_meal_fallback() -> MealFallback:
    """Meal target fallback from MEAL_TARGET_FALLBACK ("daily" or "portion")."""
    value = os.environ.get("MEAL_TARGET_FALLBACK", "daily").strip().lower()
    if value not in MEAL_FALLBACKS:
        logger.warning("Unknown MEAL_TARGET_FALLBACK %r, using 'daily'", value)
        return "daily"
    return value  # type: ignore[return-value]


def load_target(user_id: str | None) -> TargetProfile:
    """Fetch a user's target nutrition, or the system default if there is none."""
    target = None
    if user_id:
        target = get_firestore_client().get_target_nutrition(user_id)
    if target is None:
        logger.info("No target nutrition for user, using defaults")
        return DEFAULT_TARGET_PROFILE
    return target


# ==================== Scoring ====================


def score_food(food_id: str, meal_type: str | None = None) -> dict:
    """Score one stored food against its owner's targets.

    Args:
        food_id: ID of the food
        meal_type: Meal slot; defaults to the food's own meal type

    Returns:
        Score analysis as a dict

    Raises:
        NotFoundError: If the food does not exist
    """
    db = get_firestore_client()
    food = db.get_food(food_id)
    if food is None:
        raise NotFoundError(f"Food {food_id} not found")

    target = load_target(food.user_id)
    analysis = analyze_food(
        food_profile(food),
        target,
        meal_type or food.meal_type,
        get_meal_fallback(),
    )

    result = analysis.model_dump()
    result["food"] = {"id": food.id, "name": food.food_name}
    return result


def score_meal(user_id: str, food_ids: list[str], meal_type: str | None = None) -> dict:
    """Score several stored foods eaten together as one meal.

    Args:
        user_id: Owner of the targets to score against
        food_ids: IDs of the foods in the meal
        meal_type: Optional meal slot (breakfast, lunch, dinner, snack)

    Returns:
        Score analysis plus a per-food summary

    Raises:
        ValueError: If the request is invalid or a food has no nutrition yet
        NotFoundError: If a food does not exist
    """
    if not food_ids:
        raise ValueError("Please provide a list of food IDs")

    meal = normalize_meal_type(meal_type)
    if meal is not None and meal not in MEAL_TYPES:
        raise ValueError("Invalid meal type. Must be one of: " + ", ".join(MEAL_TYPES))

    db = get_firestore_client()
    foods = []
    for food_id in food_ids:
        food = db.get_food(food_id)
        if food is None:
            raise NotFoundError(f"Food {food_id} not found")
        if not has_nutrition_values(food):
            raise ValueError(f"Food {food.food_name} does not have nutrition values yet")
        foods.append(food)

    target = load_target(user_id)
    profiles = [food_profile(f) for f in foods]
    analysis = analyze_foods(profiles, target, meal, get_meal_fallback())

    result = analysis.model_dump()
    result["foods"] = [
        {"id": f.id, "name": f.food_name, **p.model_dump()} for f, p in zip(foods, profiles)
    ]
    return result


# ==================== Comments ====================


def generate_food_comments(
    food_id: str, target_id: str | None = None, meal_type: str | None = None
) -> dict:
    """Generate, store and return per-nutrient comments for a food.

    Args:
        food_id: ID of the food
        target_id: Target nutrition to compare against; defaults to the owner's
        meal_type: Meal slot; defaults to the food's own meal type

    Returns:
        Comments keyed by nutrient, plus whether they were stored

    Raises:
        NotFoundError: If the food or the given target does not exist
    """
    db = get_firestore_client()
    food = db.get_food(food_id)
    if food is None:
        raise NotFoundError(f"Food {food_id} not found")

    if target_id:
        target = db.get_target_nutrition_by_id(target_id)
        if target is None:
            raise NotFoundError(f"Target nutrition {target_id} not found")
    else:
        target = load_target(food.user_id)

    effective_meal = normalize_meal_type(meal_type or food.meal_type) or NO_MEAL_TYPE
    comments = generate_all_comments(
        food_profile(food), target, effective_meal, get_meal_fallback()
    )

    stored = db.save_comments(food_id, target.id or "default", effective_meal, comments)
    if not stored:
        logger.warning("Comments for food %s were not stored", food_id)

    return {
        "meal_type": effective_meal,
        "comments": comments.model_dump(),
        "stored": stored,
    }


def get_food_comments(food_id: str) -> list[dict]:
    """Stored comment rows for a food.

    Raises:
        NotFoundError: If the food does not exist
    """
    db = get_firestore_client()
    if db.get_food(food_id) is None:
        raise NotFoundError(f"Food {food_id} not found")
    return db.get_comments_by_food(food_id)


def update_food_comment(food_id: str, comment_id: str, text: str | None) -> dict:
    """Replace the text of a stored comment with free-form feedback.

    Args:
        food_id: ID of the food the comment belongs to
        comment_id: ID of the stored comment row
        text: New comment text

    Returns:
        The updated comment row

    Raises:
        ValueError: If the text is empty
        NotFoundError: If the comment does not exist for that food
        RuntimeError: If the update could not be stored
    """
    if not text or not text.strip():
        raise ValueError("comment text is required")

    db = get_firestore_client()
    row = db.get_comment(comment_id)
    if row is None or row.get("food_id") != food_id:
        raise NotFoundError(f"Comment {comment_id} not found")

    nutrient = nutrient_key(row.get("nutrient_type", ""))
    if nutrient is None:
        raise ValueError(f"Comment {comment_id} has an unknown nutrient type")

    comment = manual_comment(nutrient, text.strip(), int(row.get("nutrition_delta") or 0))
    updated_at = datetime.utcnow()
    fields = {
        "comment": comment.comment,
        "band": comment.band,
        "icon": comment.icon,
        "updated_at": updated_at,
    }
    if not db.update_comment(comment_id, fields):
        raise RuntimeError(f"Comment {comment_id} was not stored")

    return {
        "id": comment_id,
        "food_id": food_id,
        "meal_type": row.get("meal_type"),
        **comment.model_dump(),
        "updated_at": updated_at.isoformat(),
    }


# ==================== Daily Totals ====================


def _foods_loader(user_id: str, log_date: date):
    return lambda: get_firestore_client().get_foods_for_date(user_id, log_date)


def get_daily_nutrition(user_id: str, log_date: date) -> dict:
    """Cached daily total with progress against the daily target.

    Args:
        user_id: The user's ID
        log_date: Calendar day

    Returns:
        Dict with the stored total and capped progress per nutrient
    """
    total = get_aggregator().get_or_compute(user_id, log_date, _foods_loader(user_id, log_date))
    target = load_target(user_id)
    progress = calculate_daily_progress(total, target.daily)

    return {
        "total": total.model_dump(mode="json"),
        "progress": progress.model_dump(),
    }


def update_daily_nutrition(user_id: str, log_date: date) -> dict:
    """Recompute and store a day's total from the food list."""
    total = get_aggregator().recompute(user_id, log_date, _foods_loader(user_id, log_date))
    return total.model_dump(mode="json")


def get_daily_nutrition_range(user_id: str, start_date: date, end_date: date) -> list[dict]:
    """Stored daily totals between two dates (inclusive).

    Raises:
        ValueError: If start_date is after end_date
    """
    if start_date > end_date:
        raise ValueError("start_date must not be after end_date")

    totals = get_firestore_client().get_daily_totals_range(user_id, start_date, end_date)
    return [t.model_dump(mode="json") for t in totals]
