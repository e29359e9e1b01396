"""Firestore Client - Persistence for foods, targets, comments and daily totals.

This module handles all database I/O for the scoring engine.
All I/O is contained here; business logic is in the core module.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

from google.cloud import firestore

from ..core.models import DailyTotal, FoodRecord, MealComments, TargetProfile


logger = logging.getLogger(__name__)

FOODS = "foods"
TARGETS = "target_nutrients"
DAILY_TOTALS = "daily_nutrition"
COMMENTS = "nutrition_comments"


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
    """

    project_id: str | None = None
    database: str | None = None


def daily_total_id(user_id: str, log_date: date) -> str:
    """Document ID of a daily total: {user_id}_{YYYY-MM-DD}."""
    return f"{user_id}_{log_date.isoformat()}"


def comment_id(food_id: str, target_id: str, nutrient: str, meal_type: str) -> str:
    """Document ID of a comment row, one per (food, target, nutrient, meal type)."""
    return f"{food_id}_{target_id}_{nutrient}_{meal_type}"


class NutritionFirestoreClient:
    """Client for reading engine inputs and persisting its outputs in Firestore.

    Collections:
        foods/{auto}: { user_id, food_name, total_*, meal_type, consumed_at }
        target_nutrients/{auto}: { user_id, daily: {...}, meals: {...} }
        daily_nutrition/{user_id}_{YYYY-MM-DD}: { user_id, log_date, calories, ... }
        nutrition_comments/{food}_{target}_{nutrient}_{meal}: { food_id, ... }
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        """Initialize Firestore client.

        Args:
            config: Firestore configuration
        """
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self.config.project_id:
                kwargs["project"] = self.config.project_id
            if self.config.database:
                kwargs["database"] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _daily_ref(self, user_id: str, log_date: date) -> firestore.DocumentReference:
        """Get reference to daily total document."""
        return self.client.collection(DAILY_TOTALS).document(daily_total_id(user_id, log_date))

    # ==================== Food Operations ====================

    def get_food(self, food_id: str) -> FoodRecord | None:
        """Fetch a food record.

        Args:
            food_id: ID of the food

        Returns:
            FoodRecord if found, None otherwise
        """
        logger.debug("Fetching food: %s", food_id)
        try:
            doc = self.client.collection(FOODS).document(food_id).get()
            if not doc.exists:
                return None
            return FoodRecord(**{**doc.to_dict(), "id": doc.id})
        except Exception as e:
            logger.error("Failed to fetch food: %s", str(e))
            return None

    def get_foods_for_date(self, user_id: str, log_date: date) -> list[FoodRecord]:
        """Fetch every food a user logged on a calendar day.

        Args:
            user_id: The user's ID
            log_date: Day to fetch

        Returns:
            List of FoodRecords ordered by consumed_at (may be empty)
        """
        start = datetime.combine(log_date, time.min)
        end = start + timedelta(days=1)
        logger.debug("Fetching foods for %s on %s", user_id[:8], log_date)

        try:
            query = (
                self.client.collection(FOODS)
                .where("user_id", "==", user_id)
                .where("consumed_at", ">=", start)
                .where("consumed_at", "<", end)
                .order_by("consumed_at")
            )
            foods = [FoodRecord(**{**doc.to_dict(), "id": doc.id}) for doc in query.stream()]
            logger.debug("Found %d foods", len(foods))
            return foods
        except Exception as e:
            logger.error("Failed to fetch foods for date: %s", str(e))
            return []

    # ==================== Target Operations ====================

    def get_target_nutrition(self, user_id: str) -> TargetProfile | None:
        """Fetch a user's target nutrition.

        Args:
            user_id: The user's ID

        Returns:
            TargetProfile if found, None otherwise
        """
        logger.debug("Fetching target nutrition for user: %s", user_id[:8])
        try:
            query = self.client.collection(TARGETS).where("user_id", "==", user_id).limit(1)
            for doc in query.stream():
                return TargetProfile(**{**doc.to_dict(), "id": doc.id})
            return None
        except Exception as e:
            logger.error("Failed to fetch target nutrition: %s", str(e))
            return None

    def get_target_nutrition_by_id(self, target_id: str) -> TargetProfile | None:
        """Fetch a target nutrition document by its ID."""
        try:
            doc = self.client.collection(TARGETS).document(target_id).get()
            if not doc.exists:
                return None
            return TargetProfile(**{**doc.to_dict(), "id": doc.id})
        except Exception as e:
            logger.error("Failed to fetch target nutrition: %s", str(e))
            return None

    # ==================== Daily Total Operations ====================

    def get_daily_total(self, user_id: str, log_date: date) -> DailyTotal | None:
        """Fetch a stored daily total.

        Args:
            user_id: The user's ID
            log_date: Day of the total

        Returns:
            DailyTotal if found, None otherwise
        """
        logger.debug("Fetching daily total for %s on %s", user_id[:8], log_date)
        try:
            doc = self._daily_ref(user_id, log_date).get()
            if not doc.exists:
                return None
            data = doc.to_dict()
            if isinstance(data.get("log_date"), str):
                data["log_date"] = date.fromisoformat(data["log_date"])
            return DailyTotal(**data)
        except Exception as e:
            logger.error("Failed to fetch daily total: %s", str(e))
            return None

    def save_daily_total(self, total: DailyTotal) -> bool:
        """Store a daily total, replacing the whole document.

        Args:
            total: The total to save

        Returns:
            True if successful
        """
        logger.info("Saving daily total for %s on %s", total.user_id[:8], total.log_date)
        try:
            data = total.model_dump()
            # Convert date to ISO string for range queries
            data["log_date"] = total.log_date.isoformat()
            self._daily_ref(total.user_id, total.log_date).set(data)
            return True
        except Exception as e:
            logger.error("Failed to save daily total: %s", str(e))
            return False

    def get_daily_totals_range(
        self, user_id: str, start_date: date, end_date: date
    ) -> list[DailyTotal]:
        """Fetch stored daily totals for a date range.

        Args:
            user_id: The user's ID
            start_date: Start of range (inclusive)
            end_date: End of range (inclusive)

        Returns:
            List of DailyTotals found (may be empty)
        """
        logger.debug(
            "Fetching daily totals for %s from %s to %s", user_id[:8], start_date, end_date
        )
        totals: list[DailyTotal] = []

        try:
            query = (
                self.client.collection(DAILY_TOTALS)
                .where("user_id", "==", user_id)
                .where("log_date", ">=", start_date.isoformat())
                .where("log_date", "<=", end_date.isoformat())
                .order_by("log_date")
            )

            for doc in query.stream():
                data = doc.to_dict()
                if isinstance(data.get("log_date"), str):
                    data["log_date"] = date.fromisoformat(data["log_date"])
                totals.append(DailyTotal(**data))

            logger.debug("Found %d daily totals in range", len(totals))
            return totals
        except Exception as e:
            logger.error("Failed to fetch daily totals range: %s", str(e))
            return []

    # ==================== Comment Operations ====================

    def save_comments(
        self, food_id: str, target_id: str, meal_type: str, comments: MealComments
    ) -> bool:
        """Replace all comments of a food with a freshly generated set.

        Stale rows for the food are deleted and the new rows written in one
        batch, so readers never see a mix of old and new comments.

        Args:
            food_id: ID of the food
            target_id: ID of the target nutrition used
            meal_type: Meal type the comments were generated for
            comments: Generated comments

        Returns:
            True if successful
        """
        logger.info("Saving comments for food: %s", food_id)
        try:
            collection = self.client.collection(COMMENTS)
            batch = self.client.batch()
            rows = comments.model_dump()
            new_ids = {comment_id(food_id, target_id, n, meal_type) for n in rows}

            # A batch may write each document only once
            for doc in collection.where("food_id", "==", food_id).stream():
                if doc.id not in new_ids:
                    batch.delete(doc.reference)

            now = datetime.utcnow()
            for nutrient, comment in rows.items():
                row = {
                    "food_id": food_id,
                    "target_nutrition_id": target_id,
                    "nutrient_type": comment["nutrient_type"],
                    "nutrition_delta": comment["percentage"],
                    "band": comment["band"],
                    "comment": comment["comment"],
                    "icon": comment["icon"],
                    "meal_type": meal_type,
                    "created_at": now,
                    "updated_at": now,
                }
                ref = collection.document(comment_id(food_id, target_id, nutrient, meal_type))
                batch.set(ref, row)

            batch.commit()
            return True
        except Exception as e:
            logger.error("Failed to save comments: %s", str(e))
            return False

    def get_comment(self, comment_id: str) -> dict | None:
        """Fetch one stored comment row with its ID, or None."""
        try:
            doc = self.client.collection(COMMENTS).document(comment_id).get()
            if not doc.exists:
                return None
            return {"id": doc.id, **doc.to_dict()}
        except Exception as e:
            logger.error("Failed to fetch comment: %s", str(e))
            return None

    def update_comment(self, comment_id: str, fields: dict) -> bool:
        """Update fields of a stored comment row.

        Args:
            comment_id: ID of the comment row
            fields: Fields to overwrite

        Returns:
            True if successful
        """
        logger.info("Updating comment: %s", comment_id)
        try:
            self.client.collection(COMMENTS).document(comment_id).update(fields)
            return True
        except Exception as e:
            logger.error("Failed to update comment: %s", str(e))
            return False

    def get_comments_by_food(self, food_id: str) -> list[dict]:
        """Fetch stored comment rows for a food.

        Args:
            food_id: ID of the food

        Returns:
            List of comment rows with their IDs (may be empty)
        """
        try:
            query = self.client.collection(COMMENTS).where("food_id", "==", food_id)
            return [{"id": doc.id, **doc.to_dict()} for doc in query.stream()]
        except Exception as e:
            logger.error("Failed to fetch comments: %s", str(e))
            return []
