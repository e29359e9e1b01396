"""Unit tests for the Firestore client with a mocked google-cloud client."""

import pytest
from datetime import date, datetime
from unittest.mock import MagicMock

from nutriscore.core.comments import generate_all_comments
from nutriscore.core.models import DailyTotal, NutrientProfile, TargetProfile
from nutriscore.shell.firestore_client import (
    FirestoreConfig,
    NutritionFirestoreClient,
    comment_id,
    daily_total_id,
)


def make_doc(doc_id, data, exists=True):
    doc = MagicMock()
    doc.id = doc_id
    doc.exists = exists
    doc.to_dict.return_value = dict(data)
    return doc


@pytest.fixture
def db():
    """Client with a mocked underlying Firestore connection."""
    client = NutritionFirestoreClient(FirestoreConfig(project_id="test", database="test"))
    client._client = MagicMock()
    return client


@pytest.fixture
def query(db):
    """A chainable query: where/order_by/limit all return the same mock."""
    q = MagicMock()
    db.client.collection.return_value = q
    q.where.return_value = q
    q.order_by.return_value = q
    q.limit.return_value = q
    return q


class TestDocumentIds:
    """Tests for document ID helpers."""

    def test_daily_total_id(self):
        """Daily totals are keyed by user and ISO date."""
        assert daily_total_id("user-1", date(2024, 12, 28)) == "user-1_2024-12-28"

    def test_comment_id(self):
        """Comment rows are keyed by food, target, nutrient and meal."""
        assert comment_id("f1", "t1", "protein", "lunch") == "f1_t1_protein_lunch"


class TestGetFood:
    """Tests for get_food."""

    def test_found(self, db):
        """A stored food is parsed with its document ID."""
        doc = make_doc("f1", {"food_name": "Rice", "total_carb": 45, "user_id": "user-1"})
        db.client.collection.return_value.document.return_value.get.return_value = doc

        food = db.get_food("f1")

        assert food.id == "f1"
        assert food.food_name == "Rice"
        assert food.total_carb == 45

    def test_document_id_wins_over_stored_id(self, db):
        """A stale id field inside the document does not clash with the document ID."""
        doc = make_doc("f1", {"id": "old", "food_name": "Rice"})
        db.client.collection.return_value.document.return_value.get.return_value = doc

        assert db.get_food("f1").id == "f1"

    def test_missing(self, db):
        """A missing document gives None."""
        doc = make_doc("f1", {}, exists=False)
        db.client.collection.return_value.document.return_value.get.return_value = doc

        assert db.get_food("f1") is None

    def test_error_returns_none(self, db):
        """Firestore errors are logged and give None."""
        db.client.collection.side_effect = RuntimeError("unavailable")
        assert db.get_food("f1") is None


class TestGetFoodsForDate:
    """Tests for get_foods_for_date."""

    def test_queries_one_day(self, db, query):
        """Foods are filtered by user and by the day's time window."""
        query.stream.return_value = [
            make_doc("f1", {"food_name": "Eggs", "total_calorie": 140}),
            make_doc("f2", {"food_name": "Oats", "total_calorie": 300}),
        ]

        foods = db.get_foods_for_date("user-1", date(2024, 12, 28))

        assert [f.id for f in foods] == ["f1", "f2"]
        query.where.assert_any_call("user_id", "==", "user-1")
        query.where.assert_any_call("consumed_at", ">=", datetime(2024, 12, 28))
        query.where.assert_any_call("consumed_at", "<", datetime(2024, 12, 29))

    def test_error_returns_empty(self, db):
        """Firestore errors give an empty list."""
        db.client.collection.side_effect = RuntimeError("unavailable")
        assert db.get_foods_for_date("user-1", date(2024, 12, 28)) == []


class TestGetTargetNutrition:
    """Tests for target lookups."""

    def test_by_user(self, db, query):
        """The first target document of the user is returned."""
        query.stream.return_value = [
            make_doc("t1", {"user_id": "user-1", "daily": {"calories": 1800, "protein": 90}}),
        ]

        target = db.get_target_nutrition("user-1")

        assert target.id == "t1"
        assert target.daily.calories == 1800
        query.limit.assert_called_once_with(1)

    def test_by_user_none(self, db, query):
        """No target document gives None."""
        query.stream.return_value = []
        assert db.get_target_nutrition("user-1") is None

    def test_by_id(self, db):
        """A target is fetched by document ID."""
        doc = make_doc("t1", {"daily": {"calories": 2200}})
        db.client.collection.return_value.document.return_value.get.return_value = doc

        assert db.get_target_nutrition_by_id("t1").daily.calories == 2200


class TestDailyTotals:
    """Tests for daily total persistence."""

    def test_save_replaces_whole_document(self, db):
        """The total is written with set(), with the date as an ISO string."""
        ref = db.client.collection.return_value.document.return_value
        total = DailyTotal(user_id="user-1", log_date=date(2024, 12, 28), calories=1200)

        assert db.save_daily_total(total) is True

        db.client.collection.return_value.document.assert_called_with("user-1_2024-12-28")
        data = ref.set.call_args[0][0]
        assert data["log_date"] == "2024-12-28"
        assert data["calories"] == 1200

    def test_save_error_returns_false(self, db):
        """A failed write gives False."""
        db.client.collection.return_value.document.return_value.set.side_effect = RuntimeError("x")
        total = DailyTotal(user_id="user-1", log_date=date(2024, 12, 28))
        assert db.save_daily_total(total) is False

    def test_get_parses_iso_date(self, db):
        """A stored ISO date string is parsed back into a date."""
        doc = make_doc(
            "user-1_2024-12-28",
            {"user_id": "user-1", "log_date": "2024-12-28", "calories": 900, "food_count": 3},
        )
        db.client.collection.return_value.document.return_value.get.return_value = doc

        total = db.get_daily_total("user-1", date(2024, 12, 28))

        assert total.log_date == date(2024, 12, 28)
        assert total.calories == 900
        assert total.food_count == 3

    def test_get_missing(self, db):
        """No stored total gives None."""
        doc = make_doc("user-1_2024-12-28", {}, exists=False)
        db.client.collection.return_value.document.return_value.get.return_value = doc
        assert db.get_daily_total("user-1", date(2024, 12, 28)) is None

    def test_range(self, db, query):
        """Totals in range are parsed in order."""
        query.stream.return_value = [
            make_doc("a", {"user_id": "user-1", "log_date": "2024-12-27", "calories": 1500}),
            make_doc("b", {"user_id": "user-1", "log_date": "2024-12-28", "calories": 1700}),
        ]

        totals = db.get_daily_totals_range("user-1", date(2024, 12, 27), date(2024, 12, 28))

        assert [t.calories for t in totals] == [1500, 1700]
        query.where.assert_any_call("log_date", ">=", "2024-12-27")
        query.where.assert_any_call("log_date", "<=", "2024-12-28")


class TestComments:
    """Tests for comment persistence."""

    @pytest.fixture
    def comments(self):
        target = TargetProfile(daily=NutrientProfile(calories=2000, protein=100, fat=50, carbs=200, fiber=30))
        food = NutrientProfile(calories=500, protein=30, fat=10, carbs=60, fiber=5)
        return generate_all_comments(food, target, "lunch")

    def test_save_replaces_stale_rows(self, db, comments):
        """Rows not in the new set are deleted; every nutrient is written once."""
        collection = db.client.collection.return_value
        batch = db.client.batch.return_value
        stale = make_doc("f1_t1_protein_dinner", {"food_id": "f1"})
        current = make_doc("f1_t1_protein_lunch", {"food_id": "f1"})
        collection.where.return_value.stream.return_value = [stale, current]

        assert db.save_comments("f1", "t1", "lunch", comments) is True

        batch.delete.assert_called_once_with(stale.reference)
        assert batch.set.call_count == 5
        batch.commit.assert_called_once()

        rows = [call[0][1] for call in batch.set.call_args_list]
        protein = next(r for r in rows if r["nutrient_type"] == "Protein")
        assert protein["food_id"] == "f1"
        assert protein["target_nutrition_id"] == "t1"
        assert protein["meal_type"] == "lunch"
        assert protein["nutrition_delta"] == comments.protein.percentage
        assert protein["icon"] == comments.protein.icon

    def test_save_error_returns_false(self, db, comments):
        """A failed commit gives False."""
        db.client.collection.return_value.where.return_value.stream.return_value = []
        db.client.batch.return_value.commit.side_effect = RuntimeError("aborted")
        assert db.save_comments("f1", "t1", "lunch", comments) is False

    def test_get_by_food(self, db):
        """Stored rows are returned with their IDs."""
        collection = db.client.collection.return_value
        collection.where.return_value.stream.return_value = [
            make_doc("f1_t1_fat_lunch", {"food_id": "f1", "nutrient_type": "Fat"}),
        ]

        rows = db.get_comments_by_food("f1")

        assert rows == [{"id": "f1_t1_fat_lunch", "food_id": "f1", "nutrient_type": "Fat"}]

    def test_get_one(self, db):
        """A single row is fetched by its ID."""
        doc = make_doc("f1_t1_fat_lunch", {"food_id": "f1", "nutrient_type": "Fat"})
        db.client.collection.return_value.document.return_value.get.return_value = doc

        assert db.get_comment("f1_t1_fat_lunch")["nutrient_type"] == "Fat"

    def test_get_one_missing(self, db):
        """A missing row gives None."""
        doc = make_doc("nope", {}, exists=False)
        db.client.collection.return_value.document.return_value.get.return_value = doc
        assert db.get_comment("nope") is None

    def test_update(self, db):
        """Only the given fields are overwritten."""
        ref = db.client.collection.return_value.document.return_value

        assert db.update_comment("f1_t1_fat_lunch", {"comment": "Nice"}) is True

        ref.update.assert_called_once_with({"comment": "Nice"})

    def test_update_error_returns_false(self, db):
        """A failed update gives False."""
        db.client.collection.return_value.document.return_value.update.side_effect = RuntimeError("x")
        assert db.update_comment("f1_t1_fat_lunch", {"comment": "Nice"}) is False
