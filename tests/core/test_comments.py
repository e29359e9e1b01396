"""Unit tests for nutrition comments - pure functions, no mocks needed."""

import pytest

from nutriscore.core.comments import (
    BAND_ICONS,
    DEFAULT_ICON,
    comment_band,
    generate_all_comments,
    generate_comment,
    manual_comment,
    nutrient_key,
    nutrient_percentage,
)
from nutriscore.core.models import MealTargets, NutrientProfile, TargetProfile


TARGET = TargetProfile(
    daily=NutrientProfile(calories=2000, protein=100, fat=50, carbs=200, fiber=30),
    meals=MealTargets(
        lunch=NutrientProfile(calories=700, protein=35, fat=20, carbs=70, fiber=10),
    ),
)
LUNCH = NutrientProfile(calories=700, protein=20, fat=30, carbs=70, fiber=7)


class TestNutrientPercentage:
    """Tests for nutrient_percentage."""

    def test_rounded_percentage(self):
        """20 of 35 is 57%."""
        assert nutrient_percentage(20, 35) == 57

    def test_zero_target(self):
        """A zero target gives 0."""
        assert nutrient_percentage(10, 0) == 0

    def test_over_target_not_capped(self):
        """Comment percentages are not capped."""
        assert nutrient_percentage(30, 20) == 150

    def test_overflow(self):
        """A tiny target that overflows the division gives 0."""
        assert nutrient_percentage(30, 1e-320) == 0


class TestCommentBand:
    """Tests for comment_band."""

    @pytest.mark.parametrize(
        "percentage,band",
        [
            (0, "low"),
            (69, "low"),
            (70, "balanced"),
            (100, "balanced"),
            (130, "balanced"),
            (131, "high"),
            (400, "high"),
        ],
    )
    def test_thresholds(self, percentage, band):
        """Below 70 is low, 70-130 is balanced, above 130 is high."""
        assert comment_band(percentage) == band


class TestGenerateComment:
    """Tests for generate_comment."""

    def test_low(self):
        """Low nutrients get the low icon and say so."""
        comment = generate_comment("protein", 20, 35)
        assert comment.nutrient_type == "Protein"
        assert comment.percentage == 57
        assert comment.band == "low"
        assert comment.icon == BAND_ICONS["low"]
        assert "Protein is below target for this meal." in comment.comment

    def test_balanced(self):
        """Balanced nutrients get the balanced icon."""
        comment = generate_comment("carbs", 70, 70, scope="day")
        assert comment.nutrient_type == "Carbohydrate"
        assert comment.band == "balanced"
        assert comment.icon == BAND_ICONS["balanced"]
        assert comment.comment == "Carbohydrate is on target for this day."

    def test_high(self):
        """High nutrients get the high icon."""
        comment = generate_comment("fat", 30, 20)
        assert comment.band == "high"
        assert comment.icon == BAND_ICONS["high"]
        assert comment.comment.startswith("Fat is above target")


class TestGenerateAllComments:
    """Tests for generate_all_comments."""

    def test_lunch_portion(self):
        """Lunch comments compare against the lunch portion."""
        comments = generate_all_comments(LUNCH, TARGET, "lunch")

        assert comments.calories.percentage == 100
        assert comments.calories.band == "balanced"
        assert comments.protein.percentage == 57
        assert comments.protein.band == "low"
        assert comments.fat.percentage == 150
        assert comments.fat.band == "high"
        assert comments.carbs.band == "balanced"
        # 7 / 10 = 70%, the lower edge of balanced
        assert comments.fiber.percentage == 70
        assert comments.fiber.band == "balanced"

    def test_missing_portion_uses_daily(self):
        """Snack has no portion, so the daily target is used."""
        comments = generate_all_comments(LUNCH, TARGET, "snack")
        assert comments.protein.percentage == 20
        assert comments.calories.percentage == 35

    def test_portion_fallback(self):
        """With fallback='portion' a snack gets 10% of the daily target."""
        comments = generate_all_comments(LUNCH, TARGET, "snack", fallback="portion")
        # 20g protein against 10g
        assert comments.protein.percentage == 200
        assert comments.protein.band == "high"

    def test_tiny_target_does_not_raise(self):
        """A target that overflows the percentage is treated as 0% (low)."""
        target = TargetProfile(daily=NutrientProfile(calories=2000, protein=1e-320, fat=50, carbs=200))
        comments = generate_all_comments(NutrientProfile(protein=30), target, None)
        assert comments.protein.percentage == 0
        assert comments.protein.band == "low"

    def test_no_meal_type_talks_about_the_day(self):
        """Without a meal type the text refers to the day."""
        comments = generate_all_comments(LUNCH, TARGET, None)
        assert "for this day" in comments.protein.comment

    def test_no_generated_comment_uses_default_icon(self):
        """Generated comments always carry a band icon."""
        comments = generate_all_comments(NutrientProfile(), TARGET, "lunch")
        for comment in comments.model_dump().values():
            assert comment["icon"] != DEFAULT_ICON


class TestNutrientKey:
    """Tests for nutrient_key."""

    def test_field_name_and_label(self):
        """Both field names and display labels resolve."""
        assert nutrient_key("carbs") == "carbs"
        assert nutrient_key("Carbohydrate") == "carbs"
        assert nutrient_key(" protein ") == "protein"

    def test_unknown(self):
        """Unknown names give None."""
        assert nutrient_key("Sodium") is None
        assert nutrient_key("") is None


class TestManualComment:
    """Tests for manual_comment."""

    def test_uses_default_icon(self):
        """Free-form comments use the generic icon."""
        comment = manual_comment("fiber", "Try adding lentils.")
        assert comment.icon == DEFAULT_ICON
        assert comment.nutrient_type == "Fiber"
        assert comment.comment == "Try adding lentils."
