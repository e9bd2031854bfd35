"""Meal logging on top of a persistence collaborator."""

import logging
from dataclasses import dataclass
from typing import Protocol

from nutri_coach.domain.coach import RecognizedFood
from nutri_coach.domain.nutrition import NutritionRecord

_logger = logging.getLogger(__name__)

DEFAULT_SERVING_GRAMS = 100.0


class MealRepository(Protocol):
    """Persistence interface for logged meals."""

    def save_nutrition_entry(
        self,
        user_id: str,
        label: str,
        record: NutritionRecord,
        image_uri: str | None = None,
    ) -> str:
        """Persist a meal with a single item and return the meal id."""


@dataclass
class MealLogService:
    """Service that persists scanned or recognized foods."""

    repository: MealRepository

    def save_nutrition_entry(
        self,
        user_id: str,
        label: str,
        record: NutritionRecord,
        image_uri: str | None = None,
    ) -> str:
        """Persist one food and return the meal id."""
        meal_id = self.repository.save_nutrition_entry(
            user_id, label, record, image_uri=image_uri
        )
        _logger.info("Meal logged: user=%s label=%s meal=%s", user_id, label, meal_id)
        return meal_id

    def log_recognized_foods(
        self, user_id: str, foods: list[RecognizedFood]
    ) -> list[str]:
        """Persist each food the coach recognized as its own entry."""
        return [
            self.save_nutrition_entry(user_id, food.name, record_from_estimate(food))
            for food in foods
        ]


def record_from_estimate(food: RecognizedFood) -> NutritionRecord:
    """Build a record from the coach's rough estimate, zero-filling the rest."""
    estimate = food.estimated_nutrition
    return NutritionRecord(
        name=food.name,
        serving_unit=food.unit or "serving",
        serving_grams=DEFAULT_SERVING_GRAMS,
        calories=estimate.calories if estimate else 0.0,
        protein_g=estimate.protein if estimate else 0.0,
        fat_g=estimate.fat if estimate else 0.0,
        saturated_fat_g=0.0,
        carbs_g=estimate.carbs if estimate else 0.0,
        fiber_g=estimate.fiber if estimate else 0.0,
        sugar_g=estimate.sugar if estimate else 0.0,
        sodium_mg=estimate.sodium if estimate else 0.0,
        cholesterol_mg=0.0,
        potassium_mg=0.0,
        vitamin_c_mg=0.0,
        calcium_mg=0.0,
        iron_mg=0.0,
    )
