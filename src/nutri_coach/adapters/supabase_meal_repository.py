"""Supabase repository for logged meals."""

from dataclasses import dataclass

from supabase import Client

from nutri_coach.domain.nutrition import NutritionRecord
from nutri_coach.services.meals import MealRepository


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation writing ``meals`` and ``meal_items`` rows."""

    client: Client

    def save_nutrition_entry(
        self,
        user_id: str,
        label: str,
        record: NutritionRecord,
        image_uri: str | None = None,
    ) -> str:
        """Create a meal and its single item, returning the meal id."""
        response = (
            self.client.table("meals")
            .insert(
                {
                    "user_id": user_id,
                    "image_uri": image_uri,
                    "image_type": "camera" if image_uri else None,
                    "detected_items": [label],
                    "total_calories": record.calories,
                    "total_protein": record.protein_g,
                    "total_carbs": record.carbs_g,
                    "total_fat": record.fat_g,
                    "total_fiber": record.fiber_g,
                    "total_sugar": record.sugar_g,
                    "total_sodium": record.sodium_mg,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save meal")
        meal_id = str(response.data[0]["id"])

        self.client.table("meal_items").insert(
            {
                "meal_id": meal_id,
                "name": label,
                "calories": record.calories,
                "protein": record.protein_g,
                "carbs": record.carbs_g,
                "fat": record.fat_g,
                "fiber": record.fiber_g,
                "sugar": record.sugar_g,
                "sodium": record.sodium_mg,
                "serving_weight_grams": record.serving_grams,
            }
        ).execute()
        return meal_id
