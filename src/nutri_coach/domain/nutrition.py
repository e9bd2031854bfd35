"""Nutrition domain models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NutritionRecord:
    """Nutrition facts for one serving of a food.

    Every numeric field holds a definite value; unknown nutrients are 0.0.
    """

    name: str
    serving_unit: str
    serving_grams: float
    calories: float
    protein_g: float
    fat_g: float
    saturated_fat_g: float
    carbs_g: float
    fiber_g: float
    sugar_g: float
    sodium_mg: float
    cholesterol_mg: float
    potassium_mg: float
    vitamin_c_mg: float
    calcium_mg: float
    iron_mg: float

    def to_payload(self) -> dict[str, object]:
        """Serialize using the lookup service's field names."""
        return {
            "food_name": self.name,
            "serving_unit": self.serving_unit,
            "serving_weight_grams": self.serving_grams,
            "nf_calories": self.calories,
            "nf_protein": self.protein_g,
            "nf_total_fat": self.fat_g,
            "nf_saturated_fat": self.saturated_fat_g,
            "nf_total_carbohydrate": self.carbs_g,
            "nf_dietary_fiber": self.fiber_g,
            "nf_sugars": self.sugar_g,
            "nf_sodium": self.sodium_mg,
            "nf_cholesterol": self.cholesterol_mg,
            "nf_potassium": self.potassium_mg,
            "nf_vitamin_c": self.vitamin_c_mg,
            "nf_calcium": self.calcium_mg,
            "nf_iron": self.iron_mg,
        }


@dataclass(frozen=True)
class FoodSuggestion:
    """Common food name returned by instant search."""

    name: str
    serving_unit: str | None
    serving_qty: float | None
