"""Rule-based health scoring of nutrition records.

The score is a heuristic for nudging food choices, not a medical judgment.
It is deterministic: the same record always yields the same assessment.
"""

from nutri_coach.domain.health import HealthAssessment
from nutri_coach.domain.nutrition import NutritionRecord

HEALTHY_THRESHOLD = 70

JUNK_KEYWORDS: tuple[str, ...] = (
    "chips",
    "candy",
    "soda",
    "coke",
    "pepsi",
    "burger",
    "fries",
    "pizza",
    "donut",
    "cake",
    "cookie",
    "ice cream",
    "chocolate",
)

WHOLESOME_KEYWORDS: tuple[str, ...] = (
    "apple",
    "banana",
    "orange",
    "broccoli",
    "spinach",
    "salad",
    "chicken",
    "fish",
    "salmon",
    "quinoa",
    "oats",
    "yogurt",
)


def match_keyword(name: str, keywords: tuple[str, ...]) -> str | None:
    """Return the first keyword contained in ``name``."""
    lowered = name.lower()
    for keyword in keywords:
        if keyword in lowered:
            return keyword
    return None


def score_food(record: NutritionRecord) -> HealthAssessment:
    """Score a record from 0 to 100 using nutrient thresholds and keywords."""
    score = 100
    concerns: list[str] = []
    benefits: list[str] = []
    recommendations: list[str] = []

    if record.sugar_g > 20:
        score -= 20
        concerns.append("High sugar content")
        recommendations.append("Consider reducing sugar intake")
    if record.sodium_mg > 600:
        score -= 15
        concerns.append("High sodium content")
        recommendations.append("Watch your sodium intake for blood pressure")
    if record.fat_g > 15:
        score -= 10
        concerns.append("High fat content")
    if record.calories > 500:
        score -= 10
        concerns.append("High calorie content")

    if record.protein_g > 15:
        score += 10
        benefits.append("Good protein content")
    if record.fiber_g > 5:
        score += 15
        benefits.append("High fiber content")

    junk_keyword = match_keyword(record.name, JUNK_KEYWORDS)
    if junk_keyword:
        score -= 30
        concerns.append("Processed/junk food detected")
        recommendations.append("Consider healthier alternatives")

    if match_keyword(record.name, WHOLESOME_KEYWORDS):
        score += 20
        benefits.append("Nutritious food choice")

    score = max(0, min(100, score))
    return HealthAssessment(
        food_name=record.name,
        score=score,
        is_healthy=score >= HEALTHY_THRESHOLD,
        concerns=concerns,
        benefits=benefits,
        recommendations=recommendations,
        junk_keyword=junk_keyword,
    )
