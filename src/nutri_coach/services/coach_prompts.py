"""Prompts for the health-aware coach model."""

COACH_SYSTEM_PROMPT = """You are a health and nutrition coach with these capabilities:
- Analyze meal descriptions (voice or text) and extract food information
- Give feedback based on the user's health conditions and goals
- Log meals, update goals and update profile information

Health condition awareness:
- Diabetes: strongly discourage high-sugar foods, recommend low-GI alternatives
- Hypertension: recommend low-sodium options, avoid processed foods
- Heart conditions: focus on heart-healthy fats, limit saturated fats
- Allergies or intolerances: strictly avoid triggering foods

Goal-based feedback:
- Weight loss: calorie deficit, portion control, nutrient density
- Weight gain: healthy calories, protein intake
- General health: balanced nutrition, variety, whole foods

Be supportive but firm when health is at risk, and give specific actions.

Actions you can take: log_meal, update_goal, update_profile,
provide_feedback, ask_clarification.

Always respond with a JSON object:
{
  "message": "your reply to the user",
  "action": {"type": "action_type", "data": {}, "message": "what you did"},
  "mealAnalysis": {
    "recognizedFoods": [
      {"name": "food", "quantity": "amount", "unit": "unit",
       "estimatedNutrition": {"calories": 0, "protein": 0, "carbs": 0,
                              "fat": 0, "sugar": 0}}
    ],
    "totalCalories": 0, "totalProtein": 0, "totalCarbs": 0, "totalFat": 0,
    "totalSugar": 0, "healthScore": 0,
    "concerns": [], "recommendations": []
  }
}"""


def build_context_prompt(user_context: dict[str, object] | None) -> str:
    """Render the user's profile, conditions and goals as prompt text."""
    if not user_context:
        return ""

    def value(key: str, suffix: str = "") -> str:
        raw = user_context.get(key)
        return f"{raw}{suffix}" if raw not in (None, "") else "Not specified"

    lines = [
        "User Profile:",
        f"- Name: {value('name')}",
        f"- Age: {value('age')}",
        f"- Weight: {value('weight', ' kg')}",
        f"- Height: {value('height', ' cm')}",
        f"- Activity Level: {value('activity_level')}",
        f"- Primary Goal: {value('goal')}",
    ]
    conditions = user_context.get("healthConditions") or []
    if conditions:
        lines.append("")
        lines.append("Health Conditions:")
        for condition in conditions:
            lines.append(
                f"- {condition.get('name')} ({condition.get('type')}, "
                f"{condition.get('severity')})"
            )
            restrictions = condition.get("restrictions") or []
            if restrictions:
                lines.append(f"  Restrictions: {', '.join(restrictions)}")
    restrictions = user_context.get("dietaryRestrictions") or []
    if restrictions:
        lines.append("")
        lines.append(f"Dietary Restrictions: {', '.join(restrictions)}")
    goals = user_context.get("goals") or []
    if goals:
        lines.append("")
        lines.append("Current Goals:")
        for goal in goals:
            lines.append(f"- {goal.get('type')}: {goal.get('target')}")
            if goal.get("targetValue"):
                current = goal.get("currentValue") or "Not set"
                lines.append(f"  Target: {goal['targetValue']} (Current: {current})")
    return "\n".join(lines)


def scanned_food_prompt(food_name: str, nutrition: dict[str, object]) -> str:
    """User message asking for feedback on a scanned food."""
    facts = ", ".join(
        f"{key.removeprefix('nf_')}={nutrition[key]}"
        for key in (
            "nf_calories",
            "nf_protein",
            "nf_total_carbohydrate",
            "nf_total_fat",
            "nf_sugars",
            "nf_sodium",
            "nf_dietary_fiber",
        )
        if key in nutrition
    )
    return (
        f"I just scanned {food_name}. Nutrition per serving: {facts}. "
        "Give me feedback for my goals and conditions. Use provide_feedback "
        "unless I asked you to log it."
    )
