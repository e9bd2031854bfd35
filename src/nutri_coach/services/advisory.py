"""Goal-aware advisory messages built from a health assessment."""

import random
from dataclasses import dataclass, field

from nutri_coach.domain.health import Advisory, AdvisoryType, HealthAssessment
from nutri_coach.domain.profile import UserGoalProfile, WeightGoal

WARNING_THRESHOLD = 30
MOTIVATION_THRESHOLD = 50

COUNTERACT_ACTIONS: tuple[str, ...] = (
    "Drink extra water to help flush out sodium",
    "Take a 20-minute walk to burn some calories",
    "Eat a salad with your next meal",
)

SWAP_TIPS: dict[str, list[str]] = {
    "chips": [
        "Try air-popped popcorn instead of chips",
        "Roasted chickpeas give the same crunch with more protein",
    ],
    "candy": [
        "Reach for fresh fruit when you crave something sweet",
        "Dried fruit in small portions beats candy",
    ],
    "soda": [
        "Sparkling water with lemon is a refreshing swap for soda",
        "Unsweetened iced tea keeps the fizz-free caffeine",
    ],
    "coke": [
        "Sparkling water with lemon is a refreshing swap for cola",
        "Unsweetened iced tea keeps the caffeine without the sugar",
    ],
    "pepsi": [
        "Sparkling water with lemon is a refreshing swap for cola",
        "Unsweetened iced tea keeps the caffeine without the sugar",
    ],
    "burger": [
        "Try a grilled chicken burger on a whole grain bun",
        "Swap the fries side for a salad",
    ],
    "fries": [
        "Try baked sweet potato fries instead of regular fries",
        "Air-fried vegetables make a crispy side",
    ],
    "pizza": [
        "Choose thin crust with extra vegetables",
        "Pair a slice with a side salad instead of a second slice",
        "Go light on processed meat toppings",
    ],
    "donut": [
        "A whole grain muffin or oatmeal is a steadier breakfast",
        "Greek yogurt with berries satisfies a sweet tooth",
    ],
    "cake": [
        "Fresh fruit with yogurt makes a lighter dessert",
        "Share a smaller slice next time",
    ],
    "cookie": [
        "Oat and banana cookies cut the added sugar",
        "A handful of nuts makes a more filling snack",
    ],
    "ice cream": [
        "Frozen banana blended smooth is a great ice cream swap",
        "Frozen yogurt with fruit is a lighter treat",
    ],
    "chocolate": [
        "Dark chocolate (70%+) is a better sweet treat",
        "Pair a small piece of chocolate with fruit",
    ],
}

DEFAULT_SWAP_TIPS: list[str] = [
    "Try baked sweet potato fries instead of regular fries",
    "Dark chocolate (70%+) is a better sweet treat",
    "Homemade smoothies can satisfy sweet cravings",
]

MOTIVATIONAL_TIPS: tuple[str, ...] = (
    "Every healthy choice is a step towards your goals!",
    "Remember: you're not just eating for today, but for your future self!",
    "Small changes lead to big results. Keep going!",
    "Your body is your temple. Treat it with love and respect!",
    "Progress over perfection. You're doing great!",
    "Every meal is a chance to nourish your body better!",
    "Consistency is key. You've got this!",
    "Your health is an investment, not an expense!",
)


@dataclass
class AdvisoryGenerator:
    """Turns a health assessment into a coaching message.

    Condition-specific reasoning (diabetes, hypertension, allergies) is left to
    the remote coach; these rules only look at the weight goal.
    """

    rng: random.Random = field(default_factory=random.Random)

    def generate(
        self, assessment: HealthAssessment, profile: UserGoalProfile | None = None
    ) -> Advisory:
        """Build an advisory for an assessment and optional goal profile."""
        goal = profile.weight_goal if profile else None
        if assessment.is_healthy:
            message, advisory_type, actions, tips = _healthy_advice(assessment, goal)
        else:
            message, advisory_type, actions, tips = _unhealthy_advice(assessment, goal)

        if assessment.score < MOTIVATION_THRESHOLD:
            tips.append("Remember: progress, not perfection!")
            tips.append("Every healthy choice counts towards your goals")

        return Advisory(
            message=message,
            type=advisory_type,
            action_items=actions,
            related_tips=tips,
        )

    def motivational_advisory(self) -> Advisory:
        """Return a random motivational message."""
        return Advisory(
            message=self.rng.choice(MOTIVATIONAL_TIPS),
            type=AdvisoryType.MOTIVATION,
        )


def _healthy_advice(
    assessment: HealthAssessment, goal: WeightGoal | None
) -> tuple[str, AdvisoryType, list[str], list[str]]:
    actions: list[str] = []
    tips: list[str] = []
    message = f"Great choice with {assessment.food_name}!"
    if assessment.benefits:
        message += f" This food is {', '.join(assessment.benefits).lower()}."
    if goal is WeightGoal.LOSE:
        message += " Perfect for your weight loss goals!"
        actions.append("Keep up the healthy eating!")
        tips.append("Consider adding more vegetables to your next meal")
    elif goal is WeightGoal.GAIN:
        message += " Good for muscle building!"
        actions.append("Consider adding a protein source")
        tips.append("Pair with complex carbs for better nutrition")
    return message, AdvisoryType.POSITIVE, actions, tips


def _unhealthy_advice(
    assessment: HealthAssessment, goal: WeightGoal | None
) -> tuple[str, AdvisoryType, list[str], list[str]]:
    actions: list[str] = []
    tips: list[str] = []
    if assessment.score < WARNING_THRESHOLD:
        message = (
            f"{assessment.food_name} might not be the best choice for your "
            "health goals."
        )
        advisory_type = AdvisoryType.WARNING
    else:
        message = f"{assessment.food_name} could be improved for better nutrition."
        advisory_type = AdvisoryType.SUGGESTION

    if assessment.concerns:
        message += f" I noticed: {', '.join(assessment.concerns).lower()}."

    if goal is WeightGoal.LOSE:
        message += " This might slow down your weight loss progress."
        actions.append("Try a healthier alternative")
        actions.append("Add more vegetables to balance the meal")
        tips.append("Consider grilled chicken instead of fried")
        tips.append("Try air-fried vegetables as a side")
    elif goal is WeightGoal.GAIN:
        message += (
            " While high in calories, the nutrition quality could be better."
        )
        actions.append("Add lean protein to this meal")
        actions.append("Include some vegetables for nutrients")
        tips.append("Try adding avocado for healthy fats")
        tips.append("Consider a protein smoothie as a supplement")

    if assessment.junk_keyword:
        message += "\n\nHere's how to counteract this choice:"
        actions.extend(COUNTERACT_ACTIONS)
        actions.append("Choose a healthier snack next time")
        tips.extend(SWAP_TIPS.get(assessment.junk_keyword, DEFAULT_SWAP_TIPS)[:3])
    return message, advisory_type, actions, tips


def quick_tip(hour: int) -> str:
    """Return a general tip for the hour of day (0-23)."""
    if hour < 12:
        return "Start your day with a protein-rich breakfast!"
    if hour < 18:
        return "Stay hydrated! Aim for 8 glasses of water today."
    return "A light dinner helps with better sleep and digestion."


def meal_timing_hint(hour: int) -> str:
    """Return a meal-timing hint for the hour of day (0-23)."""
    if hour < 10:
        return "Great time for breakfast! Your metabolism is ready to work."
    if hour < 12:
        return "Perfect for a mid-morning snack to keep energy stable."
    if hour < 14:
        return "Lunch time! Fuel your afternoon with nutritious foods."
    if hour < 16:
        return "Afternoon snack time! Choose something with protein."
    if hour < 19:
        return "Dinner time! Keep it balanced and not too heavy."
    return "Late night eating? Try to keep it light and healthy."
