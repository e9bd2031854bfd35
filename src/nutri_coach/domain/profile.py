"""User profile, goal and health condition models."""

from dataclasses import asdict, dataclass, field
from enum import StrEnum


class WeightGoal(StrEnum):
    """Direction the user wants their weight to move."""

    LOSE = "lose"
    MAINTAIN = "maintain"
    GAIN = "gain"


class ActivityLevel(StrEnum):
    """Self-reported activity level."""

    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


@dataclass(frozen=True)
class HealthCondition:
    """A chronic or temporary condition, allergy or intolerance."""

    name: str
    type: str = "chronic"
    severity: str = "moderate"
    restrictions: list[str] = field(default_factory=list)
    notes: str | None = None
    id: str | None = None


@dataclass(frozen=True)
class UserGoal:
    """A user goal such as a target weight."""

    type: str
    target: str
    target_value: float | None = None
    current_value: float | None = None
    is_active: bool = True
    notes: str | None = None
    id: str | None = None


@dataclass(frozen=True)
class UserGoalProfile:
    """Goal and condition flags that drive advisory generation."""

    weight_goal: WeightGoal = WeightGoal.MAINTAIN
    activity_level: ActivityLevel = ActivityLevel.MODERATE
    health_conditions: list[HealthCondition] = field(default_factory=list)
    dietary_restrictions: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class UserProfile:
    """Full user context sent to the remote coach."""

    id: str
    name: str | None
    goal_profile: UserGoalProfile
    goals: list[UserGoal] = field(default_factory=list)
    age: int | None = None
    weight_kg: float | None = None
    height_cm: float | None = None

    def to_context(self) -> dict[str, object]:
        """Return the JSON-ready context payload."""
        return {
            "id": self.id,
            "name": self.name,
            "age": self.age,
            "weight": self.weight_kg,
            "height": self.height_cm,
            "activity_level": self.goal_profile.activity_level.value,
            "goal": self.goal_profile.weight_goal.value,
            "healthConditions": [
                asdict(condition) for condition in self.goal_profile.health_conditions
            ],
            "dietaryRestrictions": list(self.goal_profile.dietary_restrictions),
            "goals": [
                {
                    "id": goal.id,
                    "type": goal.type,
                    "target": goal.target,
                    "targetValue": goal.target_value,
                    "currentValue": goal.current_value,
                    "isActive": goal.is_active,
                }
                for goal in self.goals
            ],
        }


_WEIGHT_GOAL_ALIASES = {
    "lose": WeightGoal.LOSE,
    "lose_weight": WeightGoal.LOSE,
    "weight_loss": WeightGoal.LOSE,
    "maintain": WeightGoal.MAINTAIN,
    "maintain_weight": WeightGoal.MAINTAIN,
    "gain": WeightGoal.GAIN,
    "gain_weight": WeightGoal.GAIN,
    "weight_gain": WeightGoal.GAIN,
    "build_muscle": WeightGoal.GAIN,
}


def parse_weight_goal(raw: object) -> WeightGoal:
    """Map a stored goal string to a weight goal, defaulting to maintain."""
    if not isinstance(raw, str):
        return WeightGoal.MAINTAIN
    key = raw.strip().lower().replace(" ", "_").replace("-", "_")
    return _WEIGHT_GOAL_ALIASES.get(key, WeightGoal.MAINTAIN)


def parse_activity_level(raw: object) -> ActivityLevel:
    """Map a stored activity string to an activity level."""
    if not isinstance(raw, str):
        return ActivityLevel.MODERATE
    key = raw.strip().lower().replace(" ", "_").replace("-", "_")
    try:
        return ActivityLevel(key)
    except ValueError:
        return ActivityLevel.MODERATE
