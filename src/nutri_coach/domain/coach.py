"""Models for the coach conversation and the remote reasoning reply."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class TurnRole(StrEnum):
    """Author of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationTurn:
    """Single message in the coaching conversation."""

    role: TurnRole
    content: str

    def to_payload(self) -> dict[str, str]:
        """Return the wire form of the turn."""
        return {"role": self.role.value, "content": self.content}


class ActionTaken(StrEnum):
    """Side effect performed while handling a coach reply."""

    LOGGED_MEAL = "logged_meal"
    UPDATED_GOAL = "updated_goal"
    UPDATED_PROFILE = "updated_profile"
    NONE = "none"


class _ReplyModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )


class EstimatedNutrition(_ReplyModel):
    """Per-food estimate provided by the coach."""

    calories: float = Field(default=0.0, ge=0.0)
    protein: float = Field(default=0.0, ge=0.0)
    carbs: float = Field(default=0.0, ge=0.0)
    fat: float = Field(default=0.0, ge=0.0)
    sugar: float = Field(default=0.0, ge=0.0)
    fiber: float = Field(default=0.0, ge=0.0)
    sodium: float = Field(default=0.0, ge=0.0)


class RecognizedFood(_ReplyModel):
    """Food item the coach extracted from the user's message."""

    name: str = Field(min_length=1)
    quantity: str | None = None
    unit: str | None = None
    estimated_nutrition: EstimatedNutrition | None = Field(
        default=None, alias="estimatedNutrition"
    )


class MealAnalysis(_ReplyModel):
    """Meal breakdown returned by the coach."""

    recognized_foods: list[RecognizedFood] = Field(
        default_factory=list, alias="recognizedFoods"
    )
    total_calories: float = Field(default=0.0, alias="totalCalories")
    total_protein: float = Field(default=0.0, alias="totalProtein")
    total_carbs: float = Field(default=0.0, alias="totalCarbs")
    total_fat: float = Field(default=0.0, alias="totalFat")
    total_sugar: float = Field(default=0.0, alias="totalSugar")
    health_score: float | None = Field(default=None, alias="healthScore")
    concerns: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class GoalUpdate(_ReplyModel):
    """Goal fields the coach wants to create or update."""

    id: str | None = None
    type: str = "weight"
    target: str = Field(min_length=1)
    target_value: float | None = Field(default=None, alias="targetValue")
    current_value: float | None = Field(default=None, alias="currentValue")
    is_active: bool = Field(default=True, alias="isActive")
    notes: str | None = None


class ConditionUpdate(_ReplyModel):
    """Health condition the coach wants to create or update."""

    id: str | None = None
    name: str = Field(min_length=1)
    type: Literal["chronic", "temporary", "allergy", "intolerance"] = "chronic"
    severity: Literal["mild", "moderate", "severe"] = "moderate"
    restrictions: list[str] = Field(default_factory=list)
    notes: str | None = None


class ProfileUpdate(_ReplyModel):
    """Profile changes requested by the coach."""

    health_conditions: list[ConditionUpdate] | None = Field(
        default=None, alias="healthConditions"
    )
    dietary_restrictions: list[str] | None = Field(
        default=None, alias="dietaryRestrictions"
    )


class LogMealAction(_ReplyModel):
    type: Literal["log_meal"]
    data: dict[str, object] | None = None
    message: str = ""


class UpdateGoalAction(_ReplyModel):
    type: Literal["update_goal"]
    data: GoalUpdate | None = None
    message: str = ""


class UpdateProfileAction(_ReplyModel):
    type: Literal["update_profile"]
    data: ProfileUpdate | None = None
    message: str = ""


class ProvideFeedbackAction(_ReplyModel):
    type: Literal["provide_feedback"]
    data: dict[str, object] | None = None
    message: str = ""


class AskClarificationAction(_ReplyModel):
    type: Literal["ask_clarification"]
    data: dict[str, object] | None = None
    message: str = ""


CoachAction = Annotated[
    LogMealAction
    | UpdateGoalAction
    | UpdateProfileAction
    | ProvideFeedbackAction
    | AskClarificationAction,
    Field(discriminator="type"),
]


class CoachReply(_ReplyModel):
    """Validated body of a successful coach reply."""

    success: bool = True
    message: str = Field(min_length=1)
    action: CoachAction | None = None
    meal_analysis: MealAnalysis | None = Field(default=None, alias="mealAnalysis")
    error: str | None = None


@dataclass(frozen=True)
class ReasoningOk:
    """The coach answered with a usable reply."""

    reply: CoachReply


@dataclass(frozen=True)
class ReasoningErr:
    """The coach call failed; ``reason`` says why."""

    reason: str


ReasoningResult = ReasoningOk | ReasoningErr


@dataclass(frozen=True)
class CoachResponse:
    """What the orchestrator hands back to its caller."""

    message: str
    success: bool
    action_taken: ActionTaken = ActionTaken.NONE
    meal_analysis: MealAnalysis | None = None
    error: str | None = None
    degraded: bool = False
