"""Coach orchestration: remote reasoning with a local fallback."""

import asyncio
import logging
from collections import OrderedDict, deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

from pydantic import ValidationError

from nutri_coach.domain.coach import (
    ActionTaken,
    CoachReply,
    CoachResponse,
    ConversationTurn,
    LogMealAction,
    ReasoningErr,
    ReasoningOk,
    ReasoningResult,
    TurnRole,
    UpdateGoalAction,
    UpdateProfileAction,
)
from nutri_coach.domain.nutrition import NutritionRecord
from nutri_coach.domain.profile import HealthCondition, UserGoal, UserProfile
from nutri_coach.errors import ReasoningUnavailable
from nutri_coach.services.meals import MealLogService
from nutri_coach.services.profiles import ProfileService

_logger = logging.getLogger(__name__)

PROFILE_REQUIRED_MESSAGE = (
    "I need to access your profile to provide personalized advice. "
    "Please ensure you're logged in."
)
EMPTY_INPUT_MESSAGE = "Tell me what you ate or what you'd like help with."
SAVE_FAILED_MESSAGE = (
    "I processed your request but encountered an issue saving the data."
)

SCANNED_SUGAR_LIMIT_G = 15
SCANNED_SODIUM_LIMIT_MG = 600
SCANNED_PROTEIN_HIGHLIGHT_G = 20


class CoachClient(Protocol):
    """Interface for the remote reasoning service."""

    async def send_message(self, payload: dict[str, object]) -> dict[str, object]:
        """Send a free-form user message and return the raw reply."""

    async def analyze_scanned_food(
        self, payload: dict[str, object]
    ) -> dict[str, object]:
        """Ask for feedback on a resolved nutrition record."""


class OfflineCoachClient(CoachClient):
    """Coach client used when no reasoning backend is configured."""

    async def send_message(self, payload: dict[str, object]) -> dict[str, object]:
        raise ReasoningUnavailable("No coach backend configured")

    async def analyze_scanned_food(
        self, payload: dict[str, object]
    ) -> dict[str, object]:
        raise ReasoningUnavailable("No coach backend configured")


class ConversationWindow:
    """Bounded conversation memory.

    Stores at most ``history_turns`` turns and exposes the last
    ``context_turns`` of them as the context for the next remote call.
    """

    def __init__(self, context_turns: int = 10, history_turns: int = 20) -> None:
        if context_turns < 1 or history_turns < context_turns:
            raise ValueError("history_turns must be >= context_turns >= 1")
        self.context_turns = context_turns
        self.history_turns = history_turns
        self._turns: deque[ConversationTurn] = deque(maxlen=history_turns)

    def append(self, role: TurnRole, content: str) -> None:
        self._turns.append(ConversationTurn(role=role, content=content))

    def recent(self) -> list[ConversationTurn]:
        """Turns the next remote call will see."""
        return list(self._turns)[-self.context_turns :]

    def history(self) -> list[ConversationTurn]:
        return list(self._turns)

    def clear(self) -> None:
        self._turns.clear()

    def __len__(self) -> int:
        return len(self._turns)


def decode_reply(raw: object) -> ReasoningResult:
    """Validate a raw coach reply into a tagged result."""
    if not isinstance(raw, dict):
        return ReasoningErr(reason="reply is not a JSON object")
    if raw.get("success") is False:
        return ReasoningErr(reason=str(raw.get("error") or "coach reported failure"))
    try:
        reply = CoachReply.model_validate(raw)
    except ValidationError as exc:
        return ReasoningErr(reason=f"invalid reply: {exc.error_count()} errors")
    return ReasoningOk(reply=reply)


@dataclass
class CoachOrchestrator:
    """Sequences coach calls for one user and never dead-ends the conversation."""

    user_id: str
    client: CoachClient
    profile_service: ProfileService
    meal_service: MealLogService
    context_turns: int = 10
    history_turns: int = 20
    timeout_seconds: float = 30.0
    window: ConversationWindow = field(init=False)
    _profile: UserProfile | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.window = ConversationWindow(self.context_turns, self.history_turns)

    async def process_freeform_input(
        self, text: str, input_type: str = "text"
    ) -> CoachResponse:
        """Handle a typed or transcribed voice message."""
        content = text.strip()
        if not content:
            return CoachResponse(
                message=EMPTY_INPUT_MESSAGE, success=False, error="Empty input"
            )
        profile = self.refresh_profile()
        if profile is None:
            return CoachResponse(
                message=PROFILE_REQUIRED_MESSAGE,
                success=False,
                error="User profile not available",
            )
        payload = {
            "type": input_type,
            "content": content,
            "userId": self.user_id,
            "userContext": profile.to_context(),
            "conversationHistory": self._outbound_history(),
        }
        self.window.append(TurnRole.USER, content)
        result = await self._call(self.client.send_message, payload)
        if isinstance(result, ReasoningErr):
            _logger.warning("Coach unavailable, using local reply: %s", result.reason)
            response = freeform_fallback(content)
        else:
            response = self._apply_reply(result.reply)
        self.window.append(TurnRole.ASSISTANT, response.message)
        return response

    async def process_scanned_food(
        self, label: str, record: NutritionRecord, image_uri: str | None = None
    ) -> CoachResponse:
        """Ask for feedback on a food the user just scanned."""
        profile = self.refresh_profile()
        if profile is None:
            return CoachResponse(
                message=PROFILE_REQUIRED_MESSAGE,
                success=False,
                error="User profile not available",
            )
        payload = {
            "foodName": label,
            "nutritionData": record.to_payload(),
            "imageUri": image_uri,
            "userId": self.user_id,
            "userContext": profile.to_context(),
            "conversationHistory": self._outbound_history(),
        }
        self.window.append(TurnRole.USER, f"I scanned {label}")
        result = await self._call(self.client.analyze_scanned_food, payload)
        if isinstance(result, ReasoningErr):
            _logger.warning("Coach unavailable, using local summary: %s", result.reason)
            response = scanned_food_fallback(label, record)
        else:
            response = self._apply_reply(result.reply)
        self.window.append(TurnRole.ASSISTANT, response.message)
        return response

    def refresh_profile(self) -> UserProfile | None:
        """Reload the profile, keeping the cached copy if the store fails."""
        try:
            profile = self.profile_service.get_current_profile(self.user_id)
        except Exception:
            _logger.exception("Profile lookup failed, using cached profile")
            return self._profile
        self._profile = profile
        return profile

    def conversation_history(self) -> list[ConversationTurn]:
        """Stored turns, oldest first, capped at ``history_turns``."""
        return self.window.history()

    def recent_window(self) -> list[ConversationTurn]:
        """Turns the next remote call will carry."""
        return self.window.recent()

    def clear(self) -> None:
        """Forget the conversation."""
        self.window.clear()

    def _outbound_history(self) -> list[dict[str, str]]:
        return [turn.to_payload() for turn in self.window.recent()]

    async def _call(
        self,
        func: Callable[[dict[str, object]], Awaitable[dict[str, object]]],
        payload: dict[str, object],
    ) -> ReasoningResult:
        try:
            raw = await asyncio.wait_for(func(payload), timeout=self.timeout_seconds)
        except TimeoutError:
            return ReasoningErr(reason=f"timed out after {self.timeout_seconds}s")
        except Exception as exc:
            return ReasoningErr(reason=f"{type(exc).__name__}: {exc}")
        return decode_reply(raw)

    def _apply_reply(self, reply: CoachReply) -> CoachResponse:
        try:
            action_taken = self._dispatch(reply)
        except Exception as exc:
            _logger.exception("Coach action failed: user=%s", self.user_id)
            return CoachResponse(
                message=reply.message or SAVE_FAILED_MESSAGE,
                success=False,
                meal_analysis=reply.meal_analysis,
                error=str(exc),
            )
        return CoachResponse(
            message=reply.message,
            success=True,
            action_taken=action_taken,
            meal_analysis=reply.meal_analysis,
        )

    def _dispatch(self, reply: CoachReply) -> ActionTaken:
        action = reply.action
        if isinstance(action, LogMealAction):
            foods = reply.meal_analysis.recognized_foods if reply.meal_analysis else []
            if foods:
                self.meal_service.log_recognized_foods(self.user_id, foods)
                return ActionTaken.LOGGED_MEAL
        elif isinstance(action, UpdateGoalAction):
            if action.data is not None:
                data = action.data
                self.profile_service.upsert_goal(
                    self.user_id,
                    UserGoal(
                        id=data.id,
                        type=data.type,
                        target=data.target,
                        target_value=data.target_value,
                        current_value=data.current_value,
                        is_active=data.is_active,
                        notes=data.notes,
                    ),
                )
                self._profile = None
                return ActionTaken.UPDATED_GOAL
        elif isinstance(action, UpdateProfileAction):
            if action.data is not None:
                for condition in action.data.health_conditions or []:
                    self.profile_service.upsert_health_condition(
                        self.user_id,
                        HealthCondition(
                            id=condition.id,
                            name=condition.name,
                            type=condition.type,
                            severity=condition.severity,
                            restrictions=list(condition.restrictions),
                            notes=condition.notes,
                        ),
                    )
                if action.data.dietary_restrictions is not None:
                    self.profile_service.update_dietary_restrictions(
                        self.user_id, action.data.dietary_restrictions
                    )
                self._profile = None
                return ActionTaken.UPDATED_PROFILE
        return ActionTaken.NONE


def freeform_fallback(text: str) -> CoachResponse:
    """Keyword-triggered reply used while the remote coach is unavailable."""
    lowered = text.lower()
    if any(word in lowered for word in ("ate", "food", "meal")):
        message = (
            "I understand you're telling me about food you've eaten. While I "
            "can't fully analyze your meal right now, I'd love to help you track "
            "your nutrition. Could you tell me more about what you had?"
        )
    elif any(word in lowered for word in ("goal", "target")):
        message = (
            "I'd be happy to help you set or update your health goals! While my "
            "goal-setting features are temporarily unavailable, you can still set "
            "goals manually in your profile. What kind of goal are you thinking "
            "about?"
        )
    elif any(word in lowered for word in ("help", "advice")):
        message = (
            "I'm here to help! While my advanced features are temporarily "
            "unavailable, I can still share general nutrition advice. What would "
            "you like to know about healthy eating?"
        )
    else:
        message = (
            "Thanks for your message! My advanced features are temporarily "
            "unavailable, but I'm still here to help with basic nutrition "
            "guidance. What would you like to know?"
        )
    return CoachResponse(
        message=message, success=True, action_taken=ActionTaken.NONE, degraded=True
    )


def scanned_food_fallback(label: str, record: NutritionRecord) -> CoachResponse:
    """Summary of a scanned food built straight from its nutrition record."""
    lines = [
        f"I can see you scanned {label}. Here's what I found:",
        "",
        "Nutritional information:",
        f"- Calories: {record.calories:g} kcal",
        f"- Protein: {record.protein_g:g}g",
        f"- Carbs: {record.carbs_g:g}g",
        f"- Fat: {record.fat_g:g}g",
        f"- Sugar: {record.sugar_g:g}g",
        f"- Sodium: {record.sodium_mg:g}mg",
        "",
    ]
    if record.sugar_g > SCANNED_SUGAR_LIMIT_G:
        lines.append(
            f"Note: this item is high in sugar ({record.sugar_g:g}g). Consider "
            "moderation, especially if you're managing diabetes."
        )
    if record.sodium_mg > SCANNED_SODIUM_LIMIT_MG:
        lines.append(
            f"Note: this item is high in sodium ({record.sodium_mg:g}mg). Consider "
            "this if you're watching your blood pressure."
        )
    if record.protein_g > SCANNED_PROTEIN_HIGHLIGHT_G:
        lines.append(
            f"Great choice! This item is high in protein ({record.protein_g:g}g), "
            "which helps with muscle building and satiety."
        )
    lines.append(
        "My advanced features are temporarily unavailable, but I can still help "
        "you track this meal. Would you like me to log it to your food history?"
    )
    return CoachResponse(
        message="\n".join(lines),
        success=True,
        action_taken=ActionTaken.NONE,
        degraded=True,
    )


class CoachSessionRegistry:
    """One orchestrator per user; the least recently used is evicted when full."""

    def __init__(
        self, factory: Callable[[str], CoachOrchestrator], max_sessions: int = 1000
    ) -> None:
        self.factory = factory
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[str, CoachOrchestrator] = OrderedDict()

    def get(self, user_id: str) -> CoachOrchestrator:
        session = self._sessions.get(user_id)
        if session is None:
            session = self.factory(user_id)
            self._sessions[user_id] = session
        self._sessions.move_to_end(user_id)
        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            _logger.debug("Evicted coach session for %s", evicted)
        return session

    def clear(self, user_id: str) -> None:
        session = self._sessions.pop(user_id, None)
        if session is not None:
            session.clear()

    def __len__(self) -> int:
        return len(self._sessions)
