"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from nutri_coach.api.models import (
    AnalyzeRequest,
    CoachMessageRequest,
    ImageRequest,
    ResolveRequest,
    ScannedFoodRequest,
    ScanRequest,
)
from nutri_coach.app_logging import configure_logging
from nutri_coach.containers import AppContainer
from nutri_coach.domain.coach import CoachResponse
from nutri_coach.domain.nutrition import NutritionRecord
from nutri_coach.domain.profile import UserGoalProfile
from nutri_coach.errors import (
    DetectionTransportError,
    ImageUnreadableError,
    LookupTransportError,
    NoNutritionMatch,
    SupersededError,
)
from nutri_coach.services.analysis import FoodAnalysis
from nutri_coach.services.nutrition import parse_food

_logger = logging.getLogger(__name__)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(DetectionTransportError)
    async def detection_unavailable(
        request: Request, exc: DetectionTransportError
    ) -> JSONResponse:
        _logger.warning("Detection service unavailable: %s", exc)
        return _error(502, "detection_unavailable", str(exc))

    @app.exception_handler(ImageUnreadableError)
    async def image_unreadable(
        request: Request, exc: ImageUnreadableError
    ) -> JSONResponse:
        return _error(422, "image_unreadable", str(exc))

    @app.exception_handler(LookupTransportError)
    async def lookup_unavailable(
        request: Request, exc: LookupTransportError
    ) -> JSONResponse:
        _logger.warning("Nutrition lookup unavailable: %s", exc)
        return _error(502, "lookup_unavailable", str(exc))

    @app.exception_handler(NoNutritionMatch)
    async def no_match(request: Request, exc: NoNutritionMatch) -> JSONResponse:
        return _error(404, "no_nutrition_match", str(exc))

    @app.exception_handler(SupersededError)
    async def superseded(request: Request, exc: SupersededError) -> JSONResponse:
        return _error(409, "superseded", str(exc))

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/foods/detect")
    async def detect_foods(body: ImageRequest, request: Request) -> dict[str, object]:
        """Return ranked food candidates for an image."""
        state_container: AppContainer = request.app.state.container
        candidates = await state_container.food_detector.detect(_image_input(body))
        return {
            "candidates": [asdict(candidate) for candidate in candidates],
            "needs_choice": len(candidates) > 1,
        }

    @app.post("/foods/scan")
    async def scan_food(
        body: ScanRequest,
        request: Request,
        x_user_id: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Detect foods and analyze the single candidate when unambiguous."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.analysis_service.scan(
            _image_input(body),
            profile=_goal_profile(state_container, x_user_id),
            event_key=f"{x_user_id or 'anonymous'}:{body.event_key}",
        )
        return {
            "candidates": [asdict(candidate) for candidate in result.candidates],
            "needs_choice": result.needs_choice,
            "analysis": _analysis_payload(result.analysis) if result.analysis else None,
        }

    @app.post("/nutrition/resolve")
    async def resolve_nutrition(
        body: ResolveRequest, request: Request
    ) -> dict[str, object]:
        """Resolve a label to nutrition facts."""
        state_container: AppContainer = request.app.state.container
        record = await state_container.nutrition_resolver.resolve_or_raise(body.label)
        return asdict(record)

    @app.get("/nutrition/search")
    async def search_nutrition(
        query: str, request: Request, limit: int = 10
    ) -> dict[str, object]:
        """Instant search over common foods."""
        state_container: AppContainer = request.app.state.container
        foods = await state_container.nutrition_resolver.search_foods(query, limit)
        return {"foods": [asdict(food) for food in foods]}

    @app.post("/foods/analyze")
    async def analyze_food(
        body: AnalyzeRequest,
        request: Request,
        x_user_id: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Score a food and build an advisory, optionally logging it."""
        state_container: AppContainer = request.app.state.container
        service = state_container.analysis_service
        profile = _goal_profile(state_container, x_user_id)
        if body.nutrition:
            analysis = service.analyze_record(
                body.label, _record_from_body(body.label, body.nutrition), profile
            )
        else:
            analysis = await service.analyze_label(body.label, profile)
        payload = _analysis_payload(analysis)
        if body.log:
            if not x_user_id:
                raise HTTPException(status_code=401, detail="X-User-Id required")
            payload["meal_id"] = service.log_analysis(
                x_user_id, analysis, image_uri=body.image_uri
            )
        return payload

    @app.post("/coach/messages")
    async def coach_message(
        body: CoachMessageRequest,
        request: Request,
        x_user_id: str = Header(),
    ) -> dict[str, object]:
        """Send a free-form message to the coach."""
        state_container: AppContainer = request.app.state.container
        coach = state_container.coach_sessions.get(x_user_id)
        response = await coach.process_freeform_input(body.text, input_type=body.type)
        return _coach_payload(response)

    @app.post("/coach/scanned-food")
    async def coach_scanned_food(
        body: ScannedFoodRequest,
        request: Request,
        x_user_id: str = Header(),
    ) -> dict[str, object]:
        """Ask the coach about a scanned food."""
        state_container: AppContainer = request.app.state.container
        if body.nutrition:
            record = _record_from_body(body.label, body.nutrition)
        else:
            record = await state_container.nutrition_resolver.resolve_or_raise(
                body.label
            )
        coach = state_container.coach_sessions.get(x_user_id)
        response = await coach.process_scanned_food(
            body.label, record, image_uri=body.image_uri
        )
        return _coach_payload(response)

    @app.get("/coach/history")
    async def coach_history(
        request: Request, x_user_id: str = Header()
    ) -> dict[str, object]:
        """Return the stored conversation turns."""
        state_container: AppContainer = request.app.state.container
        coach = state_container.coach_sessions.get(x_user_id)
        return {
            "turns": [turn.to_payload() for turn in coach.conversation_history()],
            "context_turns": coach.context_turns,
        }

    @app.delete("/coach/history")
    async def clear_coach_history(
        request: Request, x_user_id: str = Header()
    ) -> dict[str, str]:
        """Forget the conversation."""
        state_container: AppContainer = request.app.state.container
        state_container.coach_sessions.clear(x_user_id)
        return {"status": "ok"}

    return app


def _error(status_code: int, code: str, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"error": code, "detail": detail}
    )


def _image_input(body: ImageRequest) -> bytes | str:
    if body.image_uri:
        return body.image_uri
    try:
        return base64.b64decode(body.image_base64 or "", validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageUnreadableError("image_base64 is not valid base64") from exc


def _goal_profile(
    container: AppContainer, user_id: str | None
) -> UserGoalProfile | None:
    if not user_id:
        return None
    try:
        profile = container.profile_service.get_current_profile(user_id)
    except Exception:
        _logger.exception("Profile lookup failed, advising without goals")
        return None
    return profile.goal_profile if profile else None


def _record_from_body(label: str, nutrition: dict[str, object]) -> NutritionRecord:
    payload = dict(nutrition)
    payload.setdefault("food_name", label)
    return parse_food(payload)


def _analysis_payload(analysis: FoodAnalysis) -> dict[str, object]:
    return {
        "label": analysis.label,
        "nutrition": asdict(analysis.record),
        "assessment": asdict(analysis.assessment),
        "advisory": asdict(analysis.advisory),
    }


def _coach_payload(response: CoachResponse) -> dict[str, object]:
    return {
        "message": response.message,
        "success": response.success,
        "action_taken": response.action_taken.value,
        "meal_analysis": (
            response.meal_analysis.model_dump(by_alias=True)
            if response.meal_analysis
            else None
        ),
        "error": response.error,
        "degraded": response.degraded,
    }
