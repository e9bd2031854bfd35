"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutri_coach.adapters.google_vision_client import HttpxGoogleVisionClient
from nutri_coach.adapters.http_coach_client import HttpxCoachClient
from nutri_coach.adapters.nutritionix_client import HttpxNutritionixClient
from nutri_coach.adapters.openai_coach_client import OpenAICoachClient
from nutri_coach.adapters.supabase_meal_repository import SupabaseMealRepository
from nutri_coach.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from nutri_coach.config import Settings
from nutri_coach.services.advisory import AdvisoryGenerator
from nutri_coach.services.analysis import FoodAnalysisService
from nutri_coach.services.cache import InMemoryLookupCache
from nutri_coach.services.coach import (
    CoachClient,
    CoachOrchestrator,
    CoachSessionRegistry,
    OfflineCoachClient,
)
from nutri_coach.services.detection import FoodDetector
from nutri_coach.services.meals import MealLogService
from nutri_coach.services.nutrition import NutritionResolver
from nutri_coach.services.profiles import ProfileService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    food_detector: FoodDetector
    nutrition_resolver: NutritionResolver
    advisory_generator: AdvisoryGenerator
    analysis_service: FoodAnalysisService
    profile_service: ProfileService
    meal_log_service: MealLogService
    coach_sessions: CoachSessionRegistry
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    profile_service = ProfileService(SupabaseProfileRepository(supabase_client))
    meal_log_service = MealLogService(SupabaseMealRepository(supabase_client))

    vision_client = HttpxGoogleVisionClient.create(
        api_key=resolved_settings.google_vision_api_key,
        url=resolved_settings.google_vision_url,
        timeout_seconds=resolved_settings.vision_timeout_seconds,
    )
    lookup_client = HttpxNutritionixClient.create(
        app_id=resolved_settings.nutritionix_app_id,
        app_key=resolved_settings.nutritionix_app_key,
        base_url=resolved_settings.nutritionix_base_url,
        timeout_seconds=resolved_settings.lookup_timeout_seconds,
    )
    food_detector = FoodDetector(client=vision_client)
    nutrition_resolver = NutritionResolver(
        client=lookup_client,
        cache=InMemoryLookupCache(),
        retry_attempts=resolved_settings.retry_attempts,
        retry_delay_seconds=resolved_settings.retry_delay_seconds,
    )
    advisory_generator = AdvisoryGenerator()
    analysis_service = FoodAnalysisService(
        detector=food_detector,
        resolver=nutrition_resolver,
        advisor=advisory_generator,
        meal_service=meal_log_service,
    )

    coach_client: CoachClient
    remote_coach_client: HttpxCoachClient | OpenAICoachClient | None = None
    if resolved_settings.coach_backend_url:
        remote_coach_client = HttpxCoachClient.create(
            resolved_settings.coach_backend_url,
            timeout_seconds=resolved_settings.coach_timeout_seconds,
        )
        coach_client = remote_coach_client
    elif resolved_settings.openai_api_key:
        remote_coach_client = OpenAICoachClient.create(
            api_key=resolved_settings.openai_api_key,
            model=resolved_settings.openai_model,
        )
        coach_client = remote_coach_client
    else:
        coach_client = OfflineCoachClient()

    def coach_factory(user_id: str) -> CoachOrchestrator:
        return CoachOrchestrator(
            user_id=user_id,
            client=coach_client,
            profile_service=profile_service,
            meal_service=meal_log_service,
            context_turns=resolved_settings.conversation_context_turns,
            history_turns=resolved_settings.conversation_history_turns,
            timeout_seconds=resolved_settings.coach_timeout_seconds,
        )

    async def close_resources() -> None:
        await vision_client.close()
        await lookup_client.close()
        if remote_coach_client is not None:
            await remote_coach_client.close()

    return AppContainer(
        settings=resolved_settings,
        food_detector=food_detector,
        nutrition_resolver=nutrition_resolver,
        advisory_generator=advisory_generator,
        analysis_service=analysis_service,
        profile_service=profile_service,
        meal_log_service=meal_log_service,
        coach_sessions=CoachSessionRegistry(
            factory=coach_factory, max_sessions=resolved_settings.coach_max_sessions
        ),
        close_resources=close_resources,
    )
