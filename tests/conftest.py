"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from itertools import count

import pytest

from nutri_coach.config import Settings
from nutri_coach.containers import AppContainer
from nutri_coach.domain.nutrition import NutritionRecord
from nutri_coach.domain.profile import (
    HealthCondition,
    UserGoal,
    UserGoalProfile,
    UserProfile,
    WeightGoal,
)
from nutri_coach.errors import ReasoningUnavailable
from nutri_coach.services.advisory import AdvisoryGenerator
from nutri_coach.services.analysis import FoodAnalysisService
from nutri_coach.services.cache import InMemoryLookupCache
from nutri_coach.services.coach import (
    CoachClient,
    CoachOrchestrator,
    CoachSessionRegistry,
)
from nutri_coach.services.detection import FoodDetector, VisionClient
from nutri_coach.services.meals import MealLogService, MealRepository
from nutri_coach.services.nutrition import NutritionLookupClient, NutritionResolver
from nutri_coach.services.profiles import ProfileRepository, ProfileService

USER_ID = "user-1"

SALAD_FOOD: dict[str, object] = {
    "food_name": "garden salad",
    "serving_unit": "cup",
    "serving_weight_grams": 150,
    "nf_calories": 35,
    "nf_total_fat": 0.3,
    "nf_saturated_fat": 0.0,
    "nf_cholesterol": 0,
    "nf_sodium": 40,
    "nf_total_carbohydrate": 7,
    "nf_dietary_fiber": 2.5,
    "nf_sugars": 3.5,
    "nf_protein": 2.2,
    "nf_potassium": 300,
}

PIZZA_FOOD: dict[str, object] = {
    "food_name": "pepperoni pizza",
    "serving_unit": "slice",
    "serving_weight_grams": 220,
    "nf_calories": 600,
    "nf_total_fat": 18,
    "nf_saturated_fat": 7,
    "nf_cholesterol": 40,
    "nf_sodium": 640,
    "nf_total_carbohydrate": 60,
    "nf_dietary_fiber": 2,
    "nf_sugars": 3,
    "nf_protein": 14,
}


def make_record(name: str = "Test food", **values: float) -> NutritionRecord:
    """Build a record with zero defaults for every nutrient."""
    fields: dict[str, float] = {
        "serving_grams": 100.0,
        "calories": 0.0,
        "protein_g": 0.0,
        "fat_g": 0.0,
        "saturated_fat_g": 0.0,
        "carbs_g": 0.0,
        "fiber_g": 0.0,
        "sugar_g": 0.0,
        "sodium_mg": 0.0,
        "cholesterol_mg": 0.0,
        "potassium_mg": 0.0,
        "vitamin_c_mg": 0.0,
        "calcium_mg": 0.0,
        "iron_mg": 0.0,
    }
    fields.update(values)
    return NutritionRecord(name=name, serving_unit="serving", **fields)


@dataclass
class FakeVisionClient(VisionClient):
    """Fake vision client returning a fixed annotation response."""

    response: dict[str, object] = field(
        default_factory=lambda: {
            "labelAnnotations": [{"description": "Salad", "score": 0.93}]
        }
    )
    error: Exception | None = None
    images: list[dict[str, object]] = field(default_factory=list)

    async def annotate(
        self, image: dict[str, object], features: list[dict[str, object]]
    ) -> dict[str, object]:
        self.images.append(image)
        if self.error is not None:
            raise self.error
        return self.response


@dataclass
class FakeLookupClient(NutritionLookupClient):
    """Fake nutrition lookup keyed by lowercase query."""

    foods: dict[str, list[dict[str, object]]] = field(
        default_factory=lambda: {
            "salad": [SALAD_FOOD],
            "pepperoni pizza": [PIZZA_FOOD],
        }
    )
    common: list[dict[str, object]] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)
    queries: list[str] = field(default_factory=list)

    async def natural_nutrients(self, query: str) -> dict[str, object]:
        self.queries.append(query)
        if self.errors:
            raise self.errors.pop(0)
        return {"foods": self.foods.get(query.lower(), [])}

    async def search_instant(self, query: str) -> dict[str, object]:
        self.queries.append(query)
        return {"common": self.common, "branded": []}


@dataclass
class FakeCoachClient(CoachClient):
    """Fake coach backend that records payloads."""

    reply: dict[str, object] | None = field(
        default_factory=lambda: {"success": True, "message": "Nice work!"}
    )
    error: Exception | None = None
    delay_seconds: float = 0.0
    payloads: list[dict[str, object]] = field(default_factory=list)

    async def send_message(self, payload: dict[str, object]) -> dict[str, object]:
        return await self._respond(payload)

    async def analyze_scanned_food(
        self, payload: dict[str, object]
    ) -> dict[str, object]:
        return await self._respond(payload)

    async def _respond(self, payload: dict[str, object]) -> dict[str, object]:
        self.payloads.append(payload)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        if self.reply is None:
            raise ReasoningUnavailable("no reply configured")
        return self.reply


@dataclass
class InMemoryMealRepository(MealRepository):
    """In-memory meal repository for tests."""

    entries: dict[str, tuple[str, str, NutritionRecord, str | None]] = field(
        default_factory=dict
    )
    fail: bool = False
    _ids: count = field(default_factory=lambda: count(1))

    def save_nutrition_entry(
        self,
        user_id: str,
        label: str,
        record: NutritionRecord,
        image_uri: str | None = None,
    ) -> str:
        if self.fail:
            raise RuntimeError("Failed to save meal")
        meal_id = f"meal-{next(self._ids)}"
        self.entries[meal_id] = (user_id, label, record, image_uri)
        return meal_id


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    profiles: dict[str, UserProfile] = field(default_factory=dict)
    goals: dict[str, tuple[str, UserGoal]] = field(default_factory=dict)
    conditions: dict[str, tuple[str, HealthCondition]] = field(default_factory=dict)
    restrictions: dict[str, list[str]] = field(default_factory=dict)
    fail_reads: bool = False
    _ids: count = field(default_factory=lambda: count(1))

    def get_profile(self, user_id: str) -> UserProfile | None:
        if self.fail_reads:
            raise RuntimeError("profile store unavailable")
        return self.profiles.get(user_id)

    def create_goal(self, user_id: str, goal: UserGoal) -> str:
        goal_id = f"goal-{next(self._ids)}"
        self.goals[goal_id] = (user_id, goal)
        return goal_id

    def update_goal(self, user_id: str, goal_id: str, goal: UserGoal) -> None:
        owner, _ = self.goals.get(goal_id, (None, goal))
        if owner == user_id:
            self.goals[goal_id] = (user_id, goal)

    def create_health_condition(self, user_id: str, condition: HealthCondition) -> str:
        condition_id = f"condition-{next(self._ids)}"
        self.conditions[condition_id] = (user_id, condition)
        return condition_id

    def update_health_condition(
        self, user_id: str, condition_id: str, condition: HealthCondition
    ) -> None:
        owner, _ = self.conditions.get(condition_id, (None, condition))
        if owner == user_id:
            self.conditions[condition_id] = (user_id, condition)

    def upsert_dietary_restrictions(
        self, user_id: str, restrictions: list[str]
    ) -> None:
        self.restrictions[user_id] = list(restrictions)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        google_vision_api_key="vision-key",
        nutritionix_app_id="app-id",
        nutritionix_app_key="app-key",
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        openai_api_key=None,
        coach_backend_url=None,
    )


@pytest.fixture
def vision_client() -> FakeVisionClient:
    return FakeVisionClient()


@pytest.fixture
def lookup_client() -> FakeLookupClient:
    return FakeLookupClient()


@pytest.fixture
def coach_client() -> FakeCoachClient:
    return FakeCoachClient()


@pytest.fixture
def meal_repository() -> InMemoryMealRepository:
    return InMemoryMealRepository()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    profile = UserProfile(
        id=USER_ID,
        name="Alex",
        goal_profile=UserGoalProfile(
            weight_goal=WeightGoal.LOSE,
            health_conditions=[HealthCondition(name="hypertension", id="c-1")],
            dietary_restrictions=["vegetarian"],
        ),
        goals=[
            UserGoal(type="weight", target="Reach 70 kg", target_value=70, id="g-1")
        ],
        age=34,
        weight_kg=78.0,
        height_cm=175.0,
    )
    return InMemoryProfileRepository(
        profiles={USER_ID: profile},
        conditions={"c-1": (USER_ID, HealthCondition(name="hypertension", id="c-1"))},
    )


@pytest.fixture
def resolver(lookup_client: FakeLookupClient) -> NutritionResolver:
    return NutritionResolver(
        client=lookup_client,
        cache=InMemoryLookupCache(),
        retry_attempts=1,
        retry_delay_seconds=0,
    )


@pytest.fixture
def orchestrator(
    coach_client: FakeCoachClient,
    profile_repository: InMemoryProfileRepository,
    meal_repository: InMemoryMealRepository,
) -> CoachOrchestrator:
    return CoachOrchestrator(
        user_id=USER_ID,
        client=coach_client,
        profile_service=ProfileService(profile_repository),
        meal_service=MealLogService(meal_repository),
        timeout_seconds=1.0,
    )


@pytest.fixture
def container(
    settings: Settings,
    vision_client: FakeVisionClient,
    resolver: NutritionResolver,
    coach_client: FakeCoachClient,
    meal_repository: InMemoryMealRepository,
    profile_repository: InMemoryProfileRepository,
) -> AppContainer:
    food_detector = FoodDetector(client=vision_client)
    advisory_generator = AdvisoryGenerator()
    profile_service = ProfileService(profile_repository)
    meal_log_service = MealLogService(meal_repository)
    analysis_service = FoodAnalysisService(
        detector=food_detector,
        resolver=resolver,
        advisor=advisory_generator,
        meal_service=meal_log_service,
    )

    def coach_factory(user_id: str) -> CoachOrchestrator:
        return CoachOrchestrator(
            user_id=user_id,
            client=coach_client,
            profile_service=profile_service,
            meal_service=meal_log_service,
            timeout_seconds=1.0,
        )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        food_detector=food_detector,
        nutrition_resolver=resolver,
        advisory_generator=advisory_generator,
        analysis_service=analysis_service,
        profile_service=profile_service,
        meal_log_service=meal_log_service,
        coach_sessions=CoachSessionRegistry(factory=coach_factory),
        close_resources=close_resources,
    )
