"""End-to-end food analysis: image -> candidates -> nutrition -> advice."""

import logging
from dataclasses import dataclass, field
from itertools import count

from nutri_coach.domain.detection import FoodCandidate
from nutri_coach.domain.health import Advisory, HealthAssessment
from nutri_coach.domain.nutrition import NutritionRecord
from nutri_coach.domain.profile import UserGoalProfile
from nutri_coach.errors import NoNutritionMatch, SupersededError
from nutri_coach.services.advisory import AdvisoryGenerator
from nutri_coach.services.detection import FoodDetector, select_candidate
from nutri_coach.services.health import score_food
from nutri_coach.services.meals import MealLogService
from nutri_coach.services.nutrition import NutritionResolver

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FoodAnalysis:
    """Resolved nutrition plus the verdict shown to the user."""

    label: str
    record: NutritionRecord
    assessment: HealthAssessment
    advisory: Advisory


@dataclass(frozen=True)
class ScanResult:
    """Outcome of a scan.

    ``analysis`` is filled only when exactly one candidate was found; with
    several candidates the user must pick one and call ``analyze_label``.
    """

    candidates: list[FoodCandidate]
    analysis: FoodAnalysis | None = None

    @property
    def needs_choice(self) -> bool:
        return self.analysis is None and len(self.candidates) > 1


class GenerationCounter:
    """Tracks the latest request per event key so stale results can be dropped.

    Generations come from one process-wide sequence and are never reused.
    """

    def __init__(self) -> None:
        self._sequence = count(1)
        self._generations: dict[str, int] = {}

    def begin(self, key: str) -> int:
        generation = next(self._sequence)
        self._generations[key] = generation
        return generation

    def is_current(self, key: str, generation: int) -> bool:
        return self._generations.get(key) == generation

    def ensure_current(self, key: str, generation: int) -> None:
        if not self.is_current(key, generation):
            raise SupersededError(key)

    def finish(self, key: str, generation: int) -> None:
        """Forget the key once its latest request has settled."""
        if self.is_current(key, generation):
            del self._generations[key]

    def __len__(self) -> int:
        return len(self._generations)


@dataclass
class FoodAnalysisService:
    """Runs the recognition pipeline for photo and label events."""

    detector: FoodDetector
    resolver: NutritionResolver
    advisor: AdvisoryGenerator
    meal_service: MealLogService | None = None
    generations: GenerationCounter = field(default_factory=GenerationCounter)

    async def scan(
        self,
        image: bytes | str,
        profile: UserGoalProfile | None = None,
        event_key: str = "default",
    ) -> ScanResult:
        """Detect foods and analyze the single candidate when unambiguous.

        A newer scan with the same ``event_key`` makes this one raise
        ``SupersededError`` once its in-flight calls settle.
        """
        generation = self.generations.begin(event_key)
        try:
            candidates = await self.detector.detect(image)
            self.generations.ensure_current(event_key, generation)

            chosen = select_candidate(candidates)
            if chosen is None:
                return ScanResult(candidates=candidates)

            analysis = await self.analyze_label(chosen.label, profile)
            self.generations.ensure_current(event_key, generation)
            return ScanResult(candidates=candidates, analysis=analysis)
        finally:
            self.generations.finish(event_key, generation)

    async def analyze_label(
        self, label: str, profile: UserGoalProfile | None = None
    ) -> FoodAnalysis:
        """Resolve, score and advise on a user-confirmed label."""
        record = await self.resolver.resolve(label)
        if record is None:
            raise NoNutritionMatch(label)
        return self.analyze_record(label, record, profile)

    def analyze_record(
        self,
        label: str,
        record: NutritionRecord,
        profile: UserGoalProfile | None = None,
    ) -> FoodAnalysis:
        """Score and advise on an already resolved record."""
        assessment = score_food(record)
        advisory = self.advisor.generate(assessment, profile)
        _logger.info(
            "Food analyzed: label=%s score=%s type=%s",
            label,
            assessment.score,
            advisory.type.value,
        )
        return FoodAnalysis(
            label=label, record=record, assessment=assessment, advisory=advisory
        )

    def log_analysis(
        self, user_id: str, analysis: FoodAnalysis, image_uri: str | None = None
    ) -> str:
        """Persist the analyzed food as a meal."""
        if self.meal_service is None:
            raise RuntimeError("Meal logging is not configured")
        return self.meal_service.save_nutrition_entry(
            user_id, analysis.label, analysis.record, image_uri=image_uri
        )
