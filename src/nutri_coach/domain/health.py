"""Health assessment and advisory models."""

from dataclasses import dataclass, field
from enum import StrEnum


@dataclass(frozen=True)
class HealthAssessment:
    """Heuristic health verdict derived from a nutrition record."""

    food_name: str
    score: int
    is_healthy: bool
    concerns: list[str] = field(default_factory=list)
    benefits: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    junk_keyword: str | None = None


class AdvisoryType(StrEnum):
    """Tone of an advisory message."""

    POSITIVE = "positive"
    WARNING = "warning"
    SUGGESTION = "suggestion"
    MOTIVATION = "motivation"


@dataclass(frozen=True)
class Advisory:
    """User-facing coaching message."""

    message: str
    type: AdvisoryType
    action_items: list[str] = field(default_factory=list)
    related_tips: list[str] = field(default_factory=list)
