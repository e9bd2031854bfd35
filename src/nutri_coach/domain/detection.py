"""Domain models for image-based food detection."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BoundingBox:
    """Normalized bounding box of a localized object."""

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class FoodCandidate:
    """A food label proposed by the detection service."""

    label: str
    confidence: float
    bounding_box: BoundingBox | None = None
