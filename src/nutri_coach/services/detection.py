"""Food detection on top of a label/object recognition service."""

import base64
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from nutri_coach.domain.detection import BoundingBox, FoodCandidate
from nutri_coach.errors import ImageUnreadableError

_logger = logging.getLogger(__name__)

FOOD_VOCABULARY: tuple[str, ...] = (
    "food",
    "meal",
    "dish",
    "cuisine",
    "cooking",
    "recipe",
    "pizza",
    "burger",
    "sandwich",
    "salad",
    "pasta",
    "rice",
    "chicken",
    "beef",
    "pork",
    "fish",
    "seafood",
    "vegetable",
    "fruit",
    "bread",
    "cake",
    "dessert",
    "soup",
    "stew",
    "breakfast",
    "lunch",
    "dinner",
    "snack",
    "appetizer",
    "main course",
    "side dish",
    "beverage",
    "drink",
)

DETECTION_FEATURES: list[dict[str, object]] = [
    {"type": "LABEL_DETECTION", "maxResults": 10},
    {"type": "OBJECT_LOCALIZATION", "maxResults": 10},
]

REMOTE_IMAGE_PREFIXES = ("http://", "https://", "gs://")


class VisionClient(Protocol):
    """Interface for the label/object recognition service."""

    async def annotate(
        self, image: dict[str, object], features: list[dict[str, object]]
    ) -> dict[str, object]:
        """Return the raw annotation response for a single image."""


@dataclass
class FoodDetector:
    """Turns an image into ranked, deduplicated food candidates."""

    client: VisionClient
    vocabulary: tuple[str, ...] = field(default=FOOD_VOCABULARY)

    async def detect(self, image: bytes | str) -> list[FoodCandidate]:
        """Detect foods in raw image bytes, a local path or a remote URI.

        An empty list means no food was identified; transport and image
        problems raise ``DetectionError`` subclasses instead.
        """
        payload = _image_payload(image)
        raw = await self.client.annotate(payload, DETECTION_FEATURES)
        candidates = self.parse_annotations(raw)
        _logger.info("Food detection: %s candidates", len(candidates))
        return candidates

    def parse_annotations(self, raw: dict[str, object]) -> list[FoodCandidate]:
        """Filter, deduplicate and rank annotations from a raw response."""
        found: list[FoodCandidate] = []
        for label in raw.get("labelAnnotations") or []:
            if not isinstance(label, dict):
                continue
            description = str(label.get("description") or "")
            if self.is_food_related(description):
                found.append(
                    FoodCandidate(
                        label=description,
                        confidence=_clamp_confidence(label.get("score")),
                    )
                )
        for obj in raw.get("localizedObjectAnnotations") or []:
            if not isinstance(obj, dict):
                continue
            name = str(obj.get("name") or "")
            if self.is_food_related(name):
                found.append(
                    FoodCandidate(
                        label=name,
                        confidence=_clamp_confidence(obj.get("score")),
                        bounding_box=_bounding_box(obj.get("boundingPoly")),
                    )
                )
        return rank_candidates(found)

    def is_food_related(self, description: str) -> bool:
        lowered = description.lower()
        return bool(lowered) and any(term in lowered for term in self.vocabulary)


def rank_candidates(candidates: list[FoodCandidate]) -> list[FoodCandidate]:
    """Sort by confidence descending, keeping the best entry per lowercase label."""
    ordered = sorted(
        candidates, key=lambda candidate: candidate.confidence, reverse=True
    )
    seen: set[str] = set()
    unique: list[FoodCandidate] = []
    for candidate in ordered:
        key = candidate.label.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique


def select_candidate(candidates: list[FoodCandidate]) -> FoodCandidate | None:
    """Return the only candidate, or None when the user has to choose."""
    if len(candidates) == 1:
        return candidates[0]
    return None


def _image_payload(image: bytes | str) -> dict[str, object]:
    if isinstance(image, bytes):
        if not image:
            raise ImageUnreadableError("Image payload is empty")
        return {"content": base64.b64encode(image).decode("utf-8")}
    if image.startswith(REMOTE_IMAGE_PREFIXES):
        return {"source": {"imageUri": image}}
    path = Path(image)
    try:
        data = path.read_bytes()
    except FileNotFoundError as exc:
        raise ImageUnreadableError(f"Image file not found: {image}") from exc
    except OSError as exc:
        raise ImageUnreadableError(f"Could not read image {image}: {exc}") from exc
    return _image_payload(data)


def _clamp_confidence(value: object) -> float:
    if not isinstance(value, int | float):
        return 0.0
    return min(1.0, max(0.0, float(value)))


def _bounding_box(poly: object) -> BoundingBox | None:
    if not isinstance(poly, dict):
        return None
    vertices = poly.get("normalizedVertices")
    if not isinstance(vertices, list) or not vertices:
        return None
    top_left = vertices[0]
    bottom_right = vertices[2] if len(vertices) > 2 else {}
    if not isinstance(top_left, dict) or not isinstance(bottom_right, dict):
        return None
    x = _coordinate(top_left.get("x"))
    y = _coordinate(top_left.get("y"))
    return BoundingBox(
        x=x,
        y=y,
        width=_coordinate(bottom_right.get("x")) - x,
        height=_coordinate(bottom_right.get("y")) - y,
    )


def _coordinate(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0.0
    return float(value)
