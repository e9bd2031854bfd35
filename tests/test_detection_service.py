"""Tests for food detection."""

import asyncio
import base64

import pytest

from nutri_coach.domain.detection import FoodCandidate
from nutri_coach.errors import ImageUnreadableError
from nutri_coach.services.detection import (
    DETECTION_FEATURES,
    FoodDetector,
    rank_candidates,
    select_candidate,
)
from tests.conftest import FakeVisionClient


def test_detect_filters_dedupes_and_ranks() -> None:
    client = FakeVisionClient(
        response={
            "labelAnnotations": [
                {"description": "Table", "score": 0.99},
                {"description": "Pizza", "score": 0.95},
                {"description": "Fast food", "score": 0.97},
                {"description": "pizza", "score": 0.70},
            ],
            "localizedObjectAnnotations": [
                {"name": "Pizza", "score": 0.85, "boundingPoly": {}},
            ],
        }
    )
    detector = FoodDetector(client=client)

    candidates = asyncio.run(detector.detect(b"jpeg-bytes"))

    assert [candidate.label for candidate in candidates] == ["Fast food", "Pizza"]
    assert candidates[1].confidence == 0.95
    assert candidates[1].bounding_box is None


def test_detect_returns_empty_list_when_nothing_is_food() -> None:
    client = FakeVisionClient(
        response={"labelAnnotations": [{"description": "Laptop", "score": 0.9}]}
    )
    detector = FoodDetector(client=client)

    assert asyncio.run(detector.detect(b"jpeg-bytes")) == []


def test_detect_reads_object_bounding_box() -> None:
    client = FakeVisionClient(
        response={
            "localizedObjectAnnotations": [
                {
                    "name": "Fruit",
                    "score": 0.8,
                    "boundingPoly": {
                        "normalizedVertices": [
                            {"x": 0.1, "y": 0.2},
                            {"x": 0.6, "y": 0.2},
                            {"x": 0.6, "y": 0.7},
                            {"x": 0.1, "y": 0.7},
                        ]
                    },
                }
            ]
        }
    )
    detector = FoodDetector(client=client)

    [candidate] = asyncio.run(detector.detect(b"jpeg-bytes"))

    assert candidate.label == "Fruit"
    assert candidate.bounding_box is not None
    assert candidate.bounding_box.x == pytest.approx(0.1)
    assert candidate.bounding_box.y == pytest.approx(0.2)
    assert candidate.bounding_box.width == pytest.approx(0.5)
    assert candidate.bounding_box.height == pytest.approx(0.5)


def test_detect_skips_malformed_annotations() -> None:
    client = FakeVisionClient(
        response={
            "labelAnnotations": ["Pizza", None, {"description": "Soup", "score": 0.9}],
            "localizedObjectAnnotations": [
                42,
                {
                    "name": "Bread",
                    "score": 0.7,
                    "boundingPoly": {"normalizedVertices": ["a", "b", "c", "d"]},
                },
                {
                    "name": "Cake",
                    "score": 0.6,
                    "boundingPoly": {"normalizedVertices": [{"x": "left"}, {}, {}]},
                },
            ],
        }
    )
    detector = FoodDetector(client=client)

    candidates = asyncio.run(detector.detect(b"jpeg-bytes"))

    assert [candidate.label for candidate in candidates] == ["Soup", "Bread", "Cake"]
    assert candidates[1].bounding_box is None
    assert candidates[2].bounding_box is not None
    assert candidates[2].bounding_box.x == 0.0


def test_detect_sends_bytes_inline_and_uris_by_reference() -> None:
    client = FakeVisionClient()
    detector = FoodDetector(client=client)

    asyncio.run(detector.detect(b"jpeg-bytes"))
    asyncio.run(detector.detect("https://example.com/lunch.jpg"))
    asyncio.run(detector.detect("gs://bucket/dinner.jpg"))

    assert client.images[0] == {
        "content": base64.b64encode(b"jpeg-bytes").decode("utf-8")
    }
    assert client.images[1] == {
        "source": {"imageUri": "https://example.com/lunch.jpg"}
    }
    assert client.images[2] == {"source": {"imageUri": "gs://bucket/dinner.jpg"}}


def test_detect_reads_local_file(tmp_path) -> None:
    image_path = tmp_path / "meal.jpg"
    image_path.write_bytes(b"file-bytes")
    client = FakeVisionClient()
    detector = FoodDetector(client=client)

    asyncio.run(detector.detect(str(image_path)))

    assert client.images[0]["content"] == base64.b64encode(b"file-bytes").decode(
        "utf-8"
    )


def test_detect_rejects_missing_file_and_empty_bytes(tmp_path) -> None:
    client = FakeVisionClient()
    detector = FoodDetector(client=client)

    with pytest.raises(ImageUnreadableError):
        asyncio.run(detector.detect(str(tmp_path / "missing.jpg")))
    with pytest.raises(ImageUnreadableError):
        asyncio.run(detector.detect(b""))
    assert client.images == []


def test_detection_features_request_labels_and_objects() -> None:
    assert [feature["type"] for feature in DETECTION_FEATURES] == [
        "LABEL_DETECTION",
        "OBJECT_LOCALIZATION",
    ]
    assert all(feature["maxResults"] == 10 for feature in DETECTION_FEATURES)


def test_rank_candidates_keeps_highest_confidence_per_label() -> None:
    ranked = rank_candidates(
        [
            FoodCandidate(label="Salad", confidence=0.4),
            FoodCandidate(label="Bread", confidence=0.6),
            FoodCandidate(label="salad", confidence=0.9),
        ]
    )

    assert ranked == [
        FoodCandidate(label="salad", confidence=0.9),
        FoodCandidate(label="Bread", confidence=0.6),
    ]


def test_select_candidate_only_when_unambiguous() -> None:
    soup = FoodCandidate(label="Soup", confidence=0.8)
    bread = FoodCandidate(label="Bread", confidence=0.7)

    assert select_candidate([soup]) == soup
    assert select_candidate([soup, bread]) is None
    assert select_candidate([]) is None
