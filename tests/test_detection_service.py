"""Tests for dish detection."""

import asyncio
from dataclasses import dataclass
from datetime import date

import httpx
import pytest

from cb_lens.services.detection import DetectionService
from tests.conftest import FakeDetectionClient


def test_detect_ranks_candidates_by_score() -> None:
    client = FakeDetectionClient()
    service = DetectionService(client)

    result = asyncio.run(service.detect("aW1hZ2U=", "HQ Canteen", date(2024, 3, 6)))

    assert [candidate.id for candidate in result.candidates] == ["dish-1", "dish-2"]
    assert result.candidates[0].nutrients_per_100g.calories_per_100g == 200
    assert result.processing_time_ms == 412
    assert client.calls == [("aW1hZ2U=", "HQ Canteen", date(2024, 3, 6))]


def test_detect_drops_malformed_matches() -> None:
    client = FakeDetectionClient(
        payload={
            "matches": [
                {"id": "dish-1", "name": "Curry", "calories_per_100g": 200},
                {"id": "dish-2", "name": "Soup", "calories_per_100g": 40, "score": 0.7},
                {"id": "dish-3", "name": "Pie", "score": "high"},
            ]
        }
    )

    result = asyncio.run(
        DetectionService(client).detect("aW1hZ2U=", "HQ", date(2024, 3, 6))
    )

    assert [candidate.id for candidate in result.candidates] == ["dish-2"]
    assert result.processing_time_ms is None


def test_detect_accepts_tier_only_matches() -> None:
    client = FakeDetectionClient(
        payload={
            "matches": [
                {
                    "id": "dish-1",
                    "name": "Chicken Curry",
                    "category": "Main",
                    "calories_per_100g": 200,
                    "protein_per_100g": 20,
                    "carbs_per_100g": 25,
                    "fat_per_100g": 8,
                    "confidence": "medium",
                },
                {
                    "id": "dish-2",
                    "name": "Veggie Lasagna",
                    "category": "Vegetarian",
                    "calories_per_100g": 150,
                    "protein_per_100g": 7,
                    "carbs_per_100g": 18,
                    "fat_per_100g": 6,
                    "confidence": "high",
                },
            ],
            "processingTime": 35,
        }
    )

    result = asyncio.run(
        DetectionService(client).detect("aW1hZ2U=", "HQ", date(2024, 3, 6))
    )

    assert [candidate.id for candidate in result.candidates] == ["dish-2", "dish-1"]
    assert [candidate.confidence_score for candidate in result.candidates] == [
        0.9,
        0.7,
    ]
    assert result.candidates[1].nutrients_per_100g.protein_per_100g == 20


def test_detect_limits_candidates() -> None:
    matches = [
        {"id": f"dish-{index}", "name": "Dish", "calories_per_100g": 1, "score": 0.1}
        for index in range(5)
    ]
    client = FakeDetectionClient(payload={"matches": matches})

    result = asyncio.run(
        DetectionService(client, max_candidates=3).detect("x", "HQ", date(2024, 3, 6))
    )

    assert len(result.candidates) == 3


@dataclass
class _FlakyClient:
    failures: int
    calls: int = 0

    async def detect(
        self, image_base64: str, canteen_location: str, menu_date: date
    ) -> dict[str, object]:
        self.calls += 1
        if self.calls <= self.failures:
            request = httpx.Request("POST", "https://example.test")
            raise httpx.HTTPStatusError(
                "boom", request=request, response=httpx.Response(503, request=request)
            )
        return {"matches": []}


def test_detect_retries_once() -> None:
    client = _FlakyClient(failures=1)
    service = DetectionService(client, retry_delay_seconds=0)

    result = asyncio.run(service.detect("x", "HQ", date(2024, 3, 6)))

    assert result.candidates == []
    assert client.calls == 2


def test_detect_raises_after_retries() -> None:
    client = _FlakyClient(failures=2)
    service = DetectionService(client, retry_delay_seconds=0)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(service.detect("x", "HQ", date(2024, 3, 6)))
    assert client.calls == 2
