"""Tests for the HTTP API."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4
from zoneinfo import ZoneInfo

from fastapi.testclient import TestClient

from cb_lens.api.app import create_app
from cb_lens.domain.goals import GoalType, TimePeriod
from tests.conftest import (
    USER_ID,
    FakeDetectionClient,
    InMemoryGoalRepository,
    InMemoryScanRepository,
    make_scan,
)

HEADERS = {"X-User-Id": str(USER_ID), "X-Timezone": "Europe/Copenhagen"}

CANDIDATE = {
    "id": "dish-1",
    "name": "Chicken Curry",
    "category": "Main",
    "nutrients_per_100g": {
        "calories_per_100g": 200,
        "protein_per_100g": 20,
        "carbs_per_100g": 25,
        "fat_per_100g": 8,
    },
    "confidence_score": 0.8,
}


def test_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_detect_returns_ranked_candidates(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/scans/detect",
        headers=HEADERS,
        json={
            "image_base64": "aW1hZ2U=",
            "canteen_location": "HQ Canteen",
            "menu_date": "2024-03-06",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert [candidate["id"] for candidate in body["candidates"]] == [
        "dish-1",
        "dish-2",
    ]
    assert body["menu_date"] == "2024-03-06"


def test_detect_defaults_to_callers_local_date(
    container, detection_client: FakeDetectionClient
) -> None:
    client = TestClient(create_app(container))
    headers = {"X-User-Id": str(USER_ID), "X-Timezone": "Pacific/Kiritimati"}

    response = client.post(
        "/scans/detect",
        headers=headers,
        json={"image_base64": "aW1hZ2U=", "canteen_location": "HQ Canteen"},
    )

    local_today = datetime.now(tz=ZoneInfo("Pacific/Kiritimati")).date()
    assert response.status_code == 200
    assert detection_client.calls[0][2] == local_today
    assert response.json()["menu_date"] == local_today.isoformat()


def test_save_scan_and_update_notes(
    container, scan_repository: InMemoryScanRepository
) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/scans",
        headers=HEADERS,
        json={
            "candidate": CANDIDATE,
            "portion_preset": "half",
            "estimated_grams": 250,
            "canteen_location": "HQ Canteen",
            "alternatives": [
                CANDIDATE,
                {**CANDIDATE, "id": "dish-2", "confidence_score": 0.5},
                {"id": "broken"},
            ],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["confidence"] == "medium"
    assert body["estimated_grams"] == 125
    assert body["scaled_carbs"] == 31
    assert [alt["id"] for alt in body["alternatives"]] == ["dish-2"]

    notes = client.patch(
        f"/scans/{body['id']}/notes", headers=HEADERS, json={"notes": "Tasty"}
    )
    listed = client.get("/scans", headers=HEADERS)

    assert notes.status_code == 200
    assert scan_repository.scans[0].notes == "Tasty"
    assert listed.json()["scans"][0]["notes"] == "Tasty"


def test_save_scan_without_candidate_is_unprocessable(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/scans",
        headers=HEADERS,
        json={"estimated_grams": 250, "canteen_location": "HQ Canteen"},
    )

    assert response.status_code == 422
    assert response.json()["error"] == "MissingCandidateError"


def test_requests_need_a_valid_user(container) -> None:
    client = TestClient(create_app(container))

    missing = client.get("/goals/progress")
    invalid = client.get("/goals/progress", headers={"X-User-Id": "nope"})
    bad_zone = client.get(
        "/goals/progress",
        headers={"X-User-Id": str(USER_ID), "X-Timezone": "Mars/Olympus"},
    )

    assert missing.status_code == 400
    assert invalid.status_code == 400
    assert bad_zone.status_code == 400


def test_stats_endpoint_and_invalid_window(
    container, scan_repository: InMemoryScanRepository
) -> None:
    scan_repository.scans = [
        make_scan(datetime(2024, 3, 1, 23, 30, tzinfo=UTC), calories=700)
    ]
    client = TestClient(create_app(container))

    response = client.get(
        "/stats/daily",
        headers=HEADERS,
        params={"start": "2024-03-01", "end": "2024-03-03"},
    )
    inverted = client.get(
        "/stats/weekly",
        headers=HEADERS,
        params={"start": "2024-03-03", "end": "2024-03-01"},
    )

    assert response.status_code == 200
    body = response.json()
    assert [bucket["total_calories"] for bucket in body["buckets"]] == [0, 700]
    assert body["avg_daily_calories"] == 350
    assert inverted.status_code == 422
    assert inverted.json()["error"] == "InvalidWindowError"


def test_goal_endpoints(container, goal_repository: InMemoryGoalRepository) -> None:
    client = TestClient(create_app(container))

    created = client.post(
        "/goals",
        headers=HEADERS,
        json={"goal_type": "water", "target_value": 8, "time_period": "daily"},
    )
    rejected = client.post(
        "/goals", headers=HEADERS, json={"goal_type": "protein", "target_value": 0}
    )
    recorded = client.put(
        "/goals/water/progress", headers=HEADERS, json={"value": 10}
    )
    missing = client.put("/goals/fat/progress", headers=HEADERS, json={"value": 1})
    progress = client.get("/goals/progress", headers=HEADERS)

    assert created.status_code == 200
    assert rejected.status_code == 422
    assert recorded.json()["display_progress_percent"] == 100
    assert recorded.json()["raw_progress_percent"] == 125
    assert missing.status_code == 404
    assert progress.json()["goals"][0]["current_value"] == 10

    other_user = {"X-User-Id": str(uuid4()), "X-Timezone": "UTC"}
    foreign = client.delete(f"/goals/{created.json()['id']}", headers=other_user)
    assert foreign.status_code == 200
    assert len(goal_repository.list_active_goals(USER_ID)) == 1

    deleted = client.delete(f"/goals/{created.json()['id']}", headers=HEADERS)
    assert deleted.status_code == 200
    assert goal_repository.list_active_goals(USER_ID) == []


def test_engagement_and_insight_endpoints(
    container, scan_repository: InMemoryScanRepository
) -> None:
    now = datetime.now(tz=UTC)
    scan_repository.scans = [
        make_scan(now - timedelta(days=offset), calories=2400, protein=90)
        for offset in range(3)
    ]
    client = TestClient(create_app(container))

    processed = client.post("/engagement/process", headers=HEADERS)
    listed = client.get("/insights", headers=HEADERS)
    projection = client.get("/insights/projection", headers=HEADERS)

    assert processed.status_code == 200
    assert processed.json()["streak"]["current_count"] == 1
    assert processed.json()["insights"][0]["title"] == "Low Protein Intake"
    assert listed.json()["insights"][0]["title"] == "Low Protein Intake"
    assert projection.json()["projection"]["trend"] == "increasing"


def test_report_endpoints(
    container,
    scan_repository: InMemoryScanRepository,
    goal_repository: InMemoryGoalRepository,
) -> None:
    scan_repository.scans = [make_scan(datetime.now(tz=UTC), notes="ok")]
    goal_repository.create_goal(USER_ID, GoalType.CALORIES, 500, TimePeriod.DAILY)
    client = TestClient(create_app(container))

    report = client.get("/reports/analytics", headers=HEADERS, params={"days": 1})
    exported = client.get("/reports/scans.csv", headers=HEADERS)

    assert report.status_code == 200
    assert report.json()["summary"]["totalScans"] == 1
    assert report.json()["summary"]["calorieGoalProgress"] == "100%"
    assert exported.status_code == 200
    assert exported.headers["content-type"].startswith("text/csv")
    assert exported.text.splitlines()[0].startswith('"Date","Dish"')


def test_notes_for_unknown_scan_are_ignored(container) -> None:
    client = TestClient(create_app(container))

    response = client.patch(
        f"/scans/{uuid4()}/notes", headers=HEADERS, json={"notes": "x"}
    )

    assert response.status_code == 200
