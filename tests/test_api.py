import json
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from api.schemas import to_yards
from api.settings import AppSettings
from database import DatabaseManager
from geo.geomath import METERS_PER_YARD
from llm.prompts import AdviceResponse
from tracking.config import TrackingConfig
from tracking.shot_tracker import estimate_club

from conftest import HOLE1_PIN, HOLE1_TEE, T0


class FakeProvider:
    def __init__(self):
        self.questions = []

    async def get_advice(self, question, context):
        self.questions.append(question)
        return AdviceResponse(
            advice=f"Hole {context['hole']['number']}: aim left of the pin.",
            recommended_club="8-Iron",
        )


# ================================================================
# Fixtures
# ================================================================

@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def client(course, provider):
    manager = DatabaseManager.in_memory()
    manager.courses.add_course(course)
    app = create_app(
        settings=AppSettings(),
        db_manager=manager,
        advice_provider=provider,
        tracking_config=TrackingConfig(),
    )
    return TestClient(app)


@pytest.fixture
def headers():
    return {"X-User-Id": str(uuid4())}


@pytest.fixture
def round_id(client, course, headers):
    resp = client.post("/api/rounds/start", json={"courseId": course.id}, headers=headers)
    assert resp.status_code == 201
    return resp.json()["id"]


def _fix_body(point, seconds=0, **extra):
    body = {
        "latitude": point.latitude,
        "longitude": point.longitude,
        "accuracyMeters": 5.0,
        "recordedAt": T0.replace(second=seconds).isoformat(),
    }
    body.update(extra)
    return body


# ================================================================
# Identity and health
# ================================================================

def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "database": True}


@pytest.mark.parametrize("header", [{}, {"X-User-Id": "bob"}])
def test_requests_need_a_user_id(client, header):
    resp = client.get("/api/rounds", headers=header)
    assert resp.status_code == 401


# ================================================================
# Round lifecycle
# ================================================================

def test_start_pause_resume_complete(client, headers, round_id):
    resp = client.get("/api/rounds/active", headers=headers)
    assert resp.json()["id"] == round_id
    assert resp.json()["status"] == "in_progress"

    assert client.put(f"/api/rounds/{round_id}/pause", headers=headers).json()["status"] == "paused"
    assert client.put(f"/api/rounds/{round_id}/resume", headers=headers).json()["status"] == "in_progress"

    resp = client.put(f"/api/rounds/{round_id}/complete", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"
    assert resp.json()["end_time"] is not None

    assert client.get("/api/rounds/active", headers=headers).status_code == 404
    completed = client.get("/api/rounds", params={"status": "completed"}, headers=headers)
    assert [r["id"] for r in completed.json()] == [round_id]


def test_second_start_returns_conflict_with_current_status(client, course, headers, round_id):
    resp = client.post("/api/rounds/start", json={"course_id": course.id}, headers=headers)

    assert resp.status_code == 409
    body = resp.json()
    assert body["error"] == "state_conflict"
    assert body["current_status"] == "in_progress"
    assert body["round_id"] == round_id


def test_invalid_transition_is_conflict(client, headers, round_id):
    resp = client.put(f"/api/rounds/{round_id}/resume", headers=headers)
    assert resp.status_code == 409
    assert resp.json()["current_status"] == "in_progress"


def test_unknown_course_is_not_found(client, headers):
    resp = client.post("/api/rounds/start", json={"courseId": str(uuid4())}, headers=headers)
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_other_users_round_is_forbidden(client, round_id):
    resp = client.get(f"/api/rounds/{round_id}", headers={"X-User-Id": str(uuid4())})
    assert resp.status_code == 403


def test_hole_scores(client, headers, round_id):
    resp = client.put(
        f"/api/rounds/{round_id}/holes/1/score",
        json={"score": 5, "putts": 2, "fairwayHit": True, "greenInRegulation": False},
        headers=headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["hole_score"]["score"] == 5
    assert body["round"]["total_score"] == 5
    assert body["round"]["fairways_hit"] == 1

    bad = client.put(f"/api/rounds/{round_id}/holes/1/score", json={"score": 16}, headers=headers)
    assert bad.status_code == 400
    assert bad.json()["error"] == "validation_error"

    scores = client.get(f"/api/rounds/{round_id}/scores", headers=headers).json()
    assert [(s["hole_number"], s["score"]) for s in scores] == [(1, 5)]


def test_complete_with_camel_case_totals_and_statistics(client, headers, round_id):
    resp = client.put(
        f"/api/rounds/{round_id}/complete",
        json={"totalScore": 82, "totalPutts": 31, "fairwaysHit": 7, "greensInRegulation": 9},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["total_score"] == 82

    stats = client.get("/api/statistics/performance", headers=headers)
    assert stats.status_code == 200
    body = stats.json()
    assert body["total_rounds"] == 1
    assert body["average_score"] == pytest.approx(82.0)
    assert body["fairway_percentage"] == pytest.approx(50.0)
    assert body["gir_percentage"] == pytest.approx(50.0)


def test_statistics_rejects_inverted_date_range(client, headers):
    resp = client.get(
        "/api/statistics/performance",
        params={"startDate": "2026-05-02", "endDate": "2026-05-01"},
        headers=headers,
    )
    assert resp.status_code == 400


def test_course_statistics(client, course, headers, round_id):
    client.put(f"/api/rounds/{round_id}/complete", json={"totalScore": 82}, headers=headers)

    resp = client.get(f"/api/statistics/courses/{course.id}", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["course_id"] == course.id
    assert body["rounds_played"] == 1
    assert body["course_par"] is None
    assert body["analysis"]["average_score"] == pytest.approx(82.0)

    other_user = {"X-User-Id": str(uuid4())}
    empty = client.get(f"/api/statistics/courses/{course.id}", headers=other_user)
    assert empty.status_code == 404

    unknown = client.get(f"/api/statistics/courses/{uuid4()}", headers=headers)
    assert unknown.status_code == 404
    assert unknown.json()["error"] == "not_found"

    inverted = client.get(
        f"/api/statistics/courses/{course.id}",
        params={"startDate": "2026-05-02", "endDate": "2026-05-01"},
        headers=headers,
    )
    assert inverted.status_code == 400


# ================================================================
# Locations and shots
# ================================================================

def test_location_fix_is_enriched_in_yards(client, headers, round_id):
    resp = client.post(f"/api/rounds/{round_id}/locations",
                       json=_fix_body(HOLE1_TEE), headers=headers)

    assert resp.status_code == 200
    fix = resp.json()["fix"]
    assert fix["position_on_hole"] == "tee"
    assert fix["hole_number"] == 1
    assert fix["distance_to_tee_yards"] == 0.0
    assert fix["distance_to_pin_yards"] == pytest.approx(229.6, abs=2)
    assert "distance_to_pin_meters" not in fix
    assert "user_id" not in fix
    assert resp.json()["shots"] == []

    history = client.get(f"/api/rounds/{round_id}/locations", headers=headers).json()
    assert len(history) == 1


def test_invalid_coordinates_are_bad_request(client, headers, round_id):
    resp = client.post(
        f"/api/rounds/{round_id}/locations",
        json=_fix_body(HOLE1_TEE, latitude=200.0),
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_coordinates"


def test_mixed_timestamp_formats_are_accepted(client, headers, round_id):
    url = f"/api/rounds/{round_id}/locations"
    naive = _fix_body(HOLE1_TEE, recordedAt="2026-05-02T09:00:00")
    aware = _fix_body(HOLE1_TEE, recordedAt="2026-05-02T09:00:05Z")

    assert client.post(url, json=naive, headers=headers).status_code == 200
    assert client.post(url, json=aware, headers=headers).status_code == 200

    history = client.get(url, headers=headers)
    assert history.status_code == 200
    assert len(history.json()) == 2


def test_fix_on_paused_round_is_conflict(client, headers, round_id):
    client.put(f"/api/rounds/{round_id}/pause", headers=headers)

    resp = client.post(f"/api/rounds/{round_id}/locations",
                       json=_fix_body(HOLE1_TEE), headers=headers)

    assert resp.status_code == 409
    assert resp.json()["error"] == "invalid_round_state"
    assert resp.json()["current_status"] == "paused"


def test_sensor_shots_and_confirmation(client, headers, round_id):
    resp = client.post(
        f"/api/rounds/{round_id}/holes/1/shots",
        json={"shots": [{
            "startLatitude": HOLE1_TEE.latitude,
            "startLongitude": HOLE1_TEE.longitude,
            "endLatitude": HOLE1_PIN.latitude,
            "endLongitude": HOLE1_PIN.longitude,
            "club": "3-Wood",
        }]},
        headers=headers,
    )
    assert resp.status_code == 201
    shot = resp.json()[0]
    assert shot["source"] == "sensor"
    assert shot["shot_number"] == 1
    assert shot["estimated_club"] == "3-Wood"
    assert shot["distance_yards"] == pytest.approx(229.6, abs=2)

    confirmed = client.put(f"/api/rounds/{round_id}/holes/1/shots/1/confirm", headers=headers)
    assert confirmed.status_code == 200
    assert confirmed.json()["user_confirmed"] is True

    shots = client.get(f"/api/rounds/{round_id}/shots", params={"hole": 1}, headers=headers)
    assert [s["user_confirmed"] for s in shots.json()] == [True]

    missing = client.put(f"/api/rounds/{round_id}/holes/1/shots/9/confirm", headers=headers)
    assert missing.status_code == 404


def test_empty_sensor_shot_list_is_rejected(client, headers, round_id):
    resp = client.post(f"/api/rounds/{round_id}/holes/1/shots",
                       json={"shots": []}, headers=headers)
    assert resp.status_code == 422


# ================================================================
# Advice
# ================================================================

def test_advice(client, headers, round_id, provider):
    resp = client.post(f"/api/rounds/{round_id}/advice",
                       json={"question": "What should I hit?"}, headers=headers)

    assert resp.status_code == 200
    assert resp.json()["recommended_club"] == "8-Iron"
    assert resp.json()["advice"].startswith("Hole 1")
    assert provider.questions == ["What should I hit?"]

    empty = client.post(f"/api/rounds/{round_id}/advice", json={"question": " "}, headers=headers)
    assert empty.status_code == 400


def test_yards_conversion_matches_club_table():
    assert to_yards(None) is None
    assert to_yards(91.44) == 100.0
    # Same yard boundary on both sides of the API.
    assert to_yards(101 * METERS_PER_YARD) == 101.0
    assert estimate_club(101 * METERS_PER_YARD) == "Pitching Wedge"
    assert estimate_club(99 * METERS_PER_YARD) == "Sand Wedge"


# ================================================================
# Settings and startup
# ================================================================

def test_settings_from_env():
    settings = AppSettings.from_env({
        "DATABASE_URL": "postgresql://golf@localhost/golf",
        "GOLF_CORS_ORIGINS": "https://app.example, http://localhost:3000",
        "GOLF_LOG_LEVEL": "debug",
    })
    assert settings.storage == "postgres"
    assert settings.cors_origins == ["https://app.example", "http://localhost:3000"]
    assert settings.log_level == "DEBUG"

    defaults = AppSettings.from_env({})
    assert defaults.storage == "memory"
    assert defaults.database_url is None


def test_tracking_config_from_env():
    config = TrackingConfig.from_env({
        "GOLF_TRACKING_MIN_SHOT_DISTANCE_M": "15",
        "GOLF_TRACKING_HOLE_DETECTION_WINDOW": " 2 ",
        "GOLF_TRACKING_GREEN_RADIUS_M": "",
    })
    assert config.min_shot_distance_m == 15.0
    assert config.hole_detection_window == 2
    assert config.green_radius_m == 15.0


def test_startup_opens_memory_storage_with_seeded_courses(tmp_path, course):
    courses_file = tmp_path / "courses.json"
    courses_file.write_text(json.dumps([course.model_dump(mode="json")]))
    app = create_app(
        settings=AppSettings(courses_file=str(courses_file)),
        tracking_config=TrackingConfig(),
    )

    with TestClient(app) as client:
        resp = client.post(
            "/api/rounds/start",
            json={"courseId": course.id},
            headers={"X-User-Id": str(uuid4())},
        )
        assert resp.status_code == 201
        assert client.get("/api/health").json()["database"] is True
