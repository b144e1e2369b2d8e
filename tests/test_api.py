"""
Tests for the FastAPI application.

The store and orchestrator dependencies are overridden with an in-memory
store and a stubbed text service.
"""

import json

import pytest
from fastapi.testclient import TestClient

from conftest import StubTextService, load_fixture
from program_pipeline.api.dependencies import get_orchestrator, get_store
from program_pipeline.api.main import app
from program_pipeline.generator import ProgramGenerator
from program_pipeline.pipeline import PipelineOrchestrator


@pytest.fixture
def client(store, valid_program):
    def orchestrator_override():
        service = StubTextService([json.dumps(valid_program)])
        return PipelineOrchestrator(store=store, generator=ProgramGenerator(service))

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_orchestrator] = orchestrator_override
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def intermediate_payload():
    return {"user_profile": load_fixture("profile_intermediate.json")}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "program-pipeline-api"}


def test_root(client):
    assert client.get("/").json()["docs"] == "/docs"


# ===== GENERATIONS =====


def test_create_generation(client, intermediate_payload):
    response = client.post("/api/generations", json=intermediate_payload)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["record_id"]


def test_create_generation_rejects_invalid_profile(client):
    response = client.post("/api/generations", json={"user_profile": {"training_frequency_days": 3}})
    assert response.status_code == 422


def test_run_generation_completes(client, intermediate_payload, valid_program):
    record_id = client.post("/api/generations", json=intermediate_payload).json()["record_id"]

    response = client.post(f"/api/generations/{record_id}/run")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert body["program"]["programName"] == valid_program["programName"]
    assert body["periodization_model"] == "Hypertrophy-Focused Block Periodization"

    fetched = client.get(f"/api/generations/{record_id}").json()
    assert fetched["status"] == "completed"
    assert fetched["program"] == body["program"]


def test_run_completed_generation_conflicts(client, intermediate_payload):
    record_id = client.post("/api/generations", json=intermediate_payload).json()["record_id"]
    client.post(f"/api/generations/{record_id}/run")

    response = client.post(f"/api/generations/{record_id}/run")

    assert response.status_code == 409
    body = response.json()
    assert "cannot be started while completed" in body["error"]
    assert body["message"] == body["error"]


def test_run_unknown_generation(client):
    response = client.post("/api/generations/missing/run")

    assert response.status_code == 404
    assert response.json()["error"] == "Generation record not found: missing"


def test_get_unknown_generation(client):
    assert client.get("/api/generations/missing").status_code == 404


# ===== VALIDATION =====


def test_validate_valid_program(client, valid_program):
    response = client.post("/api/validate", json={"program": valid_program})

    assert response.status_code == 200
    body = response.json()
    assert body["is_valid"] is True
    assert body["errors"] == []


def test_validate_invalid_program_is_not_http_error(client, valid_program):
    valid_program["durationWeeksTotal"] = 9
    response = client.post("/api/validate", json={"program": valid_program})

    assert response.status_code == 200
    body = response.json()
    assert body["is_valid"] is False
    assert body["errors"][0]["kind"] == "STRUCTURAL"
    assert body["errors"][0]["severity"] == "HIGH"


# ===== PROFILES =====


def test_analyze_profile(client, intermediate_payload):
    response = client.post("/api/profiles/analyze", json=intermediate_payload)

    assert response.status_code == 200
    body = response.json()
    assert body["volume_parameters"]["recovery_capacity"] == 9
    assert body["injuries"]["identified_areas"] == ["Knees"]
    assert body["volume_landmarks"]["chest"] == {"MEV": 14, "MAV": 32, "MRV": 46}
    assert body["weak_point_analysis"]["primary_weak_points"] == ["WEAK_HORIZONTAL_PRESS"]
    assert body["periodization_plan"]["model_key"] == "hypertrophy_focused"


def test_analyze_profile_without_lifts(client):
    response = client.post(
        "/api/profiles/analyze", json={"user_profile": load_fixture("profile_beginner.json")}
    )

    body = response.json()
    assert body["weak_point_analysis"] is None
    assert body["periodization_plan"]["program_duration_weeks"] == 4
