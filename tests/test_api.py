"""Tests for the FlexShop HTTP endpoints."""

import pytest
from fastapi.testclient import TestClient

from api.server import app


SCENARIO_A = {
    "name": "Test",
    "num_machines": 3,
    "max_solve_time_seconds": 10,
    "jobs": [
        {"tasks": [
            {"alternatives": [{"machine_id": 1, "duration": 3}, {"machine_id": 2, "duration": 6}]},
            {"alternatives": [{"machine_id": 1, "duration": 3}, {"machine_id": 2, "duration": 3}]},
        ]},
        {"tasks": [
            {"alternatives": [{"machine_id": 1, "duration": 3}, {"machine_id": 2, "duration": 6}]},
            {"alternatives": [{"machine_id": 2, "duration": 3}, {"machine_id": 3, "duration": 2}]},
            {"alternatives": [{"machine_id": 3, "duration": 3}]},
        ]},
    ],
}


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


class TestInfo:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_root_lists_tools(self, client):
        names = [t["name"] for t in client.get("/").json()["tools"]]
        assert names == ["optimize_schedule", "validate_schedule"]


class TestOptimize:
    def test_scenario_a(self, client):
        resp = client.post("/optimize_schedule", json=SCENARIO_A)
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "optimal"
        assert body["schedule"]["makespan"] == 9
        assert [m["name"] for m in body["schedule"]["machines"]] == ["M_1", "M_2", "M_3"]

    def test_zero_machines(self, client):
        resp = client.post("/optimize_schedule", json={**SCENARIO_A, "num_machines": 0})
        assert resp.status_code == 200
        assert resp.json()["status"] == "build_error"

    def test_malformed_request(self, client):
        resp = client.post("/optimize_schedule", json={"jobs": []})
        assert resp.status_code == 422


class TestValidate:
    def test_overlap_detected(self, client):
        schedule = [
            {"job_id": 1, "task_id": 1, "machine_id": 1, "alternative": 0, "start": 0, "end": 3, "duration": 3},
            {"job_id": 2, "task_id": 1, "machine_id": 1, "alternative": 0, "start": 1, "end": 4, "duration": 3},
        ]
        resp = client.post("/validate_schedule", json={**SCENARIO_A, "schedule": schedule})
        assert resp.status_code == 200
        body = resp.json()
        assert not body["is_valid"]
        assert any(v["violation_type"] == "overlap" for v in body["violations"])

    def test_invalid_instance(self, client):
        payload = {
            "num_machines": 1,
            "jobs": [{"tasks": [{"alternatives": []}]}],
            "schedule": [
                {"job_id": 1, "task_id": 1, "machine_id": 1, "alternative": 0, "start": 0, "end": 1, "duration": 1},
            ],
        }
        resp = client.post("/validate_schedule", json=payload)
        assert resp.status_code == 422
        assert resp.json()["status"] == "invalid_instance"
