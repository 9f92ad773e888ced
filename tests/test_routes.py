"""
Test API Routes

Tests for:
- Aircraft creation/lookup
- Usage update endpoint (propagation result shape)
- Alert board
- Component registration, threshold writes, overhaul reset
- Domain error -> HTTP status mapping
"""

import pytest
from fastapi.testclient import TestClient

from database.mongodb import get_fleet_store
from server import app
from services.deps import get_coordinator
from services.propagation import PropagationCoordinator


@pytest.fixture
def client(store, audit_sink):
    app.dependency_overrides[get_fleet_store] = lambda: store
    app.dependency_overrides[get_coordinator] = lambda: PropagationCoordinator(store, audit_sinks=[audit_sink])
    # No context manager: the MongoDB lifespan is not started
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded(store, semaforo_config):
    store.add_aircraft("AC-1", 1000.0, registration="XA-HEL")
    store.add_component("ENG-1", "AC-1", usage=1930.0, interval=2000.0, config=semaforo_config, name="Engine")
    store.add_component("ROT-1", "AC-1", usage=1500.0, interval=2000.0, config=semaforo_config, name="Main rotor")
    return store


THRESHOLD_BODY = {
    "enabled": True,
    "unit": "HOURS",
    "boundaries": {"purple": 50, "red": 50, "orange": 30, "yellow": 20, "green": 0}
}


class TestAircraftRoutes:
    def test_create_aircraft_uppercases_registration(self, client, store):
        response = client.post("/api/aircraft", json={"registration": " xa-abc ", "flight_hours": 120.5})

        assert response.status_code == 201
        data = response.json()
        assert data["registration"] == "XA-ABC"
        assert data["flight_hours"] == 120.5
        assert data["version"] == 0
        assert data["_id"] in store.aircrafts

    def test_get_aircraft(self, client, seeded):
        response = client.get("/api/aircraft/AC-1")

        assert response.status_code == 200
        assert response.json()["registration"] == "XA-HEL"

    def test_get_unknown_aircraft_is_404(self, client, store):
        response = client.get("/api/aircraft/missing")

        assert response.status_code == 404
        assert "missing" in response.json()["detail"]

    def test_list_components(self, client, seeded):
        response = client.get("/api/aircraft/AC-1/components")

        assert response.status_code == 200
        assert sorted(item["_id"] for item in response.json()) == ["ENG-1", "ROT-1"]


class TestUsageRoute:
    def test_usage_update_reports_escalation(self, client, seeded, audit_sink):
        response = client.post("/api/aircraft/AC-1/usage", json={"new_total_usage": 1050, "reason": "FLIGHT"})

        assert response.status_code == 200
        data = response.json()
        assert data["delta"] == 50.0
        assert data["propagated"] is True
        assert data["components_updated"] == 2
        assert data["aircraft"]["flight_hours"] == 1050.0
        assert [item["component_id"] for item in data["escalations"]] == ["ENG-1"]
        assert data["escalations"][0]["alert"]["level"] == "RED"
        assert data["escalations"][0]["alert"]["remaining"] == 20.0
        assert len(audit_sink.events) == 1

    def test_usage_update_without_propagation(self, client, seeded):
        response = client.post("/api/aircraft/AC-1/usage", json={"new_total_usage": 1050, "propagate": False})

        assert response.status_code == 200
        assert response.json()["propagated"] is False
        assert seeded.components["ENG-1"].usage == 1930.0

    def test_negative_usage_is_400(self, client, seeded):
        response = client.post("/api/aircraft/AC-1/usage", json={"new_total_usage": -5})

        assert response.status_code == 400
        assert seeded.aircraft_saves == 0

    def test_unknown_aircraft_is_404(self, client, store):
        response = client.post("/api/aircraft/ghost/usage", json={"new_total_usage": 5})

        assert response.status_code == 404

    def test_aircraft_storage_failure_is_503(self, client, seeded):
        seeded.fail_aircraft_save = True

        response = client.post("/api/aircraft/AC-1/usage", json={"new_total_usage": 1050})

        assert response.status_code == 503

    def test_retry_failed_components(self, client, seeded):
        seeded.failing_components.add("ROT-1")
        first = client.post("/api/aircraft/AC-1/usage", json={"new_total_usage": 1050}).json()
        seeded.failing_components.clear()

        response = client.post("/api/aircraft/AC-1/usage/retry", json={
            "component_ids": [failure["component_id"] for failure in first["failures"]],
            "delta": first["delta"]
        })

        assert response.status_code == 200
        assert response.json()["components_updated"] == 1
        assert seeded.components["ROT-1"].usage == 1550.0
        assert seeded.components["ENG-1"].usage == 1980.0

    def test_retry_unknown_component_is_404(self, client, seeded):
        response = client.post("/api/aircraft/AC-1/usage/retry", json={"component_ids": ["nope"], "delta": 5})

        assert response.status_code == 404

    def test_correction_below_zero_usage_is_400(self, client, store, semaforo_config):
        store.add_aircraft("AC-2", 100.0)
        store.add_component("NEW-1", "AC-2", usage=5.0, interval=100.0, config=semaforo_config)

        response = client.post("/api/aircraft/AC-2/usage", json={"new_total_usage": 90})

        assert response.status_code == 400
        assert store.aircrafts["AC-2"].flight_hours == 100.0


class TestAlertBoardRoute:
    def test_alert_board(self, client, seeded):
        seeded.components["ENG-1"].usage = 1980.0

        response = client.get("/api/aircraft/AC-1/alerts")

        assert response.status_code == 200
        data = response.json()
        assert data["registration"] == "XA-HEL"
        assert data["summary"]["total"] == 2
        assert data["summary"]["by_level"]["RED"] == 1
        assert data["summary"]["by_level"]["GREEN"] == 1
        assert data["summary"]["worst_level"] == "RED"
        assert data["summary"]["health_percentage"] == 50
        assert [item["component_id"] for item in data["priority_alerts"]] == ["ENG-1"]
        assert len(data["alerts"]) == 2

    def test_alert_board_limit(self, client, seeded):
        seeded.components["ENG-1"].usage = 1980.0
        seeded.components["ROT-1"].usage = 1990.0

        response = client.get("/api/aircraft/AC-1/alerts", params={"limit": 1})

        assert [item["component_id"] for item in response.json()["priority_alerts"]] == ["ROT-1"]


class TestComponentRoutes:
    def test_presets(self, client):
        response = client.get("/api/components/presets")

        assert response.status_code == 200
        assert set(response.json()) == {"STANDARD", "CONSERVATIVE", "AGGRESSIVE", "PERCENT"}

    def test_create_component(self, client, seeded):
        response = client.post("/api/components", json={
            "aircraft_id": "AC-1",
            "name": "Tail rotor gearbox",
            "component_type": "TAIL_ROTOR",
            "usage": 1990,
            "interval": 2000,
            "threshold": THRESHOLD_BODY
        })

        assert response.status_code == 201
        data = response.json()
        assert data["last_alert"]["level"] == "RED"
        assert data["_id"] in seeded.components

    def test_create_component_with_bad_boundaries_is_422(self, client, seeded):
        bad = dict(THRESHOLD_BODY, boundaries={"purple": 10, "red": 50, "orange": 30, "yellow": 20, "green": 0})

        response = client.post("/api/components", json={
            "aircraft_id": "AC-1",
            "name": "Bad",
            "interval": 100,
            "threshold": bad
        })

        assert response.status_code == 422
        assert len(seeded.components) == 2

    def test_get_component(self, client, seeded):
        response = client.get("/api/components/ENG-1")

        assert response.status_code == 200
        assert response.json()["name"] == "Engine"

    def test_get_unknown_component_is_404(self, client, store):
        assert client.get("/api/components/nope").status_code == 404

    def test_update_threshold(self, client, seeded):
        body = dict(THRESHOLD_BODY, boundaries={"purple": 80, "red": 80, "orange": 60, "yellow": 40, "green": 0})

        response = client.put("/api/components/ENG-1/threshold", json=body)

        assert response.status_code == 200
        assert response.json()["last_alert"]["level"] == "RED"
        assert seeded.components["ENG-1"].threshold.boundaries.red == 80

    def test_update_threshold_rejects_unordered_boundaries(self, client, seeded):
        body = dict(THRESHOLD_BODY, boundaries={"purple": 50, "red": 20, "orange": 30, "yellow": 10, "green": 0})

        response = client.put("/api/components/ENG-1/threshold", json=body)

        assert response.status_code == 422
        assert seeded.components["ENG-1"].threshold.boundaries.red == 50

    def test_reset_component(self, client, seeded):
        response = client.post("/api/components/ENG-1/reset", json={"notes": "Overhaul at 2000h"})

        assert response.status_code == 200
        assert response.json()["usage"] == 0.0
        assert seeded.components["ENG-1"].usage == 0.0


class TestHealthRoutes:
    def test_root(self, client):
        assert client.get("/").json()["status"] == "running"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}
