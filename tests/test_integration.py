from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.snowroute.api.routes import checkin as checkin_routes
from src.snowroute.api.routes import location as location_routes
from src.snowroute.main import create_app
from src.snowroute.persistence.filesystem import FileStorage
from src.snowroute.persistence.keyvalue import MemoryStore
from src.snowroute.services.checkin import service as checkin_service
from src.snowroute.services.checkin.service import CheckInService
from src.snowroute.services.geolocation.registry import WorkerLocations
from src.snowroute.services.routing import service as routing_service

SITES = [
    {"id": "A", "name": "Maple Plaza", "priority": "high", "latitude": 0.0, "longitude": 1.0},
    {"id": "B", "name": "Oak Walk", "priority": "normal", "latitude": 0.0, "longitude": 0.1},
    {"id": "C", "name": "Birch Court", "priority": "urgent", "latitude": 0.0, "longitude": 2.0},
]


@pytest.fixture
def api_client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    locations = WorkerLocations()
    monkeypatch.setattr(location_routes, "worker_locations", locations)
    monkeypatch.setattr(checkin_routes, "worker_locations", locations)
    monkeypatch.setattr(routing_service, "worker_locations", locations)
    monkeypatch.setattr(routing_service, "FileStorage", lambda: FileStorage(root=tmp_path))

    service = CheckInService(MemoryStore())
    monkeypatch.setattr(checkin_routes, "get_check_in_service", lambda: service)
    monkeypatch.setattr(checkin_service, "save_work_log", lambda record, **kwargs: "log-1")
    monkeypatch.setattr(checkin_service, "save_geofence_event", lambda event, **kwargs: None)

    routing_service.clear_route_sessions()
    yield TestClient(create_app())
    routing_service.clear_route_sessions()


def test_health_and_root(api_client: TestClient) -> None:
    assert api_client.get("/api/health").json() == {"status": "ok"}
    root = api_client.get("/").json()
    assert root["status"] == "running"
    assert root["health"] == "/api/health"


def test_optimize_toggle_and_reset_flow(api_client: TestClient) -> None:
    response = api_client.post(
        "/api/routes/optimize",
        json={"worker_id": "w1", "position": {"latitude": 0.0, "longitude": 0.0, "accuracy_m": 5}, "sites": SITES},
    )
    assert response.status_code == 200
    body = response.json()
    assert [stop["site"]["id"] for stop in body["stops"]] == ["A", "C", "B"]
    assert body["next_site_id"] == "A"

    toggled = api_client.post("/api/routes/w1/stops/A/toggle")
    assert toggled.status_code == 200
    assert toggled.json()["next_site_id"] == "C"

    current = api_client.get("/api/routes/w1").json()
    assert current["completed_count"] == 1

    missing = api_client.post("/api/routes/w1/stops/nope/toggle")
    assert missing.status_code == 404

    reset = api_client.post("/api/routes/w1/reset").json()
    assert reset["active"] is False
    assert reset["stops"] == []


def test_optimize_without_position_is_conflict(api_client: TestClient) -> None:
    response = api_client.post("/api/routes/optimize", json={"worker_id": "w9", "sites": SITES})

    assert response.status_code == 409
    assert "No position available" in response.json()["detail"]


def test_reported_location_feeds_route_start(api_client: TestClient) -> None:
    reported = api_client.post(
        "/api/location/w1",
        json={"position": {"latitude": 0.0, "longitude": 3.0, "accuracy_m": 8}},
    )
    assert reported.status_code == 200
    assert reported.json()["is_watching"] is True
    assert reported.json()["position"]["longitude"] == 3.0

    response = api_client.post("/api/routes/optimize", json={"worker_id": "w1", "sites": SITES[:1] + SITES[2:]})

    assert [stop["site"]["id"] for stop in response.json()["stops"]] == ["C", "A"]


def test_reported_location_error(api_client: TestClient) -> None:
    response = api_client.post("/api/location/w1", json={"error": "permission_denied"})

    body = response.json()
    assert body["error"] == "Location permission denied"
    assert body["error_kind"] == "permission_denied"
    assert body["position"] is None


def test_location_report_needs_position_or_error(api_client: TestClient) -> None:
    assert api_client.post("/api/location/w1", json={}).status_code == 422
    assert api_client.post("/api/location/w1", json={"error": "gremlins"}).status_code == 422


def test_check_in_and_out_flow(api_client: TestClient) -> None:
    initial = api_client.get("/api/check-in/w1/plow").json()
    assert initial["is_checked_in"] is False
    assert initial["elapsed_label"] == "0:00:00"

    checked_in = api_client.post(
        "/api/check-in/w1/plow/check-in",
        json={
            "site_id": "A",
            "site_name": "Maple Plaza",
            "service_type": "plow",
            "position": {"latitude": 43.6535, "longitude": -79.3830, "accuracy_m": 6},
            "site_latitude": 43.6532,
            "site_longitude": -79.3832,
        },
    )
    assert checked_in.status_code == 200
    body = checked_in.json()
    assert body["state"]["is_checked_in"] is True
    assert body["state"]["site_name"] == "Maple Plaza"
    assert body["event"]["within_radius"] is True
    assert body["replaced"] is None

    updated = api_client.patch("/api/check-in/w1/plow/service-type", json={"service_type": "salt"})
    assert updated.status_code == 200
    assert updated.json()["service_type"] == "salt"

    shovel = api_client.get("/api/check-in/w1/shovel").json()
    assert shovel["is_checked_in"] is False

    checked_out = api_client.post("/api/check-in/w1/plow/check-out", json={"notes": "Done"})
    assert checked_out.status_code == 200
    out = checked_out.json()
    assert out["state"]["is_checked_in"] is False
    assert out["record"]["site_id"] == "A"
    assert out["record"]["service_type"] == "salt"
    assert out["record"]["notes"] == "Done"
    assert out["work_log_id"] == "log-1"
    assert out["warnings"] == []


def test_check_in_rejects_service_type_for_other_category(api_client: TestClient) -> None:
    response = api_client.post(
        "/api/check-in/w1/shovel/check-in",
        json={"site_id": "A", "site_name": "Maple Plaza", "service_type": "plow"},
    )

    assert response.status_code == 400


def test_service_type_update_requires_check_in(api_client: TestClient) -> None:
    response = api_client.patch("/api/check-in/w1/plow/service-type", json={"service_type": "salt"})

    assert response.status_code == 409


def test_unknown_category_is_rejected(api_client: TestClient) -> None:
    assert api_client.get("/api/check-in/w1/sweep").status_code == 422
