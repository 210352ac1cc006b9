"""
Tests for the Catalog service HTTP surface.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from service_catalog.app.main import create_app, format_snapshot_event
from service_catalog.app.models import GrowZone, Plant
from service_catalog.app.persistence import PlantStore
from service_catalog.app.repository import PlantRepository
from shared.errors import ExternalServiceError


CATALOG = [
    Plant(plant_id="malus-pumila", name="Apple", grow_zone_number=3),
    Plant(plant_id="beta-vulgaris", name="Beet", grow_zone_number=2),
    Plant(plant_id="coriandrum-sativum", name="Cilantro", grow_zone_number=2),
]


@pytest.fixture
def plant_service():
    """Network collaborator stub."""
    service = MagicMock()
    service.sponsored_plants_id = AsyncMock(return_value=["coriandrum-sativum"])
    service.all_plants = AsyncMock(return_value=list(CATALOG))
    service.plants_by_grow_zone = AsyncMock(
        side_effect=lambda zone: [plant for plant in CATALOG if plant.grow_zone_number == zone.number]
    )
    return service


@pytest.fixture
def repository(plant_service):
    return PlantRepository(PlantStore(), plant_service)


@pytest.fixture
def client(repository):
    """Create test client."""
    with TestClient(create_app(repository)) as test_client:
        yield test_client


def plant_ids(payload):
    return [plant["plantId"] for plant in payload]


def test_root_endpoint(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "catalog"
    assert data["version"] == "1.0.0"


def test_health_check_reports_cache_state(client):
    """Health reports whether the sort order has been cached."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["dependencies"]["sort_order_cache"] == "empty"

    client.post("/plants/refresh")
    client.get("/plants")

    assert client.get("/health").json()["dependencies"]["sort_order_cache"] == "cached"


def test_plants_empty_before_refresh(client):
    """An empty store yields an empty snapshot."""
    response = client.get("/plants")
    assert response.status_code == 200
    assert response.json() == {"grow_zone": None, "total": 0, "plants": []}


def test_refresh_then_list_is_custom_sorted(client, plant_service):
    """Sponsored plants come first, the rest alphabetically."""
    response = client.post("/plants/refresh")
    assert response.status_code == 200
    assert response.json() == {"grow_zone": None, "refreshed": True}

    data = client.get("/plants").json()
    assert data["total"] == 3
    assert plant_ids(data["plants"]) == ["coriandrum-sativum", "malus-pumila", "beta-vulgaris"]

    client.get("/plants")
    assert plant_service.sponsored_plants_id.await_count == 1


def test_grow_zone_filter(client, plant_service):
    """The grow zone query parameter restricts refresh and listing."""
    response = client.post("/plants/refresh", params={"grow_zone": 2})
    assert response.status_code == 200
    plant_service.plants_by_grow_zone.assert_awaited_once_with(GrowZone(2))

    data = client.get("/plants", params={"grow_zone": 2}).json()
    assert data["grow_zone"] == 2
    assert plant_ids(data["plants"]) == ["coriandrum-sativum", "beta-vulgaris"]


def test_refresh_failure_reports_error_and_keeps_data(client, plant_service):
    """A failed refresh returns 502 and leaves the listed plants in place."""
    client.post("/plants/refresh")
    plant_service.all_plants.side_effect = ExternalServiceError(service="plant_data", message="down")

    response = client.post("/plants/refresh")
    assert response.status_code == 502
    data = response.json()
    assert data["code"] == "EXTERNAL_SERVICE_ERROR"
    assert data["message"] == "plant_data: down"

    assert client.get("/plants").json()["total"] == 3


def test_sort_order_failure_falls_back_to_alphabetical(client, plant_service):
    """When the sort order cannot be fetched plants are listed by name."""
    plant_service.sponsored_plants_id.side_effect = ExternalServiceError(service="plant_data")
    client.post("/plants/refresh")

    response = client.get("/plants")
    assert response.status_code == 200
    assert plant_ids(response.json()["plants"]) == ["malus-pumila", "beta-vulgaris", "coriandrum-sativum"]


def test_stream_emits_snapshot_events(client):
    """The SSE endpoint renders one data frame per snapshot."""
    client.post("/plants/refresh")

    response = client.get("/plants/stream", params={"max_events": 1})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")

    frames = [line for line in response.text.split("\n\n") if line]
    assert len(frames) == 1
    assert frames[0].startswith("data: ")
    assert plant_ids(json.loads(frames[0][len("data: "):])) == [
        "coriandrum-sativum", "malus-pumila", "beta-vulgaris"
    ]


def test_metrics_endpoint_exposes_request_counters(client):
    """Prometheus exposition includes request counters."""
    client.get("/")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "http_requests_total" in response.text


def test_request_id_header_is_echoed(client):
    """The request id is returned to the caller."""
    response = client.get("/", headers={"x-request-id": "req-42"})
    assert response.headers["x-request-id"] == "req-42"


def test_format_snapshot_event_uses_published_field_names():
    frame = format_snapshot_event([CATALOG[0]])
    assert frame.endswith("\n\n")
    payload = json.loads(frame[len("data: "):])
    assert payload[0]["plantId"] == "malus-pumila"
    assert payload[0]["growZoneNumber"] == 3
