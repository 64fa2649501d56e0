"""Integration tests for the /api/v1/trips routes."""

import uuid
from collections.abc import Callable, Generator
from datetime import UTC, datetime
from typing import Any

import pytest
from fastapi.testclient import TestClient

from trip_service.api.dependencies import get_orchestrator
from trip_service.db.inmemory import InMemoryTripRepository
from trip_service.errors import GenerationFailed
from trip_service.main import app
from trip_service.models.common import TripStatus
from trip_service.models.trip import CreateTripRequest
from trip_service.orchestration.trips import TripOrchestrator

pytestmark = pytest.mark.integration

OWNER = uuid.UUID("00000000-0000-0000-0000-0000000000a1")
STRANGER = uuid.UUID("00000000-0000-0000-0000-0000000000b2")

TRIP_BODY = {
    "destination": "Kyoto",
    "start_date": "2025-04-01",
    "end_date": "2025-04-03",
    "participants": 2,
    "budget": 5000,
    "preferences": "temples, food",
}


def _auth(user_id: uuid.UUID = OWNER) -> dict[str, str]:
    return {"Authorization": f"Bearer {user_id}"}


@pytest.fixture
def use_orchestrator() -> Generator[Callable[[TripOrchestrator], TestClient], None, None]:
    """Install an orchestrator override and return a test client."""

    def _use(orchestrator: TripOrchestrator) -> TestClient:
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        return TestClient(app)

    yield _use
    app.dependency_overrides.clear()


@pytest.fixture
def client(
    use_orchestrator: Callable[[TripOrchestrator], TestClient],
    kyoto_orchestrator: TripOrchestrator,
) -> TestClient:
    return use_orchestrator(kyoto_orchestrator)


@pytest.fixture
def trip(client: TestClient) -> dict[str, Any]:
    response = client.post("/api/v1/trips", json=TRIP_BODY, headers=_auth())
    assert response.status_code == 201
    return response.json()


class TestCreateTrip:
    """POST /api/v1/trips."""

    def test_create_returns_generated_trip(self, trip: dict[str, Any]) -> None:
        assert trip["status"] == "generated"
        assert trip["title"] == "Kyoto in spring"
        assert trip["budget_summary"] == {
            "total_budget": 5000.0,
            "estimated_cost": 4500.0,
            "remaining": 500.0,
            "breakdown": {
                "transport": 1000.0,
                "accommodation": 2000.0,
                "food": 1000.0,
                "attractions": 400.0,
                "other": 100.0,
            },
        }
        first = trip["itinerary"][0]
        assert first["title"] == "Fushimi Inari"
        assert first["start_time"] == "09:00:00"
        assert first["type"] == "attraction"
        assert first["coordinates"] == {"lng": 135.772695, "lat": 34.96714}

    def test_invalid_request_is_422(self, client: TestClient) -> None:
        body = {**TRIP_BODY, "end_date": "2025-03-01"}

        response = client.post("/api/v1/trips", json=body, headers=_auth())

        assert response.status_code == 422

    def test_generation_failure_is_502(
        self,
        use_orchestrator: Callable[[TripOrchestrator], TestClient],
        make_orchestrator: Callable[..., TripOrchestrator],
    ) -> None:
        client = use_orchestrator(make_orchestrator(GenerationFailed("upstream timeout")))

        response = client.post("/api/v1/trips", json=TRIP_BODY, headers=_auth())

        assert response.status_code == 502
        assert response.json() == {"error": "generation_failed", "detail": "upstream timeout"}

    def test_invalid_output_is_502_with_its_own_kind(
        self,
        use_orchestrator: Callable[[TripOrchestrator], TestClient],
        make_orchestrator: Callable[..., TripOrchestrator],
    ) -> None:
        client = use_orchestrator(make_orchestrator("not json"))

        response = client.post("/api/v1/trips", json=TRIP_BODY, headers=_auth())

        assert response.status_code == 502
        assert response.json()["error"] == "invalid_generation_output"

    def test_bad_token_is_401(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/trips", json=TRIP_BODY, headers={"Authorization": "Bearer nope"}
        )

        assert response.status_code == 401


class TestTripReads:
    """GET / PUT / DELETE /api/v1/trips/{id}."""

    def test_list_trips(self, client: TestClient, trip: dict[str, Any]) -> None:
        response = client.get("/api/v1/trips", headers=_auth())

        assert response.status_code == 200
        trips = response.json()
        assert [t["id"] for t in trips] == [trip["id"]]
        assert "itinerary" not in trips[0]
        assert trips[0]["budget_summary"]["breakdown"] is None

    def test_get_trip_recomputes_budget(self, client: TestClient, trip: dict[str, Any]) -> None:
        response = client.get(f"/api/v1/trips/{trip['id']}", headers=_auth())

        assert response.status_code == 200
        assert response.json()["budget_summary"]["estimated_cost"] == 974.0

    def test_unknown_trip_is_404(self, client: TestClient) -> None:
        response = client.get(f"/api/v1/trips/{uuid.uuid4()}", headers=_auth())

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_foreign_trip_is_403(self, client: TestClient, trip: dict[str, Any]) -> None:
        response = client.get(f"/api/v1/trips/{trip['id']}", headers=_auth(STRANGER))

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    def test_update_trip(self, client: TestClient, trip: dict[str, Any]) -> None:
        response = client.put(
            f"/api/v1/trips/{trip['id']}", json={"title": "Spring temples"}, headers=_auth()
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Spring temples"
        assert response.json()["budget"] == 5000.0

    def test_delete_trip(self, client: TestClient, trip: dict[str, Any]) -> None:
        response = client.delete(f"/api/v1/trips/{trip['id']}", headers=_auth())

        assert response.status_code == 204
        assert client.get(f"/api/v1/trips/{trip['id']}", headers=_auth()).status_code == 404


class TestItemRoutes:
    """Item-level routes by index and by stable ID."""

    def test_add_item(self, client: TestClient, trip: dict[str, Any]) -> None:
        response = client.post(
            f"/api/v1/trips/{trip['id']}/itinerary",
            json={
                "day_index": 3,
                "start_time": "18:00",
                "title": "Kaiseki dinner",
                "type": "restaurant",
                "estimated_cost": 300,
            },
            headers=_auth(),
        )

        assert response.status_code == 201
        titles = [item["title"] for item in response.json()["itinerary"]]
        assert titles[-1] == "Kaiseki dinner"

    def test_add_item_day_beyond_trip_is_422(
        self, client: TestClient, trip: dict[str, Any]
    ) -> None:
        response = client.post(
            f"/api/v1/trips/{trip['id']}/itinerary",
            json={"day_index": 9, "title": "Too late"},
            headers=_auth(),
        )

        assert response.status_code == 422
        assert response.json()["error"] == "validation"

    def test_update_item_by_index(self, client: TestClient, trip: dict[str, Any]) -> None:
        response = client.put(
            f"/api/v1/trips/{trip['id']}/itinerary/1",
            json={"notes": "Ask for a garden view"},
            headers=_auth(),
        )

        assert response.status_code == 200
        assert response.json()["itinerary"][1]["notes"] == "Ask for a garden view"

    def test_update_item_index_equal_to_count_is_404(
        self, client: TestClient, trip: dict[str, Any]
    ) -> None:
        count = len(trip["itinerary"])

        response = client.put(
            f"/api/v1/trips/{trip['id']}/itinerary/{count}",
            json={"title": "Ghost"},
            headers=_auth(),
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "itinerary item index invalid"

    def test_delete_item_by_index(self, client: TestClient, trip: dict[str, Any]) -> None:
        response = client.delete(f"/api/v1/trips/{trip['id']}/itinerary/0", headers=_auth())

        assert response.status_code == 200
        assert len(response.json()["itinerary"]) == len(trip["itinerary"]) - 1

    def test_item_routes_by_id(self, client: TestClient, trip: dict[str, Any]) -> None:
        item_id = trip["itinerary"][2]["item_id"]

        updated = client.put(
            f"/api/v1/trips/{trip['id']}/items/{item_id}",
            json={"estimated_cost": 40},
            headers=_auth(),
        )
        assert updated.status_code == 200
        [item] = [i for i in updated.json()["itinerary"] if i["item_id"] == item_id]
        assert item["estimated_cost"] == 40.0

        deleted = client.delete(f"/api/v1/trips/{trip['id']}/items/{item_id}", headers=_auth())
        assert deleted.status_code == 200
        assert item_id not in [i["item_id"] for i in deleted.json()["itinerary"]]

        missing = client.delete(f"/api/v1/trips/{trip['id']}/items/{item_id}", headers=_auth())
        assert missing.status_code == 404


def test_missing_header_uses_dev_user(
    use_orchestrator: Callable[[TripOrchestrator], TestClient],
    kyoto_orchestrator: TripOrchestrator,
) -> None:
    client = use_orchestrator(kyoto_orchestrator)

    created = client.post("/api/v1/trips", json=TRIP_BODY)
    listed = client.get("/api/v1/trips")

    assert created.status_code == 201
    assert [t["id"] for t in listed.json()] == [created.json()["id"]]


def test_startup_resets_stale_generations(
    kyoto_orchestrator: TripOrchestrator,
    kyoto_request: CreateTripRequest,
    repository: InMemoryTripRepository,
) -> None:
    """Trips left in generating by a previous process are reset when the app starts."""
    stuck = kyoto_orchestrator.create_and_generate_trip(OWNER, kyoto_request)
    record = repository.get_trip(stuck.id)
    assert record is not None
    record.status = TripStatus.generating
    record.updated_at = datetime(2000, 1, 1, tzinfo=UTC)
    repository.update_trip(record)

    app.dependency_overrides[get_orchestrator] = lambda: kyoto_orchestrator
    try:
        with TestClient(app) as client:
            response = client.get(f"/api/v1/trips/{stuck.id}", headers=_auth())
    finally:
        app.dependency_overrides.clear()

    assert response.json()["status"] == "draft"
    assert response.json()["itinerary"] == []
