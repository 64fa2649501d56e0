"""Shared pytest fixtures for all test suites."""

import json
import threading
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from typing import Any

import pytest

from trip_service.db.inmemory import InMemoryTripRepository
from trip_service.models.common import Coordinates
from trip_service.models.trip import CreateTripRequest
from trip_service.orchestration.enrich import ItemEnricher
from trip_service.orchestration.trips import TripOrchestrator


class ScriptedGenerator:
    """Generator returning a canned response (or raising a canned error)."""

    def __init__(self, response: str | Exception) -> None:
        self.response = response
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class FakeGeocoder:
    """Geocoder resolving from a fixed table; unknown locations yield None."""

    def __init__(
        self,
        results: dict[str, Coordinates] | None = None,
        *,
        enabled: bool = True,
        error: Exception | None = None,
    ) -> None:
        self.results = results or {}
        self._enabled = enabled
        self.error = error
        self.calls: list[tuple[str, str | None]] = []
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def geocode(self, location: str, city: str | None = None) -> Coordinates | None:
        with self._lock:
            self.calls.append((location, city))
        if self.error is not None:
            raise self.error
        return self.results.get(location)


class TickingClock:
    """UTC clock advancing one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 3, 1, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


KYOTO_ITINERARY: dict[str, Any] = {
    "title": "Kyoto in spring",
    "destination": "Kyoto",
    "days": [
        {
            "dayIndex": 1,
            "items": [
                {
                    "startTime": "14:00",
                    "endTime": "15:00",
                    "title": "Check in",
                    "type": "hotel",
                    "location": "Gion Hotel",
                    "description": "Drop bags",
                    "estimatedCost": 800,
                    "notes": "",
                },
                {
                    "startTime": "09:00",
                    "endTime": "11:30",
                    "title": "Fushimi Inari",
                    "type": "attraction",
                    "location": "Fushimi Inari Taisha",
                    "description": "Torii gates",
                    "estimatedCost": 0,
                    "notes": "Go early",
                },
            ],
        },
        {
            "dayIndex": 2,
            "items": [
                {
                    "title": "Nishiki market",
                    "type": "restaurant",
                    "location": "Nishiki Market",
                    "description": "Street food",
                    "estimatedCost": "150.50",
                },
                {
                    "startTime": "08:00",
                    "endTime": "08:45",
                    "title": "Bus to Arashiyama",
                    "type": "transport",
                    "location": "Kyoto Station",
                    "description": "City bus",
                    "estimatedCost": 23.5,
                },
            ],
        },
    ],
    "budgetBreakdown": {
        "transport": 1000,
        "accommodation": 2000,
        "food": 1000,
        "attractions": 400,
        "other": 100,
    },
}

FUSHIMI = Coordinates(lng=135.772695, lat=34.967140)


@pytest.fixture
def kyoto_itinerary() -> dict[str, Any]:
    """Deep copy of the canned Kyoto itinerary document."""
    return json.loads(json.dumps(KYOTO_ITINERARY))


@pytest.fixture
def kyoto_request() -> CreateTripRequest:
    """Kyoto trip request: 3 days, 2 participants, budget 5000."""
    return CreateTripRequest(
        destination="Kyoto",
        start_date=date(2025, 4, 1),
        end_date=date(2025, 4, 3),
        participants=2,
        budget=Decimal("5000"),
        preferences=["temples", "food"],
    )


@pytest.fixture
def repository() -> InMemoryTripRepository:
    return InMemoryTripRepository()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder({"Fushimi Inari Taisha": FUSHIMI})


@pytest.fixture
def make_orchestrator(
    repository: InMemoryTripRepository, clock: TickingClock, geocoder: FakeGeocoder
) -> Callable[..., TripOrchestrator]:
    """Factory building an orchestrator around a generator response.

    Usage:
        orchestrator = make_orchestrator(json.dumps(doc))
        orchestrator = make_orchestrator(GenerationFailed("boom"))
    """

    def _make(
        response: str | Exception = "",
        *,
        geo: FakeGeocoder | None = None,
        workers: int = 2,
    ) -> TripOrchestrator:
        return TripOrchestrator(
            repository,
            ScriptedGenerator(response),
            ItemEnricher(geo or geocoder, max_workers=workers),
            clock=clock,
        )

    return _make


@pytest.fixture
def kyoto_orchestrator(
    make_orchestrator: Callable[..., TripOrchestrator], kyoto_itinerary: dict[str, Any]
) -> TripOrchestrator:
    """Orchestrator whose generator returns the Kyoto itinerary."""
    return make_orchestrator(json.dumps(kyoto_itinerary))


@pytest.fixture
def failing_geocoder() -> FakeGeocoder:
    """Geocoder whose every lookup raises."""
    return FakeGeocoder(error=RuntimeError("provider exploded"))


@pytest.fixture
def scripted_generator() -> Callable[[str | Exception], ScriptedGenerator]:
    return ScriptedGenerator


@pytest.fixture
def disabled_geocoder() -> FakeGeocoder:
    """Geocoder reporting no credentials."""
    return FakeGeocoder({"Fushimi Inari Taisha": FUSHIMI}, enabled=False)
