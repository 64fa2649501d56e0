"""Wiring of the orchestrator and its collaborators for the HTTP layer."""

from functools import lru_cache

from trip_service.adapters.geocoding import get_geocoding_enricher
from trip_service.config import get_settings
from trip_service.db.engine import create_session_factory, get_engine
from trip_service.db.sql_repositories import SqlTripRepository
from trip_service.llm.client import get_itinerary_generator
from trip_service.orchestration.enrich import ItemEnricher
from trip_service.orchestration.trips import TripOrchestrator


@lru_cache
def get_orchestrator() -> TripOrchestrator:
    """Build the process-wide orchestrator from settings.

    Tests replace this dependency through ``app.dependency_overrides``.
    """
    settings = get_settings()
    repository = SqlTripRepository(create_session_factory(get_engine()))
    enricher = ItemEnricher(
        get_geocoding_enricher(settings), max_workers=settings.geocode_workers
    )
    return TripOrchestrator(
        repository,
        get_itinerary_generator(settings),
        enricher,
        stale_after_seconds=settings.generation_stale_after_seconds,
    )
