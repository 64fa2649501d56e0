"""Trip orchestration: lifecycle state machine and trip/item operations.

Lifecycle:
    create -> generating -> generated    (prompt, LLM, parse, geocode, persist all succeed)
                         -> draft        (any failure; items discarded, error re-raised)

The trip row is persisted in ``generating`` before the LLM call, so
concurrent readers can observe it with no itinerary. Items and the final
status are committed together through ``TripRepository.replace_itinerary``.
"""

import json
import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from trip_service.db.repositories import (
    ItineraryItemRecord,
    TripRecord,
    TripRepository,
    item_sort_key,
)
from trip_service.errors import (
    Forbidden,
    GenerationFailed,
    InvalidGenerationOutput,
    NotFound,
    ValidationError,
)
from trip_service.llm.client import ItineraryGenerator
from trip_service.llm.parser import parse_itinerary
from trip_service.llm.prompt import build_prompt
from trip_service.models.common import Coordinates, TripStatus
from trip_service.models.generation import GeneratedItinerary
from trip_service.models.trip import (
    BudgetSummary,
    CreateTripRequest,
    ItemCreate,
    ItemUpdate,
    ItineraryItemView,
    TripDetail,
    TripSummary,
    TripUpdate,
)
from trip_service.orchestration import budget
from trip_service.orchestration.enrich import ItemEnricher
from trip_service.utils.logging import StructuredPipelineLogger
from trip_service.utils.metrics import PrometheusPipelineMetrics

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 200
INVALID_INDEX_MESSAGE = "itinerary item index invalid"

# Item fields that may not be explicitly cleared
_REQUIRED_ITEM_FIELDS = ("day_index", "title", "type", "estimated_cost")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def placeholder_title(destination: str) -> str:
    """Title shown while a trip is still generating."""
    return f"Generating: {destination} trip"[:TITLE_MAX_LENGTH]


def item_view(item: ItineraryItemRecord) -> ItineraryItemView:
    """Convert a stored item to its caller-facing view."""
    return ItineraryItemView(
        item_id=item.item_id,
        day_index=item.day_index,
        start_time=item.start_time,
        end_time=item.end_time,
        title=item.title,
        type=item.category,
        location=item.location,
        description=item.description,
        estimated_cost=item.estimated_cost,
        notes=item.notes,
        coordinates=Coordinates.from_json(item.coordinates),
    )


def _summary_fields(trip: TripRecord, budget_summary: BudgetSummary) -> dict[str, object]:
    return {
        "id": trip.trip_id,
        "title": trip.title,
        "destination": trip.destination,
        "start_date": trip.start_date,
        "end_date": trip.end_date,
        "participants": trip.participants,
        "budget": trip.budget,
        "status": trip.status,
        "created_at": trip.created_at,
        "updated_at": trip.updated_at,
        "budget_summary": budget_summary,
    }


def trip_detail(
    trip: TripRecord, items: list[ItineraryItemRecord], budget_summary: BudgetSummary
) -> TripDetail:
    """Assemble a detail view; items are emitted in presentation order."""
    ordered = sorted(items, key=item_sort_key)
    return TripDetail(
        **_summary_fields(trip, budget_summary),
        itinerary=[item_view(item) for item in ordered],
    )


class TripOrchestrator:
    """Owns the trip lifecycle and every trip/item operation."""

    def __init__(
        self,
        repository: TripRepository,
        generator: ItineraryGenerator,
        enricher: ItemEnricher,
        *,
        stale_after_seconds: int = 600,
        clock: Callable[[], datetime] = _utcnow,
        metrics: PrometheusPipelineMetrics | None = None,
        pipeline_logger: StructuredPipelineLogger | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            repository: Trip aggregate repository
            generator: LLM itinerary generator
            enricher: Item geocoding enricher
            stale_after_seconds: Age after which a ``generating`` trip counts as failed
            clock: Timestamp source (injectable for tests)
            metrics: Optional metrics sink
            pipeline_logger: Optional structured logger
        """
        self._repository = repository
        self._generator = generator
        self._enricher = enricher
        self._stale_after = timedelta(seconds=stale_after_seconds)
        self._clock = clock
        self._metrics = metrics or PrometheusPipelineMetrics()
        self._log = pipeline_logger or StructuredPipelineLogger()

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def create_and_generate_trip(self, owner_id: uuid.UUID, request: CreateTripRequest) -> TripDetail:
        """Create a trip and generate its itinerary synchronously.

        Args:
            owner_id: Caller identity
            request: Validated trip request

        Returns:
            TripDetail in ``generated`` status with the LLM's declared budget breakdown

        Raises:
            InvalidGenerationOutput: LLM output could not be decoded (trip rolled back)
            GenerationFailed: Any other pipeline failure (trip rolled back)
        """
        now = self._clock()
        trip = TripRecord(
            trip_id=uuid.uuid4(),
            owner_id=owner_id,
            title=placeholder_title(request.destination),
            destination=request.destination,
            start_date=request.start_date,
            end_date=request.end_date,
            participants=request.participants,
            budget=request.budget,
            preferences=(
                json.dumps(request.preferences, ensure_ascii=False) if request.preferences else None
            ),
            raw_input=request.raw_input,
            status=TripStatus.generating,
            created_at=now,
            updated_at=now,
        )
        self._repository.create_trip(trip)
        self._log.log_transition(trip.trip_id, owner_id, None, TripStatus.generating)

        started = time.perf_counter()
        try:
            prompt = build_prompt(request)
            raw = self._generator.generate(prompt)
            itinerary = parse_itinerary(raw)
            items = self._build_items(trip, itinerary)

            generated = replace(
                trip,
                title=itinerary.title[:TITLE_MAX_LENGTH] if itinerary.title else trip.title,
                status=TripStatus.generated,
                updated_at=self._clock(),
            )
            self._repository.replace_itinerary(generated, items)
        except Exception as e:
            latency_ms = (time.perf_counter() - started) * 1000.0
            self._rollback(trip, e)
            self._metrics.record_generation("failure", latency_ms)
            self._log.log_generation(trip.trip_id, "failure", latency_ms)
            if isinstance(e, (GenerationFailed, InvalidGenerationOutput)):
                raise
            raise GenerationFailed(f"Trip generation failed: {e}") from e

        latency_ms = (time.perf_counter() - started) * 1000.0
        self._metrics.record_generation("success", latency_ms)
        self._log.log_transition(trip.trip_id, owner_id, TripStatus.generating, TripStatus.generated)
        self._log.log_generation(
            trip.trip_id,
            "success",
            latency_ms,
            item_count=len(items),
            geocoded_count=sum(1 for item in items if item.coordinates),
        )

        return trip_detail(
            generated, items, budget.from_declared(generated.budget, itinerary.budget_breakdown)
        )

    def _build_items(
        self, trip: TripRecord, itinerary: GeneratedItinerary
    ) -> list[ItineraryItemRecord]:
        """Turn decoded entries into item records, geocoding each location."""
        generated_items = itinerary.all_items()

        for entry in generated_items:
            if not 1 <= entry.day_index <= trip.duration_days:
                logger.warning(
                    f"Trip {trip.trip_id}: generated item {entry.title!r} has day index "
                    f"{entry.day_index} outside 1..{trip.duration_days}"
                )

        coordinates = self._enricher.enrich(
            [entry.location for entry in generated_items], trip.destination
        )

        return [
            ItineraryItemRecord(
                item_id=uuid.uuid4(),
                trip_id=trip.trip_id,
                day_index=entry.day_index,
                start_time=entry.start_time,
                end_time=entry.end_time,
                title=entry.title[:TITLE_MAX_LENGTH],
                category=entry.category,
                location=entry.location,
                description=entry.description,
                estimated_cost=entry.estimated_cost,
                coordinates=coords.to_json() if coords else None,
                notes=entry.notes,
            )
            for entry, coords in zip(generated_items, coordinates, strict=True)
        ]

    def _rollback(self, trip: TripRecord, cause: Exception) -> None:
        """Return a failed trip to ``draft`` with no items attached."""
        logger.error(f"Trip {trip.trip_id} generation failed: {cause}")
        draft = replace(trip, status=TripStatus.draft, updated_at=self._clock())
        try:
            self._repository.replace_itinerary(draft, [])
        except Exception:
            # Left in "generating"; recover_stale_generations will reset it
            logger.exception(f"Trip {trip.trip_id} rollback to draft failed")
            return
        self._log.log_transition(
            trip.trip_id, trip.owner_id, TripStatus.generating, TripStatus.draft, str(cause)
        )

    def recover_stale_generations(self, now: datetime | None = None) -> int:
        """Reset trips stuck in ``generating`` past the stale timeout to ``draft``.

        Args:
            now: Reference time (defaults to the orchestrator clock)

        Returns:
            Number of trips reset
        """
        now = now or self._clock()
        stale = self._repository.list_trips_by_status(TripStatus.generating, now - self._stale_after)
        recovered = 0
        for trip in stale:
            try:
                self._repository.replace_itinerary(
                    replace(trip, status=TripStatus.draft, updated_at=now), []
                )
            except LookupError:
                logger.info(f"Stale trip {trip.trip_id} was deleted before recovery")
                continue
            recovered += 1
            self._log.log_transition(
                trip.trip_id, trip.owner_id, TripStatus.generating, TripStatus.draft, "stale"
            )
        if recovered:
            logger.warning(f"Reset {recovered} stale generating trip(s) to draft")
        return recovered

    # ------------------------------------------------------------------
    # Trip operations
    # ------------------------------------------------------------------

    def _load_owned(self, trip_id: uuid.UUID, owner_id: uuid.UUID) -> TripRecord:
        # Existence first, then ownership
        trip = self._repository.get_trip(trip_id)
        if trip is None:
            raise NotFound("trip not found")
        if trip.owner_id != owner_id:
            raise Forbidden("not allowed to access this trip")
        return trip

    def list_trips(self, owner_id: uuid.UUID) -> list[TripSummary]:
        """List the caller's trips, newest first, without items."""
        return [
            TripSummary(
                **_summary_fields(
                    trip, budget.summarize(trip.budget, self._repository.list_items(trip.trip_id))
                )
            )
            for trip in self._repository.list_trips_by_owner(owner_id)
        ]

    def get_trip(self, trip_id: uuid.UUID, owner_id: uuid.UUID) -> TripDetail:
        """Get a trip with its itinerary and a breakdown recomputed from items.

        Raises:
            NotFound: Unknown trip
            Forbidden: Trip owned by someone else
        """
        trip = self._load_owned(trip_id, owner_id)
        return self._detail(trip)

    def _detail(self, trip: TripRecord) -> TripDetail:
        items = self._repository.list_items(trip.trip_id)
        return trip_detail(trip, items, budget.recompute(trip.budget, items))

    def delete_trip(self, trip_id: uuid.UUID, owner_id: uuid.UUID) -> None:
        """Delete a trip and its items."""
        self._load_owned(trip_id, owner_id)
        self._repository.delete_trip(trip_id)
        logger.info(f"Deleted trip {trip_id}")

    def update_trip(
        self, trip_id: uuid.UUID, owner_id: uuid.UUID, update: TripUpdate
    ) -> TripDetail:
        """Update title, destination and/or budget; absent fields are untouched."""
        trip = self._load_owned(trip_id, owner_id)

        if update.title is not None:
            trip.title = update.title[:TITLE_MAX_LENGTH]
        if update.destination is not None:
            trip.destination = update.destination
        if update.budget is not None:
            trip.budget = update.budget
        trip.updated_at = self._clock()

        self._repository.update_trip(trip)
        logger.info(f"Updated trip {trip_id}")
        return self._detail(trip)

    # ------------------------------------------------------------------
    # Item operations
    # ------------------------------------------------------------------

    def _item_at(self, trip: TripRecord, index: int) -> ItineraryItemRecord:
        items = self._repository.list_items(trip.trip_id)
        if index < 0 or index >= len(items):
            raise NotFound(INVALID_INDEX_MESSAGE)
        return items[index]

    def _item_with_id(self, trip: TripRecord, item_id: uuid.UUID) -> ItineraryItemRecord:
        for item in self._repository.list_items(trip.trip_id):
            if item.item_id == item_id:
                return item
        raise NotFound("itinerary item not found")

    def _check_day(self, trip: TripRecord, day_index: int) -> None:
        if not 1 <= day_index <= trip.duration_days:
            raise ValidationError(
                f"day_index must be between 1 and {trip.duration_days}, got {day_index}"
            )

    def add_item(self, trip_id: uuid.UUID, owner_id: uuid.UUID, data: ItemCreate) -> TripDetail:
        """Add one item, geocoding its location when supplied.

        A failed lookup is logged and the item is added without coordinates.
        """
        trip = self._load_owned(trip_id, owner_id)
        self._check_day(trip, data.day_index)

        coords = self._enricher.lookup(data.location, trip.destination)
        item = ItineraryItemRecord(
            item_id=uuid.uuid4(),
            trip_id=trip.trip_id,
            day_index=data.day_index,
            start_time=data.start_time,
            end_time=data.end_time,
            title=data.title[:TITLE_MAX_LENGTH],
            category=data.type.value,
            location=data.location,
            description=data.description,
            estimated_cost=data.estimated_cost,
            coordinates=coords.to_json() if coords else None,
            notes=data.notes,
        )
        self._repository.add_item(item)
        logger.info(f"Added item to trip {trip_id}: day={item.day_index}, title={item.title!r}")
        return self._detail(trip)

    def update_item(
        self, trip_id: uuid.UUID, owner_id: uuid.UUID, index: int, update: ItemUpdate
    ) -> TripDetail:
        """Update the item at a derived position in (day, start time) order.

        Raises:
            NotFound: Unknown trip or index out of range
            Forbidden: Trip owned by someone else
            ValidationError: Update would break item invariants
        """
        trip = self._load_owned(trip_id, owner_id)
        item = self._item_at(trip, index)
        self._apply_item_update(trip, item, update)
        logger.info(f"Updated item: trip={trip_id}, index={index}")
        return self._detail(trip)

    def update_item_by_id(
        self, trip_id: uuid.UUID, owner_id: uuid.UUID, item_id: uuid.UUID, update: ItemUpdate
    ) -> TripDetail:
        """Update an item addressed by its stable ID."""
        trip = self._load_owned(trip_id, owner_id)
        item = self._item_with_id(trip, item_id)
        self._apply_item_update(trip, item, update)
        logger.info(f"Updated item: trip={trip_id}, item={item_id}")
        return self._detail(trip)

    def delete_item(self, trip_id: uuid.UUID, owner_id: uuid.UUID, index: int) -> TripDetail:
        """Delete the item at a derived position in (day, start time) order."""
        trip = self._load_owned(trip_id, owner_id)
        item = self._item_at(trip, index)
        self._repository.delete_item(item.item_id)
        logger.info(f"Deleted item: trip={trip_id}, index={index}")
        return self._detail(trip)

    def delete_item_by_id(
        self, trip_id: uuid.UUID, owner_id: uuid.UUID, item_id: uuid.UUID
    ) -> TripDetail:
        """Delete an item addressed by its stable ID."""
        trip = self._load_owned(trip_id, owner_id)
        item = self._item_with_id(trip, item_id)
        self._repository.delete_item(item.item_id)
        logger.info(f"Deleted item: trip={trip_id}, item={item_id}")
        return self._detail(trip)

    def _apply_item_update(
        self, trip: TripRecord, item: ItineraryItemRecord, update: ItemUpdate
    ) -> None:
        sent = update.model_fields_set

        for name in _REQUIRED_ITEM_FIELDS:
            if name in sent and getattr(update, name) is None:
                raise ValidationError(f"{name} cannot be cleared")

        if "day_index" in sent and update.day_index is not None:
            self._check_day(trip, update.day_index)
            item.day_index = update.day_index
        if "start_time" in sent:
            item.start_time = update.start_time
        if "end_time" in sent:
            item.end_time = update.end_time
        if "title" in sent and update.title is not None:
            item.title = update.title[:TITLE_MAX_LENGTH]
        if "type" in sent and update.type is not None:
            item.category = update.type.value
        if "description" in sent:
            item.description = update.description
        if "estimated_cost" in sent and update.estimated_cost is not None:
            item.estimated_cost = update.estimated_cost
        if "notes" in sent:
            item.notes = update.notes
        if "location" in sent and update.location != item.location:
            item.location = update.location
            coords = self._enricher.lookup(update.location, trip.destination)
            item.coordinates = coords.to_json() if coords else None

        if item.start_time and item.end_time and item.end_time < item.start_time:
            raise ValidationError("end_time must be >= start_time")

        self._repository.update_item(item)
