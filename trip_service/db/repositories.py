"""Repository protocol interfaces for data access."""

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from trip_service.models.common import TripStatus


@dataclass
class TripRecord:
    """Trip data record."""

    trip_id: UUID
    owner_id: UUID
    title: str
    destination: str
    start_date: date
    end_date: date
    participants: int
    budget: Decimal
    preferences: str | None
    raw_input: str | None
    status: TripStatus
    created_at: datetime
    updated_at: datetime

    @property
    def duration_days(self) -> int:
        """Inclusive number of days between start and end."""
        return (self.end_date - self.start_date).days + 1


@dataclass
class ItineraryItemRecord:
    """Itinerary item data record.

    ``coordinates`` holds the compact JSON form produced by
    ``Coordinates.to_json``. ``sequence`` is assigned by the repository and
    only breaks ties between items with the same day and start time.
    """

    item_id: UUID
    trip_id: UUID
    day_index: int
    start_time: time | None
    end_time: time | None
    title: str
    category: str
    location: str | None
    description: str | None
    estimated_cost: Decimal
    coordinates: str | None
    notes: str | None
    sequence: int = 0


def item_sort_key(item: ItineraryItemRecord) -> tuple[int, bool, time, int]:
    """Presentation order: day asc, start time asc, untimed items last in their day."""
    return (
        item.day_index,
        item.start_time is None,
        item.start_time or time.min,
        item.sequence,
    )


class TripRepository(Protocol):
    """Repository for the trip aggregate (trip row plus its items)."""

    def create_trip(self, trip: TripRecord) -> None:
        """Persist a new trip row."""
        ...

    def get_trip(self, trip_id: UUID) -> TripRecord | None:
        """Get trip by ID regardless of owner.

        Ownership is checked by the caller so that a missing trip and a
        foreign trip can be told apart.
        """
        ...

    def list_trips_by_owner(self, owner_id: UUID) -> list[TripRecord]:
        """List trips for an owner, newest first."""
        ...

    def list_trips_by_status(
        self, status: TripStatus, updated_before: datetime
    ) -> list[TripRecord]:
        """List trips in a status whose last update is older than a cutoff."""
        ...

    def update_trip(self, trip: TripRecord) -> None:
        """Persist changes to an existing trip row."""
        ...

    def delete_trip(self, trip_id: UUID) -> None:
        """Delete a trip and all of its items as one atomic unit."""
        ...

    def list_items(self, trip_id: UUID) -> list[ItineraryItemRecord]:
        """List a trip's items in presentation order (see ``item_sort_key``)."""
        ...

    def add_item(self, item: ItineraryItemRecord) -> None:
        """Persist one new item."""
        ...

    def update_item(self, item: ItineraryItemRecord) -> None:
        """Persist changes to one existing item."""
        ...

    def delete_item(self, item_id: UUID) -> None:
        """Delete one item."""
        ...

    def replace_itinerary(self, trip: TripRecord, items: list[ItineraryItemRecord]) -> None:
        """Atomically replace all of a trip's items and update the trip row.

        Used to commit a generation (items + ``generated`` status) and to roll
        one back (no items + ``draft`` status). Either every write lands or
        none does.
        """
        ...
