"""In-memory implementation of the trip repository."""

import itertools
import threading
import uuid
from dataclasses import replace
from datetime import datetime

from trip_service.db.repositories import ItineraryItemRecord, TripRecord, item_sort_key
from trip_service.models.common import TripStatus


class InMemoryTripRepository:
    """In-memory implementation of TripRepository.

    Records are copied on the way in and out so callers cannot mutate stored
    state without going through the repository.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._trips: dict[uuid.UUID, TripRecord] = {}
        self._items: dict[uuid.UUID, ItineraryItemRecord] = {}
        self._sequence = itertools.count(1)

    def create_trip(self, trip: TripRecord) -> None:
        """Persist a new trip row."""
        with self._lock:
            self._trips[trip.trip_id] = replace(trip)

    def get_trip(self, trip_id: uuid.UUID) -> TripRecord | None:
        """Get trip by ID."""
        with self._lock:
            trip = self._trips.get(trip_id)
            return replace(trip) if trip else None

    def list_trips_by_owner(self, owner_id: uuid.UUID) -> list[TripRecord]:
        """List trips for an owner, newest first."""
        with self._lock:
            trips = [replace(t) for t in self._trips.values() if t.owner_id == owner_id]
        trips.sort(key=lambda t: t.created_at, reverse=True)
        return trips

    def list_trips_by_status(
        self, status: TripStatus, updated_before: datetime
    ) -> list[TripRecord]:
        """List trips in a status last updated before a cutoff."""
        with self._lock:
            return [
                replace(t)
                for t in self._trips.values()
                if t.status == status and t.updated_at < updated_before
            ]

    def update_trip(self, trip: TripRecord) -> None:
        """Persist changes to an existing trip row."""
        with self._lock:
            if trip.trip_id in self._trips:
                self._trips[trip.trip_id] = replace(trip)

    def delete_trip(self, trip_id: uuid.UUID) -> None:
        """Delete trip and items together."""
        with self._lock:
            self._delete_items_locked(trip_id)
            self._trips.pop(trip_id, None)

    def list_items(self, trip_id: uuid.UUID) -> list[ItineraryItemRecord]:
        """List a trip's items in presentation order."""
        with self._lock:
            items = [replace(i) for i in self._items.values() if i.trip_id == trip_id]
        items.sort(key=item_sort_key)
        return items

    def add_item(self, item: ItineraryItemRecord) -> None:
        """Persist one new item."""
        with self._lock:
            self._items[item.item_id] = replace(item, sequence=next(self._sequence))

    def update_item(self, item: ItineraryItemRecord) -> None:
        """Persist changes to one existing item."""
        with self._lock:
            stored = self._items.get(item.item_id)
            if stored is not None:
                self._items[item.item_id] = replace(item, sequence=stored.sequence)

    def delete_item(self, item_id: uuid.UUID) -> None:
        """Delete one item."""
        with self._lock:
            self._items.pop(item_id, None)

    def replace_itinerary(self, trip: TripRecord, items: list[ItineraryItemRecord]) -> None:
        """Atomically replace a trip's items and update the trip row."""
        with self._lock:
            if trip.trip_id not in self._trips:
                raise LookupError(f"trip {trip.trip_id} no longer exists")
            self._delete_items_locked(trip.trip_id)
            for item in items:
                self._items[item.item_id] = replace(item, sequence=next(self._sequence))
            self._trips[trip.trip_id] = replace(trip)

    def _delete_items_locked(self, trip_id: uuid.UUID) -> None:
        for item_id in [i.item_id for i in self._items.values() if i.trip_id == trip_id]:
            del self._items[item_id]
