"""SQL implementation of the trip repository."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, sessionmaker

from trip_service.db.models import ItineraryItem, Trip
from trip_service.db.queries import select_items_for_trip, select_trips_for_owner
from trip_service.db.repositories import ItineraryItemRecord, TripRecord
from trip_service.models.common import TripStatus


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way out
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _trip_record(row: Trip) -> TripRecord:
    return TripRecord(
        trip_id=row.trip_id,
        owner_id=row.owner_id,
        title=row.title,
        destination=row.destination,
        start_date=row.start_date,
        end_date=row.end_date,
        participants=row.participants,
        budget=row.budget,
        preferences=row.preferences,
        raw_input=row.raw_input,
        status=TripStatus(row.status),
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _item_record(row: ItineraryItem) -> ItineraryItemRecord:
    return ItineraryItemRecord(
        item_id=row.item_id,
        trip_id=row.trip_id,
        day_index=row.day_index,
        start_time=row.start_time,
        end_time=row.end_time,
        title=row.title,
        category=row.category,
        location=row.location,
        description=row.description,
        estimated_cost=row.estimated_cost,
        coordinates=row.coordinates,
        notes=row.notes,
        sequence=row.sequence,
    )


def _apply_trip(row: Trip, trip: TripRecord) -> None:
    row.title = trip.title
    row.destination = trip.destination
    row.start_date = trip.start_date
    row.end_date = trip.end_date
    row.participants = trip.participants
    row.budget = trip.budget
    row.preferences = trip.preferences
    row.raw_input = trip.raw_input
    row.status = trip.status.value
    row.updated_at = trip.updated_at


def _item_row(item: ItineraryItemRecord, sequence: int) -> ItineraryItem:
    return ItineraryItem(
        item_id=item.item_id,
        trip_id=item.trip_id,
        day_index=item.day_index,
        start_time=item.start_time,
        end_time=item.end_time,
        title=item.title,
        category=item.category,
        location=item.location,
        description=item.description,
        estimated_cost=item.estimated_cost,
        coordinates=item.coordinates,
        notes=item.notes,
        sequence=sequence,
    )


class SqlTripRepository:
    """SQL implementation of TripRepository.

    Each method runs in its own session and transaction, so one repository
    instance can be shared by concurrent request threads.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def create_trip(self, trip: TripRecord) -> None:
        """Persist a new trip row."""
        with self._session_factory.begin() as session:
            row = Trip(
                trip_id=trip.trip_id,
                owner_id=trip.owner_id,
                created_at=trip.created_at,
            )
            _apply_trip(row, trip)
            session.add(row)

    def get_trip(self, trip_id: uuid.UUID) -> TripRecord | None:
        """Get trip by ID."""
        with self._session_factory() as session:
            row = session.get(Trip, trip_id)
            return _trip_record(row) if row is not None else None

    def list_trips_by_owner(self, owner_id: uuid.UUID) -> list[TripRecord]:
        """List trips for an owner, newest first."""
        with self._session_factory() as session:
            rows = session.scalars(select_trips_for_owner(owner_id)).all()
            return [_trip_record(row) for row in rows]

    def list_trips_by_status(
        self, status: TripStatus, updated_before: datetime
    ) -> list[TripRecord]:
        """List trips in a status last updated before a cutoff."""
        with self._session_factory() as session:
            rows = session.scalars(
                select(Trip).where(Trip.status == status.value, Trip.updated_at < updated_before)
            ).all()
            return [_trip_record(row) for row in rows]

    def update_trip(self, trip: TripRecord) -> None:
        """Persist changes to an existing trip row."""
        with self._session_factory.begin() as session:
            row = session.get(Trip, trip.trip_id)
            if row is not None:
                _apply_trip(row, trip)

    def delete_trip(self, trip_id: uuid.UUID) -> None:
        """Delete items then the trip in one transaction."""
        with self._session_factory.begin() as session:
            session.execute(delete(ItineraryItem).where(ItineraryItem.trip_id == trip_id))
            session.execute(delete(Trip).where(Trip.trip_id == trip_id))

    def list_items(self, trip_id: uuid.UUID) -> list[ItineraryItemRecord]:
        """List a trip's items in presentation order."""
        with self._session_factory() as session:
            rows = session.scalars(select_items_for_trip(trip_id)).all()
            return [_item_record(row) for row in rows]

    def add_item(self, item: ItineraryItemRecord) -> None:
        """Persist one new item after the trip's current last sequence."""
        with self._session_factory.begin() as session:
            last = session.scalar(
                select(func.max(ItineraryItem.sequence)).where(
                    ItineraryItem.trip_id == item.trip_id
                )
            )
            session.add(_item_row(item, (last or 0) + 1))

    def update_item(self, item: ItineraryItemRecord) -> None:
        """Persist changes to one existing item."""
        with self._session_factory.begin() as session:
            row = session.get(ItineraryItem, item.item_id)
            if row is None:
                return
            row.day_index = item.day_index
            row.start_time = item.start_time
            row.end_time = item.end_time
            row.title = item.title
            row.category = item.category
            row.location = item.location
            row.description = item.description
            row.estimated_cost = item.estimated_cost
            row.coordinates = item.coordinates
            row.notes = item.notes

    def delete_item(self, item_id: uuid.UUID) -> None:
        """Delete one item."""
        with self._session_factory.begin() as session:
            session.execute(delete(ItineraryItem).where(ItineraryItem.item_id == item_id))

    def replace_itinerary(self, trip: TripRecord, items: list[ItineraryItemRecord]) -> None:
        """Replace items and update the trip row in one transaction."""
        with self._session_factory.begin() as session:
            session.execute(delete(ItineraryItem).where(ItineraryItem.trip_id == trip.trip_id))
            session.add_all(_item_row(item, seq) for seq, item in enumerate(items, start=1))
            row = session.get(Trip, trip.trip_id)
            if row is None:
                raise LookupError(f"trip {trip.trip_id} no longer exists")
            _apply_trip(row, trip)
