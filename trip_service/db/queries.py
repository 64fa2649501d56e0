"""Query helpers shared by the SQL repository."""

import uuid

from sqlalchemy import Select, select

from trip_service.db.models import ItineraryItem, Trip


def select_trips_for_owner(owner_id: uuid.UUID) -> Select[tuple[Trip]]:
    """Select an owner's trips, newest first.

    Args:
        owner_id: Owning user ID

    Returns:
        Select statement ordered by created_at descending
    """
    return select(Trip).where(Trip.owner_id == owner_id).order_by(Trip.created_at.desc())


def select_items_for_trip(trip_id: uuid.UUID) -> Select[tuple[ItineraryItem]]:
    """Select a trip's items in presentation order.

    Untimed items sort after timed ones within a day; ``sequence`` breaks ties.

    Args:
        trip_id: Trip ID

    Returns:
        Select statement ordered by day, start time, sequence
    """
    return (
        select(ItineraryItem)
        .where(ItineraryItem.trip_id == trip_id)
        .order_by(
            ItineraryItem.day_index,
            ItineraryItem.start_time.is_(None),
            ItineraryItem.start_time,
            ItineraryItem.sequence,
        )
    )
