"""Models package - re-exports for convenience."""

from trip_service.models.common import (
    Coordinates,
    ItemCategory,
    Money,
    TripStatus,
    parse_hhmm,
)
from trip_service.models.generation import GeneratedDay, GeneratedItem, GeneratedItinerary
from trip_service.models.trip import (
    BudgetSummary,
    CategoryBreakdown,
    CreateTripRequest,
    ItemCreate,
    ItemUpdate,
    ItineraryItemView,
    TripDetail,
    TripSummary,
    TripUpdate,
)

__all__ = [
    # Common
    "Coordinates",
    "ItemCategory",
    "Money",
    "TripStatus",
    "parse_hhmm",
    # Requests
    "CreateTripRequest",
    "TripUpdate",
    "ItemCreate",
    "ItemUpdate",
    # Views
    "BudgetSummary",
    "CategoryBreakdown",
    "ItineraryItemView",
    "TripSummary",
    "TripDetail",
    # Generation
    "GeneratedItinerary",
    "GeneratedDay",
    "GeneratedItem",
]
