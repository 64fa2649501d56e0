"""Decoded LLM output."""

from datetime import time
from decimal import Decimal

from pydantic import BaseModel, Field

from trip_service.models.trip import CategoryBreakdown


class GeneratedItem(BaseModel):
    """One itinerary entry as proposed by the LLM.

    ``category`` is the lower-cased ``type`` string and is not restricted to
    the known categories.
    """

    day_index: int
    start_time: time | None
    end_time: time | None
    title: str
    category: str
    location: str | None
    description: str | None
    estimated_cost: Decimal
    notes: str | None = None


class GeneratedDay(BaseModel):
    """Items for one day."""

    day_index: int
    items: list[GeneratedItem] = Field(default_factory=list)


class GeneratedItinerary(BaseModel):
    """Complete decoded itinerary."""

    title: str
    destination: str | None
    days: list[GeneratedDay]
    budget_breakdown: CategoryBreakdown

    def all_items(self) -> list[GeneratedItem]:
        """Flatten days into a single list in document order."""
        return [item for day in self.days for item in day.items]
