"""Trip models - requests in, trip views out."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from trip_service.models.common import Coordinates, ItemCategory, Money, TripStatus


class CreateTripRequest(BaseModel):
    """User request for a generated trip."""

    destination: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    participants: Annotated[int, Field(ge=1)] = 1
    budget: Annotated[Decimal, Field(ge=0)]
    preferences: list[str] = Field(default_factory=list)
    raw_input: str | None = Field(None, description="Free-text input, e.g. transcribed voice")

    @field_validator("end_date")
    @classmethod
    def validate_end_after_start(cls, v: date, info: ValidationInfo) -> date:
        """Ensure end >= start."""
        if "start_date" in info.data and v < info.data["start_date"]:
            raise ValueError("end_date must be >= start_date")
        return v

    @field_validator("preferences", mode="before")
    @classmethod
    def split_preference_tags(cls, v: object) -> object:
        """Accept a comma-separated tag string as well as a list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [tag.strip() for tag in v.replace("，", ",").split(",") if tag.strip()]
        return v


class TripUpdate(BaseModel):
    """Partial update of trip fields; absent fields are left untouched."""

    title: str | None = Field(None, min_length=1)
    destination: str | None = Field(None, min_length=1)
    budget: Annotated[Decimal, Field(ge=0)] | None = None


class ItemCreate(BaseModel):
    """Manually added itinerary item."""

    day_index: Annotated[int, Field(ge=1)]
    start_time: time | None = None
    end_time: time | None = None
    title: str = Field(..., min_length=1)
    type: ItemCategory = ItemCategory.other
    location: str | None = None
    description: str = ""
    estimated_cost: Annotated[Decimal, Field(ge=0)] = Decimal("0")
    notes: str = ""

    @field_validator("end_time")
    @classmethod
    def validate_end_after_start(cls, v: time | None, info: ValidationInfo) -> time | None:
        """Ensure end >= start when both are present."""
        start = info.data.get("start_time")
        if v is not None and start is not None and v < start:
            raise ValueError("end_time must be >= start_time")
        return v


class ItemUpdate(BaseModel):
    """Partial update of an itinerary item; only fields that were sent apply."""

    day_index: Annotated[int, Field(ge=1)] | None = None
    start_time: time | None = None
    end_time: time | None = None
    title: str | None = Field(None, min_length=1)
    type: ItemCategory | None = None
    location: str | None = None
    description: str | None = None
    estimated_cost: Annotated[Decimal, Field(ge=0)] | None = None
    notes: str | None = None


class CategoryBreakdown(BaseModel):
    """Cost per budget category."""

    transport: Money = Decimal("0")
    accommodation: Money = Decimal("0")
    food: Money = Decimal("0")
    attractions: Money = Decimal("0")
    other: Money = Decimal("0")

    def total(self) -> Decimal:
        """Sum of all five categories."""
        return self.transport + self.accommodation + self.food + self.attractions + self.other


class BudgetSummary(BaseModel):
    """Derived budget figures; never persisted."""

    total_budget: Money
    estimated_cost: Money
    remaining: Money
    breakdown: CategoryBreakdown | None = None


class ItineraryItemView(BaseModel):
    """Itinerary item as returned to callers."""

    item_id: UUID
    day_index: int
    start_time: time | None
    end_time: time | None
    title: str
    type: str
    location: str | None
    description: str | None
    estimated_cost: Money
    notes: str | None
    coordinates: Coordinates | None


class TripSummary(BaseModel):
    """Trip row for listings: no items, no category breakdown."""

    id: UUID
    title: str
    destination: str
    start_date: date
    end_date: date
    participants: int
    budget: Money
    status: TripStatus
    created_at: datetime
    updated_at: datetime
    budget_summary: BudgetSummary


class TripDetail(TripSummary):
    """Full trip with ordered itinerary."""

    itinerary: list[ItineraryItemView]
