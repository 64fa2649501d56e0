"""Trip endpoints: generation, CRUD and item-level edits.

Handlers are plain ``def`` so FastAPI runs each request in its threadpool;
the generation pipeline blocks that worker for the duration of the LLM call.
Service errors propagate to the application's ``TripServiceError`` handler.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from trip_service.api.auth import get_current_context
from trip_service.api.dependencies import get_orchestrator
from trip_service.db.context import RequestContext
from trip_service.models.trip import (
    CreateTripRequest,
    ItemCreate,
    ItemUpdate,
    TripDetail,
    TripSummary,
    TripUpdate,
)
from trip_service.orchestration.trips import TripOrchestrator

router = APIRouter(prefix="/trips", tags=["trips"])

Context = Annotated[RequestContext, Depends(get_current_context)]
Orchestrator = Annotated[TripOrchestrator, Depends(get_orchestrator)]


@router.post("", response_model=TripDetail, status_code=status.HTTP_201_CREATED)
def create_trip(
    request: CreateTripRequest, ctx: Context, orchestrator: Orchestrator
) -> TripDetail:
    """Create a trip and generate its itinerary.

    Returns:
        Generated trip with the LLM's declared budget breakdown

    Raises:
        502 if the LLM call fails or its output cannot be decoded
    """
    return orchestrator.create_and_generate_trip(ctx.user_id, request)


@router.get("", response_model=list[TripSummary])
def list_trips(ctx: Context, orchestrator: Orchestrator) -> list[TripSummary]:
    """List the caller's trips, newest first."""
    return orchestrator.list_trips(ctx.user_id)


@router.get("/{trip_id}", response_model=TripDetail)
def get_trip(trip_id: uuid.UUID, ctx: Context, orchestrator: Orchestrator) -> TripDetail:
    """Get a trip with its itinerary and recomputed budget breakdown."""
    return orchestrator.get_trip(trip_id, ctx.user_id)


@router.put("/{trip_id}", response_model=TripDetail)
def update_trip(
    trip_id: uuid.UUID, update: TripUpdate, ctx: Context, orchestrator: Orchestrator
) -> TripDetail:
    """Update title, destination and/or budget."""
    return orchestrator.update_trip(trip_id, ctx.user_id, update)


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_trip(trip_id: uuid.UUID, ctx: Context, orchestrator: Orchestrator) -> Response:
    """Delete a trip and all its items."""
    orchestrator.delete_trip(trip_id, ctx.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{trip_id}/itinerary", response_model=TripDetail, status_code=status.HTTP_201_CREATED)
def add_item(
    trip_id: uuid.UUID, item: ItemCreate, ctx: Context, orchestrator: Orchestrator
) -> TripDetail:
    """Add an itinerary item."""
    return orchestrator.add_item(trip_id, ctx.user_id, item)


@router.put("/{trip_id}/itinerary/{index}", response_model=TripDetail)
def update_item(
    trip_id: uuid.UUID,
    index: int,
    update: ItemUpdate,
    ctx: Context,
    orchestrator: Orchestrator,
) -> TripDetail:
    """Update the item at a position in (day, start time) order."""
    return orchestrator.update_item(trip_id, ctx.user_id, index, update)


@router.delete("/{trip_id}/itinerary/{index}", response_model=TripDetail)
def delete_item(
    trip_id: uuid.UUID, index: int, ctx: Context, orchestrator: Orchestrator
) -> TripDetail:
    """Delete the item at a position in (day, start time) order."""
    return orchestrator.delete_item(trip_id, ctx.user_id, index)


@router.put("/{trip_id}/items/{item_id}", response_model=TripDetail)
def update_item_by_id(
    trip_id: uuid.UUID,
    item_id: uuid.UUID,
    update: ItemUpdate,
    ctx: Context,
    orchestrator: Orchestrator,
) -> TripDetail:
    """Update an item by its stable ID."""
    return orchestrator.update_item_by_id(trip_id, ctx.user_id, item_id, update)


@router.delete("/{trip_id}/items/{item_id}", response_model=TripDetail)
def delete_item_by_id(
    trip_id: uuid.UUID, item_id: uuid.UUID, ctx: Context, orchestrator: Orchestrator
) -> TripDetail:
    """Delete an item by its stable ID."""
    return orchestrator.delete_item_by_id(trip_id, ctx.user_id, item_id)
