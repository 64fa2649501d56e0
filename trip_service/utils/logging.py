"""Structured logging for the trip generation pipeline."""

import logging
from typing import Any
from uuid import UUID

from trip_service.models.common import TripStatus

logger = logging.getLogger(__name__)


class StructuredPipelineLogger:
    """Structured logger for trip lifecycle events."""

    def log_transition(
        self,
        trip_id: UUID,
        owner_id: UUID,
        from_status: TripStatus | None,
        to_status: TripStatus,
        error_reason: str | None = None,
    ) -> None:
        """Log a trip status transition with structured data."""
        log_data: dict[str, Any] = {
            "trip_id": str(trip_id),
            "owner_id": str(owner_id),
            "from_status": from_status.value if from_status else None,
            "to_status": to_status.value,
        }

        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = (
            f"Trip {trip_id}: {from_status.value if from_status else 'new'} -> {to_status.value}"
        )

        if error_reason:
            logger.warning(log_msg, extra={"structured": log_data})
        else:
            logger.info(log_msg, extra={"structured": log_data})

    def log_generation(
        self,
        trip_id: UUID,
        outcome: str,
        latency_ms: float,
        item_count: int = 0,
        geocoded_count: int = 0,
    ) -> None:
        """Log the outcome of one generation run."""
        log_data: dict[str, Any] = {
            "trip_id": str(trip_id),
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
            "item_count": item_count,
            "geocoded_count": geocoded_count,
        }

        log_msg = f"Trip generation: {trip_id} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
