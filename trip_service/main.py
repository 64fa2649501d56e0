"""FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from trip_service.api.dependencies import get_orchestrator
from trip_service.api.routes.health import router as health_router
from trip_service.api.routes.metrics import router as metrics_router
from trip_service.api.routes.trips import router as trips_router
from trip_service.db.engine import get_engine
from trip_service.db.models import Base
from trip_service.errors import ErrorKind, TripServiceError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.generation_failed: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.invalid_generation_output: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.not_found: status.HTTP_404_NOT_FOUND,
    ErrorKind.forbidden: status.HTTP_403_FORBIDDEN,
    ErrorKind.validation: status.HTTP_422_UNPROCESSABLE_CONTENT,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Ensure the schema exists and reset generations interrupted by a restart."""
    Base.metadata.create_all(get_engine())
    orchestrator = app.dependency_overrides.get(get_orchestrator, get_orchestrator)()
    recovered = orchestrator.recover_stale_generations()
    if recovered:
        logger.info(f"Recovered {recovered} stale generation(s) at startup")
    yield


app = FastAPI(title="Trip Generation API", version="0.1.0", lifespan=lifespan)


@app.exception_handler(TripServiceError)
async def handle_service_error(request: Request, exc: TripServiceError) -> JSONResponse:
    """Map service error kinds to HTTP status codes."""
    return JSONResponse(
        status_code=ERROR_STATUS[exc.kind],
        content={"error": exc.kind.value, "detail": exc.message},
    )


# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(trips_router, prefix=API_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Trip Generation API", "version": "0.1.0"}
