"""Health check endpoints.

- /health: liveness, always 200
- /healthz: checks DB connectivity and reports which external providers are
  configured; only the DB is critical
"""

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from trip_service.config import Settings, get_settings
from trip_service.db.engine import get_engine

router = APIRouter()


def check_db() -> tuple[bool, str]:
    """Check database connectivity.

    Returns:
        (is_ok, status_message)
    """
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return (True, "ok")
    except Exception as e:
        return (False, f"error: {type(e).__name__}")


def _configured(secret: Any) -> str:
    return "configured" if secret and secret.get_secret_value() else "not_configured"


def check_providers(settings: Settings) -> dict[str, str]:
    """Report which external providers have credentials.

    An unconfigured LLM falls back to the stub generator and an unconfigured
    geocoder leaves items without coordinates, so neither is critical.
    """
    return {
        "llm": _configured(settings.llm_api_key),
        "geocoding": _configured(settings.geocoding_api_key),
    }


@router.get("/health")
def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
def healthz() -> dict[str, Any] | JSONResponse:
    """Health check endpoint.

    Returns:
        200 with component status if the DB is reachable
        503 otherwise
    """
    settings = get_settings()
    db_ok, db_status = check_db()

    response_body = {
        "status": "ok" if db_ok else "degraded",
        "components": {"db": db_status, **check_providers(settings)},
    }

    if not db_ok:
        return JSONResponse(content=response_body, status_code=503)

    return response_body
