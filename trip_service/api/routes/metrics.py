"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes all registered Prometheus metrics including:
    - trip_generation_total{outcome}
    - trip_generation_latency_ms{outcome}
    - geocode_requests_total{outcome}
    - geocode_rate_gate_wait_ms
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
