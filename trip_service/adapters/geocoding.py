"""Geocoding adapter for an AMap-style REST geocoder.

Geocoding is an optional enhancement: every failure degrades to "no
coordinates" and is never raised to the caller.
"""

import logging
import threading

import httpx

from trip_service.config import Settings, get_settings
from trip_service.models.common import Coordinates
from trip_service.ratelimit import IntervalGate
from trip_service.utils.metrics import PrometheusPipelineMetrics

logger = logging.getLogger(__name__)

_SUCCESS_STATUSES = {"1", "ok"}

# One gate per process unless a caller injects its own
_shared_gate: IntervalGate | None = None
_shared_gate_lock = threading.Lock()


def get_shared_gate(settings: Settings | None = None) -> IntervalGate:
    """Get the process-wide geocoding rate gate."""
    global _shared_gate
    if _shared_gate is None:
        with _shared_gate_lock:
            if _shared_gate is None:
                settings = settings or get_settings()
                _shared_gate = IntervalGate(settings.geocoding_interval_ms / 1000.0)
    return _shared_gate


def parse_lng_lat(value: str | None) -> Coordinates | None:
    """Parse a provider ``"lng,lat"`` string, rounding to 6 decimal places."""
    if not value:
        return None
    parts = value.split(",")
    if len(parts) != 2:
        return None
    try:
        return Coordinates.rounded(float(parts[0]), float(parts[1]))
    except ValueError:
        return None


class GeocodingEnricher:
    """Resolves free-text locations to coordinates through a shared rate gate."""

    def __init__(
        self,
        api_key: str | None,
        gate: IntervalGate,
        *,
        base_url: str = "https://restapi.amap.com/v3/geocode/geo",
        timeout: float = 5.0,
        client: httpx.Client | None = None,
        metrics: PrometheusPipelineMetrics | None = None,
    ) -> None:
        """Initialize enricher.

        Args:
            api_key: Provider key; None or empty disables geocoding
            gate: Rate gate shared by all callers
            base_url: Geocoder endpoint
            timeout: HTTP timeout in seconds
            client: Optional httpx client (for testing with mocks)
            metrics: Optional metrics sink
        """
        self._api_key = api_key
        self._gate = gate
        self._base_url = base_url
        self._client = client or httpx.Client(timeout=timeout)
        self._metrics = metrics or PrometheusPipelineMetrics()

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    def geocode(self, location: str, city: str | None = None) -> Coordinates | None:
        """Resolve a location to coordinates.

        Args:
            location: Free-text address or place name
            city: Optional city hint, prefixed to the address

        Returns:
            Coordinates rounded to 6 decimal places, or None
        """
        if not self.enabled:
            logger.debug("No geocoding API key configured, skipping lookup")
            return None
        if not location or not location.strip():
            return None

        address = f"{city}{location}" if city else location

        waited = self._gate.acquire()
        self._metrics.observe_gate_wait(waited * 1000.0)

        try:
            response = self._client.get(
                self._base_url, params={"key": self._api_key, "address": address}
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Geocoding request failed for {address!r}: {e}")
            self._metrics.inc_geocode("error")
            return None

        if not isinstance(data, dict):
            self._metrics.inc_geocode("error")
            return None

        status = str(data.get("status", "")).lower()
        if status not in _SUCCESS_STATUSES:
            logger.warning(f"Geocoding failed for {address!r}: {data.get('info')}")
            self._metrics.inc_geocode("provider_status")
            return None

        geocodes = data.get("geocodes") or []
        if not isinstance(geocodes, list) or not geocodes:
            logger.warning(f"No geocoding result for {address!r}")
            self._metrics.inc_geocode("empty")
            return None

        first = geocodes[0]
        coords = parse_lng_lat(first.get("location") if isinstance(first, dict) else None)
        if coords is None:
            logger.warning(f"Malformed geocoding coordinates for {address!r}")
            self._metrics.inc_geocode("malformed")
            return None

        logger.debug(f"Geocoded {address!r} -> {coords.to_json()}")
        self._metrics.inc_geocode("ok")
        return coords

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()


def get_geocoding_enricher(settings: Settings | None = None) -> GeocodingEnricher:
    """Build an enricher from settings, bound to the process-wide gate."""
    settings = settings or get_settings()
    api_key = settings.geocoding_api_key.get_secret_value() if settings.geocoding_api_key else None
    if not api_key:
        logger.warning("No geocoding API key configured, itinerary items will have no coordinates")
    return GeocodingEnricher(
        api_key,
        get_shared_gate(settings),
        base_url=settings.geocoding_base_url,
        timeout=settings.geocoding_timeout_seconds,
    )
