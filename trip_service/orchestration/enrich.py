"""Bounded concurrent geocoding of itinerary items.

Workers share the geocoder's rate gate, so throughput stays capped by the
gate interval; concurrency only overlaps provider latency with gate waits.
Each lookup keeps the soft-failure contract: a failed lookup yields None.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from trip_service.models.common import Coordinates

logger = logging.getLogger(__name__)


class Geocoder(Protocol):
    """Anything that resolves a location to coordinates."""

    @property
    def enabled(self) -> bool:
        """Whether lookups can succeed at all."""
        ...

    def geocode(self, location: str, city: str | None = None) -> Coordinates | None:
        """Resolve a location, returning None on any failure."""
        ...


class ItemEnricher:
    """Geocodes batches of locations with a small worker pool."""

    def __init__(self, geocoder: Geocoder, max_workers: int = 4) -> None:
        self._geocoder = geocoder
        self._max_workers = max(1, max_workers)

    @property
    def geocoder(self) -> Geocoder:
        return self._geocoder

    def lookup(self, location: str | None, city: str | None = None) -> Coordinates | None:
        """Geocode one location; never raises."""
        if not location or not location.strip() or not self._geocoder.enabled:
            return None
        try:
            return self._geocoder.geocode(location, city)
        except Exception as e:
            logger.warning(f"Geocoding {location!r} failed, continuing without coordinates: {e}")
            return None

    def enrich(self, locations: list[str | None], city: str | None = None) -> list[Coordinates | None]:
        """Geocode many locations.

        Args:
            locations: Locations in item order (None entries are skipped)
            city: City hint applied to every lookup

        Returns:
            Coordinates (or None) aligned with ``locations``
        """
        if not locations or not self._geocoder.enabled:
            return [None] * len(locations)

        workers = min(self._max_workers, len(locations))
        if workers == 1:
            return [self.lookup(location, city) for location in locations]

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="geocode") as pool:
            futures = [pool.submit(self.lookup, location, city) for location in locations]
            return [future.result() for future in futures]
