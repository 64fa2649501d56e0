"""Tests for bounded concurrent geocoding."""

import threading
import time

from trip_service.models.common import Coordinates
from trip_service.orchestration.enrich import ItemEnricher

KYOTO_STATION = Coordinates(lng=135.758767, lat=34.985849)
GION = Coordinates(lng=135.775, lat=35.0037)


def test_results_align_with_input_order(geocoder) -> None:
    geocoder.results = {"Kyoto Station": KYOTO_STATION, "Gion": GION}
    enricher = ItemEnricher(geocoder, max_workers=4)

    result = enricher.enrich(["Gion", "Nowhere", None, "Kyoto Station", ""], "Kyoto")

    assert result == [GION, None, None, KYOTO_STATION, None]


def test_city_hint_is_passed_to_every_lookup(geocoder) -> None:
    ItemEnricher(geocoder, max_workers=1).enrich(["Gion", "Kyoto Station"], "Kyoto")

    assert sorted(geocoder.calls) == [("Gion", "Kyoto"), ("Kyoto Station", "Kyoto")]


def test_blank_locations_are_not_looked_up(geocoder) -> None:
    ItemEnricher(geocoder).enrich([None, "", "  "], "Kyoto")

    assert geocoder.calls == []


def test_failing_lookup_leaves_item_without_coordinates(failing_geocoder) -> None:
    enricher = ItemEnricher(failing_geocoder, max_workers=3)

    assert enricher.enrich(["Gion", "Kyoto Station"], "Kyoto") == [None, None]
    assert enricher.lookup("Gion") is None


def test_disabled_geocoder_is_skipped(disabled_geocoder) -> None:
    assert ItemEnricher(disabled_geocoder).enrich(["Fushimi Inari Taisha"], "Kyoto") == [None]
    assert disabled_geocoder.calls == []


def test_empty_batch() -> None:
    class Never:
        enabled = True

        def geocode(self, location: str, city: str | None = None) -> Coordinates | None:
            raise AssertionError("not called")

    assert ItemEnricher(Never()).enrich([]) == []


def test_lookups_overlap_up_to_worker_count() -> None:
    """Slow lookups run concurrently, bounded by the pool size."""

    class SlowGeocoder:
        enabled = True

        def __init__(self) -> None:
            self.active = 0
            self.peak = 0
            self._lock = threading.Lock()

        def geocode(self, location: str, city: str | None = None) -> Coordinates | None:
            with self._lock:
                self.active += 1
                self.peak = max(self.peak, self.active)
            time.sleep(0.05)
            with self._lock:
                self.active -= 1
            return None

    slow = SlowGeocoder()

    ItemEnricher(slow, max_workers=2).enrich([f"place {i}" for i in range(6)])

    assert 1 <= slow.peak <= 2
