"""Common types and enums shared across all models."""

import json
import re
from datetime import time
from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer

# Monetary amounts are Decimal internally and plain numbers on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

COORDINATE_PRECISION = 6

_HHMM_RE = re.compile(r"[0-9]{2}:[0-9]{2}")


class TripStatus(str, Enum):
    """Trip lifecycle status."""

    draft = "draft"
    generating = "generating"
    generated = "generated"
    confirmed = "confirmed"  # reserved, no transition produces it yet


class ItemCategory(str, Enum):
    """Itinerary item category."""

    attraction = "attraction"
    restaurant = "restaurant"
    hotel = "hotel"
    transport = "transport"
    other = "other"


KNOWN_CATEGORIES = frozenset(c.value for c in ItemCategory)


class Coordinates(BaseModel):
    """Longitude/latitude pair (WGS84 or provider datum)."""

    lng: float = Field(..., ge=-180, le=180)
    lat: float = Field(..., ge=-90, le=90)

    @classmethod
    def rounded(cls, lng: float, lat: float) -> "Coordinates":
        """Build coordinates rounded to storage precision."""
        return cls(lng=round(lng, COORDINATE_PRECISION), lat=round(lat, COORDINATE_PRECISION))

    def to_json(self) -> str:
        """Serialize as a compact JSON object: {"lng":..,"lat":..}."""
        return json.dumps(
            {
                "lng": round(self.lng, COORDINATE_PRECISION),
                "lat": round(self.lat, COORDINATE_PRECISION),
            },
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, raw: str | None) -> "Coordinates | None":
        """Parse stored coordinates; anything incomplete or malformed yields None."""
        if not raw:
            return None
        try:
            data = json.loads(raw)
            return cls(lng=float(data["lng"]), lat=float(data["lat"]))
        except (ValueError, TypeError, KeyError):
            return None


def parse_hhmm(value: str) -> time:
    """Parse a 24-hour ``HH:mm`` string.

    Raises:
        ValueError: If the string is not a valid ``HH:mm`` time
    """
    text = value.strip()
    if not _HHMM_RE.fullmatch(text):
        raise ValueError(f"invalid HH:mm time: {value!r}")
    return time(hour=int(text[:2]), minute=int(text[3:]))

