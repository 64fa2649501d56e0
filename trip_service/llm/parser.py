"""Strict decoding of LLM itinerary output.

The LLM is semi-trusted: its text must be valid JSON in the requested shape.
Anything that cannot be decoded into a typed itinerary raises
InvalidGenerationOutput, which is fatal to the whole generation run. There is
no per-item skip-and-continue. Non-numeric costs and day indexes (e.g.
"¥150") are the exception: they decode to 0 with a warning.
"""

import json
import logging
import re
from datetime import time
from decimal import Decimal, InvalidOperation
from typing import Any

from trip_service.errors import InvalidGenerationOutput
from trip_service.models.common import KNOWN_CATEGORIES, parse_hhmm
from trip_service.models.generation import GeneratedDay, GeneratedItem, GeneratedItinerary
from trip_service.models.trip import CategoryBreakdown

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)

BREAKDOWN_FIELDS = ("transport", "accommodation", "food", "attractions", "other")


def strip_code_fence(raw: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    text = raw.strip()
    match = _FENCE_RE.match(text)
    return match.group(1) if match else text


def braces_balanced(text: str) -> bool:
    """Cheap completeness heuristic: equal counts of '{' and '}'."""
    return text.count("{") == text.count("}")


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


def _number(value: Any) -> Decimal | None:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _amount(value: Any, field: str) -> Decimal:
    """Decode a cost; absent, null or non-numeric means zero."""
    if value is None:
        return Decimal("0")
    amount = _number(value)
    if amount is None:
        logger.warning(f"{field} is not a number, treating as 0: {value!r}")
        return Decimal("0")
    if amount < 0:
        raise InvalidGenerationOutput(f"{field} must be a non-negative number: {value!r}")
    return amount


def _time(value: Any, field: str) -> time | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise InvalidGenerationOutput(f"{field} is not an HH:mm string: {value!r}")
    try:
        return parse_hhmm(value)
    except ValueError as e:
        raise InvalidGenerationOutput(f"{field} is not a valid HH:mm time: {value!r}") from e


def _day_index(value: Any) -> int:
    # Missing or non-numeric dayIndex decodes to 0; range checks happen downstream
    if value is None:
        return 0
    number = _number(value)
    if number is None:
        logger.warning(f"dayIndex is not an integer, treating as 0: {value!r}")
        return 0
    return int(number)


def _parse_item(node: Any, day_index: int) -> GeneratedItem:
    if not isinstance(node, dict):
        raise InvalidGenerationOutput(f"itinerary item is not an object: {node!r}")

    category = (_text(node.get("type")) or "").strip().lower()
    if category not in KNOWN_CATEGORIES:
        logger.warning(f"Unknown itinerary item type {category!r}; it will not count toward any category")

    return GeneratedItem(
        day_index=day_index,
        start_time=_time(node.get("startTime"), "startTime"),
        end_time=_time(node.get("endTime"), "endTime"),
        title=_text(node.get("title")) or "",
        category=category,
        location=_text(node.get("location")),
        description=_text(node.get("description")),
        estimated_cost=_amount(node.get("estimatedCost"), "estimatedCost"),
        notes=_text(node.get("notes")),
    )


def _parse_breakdown(node: Any) -> CategoryBreakdown:
    if node is None:
        return CategoryBreakdown()
    if not isinstance(node, dict):
        raise InvalidGenerationOutput("budgetBreakdown is not an object")
    return CategoryBreakdown(
        **{name: _amount(node.get(name), f"budgetBreakdown.{name}") for name in BREAKDOWN_FIELDS}
    )


def parse_itinerary(raw: str) -> GeneratedItinerary:
    """Decode raw LLM text into a typed itinerary.

    Args:
        raw: Text returned by the generator, expected to be a JSON object

    Returns:
        GeneratedItinerary with days, items and the declared budget breakdown

    Raises:
        InvalidGenerationOutput: If the text is not JSON, is not shaped like an
            itinerary, or carries malformed times or negative costs
    """
    text = strip_code_fence(raw or "")

    if not braces_balanced(text):
        logger.warning("LLM output braces are unbalanced; JSON may be truncated")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidGenerationOutput(f"AI output is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise InvalidGenerationOutput("AI output is not a JSON object")

    days_node = data.get("days") or []
    if not isinstance(days_node, list):
        raise InvalidGenerationOutput("days is not an array")

    days: list[GeneratedDay] = []
    for day_node in days_node:
        if not isinstance(day_node, dict):
            raise InvalidGenerationOutput(f"day entry is not an object: {day_node!r}")
        day_index = _day_index(day_node.get("dayIndex"))
        items_node = day_node.get("items") or []
        if not isinstance(items_node, list):
            raise InvalidGenerationOutput(f"items for day {day_index} is not an array")
        days.append(
            GeneratedDay(
                day_index=day_index,
                items=[_parse_item(node, day_index) for node in items_node],
            )
        )

    return GeneratedItinerary(
        title=(_text(data.get("title")) or "").strip(),
        destination=_text(data.get("destination")),
        days=days,
        budget_breakdown=_parse_breakdown(data.get("budgetBreakdown")),
    )
