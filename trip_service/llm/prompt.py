"""Prompt construction for itinerary generation."""

from trip_service.models.trip import CreateTripRequest


def build_prompt(request: CreateTripRequest) -> str:
    """Render a trip request as the user prompt sent to the LLM.

    Free-text input, when present, goes first verbatim followed by a blank
    line. Structured fields follow as labeled lines in a fixed order.

    Args:
        request: Validated trip request

    Returns:
        Prompt string
    """
    lines: list[str] = []

    if request.raw_input:
        lines.append(request.raw_input)
        lines.append("")

    lines.append(f"Destination: {request.destination}")
    lines.append(f"Start date: {request.start_date.isoformat()}")
    lines.append(f"End date: {request.end_date.isoformat()}")
    lines.append(f"Participants: {request.participants}")
    lines.append(f"Budget: {request.budget}")
    if request.preferences:
        lines.append(f"Preferences: {', '.join(request.preferences)}")

    return "\n".join(lines) + "\n"
