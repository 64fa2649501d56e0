"""LLM client for itinerary generation over an OpenAI-compatible API.

Security: Reads API key from settings only, never hardcoded.
Provides a deterministic stub generator when no key is configured.
"""

import json
import logging
from datetime import date
from typing import Protocol

from openai import APIError, OpenAI

from trip_service.config import Settings, get_settings
from trip_service.errors import GenerationFailed

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = """You are a professional travel planning assistant. Produce a detailed \
day-by-day itinerary for the user's request.

Requirements:
1. Respond with strict JSON only. No prose, no markdown, no code fences.
2. Use exactly this structure:
{
  "title": "Trip title",
  "destination": "Destination",
  "days": [
    {
      "dayIndex": 1,
      "items": [
        {
          "startTime": "09:00",
          "endTime": "11:00",
          "title": "Place or activity name",
          "type": "attraction",
          "location": "Street address",
          "description": "What to do there",
          "estimatedCost": 100.0,
          "notes": "Practical tips"
        }
      ]
    }
  ],
  "budgetBreakdown": {
    "transport": 1000.0,
    "accommodation": 2000.0,
    "food": 1500.0,
    "attractions": 800.0,
    "other": 200.0
  }
}
3. "type" must be one of: attraction, restaurant, hotel, transport, other.
4. Times use 24-hour HH:mm format.
5. Costs are in the currency of the user's budget.
6. The total estimated cost must not exceed the user's budget.
7. Plan 3-5 items per day with sensible timing.
8. Return the complete JSON document; do not truncate it."""


def build_full_prompt(prompt: str) -> str:
    """Concatenate the fixed instruction with the user prompt."""
    return f"{SYSTEM_INSTRUCTION}\n\nUser request:\n{prompt}"


class ItineraryGenerator(Protocol):
    """Protocol for itinerary generator implementations."""

    def generate(self, prompt: str) -> str:
        """Generate raw itinerary text for a prompt.

        Args:
            prompt: User prompt built from the trip request

        Returns:
            Raw text of the first completion choice

        Raises:
            GenerationFailed: On transport errors or non-2xx responses
        """
        ...


class OpenAICompatibleGenerator:
    """Itinerary generator backed by an OpenAI-compatible chat endpoint."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        base_url: str | None = None,
        temperature: float = 0.7,
        top_p: float = 0.8,
        max_tokens: int = 8000,
        timeout: float = 120.0,
        client: OpenAI | None = None,
    ) -> None:
        """Initialize generator.

        Args:
            api_key: Provider API key
            model: Model name
            base_url: Endpoint base URL (None for api.openai.com)
            temperature: Sampling temperature
            top_p: Nucleus sampling threshold
            max_tokens: Output token budget
            timeout: Request timeout in seconds
            client: Optional preconfigured client (for testing)
        """
        # Retry policy belongs to the caller
        self.client = client or OpenAI(
            api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0
        )
        self.model = model
        self.temperature = temperature
        self.top_p = top_p
        self.max_tokens = max_tokens

    def generate(self, prompt: str) -> str:
        """Issue one completion call and return the first choice's text."""
        logger.info(f"Calling LLM for itinerary generation, model={self.model}")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": build_full_prompt(prompt)}],
                temperature=self.temperature,
                top_p=self.top_p,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except APIError as e:
            logger.error(f"LLM call failed: {e}")
            raise GenerationFailed(f"AI itinerary generation failed: {e}") from e

        if not response.choices:
            raise GenerationFailed("AI itinerary generation failed: response had no choices")

        choice = response.choices[0]
        if choice.finish_reason == "length":
            logger.warning("LLM output hit max_tokens; itinerary JSON is likely truncated")

        return choice.message.content or ""


class StubItineraryGenerator:
    """Deterministic generator for development and tests (no API key required)."""

    def generate(self, prompt: str) -> str:
        """Build a fixed-shape itinerary from the labeled prompt lines."""
        fields: dict[str, str] = {}
        for line in prompt.splitlines():
            if ": " in line:
                label, value = line.split(": ", 1)
                fields[label.strip().lower()] = value.strip()

        destination = fields.get("destination", "Destination")
        num_days = 1
        try:
            start = date.fromisoformat(fields["start date"])
            end = date.fromisoformat(fields["end date"])
            num_days = max(1, (end - start).days + 1)
        except (KeyError, ValueError):
            pass

        days = []
        for day_index in range(1, num_days + 1):
            days.append(
                {
                    "dayIndex": day_index,
                    "items": [
                        {
                            "startTime": "09:00",
                            "endTime": "11:30",
                            "title": f"{destination} sightseeing (day {day_index})",
                            "type": "attraction",
                            "location": f"{destination} city centre",
                            "description": "Placeholder activity generated without an LLM.",
                            "estimatedCost": 0,
                            "notes": "",
                        },
                        {
                            "startTime": "12:00",
                            "endTime": "13:00",
                            "title": "Lunch",
                            "type": "restaurant",
                            "location": f"{destination} old town",
                            "description": "Placeholder meal generated without an LLM.",
                            "estimatedCost": 0,
                            "notes": "",
                        },
                    ],
                }
            )

        return json.dumps(
            {
                "title": f"{destination} trip (stub)",
                "destination": destination,
                "days": days,
                "budgetBreakdown": {
                    "transport": 0,
                    "accommodation": 0,
                    "food": 0,
                    "attractions": 0,
                    "other": 0,
                },
            }
        )


def get_itinerary_generator(settings: Settings | None = None) -> ItineraryGenerator:
    """Factory function to get appropriate generator based on config.

    Returns:
        OpenAICompatibleGenerator if an API key is configured, StubItineraryGenerator otherwise
    """
    settings = settings or get_settings()
    api_key = settings.llm_api_key

    if api_key and api_key.get_secret_value():
        logger.info(f"Using OpenAI-compatible generator at {settings.llm_base_url}")
        return OpenAICompatibleGenerator(
            api_key.get_secret_value(),
            model=settings.llm_model,
            base_url=settings.llm_base_url,
            temperature=settings.llm_temperature,
            top_p=settings.llm_top_p,
            max_tokens=settings.llm_max_tokens,
            timeout=settings.llm_timeout_seconds,
        )

    logger.warning("No LLM API key configured, using deterministic stub generator")
    return StubItineraryGenerator()
