"""Service error taxonomy.

Every error raised by the trip pipeline carries an ``ErrorKind``. The HTTP
layer maps kinds to status codes through a table, never by inspecting
messages.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of error kinds surfaced by the service."""

    generation_failed = "generation_failed"
    invalid_generation_output = "invalid_generation_output"
    not_found = "not_found"
    forbidden = "forbidden"
    validation = "validation"


class TripServiceError(Exception):
    """Base class for all service errors."""

    kind: ErrorKind = ErrorKind.generation_failed

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class GenerationFailed(TripServiceError):
    """LLM call failed, or the generation pipeline was rolled back."""

    kind = ErrorKind.generation_failed


class InvalidGenerationOutput(TripServiceError):
    """LLM output could not be decoded into an itinerary."""

    kind = ErrorKind.invalid_generation_output


class NotFound(TripServiceError):
    """Trip or derived item index does not exist."""

    kind = ErrorKind.not_found


class Forbidden(TripServiceError):
    """Caller does not own the trip."""

    kind = ErrorKind.forbidden


class ValidationError(TripServiceError):
    """Malformed request fields."""

    kind = ErrorKind.validation
