"""Request context carrying the caller identity."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class RequestContext:
    """Authenticated caller identity.

    Produced by the auth dependency and passed to every trip operation as the
    owner ID used for ownership checks.
    """

    user_id: UUID
