"""
Domain errors raised by services and mapped to HTTP status codes by routes.
"""
from typing import Any, Dict


class NotFoundError(LookupError):
    """A brief, user, client, proposal or template does not exist for the caller (404)."""


class PreconditionError(ValueError):
    """The entity is not in a state that allows the operation (400)."""


class AIResponseError(RuntimeError):
    """The model replied with content that does not parse as the expected schema (500)."""


class QuotaExceededError(Exception):
    """Subscription quota check rejected the request (402)."""

    def __init__(self, payload: Dict[str, Any]):
        super().__init__(payload.get("message", "Proposal limit reached"))
        self.payload = payload
