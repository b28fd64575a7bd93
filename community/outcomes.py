"""
Typed outcomes returned across the community core.

Guards, lifecycle pipelines and transitions never raise for expected
failures. They return one of the dataclasses below and the HTTP layer
turns it into a JSON response with ``Outcome.http_status``.

    Ok               -> 200, optional ``value`` (new id, message, ...)
    Forbidden        -> 403, guard failed, reason is shown to the user
    NotFound         -> 404, target id absent
    Conflict         -> 409, state already satisfies the request
    ValidationError  -> 400, field -> list of messages
    ServerError      -> 500, generic message, cause is logged
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Outcome:
    http_status = 200

    @property
    def ok(self) -> bool:
        return False

    def to_payload(self) -> dict:
        raise NotImplementedError


@dataclass(frozen=True)
class Ok(Outcome):
    value: Any = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return True

    def to_payload(self) -> dict:
        payload = {"status": "success"}
        if self.message:
            payload["message"] = self.message
        if self.value is not None:
            payload["id"] = self.value
        return payload


@dataclass(frozen=True)
class Failure(Outcome):
    message: str = ""

    def to_payload(self) -> dict:
        return {"status": "error", "message": self.message}


@dataclass(frozen=True)
class Forbidden(Failure):
    http_status = 403


@dataclass(frozen=True)
class NotFound(Failure):
    http_status = 404


@dataclass(frozen=True)
class Conflict(Failure):
    http_status = 409


@dataclass(frozen=True)
class ServerError(Failure):
    http_status = 500


@dataclass(frozen=True)
class ValidationError(Failure):
    """Malformed input. ``errors`` maps a field name to its messages."""

    http_status = 400
    errors: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_form(cls, form) -> "ValidationError":
        errors = {name: [str(m) for m in messages] for name, messages in form.errors.items()}
        first = next(iter(errors.values()), ["Invalid input."])[0]
        return cls(message=first, errors=errors)

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["errors"] = self.errors
        return payload
