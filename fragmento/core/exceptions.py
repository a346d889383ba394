"""Domain errors raised by the service layer.

Each error carries the HTTP status the API boundary answers with, so the
services never import FastAPI.
"""
from pydantic import ValidationError


class DomainError(Exception):
    """Base class for every error the core raises on purpose."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(DomainError):
    """A referenced entity does not exist."""

    status_code = 404


class Forbidden(DomainError):
    """The actor does not own the entity it tries to change."""

    status_code = 403


class Conflict(DomainError):
    """A uniqueness rule was violated and the operation is not idempotent."""

    status_code = 409


class InvalidOperation(DomainError):
    """The request breaks a structural invariant (self-follow, cross-post reply, cycles)."""

    status_code = 400


class ValidationFailed(DomainError):
    """A field-level constraint (length, range, format) was violated."""

    status_code = 422

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "ValidationFailed":
        """Build from a pydantic ValidationError, keeping the first problem."""
        errors = exc.errors()
        if not errors:
            return cls("Invalid input")
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        return cls(f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg", "Invalid input"))
