"""
Domain errors raised by the ticketing core.

Services raise these; the API layer turns them into responses in one place
(see campustix.api.errors). Each error carries a machine-readable code, a
user-safe message and the HTTP status it maps to.
"""

from typing import Any, Optional


class TicketingError(Exception):
    """Base class for every error the core surfaces to callers."""

    status_code: int = 400
    code: str = "ticketing_error"
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.retryable:
            body["retryable"] = True
        return body

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ValidationError(TicketingError):
    """Malformed or missing input. Never retried."""

    status_code = 422
    code = "validation_error"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["field"] = self.field
        return body


class NotFoundError(TicketingError):
    status_code = 404
    code = "not_found"

    def __init__(self, resource: str, resource_id: Any) -> None:
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(TicketingError):
    """The target is no longer in a state that allows the operation."""

    status_code = 409
    code = "conflict"


class SoldOutError(TicketingError):
    status_code = 409
    code = "sold_out"

    def __init__(self, event_id: int, requested: int, available: int) -> None:
        super().__init__(
            f"Not enough tickets for event {event_id}. "
            f"Requested: {requested}, Available: {available}"
        )
        self.event_id = event_id
        self.requested = requested
        self.available = available

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["requested"] = self.requested
        body["available"] = self.available
        return body


class StorageError(TicketingError):
    """Transient infrastructure failure. Nothing was written; safe to retry."""

    status_code = 503
    code = "storage_error"
    retryable = True

    def __init__(self, operation: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Storage failure during {operation}. Please retry.")
        self.operation = operation


class StorageTimeout(StorageError):
    code = "storage_timeout"

    def __init__(self, operation: str) -> None:
        super().__init__(operation, f"Timed out during {operation}. Please retry.")


class StorageUnavailable(StorageError):
    code = "storage_unavailable"
