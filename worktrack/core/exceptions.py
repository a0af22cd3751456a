"""
Domain exception hierarchy.

Services raise these types and never HTTP errors. The API layer registers one
handler per type in ``worktrack.main`` so every endpoint maps them to the same
status codes:

    ValidationError      -> 422
    NotFoundError        -> 404
    ConflictError        -> 409 (ConcurrencyHazard included)
    TransientStoreError  -> 503

Usage:
    from worktrack.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Request", resource_id=request_id)
    raise ValidationError("Please enter a request title", details={"title": "required"})
"""


class ValidationError(Exception):
    """Raised when input violates a business rule before anything is written.

    Args:
        message: Human-readable explanation, safe to show to the user.
        details: Optional field-level breakdown. Keys are field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(Exception):
    """Raised when a request, entry, client or profile id does not exist.

    Callers should treat this as "someone else deleted it".
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ConflictError(Exception):
    """Raised when a write would violate a unique constraint."""

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")


class ConcurrencyHazard(ConflictError):
    """Raised when two creations raced for the same request number.

    The create is aborted and nothing is persisted. The caller may retry,
    which allocates a fresh number.
    """

    def __init__(self, request_number: str | None = None) -> None:
        super().__init__("Request", "request_number", request_number)


class TransientStoreError(Exception):
    """Raised when the database is unreachable or a statement fails.

    The core never retries on its own.
    """

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"Store failure during {operation}")
