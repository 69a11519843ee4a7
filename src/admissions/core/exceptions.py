"""
Service Error Taxonomy

Every error raised by the document, academic history and application services
derives from ServiceError. Routers translate these to HTTP responses using
status_code and error_code; nothing below the router layer knows about HTTP.

Categories:
- NotFoundError: entity absent OR not owned by the caller (never distinguished)
- InvalidTransitionError: status state machine violation
- ValidationFailedError: bad file type/size, missing notes, bad date range
- TypeConflictError: second live document of a non-repeatable type
- OverlapError: academic periods overlap
- StorageFailureError: byte store I/O failure, retryable by the caller
"""

from uuid import UUID


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(ServiceError):
    """Raised when an entity does not exist or does not belong to the caller."""

    def __init__(self, message: str = "Resource not found", error_code: str = "NOT_FOUND"):
        super().__init__(message=message, error_code=error_code, status_code=404)


class InvalidTransitionError(ServiceError):
    """Raised when a status change is not allowed by the state machine."""

    def __init__(self, message: str, error_code: str = "INVALID_TRANSITION"):
        super().__init__(message=message, error_code=error_code, status_code=409)


class ValidationFailedError(ServiceError):
    """Raised when caller input fails validation and can be corrected."""

    def __init__(self, message: str, error_code: str = "VALIDATION_FAILED"):
        super().__init__(message=message, error_code=error_code, status_code=400)


class TypeConflictError(ServiceError):
    """Raised when a non-repeatable document type already has a live document."""

    def __init__(self, message: str, error_code: str = "TYPE_CONFLICT"):
        super().__init__(message=message, error_code=error_code, status_code=409)


class OverlapError(ServiceError):
    """Raised when an academic period overlaps an existing record."""

    def __init__(self, conflicting_record_id: UUID, message: str | None = None):
        self.conflicting_record_id = conflicting_record_id
        super().__init__(
            message=message
            or f"Academic history periods cannot overlap (conflicts with record {conflicting_record_id}).",
            error_code="ACADEMIC_PERIOD_OVERLAP",
            status_code=409,
        )


class StorageFailureError(ServiceError):
    """Raised when the byte store fails. Always safe for the caller to retry."""

    def __init__(self, message: str = "File storage is temporarily unavailable."):
        super().__init__(message=message, error_code="STORAGE_FAILURE", status_code=503)


__all__ = [
    "ServiceError",
    "NotFoundError",
    "InvalidTransitionError",
    "ValidationFailedError",
    "TypeConflictError",
    "OverlapError",
    "StorageFailureError",
]
