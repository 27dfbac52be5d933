"""Domain exceptions raised by the service layer and mapped to HTTP responses."""
from typing import Optional

from pokefolio.services.result_objects import ErrorCode


class ServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class NotFoundError(ServiceError):
    """Resource absent or not owned by the caller."""
    error_code = ErrorCode.NOT_FOUND
    status_code = 404


class BadRequestError(ServiceError):
    """Request is well formed but violates a business rule."""
    error_code = ErrorCode.VALIDATION_ERROR
    status_code = 400


class DuplicateError(ServiceError):
    """Resource already exists."""
    error_code = ErrorCode.DUPLICATE
    status_code = 409


class CatalogUnavailableError(ServiceError):
    """The card catalog or the pricing API failed for a reason other than "not found"."""
    error_code = ErrorCode.UPSTREAM_UNAVAILABLE
    status_code = 502
