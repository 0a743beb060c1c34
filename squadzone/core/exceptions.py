# squadzone/core/exceptions.py
"""
Domain-specific exceptions for the SquadZone messaging backend.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Each one knows the HTTP status it maps to and carries a machine-readable
``code`` that ends up in the ``{error, code}`` response body.
"""

from typing import Any, Dict, Optional

from fastapi import status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: str = "STORAGE_FAILURE"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(DomainException):
    """Raised when an identifier or body field is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "INVALID_ARGUMENT"


class UnauthorizedException(DomainException):
    """Raised when there is no active session."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "UNAUTHENTICATED"


class ForbiddenException(DomainException):
    """Raised when the caller acts on a resource that is not theirs."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"


class ServiceException(DomainException):
    """Raised when the underlying store fails during a service operation."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "STORAGE_FAILURE"


class OperationTimeoutException(ServiceException):
    """Raised when a service call exceeds its time budget."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = "TIMEOUT"


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
