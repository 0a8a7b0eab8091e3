# backend/staybook/core/exceptions.py
"""
Domain-specific exceptions for the staybook booking core.

Every failure the services report is one of these classes. Callers branch on
the class (or ``code``), never on the message text. Each exception knows its
HTTP mapping so the API layer stays a thin translation.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException carrying message, code and details."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails (date ranges, amount bounds)."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a referenced listing, booking or payment is absent."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when a write conflicts with existing data."""

    status_code = status.HTTP_409_CONFLICT


class ServiceException(DomainException):
    """Raised when a persistence or transport operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


class OperationCancelledException(DomainException):
    """Raised when an operation's deadline expires or it is cancelled by the caller."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT

    def __init__(self, operation: str, *, reason: str = "deadline exceeded") -> None:
        super().__init__(
            message=f"Operation {operation} cancelled: {reason}",
            code="OPERATION_CANCELLED",
            details={"operation": operation, "reason": reason},
        )


# Specific business exceptions


class BookingConflictException(ConflictException):
    """
    Raised when a booking interval overlaps another active booking.

    Used both by the application-level pre-check and when the database
    overlap constraint rejects a write, so callers see one error kind.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "Booking dates overlap with an existing booking",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
