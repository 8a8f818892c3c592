# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the studio platform.

Services raise these with business-focused messages; the API layer turns
them into HTTP errors through ``to_http_exception``.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


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
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def to_http_exception(self) -> HTTPException:
        exc = super().to_http_exception()
        exc.headers = {"WWW-Authenticate": "Bearer"}
        return exc


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ServiceException(DomainException):
    """Raised when a service operation fails unexpectedly."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


# Specific business exceptions


class BookingConflictException(ConflictException):
    """Raised when a booking conflicts with existing bookings or blocks."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot is not available",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class InsufficientNoticeException(ValidationException):
    """Raised when a booking request doesn't meet minimum advance notice."""

    def __init__(self, required_hours: int, provided_hours: float):
        super().__init__(
            message=(
                f"Bookings must be made at least {required_hours} hours in advance. "
                "For urgent bookings please contact the studio on LINE."
            ),
            code="INSUFFICIENT_NOTICE",
            details={
                "required_hours": required_hours,
                "provided_hours": round(provided_hours, 2),
            },
        )


class CancellationWindowClosedException(BusinessRuleException):
    """Raised when a customer tries to cancel too close to the session start."""

    def __init__(self, window_hours: int, hours_until_start: float):
        super().__init__(
            message=(
                f"Bookings cannot be cancelled less than {window_hours} hours before the session. "
                "Please contact the studio on LINE."
            ),
            code="CANCELLATION_WINDOW_CLOSED",
            details={"hours_until_start": round(hours_until_start, 2)},
        )


class PackageUnavailableException(ValidationException):
    """Raised when a package cannot cover another session."""

    def __init__(self, message: str, package_id: Optional[str] = None):
        super().__init__(
            message=message,
            code="PACKAGE_UNAVAILABLE",
            details={"package_id": package_id} if package_id else {},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
