# gigbook/core/exceptions.py
"""
Domain-specific exceptions for the gig booking engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
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
        """Convert to an HTTPException using the class status code."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input validation fails (safe to retry after correction)."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when the current state conflicts with the requested action."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ForbiddenException(DomainException):
    """Raised when the acting user may not perform an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class InvalidTimeRangeException(ValidationException):
    """Raised when an end time is not strictly after its start time."""

    def __init__(self, start_time: Any, end_time: Any):
        super().__init__(
            message="End time must be after start time",
            code="INVALID_TIME_RANGE",
            details={"start_time": str(start_time), "end_time": str(end_time)},
        )


class UnauthorizedActionException(ForbiddenException):
    """Raised when someone other than the owning leader acts on a request's offers."""

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message or "You are not authorized to perform this action",
            code="UNAUTHORIZED",
            details=details or {},
        )


class RequestNotActiveException(ConflictException):
    """Raised when a request no longer accepts offers or selections."""

    def __init__(self, request_id: str, current_status: str):
        super().__init__(
            message=f"Request is not active - current status: {current_status}",
            code="REQUEST_NOT_ACTIVE",
            details={"request_id": request_id, "status": current_status},
        )


class DuplicateOfferException(ConflictException):
    """Raised when a musician already made an offer on a request."""

    def __init__(self, request_id: str, musician_id: str):
        super().__init__(
            message="You have already made an offer for this request",
            code="DUPLICATE_OFFER",
            details={"request_id": request_id, "musician_id": musician_id},
        )


class MusicianUnavailableException(ConflictException):
    """Raised when a musician has a committed booking too close to the slot."""

    def __init__(self, musician_id: str, reason: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=reason,
            code="MUSICIAN_UNAVAILABLE",
            details={"musician_id": musician_id, **(details or {})},
        )


class MusicianInactiveException(BusinessRuleException):
    """Raised when a musician's account is not in active standing."""

    def __init__(self, musician_id: str, current_status: str):
        super().__init__(
            message="Account is not active",
            code="MUSICIAN_INACTIVE",
            details={"musician_id": musician_id, "status": current_status},
        )


class InvalidTransitionException(BusinessRuleException):
    """Raised when a lifecycle transition is not allowed right now."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INVALID_TRANSITION", details=details or {})


class AlreadyTerminalException(ConflictException):
    """Raised when acting on a request that is already cancelled or completed."""

    def __init__(self, request_id: str, current_status: str):
        super().__init__(
            message=f"Request cannot be cancelled - current status: {current_status}",
            code="ALREADY_TERMINAL",
            details={"request_id": request_id, "status": current_status},
        )


class RequestAlreadyFinishedException(ConflictException):
    """Raised when cancelling an event whose scheduled slot has already ended."""

    def __init__(self, request_id: str, scheduled_end: str):
        super().__init__(
            message="The event has already finished and can no longer be cancelled",
            code="REQUEST_ALREADY_FINISHED",
            details={"request_id": request_id, "scheduled_end": scheduled_end},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
