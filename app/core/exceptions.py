"""
Base exception classes for application-wide error handling.

Every service-layer failure is raised as a BaseApplicationError subclass
carrying a machine-readable error code and structured details. The API
exception handler (core.exception_handler) turns them into JSON responses
with a status code chosen by exception type.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Invalid input or business rule violation (400)
    ├── NotFoundError - Resource not found (404)
    └── ConflictError - State conflicts, stale versions (409)

Usage:
    from core.exceptions import ValidationError

    raise ValidationError(
        "Payment amount must be positive",
        error_code="AMOUNT_NOT_POSITIVE",
        details={"amount": ["Must be greater than 0."]},
    )

Note:
    DRF handles API-layer exceptions (serialization, authentication, etc.).
    These exceptions are for service-layer errors.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, amounts, versions)

    Example:
        try:
            SettlementService.settle(payable, amount, method)
        except BaseApplicationError as e:
            logger.warning(f"Settlement rejected: {e.error_code}")
            return Response(e.to_dict(), status=400)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error and error_code keys, plus details when present

        Example:
            {
                "error": "Settlement amount (£150.00) exceeds pending amount (£120.00)",
                "error_code": "EXCEEDS_PENDING",
                "details": {"pending_amount": "120.00", "requested_amount": "150.00"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for negative or malformed amounts, unknown transaction methods,
    blank reasons and other rule violations detected by a service before
    anything is written.

    Example:
        raise ValidationError(
            "Instalment amounts must sum to the remaining balance",
            error_code="INSTALMENT_SUM_MISMATCH",
            details={"instalments_total": "300.00", "remaining": "350.00"},
        )

    Note:
        For DRF serializer validation, use DRF's built-in validation.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Example:
        booking = Booking.objects.filter(pk=booking_id).first()
        if not booking:
            raise NotFoundError(
                f"Booking {booking_id} not found",
                error_code="BOOKING_NOT_FOUND",
                details={"booking_id": str(booking_id)},
            )
    """

    default_error_code: str = "NOT_FOUND"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Duplicate entries
    - Invalid state transitions
    - Optimistic locking failures

    Example:
        if booking.booking_status != BookingStatus.ACTIVE:
            raise ConflictError(
                f"Cannot cancel booking in {booking.booking_status} status",
                error_code="INVALID_STATE_TRANSITION",
                details={"current_state": booking.booking_status},
            )
    """

    default_error_code: str = "CONFLICT"

