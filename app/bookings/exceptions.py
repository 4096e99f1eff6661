"""
Ledger-specific exceptions for booking financial operations.

Every engine failure is terminal for the operation that raised it: the
surrounding transaction rolls back and no partial state persists. Errors
carry enough detail (pending amount, remaining credit, versions) for a
caller to present an actionable message.

Exception Hierarchy:
    BookingLedgerError (base for the ledger domain)
    ├── AmountLimitError - Requested amount is larger than what remains
    │   ├── ExceedsPendingError - Settlement above a payable's pending amount
    │   ├── InsufficientCreditError - Usage above a credit note's remaining amount
    │   └── AllocationMismatchError - Credit selection does not fund the payment
    ├── AlreadyPaidError - Instalment/refund already paid (ConflictError)
    ├── AlreadyReversedError - Amendment already reversed (ConflictError)
    ├── AlreadyCancelledError - Booking chain already cancelled (ConflictError)
    ├── DuplicateCommissionError - Commission entry already recorded (ConflictError)
    └── InvalidStateTransitionError - FSM transition not allowed (ConflictError)

    StaleRecordError - Optimistic locking conflict (inherits ConflictError)

Input validation failures use core.exceptions.ValidationError directly.

Usage:
    from bookings.exceptions import ExceedsPendingError, StaleRecordError

    raise ExceedsPendingError(
        "Settlement amount (£150.00) exceeds pending amount (£120.00)",
        details={"pending_amount": "120.00", "requested_amount": "150.00"},
    )
"""

from __future__ import annotations

from core.exceptions import BaseApplicationError, ConflictError


class BookingLedgerError(BaseApplicationError):
    """
    Base exception for booking ledger errors.

    All ledger-specific exceptions inherit from this class, allowing
    callers to catch every engine failure with a single except clause.

    Example:
        try:
            SettlementService.settle(payable, amount, method)
        except BookingLedgerError as e:
            logger.warning("Settlement rejected: %s", e)
    """

    default_error_code: str = "BOOKING_LEDGER_ERROR"


# =============================================================================
# Amount Limits
# =============================================================================


class AmountLimitError(BookingLedgerError):
    """
    Raised when a requested amount is larger than what is available.

    Subclasses always include the available amount in ``details`` so the
    caller can correct the request. Rendered as HTTP 422.
    """

    default_error_code: str = "AMOUNT_LIMIT_EXCEEDED"
    http_status: int = 422


class ExceedsPendingError(AmountLimitError):
    """
    Raised when a settlement or payment would drive a pending amount negative.

    Attributes:
        details: Contains pending_amount and requested_amount
    """

    default_error_code: str = "EXCEEDS_PENDING"


class InsufficientCreditError(AmountLimitError):
    """
    Raised when a credit note usage asks for more than the note has left.

    Attributes:
        details: Contains credit_note_id, remaining_amount and requested_amount
    """

    default_error_code: str = "INSUFFICIENT_CREDIT"


class AllocationMismatchError(AmountLimitError):
    """
    Raised when selected credit does not sum to the funded payment amount.

    Allocation is all-or-nothing, so no usage from the failed selection
    persists.

    Attributes:
        details: Contains allocated_total and payment_amount
    """

    default_error_code: str = "ALLOCATION_MISMATCH"


# =============================================================================
# One-way Transitions
# =============================================================================


class AlreadyPaidError(BookingLedgerError, ConflictError):
    """Raised when paying an instalment or refund that is already paid."""

    default_error_code: str = "ALREADY_PAID"


class AlreadyReversedError(BookingLedgerError, ConflictError):
    """Raised when reversing an amendment a second time."""

    default_error_code: str = "ALREADY_REVERSED"


class AlreadyCancelledError(BookingLedgerError, ConflictError):
    """Raised when cancelling a booking whose chain is already cancelled."""

    default_error_code: str = "ALREADY_CANCELLED"


class DuplicateCommissionError(BookingLedgerError, ConflictError):
    """Raised when a commission entry of the same type already exists."""

    default_error_code: str = "DUPLICATE_COMMISSION"


class InvalidStateTransitionError(BookingLedgerError, ConflictError):
    """
    Raised when a state transition is not allowed from the current state.

    Example:
        if not can_proceed(booking.void):
            raise InvalidStateTransitionError(
                f"Cannot void booking from '{booking.booking_status}' state",
                details={"current_state": booking.booking_status},
            )
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


# =============================================================================
# Concurrency Control
# =============================================================================


class StaleRecordError(ConflictError):
    """
    Raised when optimistic locking detects concurrent modification.

    The record was modified by another writer between the caller's read
    and this update. The caller should re-fetch and retry; retrying once
    automatically is safe.

    Attributes:
        details: Contains pk, expected_version, and current_version

    Note:
        This exception inherits from ConflictError (HTTP 409) because
        it represents a state conflict that prevents the operation.
    """

    default_error_code: str = "STALE_RECORD"


__all__ = [
    "AllocationMismatchError",
    "AlreadyCancelledError",
    "AlreadyPaidError",
    "AlreadyReversedError",
    "AmountLimitError",
    "BookingLedgerError",
    "DuplicateCommissionError",
    "ExceedsPendingError",
    "InsufficientCreditError",
    "InvalidStateTransitionError",
    "StaleRecordError",
]
