"""
State machine enums for ledger models.

This module re-exports the TextChoices used by ledger models with django-fsm.
"""

from bookings.state_machines.states import (
    AmendmentType,
    BookingStatus,
    CancellationOutcome,
    CommissionType,
    CreditNoteStatus,
    InstalmentStatus,
    PayableStatus,
    PaymentKind,
    PaymentMethod,
    RefundPolicy,
    RefundStatus,
    SettlementMethod,
    TransactionMethod,
)

__all__ = [
    "AmendmentType",
    "BookingStatus",
    "CancellationOutcome",
    "CommissionType",
    "CreditNoteStatus",
    "InstalmentStatus",
    "PayableStatus",
    "PaymentKind",
    "PaymentMethod",
    "RefundPolicy",
    "RefundStatus",
    "SettlementMethod",
    "TransactionMethod",
]
