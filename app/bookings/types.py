"""
Data types for ledger operations.

This module defines dataclasses used for type-safe data transfer between
the API layer and the service layer, plus the tagged cancellation outcome.

Types:
    LedgerFigures: Derived profit/received/balance of a booking
    PaymentDraft, InstalmentDraft, CostItemDraft: Booking creation inputs
    CreditSelection: One credit note selected to fund a payment
    BookingDraft: Everything needed to create a booking
    CustomerOwes | CashRefund | CreditNoteIssued | Settled: Cancellation outcome
    CommissionSummary: An agent's commission entries for one month

Usage:
    from bookings.types import BookingDraft, PaymentDraft

    draft = BookingDraft(
        revenue=Decimal("1200.00"),
        pc_date=date(2026, 3, 14),
        cost_items=[CostItemDraft(category="flight", amount=Decimal("800.00"))],
        payments=[PaymentDraft(amount=Decimal("200.00"), transaction_method="CARD",
                               payment_date=date(2026, 3, 14))],
    )
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class LedgerFigures:
    """
    Derived figures of a booking.

    Attributes:
        profit: revenue - prod_cost - surcharge
        received: Sum of initial payments and paid instalments
        balance: revenue - received (+ active amendment differences)
        last_payment_date: Latest instalment due date, if any
    """

    profit: Decimal
    received: Decimal
    balance: Decimal
    last_payment_date: date | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "profit": self.profit,
            "received": self.received,
            "balance": self.balance,
            "last_payment_date": self.last_payment_date,
        }


@dataclass
class CreditSelection:
    """A credit note chosen to fund part of a payment."""

    credit_note_id: uuid.UUID
    amount_to_use: Decimal
    expected_version: int


@dataclass
class PaymentDraft:
    """
    An initial payment to record with a new booking.

    credit_selections is required when transaction_method is
    CUSTOMER_CREDIT_NOTE and must sum to amount.
    """

    amount: Decimal
    transaction_method: str
    payment_date: date
    reference: str = ""
    credit_selections: list[CreditSelection] = field(default_factory=list)


@dataclass
class InstalmentDraft:
    """
    A scheduled instalment.

    status lets the schedule preview treat an instalment as already paid;
    instalments are always created PENDING.
    """

    due_date: date
    amount: Decimal
    status: str = "PENDING"


@dataclass
class CostItemDraft:
    category: str
    amount: Decimal
    supplier: str = ""


@dataclass
class BookingDraft:
    """
    Parameters for creating a booking.

    Required Attributes:
        revenue: Selling price
        pc_date: Booking confirmation date
        payments: At least one initial payment

    Optional Attributes:
        payment_method: FULL (default) or INTERNAL
        surcharge: Deducted from profit
        cost_items: Cost breakdown; prod_cost is their sum
        instalments: Schedule (INTERNAL only, required there)
        travel_date: Departure date (drives overdue reporting)
        lead_passenger: Lead passenger name
        accounting_month: Override; defaults to the pc_date month
        commission_month: Override for the INITIAL commission entry
    """

    revenue: Decimal
    pc_date: date
    payments: list[PaymentDraft] = field(default_factory=list)
    payment_method: str = "FULL"
    surcharge: Decimal = Decimal("0.00")
    cost_items: list[CostItemDraft] = field(default_factory=list)
    instalments: list[InstalmentDraft] = field(default_factory=list)
    travel_date: date | None = None
    lead_passenger: str = ""
    accounting_month: date | None = None
    commission_month: date | None = None


# =============================================================================
# Cancellation Outcome (tagged variant)
# =============================================================================


@dataclass(frozen=True)
class CustomerOwes:
    """Fees exceeded what was received; the customer owes the shortfall."""

    payable: Any
    kind: str = "CUSTOMER_PAYABLE"


@dataclass(frozen=True)
class CashRefund:
    """The customer overpaid and is owed cash."""

    amount: Decimal
    status: str
    payment: Any = None
    kind: str = "CASH_REFUND"


@dataclass(frozen=True)
class CreditNoteIssued:
    """The customer overpaid and received store credit."""

    credit_note: Any
    kind: str = "CREDIT_NOTE"


@dataclass(frozen=True)
class Settled:
    """Fees matched what was received; nothing is owed either way."""

    kind: str = "SETTLED"


CancellationOutcomeVariant = CustomerOwes | CashRefund | CreditNoteIssued | Settled


@dataclass
class CommissionSummary:
    """An agent's commission entries for one commission month."""

    agent_id: Any
    commission_month: date
    entries: list[Any]
    total: Decimal
