"""
State and choice enums for ledger models.

These are Django TextChoices for database storage and admin integration.
Stored states managed by django-fsm are BookingStatus, InstalmentStatus and
RefundStatus. CreditNoteStatus and PayableStatus are never stored; they are
derived from amounts at read time.

State Machines Overview:

Booking:
    active → cancelled (terminal)
    active → void → active (unvoid restores the previous status)

Instalment:
    pending → paid (terminal; OVERDUE is derived from due_date)

Cancellation refund:
    pending → paid (terminal)
"""

from django.db import models


class PaymentMethod(models.TextChoices):
    """
    How the customer pays for a booking.

    FULL: paid up front (initial payments only)
    INTERNAL: initial deposit plus a user-defined instalment schedule
    """

    FULL = "FULL", "Full"
    INTERNAL = "INTERNAL", "Internal"


class BookingStatus(models.TextChoices):
    """
    States for the Booking lifecycle.

    Terminal states: CANCELLED

    State Flow:
        ACTIVE → CANCELLED
        ACTIVE → VOID → ACTIVE
    """

    ACTIVE = "ACTIVE", "Active"
    CANCELLED = "CANCELLED", "Cancelled"
    VOID = "VOID", "Void"


class InstalmentStatus(models.TextChoices):
    """
    Instalment states.

    Only PENDING and PAID are stored. OVERDUE is returned by
    Instalment.display_status when the due date has passed.
    """

    PENDING = "PENDING", "Pending"
    OVERDUE = "OVERDUE", "Overdue"
    PAID = "PAID", "Paid"


class PaymentKind(models.TextChoices):
    INITIAL = "INITIAL", "Initial"
    INSTALMENT = "INSTALMENT", "Instalment"
    REFUND = "REFUND", "Refund"


class TransactionMethod(models.TextChoices):
    """
    Customer-facing payment methods.

    CUSTOMER_CREDIT_NOTE is a sentinel: the payment is funded by one or more
    credit notes instead of money in.
    """

    BANK_TRANSFER = "BANK_TRANSFER", "Bank Transfer"
    CARD = "CARD", "Card"
    CASH = "CASH", "Cash"
    STRIPE = "STRIPE", "Stripe"
    WISE = "WISE", "Wise"
    HUMM = "HUMM", "Humm"
    LOYDS = "LOYDS", "Lloyds"
    CUSTOMER_CREDIT_NOTE = "CUSTOMER_CREDIT_NOTE", "Customer Credit Note"


class SettlementMethod(models.TextChoices):
    """Methods accepted when settling payables and supplier costs."""

    LOYDS = "LOYDS", "Lloyds"
    STRIPE = "STRIPE", "Stripe"
    WISE = "WISE", "Wise"
    HUMM = "HUMM", "Humm"
    CREDIT_NOTES = "CREDIT_NOTES", "Credit Notes"
    CREDIT = "CREDIT", "Credit"
    BANK_TRANSFER = "BANK_TRANSFER", "Bank Transfer"


class CreditNoteStatus(models.TextChoices):
    AVAILABLE = "AVAILABLE", "Available"
    PARTIALLY_USED = "PARTIALLY_USED", "Partially Used"
    USED = "USED", "Used"


class CancellationOutcome(models.TextChoices):
    """
    Customer-side result of a cancellation. Exactly one per cancellation.

    CUSTOMER_PAYABLE: fees exceed what was received; the customer owes
    CASH_REFUND: customer overpaid; cash is owed back
    CREDIT_NOTE: customer overpaid; store credit is issued
    SETTLED: fees equal what was received
    """

    CUSTOMER_PAYABLE = "CUSTOMER_PAYABLE", "Customer Payable"
    CASH_REFUND = "CASH_REFUND", "Cash Refund"
    CREDIT_NOTE = "CREDIT_NOTE", "Credit Note"
    SETTLED = "SETTLED", "Settled"


class RefundPolicy(models.TextChoices):
    """Caller's choice of how an overpayment is returned on cancellation."""

    CASH = "CASH", "Cash"
    CREDIT_NOTE = "CREDIT_NOTE", "Credit Note"


class RefundStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"


class PayableStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"


class AmendmentType(models.TextChoices):
    WRITE_OFF = "WRITE_OFF", "Write Off"
    ADJUSTMENT = "ADJUSTMENT", "Adjustment"


class CommissionType(models.TextChoices):
    """
    Commission entry types.

    INITIAL: recorded once at booking creation
    FINAL_RECONCILIATION: recorded at most once, INTERNAL bookings only,
        after the balance reaches zero
    """

    INITIAL = "INITIAL", "Initial"
    FINAL_RECONCILIATION = "FINAL_RECONCILIATION", "Final Reconciliation"
