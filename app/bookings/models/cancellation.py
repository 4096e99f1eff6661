"""
Cancellation model.

A cancellation closes a booking chain (the original booking plus its date
changes) and records exactly one customer-side outcome:

    CUSTOMER_PAYABLE  fees exceed what was received -> CustomerPayable
    CASH_REFUND       customer overpaid -> refund_status PENDING, then PAID
    CREDIT_NOTE       customer overpaid -> CreditNote issued
    SETTLED           fees equal what was received

The outcome column plus the database constraints below make "exactly one
or none" hold at the storage level. outcome_variant() returns the typed
variant for callers.
"""

from __future__ import annotations

from django.db import models
from django.db.models import Q

from django_fsm import FSMField, transition

from bookings.models.booking import MONEY_FIELD_OPTIONS
from bookings.state_machines import CancellationOutcome, RefundStatus
from bookings.types import CashRefund, CreditNoteIssued, CustomerOwes, Settled
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class Cancellation(UUIDPrimaryKeyMixin, BaseModel):
    """
    Financial outcome of cancelling a booking chain.

    Fields:
        original_booking: Booking the cancellation was requested on
        folder_no: "{base}.C"
        supplier_cancellation_fee: Fee charged by the supplier
        admin_fee: Fee charged by the business
        received_at_cancellation: Customer money held across the chain
        total_paid_to_supplier: Supplier payments made across the chain
        outcome: Customer-side outcome (exactly one)
        outcome_amount: Payable shortfall, refund or credit amount
        refund_status: PENDING/PAID for CASH_REFUND, otherwise null
        supplier_credit_amount: Supplier overpayment held as credit
        profit_or_loss: (received - prod_cost) - refund + payable
    """

    original_booking = models.OneToOneField(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="cancellation",
        help_text="Booking the cancellation was requested on",
    )

    folder_no = models.CharField(
        max_length=32,
        unique=True,
        help_text="Cancellation folder number, e.g. '123.C'",
    )

    # ==========================================================================
    # Inputs
    # ==========================================================================

    supplier_cancellation_fee = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        default=0,
        help_text="Fee charged by the supplier",
    )
    admin_fee = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        default=0,
        help_text="Fee charged by the business",
    )
    received_at_cancellation = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        default=0,
        help_text="Customer money received across the booking chain",
    )
    total_paid_to_supplier = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        default=0,
        help_text="Supplier payments made across the booking chain",
    )

    # ==========================================================================
    # Outcome
    # ==========================================================================

    outcome = models.CharField(
        max_length=20,
        choices=CancellationOutcome.choices,
        help_text="Customer-side outcome of the cancellation",
    )
    outcome_amount = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        default=0,
        help_text="Payable shortfall, refund or credit amount",
    )
    refund_status = FSMField(
        choices=RefundStatus.choices,
        null=True,
        blank=True,
        default=None,
        help_text="Cash refund status (CASH_REFUND outcome only)",
    )
    converted_from_credit_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When an issued credit note was converted to a cash refund",
    )
    supplier_credit_amount = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        default=0,
        help_text="Supplier payments exceeding the supplier fee",
    )
    profit_or_loss = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        default=0,
        help_text="(received - prod_cost) - refund + payable",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Cancellation"
        verbose_name_plural = "Cancellations"
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(outcome=CancellationOutcome.CASH_REFUND, refund_status__isnull=False)
                    | (
                        ~Q(outcome=CancellationOutcome.CASH_REFUND)
                        & Q(refund_status__isnull=True)
                    )
                ),
                name="cancellation_refund_status_matches_outcome",
            ),
            models.CheckConstraint(
                condition=(
                    Q(outcome=CancellationOutcome.SETTLED, outcome_amount=0)
                    | (~Q(outcome=CancellationOutcome.SETTLED) & Q(outcome_amount__gt=0))
                ),
                name="cancellation_outcome_amount_matches_outcome",
            ),
            models.CheckConstraint(
                condition=Q(supplier_cancellation_fee__gte=0, admin_fee__gte=0),
                name="cancellation_fees_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"Cancellation({self.folder_no}, {self.outcome}, {self.outcome_amount})"

    @property
    def total_fees(self):
        return self.supplier_cancellation_fee + self.admin_fee

    @property
    def refund_amount(self):
        if self.outcome == CancellationOutcome.CASH_REFUND:
            return self.outcome_amount
        return 0

    def outcome_variant(self):
        """
        Return the tagged outcome.

        Returns:
            One of CustomerOwes, CashRefund, CreditNoteIssued, Settled
        """
        if self.outcome == CancellationOutcome.CUSTOMER_PAYABLE:
            return CustomerOwes(payable=self.customer_payable)
        if self.outcome == CancellationOutcome.CASH_REFUND:
            return CashRefund(
                amount=self.outcome_amount,
                status=self.refund_status,
                payment=self.refund_payments.first(),
            )
        if self.outcome == CancellationOutcome.CREDIT_NOTE:
            return CreditNoteIssued(credit_note=self.credit_note)
        return Settled()

    @transition(
        field=refund_status,
        source=RefundStatus.PENDING,
        target=RefundStatus.PAID,
    )
    def mark_refund_paid(self):
        """
        Mark the cash refund as paid.

        Transition: PENDING -> PAID
        """
