"""
Payment model.

A Payment is money (or credit) moving between the customer and the
business: an initial deposit, an instalment payment, or a cancellation
refund. Payments are append-only facts.
"""

from __future__ import annotations

from django.db import models

from bookings.models.base import AppendOnlyModel
from bookings.models.booking import MONEY_FIELD_OPTIONS
from bookings.state_machines import PaymentKind, TransactionMethod
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class Payment(UUIDPrimaryKeyMixin, AppendOnlyModel, BaseModel):
    """
    A customer payment or refund.

    Fields:
        booking: Booking the payment belongs to
        kind: INITIAL, INSTALMENT or REFUND
        amount: Always positive; direction is given by kind
        transaction_method: How the money moved (CUSTOMER_CREDIT_NOTE when
            funded by credit notes)
        payment_date: Calendar date of the payment
        instalment: Instalment paid by this payment (INSTALMENT only)
        cancellation: Cancellation refunded by this payment (REFUND only)
    """

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="payments",
        help_text="Booking the payment belongs to",
    )

    kind = models.CharField(
        max_length=16,
        choices=PaymentKind.choices,
        db_index=True,
        help_text="Initial deposit, instalment payment or refund",
    )

    amount = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        help_text="Payment amount (always positive)",
    )

    transaction_method = models.CharField(
        max_length=32,
        choices=TransactionMethod.choices,
        help_text="How the payment was made",
    )

    payment_date = models.DateField(
        help_text="Date the payment was made",
    )

    instalment = models.OneToOneField(
        "bookings.Instalment",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payment",
        help_text="Instalment settled by this payment",
    )

    cancellation = models.ForeignKey(
        "bookings.Cancellation",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="refund_payments",
        help_text="Cancellation this refund pays out",
    )

    reference = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Bank or processor reference",
    )

    class Meta:
        ordering = ["payment_date", "created_at"]
        verbose_name = "Payment"
        verbose_name_plural = "Payments"
        indexes = [
            models.Index(fields=["booking", "kind"], name="payment_booking_kind_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Payment({self.kind}, {self.amount}, {self.transaction_method})"

    @property
    def is_credit_funded(self) -> bool:
        return self.transaction_method == TransactionMethod.CUSTOMER_CREDIT_NOTE
