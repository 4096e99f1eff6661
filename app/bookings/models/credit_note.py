"""
CreditNote and CreditNoteUsage models.

A credit note is store credit owed to a customer, issued by exactly one
cancellation and consumed against payments on later bookings.

    remaining_amount = initial_amount - sum(usages.amount_used) - forfeited_amount

forfeited_amount is only non-zero after the note was voided because a cash
refund superseded it.
"""

from __future__ import annotations

from django.db import models

from bookings.models.base import AppendOnlyModel, VersionedModel
from bookings.models.booking import MONEY_FIELD_OPTIONS
from bookings.state_machines import CreditNoteStatus
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class CreditNote(UUIDPrimaryKeyMixin, VersionedModel, BaseModel):
    """
    Store credit issued from a cancellation.

    Status is not stored. It is derived from remaining_amount relative to
    initial_amount (see status).

    Fields:
        cancellation: Cancellation that generated and owns this note
        initial_amount: Credit issued
        remaining_amount: Credit still available
        forfeited_amount: Credit written off by void_remaining
        voided_at: When the remainder was voided
        version: Optimistic locking version
    """

    cancellation = models.OneToOneField(
        "bookings.Cancellation",
        on_delete=models.PROTECT,
        related_name="credit_note",
        help_text="Cancellation that generated this credit note",
    )

    reference = models.CharField(
        max_length=64,
        unique=True,
        help_text="Human-facing credit note reference",
    )

    customer_name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Customer the credit belongs to",
    )

    initial_amount = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        help_text="Credit issued",
    )

    remaining_amount = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        help_text="Credit still available",
    )

    forfeited_amount = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        default=0,
        help_text="Credit written off when a cash refund superseded the note",
    )

    voided_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the remaining credit was voided",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Credit Note"
        verbose_name_plural = "Credit Notes"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(initial_amount__gt=0),
                name="credit_note_initial_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(remaining_amount__gte=0),
                name="credit_note_remaining_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(remaining_amount__lte=models.F("initial_amount")),
                name="credit_note_remaining_within_initial",
            ),
        ]

    def __str__(self) -> str:
        return f"CreditNote({self.reference}, {self.remaining_amount}/{self.initial_amount})"

    @property
    def status(self) -> str:
        if self.remaining_amount <= 0:
            return CreditNoteStatus.USED
        if self.remaining_amount < self.initial_amount:
            return CreditNoteStatus.PARTIALLY_USED
        return CreditNoteStatus.AVAILABLE

    @property
    def original_booking(self):
        return self.cancellation.original_booking


class CreditNoteUsage(UUIDPrimaryKeyMixin, AppendOnlyModel, BaseModel):
    """Links a credit note to the payment it funded."""

    credit_note = models.ForeignKey(
        CreditNote,
        on_delete=models.PROTECT,
        related_name="usages",
        help_text="Credit note consumed",
    )

    payment = models.ForeignKey(
        "bookings.Payment",
        on_delete=models.PROTECT,
        related_name="credit_note_usages",
        help_text="Payment funded by the credit",
    )

    amount_used = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        help_text="Credit consumed by the payment",
    )

    class Meta:
        ordering = ["created_at"]
        verbose_name = "Credit Note Usage"
        verbose_name_plural = "Credit Note Usages"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount_used__gt=0),
                name="credit_note_usage_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"CreditNoteUsage({self.credit_note_id}, {self.amount_used})"
