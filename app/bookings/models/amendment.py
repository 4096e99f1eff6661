"""
Amendment model.

An amendment is a manual, reason-logged correction to a booking balance
outside the normal payment flow. It records the exact delta applied so that
reversal applies the inverse of a recorded fact.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from bookings.models.booking import MONEY_FIELD_OPTIONS
from bookings.state_machines import AmendmentType
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class Amendment(UUIDPrimaryKeyMixin, BaseModel):
    """
    A write-off or adjustment applied to a booking balance.

    is_reversed is one-way: once True it never goes back.

    Fields:
        booking: Booking whose balance was amended
        amendment_type: WRITE_OFF or ADJUSTMENT
        property_name: Amended property ("balance")
        old_value: Balance before the amendment
        new_value: Balance after the amendment
        difference: Signed delta applied to the balance
        reason: Why the amendment was made (required)
        created_by: User who made the amendment
        is_reversed: Whether the amendment has been reversed
    """

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="amendments",
        help_text="Booking whose balance was amended",
    )

    amendment_type = models.CharField(
        max_length=16,
        choices=AmendmentType.choices,
        help_text="WRITE_OFF or ADJUSTMENT",
    )

    property_name = models.CharField(
        max_length=32,
        default="balance",
        help_text="Amended booking property",
    )

    old_value = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        help_text="Value before the amendment",
    )
    new_value = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        help_text="Value after the amendment",
    )
    difference = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        help_text="Signed delta applied",
    )

    reason = models.TextField(
        help_text="Why the amendment was made",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="User who made the amendment",
    )

    # ==========================================================================
    # Reversal
    # ==========================================================================

    is_reversed = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the amendment has been reversed (one-way)",
    )
    reversed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the amendment was reversed",
    )
    reversed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="User who reversed the amendment",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Amendment"
        verbose_name_plural = "Amendments"
        indexes = [
            models.Index(fields=["booking", "is_reversed"], name="amendment_booking_active_idx"),
        ]

    def __str__(self) -> str:
        state = "reversed" if self.is_reversed else "active"
        return f"Amendment({self.amendment_type}, {self.difference}, {state})"
