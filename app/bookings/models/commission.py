"""
CommissionEntry model.

Per-agent commission ledger. Each booking has one INITIAL entry and, for
INTERNAL bookings that reach a zero balance, at most one
FINAL_RECONCILIATION entry.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from bookings.models.base import VersionedModel
from bookings.models.booking import MONEY_FIELD_OPTIONS
from bookings.state_machines import CommissionType
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class CommissionEntry(UUIDPrimaryKeyMixin, VersionedModel, BaseModel):
    """
    A commission amount earned (or clawed back) by an agent.

    Fields:
        booking: Booking the commission is for
        agent: Agent credited
        entry_type: INITIAL or FINAL_RECONCILIATION
        amount: Commission amount (negative for a clawback)
        percentage: Share of profit applied (INITIAL only)
        initial_paid: INITIAL amount a reconciliation is measured against
        commission_month: First day of the month the entry is paid in
        version: Optimistic locking version
    """

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="commission_entries",
        help_text="Booking the commission is for",
    )

    agent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="commission_entries",
        help_text="Agent credited",
    )

    entry_type = models.CharField(
        max_length=24,
        choices=CommissionType.choices,
        help_text="INITIAL or FINAL_RECONCILIATION",
    )

    amount = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        help_text="Commission amount (negative for a clawback)",
    )

    percentage = models.DecimalField(
        max_digits=4,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Share of profit applied (INITIAL only)",
    )

    initial_paid = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        null=True,
        blank=True,
        help_text="INITIAL commission already paid (FINAL_RECONCILIATION only)",
    )

    commission_month = models.DateField(
        db_index=True,
        help_text="First day of the month the commission is paid in",
    )

    class Meta:
        ordering = ["commission_month", "created_at"]
        verbose_name = "Commission Entry"
        verbose_name_plural = "Commission Entries"
        indexes = [
            models.Index(fields=["agent", "commission_month"], name="commission_agent_month_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["booking", "entry_type"],
                name="commission_entry_unique_per_booking_type",
            ),
        ]

    def __str__(self) -> str:
        return f"CommissionEntry({self.entry_type}, {self.amount}, {self.commission_month})"
