"""
Instalment model.

Instalments are the user-defined payment schedule of an INTERNAL booking.
They are created with the booking and never auto-generated.
"""

from __future__ import annotations

from datetime import date

from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from bookings.models.booking import MONEY_FIELD_OPTIONS
from bookings.state_machines import InstalmentStatus
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class Instalment(UUIDPrimaryKeyMixin, BaseModel):
    """
    A scheduled partial payment.

    Only PENDING and PAID are stored. OVERDUE is a read-time derivation
    (see display_status), never a stored transition.

    State Flow:
        PENDING -> PAID (terminal, attaches a Payment)
    """

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="instalments",
        help_text="Booking this instalment belongs to",
    )

    due_date = models.DateField(
        help_text="Date the instalment is due",
    )

    amount = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        help_text="Amount due",
    )

    status = FSMField(
        default=InstalmentStatus.PENDING,
        choices=InstalmentStatus.choices,
        db_index=True,
        help_text="PENDING or PAID (managed by FSM)",
    )

    paid_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the instalment was paid",
    )

    class Meta:
        ordering = ["due_date", "created_at"]
        verbose_name = "Instalment"
        verbose_name_plural = "Instalments"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="instalment_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Instalment({self.due_date}, {self.amount}, {self.status})"

    @property
    def is_paid(self) -> bool:
        return self.status == InstalmentStatus.PAID

    def display_status(self, today: date | None = None) -> str:
        """
        Status as shown to users.

        An unpaid instalment whose due date is before today is OVERDUE.
        """
        if self.is_paid:
            return InstalmentStatus.PAID
        today = today or timezone.localdate()
        if self.due_date < today:
            return InstalmentStatus.OVERDUE
        return InstalmentStatus.PENDING

    @transition(
        field=status,
        source=InstalmentStatus.PENDING,
        target=InstalmentStatus.PAID,
    )
    def mark_paid(self):
        """
        Mark the instalment as paid.

        Transition: PENDING -> PAID
        """
        self.paid_at = timezone.now()
