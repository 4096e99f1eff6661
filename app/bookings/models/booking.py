"""
Booking and CostItem models.

Booking is the root aggregate of the ledger. Every payment, instalment,
amendment, cancellation and commission entry hangs off a booking, and is
created only through the service layer.

Usage:
    from bookings.models import Booking
    from bookings.services import PaymentLedgerService

    booking = PaymentLedgerService.create_booking(agent=agent, draft=draft)
    booking.balance  # revenue - received + active amendment differences
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from bookings.models.base import VersionedModel
from bookings.state_machines import BookingStatus, PaymentMethod
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

MONEY_FIELD_OPTIONS = {"max_digits": 12, "decimal_places": 2}


class Booking(UUIDPrimaryKeyMixin, VersionedModel, BaseModel):
    """
    Financial record of a travel booking.

    Derived figures (profit, received, balance) are stored for querying but
    are always recomputed by the service layer from recorded facts:

        profit   = revenue - prod_cost - surcharge
        received = sum(initial payments) + sum(paid instalment payments)
        balance  = revenue - received + sum(active amendment differences)

    State Flow:
        ACTIVE -> CANCELLED (terminal)
        ACTIVE -> VOID -> ACTIVE

    Fields:
        folder_no: Human-facing identifier ("123", "123.1" for a date change)
        original_booking: Root booking this date change derives from
        agent: User who sold the booking (commission recipient)
        payment_method: FULL or INTERNAL (instalments)
        booking_status: Current FSM state
        accounting_month: First day of the month the booking is reported in
        version: Optimistic locking version
    """

    # ==========================================================================
    # Identity
    # ==========================================================================

    folder_no = models.CharField(
        max_length=32,
        unique=True,
        db_index=True,
        help_text="Folder number, e.g. '123' or '123.1' for a date change",
    )

    original_booking = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="date_changes",
        help_text="Root booking this booking was date-changed from",
    )

    agent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="bookings",
        help_text="Agent who sold the booking",
    )

    lead_passenger = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Lead passenger name",
    )

    # ==========================================================================
    # Dates
    # ==========================================================================

    pc_date = models.DateField(
        help_text="Date the booking was confirmed",
    )

    travel_date = models.DateField(
        null=True,
        blank=True,
        help_text="Departure date",
    )

    accounting_month = models.DateField(
        help_text="First day of the month the booking is reported in",
    )

    last_payment_date = models.DateField(
        null=True,
        blank=True,
        help_text="Latest instalment due date (INTERNAL bookings)",
    )

    # ==========================================================================
    # Financials
    # ==========================================================================

    payment_method = models.CharField(
        max_length=16,
        choices=PaymentMethod.choices,
        default=PaymentMethod.FULL,
        help_text="FULL (paid up front) or INTERNAL (instalments)",
    )

    revenue = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        help_text="Selling price charged to the customer",
    )
    prod_cost = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        default=0,
        help_text="Production cost (sum of cost items)",
    )
    surcharge = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        default=0,
        help_text="Surcharges deducted from profit",
    )
    profit = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        default=0,
        help_text="revenue - prod_cost - surcharge",
    )
    received = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        default=0,
        help_text="Initial payments plus paid instalments",
    )
    balance = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        default=0,
        help_text="Outstanding customer balance",
    )

    # ==========================================================================
    # Status
    # ==========================================================================

    booking_status = FSMField(
        default=BookingStatus.ACTIVE,
        choices=BookingStatus.choices,
        db_index=True,
        help_text="Current booking state (managed by FSM)",
    )

    status_before_void = models.CharField(
        max_length=16,
        blank=True,
        default="",
        help_text="Status restored when the booking is unvoided",
    )
    void_reason = models.TextField(
        blank=True,
        default="",
        help_text="Why the booking was voided",
    )
    voided_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the booking was voided",
    )
    voided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="User who voided the booking",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Booking"
        verbose_name_plural = "Bookings"
        indexes = [
            models.Index(fields=["agent", "accounting_month"], name="booking_agent_month_idx"),
            models.Index(fields=["booking_status", "travel_date"], name="booking_status_travel_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(revenue__gte=0),
                name="booking_revenue_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(prod_cost__gte=0),
                name="booking_prod_cost_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"Booking({self.folder_no}, {self.booking_status}, balance={self.balance})"

    @property
    def base_folder_no(self) -> str:
        """Folder number of the root booking ('123' for '123.2')."""
        return self.folder_no.split(".")[0]

    @property
    def is_date_change(self) -> bool:
        return self.original_booking_id is not None

    @property
    def is_internal(self) -> bool:
        return self.payment_method == PaymentMethod.INTERNAL

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=booking_status,
        source=BookingStatus.ACTIVE,
        target=BookingStatus.CANCELLED,
    )
    def cancel(self):
        """
        Mark the booking as cancelled.

        Transition: ACTIVE -> CANCELLED

        Terminal. The financial consequences are recorded on the
        Cancellation created by CancellationService.
        """

    @transition(
        field=booking_status,
        source=BookingStatus.ACTIVE,
        target=BookingStatus.VOID,
    )
    def void(self, reason: str, actor=None):
        """
        Void the booking.

        Transition: ACTIVE -> VOID
        """
        self.status_before_void = self.booking_status
        self.void_reason = reason
        self.voided_at = timezone.now()
        self.voided_by = actor

    @transition(
        field=booking_status,
        source=BookingStatus.VOID,
        target=BookingStatus.ACTIVE,
    )
    def unvoid(self):
        """
        Restore a voided booking.

        Transition: VOID -> ACTIVE
        """
        self.status_before_void = ""
        self.void_reason = ""
        self.voided_at = None
        self.voided_by = None


class CostItem(UUIDPrimaryKeyMixin, VersionedModel, BaseModel):
    """
    One line of a booking's production cost.

    The cost items of a booking sum to Booking.prod_cost. Supplier payments
    against a cost item are recorded as Settlements and accumulate in
    paid_amount.
    """

    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="cost_items",
        help_text="Booking this cost belongs to",
    )

    category = models.CharField(
        max_length=64,
        help_text="Cost category (flight, hotel, transfer, ...)",
    )

    supplier = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Supplier paid for this cost",
    )

    amount = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        help_text="Cost amount",
    )

    paid_amount = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        default=0,
        help_text="Amount already paid to the supplier",
    )

    class Meta:
        ordering = ["created_at"]
        verbose_name = "Cost Item"
        verbose_name_plural = "Cost Items"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="cost_item_amount_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(paid_amount__lte=models.F("amount")),
                name="cost_item_paid_within_amount",
            ),
        ]

    def __str__(self) -> str:
        return f"CostItem({self.category}, {self.amount})"

    @property
    def pending_amount(self):
        return self.amount - self.paid_amount
