"""
Payable and Settlement models.

A payable is money owed and not yet settled:
- CustomerPayable: the customer owes the business (cancellation shortfall)
- SupplierPayable: the business owes a supplier (unpaid cancellation fee)

    pending_amount = total_amount - sum(settlements.amount), always >= 0

Settlements are append-only and belong to exactly one of a customer
payable, a supplier payable or a booking cost item.
"""

from __future__ import annotations

from django.db import models
from django.db.models import Q

from bookings.models.base import AppendOnlyModel, VersionedModel
from bookings.models.booking import MONEY_FIELD_OPTIONS
from bookings.money import is_zero
from bookings.state_machines import PayableStatus, SettlementMethod
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class Payable(UUIDPrimaryKeyMixin, VersionedModel, BaseModel):
    """
    Abstract base for amounts pending settlement.

    Fields:
        booking: Booking the payable arose from
        reason: Why the amount is owed (fee breakdown)
        total_amount: Amount owed when the payable was created
        paid_amount: Sum of settlements so far
        pending_amount: Amount still owed
        version: Optimistic locking version
    """

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="%(class)ss",
        help_text="Booking the payable arose from",
    )

    reason = models.TextField(
        help_text="Why the amount is owed",
    )

    total_amount = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        help_text="Amount owed when the payable was created",
    )

    paid_amount = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        default=0,
        help_text="Sum of settlements recorded",
    )

    pending_amount = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        help_text="Amount still owed",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(total_amount__gt=0),
                name="%(class)s_total_positive",
            ),
            models.CheckConstraint(
                condition=Q(pending_amount__gte=0),
                name="%(class)s_pending_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.pending_amount}/{self.total_amount})"

    @property
    def status(self) -> str:
        if is_zero(self.pending_amount):
            return PayableStatus.PAID
        return PayableStatus.PENDING


class CustomerPayable(Payable):
    """Amount the customer owes after a cancellation shortfall."""

    cancellation = models.OneToOneField(
        "bookings.Cancellation",
        on_delete=models.PROTECT,
        related_name="customer_payable",
        help_text="Cancellation that created the payable",
    )

    class Meta(Payable.Meta):
        verbose_name = "Customer Payable"
        verbose_name_plural = "Customer Payables"


class SupplierPayable(Payable):
    """Supplier cancellation fee not yet paid to the supplier."""

    cancellation = models.OneToOneField(
        "bookings.Cancellation",
        on_delete=models.PROTECT,
        related_name="supplier_payable",
        help_text="Cancellation that created the payable",
    )

    supplier = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Supplier owed the fee",
    )

    class Meta(Payable.Meta):
        verbose_name = "Supplier Payable"
        verbose_name_plural = "Supplier Payables"


class Settlement(UUIDPrimaryKeyMixin, AppendOnlyModel, BaseModel):
    """
    A recorded payment against a payable or a supplier cost.

    Exactly one of customer_payable, supplier_payable and cost_item is set.
    """

    customer_payable = models.ForeignKey(
        CustomerPayable,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="settlements",
    )
    supplier_payable = models.ForeignKey(
        SupplierPayable,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="settlements",
    )
    cost_item = models.ForeignKey(
        "bookings.CostItem",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="settlements",
    )

    amount = models.DecimalField(
        **MONEY_FIELD_OPTIONS,
        help_text="Amount settled",
    )

    transaction_method = models.CharField(
        max_length=20,
        choices=SettlementMethod.choices,
        help_text="How the settlement was paid",
    )

    settlement_date = models.DateField(
        help_text="Date the settlement was paid",
    )

    class Meta:
        ordering = ["settlement_date", "created_at"]
        verbose_name = "Settlement"
        verbose_name_plural = "Settlements"
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="settlement_amount_positive",
            ),
            models.CheckConstraint(
                condition=(
                    Q(
                        customer_payable__isnull=False,
                        supplier_payable__isnull=True,
                        cost_item__isnull=True,
                    )
                    | Q(
                        customer_payable__isnull=True,
                        supplier_payable__isnull=False,
                        cost_item__isnull=True,
                    )
                    | Q(
                        customer_payable__isnull=True,
                        supplier_payable__isnull=True,
                        cost_item__isnull=False,
                    )
                ),
                name="settlement_single_target",
            ),
        ]

    def __str__(self) -> str:
        return f"Settlement({self.amount}, {self.transaction_method})"
