"""
Commission ledger service.

Records agent commission:
- INITIAL at booking creation: profit x percentage (FULL 100%, INTERNAL 50%)
- FINAL_RECONCILIATION once an INTERNAL booking's balance reaches zero:
  final profit - INITIAL already paid (a top-up, or a clawback if negative).
  An amendment reversal that reopens the balance withdraws it again.

Usage:
    from bookings.services import CommissionService

    entry = CommissionService.record_initial(booking, agent)
    CommissionService.update_commission_month(
        entry.id, date(2026, 5, 1), expected_version=entry.version
    )
    summary = CommissionService.agent_commissions(agent, date(2026, 5, 1))
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from bookings.exceptions import DuplicateCommissionError
from bookings.locks import check_version, lock_for_update
from bookings.models import Booking, CommissionEntry
from bookings.money import ZERO, first_of_month, format_money, is_zero, to_decimal, to_money
from bookings.state_machines import CommissionType, PaymentMethod
from bookings.types import CommissionSummary
from core.exceptions import ValidationError
from core.services import BaseService

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

# Share of profit paid as INITIAL commission per payment method
INITIAL_PERCENTAGES = {
    PaymentMethod.FULL: Decimal("1.0"),
    PaymentMethod.INTERNAL: Decimal("0.5"),
}
ALLOWED_PERCENTAGES = frozenset(INITIAL_PERCENTAGES.values())


class CommissionService(BaseService):
    """
    Service class for the agent commission ledger.

    All methods are static or class methods - no instance state is
    maintained.
    """

    @staticmethod
    def percentage_for(booking: Booking) -> Decimal:
        return INITIAL_PERCENTAGES[PaymentMethod(booking.payment_method)]

    @staticmethod
    def _current_month() -> date:
        return first_of_month(timezone.localdate())

    @classmethod
    def record_initial(
        cls,
        booking: Booking,
        agent=None,
        percentage: Any = None,
        commission_month: date | None = None,
    ) -> CommissionEntry:
        """
        Record the INITIAL commission entry of a booking.

        Args:
            booking: Booking the commission is for
            agent: Agent credited (defaults to booking.agent)
            percentage: 0.5 or 1.0 (defaults by payment method)
            commission_month: Defaults to the current month

        Returns:
            The created CommissionEntry

        Raises:
            ValidationError: If percentage is not 0.5 or 1.0
            DuplicateCommissionError: If an INITIAL entry already exists
        """
        if percentage is None:
            percentage = cls.percentage_for(booking)
        else:
            percentage = to_decimal(percentage, "percentage")
        if percentage not in ALLOWED_PERCENTAGES:
            raise ValidationError(
                f"Commission percentage must be one of 0.5 or 1.0, got {percentage}",
                error_code="COMMISSION_PERCENTAGE_INVALID",
                details={"percentage": str(percentage)},
            )

        if CommissionEntry.objects.filter(
            booking=booking, entry_type=CommissionType.INITIAL
        ).exists():
            raise DuplicateCommissionError(
                f"Booking {booking.folder_no} already has an INITIAL commission entry",
                details={"booking_id": str(booking.pk)},
            )

        entry = CommissionEntry.objects.create(
            booking=booking,
            agent=agent or booking.agent,
            entry_type=CommissionType.INITIAL,
            amount=to_money(booking.profit * percentage),
            percentage=percentage,
            commission_month=first_of_month(commission_month or cls._current_month()),
        )
        logger.info(
            f"INITIAL commission {entry.amount} for booking {booking.folder_no}",
            extra={"booking_id": str(booking.pk), "agent_id": str(entry.agent_id)},
        )
        return entry

    @classmethod
    def record_final_reconciliation(
        cls,
        booking: Booking,
        agent=None,
        commission_month: date | None = None,
    ) -> CommissionEntry:
        """
        Record the FINAL_RECONCILIATION entry of a fully settled INTERNAL booking.

        amount = final profit - INITIAL commission already paid, where final
        profit includes active amendment differences. The amount may be
        negative (clawback).

        Raises:
            ValidationError: If the booking is not INTERNAL or its balance
                is not zero
            DuplicateCommissionError: If the booking is already reconciled
        """
        with transaction.atomic():
            booking = lock_for_update(Booking, booking.pk)

            if booking.payment_method != PaymentMethod.INTERNAL:
                raise ValidationError(
                    "Final reconciliation applies to INTERNAL bookings only",
                    error_code="COMMISSION_NOT_INTERNAL",
                    details={"booking_id": str(booking.pk), "payment_method": booking.payment_method},
                )
            if not is_zero(booking.balance):
                raise ValidationError(
                    f"Booking {booking.folder_no} still has a balance of "
                    f"{format_money(booking.balance)}",
                    error_code="BOOKING_NOT_SETTLED",
                    details={"booking_id": str(booking.pk), "balance": str(booking.balance)},
                )

            entries = {
                e.entry_type: e for e in CommissionEntry.objects.filter(booking=booking)
            }
            if CommissionType.FINAL_RECONCILIATION in entries:
                raise DuplicateCommissionError(
                    f"Booking {booking.folder_no} is already reconciled",
                    details={"booking_id": str(booking.pk)},
                )

            initial = entries.get(CommissionType.INITIAL)
            initial_paid = initial.amount if initial else ZERO
            adjustments = booking.amendments.filter(is_reversed=False).aggregate(
                total=Sum("difference")
            )["total"] or ZERO
            final_profit = booking.profit + adjustments

            entry = CommissionEntry.objects.create(
                booking=booking,
                agent=agent or booking.agent,
                entry_type=CommissionType.FINAL_RECONCILIATION,
                amount=to_money(final_profit - initial_paid),
                initial_paid=initial_paid,
                commission_month=first_of_month(commission_month or cls._current_month()),
            )

        logger.info(
            f"FINAL_RECONCILIATION commission {entry.amount} for booking {booking.folder_no}",
            extra={
                "booking_id": str(booking.pk),
                "final_profit": str(final_profit),
                "initial_paid": str(initial_paid),
            },
        )
        return entry

    @classmethod
    def reconcile_if_settled(cls, booking: Booking) -> CommissionEntry | None:
        """Record final reconciliation when an INTERNAL booking has just settled."""
        if booking.payment_method != PaymentMethod.INTERNAL or not is_zero(booking.balance):
            return None
        if CommissionEntry.objects.filter(
            booking=booking, entry_type=CommissionType.FINAL_RECONCILIATION
        ).exists():
            return None
        return cls.record_final_reconciliation(booking)

    @staticmethod
    def withdraw_reconciliation(booking: Booking) -> CommissionEntry | None:
        """
        Remove the FINAL_RECONCILIATION of a booking that is no longer settled.

        The next time the balance reaches zero a new reconciliation is
        recorded from the figures at that point.

        Returns:
            The removed entry, or None when the booking is still settled
            or was never reconciled
        """
        if is_zero(booking.balance):
            return None
        entry = (
            CommissionEntry.objects.select_for_update()
            .filter(booking=booking, entry_type=CommissionType.FINAL_RECONCILIATION)
            .first()
        )
        if entry is None:
            return None
        entry.delete()
        logger.warning(
            f"Withdrew FINAL_RECONCILIATION commission {entry.amount} for booking "
            f"{booking.folder_no}: balance is {format_money(booking.balance)} again",
            extra={
                "booking_id": str(booking.pk),
                "agent_id": str(entry.agent_id),
                "commission_month": entry.commission_month.isoformat(),
            },
        )
        return entry

    @staticmethod
    def update_commission_month(
        entry_id: Any, new_month: date, *, expected_version: int
    ) -> CommissionEntry:
        """
        Move a commission entry to another month.

        Pure metadata edit: the amount is never recomputed.

        Raises:
            NotFoundError: If the entry doesn't exist
            ValidationError: If new_month is missing
            StaleRecordError: If the entry version is stale
        """
        if new_month is None:
            raise ValidationError(
                "commission_month is required",
                error_code="REQUIRED_FIELDS_MISSING",
                details={"commission_month": ["This field is required."]},
            )
        with transaction.atomic():
            entry = check_version(CommissionEntry, entry_id, expected_version)
            entry.commission_month = first_of_month(new_month)
            entry.save()
        return entry

    @staticmethod
    def agent_commissions(agent, month: date) -> CommissionSummary:
        """All of an agent's commission entries for one month, with the total."""
        commission_month = first_of_month(month)
        entries = list(
            CommissionEntry.objects.filter(
                agent=agent, commission_month=commission_month
            ).select_related("booking")
        )
        total = sum((e.amount for e in entries), ZERO)
        return CommissionSummary(
            agent_id=agent.pk,
            commission_month=commission_month,
            entries=entries,
            total=total,
        )
