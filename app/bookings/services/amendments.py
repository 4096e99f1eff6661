"""
Amendment log service.

Manual, reason-logged corrections to a booking's balance outside the normal
payment flow. Each amendment records the exact delta applied; the booking
balance is re-derived from recorded facts, so reversing an amendment
restores the previous balance exactly.

    write_off: difference = -balance (drives the balance to zero)
    adjust:    a signed difference chosen by the user
    reverse:   one-shot; a reversed amendment stays reversed

Usage:
    from bookings.services import AmendmentService

    amendment = AmendmentService.write_off(
        booking, reason="Goodwill", actor=user, expected_version=booking.version
    )
    booking.refresh_from_db()
    AmendmentService.reverse(amendment, actor=user, expected_version=booking.version)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import transaction
from django.utils import timezone

from bookings.exceptions import AlreadyReversedError, InvalidStateTransitionError
from bookings.locks import check_version, lock_for_update
from bookings.models import Amendment, Booking
from bookings.money import format_money, is_zero, to_money
from bookings.services.commissions import CommissionService
from bookings.services.payment_ledger import PaymentLedgerService
from bookings.state_machines import AmendmentType, BookingStatus
from core.exceptions import ValidationError
from core.services import BaseService

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


class AmendmentService(BaseService):
    """
    Service class for booking balance amendments.

    All methods are static or class methods - no instance state is
    maintained.
    """

    @classmethod
    def write_off(
        cls,
        booking: Booking,
        reason: str,
        actor=None,
        *,
        expected_version: int,
    ) -> Amendment:
        """
        Write off a booking's outstanding balance.

        Records a WRITE_OFF amendment with difference = -balance so the
        balance becomes exactly zero. On an INTERNAL booking this settles
        the booking and records the final commission reconciliation.

        Raises:
            ValidationError: If reason is blank or the balance is already zero
            InvalidStateTransitionError: If the booking is not ACTIVE
            StaleRecordError: If the booking version is stale
        """
        cls.require_fields(reason=reason)

        with transaction.atomic():
            booking = check_version(Booking, booking.pk, expected_version)
            if is_zero(booking.balance):
                raise ValidationError(
                    f"Booking {booking.folder_no} has no balance to write off",
                    error_code="NOTHING_TO_WRITE_OFF",
                    details={"balance": str(booking.balance)},
                )
            amendment = cls._apply(
                booking, AmendmentType.WRITE_OFF, -booking.balance, reason, actor
            )
            CommissionService.reconcile_if_settled(booking)

        return amendment

    @classmethod
    def adjust(
        cls,
        booking: Booking,
        difference: Any,
        reason: str,
        actor=None,
        *,
        expected_version: int,
    ) -> Amendment:
        """
        Apply a signed manual adjustment to a booking's balance.

        On an INTERNAL booking the final commission reconciliation follows
        the balance: recorded when it reaches zero, withdrawn when it
        leaves zero.

        Raises:
            ValidationError: If reason is blank or difference is zero
            InvalidStateTransitionError: If the booking is not ACTIVE
            StaleRecordError: If the booking version is stale
        """
        cls.require_fields(reason=reason, difference=difference)
        difference = to_money(difference, "difference")
        if is_zero(difference):
            raise ValidationError(
                "Adjustment difference cannot be zero",
                error_code="ADJUSTMENT_ZERO",
                details={"difference": ["Must not be zero."]},
            )

        with transaction.atomic():
            booking = check_version(Booking, booking.pk, expected_version)
            amendment = cls._apply(
                booking, AmendmentType.ADJUSTMENT, difference, reason, actor
            )
            CommissionService.withdraw_reconciliation(booking)
            CommissionService.reconcile_if_settled(booking)

        return amendment

    @staticmethod
    def _apply(booking: Booking, amendment_type: str, difference, reason: str, actor) -> Amendment:
        if booking.booking_status != BookingStatus.ACTIVE:
            raise InvalidStateTransitionError(
                f"Cannot amend a {booking.booking_status.lower()} booking",
                details={"booking_id": str(booking.pk), "current_state": booking.booking_status},
            )

        old_value = booking.balance
        amendment = Amendment.objects.create(
            booking=booking,
            amendment_type=amendment_type,
            old_value=old_value,
            new_value=old_value + difference,
            difference=difference,
            reason=reason.strip(),
            created_by=actor,
        )
        PaymentLedgerService.recompute_totals(booking)

        logger.info(
            f"{amendment_type} of {difference} on booking {booking.folder_no}: "
            f"balance {old_value} -> {booking.balance}",
            extra={
                "booking_id": str(booking.pk),
                "amendment_id": str(amendment.pk),
                "actor_id": str(actor.pk) if actor else None,
            },
        )
        return amendment

    @staticmethod
    def reverse(amendment: Amendment, actor=None, *, expected_version: int) -> Amendment:
        """
        Reverse an amendment.

        The booking's balance loses the amendment's difference. Reversal is
        one-shot: a second call fails and leaves the balance unchanged. On
        an INTERNAL booking, a reversal that reopens a settled balance
        withdraws its final commission reconciliation, and one that settles
        the balance records it.

        Args:
            amendment: Amendment to reverse
            actor: User reversing it
            expected_version: Version of the amendment's booking the caller read

        Raises:
            AlreadyReversedError: If the amendment is already reversed
            InvalidStateTransitionError: If the booking is not ACTIVE
            StaleRecordError: If the booking version is stale
        """
        with transaction.atomic():
            booking = check_version(Booking, amendment.booking_id, expected_version)
            amendment = lock_for_update(Amendment, amendment.pk)
            if amendment.is_reversed:
                raise AlreadyReversedError(
                    f"Amendment {amendment.pk} was already reversed",
                    details={
                        "amendment_id": str(amendment.pk),
                        "reversed_at": amendment.reversed_at.isoformat()
                        if amendment.reversed_at
                        else None,
                    },
                )
            if booking.booking_status != BookingStatus.ACTIVE:
                raise InvalidStateTransitionError(
                    f"Cannot reverse an amendment of a {booking.booking_status.lower()} booking",
                    details={"booking_id": str(booking.pk), "current_state": booking.booking_status},
                )

            amendment.is_reversed = True
            amendment.reversed_at = timezone.now()
            amendment.reversed_by = actor
            amendment.save()
            balance_before = booking.balance
            PaymentLedgerService.recompute_totals(booking)
            CommissionService.withdraw_reconciliation(booking)
            CommissionService.reconcile_if_settled(booking)

        logger.info(
            f"Reversed {amendment.amendment_type} on booking {booking.folder_no}: "
            f"balance {format_money(balance_before)} -> {format_money(booking.balance)}",
            extra={"booking_id": str(booking.pk), "amendment_id": str(amendment.pk)},
        )
        return amendment
