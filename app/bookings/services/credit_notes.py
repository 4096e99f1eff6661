"""
Credit note registry service.

Issues credit notes from cancellations, lists the credit available to a
customer, allocates credit to payments, and voids credit superseded by a
cash refund.

Allocation is all-or-nothing: the selections must fund the payment within
a 0.01 tolerance, every selected note must hold enough credit, and either
every usage is recorded or none is.

Usage:
    from bookings.services import CreditNoteService
    from bookings.types import CreditSelection

    note = CreditNoteService.issue(cancellation, Decimal("50.00"))
    CreditNoteService.allocate(payment, [
        CreditSelection(
            credit_note_id=note.id,
            amount_to_use=Decimal("50.00"),
            expected_version=note.version,
        ),
    ])
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from bookings.exceptions import AllocationMismatchError, InsufficientCreditError
from bookings.locks import check_version, lock_for_update
from bookings.models import Booking, CreditNote, CreditNoteUsage
from bookings.money import ZERO, format_money, money_sum, require_positive, to_money, within_tolerance
from bookings.state_machines import TransactionMethod
from bookings.types import CreditSelection
from core.exceptions import NotFoundError, ValidationError
from core.services import BaseService

if TYPE_CHECKING:
    from typing import Any

    from bookings.models import Cancellation, Payment

logger = logging.getLogger(__name__)


def _as_selection(item: Any) -> CreditSelection:
    if isinstance(item, CreditSelection):
        return item
    return CreditSelection(
        credit_note_id=item["credit_note_id"],
        amount_to_use=item["amount_to_use"],
        expected_version=item.get("expected_version"),
    )


class CreditNoteService(BaseService):
    """
    Service class for customer credit notes.

    All methods are static or class methods - no instance state is
    maintained. Notes are locked in primary key order to avoid deadlocks
    between concurrent allocations.
    """

    @staticmethod
    def issue(
        cancellation: Cancellation,
        amount: Any,
        customer_name: str = "",
    ) -> CreditNote:
        """
        Issue a credit note owned by a cancellation.

        Raises:
            ValidationError: If amount <= 0
        """
        amount = require_positive(amount, "credit amount")
        note = CreditNote.objects.create(
            cancellation=cancellation,
            reference=f"CN-{cancellation.folder_no}",
            customer_name=customer_name,
            initial_amount=amount,
            remaining_amount=amount,
        )
        logger.info(
            f"Issued credit note {note.reference} for {amount}",
            extra={"credit_note_id": str(note.pk), "cancellation_id": str(cancellation.pk)},
        )
        return note

    @staticmethod
    def list_available(original_booking_id: Any):
        """
        Credit notes with remaining credit traceable to a booking chain.

        A note is traceable when the cancellation that generated it was
        raised on the given booking, its root, or any date change of that
        root. Newest first.

        Raises:
            NotFoundError: If the booking doesn't exist
        """
        booking = Booking.objects.filter(pk=original_booking_id).first()
        if booking is None:
            raise NotFoundError(
                f"Booking {original_booking_id} not found",
                error_code="BOOKING_NOT_FOUND",
                details={"pk": str(original_booking_id)},
            )
        root_id = booking.original_booking_id or booking.pk
        return (
            CreditNote.objects.filter(
                Q(cancellation__original_booking_id=root_id)
                | Q(cancellation__original_booking__original_booking_id=root_id),
                remaining_amount__gt=0,
            )
            .select_related("cancellation")
            .order_by("-created_at")
        )

    @staticmethod
    def available():
        """All credit notes that still hold credit, newest first."""
        return CreditNote.objects.filter(remaining_amount__gt=0).order_by("-created_at")

    @staticmethod
    def check_allocation_total(selections: list[Any], payment_amount: Any) -> Decimal:
        """
        Verify the selections fund the payment within tolerance.

        Each selected amount is quantized to the cent before summing.

        Returns:
            The quantized selected total

        Raises:
            ValidationError: If no selection is given or an amount <= 0
            AllocationMismatchError: If the total differs from the payment
                amount by more than 0.01
        """
        if not selections:
            raise ValidationError(
                "At least one credit note must be selected",
                error_code="CREDIT_SELECTION_REQUIRED",
            )
        amounts = [
            require_positive(_as_selection(s).amount_to_use, "amount_to_use")
            for s in selections
        ]

        total = money_sum(amounts)
        payment_amount = to_money(payment_amount, "payment amount")
        if not within_tolerance(total, payment_amount):
            raise AllocationMismatchError(
                f"Selected credit ({format_money(total)}) does not match the "
                f"payment amount ({format_money(payment_amount)})",
                details={
                    "allocated_total": str(total),
                    "payment_amount": str(payment_amount),
                    "difference": str(total - payment_amount),
                },
            )
        return total

    @classmethod
    def allocate(cls, payment: Payment, selections: list[Any]) -> list[CreditNoteUsage]:
        """
        Fund a payment from one or more credit notes.

        The usages always sum to the payment amount exactly: a selection
        total within 0.01 of the payment is corrected on the last selected
        note.

        Args:
            payment: Payment with transaction method CUSTOMER_CREDIT_NOTE
            selections: CreditSelection objects (or dicts with credit_note_id,
                amount_to_use and expected_version)

        Returns:
            The created usages

        Raises:
            ValidationError: If the payment is not credit funded, a
                selection amount <= 0 or a selection carries no version
            AllocationMismatchError: If the selection total does not match
                the payment amount within 0.01
            InsufficientCreditError: If a note has less credit remaining than
                selected
            StaleRecordError: If a note's expected_version is stale
        """
        if payment.transaction_method != TransactionMethod.CUSTOMER_CREDIT_NOTE:
            raise ValidationError(
                "Only CUSTOMER_CREDIT_NOTE payments can be funded by credit notes",
                error_code="PAYMENT_NOT_CREDIT_FUNDED",
                details={"transaction_method": payment.transaction_method},
            )
        selections = [_as_selection(s) for s in selections]
        total = cls.check_allocation_total(selections, payment.amount)

        missing = [str(s.credit_note_id) for s in selections if s.expected_version is None]
        if missing:
            raise ValidationError(
                "Every selected credit note needs the version it was read at",
                error_code="CREDIT_NOTE_VERSION_REQUIRED",
                details={"expected_version": missing},
            )

        # Merge repeated selections of the same note
        requested: dict[Any, Decimal] = {}
        versions: dict[Any, int] = {}
        for selection in selections:
            key = str(selection.credit_note_id)
            requested[key] = requested.get(key, ZERO) + to_money(selection.amount_to_use)
            versions.setdefault(key, selection.expected_version)

        last_key = list(requested)[-1]
        requested[last_key] += to_money(payment.amount) - total
        if requested[last_key] <= ZERO:
            del requested[last_key]

        usages = []
        with transaction.atomic():
            notes = {
                key: check_version(CreditNote, key, versions[key])
                for key in sorted(requested)
            }
            for key, amount in requested.items():
                note = notes[key]
                if amount > note.remaining_amount:
                    raise InsufficientCreditError(
                        f"Credit note {note.reference} has {format_money(note.remaining_amount)} "
                        f"remaining, {format_money(amount)} requested",
                        details={
                            "credit_note_id": str(note.pk),
                            "remaining_amount": str(note.remaining_amount),
                            "requested_amount": str(amount),
                        },
                    )

            for key, amount in requested.items():
                note = notes[key]
                usages.append(
                    CreditNoteUsage.objects.create(
                        credit_note=note, payment=payment, amount_used=amount
                    )
                )
                note.remaining_amount -= amount
                note.save()

        logger.info(
            f"Allocated {len(usages)} credit note(s) to payment {payment.pk}",
            extra={"payment_id": str(payment.pk), "amount": str(payment.amount)},
        )
        return usages

    @staticmethod
    def void_remaining(note: CreditNote) -> Decimal:
        """
        Write off the credit left on a note without consuming it.

        Used when a cash refund supersedes the note. No usage record is
        created; the written-off amount is kept in forfeited_amount.

        Returns:
            The amount voided

        Raises:
            ValidationError: If the note has no credit left
        """
        with transaction.atomic():
            note = lock_for_update(CreditNote, note.pk)
            voided = note.remaining_amount
            if voided <= ZERO:
                raise ValidationError(
                    f"Credit note {note.reference} has no remaining credit",
                    error_code="CREDIT_NOTE_EXHAUSTED",
                    details={"credit_note_id": str(note.pk)},
                )
            partially_used = voided < note.initial_amount

            note.forfeited_amount += voided
            note.remaining_amount = ZERO
            note.voided_at = timezone.now()
            note.save()

        if partially_used:
            logger.warning(
                f"Voided the remaining {voided} of partially used credit note {note.reference}",
                extra={"credit_note_id": str(note.pk), "voided": str(voided)},
            )
        else:
            logger.info(
                f"Voided credit note {note.reference} ({voided})",
                extra={"credit_note_id": str(note.pk), "voided": str(voided)},
            )
        return voided
