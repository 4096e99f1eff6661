"""
Cancellation processor service.

Cancelling a booking closes its whole chain (the root booking plus its
date changes) and derives exactly one customer-side outcome from the
money received across the chain and the cancellation fees:

    difference = received - (supplier_cancellation_fee + admin_fee)

    difference < 0  -> CustomerPayable for the shortfall
    difference > 0  -> CASH_REFUND (refund_status PENDING) or CREDIT_NOTE,
                       chosen by the caller's refund policy
    difference == 0 -> SETTLED

On the supplier side, a supplier fee larger than what was already paid to
suppliers becomes a SupplierPayable; a smaller one is recorded as supplier
credit.

Usage:
    from bookings.services import CancellationService
    from bookings.state_machines import RefundPolicy, TransactionMethod

    cancellation = CancellationService.cancel(
        booking,
        supplier_cancellation_fee=Decimal("80.00"),
        admin_fee=Decimal("20.00"),
        refund_policy=RefundPolicy.CASH,
        expected_version=booking.version,
    )
    CancellationService.record_refund_paid(cancellation, TransactionMethod.WISE)
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from bookings.exceptions import (
    AlreadyCancelledError,
    AlreadyPaidError,
    InvalidStateTransitionError,
)
from bookings.locks import check_version, lock_for_update
from bookings.models import (
    Booking,
    Cancellation,
    CostItem,
    CreditNote,
    CustomerPayable,
    Payment,
    SupplierPayable,
)
from bookings.money import ZERO, format_money, money_sum, require_non_negative
from bookings.services.credit_notes import CreditNoteService
from bookings.services.payment_ledger import PaymentLedgerService
from bookings.state_machines import (
    BookingStatus,
    CancellationOutcome,
    PaymentKind,
    RefundPolicy,
    RefundStatus,
    TransactionMethod,
)
from core.exceptions import ValidationError
from core.services import BaseService

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


class CancellationService(BaseService):
    """
    Service class for booking cancellations and their refunds.

    All methods are static or class methods - no instance state is
    maintained.
    """

    @classmethod
    def cancel(
        cls,
        booking: Booking,
        supplier_cancellation_fee: Any,
        admin_fee: Any,
        refund_policy: str | None = None,
        *,
        expected_version: int,
    ) -> Cancellation:
        """
        Cancel a booking chain and record its financial outcome.

        Args:
            booking: Any booking of the chain to cancel
            supplier_cancellation_fee: Fee charged by the supplier (>= 0)
            admin_fee: Fee charged by the business (>= 0)
            refund_policy: RefundPolicy.CASH or RefundPolicy.CREDIT_NOTE;
                required when the customer overpaid
            expected_version: Booking version the caller read

        Returns:
            The created Cancellation

        Raises:
            ValidationError: If a fee is negative, or the customer overpaid
                and no valid refund policy was given
            AlreadyCancelledError: If the chain is already cancelled
            InvalidStateTransitionError: If the booking is void
            StaleRecordError: If the booking version is stale
        """
        supplier_fee = require_non_negative(
            supplier_cancellation_fee, "supplier_cancellation_fee"
        )
        admin_fee = require_non_negative(admin_fee, "admin_fee")
        if refund_policy is not None and refund_policy not in RefundPolicy.values:
            raise ValidationError(
                f"Unknown refund policy {refund_policy!r}",
                error_code="REFUND_POLICY_INVALID",
                details={"refund_policy": [f"Must be one of {RefundPolicy.values}."]},
            )

        with transaction.atomic():
            booking = check_version(Booking, booking.pk, expected_version)
            chain = list(
                PaymentLedgerService.booking_chain(booking).select_for_update()
            )
            base_folder_no = booking.base_folder_no

            if any(b.booking_status == BookingStatus.CANCELLED for b in chain) or (
                Cancellation.objects.filter(original_booking__in=chain).exists()
            ):
                raise AlreadyCancelledError(
                    f"Booking chain {base_folder_no} has already been cancelled",
                    details={"folder_no": base_folder_no},
                )
            if booking.booking_status != BookingStatus.ACTIVE:
                raise InvalidStateTransitionError(
                    f"Cannot cancel a {booking.booking_status.lower()} booking",
                    details={"booking_id": str(booking.pk), "current_state": booking.booking_status},
                )

            received = money_sum(b.received for b in chain)
            chain_prod_cost = money_sum(b.prod_cost for b in chain)
            paid_to_supplier = (
                CostItem.objects.filter(booking__in=chain).aggregate(
                    total=Sum("paid_amount")
                )["total"]
                or ZERO
            )

            total_fees = supplier_fee + admin_fee
            customer_difference = received - total_fees
            supplier_difference = supplier_fee - paid_to_supplier

            if customer_difference < ZERO:
                outcome = CancellationOutcome.CUSTOMER_PAYABLE
            elif customer_difference > ZERO:
                if refund_policy is None:
                    raise ValidationError(
                        f"Customer is owed {format_money(customer_difference)}; "
                        "choose a cash refund or a credit note",
                        error_code="REFUND_POLICY_REQUIRED",
                        details={"refund_amount": str(customer_difference)},
                    )
                outcome = (
                    CancellationOutcome.CASH_REFUND
                    if refund_policy == RefundPolicy.CASH
                    else CancellationOutcome.CREDIT_NOTE
                )
            else:
                outcome = CancellationOutcome.SETTLED

            payable_amount = -customer_difference if customer_difference < ZERO else ZERO
            refund_amount = customer_difference if customer_difference > ZERO else ZERO

            cancellation = Cancellation.objects.create(
                original_booking=booking,
                folder_no=f"{base_folder_no}.C",
                supplier_cancellation_fee=supplier_fee,
                admin_fee=admin_fee,
                received_at_cancellation=received,
                total_paid_to_supplier=paid_to_supplier,
                outcome=outcome,
                outcome_amount=abs(customer_difference),
                refund_status=(
                    RefundStatus.PENDING
                    if outcome == CancellationOutcome.CASH_REFUND
                    else None
                ),
                supplier_credit_amount=(
                    -supplier_difference if supplier_difference < ZERO else ZERO
                ),
                profit_or_loss=(received - chain_prod_cost) - refund_amount + payable_amount,
            )

            if outcome == CancellationOutcome.CUSTOMER_PAYABLE:
                CustomerPayable.objects.create(
                    booking=booking,
                    cancellation=cancellation,
                    reason=(
                        f"Cancellation shortfall for booking chain {base_folder_no}: "
                        f"supplier fee {format_money(supplier_fee)} + admin fee "
                        f"{format_money(admin_fee)} - received {format_money(received)}"
                    ),
                    total_amount=payable_amount,
                    pending_amount=payable_amount,
                )
            elif outcome == CancellationOutcome.CREDIT_NOTE:
                CreditNoteService.issue(
                    cancellation, refund_amount, customer_name=booking.lead_passenger
                )

            if supplier_difference > ZERO:
                supplier = (
                    CostItem.objects.filter(booking__in=chain)
                    .exclude(supplier="")
                    .values_list("supplier", flat=True)
                    .first()
                )
                SupplierPayable.objects.create(
                    booking=booking,
                    cancellation=cancellation,
                    supplier=supplier or "",
                    reason=(
                        f"Supplier cancellation fee for booking chain {base_folder_no}: "
                        f"fee {format_money(supplier_fee)} - already paid "
                        f"{format_money(paid_to_supplier)}"
                    ),
                    total_amount=supplier_difference,
                    pending_amount=supplier_difference,
                )

            for chain_booking in chain:
                if chain_booking.booking_status == BookingStatus.ACTIVE:
                    chain_booking.cancel()
                    chain_booking.save()

        logger.info(
            f"Cancelled booking chain {base_folder_no}: {outcome} {cancellation.outcome_amount}",
            extra={
                "cancellation_id": str(cancellation.pk),
                "received": str(received),
                "fees": str(total_fees),
                "supplier_difference": str(supplier_difference),
            },
        )
        return cancellation

    @classmethod
    def record_refund_paid(
        cls,
        cancellation: Cancellation,
        transaction_method: str,
        payment_date: date | None = None,
        reference: str = "",
    ) -> Payment:
        """
        Record the cash refund of a CASH_REFUND cancellation.

        Raises:
            InvalidStateTransitionError: If the cancellation owes no cash refund
            AlreadyPaidError: If the refund was already paid
        """
        with transaction.atomic():
            cancellation = lock_for_update(Cancellation, cancellation.pk)
            if cancellation.outcome != CancellationOutcome.CASH_REFUND:
                raise InvalidStateTransitionError(
                    f"Cancellation {cancellation.folder_no} does not owe a cash refund",
                    details={"cancellation_id": str(cancellation.pk), "outcome": cancellation.outcome},
                )
            if cancellation.refund_status != RefundStatus.PENDING:
                raise AlreadyPaidError(
                    f"Refund for cancellation {cancellation.folder_no} is already paid",
                    details={
                        "cancellation_id": str(cancellation.pk),
                        "refund_amount": str(cancellation.outcome_amount),
                    },
                )

            payment = cls._refund_payment(
                cancellation,
                cancellation.outcome_amount,
                transaction_method,
                payment_date,
                reference,
            )
            cancellation.mark_refund_paid()
            cancellation.save()

        logger.info(
            f"Refund paid for cancellation {cancellation.folder_no}: {payment.amount}",
            extra={"cancellation_id": str(cancellation.pk), "payment_id": str(payment.pk)},
        )
        return payment

    @classmethod
    def convert_credit_to_refund(
        cls,
        cancellation: Cancellation,
        transaction_method: str,
        payment_date: date | None = None,
        reference: str = "",
        *,
        expected_version: int,
    ) -> Payment:
        """
        Pay out the credit left on a cancellation's credit note as cash.

        The note's remaining credit is voided (not consumed) and the same
        amount is refunded in cash, so the credit is never paid twice. Any
        part of the note already used on other bookings stays used.

        Args:
            cancellation: CREDIT_NOTE cancellation
            transaction_method: How the refund was paid
            payment_date: Defaults to today
            reference: Bank or processor reference
            expected_version: Credit note version the caller read

        Returns:
            The refund Payment

        Raises:
            InvalidStateTransitionError: If the cancellation has no credit note
            ValidationError: If the note has no credit left
            StaleRecordError: If the credit note version is stale
        """
        with transaction.atomic():
            cancellation = lock_for_update(Cancellation, cancellation.pk)
            if cancellation.outcome != CancellationOutcome.CREDIT_NOTE:
                raise InvalidStateTransitionError(
                    f"Cancellation {cancellation.folder_no} has no credit note to convert",
                    details={"cancellation_id": str(cancellation.pk), "outcome": cancellation.outcome},
                )
            note = check_version(CreditNote, cancellation.credit_note.pk, expected_version)
            amount = CreditNoteService.void_remaining(note)

            payment = cls._refund_payment(
                cancellation, amount, transaction_method, payment_date, reference
            )
            cancellation.outcome = CancellationOutcome.CASH_REFUND
            cancellation.outcome_amount = amount
            cancellation.refund_status = RefundStatus.PAID
            cancellation.converted_from_credit_at = timezone.now()
            cancellation.save()

        logger.info(
            f"Converted credit note of cancellation {cancellation.folder_no} to a cash refund of {amount}",
            extra={"cancellation_id": str(cancellation.pk), "payment_id": str(payment.pk)},
        )
        return payment

    @staticmethod
    def _refund_payment(cancellation, amount, transaction_method, payment_date, reference):
        if transaction_method not in TransactionMethod.values or (
            transaction_method == TransactionMethod.CUSTOMER_CREDIT_NOTE
        ):
            raise ValidationError(
                f"Refunds cannot be paid by {transaction_method!r}",
                error_code="TRANSACTION_METHOD_INVALID",
                details={"transaction_method": transaction_method},
            )
        return Payment.objects.create(
            booking=cancellation.original_booking,
            kind=PaymentKind.REFUND,
            amount=amount,
            transaction_method=transaction_method,
            payment_date=payment_date or timezone.localdate(),
            cancellation=cancellation,
            reference=reference,
        )
