"""
Payment ledger service.

Tracks initial payments and instalments of a booking and derives its
received amount and balance. Booking creation goes through here so that
cost items, initial payments, credit allocations, instalments and the
INITIAL commission entry are recorded in one transaction.

Pure figure computations (compute_full, compute_internal, project) touch no
state and are safe to call from the presentation layer for previews.

Usage:
    from bookings.services import PaymentLedgerService

    figures = PaymentLedgerService.compute_full(
        revenue=Decimal("1000.00"),
        prod_cost=Decimal("700.00"),
        surcharge=Decimal("20.00"),
        payments=[Decimal("250.00")],
    )
    figures.balance  # Decimal("750.00")

    booking = PaymentLedgerService.create_booking(agent=agent, draft=draft)
    PaymentLedgerService.record_instalment_payment(
        instalment,
        transaction_method=TransactionMethod.CARD,
        expected_version=booking.version,
    )
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.db.models import IntegerField, Max, Q, Sum
from django.db.models.functions import Cast
from django.utils import timezone
from django_fsm import can_proceed

from bookings.exceptions import AlreadyPaidError, ExceedsPendingError, InvalidStateTransitionError
from bookings.locks import check_version, lock_for_update
from bookings.models import Booking, CostItem, Instalment, Payment
from bookings.money import (
    ZERO,
    exceeds,
    first_of_month,
    format_money,
    is_zero,
    money_sum,
    require_non_negative,
    require_positive,
    to_money,
    within_tolerance,
)
from bookings.services.commissions import CommissionService
from bookings.services.credit_notes import CreditNoteService
from bookings.state_machines import (
    BookingStatus,
    InstalmentStatus,
    PaymentKind,
    PaymentMethod,
    TransactionMethod,
)
from bookings.types import BookingDraft, LedgerFigures
from core.exceptions import ConflictError, ValidationError
from core.services import BaseService

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any

    from bookings.types import CreditSelection

logger = logging.getLogger(__name__)


def _amount_of(item: Any) -> Any:
    if isinstance(item, dict):
        return item.get("amount")
    return getattr(item, "amount", item)


def _positive_amounts(items: Iterable[Any], field: str) -> list[Decimal]:
    return [require_positive(_amount_of(item), field) for item in items]


def _is_paid(instalment: Any) -> bool:
    if isinstance(instalment, dict):
        status = instalment.get("status")
    else:
        status = getattr(instalment, "status", None)
    return status == InstalmentStatus.PAID


def _due_date_of(instalment: Any) -> date | None:
    if isinstance(instalment, dict):
        return instalment.get("due_date")
    return getattr(instalment, "due_date", None)


class PaymentLedgerService(BaseService):
    """
    Service class for booking payments and derived figures.

    All methods are static or class methods - no instance state is
    maintained. Mutating methods take the booking version the caller read
    as expected_version and lock the booking row.
    """

    # ==========================================================================
    # Pure computations
    # ==========================================================================

    @staticmethod
    def compute_full(
        revenue: Any,
        prod_cost: Any,
        surcharge: Any,
        payments: Iterable[Any],
    ) -> LedgerFigures:
        """
        Compute the figures of a FULL booking.

        Args:
            revenue: Selling price (required)
            prod_cost: Production cost
            surcharge: Surcharges deducted from profit
            payments: Initial payments (amounts or objects with .amount)

        Returns:
            LedgerFigures with profit, received and balance

        Raises:
            ValidationError: If revenue is missing or any payment amount <= 0
        """
        revenue = to_money(revenue, "revenue")
        prod_cost = to_money(prod_cost or ZERO, "prod_cost")
        surcharge = to_money(surcharge or ZERO, "surcharge")
        received = money_sum(_positive_amounts(payments, "payment amount"))
        return LedgerFigures(
            profit=revenue - prod_cost - surcharge,
            received=received,
            balance=revenue - received,
        )

    @staticmethod
    def compute_internal(
        selling_price: Any,
        prod_cost: Any,
        surcharge: Any,
        payments: Iterable[Any],
        instalments: Iterable[Any],
    ) -> LedgerFigures:
        """
        Compute the figures of an INTERNAL (instalment) booking.

        received counts initial payments plus PAID instalments only.
        last_payment_date is the latest instalment due date.

        Raises:
            ValidationError: If selling_price is missing or any payment or
                instalment amount <= 0
        """
        selling_price = to_money(selling_price, "revenue")
        prod_cost = to_money(prod_cost or ZERO, "prod_cost")
        surcharge = to_money(surcharge or ZERO, "surcharge")
        instalments = list(instalments)

        initial = money_sum(_positive_amounts(payments, "payment amount"))
        instalment_amounts = _positive_amounts(instalments, "instalment amount")
        paid = money_sum(
            amount
            for amount, instalment in zip(instalment_amounts, instalments)
            if _is_paid(instalment)
        )
        due_dates = [d for d in (_due_date_of(i) for i in instalments) if d]

        received = initial + paid
        return LedgerFigures(
            profit=selling_price - prod_cost - surcharge,
            received=received,
            balance=selling_price - received,
            last_payment_date=max(due_dates) if due_dates else None,
        )

    @classmethod
    def project(cls, draft: BookingDraft) -> LedgerFigures:
        """
        Preview the figures a draft booking would have.

        Side-effect free; nothing is persisted.
        """
        prod_cost = money_sum(
            require_positive(item.amount, "cost item amount")
            for item in draft.cost_items
        )
        if draft.payment_method == PaymentMethod.INTERNAL:
            return cls.compute_internal(
                draft.revenue,
                prod_cost,
                draft.surcharge,
                draft.payments,
                draft.instalments,
            )
        return cls.compute_full(
            draft.revenue, prod_cost, draft.surcharge, draft.payments
        )

    # ==========================================================================
    # Booking creation
    # ==========================================================================

    @classmethod
    def create_booking(
        cls,
        agent,
        draft: BookingDraft,
        original_booking: Booking | None = None,
    ) -> Booking:
        """
        Create a booking with its cost items, payments and instalments.

        Initial payments with transaction method CUSTOMER_CREDIT_NOTE are
        funded by allocating the draft's credit selections. The INITIAL
        commission entry is recorded for the agent (FULL: 100% of profit,
        INTERNAL: 50%).

        Args:
            agent: User who sold the booking
            draft: BookingDraft with financial terms
            original_booking: Root booking when creating a date change

        Returns:
            The created Booking with derived figures stored

        Raises:
            ValidationError: If the draft is incomplete or inconsistent
            AllocationMismatchError / InsufficientCreditError: If a credit
                funded payment cannot be allocated
            ConflictError: If the folder number was taken concurrently
        """
        cls._validate_draft(draft)
        figures = cls.project(draft)

        with transaction.atomic():
            booking = Booking(
                folder_no=cls._next_folder_no(original_booking),
                original_booking=original_booking,
                agent=agent,
                lead_passenger=draft.lead_passenger,
                pc_date=draft.pc_date,
                travel_date=draft.travel_date,
                accounting_month=first_of_month(
                    draft.accounting_month or draft.pc_date
                ),
                payment_method=draft.payment_method,
                revenue=to_money(draft.revenue, "revenue"),
                prod_cost=money_sum(to_money(i.amount) for i in draft.cost_items),
                surcharge=to_money(draft.surcharge or ZERO, "surcharge"),
                profit=figures.profit,
                balance=to_money(draft.revenue, "revenue"),
            )
            try:
                with transaction.atomic():
                    booking.save()
            except IntegrityError as exc:
                raise ConflictError(
                    "Folder number was taken by a concurrent booking, please retry",
                    error_code="FOLDER_NO_TAKEN",
                ) from exc

            for item in draft.cost_items:
                CostItem.objects.create(
                    booking=booking,
                    category=item.category,
                    supplier=item.supplier,
                    amount=to_money(item.amount),
                )

            for payment_draft in draft.payments:
                payment = Payment.objects.create(
                    booking=booking,
                    kind=PaymentKind.INITIAL,
                    amount=to_money(payment_draft.amount),
                    transaction_method=payment_draft.transaction_method,
                    payment_date=payment_draft.payment_date,
                    reference=payment_draft.reference,
                )
                if payment.is_credit_funded:
                    CreditNoteService.allocate(payment, payment_draft.credit_selections)

            for instalment_draft in draft.instalments:
                Instalment.objects.create(
                    booking=booking,
                    due_date=instalment_draft.due_date,
                    amount=to_money(instalment_draft.amount),
                )

            cls.recompute_totals(booking)
            CommissionService.record_initial(
                booking,
                agent,
                commission_month=draft.commission_month,
            )

        logger.info(
            f"Created booking {booking.folder_no}: revenue={booking.revenue} "
            f"received={booking.received} balance={booking.balance}",
            extra={
                "booking_id": str(booking.id),
                "folder_no": booking.folder_no,
                "payment_method": booking.payment_method,
            },
        )
        return booking

    @classmethod
    def create_date_change(cls, original: Booking, agent, draft: BookingDraft) -> Booking:
        """
        Create a date-changed booking linked to the root of ``original``.

        The new booking gets folder number "{base}.{n}".
        """
        root = original.original_booking or original
        if root.booking_status == BookingStatus.CANCELLED:
            raise InvalidStateTransitionError(
                f"Booking chain {root.folder_no} is cancelled",
                details={"folder_no": root.folder_no},
            )
        return cls.create_booking(agent, draft, original_booking=root)

    @staticmethod
    def _validate_draft(draft: BookingDraft) -> None:
        errors: dict[str, list[str]] = {}

        if draft.revenue is None:
            errors["revenue"] = ["This field is required."]
        else:
            require_non_negative(draft.revenue, "revenue")
        if draft.pc_date is None:
            errors["pc_date"] = ["This field is required."]
        if draft.payment_method not in PaymentMethod.values:
            errors["payment_method"] = [f"Must be one of {PaymentMethod.values}."]
        if not draft.payments:
            errors["payments"] = ["At least one initial payment is required."]

        for payment in draft.payments:
            if payment.transaction_method not in TransactionMethod.values:
                errors.setdefault("payments", []).append(
                    f"Unknown transaction method {payment.transaction_method!r}."
                )
            elif (
                payment.transaction_method == TransactionMethod.CUSTOMER_CREDIT_NOTE
                and not payment.credit_selections
            ):
                errors.setdefault("payments", []).append(
                    "Credit note payments must select the credit notes to use."
                )

        if draft.payment_method == PaymentMethod.INTERNAL:
            if not draft.instalments:
                errors["instalments"] = [
                    "INTERNAL bookings require an instalment schedule."
                ]
        elif draft.instalments:
            errors["instalments"] = ["Only INTERNAL bookings have instalments."]

        if errors:
            raise ValidationError(
                "Booking draft is invalid",
                error_code="BOOKING_DRAFT_INVALID",
                details=errors,
            )

        # Amount checks raise their own ValidationError with field detail
        scheduled = money_sum(
            _positive_amounts(draft.payments, "payment amount")
            + _positive_amounts(draft.instalments, "instalment amount")
        )
        revenue = to_money(draft.revenue, "revenue")
        if exceeds(scheduled, revenue):
            raise ValidationError(
                f"Payments and instalments ({format_money(scheduled)}) exceed "
                f"revenue ({format_money(revenue)})",
                error_code="SCHEDULE_EXCEEDS_REVENUE",
                details={"scheduled": str(scheduled), "revenue": str(revenue)},
            )

    @staticmethod
    def _next_folder_no(original_booking: Booking | None) -> str:
        if original_booking is not None:
            count = Booking.objects.filter(original_booking=original_booking).count()
            return f"{original_booking.folder_no}.{count + 1}"

        highest = (
            Booking.objects.filter(original_booking__isnull=True)
            .annotate(folder_number=Cast("folder_no", IntegerField()))
            .aggregate(highest=Max("folder_number"))["highest"]
        )
        return str((highest or 0) + 1)

    # ==========================================================================
    # Derived figures
    # ==========================================================================

    @staticmethod
    def recompute_totals(booking: Booking) -> Booking:
        """
        Re-derive profit, received, balance and last payment date from facts.

            received = initial payments + instalment payments
            balance  = revenue - received + active amendment differences

        Saves the booking (its version increments).
        """
        totals = booking.payments.aggregate(
            initial=Sum("amount", filter=Q(kind=PaymentKind.INITIAL)),
            instalments=Sum("amount", filter=Q(kind=PaymentKind.INSTALMENT)),
        )
        adjustments = booking.amendments.filter(is_reversed=False).aggregate(
            total=Sum("difference")
        )["total"]
        last_due = booking.instalments.aggregate(last=Max("due_date"))["last"]

        received = (totals["initial"] or ZERO) + (totals["instalments"] or ZERO)
        booking.profit = booking.revenue - booking.prod_cost - booking.surcharge
        booking.received = received
        booking.balance = booking.revenue - received + (adjustments or ZERO)
        booking.last_payment_date = last_due
        booking.save()
        return booking

    # ==========================================================================
    # Instalment payments
    # ==========================================================================

    @classmethod
    def record_instalment_payment(
        cls,
        instalment: Instalment,
        transaction_method: str,
        payment_date: date | None = None,
        amount: Any = None,
        reference: str = "",
        credit_selections: list[CreditSelection] | None = None,
        *,
        expected_version: int,
    ) -> Payment:
        """
        Pay an instalment.

        Marks the instalment PAID, attaches the payment and recomputes the
        booking's received amount and balance. When an INTERNAL booking's
        balance reaches zero the FINAL_RECONCILIATION commission entry is
        recorded.

        Args:
            instalment: Instalment to pay
            transaction_method: TransactionMethod value
            payment_date: Defaults to today
            amount: Defaults to the instalment amount; must match it
            reference: Bank or processor reference
            credit_selections: Required for CUSTOMER_CREDIT_NOTE payments
            expected_version: Booking version the caller read

        Returns:
            The created Payment

        Raises:
            AlreadyPaidError: If the instalment is already PAID
            InvalidStateTransitionError: If the booking is not ACTIVE or its
                balance is already zero
            ExceedsPendingError: If the instalment is larger than the balance
            ValidationError: If the amount is not positive or does not
                match the instalment amount
            StaleRecordError: If the booking version is stale
        """
        if transaction_method not in TransactionMethod.values:
            raise ValidationError(
                f"Unknown transaction method {transaction_method!r}",
                error_code="TRANSACTION_METHOD_INVALID",
                details={"transaction_method": [f"Must be one of {TransactionMethod.values}."]},
            )

        with transaction.atomic():
            booking = check_version(Booking, instalment.booking_id, expected_version)
            instalment = lock_for_update(Instalment, instalment.pk)

            if instalment.is_paid:
                raise AlreadyPaidError(
                    f"Instalment due {instalment.due_date} is already paid",
                    details={
                        "instalment_id": str(instalment.pk),
                        "paid_at": instalment.paid_at.isoformat() if instalment.paid_at else None,
                    },
                )
            if booking.booking_status != BookingStatus.ACTIVE:
                raise InvalidStateTransitionError(
                    f"Cannot record payments on a {booking.booking_status.lower()} booking",
                    details={"booking_id": str(booking.pk), "current_state": booking.booking_status},
                )

            paid_amount = instalment.amount
            if amount is not None:
                requested = require_positive(amount)
                if not within_tolerance(requested, instalment.amount):
                    raise ValidationError(
                        f"Payment of {format_money(requested)} does not match the "
                        f"instalment amount {format_money(instalment.amount)}",
                        error_code="INSTALMENT_AMOUNT_MISMATCH",
                        details={
                            "instalment_amount": str(instalment.amount),
                            "requested_amount": str(requested),
                        },
                    )

            if is_zero(booking.balance):
                raise InvalidStateTransitionError(
                    f"Booking {booking.folder_no} is already settled",
                    details={"booking_id": str(booking.pk), "balance": str(booking.balance)},
                )
            if exceeds(paid_amount, booking.balance):
                raise ExceedsPendingError(
                    f"Instalment of {format_money(paid_amount)} exceeds the booking "
                    f"balance of {format_money(booking.balance)}",
                    details={
                        "pending_amount": str(booking.balance),
                        "requested_amount": str(paid_amount),
                    },
                )

            payment = Payment.objects.create(
                booking=booking,
                kind=PaymentKind.INSTALMENT,
                amount=paid_amount,
                transaction_method=transaction_method,
                payment_date=payment_date or timezone.localdate(),
                instalment=instalment,
                reference=reference,
            )
            if payment.is_credit_funded:
                CreditNoteService.allocate(payment, credit_selections or [])

            instalment.mark_paid()
            instalment.save()

            cls.recompute_totals(booking)
            if booking.is_internal and is_zero(booking.balance):
                CommissionService.reconcile_if_settled(booking)

        logger.info(
            f"Instalment paid on booking {booking.folder_no}: {paid_amount}",
            extra={
                "booking_id": str(booking.pk),
                "instalment_id": str(instalment.pk),
                "balance": str(booking.balance),
            },
        )
        return payment

    # ==========================================================================
    # Void / accounting metadata
    # ==========================================================================

    @classmethod
    def void_booking(
        cls,
        booking: Booking,
        reason: str,
        actor=None,
        *,
        expected_version: int,
    ) -> Booking:
        """
        Void an ACTIVE booking.

        Raises:
            ValidationError: If reason is blank
            InvalidStateTransitionError: If the booking is cancelled or void
        """
        cls.require_fields(reason=reason)
        with transaction.atomic():
            booking = check_version(Booking, booking.pk, expected_version)
            if not can_proceed(booking.void):
                raise InvalidStateTransitionError(
                    f"Cannot void a {booking.booking_status.lower()} booking",
                    details={"booking_id": str(booking.pk), "current_state": booking.booking_status},
                )
            booking.void(reason.strip(), actor)
            booking.save()

        logger.info(
            f"Voided booking {booking.folder_no}",
            extra={"booking_id": str(booking.pk), "reason": reason},
        )
        return booking

    @classmethod
    def unvoid_booking(
        cls,
        booking: Booking,
        actor=None,
        *,
        expected_version: int,
    ) -> Booking:
        """
        Restore a voided booking to its previous status.

        Raises:
            InvalidStateTransitionError: If the booking is not void
        """
        with transaction.atomic():
            booking = check_version(Booking, booking.pk, expected_version)
            if not can_proceed(booking.unvoid):
                raise InvalidStateTransitionError(
                    "Only void bookings can be unvoided",
                    details={"booking_id": str(booking.pk), "current_state": booking.booking_status},
                )
            booking.unvoid()
            booking.save()

        logger.info(
            f"Unvoided booking {booking.folder_no}",
            extra={"booking_id": str(booking.pk), "actor_id": str(actor.pk) if actor else None},
        )
        return booking

    @staticmethod
    def update_accounting_month(
        booking: Booking, month: date, *, expected_version: int
    ) -> Booking:
        """Move a booking to another accounting month (metadata only)."""
        if month is None:
            raise ValidationError(
                "accounting_month is required",
                error_code="REQUIRED_FIELDS_MISSING",
                details={"accounting_month": ["This field is required."]},
            )
        with transaction.atomic():
            booking = check_version(Booking, booking.pk, expected_version)
            booking.accounting_month = first_of_month(month)
            booking.save()
        return booking

    # ==========================================================================
    # Queries
    # ==========================================================================

    @staticmethod
    def booking_chain(booking: Booking):
        """The root booking plus all of its date changes, oldest first."""
        root_id = booking.original_booking_id or booking.pk
        return Booking.objects.filter(
            Q(pk=root_id) | Q(original_booking_id=root_id)
        ).order_by("created_at", "folder_no")

    @staticmethod
    def overdue_bookings(today: date | None = None):
        """ACTIVE bookings with an outstanding balance whose travel date has passed."""
        today = today or timezone.localdate()
        return Booking.objects.filter(
            balance__gt=0,
            travel_date__lt=today,
            booking_status=BookingStatus.ACTIVE,
        ).order_by("travel_date")

    @staticmethod
    def overdue_instalments(today: date | None = None):
        """Unpaid instalments on ACTIVE bookings whose due date has passed."""
        today = today or timezone.localdate()
        return Instalment.objects.filter(
            status=InstalmentStatus.PENDING,
            due_date__lt=today,
            booking__booking_status=BookingStatus.ACTIVE,
        ).select_related("booking").order_by("due_date")
