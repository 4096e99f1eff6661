"""
Tests for PaymentLedgerService.

Covers the pure figure computations, booking creation (including date
changes and credit funded payments), instalment payments, void/unvoid and
the overdue queries.
"""

from datetime import date
from decimal import Decimal

import pytest
from freezegun import freeze_time

from bookings.exceptions import (
    AlreadyPaidError,
    ExceedsPendingError,
    InvalidStateTransitionError,
    StaleRecordError,
)
from bookings.models import Booking, CommissionEntry, Payment
from bookings.services import AmendmentService, CancellationService, PaymentLedgerService
from bookings.state_machines import (
    BookingStatus,
    CommissionType,
    InstalmentStatus,
    PaymentKind,
    TransactionMethod,
)
from bookings.tests.factories import full_draft, internal_draft, payment, version_of
from bookings.types import CreditSelection, InstalmentDraft
from core.exceptions import ValidationError


# =============================================================================
# Pure computations
# =============================================================================


class TestComputeFull:
    """Tests for compute_full (no database)."""

    def test_figures(self):
        """Should derive profit, received and balance."""
        figures = PaymentLedgerService.compute_full(
            revenue=Decimal("1000.00"),
            prod_cost=Decimal("700.00"),
            surcharge=Decimal("20.00"),
            payments=[Decimal("250.00"), Decimal("100.00")],
        )

        assert figures.profit == Decimal("280.00")
        assert figures.received == Decimal("350.00")
        assert figures.balance == Decimal("650.00")
        assert figures.last_payment_date is None

    def test_accepts_payment_objects(self):
        """Should read .amount from payment drafts."""
        figures = PaymentLedgerService.compute_full(
            "500", "0", None, [payment("500.00")]
        )

        assert figures.balance == Decimal("0.00")

    def test_rejects_non_positive_payment(self):
        """Should raise AMOUNT_NOT_POSITIVE for a zero payment."""
        with pytest.raises(ValidationError) as exc_info:
            PaymentLedgerService.compute_full("500", "0", "0", [Decimal("0")])

        assert exc_info.value.error_code == "AMOUNT_NOT_POSITIVE"

    def test_requires_revenue(self):
        with pytest.raises(ValidationError) as exc_info:
            PaymentLedgerService.compute_full(None, "0", "0", [])

        assert exc_info.value.error_code == "AMOUNT_REQUIRED"


class TestComputeInternal:
    """Tests for compute_internal (no database)."""

    def test_counts_paid_instalments_only(self):
        """Should add PAID instalments to received and ignore pending ones."""
        figures = PaymentLedgerService.compute_internal(
            selling_price=Decimal("1200.00"),
            prod_cost=Decimal("600.00"),
            surcharge=Decimal("0.00"),
            payments=[Decimal("300.00")],
            instalments=[
                {"due_date": date(2026, 4, 1), "amount": Decimal("450.00"), "status": InstalmentStatus.PAID},
                {"due_date": date(2026, 5, 1), "amount": Decimal("450.00"), "status": InstalmentStatus.PENDING},
            ],
        )

        assert figures.profit == Decimal("600.00")
        assert figures.received == Decimal("750.00")
        assert figures.balance == Decimal("450.00")
        assert figures.last_payment_date == date(2026, 5, 1)

    def test_rejects_non_positive_instalment(self):
        with pytest.raises(ValidationError):
            PaymentLedgerService.compute_internal(
                "1200", "600", "0", [Decimal("300")],
                [InstalmentDraft(due_date=date(2026, 4, 1), amount=Decimal("-1"))],
            )

    def test_project_internal_draft(self):
        """Should preview an INTERNAL draft from its cost items and schedule."""
        figures = PaymentLedgerService.project(internal_draft())

        assert figures.profit == Decimal("600.00")
        assert figures.received == Decimal("300.00")
        assert figures.balance == Decimal("900.00")
        assert figures.last_payment_date == date(2026, 5, 1)


# =============================================================================
# Booking creation
# =============================================================================


@pytest.mark.django_db
class TestCreateBooking:
    """Tests for PaymentLedgerService.create_booking."""

    def test_stores_figures(self, full_booking):
        """Should store the derived figures and the cost breakdown."""
        full_booking.refresh_from_db()

        assert full_booking.revenue == Decimal("1000.00")
        assert full_booking.prod_cost == Decimal("700.00")
        assert full_booking.profit == Decimal("300.00")
        assert full_booking.received == Decimal("250.00")
        assert full_booking.balance == Decimal("750.00")
        assert full_booking.booking_status == BookingStatus.ACTIVE
        assert full_booking.cost_items.count() == 1
        assert full_booking.payments.get().kind == PaymentKind.INITIAL

    def test_folder_numbers_are_sequential(self, agent, full_booking):
        """Should give root bookings increasing integer folder numbers."""
        second = PaymentLedgerService.create_booking(agent, full_draft())

        assert full_booking.folder_no == "1"
        assert second.folder_no == "2"

    def test_accounting_month_defaults_to_pc_date_month(self, full_booking):
        assert full_booking.accounting_month == date(2026, 3, 1)

    def test_accounting_month_override(self, agent):
        booking = PaymentLedgerService.create_booking(
            agent, full_draft(accounting_month=date(2026, 7, 19))
        )

        assert booking.accounting_month == date(2026, 7, 1)

    @freeze_time("2026-03-15")
    def test_records_initial_commission(self, agent):
        """Should record INITIAL commission of 100% profit in the current month."""
        booking = PaymentLedgerService.create_booking(agent, full_draft())

        entry = CommissionEntry.objects.get(booking=booking)
        assert entry.entry_type == CommissionType.INITIAL
        assert entry.agent == agent
        assert entry.amount == Decimal("300.00")
        assert entry.percentage == Decimal("1.0")
        assert entry.commission_month == date(2026, 3, 1)

    def test_internal_booking(self, internal_booking):
        """Should create the schedule and pay 50% INITIAL commission."""
        internal_booking.refresh_from_db()

        assert internal_booking.balance == Decimal("900.00")
        assert internal_booking.last_payment_date == date(2026, 5, 1)
        assert internal_booking.instalments.filter(status=InstalmentStatus.PENDING).count() == 2
        assert internal_booking.commission_entries.get().amount == Decimal("300.00")

    def test_requires_a_payment(self, agent):
        """Should reject a draft without initial payments."""
        with pytest.raises(ValidationError) as exc_info:
            PaymentLedgerService.create_booking(agent, full_draft(paid=()))

        assert exc_info.value.error_code == "BOOKING_DRAFT_INVALID"
        assert "payments" in exc_info.value.details
        assert not Booking.objects.exists()

    def test_internal_requires_instalments(self, agent):
        with pytest.raises(ValidationError) as exc_info:
            PaymentLedgerService.create_booking(agent, internal_draft(instalments=()))

        assert "instalments" in exc_info.value.details

    def test_full_rejects_instalments(self, agent):
        draft = full_draft()
        draft.instalments = [InstalmentDraft(due_date=date(2026, 4, 1), amount=Decimal("100"))]

        with pytest.raises(ValidationError) as exc_info:
            PaymentLedgerService.create_booking(agent, draft)

        assert exc_info.value.details["instalments"] == ["Only INTERNAL bookings have instalments."]

    def test_schedule_cannot_exceed_revenue(self, agent):
        """Should reject payments and instalments that add up to more than revenue."""
        draft = internal_draft(instalments=(("2026-04-01", "450.00"), ("2026-05-01", "460.00")))

        with pytest.raises(ValidationError) as exc_info:
            PaymentLedgerService.create_booking(agent, draft)

        assert exc_info.value.error_code == "SCHEDULE_EXCEEDS_REVENUE"
        assert exc_info.value.details["scheduled"] == "1210.00"

    def test_credit_payment_requires_selection(self, agent):
        draft = full_draft(payments=[payment("100.00", TransactionMethod.CUSTOMER_CREDIT_NOTE)])

        with pytest.raises(ValidationError) as exc_info:
            PaymentLedgerService.create_booking(agent, draft)

        assert exc_info.value.error_code == "BOOKING_DRAFT_INVALID"

    def test_credit_funded_payment(self, agent, credit_note):
        """Should allocate the selected credit to the initial payment."""
        draft = full_draft(
            payments=[
                payment(
                    "400.00",
                    TransactionMethod.CUSTOMER_CREDIT_NOTE,
                    credit_selections=[
                        CreditSelection(credit_note.pk, Decimal("400.00"), version_of(credit_note))
                    ],
                )
            ]
        )

        booking = PaymentLedgerService.create_booking(agent, draft)

        credit_note.refresh_from_db()
        assert credit_note.remaining_amount == Decimal("250.00")
        assert booking.received == Decimal("400.00")
        usage = booking.payments.get().credit_note_usages.get()
        assert usage.credit_note == credit_note
        assert usage.amount_used == Decimal("400.00")


@pytest.mark.django_db
class TestDateChange:
    """Tests for PaymentLedgerService.create_date_change."""

    def test_folder_number_suffix(self, agent, full_booking):
        """Should number date changes '{root}.{n}'."""
        first = PaymentLedgerService.create_date_change(full_booking, agent, full_draft())
        second = PaymentLedgerService.create_date_change(first, agent, full_draft())

        assert first.folder_no == "1.1"
        assert second.folder_no == "1.2"
        assert second.original_booking == full_booking
        assert second.base_folder_no == "1"
        assert second.is_date_change

    def test_booking_chain(self, agent, full_booking):
        change = PaymentLedgerService.create_date_change(full_booking, agent, full_draft())

        chain = list(PaymentLedgerService.booking_chain(change))

        assert chain == [full_booking, change]

    def test_cancelled_chain_rejected(self, agent, full_booking, shortfall_cancellation):
        """Should refuse to date-change a cancelled booking."""
        full_booking.refresh_from_db()

        with pytest.raises(InvalidStateTransitionError):
            PaymentLedgerService.create_date_change(full_booking, agent, full_draft())


# =============================================================================
# Instalment payments
# =============================================================================


@pytest.mark.django_db
class TestRecordInstalmentPayment:
    """Tests for PaymentLedgerService.record_instalment_payment."""

    def test_marks_paid_and_updates_balance(self, internal_booking):
        """Should pay the instalment and move the amount to received."""
        instalment = internal_booking.instalments.order_by("due_date").first()

        payment_record = PaymentLedgerService.record_instalment_payment(
            instalment,
            transaction_method=TransactionMethod.CARD,
            payment_date=date(2026, 4, 1),
            expected_version=internal_booking.version,
        )

        instalment.refresh_from_db()
        internal_booking.refresh_from_db()
        assert instalment.status == InstalmentStatus.PAID
        assert instalment.paid_at is not None
        assert payment_record.kind == PaymentKind.INSTALMENT
        assert payment_record.amount == Decimal("450.00")
        assert payment_record.instalment == instalment
        assert internal_booking.received == Decimal("750.00")
        assert internal_booking.balance == Decimal("450.00")

    def test_cannot_pay_twice(self, internal_booking):
        """Should raise AlreadyPaidError and leave one payment."""
        instalment = internal_booking.instalments.first()
        PaymentLedgerService.record_instalment_payment(
            instalment, TransactionMethod.CARD, expected_version=internal_booking.version
        )

        with pytest.raises(AlreadyPaidError):
            PaymentLedgerService.record_instalment_payment(
                instalment, TransactionMethod.CARD, expected_version=version_of(internal_booking)
            )

        assert Payment.objects.filter(instalment=instalment).count() == 1

    def test_amount_must_match(self, internal_booking):
        """Should reject a payment that differs from the instalment amount."""
        instalment = internal_booking.instalments.first()

        with pytest.raises(ValidationError) as exc_info:
            PaymentLedgerService.record_instalment_payment(
                instalment,
                TransactionMethod.CARD,
                amount=Decimal("400.00"),
                expected_version=internal_booking.version,
            )

        assert exc_info.value.error_code == "INSTALMENT_AMOUNT_MISMATCH"
        instalment.refresh_from_db()
        assert instalment.status == InstalmentStatus.PENDING

    def test_unknown_method_rejected(self, internal_booking):
        with pytest.raises(ValidationError) as exc_info:
            PaymentLedgerService.record_instalment_payment(
                internal_booking.instalments.first(), "CHEQUE", expected_version=1
            )

        assert exc_info.value.error_code == "TRANSACTION_METHOD_INVALID"

    def test_void_booking_rejected(self, internal_booking):
        PaymentLedgerService.void_booking(
            internal_booking, reason="Duplicate entry", expected_version=internal_booking.version
        )

        with pytest.raises(InvalidStateTransitionError):
            PaymentLedgerService.record_instalment_payment(
                internal_booking.instalments.first(),
                TransactionMethod.CARD,
                expected_version=version_of(internal_booking),
            )

    def test_written_off_booking_rejected(self, internal_booking):
        """Should not collect an instalment once a write-off settled the balance."""
        AmendmentService.write_off(
            internal_booking, reason="Customer hardship", expected_version=internal_booking.version
        )

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            PaymentLedgerService.record_instalment_payment(
                internal_booking.instalments.order_by("due_date").first(),
                TransactionMethod.CARD,
                expected_version=version_of(internal_booking),
            )

        assert exc_info.value.details["balance"] == "0.00"
        internal_booking.refresh_from_db()
        assert internal_booking.balance == Decimal("0.00")
        assert not internal_booking.payments.filter(kind=PaymentKind.INSTALMENT).exists()

    def test_instalment_above_balance_rejected(self, internal_booking):
        """Should refuse an instalment that would leave the customer in credit."""
        AmendmentService.adjust(
            internal_booking,
            Decimal("-600.00"),
            reason="Package downgrade",
            expected_version=internal_booking.version,
        )

        with pytest.raises(ExceedsPendingError) as exc_info:
            PaymentLedgerService.record_instalment_payment(
                internal_booking.instalments.order_by("due_date").first(),
                TransactionMethod.CARD,
                expected_version=version_of(internal_booking),
            )

        assert exc_info.value.details == {
            "pending_amount": "300.00",
            "requested_amount": "450.00",
        }
        internal_booking.refresh_from_db()
        assert internal_booking.balance == Decimal("300.00")

    def test_stale_booking_version(self, internal_booking):
        instalment = internal_booking.instalments.order_by("due_date").first()

        with pytest.raises(StaleRecordError):
            PaymentLedgerService.record_instalment_payment(
                instalment, TransactionMethod.CARD, expected_version=internal_booking.version - 1
            )

        instalment.refresh_from_db()
        assert instalment.status == InstalmentStatus.PENDING

    @freeze_time("2026-05-02")
    def test_final_instalment_reconciles_commission(self, internal_booking):
        """Should record FINAL_RECONCILIATION when the balance reaches zero."""
        for instalment in internal_booking.instalments.order_by("due_date"):
            PaymentLedgerService.record_instalment_payment(
                instalment, TransactionMethod.WISE, expected_version=version_of(internal_booking)
            )

        internal_booking.refresh_from_db()
        final = CommissionEntry.objects.get(
            booking=internal_booking, entry_type=CommissionType.FINAL_RECONCILIATION
        )
        assert internal_booking.balance == Decimal("0.00")
        assert final.amount == Decimal("300.00")
        assert final.initial_paid == Decimal("300.00")
        assert final.commission_month == date(2026, 5, 1)


# =============================================================================
# Void / accounting month
# =============================================================================


@pytest.mark.django_db
class TestVoidBooking:
    """Tests for void_booking and unvoid_booking."""

    def test_void_and_unvoid(self, full_booking, staff_user):
        """Should void with reason and restore the previous status."""
        booking = PaymentLedgerService.void_booking(
            full_booking, reason="Entered twice", actor=staff_user, expected_version=full_booking.version
        )

        assert booking.booking_status == BookingStatus.VOID
        assert booking.status_before_void == BookingStatus.ACTIVE
        assert booking.void_reason == "Entered twice"
        assert booking.voided_by == staff_user

        booking = PaymentLedgerService.unvoid_booking(booking, expected_version=booking.version)

        assert booking.booking_status == BookingStatus.ACTIVE
        assert booking.void_reason == ""
        assert booking.voided_at is None

    def test_void_requires_reason(self, full_booking):
        with pytest.raises(ValidationError) as exc_info:
            PaymentLedgerService.void_booking(
                full_booking, reason="  ", expected_version=full_booking.version
            )

        assert exc_info.value.error_code == "REQUIRED_FIELDS_MISSING"
        assert "reason" in exc_info.value.details

    def test_unvoid_active_booking_rejected(self, full_booking):
        with pytest.raises(InvalidStateTransitionError):
            PaymentLedgerService.unvoid_booking(full_booking, expected_version=full_booking.version)

    def test_cancelled_booking_cannot_be_voided(self, full_booking, shortfall_cancellation):
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            PaymentLedgerService.void_booking(
                full_booking, reason="Too late", expected_version=version_of(full_booking)
            )

        assert exc_info.value.details["current_state"] == BookingStatus.CANCELLED

    def test_update_accounting_month(self, full_booking):
        """Should normalize the new month and leave the figures alone."""
        booking = PaymentLedgerService.update_accounting_month(
            full_booking, date(2026, 8, 23), expected_version=full_booking.version
        )

        assert booking.accounting_month == date(2026, 8, 1)
        assert booking.balance == Decimal("750.00")


# =============================================================================
# Queries
# =============================================================================


@pytest.mark.django_db
class TestOverdue:
    """Tests for overdue_bookings and overdue_instalments."""

    def test_overdue_bookings(self, full_booking, paid_booking):
        """Should list ACTIVE bookings with a balance whose travel date passed."""
        assert list(PaymentLedgerService.overdue_bookings(today=date(2026, 6, 1))) == []
        assert list(PaymentLedgerService.overdue_bookings(today=date(2026, 6, 2))) == [full_booking]

    def test_void_booking_not_overdue(self, full_booking):
        PaymentLedgerService.void_booking(
            full_booking, reason="Test", expected_version=full_booking.version
        )

        assert not PaymentLedgerService.overdue_bookings(today=date(2026, 7, 1)).exists()

    @freeze_time("2026-04-15")
    def test_overdue_instalments(self, internal_booking):
        """Should list unpaid instalments due before today."""
        overdue = list(PaymentLedgerService.overdue_instalments())

        assert [i.due_date for i in overdue] == [date(2026, 4, 1)]
        assert overdue[0].display_status() == InstalmentStatus.OVERDUE

    def test_paid_instalment_not_overdue(self, internal_booking):
        instalment = internal_booking.instalments.order_by("due_date").first()
        PaymentLedgerService.record_instalment_payment(
            instalment, TransactionMethod.CARD, expected_version=internal_booking.version
        )

        overdue = PaymentLedgerService.overdue_instalments(today=date(2026, 4, 15))

        assert not overdue.exists()


@pytest.mark.django_db
class TestCancelledChainFigures:
    def test_cancelled_booking_keeps_its_payments(self, full_booking):
        """Should leave the cancelled booking's payments untouched."""
        CancellationService.cancel(
            full_booking,
            Decimal("100.00"),
            Decimal("0.00"),
            refund_policy="CASH",
            expected_version=full_booking.version,
        )

        full_booking.refresh_from_db()
        assert full_booking.booking_status == BookingStatus.CANCELLED
        assert full_booking.received == Decimal("250.00")
