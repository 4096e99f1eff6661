"""
End-to-end tests for booking lifecycles.

Each test walks one booking through several services the way the back
office would, checking the ledger after every step:

1. INTERNAL booking paid off in instalments, then reconciled
2. Overpaid cancellation -> credit note -> credit spent on a new booking
   -> remaining credit converted to a cash refund
3. Cancellation shortfall settled in parts by the customer while the
   supplier fee is paid
"""

from datetime import date
from decimal import Decimal

import pytest
from freezegun import freeze_time

from bookings.exceptions import ExceedsPendingError
from bookings.models import CommissionEntry, Payment
from bookings.services import (
    AmendmentService,
    CancellationService,
    CommissionService,
    CreditNoteService,
    PaymentLedgerService,
    SettlementService,
)
from bookings.state_machines import (
    BookingStatus,
    CancellationOutcome,
    CommissionType,
    CreditNoteStatus,
    PayableStatus,
    PaymentKind,
    RefundPolicy,
    SettlementMethod,
    TransactionMethod,
)
from bookings.tests.factories import full_draft, internal_draft, payment, version_of
from bookings.types import CreditSelection


def settle(payable, amount, method):
    return SettlementService.settle(payable, amount, method, expected_version=version_of(payable))


@pytest.mark.django_db
class TestInstalmentLifecycle:
    """INTERNAL booking from creation to final commission."""

    def test_instalments_adjustment_and_reconciliation(self, agent):
        with freeze_time("2026-03-10"):
            booking = PaymentLedgerService.create_booking(
                agent,
                internal_draft(
                    revenue="1200.00",
                    paid=("300.00",),
                    instalments=(
                        ("2026-04-01", "300.00"),
                        ("2026-05-01", "300.00"),
                        ("2026-06-01", "300.00"),
                    ),
                ),
            )
        instalments = list(booking.instalments.order_by("due_date"))

        with freeze_time("2026-04-01"):
            PaymentLedgerService.record_instalment_payment(
                instalments[0], TransactionMethod.CARD, expected_version=version_of(booking)
            )
        with freeze_time("2026-05-03"):
            PaymentLedgerService.record_instalment_payment(
                instalments[1], TransactionMethod.HUMM, expected_version=version_of(booking)
            )

        booking.refresh_from_db()
        assert booking.received == Decimal("900.00")
        assert booking.balance == Decimal("300.00")

        # A late fee raises the balance, a goodwill discount lowers it again
        fee = AmendmentService.adjust(
            booking, Decimal("25.00"), reason="Late payment fee", expected_version=booking.version
        )
        goodwill = AmendmentService.adjust(
            booking, Decimal("-25.00"), reason="Goodwill", expected_version=version_of(booking)
        )
        booking.refresh_from_db()
        assert booking.balance == Decimal("300.00")
        assert not CommissionEntry.objects.filter(
            booking=booking, entry_type=CommissionType.FINAL_RECONCILIATION
        ).exists()

        with freeze_time("2026-06-01"):
            PaymentLedgerService.record_instalment_payment(
                instalments[2], TransactionMethod.CARD, expected_version=version_of(booking)
            )

        booking.refresh_from_db()
        assert booking.balance == Decimal("0.00")
        entries = {e.entry_type: e for e in booking.commission_entries.all()}
        assert entries[CommissionType.INITIAL].amount == Decimal("300.00")
        assert entries[CommissionType.INITIAL].commission_month == date(2026, 3, 1)
        assert entries[CommissionType.FINAL_RECONCILIATION].amount == Decimal("300.00")
        assert entries[CommissionType.FINAL_RECONCILIATION].commission_month == date(2026, 6, 1)

        # Reversing the fee alone leaves the customer in credit, so the
        # reconciliation is withdrawn until the balance is back to zero
        AmendmentService.reverse(fee, expected_version=booking.version)
        booking.refresh_from_db()
        assert booking.balance == Decimal("-25.00")
        assert booking.commission_entries.count() == 1

        with freeze_time("2026-06-10"):
            AmendmentService.reverse(goodwill, expected_version=booking.version)
        booking.refresh_from_db()
        assert booking.balance == Decimal("0.00")
        final = booking.commission_entries.get(entry_type=CommissionType.FINAL_RECONCILIATION)
        assert final.amount == Decimal("300.00")

        summary = CommissionService.agent_commissions(agent, date(2026, 6, 1))
        assert summary.total == Decimal("300.00")


@pytest.mark.django_db
class TestCreditNoteLifecycle:
    """Credit from one cancelled booking funds another, then is cashed out."""

    def test_credit_used_then_converted(self, agent):
        first = PaymentLedgerService.create_booking(agent, full_draft(paid=("1000.00",)))

        cancellation = CancellationService.cancel(
            first,
            supplier_cancellation_fee=Decimal("200.00"),
            admin_fee=Decimal("50.00"),
            refund_policy=RefundPolicy.CREDIT_NOTE,
            expected_version=first.version,
        )
        note = cancellation.credit_note
        assert note.initial_amount == Decimal("750.00")
        assert list(CreditNoteService.list_available(first.pk)) == [note]

        second = PaymentLedgerService.create_booking(
            agent,
            full_draft(
                revenue="900.00",
                costs=("600.00",),
                payments=[
                    payment(
                        "500.00",
                        TransactionMethod.CUSTOMER_CREDIT_NOTE,
                        credit_selections=[
                            CreditSelection(
                                credit_note_id=note.pk,
                                amount_to_use=Decimal("500.00"),
                                expected_version=note.version,
                            )
                        ],
                    ),
                    payment("100.00", TransactionMethod.CARD),
                ],
            ),
        )
        assert second.received == Decimal("600.00")
        assert second.balance == Decimal("300.00")

        note.refresh_from_db()
        assert note.remaining_amount == Decimal("250.00")
        assert note.status == CreditNoteStatus.PARTIALLY_USED

        refund = CancellationService.convert_credit_to_refund(
            cancellation, TransactionMethod.BANK_TRANSFER, expected_version=note.version
        )

        note.refresh_from_db()
        cancellation.refresh_from_db()
        assert refund.amount == Decimal("250.00")
        assert note.remaining_amount == Decimal("0.00")
        assert note.forfeited_amount == Decimal("250.00")
        # Credit spent on the second booking stays spent
        assert note.usages.get().amount_used == Decimal("500.00")
        assert cancellation.outcome == CancellationOutcome.CASH_REFUND
        assert not CreditNoteService.available().exists()

        # 500 credit + 250 cash = the 750 owed, paid out exactly once
        refunded_cash = sum(
            p.amount for p in Payment.objects.filter(kind=PaymentKind.REFUND)
        )
        assert note.initial_amount == Decimal("500.00") + refunded_cash


@pytest.mark.django_db
class TestShortfallLifecycle:
    """Customer shortfall and supplier fee settled after a cancellation."""

    def test_payables_settled_in_parts(self, agent):
        booking = PaymentLedgerService.create_booking(
            agent, full_draft(revenue="1000.00", costs=("400.00", "300.00"), paid=("100.00",))
        )
        hotel = booking.cost_items.order_by("amount").first()
        SettlementService.settle_cost_item(
            hotel, Decimal("100.00"), SettlementMethod.BANK_TRANSFER, expected_version=hotel.version
        )

        cancellation = CancellationService.cancel(
            booking,
            supplier_cancellation_fee=Decimal("250.00"),
            admin_fee=Decimal("25.00"),
            expected_version=version_of(booking),
        )

        booking.refresh_from_db()
        assert booking.booking_status == BookingStatus.CANCELLED
        customer = cancellation.customer_payable
        supplier = cancellation.supplier_payable
        assert customer.total_amount == Decimal("175.00")
        assert supplier.total_amount == Decimal("150.00")

        settle(customer, Decimal("100.00"), SettlementMethod.STRIPE)
        with pytest.raises(ExceedsPendingError):
            settle(customer, Decimal("80.00"), SettlementMethod.STRIPE)
        settle(customer, Decimal("75.00"), SettlementMethod.STRIPE)
        settle(supplier, Decimal("150.00"), SettlementMethod.LOYDS)

        customer.refresh_from_db()
        supplier.refresh_from_db()
        assert customer.status == PayableStatus.PAID
        assert customer.paid_amount == Decimal("175.00")
        assert customer.settlements.count() == 2
        assert supplier.status == PayableStatus.PAID
