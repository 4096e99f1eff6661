"""
Tests for the booking ledger API.

Tests request validation, response shapes and the mapping of service
errors to HTTP status codes for each endpoint group.
"""

from datetime import date
from decimal import Decimal

import pytest
from freezegun import freeze_time

from bookings.services import AmendmentService, PaymentLedgerService
from bookings.state_machines import BookingStatus, CancellationOutcome
from bookings.tests.factories import full_draft, internal_draft, version_of

API = "/api/v1/ledger"


def booking_payload(**overrides):
    payload = {
        "revenue": "1000.00",
        "pc_date": "2026-03-10",
        "travel_date": "2026-06-01",
        "lead_passenger": "Jane Traveller",
        "cost_items": [{"category": "PACKAGE", "amount": "700.00", "supplier": "Sunways Ltd"}],
        "payments": [{"amount": "250.00", "transaction_method": "BANK_TRANSFER"}],
    }
    payload.update(overrides)
    return payload


# =============================================================================
# Bookings
# =============================================================================


@pytest.mark.django_db
class TestBookingEndpoints:
    """Tests for /bookings/ create, preview, list and retrieve."""

    def test_requires_authentication(self, api_client):
        response = api_client.get(f"{API}/bookings/")

        assert response.status_code == 401

    def test_create_booking(self, agent_client, agent):
        """Should create the booking for the authenticated agent."""
        response = agent_client.post(f"{API}/bookings/", booking_payload(), format="json")

        assert response.status_code == 201
        data = response.data
        assert data["folder_no"] == "1"
        assert data["agent"] == agent.pk
        assert data["profit"] == "300.00"
        assert data["received"] == "250.00"
        assert data["balance"] == "750.00"
        assert len(data["payments"]) == 1
        assert data["commission_entries"][0]["amount"] == "300.00"

    def test_create_internal_booking(self, agent_client):
        payload = booking_payload(
            revenue="1200.00",
            payment_method="INTERNAL",
            cost_items=[{"category": "FLIGHT", "amount": "600.00"}],
            payments=[{"amount": "300.00", "transaction_method": "CARD"}],
            instalments=[
                {"due_date": "2026-04-01", "amount": "450.00"},
                {"due_date": "2026-05-01", "amount": "450.00"},
            ],
        )

        response = agent_client.post(f"{API}/bookings/", payload, format="json")

        assert response.status_code == 201
        assert response.data["balance"] == "900.00"
        assert response.data["last_payment_date"] == "2026-05-01"
        assert [i["status"] for i in response.data["instalments"]] == ["PENDING", "PENDING"]

    def test_invalid_payload(self, agent_client):
        """Should return 400 with field errors for a malformed draft."""
        response = agent_client.post(
            f"{API}/bookings/", booking_payload(payments=[]), format="json"
        )

        assert response.status_code == 400
        assert response.data["error_code"] == "BOOKING_DRAFT_INVALID"

    def test_schedule_over_revenue(self, agent_client):
        response = agent_client.post(
            f"{API}/bookings/",
            booking_payload(payments=[{"amount": "1200.00", "transaction_method": "CASH"}]),
            format="json",
        )

        assert response.status_code == 400
        assert response.data["error_code"] == "SCHEDULE_EXCEEDS_REVENUE"

    def test_preview_saves_nothing(self, agent_client):
        response = agent_client.post(f"{API}/bookings/preview/", booking_payload(), format="json")

        assert response.status_code == 200
        assert response.data["profit"] == "300.00"
        assert response.data["balance"] == "750.00"
        assert agent_client.get(f"{API}/bookings/").data["count"] == 0

    def test_list_filters_by_status(self, agent_client, full_booking, paid_booking):
        agent_client.post(
            f"{API}/bookings/{paid_booking.pk}/void/",
            {"reason": "Duplicate", "expected_version": paid_booking.version},
            format="json",
        )

        response = agent_client.get(f"{API}/bookings/", {"status": "active"})

        assert response.status_code == 200
        assert [b["folder_no"] for b in response.data["results"]] == [full_booking.folder_no]

    def test_list_filters_by_accounting_month(self, agent_client, agent, full_booking):
        april = PaymentLedgerService.create_booking(agent, full_draft(pc_date=date(2026, 4, 20)))

        response = agent_client.get(f"{API}/bookings/", {"accounting_month": "2026-04-15"})

        assert response.status_code == 200
        assert [b["folder_no"] for b in response.data["results"]] == [april.folder_no]

    def test_list_filters_by_payment_method(self, agent_client, full_booking, internal_booking):
        response = agent_client.get(f"{API}/bookings/", {"payment_method": "INTERNAL"})

        assert response.data["count"] == 1
        assert response.data["results"][0]["folder_no"] == internal_booking.folder_no

    def test_retrieve(self, agent_client, full_booking):
        response = agent_client.get(f"{API}/bookings/{full_booking.pk}/")

        assert response.status_code == 200
        assert response.data["cost_items"][0]["pending_amount"] == "700.00"

    def test_date_change(self, agent_client, full_booking):
        response = agent_client.post(
            f"{API}/bookings/{full_booking.pk}/date-change/",
            booking_payload(travel_date="2026-07-01"),
            format="json",
        )

        assert response.status_code == 201
        assert response.data["folder_no"] == "1.1"
        assert response.data["original_booking"] == full_booking.pk


@pytest.mark.django_db
class TestBookingActions:
    """Tests for the per-booking ledger actions."""

    def test_pay_instalment(self, agent_client, internal_booking):
        instalment = internal_booking.instalments.order_by("due_date").first()
        url = f"{API}/bookings/{internal_booking.pk}/instalments/{instalment.pk}/pay/"

        response = agent_client.post(
            url,
            {"transaction_method": "CARD", "expected_version": internal_booking.version},
            format="json",
        )

        assert response.status_code == 201
        assert response.data["kind"] == "INSTALMENT"
        assert response.data["amount"] == "450.00"

        again = agent_client.post(
            url,
            {"transaction_method": "CARD", "expected_version": version_of(internal_booking)},
            format="json",
        )
        assert again.status_code == 409
        assert again.data["error_code"] == "ALREADY_PAID"

    def test_pay_instalment_of_other_booking(self, agent_client, internal_booking, full_booking):
        instalment = internal_booking.instalments.first()

        response = agent_client.post(
            f"{API}/bookings/{full_booking.pk}/instalments/{instalment.pk}/pay/",
            {"transaction_method": "CARD", "expected_version": full_booking.version},
            format="json",
        )

        assert response.status_code == 404

    def test_stale_version_is_409(self, agent_client, full_booking):
        response = agent_client.post(
            f"{API}/bookings/{full_booking.pk}/void/",
            {"reason": "Duplicate", "expected_version": 1},
            format="json",
        )

        assert response.status_code == 409
        assert response.data["error_code"] == "STALE_RECORD"
        assert response.data["details"]["expected_version"] == 1

    def test_version_required(self, agent_client, full_booking):
        """Should reject a mutation that does not say which version it read."""
        response = agent_client.patch(
            f"{API}/bookings/{full_booking.pk}/accounting-month/",
            {"accounting_month": "2026-09-18"},
            format="json",
        )

        assert response.status_code == 400
        assert "expected_version" in response.data
        full_booking.refresh_from_db()
        assert full_booking.accounting_month == date(2026, 3, 1)

    def test_void_and_unvoid(self, agent_client, full_booking):
        void = agent_client.post(
            f"{API}/bookings/{full_booking.pk}/void/",
            {"reason": "Duplicate", "expected_version": full_booking.version},
            format="json",
        )
        unvoid = agent_client.post(
            f"{API}/bookings/{full_booking.pk}/unvoid/",
            {"expected_version": void.data["version"]},
            format="json",
        )

        assert void.status_code == 200
        assert void.data["booking_status"] == BookingStatus.VOID
        assert unvoid.status_code == 200
        assert unvoid.data["booking_status"] == BookingStatus.ACTIVE

    def test_cancel(self, agent_client, paid_booking):
        response = agent_client.post(
            f"{API}/bookings/{paid_booking.pk}/cancel/",
            {
                "supplier_cancellation_fee": "300.00",
                "admin_fee": "50.00",
                "refund_policy": "CREDIT_NOTE",
                "expected_version": paid_booking.version,
            },
            format="json",
        )

        assert response.status_code == 201
        assert response.data["outcome"] == CancellationOutcome.CREDIT_NOTE
        assert response.data["credit_note"]["remaining_amount"] == "650.00"
        assert response.data["customer_payable"] is None

    def test_cancel_twice_is_409(self, agent_client, full_booking, shortfall_cancellation):
        response = agent_client.post(
            f"{API}/bookings/{full_booking.pk}/cancel/",
            {
                "supplier_cancellation_fee": "0.00",
                "admin_fee": "0.00",
                "expected_version": version_of(full_booking),
            },
            format="json",
        )

        assert response.status_code == 409
        assert response.data["error_code"] == "ALREADY_CANCELLED"

    def test_write_off_and_adjust(self, staff_client, full_booking, staff_user):
        write_off = staff_client.post(
            f"{API}/bookings/{full_booking.pk}/write-off/",
            {"reason": "Uncollectable", "expected_version": full_booking.version},
            format="json",
        )

        assert write_off.status_code == 201
        assert write_off.data["difference"] == "-750.00"
        assert write_off.data["created_by"] == staff_user.pk

        adjust = staff_client.post(
            f"{API}/bookings/{full_booking.pk}/adjust/",
            {"difference": "12.50", "reason": "Card fee", "expected_version": version_of(full_booking)},
            format="json",
        )
        assert adjust.status_code == 201
        full_booking.refresh_from_db()
        assert full_booking.balance == Decimal("12.50")

    def test_accounting_month(self, agent_client, full_booking):
        response = agent_client.patch(
            f"{API}/bookings/{full_booking.pk}/accounting-month/",
            {"accounting_month": "2026-09-18", "expected_version": full_booking.version},
            format="json",
        )

        assert response.status_code == 200
        assert response.data["accounting_month"] == "2026-09-01"

    def test_booking_credit_notes(self, agent_client, paid_booking, credit_note):
        response = agent_client.get(f"{API}/bookings/{paid_booking.pk}/credit-notes/")

        assert response.status_code == 200
        assert [n["reference"] for n in response.data] == ["CN-1.C"]

    @freeze_time("2026-06-10")
    def test_overdue(self, agent_client, full_booking, internal_booking):
        bookings = agent_client.get(f"{API}/bookings/overdue/")
        instalments = agent_client.get(f"{API}/bookings/overdue-instalments/")

        assert bookings.data["count"] == 2
        assert instalments.data["count"] == 2
        assert instalments.data["results"][0]["display_status"] == "OVERDUE"


# =============================================================================
# Credit notes, cancellations, payables
# =============================================================================


@pytest.mark.django_db
class TestCancellationEndpoints:
    def test_refund_paid(self, agent_client, cash_refund_cancellation):
        response = agent_client.post(
            f"{API}/cancellations/{cash_refund_cancellation.pk}/refund-paid/",
            {"transaction_method": "WISE", "reference": "W-1"},
            format="json",
        )

        assert response.status_code == 201
        assert response.data["kind"] == "REFUND"
        assert response.data["amount"] == "650.00"

    def test_refund_with_credit_note_method_rejected(self, agent_client, cash_refund_cancellation):
        response = agent_client.post(
            f"{API}/cancellations/{cash_refund_cancellation.pk}/refund-paid/",
            {"transaction_method": "CUSTOMER_CREDIT_NOTE"},
            format="json",
        )

        assert response.status_code == 400

    def test_convert_credit(self, agent_client, credit_note_cancellation, credit_note):
        response = agent_client.post(
            f"{API}/cancellations/{credit_note_cancellation.pk}/convert-credit/",
            {"transaction_method": "BANK_TRANSFER", "expected_version": version_of(credit_note)},
            format="json",
        )

        assert response.status_code == 201
        assert response.data["amount"] == "650.00"

    def test_available_credit_notes(self, agent_client, credit_note):
        response = agent_client.get(f"{API}/credit-notes/", {"available": "true"})

        assert response.status_code == 200
        assert response.data["results"][0]["status"] == "AVAILABLE"


@pytest.mark.django_db
class TestSettleEndpoints:
    def test_settle_customer_payable(self, agent_client, customer_payable):
        response = agent_client.post(
            f"{API}/customer-payables/{customer_payable.pk}/settle/",
            {"amount": "40.00", "transaction_method": "WISE", "expected_version": customer_payable.version},
            format="json",
        )

        assert response.status_code == 201
        customer_payable.refresh_from_db()
        assert customer_payable.pending_amount == Decimal("60.00")

    def test_exceeds_pending_is_422(self, agent_client, supplier_payable):
        """Should reject an over-settlement with 422 and the pending amount."""
        response = agent_client.post(
            f"{API}/supplier-payables/{supplier_payable.pk}/settle/",
            {
                "amount": "300.02",
                "transaction_method": "LOYDS",
                "expected_version": supplier_payable.version,
            },
            format="json",
        )

        assert response.status_code == 422
        assert response.data["error_code"] == "EXCEEDS_PENDING"
        assert response.data["details"]["pending_amount"] == "300.00"

    def test_settle_cost_item(self, agent_client, full_booking):
        cost_item = full_booking.cost_items.get()

        response = agent_client.post(
            f"{API}/cost-items/{cost_item.pk}/settle/",
            {
                "amount": "700.00",
                "transaction_method": "BANK_TRANSFER",
                "settlement_date": "2026-03-30",
                "expected_version": cost_item.version,
            },
            format="json",
        )

        assert response.status_code == 201
        assert response.data["cost_item"] == cost_item.pk


# =============================================================================
# Amendments & commissions
# =============================================================================


@pytest.mark.django_db
class TestAmendmentEndpoints:
    def test_reverse(self, staff_client, full_booking):
        amendment = AmendmentService.adjust(
            full_booking, Decimal("-50.00"), reason="Discount", expected_version=full_booking.version
        )
        url = f"{API}/amendments/{amendment.pk}/reverse/"

        first = staff_client.post(
            url, {"expected_version": version_of(full_booking)}, format="json"
        )
        second = staff_client.post(
            url, {"expected_version": version_of(full_booking)}, format="json"
        )

        assert first.status_code == 200
        assert first.data["is_reversed"] is True
        assert second.status_code == 409
        assert second.data["error_code"] == "ALREADY_REVERSED"

    def test_reverse_stale_booking_version(self, staff_client, full_booking):
        amendment = AmendmentService.adjust(
            full_booking, Decimal("-50.00"), reason="Discount", expected_version=full_booking.version
        )

        response = staff_client.post(
            f"{API}/amendments/{amendment.pk}/reverse/",
            {"expected_version": full_booking.version},
            format="json",
        )

        assert response.status_code == 409
        assert response.data["error_code"] == "STALE_RECORD"


@pytest.mark.django_db
class TestCommissionEndpoints:
    @freeze_time("2026-03-15")
    def test_list_own_entries(self, agent_client, agent, other_agent):
        PaymentLedgerService.create_booking(agent, full_draft())
        PaymentLedgerService.create_booking(other_agent, full_draft())

        response = agent_client.get(f"{API}/commissions/", {"month": "2026-03"})

        assert response.status_code == 200
        assert response.data["count"] == 1
        assert response.data["results"][0]["folder_no"] == "1"

    @freeze_time("2026-03-15")
    def test_summary(self, agent_client, agent):
        PaymentLedgerService.create_booking(agent, full_draft())
        PaymentLedgerService.create_booking(agent, internal_draft())

        response = agent_client.get(f"{API}/commissions/summary/", {"month": "2026-03"})

        assert response.status_code == 200
        assert response.data["total"] == "600.00"
        assert response.data["commission_month"] == "2026-03-01"

    def test_summary_requires_month(self, agent_client):
        response = agent_client.get(f"{API}/commissions/summary/")

        assert response.status_code == 400
        assert response.data["error_code"] == "REQUIRED_FIELDS_MISSING"

    def test_invalid_month(self, agent_client):
        response = agent_client.get(f"{API}/commissions/", {"month": "March"})

        assert response.status_code == 400
        assert response.data["error_code"] == "INVALID_MONTH"

    def test_move_entry(self, agent_client, full_booking):
        entry = full_booking.commission_entries.get()

        response = agent_client.patch(
            f"{API}/commissions/{entry.pk}/month/",
            {"commission_month": "2026-04-20", "expected_version": entry.version},
            format="json",
        )

        assert response.status_code == 200
        assert response.data["commission_month"] == "2026-04-01"
        assert response.data["amount"] == "300.00"

    def test_cannot_move_other_agents_entry(self, api_client, other_agent, full_booking):
        api_client.force_authenticate(user=other_agent)
        entry = full_booking.commission_entries.get()

        response = api_client.patch(
            f"{API}/commissions/{entry.pk}/month/",
            {"commission_month": date(2026, 4, 1).isoformat(), "expected_version": entry.version},
            format="json",
        )

        assert response.status_code == 404
