"""
Pytest fixtures for booking ledger tests.

Bookings are created through PaymentLedgerService so that their stored
figures, commission entries and versions are what production code would
produce. Fixtures cover the common shapes: a part-paid FULL booking, a
fully paid FULL booking, an INTERNAL booking with two instalments, and the
three cancellation outcomes that leave something behind (customer payable,
cash refund, credit note).

Usage:
    def test_balance(full_booking):
        assert full_booking.balance == Decimal("750.00")
"""

from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import AgentFactory, StaffFactory
from bookings.services import CancellationService, PaymentLedgerService
from bookings.state_machines import RefundPolicy
from bookings.tests.factories import full_draft, internal_draft


# =============================================================================
# Users
# =============================================================================


@pytest.fixture
def agent(db):
    """Create a booking agent."""
    return AgentFactory()


@pytest.fixture
def other_agent(db):
    return AgentFactory()


@pytest.fixture
def staff_user(db):
    """Create a back-office staff user."""
    return StaffFactory()


# =============================================================================
# Bookings
# =============================================================================


@pytest.fixture
def full_booking(agent):
    """
    FULL booking: revenue 1000, cost 700, 250 paid.

    profit 300, received 250, balance 750.
    """
    return PaymentLedgerService.create_booking(agent, full_draft())


@pytest.fixture
def paid_booking(agent):
    """FULL booking paid in full: revenue 1000, cost 700, balance 0."""
    return PaymentLedgerService.create_booking(agent, full_draft(paid=("1000.00",)))


@pytest.fixture
def internal_booking(agent):
    """
    INTERNAL booking: revenue 1200, cost 600, 300 paid up front, two
    instalments of 450 due 2026-04-01 and 2026-05-01.

    profit 600, received 300, balance 900, INITIAL commission 300.
    """
    return PaymentLedgerService.create_booking(agent, internal_draft())


# =============================================================================
# Cancellations
# =============================================================================


@pytest.fixture
def shortfall_cancellation(full_booking):
    """
    Cancellation where fees exceed what the customer paid.

    received 250, fees 300 + 50 -> CustomerPayable of 100 and a
    SupplierPayable of 300 (nothing was paid to the supplier yet).
    """
    return CancellationService.cancel(
        full_booking,
        supplier_cancellation_fee=Decimal("300.00"),
        admin_fee=Decimal("50.00"),
        expected_version=full_booking.version,
    )


@pytest.fixture
def customer_payable(shortfall_cancellation):
    return shortfall_cancellation.customer_payable


@pytest.fixture
def supplier_payable(shortfall_cancellation):
    return shortfall_cancellation.supplier_payable


@pytest.fixture
def cash_refund_cancellation(paid_booking):
    """received 1000, fees 300 + 50 -> cash refund of 650 pending."""
    return CancellationService.cancel(
        paid_booking,
        supplier_cancellation_fee=Decimal("300.00"),
        admin_fee=Decimal("50.00"),
        refund_policy=RefundPolicy.CASH,
        expected_version=paid_booking.version,
    )


@pytest.fixture
def credit_note_cancellation(paid_booking):
    """received 1000, fees 300 + 50 -> credit note of 650."""
    return CancellationService.cancel(
        paid_booking,
        supplier_cancellation_fee=Decimal("300.00"),
        admin_fee=Decimal("50.00"),
        refund_policy=RefundPolicy.CREDIT_NOTE,
        expected_version=paid_booking.version,
    )


@pytest.fixture
def credit_note(credit_note_cancellation):
    """CreditNote of 650 issued for paid_booking's cancellation."""
    return credit_note_cancellation.credit_note


# =============================================================================
# API Clients
# =============================================================================


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def agent_client(api_client, agent):
    """API client authenticated as the booking agent."""
    api_client.force_authenticate(user=agent)
    return api_client


@pytest.fixture
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client
