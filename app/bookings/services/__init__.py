"""
Service layer for the booking ledger.

Each service is a stateless class of static/class methods. Every mutating
method runs in its own transaction and locks the aggregate it changes.

Services:
    PaymentLedgerService: Bookings, payments, instalments, derived figures
    CreditNoteService: Credit note issue, allocation and voiding
    CancellationService: Cancellation outcomes and refunds
    SettlementService: Settlement of payables and supplier costs
    CommissionService: Agent commission ledger
    AmendmentService: Write-offs, adjustments and their reversal
"""

from bookings.services.amendments import AmendmentService
from bookings.services.cancellations import CancellationService
from bookings.services.commissions import CommissionService
from bookings.services.credit_notes import CreditNoteService
from bookings.services.payment_ledger import PaymentLedgerService
from bookings.services.settlements import SettlementService

__all__ = [
    "AmendmentService",
    "CancellationService",
    "CommissionService",
    "CreditNoteService",
    "PaymentLedgerService",
    "SettlementService",
]
