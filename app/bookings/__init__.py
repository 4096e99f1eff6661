"""
Bookings application.

This app holds the financial ledger of a travel booking: revenue, cost,
profit, received amounts, instalments, credit notes, cancellations,
payables, settlements, agent commissions and manual amendments.

Key components:
    - Booking model: root aggregate for every ledger record
    - PaymentLedgerService: booking creation and instalment payments
    - CancellationService: cancellation outcomes (payable, refund, credit)
    - SettlementService: partial/full settlement of payables
    - CommissionService: INITIAL and FINAL_RECONCILIATION commission entries
    - AmendmentService: reversible write-offs and adjustments

Usage:
    from bookings.models import Booking
    from bookings.services import PaymentLedgerService, SettlementService
"""
