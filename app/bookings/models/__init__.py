"""
Booking ledger models.

This module contains all ledger models:
- Booking: Root aggregate with revenue, cost, profit, received and balance
- CostItem: Cost breakdown of a booking, settled against suppliers
- Payment: Initial, instalment and refund payments (append-only)
- Instalment: Scheduled partial payments of INTERNAL bookings
- CreditNote / CreditNoteUsage: Store credit and its consumption
- Cancellation: Outcome of cancelling a booking chain
- CustomerPayable / SupplierPayable / Settlement: Amounts owed and their settlement
- Amendment: Reversible manual balance corrections
- CommissionEntry: Agent commission ledger
"""

from bookings.models.amendment import Amendment
from bookings.models.booking import Booking, CostItem
from bookings.models.cancellation import Cancellation
from bookings.models.commission import CommissionEntry
from bookings.models.credit_note import CreditNote, CreditNoteUsage
from bookings.models.instalment import Instalment
from bookings.models.payable import CustomerPayable, Settlement, SupplierPayable
from bookings.models.payment import Payment

__all__ = [
    "Amendment",
    "Booking",
    "Cancellation",
    "CommissionEntry",
    "CostItem",
    "CreditNote",
    "CreditNoteUsage",
    "CustomerPayable",
    "Instalment",
    "Payment",
    "Settlement",
    "SupplierPayable",
]
