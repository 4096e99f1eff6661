"""
URL configuration for the booking ledger API.

All URLs are prefixed with /api/v1/ledger/ in the main URL configuration.
See bookings.views for the full endpoint list.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from bookings.views import (
    AmendmentViewSet,
    BookingViewSet,
    CancellationViewSet,
    CommissionEntryViewSet,
    CostItemViewSet,
    CreditNoteViewSet,
    CustomerPayableViewSet,
    SupplierPayableViewSet,
)

router = DefaultRouter()
router.register(r"bookings", BookingViewSet, basename="booking")
router.register(r"credit-notes", CreditNoteViewSet, basename="credit-note")
router.register(r"cancellations", CancellationViewSet, basename="cancellation")
router.register(r"customer-payables", CustomerPayableViewSet, basename="customer-payable")
router.register(r"supplier-payables", SupplierPayableViewSet, basename="supplier-payable")
router.register(r"cost-items", CostItemViewSet, basename="cost-item")
router.register(r"amendments", AmendmentViewSet, basename="amendment")
router.register(r"commissions", CommissionEntryViewSet, basename="commission")

app_name = "bookings"

urlpatterns = [
    path("", include(router.urls)),
]
