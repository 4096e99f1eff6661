"""
Root URL configuration for the booking ledger service.

URL Structure:
    /admin/                              - Django admin interface (read-only ledger)
    /health/                             - Health check endpoint (load balancers, Docker)
    /api/schema/                         - OpenAPI schema (YAML)
    /api/docs/                           - ReDoc API documentation
    /api/v1/auth/                        - JWT token endpoints
        token/                           - Obtain access/refresh pair
        token/refresh/                   - Refresh access token
        token/verify/                    - Verify a token
    /api/v1/ledger/                      - Booking ledger endpoints
        bookings/                        - Booking list/create
        bookings/preview/                - Preview figures without saving
        bookings/overdue/                - Bookings with overdue instalments
        bookings/overdue-instalments/    - Overdue instalments
        bookings/{id}/                   - Booking detail with ledger figures
        bookings/{id}/date-change/       - Create a date-change booking
        bookings/{id}/instalments/{pk}/pay/ - Pay an instalment
        bookings/{id}/cancel/            - Cancel the booking chain
        bookings/{id}/write-off/         - Write off the balance
        bookings/{id}/adjust/            - Manual balance adjustment
        bookings/{id}/void/              - Void the booking
        bookings/{id}/unvoid/            - Restore a voided booking
        bookings/{id}/accounting-month/  - Move to another accounting month
        bookings/{id}/credit-notes/      - Credit notes usable on this booking
        credit-notes/                    - Credit note list/detail
        cancellations/{id}/refund-paid/  - Record a cash refund payout
        cancellations/{id}/convert-credit/ - Replace a credit note with cash
        customer-payables/{id}/settle/   - Settle a customer payable
        supplier-payables/{id}/settle/   - Settle a supplier payable
        cost-items/{id}/settle/          - Pay a supplier cost
        amendments/{id}/reverse/         - Reverse an amendment
        commissions/                     - Commission entries (?month=)
        commissions/summary/             - Monthly commission totals
        commissions/{id}/month/          - Move a commission entry
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Authentication (simplejwt)
    path("auth/", include("authentication.urls")),
    # Booking ledger
    path("ledger/", include("bookings.urls")),
]

urlpatterns = [
    # Documentation
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Booking Ledger Admin"
admin.site.site_title = "Booking Ledger"
admin.site.index_title = "Ledger records"
