"""
Django admin configuration for booking ledger models.

Ledger records are read-only in the admin. Every change goes through
bookings.services so that derived figures, versions and commission entries
stay consistent; the admin is for inspection only.
"""

from django.contrib import admin

from bookings.models import (
    Amendment,
    Booking,
    Cancellation,
    CommissionEntry,
    CostItem,
    CreditNote,
    CreditNoteUsage,
    CustomerPayable,
    Instalment,
    Payment,
    Settlement,
    SupplierPayable,
)
from bookings.money import format_money


class ReadOnlyLedgerAdmin(admin.ModelAdmin):
    """
    Base admin for ledger records.

    Records are created through the service layer only.
    """

    def has_add_permission(self, request) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


class CostItemInline(admin.TabularInline):
    model = CostItem
    extra = 0
    can_delete = False
    readonly_fields = ["category", "supplier", "amount", "paid_amount"]
    fields = readonly_fields


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    can_delete = False
    readonly_fields = ["kind", "amount", "transaction_method", "payment_date", "reference"]
    fields = readonly_fields


class InstalmentInline(admin.TabularInline):
    model = Instalment
    extra = 0
    can_delete = False
    readonly_fields = ["due_date", "amount", "status", "paid_at"]
    fields = readonly_fields


@admin.register(Booking)
class BookingAdmin(ReadOnlyLedgerAdmin):
    list_display = [
        "folder_no",
        "lead_passenger",
        "agent",
        "payment_method",
        "booking_status",
        "revenue_display",
        "balance_display",
        "accounting_month",
    ]
    list_filter = ["booking_status", "payment_method", "accounting_month"]
    search_fields = ["folder_no", "lead_passenger", "agent__email"]
    date_hierarchy = "pc_date"
    ordering = ["-created_at"]
    inlines = [CostItemInline, PaymentInline, InstalmentInline]

    fieldsets = (
        (
            None,
            {
                "fields": (
                    "folder_no",
                    "original_booking",
                    "agent",
                    "lead_passenger",
                    "booking_status",
                ),
            },
        ),
        (
            "Dates",
            {
                "fields": ("pc_date", "travel_date", "accounting_month", "last_payment_date"),
            },
        ),
        (
            "Financials",
            {
                "fields": (
                    "payment_method",
                    "revenue",
                    "prod_cost",
                    "surcharge",
                    "profit",
                    "received",
                    "balance",
                    "version",
                ),
            },
        ),
        (
            "Void",
            {
                "fields": ("void_reason", "voided_at", "voided_by"),
                "classes": ("collapse",),
            },
        ),
    )

    def revenue_display(self, obj: Booking) -> str:
        return format_money(obj.revenue)

    revenue_display.short_description = "Revenue"

    def balance_display(self, obj: Booking) -> str:
        return format_money(obj.balance)

    balance_display.short_description = "Balance"


@admin.register(CreditNote)
class CreditNoteAdmin(ReadOnlyLedgerAdmin):
    list_display = [
        "reference",
        "customer_name",
        "initial_amount",
        "remaining_amount",
        "status",
        "voided_at",
        "created_at",
    ]
    search_fields = ["reference", "customer_name"]
    ordering = ["-created_at"]


@admin.register(CreditNoteUsage)
class CreditNoteUsageAdmin(ReadOnlyLedgerAdmin):
    list_display = ["credit_note", "payment", "amount_used", "created_at"]


@admin.register(Cancellation)
class CancellationAdmin(ReadOnlyLedgerAdmin):
    list_display = [
        "folder_no",
        "outcome",
        "outcome_amount",
        "refund_status",
        "profit_or_loss",
        "created_at",
    ]
    list_filter = ["outcome", "refund_status"]
    search_fields = ["folder_no"]


@admin.register(CustomerPayable, SupplierPayable)
class PayableAdmin(ReadOnlyLedgerAdmin):
    list_display = ["booking", "total_amount", "paid_amount", "pending_amount", "status", "created_at"]
    search_fields = ["booking__folder_no", "reason"]


@admin.register(Settlement)
class SettlementAdmin(ReadOnlyLedgerAdmin):
    list_display = ["amount", "transaction_method", "settlement_date", "created_at"]
    list_filter = ["transaction_method"]
    date_hierarchy = "settlement_date"


@admin.register(Amendment)
class AmendmentAdmin(ReadOnlyLedgerAdmin):
    list_display = [
        "booking",
        "amendment_type",
        "difference",
        "is_reversed",
        "created_by",
        "created_at",
    ]
    list_filter = ["amendment_type", "is_reversed"]
    search_fields = ["booking__folder_no", "reason"]


@admin.register(CommissionEntry)
class CommissionEntryAdmin(ReadOnlyLedgerAdmin):
    list_display = ["booking", "agent", "entry_type", "amount", "commission_month"]
    list_filter = ["entry_type", "commission_month"]
    search_fields = ["booking__folder_no", "agent__email"]
