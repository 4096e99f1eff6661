"""
Serializers for the booking ledger API.

Read serializers expose ledger records; derived figures are always read from
the stored values computed by the service layer, never recomputed here.
Input serializers only validate shape and types. Business rules (tolerances,
pending amounts, state transitions) are enforced by the services, whose
errors are rendered by core.exception_handler.

Serializer Hierarchy:
    BookingListSerializer: Booking summary for lists
    BookingDetailSerializer: Booking with cost items, payments, instalments,
        amendments and commission entries
    BookingDraftSerializer: Create / preview / date change input
    CreditNoteSerializer, CancellationSerializer, CustomerPayableSerializer,
    SupplierPayableSerializer, SettlementSerializer, AmendmentSerializer,
    CommissionEntrySerializer

    Action inputs: InstalmentPaymentSerializer, CancelBookingSerializer,
    WriteOffSerializer, AdjustSerializer, VoidBookingSerializer,
    SettleSerializer, RefundPaymentSerializer, CommissionMonthSerializer
"""

from __future__ import annotations

from django.utils import timezone
from rest_framework import serializers

from bookings.models import (
    Amendment,
    Booking,
    Cancellation,
    CommissionEntry,
    CostItem,
    CreditNote,
    CustomerPayable,
    Instalment,
    Payment,
    Settlement,
    SupplierPayable,
)
from bookings.models.booking import MONEY_FIELD_OPTIONS
from bookings.state_machines import (
    PaymentMethod,
    RefundPolicy,
    SettlementMethod,
    TransactionMethod,
)
from bookings.types import (
    BookingDraft,
    CostItemDraft,
    CreditSelection,
    InstalmentDraft,
    PaymentDraft,
)


def money_field(**kwargs) -> serializers.DecimalField:
    return serializers.DecimalField(**MONEY_FIELD_OPTIONS, **kwargs)


# =============================================================================
# Read Serializers
# =============================================================================


class CostItemSerializer(serializers.ModelSerializer):
    pending_amount = money_field(read_only=True)

    class Meta:
        model = CostItem
        fields = [
            "id",
            "category",
            "supplier",
            "amount",
            "paid_amount",
            "pending_amount",
            "version",
        ]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    credit_note_ids = serializers.SerializerMethodField(
        help_text="Credit notes that funded this payment"
    )

    class Meta:
        model = Payment
        fields = [
            "id",
            "kind",
            "amount",
            "transaction_method",
            "payment_date",
            "reference",
            "instalment",
            "credit_note_ids",
            "created_at",
        ]
        read_only_fields = fields

    def get_credit_note_ids(self, obj: Payment) -> list[str]:
        return [str(usage.credit_note_id) for usage in obj.credit_note_usages.all()]


class InstalmentSerializer(serializers.ModelSerializer):
    """
    Instalment with its display status.

    status is what is stored (PENDING/PAID); display_status adds OVERDUE
    for unpaid instalments past their due date.
    """

    display_status = serializers.SerializerMethodField()

    class Meta:
        model = Instalment
        fields = [
            "id",
            "due_date",
            "amount",
            "status",
            "display_status",
            "paid_at",
        ]
        read_only_fields = fields

    def get_display_status(self, obj: Instalment) -> str:
        return obj.display_status()


class AmendmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Amendment
        fields = [
            "id",
            "booking",
            "amendment_type",
            "property_name",
            "old_value",
            "new_value",
            "difference",
            "reason",
            "created_by",
            "is_reversed",
            "reversed_at",
            "reversed_by",
            "created_at",
        ]
        read_only_fields = fields


class CommissionEntrySerializer(serializers.ModelSerializer):
    folder_no = serializers.CharField(source="booking.folder_no", read_only=True)

    class Meta:
        model = CommissionEntry
        fields = [
            "id",
            "booking",
            "folder_no",
            "agent",
            "entry_type",
            "amount",
            "percentage",
            "initial_paid",
            "commission_month",
            "version",
            "created_at",
        ]
        read_only_fields = fields


class BookingListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Booking
        fields = [
            "id",
            "folder_no",
            "lead_passenger",
            "agent",
            "payment_method",
            "booking_status",
            "pc_date",
            "travel_date",
            "accounting_month",
            "revenue",
            "profit",
            "received",
            "balance",
            "version",
        ]
        read_only_fields = fields


class BookingDetailSerializer(serializers.ModelSerializer):
    """Full booking with every ledger record hanging off it."""

    cost_items = CostItemSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)
    instalments = InstalmentSerializer(many=True, read_only=True)
    amendments = AmendmentSerializer(many=True, read_only=True)
    commission_entries = CommissionEntrySerializer(many=True, read_only=True)
    original_booking = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "folder_no",
            "original_booking",
            "lead_passenger",
            "agent",
            "payment_method",
            "booking_status",
            "pc_date",
            "travel_date",
            "accounting_month",
            "last_payment_date",
            "revenue",
            "prod_cost",
            "surcharge",
            "profit",
            "received",
            "balance",
            "void_reason",
            "voided_at",
            "cost_items",
            "payments",
            "instalments",
            "amendments",
            "commission_entries",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CreditNoteSerializer(serializers.ModelSerializer):
    status = serializers.CharField(read_only=True)
    cancellation_folder_no = serializers.CharField(
        source="cancellation.folder_no", read_only=True
    )

    class Meta:
        model = CreditNote
        fields = [
            "id",
            "reference",
            "customer_name",
            "cancellation",
            "cancellation_folder_no",
            "initial_amount",
            "remaining_amount",
            "forfeited_amount",
            "status",
            "voided_at",
            "version",
            "created_at",
        ]
        read_only_fields = fields


class SettlementSerializer(serializers.ModelSerializer):
    class Meta:
        model = Settlement
        fields = [
            "id",
            "customer_payable",
            "supplier_payable",
            "cost_item",
            "amount",
            "transaction_method",
            "settlement_date",
            "created_at",
        ]
        read_only_fields = fields


class CustomerPayableSerializer(serializers.ModelSerializer):
    status = serializers.CharField(read_only=True)
    settlements = SettlementSerializer(many=True, read_only=True)

    class Meta:
        model = CustomerPayable
        fields = [
            "id",
            "booking",
            "cancellation",
            "reason",
            "total_amount",
            "paid_amount",
            "pending_amount",
            "status",
            "settlements",
            "version",
            "created_at",
        ]
        read_only_fields = fields


class SupplierPayableSerializer(CustomerPayableSerializer):
    class Meta(CustomerPayableSerializer.Meta):
        model = SupplierPayable
        fields = CustomerPayableSerializer.Meta.fields + ["supplier"]
        read_only_fields = fields


class CancellationSerializer(serializers.ModelSerializer):
    """Cancellation with whichever outcome record it produced."""

    customer_payable = CustomerPayableSerializer(read_only=True, allow_null=True)
    supplier_payable = SupplierPayableSerializer(read_only=True, allow_null=True)
    credit_note = CreditNoteSerializer(read_only=True, allow_null=True)
    refund_payments = PaymentSerializer(many=True, read_only=True)

    class Meta:
        model = Cancellation
        fields = [
            "id",
            "folder_no",
            "original_booking",
            "supplier_cancellation_fee",
            "admin_fee",
            "received_at_cancellation",
            "total_paid_to_supplier",
            "outcome",
            "outcome_amount",
            "refund_status",
            "converted_from_credit_at",
            "supplier_credit_amount",
            "profit_or_loss",
            "customer_payable",
            "supplier_payable",
            "credit_note",
            "refund_payments",
            "created_at",
        ]
        read_only_fields = fields


class LedgerFiguresSerializer(serializers.Serializer):
    profit = money_field()
    received = money_field()
    balance = money_field()
    last_payment_date = serializers.DateField(allow_null=True)


class CommissionSummarySerializer(serializers.Serializer):
    agent_id = serializers.IntegerField()
    commission_month = serializers.DateField()
    entries = CommissionEntrySerializer(many=True)
    total = money_field()


# =============================================================================
# Booking Draft Input
# =============================================================================


class CreditSelectionSerializer(serializers.Serializer):
    credit_note_id = serializers.UUIDField()
    amount_to_use = money_field(min_value=0)
    expected_version = serializers.IntegerField(
        help_text="Credit note version the client read"
    )


class PaymentDraftSerializer(serializers.Serializer):
    amount = money_field(help_text="Payment amount (> 0)")
    transaction_method = serializers.ChoiceField(choices=TransactionMethod.choices)
    payment_date = serializers.DateField(required=False)
    reference = serializers.CharField(required=False, allow_blank=True, default="")
    credit_selections = CreditSelectionSerializer(many=True, required=False, default=list)


class InstalmentDraftSerializer(serializers.Serializer):
    due_date = serializers.DateField()
    amount = money_field(help_text="Instalment amount (> 0)")


class CostItemDraftSerializer(serializers.Serializer):
    category = serializers.CharField(max_length=64)
    amount = money_field(help_text="Cost amount (> 0)")
    supplier = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class BookingDraftSerializer(serializers.Serializer):
    """
    Input for creating, previewing and date-changing a booking.

    Use to_draft() to build the BookingDraft consumed by
    PaymentLedgerService.
    """

    revenue = money_field()
    pc_date = serializers.DateField()
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices, default=PaymentMethod.FULL
    )
    surcharge = money_field(required=False, default=0)
    travel_date = serializers.DateField(required=False, allow_null=True)
    lead_passenger = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )
    accounting_month = serializers.DateField(required=False, allow_null=True)
    commission_month = serializers.DateField(required=False, allow_null=True)
    cost_items = CostItemDraftSerializer(many=True, required=False, default=list)
    payments = PaymentDraftSerializer(many=True)
    instalments = InstalmentDraftSerializer(many=True, required=False, default=list)

    def to_draft(self) -> BookingDraft:
        data = self.validated_data
        today = timezone.localdate()
        return BookingDraft(
            revenue=data["revenue"],
            pc_date=data["pc_date"],
            payment_method=data["payment_method"],
            surcharge=data["surcharge"],
            travel_date=data.get("travel_date"),
            lead_passenger=data["lead_passenger"],
            accounting_month=data.get("accounting_month"),
            commission_month=data.get("commission_month"),
            cost_items=[CostItemDraft(**item) for item in data["cost_items"]],
            payments=[
                PaymentDraft(
                    amount=payment["amount"],
                    transaction_method=payment["transaction_method"],
                    payment_date=payment.get("payment_date") or today,
                    reference=payment["reference"],
                    credit_selections=[
                        CreditSelection(**selection)
                        for selection in payment["credit_selections"]
                    ],
                )
                for payment in data["payments"]
            ],
            instalments=[InstalmentDraft(**item) for item in data["instalments"]],
        )


# =============================================================================
# Action Input
# =============================================================================


class VersionedActionSerializer(serializers.Serializer):
    expected_version = serializers.IntegerField(
        help_text="Version the client read; a stale version is rejected with 409",
    )


class InstalmentPaymentSerializer(VersionedActionSerializer):
    transaction_method = serializers.ChoiceField(choices=TransactionMethod.choices)
    payment_date = serializers.DateField(required=False, allow_null=True)
    amount = money_field(required=False, allow_null=True)
    reference = serializers.CharField(required=False, allow_blank=True, default="")
    credit_selections = CreditSelectionSerializer(many=True, required=False, default=list)


class CancelBookingSerializer(VersionedActionSerializer):
    supplier_cancellation_fee = money_field(min_value=0)
    admin_fee = money_field(min_value=0)
    refund_policy = serializers.ChoiceField(
        choices=RefundPolicy.choices,
        required=False,
        allow_null=True,
        help_text="Required when the customer paid more than the fees",
    )


class WriteOffSerializer(VersionedActionSerializer):
    reason = serializers.CharField()


class AdjustSerializer(VersionedActionSerializer):
    difference = money_field(help_text="Signed amount added to the balance")
    reason = serializers.CharField()


class VoidBookingSerializer(VersionedActionSerializer):
    reason = serializers.CharField()


class AccountingMonthSerializer(VersionedActionSerializer):
    accounting_month = serializers.DateField()


class SettleSerializer(VersionedActionSerializer):
    amount = money_field()
    transaction_method = serializers.ChoiceField(choices=SettlementMethod.choices)
    settlement_date = serializers.DateField(required=False, allow_null=True)


class RefundPaymentSerializer(serializers.Serializer):
    transaction_method = serializers.ChoiceField(
        choices=[
            choice
            for choice in TransactionMethod.choices
            if choice[0] != TransactionMethod.CUSTOMER_CREDIT_NOTE
        ]
    )
    payment_date = serializers.DateField(required=False, allow_null=True)
    reference = serializers.CharField(required=False, allow_blank=True, default="")


class ConvertCreditSerializer(VersionedActionSerializer, RefundPaymentSerializer):
    """expected_version is the credit note version."""


class CommissionMonthSerializer(VersionedActionSerializer):
    commission_month = serializers.DateField()
