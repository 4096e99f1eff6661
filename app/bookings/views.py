"""
ViewSets for the booking ledger API.

The views are a thin layer over bookings.services: they validate request
shape with serializers, call one service operation and render the result.
Service errors (core.exceptions subclasses) are turned into responses by
core.exception_handler.api_exception_handler.

URL Structure (prefixed with /api/v1/ledger/):
    /bookings/                                      GET, POST
    /bookings/preview/                              POST
    /bookings/overdue/                              GET
    /bookings/overdue-instalments/                  GET
    /bookings/{id}/                                 GET
    /bookings/{id}/date-change/                     POST
    /bookings/{id}/instalments/{instalment_id}/pay/ POST
    /bookings/{id}/cancel/                          POST
    /bookings/{id}/write-off/                       POST
    /bookings/{id}/adjust/                          POST
    /bookings/{id}/void/                            POST
    /bookings/{id}/unvoid/                          POST
    /bookings/{id}/accounting-month/                PATCH
    /bookings/{id}/credit-notes/                    GET
    /credit-notes/                                  GET
    /cancellations/{id}/refund-paid/                POST
    /cancellations/{id}/convert-credit/             POST
    /customer-payables/{id}/settle/                 POST
    /supplier-payables/{id}/settle/                 POST
    /cost-items/{id}/settle/                        POST
    /amendments/{id}/reverse/                       POST
    /commissions/                                   GET
    /commissions/summary/                           GET
    /commissions/{id}/month/                        PATCH

Mutating actions take the expected_version of the record they change: the
booking for booking actions and amendment reversal, otherwise the payable,
cost item, credit note or commission entry. A stale version is answered with 409.
"""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_date
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from bookings.filters import BookingFilter
from bookings.models import (
    Amendment,
    Booking,
    Cancellation,
    CommissionEntry,
    CostItem,
    CreditNote,
    CustomerPayable,
    Instalment,
    SupplierPayable,
)
from bookings.money import first_of_month
from bookings.serializers import (
    AccountingMonthSerializer,
    AdjustSerializer,
    AmendmentSerializer,
    BookingDetailSerializer,
    BookingDraftSerializer,
    BookingListSerializer,
    CancelBookingSerializer,
    CancellationSerializer,
    CommissionEntrySerializer,
    CommissionMonthSerializer,
    CommissionSummarySerializer,
    ConvertCreditSerializer,
    CostItemSerializer,
    CreditNoteSerializer,
    CustomerPayableSerializer,
    InstalmentPaymentSerializer,
    InstalmentSerializer,
    LedgerFiguresSerializer,
    PaymentSerializer,
    RefundPaymentSerializer,
    SettlementSerializer,
    SettleSerializer,
    SupplierPayableSerializer,
    VersionedActionSerializer,
    VoidBookingSerializer,
    WriteOffSerializer,
)
from bookings.services import (
    AmendmentService,
    CancellationService,
    CommissionService,
    CreditNoteService,
    PaymentLedgerService,
    SettlementService,
)
from core.exceptions import ValidationError

logger = logging.getLogger(__name__)

User = get_user_model()


def _month_param(request, name: str = "month"):
    """Parse an optional YYYY-MM-DD (or YYYY-MM) query parameter to a month."""
    raw = request.query_params.get(name)
    if not raw:
        return None
    parsed = parse_date(raw if raw.count("-") == 2 else f"{raw}-01")
    if parsed is None:
        raise ValidationError(
            f"Invalid {name} {raw!r}, expected YYYY-MM or YYYY-MM-DD",
            error_code="INVALID_MONTH",
            details={name: [raw]},
        )
    return first_of_month(parsed)


# =============================================================================
# Bookings
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_bookings",
        summary="List bookings",
        tags=["Ledger - Bookings"],
    ),
    retrieve=extend_schema(
        operation_id="get_booking",
        summary="Get booking with its ledger",
        tags=["Ledger - Bookings"],
    ),
    create=extend_schema(
        operation_id="create_booking",
        summary="Create booking",
        request=BookingDraftSerializer,
        responses={201: BookingDetailSerializer},
        tags=["Ledger - Bookings"],
    ),
)
class BookingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """
    ViewSet for bookings and the operations on their ledger.

    create:
        Create a booking from a draft. Cost items, initial payments (credit
        funded ones included), instalments and the INITIAL commission entry
        are recorded together; the authenticated user is the agent.

    preview:
        Compute the figures a draft would produce without saving anything.

    cancel:
        Cancel the booking chain and derive its outcome.
    """

    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_class = BookingFilter

    def get_queryset(self):
        queryset = Booking.objects.select_related("agent")
        if self.action != "list":
            queryset = queryset.prefetch_related(
                "cost_items",
                "payments__credit_note_usages",
                "instalments",
                "amendments",
                "commission_entries__booking",
            )
        return queryset

    def get_serializer_class(self):
        if self.action in ("list", "overdue"):
            return BookingListSerializer
        if self.action in ("create", "preview", "date_change"):
            return BookingDraftSerializer
        return BookingDetailSerializer

    def _detail_response(self, booking: Booking, status_code=status.HTTP_200_OK) -> Response:
        booking = self.get_queryset().get(pk=booking.pk)
        return Response(BookingDetailSerializer(booking).data, status=status_code)

    def create(self, request, *args, **kwargs):
        serializer = BookingDraftSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = PaymentLedgerService.create_booking(
            agent=request.user, draft=serializer.to_draft()
        )
        return self._detail_response(booking, status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="preview_booking",
        summary="Preview booking figures",
        description="Pure projection of profit, received and balance for a draft. Nothing is saved.",
        request=BookingDraftSerializer,
        responses={200: LedgerFiguresSerializer},
        tags=["Ledger - Bookings"],
    )
    @action(detail=False, methods=["post"])
    def preview(self, request):
        serializer = BookingDraftSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        figures = PaymentLedgerService.project(serializer.to_draft())
        return Response(LedgerFiguresSerializer(figures.as_dict()).data)

    @extend_schema(
        operation_id="create_date_change",
        summary="Create date change",
        description="Create a follow-on booking linked to this booking's chain ('123.1').",
        request=BookingDraftSerializer,
        responses={201: BookingDetailSerializer},
        tags=["Ledger - Bookings"],
    )
    @action(detail=True, methods=["post"], url_path="date-change")
    def date_change(self, request, pk=None):
        original = self.get_object()
        serializer = BookingDraftSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = PaymentLedgerService.create_date_change(
            original, agent=request.user, draft=serializer.to_draft()
        )
        return self._detail_response(booking, status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="pay_instalment",
        summary="Pay instalment",
        request=InstalmentPaymentSerializer,
        responses={
            201: PaymentSerializer,
            409: OpenApiResponse(description="Instalment already paid or stale version"),
        },
        tags=["Ledger - Instalments"],
    )
    @action(
        detail=True,
        methods=["post"],
        url_path=r"instalments/(?P<instalment_pk>[^/.]+)/pay",
    )
    def pay_instalment(self, request, pk=None, instalment_pk=None):
        booking = self.get_object()
        instalment = get_object_or_404(Instalment, pk=instalment_pk, booking=booking)
        serializer = InstalmentPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payment = PaymentLedgerService.record_instalment_payment(
            instalment,
            transaction_method=data["transaction_method"],
            payment_date=data.get("payment_date"),
            amount=data.get("amount"),
            reference=data["reference"],
            credit_selections=data["credit_selections"],
            expected_version=data["expected_version"],
        )
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="cancel_booking",
        summary="Cancel booking chain",
        request=CancelBookingSerializer,
        responses={
            201: CancellationSerializer,
            409: OpenApiResponse(description="Chain already cancelled or stale version"),
        },
        tags=["Ledger - Cancellations"],
    )
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        booking = self.get_object()
        serializer = CancelBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        cancellation = CancellationService.cancel(
            booking,
            supplier_cancellation_fee=data["supplier_cancellation_fee"],
            admin_fee=data["admin_fee"],
            refund_policy=data.get("refund_policy"),
            expected_version=data["expected_version"],
        )
        return Response(
            CancellationSerializer(cancellation).data, status=status.HTTP_201_CREATED
        )

    @extend_schema(
        operation_id="write_off_booking",
        summary="Write off balance",
        request=WriteOffSerializer,
        responses={201: AmendmentSerializer},
        tags=["Ledger - Amendments"],
    )
    @action(detail=True, methods=["post"], url_path="write-off")
    def write_off(self, request, pk=None):
        booking = self.get_object()
        serializer = WriteOffSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        amendment = AmendmentService.write_off(
            booking,
            reason=serializer.validated_data["reason"],
            actor=request.user,
            expected_version=serializer.validated_data["expected_version"],
        )
        return Response(AmendmentSerializer(amendment).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="adjust_booking",
        summary="Adjust balance",
        request=AdjustSerializer,
        responses={201: AmendmentSerializer},
        tags=["Ledger - Amendments"],
    )
    @action(detail=True, methods=["post"])
    def adjust(self, request, pk=None):
        booking = self.get_object()
        serializer = AdjustSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        amendment = AmendmentService.adjust(
            booking,
            difference=data["difference"],
            reason=data["reason"],
            actor=request.user,
            expected_version=data["expected_version"],
        )
        return Response(AmendmentSerializer(amendment).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="void_booking",
        summary="Void booking",
        request=VoidBookingSerializer,
        responses={200: BookingDetailSerializer},
        tags=["Ledger - Bookings"],
    )
    @action(detail=True, methods=["post"])
    def void(self, request, pk=None):
        booking = self.get_object()
        serializer = VoidBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = PaymentLedgerService.void_booking(
            booking,
            reason=serializer.validated_data["reason"],
            actor=request.user,
            expected_version=serializer.validated_data["expected_version"],
        )
        return self._detail_response(booking)

    @extend_schema(
        operation_id="unvoid_booking",
        summary="Unvoid booking",
        request=VersionedActionSerializer,
        responses={200: BookingDetailSerializer},
        tags=["Ledger - Bookings"],
    )
    @action(detail=True, methods=["post"])
    def unvoid(self, request, pk=None):
        booking = self.get_object()
        serializer = VersionedActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = PaymentLedgerService.unvoid_booking(
            booking,
            actor=request.user,
            expected_version=serializer.validated_data["expected_version"],
        )
        return self._detail_response(booking)

    @extend_schema(
        operation_id="update_accounting_month",
        summary="Move booking to another accounting month",
        request=AccountingMonthSerializer,
        responses={200: BookingDetailSerializer},
        tags=["Ledger - Bookings"],
    )
    @action(detail=True, methods=["patch"], url_path="accounting-month")
    def accounting_month(self, request, pk=None):
        booking = self.get_object()
        serializer = AccountingMonthSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = PaymentLedgerService.update_accounting_month(
            booking,
            serializer.validated_data["accounting_month"],
            expected_version=serializer.validated_data["expected_version"],
        )
        return self._detail_response(booking)

    @extend_schema(
        operation_id="list_booking_credit_notes",
        summary="Credit notes available to this booking's customer",
        responses={200: CreditNoteSerializer(many=True)},
        tags=["Ledger - Credit Notes"],
    )
    @action(detail=True, methods=["get"], url_path="credit-notes")
    def credit_notes(self, request, pk=None):
        booking = self.get_object()
        notes = CreditNoteService.list_available(booking.pk)
        return Response(CreditNoteSerializer(notes, many=True).data)

    @extend_schema(
        operation_id="list_overdue_bookings",
        summary="List overdue bookings",
        description="ACTIVE bookings with an outstanding balance whose travel date has passed.",
        tags=["Ledger - Bookings"],
    )
    @action(detail=False, methods=["get"])
    def overdue(self, request):
        queryset = PaymentLedgerService.overdue_bookings()
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(BookingListSerializer(page, many=True).data)
        return Response(BookingListSerializer(queryset, many=True).data)

    @extend_schema(
        operation_id="list_overdue_instalments",
        summary="List overdue instalments",
        responses={200: InstalmentSerializer(many=True)},
        tags=["Ledger - Instalments"],
    )
    @action(detail=False, methods=["get"], url_path="overdue-instalments")
    def overdue_instalments(self, request):
        queryset = PaymentLedgerService.overdue_instalments()
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(InstalmentSerializer(page, many=True).data)
        return Response(InstalmentSerializer(queryset, many=True).data)


# =============================================================================
# Credit Notes & Cancellations
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_credit_notes",
        summary="List credit notes",
        parameters=[
            OpenApiParameter(
                "available",
                OpenApiTypes.BOOL,
                description="Only notes with remaining credit",
            ),
        ],
        tags=["Ledger - Credit Notes"],
    ),
    retrieve=extend_schema(
        operation_id="get_credit_note",
        summary="Get credit note",
        tags=["Ledger - Credit Notes"],
    ),
)
class CreditNoteViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = CreditNoteSerializer

    def get_queryset(self):
        if self.request.query_params.get("available", "").lower() in ("1", "true"):
            queryset = CreditNoteService.available()
        else:
            queryset = CreditNote.objects.all()
        return queryset.select_related("cancellation")


@extend_schema_view(
    list=extend_schema(
        operation_id="list_cancellations",
        summary="List cancellations",
        tags=["Ledger - Cancellations"],
    ),
    retrieve=extend_schema(
        operation_id="get_cancellation",
        summary="Get cancellation",
        tags=["Ledger - Cancellations"],
    ),
)
class CancellationViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Cancellations and their refunds.

    refund_paid:
        Record the cash refund of a CASH_REFUND cancellation.

    convert_credit:
        Pay out the credit left on the cancellation's credit note as cash.
        The remaining credit is voided, including the remainder of a
        partially used note.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = CancellationSerializer
    queryset = Cancellation.objects.select_related(
        "original_booking"
    ).prefetch_related("refund_payments")

    @extend_schema(
        operation_id="record_refund_paid",
        summary="Record cash refund paid",
        request=RefundPaymentSerializer,
        responses={201: PaymentSerializer},
        tags=["Ledger - Cancellations"],
    )
    @action(detail=True, methods=["post"], url_path="refund-paid")
    def refund_paid(self, request, pk=None):
        cancellation = self.get_object()
        serializer = RefundPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payment = CancellationService.record_refund_paid(
            cancellation,
            transaction_method=data["transaction_method"],
            payment_date=data.get("payment_date"),
            reference=data["reference"],
        )
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="convert_credit_to_refund",
        summary="Convert credit note to cash refund",
        request=ConvertCreditSerializer,
        responses={201: PaymentSerializer},
        tags=["Ledger - Cancellations"],
    )
    @action(detail=True, methods=["post"], url_path="convert-credit")
    def convert_credit(self, request, pk=None):
        cancellation = self.get_object()
        serializer = ConvertCreditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payment = CancellationService.convert_credit_to_refund(
            cancellation,
            transaction_method=data["transaction_method"],
            payment_date=data.get("payment_date"),
            reference=data["reference"],
            expected_version=data["expected_version"],
        )
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


# =============================================================================
# Settlements
# =============================================================================


class SettleActionMixin:
    """Adds POST {id}/settle/ to a read-only payable viewset."""

    def _settle(self, request, settle):
        target = self.get_object()
        serializer = SettleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        settlement = settle(
            target,
            amount=data["amount"],
            transaction_method=data["transaction_method"],
            settlement_date=data.get("settlement_date"),
            expected_version=data["expected_version"],
        )
        return Response(SettlementSerializer(settlement).data, status=status.HTTP_201_CREATED)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_customer_payables",
        summary="List customer payables",
        tags=["Ledger - Payables"],
    ),
    retrieve=extend_schema(
        operation_id="get_customer_payable",
        summary="Get customer payable",
        tags=["Ledger - Payables"],
    ),
)
class CustomerPayableViewSet(SettleActionMixin, viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = CustomerPayableSerializer
    queryset = CustomerPayable.objects.prefetch_related("settlements")

    @extend_schema(
        operation_id="settle_customer_payable",
        summary="Settle customer payable",
        request=SettleSerializer,
        responses={
            201: SettlementSerializer,
            422: OpenApiResponse(description="Amount exceeds the pending amount"),
        },
        tags=["Ledger - Payables"],
    )
    @action(detail=True, methods=["post"])
    def settle(self, request, pk=None):
        return self._settle(request, SettlementService.settle)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_supplier_payables",
        summary="List supplier payables",
        tags=["Ledger - Payables"],
    ),
    retrieve=extend_schema(
        operation_id="get_supplier_payable",
        summary="Get supplier payable",
        tags=["Ledger - Payables"],
    ),
)
class SupplierPayableViewSet(SettleActionMixin, viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = SupplierPayableSerializer
    queryset = SupplierPayable.objects.prefetch_related("settlements")

    @extend_schema(
        operation_id="settle_supplier_payable",
        summary="Settle supplier payable",
        request=SettleSerializer,
        responses={
            201: SettlementSerializer,
            422: OpenApiResponse(description="Amount exceeds the pending amount"),
        },
        tags=["Ledger - Payables"],
    )
    @action(detail=True, methods=["post"])
    def settle(self, request, pk=None):
        return self._settle(request, SettlementService.settle)


@extend_schema_view(
    retrieve=extend_schema(
        operation_id="get_cost_item",
        summary="Get cost item",
        tags=["Ledger - Payables"],
    ),
)
class CostItemViewSet(SettleActionMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = CostItemSerializer
    queryset = CostItem.objects.all()

    @extend_schema(
        operation_id="settle_cost_item",
        summary="Pay supplier for a cost item",
        request=SettleSerializer,
        responses={201: SettlementSerializer},
        tags=["Ledger - Payables"],
    )
    @action(detail=True, methods=["post"])
    def settle(self, request, pk=None):
        return self._settle(request, SettlementService.settle_cost_item)


# =============================================================================
# Amendments & Commissions
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_amendments",
        summary="List amendments",
        tags=["Ledger - Amendments"],
    ),
    retrieve=extend_schema(
        operation_id="get_amendment",
        summary="Get amendment",
        tags=["Ledger - Amendments"],
    ),
)
class AmendmentViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = AmendmentSerializer
    queryset = Amendment.objects.all()

    @extend_schema(
        operation_id="reverse_amendment",
        summary="Reverse amendment",
        request=VersionedActionSerializer,
        responses={
            200: AmendmentSerializer,
            409: OpenApiResponse(description="Amendment already reversed or stale booking version"),
        },
        tags=["Ledger - Amendments"],
    )
    @action(detail=True, methods=["post"])
    def reverse(self, request, pk=None):
        serializer = VersionedActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        amendment = AmendmentService.reverse(
            self.get_object(),
            actor=request.user,
            expected_version=serializer.validated_data["expected_version"],
        )
        return Response(AmendmentSerializer(amendment).data)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_commissions",
        summary="List commission entries",
        parameters=[
            OpenApiParameter("month", OpenApiTypes.STR, description="Commission month (YYYY-MM)"),
            OpenApiParameter("agent", OpenApiTypes.INT, description="Agent id (staff only)"),
        ],
        tags=["Ledger - Commissions"],
    ),
)
class CommissionEntryViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    Agent commission ledger.

    Agents see their own entries; staff may pass ?agent= to see anyone's.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = CommissionEntrySerializer

    def _agent(self):
        agent_id = self.request.query_params.get("agent")
        if agent_id and self.request.user.is_staff:
            return get_object_or_404(User, pk=agent_id)
        return self.request.user

    def get_queryset(self):
        queryset = CommissionEntry.objects.select_related("booking")
        if self.action == "list":
            queryset = queryset.filter(agent=self._agent())
            month = _month_param(self.request)
            if month:
                queryset = queryset.filter(commission_month=month)
        elif not self.request.user.is_staff:
            queryset = queryset.filter(agent=self.request.user)
        return queryset

    @extend_schema(
        operation_id="get_commission_summary",
        summary="Commission total for a month",
        parameters=[
            OpenApiParameter("month", OpenApiTypes.STR, required=True, description="YYYY-MM"),
            OpenApiParameter("agent", OpenApiTypes.INT, description="Agent id (staff only)"),
        ],
        responses={200: CommissionSummarySerializer},
        tags=["Ledger - Commissions"],
    )
    @action(detail=False, methods=["get"])
    def summary(self, request):
        month = _month_param(request)
        if month is None:
            raise ValidationError(
                "month is required",
                error_code="REQUIRED_FIELDS_MISSING",
                details={"month": ["This field is required."]},
            )
        summary = CommissionService.agent_commissions(self._agent(), month)
        return Response(CommissionSummarySerializer(summary).data)

    @extend_schema(
        operation_id="update_commission_month",
        summary="Move commission entry to another month",
        request=CommissionMonthSerializer,
        responses={200: CommissionEntrySerializer},
        tags=["Ledger - Commissions"],
    )
    @action(detail=True, methods=["patch"])
    def month(self, request, pk=None):
        entry = self.get_object()
        serializer = CommissionMonthSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        entry = CommissionService.update_commission_month(
            entry.pk,
            serializer.validated_data["commission_month"],
            expected_version=serializer.validated_data["expected_version"],
        )
        return Response(CommissionEntrySerializer(entry).data)
