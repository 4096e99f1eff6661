"""
Settlement engine service.

Records payments against money owed:
- CustomerPayable: the customer settles a cancellation shortfall
- SupplierPayable: the business pays a supplier's cancellation fee
- CostItem: the business pays a supplier for part of a booking's cost

A settlement may never drive the pending amount below zero. Requests up to
0.01 above the pending amount are accepted and settle exactly the pending
amount; anything larger fails with ExceedsPendingError.

Identical requests are not deduplicated. Callers pass the version they read
as expected_version so that the second of two racing settlements fails with
StaleRecordError instead of double spending.

Usage:
    from bookings.services import SettlementService

    settlement = SettlementService.settle(
        payable,
        amount=Decimal("40.00"),
        transaction_method=SettlementMethod.WISE,
        expected_version=payable.version,
    )
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from django.db import transaction
from django.utils import timezone

from bookings.exceptions import ExceedsPendingError
from bookings.locks import check_version
from bookings.models import CostItem, CustomerPayable, Settlement, SupplierPayable
from bookings.money import exceeds, format_money, require_positive
from bookings.state_machines import SettlementMethod
from core.exceptions import ValidationError
from core.services import BaseService

if TYPE_CHECKING:
    from typing import Any

    from bookings.models.payable import Payable

logger = logging.getLogger(__name__)


class SettlementService(BaseService):
    """
    Service class for settling payables and supplier costs.

    All methods are static or class methods - no instance state is
    maintained.
    """

    @staticmethod
    def _validate_method(transaction_method: str) -> None:
        if transaction_method not in SettlementMethod.values:
            raise ValidationError(
                f"Unknown settlement method {transaction_method!r}",
                error_code="SETTLEMENT_METHOD_INVALID",
                details={"transaction_method": [f"Must be one of {SettlementMethod.values}."]},
            )

    @staticmethod
    def _settled_amount(amount: Any, pending: Decimal) -> Decimal:
        """
        Validate a requested amount against what is still pending.

        Raises:
            ValidationError: If amount <= 0
            ExceedsPendingError: If amount is above pending by more than 0.01
        """
        requested = require_positive(amount)
        if exceeds(requested, pending):
            logger.warning(
                f"Rejected settlement of {requested} against pending {pending}",
                extra={"pending_amount": str(pending), "requested_amount": str(requested)},
            )
            raise ExceedsPendingError(
                f"Settlement amount ({format_money(requested)}) exceeds pending "
                f"amount ({format_money(pending)})",
                details={
                    "pending_amount": str(pending),
                    "requested_amount": str(requested),
                },
            )
        return min(requested, pending)

    @classmethod
    def settle(
        cls,
        payable: Payable,
        amount: Any,
        transaction_method: str,
        settlement_date: date | None = None,
        *,
        expected_version: int,
    ) -> Settlement:
        """
        Settle part or all of a customer or supplier payable.

        Args:
            payable: CustomerPayable or SupplierPayable
            amount: Amount paid (> 0, at most pending + 0.01)
            transaction_method: SettlementMethod value
            settlement_date: Defaults to today
            expected_version: Payable version the caller read

        Returns:
            The created Settlement

        Raises:
            ValidationError: If the amount or method is invalid
            ExceedsPendingError: If the amount exceeds the pending amount;
                pending_amount is left unchanged
            StaleRecordError: If the payable version is stale
        """
        cls._validate_method(transaction_method)
        model_class = type(payable)
        if model_class not in (CustomerPayable, SupplierPayable):
            raise ValidationError(
                f"Cannot settle a {model_class.__name__}",
                error_code="PAYABLE_TYPE_INVALID",
            )

        with transaction.atomic():
            payable = check_version(model_class, payable.pk, expected_version)
            settled = cls._settled_amount(amount, payable.pending_amount)

            target = (
                {"customer_payable": payable}
                if model_class is CustomerPayable
                else {"supplier_payable": payable}
            )
            settlement = Settlement.objects.create(
                **target,
                amount=settled,
                transaction_method=transaction_method,
                settlement_date=settlement_date or timezone.localdate(),
            )
            payable.paid_amount += settled
            payable.pending_amount -= settled
            payable.save()

        logger.info(
            f"Settled {settled} on {model_class.__name__} {payable.pk}, "
            f"pending {payable.pending_amount}",
            extra={
                "payable_id": str(payable.pk),
                "settlement_id": str(settlement.pk),
                "transaction_method": transaction_method,
            },
        )
        return settlement

    @classmethod
    def settle_cost_item(
        cls,
        cost_item: CostItem,
        amount: Any,
        transaction_method: str,
        settlement_date: date | None = None,
        *,
        expected_version: int,
    ) -> Settlement:
        """
        Pay a supplier against one of a booking's cost items.

        The pending amount of a cost item is amount - paid_amount; the same
        exceeds-pending rule as payables applies.

        Raises:
            ValidationError: If the amount or method is invalid
            ExceedsPendingError: If the amount exceeds what is unpaid
            StaleRecordError: If the cost item version is stale
        """
        cls._validate_method(transaction_method)

        with transaction.atomic():
            cost_item = check_version(CostItem, cost_item.pk, expected_version)
            settled = cls._settled_amount(amount, cost_item.pending_amount)

            settlement = Settlement.objects.create(
                cost_item=cost_item,
                amount=settled,
                transaction_method=transaction_method,
                settlement_date=settlement_date or timezone.localdate(),
            )
            cost_item.paid_amount += settled
            cost_item.save()

        logger.info(
            f"Paid supplier {settled} for {cost_item.category} on booking {cost_item.booking_id}",
            extra={
                "cost_item_id": str(cost_item.pk),
                "settlement_id": str(settlement.pk),
                "supplier": cost_item.supplier,
            },
        )
        return settlement
