"""
Decimal arithmetic and rounding policy for ledger amounts.

Every amount that crosses the engine boundary goes through this module.
Amounts are ``decimal.Decimal`` with two decimal places; floats are never
used for money.

Functions:
    to_money: Coerce and quantize a value to two decimal places
    money_sum: Sum amounts without intermediate rounding
    is_zero: Tolerance-aware zero check
    within_tolerance: Tolerance-aware equality
    exceeds: Tolerance-aware "greater than"
    distribute_equally: Split a balance into instalment shares
    first_of_month: Normalize a date to its accounting/commission month
    format_money: Human-readable amount for error messages

Usage:
    from bookings.money import to_money, distribute_equally

    amount = to_money("19.999")  # Decimal("20.00")
    shares = distribute_equally(Decimal("100.00"), 3)
    # [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING

from django.conf import settings

from core.exceptions import ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Tolerance used when comparing amounts that went through rounding
EPSILON = Decimal("0.01")


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """
    Coerce a value to Decimal without rounding.

    Floats are converted through ``str()`` so ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary approximation.

    Raises:
        ValidationError: If value is missing or not numeric
    """
    if value is None or value == "":
        raise ValidationError(
            f"{field} is required",
            error_code="AMOUNT_REQUIRED",
            details={"field": field},
        )
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(
                f"{field} must be a decimal number",
                error_code="AMOUNT_INVALID",
                details={"field": field, "value": str(value)},
            ) from exc
    if not result.is_finite():
        raise ValidationError(
            f"{field} must be a finite number",
            error_code="AMOUNT_INVALID",
            details={"field": field, "value": str(value)},
        )
    return result


def to_money(value: Any, field: str = "amount") -> Decimal:
    """Coerce a value to a Decimal quantized to 0.01 (half up)."""
    return to_decimal(value, field).quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Any]) -> Decimal:
    """Sum amounts exactly, returning Decimal('0.00') for an empty input."""
    total = ZERO
    for value in values:
        total += to_decimal(value)
    return total


def is_zero(value: Decimal) -> bool:
    return abs(value) < EPSILON


def within_tolerance(left: Decimal, right: Decimal) -> bool:
    return abs(left - right) <= EPSILON


def exceeds(amount: Decimal, limit: Decimal) -> bool:
    """True when amount is above limit by more than the tolerance."""
    return amount > limit + EPSILON


def require_positive(value: Any, field: str = "amount") -> Decimal:
    """
    Quantize and require a strictly positive amount.

    Raises:
        ValidationError: If the amount is zero or negative
    """
    amount = to_money(value, field)
    if amount <= ZERO:
        raise ValidationError(
            f"{field} must be greater than zero",
            error_code="AMOUNT_NOT_POSITIVE",
            details={"field": field, "value": str(amount)},
        )
    return amount


def require_non_negative(value: Any, field: str = "amount") -> Decimal:
    """Quantize and require an amount of zero or more."""
    amount = to_money(value, field)
    if amount < ZERO:
        raise ValidationError(
            f"{field} cannot be negative",
            error_code="AMOUNT_NEGATIVE",
            details={"field": field, "value": str(amount)},
        )
    return amount


def distribute_equally(total: Any, count: int) -> list[Decimal]:
    """
    Split an amount into ``count`` instalment shares.

    Each share is the quotient truncated to two decimals; the last share
    takes whatever is left so the shares always sum exactly to ``total``.
    Truncating (rather than rounding half up) guarantees the last share is
    never smaller than the others.

    Args:
        total: Amount to split (non-negative)
        count: Number of instalments (at least 1)

    Returns:
        List of Decimal shares summing exactly to ``total``

    Raises:
        ValidationError: If count < 1, total is negative, or total is
            too small to give every instalment at least 0.01

    Example:
        >>> distribute_equally(Decimal("100.00"), 3)
        [Decimal('33.33'), Decimal('33.33'), Decimal('33.34')]
    """
    if count < 1:
        raise ValidationError(
            "Instalment count must be at least 1",
            error_code="INSTALMENT_COUNT_INVALID",
            details={"count": count},
        )
    amount = require_non_negative(total, "balance")
    if amount < CENT * count:
        raise ValidationError(
            f"{format_money(amount)} cannot be split into {count} instalments",
            error_code="INSTALMENT_SHARE_TOO_SMALL",
            details={"balance": str(amount), "count": count},
        )

    share = (amount / count).quantize(CENT, rounding=ROUND_DOWN)
    shares = [share] * (count - 1)
    shares.append(amount - share * (count - 1))
    return shares


def first_of_month(value: date) -> date:
    return value.replace(day=1)


def format_money(value: Decimal) -> str:
    """Format an amount with the configured currency symbol, e.g. '£40.00'."""
    symbol = getattr(settings, "LEDGER_CURRENCY_SYMBOL", "£")
    return f"{symbol}{to_money(value):.2f}"
