"""
Tests for ledger decimal arithmetic.

Tests coercion, tolerance comparisons and instalment distribution in
bookings.money. No database access.
"""

from datetime import date
from decimal import Decimal

import pytest

from bookings.money import (
    distribute_equally,
    exceeds,
    first_of_month,
    format_money,
    is_zero,
    money_sum,
    require_non_negative,
    require_positive,
    to_decimal,
    to_money,
    within_tolerance,
)
from core.exceptions import ValidationError


class TestToMoney:
    """Tests for to_decimal and to_money."""

    def test_quantizes_half_up(self):
        """Should round to two decimals, half up."""
        assert to_money("19.995") == Decimal("20.00")
        assert to_money("19.994") == Decimal("19.99")

    def test_float_goes_through_str(self):
        """Should convert floats via their repr, not their binary value."""
        assert to_decimal(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing_amount_rejected(self, value):
        """Should raise AMOUNT_REQUIRED for a missing amount."""
        with pytest.raises(ValidationError) as exc_info:
            to_money(value, "revenue")

        assert exc_info.value.error_code == "AMOUNT_REQUIRED"
        assert exc_info.value.details["field"] == "revenue"

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity"])
    def test_non_numeric_rejected(self, value):
        """Should raise AMOUNT_INVALID for values that are not finite numbers."""
        with pytest.raises(ValidationError) as exc_info:
            to_money(value)

        assert exc_info.value.error_code == "AMOUNT_INVALID"


class TestTolerance:
    """Tests for the 0.01 comparison tolerance."""

    def test_is_zero(self):
        assert is_zero(Decimal("0.00"))
        assert is_zero(Decimal("0.009"))
        assert not is_zero(Decimal("0.01"))
        assert not is_zero(Decimal("-0.01"))

    def test_within_tolerance(self):
        """Should treat amounts one cent apart as equal."""
        assert within_tolerance(Decimal("100.00"), Decimal("100.01"))
        assert not within_tolerance(Decimal("100.00"), Decimal("100.02"))

    def test_exceeds_allows_one_cent_over(self):
        """Should only report amounts more than a cent over the limit."""
        assert not exceeds(Decimal("40.01"), Decimal("40.00"))
        assert exceeds(Decimal("40.02"), Decimal("40.00"))

    def test_money_sum_is_exact(self):
        """Should sum without intermediate rounding."""
        assert money_sum([Decimal("33.333"), Decimal("33.333"), Decimal("33.334")]) == Decimal("100.000")
        assert money_sum([]) == Decimal("0.00")


class TestRequireAmount:
    def test_require_positive_rejects_zero(self):
        """Should raise AMOUNT_NOT_POSITIVE for zero."""
        with pytest.raises(ValidationError) as exc_info:
            require_positive("0.00", "payment amount")

        assert exc_info.value.error_code == "AMOUNT_NOT_POSITIVE"
        assert exc_info.value.details["field"] == "payment amount"

    def test_require_positive_rejects_sub_cent(self):
        """Should reject amounts that round to zero."""
        with pytest.raises(ValidationError):
            require_positive("0.004")

    def test_require_non_negative_allows_zero(self):
        assert require_non_negative("0") == Decimal("0.00")

    def test_require_non_negative_rejects_negative(self):
        with pytest.raises(ValidationError) as exc_info:
            require_non_negative("-5", "admin_fee")

        assert exc_info.value.error_code == "AMOUNT_NEGATIVE"


class TestDistributeEqually:
    """Tests for instalment share distribution."""

    def test_last_share_takes_remainder(self):
        """Should truncate shares and give the remainder to the last one."""
        shares = distribute_equally(Decimal("100.00"), 3)

        assert shares == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
        assert sum(shares) == Decimal("100.00")

    def test_even_split(self):
        assert distribute_equally(Decimal("900.00"), 2) == [Decimal("450.00"), Decimal("450.00")]

    def test_last_share_never_smaller(self):
        """Should never leave the last share below the others."""
        shares = distribute_equally(Decimal("0.05"), 3)

        assert shares == [Decimal("0.01"), Decimal("0.01"), Decimal("0.03")]

    def test_single_instalment(self):
        assert distribute_equally(Decimal("12.34"), 1) == [Decimal("12.34")]

    def test_zero_count_rejected(self):
        """Should raise INSTALMENT_COUNT_INVALID for a count below one."""
        with pytest.raises(ValidationError) as exc_info:
            distribute_equally(Decimal("100.00"), 0)

        assert exc_info.value.error_code == "INSTALMENT_COUNT_INVALID"

    def test_share_below_one_cent_rejected(self):
        """Should refuse a split that would give an instalment nothing."""
        with pytest.raises(ValidationError) as exc_info:
            distribute_equally(Decimal("0.02"), 3)

        assert exc_info.value.error_code == "INSTALMENT_SHARE_TOO_SMALL"
        assert exc_info.value.details["count"] == 3


class TestFormatting:
    def test_first_of_month(self):
        assert first_of_month(date(2026, 5, 17)) == date(2026, 5, 1)

    def test_format_money_uses_currency_symbol(self, settings):
        settings.LEDGER_CURRENCY_SYMBOL = "£"

        assert format_money(Decimal("40")) == "£40.00"
        assert format_money(Decimal("-12.5")) == "£-12.50"
