"""
Tests for adprofit.validators module.
"""
import pytest
from datetime import date

from adprofit.exceptions import ValidationError
from adprofit.models import Platform
from adprofit.validators import (
    validate_amount,
    validate_date_range,
    validate_date_string,
    validate_fee_percentage,
    validate_fee_schedule,
    validate_fixed_expense,
    validate_platform,
    validate_rate,
    validate_sku,
    validate_sku_cost,
)


class TestValidateDateString:
    """Tests for validate_date_string function."""

    def test_valid_date(self):
        """Valid date string should return date object."""
        assert validate_date_string("2026-01-15") == date(2026, 1, 15)

    def test_invalid_format(self):
        """Invalid format should raise ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            validate_date_string("15-01-2026")
        assert "Invalid date format" in str(exc_info.value)

    def test_invalid_date(self):
        """Invalid date should raise ValidationError."""
        with pytest.raises(ValidationError):
            validate_date_string("2026-02-30")

    def test_empty_string(self):
        """Empty string should raise ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            validate_date_string("")
        assert "required" in str(exc_info.value).lower()

    def test_non_string(self):
        """Non-string should raise ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            validate_date_string(12345)
        assert "string" in str(exc_info.value).lower()


class TestValidateDateRange:
    """Tests for validate_date_range function."""

    def test_valid_range(self):
        """Valid date range should return tuple of dates."""
        start, end = validate_date_range("2026-01-01", "2026-01-31")
        assert start == date(2026, 1, 1)
        assert end == date(2026, 1, 31)

    def test_start_after_end(self):
        """Start date after end date should raise ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            validate_date_range("2026-01-31", "2026-01-01")
        assert "before or equal" in str(exc_info.value)

    def test_range_too_large(self):
        with pytest.raises(ValidationError):
            validate_date_range("2024-01-01", "2026-01-01")


class TestNumericValidators:
    """Tests for amount, rate and fee percentage validators."""

    def test_amount(self):
        assert validate_amount(0) == 0.0
        assert validate_amount(12) == 12.0

    @pytest.mark.parametrize("value", [-1, "10", None, True, float("nan")])
    def test_amount_rejects(self, value):
        with pytest.raises(ValidationError):
            validate_amount(value)

    def test_amount_rejects_int_beyond_float_range(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_amount(10**400)
        assert "finite" in str(exc_info.value)

    def test_rate_must_be_positive(self):
        assert validate_rate(1.16) == 1.16
        with pytest.raises(ValidationError) as exc_info:
            validate_rate(0)
        assert exc_info.value.field == "eur_to_usd_rate"

    def test_fee_percentage_bounds(self):
        assert validate_fee_percentage(100) == 100.0
        with pytest.raises(ValidationError):
            validate_fee_percentage(100.5)
        with pytest.raises(ValidationError):
            validate_fee_percentage(-0.1)


class TestValidateSku:
    """Tests for SKU validators."""

    def test_normalized(self):
        assert validate_sku("  ab-1 ") == "AB-1"

    def test_required(self):
        with pytest.raises(ValidationError):
            validate_sku("   ")

    def test_too_long(self):
        with pytest.raises(ValidationError):
            validate_sku("X" * 65)

    def test_sku_cost_row(self):
        cost = validate_sku_cost({"sku": "a1", "unitCogs": 5, "shippingCost": 2, "currency": "EUR"})
        assert cost.sku == "A1"
        assert cost.per_item_cost == 7
        assert cost.currency == "EUR"

    def test_sku_cost_bad_currency(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_sku_cost({"sku": "a1", "currency": "GBP"})
        assert exc_info.value.field == "currency"

    def test_sku_cost_negative(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_sku_cost({"sku": "a1", "handlingFee": -1})
        assert exc_info.value.field == "handlingFee"


class TestOtherValidators:
    """Tests for platform, expense and fee schedule validators."""

    def test_platform(self):
        assert validate_platform("AdUp") is Platform.ADUP
        with pytest.raises(ValidationError):
            validate_platform("facebook")

    def test_fixed_expense(self):
        expense = validate_fixed_expense({"date": "2026-01-01", "category": " Rent ", "amount": 900})
        assert expense.category == "Rent"
        assert expense.amount == 900.0

    def test_fixed_expense_missing_category(self):
        with pytest.raises(ValidationError):
            validate_fixed_expense({"date": "2026-01-01", "amount": 900})

    def test_fee_schedule(self):
        schedule = validate_fee_schedule({"PayPal": 9, "visa": 2.5})
        assert schedule.fee_percent("paypal") == 9

    def test_fee_schedule_bad_percent(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_fee_schedule({"PayPal": 150})
        assert exc_info.value.field == "fees.paypal"

