"""
Validation for configuration-table saves and report parameters.

The pipeline tolerates anything; these checks run when a user edits the
SKU cost table, fixed expenses or payment fees, or requests a date range.
All validators raise ValidationError on invalid input.
"""

import math
from datetime import date, datetime
from typing import Any, Dict, Tuple

from adprofit.exceptions import ValidationError
from adprofit.models import FixedExpense, PaymentFeeSchedule, Platform, SKUCost

MAX_RANGE_DAYS = 366
MAX_SKU_LENGTH = 64
MAX_FEE_PERCENT = 100.0


def validate_date_string(
    value: str,
    field: str = "date",
    format: str = "%Y-%m-%d"
) -> date:
    """
    Validate and parse a date string.

    Raises:
        ValidationError: If date is invalid or in wrong format
    """
    if not value:
        raise ValidationError(field, "Date is required", value)

    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)

    try:
        return datetime.strptime(value, format).date()
    except ValueError:
        raise ValidationError(
            field,
            f"Invalid date format. Expected {format}",
            value
        )


def validate_date_range(
    start_date: str,
    end_date: str,
    max_days: int = MAX_RANGE_DAYS
) -> Tuple[date, date]:
    """
    Validate an inclusive reporting window.

    Raises:
        ValidationError: If dates are invalid or range is too large
    """
    start = validate_date_string(start_date, "start_date")
    end = validate_date_string(end_date, "end_date")

    if start > end:
        raise ValidationError(
            "date_range",
            "Start date must be before or equal to end date",
            f"{start_date} to {end_date}"
        )

    days_diff = (end - start).days
    if days_diff > max_days:
        raise ValidationError(
            "date_range",
            f"Date range cannot exceed {max_days} days",
            f"{days_diff} days"
        )

    return start, end


def _number(value: Any, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field, "Must be a number", value)
    try:
        number = float(value)
    except OverflowError:
        raise ValidationError(field, "Must be finite", value)
    if not math.isfinite(number):
        raise ValidationError(field, "Must be finite", value)
    return number


def validate_amount(value: Any, field: str = "amount") -> float:
    """Non-negative finite money amount."""
    number = _number(value, field)
    if number < 0:
        raise ValidationError(field, "Cannot be negative", value)
    return number


def validate_rate(value: Any, field: str = "eur_to_usd_rate") -> float:
    """Positive finite exchange rate."""
    number = _number(value, field)
    if number <= 0:
        raise ValidationError(field, "Must be greater than 0", value)
    return number


def validate_fee_percentage(value: Any, field: str = "percentage") -> float:
    """Fee percentage between 0 and 100."""
    number = _number(value, field)
    if not 0 <= number <= MAX_FEE_PERCENT:
        raise ValidationError(field, f"Must be between 0 and {MAX_FEE_PERCENT:g}", value)
    return number


def validate_sku(value: Any, field: str = "sku") -> str:
    """Non-empty SKU, returned in cost-table form (trimmed, upper-case)."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "SKU is required", value)
    sku = value.strip().upper()
    if len(sku) > MAX_SKU_LENGTH:
        raise ValidationError(field, f"Cannot exceed {MAX_SKU_LENGTH} characters", value)
    return sku


def validate_platform(value: Any, field: str = "platform") -> Platform:
    """One of the known ad platforms (case-insensitive)."""
    platform = Platform.parse(value)
    if platform is None:
        raise ValidationError(
            field,
            f"Must be one of {sorted(p.value for p in Platform)}",
            value
        )
    return platform


def validate_sku_cost(data: Dict[str, Any]) -> SKUCost:
    """Validate one cost-table row before it is saved."""
    currency = data.get("currency", "USD")
    if currency not in ("USD", "EUR"):
        raise ValidationError("currency", "Must be USD or EUR", currency)
    return SKUCost(
        sku=validate_sku(data.get("sku")),
        unit_cogs=validate_amount(data.get("unitCogs", 0), "unitCogs"),
        shipping_cost=validate_amount(data.get("shippingCost", 0), "shippingCost"),
        handling_fee=validate_amount(data.get("handlingFee", 0), "handlingFee"),
        currency=currency,
    )


def validate_fixed_expense(data: Dict[str, Any]) -> FixedExpense:
    """Validate one monthly expense before it is saved."""
    category = data.get("category")
    if not isinstance(category, str) or not category.strip():
        raise ValidationError("category", "Category is required", category)
    expense_date = validate_date_string(data.get("date"), "date")
    return FixedExpense(
        date=expense_date.isoformat(),
        category=category.strip(),
        amount=validate_amount(data.get("amount"), "amount"),
    )


def validate_fee_schedule(
    fees: Dict[str, Any],
    field: str = "fees"
) -> PaymentFeeSchedule:
    """Validate a {payment method: percentage} map."""
    if not isinstance(fees, dict):
        raise ValidationError(field, "Must be a mapping", fees)
    checked = {}
    for method, percent in fees.items():
        if not isinstance(method, str) or not method.strip():
            raise ValidationError(field, "Payment method names must be non-empty", method)
        checked[method] = validate_fee_percentage(percent, f"{field}.{method.strip().lower()}")
    return PaymentFeeSchedule(checked)
