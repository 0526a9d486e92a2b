"""Lenient value coercion for upstream JSON fields.

Every helper returns a safe default instead of raising.
"""
import math
from typing import Any, Optional

MISSING = "-"


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce numbers and numeric strings to float; anything else -> default."""
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
    elif not isinstance(value, (int, float)):
        return default
    try:
        result = float(value)
    except (OverflowError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def to_int(value: Any, default: int = 0) -> int:
    """Coerce to int via to_float (truncating)."""
    number = to_float(value, None)
    if number is None:
        return default
    return int(number)


def to_str(value: Any, default: str = MISSING) -> str:
    """Coerce scalars to a stripped string; empty or non-scalar -> default."""
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return default
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or default


def to_optional_str(value: Any) -> Optional[str]:
    """Like to_str but None for missing values."""
    text = to_str(value, "")
    return text or None


def to_bool(value: Any) -> bool:
    """Truthiness with string awareness ("false", "0", "no" are False)."""
    if isinstance(value, str):
        return value.strip().lower() not in ("", "0", "false", "no", "n", "off")
    return bool(value)


def is_number(value: Any) -> bool:
    """True for finite int/float values (bool excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False
