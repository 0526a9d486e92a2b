"""
Date ranges and dashboard-style record filters.

The KPI aggregator never filters on its own; callers narrow orders and
spend rows to the requested window (and optional brand/sku/country/payment
method/platform) with these helpers before invoking it.
"""
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Optional, Tuple, Union

from adprofit.models import AdSpendEntry, Order, Platform

DateLike = Union[date, datetime, str]


def to_utc_date(value: DateLike) -> Optional[date]:
    """
    Calendar date of a value at UTC.

    Accepts date objects, datetimes (naive treated as UTC) and ISO strings
    ("2026-01-10", "2026-01-10T14:30:00Z"). Unparseable input -> None.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip().replace("Z", "+00:00")
    try:
        return to_utc_date(datetime.fromisoformat(text))
    except ValueError:
        pass
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def days_in_range(start: DateLike, end: DateLike, default: int = 30) -> int:
    """
    Inclusive day count between two UTC dates, minimum 1.

    An end before the start counts as a single day; unparseable bounds give
    `default`.
    """
    start_date = to_utc_date(start)
    end_date = to_utc_date(end)
    if start_date is None or end_date is None:
        return default
    return max(1, max(0, (end_date - start_date).days) + 1)


@dataclass
class DateRange:
    """Inclusive date window with both date objects and string formats."""
    start: date
    end: date

    @classmethod
    def parse(cls, start: DateLike, end: DateLike) -> Optional["DateRange"]:
        """Build from date-like bounds; None if either cannot be parsed."""
        start_date = to_utc_date(start)
        end_date = to_utc_date(end)
        if start_date is None or end_date is None:
            return None
        return cls(start_date, end_date)

    @property
    def start_str(self) -> str:
        """Start date as YYYY-MM-DD string."""
        return self.start.strftime("%Y-%m-%d")

    @property
    def end_str(self) -> str:
        """End date as YYYY-MM-DD string."""
        return self.end.strftime("%Y-%m-%d")

    @property
    def days(self) -> int:
        """Inclusive length in days, minimum 1."""
        return days_in_range(self.start, self.end)

    def contains(self, value: DateLike) -> bool:
        """True if the value's UTC date falls inside the window."""
        day = to_utc_date(value)
        return day is not None and self.start <= day <= self.end

    def as_str_tuple(self) -> Tuple[str, str]:
        """Return as (start, end) tuple of strings."""
        return (self.start_str, self.end_str)


# ═══════════════════════════════════════════════════════════════════════════════
# RECORD FILTERS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ReportFilters:
    """Optional narrowing applied before aggregation."""
    date_range: Optional[DateRange] = None
    brand: Optional[str] = None
    sku: Optional[str] = None
    country: Optional[str] = None
    payment_method: Optional[str] = None
    platform: Optional[str] = None


def _contains(haystack: Any, needle: Optional[str]) -> bool:
    """Case-insensitive substring test; missing values never exclude."""
    if not needle or not haystack or haystack == "-":
        return True
    return needle.lower() in str(haystack).lower()


def _in_window(record_date: str, window: Optional[DateRange]) -> bool:
    # Records without a parseable date are kept
    if window is None or to_utc_date(record_date) is None:
        return True
    return window.contains(record_date)


def filter_orders(orders: Iterable[Order], filters: ReportFilters) -> List[Order]:
    """Orders matching every set filter."""
    result = []
    for order in orders:
        if not _in_window(order.date, filters.date_range):
            continue
        if not _contains(order.brand, filters.brand):
            continue
        if filters.sku and order.skus and not any(_contains(s, filters.sku) for s in order.skus):
            continue
        if not _contains(order.country, filters.country):
            continue
        if (filters.payment_method and order.payment_method != "-"
                and order.payment_method != filters.payment_method):
            continue
        if filters.platform:
            wanted = Platform.parse(filters.platform)
            if order.attributed_platform is not wanted:
                continue
        result.append(order)
    return result


def filter_ad_spend(entries: Iterable[AdSpendEntry], filters: ReportFilters) -> List[AdSpendEntry]:
    """Spend rows inside the window and, if set, on the requested platform."""
    wanted = Platform.parse(filters.platform) if filters.platform else None
    return [
        entry for entry in entries
        if _in_window(entry.date, filters.date_range)
        and (wanted is None or entry.platform is wanted)
    ]
