"""
Grouped breakdowns of orders and ad spend.

Every order lands in exactly one group, and group revenue is summed with
the same rule as the KPI aggregator, so summing any numeric column over
all rows reproduces the matching KPISnapshot total. Rows come back sorted
by revenue (or spend), descending; ties keep first-seen order.
"""
from typing import Callable, Dict, Iterable, List, Sequence

from adprofit.kpi import order_revenue, safe_div
from adprofit.models import (
    AdSpendEntry,
    BreakdownRow,
    DailyPoint,
    Order,
    SpendBreakdownRow,
)

OrderKey = Callable[[Order], str]
SpendKey = Callable[[AdSpendEntry], str]


def _label(value) -> str:
    text = (value or "").strip() if isinstance(value, str) else ""
    return text or "-"


# ─── Order key functions ──────────────────────────────────────────────────────

def by_sku(order: Order) -> str:
    return order.primary_sku


def by_platform(order: Order) -> str:
    """Attributed platform; '-' for unattributed orders."""
    return order.attributed_platform.display_name if order.attributed_platform else "-"


def by_country(order: Order) -> str:
    return _label(order.country)


def by_campaign(order: Order) -> str:
    return _label(order.brand)


def by_traffic_source(order: Order) -> str:
    return _label(order.utm_source)


ORDER_KEYS: Dict[str, OrderKey] = {
    "sku": by_sku,
    "platform": by_platform,
    "country": by_country,
    "campaign": by_campaign,
    "source": by_traffic_source,
}


# ─── Spend key functions ──────────────────────────────────────────────────────

def spend_by_platform(entry: AdSpendEntry) -> str:
    return entry.platform.display_name


def spend_by_campaign(entry: AdSpendEntry) -> str:
    return _label(entry.campaign_name)


SPEND_KEYS: Dict[str, SpendKey] = {
    "platform": spend_by_platform,
    "campaign": spend_by_campaign,
}


def breakdown_orders(orders: Iterable[Order], key: OrderKey) -> List[BreakdownRow]:
    """Group orders by key function into revenue rows."""
    groups: Dict[str, BreakdownRow] = {}
    total = 0.0
    for order in orders:
        name = key(order)
        row = groups.get(name)
        if row is None:
            row = groups[name] = BreakdownRow(key=name)
        revenue = order_revenue(order)
        row.order_count += 1
        row.gross_revenue += revenue
        row.refund_total += order.refund
        row.chargeback_total += order.chargeback
        total += revenue

    rows = list(groups.values())
    for row in rows:
        row.share = safe_div(row.gross_revenue, total) * 100
    # sorted() is stable, so ties keep first-seen order
    return sorted(rows, key=lambda r: r.gross_revenue, reverse=True)


def breakdown_ad_spend(entries: Iterable[AdSpendEntry], key: SpendKey) -> List[SpendBreakdownRow]:
    """Group spend rows by key function."""
    groups: Dict[str, SpendBreakdownRow] = {}
    total = 0.0
    for entry in entries:
        name = key(entry)
        row = groups.get(name)
        if row is None:
            row = groups[name] = SpendBreakdownRow(key=name)
        row.entry_count += 1
        row.spend += entry.spend
        row.clicks += entry.clicks
        row.impressions += entry.impressions
        row.conversions += entry.conversions
        row.revenue += entry.revenue
        total += entry.spend

    rows = list(groups.values())
    for row in rows:
        row.share = safe_div(row.spend, total) * 100
    return sorted(rows, key=lambda r: r.spend, reverse=True)


def breakdown(orders: Sequence[Order], dimension: str) -> List[BreakdownRow]:
    """Order breakdown by dimension name: sku, platform, country, campaign, source."""
    try:
        key = ORDER_KEYS[dimension]
    except KeyError:
        raise ValueError(f"Unknown breakdown dimension: {dimension!r}") from None
    return breakdown_orders(orders, key)


def daily_series(orders: Iterable[Order], entries: Iterable[AdSpendEntry]) -> List[DailyPoint]:
    """Revenue and spend per date, ascending. Undated records are skipped."""
    points: Dict[str, DailyPoint] = {}

    def point(day: str) -> DailyPoint:
        if day not in points:
            points[day] = DailyPoint(date=day)
        return points[day]

    for order in orders:
        day = (order.date or "")[:10]
        if day and day != "-":
            point(day).revenue += order_revenue(order)

    for entry in entries:
        day = (entry.date or "")[:10]
        if day and day != "-":
            point(day).spend += entry.spend

    return [points[day] for day in sorted(points)]
