"""
Cost of goods sold per order.

Only OFFER and UPSALE lines carry product cost. Each contributing line
costs unit_cogs + shipping_cost + handling_fee from its cost-table row.

Two policies for SKUs the cost table does not know:
    STRICT         - the line contributes 0
    REVENUE_SHARE  - an order whose contributing lines are all missing from
                     the table is costed at usd_amount * ratio (0.30 by
                     default); an order with no contributing line costs 0
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from adprofit.config import config
from adprofit.exceptions import Degradation
from adprofit.models import Order, ProductType, SKUCost
from adprofit.observability import get_logger

logger = get_logger(__name__)


class CogsPolicy(str, Enum):
    """What an unresolved SKU costs."""
    STRICT = "strict"
    REVENUE_SHARE = "revenue_share"


CostTable = Dict[str, float]


def build_cost_table(sku_costs: Iterable[SKUCost], eur_to_usd_rate: float = 1.0) -> CostTable:
    """
    Map normalized SKU -> USD cost per contributing line.

    EUR rows are converted here, once. Later rows win on duplicate SKUs.
    """
    table: CostTable = {}
    for row in sku_costs:
        if not row.sku:
            continue
        factor = eur_to_usd_rate if row.currency == "EUR" else 1.0
        table[row.sku] = max(0.0, row.per_item_cost * factor)
    return table


def _contributes(product_type: ProductType) -> bool:
    return product_type.value in config.pipeline.cogs_product_types


@dataclass
class OrderCogs:
    """COGS of one order plus the SKUs that could not be costed."""
    order_id: str
    cogs: float = 0.0
    matched_lines: int = 0
    unresolved_skus: List[str] = field(default_factory=list)
    used_fallback: bool = False


def order_cogs(
    order: Order,
    cost_table: CostTable,
    policy: CogsPolicy = CogsPolicy.STRICT,
    fallback_ratio: Optional[float] = None,
) -> OrderCogs:
    """Cost one order under the given policy. Never negative, never raises."""
    policy = CogsPolicy(policy)
    result = OrderCogs(order_id=order.order_id)
    for item in order.items:
        if not _contributes(item.product_type):
            continue
        cost = cost_table.get(item.cost_key)
        if cost is None:
            result.unresolved_skus.append(item.cost_key or "-")
            continue
        result.cogs += cost
        result.matched_lines += 1

    if policy is CogsPolicy.REVENUE_SHARE and result.unresolved_skus and result.matched_lines == 0:
        ratio = config.pipeline.revenue_share_cogs_ratio if fallback_ratio is None else fallback_ratio
        result.cogs = max(0.0, order.usd_amount * ratio)
        result.used_fallback = True

    return result


@dataclass
class CogsSummary:
    """Batch COGS totals."""
    total: float = 0.0
    order_count: int = 0
    per_order: List[OrderCogs] = field(default_factory=list)
    unresolved_skus: List[str] = field(default_factory=list)
    fallback_orders: int = 0

    @property
    def average(self) -> float:
        return self.total / self.order_count if self.order_count else 0.0

    def to_dict(self) -> Dict[str, object]:
        return {
            "totalCogs": round(self.total, 2),
            "averageCogs": round(self.average, 2),
            "orderCount": self.order_count,
            "unresolvedSkus": list(self.unresolved_skus),
            "fallbackOrders": self.fallback_orders,
        }


def calculate_cogs(
    orders: Sequence[Order],
    sku_costs: Iterable[SKUCost],
    policy: CogsPolicy = CogsPolicy.STRICT,
    eur_to_usd_rate: float = 1.0,
    fallback_ratio: Optional[float] = None,
) -> CogsSummary:
    """
    COGS over a batch of orders.

    Args:
        orders: Normalized orders
        sku_costs: Cost table rows
        policy: Treatment of unresolved SKUs
        eur_to_usd_rate: Applied to EUR-denominated cost rows
        fallback_ratio: Override for the REVENUE_SHARE ratio

    Returns:
        CogsSummary with total, average and the distinct unresolved SKUs
    """
    policy = CogsPolicy(policy)
    table = build_cost_table(sku_costs, eur_to_usd_rate)
    summary = CogsSummary(order_count=len(orders))
    seen = set()

    for order in orders:
        costed = order_cogs(order, table, policy, fallback_ratio)
        summary.per_order.append(costed)
        summary.total += costed.cogs
        if costed.used_fallback:
            summary.fallback_orders += 1
        for sku in costed.unresolved_skus:
            if sku not in seen:
                seen.add(sku)
                summary.unresolved_skus.append(sku)

    if summary.unresolved_skus:
        logger.warning(
            f"{len(summary.unresolved_skus)} SKUs missing from cost table",
            extra={"degradation": Degradation.UNRESOLVED_SKU.value,
                   "policy": policy.value,
                   "skus": summary.unresolved_skus[:20]},
        )

    return summary
