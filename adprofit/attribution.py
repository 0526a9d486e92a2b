"""
Order → ad platform attribution.

Resolution order, first match wins:
    1. utm_source names a known platform: attribute to it directly and take
       the first spend row of that platform as the spend estimate (if any).
    2. The first spend row accepted by the matcher strategy.
    3. Nothing: the order stays unattributed.

Matching depends on the order of the spend rows. Matchers are small
strategy objects so the policy can be swapped without touching the
resolver.
"""
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Sequence

from adprofit.config import config
from adprofit.models import AdSpendEntry, Order, Platform
from adprofit.observability import get_logger

logger = get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# MATCHERS
# ═══════════════════════════════════════════════════════════════════════════════

class Matcher:
    """Decides whether a spend row explains an order."""

    name = "base"

    def matches(self, order: Order, entry: AdSpendEntry) -> bool:
        raise NotImplementedError


class IdentifierMatcher(Matcher):
    """Marketer id or advertiser id equality (both sides must be set)."""

    name = "identifier"

    def matches(self, order: Order, entry: AdSpendEntry) -> bool:
        if order.marketer_id and entry.marketer_id and order.marketer_id == entry.marketer_id:
            return True
        if (order.advertiser_id and entry.advertiser_id
                and order.advertiser_id == entry.advertiser_id):
            return True
        return False


def _campaign_names(order: Order, entry: AdSpendEntry):
    order_name = (order.campaign_name or "").strip().lower()
    entry_name = (entry.campaign_name or "").strip().lower()
    if not order_name or not entry_name or entry_name == "-":
        return None
    return order_name, entry_name


class CampaignSubstringMatcher(Matcher):
    """Order campaign name contains the spend row's campaign name."""

    name = "campaign_substring"

    def matches(self, order: Order, entry: AdSpendEntry) -> bool:
        names = _campaign_names(order, entry)
        return names is not None and names[1] in names[0]


class CampaignExactMatcher(Matcher):
    """Case-insensitive campaign name equality."""

    name = "campaign_exact"

    def matches(self, order: Order, entry: AdSpendEntry) -> bool:
        names = _campaign_names(order, entry)
        return names is not None and names[0] == names[1]


class NeverMatcher(Matcher):
    """Disables step 2 entirely; only utm_source attributes."""

    name = "never"

    def matches(self, order: Order, entry: AdSpendEntry) -> bool:
        return False


class AnyOfMatcher(Matcher):
    """Accepts a row when any wrapped matcher does."""

    def __init__(self, *matchers: Matcher):
        self.matchers = list(matchers)
        self.name = "any_of(" + ",".join(m.name for m in self.matchers) + ")"

    def matches(self, order: Order, entry: AdSpendEntry) -> bool:
        return any(m.matches(order, entry) for m in self.matchers)


def default_matcher() -> Matcher:
    """Identifier match OR campaign-name substring match."""
    return AnyOfMatcher(IdentifierMatcher(), CampaignSubstringMatcher())


# ═══════════════════════════════════════════════════════════════════════════════
# RESOLVER
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Attribution:
    """Outcome of attributing one order."""
    platform: Optional[Platform] = None
    spend: Optional[float] = None
    roas: Optional[float] = None
    method: str = "none"

    @property
    def is_attributed(self) -> bool:
        return self.platform is not None


def _roas(revenue: float, spend: Optional[float]) -> Optional[float]:
    if spend is None or spend <= 0 or not revenue:
        return None
    return revenue / spend


class AttributionResolver:
    """
    Assigns zero or one platform to each order.

    Usage:
        resolver = AttributionResolver()
        attributed = resolver.attribute_orders(orders, ad_spend)
    """

    def __init__(
        self,
        matcher: Optional[Matcher] = None,
        known_platforms: Optional[Sequence[str]] = None,
    ):
        self.matcher = matcher or default_matcher()
        platforms = config.pipeline.known_platforms if known_platforms is None else known_platforms
        self.known_platforms = {
            p for p in (Platform.parse(name) for name in platforms) if p is not None
        }

    def resolve(self, order: Order, ad_spend: Sequence[AdSpendEntry]) -> Attribution:
        """Attribute a single order against the period's spend rows."""
        utm_platform = Platform.parse(order.utm_source)
        if utm_platform in self.known_platforms:
            entry = next((e for e in ad_spend if e.platform is utm_platform), None)
            spend = entry.spend if entry else None
            return Attribution(
                platform=utm_platform,
                spend=spend,
                roas=_roas(order.usd_amount, spend),
                method="utm_source",
            )

        for entry in ad_spend:
            if self.matcher.matches(order, entry):
                return Attribution(
                    platform=entry.platform,
                    spend=entry.spend,
                    roas=_roas(order.usd_amount, entry.spend),
                    method=self.matcher.name,
                )

        return Attribution()

    def attribute_orders(
        self,
        orders: Iterable[Order],
        ad_spend: Sequence[AdSpendEntry],
    ) -> List[Order]:
        """Return copies of the orders with attribution fields filled in."""
        result = []
        for order in orders:
            attribution = self.resolve(order, ad_spend)
            result.append(replace(
                order,
                attributed_platform=attribution.platform,
                attributed_spend=attribution.spend,
                roas=attribution.roas,
            ))
        attributed = sum(1 for o in result if o.is_attributed)
        logger.debug(
            "Attribution complete",
            extra={"orders": len(result), "attributed": attributed, "matcher": self.matcher.name},
        )
        return result


# ═══════════════════════════════════════════════════════════════════════════════
# SUMMARY
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class AttributionSummary:
    """Attributed vs unattributed orders and attributed spend per platform."""
    attributed_orders: int = 0
    unattributed_orders: int = 0
    total_revenue: float = 0.0
    attributed_spend: float = 0.0
    spend_by_platform: Dict[str, float] = field(default_factory=dict)
    orders_by_platform: Dict[str, int] = field(default_factory=dict)

    @property
    def roas(self) -> float:
        """Revenue of all orders over attributed spend."""
        if self.attributed_spend <= 0:
            return 0.0
        return self.total_revenue / self.attributed_spend

    def to_dict(self) -> Dict[str, object]:
        return {
            "attributedOrders": self.attributed_orders,
            "unattributedOrders": self.unattributed_orders,
            "attributedSpend": round(self.attributed_spend, 2),
            "roas": round(self.roas, 2),
            "spendByPlatform": {k: round(v, 2) for k, v in self.spend_by_platform.items()},
            "ordersByPlatform": dict(self.orders_by_platform),
        }


def summarize_attribution(orders: Iterable[Order]) -> AttributionSummary:
    """Summarize already-attributed orders."""
    summary = AttributionSummary()
    for order in orders:
        summary.total_revenue += order.usd_amount
        if not order.is_attributed:
            summary.unattributed_orders += 1
            continue
        name = order.attributed_platform.display_name
        spend = order.attributed_spend or 0.0
        summary.attributed_orders += 1
        summary.attributed_spend += spend
        summary.spend_by_platform[name] = summary.spend_by_platform.get(name, 0.0) + spend
        summary.orders_by_platform[name] = summary.orders_by_platform.get(name, 0) + 1
    return summary
