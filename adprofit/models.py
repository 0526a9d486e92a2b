"""
Domain models for orders, ad spend and the KPI outputs.

These dataclasses are the canonical records every pipeline stage
exchanges. All monetary fields are USD by the time a record exists.
`to_dict()` produces the camelCase JSON shape the dashboard consumes.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any, Iterable

from adprofit.coercion import to_float, to_str


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class Platform(str, Enum):
    """Advertising networks we pull spend from."""
    OUTBRAIN = "outbrain"
    TABOOLA = "taboola"
    ADUP = "adup"

    @classmethod
    def parse(cls, value: Any) -> Optional["Platform"]:
        """Case-insensitive lookup; None for unknown values."""
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

    @property
    def display_name(self) -> str:
        """Human-readable platform name."""
        names = {
            self.OUTBRAIN: "Outbrain",
            self.TABOOLA: "Taboola",
            self.ADUP: "AdUp",
        }
        return names[self]

    @property
    def color(self) -> str:
        """Chart color for this platform."""
        colors = {
            self.OUTBRAIN: "#8884d8",
            self.TABOOLA: "#82ca9d",
            self.ADUP: "#ffc658",
        }
        return colors[self]


class ProductType(str, Enum):
    """Line-item types from the order platform."""
    OFFER = "OFFER"
    UPSALE = "UPSALE"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: Any) -> "ProductType":
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        return cls.OTHER


def normalize_sku(value: Any) -> str:
    """Cost-table key: trimmed, upper-cased SKU ('' when missing)."""
    return to_str(value, "").upper()


# ═══════════════════════════════════════════════════════════════════════════════
# CANONICAL RECORDS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class OrderItem:
    """Product line within an order."""
    sku: str
    product_type: ProductType = ProductType.OTHER
    quantity: int = 1
    price: float = 0.0

    @property
    def cost_key(self) -> str:
        return normalize_sku(self.sku)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sku": self.sku,
            "productType": self.product_type.value,
            "quantity": self.quantity,
            "price": self.price,
        }


@dataclass
class Order:
    """Completed order, converted to USD."""
    order_id: str
    date: str
    total_amount: float
    usd_amount: float
    items: List[OrderItem] = field(default_factory=list)
    currency: str = "USD"
    payment_method: str = "-"
    refund: float = 0.0
    chargeback: float = 0.0
    upsell: bool = False
    country: str = "-"
    brand: str = "-"
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    marketer_id: Optional[str] = None
    advertiser_id: Optional[str] = None
    campaign_name: Optional[str] = None

    # Set by attribution
    attributed_platform: Optional[Platform] = None
    attributed_spend: Optional[float] = None
    roas: Optional[float] = None

    @property
    def skus(self) -> List[str]:
        """SKUs of all line items, in order."""
        return [item.sku for item in self.items if item.sku and item.sku != "-"]

    @property
    def primary_sku(self) -> str:
        """First OFFER SKU, else first SKU, else '-'."""
        for item in self.items:
            if item.product_type is ProductType.OFFER and item.sku != "-":
                return item.sku
        skus = self.skus
        return skus[0] if skus else "-"

    @property
    def quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_attributed(self) -> bool:
        return self.attributed_platform is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "orderId": self.order_id,
            "date": self.date,
            "items": [item.to_dict() for item in self.items],
            "totalAmountNative": self.total_amount,
            "usdAmount": self.usd_amount,
            "currency": self.currency,
            "paymentMethod": self.payment_method,
            "refund": self.refund,
            "chargeback": self.chargeback,
            "upsell": self.upsell,
            "country": self.country,
            "brand": self.brand,
            "utmSource": self.utm_source,
            "utmMedium": self.utm_medium,
            "utmCampaign": self.utm_campaign,
            "marketerId": self.marketer_id,
            "advertiserId": self.advertiser_id,
            "campaignName": self.campaign_name,
            "attributedPlatform": (
                self.attributed_platform.value if self.attributed_platform else None
            ),
            "attributedSpend": self.attributed_spend,
            "roas": self.roas,
        }


@dataclass
class AdSpendEntry:
    """One reporting row from an ad network, converted to USD."""
    platform: Platform
    campaign_id: str
    campaign_name: str
    date: str
    spend: float
    currency: str = "USD"
    clicks: int = 0
    impressions: int = 0
    conversions: float = 0.0
    revenue: float = 0.0
    roas: Optional[float] = None
    marketer_id: Optional[str] = None
    advertiser_id: Optional[str] = None
    country: str = "-"
    device: str = "-"
    ad_type: str = "-"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "platform": self.platform.value,
            "campaignId": self.campaign_id,
            "campaignName": self.campaign_name,
            "date": self.date,
            "spend": self.spend,
            "currency": self.currency,
            "clicks": self.clicks,
            "impressions": self.impressions,
            "conversions": self.conversions,
            "revenue": self.revenue,
            "roas": self.roas,
            "marketerId": self.marketer_id,
            "advertiserId": self.advertiser_id,
            "country": self.country,
            "device": self.device,
            "adType": self.ad_type,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURATION TABLES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SKUCost:
    """Per-unit cost row from the user-maintained cost table."""
    sku: str
    unit_cogs: float = 0.0
    shipping_cost: float = 0.0
    handling_fee: float = 0.0
    currency: str = "USD"

    def __post_init__(self):
        object.__setattr__(self, "sku", normalize_sku(self.sku))

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "SKUCost":
        """Create from a cost-products row (productSku / productCost naming)."""
        return cls(
            sku=data.get("sku") or data.get("productSku"),
            unit_cogs=max(0.0, to_float(data.get("unitCogs", data.get("productCost")))),
            shipping_cost=max(0.0, to_float(data.get("shippingCost"))),
            handling_fee=max(0.0, to_float(data.get("handlingFee"))),
            currency=to_str(data.get("currency"), "USD").upper(),
        )

    @property
    def per_item_cost(self) -> float:
        """unit + shipping + handling, in the row's own currency."""
        return self.unit_cogs + self.shipping_cost + self.handling_fee


@dataclass(frozen=True)
class FixedExpense:
    """Monthly recurring operating expense."""
    date: str
    category: str
    amount: float

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "FixedExpense":
        return cls(
            date=to_str(data.get("date")),
            category=to_str(data.get("category")),
            amount=to_float(data.get("amount", data.get("value"))),
        )


@dataclass(frozen=True)
class PaymentFeeSchedule:
    """Fee percentage per payment method (keys are lower-cased)."""
    fees: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        normalized = {
            str(method).strip().lower(): to_float(percent)
            for method, percent in self.fees.items()
            if str(method).strip()
        }
        object.__setattr__(self, "fees", normalized)

    @classmethod
    def from_rows(cls, rows: Iterable[Dict[str, Any]]) -> "PaymentFeeSchedule":
        """Build from stored rows of {paySource, percentage}."""
        return cls({
            row.get("paySource", ""): row.get("percentage")
            for row in rows
            if row.get("paySource")
        })

    def fee_percent(self, payment_method: Optional[str]) -> float:
        """Exact lower-cased match, then first key contained in the method, else 0."""
        method = (payment_method or "").strip().lower()
        if not method:
            return 0.0
        if method in self.fees:
            return self.fees[method]
        for key, percent in self.fees.items():
            if key in method:
                return percent
        return 0.0


# ═══════════════════════════════════════════════════════════════════════════════
# RESULTS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class KPISnapshot:
    """Financial KPIs for one date range."""
    gross_revenue: float = 0.0
    gross_revenue_usd: float = 0.0
    net_revenue_after_fees: float = 0.0
    net_revenue_after_returns: float = 0.0
    refund_total: float = 0.0
    chargeback_total: float = 0.0
    refund_rate: float = 0.0
    chargeback_rate: float = 0.0
    cogs: float = 0.0
    average_cogs: float = 0.0
    marketing_spend: float = 0.0
    opex: float = 0.0
    payment_fees: float = 0.0
    net_profit: float = 0.0
    roas: float = 0.0
    aov: float = 0.0
    cost_per_customer: float = 0.0
    upsell_rate: float = 0.0
    total_orders: int = 0
    unique_customers: int = 0
    days_in_range: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "grossRevenue": round(self.gross_revenue, 2),
            "grossRevenueUsd": round(self.gross_revenue_usd, 2),
            "netRevenueAfterFees": round(self.net_revenue_after_fees, 2),
            "netRevenueAfterReturns": round(self.net_revenue_after_returns, 2),
            "refundTotal": round(self.refund_total, 2),
            "chargebackTotal": round(self.chargeback_total, 2),
            "refundRate": round(self.refund_rate, 2),
            "chargebackRate": round(self.chargeback_rate, 2),
            "cogs": round(self.cogs, 2),
            "averageCogs": round(self.average_cogs, 2),
            "marketingSpend": round(self.marketing_spend, 2),
            "opex": round(self.opex, 2),
            "paymentFees": round(self.payment_fees, 2),
            "netProfit": round(self.net_profit, 2),
            "roas": round(self.roas, 2),
            "aov": round(self.aov, 2),
            "costPerCustomer": round(self.cost_per_customer, 2),
            "upsellRate": round(self.upsell_rate, 1),
            "totalOrders": self.total_orders,
            "uniqueCustomers": self.unique_customers,
            "daysInRange": self.days_in_range,
        }


@dataclass
class BreakdownRow:
    """Orders grouped under one key."""
    key: str
    order_count: int = 0
    gross_revenue: float = 0.0
    refund_total: float = 0.0
    chargeback_total: float = 0.0
    share: float = 0.0

    @property
    def net_revenue(self) -> float:
        return self.gross_revenue - self.refund_total - self.chargeback_total

    @property
    def aov(self) -> float:
        return self.gross_revenue / self.order_count if self.order_count else 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "key": self.key,
            "orderCount": self.order_count,
            "grossRevenue": round(self.gross_revenue, 2),
            "refundTotal": round(self.refund_total, 2),
            "chargebackTotal": round(self.chargeback_total, 2),
            "netRevenue": round(self.net_revenue, 2),
            "share": round(self.share, 1),
            "aov": round(self.aov, 2),
        }


@dataclass
class SpendBreakdownRow:
    """Ad-spend rows grouped under one key."""
    key: str
    entry_count: int = 0
    spend: float = 0.0
    clicks: int = 0
    impressions: int = 0
    conversions: float = 0.0
    revenue: float = 0.0
    share: float = 0.0

    @property
    def roas(self) -> float:
        return self.revenue / self.spend if self.spend > 0 else 0.0

    @property
    def cpc(self) -> float:
        return self.spend / self.clicks if self.clicks > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "key": self.key,
            "entryCount": self.entry_count,
            "spend": round(self.spend, 2),
            "clicks": self.clicks,
            "impressions": self.impressions,
            "conversions": self.conversions,
            "revenue": round(self.revenue, 2),
            "share": round(self.share, 1),
            "roas": round(self.roas, 2),
            "cpc": round(self.cpc, 2),
        }


@dataclass
class DailyPoint:
    """Revenue and spend for one calendar day."""
    date: str
    revenue: float = 0.0
    spend: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "revenue": round(self.revenue, 2),
            "spend": round(self.spend, 2),
        }
