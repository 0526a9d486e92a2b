"""
Normalization of raw upstream records into canonical Orders and AdSpendEntries.

Each upstream API names the same concept differently (`spend` vs `spent`,
`metadata.id` vs `campaign_id`, ...). Field resolution is therefore driven
by explicit fallback chains: one ordered list of accessors per field and
per platform, evaluated first-match-wins. Chains are plain data so they can
be inspected and tested on their own.

Nothing in this module raises on bad input. Malformed values fall back to
0 / '-' and records that cannot be used at all come back as None.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from adprofit.coercion import (
    MISSING,
    is_number,
    to_bool,
    to_float,
    to_int,
    to_optional_str,
    to_str,
)
from adprofit.config import config
from adprofit.exceptions import Degradation
from adprofit.models import AdSpendEntry, Order, OrderItem, Platform, ProductType
from adprofit.observability import get_logger

logger = get_logger(__name__)

Accessor = Callable[[Dict[str, Any]], Any]
Record = Dict[str, Any]


# ═══════════════════════════════════════════════════════════════════════════════
# FALLBACK CHAINS
# ═══════════════════════════════════════════════════════════════════════════════

def path(*keys: str) -> Accessor:
    """Accessor that walks nested dicts; None when any hop is missing."""
    def access(record: Record) -> Any:
        current: Any = record
        for key in keys:
            if not isinstance(current, dict):
                return None
            current = current.get(key)
        return current

    access.__name__ = ".".join(keys)
    return access


@dataclass(frozen=True)
class FieldChain:
    """
    Ordered accessors for one canonical field.

    kind="number": first value that coerces to a finite number wins.
    kind="text":   first non-empty scalar wins.
    kind="raw":    first value that is not None wins, returned untouched.
    """
    name: str
    accessors: Sequence[Accessor]
    kind: str = "number"
    default: Any = 0.0

    def resolve(self, record: Record) -> Any:
        for accessor in self.accessors:
            value = accessor(record)
            if value is None:
                continue
            if self.kind == "number":
                number = to_float(value, None)
                if number is not None:
                    return number
            elif self.kind == "text":
                text = to_str(value, "")
                if text:
                    return text
            else:
                return value
        return self.default

    @property
    def sources(self) -> List[str]:
        """Accessor names, for debugging and tests."""
        return [getattr(a, "__name__", repr(a)) for a in self.accessors]


def _num(name: str, *paths: Sequence[str], default: Any = 0.0) -> FieldChain:
    return FieldChain(name, [path(*p) for p in paths], "number", default)


def _text(name: str, *paths: Sequence[str], default: Any = MISSING) -> FieldChain:
    return FieldChain(name, [path(*p) for p in paths], "text", default)


OUTBRAIN_CHAINS: Dict[str, FieldChain] = {
    "spend": _num("spend", ("metrics", "spend"), ("metrics", "spent"),
                  ("spend",), ("spent",), ("budget", "amount")),
    "revenue": _num("revenue", ("metrics", "sumValue"), ("metrics", "totalSumValue"),
                    ("revenue",), ("conversions_value",)),
    "campaign_id": _text("campaign_id", ("metadata", "id"), ("campaignId",), ("campaign_id",)),
    "campaign_name": _text("campaign_name", ("metadata", "name"), ("campaignName",),
                           ("campaign_name",)),
    "impressions": _num("impressions", ("metrics", "impressions"), ("impressions",)),
    "clicks": _num("clicks", ("metrics", "clicks"), ("clicks",)),
    "conversions": _num("conversions", ("metrics", "conversions"),
                        ("metrics", "totalConversions"), ("conversions",)),
    "roas": _num("roas", ("metrics", "roas"), ("metrics", "totalRoas"), ("roas",),
                 default=None),
    "date": _text("date", ("date",), ("metadata", "startDate"), ("metadata", "date")),
    "marketer_id": _text("marketer_id", ("marketerId",), ("metadata", "marketerId"),
                         default=None),
    "advertiser_id": _text("advertiser_id", ("advertiserId",), default=None),
    "country": _text("country", ("country",)),
    "device": _text("device", ("device",)),
    "ad_type": _text("ad_type", ("adType",), ("metadata", "creativeFormat")),
}

TABOOLA_CHAINS: Dict[str, FieldChain] = {
    "spend": _num("spend", ("spend",), ("spent",)),
    "revenue": _num("revenue", ("revenue",), ("conversions_value",)),
    "campaign_id": _text("campaign_id", ("campaignId",), ("campaign_id",), ("id",)),
    "campaign_name": _text("campaign_name", ("campaignName",), ("campaign_name",), ("name",)),
    "impressions": _num("impressions", ("impressions",), ("visible_impressions",)),
    "clicks": _num("clicks", ("clicks",)),
    "conversions": _num("conversions", ("conversions",), ("cpa_actions_num",)),
    "roas": _num("roas", ("roas",), default=None),
    "date": _text("date", ("date",)),
    "marketer_id": _text("marketer_id", ("marketerId",), default=None),
    "advertiser_id": _text("advertiser_id", ("advertiserId",), ("advertiser_id",),
                           default=None),
    "country": _text("country", ("country",)),
    "device": _text("device", ("device",)),
    "ad_type": _text("ad_type", ("adType",)),
}

ADUP_CHAINS: Dict[str, FieldChain] = {
    "spend": _num("spend", ("spend",), ("spent",)),
    "revenue": _num("revenue", ("revenue",), ("conversions_value",)),
    "campaign_id": _text("campaign_id", ("campaign_id",), ("campaignId",)),
    "campaign_name": _text("campaign_name", ("campaign_name",), ("campaignName",)),
    "impressions": _num("impressions", ("impressions",), ("visible_impressions",)),
    "clicks": _num("clicks", ("clicks",)),
    "conversions": _num("conversions", ("conversions",), ("cpa_actions_num",)),
    "roas": _num("roas", ("roas",), default=None),
    "date": _text("date", ("date",)),
    "marketer_id": _text("marketer_id", ("marketerId",), default=None),
    "advertiser_id": _text("advertiser_id", ("advertiserId",), default=None),
    "country": _text("country", ("country",)),
    "device": _text("device", ("device",)),
    "ad_type": _text("ad_type", ("adType",)),
}

PLATFORM_CHAINS: Dict[Platform, Dict[str, FieldChain]] = {
    Platform.OUTBRAIN: OUTBRAIN_CHAINS,
    Platform.TABOOLA: TABOOLA_CHAINS,
    Platform.ADUP: ADUP_CHAINS,
}

ORDER_CHAINS: Dict[str, FieldChain] = {
    "order_id": _text("order_id", ("orderId",), ("clientOrderId",)),
    "date": _text("date", ("dateCreated",), ("date",)),
    "total_amount": _num("total_amount", ("totalAmount",), ("price",)),
    "usd_amount": _num("usd_amount", ("usdAmount",), ("totalAmount",), ("price",),
                       default=None),
    "refund": _num("refund", ("refund",)),
    "chargeback": _num("chargeback", ("chargeback",)),
    # Fee schedule is keyed by pay source, so it wins over the display method
    "payment_method": _text("payment_method", ("paySource",), ("paymentMethod",)),
    "country": _text("country", ("country",), ("shipCountry",)),
    "brand": _text("brand", ("brand",), ("campaignName",), ("campaignCategoryName",)),
    "utm_source": _text("utm_source", ("UTMSource",), ("utmSource",), default=None),
    "utm_medium": _text("utm_medium", ("UTMMedium",), ("utmMedium",), default=None),
    "utm_campaign": _text("utm_campaign", ("UTMCampaign",), ("utmCampaign",), default=None),
    "marketer_id": _text("marketer_id", ("marketerId",), default=None),
    "advertiser_id": _text("advertiser_id", ("advertiserId",), default=None),
    "campaign_name": _text("campaign_name", ("campaignName",), default=None),
}

ITEM_CHAINS: Dict[str, FieldChain] = {
    "sku": _text("sku", ("productSku",), ("sku",)),
    "product_type": _text("product_type", ("productType",), default=ProductType.OTHER.value),
    "quantity": _num("quantity", ("quantity",), ("qty",), default=1),
    "price": _num("price", ("price",)),
}


# ═══════════════════════════════════════════════════════════════════════════════
# CURRENCY
# ═══════════════════════════════════════════════════════════════════════════════

def is_eur(record: Record) -> bool:
    """A record is EUR when its currency code or symbol says so."""
    code = record.get("currencyCode")
    symbol = record.get("currencySymbol")
    return (isinstance(code, str) and code.strip().upper() == "EUR") or symbol == "€"


def source_currency(record: Record) -> str:
    """Currency label the record arrived in (amounts are converted to USD)."""
    if is_eur(record):
        return "EUR"
    return to_str(record.get("currencyCode") or record.get("currency"), "USD").upper()


def effective_rate(eur_to_usd_rate: Any) -> float:
    """The supplied rate if usable, else the configured fallback."""
    if is_number(eur_to_usd_rate) and eur_to_usd_rate > 0:
        return float(eur_to_usd_rate)
    logger.warning(
        "EUR->USD rate unusable, using fallback",
        extra={"degradation": Degradation.MISSING_RATE.value,
               "supplied": repr(eur_to_usd_rate),
               "fallback": config.fx.fallback_rate},
    )
    return config.fx.fallback_rate


def _factor(record: Record, rate: float) -> float:
    return rate if is_eur(record) else 1.0


# ═══════════════════════════════════════════════════════════════════════════════
# AD SPEND
# ═══════════════════════════════════════════════════════════════════════════════

def normalize_ad_spend(
    record: Any,
    platform: Union[Platform, str],
    eur_to_usd_rate: float,
) -> Optional[AdSpendEntry]:
    """
    Convert one raw ad-network row into an AdSpendEntry.

    Returns None for non-dict rows or unknown platform tags.
    """
    tag = platform if isinstance(platform, Platform) else Platform.parse(platform)
    if tag is None or not isinstance(record, dict):
        logger.debug(
            "Skipping unusable ad spend row",
            extra={"degradation": Degradation.MALFORMED_RECORD.value,
                   "platform": str(platform)},
        )
        return None

    chains = PLATFORM_CHAINS[tag]
    factor = _factor(record, effective_rate(eur_to_usd_rate))

    def get(name: str) -> Any:
        return chains[name].resolve(record)

    roas = get("roas")
    return AdSpendEntry(
        platform=tag,
        campaign_id=get("campaign_id"),
        campaign_name=get("campaign_name"),
        date=get("date"),
        spend=max(0.0, get("spend")) * factor,
        currency=source_currency(record),
        clicks=to_int(get("clicks")),
        impressions=to_int(get("impressions")),
        conversions=get("conversions"),
        revenue=get("revenue") * factor,
        roas=roas,
        marketer_id=get("marketer_id"),
        advertiser_id=get("advertiser_id"),
        country=get("country"),
        device=get("device"),
        ad_type=get("ad_type"),
    )


def unwrap_rows(payload: Any) -> List[Any]:
    """Accept a bare list or a {results|data: [...]} envelope."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("results", "data"):
            rows = payload.get(key)
            if isinstance(rows, list):
                return rows
    return []


def normalize_ad_spend_batch(
    payload: Any,
    platform: Union[Platform, str],
    eur_to_usd_rate: float,
) -> List[AdSpendEntry]:
    """Normalize a platform payload, dropping unusable rows."""
    rate = effective_rate(eur_to_usd_rate)
    entries = []
    for row in unwrap_rows(payload):
        entry = normalize_ad_spend(row, platform, rate)
        if entry is not None:
            entries.append(entry)
    return entries


# ═══════════════════════════════════════════════════════════════════════════════
# ORDERS
# ═══════════════════════════════════════════════════════════════════════════════

def _raw_items(record: Record) -> List[Record]:
    items = record.get("items")
    if isinstance(items, dict):
        items = list(items.values())
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def normalize_item(record: Record, factor: float = 1.0) -> OrderItem:
    """Convert one raw line item."""
    return OrderItem(
        sku=ITEM_CHAINS["sku"].resolve(record),
        product_type=ProductType.parse(ITEM_CHAINS["product_type"].resolve(record)),
        quantity=to_int(ITEM_CHAINS["quantity"].resolve(record), 1),
        price=ITEM_CHAINS["price"].resolve(record) * factor,
    )


def is_reportable_order(record: Any) -> bool:
    """COMPLETE orders with non-zero quantity; test and partial orders are not."""
    if not isinstance(record, dict):
        return False
    status = to_str(record.get("orderStatus"), "").upper()
    if status != config.pipeline.completed_status:
        return False
    quantity = record.get("quantity")
    if quantity is not None and to_float(quantity, None) == 0:
        return False
    return True


def normalize_order(record: Any, eur_to_usd_rate: float) -> Optional[Order]:
    """
    Convert one raw order into an Order, or None when it is filtered out.

    usd_amount falls back to totalAmount, then price, then the sum of line
    item prices.
    """
    if not is_reportable_order(record):
        return None

    factor = _factor(record, effective_rate(eur_to_usd_rate))
    items = [normalize_item(raw, factor) for raw in _raw_items(record)]

    def get(name: str) -> Any:
        return ORDER_CHAINS[name].resolve(record)

    total_amount = get("total_amount") * factor
    usd_amount = get("usd_amount")
    if usd_amount is None:
        usd_amount = sum(item.price for item in items)
    else:
        usd_amount = usd_amount * factor

    upsell = to_bool(record.get("hasUpsell")) or any(
        item.product_type is ProductType.UPSALE for item in items
    )

    return Order(
        order_id=get("order_id"),
        date=get("date"),
        total_amount=total_amount,
        usd_amount=usd_amount,
        items=items,
        currency=source_currency(record),
        payment_method=get("payment_method"),
        refund=max(0.0, get("refund")) * factor,
        chargeback=max(0.0, get("chargeback")) * factor,
        upsell=upsell,
        country=get("country"),
        brand=get("brand"),
        utm_source=to_optional_str(get("utm_source")),
        utm_medium=to_optional_str(get("utm_medium")),
        utm_campaign=to_optional_str(get("utm_campaign")),
        marketer_id=get("marketer_id"),
        advertiser_id=get("advertiser_id"),
        campaign_name=get("campaign_name"),
    )


def normalize_orders(payload: Any, eur_to_usd_rate: float) -> List[Order]:
    """Normalize an order payload, dropping filtered and malformed records."""
    rate = effective_rate(eur_to_usd_rate)
    rows = unwrap_rows(payload)
    orders = [
        order for order in (normalize_order(row, rate) for row in rows)
        if order is not None
    ]
    dropped = len(rows) - len(orders)
    if dropped:
        logger.debug(f"Dropped {dropped} incomplete or test orders", extra={"kept": len(orders)})
    return orders


def normalize_sources(
    orders_payload: Any,
    ad_payloads: Dict[Union[Platform, str], Any],
    eur_to_usd_rate: float,
) -> Tuple[List[Order], List[AdSpendEntry]]:
    """Normalize the order payload and every platform payload in one go."""
    rate = effective_rate(eur_to_usd_rate)
    orders = normalize_orders(orders_payload, rate)
    ad_spend: List[AdSpendEntry] = []
    for platform, payload in ad_payloads.items():
        ad_spend.extend(normalize_ad_spend_batch(payload, platform, rate))
    return orders, ad_spend
