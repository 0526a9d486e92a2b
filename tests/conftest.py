"""
Pytest configuration and shared fixtures.
"""
import pytest
from typing import Any, Callable, Dict, List

from adprofit.models import (
    AdSpendEntry,
    FixedExpense,
    Order,
    OrderItem,
    PaymentFeeSchedule,
    Platform,
    ProductType,
    SKUCost,
)


# ═══════════════════════════════════════════════════════════════════════════════
# RAW PAYLOADS
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def raw_usd_order() -> Dict[str, Any]:
    """Completed USD order from Checkout Champ."""
    return {
        "orderId": "1001",
        "orderStatus": "COMPLETE",
        "dateCreated": "2026-01-05 10:15:00",
        "totalAmount": 100.00,
        "usdAmount": 100.00,
        "currencyCode": "USD",
        "currencySymbol": "$",
        "paySource": "PAYPAL",
        "paymentMethod": "PayPal Express",
        "country": "US",
        "campaignName": "Brand A Winter",
        "UTMSource": "outbrain",
        "UTMMedium": "cpc",
        "UTMCampaign": "winter-sale",
        "hasUpsell": "false",
        "items": {
            "1": {"productSku": "sku-a", "productType": "OFFER", "price": 80.00, "quantity": 1},
            "2": {"productSku": "SKU-SHIP", "productType": "SHIPPING", "price": 20.00},
        },
    }


@pytest.fixture
def raw_eur_order() -> Dict[str, Any]:
    """Completed EUR order with an upsell line and a partial refund."""
    return {
        "orderId": "1002",
        "orderStatus": "COMPLETE",
        "dateCreated": "2026-01-06 09:00:00",
        "totalAmount": 50.00,
        "usdAmount": 50.00,
        "currencyCode": "EUR",
        "currencySymbol": "€",
        "paySource": "VISA",
        "country": "DE",
        "campaignName": "Brand B Spring Promo",
        "marketerId": "m-1",
        "refund": 5.00,
        "items": [
            {"productSku": "SKU-B", "productType": "OFFER", "price": 40.00},
            {"productSku": "SKU-C", "productType": "UPSALE", "price": 10.00},
        ],
    }


@pytest.fixture
def raw_orders(raw_usd_order, raw_eur_order) -> List[Dict[str, Any]]:
    """Order payload including rows the normalizer must drop."""
    return [
        raw_usd_order,
        raw_eur_order,
        # Partial order (should be excluded)
        {
            "orderId": "1003",
            "orderStatus": "PARTIAL",
            "totalAmount": 70.00,
            "items": [{"productSku": "SKU-A", "productType": "OFFER"}],
        },
        # Zero-quantity test order (should be excluded)
        {
            "orderId": "1004",
            "orderStatus": "COMPLETE",
            "quantity": 0,
            "totalAmount": 0,
        },
        # Not a record at all
        "garbage",
    ]


@pytest.fixture
def raw_outbrain_rows() -> List[Dict[str, Any]]:
    """Outbrain campaign report rows (nested metadata/metrics)."""
    return [
        {
            "date": "2026-01-05",
            "metadata": {"id": "ob-1", "name": "Winter", "marketerId": "m-9"},
            "metrics": {
                "spend": 40.00,
                "clicks": 200,
                "impressions": 10000,
                "conversions": 4,
                "sumValue": 120.00,
                "roas": 3.0,
            },
        },
    ]


@pytest.fixture
def raw_taboola_rows() -> List[Dict[str, Any]]:
    """Taboola campaign summary rows (flat)."""
    return [
        {
            "date": "2026-01-06",
            "campaignId": "tb-1",
            "campaignName": "Spring",
            "spend": "25.50",
            "clicks": 80,
            "impressions": 4000,
            "conversions": 2,
            "revenue": 60.00,
            "marketerId": "m-1",
        },
    ]


@pytest.fixture
def raw_adup_payload() -> Dict[str, Any]:
    """AdUp report wrapped in a results envelope, billed in EUR."""
    return {
        "results": [
            {
                "date": "2026-01-06",
                "campaign_id": "ad-1",
                "campaign_name": "Summer",
                "spend": 10.00,
                "clicks": 20,
                "currencyCode": "EUR",
            },
        ]
    }


@pytest.fixture
def raw_ad_payloads(raw_outbrain_rows, raw_taboola_rows, raw_adup_payload) -> Dict[str, Any]:
    """Spend payloads keyed by platform tag."""
    return {
        "outbrain": raw_outbrain_rows,
        "taboola": raw_taboola_rows,
        "adup": raw_adup_payload,
    }


# ═══════════════════════════════════════════════════════════════════════════════
# CANONICAL RECORDS
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_order() -> Callable[..., Order]:
    """Factory for canonical orders with sensible defaults."""
    def factory(order_id: str = "1", amount: float = 100.0, **kwargs) -> Order:
        kwargs.setdefault("date", "2026-01-05")
        kwargs.setdefault("usd_amount", amount)
        return Order(order_id=order_id, total_amount=amount, **kwargs)
    return factory


@pytest.fixture
def make_entry() -> Callable[..., AdSpendEntry]:
    """Factory for canonical ad spend rows."""
    def factory(platform: Platform = Platform.OUTBRAIN, spend: float = 50.0, **kwargs) -> AdSpendEntry:
        kwargs.setdefault("campaign_id", "c-1")
        kwargs.setdefault("campaign_name", "Winter")
        kwargs.setdefault("date", "2026-01-05")
        return AdSpendEntry(platform=platform, spend=spend, **kwargs)
    return factory


@pytest.fixture
def offer_item() -> Callable[..., OrderItem]:
    """Factory for OFFER line items."""
    def factory(sku: str = "SKU-A", product_type: ProductType = ProductType.OFFER) -> OrderItem:
        return OrderItem(sku=sku, product_type=product_type)
    return factory


@pytest.fixture
def sku_costs() -> List[SKUCost]:
    """Cost table covering SKU-A and SKU-B."""
    return [
        SKUCost(sku="sku-a", unit_cogs=5.0, shipping_cost=2.0),
        SKUCost(sku="SKU-B", unit_cogs=8.0, shipping_cost=1.0, handling_fee=1.0),
    ]


@pytest.fixture
def fixed_expenses() -> List[FixedExpense]:
    """Monthly recurring expenses totalling $3000."""
    return [
        FixedExpense(date="2026-01-01", category="Salaries", amount=2500.0),
        FixedExpense(date="2026-01-01", category="Software", amount=500.0),
    ]


@pytest.fixture
def fee_schedule() -> PaymentFeeSchedule:
    """PayPal at 9%, Visa at 3%."""
    return PaymentFeeSchedule({"paypal": 9, "visa": 3})
