"""
Tests for adprofit.cogs module.
"""
import pytest

from adprofit.cogs import CogsPolicy, build_cost_table, calculate_cogs, order_cogs
from adprofit.models import OrderItem, ProductType, SKUCost


class TestBuildCostTable:
    """Tests for build_cost_table."""

    def test_keys_normalized(self):
        table = build_cost_table([SKUCost(sku=" a ", unit_cogs=1, shipping_cost=2, handling_fee=3)])
        assert table == {"A": 6}

    def test_eur_rows_converted(self):
        table = build_cost_table([SKUCost(sku="A", unit_cogs=10, currency="EUR")], 1.2)
        assert table["A"] == pytest.approx(12.0)

    def test_later_rows_win(self):
        table = build_cost_table([SKUCost(sku="A", unit_cogs=1), SKUCost(sku="a", unit_cogs=2)])
        assert table["A"] == 2


class TestOrderCogs:
    """Tests for single-order COGS."""

    def test_two_offer_items(self, make_order, offer_item):
        """Two OFFER items at $5 unit + $2 shipping cost $14."""
        order = make_order(items=[offer_item("SKU-A"), offer_item("sku-a")])
        table = build_cost_table([SKUCost(sku="SKU-A", unit_cogs=5, shipping_cost=2)])
        assert order_cogs(order, table).cogs == 14

    def test_non_offer_items_free(self, make_order, offer_item):
        """Lines that are neither OFFER nor UPSALE cost nothing."""
        order = make_order(items=[offer_item("SKU-A", ProductType.OTHER)])
        table = {"SKU-A": 7.0}
        assert order_cogs(order, table).cogs == 0

    def test_upsale_counts(self, make_order, offer_item):
        order = make_order(items=[offer_item("SKU-A", ProductType.UPSALE)])
        assert order_cogs(order, {"SKU-A": 7.0}).cogs == 7

    def test_quantity_not_multiplied(self, make_order):
        order = make_order(items=[OrderItem(sku="A", product_type=ProductType.OFFER, quantity=3)])
        assert order_cogs(order, {"A": 5.0}).cogs == 5

    def test_strict_unresolved(self, make_order, offer_item):
        result = order_cogs(make_order(items=[offer_item("NOPE")]), {})
        assert result.cogs == 0
        assert result.unresolved_skus == ["NOPE"]

    def test_revenue_share_fallback(self, make_order, offer_item):
        """Orders with no matched line cost 30% of usd_amount."""
        order = make_order(amount=200, items=[offer_item("NOPE")])
        result = order_cogs(order, {}, CogsPolicy.REVENUE_SHARE)
        assert result.cogs == pytest.approx(60.0)
        assert result.used_fallback

    def test_revenue_share_partial_match(self, make_order, offer_item):
        """One matched line is enough to skip the fallback."""
        order = make_order(amount=200, items=[offer_item("A"), offer_item("NOPE")])
        result = order_cogs(order, {"A": 5.0}, "revenue_share")
        assert result.cogs == 5.0
        assert not result.used_fallback

    def test_custom_ratio(self, make_order, offer_item):
        order = make_order(amount=100, items=[offer_item("NOPE")])
        result = order_cogs(order, {}, CogsPolicy.REVENUE_SHARE, fallback_ratio=0.5)
        assert result.cogs == 50.0

    @pytest.mark.parametrize("items", [[], [OrderItem(sku="SHIP", product_type=ProductType.OTHER)]])
    def test_revenue_share_without_contributing_lines(self, make_order, items):
        """Orders with nothing to cost stay at 0 under REVENUE_SHARE."""
        result = order_cogs(make_order(amount=100, items=items), {}, CogsPolicy.REVENUE_SHARE)
        assert result.cogs == 0.0
        assert not result.used_fallback


class TestCalculateCogs:
    """Tests for calculate_cogs."""

    def test_total_and_average(self, make_order, offer_item, sku_costs):
        orders = [
            make_order("1", items=[offer_item("SKU-A")]),
            make_order("2", items=[offer_item("SKU-B")]),
            make_order("3", items=[offer_item("SKU-Z"), offer_item("SKU-Z")]),
        ]
        summary = calculate_cogs(orders, sku_costs)
        assert summary.total == pytest.approx(17.0)
        assert summary.average == pytest.approx(17.0 / 3)
        assert summary.unresolved_skus == ["SKU-Z"]

    def test_empty(self, sku_costs):
        summary = calculate_cogs([], sku_costs)
        assert summary.total == 0
        assert summary.average == 0

    def test_never_negative(self, make_order, offer_item):
        """Negative cost rows clamp to zero."""
        orders = [make_order(items=[offer_item("A")])]
        summary = calculate_cogs(orders, [SKUCost(sku="A", unit_cogs=-10)])
        assert summary.total == 0
