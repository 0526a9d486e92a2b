"""
KPI aggregation.

`calculate_kpis` is a pure function of its arguments: orders, ad spend,
the SKU cost table, fixed monthly expenses, the payment-fee schedule and
the EUR->USD rate, plus the inclusive date range used for OPEX proration.
It performs no filtering and no I/O, and every ratio is 0 when its
denominator is 0.

Two revenue sums and two net-revenue definitions are kept side by side:
    gross_revenue              Σ order.total_amount
    gross_revenue_usd          Σ order.usd_amount
    net_revenue_after_fees     gross_revenue - payment_fees
    net_revenue_after_returns  gross_revenue - refunds - chargebacks
"""
from typing import Iterable, Optional, Sequence

from adprofit.cogs import CogsPolicy, calculate_cogs
from adprofit.config import config
from adprofit.filters import DateRange
from adprofit.models import (
    AdSpendEntry,
    FixedExpense,
    KPISnapshot,
    Order,
    PaymentFeeSchedule,
    SKUCost,
)
from adprofit.normalizer import effective_rate
from adprofit.observability import get_logger

logger = get_logger(__name__)


def safe_div(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0 when the denominator is 0."""
    if not denominator:
        return 0.0
    return numerator / denominator


def order_revenue(order: Order) -> float:
    """Revenue of one order as counted in gross_revenue."""
    return order.total_amount


def payment_fee_for(order: Order, schedule: PaymentFeeSchedule) -> float:
    """usd_amount × fee% of the order's payment method."""
    return order.usd_amount * schedule.fee_percent(order.payment_method) / 100


def total_payment_fees(orders: Iterable[Order], schedule: PaymentFeeSchedule) -> float:
    return sum(payment_fee_for(order, schedule) for order in orders)


def prorate_opex(
    fixed_expenses: Iterable[FixedExpense],
    days: int,
    days_per_month: Optional[int] = None,
) -> float:
    """(Σ monthly amounts / days_per_month) × days, never negative."""
    per_month = days_per_month or config.pipeline.days_per_month
    monthly = sum(expense.amount for expense in fixed_expenses)
    return max(0.0, monthly / per_month * max(1, days))


def calculate_kpis(
    orders: Sequence[Order],
    ad_spend: Sequence[AdSpendEntry],
    sku_costs: Iterable[SKUCost],
    fixed_expenses: Iterable[FixedExpense],
    fee_schedule: Optional[PaymentFeeSchedule] = None,
    eur_to_usd_rate: float = None,
    date_range: Optional[DateRange] = None,
    cogs_policy: CogsPolicy = CogsPolicy.STRICT,
) -> KPISnapshot:
    """
    Fold orders, spend and configuration tables into one KPISnapshot.

    Args:
        orders: Normalized orders for the window
        ad_spend: Normalized spend rows for the window
        sku_costs: Cost table rows (EUR rows converted with eur_to_usd_rate)
        fixed_expenses: Monthly recurring expenses
        fee_schedule: Payment-fee percentages by payment method
        eur_to_usd_rate: Session EUR->USD rate (configured fallback if unusable)
        date_range: Inclusive window for OPEX proration (30 days if None)
        cogs_policy: Treatment of SKUs missing from the cost table

    Returns:
        KPISnapshot
    """
    schedule = fee_schedule or PaymentFeeSchedule()
    rate = config.fx.fallback_rate if eur_to_usd_rate is None else effective_rate(eur_to_usd_rate)
    days = date_range.days if date_range else config.pipeline.default_range_days

    gross_revenue = sum(order_revenue(o) for o in orders)
    gross_revenue_usd = sum(o.usd_amount for o in orders)
    refund_total = sum(o.refund for o in orders)
    chargeback_total = sum(o.chargeback for o in orders)
    total_orders = len(orders)
    unique_customers = len({o.order_id for o in orders})
    upsell_orders = sum(1 for o in orders if o.upsell)

    cogs = calculate_cogs(orders, sku_costs, cogs_policy, rate)
    payment_fees = total_payment_fees(orders, schedule)
    marketing_spend = sum(entry.spend for entry in ad_spend)
    opex = prorate_opex(fixed_expenses, days)

    net_profit = gross_revenue - opex - cogs.total - marketing_spend - payment_fees

    snapshot = KPISnapshot(
        gross_revenue=gross_revenue,
        gross_revenue_usd=gross_revenue_usd,
        net_revenue_after_fees=gross_revenue - payment_fees,
        net_revenue_after_returns=gross_revenue - refund_total - chargeback_total,
        refund_total=refund_total,
        chargeback_total=chargeback_total,
        refund_rate=safe_div(refund_total, gross_revenue) * 100,
        chargeback_rate=safe_div(chargeback_total, gross_revenue) * 100,
        cogs=cogs.total,
        average_cogs=cogs.average,
        marketing_spend=marketing_spend,
        opex=opex,
        payment_fees=payment_fees,
        net_profit=net_profit,
        roas=safe_div(gross_revenue, marketing_spend),
        aov=safe_div(gross_revenue, total_orders),
        cost_per_customer=safe_div(marketing_spend, unique_customers),
        upsell_rate=safe_div(upsell_orders, total_orders) * 100,
        total_orders=total_orders,
        unique_customers=unique_customers,
        days_in_range=days,
    )

    logger.info(
        "KPIs calculated",
        extra={
            "orders": total_orders,
            "spend_rows": len(ad_spend),
            "gross_revenue": round(gross_revenue, 2),
            "net_profit": round(net_profit, 2),
            "days": days,
        },
    )
    return snapshot
