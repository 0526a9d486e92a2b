"""
End-to-end report assembly.

Runs the stages in order on raw payloads:

    raw payloads -> normalize -> filter -> attribute -> KPIs + breakdowns

Everything here is synchronous and free of I/O. The EUR->USD rate is an
argument; callers resolve it beforehand (see adprofit.fx).

Usage:
    report = build_report(
        orders_payload,
        {"outbrain": outbrain_rows, "taboola": taboola_rows},
        sku_costs=costs,
        fixed_expenses=expenses,
        fee_schedule=PaymentFeeSchedule({"paypal": 9}),
        eur_to_usd_rate=1.10,
        date_range=DateRange.parse("2026-01-01", "2026-01-15"),
    )
    payload = report.to_dict()
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Union

from adprofit.attribution import (
    AttributionResolver,
    AttributionSummary,
    Matcher,
    summarize_attribution,
)
from adprofit.breakdowns import (
    ORDER_KEYS,
    SPEND_KEYS,
    breakdown_ad_spend,
    breakdown_orders,
    daily_series,
)
from adprofit.cogs import CogsPolicy
from adprofit.filters import DateRange, ReportFilters, filter_ad_spend, filter_orders
from adprofit.kpi import calculate_kpis
from adprofit.models import (
    AdSpendEntry,
    BreakdownRow,
    DailyPoint,
    FixedExpense,
    KPISnapshot,
    Order,
    PaymentFeeSchedule,
    Platform,
    SKUCost,
    SpendBreakdownRow,
)
from adprofit.normalizer import effective_rate, normalize_sources
from adprofit.observability import Timer, get_logger, run_context

logger = get_logger(__name__)


@dataclass
class Report:
    """Everything the dashboard renders for one window."""
    kpis: KPISnapshot
    orders: List[Order] = field(default_factory=list)
    ad_spend: List[AdSpendEntry] = field(default_factory=list)
    breakdowns: Dict[str, List[BreakdownRow]] = field(default_factory=dict)
    spend_breakdowns: Dict[str, List[SpendBreakdownRow]] = field(default_factory=dict)
    daily: List[DailyPoint] = field(default_factory=list)
    attribution: AttributionSummary = field(default_factory=AttributionSummary)
    eur_to_usd_rate: float = 0.0
    date_range: Optional[DateRange] = None

    def to_dict(self, include_records: bool = False) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        result = {
            "kpis": self.kpis.to_dict(),
            "breakdowns": {
                name: [row.to_dict() for row in rows]
                for name, rows in self.breakdowns.items()
            },
            "spendBreakdowns": {
                name: [row.to_dict() for row in rows]
                for name, rows in self.spend_breakdowns.items()
            },
            "daily": [point.to_dict() for point in self.daily],
            "attribution": self.attribution.to_dict(),
            "eurToUsdRate": self.eur_to_usd_rate,
            "dateRange": list(self.date_range.as_str_tuple()) if self.date_range else None,
        }
        if include_records:
            result["orders"] = [order.to_dict() for order in self.orders]
            result["adSpend"] = [entry.to_dict() for entry in self.ad_spend]
        return result


def build_report(
    orders_payload: Any,
    ad_payloads: Dict[Union[Platform, str], Any],
    sku_costs: Iterable[SKUCost] = (),
    fixed_expenses: Iterable[FixedExpense] = (),
    fee_schedule: Optional[PaymentFeeSchedule] = None,
    eur_to_usd_rate: Optional[float] = None,
    date_range: Optional[DateRange] = None,
    filters: Optional[ReportFilters] = None,
    cogs_policy: CogsPolicy = CogsPolicy.STRICT,
    matcher: Optional[Matcher] = None,
    run_id: Optional[str] = None,
) -> Report:
    """
    Build a full report from raw source payloads.

    Args:
        orders_payload: Raw order rows (list or {data: [...]} envelope)
        ad_payloads: Raw spend rows keyed by platform
        sku_costs: Cost table
        fixed_expenses: Monthly recurring expenses
        fee_schedule: Payment-fee percentages
        eur_to_usd_rate: Session EUR->USD rate (configured fallback if unusable)
        date_range: Inclusive window; narrows records and drives OPEX proration
        filters: Extra dashboard filters (brand, sku, country, ...)
        cogs_policy: Treatment of SKUs missing from the cost table
        matcher: Attribution strategy (identifier or campaign-name match by default)
        run_id: Id stamped on every log line of this run

    Returns:
        Report
    """
    rate = effective_rate(eur_to_usd_rate)
    costs = list(sku_costs)
    expenses = list(fixed_expenses)
    active_filters = filters or ReportFilters()
    if date_range is not None:
        active_filters = replace(active_filters, date_range=date_range)
    window = active_filters.date_range

    with run_context(run_id), Timer("build_report", logger):
        orders, ad_spend = normalize_sources(orders_payload, ad_payloads, rate)

        # Platform filter needs attribution, so filter spend first and orders after
        ad_spend = filter_ad_spend(ad_spend, active_filters)
        orders = AttributionResolver(matcher=matcher).attribute_orders(orders, ad_spend)
        orders = filter_orders(orders, active_filters)

        kpis = calculate_kpis(
            orders,
            ad_spend,
            costs,
            expenses,
            fee_schedule=fee_schedule,
            eur_to_usd_rate=rate,
            date_range=window,
            cogs_policy=cogs_policy,
        )

        report = Report(
            kpis=kpis,
            orders=orders,
            ad_spend=ad_spend,
            breakdowns={name: breakdown_orders(orders, key) for name, key in ORDER_KEYS.items()},
            spend_breakdowns={name: breakdown_ad_spend(ad_spend, key) for name, key in SPEND_KEYS.items()},
            daily=daily_series(orders, ad_spend),
            attribution=summarize_attribution(orders),
            eur_to_usd_rate=rate,
            date_range=window,
        )

    logger.info(
        "Report built",
        extra={
            "orders": len(orders),
            "spend_rows": len(ad_spend),
            "attributed": report.attribution.attributed_orders,
        },
    )
    return report
