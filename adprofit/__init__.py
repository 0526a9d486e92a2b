"""
Ad-spend and order KPI pipeline.

This package turns raw order and ad-network payloads into a KPI snapshot
and grouped breakdowns:
- normalizer: raw payloads -> canonical USD records
- attribution: order -> ad platform
- cogs: cost of goods per order
- kpi: KPI snapshot
- breakdowns: grouped rows and daily series
- pipeline: all of the above in one call
"""

# Import in dependency order
from adprofit.exceptions import (
    AdProfitError,
    Degradation,
    RateProviderError,
    ValidationError,
)

from adprofit.config import config, ConfigurationError, validate_config

from adprofit.models import (
    Platform,
    ProductType,
    OrderItem,
    Order,
    AdSpendEntry,
    SKUCost,
    FixedExpense,
    PaymentFeeSchedule,
    KPISnapshot,
    BreakdownRow,
    SpendBreakdownRow,
    DailyPoint,
)

from adprofit.filters import DateRange, ReportFilters

from adprofit.normalizer import (
    normalize_ad_spend,
    normalize_ad_spend_batch,
    normalize_order,
    normalize_orders,
    normalize_sources,
)

from adprofit.attribution import (
    AttributionResolver,
    summarize_attribution,
)

from adprofit.cogs import CogsPolicy, calculate_cogs

from adprofit.kpi import calculate_kpis

from adprofit.breakdowns import breakdown, breakdown_ad_spend, breakdown_orders, daily_series

from adprofit.pipeline import Report, build_report

__version__ = config.version

__all__ = [
    # Exceptions
    "AdProfitError",
    "Degradation",
    "RateProviderError",
    "ValidationError",
    # Config
    "config",
    "ConfigurationError",
    "validate_config",
    # Models
    "Platform",
    "ProductType",
    "OrderItem",
    "Order",
    "AdSpendEntry",
    "SKUCost",
    "FixedExpense",
    "PaymentFeeSchedule",
    "KPISnapshot",
    "BreakdownRow",
    "SpendBreakdownRow",
    "DailyPoint",
    # Filters
    "DateRange",
    "ReportFilters",
    # Pipeline stages
    "normalize_ad_spend",
    "normalize_ad_spend_batch",
    "normalize_order",
    "normalize_orders",
    "normalize_sources",
    "AttributionResolver",
    "summarize_attribution",
    "CogsPolicy",
    "calculate_cogs",
    "calculate_kpis",
    "breakdown",
    "breakdown_ad_spend",
    "breakdown_orders",
    "daily_series",
    "Report",
    "build_report",
]
