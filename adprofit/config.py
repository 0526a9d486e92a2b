"""
Centralized configuration for the adprofit pipeline.

Configuration is loaded from environment variables with sensible defaults.
The pipeline functions never read this module implicitly for business
tables (SKU costs, expenses, fee schedules); those are always passed in.

Usage:
    from adprofit.config import config

    fallback = config.fx.fallback_rate
    ratio = config.pipeline.revenue_share_cogs_ratio
"""

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


@dataclass(frozen=True)
class FxConfig:
    """EUR→USD rate provider configuration."""

    api_key: str = field(default_factory=lambda: os.getenv("FOREX_API", ""))
    base_url: str = field(
        default_factory=lambda: os.getenv(
            "FOREX_API_URL", "https://api.freecurrencyapi.com/v1/latest"
        )
    )
    fallback_rate: float = field(
        default_factory=lambda: _env_float("EUR_TO_USD_FALLBACK", 1.16)
    )
    cache_ttl_seconds: int = 24 * 60 * 60
    request_timeout: float = 10.0


@dataclass(frozen=True)
class PipelineConfig:
    """Normalization, attribution and KPI constants."""

    known_platforms: Tuple[str, ...] = ("outbrain", "taboola", "adup")
    completed_status: str = "COMPLETE"

    # Only these line-item types carry product cost
    cogs_product_types: FrozenSet[str] = frozenset({"OFFER", "UPSALE"})

    # Loose COGS policy: share of order revenue assumed as cost
    revenue_share_cogs_ratio: float = 0.30

    # Monthly OPEX is prorated against a flat 30-day month
    days_per_month: int = 30
    default_range_days: int = 30


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    json_format: bool = field(
        default_factory=lambda: os.getenv("LOG_JSON", "false").lower() == "true"
    )


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""

    version: str = "0.3.0"
    fx: FxConfig = field(default_factory=FxConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Global config instance
config = AppConfig()


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def validate_config(cfg: AppConfig = None, require_fx_key: bool = False) -> None:
    """
    Validate configuration values.

    Args:
        cfg: Configuration to check (defaults to the global instance)
        require_fx_key: If True, a live FX API key must be present

    Raises:
        ConfigurationError: If configuration is missing or invalid
    """
    cfg = cfg or config
    errors = []

    if require_fx_key and not cfg.fx.api_key:
        errors.append("FOREX_API is required but not set")

    if cfg.fx.fallback_rate <= 0:
        errors.append("EUR_TO_USD_FALLBACK must be a positive number")

    if not 0 <= cfg.pipeline.revenue_share_cogs_ratio <= 1:
        errors.append("revenue_share_cogs_ratio must be between 0 and 1")

    if cfg.pipeline.days_per_month <= 0:
        errors.append("days_per_month must be positive")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)
