"""
Exception hierarchy and degradation taxonomy for the KPI pipeline.

The pipeline itself never raises on bad data: malformed fields, missing
cost rows and zero denominators degrade to numeric defaults. Exceptions
are reserved for the edges (rate provider, config-table saves).

Exception Hierarchy:
    AdProfitError (base)
    └── RateProviderError      - FX API failed or returned garbage

    ValidationError            - Config-table input validation failed
"""
from enum import Enum


class Degradation(str, Enum):
    """Conditions the pipeline absorbs into its numeric output."""
    MISSING_RATE = "missing_rate"
    UNRESOLVED_SKU = "unresolved_sku"
    DIVISION_BY_ZERO = "division_by_zero"
    MALFORMED_RECORD = "malformed_record"


class AdProfitError(Exception):
    """Base exception for all adprofit errors."""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class RateProviderError(AdProfitError):
    """
    Currency-rate provider could not supply a usable rate.

    Always caught by the resolver, which falls back to the configured
    constant.
    """

    def __init__(self, message: str, details: str = None, status_code: int = None):
        super().__init__(message, details)
        self.status_code = status_code


class ValidationError(Exception):
    """
    Input validation failed.

    Used when saving SKU costs, fixed expenses or fee percentages.
    """

    def __init__(self, field: str, message: str, value: any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"{field}: {message}")

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value!r})"
        return f"{self.field}: {self.message}"
