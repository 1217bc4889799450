"""
Exchange-rate aggregation and arbitrage-margin engine.

RateSource -> RateAggregator (RateCache fallback) -> cost prices -> calculator.
"""

from fxcompass.rate_engine.aggregator import RateAggregator
from fxcompass.rate_engine.cache import RateCache
from fxcompass.rate_engine.calculator import calculate
from fxcompass.rate_engine.cost_prices import compute_cost_prices
from fxcompass.rate_engine.errors import (
    InvalidAmount,
    InvalidInput,
    InvalidMargin,
    InvalidRate,
    RateEngineError,
    SourceUnavailable,
    UnknownInstrument,
    UnsupportedCurrency,
)
from fxcompass.rate_engine.models import (
    CostPriceSet,
    CurrencyCode,
    MarginConfig,
    RateQuote,
    RateResult,
    Side,
    TransactionCalculationResult,
)

__all__ = [
    "RateAggregator",
    "RateCache",
    "calculate",
    "compute_cost_prices",
    "InvalidAmount",
    "InvalidInput",
    "InvalidMargin",
    "InvalidRate",
    "RateEngineError",
    "SourceUnavailable",
    "UnknownInstrument",
    "UnsupportedCurrency",
    "CostPriceSet",
    "CurrencyCode",
    "MarginConfig",
    "RateQuote",
    "RateResult",
    "Side",
    "TransactionCalculationResult",
]
