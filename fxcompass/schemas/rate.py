"""
Pydantic schemas for current rates, cost prices, and market comparison.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from fxcompass.rate_engine.models import CurrencyCode, ResolutionTier, Side


class CurrentRateResponse(BaseModel):
    """Best-known rate for one instrument."""
    instrument: str
    rate: Decimal
    stale: bool
    tier: ResolutionTier
    provider: str | None = None
    fetched_at: datetime | None = None
    change_percent: Decimal | None = None


class MarginInput(BaseModel):
    """Fractional margins: 0.025 means 2.5%."""
    usd_margin: Decimal = Field(..., examples=[0.025])
    other_currencies_margin: Decimal = Field(..., examples=[0.03])


class CostPriceRequest(BaseModel):
    """Cost prices from an explicit USDT/NGN rate."""
    base_rate: Decimal = Field(..., examples=[1280.50])
    margin: MarginInput
    currencies: list[str] = Field(
        default_factory=lambda: [c.value for c in CurrencyCode],
        examples=[["USD", "EUR"]],
    )
    cross_rates: dict[str, Decimal] | None = Field(
        None,
        description="Units of each currency per 1 USD",
        examples=[{"EUR": 0.92, "GBP": 0.79}],
    )
    side: Side = Side.SELL


class CostPriceResponse(BaseModel):
    side: Side
    prices: dict[CurrencyCode, Decimal]
    stale: bool = False
    changed: bool | None = None
    previous: dict[CurrencyCode, Decimal] | None = None
    base_rate: CurrentRateResponse | None = None


class MarketComparisonItem(BaseModel):
    currency: CurrencyCode
    our_rate: Decimal
    market_rate: Decimal
    difference_percent: Decimal
    is_better: bool
    stale: bool


class MarketComparisonResponse(BaseModel):
    side: Side
    items: list[MarketComparisonItem]
