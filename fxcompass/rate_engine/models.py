"""
Value types shared by the rate engine.

All rates and amounts are ``Decimal``.  Quotes and results are frozen
dataclasses; nothing here is mutated after construction.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from fxcompass.rate_engine.errors import InvalidRate, UnsupportedCurrency


def to_decimal(value, name: str = "value") -> Decimal:
    """Coerce ints, floats, and numeric strings to Decimal via ``str``."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise InvalidRate(f"{name} must be numeric, got {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidRate(f"{name} must be numeric, got {value!r}") from exc


class CurrencyCode(str, enum.Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    CAD = "CAD"

    @classmethod
    def parse(cls, value) -> CurrencyCode:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise UnsupportedCurrency(
                f"Unsupported currency: {value}. "
                f"Supported: {', '.join(c.value for c in cls)}"
            ) from None


BASE_CURRENCY = CurrencyCode.USD
SUPPORTED_CURRENCIES = tuple(CurrencyCode)

# NGN cost price per currency
CostPriceSet = dict[CurrencyCode, Decimal]


class Side(str, enum.Enum):
    """Which side of the book a cost price is quoted for."""
    SELL = "sell"
    BUY = "buy"


class ResolutionTier(str, enum.Enum):
    LIVE = "live"
    CACHE = "cache"
    FALLBACK = "fallback"


# ---------------------------------------------------------------------------
# Quotes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RateQuote:
    """A single successfully fetched rate."""
    instrument: str
    rate: Decimal
    provider: str
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    previous_rate: Decimal | None = None

    def __post_init__(self):
        rate = to_decimal(self.rate, "rate")
        if not rate.is_finite() or rate <= 0:
            raise InvalidRate(f"Quote rate for {self.instrument} must be positive, got {rate}")
        object.__setattr__(self, "rate", rate)
        if self.previous_rate is not None:
            object.__setattr__(
                self, "previous_rate", to_decimal(self.previous_rate, "previous_rate"),
            )

    @property
    def change_percent(self) -> Decimal | None:
        """24h change in percent, when the provider reported a prior price."""
        if not self.previous_rate:
            return None
        return (self.rate - self.previous_rate) / self.previous_rate * Decimal("100")


@dataclass
class CachedRate:
    """Per-instrument cache entry. ``last_good`` is only ever replaced."""
    instrument: str
    fallback: Decimal
    last_good: RateQuote | None = None


@dataclass(frozen=True)
class RateResult:
    """Best-known rate for an instrument and where it came from."""
    instrument: str
    rate: Decimal
    stale: bool
    tier: ResolutionTier
    provider: str | None = None
    fetched_at: datetime | None = None
    previous_rate: Decimal | None = None

    @classmethod
    def from_quote(cls, quote: RateQuote, tier: ResolutionTier) -> RateResult:
        return cls(
            instrument=quote.instrument,
            rate=quote.rate,
            stale=tier is not ResolutionTier.LIVE,
            tier=tier,
            provider=quote.provider,
            fetched_at=quote.fetched_at,
            previous_rate=quote.previous_rate,
        )

    @property
    def change_percent(self) -> Decimal | None:
        if not self.previous_rate:
            return None
        return (self.rate - self.previous_rate) / self.previous_rate * Decimal("100")


# ---------------------------------------------------------------------------
# Margins and results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MarginConfig:
    """Fractional margins: 0.02 means 2%."""
    usd_margin: Decimal
    other_currencies_margin: Decimal

    @classmethod
    def from_percent(cls, usd_margin, other_currencies_margin) -> MarginConfig:
        """Build from percent values as stored by the margin settings (2.5 -> 0.025)."""
        hundred = Decimal("100")
        return cls(
            usd_margin=to_decimal(usd_margin, "usd_margin") / hundred,
            other_currencies_margin=(
                to_decimal(other_currencies_margin, "other_currencies_margin") / hundred
            ),
        )

    def for_currency(self, currency: CurrencyCode) -> Decimal:
        if currency is BASE_CURRENCY:
            return self.usd_margin
        return self.other_currencies_margin


@dataclass(frozen=True)
class TransactionCalculationResult:
    usdt_equivalent: Decimal
    total_received: Decimal
    total_cost: Decimal
    profit: Decimal

    @property
    def margin_percentage(self) -> Decimal:
        """Profit as a percentage of the NGN received."""
        if not self.total_received:
            return Decimal("0")
        return self.profit / self.total_received * Decimal("100")


@dataclass(frozen=True)
class MarketComparison:
    """Our cost price for one currency against a peer-market quote."""
    currency: CurrencyCode
    our_rate: Decimal
    market_rate: Decimal
    difference_percent: Decimal
    is_better: bool
    stale: bool
