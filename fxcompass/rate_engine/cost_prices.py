"""
Cost price computation and market comparison.

Sign convention (fixed for the whole engine):

    market(USD) = base_rate                       (USDT/NGN)
    market(C)   = base_rate / cross_rate[C]       (cross rate = C per 1 USD)

    Side.SELL:  cost = market * (1 - margin)      ->  cost <= market
    Side.BUY:   cost = market * (1 + margin)      ->  cost >= market

USD takes ``usd_margin``; every other currency takes
``other_currencies_margin``.  All functions here are pure.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal

from fxcompass.rate_engine.errors import InvalidMargin, InvalidRate
from fxcompass.rate_engine.models import (
    BASE_CURRENCY,
    CostPriceSet,
    CurrencyCode,
    MarginConfig,
    Side,
    to_decimal,
)

ONE = Decimal("1")
HUNDRED = Decimal("100")


def _validated_margin(value, name: str) -> Decimal:
    try:
        margin = to_decimal(value, name)
    except InvalidRate as exc:
        raise InvalidMargin(str(exc)) from None
    if not margin.is_finite() or margin < 0 or margin >= ONE:
        raise InvalidMargin(f"{name} must be in [0, 1), got {margin}")
    return margin


def validate_margin(margin: MarginConfig) -> tuple[Decimal, Decimal]:
    """Return ``(usd_margin, other_currencies_margin)`` or raise InvalidMargin."""
    return (
        _validated_margin(margin.usd_margin, "usd_margin"),
        _validated_margin(margin.other_currencies_margin, "other_currencies_margin"),
    )


def _positive_rate(value, name: str) -> Decimal:
    rate = to_decimal(value, name)
    if not rate.is_finite() or rate <= 0:
        raise InvalidRate(f"{name} must be positive, got {rate}")
    return rate


def _currency_key(key) -> str:
    """Cross-rate mapping key as an upper-case currency code."""
    return str(getattr(key, "value", key)).upper()


def apply_margin(market_rate: Decimal, margin: Decimal, side: Side) -> Decimal:
    if side is Side.SELL:
        return market_rate * (ONE - margin)
    return market_rate * (ONE + margin)


def compute_cost_prices(
    base_rate,
    margin: MarginConfig,
    currencies: Iterable,
    *,
    cross_rates: Mapping | None = None,
    side: Side = Side.SELL,
) -> CostPriceSet:
    """
    Derive NGN cost prices for *currencies* from the USDT/NGN *base_rate*.

    *cross_rates* maps a currency to units of that currency per 1 USD;
    when omitted every cross rate is 1.  Raises InvalidMargin, InvalidRate,
    or UnsupportedCurrency; never returns a partial result.
    """
    base = _positive_rate(base_rate, "base_rate")
    usd_margin, other_margin = validate_margin(margin)
    side = Side(side)

    wanted = [CurrencyCode.parse(c) for c in currencies]
    crosses = (
        {_currency_key(k): v for k, v in cross_rates.items()}
        if cross_rates is not None else None
    )

    prices: CostPriceSet = {}
    for currency in wanted:
        if currency is BASE_CURRENCY:
            prices[currency] = apply_margin(base, usd_margin, side)
            continue

        if crosses is None:
            market = base
        elif currency.value not in crosses:
            raise InvalidRate(f"No USD cross rate for {currency.value}")
        else:
            market = base / _positive_rate(crosses[currency.value], f"{currency.value} cross rate")
        prices[currency] = apply_margin(market, other_margin, side)

    return prices


# ---------------------------------------------------------------------------
# Market comparison helpers
# ---------------------------------------------------------------------------


def rate_difference(ours, theirs) -> Decimal:
    """Percentage by which *ours* differs from *theirs*; 0 if either is zero."""
    ours = to_decimal(ours, "ours")
    theirs = to_decimal(theirs, "theirs")
    if not ours or not theirs:
        return Decimal("0")
    return (ours - theirs) / theirs * HUNDRED


def compare_rates(ours, theirs, side: Side) -> bool:
    """
    Whether our rate beats a competitor's.

    Buy side: lower is better (the customer pays less).
    Sell side: higher is better (the customer receives more).
    """
    ours = to_decimal(ours, "ours")
    theirs = to_decimal(theirs, "theirs")
    if Side(side) is Side.BUY:
        return ours < theirs
    return ours > theirs


def prices_changed(
    new: CostPriceSet,
    old: CostPriceSet | None,
) -> bool:
    if not old:
        return bool(new)
    return any(old.get(currency) != price for currency, price in new.items())
