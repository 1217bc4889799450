"""
Rate service — the session-scoped facade over the rate engine.

One RateService is built per application session (see ``fxcompass.main``)
and owns the aggregator and its cache.  Callers read results only; the
cached rates are never handed out for mutation.

Uses live providers when FX_RATE_MOCK=false, deterministic mock rates
otherwise.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from fxcompass.config import Settings, settings as default_settings
from fxcompass.rate_engine.aggregator import RateAggregator
from fxcompass.rate_engine.cache import RateCache
from fxcompass.rate_engine.calculator import calculate
from fxcompass.rate_engine.config import (
    BASE_INSTRUMENT,
    MAX_RATE_AGE,
    cross_instrument,
    market_instrument,
)
from fxcompass.rate_engine.cost_prices import (
    compare_rates,
    compute_cost_prices,
    prices_changed,
    rate_difference,
    validate_margin,
)
from fxcompass.rate_engine.models import (
    BASE_CURRENCY,
    SUPPORTED_CURRENCIES,
    CostPriceSet,
    CurrencyCode,
    MarginConfig,
    MarketComparison,
    RateResult,
    Side,
    TransactionCalculationResult,
)
from fxcompass.rate_engine.poller import RatePoller
from fxcompass.rate_engine.sources import (
    BybitTickerSource,
    CurrencyPairSource,
    MockRateSource,
    RateSource,
    UsdCrossRateSource,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CostPriceSnapshot:
    """Cost prices plus the rates they were derived from."""
    prices: CostPriceSet
    previous: CostPriceSet | None
    changed: bool
    stale: bool
    side: Side
    base: RateResult
    cross_rates: dict[CurrencyCode, RateResult]


@dataclass(frozen=True)
class Calculation:
    """Calculator output with the reference rate it used."""
    result: TransactionCalculationResult
    reference_rate: Decimal
    reference_stale: bool


class RateService:
    """FX rate engine facade: current rates, cost prices, and calculations."""

    def __init__(
        self,
        aggregator: RateAggregator,
        default_margin: MarginConfig | None = None,
        currencies: Iterable[CurrencyCode] = SUPPORTED_CURRENCIES,
    ):
        self.aggregator = aggregator
        self.default_margin = default_margin or configured_margin(default_settings)
        self.currencies = tuple(CurrencyCode.parse(c) for c in currencies)
        self._last_prices: dict[Side, CostPriceSet] = {}

    # --- Rates ---

    async def get_current_rate(self, instrument: str = BASE_INSTRUMENT) -> RateResult:
        return await self.aggregator.get_current_rate(instrument)

    def is_stale(self, instrument: str = BASE_INSTRUMENT) -> bool:
        return self.aggregator.cache.is_stale(instrument, MAX_RATE_AGE)

    async def get_cross_rates(
        self, currencies: Iterable[CurrencyCode],
    ) -> dict[CurrencyCode, RateResult]:
        """USD cross rates (units of C per USD) for every non-USD currency."""
        wanted = [c for c in currencies if c is not BASE_CURRENCY]
        results = await self.aggregator.refresh_many(cross_instrument(c.value) for c in wanted)
        return {c: results[cross_instrument(c.value)] for c in wanted}

    # --- Cost prices ---

    async def get_cost_prices(
        self,
        margin: MarginConfig | None = None,
        side: Side = Side.SELL,
    ) -> CostPriceSnapshot:
        """
        Fetch the base and cross rates concurrently and derive cost prices.

        Margins are validated before any provider is called.
        """
        margin = margin or self.default_margin
        validate_margin(margin)
        side = Side(side)

        base, crosses = await asyncio.gather(
            self.get_current_rate(BASE_INSTRUMENT),
            self.get_cross_rates(self.currencies),
        )

        prices = compute_cost_prices(
            base.rate,
            margin,
            self.currencies,
            cross_rates={c: r.rate for c, r in crosses.items()},
            side=side,
        )

        previous = self._last_prices.get(side)
        changed = prices_changed(prices, previous)
        self._last_prices[side] = dict(prices)
        if changed:
            logger.info("Cost prices (%s) updated: %s", side.value, {c.value: str(p) for c, p in prices.items()})

        return CostPriceSnapshot(
            prices=prices,
            previous=previous,
            changed=changed,
            stale=base.stale or any(r.stale for r in crosses.values()),
            side=side,
            base=base,
            cross_rates=crosses,
        )

    async def compare_with_market(
        self,
        margin: MarginConfig | None = None,
        side: Side = Side.SELL,
    ) -> list[MarketComparison]:
        """Our cost price per currency against the peer-market ``C/NGN`` quote."""
        side = Side(side)
        snapshot = await self.get_cost_prices(margin, side)
        market = await self.aggregator.refresh_many(
            market_instrument(c.value) for c in snapshot.prices
        )

        comparisons = []
        for currency, ours in snapshot.prices.items():
            theirs = market[market_instrument(currency.value)]
            comparisons.append(MarketComparison(
                currency=currency,
                our_rate=ours,
                market_rate=theirs.rate,
                difference_percent=rate_difference(ours, theirs.rate),
                is_better=compare_rates(ours, theirs.rate, side),
                stale=snapshot.stale or theirs.stale,
            ))
        return comparisons

    # --- Calculator ---

    async def calculate(
        self,
        customer_amount,
        rate_sold,
        rate_bought,
        reference_rate=None,
    ) -> Calculation:
        """Run the arbitrage calculation, defaulting the reference rate to live USDT/NGN."""
        if reference_rate is None:
            current = await self.get_current_rate(BASE_INSTRUMENT)
            reference, stale = current.rate, current.stale
        else:
            reference, stale = reference_rate, False

        result = calculate(customer_amount, rate_sold, rate_bought, reference)
        return Calculation(
            result=result,
            reference_rate=Decimal(str(reference)),
            reference_stale=stale,
        )

    # --- Polling ---

    def build_poller(self, interval: float) -> RatePoller:
        instruments = [BASE_INSTRUMENT]
        instruments += [cross_instrument(c.value) for c in self.currencies if c is not BASE_CURRENCY]
        return RatePoller(self.aggregator, instruments, interval=interval)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def configured_margin(cfg: Settings) -> MarginConfig:
    """Default margins from settings, which store them as percentages."""
    return MarginConfig.from_percent(
        cfg.DEFAULT_USD_MARGIN_PERCENT,
        cfg.DEFAULT_OTHER_CURRENCIES_MARGIN_PERCENT,
    )


def build_sources(cfg: Settings) -> dict[str, list[RateSource]]:
    """Live sources per instrument, in the order they are tried."""
    if cfg.FX_RATE_MOCK:
        mock = MockRateSource()
        return {instrument: [mock] for instrument in cfg.FALLBACK_RATES}

    timeout = cfg.FX_RATE_TIMEOUT_SECONDS
    ticker = BybitTickerSource(cfg.BYBIT_API_URL, timeout=timeout)
    pairs = CurrencyPairSource(cfg.PAIR_RATES_API_URL, side=cfg.PAIR_RATES_SIDE, timeout=timeout)
    crosses = UsdCrossRateSource(cfg.FX_CROSS_RATE_API_URL, timeout=timeout)

    sources: dict[str, list[RateSource]] = {}
    for instrument in cfg.FALLBACK_RATES:
        if instrument == BASE_INSTRUMENT:
            sources[instrument] = [ticker]
        elif instrument.endswith("/NGN"):
            sources[instrument] = [pairs]
        elif instrument.startswith("USD/"):
            sources[instrument] = [crosses]
    return sources


def build_rate_service(cfg: Settings | None = None) -> RateService:
    """Create a fresh session: cache, aggregator, and service."""
    cfg = cfg or default_settings
    cache = RateCache(cfg.FALLBACK_RATES)
    aggregator = RateAggregator(cache, build_sources(cfg), attempts=max(1, cfg.FX_RATE_FETCH_ATTEMPTS))
    source = "mock" if cfg.FX_RATE_MOCK else "live"
    logger.info("Rate service created with %s sources for %d instruments", source, len(cache.instruments()))
    return RateService(
        aggregator,
        default_margin=configured_margin(cfg),
    )
