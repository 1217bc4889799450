"""
Rate aggregator — resolves the best-known rate for an instrument.

Each instrument is resolved by an explicit, ordered resolver chain:

    LiveResolver (one per source)  ->  CachedResolver  ->  FallbackResolver

The first resolver that yields a result wins.  Live resolvers absorb
``SourceUnavailable``; the fallback resolver always yields, so
``get_current_rate`` never raises for a registered instrument.  Failure
is signalled only through ``RateResult.stale``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol

from fxcompass.rate_engine.cache import RateCache
from fxcompass.rate_engine.errors import SourceUnavailable, UnknownInstrument
from fxcompass.rate_engine.models import RateResult, ResolutionTier
from fxcompass.rate_engine.sources import RateSource

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Resolvers
# ---------------------------------------------------------------------------


class RateResolver(Protocol):
    async def resolve(self, instrument: str) -> RateResult | None: ...


class LiveResolver:
    """Fetch from one source and record the quote in the cache."""

    def __init__(self, source: RateSource, cache: RateCache, attempts: int = 1):
        self.source = source
        self._cache = cache
        self._attempts = max(1, attempts)

    async def resolve(self, instrument: str) -> RateResult | None:
        for attempt in range(1, self._attempts + 1):
            try:
                quote = await self.source.fetch(instrument)
            except SourceUnavailable as exc:
                logger.warning(
                    "Rate source failed (attempt %d/%d): %s",
                    attempt, self._attempts, exc,
                )
                continue

            # Only completed fetches reach the cache; a cancelled await never gets here.
            self._cache.update(instrument, quote)
            return RateResult.from_quote(quote, ResolutionTier.LIVE)
        return None


class CachedResolver:
    """Last successfully fetched quote, reported as stale."""

    def __init__(self, cache: RateCache):
        self._cache = cache

    async def resolve(self, instrument: str) -> RateResult | None:
        quote = self._cache.last_good(instrument)
        if quote is None:
            return None
        logger.info(
            "Using last known %s rate %s from %s",
            instrument, quote.rate, quote.fetched_at.isoformat(),
        )
        return RateResult.from_quote(quote, ResolutionTier.CACHE)


class FallbackResolver:
    """Hard-coded constant, used until the first successful fetch."""

    def __init__(self, cache: RateCache):
        self._cache = cache

    async def resolve(self, instrument: str) -> RateResult | None:
        rate = self._cache.fallback(instrument)
        logger.info("Using fallback %s rate %s", instrument, rate)
        return RateResult(
            instrument=instrument,
            rate=rate,
            stale=True,
            tier=ResolutionTier.FALLBACK,
        )


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------


class RateAggregator:
    """Owns the rate cache and the resolver chain for each instrument."""

    def __init__(
        self,
        cache: RateCache,
        sources: Mapping[str, Sequence[RateSource]],
        attempts: int = 1,
    ):
        """
        Args:
            cache: RateCache holding every instrument this aggregator serves.
            sources: Live sources per instrument, tried in order.
            attempts: Fetch attempts per live source before falling through.
        """
        unknown = set(sources) - set(cache.instruments())
        if unknown:
            raise UnknownInstrument(", ".join(sorted(unknown)))

        self._cache = cache
        self._chains: dict[str, list[RateResolver]] = {}
        for instrument in cache.instruments():
            chain: list[RateResolver] = [
                LiveResolver(source, cache, attempts)
                for source in sources.get(instrument, ())
            ]
            chain.append(CachedResolver(cache))
            chain.append(FallbackResolver(cache))
            self._chains[instrument] = chain

    @property
    def cache(self) -> RateCache:
        return self._cache

    def instruments(self) -> list[str]:
        return list(self._chains)

    def resolvers(self, instrument: str) -> list[RateResolver]:
        try:
            return list(self._chains[instrument])
        except KeyError:
            raise UnknownInstrument(instrument) from None

    async def get_current_rate(self, instrument: str) -> RateResult:
        """Best-known rate for *instrument*; ``stale`` is True unless fetched live."""
        for resolver in self.resolvers(instrument):
            result = await resolver.resolve(instrument)
            if result is not None:
                return result

        # FallbackResolver always yields; reaching here means the chain was altered.
        raise RuntimeError(f"Resolver chain for {instrument} yielded no rate")

    async def refresh_many(self, instruments: Iterable[str]) -> dict[str, RateResult]:
        """Resolve several instruments concurrently. Completion order is not defined."""
        names = list(dict.fromkeys(instruments))
        results = await asyncio.gather(*(self.get_current_rate(i) for i in names))
        return dict(zip(names, results))
