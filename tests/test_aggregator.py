"""Tests for the rate aggregator — resolver chain, staleness, concurrency."""

import asyncio
from decimal import Decimal

import pytest

from fxcompass.rate_engine.aggregator import (
    CachedResolver,
    FallbackResolver,
    LiveResolver,
    RateAggregator,
)
from fxcompass.rate_engine.errors import UnknownInstrument
from fxcompass.rate_engine.models import RateQuote, ResolutionTier


class HangingSource:
    """Blocks until cancelled; never completes a fetch."""

    name = "hanging"

    def __init__(self):
        self.started = asyncio.Event()

    async def fetch(self, instrument: str) -> RateQuote:
        self.started.set()
        await asyncio.Event().wait()
        raise AssertionError("unreachable")


# ---------------------------------------------------------------------------
# Resolution tiers
# ---------------------------------------------------------------------------


class TestGetCurrentRate:

    @pytest.mark.asyncio
    async def test_live_fetch_is_not_stale(self, rate_cache, static_source):
        agg = RateAggregator(rate_cache, {"USDT/NGN": [static_source({"USDT/NGN": "1530.50"})]})
        result = await agg.get_current_rate("USDT/NGN")
        assert result.rate == Decimal("1530.50")
        assert result.stale is False
        assert result.tier is ResolutionTier.LIVE
        assert rate_cache.get("USDT/NGN") == Decimal("1530.50")

    @pytest.mark.asyncio
    async def test_always_failing_source_returns_fallback(self, rate_cache, failing_source):
        """A provider that never answers yields the fallback, flagged stale, every time."""
        source = failing_source()
        agg = RateAggregator(rate_cache, {"USDT/NGN": [source]})
        for _ in range(3):
            result = await agg.get_current_rate("USDT/NGN")
            assert result.rate == Decimal("1580")
            assert result.stale is True
            assert result.tier is ResolutionTier.FALLBACK
        assert source.calls == 3

    @pytest.mark.asyncio
    async def test_failure_after_success_returns_last_good(self, rate_cache, scripted_source):
        agg = RateAggregator(rate_cache, {"USDT/NGN": [scripted_source(["1530.50", None])]})

        first = await agg.get_current_rate("USDT/NGN")
        second = await agg.get_current_rate("USDT/NGN")

        assert first.stale is False
        assert second.rate == Decimal("1530.50")
        assert second.stale is True
        assert second.tier is ResolutionTier.CACHE
        assert second.provider == "scripted"

    @pytest.mark.asyncio
    async def test_next_source_used_when_first_fails(self, rate_cache, static_source, failing_source):
        down = failing_source()
        backup = static_source({"USDT/NGN": "1525"}, name="backup")
        agg = RateAggregator(rate_cache, {"USDT/NGN": [down, backup]})

        result = await agg.get_current_rate("USDT/NGN")

        assert result.rate == Decimal("1525")
        assert result.stale is False
        assert result.provider == "backup"
        assert down.calls == 1

    @pytest.mark.asyncio
    async def test_retries_within_attempt_budget(self, rate_cache, scripted_source):
        source = scripted_source([None, "1540"])
        agg = RateAggregator(rate_cache, {"USDT/NGN": [source]}, attempts=2)

        result = await agg.get_current_rate("USDT/NGN")

        assert result.rate == Decimal("1540")
        assert result.stale is False
        assert source.calls == 2

    @pytest.mark.asyncio
    async def test_instrument_without_sources_uses_fallback(self, rate_cache):
        agg = RateAggregator(rate_cache, {})
        result = await agg.get_current_rate("USD/EUR")
        assert result.rate == Decimal("0.92")
        assert result.stale is True

    @pytest.mark.asyncio
    async def test_unknown_instrument_raises(self, rate_cache):
        agg = RateAggregator(rate_cache, {})
        with pytest.raises(UnknownInstrument):
            await agg.get_current_rate("BTC/NGN")


class TestResolverChain:

    def test_chain_order(self, rate_cache, static_source, failing_source):
        agg = RateAggregator(
            rate_cache, {"USDT/NGN": [failing_source(), static_source({"USDT/NGN": 1})]},
        )
        chain = agg.resolvers("USDT/NGN")
        assert [type(r) for r in chain] == [
            LiveResolver, LiveResolver, CachedResolver, FallbackResolver,
        ]

    def test_sources_for_unregistered_instrument_rejected(self, rate_cache, failing_source):
        with pytest.raises(UnknownInstrument):
            RateAggregator(rate_cache, {"BTC/NGN": [failing_source()]})


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_refresh_many_resolves_each_instrument(self, rate_cache, static_source):
        source = static_source({"USDT/NGN": "1530", "USD/EUR": "0.93", "USD/GBP": "0.8"})
        agg = RateAggregator(rate_cache, {i: [source] for i in source.rates})

        results = await agg.refresh_many(["USDT/NGN", "USD/EUR", "USD/GBP", "USD/EUR"])

        assert set(results) == {"USDT/NGN", "USD/EUR", "USD/GBP"}
        assert results["USD/EUR"].rate == Decimal("0.93")
        assert source.calls == 3

    @pytest.mark.asyncio
    async def test_refresh_many_mixes_live_and_fallback(self, rate_cache, static_source, failing_source):
        agg = RateAggregator(rate_cache, {
            "USDT/NGN": [static_source({"USDT/NGN": "1530"})],
            "USD/EUR": [failing_source()],
        })

        results = await agg.refresh_many(["USDT/NGN", "USD/EUR"])

        assert results["USDT/NGN"].stale is False
        assert results["USD/EUR"].stale is True
        assert results["USD/EUR"].rate == Decimal("0.92")

    @pytest.mark.asyncio
    async def test_cancelled_fetch_leaves_cache_untouched(self, rate_cache, make_quote):
        rate_cache.update("USDT/NGN", make_quote(rate="1500"))
        source = HangingSource()
        agg = RateAggregator(rate_cache, {"USDT/NGN": [source]})

        task = asyncio.create_task(agg.get_current_rate("USDT/NGN"))
        await source.started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert rate_cache.get("USDT/NGN") == Decimal("1500")

    @pytest.mark.asyncio
    async def test_concurrent_reads_see_a_single_quote(self, rate_cache, static_source):
        agg = RateAggregator(rate_cache, {"USDT/NGN": [static_source({"USDT/NGN": "1530"})]})

        results = await asyncio.gather(*(agg.get_current_rate("USDT/NGN") for _ in range(10)))

        assert {r.rate for r in results} == {Decimal("1530")}
        assert rate_cache.get("USDT/NGN") == Decimal("1530")
