"""
Shared test fixtures for FX Compass.

Provides quote factories, rate source test doubles, a session cache and
aggregator, and an async HTTP client with the rate service overridden.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fxcompass.api.deps import get_rate_service
from fxcompass.rate_engine.aggregator import RateAggregator
from fxcompass.rate_engine.cache import RateCache
from fxcompass.rate_engine.errors import SourceUnavailable
from fxcompass.rate_engine.models import MarginConfig, RateQuote
from fxcompass.rate_engine.sources import MockRateSource
from fxcompass.services.rate_service import RateService


FALLBACKS = {
    "USDT/NGN": Decimal("1580"),
    "USD/EUR": Decimal("0.92"),
    "USD/GBP": Decimal("0.79"),
    "USD/CAD": Decimal("1.37"),
    "USD/NGN": Decimal("1600"),
    "EUR/NGN": Decimal("1805"),
    "GBP/NGN": Decimal("2080"),
    "CAD/NGN": Decimal("1140"),
}


# --- Rate source test doubles ---


class StaticSource:
    """Always returns the configured rate; counts calls."""

    def __init__(self, rates: dict, name: str = "static"):
        self.rates = {k: Decimal(str(v)) for k, v in rates.items()}
        self.name = name
        self.calls = 0

    async def fetch(self, instrument: str) -> RateQuote:
        self.calls += 1
        return RateQuote(instrument=instrument, rate=self.rates[instrument], provider=self.name)


class FailingSource:
    """Raises SourceUnavailable on every call (simulated provider outage)."""

    def __init__(self, name: str = "down"):
        self.name = name
        self.calls = 0

    async def fetch(self, instrument: str) -> RateQuote:
        self.calls += 1
        raise SourceUnavailable(self.name, instrument, "simulated outage")


class ScriptedSource:
    """Returns or raises the next scripted outcome per call."""

    def __init__(self, outcomes: list, name: str = "scripted"):
        self.outcomes = list(outcomes)
        self.name = name
        self.calls = 0

    async def fetch(self, instrument: str) -> RateQuote:
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if outcome is None:
            raise SourceUnavailable(self.name, instrument, "scripted failure")
        return RateQuote(instrument=instrument, rate=Decimal(str(outcome)), provider=self.name)


# --- Factories ---


def _make_quote(
    instrument: str = "USDT/NGN",
    rate="1530.50",
    provider: str = "test",
    fetched_at: datetime | None = None,
    **kwargs,
) -> RateQuote:
    return RateQuote(
        instrument=instrument,
        rate=Decimal(str(rate)),
        provider=provider,
        fetched_at=fetched_at or datetime.now(timezone.utc),
        **kwargs,
    )


@pytest.fixture
def make_quote():
    """Factory fixture for RateQuote instances."""
    return _make_quote


@pytest.fixture
def fallbacks():
    return dict(FALLBACKS)


@pytest.fixture
def rate_cache(fallbacks):
    return RateCache(fallbacks)


@pytest.fixture
def margin():
    return MarginConfig(usd_margin=Decimal("0.025"), other_currencies_margin=Decimal("0.03"))


def _service(sources_for_all, default_margin) -> RateService:
    cache = RateCache(FALLBACKS)
    aggregator = RateAggregator(cache, {i: [sources_for_all] for i in FALLBACKS})
    return RateService(aggregator, default_margin=default_margin)


@pytest.fixture
def mock_service(margin):
    """RateService backed by the deterministic mock source."""
    return _service(MockRateSource(), margin)


@pytest.fixture
def failing_service(margin):
    """RateService whose every provider is down."""
    return _service(FailingSource(), margin)


# --- HTTP client ---


@pytest_asyncio.fixture
async def client(mock_service):
    """
    Async HTTP test client with get_rate_service overridden to use the
    mock-backed RateService.
    """
    from fxcompass.main import app

    async def override_get_rate_service():
        return mock_service

    app.dependency_overrides[get_rate_service] = override_get_rate_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def failing_client(failing_service):
    """Async HTTP test client where every rate provider is down."""
    from fxcompass.main import app

    async def override_get_rate_service():
        return failing_service

    app.dependency_overrides[get_rate_service] = override_get_rate_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def static_source():
    """Factory fixture for StaticSource."""
    return StaticSource


@pytest.fixture
def failing_source():
    """Factory fixture for FailingSource."""
    return FailingSource


@pytest.fixture
def scripted_source():
    """Factory fixture for ScriptedSource."""
    return ScriptedSource
