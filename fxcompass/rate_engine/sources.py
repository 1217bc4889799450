"""
Rate sources — one network round-trip to one provider per ``fetch``.

Architecture:
  - RateSource (protocol) defines the interface
  - HttpRateSource handles the GET, timeout, and error mapping
  - BybitTickerSource parses the Bybit spot ticker (USDT/NGN)
  - CurrencyPairSource parses a peer currency-pair list (VertoFX style)
  - UsdCrossRateSource parses USD-based cross rates (open.er-api.com)
  - MockRateSource returns deterministic rates for dev/testing

Every failure surfaces as ``SourceUnavailable``.  Sources never retry;
the aggregator decides what happens next.
"""

from __future__ import annotations

import abc
import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol

import httpx

from fxcompass.rate_engine.errors import InvalidRate, SourceUnavailable
from fxcompass.rate_engine.models import RateQuote

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 8.0

# Mock rates (deterministic for testing)
MOCK_RATES: dict[str, Decimal] = {
    "USDT/NGN": Decimal("1550.00"),
    "USD/EUR": Decimal("0.92"),
    "USD/GBP": Decimal("0.79"),
    "USD/CAD": Decimal("1.37"),
    "USD/NGN": Decimal("1600"),
    "EUR/NGN": Decimal("1805"),
    "GBP/NGN": Decimal("2080"),
    "CAD/NGN": Decimal("1140"),
}


def _compact(instrument: str) -> str:
    """``USDT/NGN`` -> ``USDTNGN``."""
    return instrument.replace("/", "").upper()


def _price(raw: Any) -> Decimal:
    if raw is None or isinstance(raw, bool):
        raise ValueError(f"missing or non-numeric price: {raw!r}")
    try:
        value = Decimal(str(raw))
    except InvalidOperation:
        raise ValueError(f"non-numeric price: {raw!r}") from None
    if not value.is_finite() or value <= 0:
        raise ValueError(f"non-positive price: {raw!r}")
    return value


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class RateSource(Protocol):
    name: str

    async def fetch(self, instrument: str) -> RateQuote:
        """Fetch one quote; raise SourceUnavailable on any failure."""
        ...


# ---------------------------------------------------------------------------
# HTTP base
# ---------------------------------------------------------------------------


class HttpRateSource(abc.ABC):
    """
    GET a JSON document and hand it to ``_parse``.

    ``timeout`` bounds the whole fetch, including a body that arrives slowly.
    """

    name = "http"

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = url
        self._timeout = timeout
        self._transport = transport

    def _params(self, instrument: str) -> dict[str, str] | None:
        return None

    @abc.abstractmethod
    def _parse(self, instrument: str, data: Any) -> RateQuote:
        """Build a quote from the decoded body; raise KeyError/ValueError if malformed."""

    async def fetch(self, instrument: str) -> RateQuote:
        try:
            async with asyncio.timeout(self._timeout):
                async with httpx.AsyncClient(
                    timeout=self._timeout, transport=self._transport,
                ) as client:
                    resp = await client.get(self._url, params=self._params(instrument))
                    resp.raise_for_status()
                    data = resp.json()
        except (httpx.TimeoutException, TimeoutError) as exc:
            raise SourceUnavailable(self.name, instrument, "request timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise SourceUnavailable(
                self.name, instrument, f"HTTP {exc.response.status_code}",
            ) from exc
        except httpx.HTTPError as exc:
            raise SourceUnavailable(self.name, instrument, f"transport error: {exc}") from exc
        except ValueError as exc:
            raise SourceUnavailable(self.name, instrument, "response is not JSON") from exc

        try:
            quote = self._parse(instrument, data)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise SourceUnavailable(
                self.name, instrument, f"malformed response: {exc}",
            ) from exc

        logger.debug("%s: %s = %s", self.name, instrument, quote.rate)
        return quote


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class BybitTickerSource(HttpRateSource):
    """Bybit v5 spot ticker: ``lastPrice`` is the rate."""

    name = "bybit-spot"

    def __init__(self, base_url: str = "https://api.bybit.com", **kwargs):
        super().__init__(f"{base_url.rstrip('/')}/v5/market/tickers", **kwargs)

    def _params(self, instrument: str) -> dict[str, str]:
        return {"category": "spot", "symbol": _compact(instrument)}

    def _parse(self, instrument: str, data: Any) -> RateQuote:
        # {"result": {"list": [{"symbol": "USDTNGN", "lastPrice": "1530.5",
        #                       "prevPrice24h": "1522.0", ...}]}}
        symbol = _compact(instrument)
        entry = next(
            (item for item in data["result"]["list"] if item.get("symbol") == symbol),
            None,
        )
        if entry is None:
            raise KeyError(f"{symbol} not in ticker list")

        previous = entry.get("prevPrice24h")
        try:
            previous_rate = _price(previous) if previous not in (None, "") else None
        except ValueError:
            previous_rate = None

        return RateQuote(
            instrument=instrument,
            rate=_price(entry.get("lastPrice")),
            provider=self.name,
            fetched_at=datetime.now(timezone.utc),
            previous_rate=previous_rate,
        )


class CurrencyPairSource(HttpRateSource):
    """Peer currency-pair list: ``{"data": [{"currencyPair", "buy", "sell"}]}``."""

    name = "currency-pairs"

    def __init__(self, url: str, side: str = "sell", **kwargs):
        super().__init__(url, **kwargs)
        if side not in ("buy", "sell"):
            raise ValueError(f"side must be 'buy' or 'sell', got {side!r}")
        self._side = side

    def _parse(self, instrument: str, data: Any) -> RateQuote:
        pair = _compact(instrument)
        entry = next(
            (
                item for item in data["data"]
                if str(item.get("currencyPair", "")).replace("/", "").upper() == pair
            ),
            None,
        )
        if entry is None:
            raise KeyError(f"{pair} not in currency pair list")

        return RateQuote(
            instrument=instrument,
            rate=_price(entry.get(self._side)),
            provider=self.name,
            fetched_at=datetime.now(timezone.utc),
        )


class UsdCrossRateSource(HttpRateSource):
    """USD-based rates: ``{"result": "success", "rates": {"EUR": 0.92}}``."""

    name = "usd-cross-rates"

    def _parse(self, instrument: str, data: Any) -> RateQuote:
        base, _, quote_ccy = instrument.upper().partition("/")
        if base != "USD" or not quote_ccy:
            raise ValueError(f"{instrument} is not a USD cross instrument")
        if data.get("result") != "success":
            raise ValueError(f"provider result {data.get('result')!r}")

        return RateQuote(
            instrument=instrument,
            rate=_price(data["rates"][quote_ccy]),
            provider=self.name,
            fetched_at=datetime.now(timezone.utc),
        )


class MockRateSource:
    """Deterministic rates for dev/testing."""

    name = "mock"

    def __init__(self, rates: dict[str, Decimal] | None = None):
        self._rates = dict(MOCK_RATES if rates is None else rates)

    async def fetch(self, instrument: str) -> RateQuote:
        try:
            return RateQuote(
                instrument=instrument,
                rate=self._rates[instrument],
                provider=self.name,
            )
        except (KeyError, InvalidRate) as exc:
            raise SourceUnavailable(self.name, instrument, "no mock rate") from exc
