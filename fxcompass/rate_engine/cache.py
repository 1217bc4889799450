"""
Session-scoped last-good rate cache with a fixed fallback per instrument.

Entries are created up front with their fallback constant and are never
cleared; a successful fetch only ever replaces ``last_good``.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from fxcompass.rate_engine.errors import InvalidRate, UnknownInstrument
from fxcompass.rate_engine.models import CachedRate, RateQuote, to_decimal


class RateCache:
    """Holds one ``CachedRate`` per registered instrument."""

    def __init__(self, fallbacks: Mapping[str, Decimal]):
        self._entries: dict[str, CachedRate] = {}
        for instrument, fallback in fallbacks.items():
            value = to_decimal(fallback, f"fallback for {instrument}")
            if value <= 0:
                raise InvalidRate(f"Fallback for {instrument} must be positive, got {value}")
            self._entries[instrument] = CachedRate(instrument=instrument, fallback=value)

    def _entry(self, instrument: str) -> CachedRate:
        try:
            return self._entries[instrument]
        except KeyError:
            raise UnknownInstrument(instrument) from None

    def __contains__(self, instrument: str) -> bool:
        return instrument in self._entries

    def instruments(self) -> list[str]:
        return list(self._entries)

    def get(self, instrument: str) -> Decimal:
        """Last good rate if any, else the fallback constant."""
        entry = self._entry(instrument)
        if entry.last_good is not None:
            return entry.last_good.rate
        return entry.fallback

    def last_good(self, instrument: str) -> RateQuote | None:
        return self._entry(instrument).last_good

    def fallback(self, instrument: str) -> Decimal:
        return self._entry(instrument).fallback

    def update(self, instrument: str, quote: RateQuote) -> None:
        """Replace ``last_good``. Last write wins; ``fetched_at`` is not compared."""
        self._entry(instrument).last_good = quote

    def is_stale(
        self,
        instrument: str,
        max_age: timedelta,
        now: datetime | None = None,
    ) -> bool:
        last_good = self._entry(instrument).last_good
        if last_good is None:
            return True
        now = now or datetime.now(timezone.utc)
        return now - last_good.fetched_at > max_age
