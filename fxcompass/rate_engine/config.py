"""
Rate engine configuration constants.

Defines the base instrument, the staleness threshold, and the instrument
naming used for cross rates and peer pair quotes.
"""

from datetime import timedelta

from fxcompass.config import settings

# Instrument every cost price is derived from
BASE_INSTRUMENT = "USDT/NGN"

# Maximum age before a cached quote is reported as stale
MAX_RATE_AGE = timedelta(seconds=settings.FX_RATE_MAX_AGE_SECONDS)


def cross_instrument(currency: str) -> str:
    """Units of *currency* per 1 USD, e.g. ``USD/EUR``."""
    return f"USD/{currency}"


def market_instrument(currency: str) -> str:
    """Peer-market NGN price of *currency*, e.g. ``EUR/NGN``."""
    return f"{currency}/NGN"
