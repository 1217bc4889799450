"""
Application settings loaded from environment variables.

Uses pydantic-settings for type-safe configuration with .env file support.
"""

from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Global application settings."""

    # App
    APP_NAME: str = "FX Compass"
    APP_ENV: str = "development"
    DEBUG: bool = True

    # Rate providers
    BYBIT_API_URL: str = "https://api.bybit.com"
    PAIR_RATES_API_URL: str = "https://api.vertofx.com/p/currency/rates"
    PAIR_RATES_SIDE: str = "sell"
    FX_CROSS_RATE_API_URL: str = "https://open.er-api.com/v6/latest/USD"

    # Rate engine
    FX_RATE_MOCK: bool = True  # set False in production to call real APIs
    FX_RATE_TIMEOUT_SECONDS: float = 8.0
    FX_RATE_FETCH_ATTEMPTS: int = 1
    FX_RATE_MAX_AGE_SECONDS: int = 300
    FX_RATE_POLL_ENABLED: bool = True
    FX_RATE_POLL_INTERVAL_SECONDS: int = 60

    # Hard-coded last-resort rates, used until the first successful fetch
    FALLBACK_RATES: dict[str, Decimal] = {
        "USDT/NGN": Decimal("1580"),
        "USD/EUR": Decimal("0.92"),
        "USD/GBP": Decimal("0.79"),
        "USD/CAD": Decimal("1.37"),
        "USD/NGN": Decimal("1600"),
        "EUR/NGN": Decimal("1805"),
        "GBP/NGN": Decimal("2080"),
        "CAD/NGN": Decimal("1140"),
    }

    # Margins in percent (2.5 = 2.5%)
    DEFAULT_USD_MARGIN_PERCENT: Decimal = Decimal("2.5")
    DEFAULT_OTHER_CURRENCIES_MARGIN_PERCENT: Decimal = Decimal("3.0")

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:8080"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
