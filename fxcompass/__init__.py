"""FX Compass — exchange-rate aggregation and arbitrage-margin engine."""

__version__ = "0.1.0"
