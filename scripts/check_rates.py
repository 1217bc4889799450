"""
Manual rate check — resolves the current rates and cost prices once.

Usage:
    python scripts/check_rates.py

Useful for checking provider connectivity (set FX_RATE_MOCK=false) without
starting the API.
"""

import asyncio
import json

from fxcompass.config import settings
from fxcompass.services.rate_service import build_rate_service


async def main():
    """Resolve every configured instrument and print the cost prices."""
    service = build_rate_service(settings)

    print("Resolving rates...")
    results = await service.aggregator.refresh_many(service.aggregator.instruments())

    print("\n=== Rates ===")
    for instrument, result in results.items():
        flag = "STALE" if result.stale else "live"
        print(f"{instrument:<10} {result.rate:>14} [{flag}, {result.tier.value}]")

    snapshot = await service.get_cost_prices()
    print("\n=== Cost prices (sell) ===")
    print(json.dumps({c.value: str(p) for c, p in snapshot.prices.items()}, indent=2))
    print(f"\nStale inputs: {snapshot.stale}")


if __name__ == "__main__":
    asyncio.run(main())
