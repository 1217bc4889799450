"""
Fixed-interval rate refresher.

Re-invokes the aggregator for a set of instruments on an asyncio task so
the cache stays warm between requests.  The aggregator itself never
raises for provider outages; anything else is logged and the loop goes on.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from fxcompass.rate_engine.aggregator import RateAggregator
from fxcompass.rate_engine.models import RateResult

logger = logging.getLogger(__name__)


class RatePoller:
    """Polls the aggregator every ``interval`` seconds until stopped."""

    def __init__(
        self,
        aggregator: RateAggregator,
        instruments: Iterable[str],
        interval: float = 60,
    ):
        self.aggregator = aggregator
        self.instruments = list(instruments)
        self.interval = interval
        self._task: asyncio.Task | None = None

        # Statistics
        self.total_cycles = 0
        self.last_cycle_at: datetime | None = None
        self.last_results: dict[str, RateResult] = {}

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.is_running:
            logger.warning("RatePoller already running")
            return
        self._task = asyncio.create_task(self._poll_loop())
        logger.info(
            "RatePoller started for %s every %ss",
            ", ".join(self.instruments), self.interval,
        )

    async def stop(self) -> None:
        """Cancel the loop; an in-flight fetch is abandoned without touching the cache."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("RatePoller stopped after %d cycles", self.total_cycles)

    async def run_cycle(self) -> dict[str, RateResult]:
        results = await self.aggregator.refresh_many(self.instruments)
        self.total_cycles += 1
        self.last_cycle_at = datetime.now(timezone.utc)
        self.last_results = results

        stale = [name for name, result in results.items() if result.stale]
        if stale:
            logger.warning("Refresh cycle #%d: stale rates for %s", self.total_cycles, ", ".join(stale))
        else:
            logger.debug("Refresh cycle #%d: all rates live", self.total_cycles)
        return results

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self.run_cycle()
            except Exception:
                logger.exception("Rate refresh cycle failed")
            await asyncio.sleep(self.interval)
