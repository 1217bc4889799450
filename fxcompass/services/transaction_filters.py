"""
Period filters for transaction history.

Records are validated ``TransactionRecord`` instances; raw dicts are
validated on the way in so an undated record is rejected at the boundary.
All period boundaries are computed in UTC.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from fxcompass.schemas.transaction import TimePeriod, TransactionRecord

PERIOD_LABELS = {
    TimePeriod.DAILY: "Today",
    TimePeriod.WEEKLY: "This Week",
    TimePeriod.MONTHLY: "This Month",
    TimePeriod.YEARLY: "This Year",
}


@dataclass(frozen=True)
class PeriodSummary:
    count: int
    total_usdc: Decimal
    total_pnl_naira: Decimal


def period_start(period: TimePeriod, now: datetime | None = None) -> datetime:
    """
    First instant of the current *period*.

    Weeks start on Sunday, matching the dashboard's week view.
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)

    period = TimePeriod(period)
    if period is TimePeriod.WEEKLY:
        days_since_sunday = (start_of_day.weekday() + 1) % 7
        return start_of_day - timedelta(days=days_since_sunday)
    if period is TimePeriod.MONTHLY:
        return start_of_day.replace(day=1)
    if period is TimePeriod.YEARLY:
        return start_of_day.replace(month=1, day=1)
    return start_of_day


def period_label(period: TimePeriod) -> str:
    return PERIOD_LABELS[TimePeriod(period)]


def _validated(records: Iterable) -> list[TransactionRecord]:
    return [
        r if isinstance(r, TransactionRecord) else TransactionRecord.model_validate(r)
        for r in records
    ]


def filter_by_period(
    records: Iterable,
    period: TimePeriod,
    now: datetime | None = None,
) -> list[TransactionRecord]:
    """Records dated on or after the start of the current *period*."""
    start = period_start(period, now)
    return [r for r in _validated(records) if r.transaction_date >= start]


def summarize(records: Iterable) -> PeriodSummary:
    validated = _validated(records)
    return PeriodSummary(
        count=len(validated),
        total_usdc=sum((r.usdc_quantity for r in validated), Decimal("0")),
        total_pnl_naira=sum((r.pnl_naira for r in validated), Decimal("0")),
    )
