"""
Pydantic schemas for transaction records and period summaries.

Transaction records arrive from the storage collaborator; the
``transaction_date`` field is mandatory and validated here so the period
filters never see an undated record.
"""

import enum
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


class TimePeriod(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class TransactionRecord(BaseModel):
    """One P2P/FX transaction as stored by the dashboard."""
    id: str
    transaction_date: datetime = Field(..., examples=["2025-03-14T09:30:00Z"])
    currency_payout: str = Field("NGN", examples=["USD"])
    usdc_quantity: Decimal = Decimal("0")
    selling_rate_naira: Decimal | None = None
    cost_price_naira: Decimal | None = None
    pnl_naira: Decimal = Decimal("0")
    note: str | None = None

    @field_validator("transaction_date")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class TransactionSummaryRequest(BaseModel):
    period: TimePeriod = TimePeriod.DAILY
    transactions: list[TransactionRecord]


class TransactionSummaryResponse(BaseModel):
    period: TimePeriod
    label: str
    start: datetime
    count: int
    total_usdc: Decimal
    total_pnl_naira: Decimal
    transactions: list[TransactionRecord]
