"""
Transaction history summary endpoint.

Filters caller-supplied records to the current day/week/month/year and
totals them.  Records are not stored here.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from fxcompass.schemas.transaction import (
    TransactionSummaryRequest,
    TransactionSummaryResponse,
)
from fxcompass.services.transaction_filters import (
    filter_by_period,
    period_label,
    period_start,
    summarize,
)

router = APIRouter()


@router.post("/summary", response_model=TransactionSummaryResponse)
async def summarize_transactions(payload: TransactionSummaryRequest):
    """Records in the current period with their count, USDC volume, and PnL."""
    now = datetime.now(timezone.utc)
    start = period_start(payload.period, now)
    records = filter_by_period(payload.transactions, payload.period, now)
    summary = summarize(records)

    return TransactionSummaryResponse(
        period=payload.period,
        label=period_label(payload.period),
        start=start,
        count=summary.count,
        total_usdc=summary.total_usdc,
        total_pnl_naira=summary.total_pnl_naira,
        transactions=records,
    )
