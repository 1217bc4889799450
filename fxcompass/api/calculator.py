"""
Arbitrage calculator endpoint.

Called on every input change in the rate-calculator UI.  Invalid input
is rejected with 400; nothing is clamped or defaulted.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from fxcompass.api.deps import get_rate_service
from fxcompass.rate_engine.errors import InvalidInput
from fxcompass.schemas.calculator import CalculationRequest, CalculationResponse
from fxcompass.services.rate_service import RateService

router = APIRouter()


@router.post("", response_model=CalculationResponse)
async def calculate_transaction(
    payload: CalculationRequest,
    svc: RateService = Depends(get_rate_service),
):
    """
    Compute USDT equivalent, NGN received, NGN cost, and profit.

    When ``reference_rate`` is omitted the current USDT/NGN rate is used
    and ``reference_stale`` reports whether it came from a fallback.
    """
    try:
        calc = await svc.calculate(
            payload.customer_amount,
            payload.rate_sold,
            payload.rate_bought,
            payload.reference_rate,
        )
    except InvalidInput as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        )

    result = calc.result
    return CalculationResponse(
        usdt_equivalent=result.usdt_equivalent,
        total_received=result.total_received,
        total_cost=result.total_cost,
        profit=result.profit,
        margin_percentage=result.margin_percentage,
        reference_rate=calc.reference_rate,
        reference_stale=calc.reference_stale,
    )
