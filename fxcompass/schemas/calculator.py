"""
Pydantic schemas for the arbitrage calculator.

Amounts and rates are not range-checked here; the calculator validates
them and the route turns its errors into 400 responses.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class CalculationRequest(BaseModel):
    customer_amount: Decimal = Field(..., examples=[100])
    rate_sold: Decimal = Field(..., examples=[1500])
    rate_bought: Decimal = Field(..., examples=[1480])
    reference_rate: Decimal | None = Field(
        None,
        description="USDT/NGN rate; defaults to the current aggregated rate",
        examples=[1],
    )


class CalculationResponse(BaseModel):
    usdt_equivalent: Decimal
    total_received: Decimal
    total_cost: Decimal
    profit: Decimal
    margin_percentage: Decimal
    reference_rate: Decimal
    reference_stale: bool
