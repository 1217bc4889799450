"""
Arbitrage calculation for a single customer transaction.

    usdt_equivalent = customer_amount / rate_sold
    total_received  = usdt_equivalent * rate_sold   * reference_rate
    total_cost      = usdt_equivalent * rate_bought * reference_rate
    profit          = total_received - total_cost

No rounding is applied; display formatting belongs to the caller.
"""

from __future__ import annotations

from fxcompass.rate_engine.errors import InvalidAmount, InvalidRate
from fxcompass.rate_engine.models import TransactionCalculationResult, to_decimal


def calculate(
    customer_amount,
    rate_sold,
    rate_bought,
    reference_rate,
) -> TransactionCalculationResult:
    """
    Compute settlement, cost, and profit in NGN.

    ``rate_sold``/``rate_bought`` are the customer-currency per USDT rates
    the transaction was sold and bought at; ``reference_rate`` is USDT/NGN.
    """
    try:
        amount = to_decimal(customer_amount, "customer_amount")
    except InvalidRate as exc:
        raise InvalidAmount(str(exc)) from None
    sold = to_decimal(rate_sold, "rate_sold")
    bought = to_decimal(rate_bought, "rate_bought")
    reference = to_decimal(reference_rate, "reference_rate")

    if not sold.is_finite() or sold <= 0:
        raise InvalidRate(f"rate_sold must be positive, got {sold}")
    if not amount.is_finite() or amount < 0:
        raise InvalidAmount(f"customer_amount must not be negative, got {amount}")
    if not bought.is_finite() or bought < 0:
        raise InvalidRate(f"rate_bought must not be negative, got {bought}")
    if not reference.is_finite() or reference <= 0:
        raise InvalidRate(f"reference_rate must be positive, got {reference}")

    usdt_equivalent = amount / sold
    total_received = usdt_equivalent * sold * reference
    total_cost = usdt_equivalent * bought * reference

    return TransactionCalculationResult(
        usdt_equivalent=usdt_equivalent,
        total_received=total_received,
        total_cost=total_cost,
        profit=total_received - total_cost,
    )
