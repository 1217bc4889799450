"""
FX rate endpoints.

Provides the current aggregated rate per instrument, NGN cost prices for
the supported currencies, and a comparison against peer-market quotes.
Provider outages never fail these endpoints; responses carry ``stale``.
"""

from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fxcompass.api.deps import get_rate_service
from fxcompass.rate_engine.config import BASE_INSTRUMENT
from fxcompass.rate_engine.cost_prices import compute_cost_prices
from fxcompass.rate_engine.errors import InvalidInput, UnknownInstrument
from fxcompass.rate_engine.models import MarginConfig, RateResult, Side
from fxcompass.schemas.rate import (
    CostPriceRequest,
    CostPriceResponse,
    CurrentRateResponse,
    MarketComparisonItem,
    MarketComparisonResponse,
)
from fxcompass.services.rate_service import RateService

router = APIRouter()


def _rate_response(result: RateResult) -> CurrentRateResponse:
    return CurrentRateResponse(
        instrument=result.instrument,
        rate=result.rate,
        stale=result.stale,
        tier=result.tier,
        provider=result.provider,
        fetched_at=result.fetched_at,
        change_percent=result.change_percent,
    )


def _margin_from_query(
    svc: RateService,
    usd_margin: Decimal | None,
    other_currencies_margin: Decimal | None,
) -> MarginConfig:
    return MarginConfig(
        usd_margin=(
            svc.default_margin.usd_margin if usd_margin is None else usd_margin
        ),
        other_currencies_margin=(
            svc.default_margin.other_currencies_margin
            if other_currencies_margin is None else other_currencies_margin
        ),
    )


@router.get("/current", response_model=CurrentRateResponse)
async def get_current_rate(
    instrument: str = Query(
        BASE_INSTRUMENT, description="Instrument, e.g. USDT/NGN", examples=["USDT/NGN"],
    ),
    svc: RateService = Depends(get_rate_service),
):
    """
    Get the best-known rate for an instrument.

    Falls back to the last good or hard-coded rate when the provider is
    down; ``stale`` tells the client to show a "last known rate" notice.
    """
    try:
        result = await svc.get_current_rate(instrument.upper())
    except UnknownInstrument as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        )
    return _rate_response(result)


@router.get("/cost-prices", response_model=CostPriceResponse)
async def get_cost_prices(
    usd_margin: Decimal | None = Query(None, description="Fraction, e.g. 0.025"),
    other_currencies_margin: Decimal | None = Query(None, description="Fraction, e.g. 0.03"),
    side: Side = Query(Side.SELL),
    svc: RateService = Depends(get_rate_service),
):
    """
    Cost prices derived from the current USDT/NGN and USD cross rates.

    Margins default to the configured values when omitted.
    """
    margin = _margin_from_query(svc, usd_margin, other_currencies_margin)
    try:
        snapshot = await svc.get_cost_prices(margin, side)
    except InvalidInput as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        )

    return CostPriceResponse(
        side=snapshot.side,
        prices=snapshot.prices,
        stale=snapshot.stale,
        changed=snapshot.changed,
        previous=snapshot.previous,
        base_rate=_rate_response(snapshot.base),
    )


@router.post("/cost-prices", response_model=CostPriceResponse)
async def compute_cost_prices_for_rate(payload: CostPriceRequest):
    """Cost prices from an explicit base rate. No provider is called."""
    try:
        prices = compute_cost_prices(
            payload.base_rate,
            MarginConfig(
                usd_margin=payload.margin.usd_margin,
                other_currencies_margin=payload.margin.other_currencies_margin,
            ),
            payload.currencies,
            cross_rates=payload.cross_rates,
            side=payload.side,
        )
    except InvalidInput as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        )

    return CostPriceResponse(side=payload.side, prices=prices)


@router.get("/comparison", response_model=MarketComparisonResponse)
async def get_market_comparison(
    usd_margin: Decimal | None = Query(None),
    other_currencies_margin: Decimal | None = Query(None),
    side: Side = Query(Side.SELL),
    svc: RateService = Depends(get_rate_service),
):
    """Our cost price per currency against the peer-market quote."""
    margin = _margin_from_query(svc, usd_margin, other_currencies_margin)
    try:
        comparisons = await svc.compare_with_market(margin, side)
    except InvalidInput as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        )

    return MarketComparisonResponse(
        side=side,
        items=[
            MarketComparisonItem(
                currency=c.currency,
                our_rate=c.our_rate,
                market_rate=c.market_rate,
                difference_percent=c.difference_percent,
                is_better=c.is_better,
                stale=c.stale,
            )
            for c in comparisons
        ],
    )
