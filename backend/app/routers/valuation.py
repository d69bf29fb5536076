# backend/app/routers/valuation.py
"""
Point-in-time valuation endpoint.

Replays an asset's ledger up to a date and values it at a price. The
price is taken from the query string when given; otherwise the stored
close for that date, then the asset's last known price, then 0.
"""

from datetime import date
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_price_service, get_replay_engine
from app.schemas.valuation import ValuationResponse
from app.services.asset_registry import AssetRegistry
from app.services.market_data import PriceService
from app.services.valuation import ValuationReplayEngine

router = APIRouter(
    prefix="/valuation",
    tags=["Valuation"],
)


def resolve_price_on_date(
        db: Session,
        price_service: PriceService,
        asset_symbol: str,
        as_of_date: date,
) -> Decimal:
    stored = price_service.historical_prices(db, asset_symbol, as_of_date, as_of_date)
    if as_of_date in stored:
        return stored[as_of_date]
    return price_service.latest_known_price(db, asset_symbol) or Decimal(0)


@router.get(
    "/{asset_symbol}",
    response_model=ValuationResponse,
    summary="Value an asset position on a date",
)
def get_valuation(
        asset_symbol: str,
        db: Annotated[Session, Depends(get_db)],
        engine: Annotated[ValuationReplayEngine, Depends(get_replay_engine)],
        price_service: Annotated[PriceService, Depends(get_price_service)],
        as_of: date | None = Query(default=None, description="Valuation date (default: today)"),
        price: Decimal | None = Query(default=None, ge=0, description="Price to value the position at"),
) -> ValuationResponse:
    """
    Position and value of one asset at the end of `as_of`.

    A date before the first entry (or after the position closed) values
    to zero; it is never an error.
    """
    symbol = AssetRegistry().get_or_raise(db, asset_symbol).symbol
    as_of_date = as_of or date.today()
    if price is None:
        price = resolve_price_on_date(db, price_service, symbol, as_of_date)

    valuation = engine.replay_as_of(db, symbol, as_of_date, price)
    return ValuationResponse.model_validate(valuation)
