# backend/app/routers/assets.py
"""
Asset price lookup.

Used by clients to pre-fill the unit price of a new buy/sell. The quote
comes from the price provider; when it is unavailable the asset's last
known price is returned instead, and 0 when it was never priced.
"""

import logging
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_price_service
from app.schemas.assets import AssetPriceResponse
from app.services.asset_registry import AssetRegistry
from app.services.market_data import PriceService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/assets",
    tags=["Assets"],
)


@router.get(
    "/{asset_symbol}/price",
    response_model=AssetPriceResponse,
    summary="Current price of an asset",
)
def get_asset_price(
        asset_symbol: str,
        db: Annotated[Session, Depends(get_db)],
        price_service: Annotated[PriceService, Depends(get_price_service)],
) -> AssetPriceResponse:
    asset = AssetRegistry().get_or_raise(db, asset_symbol)
    price = price_service.fetch_price(db, asset.symbol)

    return AssetPriceResponse(
        asset_symbol=asset.symbol,
        category=asset.category,
        price=price if price is not None else Decimal(0),
        price_updated_at=asset.price_updated_at,
    )
