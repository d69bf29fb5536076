# backend/app/routers/trades.py
"""
Asset-for-asset trade endpoints.

A trade is stored as two ledger legs sharing a trade_group_id; both
assets are reprojected after the write.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_ledger_service
from app.schemas.trades import TradeCreate, TradeDeletedResponse, TradeResponse
from app.schemas.transactions import TransactionResponse
from app.services.ledger import LedgerService

router = APIRouter(
    prefix="/trades",
    tags=["Trades"],
)


@router.post(
    "",
    response_model=TradeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a trade",
)
def create_trade(
        payload: TradeCreate,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[LedgerService, Depends(get_ledger_service)],
) -> TradeResponse:
    """
    Record "give qty_from of asset_from, receive qty_to of asset_to".

    Both legs carry no fiat price; `fees` is split evenly between them.
    """
    leg_out, leg_in = service.record_trade(db, **payload.model_dump())
    return TradeResponse(
        trade_group_id=leg_out.trade_group_id,
        leg_out=TransactionResponse.model_validate(leg_out),
        leg_in=TransactionResponse.model_validate(leg_in),
    )


@router.delete(
    "/{trade_group_id}",
    response_model=TradeDeletedResponse,
    summary="Delete both legs of a trade",
)
def delete_trade(
        trade_group_id: str,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[LedgerService, Depends(get_ledger_service)],
) -> TradeDeletedResponse:
    legs_deleted = service.delete_trade(db, trade_group_id)
    return TradeDeletedResponse(trade_group_id=trade_group_id, legs_deleted=legs_deleted)
