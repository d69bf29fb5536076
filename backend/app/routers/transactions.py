# backend/app/routers/transactions.py
"""
Ledger entry endpoints.

Every write goes through LedgerService, which reprojects the affected
holding after the ledger commit. Entries are immutable: a correction is
a delete followed by a new entry.

Domain errors (ValidationError, TransactionNotFoundError, ...) propagate
to the global handlers in main.py.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_ledger_service
from app.schemas.pagination import PaginationMeta
from app.schemas.transactions import (
    TransactionCreate,
    TransactionListResponse,
    TransactionResponse,
)
from app.services.ledger import LedgerService

router = APIRouter(
    prefix="/transactions",
    tags=["Transactions"],
)


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a ledger entry",
)
def create_transaction(
        payload: TransactionCreate,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[LedgerService, Depends(get_ledger_service)],
) -> TransactionResponse:
    """
    Record a buy, sell or standalone trade leg.

    - **buy/sell** need `price_per_unit` > 0; it also becomes the asset's last known price
    - **trade_in/trade_out** carry no price (use `POST /trades` for a full trade)
    - Unknown symbols are registered on the fly
    """
    txn = service.record_transaction(db, **payload.model_dump())
    return TransactionResponse.model_validate(txn)


@router.get(
    "",
    response_model=TransactionListResponse,
    summary="List ledger entries",
)
def list_transactions(
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[LedgerService, Depends(get_ledger_service)],
        skip: int = Query(default=0, ge=0),
        limit: int = Query(default=50, ge=1, le=500),
) -> TransactionListResponse:
    """Whole ledger, newest first."""
    items, total = service.list_all(db, limit=limit, offset=skip)
    return TransactionListResponse(
        items=[TransactionResponse.model_validate(txn) for txn in items],
        pagination=PaginationMeta.create(total=total, skip=skip, limit=limit),
    )


@router.get(
    "/recent",
    response_model=list[TransactionResponse],
    summary="Recent ledger entries",
)
def list_recent_transactions(
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[LedgerService, Depends(get_ledger_service)],
        days: int = Query(default=3, ge=1, le=365),
        limit: int = Query(default=10, ge=1, le=100),
) -> list[TransactionResponse]:
    return [TransactionResponse.model_validate(txn) for txn in service.list_recent(db, days=days, limit=limit)]


@router.get(
    "/by-asset/{asset_symbol}",
    response_model=list[TransactionResponse],
    summary="Ledger of one asset",
)
def list_asset_transactions(
        asset_symbol: str,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[LedgerService, Depends(get_ledger_service)],
) -> list[TransactionResponse]:
    """Entries of one asset in ledger order (occurred_at, id)."""
    return [TransactionResponse.model_validate(txn) for txn in service.list_transactions(db, asset_symbol)]


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get a ledger entry",
)
def get_transaction(
        transaction_id: int,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[LedgerService, Depends(get_ledger_service)],
) -> TransactionResponse:
    return TransactionResponse.model_validate(service.get_transaction(db, transaction_id))


@router.delete(
    "/{transaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a ledger entry",
)
def delete_transaction(
        transaction_id: int,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[LedgerService, Depends(get_ledger_service)],
) -> Response:
    """
    Delete one entry and reproject its asset.

    Deleting one leg of a trade leaves the other leg in place; use
    `DELETE /trades/{trade_group_id}` to remove both.
    """
    service.delete_transaction(db, transaction_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
