# backend/app/routers/snapshots.py
"""
Daily snapshot endpoints.

POST /snapshots/backfill runs synchronously and returns the report. It is
safe to call repeatedly: existing snapshots are skipped, never rewritten.
"""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_backfill_service
from app.schemas.snapshots import (
    BackfillReportResponse,
    BackfillRequest,
    PortfolioHistoryPointResponse,
    SnapshotResponse,
)
from app.services.snapshots import SnapshotBackfillService

router = APIRouter(
    prefix="/snapshots",
    tags=["Snapshots"],
)


@router.post(
    "/backfill",
    response_model=BackfillReportResponse,
    summary="Create missing daily snapshots",
)
def backfill_snapshots(
        payload: BackfillRequest,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[SnapshotBackfillService, Depends(get_backfill_service)],
) -> BackfillReportResponse:
    """
    Fill every missing (asset, day) snapshot in the range.

    Failures of single assets or days are listed in `errors`; they do not
    fail the request.
    """
    report = service.backfill(
        db,
        payload.asset_symbol,
        payload.start_date,
        payload.end_date,
        sync_history=payload.sync_history,
    )
    return BackfillReportResponse.model_validate(report)


@router.get(
    "/history",
    response_model=list[PortfolioHistoryPointResponse],
    summary="Portfolio value per day",
)
def get_portfolio_history(
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[SnapshotBackfillService, Depends(get_backfill_service)],
        start_date: date = Query(..., description="First day (inclusive)"),
        end_date: date = Query(..., description="Last day (inclusive)"),
) -> list[PortfolioHistoryPointResponse]:
    """Sums of snapshot value and P&L across assets, one point per day."""
    points = service.portfolio_history(db, start_date, end_date)
    return [PortfolioHistoryPointResponse.model_validate(p) for p in points]


@router.get(
    "/{asset_symbol}",
    response_model=list[SnapshotResponse],
    summary="Snapshots of one asset",
)
def list_snapshots(
        asset_symbol: str,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[SnapshotBackfillService, Depends(get_backfill_service)],
        start_date: date | None = Query(default=None),
        end_date: date | None = Query(default=None),
) -> list[SnapshotResponse]:
    snapshots = service.list_snapshots(db, asset_symbol, start_date, end_date)
    return [SnapshotResponse.model_validate(s) for s in snapshots]
