# backend/app/routers/holdings.py
"""
Holdings and portfolio read-model endpoints.

Holdings are derived from the ledger and rewritten after every mutation;
refresh-prices is the only endpoint here that writes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_portfolio_service
from app.schemas.holdings import (
    CategoryShareResponse,
    HoldingResponse,
    HoldingStateResponse,
    PortfolioSummaryResponse,
    RefreshPricesResponse,
)
from app.services.portfolio_service import PortfolioService

holdings_router = APIRouter(
    prefix="/holdings",
    tags=["Holdings"],
)

portfolio_router = APIRouter(
    prefix="/portfolio",
    tags=["Portfolio"],
)


# =============================================================================
# HOLDINGS
# =============================================================================

@holdings_router.get(
    "",
    response_model=list[HoldingResponse],
    summary="List open positions",
)
def list_holdings(
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[PortfolioService, Depends(get_portfolio_service)],
) -> list[HoldingResponse]:
    """Open positions, largest market value first."""
    return [HoldingResponse.from_holding(h) for h in service.get_holdings(db)]


@holdings_router.get(
    "/{asset_symbol}",
    response_model=HoldingResponse,
    summary="Get one open position",
)
def get_holding(
        asset_symbol: str,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[PortfolioService, Depends(get_portfolio_service)],
) -> HoldingResponse:
    return HoldingResponse.from_holding(service.get_holding(db, asset_symbol))


# =============================================================================
# PORTFOLIO
# =============================================================================

@portfolio_router.get(
    "/summary",
    response_model=PortfolioSummaryResponse,
    summary="Portfolio totals",
)
def get_summary(
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[PortfolioService, Depends(get_portfolio_service)],
) -> PortfolioSummaryResponse:
    return PortfolioSummaryResponse.model_validate(service.summary(db))


@portfolio_router.get(
    "/diversification",
    response_model=list[CategoryShareResponse],
    summary="Market value by asset category",
)
def get_diversification(
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[PortfolioService, Depends(get_portfolio_service)],
) -> list[CategoryShareResponse]:
    return [CategoryShareResponse.model_validate(share) for share in service.diversification(db)]


@portfolio_router.post(
    "/refresh-prices",
    response_model=RefreshPricesResponse,
    summary="Refresh market prices of all holdings",
)
def refresh_prices(
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[PortfolioService, Depends(get_portfolio_service)],
) -> RefreshPricesResponse:
    """
    Fetch a live quote for every held asset and reproject its holding.

    A failed quote keeps the last known price; the request still succeeds.
    """
    states = service.refresh_prices(db)
    return RefreshPricesResponse(
        refreshed=len(states),
        holdings=[HoldingStateResponse.model_validate(state) for state in states],
    )
