# backend/app/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

Organized by domain:
- errors: Error response formats
- assets: Asset price lookup
- pagination: Pagination metadata for list endpoints
- validators: Reusable validation functions (symbol, exchange, date range)
- transactions: Ledger entries
- trades: Asset-for-asset trades
- holdings: Open positions and portfolio read models
- valuation: Point-in-time valuation
- snapshots: Backfill requests/reports and snapshot history

Usage:
    from app.schemas import TransactionCreate, TransactionResponse
    from app.schemas import BackfillRequest, BackfillReportResponse
"""

from app.schemas.assets import AssetPriceResponse
from app.schemas.errors import ErrorDetail, ValidationErrorDetail
from app.schemas.holdings import (
    CategoryShareResponse,
    HoldingResponse,
    HoldingStateResponse,
    PortfolioSummaryResponse,
    RefreshPricesResponse,
)
from app.schemas.pagination import PaginationMeta
from app.schemas.snapshots import (
    BackfillErrorResponse,
    BackfillReportResponse,
    BackfillRequest,
    PortfolioHistoryPointResponse,
    SnapshotResponse,
)
from app.schemas.trades import TradeCreate, TradeDeletedResponse, TradeResponse
from app.schemas.transactions import (
    TransactionCreate,
    TransactionListResponse,
    TransactionResponse,
)
from app.schemas.valuation import ValuationResponse

__all__ = [
    # Assets
    "AssetPriceResponse",
    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
    # Pagination
    "PaginationMeta",
    # Transactions
    "TransactionCreate",
    "TransactionResponse",
    "TransactionListResponse",
    # Trades
    "TradeCreate",
    "TradeResponse",
    "TradeDeletedResponse",
    # Holdings / portfolio
    "HoldingResponse",
    "HoldingStateResponse",
    "PortfolioSummaryResponse",
    "CategoryShareResponse",
    "RefreshPricesResponse",
    # Valuation
    "ValuationResponse",
    # Snapshots
    "BackfillRequest",
    "BackfillReportResponse",
    "BackfillErrorResponse",
    "SnapshotResponse",
    "PortfolioHistoryPointResponse",
]
