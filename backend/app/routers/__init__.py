# backend/app/routers/__init__.py
"""
API routers for the Asset Ledger.

Each router handles a specific domain:
- assets: Current price lookup
- transactions: Single ledger entries (buy/sell/trade legs)
- trades: Asset-for-asset trades (two legs)
- holdings: Open positions and portfolio read models
- valuation: Point-in-time valuation by ledger replay
- snapshots: Daily snapshot backfill and history
"""

from app.routers.assets import router as assets_router
from app.routers.holdings import holdings_router, portfolio_router
from app.routers.snapshots import router as snapshots_router
from app.routers.trades import router as trades_router
from app.routers.transactions import router as transactions_router
from app.routers.valuation import router as valuation_router

__all__ = [
    "assets_router",
    "transactions_router",
    "trades_router",
    "holdings_router",
    "portfolio_router",
    "valuation_router",
    "snapshots_router",
]
