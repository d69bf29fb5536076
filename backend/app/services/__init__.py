# backend/app/services/__init__.py
"""
Service layer for business logic.

Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive database sessions as parameters (not via Depends)
- Are easily testable via dependency injection

Usage:
    from app.services import LedgerService, PriceService, YahooFinanceProvider
    from app.services import ValidationError, TransactionNotFoundError

Architecture:
    services/
    ├── __init__.py                  # This file - main exports
    ├── exceptions.py                # Domain exceptions
    ├── protocols.py                 # Price source interfaces (Protocol classes)
    ├── locks.py                     # Per-asset lock registry
    ├── asset_registry.py            # Asset lookup and stub creation
    ├── portfolio_service.py         # Summary, diversification, price refresh
    ├── ledger/                      # Ledger writes
    │   ├── normalizer.py            # Trade → two legs
    │   └── service.py               # LedgerService
    ├── market_data/                 # Prices
    │   ├── base.py                  # Abstract provider interface
    │   ├── yahoo.py                 # Yahoo Finance implementation
    │   └── price_service.py         # Current/historical prices with fallback
    ├── valuation/                   # Derivations from the ledger
    │   ├── calculators.py           # Folds over TransactionKind
    │   ├── cost_basis.py            # Cost basis policies
    │   ├── holdings_projector.py    # Current position
    │   ├── replay.py                # Position/value on a past date
    │   └── estimator.py             # Random walk price estimates
    └── snapshots/                   # Daily snapshots
        └── backfill_service.py      # Backfill orchestration and reads
"""

from app.services.asset_registry import AssetRegistry
from app.services.exceptions import (
    AssetNotFoundError,
    HoldingNotFoundError,
    MarketDataError,
    NotFoundError,
    PersistenceError,
    RateLimitError,
    ServiceError,
    TickerNotFoundError,
    TradeNotFoundError,
    TransactionNotFoundError,
    UpstreamUnavailableError,
    ValidationError,
)
from app.services.ledger import LedgerService, TradeNormalizer
from app.services.market_data import PriceProvider, PriceService, YahooFinanceProvider
from app.services.portfolio_service import PortfolioService
from app.services.snapshots import BackfillReport, SnapshotBackfillService

__all__ = [
    # ==========================================================================
    # Services
    # ==========================================================================
    "AssetRegistry",
    "LedgerService",
    "TradeNormalizer",
    "PortfolioService",
    "PriceService",
    "PriceProvider",
    "YahooFinanceProvider",
    "SnapshotBackfillService",
    "BackfillReport",

    # ==========================================================================
    # Exceptions
    # ==========================================================================
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "TransactionNotFoundError",
    "TradeNotFoundError",
    "AssetNotFoundError",
    "HoldingNotFoundError",
    "MarketDataError",
    "UpstreamUnavailableError",
    "RateLimitError",
    "TickerNotFoundError",
    "PersistenceError",
]
