# backend/app/dependencies.py
"""
Dependency injection module for FastAPI services.

Services are process-wide singletons, created lazily on first use. They
share one price provider (and its retry policy) and one per-asset lock
registry, so two requests touching the same asset are serialised.

Usage in routers:
    from app.dependencies import get_ledger_service

    @router.post("/")
    def create_transaction(
        service: LedgerService = Depends(get_ledger_service),
    ):
        ...

Tests override these with app.dependency_overrides.
"""

import logging
from functools import lru_cache

from app.config import settings
from app.services.ledger import LedgerService
from app.services.market_data import PriceService, YahooFinanceProvider
from app.services.market_data.base import PriceProvider
from app.services.portfolio_service import PortfolioService
from app.services.snapshots import SnapshotBackfillService
from app.services.valuation import HoldingsProjector, ValuationReplayEngine

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. get_price_provider (no deps)
# 2. get_price_service (provider)
# 3. get_holdings_projector, get_replay_engine (no deps)
# 4. get_ledger_service, get_portfolio_service (price service, projector)
# 5. get_backfill_service (price service, replay engine)


@lru_cache(maxsize=1)
def get_price_provider() -> PriceProvider:
    logger.debug("Initializing singleton YahooFinanceProvider")
    return YahooFinanceProvider(timeout=settings.price_fetch_timeout)


@lru_cache(maxsize=1)
def get_price_service() -> PriceService:
    logger.debug("Initializing singleton PriceService")
    return PriceService(provider=get_price_provider())


@lru_cache(maxsize=1)
def get_holdings_projector() -> HoldingsProjector:
    return HoldingsProjector()


@lru_cache(maxsize=1)
def get_replay_engine() -> ValuationReplayEngine:
    return ValuationReplayEngine()


@lru_cache(maxsize=1)
def get_ledger_service() -> LedgerService:
    """Single writer of the ledger; reprojects holdings after each write."""
    logger.debug("Initializing singleton LedgerService")
    return LedgerService(
        price_service=get_price_service(),
        projector=get_holdings_projector(),
    )


@lru_cache(maxsize=1)
def get_portfolio_service() -> PortfolioService:
    logger.debug("Initializing singleton PortfolioService")
    return PortfolioService(
        price_service=get_price_service(),
        projector=get_holdings_projector(),
    )


@lru_cache(maxsize=1)
def get_backfill_service() -> SnapshotBackfillService:
    """Backfill with pacing/worker settings from the environment."""
    logger.debug("Initializing singleton SnapshotBackfillService")
    return SnapshotBackfillService(
        price_service=get_price_service(),
        replay_engine=get_replay_engine(),
    )


# =============================================================================
# CACHE MANAGEMENT
# =============================================================================

def clear_service_caches() -> None:
    """Drop all singletons; the next call creates fresh instances."""
    get_price_provider.cache_clear()
    get_price_service.cache_clear()
    get_holdings_projector.cache_clear()
    get_replay_engine.cache_clear()
    get_ledger_service.cache_clear()
    get_portfolio_service.cache_clear()
    get_backfill_service.cache_clear()
    logger.info("Cleared all service singleton caches")
