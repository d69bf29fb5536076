# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- Mock price provider
- Service fixtures wired to the mock provider
- Sample data factories
"""

import os

# Must be set before anything imports app.config
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("APP_NAME", "Test App")

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import (
    Base,
    Asset,
    AssetCategory,
    PriceHistory,
    Transaction,
    TransactionKind,
)
from app.services.exceptions import TickerNotFoundError, UpstreamUnavailableError
from app.services.ledger import LedgerService
from app.services.locks import AssetLockRegistry
from app.services.market_data import PriceService
from app.services.market_data.base import (
    HistoricalPricesResult,
    PricePoint,
    PriceProvider,
)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# MOCK PRICE PROVIDER
# =============================================================================

class MockPriceProvider(PriceProvider):
    """
    Mock implementation of PriceProvider for testing.

    Allows configuring prices per symbol and simulating outages.
    """

    def __init__(self):
        self._prices: dict[str, Decimal] = {}
        self._history: dict[str, list[PricePoint]] = {}
        self._errors: dict[str, Exception] = {}
        self.current_calls: list[str] = []
        self.history_calls: list[tuple[str, date, date]] = []

    @property
    def name(self) -> str:
        return "mock"

    def set_price(self, symbol: str, price) -> None:
        """Configure the live quote for a symbol."""
        self._prices[symbol.upper()] = Decimal(str(price))

    def set_history(self, symbol: str, closes: dict[date, object]) -> None:
        """Configure daily closes returned for a symbol."""
        self._history[symbol.upper()] = [
            PricePoint(date=day, close=Decimal(str(close)))
            for day, close in sorted(closes.items())
        ]

    def set_unavailable(self, symbol: str) -> None:
        """Make every request for a symbol fail as an outage."""
        self._errors[symbol.upper()] = UpstreamUnavailableError(provider=self.name, reason="simulated outage")

    def get_current_price(self, symbol: str, category: AssetCategory) -> Decimal:
        symbol = symbol.upper()
        self.current_calls.append(symbol)
        if symbol in self._errors:
            raise self._errors[symbol]
        if symbol not in self._prices:
            raise TickerNotFoundError(symbol=symbol, provider=self.name)
        return self._prices[symbol]

    def get_historical_prices(
            self,
            symbol: str,
            category: AssetCategory,
            start_date: date,
            end_date: date,
    ) -> HistoricalPricesResult:
        symbol = symbol.upper()
        self.history_calls.append((symbol, start_date, end_date))
        if symbol in self._errors:
            raise self._errors[symbol]
        points = [
            p for p in self._history.get(symbol, [])
            if start_date <= p.date <= end_date
        ]
        return HistoricalPricesResult(
            symbol=symbol,
            prices=points,
            from_date=start_date,
            to_date=end_date,
        )


@pytest.fixture
def mock_provider() -> MockPriceProvider:
    """Create a fresh mock provider for each test."""
    return MockPriceProvider()


@pytest.fixture
def price_service(mock_provider: MockPriceProvider) -> PriceService:
    return PriceService(provider=mock_provider)


@pytest.fixture
def ledger_service(price_service: PriceService) -> LedgerService:
    """Ledger with its own lock registry, isolated from other tests."""
    return LedgerService(price_service=price_service, locks=AssetLockRegistry())


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def create_asset(
        db: Session,
        symbol: str = "BTC",
        name: str | None = None,
        category: AssetCategory = AssetCategory.CRYPTO,
        current_price=0,
) -> Asset:
    """Factory function for creating Asset entities in the database."""
    asset = Asset(
        symbol=symbol,
        name=name or symbol,
        category=category,
        current_price=Decimal(str(current_price)),
    )
    db.add(asset)
    db.commit()
    db.refresh(asset)
    return asset


def create_transaction(
        db: Session,
        kind: TransactionKind = TransactionKind.BUY,
        asset_symbol: str = "BTC",
        quantity="1",
        price_per_unit="0",
        fees="0",
        occurred_at: datetime | None = None,
        exchange: str = "Kraken",
        trade_group_id: str | None = None,
) -> Transaction:
    """
    Factory function for inserting a raw ledger row.

    Bypasses LedgerService (no validation, no reprojection).
    """
    quantity = Decimal(str(quantity))
    price = Decimal(str(price_per_unit))
    txn = Transaction(
        kind=kind,
        asset_symbol=asset_symbol,
        exchange=exchange,
        quantity=quantity,
        price_per_unit=price,
        total_amount=quantity * price,
        fees=Decimal(str(fees)),
        notes="",
        occurred_at=occurred_at or datetime(2024, 1, 1, 12, 0),
        trade_group_id=trade_group_id,
    )
    db.add(txn)
    db.commit()
    db.refresh(txn)
    return txn


def create_price_history(
        db: Session,
        symbol: str,
        closes: dict[date, object],
        source: str = "mock",
) -> None:
    """Factory function for storing daily closes."""
    for day, close in closes.items():
        db.add(PriceHistory(
            asset_symbol=symbol,
            price_date=day,
            price=Decimal(str(close)),
            source=source,
        ))
    db.commit()


def day_range(start: date, days: int) -> list[date]:
    return [start + timedelta(days=i) for i in range(days)]
