# backend/app/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- PriceService satisfies these without inheriting from them
- Test doubles only need the methods a consumer actually calls
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.models import Asset


class LastKnownPriceSource(Protocol):
    """Interface required by LedgerService (no network access)."""

    def latest_known_price(self, db: Session, symbol: str) -> Decimal | None:
        ...

    def update_last_known_price(self, db: Session, asset: Asset, price: Decimal) -> None:
        ...


class LivePriceSource(Protocol):
    """Interface required by PortfolioService.refresh_prices()."""

    def fetch_price(self, db: Session, symbol: str) -> Decimal | None:
        ...


class BackfillPriceSource(LivePriceSource, Protocol):
    """Interface required by SnapshotBackfillService."""

    def historical_prices(
        self,
        db: Session,
        symbol: str,
        start_date: date,
        end_date: date,
    ) -> dict[date, Decimal]:
        ...

    def sync_price_history(
        self,
        db: Session,
        symbol: str,
        start_date: date,
        end_date: date,
    ) -> int:
        ...
