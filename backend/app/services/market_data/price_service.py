# backend/app/services/market_data/price_service.py
"""
Price service: the single place the engine asks "what is this asset worth?".

Two kinds of price are served:
- Latest known price: Asset.current_price, refreshed by live quotes and by
  buy/sell unit prices. Reading it never touches the network.
- Historical closes: PriceHistory rows, filled from the provider on demand.

Failure policy:
    Upstream failures are never fatal. fetch_price() degrades to the last
    persisted price (or None when there is none) and sync_price_history()
    degrades to "nothing stored". Storage errors are propagated.

Usage:
    service = PriceService(provider=YahooFinanceProvider())

    price = service.fetch_price(db, "BTC")       # live, with fallback
    price = service.latest_known_price(db, "BTC")  # no network
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Asset, PriceHistory
from app.services.exceptions import MarketDataError
from app.services.market_data.base import PriceProvider

logger = logging.getLogger(__name__)


class PriceService:
    """
    Resolves current and historical prices with graceful degradation.

    Attributes:
        _provider: External price source
    """

    def __init__(self, provider: PriceProvider) -> None:
        self._provider = provider

    @property
    def provider_name(self) -> str:
        return self._provider.name

    # =========================================================================
    # CURRENT PRICE
    # =========================================================================

    def latest_known_price(self, db: Session, symbol: str) -> Decimal | None:
        """
        Last persisted market price for an asset.

        Returns:
            The price, or None if the asset is unknown or has never been priced
        """
        current_price = db.scalar(
            select(Asset.current_price).where(Asset.symbol == symbol)
        )
        if current_price is None or current_price <= 0:
            return None
        return current_price

    def fetch_price(self, db: Session, symbol: str) -> Decimal | None:
        """
        Fetch a live quote, persisting it as the asset's last known price.

        Never raises for upstream failures: falls back to the last persisted
        price, which may be None.
        """
        asset = db.scalar(select(Asset).where(Asset.symbol == symbol))
        if asset is None:
            logger.warning(f"Price requested for unregistered asset {symbol}")
            return None

        try:
            price = self._provider.get_current_price(symbol, asset.category)
        except MarketDataError as e:
            fallback = self.latest_known_price(db, symbol)
            logger.warning(
                f"Live price unavailable for {symbol} ({e}); "
                f"using last known price {fallback}"
            )
            return fallback

        self.update_last_known_price(db, asset, price)
        db.commit()
        logger.info(f"Price refreshed for {symbol}: {price} ({self._provider.name})")
        return price

    def update_last_known_price(self, db: Session, asset: Asset, price: Decimal) -> None:
        """Set the asset's last known price. Caller commits."""
        asset.current_price = price
        asset.price_updated_at = datetime.now(timezone.utc)

    # =========================================================================
    # HISTORICAL PRICES
    # =========================================================================

    def historical_prices(
            self,
            db: Session,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> dict[date, Decimal]:
        """Stored closes for an asset, keyed by date (both ends inclusive)."""
        rows = db.execute(
            select(PriceHistory.price_date, PriceHistory.price)
            .where(
                PriceHistory.asset_symbol == symbol,
                PriceHistory.price_date >= start_date,
                PriceHistory.price_date <= end_date,
            )
        ).all()
        return {row.price_date: row.price for row in rows}

    def sync_price_history(
            self,
            db: Session,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> int:
        """
        Store provider closes for dates not yet in PriceHistory.

        Existing rows are left untouched.

        Returns:
            Number of rows inserted (0 when the provider is unavailable)
        """
        asset = db.scalar(select(Asset).where(Asset.symbol == symbol))
        if asset is None:
            return 0

        try:
            result = self._provider.get_historical_prices(
                symbol, asset.category, start_date, end_date
            )
        except MarketDataError as e:
            logger.warning(
                f"Price history unavailable for {symbol} "
                f"{start_date}..{end_date}: {e}"
            )
            return 0

        existing = set(self.historical_prices(db, symbol, start_date, end_date))
        inserted = 0
        for point in result.prices:
            if point.date in existing:
                continue
            db.add(PriceHistory(
                asset_symbol=symbol,
                price_date=point.date,
                price=point.close,
                source=self._provider.name,
            ))
            existing.add(point.date)
            inserted += 1

        db.commit()
        logger.info(f"Stored {inserted} historical prices for {symbol}")
        return inserted
