# backend/app/services/portfolio_service.py
"""
Portfolio read models built on the Holding rows.

- summary():         totals across every open holding
- diversification(): market value per asset category with integer shares
- refresh_prices():  live quote for every held asset, then reprojection

Holding rows are a cache of the projector's output; everything here reads
them as-is, except refresh_prices() which rewrites them.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from app.models import Asset, AssetCategory, Holding
from app.services.asset_registry import normalize_symbol
from app.services.exceptions import HoldingNotFoundError
from app.services.protocols import LivePriceSource
from app.services.valuation.holdings_projector import HoldingsProjector
from app.services.valuation.types import ZERO, HoldingState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortfolioSummary:
    total_invested: Decimal
    total_market_value: Decimal
    total_unrealized_pnl: Decimal
    open_positions: int


@dataclass(frozen=True)
class CategoryShare:
    category: AssetCategory
    market_value: Decimal
    percentage: int


class PortfolioService:
    """
    Aggregates over open holdings.

    Attributes:
        _price_service: Live prices for refresh_prices()
        _projector: Rewrites holdings after a price refresh
    """

    def __init__(
            self,
            price_service: LivePriceSource,
            projector: HoldingsProjector | None = None,
    ) -> None:
        self._price_service = price_service
        self._projector = projector or HoldingsProjector()

    def get_holdings(self, db: Session) -> list[Holding]:
        return list(db.scalars(
            select(Holding)
            .options(joinedload(Holding.asset))
            .order_by(Holding.market_value.desc(), Holding.asset_symbol)
        ).all())

    def get_holding(self, db: Session, asset_symbol: str) -> Holding:
        symbol = normalize_symbol(asset_symbol)
        holding = db.scalar(
            select(Holding)
            .options(joinedload(Holding.asset))
            .where(Holding.asset_symbol == symbol)
        )
        if holding is None:
            raise HoldingNotFoundError(symbol)
        return holding

    def summary(self, db: Session) -> PortfolioSummary:
        row = db.execute(
            select(
                func.coalesce(func.sum(Holding.invested), 0),
                func.coalesce(func.sum(Holding.market_value), 0),
                func.coalesce(func.sum(Holding.unrealized_pnl), 0),
                func.count(Holding.id),
            )
        ).one()
        return PortfolioSummary(
            total_invested=Decimal(str(row[0])),
            total_market_value=Decimal(str(row[1])),
            total_unrealized_pnl=Decimal(str(row[2])),
            open_positions=row[3],
        )

    def diversification(self, db: Session) -> list[CategoryShare]:
        """
        Market value per category, largest first.

        Percentages are rounded to whole numbers and are 0 when the
        portfolio has no market value.
        """
        rows = db.execute(
            select(Asset.category, Holding.market_value)
            .join(Asset, Asset.symbol == Holding.asset_symbol)
        ).all()

        by_category: dict[AssetCategory, Decimal] = {}
        for category, market_value in rows:
            by_category[category] = by_category.get(category, ZERO) + (market_value or ZERO)

        total = sum(by_category.values(), ZERO)
        shares = []
        for category, value in by_category.items():
            if total > ZERO:
                percentage = int((value / total * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
            else:
                percentage = 0
            shares.append(CategoryShare(category=category, market_value=value, percentage=percentage))

        shares.sort(key=lambda share: (-share.market_value, share.category.value))
        return shares

    def refresh_prices(self, db: Session) -> list[HoldingState]:
        """
        Fetch a live price for every held asset and reproject its holding.

        Assets whose quote fails keep their last known price.
        """
        symbols = list(db.scalars(select(Holding.asset_symbol).order_by(Holding.asset_symbol)).all())
        states = []
        for symbol in symbols:
            price = self._price_service.fetch_price(db, symbol)
            states.append(self._projector.project(db, symbol, price))

        logger.info(f"Refreshed prices for {len(symbols)} holdings")
        return states
