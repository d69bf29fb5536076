# backend/app/services/valuation/holdings_projector.py
"""
Holdings projector: current position of an asset from its full ledger.

Every call recomputes from the complete history of the asset; no running
balance is stored anywhere. The Holding row it writes is a cache of the
result and is deleted when the position closes.

Algorithm:
    1. totals = fold(ledger)                         (calculators.py)
    2. quantity = max(0, net_quantity)
    3. closed → delete Holding row
    4. open → cost basis from policy, value from the market price,
              upsert Holding row

The market price is an explicit argument. A missing price is treated as 0
so values degrade to 0 instead of raising.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Holding, Transaction
from app.services.locks import AssetLockRegistry, asset_locks
from app.services.valuation.calculators import PositionCalculator
from app.services.valuation.cost_basis import (
    CostBasisPolicy,
    EstimateCostBasisFromMarketPrice,
)
from app.services.valuation.types import ZERO, HoldingState, LedgerEntry

logger = logging.getLogger(__name__)


class HoldingsProjector:
    """
    Derives and persists HoldingState for one asset at a time.

    Attributes:
        _calculator: Ledger fold
        _policy: Cost basis rule for open positions
        _locks: Per-asset locks serialising read → compute → write
    """

    def __init__(
            self,
            calculator: PositionCalculator | None = None,
            cost_basis_policy: CostBasisPolicy | None = None,
            locks: AssetLockRegistry | None = None,
    ) -> None:
        self._calculator = calculator or PositionCalculator()
        self._policy = cost_basis_policy or EstimateCostBasisFromMarketPrice()
        self._locks = locks or asset_locks

    def compute(
            self,
            asset_symbol: str,
            ledger: list[LedgerEntry],
            market_price: Decimal | None,
    ) -> HoldingState:
        """
        Pure projection of a ledger into a HoldingState.

        Args:
            asset_symbol: Asset the ledger belongs to
            ledger: Every leg of the asset
            market_price: Latest known market price (None → 0)
        """
        price = market_price if market_price is not None else ZERO
        totals = self._calculator.calculate(ledger)

        if not totals.is_open:
            return HoldingState.closed(asset_symbol, price)

        quantity = totals.quantity
        cost_basis = self._policy.resolve(totals, price)
        market_value = quantity * price

        return HoldingState(
            asset_symbol=asset_symbol,
            quantity=quantity,
            avg_cost=cost_basis.avg_cost,
            invested=cost_basis.invested,
            market_price=price,
            market_value=market_value,
            unrealized_pnl=market_value - cost_basis.invested,
            cost_basis_estimated=cost_basis.estimated,
        )

    def project(
            self,
            db: Session,
            asset_symbol: str,
            market_price: Decimal | None,
    ) -> HoldingState:
        """
        Recompute the asset's position from its ledger and persist it.

        Upserts the Holding row for an open position, deletes it otherwise.
        Commits its own write.
        """
        with self._locks.hold(asset_symbol):
            ledger = load_ledger(db, asset_symbol)
            state = self.compute(asset_symbol, ledger, market_price)

            holding = db.scalar(
                select(Holding).where(Holding.asset_symbol == asset_symbol)
            )

            if not state.is_open:
                if holding is not None:
                    db.delete(holding)
                    logger.info(f"Position closed for {asset_symbol}, holding removed")
                db.commit()
                return state

            if holding is None:
                holding = Holding(asset_symbol=asset_symbol)
                db.add(holding)

            holding.quantity = state.quantity
            holding.avg_cost = state.avg_cost
            holding.invested = state.invested
            holding.market_value = state.market_value
            holding.unrealized_pnl = state.unrealized_pnl
            holding.last_updated = datetime.now(timezone.utc)
            db.commit()

            if state.cost_basis_estimated:
                logger.info(
                    f"Cost basis for {asset_symbol} estimated from market price "
                    f"{state.market_price} (no net fiat flow)"
                )
            logger.debug(
                f"Holding projected for {asset_symbol}: qty={state.quantity}, "
                f"avg_cost={state.avg_cost}, invested={state.invested}"
            )
            return state


def load_ledger(db: Session, asset_symbol: str) -> list[LedgerEntry]:
    """
    All legs of an asset, ordered by occurrence.

    Ordering uses occurred_at (then id), never insertion order, so backdated
    entries land where they belong.
    """
    transactions = db.scalars(
        select(Transaction)
        .where(Transaction.asset_symbol == asset_symbol)
        .order_by(Transaction.occurred_at, Transaction.id)
    ).all()
    return [LedgerEntry.from_transaction(txn) for txn in transactions]
