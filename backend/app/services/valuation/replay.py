# backend/app/services/valuation/replay.py
"""
Valuation replay engine: what an asset position was worth on a past date.

The replay is independent of the current Holding row. It folds the ledger
restricted to legs up to the date (inclusive, by calendar day) and values
the resulting quantity at the supplied price.

    quantity  = max(0, Σ signed quantity)           legs ≤ date
    invested  = Σ inflow fiat (BUY total + fees)    legs ≤ date
    value     = quantity × price
    pnl       = value − invested

A date before any leg, or after the position closed, values to zero.
For a fixed ledger and price the result is deterministic.
"""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from app.services.valuation.calculators import PositionCalculator
from app.services.valuation.holdings_projector import load_ledger
from app.services.valuation.types import ZERO, LedgerEntry, Valuation

logger = logging.getLogger(__name__)


class ValuationReplayEngine:
    """Replays an asset's ledger up to a date and values the position."""

    def __init__(self, calculator: PositionCalculator | None = None) -> None:
        self._calculator = calculator or PositionCalculator()

    def replay(
            self,
            asset_symbol: str,
            ledger: list[LedgerEntry],
            as_of_date: date,
            price_on_date: Decimal,
    ) -> Valuation:
        """Pure replay over an already-loaded ledger."""
        totals = self._calculator.calculate_as_of(ledger, as_of_date)
        quantity = totals.quantity

        if quantity == ZERO:
            total_value = ZERO
            unrealized_pnl = ZERO
        else:
            total_value = quantity * price_on_date
            unrealized_pnl = total_value - totals.net_invested_fiat

        return Valuation(
            asset_symbol=asset_symbol,
            as_of_date=as_of_date,
            quantity=quantity,
            price_per_unit=price_on_date,
            invested=totals.net_invested_fiat,
            total_value=total_value,
            unrealized_pnl=unrealized_pnl,
        )

    def replay_as_of(
            self,
            db: Session,
            asset_symbol: str,
            as_of_date: date,
            price_on_date: Decimal,
    ) -> Valuation:
        """Load the asset's ledger and replay it up to as_of_date."""
        return self.replay(asset_symbol, load_ledger(db, asset_symbol), as_of_date, price_on_date)
