# backend/app/services/valuation/types.py
"""
Internal data types for the valuation engine.

These dataclasses are used internally by the calculators. They are NOT
Pydantic schemas - those are defined in app/schemas/ for API serialization.

Design Principles:
- Immutable value objects (frozen=True)
- Use Decimal for ALL financial values (never float)
- Use date (not datetime) for valuation dates

Type Hierarchy:
    LedgerEntry     - Detached, read-only copy of one ledger leg
    PositionTotals  - Result of folding a ledger (signed quantity, fiat flow)
    CostBasis       - Average cost and invested capital for an open position
    HoldingState    - Current position of one asset
    Valuation       - Position and value of one asset on one date
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from app.models import TransactionKind

if TYPE_CHECKING:
    from app.models import Transaction


ZERO = Decimal("0")


@dataclass(frozen=True)
class LedgerEntry:
    """
    One ledger leg detached from the ORM session.

    Replays run many times over the same records; plain values keep them
    unaffected by session expiry between commits.
    """

    kind: TransactionKind
    quantity: Decimal
    total_amount: Decimal
    fees: Decimal
    occurred_at: datetime
    id: int | None = None

    @classmethod
    def from_transaction(cls, txn: Transaction) -> LedgerEntry:
        return cls(
            kind=txn.kind,
            quantity=txn.quantity,
            total_amount=txn.total_amount,
            fees=txn.fees,
            occurred_at=txn.occurred_at,
            id=txn.id,
        )


@dataclass(frozen=True)
class PositionTotals:
    """
    Aggregates of a ledger fold.

    Attributes:
        net_quantity: Signed sum of quantities (may be negative)
        net_invested_fiat: Signed fiat flow (see calculators.fiat_flow)
    """

    net_quantity: Decimal
    net_invested_fiat: Decimal

    @property
    def quantity(self) -> Decimal:
        """Held quantity, clamped at zero."""
        return max(ZERO, self.net_quantity)

    @property
    def is_open(self) -> bool:
        return self.quantity > ZERO


@dataclass(frozen=True)
class CostBasis:
    """
    Cost basis of an open position.

    Attributes:
        avg_cost: Cost per unit
        invested: Capital attributed to the position
        estimated: True when derived from the market price instead of fiat flow
    """

    avg_cost: Decimal
    invested: Decimal
    estimated: bool = False


@dataclass(frozen=True)
class HoldingState:
    """
    Current position of one asset.

    A closed position (quantity 0) has every amount at zero.
    """

    asset_symbol: str
    quantity: Decimal
    avg_cost: Decimal
    invested: Decimal
    market_price: Decimal
    market_value: Decimal
    unrealized_pnl: Decimal
    cost_basis_estimated: bool = False

    @property
    def is_open(self) -> bool:
        return self.quantity > ZERO

    @classmethod
    def closed(cls, asset_symbol: str, market_price: Decimal) -> HoldingState:
        return cls(
            asset_symbol=asset_symbol,
            quantity=ZERO,
            avg_cost=ZERO,
            invested=ZERO,
            market_price=market_price,
            market_value=ZERO,
            unrealized_pnl=ZERO,
        )


@dataclass(frozen=True)
class Valuation:
    """
    Position and value of one asset as of one calendar date.

    Attributes:
        quantity: Units held at the end of as_of_date (clamped at zero)
        price_per_unit: Price used for the valuation
        invested: Fiat spent on inflows up to as_of_date
        total_value: quantity × price_per_unit
        unrealized_pnl: total_value − invested (0 when nothing is held)
    """

    asset_symbol: str
    as_of_date: date
    quantity: Decimal
    price_per_unit: Decimal
    invested: Decimal
    total_value: Decimal
    unrealized_pnl: Decimal
