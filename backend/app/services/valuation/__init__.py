# backend/app/services/valuation/__init__.py
"""
Valuation Package.

Derives positions and values from the transaction ledger:
- Current position of an asset (HoldingsProjector)
- Position and value on a past date (ValuationReplayEngine)
- Synthetic prices for dates without history (RandomWalkEstimator)

Usage:
    from app.services.valuation import HoldingsProjector, ValuationReplayEngine

    projector = HoldingsProjector()
    state = projector.project(db, "BTC", market_price=Decimal("65000"))

    engine = ValuationReplayEngine()
    valuation = engine.replay_as_of(db, "BTC", date(2024, 1, 31), Decimal("42000"))

Architecture:
    valuation/
    ├── __init__.py              # This file - package exports
    ├── types.py                 # Internal data classes
    ├── calculators.py           # Ledger folds over TransactionKind
    ├── cost_basis.py            # Cost basis policies
    ├── holdings_projector.py    # Current position (writes Holding rows)
    ├── replay.py                # Point-in-time position and value
    └── estimator.py             # Random walk price estimates

Data Flow:
    Transactions → LedgerEntry → PositionCalculator → PositionTotals
    PositionTotals + market price → CostBasisPolicy → HoldingState
    PositionTotals (≤ date) + price on date → Valuation
"""

from app.services.valuation.calculators import (
    PositionCalculator,
    fiat_flow,
    inflow_fiat,
    signed_quantity,
)
from app.services.valuation.cost_basis import (
    CostBasisPolicy,
    EstimateCostBasisFromMarketPrice,
)
from app.services.valuation.estimator import RandomWalkEstimator
from app.services.valuation.holdings_projector import HoldingsProjector, load_ledger
from app.services.valuation.replay import ValuationReplayEngine
from app.services.valuation.types import (
    CostBasis,
    HoldingState,
    LedgerEntry,
    PositionTotals,
    Valuation,
)

__all__ = [
    # Engines
    "HoldingsProjector",
    "ValuationReplayEngine",
    "RandomWalkEstimator",
    "load_ledger",

    # Policies
    "CostBasisPolicy",
    "EstimateCostBasisFromMarketPrice",

    # Data types
    "LedgerEntry",
    "PositionTotals",
    "CostBasis",
    "HoldingState",
    "Valuation",

    # Folds (for testing)
    "PositionCalculator",
    "signed_quantity",
    "fiat_flow",
    "inflow_fiat",
]
