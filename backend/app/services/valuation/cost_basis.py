# backend/app/services/valuation/cost_basis.py
"""
Cost basis policies for open positions.

A policy turns the fiat totals of a position into (avg_cost, invested).
The projector only ever talks to the CostBasisPolicy protocol, so the
fallback rule below can be replaced without touching the projector.
"""

from decimal import Decimal
from typing import Protocol

from app.services.valuation.types import ZERO, CostBasis, PositionTotals


class CostBasisPolicy(Protocol):
    """Interface required by HoldingsProjector."""

    def resolve(self, totals: PositionTotals, market_price: Decimal) -> CostBasis:
        """Cost basis for an open position (totals.quantity > 0)."""
        ...


class EstimateCostBasisFromMarketPrice:
    """
    Average cost from fiat flow, falling back to the market price.

    - net fiat > 0: avg_cost = net fiat / quantity, invested = net fiat
    - otherwise (position built from trades, or sold above cost):
      avg_cost = market price, invested = quantity × market price

    The fallback is an estimate. It moves with the market price even when
    no transaction happens, so unrealized P&L of such positions stays at 0.
    """

    def resolve(self, totals: PositionTotals, market_price: Decimal) -> CostBasis:
        quantity = totals.quantity
        if quantity <= ZERO:
            raise ValueError("cost basis is only defined for open positions")

        if totals.net_invested_fiat > ZERO:
            return CostBasis(
                avg_cost=totals.net_invested_fiat / quantity,
                invested=totals.net_invested_fiat,
            )

        return CostBasis(
            avg_cost=market_price,
            invested=quantity * market_price,
            estimated=True,
        )
