# backend/app/services/valuation/calculators.py
"""
Ledger folds shared by the holdings projector and the replay engine.

Every rule that depends on TransactionKind lives here and ends in
assert_never, so adding a kind is a type error until each rule handles it.

Rules:
    signed_quantity:  +q for BUY/TRADE_IN, -q for SELL/TRADE_OUT
    fiat_flow:        +(total + fees) for BUY, -(total - fees) for SELL,
                      0 for trade legs
    inflow_fiat:      fiat_flow restricted to BUY/TRADE_IN (sells not netted)

The folds are plain sums over the ledger; no running state is kept.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Protocol, assert_never

from app.models import TransactionKind
from app.services.valuation.types import ZERO, PositionTotals


class LedgerLeg(Protocol):
    """Anything carrying the fields the folds read (ORM row or LedgerEntry)."""

    kind: TransactionKind
    quantity: Decimal
    total_amount: Decimal
    fees: Decimal


def signed_quantity(leg: LedgerLeg) -> Decimal:
    kind = leg.kind
    if kind is TransactionKind.BUY or kind is TransactionKind.TRADE_IN:
        return leg.quantity
    elif kind is TransactionKind.SELL or kind is TransactionKind.TRADE_OUT:
        return -leg.quantity
    else:
        assert_never(kind)


def fiat_flow(leg: LedgerLeg) -> Decimal:
    kind = leg.kind
    if kind is TransactionKind.BUY:
        return leg.total_amount + leg.fees
    elif kind is TransactionKind.SELL:
        return -(leg.total_amount - leg.fees)
    elif kind is TransactionKind.TRADE_IN or kind is TransactionKind.TRADE_OUT:
        # Trades carry no fiat price
        return ZERO
    else:
        assert_never(kind)


def inflow_fiat(leg: LedgerLeg) -> Decimal:
    kind = leg.kind
    if kind is TransactionKind.BUY or kind is TransactionKind.TRADE_IN:
        return fiat_flow(leg)
    elif kind is TransactionKind.SELL or kind is TransactionKind.TRADE_OUT:
        return ZERO
    else:
        assert_never(kind)


def occurred_on_or_before(leg, as_of_date: date) -> bool:
    """Day-granular cutoff: everything recorded on as_of_date counts."""
    return leg.occurred_at.date() <= as_of_date


class PositionCalculator:
    """
    Folds a ledger into PositionTotals.

    Stateless; safe to share between threads.
    """

    def calculate(self, legs: Iterable[LedgerLeg]) -> PositionTotals:
        """Full-history totals: net quantity and net fiat flow."""
        legs = list(legs)
        return PositionTotals(
            net_quantity=sum((signed_quantity(leg) for leg in legs), ZERO),
            net_invested_fiat=sum((fiat_flow(leg) for leg in legs), ZERO),
        )

    def calculate_as_of(self, legs: Iterable, as_of_date: date) -> PositionTotals:
        """
        Totals restricted to legs up to as_of_date (inclusive, by day).

        Only inflows count toward invested capital here.
        """
        legs = [leg for leg in legs if occurred_on_or_before(leg, as_of_date)]
        return PositionTotals(
            net_quantity=sum((signed_quantity(leg) for leg in legs), ZERO),
            net_invested_fiat=sum((inflow_fiat(leg) for leg in legs), ZERO),
        )
