# backend/tests/services/test_calculators.py
"""
Unit tests for ledger folds and cost basis policies.

These tests verify the pure calculation logic WITHOUT database dependencies.
Ledger legs are plain LedgerEntry values.

Test Coverage:
- signed_quantity / fiat_flow / inflow_fiat per TransactionKind
- PositionCalculator: full-history and as-of totals, clamping
- EstimateCostBasisFromMarketPrice: fiat average and market fallback
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from app.models import TransactionKind
from app.services.valuation.calculators import (
    PositionCalculator,
    fiat_flow,
    inflow_fiat,
    signed_quantity,
)
from app.services.valuation.cost_basis import EstimateCostBasisFromMarketPrice
from app.services.valuation.types import LedgerEntry, PositionTotals


def leg(
        kind: TransactionKind,
        quantity: str,
        total: str = "0",
        fees: str = "0",
        when: datetime = datetime(2024, 1, 10, 12, 0),
) -> LedgerEntry:
    return LedgerEntry(
        kind=kind,
        quantity=Decimal(quantity),
        total_amount=Decimal(total),
        fees=Decimal(fees),
        occurred_at=when,
    )


# =============================================================================
# PER-LEG RULES
# =============================================================================

class TestLegRules:
    """Tests for the per-kind rules."""

    @pytest.mark.parametrize("kind,expected", [
        (TransactionKind.BUY, Decimal("2")),
        (TransactionKind.TRADE_IN, Decimal("2")),
        (TransactionKind.SELL, Decimal("-2")),
        (TransactionKind.TRADE_OUT, Decimal("-2")),
    ])
    def test_signed_quantity(self, kind, expected):
        assert signed_quantity(leg(kind, "2")) == expected

    def test_buy_fiat_flow_adds_fees(self):
        """A buy costs its total plus fees."""
        assert fiat_flow(leg(TransactionKind.BUY, "1", total="100", fees="2")) == Decimal("102")

    def test_sell_fiat_flow_nets_fees(self):
        """A sell returns its total minus fees."""
        assert fiat_flow(leg(TransactionKind.SELL, "1", total="100", fees="2")) == Decimal("-98")

    @pytest.mark.parametrize("kind", [TransactionKind.TRADE_IN, TransactionKind.TRADE_OUT])
    def test_trade_legs_have_no_fiat_flow(self, kind):
        """Trade legs carry no fiat, fees included."""
        assert fiat_flow(leg(kind, "1", fees="5")) == Decimal("0")

    def test_inflow_fiat_ignores_sells(self):
        assert inflow_fiat(leg(TransactionKind.SELL, "1", total="100")) == Decimal("0")
        assert inflow_fiat(leg(TransactionKind.BUY, "1", total="100", fees="1")) == Decimal("101")


# =============================================================================
# POSITION CALCULATOR
# =============================================================================

class TestPositionCalculator:
    """Tests for PositionCalculator."""

    def test_empty_ledger(self):
        totals = PositionCalculator().calculate([])
        assert totals.net_quantity == Decimal("0")
        assert totals.net_invested_fiat == Decimal("0")
        assert not totals.is_open

    def test_buy_then_sell(self):
        totals = PositionCalculator().calculate([
            leg(TransactionKind.BUY, "0.5", total="30000", fees="10"),
            leg(TransactionKind.SELL, "0.2", total="14000", fees="5"),
        ])
        assert totals.quantity == Decimal("0.3")
        assert totals.net_invested_fiat == Decimal("16015")

    def test_oversold_position_clamps_to_zero(self):
        """Selling more than held never yields a negative quantity."""
        totals = PositionCalculator().calculate([
            leg(TransactionKind.BUY, "1", total="100"),
            leg(TransactionKind.SELL, "3", total="300"),
        ])
        assert totals.net_quantity == Decimal("-2")
        assert totals.quantity == Decimal("0")
        assert not totals.is_open

    def test_as_of_includes_whole_day(self):
        """Legs later on the as-of day still count."""
        ledger = [
            leg(TransactionKind.BUY, "1", total="100", when=datetime(2024, 1, 10, 23, 59)),
            leg(TransactionKind.BUY, "1", total="100", when=datetime(2024, 1, 11, 0, 1)),
        ]
        totals = PositionCalculator().calculate_as_of(ledger, date(2024, 1, 10))
        assert totals.quantity == Decimal("1")

    def test_as_of_counts_inflows_only(self):
        ledger = [
            leg(TransactionKind.BUY, "2", total="200", fees="2"),
            leg(TransactionKind.SELL, "1", total="150"),
        ]
        totals = PositionCalculator().calculate_as_of(ledger, date(2024, 12, 31))
        assert totals.quantity == Decimal("1")
        assert totals.net_invested_fiat == Decimal("202")


# =============================================================================
# COST BASIS POLICY
# =============================================================================

class TestEstimateCostBasisFromMarketPrice:
    """Tests for the default cost basis policy."""

    def test_positive_fiat_gives_average_cost(self):
        basis = EstimateCostBasisFromMarketPrice().resolve(
            PositionTotals(net_quantity=Decimal("0.5"), net_invested_fiat=Decimal("30010")),
            market_price=Decimal("65000"),
        )
        assert basis.avg_cost == Decimal("60020")
        assert basis.invested == Decimal("30010")
        assert basis.estimated is False

    def test_no_fiat_falls_back_to_market_price(self):
        """Positions built from trades are valued at market."""
        basis = EstimateCostBasisFromMarketPrice().resolve(
            PositionTotals(net_quantity=Decimal("0.03"), net_invested_fiat=Decimal("0")),
            market_price=Decimal("60000"),
        )
        assert basis.avg_cost == Decimal("60000")
        assert basis.invested == Decimal("1800")
        assert basis.estimated is True

    def test_negative_fiat_falls_back_to_market_price(self):
        """Sold above cost: remaining units get the market price."""
        basis = EstimateCostBasisFromMarketPrice().resolve(
            PositionTotals(net_quantity=Decimal("1"), net_invested_fiat=Decimal("-50")),
            market_price=Decimal("10"),
        )
        assert basis.avg_cost == Decimal("10")
        assert basis.estimated is True

    def test_closed_position_rejected(self):
        with pytest.raises(ValueError):
            EstimateCostBasisFromMarketPrice().resolve(
                PositionTotals(net_quantity=Decimal("0"), net_invested_fiat=Decimal("10")),
                market_price=Decimal("1"),
            )
