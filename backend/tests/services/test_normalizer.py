# backend/tests/services/test_normalizer.py
"""
Tests for TradeNormalizer and the ledger input helpers.

This module tests:
- Leg construction (kinds, zero price, fee split, shared group id)
- Asset stub creation for unknown symbols
- Input validation (ValidationError before anything is written)
- Decimal coercion and timestamp normalization
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.models import Asset, AssetCategory, Transaction, TransactionKind
from app.services.exceptions import ValidationError
from app.services.ledger import TradeNormalizer
from app.services.ledger.normalizer import (
    normalize_occurred_at,
    require_non_negative,
    require_positive,
    to_decimal,
)
from tests.conftest import create_asset


# =============================================================================
# LEG CONSTRUCTION
# =============================================================================

class TestNormalizeTrade:
    """Tests for TradeNormalizer.normalize_trade."""

    def test_builds_two_legs(self, db):
        leg_out, leg_in = TradeNormalizer().normalize_trade(
            db, "eth", "1", "btc", "0.03", exchange="Binance", fees="0.0002",
        )

        assert leg_out.kind is TransactionKind.TRADE_OUT
        assert leg_out.asset_symbol == "ETH"
        assert leg_out.quantity == Decimal("1")
        assert leg_in.kind is TransactionKind.TRADE_IN
        assert leg_in.asset_symbol == "BTC"
        assert leg_in.quantity == Decimal("0.03")

    def test_legs_carry_no_fiat_price(self, db):
        legs = TradeNormalizer().normalize_trade(db, "ETH", "1", "BTC", "0.03", exchange="Binance")
        for txn in legs:
            assert txn.price_per_unit == Decimal("0")
            assert txn.total_amount == Decimal("0")

    def test_fee_is_split_evenly(self, db):
        leg_out, leg_in = TradeNormalizer().normalize_trade(
            db, "ETH", "1", "BTC", "0.03", exchange="Binance", fees="0.0002",
        )
        assert leg_out.fees == Decimal("0.0001")
        assert leg_in.fees == Decimal("0.0001")
        assert leg_out.fees + leg_in.fees == Decimal("0.0002")

    def test_legs_share_group_and_timestamp(self, db):
        when = datetime(2024, 3, 1, 9, 30)
        leg_out, leg_in = TradeNormalizer().normalize_trade(
            db, "ETH", "1", "BTC", "0.03", exchange="Binance", occurred_at=when,
        )
        assert leg_out.trade_group_id is not None
        assert leg_out.trade_group_id == leg_in.trade_group_id
        assert leg_out.occurred_at == leg_in.occurred_at == when

    def test_each_trade_gets_its_own_group(self, db):
        normalizer = TradeNormalizer()
        first, _ = normalizer.normalize_trade(db, "ETH", "1", "BTC", "0.03", exchange="Binance")
        second, _ = normalizer.normalize_trade(db, "ETH", "1", "BTC", "0.03", exchange="Binance")
        assert first.trade_group_id != second.trade_group_id

    def test_note_describes_the_trade(self, db):
        leg_out, leg_in = TradeNormalizer().normalize_trade(
            db, "ETH", "1", "BTC", "0.03", exchange="Binance", notes="rebalance",
        )
        assert leg_out.notes == "Trade: 1 ETH → 0.03 BTC | rebalance"
        assert leg_in.notes == leg_out.notes

    def test_legs_are_not_persisted(self, db):
        TradeNormalizer().normalize_trade(db, "ETH", "1", "BTC", "0.03", exchange="Binance")
        assert db.scalar(select(func.count()).select_from(Transaction)) == 0


# =============================================================================
# ASSET STUBS
# =============================================================================

class TestAssetStubs:
    """Unknown symbols are registered on the fly."""

    def test_creates_missing_assets_as_crypto(self, db):
        TradeNormalizer().normalize_trade(db, "ETH", "1", "BTC", "0.03", exchange="Binance")

        assets = {a.symbol: a for a in db.scalars(select(Asset)).all()}
        assert set(assets) == {"ETH", "BTC"}
        assert assets["ETH"].category is AssetCategory.CRYPTO
        assert assets["ETH"].current_price == Decimal("0")

    def test_existing_asset_is_kept(self, db):
        create_asset(db, "AAPL", name="Apple Inc.", category=AssetCategory.STOCKS, current_price="180")

        TradeNormalizer().normalize_trade(db, "AAPL", "1", "BTC", "0.003", exchange="Broker")

        apple = db.scalar(select(Asset).where(Asset.symbol == "AAPL"))
        assert apple.name == "Apple Inc."
        assert apple.category is AssetCategory.STOCKS
        assert db.scalar(select(func.count()).select_from(Asset)) == 2


# =============================================================================
# VALIDATION
# =============================================================================

class TestTradeValidation:
    """Invalid trades raise ValidationError and write nothing."""

    @pytest.mark.parametrize("kwargs,field", [
        ({"asset_from": ""}, "asset_from"),
        ({"asset_to": "  "}, "asset_to"),
        ({"qty_from": "0"}, "qty_from"),
        ({"qty_to": "-1"}, "qty_to"),
        ({"qty_from": None}, "qty_from"),
        ({"exchange": ""}, "exchange"),
        ({"fees": "-0.1"}, "fees"),
        ({"asset_to": "eth"}, "asset_to"),
    ])
    def test_rejects_invalid_input(self, db, kwargs, field):
        params = {
            "asset_from": "ETH",
            "qty_from": "1",
            "asset_to": "BTC",
            "qty_to": "0.03",
            "exchange": "Binance",
        }
        params.update(kwargs)

        with pytest.raises(ValidationError) as exc_info:
            TradeNormalizer().normalize_trade(db, **params)

        assert exc_info.value.field == field
        assert db.scalar(select(func.count()).select_from(Asset)) == 0


# =============================================================================
# INPUT HELPERS
# =============================================================================

class TestInputHelpers:
    """Tests for decimal coercion and timestamp normalization."""

    def test_float_goes_through_str(self):
        assert to_decimal(0.1, "quantity") == Decimal("0.1")

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", object()])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValidationError):
            to_decimal(value, "quantity")

    def test_require_positive(self):
        assert require_positive("2.5", "quantity") == Decimal("2.5")
        with pytest.raises(ValidationError):
            require_positive("0", "quantity")

    def test_require_non_negative_defaults_to_zero(self):
        assert require_non_negative(None, "fees") == Decimal("0")

    def test_naive_timestamp_kept(self):
        when = datetime(2024, 5, 1, 10, 0)
        assert normalize_occurred_at(when) == when

    def test_aware_timestamp_converted_to_local_naive(self):
        when = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
        result = normalize_occurred_at(when)
        assert result.tzinfo is None
        assert result == when.astimezone().replace(tzinfo=None)

    def test_missing_timestamp_is_now(self):
        result = normalize_occurred_at(None)
        assert abs(datetime.now() - result) < timedelta(seconds=5)
