# backend/tests/services/test_asset_registry.py
"""
Tests for AssetRegistry and the per-asset lock registry.
"""

import threading
import time
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.models import Asset, AssetCategory
from app.services.asset_registry import AssetRegistry
from app.services.exceptions import AssetNotFoundError
from app.services.locks import AssetLockRegistry
from tests.conftest import create_asset


class TestAssetRegistry:
    """Tests for asset lookup and stub creation."""

    def test_ensure_creates_stub(self, db):
        asset = AssetRegistry().ensure(db, " btc ", category=AssetCategory.CRYPTO)

        assert asset.id is not None
        assert asset.symbol == "BTC"
        assert asset.name == "BTC"
        assert asset.category == AssetCategory.CRYPTO

    def test_default_category(self, db):
        asset = AssetRegistry(default_category=AssetCategory.ETFS).ensure(db, "VWCE")
        assert asset.category == AssetCategory.ETFS

    def test_ensure_is_idempotent(self, db):
        registry = AssetRegistry()
        first = registry.ensure(db, "AAPL", name="Apple", category=AssetCategory.STOCKS)

        second = registry.ensure(db, "aapl", name="Other", category=AssetCategory.CRYPTO)

        assert second.id == first.id
        assert second.name == "Apple"
        assert second.category == AssetCategory.STOCKS
        assert db.scalar(select(func.count()).select_from(Asset)) == 1

    def test_lost_race_returns_existing_row(self, db):
        """A unique violation on commit means another writer registered it first."""
        registry = AssetRegistry()
        existing = create_asset(db, "ETH")

        with patch.object(registry, "get", side_effect=[None, existing]), \
                patch.object(db, "commit", side_effect=IntegrityError(
                    "INSERT", {}, Exception("UNIQUE constraint failed: assets.symbol"),
                )):
            asset = registry.ensure(db, "ETH")

        assert asset is existing

    def test_other_integrity_errors_propagate(self, db):
        registry = AssetRegistry()

        with patch.object(db, "commit", side_effect=IntegrityError(
            "INSERT", {}, Exception("NOT NULL constraint failed: assets.name"),
        )):
            with pytest.raises(IntegrityError):
                registry.ensure(db, "ETH")

    def test_get_or_raise(self, db):
        create_asset(db, "BTC")
        registry = AssetRegistry()

        assert registry.get_or_raise(db, "btc").symbol == "BTC"
        with pytest.raises(AssetNotFoundError):
            registry.get_or_raise(db, "NOPE")

    def test_list_symbols_sorted(self, db):
        for symbol in ("ETH", "AAPL", "BTC"):
            create_asset(db, symbol)

        assert AssetRegistry().list_symbols(db) == ["AAPL", "BTC", "ETH"]


class TestAssetLockRegistry:
    """Tests for per-asset locking."""

    def test_reentrant(self):
        locks = AssetLockRegistry()

        with locks.hold("BTC"):
            with locks.hold("BTC", "ETH"):
                pass

    def test_same_symbol_serializes(self):
        locks = AssetLockRegistry()
        events = []

        def worker(name):
            with locks.hold("BTC"):
                events.append(f"{name}-start")
                time.sleep(0.05)
                events.append(f"{name}-end")

        threads = [threading.Thread(target=worker, args=(n,)) for n in ("a", "b")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert events[0][0] == events[1][0]
        assert events[2][0] == events[3][0]

    def test_different_symbols_do_not_block(self):
        locks = AssetLockRegistry()
        acquired = threading.Event()

        def other():
            with locks.hold("ETH"):
                acquired.set()

        with locks.hold("BTC"):
            thread = threading.Thread(target=other)
            thread.start()
            assert acquired.wait(timeout=2)
            thread.join()
