# backend/tests/routers/test_assets_api.py
"""
Integration tests for GET /assets/{symbol}/price.

Tests validate:
- Live quote returned and stored as the last known price
- Fallback to the last known price when the provider is down
- 0 for an asset that was never priced
- 404 for an unregistered asset
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_price_service
from app.main import app
from app.models import AssetCategory
from app.services.market_data import PriceService
from tests.conftest import MockPriceProvider, create_asset


@pytest.fixture(scope="function")
def client(db: Session, mock_provider: MockPriceProvider) -> TestClient:
    """TestClient with database and price service overrides."""
    price_service = PriceService(provider=mock_provider)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_price_service] = lambda: price_service

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


class TestAssetPrice:
    """Tests for GET /assets/{symbol}/price."""

    def test_live_quote(self, client, db, mock_provider):
        create_asset(db, "BTC", category=AssetCategory.CRYPTO, current_price="60000")
        mock_provider.set_price("BTC", "65000")

        response = client.get("/assets/btc/price")

        assert response.status_code == 200
        body = response.json()
        assert body["asset_symbol"] == "BTC"
        assert body["category"] == "crypto"
        assert Decimal(body["price"]) == Decimal("65000")
        assert body["price_updated_at"] is not None
        assert mock_provider.current_calls == ["BTC"]

    def test_live_quote_becomes_last_known_price(self, client, db, mock_provider):
        create_asset(db, "AAPL", current_price="180")
        mock_provider.set_price("AAPL", "190")
        client.get("/assets/AAPL/price")

        mock_provider.set_unavailable("AAPL")
        body = client.get("/assets/AAPL/price").json()

        assert Decimal(body["price"]) == Decimal("190")

    def test_outage_falls_back_to_last_known_price(self, client, db, mock_provider):
        create_asset(db, "ETH", category=AssetCategory.CRYPTO, current_price="3000")
        mock_provider.set_unavailable("ETH")

        response = client.get("/assets/ETH/price")

        assert response.status_code == 200
        assert Decimal(response.json()["price"]) == Decimal("3000")

    def test_never_priced_is_zero(self, client, db):
        create_asset(db, "VWCE", category=AssetCategory.ETFS)

        body = client.get("/assets/VWCE/price").json()

        assert Decimal(body["price"]) == Decimal("0")

    def test_unknown_asset_is_404(self, client):
        response = client.get("/assets/NOPE/price")

        assert response.status_code == 404
        assert response.json()["error"] == "AssetNotFoundError"
