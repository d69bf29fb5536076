# backend/tests/routers/test_transactions_api.py
"""
Integration tests for ledger, trade, holdings and portfolio endpoints.

These tests verify full HTTP request/response cycles for:
- POST /transactions, GET /transactions (+ /recent, /by-asset, /{id}), DELETE /transactions/{id}
- POST /trades, DELETE /trades/{trade_group_id}
- GET /holdings, GET /holdings/{symbol}
- GET /portfolio/summary, /portfolio/diversification, POST /portfolio/refresh-prices

Tests validate:
- Holdings follow every ledger mutation
- Correct status codes
- Response structure matches schemas
- Error responses (400, 404, 422)
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_ledger_service, get_portfolio_service
from app.main import app
from app.services.ledger import LedgerService
from app.services.locks import AssetLockRegistry
from app.services.market_data import PriceService
from app.services.portfolio_service import PortfolioService
from app.services.valuation import HoldingsProjector
from tests.conftest import MockPriceProvider


# =============================================================================
# TEST CLIENT SETUP
# =============================================================================

@pytest.fixture(scope="function")
def client(db: Session, mock_provider: MockPriceProvider) -> TestClient:
    """TestClient with database and service overrides."""
    locks = AssetLockRegistry()
    price_service = PriceService(provider=mock_provider)
    projector = HoldingsProjector(locks=locks)
    ledger = LedgerService(price_service=price_service, projector=projector, locks=locks)
    portfolio = PortfolioService(price_service=price_service, projector=projector)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ledger_service] = lambda: ledger
    app.dependency_overrides[get_portfolio_service] = lambda: portfolio

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def post_buy(client: TestClient, symbol: str = "BTC", quantity: str = "0.5", price: str = "60000", **extra):
    payload = {
        "kind": "buy",
        "asset_symbol": symbol,
        "quantity": quantity,
        "exchange": "Kraken",
        "price_per_unit": price,
    }
    payload.update(extra)
    response = client.post("/transactions", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TestCreateTransaction:
    """Tests for POST /transactions."""

    def test_create_buy(self, client):
        data = post_buy(client, fees="10")

        assert data["id"] > 0
        assert data["kind"] == "buy"
        assert data["asset_symbol"] == "BTC"
        assert Decimal(data["total_amount"]) == Decimal("30000")
        assert data["trade_group_id"] is None

    def test_symbol_is_normalized(self, client):
        data = post_buy(client, symbol=" btc ")
        assert data["asset_symbol"] == "BTC"

    def test_buy_creates_holding(self, client):
        post_buy(client, fees="10")

        response = client.get("/holdings/BTC")

        assert response.status_code == 200
        holding = response.json()
        assert Decimal(holding["quantity"]) == Decimal("0.5")
        assert Decimal(holding["avg_cost"]) == Decimal("60020")
        assert Decimal(holding["current_price"]) == Decimal("60000")
        assert holding["category"] == "stocks"

    def test_buy_without_price_is_400(self, client):
        response = client.post("/transactions", json={
            "kind": "buy",
            "asset_symbol": "BTC",
            "quantity": "1",
            "exchange": "Kraken",
        })

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "ValidationError"
        assert body["details"] == {"field": "price_per_unit"}

    @pytest.mark.parametrize("override", [
        {"quantity": "0"},
        {"quantity": "-1"},
        {"kind": "gift"},
        {"asset_symbol": "B TC"},
        {"fees": "-1"},
        {"occurred_at": (datetime.now() + timedelta(days=2)).isoformat()},
    ])
    def test_malformed_payload_is_422(self, client, override):
        payload = {
            "kind": "buy",
            "asset_symbol": "BTC",
            "quantity": "1",
            "exchange": "Kraken",
            "price_per_unit": "100",
        }
        payload.update(override)

        response = client.post("/transactions", json=payload)

        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"


class TestReadTransactions:
    """Tests for the ledger read endpoints."""

    def test_list_is_paginated(self, client):
        for day in range(1, 4):
            post_buy(client, occurred_at=f"2024-01-0{day}T12:00:00")

        response = client.get("/transactions", params={"skip": 0, "limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert len(body["items"]) == 2
        assert body["items"][0]["occurred_at"].startswith("2024-01-03")
        assert body["pagination"]["total"] == 3
        assert body["pagination"]["has_next"] is True

    def test_by_asset(self, client):
        post_buy(client, symbol="BTC")
        post_buy(client, symbol="ETH", price="3000")

        response = client.get("/transactions/by-asset/eth")

        assert [t["asset_symbol"] for t in response.json()] == ["ETH"]

    def test_recent(self, client):
        post_buy(client)
        post_buy(client, occurred_at="2020-01-01T00:00:00")

        response = client.get("/transactions/recent", params={"days": 3})

        assert len(response.json()) == 1

    def test_get_by_id(self, client):
        created = post_buy(client)

        response = client.get(f"/transactions/{created['id']}")

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    def test_get_unknown_is_404(self, client):
        response = client.get("/transactions/999")

        assert response.status_code == 404
        assert response.json()["details"]["resource_type"] == "Transaction"


class TestDeleteTransaction:
    """Tests for DELETE /transactions/{id}."""

    def test_delete_closes_holding(self, client):
        created = post_buy(client)

        response = client.delete(f"/transactions/{created['id']}")

        assert response.status_code == 204
        assert client.get("/holdings/BTC").status_code == 404

    def test_delete_unknown_is_404(self, client):
        assert client.delete("/transactions/999").status_code == 404


# =============================================================================
# TRADES
# =============================================================================

class TestTrades:
    """Tests for /trades."""

    def test_create_trade(self, client):
        post_buy(client, symbol="ETH", quantity="2", price="3000")

        response = client.post("/trades", json={
            "asset_from": "ETH",
            "qty_from": "1",
            "asset_to": "BTC",
            "qty_to": "0.03",
            "exchange": "Binance",
            "fees": "0.0002",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["leg_out"]["kind"] == "trade_out"
        assert body["leg_in"]["kind"] == "trade_in"
        assert body["leg_out"]["trade_group_id"] == body["trade_group_id"]
        assert Decimal(body["leg_in"]["fees"]) == Decimal("0.0001")

        holdings = {h["asset_symbol"]: h for h in client.get("/holdings").json()}
        assert Decimal(holdings["ETH"]["quantity"]) == Decimal("1")
        assert Decimal(holdings["BTC"]["quantity"]) == Decimal("0.03")

    def test_trade_with_itself_is_400(self, client):
        response = client.post("/trades", json={
            "asset_from": "BTC",
            "qty_from": "1",
            "asset_to": "btc",
            "qty_to": "1",
            "exchange": "Binance",
        })

        assert response.status_code == 400

    def test_delete_trade(self, client):
        created = client.post("/trades", json={
            "asset_from": "ETH",
            "qty_from": "1",
            "asset_to": "BTC",
            "qty_to": "0.03",
            "exchange": "Binance",
        }).json()

        response = client.delete(f"/trades/{created['trade_group_id']}")

        assert response.status_code == 200
        assert response.json() == {"trade_group_id": created["trade_group_id"], "legs_deleted": 2}
        assert client.get("/transactions").json()["pagination"]["total"] == 0

    def test_delete_unknown_trade_is_404(self, client):
        assert client.delete("/trades/not-a-trade").status_code == 404


# =============================================================================
# HOLDINGS AND PORTFOLIO
# =============================================================================

class TestPortfolio:
    """Tests for /holdings and /portfolio."""

    def test_list_holdings(self, client):
        post_buy(client, symbol="BTC", quantity="0.05", price="60000")
        post_buy(client, symbol="AAPL", quantity="5", price="200")

        response = client.get("/holdings")

        assert [h["asset_symbol"] for h in response.json()] == ["BTC", "AAPL"]

    def test_summary(self, client):
        post_buy(client, symbol="BTC", quantity="0.05", price="60000", fees="5")

        body = client.get("/portfolio/summary").json()

        assert Decimal(body["total_invested"]) == Decimal("3005")
        assert Decimal(body["total_market_value"]) == Decimal("3000")
        assert Decimal(body["total_unrealized_pnl"]) == Decimal("-5")
        assert body["open_positions"] == 1

    def test_diversification(self, client):
        post_buy(client, symbol="BTC", quantity="0.05", price="60000", category="crypto")
        post_buy(client, symbol="AAPL", quantity="5", price="200", category="stocks")

        body = client.get("/portfolio/diversification").json()

        assert [(s["category"], s["percentage"]) for s in body] == [("crypto", 75), ("stocks", 25)]

    def test_refresh_prices(self, client, mock_provider):
        post_buy(client, symbol="BTC", quantity="0.05", price="60000")
        mock_provider.set_price("BTC", "70000")

        response = client.post("/portfolio/refresh-prices")

        assert response.status_code == 200
        body = response.json()
        assert body["refreshed"] == 1
        assert Decimal(body["holdings"][0]["market_value"]) == Decimal("3500")
        assert body["holdings"][0]["cost_basis_estimated"] is False
