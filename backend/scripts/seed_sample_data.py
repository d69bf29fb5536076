#!/usr/bin/env python3
# backend/scripts/seed_sample_data.py
"""
Seed a demo ledger.

Records a few buys, a sell and a trade through LedgerService, so holdings
are projected exactly as they would be through the API. Re-running is a
no-op once the ledger has entries.

    python backend/scripts/seed_sample_data.py
"""
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Setup path to import app modules
backend_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_dir))

from sqlalchemy import func, select

from app.database import SessionLocal
from app.models import AssetCategory, Transaction, TransactionKind
from app.services.ledger import LedgerService
from app.services.market_data import PriceService, YahooFinanceProvider
from app.utils import correlation_scope, setup_logging

logger = logging.getLogger(__name__)


def seed() -> None:
    ledger = LedgerService(price_service=PriceService(provider=YahooFinanceProvider()))
    now = datetime.now().replace(microsecond=0)

    with SessionLocal() as db, correlation_scope("seed"):
        if db.scalar(select(func.count()).select_from(Transaction)):
            logger.info("Ledger already has entries, nothing to seed")
            return

        logger.info("Seeding demo ledger...")

        ledger.record_transaction(
            db, TransactionKind.BUY, "BTC", "0.5", "Kraken",
            price_per_unit="60000", fees="10",
            occurred_at=now - timedelta(days=30),
            asset_name="Bitcoin", category=AssetCategory.CRYPTO, api_source="yahoo",
        )
        ledger.record_transaction(
            db, TransactionKind.SELL, "BTC", "0.2", "Kraken",
            price_per_unit="70000", fees="5",
            occurred_at=now - timedelta(days=10),
        )
        ledger.record_transaction(
            db, TransactionKind.BUY, "AAPL", "10", "NASDAQ",
            price_per_unit="185.50", fees="1",
            occurred_at=now - timedelta(days=20),
            asset_name="Apple Inc.", category=AssetCategory.STOCKS, api_source="yahoo",
        )
        ledger.record_transaction(
            db, TransactionKind.BUY, "VWCE", "4", "XETRA",
            price_per_unit="110", fees="0",
            occurred_at=now - timedelta(days=15),
            asset_name="Vanguard FTSE All-World", category=AssetCategory.ETFS,
        )
        ledger.record_trade(
            db, "ETH", "1", "BTC", "0.03", exchange="Binance",
            fees="0.0002",
            occurred_at=now - timedelta(days=5),
        )

        logger.info("Demo ledger seeded")


if __name__ == "__main__":
    setup_logging()
    seed()
