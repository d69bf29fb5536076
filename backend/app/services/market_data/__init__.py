# backend/app/services/market_data/__init__.py
"""
Market data providers and the price service built on them.

Usage:
    from app.services.market_data import PriceService, YahooFinanceProvider

    service = PriceService(provider=YahooFinanceProvider())
"""

from app.services.market_data.base import (
    PriceProvider,
    PricePoint,
    HistoricalPricesResult,
)
from app.services.market_data.price_service import PriceService
from app.services.market_data.yahoo import YahooFinanceProvider

__all__ = [
    "PriceProvider",
    "PricePoint",
    "HistoricalPricesResult",
    "PriceService",
    "YahooFinanceProvider",
]
