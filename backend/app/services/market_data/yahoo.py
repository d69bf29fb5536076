# backend/app/services/market_data/yahoo.py
"""
Yahoo Finance price provider implementation.

This module implements the PriceProvider interface using the yfinance library.
Yahoo Finance is a free data source suitable for personal/educational use.

Symbol mapping:
- stocks / etfs: symbol as-is ("AAPL", "SPY")
- crypto: quoted against USD ("BTC" → "BTC-USD")
- fiat: FX pair against USD ("EUR" → "EURUSD=X")

Limitations:
- Rate limits (not officially documented, but exist)
- Data may be delayed (15-20 minutes for some markets)
"""

import logging
import math
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

import yfinance as yf

from app.models import AssetCategory
from app.services.exceptions import (
    UpstreamUnavailableError,
    TickerNotFoundError,
    RateLimitError,
)
from app.services.market_data.base import (
    PriceProvider,
    PricePoint,
    HistoricalPricesResult,
)

logger = logging.getLogger(__name__)


class YahooFinanceProvider(PriceProvider):
    """
    Yahoo Finance implementation of PriceProvider.

    Configuration:
        timeout: Request timeout in seconds (default: 10)

    Example:
        provider = YahooFinanceProvider(timeout=15)
        price = provider.get_current_price("BTC", AssetCategory.CRYPTO)
    """

    QUOTE_CURRENCY = "USD"

    def __init__(self, timeout: int = 10) -> None:
        self._timeout = timeout
        logger.info(f"YahooFinanceProvider initialized (timeout={timeout}s)")

    @property
    def name(self) -> str:
        return "yahoo"

    # =========================================================================
    # PRICE METHODS
    # =========================================================================

    def get_current_price(self, symbol: str, category: AssetCategory) -> Decimal:
        """
        Fetch the most recent close from Yahoo Finance.

        Raises:
            TickerNotFoundError: If the symbol is unknown
            UpstreamUnavailableError: If Yahoo Finance is unavailable
        """
        return self._execute_with_retry(self._fetch_current_price, symbol, category)

    def _fetch_current_price(self, symbol: str, category: AssetCategory) -> Decimal:
        yahoo_symbol = self._build_yahoo_symbol(symbol, category)

        try:
            # A short window survives weekends and market holidays
            df = yf.Ticker(yahoo_symbol).history(
                period="5d",
                interval="1d",
                auto_adjust=False,
                timeout=self._timeout,
            )
        except Exception as e:
            raise self._classify_error(symbol, yahoo_symbol, e)

        prices = self._dataframe_to_prices(df)
        if not prices:
            raise TickerNotFoundError(symbol=symbol, provider=self.name)

        latest = max(prices, key=lambda p: p.date)
        logger.debug(f"Current price for {yahoo_symbol}: {latest.close} ({latest.date})")
        return latest.close

    def get_historical_prices(
            self,
            symbol: str,
            category: AssetCategory,
            start_date: date,
            end_date: date,
    ) -> HistoricalPricesResult:
        """
        Fetch daily closing prices from Yahoo Finance.

        Raises:
            TickerNotFoundError: If the symbol is unknown
            UpstreamUnavailableError: If Yahoo Finance is unavailable
        """
        return self._execute_with_retry(
            self._fetch_historical_prices,
            symbol,
            category,
            start_date,
            end_date,
        )

    def _fetch_historical_prices(
            self,
            symbol: str,
            category: AssetCategory,
            start_date: date,
            end_date: date,
    ) -> HistoricalPricesResult:
        yahoo_symbol = self._build_yahoo_symbol(symbol, category)

        logger.debug(
            f"Fetching historical prices for {yahoo_symbol}: "
            f"{start_date} to {end_date}"
        )

        try:
            # Yahoo Finance end date is exclusive, so add 1 day
            df = yf.Ticker(yahoo_symbol).history(
                start=start_date.isoformat(),
                end=(end_date + timedelta(days=1)).isoformat(),
                interval="1d",
                auto_adjust=False,
                timeout=self._timeout,
            )
        except Exception as e:
            raise self._classify_error(symbol, yahoo_symbol, e)

        prices = [
            p for p in self._dataframe_to_prices(df)
            if start_date <= p.date <= end_date
        ]
        if not prices:
            logger.warning(
                f"No price data for {yahoo_symbol} between {start_date} and {end_date}"
            )

        return HistoricalPricesResult(
            symbol=symbol,
            prices=prices,
            from_date=start_date,
            to_date=end_date,
        )

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def _build_yahoo_symbol(self, symbol: str, category: AssetCategory) -> str:
        """
        Build Yahoo Finance symbol from our symbol and category.

        Returns:
            Yahoo Finance symbol (e.g., "AAPL", "BTC-USD", "EURUSD=X")
        """
        symbol = symbol.strip().upper()
        if category == AssetCategory.CRYPTO:
            return f"{symbol}-{self.QUOTE_CURRENCY}"
        if category == AssetCategory.FIAT:
            return f"{symbol}{self.QUOTE_CURRENCY}=X"
        return symbol

    def _classify_error(self, symbol: str, yahoo_symbol: str, error: Exception) -> Exception:
        """Map a yfinance failure onto our exception hierarchy."""
        error_str = str(error).lower()

        if "not found" in error_str or "delisted" in error_str:
            return TickerNotFoundError(symbol=symbol, provider=self.name)

        if "rate limit" in error_str or "too many requests" in error_str:
            return RateLimitError(provider=self.name)

        logger.error(f"Yahoo Finance error for {yahoo_symbol}: {error}")
        return UpstreamUnavailableError(provider=self.name, reason=str(error))

    def _dataframe_to_prices(self, df) -> list[PricePoint]:
        """
        Convert a pandas DataFrame from yfinance to a list of PricePoint.

        Rows without a usable close are skipped.
        """
        prices: list[PricePoint] = []
        if df is None or df.empty:
            return prices

        for idx, row in df.iterrows():
            price_date = idx.date() if hasattr(idx, 'date') else idx
            close = self._to_decimal(row.get('Close'))

            if close is None or close <= 0:
                logger.warning(f"Skipping {price_date}: missing close price")
                continue

            prices.append(PricePoint(date=price_date, close=close))

        return prices

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        """Convert a value to Decimal, returning None for NaN, infinity or None."""
        if value is None:
            return None
        try:
            if not math.isfinite(float(value)):
                return None
            return Decimal(str(value)).quantize(Decimal("0.00000001"))
        except (TypeError, ValueError, ArithmeticError):
            return None
