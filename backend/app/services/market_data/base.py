# backend/app/services/market_data/base.py
"""
Abstract interface for price providers.

This module defines the contract that all price providers must follow.
Using an abstract base class allows for:
- Easy addition of new providers (CoinGecko, Alpha Vantage, etc.)
- Mock implementations for testing
- Consistent retry behavior across all providers

Providers raise MarketDataError subclasses. They never fall back to a
stored price themselves; that policy belongs to PriceService.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TypeVar, Callable, Any

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from app.models import AssetCategory
from app.services.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar('T')


# =============================================================================
# DATA CLASSES - PRICE DATA
# =============================================================================

@dataclass(frozen=True)
class PricePoint:
    """
    Closing price of one asset on one trading day.

    Attributes:
        date: Trading date (no time component)
        close: Closing price in USD
    """

    date: date
    close: Decimal

    def __post_init__(self) -> None:
        if self.close <= 0:
            raise ValueError(f"close price must be positive, got {self.close}")


@dataclass
class HistoricalPricesResult:
    """
    Result of fetching historical prices for an asset.

    Attributes:
        symbol: The symbol requested
        prices: Price points (empty if the provider had no data)
        from_date: Requested start date
        to_date: Requested end date
    """

    symbol: str
    prices: list[PricePoint] = field(default_factory=list)
    from_date: date | None = None
    to_date: date | None = None

    @property
    def days_fetched(self) -> int:
        """Number of trading days fetched."""
        return len(self.prices)


# =============================================================================
# ABSTRACT BASE CLASS
# =============================================================================

class PriceProvider(ABC):
    """
    Abstract base class for price providers.

    Retry Behavior:
        `_execute_with_retry` retries UpstreamUnavailableError (which includes
        RateLimitError) with exponential backoff. TickerNotFoundError is a
        permanent failure and is raised immediately.

        - MAX_RETRY_ATTEMPTS: Total attempts (default: 3)
        - RETRY_MIN_WAIT: Minimum wait in seconds (default: 1)
        - RETRY_MAX_WAIT: Maximum wait in seconds (default: 10)
        - RETRY_MULTIPLIER: Exponential multiplier (default: 1)
    """

    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_MIN_WAIT: int = 1
    RETRY_MAX_WAIT: int = 10
    RETRY_MULTIPLIER: int = 1

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this provider (e.g., "yahoo")."""
        pass

    @abstractmethod
    def get_current_price(self, symbol: str, category: AssetCategory) -> Decimal:
        """
        Fetch the latest market price for an asset.

        Raises:
            TickerNotFoundError: Symbol unknown to the provider
            UpstreamUnavailableError: Network or API error (retryable)
        """
        pass

    @abstractmethod
    def get_historical_prices(
            self,
            symbol: str,
            category: AssetCategory,
            start_date: date,
            end_date: date,
    ) -> HistoricalPricesResult:
        """
        Fetch daily closing prices for an asset, both dates inclusive.

        Raises:
            TickerNotFoundError: Symbol unknown to the provider
            UpstreamUnavailableError: Network or API error (retryable)
        """
        pass

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a function with retry logic for transient failures.

        Returns:
            Return value of func

        Raises:
            The last exception if all retries fail
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type(UpstreamUnavailableError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()
