# backend/app/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The router layer is responsible for mapping these to appropriate HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── NotFoundError
    │   ├── TransactionNotFoundError
    │   ├── TradeNotFoundError
    │   └── AssetNotFoundError
    ├── MarketDataError
    │   ├── UpstreamUnavailableError
    │   │   └── RateLimitError
    │   └── TickerNotFoundError
    └── PersistenceError

Failure policy:
    - ValidationError is raised before the ledger is touched.
    - MarketDataError never escapes the price service; callers get a
      fallback price instead.
    - PersistenceError is propagated; storage writes are not retried.
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when a mutation is missing required fields or carries invalid values.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Transaction", "Asset")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class TransactionNotFoundError(NotFoundError):
    """Raised when a ledger record id does not exist."""

    def __init__(self, transaction_id: int) -> None:
        self.transaction_id = transaction_id
        super().__init__(
            f"Transaction {transaction_id} not found",
            resource_type="Transaction",
            resource_id=transaction_id,
        )


class TradeNotFoundError(NotFoundError):
    """Raised when no ledger legs share the given trade group id."""

    def __init__(self, trade_group_id: str) -> None:
        self.trade_group_id = trade_group_id
        super().__init__(
            f"Trade {trade_group_id} not found",
            resource_type="Trade",
            resource_id=trade_group_id,
        )


class AssetNotFoundError(NotFoundError):
    """Raised when a symbol is absent from the asset registry."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(
            f"Asset '{symbol}' not found",
            resource_type="Asset",
            resource_id=symbol,
        )


class HoldingNotFoundError(NotFoundError):
    """Raised when an asset has no open position."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(
            f"No open holding for '{symbol}'",
            resource_type="Holding",
            resource_id=symbol,
        )


# =============================================================================
# MARKET DATA PROVIDER ERRORS
# =============================================================================


class MarketDataError(ServiceError):
    """
    Base exception for market data provider failures.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class UpstreamUnavailableError(MarketDataError):
    """
    Raised when the price source cannot answer right now.

    Examples:
    - Network timeout
    - Server errors (500, 502, 503)
    - Empty quote for a symbol the provider knows

    This is a retryable error. It is never fatal to the caller: the price
    service degrades to the last known price.
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider)
        self.reason = reason


class RateLimitError(UpstreamUnavailableError):
    """
    Raised when the provider's rate limit has been exceeded.

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        reason = "rate limit exceeded"
        if retry_after:
            reason += f" (retry after {retry_after}s)"
        super().__init__(provider, reason)
        self.retry_after = retry_after


class TickerNotFoundError(MarketDataError):
    """
    Raised when the provider does not know the symbol.

    This is NOT a retryable error.
    """

    def __init__(self, symbol: str, provider: str) -> None:
        message = f"Symbol '{symbol}' not found by {provider}"
        super().__init__(message, provider=provider)
        self.symbol = symbol


# =============================================================================
# PERSISTENCE ERRORS
# =============================================================================


class PersistenceError(ServiceError):
    """
    Raised when the store rejects or fails a write.

    The ledger write is rolled back before this is raised.

    Attributes:
        operation: What was being written (e.g., "record_transaction")
    """

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Storage failure during {operation}: {reason}")


__all__ = [
    # Base
    "ServiceError",
    # Validation
    "ValidationError",
    # Not Found
    "NotFoundError",
    "TransactionNotFoundError",
    "TradeNotFoundError",
    "AssetNotFoundError",
    "HoldingNotFoundError",
    # Market Data
    "MarketDataError",
    "UpstreamUnavailableError",
    "RateLimitError",
    "TickerNotFoundError",
    # Persistence
    "PersistenceError",
]
