# backend/app/schemas/transactions.py
"""
Pydantic schemas for ledger entries.

- TransactionCreate: what clients send to record a single entry
- TransactionResponse: one ledger entry as stored
- TransactionListResponse: a page of the ledger

Shape checks live here (types, positive quantity, symbol format). Rules
that depend on the kind (price required for buy/sell, no price on trade
legs) are enforced by LedgerService and come back as 400s.

IMPORTANT: All financial values use Decimal for precision.
"""

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models import AssetCategory, TransactionKind
from app.schemas.pagination import PaginationMeta
from app.schemas.validators import normalize_exchange, validate_symbol


# =============================================================================
# CREATE SCHEMA
# =============================================================================

class TransactionCreate(BaseModel):
    """Schema for recording a single ledger entry."""

    kind: TransactionKind = Field(
        ...,
        description="buy, sell, trade_in or trade_out",
        examples=["buy", "sell"]
    )

    asset_symbol: str = Field(
        ...,
        min_length=1,
        max_length=20,
        description="Asset symbol (e.g., 'BTC', 'AAPL')",
        examples=["BTC", "AAPL", "VWCE"]
    )

    quantity: Decimal = Field(
        ...,
        gt=0,
        max_digits=18,
        decimal_places=8,
        description="Units moved (must be positive)",
        examples=["0.5", "10"]
    )

    exchange: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Exchange or broker the entry happened on",
        examples=["Kraken", "NASDAQ"]
    )

    price_per_unit: Decimal | None = Field(
        default=None,
        ge=0,
        max_digits=18,
        decimal_places=8,
        description="Fiat price per unit (required for buy/sell, omitted for trade legs)",
        examples=["60000", "150.50"]
    )

    fees: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        max_digits=18,
        decimal_places=8,
        description="Fees paid (0 or positive)",
        examples=["0", "9.99"]
    )

    notes: str | None = Field(default=None, max_length=500)

    occurred_at: datetime | None = Field(
        default=None,
        description="When the entry happened (defaults to now)",
        examples=["2024-01-15T14:30:00"]
    )

    # Used only when the asset is registered by this entry
    asset_name: str | None = Field(default=None, max_length=100)
    category: AssetCategory | None = Field(default=None)
    api_source: str | None = Field(default=None, max_length=50)
    api_id: str | None = Field(default=None, max_length=100)

    @field_validator('asset_symbol')
    @classmethod
    def validate_and_normalize_symbol(cls, v: str) -> str:
        return validate_symbol(v)

    @field_validator('exchange')
    @classmethod
    def validate_and_normalize_exchange(cls, v: str) -> str:
        return normalize_exchange(v)

    @field_validator('occurred_at')
    @classmethod
    def validate_not_in_future(cls, v: datetime | None) -> datetime | None:
        """Prevent recording entries that haven't happened yet."""
        if v is None:
            return None
        aware = v if v.tzinfo is not None else v.astimezone()
        if aware > datetime.now(timezone.utc):
            raise ValueError("occurred_at cannot be in the future")
        return v


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class TransactionResponse(BaseModel):
    """One ledger entry as stored."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: TransactionKind
    asset_symbol: str
    exchange: str
    quantity: Decimal
    price_per_unit: Decimal
    total_amount: Decimal
    fees: Decimal
    notes: str
    occurred_at: datetime
    trade_group_id: str | None = Field(
        default=None,
        description="Shared by both legs of a trade"
    )
    created_at: datetime


class TransactionListResponse(BaseModel):
    """A page of the ledger, newest first."""

    items: list[TransactionResponse] = Field(..., description="Entries on this page")
    pagination: PaginationMeta = Field(..., description="Pagination metadata")
