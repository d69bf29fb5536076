# backend/app/schemas/trades.py
"""
Pydantic schemas for asset-for-asset trades.

A trade request produces two ledger legs (trade_out, trade_in) that share
a trade_group_id.
"""

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from app.schemas.transactions import TransactionResponse
from app.schemas.validators import normalize_exchange, validate_symbol


class TradeCreate(BaseModel):
    """Give qty_from of asset_from, receive qty_to of asset_to."""

    asset_from: str = Field(..., min_length=1, max_length=20, examples=["ETH"])
    qty_from: Decimal = Field(..., gt=0, max_digits=18, decimal_places=8, examples=["1"])
    asset_to: str = Field(..., min_length=1, max_length=20, examples=["BTC"])
    qty_to: Decimal = Field(..., gt=0, max_digits=18, decimal_places=8, examples=["0.03"])
    exchange: str = Field(..., min_length=1, max_length=50, examples=["Binance"])
    fees: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        max_digits=18,
        decimal_places=8,
        description="Total fee; split evenly between the two legs"
    )
    notes: str | None = Field(default=None, max_length=500)
    occurred_at: datetime | None = Field(default=None)

    @field_validator('asset_from', 'asset_to')
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
        if v is None:
            return None
        aware = v if v.tzinfo is not None else v.astimezone()
        if aware > datetime.now(timezone.utc):
            raise ValueError("occurred_at cannot be in the future")
        return v


class TradeResponse(BaseModel):
    trade_group_id: str
    leg_out: TransactionResponse
    leg_in: TransactionResponse


class TradeDeletedResponse(BaseModel):
    trade_group_id: str
    legs_deleted: int
