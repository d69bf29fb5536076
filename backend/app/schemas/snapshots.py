# backend/app/schemas/snapshots.py
"""
Pydantic schemas for daily snapshots and backfill runs.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models import PriceSource
from app.schemas.validators import validate_date_range, validate_symbol


class BackfillRequest(BaseModel):
    """Fill missing snapshots for one asset, or "all", over a day range."""

    asset_symbol: str = Field(
        default="all",
        description="Asset symbol, or 'all' for every asset in the ledger",
        examples=["all", "BTC"]
    )
    start_date: date
    end_date: date
    sync_history: bool = Field(
        default=False,
        description="Pull provider history into the price store first"
    )

    @field_validator('asset_symbol')
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        if v.strip().lower() == "all":
            return "all"
        return validate_symbol(v)

    @model_validator(mode="after")
    def check_range(self) -> "BackfillRequest":
        validate_date_range(self.start_date, self.end_date)
        return self


class BackfillErrorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    asset_symbol: str
    snapshot_date: date | None = Field(..., description="None when the whole asset failed")
    message: str


class BackfillReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    created: int
    skipped: int
    assets_processed: int
    errors: list[BackfillErrorResponse]


class SnapshotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    asset_symbol: str
    snapshot_date: date
    quantity: Decimal
    price_per_unit: Decimal
    price_source: PriceSource
    total_value: Decimal
    unrealized_pnl: Decimal
    created_at: datetime


class PortfolioHistoryPointResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    snapshot_date: date
    total_value: Decimal
    unrealized_pnl: Decimal
    assets: int
