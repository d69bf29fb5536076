# backend/app/schemas/holdings.py
"""
Pydantic schemas for holdings and portfolio read models.

Holdings are derived from the ledger; none of these are writable.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.models import AssetCategory


class HoldingResponse(BaseModel):
    """One open position."""

    model_config = ConfigDict(from_attributes=True)

    asset_symbol: str
    name: str
    category: AssetCategory
    quantity: Decimal
    avg_cost: Decimal = Field(..., description="Average fiat cost per unit")
    invested: Decimal = Field(..., description="Capital attributed to the position")
    current_price: Decimal = Field(..., description="Last known market price")
    market_value: Decimal
    unrealized_pnl: Decimal
    last_updated: datetime

    @classmethod
    def from_holding(cls, holding) -> "HoldingResponse":
        return cls(
            asset_symbol=holding.asset_symbol,
            name=holding.asset.name,
            category=holding.asset.category,
            quantity=holding.quantity,
            avg_cost=holding.avg_cost,
            invested=holding.invested,
            current_price=holding.asset.current_price,
            market_value=holding.market_value,
            unrealized_pnl=holding.unrealized_pnl,
            last_updated=holding.last_updated,
        )


class PortfolioSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_invested: Decimal
    total_market_value: Decimal
    total_unrealized_pnl: Decimal
    open_positions: int


class CategoryShareResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: AssetCategory
    market_value: Decimal
    percentage: int = Field(..., ge=0, le=100, description="Rounded share of total market value")


class HoldingStateResponse(BaseModel):
    """Result of reprojecting one asset."""

    model_config = ConfigDict(from_attributes=True)

    asset_symbol: str
    quantity: Decimal
    avg_cost: Decimal
    invested: Decimal
    market_price: Decimal
    market_value: Decimal
    unrealized_pnl: Decimal
    cost_basis_estimated: bool = Field(
        ...,
        description="True when avg_cost comes from the market price, not from fiat flow"
    )


class RefreshPricesResponse(BaseModel):
    refreshed: int
    holdings: list[HoldingStateResponse]
