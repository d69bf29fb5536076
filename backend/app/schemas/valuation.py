# backend/app/schemas/valuation.py
"""
Pydantic schemas for point-in-time valuation.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ValuationResponse(BaseModel):
    """Position and value of one asset at the end of one calendar day."""

    model_config = ConfigDict(from_attributes=True)

    asset_symbol: str
    as_of_date: date
    quantity: Decimal = Field(..., description="Units held (0 if none)")
    price_per_unit: Decimal = Field(..., description="Price the position was valued at")
    invested: Decimal = Field(..., description="Fiat spent on inflows up to the date")
    total_value: Decimal
    unrealized_pnl: Decimal
