# backend/app/schemas/assets.py
"""
Pydantic schemas for asset registry reads.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.models import AssetCategory


class AssetPriceResponse(BaseModel):
    """Current price of a registered asset."""

    asset_symbol: str
    category: AssetCategory
    price: Decimal = Field(..., description="Live quote, else last known price, else 0")
    price_updated_at: datetime | None = Field(
        default=None,
        description="When the last known price was stored (None if never priced)"
    )
