"""Asset schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.models.asset import AssetCategory
from app.utils.dates import parse_ledger_date


class AssetBase(BaseModel):
    """Base asset schema."""

    name: str = Field(..., min_length=1, max_length=255)
    category: AssetCategory
    ticker: str | None = Field(None, max_length=50)
    note: str | None = None


class AssetCreate(AssetBase):
    """Schema for creating an asset."""

    pass


class AssetUpdate(BaseModel):
    """Schema for updating an asset."""

    name: str | None = Field(None, min_length=1, max_length=255)
    category: AssetCategory | None = None
    ticker: str | None = Field(None, max_length=50)
    note: str | None = None


class AssetResponse(AssetBase):
    """Schema for asset response."""

    id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class AssetPriceUpdate(BaseModel):
    """Schema for recording a price observation outside of a snapshot save."""

    date: str
    price: float = Field(..., ge=0)

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        """Validate ledger date format."""
        return parse_ledger_date(v)


class AssetHistoryPoint(BaseModel):
    """One asset's reconstructed state at a snapshot date."""

    date: str
    unit_price: float
    quantity: float
    market_value: float
    total_cost: float
    added_quantity: float
    added_principal: float
