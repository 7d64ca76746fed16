"""Snapshot schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.schemas.ledger import AssetValuation
from app.utils.dates import parse_ledger_date


class SnapshotAssetInput(BaseModel):
    """What changed for one asset in a snapshot save.

    ``unit_price`` is the price observed on the snapshot date (omit to keep
    the carried-forward price); ``added_quantity`` and ``added_principal``
    are deltas for this date only, not cumulative holdings.
    """

    asset_id: UUID
    unit_price: float | None = Field(None, ge=0)
    added_quantity: float = 0.0
    added_principal: float = 0.0


class SnapshotSave(BaseModel):
    """Schema for saving (creating or re-saving) the snapshot of a date."""

    date: str
    assets: list[SnapshotAssetInput]
    note: str | None = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        """Validate ledger date format."""
        return parse_ledger_date(v)


class SnapshotSummary(BaseModel):
    """Snapshot header with cached totals."""

    id: UUID
    date: str
    total_value: float
    total_invested: float
    note: str | None = None

    model_config = {"from_attributes": True}


class SnapshotPage(BaseModel):
    """Paginated snapshot headers, newest first."""

    items: list[SnapshotSummary]
    total: int
    page: int
    limit: int


class SnapshotAssetDetail(AssetValuation):
    """Reconstructed holding plus the deltas this snapshot itself recorded."""

    added_quantity: float = 0.0
    added_principal: float = 0.0


class SnapshotDetail(SnapshotSummary):
    """Snapshot header with the full reconstructed portfolio at its date."""

    assets: list[SnapshotAssetDetail]
    updated_at: datetime | None = None


class SnapshotSaveResult(BaseModel):
    """Result of a snapshot save."""

    success: bool = True
    id: UUID


class RecalculateResult(BaseModel):
    """Result of a full snapshot cache rebuild."""

    success: bool = True
    count: int
