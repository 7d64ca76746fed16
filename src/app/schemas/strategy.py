"""Strategy schemas."""

from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.constants import AUTO_WEIGHT
from app.utils.dates import parse_ledger_date


class StrategyTargetIn(BaseModel):
    """Target as submitted by the client.

    ``id`` is optional: an existing id keeps its row, anything else is
    stored under a freshly generated id.
    """

    id: UUID | None = None
    asset_id: UUID
    target_name: str | None = Field(None, max_length=255)
    weight: float
    color: str | None = Field(None, max_length=20)
    note: str | None = None

    @field_validator("weight")
    @classmethod
    def validate_weight(cls, v: float) -> float:
        """Weight is a share in [0, 100] or the auto marker -1."""
        if v == AUTO_WEIGHT:
            return v
        if v < 0 or v > 100:
            raise ValueError("Target weight must be between 0 and 100, or -1 for auto")
        return v


class StrategyLayerIn(BaseModel):
    """Layer as submitted by the client."""

    id: UUID | None = None
    name: str = Field(..., min_length=1, max_length=255)
    weight: float = Field(..., ge=0, le=100)
    description: str | None = None
    targets: list[StrategyTargetIn] = Field(default_factory=list)


class StrategyBase(BaseModel):
    """Base strategy version schema."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    start_date: str
    status: str = "active"

    @field_validator("start_date")
    @classmethod
    def validate_start_date(cls, v: str) -> str:
        """Validate ledger date format."""
        return parse_ledger_date(v)


class StrategyCreate(StrategyBase):
    """Schema for creating a strategy version with its layers and targets."""

    layers: list[StrategyLayerIn] = Field(default_factory=list)


class StrategyUpdate(StrategyCreate):
    """Schema for replacing a strategy version's content (ids kept where given)."""

    pass


class StrategyTargetResponse(BaseModel):
    """Target in a strategy response."""

    id: UUID
    asset_id: UUID
    target_name: str
    weight: float
    color: str | None = None
    note: str | None = None


class StrategyLayerResponse(BaseModel):
    """Layer in a strategy response."""

    id: UUID
    name: str
    weight: float
    description: str | None = None
    targets: list[StrategyTargetResponse]


class StrategyResponse(StrategyBase):
    """Strategy version with its full hierarchy."""

    id: UUID
    layers: list[StrategyLayerResponse]


class StrategyWriteResult(BaseModel):
    """Result of a strategy create/update/delete."""

    success: bool = True
    id: UUID | None = None
