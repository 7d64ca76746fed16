"""Plain typed records produced by point-in-time reconstruction.

These carry no storage concerns; field renaming for the wire happens only
in the response schemas that embed them.
"""

from uuid import UUID

from pydantic import BaseModel

from app.models.asset import AssetCategory


class HoldingState(BaseModel):
    """Cumulative quantity and cost of one asset as of a date."""

    quantity: float = 0.0
    total_cost: float = 0.0


class AssetValuation(BaseModel):
    """Holding of one asset at a date, priced with last-value-carried-forward."""

    asset_id: UUID
    name: str
    category: AssetCategory
    quantity: float
    unit_price: float
    market_value: float
    total_cost: float
