"""Reporting schemas: metrics, allocation, trend and attribution."""

import enum
from uuid import UUID

from pydantic import BaseModel


class ViewMode(str, enum.Enum):
    """Whole portfolio, or only the assets the active strategy covers."""

    TOTAL = "total"
    STRATEGY = "strategy"


class TimeRange(str, enum.Enum):
    """Comparison window for metrics and attribution."""

    ALL = "all"
    YTD = "ytd"
    ONE_YEAR = "1y"


PERIOD_LABELS: dict[TimeRange, str] = {
    TimeRange.ALL: "All time",
    TimeRange.YTD: "Year to date",
    TimeRange.ONE_YEAR: "Last 12 months",
}


class MetricsResponse(BaseModel):
    """Headline value, invested capital and profit over a window."""

    end_value: float = 0.0
    end_invested: float = 0.0
    profit: float = 0.0
    return_rate: float = 0.0
    period_label: str = PERIOD_LABELS[TimeRange.ALL]


class AllocationItem(BaseModel):
    """One slice of an allocation breakdown.

    Category slices only carry name/value/percent/color; layer and target
    slices add their configured target share and the signed deviation.
    """

    id: UUID | None = None
    name: str
    value: float
    percent: float
    target_percent: float | None = None
    color: str
    deviation: float | None = None
    is_layer: bool | None = None


class TrendPoint(BaseModel):
    """Portfolio value and invested capital at one snapshot date."""

    date: str
    value: float
    invested: float


class AttributionItem(BaseModel):
    """Profit attribution for one category, layer or target."""

    id: str
    name: str
    color: str
    end_val: float
    end_cost: float
    change_val: float
    change_input: float
    profit: float
