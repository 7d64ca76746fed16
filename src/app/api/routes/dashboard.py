"""Dashboard reporting endpoints.

All reports default to the strategy view over the whole history, the way
the dashboard opens.
"""

from uuid import UUID

from fastapi import APIRouter, Query

from app.core.deps import DbSession, validate_date_param
from app.schemas.dashboard import (
    AllocationItem,
    AttributionItem,
    MetricsResponse,
    TimeRange,
    TrendPoint,
    ViewMode,
)
from app.services import dashboard_service

router = APIRouter()


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics(
    db: DbSession,
    view_mode: ViewMode = Query(ViewMode.STRATEGY, description="total or strategy"),
    time_range: TimeRange = Query(TimeRange.ALL, description="all, ytd or 1y"),
) -> MetricsResponse:
    """End value, invested capital, profit and return over a time range."""
    return await dashboard_service.get_metrics(db, view_mode, time_range)


@router.get("/allocation", response_model=list[AllocationItem])
async def get_allocation(
    db: DbSession,
    view_mode: ViewMode = Query(ViewMode.STRATEGY, description="total or strategy"),
    layer_id: UUID | None = Query(None, description="Drill into one strategy layer"),
) -> list[AllocationItem]:
    """Allocation at the latest snapshot by category, layer or target."""
    return await dashboard_service.get_allocation(db, view_mode, layer_id)


@router.get("/trend", response_model=list[TrendPoint])
async def get_trend(
    db: DbSession,
    view_mode: ViewMode = Query(ViewMode.STRATEGY, description="total or strategy"),
    layer_id: UUID | None = Query(None, description="Only this strategy layer"),
    start_date: str | None = Query(None, description="Drop points before this date"),
) -> list[TrendPoint]:
    """
    Value and invested capital at each snapshot date.

    Raises:
        ValidationError: If start_date is not YYYY-MM-DD or YYYY-MM
    """
    start_date = validate_date_param(start_date, "start_date")
    return await dashboard_service.get_trend(db, view_mode, layer_id, start_date)


@router.get("/breakdown", response_model=list[AttributionItem])
async def get_breakdown(
    db: DbSession,
    view_mode: ViewMode = Query(ViewMode.STRATEGY, description="total or strategy"),
    time_range: TimeRange = Query(TimeRange.ALL, description="all, ytd or 1y"),
    layer_id: UUID | None = Query(None, description="Drill into one strategy layer"),
) -> list[AttributionItem]:
    """Profit attribution by category, layer or target over a time range."""
    return await dashboard_service.get_attribution(db, view_mode, time_range, layer_id)
