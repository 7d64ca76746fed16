"""Snapshot endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Request

from app.core.config import settings
from app.core.deps import DbSession, PageParams, validate_date_param
from app.core.rate_limit import limiter
from app.schemas.snapshot import (
    RecalculateResult,
    SnapshotDetail,
    SnapshotPage,
    SnapshotSave,
    SnapshotSaveResult,
)
from app.services import snapshot_service

router = APIRouter()


@router.get("/", response_model=SnapshotPage)
async def list_snapshots(db: DbSession, pagination: PageParams) -> SnapshotPage:
    """
    List snapshot headers, newest first.

    Args:
        db: Database session
        pagination: ``page`` (1-based) and ``limit`` query parameters

    Returns:
        One page of headers plus the total number of snapshots
    """
    return await snapshot_service.list_snapshots(
        db, page=pagination.page, limit=pagination.limit
    )


@router.get("/previous", response_model=SnapshotDetail | None)
async def get_previous_snapshot(
    db: DbSession,
    date: Annotated[str, Query(description="YYYY-MM-DD or YYYY-MM")],
) -> SnapshotDetail | None:
    """
    Details of the latest snapshot strictly before ``date``.

    Returns null when there is none. Used to pre-fill the next entry.
    """
    date = validate_date_param(date)
    return await snapshot_service.get_previous_snapshot(db, date)


@router.get("/{snapshot_id}", response_model=SnapshotDetail)
async def get_snapshot(snapshot_id: UUID, db: DbSession) -> SnapshotDetail:
    """Snapshot header with the portfolio reconstructed at its date."""
    return await snapshot_service.get_snapshot_details(db, snapshot_id)


@router.post("/", response_model=SnapshotSaveResult)
@limiter.limit(settings.SAVE_RATE_LIMIT)
async def save_snapshot(
    request: Request,
    snapshot: SnapshotSave,
    db: DbSession,
) -> SnapshotSaveResult:
    """
    Create or re-save the snapshot of a date.

    Re-saving a date replaces what the previous save of that date wrote;
    cached totals are recomputed from the ledger.

    Raises:
        ValidationError: If the payload refers to an unknown asset
        StorageError: If the save fails (nothing is applied)
    """
    snapshot_id = await snapshot_service.save_snapshot(db, snapshot)
    return SnapshotSaveResult(id=snapshot_id)


@router.post("/recalculate", response_model=RecalculateResult)
@limiter.limit(settings.REBUILD_RATE_LIMIT)
async def recalculate_snapshots(request: Request, db: DbSession) -> RecalculateResult:
    """Rebuild the cached totals of every snapshot from the ledger."""
    count = await snapshot_service.recalculate_cache(db)
    return RecalculateResult(count=count)
