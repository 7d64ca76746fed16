"""Asset endpoints."""

from uuid import UUID

from fastapi import APIRouter, Request, status

from app.core.config import settings
from app.core.deps import DbSession
from app.core.rate_limit import limiter
from app.models.asset import Asset
from app.schemas.asset import (
    AssetCreate,
    AssetHistoryPoint,
    AssetPriceUpdate,
    AssetResponse,
    AssetUpdate,
)
from app.services import asset_service

router = APIRouter()


@router.get("/", response_model=list[AssetResponse])
async def list_assets(db: DbSession) -> list[Asset]:
    """List every asset, newest first."""
    return await asset_service.list_assets(db)


@router.post("/", response_model=AssetResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.SAVE_RATE_LIMIT)
async def create_asset(request: Request, asset: AssetCreate, db: DbSession) -> Asset:
    """
    Create a new asset.

    Args:
        request: Incoming request (used by the rate limiter)
        asset: Asset data (validated Pydantic model)
        db: Database session

    Returns:
        The created asset
    """
    return await asset_service.create_asset(db, asset)


@router.get("/{asset_id}", response_model=AssetResponse)
async def get_asset(asset_id: UUID, db: DbSession) -> Asset:
    """Get one asset."""
    return await asset_service.get_asset_or_404(db, asset_id)


@router.put("/{asset_id}", response_model=AssetResponse)
@limiter.limit(settings.SAVE_RATE_LIMIT)
async def update_asset(
    request: Request,
    asset_id: UUID,
    asset_update: AssetUpdate,
    db: DbSession,
) -> Asset:
    """
    Update an asset's name, category, ticker or note.

    Raises:
        NotFoundError: If the asset does not exist
    """
    return await asset_service.update_asset(db, asset_id, asset_update)


@router.delete("/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(settings.SAVE_RATE_LIMIT)
async def delete_asset(request: Request, asset_id: UUID, db: DbSession) -> None:
    """
    Delete an asset.

    Raises:
        NotFoundError: If the asset does not exist
        ConflictError: If transactions or strategy targets still refer to it
    """
    await asset_service.delete_asset(db, asset_id)


@router.put("/{asset_id}/price")
@limiter.limit(settings.SAVE_RATE_LIMIT)
async def update_asset_price(
    request: Request,
    asset_id: UUID,
    price_update: AssetPriceUpdate,
    db: DbSession,
) -> dict[str, bool]:
    """Record the asset's price on a date, overwriting any earlier value for it."""
    await asset_service.record_price(db, asset_id, price_update)
    return {"success": True}


@router.get("/{asset_id}/history", response_model=list[AssetHistoryPoint])
async def get_asset_history(asset_id: UUID, db: DbSession) -> list[AssetHistoryPoint]:
    """Reconstructed holding of one asset at every snapshot date."""
    return await asset_service.get_asset_history(db, asset_id)
