"""Asset catalog management, ad-hoc price recording and per-asset history."""

import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import LedgerConstants
from app.core.exceptions import ConflictError, NotFoundError, StorageError
from app.db.session import read_only_transaction, transactional
from app.models.asset import Asset
from app.models.market_price import MarketPrice
from app.models.snapshot import Snapshot
from app.repositories.asset import AssetRepository
from app.repositories.market_price import MarketPriceRepository
from app.repositories.snapshot import SnapshotRepository
from app.schemas.asset import AssetCreate, AssetHistoryPoint, AssetPriceUpdate, AssetUpdate
from app.schemas.ledger import HoldingState
from app.services.ledger_service import is_zero_quantity, load_timeline
from app.services.snapshot_service import refresh_cached_totals

logger = logging.getLogger(__name__)


async def list_assets(db: AsyncSession) -> list[Asset]:
    """All assets, newest first."""
    return await AssetRepository(Asset, db).list_all()


async def get_asset_or_404(db: AsyncSession, asset_id: uuid.UUID) -> Asset:
    """Load an asset.

    Raises:
        NotFoundError: If the asset does not exist
    """
    asset = await AssetRepository(Asset, db).get(asset_id)
    if asset is None:
        raise NotFoundError(f"Asset {asset_id} not found")
    return asset


async def create_asset(db: AsyncSession, data: AssetCreate) -> Asset:
    """Create an asset.

    Raises:
        StorageError: If the write fails
    """
    try:
        async with transactional(db):
            asset = await AssetRepository(Asset, db).create(obj_in=data)
    except SQLAlchemyError as e:
        logger.error(f"Failed to create asset '{data.name}': {type(e).__name__}: {e}")
        raise StorageError("Failed to create asset") from e

    logger.info(f"Created asset '{asset.name}' ({asset.category.value}) with id {asset.id}")
    return asset


async def update_asset(db: AsyncSession, asset_id: uuid.UUID, data: AssetUpdate) -> Asset:
    """Update an asset's metadata (partial update).

    Changing the category changes how the asset is priced when it has no
    observation and how it is grouped in reports, for all dates, so every
    snapshot header's cached totals are recomputed in the same transaction.

    Raises:
        NotFoundError: If the asset does not exist
        StorageError: If the write fails
    """
    try:
        async with transactional(db):
            asset = await get_asset_or_404(db, asset_id)
            previous_category = asset.category
            asset = await AssetRepository(Asset, db).update(db_obj=asset, obj_in=data)
            if asset.category != previous_category:
                await refresh_cached_totals(db)
    except SQLAlchemyError as e:
        logger.error(f"Failed to update asset {asset_id}: {type(e).__name__}: {e}")
        raise StorageError("Failed to update asset") from e

    logger.info(f"Updated asset {asset_id}")
    return asset


async def delete_asset(db: AsyncSession, asset_id: uuid.UUID) -> None:
    """Delete an asset that nothing refers to.

    Its price observations are deleted with it.

    Raises:
        NotFoundError: If the asset does not exist
        ConflictError: If ledger transactions or strategy targets refer to it
        StorageError: If the write fails
    """
    repo = AssetRepository(Asset, db)
    try:
        async with transactional(db):
            await get_asset_or_404(db, asset_id)
            if await repo.is_referenced(asset_id):
                raise ConflictError(
                    f"Asset {asset_id} is still referenced by transactions or strategy targets"
                )
            await repo.delete(id=asset_id)
    except SQLAlchemyError as e:
        logger.error(f"Failed to delete asset {asset_id}: {type(e).__name__}: {e}")
        raise StorageError("Failed to delete asset") from e

    logger.info(f"Deleted asset {asset_id}")


async def record_price(db: AsyncSession, asset_id: uuid.UUID, data: AssetPriceUpdate) -> None:
    """Record (or overwrite) the price of an asset on a date.

    Snapshot headers dated on or after ``data.date`` have their cached
    totals recomputed in the same transaction.

    Raises:
        NotFoundError: If the asset does not exist
        StorageError: If the write fails
    """
    try:
        async with transactional(db):
            await get_asset_or_404(db, asset_id)
            await MarketPriceRepository(MarketPrice, db).upsert_price(
                asset_id=asset_id,
                date=data.date,
                price=data.price,
                source=LedgerConstants.SNAPSHOT_PRICE_SOURCE,
            )
            await refresh_cached_totals(db, since=data.date)
    except SQLAlchemyError as e:
        logger.error(f"Failed to record price for asset {asset_id}: {type(e).__name__}: {e}")
        raise StorageError("Failed to record price") from e

    logger.info(f"Recorded price {data.price} for asset {asset_id} on {data.date}")


async def get_asset_history(db: AsyncSession, asset_id: uuid.UUID) -> list[AssetHistoryPoint]:
    """One asset's reconstructed state at every snapshot date.

    ``added_quantity`` and ``added_principal`` are the changes since the
    previous snapshot date. Dates where the asset is not held and nothing
    changed are skipped.

    Raises:
        NotFoundError: If the asset does not exist
    """
    async with read_only_transaction(db):
        asset = await get_asset_or_404(db, asset_id)
        snapshots = await SnapshotRepository(Snapshot, db).list_ordered()
        timeline = await load_timeline(db)

    history = []
    previous = HoldingState()
    for snapshot in snapshots:
        holding = timeline.holdings_at(asset_id, snapshot.date)
        added_quantity = holding.quantity - previous.quantity
        added_principal = holding.total_cost - previous.total_cost
        previous = holding

        if (
            is_zero_quantity(holding.quantity)
            and is_zero_quantity(added_quantity)
            and is_zero_quantity(added_principal)
        ):
            continue

        unit_price = timeline.price_at(asset_id, snapshot.date, asset.category)
        history.append(
            AssetHistoryPoint(
                date=snapshot.date,
                unit_price=unit_price,
                quantity=holding.quantity,
                market_value=holding.quantity * unit_price,
                total_cost=holding.total_cost,
                added_quantity=added_quantity,
                added_principal=added_principal,
            )
        )
    return history
