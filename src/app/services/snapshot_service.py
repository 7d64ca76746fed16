"""Snapshot cache: saving a date's changes and keeping cached totals exact.

A snapshot is a write-through cache over the ledger. Saving a date writes
its price observations and quantity/cost deltas to the ledger, then
recomputes the totals of that header and every later one from scratch, all
in one transaction. The deltas are tagged with the snapshot id so that
re-saving the same date replaces them instead of stacking duplicates.
"""

import logging
import uuid
from collections import defaultdict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import LedgerConstants
from app.core.exceptions import NotFoundError, StorageError, ValidationError
from app.db.session import read_only_transaction, transactional
from app.models.asset import Asset
from app.models.market_price import MarketPrice
from app.models.snapshot import Snapshot
from app.models.transaction import Transaction
from app.repositories.asset import AssetRepository
from app.repositories.market_price import MarketPriceRepository
from app.repositories.snapshot import SnapshotRepository
from app.repositories.transaction import TransactionRepository
from app.schemas.snapshot import (
    SnapshotAssetDetail,
    SnapshotDetail,
    SnapshotPage,
    SnapshotSave,
    SnapshotSummary,
)
from app.services.ledger_service import load_timeline, portfolio_at, portfolio_totals

logger = logging.getLogger(__name__)


def _has_delta(added_quantity: float, added_principal: float) -> bool:
    epsilon = LedgerConstants.QUANTITY_EPSILON
    return abs(added_quantity) > epsilon or abs(added_principal) > epsilon


async def save_snapshot(db: AsyncSession, data: SnapshotSave) -> uuid.UUID:
    """Save the snapshot of a date as one atomic unit of work.

    Steps, all inside a single transaction:
        1. Resolve the snapshot id for the date, or allocate a new one
        2. Delete the transactions a previous save of this date wrote
        3. Upsert a price observation for every asset with a unit price
        4. Append one ``adjustment`` transaction per asset with a delta
        5. Upsert the header with the note
        6. Recompute the cached totals of this header and of every later one

    Later headers are refreshed too, because a backdated delta or price
    changes what they reconstruct to. Re-saving a date with identical input
    leaves the ledger and totals unchanged.

    Args:
        db: Database session
        data: Validated snapshot payload

    Returns:
        Id of the saved snapshot

    Raises:
        ValidationError: If an asset id is unknown
        StorageError: If any database step fails (nothing is applied)
    """
    date = data.date
    snapshot_repo = SnapshotRepository(Snapshot, db)
    tx_repo = TransactionRepository(Transaction, db)
    price_repo = MarketPriceRepository(MarketPrice, db)

    try:
        async with transactional(db):
            known_assets = await AssetRepository(Asset, db).get_map()
            unknown = sorted({str(a.asset_id) for a in data.assets} - {str(k) for k in known_assets})
            if unknown:
                raise ValidationError(f"Unknown asset id(s): {', '.join(unknown)}")

            snapshot = await snapshot_repo.get_by_date(date)
            snapshot_id = snapshot.id if snapshot is not None else uuid.uuid4()

            removed = await tx_repo.delete_by_snapshot(snapshot_id)

            prices_written = 0
            deltas_written = 0
            for entry in data.assets:
                if entry.unit_price is not None:
                    await price_repo.upsert_price(
                        asset_id=entry.asset_id,
                        date=date,
                        price=entry.unit_price,
                        source=LedgerConstants.SNAPSHOT_PRICE_SOURCE,
                    )
                    prices_written += 1

                if _has_delta(entry.added_quantity, entry.added_principal):
                    await tx_repo.add_transaction(
                        asset_id=entry.asset_id,
                        date=date,
                        quantity_change=entry.added_quantity,
                        cost_change=entry.added_principal,
                        snapshot_id=snapshot_id,
                        type=LedgerConstants.SNAPSHOT_TRANSACTION_TYPE,
                    )
                    deltas_written += 1

            if snapshot is None:
                snapshot = Snapshot(
                    id=snapshot_id,
                    date=date,
                    total_value=0.0,
                    total_invested=0.0,
                    note=data.note,
                )
                db.add(snapshot)
            else:
                snapshot.note = data.note
            await db.flush()

            refreshed = await refresh_cached_totals(db, since=date)
            total_value = snapshot.total_value
            total_invested = snapshot.total_invested
    except SQLAlchemyError as e:
        logger.error(f"Failed to save snapshot for {date}: {type(e).__name__}: {e}")
        raise StorageError("Failed to save snapshot") from e

    logger.info(
        f"Saved snapshot {date} ({snapshot_id}): replaced {removed} transaction(s), "
        f"wrote {prices_written} price(s) and {deltas_written} delta(s), "
        f"refreshed {refreshed} header(s); "
        f"value={total_value:.2f} invested={total_invested:.2f}"
    )
    return snapshot_id


async def get_snapshot_or_404(db: AsyncSession, snapshot_id: uuid.UUID) -> Snapshot:
    """Load a snapshot header.

    Raises:
        NotFoundError: If the snapshot does not exist
    """
    snapshot = await SnapshotRepository(Snapshot, db).get(snapshot_id)
    if snapshot is None:
        raise NotFoundError(f"Snapshot {snapshot_id} not found")
    return snapshot


async def get_snapshot_details(db: AsyncSession, snapshot_id: uuid.UUID) -> SnapshotDetail:
    """Header plus the portfolio reconstructed as of the snapshot's date.

    ``added_quantity`` and ``added_principal`` of each asset come only from
    transactions this snapshot wrote, i.e. what changed in this period,
    while ``quantity`` and ``total_cost`` are cumulative holdings.

    Raises:
        NotFoundError: If the snapshot does not exist
    """
    async with read_only_transaction(db):
        snapshot = await get_snapshot_or_404(db, snapshot_id)
        portfolio = await portfolio_at(db, snapshot.date)
        flows = await TransactionRepository(Transaction, db).list_transactions(
            snapshot_id=snapshot.id
        )

    added: dict[uuid.UUID, list[float]] = defaultdict(lambda: [0.0, 0.0])
    for tx in flows:
        added[tx.asset_id][0] += tx.quantity_change
        added[tx.asset_id][1] += tx.cost_change

    assets = []
    for valuation in portfolio:
        added_quantity, added_principal = added.get(valuation.asset_id, (0.0, 0.0))
        assets.append(
            SnapshotAssetDetail(
                **valuation.model_dump(),
                added_quantity=added_quantity,
                added_principal=added_principal,
            )
        )

    return SnapshotDetail(
        id=snapshot.id,
        date=snapshot.date,
        total_value=snapshot.total_value,
        total_invested=snapshot.total_invested,
        note=snapshot.note,
        updated_at=snapshot.updated_at,
        assets=assets,
    )


async def list_snapshots(db: AsyncSession, *, page: int = 1, limit: int = 20) -> SnapshotPage:
    """Page through snapshot headers, newest first."""
    if page < 1:
        raise ValidationError("Page must be 1 or greater")

    repo = SnapshotRepository(Snapshot, db)
    total = await repo.count()
    items = await repo.get_page(skip=(page - 1) * limit, limit=limit)
    return SnapshotPage(
        items=[SnapshotSummary.model_validate(s) for s in items],
        total=total,
        page=page,
        limit=limit,
    )


async def get_previous_snapshot(db: AsyncSession, date: str) -> SnapshotDetail | None:
    """Details of the nearest snapshot strictly before ``date``.

    Used to pre-fill a new period's entry form from the last one.
    """
    previous = await SnapshotRepository(Snapshot, db).get_previous(date)
    if previous is None:
        return None
    return await get_snapshot_details(db, previous.id)


async def refresh_cached_totals(db: AsyncSession, since: str | None = None) -> int:
    """Recompute the cached totals of every header dated on or after ``since``.

    Loads the ledger once and reconstructs each header's date from the same
    timeline. Any write that changes the ledger at a date calls this with
    that date, so no later header keeps totals from before the write.

    Args:
        db: Database session
        since: Earliest header date to refresh; every header when omitted

    Returns:
        Number of headers rewritten

    Note:
        Caller owns the transaction.
    """
    snapshots = await SnapshotRepository(Snapshot, db).list_ordered(min_date=since)
    if not snapshots:
        return 0

    timeline = await load_timeline(db)
    for snapshot in snapshots:
        total_value, total_invested = portfolio_totals(timeline.portfolio_at(snapshot.date))
        snapshot.total_value = total_value
        snapshot.total_invested = total_invested
    await db.flush()

    logger.debug(f"Refreshed cached totals of {len(snapshots)} snapshot(s) from {since or 'start'}")
    return len(snapshots)


async def recalculate_cache(db: AsyncSession) -> int:
    """Rebuild every snapshot header's totals from the ledger, in one transaction.

    Returns:
        Number of snapshot headers rewritten

    Raises:
        StorageError: If the rebuild fails (no header is changed)
    """
    try:
        async with transactional(db):
            rewritten = await refresh_cached_totals(db)
    except SQLAlchemyError as e:
        logger.error(f"Failed to rebuild snapshot cache: {type(e).__name__}: {e}")
        raise StorageError("Failed to rebuild snapshot cache") from e

    logger.info(f"Rebuilt cached totals of {rewritten} snapshot(s)")
    return rewritten
