"""Transaction repository for ledger operations."""

import uuid

from sqlalchemy import delete, func, select

from app.core.constants import LedgerConstants
from app.models.transaction import Transaction
from app.repositories.base import BaseRepository
from app.schemas.ledger import HoldingState


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for the append-only transaction ledger.

    All list queries return rows ordered by date ascending (then insertion
    time), which is the order the reconstructor accumulates them in.

    Example:
        >>> repo = TransactionRepository(Transaction, db)
        >>> rows = await repo.list_transactions(max_date="2024-03")
    """

    async def list_transactions(
        self,
        *,
        asset_id: uuid.UUID | None = None,
        max_date: str | None = None,
        snapshot_id: uuid.UUID | None = None,
    ) -> list[Transaction]:
        """List transactions with optional filters.

        Args:
            asset_id: Only this asset's transactions
            max_date: Only transactions dated on or before this date
            snapshot_id: Only transactions written by this snapshot save

        Returns:
            Transactions ordered by date ascending
        """
        query = select(Transaction)
        if asset_id is not None:
            query = query.where(Transaction.asset_id == asset_id)
        if max_date is not None:
            query = query.where(Transaction.date <= max_date)
        if snapshot_id is not None:
            query = query.where(Transaction.snapshot_id == snapshot_id)

        result = await self.db.execute(
            query.order_by(Transaction.date.asc(), Transaction.created_at.asc())
        )
        return list(result.scalars().all())

    async def sum_holdings(self, asset_id: uuid.UUID, max_date: str) -> HoldingState:
        """Aggregate quantity and cost of one asset up to a date.

        Args:
            asset_id: Asset to aggregate
            max_date: Inclusive cutoff date

        Returns:
            HoldingState with zero totals when there are no transactions.
            A quantity within epsilon of zero is reported as exactly 0.
        """
        result = await self.db.execute(
            select(
                func.coalesce(func.sum(Transaction.quantity_change), 0.0),
                func.coalesce(func.sum(Transaction.cost_change), 0.0),
            ).where(
                (Transaction.asset_id == asset_id) & (Transaction.date <= max_date)
            )
        )
        quantity, cost = result.one()
        quantity = float(quantity)
        if abs(quantity) < LedgerConstants.QUANTITY_EPSILON:
            quantity = 0.0
        return HoldingState(quantity=quantity, total_cost=float(cost))

    async def add_transaction(
        self,
        *,
        asset_id: uuid.UUID,
        date: str,
        quantity_change: float,
        cost_change: float,
        snapshot_id: uuid.UUID | None = None,
        type: str = "adjustment",
        note: str | None = None,
    ) -> Transaction:
        """Append a transaction to the ledger.

        Note:
            Caller must commit the transaction.
        """
        tx = Transaction(
            id=uuid.uuid4(),
            asset_id=asset_id,
            snapshot_id=snapshot_id,
            date=date,
            type=type,
            quantity_change=quantity_change,
            cost_change=cost_change,
            note=note,
        )
        self.db.add(tx)
        await self.db.flush()
        return tx

    async def delete_by_snapshot(self, snapshot_id: uuid.UUID) -> int:
        """Delete every transaction written by one snapshot save.

        Args:
            snapshot_id: Snapshot whose deltas are being replaced

        Returns:
            Number of transactions deleted

        Note:
            Caller must commit the transaction.
        """
        result = await self.db.execute(
            delete(Transaction).where(Transaction.snapshot_id == snapshot_id)
        )
        await self.db.flush()
        return result.rowcount  # type: ignore

    async def count_by_snapshot(self, snapshot_id: uuid.UUID) -> int:
        """Count transactions tagged with a snapshot."""
        result = await self.db.execute(
            select(func.count())
            .select_from(Transaction)
            .where(Transaction.snapshot_id == snapshot_id)
        )
        return int(result.scalar_one())
