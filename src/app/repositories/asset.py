"""Asset repository for asset database operations."""

import uuid

from sqlalchemy import select

from app.models.asset import Asset
from app.models.strategy import StrategyTarget
from app.models.transaction import Transaction
from app.repositories.base import BaseRepository


class AssetRepository(BaseRepository[Asset]):
    """Repository for Asset model.

    Example:
        >>> repo = AssetRepository(Asset, db)
        >>> assets = await repo.get_map()
    """

    async def list_all(self) -> list[Asset]:
        """Get every asset, newest first."""
        result = await self.db.execute(
            select(Asset).order_by(Asset.created_at.desc(), Asset.name.asc())
        )
        return list(result.scalars().all())

    async def get_map(self) -> dict[uuid.UUID, Asset]:
        """Get every asset keyed by id.

        Reconstruction joins ledger rows to asset metadata through this map
        instead of issuing one lookup per holding.
        """
        result = await self.db.execute(select(Asset))
        return {asset.id: asset for asset in result.scalars().all()}

    async def is_referenced(self, asset_id: uuid.UUID) -> bool:
        """Whether any ledger transaction or strategy target points at the asset.

        Args:
            asset_id: Asset to check

        Returns:
            True if the asset cannot be deleted without orphaning history
        """
        tx = await self.db.execute(
            select(Transaction.id).where(Transaction.asset_id == asset_id).limit(1)
        )
        if tx.first() is not None:
            return True

        target = await self.db.execute(
            select(StrategyTarget.id).where(StrategyTarget.asset_id == asset_id).limit(1)
        )
        return target.first() is not None
