"""Strategy repository for loading versions with their full hierarchy."""

import uuid

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.models.strategy import StrategyLayer, StrategyVersion
from app.repositories.base import BaseRepository


class StrategyRepository(BaseRepository[StrategyVersion]):
    """Repository for StrategyVersion with eager-loaded layers and targets.

    Layers and targets come back in their stored ``sort_order``; the
    reporting engine relies on that order for deterministic tie-breaks.

    Example:
        >>> repo = StrategyRepository(StrategyVersion, db)
        >>> versions = await repo.list_with_hierarchy()
    """

    def _hierarchy_query(self):
        return (
            select(StrategyVersion)
            .options(
                selectinload(StrategyVersion.layers).selectinload(StrategyLayer.targets)
            )
            .execution_options(populate_existing=True)
        )

    async def list_with_hierarchy(self) -> list[StrategyVersion]:
        """Get every version with layers and targets, newest start date first."""
        result = await self.db.execute(
            self._hierarchy_query().order_by(StrategyVersion.start_date.desc())
        )
        return list(result.scalars().all())

    async def get_with_hierarchy(self, version_id: uuid.UUID) -> StrategyVersion | None:
        """Get one version with layers and targets loaded."""
        result = await self.db.execute(
            self._hierarchy_query().where(StrategyVersion.id == version_id)
        )
        return result.scalar_one_or_none()
