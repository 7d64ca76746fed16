"""Snapshot repository for snapshot header queries."""

from sqlalchemy import select

from app.models.snapshot import Snapshot
from app.repositories.base import BaseRepository


class SnapshotRepository(BaseRepository[Snapshot]):
    """Repository for Snapshot headers (one per calendar date).

    Example:
        >>> repo = SnapshotRepository(Snapshot, db)
        >>> latest = await repo.get_latest()
    """

    async def get_by_date(self, date: str) -> Snapshot | None:
        """Get the snapshot for an exact date, if one was saved."""
        result = await self.db.execute(select(Snapshot).where(Snapshot.date == date))
        return result.scalar_one_or_none()

    async def get_latest(self) -> Snapshot | None:
        """Get the most recent snapshot."""
        result = await self.db.execute(
            select(Snapshot).order_by(Snapshot.date.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_previous(self, date: str) -> Snapshot | None:
        """Get the nearest snapshot dated strictly before ``date``."""
        result = await self.db.execute(
            select(Snapshot)
            .where(Snapshot.date < date)
            .order_by(Snapshot.date.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_ordered(self, min_date: str | None = None) -> list[Snapshot]:
        """Get snapshots oldest first, optionally only those dated on or after ``min_date``."""
        query = select(Snapshot)
        if min_date is not None:
            query = query.where(Snapshot.date >= min_date)
        result = await self.db.execute(query.order_by(Snapshot.date.asc()))
        return list(result.scalars().all())

    async def get_page(self, *, skip: int = 0, limit: int = 20) -> list[Snapshot]:
        """Get a page of snapshots, newest first.

        Args:
            skip: Number of records to skip (offset)
            limit: Maximum number of records to return
        """
        result = await self.db.execute(
            select(Snapshot).order_by(Snapshot.date.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all())
