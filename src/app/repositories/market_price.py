"""MarketPrice repository for price observation queries and upserts."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite

from app.models.market_price import MarketPrice
from app.repositories.base import BaseRepository


class MarketPriceRepository(BaseRepository[MarketPrice]):
    """Repository for MarketPrice model.

    Prices are read with ``populate_existing`` so that rows rewritten by a
    Core-level upsert earlier in the same session are never served stale
    from the identity map.

    Example:
        >>> repo = MarketPriceRepository(MarketPrice, db)
        >>> latest = await repo.get_latest_on_or_before(asset_id, "2024-02-15")
    """

    async def list_prices(
        self,
        *,
        asset_id: uuid.UUID | None = None,
        max_date: str | None = None,
    ) -> list[MarketPrice]:
        """List price observations ordered by date ascending.

        Args:
            asset_id: Only this asset's prices
            max_date: Only prices dated on or before this date

        Returns:
            Price rows ordered by date ascending
        """
        query = select(MarketPrice)
        if asset_id is not None:
            query = query.where(MarketPrice.asset_id == asset_id)
        if max_date is not None:
            query = query.where(MarketPrice.date <= max_date)

        result = await self.db.execute(
            query.order_by(MarketPrice.date.asc()).execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_latest_on_or_before(
        self,
        asset_id: uuid.UUID,
        date: str,
    ) -> MarketPrice | None:
        """Get the most recent observation dated on or before ``date``.

        Args:
            asset_id: Asset to look up
            date: Inclusive cutoff date

        Returns:
            Latest price row at or before the date, None if never priced
        """
        result = await self.db.execute(
            select(MarketPrice)
            .where((MarketPrice.asset_id == asset_id) & (MarketPrice.date <= date))
            .order_by(MarketPrice.date.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def upsert_price(
        self,
        *,
        asset_id: uuid.UUID,
        date: str,
        price: float,
        source: str = "manual",
    ) -> None:
        """Insert a price, or overwrite the existing one for (asset, date).

        Last writer for a given asset and date wins.

        Args:
            asset_id: Asset being priced
            date: Observation date
            price: Unit price
            source: Where the observation came from ("manual", "system")

        Note:
            Caller must commit the transaction.
        """
        dialect = self.db.get_bind().dialect.name
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert

        now = datetime.now(UTC)
        stmt = insert(MarketPrice).values(
            id=uuid.uuid4(),
            asset_id=asset_id,
            date=date,
            price=price,
            source=source,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[MarketPrice.asset_id, MarketPrice.date],
            set_={
                "price": stmt.excluded.price,
                "source": stmt.excluded.source,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self.db.execute(stmt)
        await self.db.flush()
