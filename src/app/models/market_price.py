"""MarketPrice model: independent price observations per asset and date."""

import uuid

from sqlalchemy import Float, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class MarketPrice(Base, TimestampMixin):
    """Observed unit price of an asset on a date (never interpolated)."""

    __tablename__ = "market_prices"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, index=True
    )
    asset_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("assets.id", ondelete="CASCADE"), index=True
    )
    date: Mapped[str] = mapped_column(String(10))
    price: Mapped[float] = mapped_column(Float)
    source: Mapped[str] = mapped_column(String(20), default="manual")  # "manual", "system"

    # At most one observation per asset per date; writes upsert on this key
    __table_args__ = (
        UniqueConstraint("asset_id", "date", name="uq_market_price_asset_date"),
    )
