"""Transaction model: the append-only quantity/cost ledger."""

import uuid

from sqlalchemy import Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class Transaction(Base, TimestampMixin):
    """A quantity/cost delta for one asset on one date.

    Holdings at a date are the sum of every delta dated on or before it.
    ``snapshot_id`` records which snapshot save produced the row so that a
    re-save of the same date can replace exactly its own deltas.
    """

    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, index=True
    )
    asset_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("assets.id"), index=True)
    snapshot_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True, index=True)
    date: Mapped[str] = mapped_column(String(10), index=True)  # YYYY-MM or YYYY-MM-DD
    type: Mapped[str] = mapped_column(String(20), default="adjustment")
    quantity_change: Mapped[float] = mapped_column(Float, default=0.0)
    cost_change: Mapped[float] = mapped_column(Float, default=0.0)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (Index("idx_transactions_asset_date", "asset_id", "date"),)
