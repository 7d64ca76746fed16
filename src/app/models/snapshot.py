"""Snapshot model: cached portfolio totals for one calendar date."""

import uuid

from sqlalchemy import Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class Snapshot(Base, TimestampMixin):
    """Materialized totals of the ledger as of ``date``.

    Not a source of truth: every save targeting the date recomputes
    ``total_value`` and ``total_invested`` from transactions and prices.
    """

    __tablename__ = "snapshots"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, index=True
    )
    date: Mapped[str] = mapped_column(String(10), unique=True, index=True)
    total_value: Mapped[float] = mapped_column(Float, default=0.0)
    total_invested: Mapped[float] = mapped_column(Float, default=0.0)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
