"""Asset model: the identity a ledger entry or price observation refers to."""

import enum
import uuid

from sqlalchemy import Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class AssetCategory(str, enum.Enum):
    """Asset categories; drive default pricing and allocation buckets."""

    SECURITY = "security"
    FUND = "fund"
    FIXED = "fixed"
    WEALTH = "wealth"
    GOLD = "gold"
    CRYPTO = "crypto"
    OTHER = "other"


class Asset(Base, TimestampMixin):
    """A tracked holding (stock, fund, deposit, wealth product, ...)."""

    __tablename__ = "assets"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, index=True
    )
    category: Mapped[AssetCategory] = mapped_column(
        Enum(AssetCategory, values_callable=lambda e: [m.value for m in e])
    )
    name: Mapped[str] = mapped_column(String(255))
    ticker: Mapped[str | None] = mapped_column(String(50), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
