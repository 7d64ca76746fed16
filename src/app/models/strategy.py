"""Strategy models: time-versioned target allocation (version > layer > target)."""

import uuid

from sqlalchemy import Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin
from app.models.asset import Asset


class StrategyVersion(Base, TimestampMixin):
    """A target allocation in force from ``start_date`` until superseded."""

    __tablename__ = "strategy_versions"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[str] = mapped_column(String(10), index=True)
    status: Mapped[str] = mapped_column(String(20), default="active")

    layers: Mapped[list["StrategyLayer"]] = relationship(
        "StrategyLayer",
        back_populates="version",
        cascade="all, delete-orphan",
        order_by="StrategyLayer.sort_order",
    )


class StrategyLayer(Base):
    """A weighted slice of the whole portfolio (weight 0-100)."""

    __tablename__ = "strategy_layers"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, index=True
    )
    version_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("strategy_versions.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    weight: Mapped[float] = mapped_column(Float)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    version: Mapped["StrategyVersion"] = relationship(
        "StrategyVersion", back_populates="layers"
    )
    targets: Mapped[list["StrategyTarget"]] = relationship(
        "StrategyTarget",
        back_populates="layer",
        cascade="all, delete-orphan",
        order_by="StrategyTarget.sort_order",
    )


class StrategyTarget(Base):
    """An asset's share within a layer; weight -1 means "auto"."""

    __tablename__ = "strategy_targets"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, index=True
    )
    layer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("strategy_layers.id", ondelete="CASCADE"), index=True
    )
    asset_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("assets.id"), index=True)
    target_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    weight: Mapped[float] = mapped_column(Float)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    layer: Mapped["StrategyLayer"] = relationship(
        "StrategyLayer", back_populates="targets"
    )
    asset: Mapped[Asset] = relationship(Asset, lazy="joined")

    @property
    def display_name(self) -> str:
        """Configured alias, falling back to the asset's own name."""
        if self.target_name:
            return self.target_name
        return self.asset.name if self.asset is not None else ""
