"""Schemas package."""

from app.schemas.asset import (
    AssetBase,
    AssetCreate,
    AssetHistoryPoint,
    AssetPriceUpdate,
    AssetResponse,
    AssetUpdate,
)
from app.schemas.dashboard import (
    AllocationItem,
    AttributionItem,
    MetricsResponse,
    TimeRange,
    TrendPoint,
    ViewMode,
)
from app.schemas.ledger import AssetValuation, HoldingState
from app.schemas.snapshot import (
    RecalculateResult,
    SnapshotAssetDetail,
    SnapshotAssetInput,
    SnapshotDetail,
    SnapshotPage,
    SnapshotSave,
    SnapshotSaveResult,
    SnapshotSummary,
)
from app.schemas.strategy import (
    StrategyCreate,
    StrategyLayerIn,
    StrategyLayerResponse,
    StrategyResponse,
    StrategyTargetIn,
    StrategyTargetResponse,
    StrategyUpdate,
    StrategyWriteResult,
)

__all__ = [
    # Asset schemas
    "AssetBase",
    "AssetCreate",
    "AssetHistoryPoint",
    "AssetPriceUpdate",
    "AssetResponse",
    "AssetUpdate",
    # Reconstruction records
    "AssetValuation",
    "HoldingState",
    # Snapshot schemas
    "RecalculateResult",
    "SnapshotAssetDetail",
    "SnapshotAssetInput",
    "SnapshotDetail",
    "SnapshotPage",
    "SnapshotSave",
    "SnapshotSaveResult",
    "SnapshotSummary",
    # Strategy schemas
    "StrategyCreate",
    "StrategyLayerIn",
    "StrategyLayerResponse",
    "StrategyResponse",
    "StrategyTargetIn",
    "StrategyTargetResponse",
    "StrategyUpdate",
    "StrategyWriteResult",
    # Dashboard schemas
    "AllocationItem",
    "AttributionItem",
    "MetricsResponse",
    "TimeRange",
    "TrendPoint",
    "ViewMode",
]
