"""Strategy resolution and strategy version management.

A strategy is a dated target allocation. The version in force at a date is
the one with the latest start date on or before it; dates before every
version resolve to the oldest one so that historical reports always have
a strategy as long as one exists at all.

Resolution helpers are pure functions over loaded ``StrategyVersion``
objects. Writes go through ``transactional`` and keep layer and target ids
stable across updates.
"""

import logging
import uuid
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import StrategyConstants
from app.core.exceptions import NotFoundError, StorageError, ValidationError
from app.db.session import transactional
from app.models.asset import Asset
from app.models.strategy import StrategyLayer, StrategyTarget, StrategyVersion
from app.repositories.asset import AssetRepository
from app.repositories.strategy import StrategyRepository
from app.schemas.strategy import (
    StrategyCreate,
    StrategyLayerIn,
    StrategyLayerResponse,
    StrategyResponse,
    StrategyTargetResponse,
    StrategyUpdate,
)
from app.utils.dates import end_of_period

logger = logging.getLogger(__name__)

AssetTargetMap = dict[uuid.UUID, tuple[StrategyTarget, StrategyLayer]]


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def active_strategy_at(
    versions: Sequence[StrategyVersion],
    date: str,
) -> StrategyVersion | None:
    """Select the strategy version in force at ``date``.

    A year-month date counts as the last day of its month.

    Args:
        versions: All strategy versions, in any order
        date: ``YYYY-MM-DD`` or ``YYYY-MM``

    Returns:
        The version with the latest start date on or before ``date``, the
        oldest version if none starts that early, or None if there are no
        versions at all

    Example:
        >>> active_strategy_at([v2023, v2024], "2023-06-01") is v2023
        True
        >>> active_strategy_at([v2023, v2024], "2022-01-01") is v2023
        True
    """
    if not versions:
        return None

    newest_first = sorted(versions, key=lambda v: v.start_date, reverse=True)
    cutoff = end_of_period(date)
    for version in newest_first:
        if version.start_date <= cutoff:
            return version
    return newest_first[-1]


def _ordered_layers(strategy: StrategyVersion) -> list[StrategyLayer]:
    return sorted(strategy.layers, key=lambda layer: layer.sort_order)


def _ordered_targets(layer: StrategyLayer) -> list[StrategyTarget]:
    return sorted(layer.targets, key=lambda target: target.sort_order)


def build_asset_map(strategy: StrategyVersion | None) -> AssetTargetMap:
    """Flatten a strategy into asset_id -> (target, layer).

    If an asset appears in more than one target, the last one in layer then
    target sort order wins.
    """
    mapping: AssetTargetMap = {}
    if strategy is None:
        return mapping

    for layer in _ordered_layers(strategy):
        for target in _ordered_targets(layer):
            mapping[target.asset_id] = (target, layer)
    return mapping


def find_layer(strategy: StrategyVersion | None, layer_id: uuid.UUID) -> StrategyLayer | None:
    """Find a layer of a strategy by id."""
    if strategy is None:
        return None
    return next((layer for layer in strategy.layers if layer.id == layer_id), None)


def auto_share(weights: Sequence[float]) -> float:
    """Share each auto target gets, given all target weights of a layer.

    The fixed weights are subtracted from 100 (floored at 0) and the
    remainder is split evenly across the auto entries.

    Example:
        >>> auto_share([30, 30, -1, -1])
        20.0
    """
    fixed = [w for w in weights if w != StrategyConstants.AUTO_WEIGHT]
    auto_count = len(weights) - len(fixed)
    if auto_count == 0:
        return 0.0
    remaining = max(0.0, StrategyConstants.FULL_WEIGHT - sum(fixed))
    return remaining / auto_count


def resolve_target_weights(layer: StrategyLayer) -> dict[uuid.UUID, float]:
    """Effective within-layer weight of every target of a layer."""
    targets = _ordered_targets(layer)
    share = auto_share([t.weight for t in targets])
    return {
        t.id: share if t.weight == StrategyConstants.AUTO_WEIGHT else t.weight
        for t in targets
    }


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def serialize_strategy(version: StrategyVersion) -> StrategyResponse:
    """Convert a loaded version hierarchy into its response schema."""
    return StrategyResponse(
        id=version.id,
        name=version.name,
        description=version.description,
        start_date=version.start_date,
        status=version.status,
        layers=[
            StrategyLayerResponse(
                id=layer.id,
                name=layer.name,
                weight=layer.weight,
                description=layer.description,
                targets=[
                    StrategyTargetResponse(
                        id=target.id,
                        asset_id=target.asset_id,
                        target_name=target.display_name,
                        weight=target.weight,
                        color=target.color,
                        note=target.note,
                    )
                    for target in _ordered_targets(layer)
                ],
            )
            for layer in _ordered_layers(version)
        ],
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


async def list_strategies(db: AsyncSession) -> list[StrategyVersion]:
    """All versions with their hierarchy, newest start date first."""
    repo = StrategyRepository(StrategyVersion, db)
    return await repo.list_with_hierarchy()


async def get_strategy_or_404(db: AsyncSession, version_id: uuid.UUID) -> StrategyVersion:
    """Load one version with its hierarchy.

    Raises:
        NotFoundError: If the version does not exist
    """
    repo = StrategyRepository(StrategyVersion, db)
    version = await repo.get_with_hierarchy(version_id)
    if version is None:
        raise NotFoundError(f"Strategy {version_id} not found")
    return version


async def _check_assets_exist(db: AsyncSession, layers: Sequence[StrategyLayerIn]) -> None:
    known = await AssetRepository(Asset, db).get_map()
    missing = {
        target.asset_id
        for layer in layers
        for target in layer.targets
        if target.asset_id not in known
    }
    if missing:
        raise ValidationError(
            f"Unknown asset id(s) in strategy targets: {', '.join(sorted(map(str, missing)))}"
        )


def _new_target(target_in, sort_order: int) -> StrategyTarget:
    return StrategyTarget(
        id=uuid.uuid4(),
        asset_id=target_in.asset_id,
        target_name=target_in.target_name,
        weight=target_in.weight,
        color=target_in.color,
        note=target_in.note,
        sort_order=sort_order,
    )


async def create_strategy(db: AsyncSession, data: StrategyCreate) -> uuid.UUID:
    """Create a version together with its layers and targets.

    Every row gets a freshly generated id; ids supplied by the client are
    ignored on create.

    Returns:
        Id of the new version

    Raises:
        ValidationError: If a target refers to an unknown asset
        StorageError: If the write fails
    """
    version_id = uuid.uuid4()
    try:
        async with transactional(db):
            await _check_assets_exist(db, data.layers)

            version = StrategyVersion(
                id=version_id,
                name=data.name,
                description=data.description,
                start_date=data.start_date,
                status=data.status,
            )
            version.layers = [
                StrategyLayer(
                    id=uuid.uuid4(),
                    name=layer_in.name,
                    weight=layer_in.weight,
                    description=layer_in.description,
                    sort_order=layer_idx,
                    targets=[
                        _new_target(target_in, target_idx)
                        for target_idx, target_in in enumerate(layer_in.targets)
                    ],
                )
                for layer_idx, layer_in in enumerate(data.layers)
            ]
            db.add(version)
    except SQLAlchemyError as e:
        logger.error(f"Failed to create strategy '{data.name}': {type(e).__name__}: {e}")
        raise StorageError("Failed to create strategy") from e

    logger.info(
        f"Created strategy '{data.name}' starting {data.start_date} "
        f"with {len(data.layers)} layer(s)"
    )
    return version_id


async def update_strategy(
    db: AsyncSession,
    version_id: uuid.UUID,
    data: StrategyUpdate,
) -> uuid.UUID:
    """Replace a version's metadata, layers and targets.

    Layers and targets submitted with an id that already belongs to this
    version keep that id (and row). Items without a known id are inserted
    under a new id. Existing items missing from the payload are deleted.

    Raises:
        NotFoundError: If the version does not exist
        ValidationError: If a target refers to an unknown asset
        StorageError: If the write fails
    """
    try:
        async with transactional(db):
            version = await get_strategy_or_404(db, version_id)
            await _check_assets_exist(db, data.layers)

            version.name = data.name
            version.description = data.description
            version.start_date = data.start_date
            version.status = data.status

            existing_layers = {layer.id: layer for layer in version.layers}
            layers: list[StrategyLayer] = []
            for layer_idx, layer_in in enumerate(data.layers):
                layer = existing_layers.get(layer_in.id) if layer_in.id else None
                if layer is None:
                    layer = StrategyLayer(id=uuid.uuid4())
                    existing_targets: dict[uuid.UUID, StrategyTarget] = {}
                else:
                    existing_targets = {target.id: target for target in layer.targets}

                layer.name = layer_in.name
                layer.weight = layer_in.weight
                layer.description = layer_in.description
                layer.sort_order = layer_idx

                targets: list[StrategyTarget] = []
                for target_idx, target_in in enumerate(layer_in.targets):
                    target = existing_targets.get(target_in.id) if target_in.id else None
                    if target is None:
                        targets.append(_new_target(target_in, target_idx))
                        continue
                    target.asset_id = target_in.asset_id
                    target.target_name = target_in.target_name
                    target.weight = target_in.weight
                    target.color = target_in.color
                    target.note = target_in.note
                    target.sort_order = target_idx
                    targets.append(target)

                layer.targets = targets
                layers.append(layer)

            version.layers = layers
    except SQLAlchemyError as e:
        logger.error(f"Failed to update strategy {version_id}: {type(e).__name__}: {e}")
        raise StorageError("Failed to update strategy") from e

    logger.info(f"Updated strategy {version_id} ({len(data.layers)} layer(s))")
    return version_id


async def delete_strategy(db: AsyncSession, version_id: uuid.UUID) -> None:
    """Delete a version; its layers and targets are deleted with it.

    Raises:
        NotFoundError: If the version does not exist
        StorageError: If the write fails
    """
    try:
        async with transactional(db):
            version = await get_strategy_or_404(db, version_id)
            await db.delete(version)
    except SQLAlchemyError as e:
        logger.error(f"Failed to delete strategy {version_id}: {type(e).__name__}: {e}")
        raise StorageError("Failed to delete strategy") from e

    logger.info(f"Deleted strategy {version_id}")
