"""Strategy version endpoints."""

from uuid import UUID

from fastapi import APIRouter, Request, status

from app.core.config import settings
from app.core.deps import DbSession
from app.core.rate_limit import limiter
from app.schemas.strategy import (
    StrategyCreate,
    StrategyResponse,
    StrategyUpdate,
    StrategyWriteResult,
)
from app.services import strategy_service

router = APIRouter()


@router.get("/", response_model=list[StrategyResponse])
async def list_strategies(db: DbSession) -> list[StrategyResponse]:
    """All strategy versions with layers and targets, newest start date first."""
    versions = await strategy_service.list_strategies(db)
    return [strategy_service.serialize_strategy(v) for v in versions]


@router.get("/{strategy_id}", response_model=StrategyResponse)
async def get_strategy(strategy_id: UUID, db: DbSession) -> StrategyResponse:
    """Get one strategy version with its layers and targets."""
    version = await strategy_service.get_strategy_or_404(db, strategy_id)
    return strategy_service.serialize_strategy(version)


@router.post("/", response_model=StrategyResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.SAVE_RATE_LIMIT)
async def create_strategy(
    request: Request,
    strategy: StrategyCreate,
    db: DbSession,
) -> StrategyResponse:
    """
    Create a strategy version together with its layers and targets.

    Args:
        request: Incoming request (used by the rate limiter)
        strategy: Version, layers and targets (validated Pydantic model)
        db: Database session

    Returns:
        The stored version as it will be read back
    """
    strategy_id = await strategy_service.create_strategy(db, strategy)
    version = await strategy_service.get_strategy_or_404(db, strategy_id)
    return strategy_service.serialize_strategy(version)


@router.put("/{strategy_id}", response_model=StrategyResponse)
@limiter.limit(settings.SAVE_RATE_LIMIT)
async def update_strategy(
    request: Request,
    strategy_id: UUID,
    strategy: StrategyUpdate,
    db: DbSession,
) -> StrategyResponse:
    """
    Replace a strategy version's metadata, layers and targets.

    Layers and targets sent back with their id keep it; items left out are
    deleted.
    """
    await strategy_service.update_strategy(db, strategy_id, strategy)
    version = await strategy_service.get_strategy_or_404(db, strategy_id)
    return strategy_service.serialize_strategy(version)


@router.delete("/{strategy_id}", response_model=StrategyWriteResult)
@limiter.limit(settings.SAVE_RATE_LIMIT)
async def delete_strategy(
    request: Request,
    strategy_id: UUID,
    db: DbSession,
) -> StrategyWriteResult:
    """Delete a strategy version with its layers and targets."""
    await strategy_service.delete_strategy(db, strategy_id)
    return StrategyWriteResult(id=strategy_id)
