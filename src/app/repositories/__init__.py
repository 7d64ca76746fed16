"""Repository layer for database operations.

This package provides the repository pattern implementation, centralizing
all database access logic and providing a clean separation of concerns
between data access and business logic.

Repositories:
    - BaseRepository: Generic CRUD operations for any model
    - AssetRepository: Asset lookups and reference checks
    - TransactionRepository: Ledger listing, aggregation and snapshot-tagged deletes
    - MarketPriceRepository: Price history, point lookups and upserts
    - SnapshotRepository: Snapshot header lookups by date and order
    - StrategyRepository: Strategy versions with eager-loaded layers/targets

Usage:
    >>> from app.repositories import TransactionRepository
    >>> from app.models.transaction import Transaction
    >>>
    >>> tx_repo = TransactionRepository(Transaction, db)
    >>> rows = await tx_repo.list_transactions(max_date="2024-06-30")
"""

from app.repositories.asset import AssetRepository
from app.repositories.base import BaseRepository
from app.repositories.market_price import MarketPriceRepository
from app.repositories.snapshot import SnapshotRepository
from app.repositories.strategy import StrategyRepository
from app.repositories.transaction import TransactionRepository

__all__ = [
    "BaseRepository",
    "AssetRepository",
    "TransactionRepository",
    "MarketPriceRepository",
    "SnapshotRepository",
    "StrategyRepository",
]
