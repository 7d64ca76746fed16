"""Database session management with transaction utilities.

This module provides:
- AsyncSession factory for dependency injection
- Transaction context managers for explicit transaction control

Sessions are always passed explicitly to repositories and services; there is
no module-level "current connection". Each request (or test) acquires one
session and releases it on every exit path.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_for_url(url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine with dialect-appropriate options.

    SQLite gets foreign key enforcement switched on for every connection so
    that strategy layers and targets cascade with their version. Server
    databases get a pre-pinged connection pool.

    Args:
        url: SQLAlchemy database URL (async driver)
        echo: Whether to log emitted SQL

    Returns:
        Configured AsyncEngine
    """
    if url.startswith("sqlite"):
        new_engine = create_async_engine(url, echo=echo)
        event.listen(new_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return new_engine

    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
    )


engine = create_engine_for_url(settings.DATABASE_URL, echo=settings.DB_ECHO)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency for route handlers.

    Automatically manages the commit/rollback/close lifecycle.

    Yields:
        AsyncSession: Database session for the request
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def transactional(
    db: AsyncSession,
    *,
    commit: bool = True,
) -> AsyncGenerator[AsyncSession, None]:
    """Explicit transaction context manager with automatic commit/rollback.

    Every mutating ledger operation (snapshot save, cache rebuild, strategy
    write) runs inside one of these so that transactions, prices and cached
    snapshot totals are committed together or not at all.

    Args:
        db: The database session
        commit: Whether to commit on success (default: True)

    Yields:
        AsyncSession: The database session

    Raises:
        Exception: Re-raises any exception after rollback

    Example:
        ```python
        async with transactional(db):
            await tx_repo.delete_by_snapshot(snapshot_id)
            db.add(Transaction(...))
            # Auto-commits on success, auto-rollbacks on exception
        ```
    """
    try:
        yield db
        if commit:
            await db.commit()
            logger.debug("Transaction committed successfully")
    except Exception as e:
        await db.rollback()
        logger.error(f"Transaction rolled back due to error: {type(e).__name__}: {e}")
        raise


@asynccontextmanager
async def read_only_transaction(
    db: AsyncSession,
) -> AsyncGenerator[AsyncSession, None]:
    """Read-only transaction context manager (never commits).

    Reporting operations run inside this so that every query of one report
    observes the same committed state of the ledger.

    Args:
        db: The database session

    Yields:
        AsyncSession: The database session
    """
    try:
        yield db
    except Exception as e:
        logger.error(f"Read-only transaction error: {type(e).__name__}: {e}")
        raise
