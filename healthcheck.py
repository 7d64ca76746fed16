#!/usr/bin/env python3
"""
Health check script for Docker containers and deployment.

Tests database connectivity through the application's own engine settings
and reports health status. Run from the repository root with
``PYTHONPATH=src python healthcheck.py``.
"""

import asyncio
import sys
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.db.session import create_engine_for_url


async def check_database(db_url: str) -> dict[str, Any]:
    """Check database connectivity with a trivial query."""
    engine = create_engine_for_url(db_url)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "healthy", "message": "Database connection successful"}
    except SQLAlchemyError as e:
        return {"status": "unhealthy", "message": f"Database error: {type(e).__name__}: {e}"}
    finally:
        await engine.dispose()


async def main() -> int:
    """Run health checks and return the process exit code."""
    print("🏥 Running health checks...\n")

    result = await check_database(settings.DATABASE_URL)
    print(f"Database: {result['status'].upper()}")
    print(f"  {result['message']}\n")

    if result["status"] == "healthy":
        print("✅ All systems healthy")
        return 0
    print("❌ Some systems unhealthy")
    return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
