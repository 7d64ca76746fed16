"""Dependencies for FastAPI routes."""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import APIConstants
from app.core.exceptions import ValidationError
from app.db.session import get_db
from app.utils.dates import parse_ledger_date


@dataclass
class Pagination:
    """Page number (1-based) and page size taken from the query string."""

    page: int
    limit: int


def get_pagination(
    page: Annotated[int, Query(ge=1, description="Page number, starting at 1")] = 1,
    limit: Annotated[
        int,
        Query(ge=1, le=APIConstants.MAX_PAGE_SIZE, description="Items per page"),
    ] = APIConstants.DEFAULT_PAGE_SIZE,
) -> Pagination:
    """Collect pagination query parameters."""
    return Pagination(page=page, limit=limit)


def validate_date_param(value: str | None, name: str = "date") -> str | None:
    """
    Validate an optional ledger date taken from the query string.

    Args:
        value: Raw query value (``YYYY-MM-DD`` or ``YYYY-MM``), or None
        name: Parameter name used in the error message

    Returns:
        The validated date, or None when not supplied

    Raises:
        ValidationError: If the value is not a valid ledger date
    """
    if value is None:
        return None
    try:
        return parse_ledger_date(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {name}: {e}") from e


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
PageParams = Annotated[Pagination, Depends(get_pagination)]
