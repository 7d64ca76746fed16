"""Rate limiting for write endpoints using slowapi."""

import re

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from app.core.config import settings

_UNIT_SECONDS = {"second": 1, "minute": 60, "hour": 3600, "day": 86400}


def retry_after_seconds(detail: str, default: int = 60) -> int:
    """
    Length of the exceeded rate limit window, in seconds.

    Args:
        detail: slowapi limit description, e.g. "5 per 1 minute"
        default: Value used when the description cannot be parsed

    Returns:
        Seconds until the client may retry

    Example:
        >>> retry_after_seconds("30 per 1 minute")
        60
    """
    match = re.search(r"(\d+)\s+per\s+(\d+)\s+(second|minute|hour|day)", detail)
    if not match:
        return default
    return int(match.group(2)) * _UNIT_SECONDS[match.group(3)]


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Convert a slowapi rate limit error into the API's JSON error format.

    Args:
        request: The incoming request
        exc: The RateLimitExceeded exception

    Returns:
        429 response with ``detail``, ``error_code`` and ``retry_after``
    """
    retry_after = retry_after_seconds(str(exc.detail))
    return JSONResponse(
        status_code=429,
        content={
            "detail": f"Rate limit exceeded: {exc.detail}",
            "error_code": "RATE_LIMIT_EXCEEDED",
            "retry_after": retry_after,
        },
        headers={"Retry-After": str(retry_after)},
    )


# Each write endpoint sets its own limit; reads are not limited
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],
    enabled=settings.RATE_LIMIT_ENABLED,
    headers_enabled=False,
)
