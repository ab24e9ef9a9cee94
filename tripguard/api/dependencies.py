"""Shared FastAPI dependencies injected into route handlers.

Rate limiting runs first in every route's dependency list, ahead of
authentication and body parsing, so rejected clients cost as little as
possible. The category is chosen per route:

    @router.delete("/user", dependencies=[Depends(rate_limit("sensitive"))])
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request
from loguru import logger

from tripguard.api.errors import RateLimited
from tripguard.api.rate_limit import (
    Limited,
    RateLimitCategory,
    SlidingWindowRateLimiter,
    client_identifier,
)
from tripguard.config.schema import TripguardConfig
from tripguard.security.uploads import UploadPolicy


def get_rate_limiter(request: Request) -> SlidingWindowRateLimiter:
    """Retrieve the process-wide limiter from app.state."""
    return request.app.state.rate_limiter


def get_config(request: Request) -> TripguardConfig:
    """Retrieve the TripguardConfig from app.state."""
    return request.app.state.config


def get_upload_policy(request: Request) -> UploadPolicy:
    """Retrieve the upload screening policy from app.state."""
    return request.app.state.upload_policy


def rate_limit(category: RateLimitCategory | str) -> Callable[[Request], None]:
    """Build a dependency that enforces `category`'s budget for the caller.

    The client is identified from X-Forwarded-For / X-Real-IP. Raises
    RateLimited (rendered as 429) when the budget is exhausted; otherwise
    stores the remaining allowance on request.state.
    """
    category = RateLimitCategory(category)

    def check_rate_limit(request: Request) -> None:
        limiter = get_rate_limiter(request)
        client = client_identifier(request.headers)

        decision = limiter.check(client, category)
        if isinstance(decision, Limited):
            logger.warning(
                "Rate limit hit: client={} category={} path={} retry_after={}s",
                client,
                category,
                request.url.path,
                decision.retry_after,
            )
            raise RateLimited(decision)

        request.state.rate_limit_remaining = decision.remaining

    return check_rate_limit
