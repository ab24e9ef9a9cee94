"""Rate-limit policy endpoint.

GET /api/v1/limits - the active per-category budgets, so clients can pace
themselves instead of discovering limits through 429s.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from tripguard.api.dependencies import get_rate_limiter, rate_limit
from tripguard.api.rate_limit import SlidingWindowRateLimiter

router = APIRouter(prefix="/api/v1", tags=["limits"])


@router.get(
    "/limits",
    dependencies=[Depends(rate_limit("read"))],
)
async def list_limits(
    limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),  # noqa: B008
) -> dict:
    """List every category with its request budget and window."""
    categories = [
        {
            "category": str(category),
            "max_requests": policy.max_requests,
            "window_seconds": policy.window_ms / 1000,
        }
        for category, policy in limiter.policies.items()
    ]
    return {"categories": categories}
