"""Health check endpoints.

GET /health - unlimited, for load balancer probes
GET /api/v1/health - rate limited (read), returns version + uptime
"""

from __future__ import annotations

import time

from fastapi import APIRouter, Depends, Request

from tripguard import __version__
from tripguard.api.dependencies import rate_limit

public_router = APIRouter(tags=["health"])
api_router = APIRouter(prefix="/api/v1", tags=["health"])


@public_router.get("/health")
async def health_probe() -> dict:
    """Health check for load balancers and uptime monitors."""
    return {"status": "ok"}


@api_router.get(
    "/health",
    dependencies=[Depends(rate_limit("read"))],
)
async def health_detail(request: Request) -> dict:
    """Health check with version and uptime."""
    start_time: float = request.app.state.start_time
    uptime_seconds = time.time() - start_time
    return {
        "status": "ok",
        "version": __version__,
        "uptime_seconds": round(uptime_seconds, 1),
    }
