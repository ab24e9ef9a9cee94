"""FastAPI application factory for the tripguard REST API.

create_api_app() builds a fully wired FastAPI instance with:
  - One process-wide sliding-window rate limiter built from config
  - Security middleware (size limit, audit log, security headers,
    same-origin check, optional CORS)
  - Error handlers rendering the {"error": ...} contract
  - Health and limits routes

Shared state (config, limiter, upload policy) lives on app.state so that
FastAPI dependency injection can retrieve it in route handlers.
"""

from __future__ import annotations

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from tripguard import __version__
from tripguard.api.errors import register_error_handlers
from tripguard.api.middleware import (
    AuditLogMiddleware,
    RequestSizeLimitMiddleware,
    SameOriginMiddleware,
    SecurityHeadersMiddleware,
)
from tripguard.api.rate_limit import SlidingWindowRateLimiter
from tripguard.api.routers import health, limits
from tripguard.config.schema import TripguardConfig


def create_api_app(config: TripguardConfig | None = None) -> FastAPI:
    """Build a fully wired FastAPI application.

    The returned app is ready to be passed to uvicorn.run(). The rate
    limiter is created here rather than in the lifespan so that its
    policy table is fixed for the life of the app object.
    """
    config = config or TripguardConfig()
    api_config = config.gateway.api
    rate_config = config.rate_limits

    limiter = SlidingWindowRateLimiter(
        policies=rate_config.to_policies(),
        sweep_interval_ms=rate_config.sweep_interval_seconds * 1000,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        _log_startup_warnings(config)
        logger.info("API server started on {}:{}", config.gateway.host, config.gateway.port)

        yield

        logger.info("API server shutting down")

    app = FastAPI(
        title="tripguard API",
        version=__version__,
        description="Rate limiting and input defense for the travel manager API",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.rate_limiter = limiter
    app.state.upload_policy = config.uploads.to_policy()
    app.state.start_time = time.time()

    # Middleware (outermost applied first = added last in FastAPI)
    if api_config.enforce_same_origin:
        app.add_middleware(SameOriginMiddleware)
    if api_config.cors_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=api_config.cors_allowed_origins,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
            allow_headers=["Authorization", "Content-Type"],
            expose_headers=[
                "Retry-After",
                "X-RateLimit-Limit",
                "X-RateLimit-Remaining",
                "X-RateLimit-Reset",
            ],
        )
    app.add_middleware(SecurityHeadersMiddleware, hsts=api_config.hsts)
    app.add_middleware(AuditLogMiddleware)
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=api_config.max_request_body_bytes)

    register_error_handlers(app)

    app.include_router(health.public_router)
    app.include_router(health.api_router)
    app.include_router(limits.router)

    return app


def _log_startup_warnings(config: TripguardConfig) -> None:
    """Log security-relevant warnings on API startup."""
    host = config.gateway.host
    api_config = config.gateway.api

    if host == "0.0.0.0":
        logger.warning(
            "API bound to 0.0.0.0. Rate limiting keys on X-Forwarded-For / X-Real-IP; "
            "without a reverse proxy setting them, all clients share one bucket."
        )

    if not api_config.enforce_same_origin:
        logger.warning("Same-origin enforcement is DISABLED for state-changing API requests.")
