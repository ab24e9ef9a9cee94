"""Error handlers for the tripguard REST API.

Every error leaves the API as {"error": "<message>"}:
  - RateLimited     -> 429 with Retry-After and X-RateLimit-* headers
  - InputRejected   -> 400 with the rejection message
  - body validation -> 400 naming the first offending field
  - HTTPException   -> its own status and detail
  - anything else   -> 500 with a generic message, details logged server-side
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from tripguard.api.rate_limit import RATE_LIMIT_MESSAGE, Limited
from tripguard.security.errors import InputRejected


class RateLimited(Exception):
    """Raised by the rate-limit dependency to short-circuit a route."""

    def __init__(self, decision: Limited) -> None:
        super().__init__(RATE_LIMIT_MESSAGE)
        self.decision = decision


def rate_limited_response(decision: Limited) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"error": RATE_LIMIT_MESSAGE},
        headers=decision.headers(),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers that render the {"error": ...} contract."""

    @app.exception_handler(RateLimited)
    async def rate_limited_handler(request: Request, exc: RateLimited) -> JSONResponse:
        return rate_limited_response(exc.decision)

    @app.exception_handler(InputRejected)
    async def input_rejected_handler(request: Request, exc: InputRejected) -> JSONResponse:
        logger.info(
            "Input rejected on {} {}: {}",
            request.method,
            request.url.path,
            exc.message,
        )
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Return 400 naming the first bad field, without internal path info."""
        errors = exc.errors()
        logger.warning(
            "Validation error on {} {}: {}",
            request.method,
            request.url.path,
            errors,
        )
        message = "Invalid request"
        if errors:
            first = errors[0]
            field = ".".join(str(loc) for loc in first.get("loc", []) if loc != "body")
            detail = first.get("msg", "Invalid value")
            message = f"Invalid request: {field}: {detail}" if field else f"{message}: {detail}"
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all: log the real error, return a generic 500 message."""
        logger.exception(
            "Unhandled error on {} {}: {}",
            request.method,
            request.url.path,
            exc,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )
