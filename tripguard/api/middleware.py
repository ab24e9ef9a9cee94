"""Security middleware stack for the tripguard REST API.

Applied outermost-first during app setup:
  1. RequestSizeLimitMiddleware - rejects oversized bodies before parsing
  2. AuditLogMiddleware - logs every request with method/path/status/duration/client
  3. SecurityHeadersMiddleware - adds defensive HTTP headers
  4. SameOriginMiddleware - blocks cross-origin state-changing API calls (CSRF)
"""

from __future__ import annotations

import time
import uuid
from urllib.parse import urlparse

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from tripguard.api.rate_limit import client_identifier

_STATE_CHANGING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
_DEFAULT_PORTS = {"http": 80, "https": 443}

_PERMISSIONS_POLICY = (
    "camera=(), microphone=(), geolocation=(), payment=(), usb=(), "
    "magnetometer=(), gyroscope=(), accelerometer=()"
)


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests with Content-Length exceeding the configured limit.

    Checks the Content-Length header before the body is read. Requests
    without Content-Length are allowed through (streaming/chunked), but
    will be bounded by uvicorn's own limits.
    """

    def __init__(self, app, max_bytes: int = 1_048_576) -> None:
        super().__init__(app)
        self._max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                declared = int(content_length)
            except ValueError:
                return JSONResponse(
                    status_code=400,
                    content={"error": "Invalid Content-Length header"},
                )
            if declared > self._max_bytes:
                return JSONResponse(
                    status_code=413,
                    content={"error": f"Request body too large (max {self._max_bytes} bytes)"},
                )
        return await call_next(request)


class AuditLogMiddleware(BaseHTTPMiddleware):
    """Log every API request with method, path, status code, duration, and client."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.monotonic()
        client = client_identifier(request.headers)

        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        request.state.request_id = request_id

        response = await call_next(request)

        duration_ms = (time.monotonic() - start) * 1000
        logger.info(
            "API {} {} {} {:.0f}ms client={} request_id={}",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            client,
            request_id,
        )
        return response


def _authority(url: str, scheme: str) -> tuple[str | None, int | None]:
    parsed = urlparse(url)
    port = parsed.port
    if port == _DEFAULT_PORTS.get(scheme):
        port = None
    return parsed.hostname, port


def is_same_origin(origin: str, host: str) -> bool:
    """Compare an Origin header with the Host header.

    Hostnames are compared case-insensitively and the scheme's default port
    is treated as absent, so "https://App.example:443" matches "app.example".
    Unparseable values (an opaque "null" origin, a bad port) never match.
    """
    try:
        scheme = urlparse(origin).scheme
        origin_authority = _authority(origin, scheme)
        host_authority = _authority(f"//{host}", scheme)
    except ValueError:
        return False
    return origin_authority[0] is not None and origin_authority == host_authority


class SameOriginMiddleware(BaseHTTPMiddleware):
    """Reject cross-origin POST/PUT/PATCH/DELETE requests to /api/ paths.

    Only enforced when the browser sent both Origin and Host; non-browser
    clients that omit Origin are unaffected.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method in _STATE_CHANGING_METHODS and request.url.path.startswith("/api/"):
            origin = request.headers.get("origin")
            host = request.headers.get("host")
            if origin and host and not is_same_origin(origin, host):
                logger.warning(
                    "Blocked cross-origin {} {} from origin={}",
                    request.method,
                    request.url.path,
                    origin,
                )
                return JSONResponse(status_code=403, content={"error": "Forbidden"})
        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add defensive HTTP headers to every response.

    - X-Content-Type-Options: nosniff - prevent MIME type sniffing
    - X-Frame-Options: DENY - prevent clickjacking
    - Content-Security-Policy - JSON API, nothing to load or frame
    - Referrer-Policy / Permissions-Policy - minimal leakage and features
    - X-XSS-Protection: 0 - disable the legacy browser auditor
    - Cache-Control: no-store - prevent caching of API responses
    - Strict-Transport-Security - only when hsts is enabled
    - X-Request-ID - echoed or generated for request tracing
    """

    def __init__(self, app, hsts: bool = False) -> None:
        super().__init__(app)
        self._hsts = hsts

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = _PERMISSIONS_POLICY
        response.headers["X-XSS-Protection"] = "0"
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
        if self._hsts:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains; preload"
            )

        request_id = getattr(request.state, "request_id", None)
        if request_id:
            response.headers["X-Request-ID"] = request_id

        return response
