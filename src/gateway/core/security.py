"""Per-client rate limiting and security response headers.

Rate limits are counted per client IP across the whole API (one shared
window, not one per route) with slowapi. A rejected request gets the usual
error envelope with status 429.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from . import config
from .error_handlers import error_response, get_request_id

logger = logging.getLogger(__name__)

RATE_LIMITED_MESSAGE = "Too many requests from this IP, please try again later"

CONTENT_SECURITY_POLICY = "; ".join(
    [
        "default-src 'self'",
        "style-src 'self' 'unsafe-inline'",
        "script-src 'self'",
        "img-src 'self' data: https:",
        "object-src 'none'",
        "frame-ancestors 'self'",
    ]
)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}


def default_rate_limit() -> str:
    return f"{config.RATE_LIMIT}/{config.RATE_LIMIT_WINDOW}"


def build_limiter(limit: Optional[str] = None, enabled: Optional[bool] = None) -> Limiter:
    return Limiter(
        key_func=get_remote_address,
        application_limits=[limit or default_rate_limit()],
        storage_uri=config.RATE_LIMIT_STORAGE_URL,
        headers_enabled=True,
        enabled=config.RATE_LIMIT_ENABLED if enabled is None else enabled,
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    # must stay sync, SlowAPIMiddleware calls it without awaiting
    logger.warning(
        f"[{get_request_id(request)}] Rate limit exceeded by {get_remote_address(request)} "
        f"on {request.method} {request.url.path} ({exc.detail})"
    )
    response = error_response(request, status.HTTP_429_TOO_MANY_REQUESTS, RATE_LIMITED_MESSAGE)
    view_rate_limit = getattr(request.state, "view_rate_limit", None)
    if view_rate_limit is not None:
        response = request.app.state.limiter._inject_headers(response, view_rate_limit)
    return response


def register_rate_limit(app: FastAPI, limit: Optional[str] = None, enabled: Optional[bool] = None) -> Limiter:
    """
    Installs a limiter on ``app.state.limiter`` and the middleware that enforces it.

    Routes decorated with ``limiter.exempt`` are not counted.
    """
    limiter = build_limiter(limit, enabled)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    return limiter


def register_security_headers(app: FastAPI, docs_path: Optional[str] = None) -> None:
    """
    Adds the security headers to every response.

    The Swagger UI page loads its assets from a CDN, so it is served without
    the content security policy.
    """

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if request.url.path != docs_path:
            response.headers.setdefault("Content-Security-Policy", CONTENT_SECURITY_POLICY)
        return response
