"""
Rate limiting middleware using slowapi.
"""
import logging
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from apikey_service.config import settings
from apikey_service.core.logging_utils import get_request_id, sanitize_log_message

logger = logging.getLogger(__name__)

VALIDATE_PATH = "/cekapi"


def get_client_ip(request: Request) -> str:
    """
    Get client IP address from request.
    Uses the first X-Forwarded-For hop when behind a proxy.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Answer 429 in the shape the caller expects.
    Validation callers get the usual ``valid: false`` envelope.
    """
    logger.warning(
        sanitize_log_message(
            "Rate limit exceeded",
            RequestID=get_request_id(request),
            Path=request.url.path,
            IP=get_client_ip(request),
            Limit=exc.detail
        )
    )
    content = {"detail": f"Rate limit exceeded: {exc.detail}"}
    if request.url.path == VALIDATE_PATH:
        content = {"valid": False, **content}

    response = JSONResponse(status_code=status.HTTP_429_TOO_MANY_REQUESTS, content=content)
    view_limit = getattr(request.state, "view_rate_limit", None)
    if view_limit is not None:
        response = request.app.state.limiter._inject_headers(response, view_limit)
    return response


def setup_rate_limiting(app: FastAPI) -> None:
    """
    Configure rate limiting for the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    if not settings.RATE_LIMIT_ENABLED:
        logger.info("Rate limiting is disabled")
        return

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    logger.info(
        f"Rate limiting enabled: default={settings.RATE_LIMIT_DEFAULT}, "
        f"admin auth={settings.RATE_LIMIT_AUTH}, key validation={settings.RATE_LIMIT_VALIDATE}"
    )


def rate_limit_auth():
    """Rate limit decorator for admin login/registration."""
    return limiter.limit(settings.RATE_LIMIT_AUTH)


def rate_limit_validate():
    """Rate limit decorator for API key validation."""
    return limiter.limit(settings.RATE_LIMIT_VALIDATE)
