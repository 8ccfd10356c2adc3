"""
CSRF protection for cookie-authenticated admin requests (double-submit cookie).
"""
import secrets
import logging
from typing import Optional, Set
from urllib.parse import urlparse
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from apikey_service.config import settings

logger = logging.getLogger(__name__)


class CSRFMiddleware(BaseHTTPMiddleware):
    """
    Double-submit cookie check for state-changing admin requests.

    Only requests that rely on the admin session cookie are checked. Requests
    carrying an Authorization header are exempt because browsers never attach
    that header on their own. Public key endpoints are outside /admin and
    never checked; the login and register forms only get an origin check.
    """

    SAFE_METHODS: Set[str] = {"GET", "HEAD", "OPTIONS", "TRACE"}
    PROTECTED_PREFIX = "/admin/"
    ORIGIN_ONLY_PATHS: Set[str] = {"/admin/login", "/admin/register"}

    COOKIE_NAME: str = "csrf_token"
    HEADER_NAME: str = "X-CSRF-Token"
    TOKEN_LENGTH: int = 32

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method in self.SAFE_METHODS:
            response = await call_next(request)
            return self._ensure_csrf_cookie(request, response)

        path = request.url.path
        if not path.startswith(self.PROTECTED_PREFIX):
            return await call_next(request)

        origin_error = self._validate_origin(request)
        if origin_error:
            logger.warning(f"CSRF origin check failed: {origin_error} for {request.method} {path}")
            return self._reject("Invalid request origin")

        if path in self.ORIGIN_ONLY_PATHS or request.headers.get("Authorization"):
            return await call_next(request)

        if settings.ADMIN_SESSION_COOKIE_NAME not in request.cookies:
            # No session cookie means nothing to forge; the auth gate answers
            return await call_next(request)

        csrf_cookie = request.cookies.get(self.COOKIE_NAME)
        csrf_header = request.headers.get(self.HEADER_NAME)
        if not csrf_cookie or not csrf_header:
            logger.warning(f"CSRF validation failed: token missing for {request.method} {path}")
            return self._reject("CSRF token missing")
        if not secrets.compare_digest(csrf_cookie, csrf_header):
            logger.warning(f"CSRF validation failed: token mismatch for {request.method} {path}")
            return self._reject("CSRF token mismatch")

        return await call_next(request)

    @staticmethod
    def _reject(detail: str) -> Response:
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": detail})

    def _validate_origin(self, request: Request) -> Optional[str]:
        """
        Check Origin (or Referer) against the allowed origins.

        Returns:
            None if valid, error message if invalid
        """
        origin = request.headers.get("Origin")
        referer = request.headers.get("Referer")
        if not origin and not referer:
            return None

        if not origin:
            parsed = urlparse(referer)
            origin = f"{parsed.scheme}://{parsed.netloc}"
        if origin in settings.BACKEND_CORS_ORIGINS or origin == str(request.base_url).rstrip("/"):
            return None
        return f"Origin '{origin}' not allowed"

    def _ensure_csrf_cookie(self, request: Request, response: Response) -> Response:
        if self.COOKIE_NAME not in request.cookies:
            response.set_cookie(
                key=self.COOKIE_NAME,
                value=secrets.token_urlsafe(self.TOKEN_LENGTH),
                httponly=False,  # must be readable by JavaScript clients
                samesite="strict",
                secure=settings.is_production,
                max_age=3600 * 24
            )
        return response


def setup_csrf_protection(app) -> None:
    """
    Configure CSRF protection for the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    if not settings.CSRF_ENABLED:
        logger.info("CSRF protection is disabled")
        return

    app.add_middleware(CSRFMiddleware)
    logger.info("CSRF protection enabled")
