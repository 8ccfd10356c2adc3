from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from apikey_service.config import settings
from apikey_service.database import get_db
from apikey_service.services.admin_service import AdminSessionService
from apikey_service.services.key_service import KeyLifecycleService


# Bearer is optional here because the session may also arrive as a cookie
bearer_scheme = HTTPBearer(auto_error=False)


# Service Dependencies for Dependency Injection
def get_key_service(db: AsyncSession = Depends(get_db)) -> KeyLifecycleService:
    """Get KeyLifecycleService bound to the request session."""
    return KeyLifecycleService(db)


def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminSessionService:
    """Get AdminSessionService bound to the request session."""
    return AdminSessionService(db)


def get_session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """
    Read the admin session token.

    The Authorization header wins over the session cookie when both are sent.
    """
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.ADMIN_SESSION_COOKIE_NAME)


async def get_current_admin_id(
    request: Request,
    token: Optional[str] = Depends(get_session_token),
    admin_service: AdminSessionService = Depends(get_admin_service),
) -> int:
    """
    Require a live admin session.
    Dependency for every privileged endpoint.

    Raises:
        UnauthenticatedException: 401 if the session is missing, invalid or ended
    """
    admin_id = await admin_service.require_authenticated(token)
    request.state.admin_id = admin_id
    return admin_id

