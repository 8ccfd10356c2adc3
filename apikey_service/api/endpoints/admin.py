import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import HTMLResponse
from apikey_service.api.dashboard import render_dashboard
from apikey_service.api.deps import (
    get_admin_service,
    get_current_admin_id,
    get_key_service,
    get_session_token,
)
from apikey_service.config import settings
from apikey_service.core.exceptions import UnauthenticatedException
from apikey_service.middleware.rate_limit import rate_limit_auth
from apikey_service.schemas.api_key import ApiKeyResponse, SetActiveRequest, UserResponse
from apikey_service.schemas.auth import (
    AdminCredentials,
    AdminLoginResponse,
    AdminRegisterResponse,
    AdminResponse,
    MessageResponse,
)
from apikey_service.services.admin_service import AdminSessionService
from apikey_service.services.key_service import KeyLifecycleService, KeyView

logger = logging.getLogger(__name__)

router = APIRouter()


def _key_response(view: KeyView) -> ApiKeyResponse:
    return ApiKeyResponse.model_validate(view.key).model_copy(update={"status": view.status})


@router.post("/register", response_model=AdminRegisterResponse)
@rate_limit_auth()
async def register_admin(
    request: Request,
    credentials: AdminCredentials,
    admin_service: AdminSessionService = Depends(get_admin_service)
):
    """Create an admin account."""
    admin = await admin_service.register(credentials.email, credentials.password)
    return AdminRegisterResponse(admin_id=admin.id)


@router.post("/login", response_model=AdminLoginResponse)
@rate_limit_auth()
async def login(
    request: Request,
    response: Response,
    credentials: AdminCredentials,
    admin_service: AdminSessionService = Depends(get_admin_service)
):
    """
    Log an admin in.
    The session token is returned in the body and set as an httponly cookie.
    """
    token, admin = await admin_service.login(credentials.email, credentials.password)
    response.set_cookie(
        key=settings.ADMIN_SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="strict",
        secure=settings.is_production,
        max_age=settings.ADMIN_SESSION_EXPIRE_MINUTES * 60
    )
    return AdminLoginResponse(access_token=token, admin_id=admin.id, email=admin.email)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    admin_service: AdminSessionService = Depends(get_admin_service)
):
    """End the current admin session."""
    await admin_service.logout(token)
    response.delete_cookie(settings.ADMIN_SESSION_COOKIE_NAME)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=AdminResponse)
async def get_me(
    admin_id: int = Depends(get_current_admin_id),
    admin_service: AdminSessionService = Depends(get_admin_service)
):
    """Get the admin behind the current session."""
    admin = await admin_service.get_admin(admin_id)
    if admin is None:
        raise UnauthenticatedException(detail="Admin account no longer exists")
    return admin


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    admin_id: int = Depends(get_current_admin_id),
    admin_service: AdminSessionService = Depends(get_admin_service),
    key_service: KeyLifecycleService = Depends(get_key_service)
):
    """HTML overview of all users and keys with their online/offline status."""
    admin = await admin_service.get_admin(admin_id)
    users = await key_service.list_users()
    keys = await key_service.list_keys()
    return render_dashboard(request, admin.email if admin else "", users, keys)


@router.get("/apikeys", response_model=List[ApiKeyResponse])
async def list_api_keys(
    admin_id: int = Depends(get_current_admin_id),
    key_service: KeyLifecycleService = Depends(get_key_service)
):
    """List all API keys, most recent first."""
    return [_key_response(view) for view in await key_service.list_keys()]


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    admin_id: int = Depends(get_current_admin_id),
    key_service: KeyLifecycleService = Depends(get_key_service)
):
    """List all users with their API keys, most recent first."""
    users = await key_service.list_users()
    responses = []
    for user in users:
        keys = [
            _key_response(KeyView(key=key, status=key_service.status_of(key)))
            for key in user.api_keys
        ]
        responses.append(UserResponse.model_validate(user).model_copy(update={"api_keys": keys}))
    return responses


@router.delete("/apikey/{key_id}", response_model=MessageResponse)
async def delete_api_key(
    key_id: str,
    admin_id: int = Depends(get_current_admin_id),
    key_service: KeyLifecycleService = Depends(get_key_service)
):
    """Revoke an API key by id."""
    await key_service.revoke_key(key_id)
    logger.info(f"Admin {admin_id} revoked API key {key_id}")
    return MessageResponse(message="API key deleted")


@router.patch("/apikey/{key_id}", response_model=ApiKeyResponse)
async def set_api_key_active(
    key_id: str,
    payload: SetActiveRequest,
    admin_id: int = Depends(get_current_admin_id),
    key_service: KeyLifecycleService = Depends(get_key_service)
):
    """Activate or deactivate an API key."""
    api_key = await key_service.set_key_active(key_id, payload.is_active)
    return _key_response(KeyView(key=api_key, status=key_service.status_of(api_key)))


@router.delete("/user/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    admin_id: int = Depends(get_current_admin_id),
    key_service: KeyLifecycleService = Depends(get_key_service)
):
    """Delete a user together with all of its API keys."""
    keys_deleted = await key_service.delete_user(user_id)
    logger.info(f"Admin {admin_id} deleted user {user_id} and {keys_deleted} key(s)")
    return MessageResponse(message=f"User deleted with {keys_deleted} API key(s)")
