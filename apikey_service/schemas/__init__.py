"""Pydantic schemas for request/response contracts."""
from apikey_service.schemas.api_key import (
    RegisterRequest,
    RegisterResponse,
    ClientKeyRegisterRequest,
    ClientKeyRegisterResponse,
    GeneratedKeyResponse,
    ValidateRequest,
    ValidateResponse,
    SetActiveRequest,
    ApiKeyResponse,
    UserResponse,
)
from apikey_service.schemas.auth import (
    AdminCredentials,
    AdminRegisterResponse,
    AdminLoginResponse,
    AdminResponse,
    MessageResponse,
)

__all__ = [
    "RegisterRequest",
    "RegisterResponse",
    "ClientKeyRegisterRequest",
    "ClientKeyRegisterResponse",
    "GeneratedKeyResponse",
    "ValidateRequest",
    "ValidateResponse",
    "SetActiveRequest",
    "ApiKeyResponse",
    "UserResponse",
    "AdminCredentials",
    "AdminRegisterResponse",
    "AdminLoginResponse",
    "AdminResponse",
    "MessageResponse",
]
