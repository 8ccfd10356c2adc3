from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from apikey_service.core.status import KeyStatus


class RegisterRequest(BaseModel):
    """Request schema for registration with a server generated key."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email_address: Optional[str] = None


class RegisterResponse(BaseModel):
    """Response schema for registration with a server generated key."""
    message: str = "User and API key created"
    api_key: str


class ClientKeyRegisterRequest(RegisterRequest):
    """Request schema for registration with a key generated via /create."""
    model_config = ConfigDict(populate_by_name=True)

    api_key: Optional[str] = Field(default=None, alias="apiKey")


class ClientKeyRegisterResponse(BaseModel):
    """Response schema for registration with a client supplied key."""
    message: str = "User and API key saved"
    user_id: int
    api_key: str


class GeneratedKeyResponse(BaseModel):
    """Response schema for a generated, not yet stored, key."""
    api_key: str


class ValidateRequest(BaseModel):
    """Request schema for key validation; the key may come from the header instead."""
    model_config = ConfigDict(populate_by_name=True)

    api_key: Optional[str] = Field(default=None, alias="apiKey")


class ValidateResponse(BaseModel):
    """Response schema for key validation."""
    valid: bool
    detail: Optional[str] = None


class SetActiveRequest(BaseModel):
    """Request schema for activating or deactivating a key."""
    is_active: bool


class ApiKeyResponse(BaseModel):
    """Response schema for an API key in admin listings."""
    id: int
    key_value: str
    owner_user_id: Optional[int] = None
    is_active: bool
    created_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    status: Optional[KeyStatus] = None

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """Response schema for a user with the keys it owns."""
    id: int
    first_name: str
    last_name: str
    email_address: str
    created_at: Optional[datetime] = None
    api_keys: List[ApiKeyResponse] = []

    class Config:
        from_attributes = True
