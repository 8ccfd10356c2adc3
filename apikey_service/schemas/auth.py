from typing import Optional
from datetime import datetime
from pydantic import BaseModel


class AdminCredentials(BaseModel):
    """Request schema for admin registration and login."""
    email: Optional[str] = None
    password: Optional[str] = None


class AdminRegisterResponse(BaseModel):
    """Response schema for admin registration."""
    message: str = "Admin registered"
    admin_id: int


class AdminLoginResponse(BaseModel):
    """Response schema for admin login."""
    message: str = "Login successful"
    access_token: str
    token_type: str = "bearer"
    admin_id: int
    email: str


class AdminResponse(BaseModel):
    """Response schema for the logged in admin."""
    id: int
    email: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    message: str
